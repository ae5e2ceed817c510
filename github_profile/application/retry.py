from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from github_profile.domain.errors import RetryExhaustedError

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_DELAY = 1.0


class CredentialRotatingRetry:
    """
    Re-runs a failed operation with the next credential slot.

    The operation receives the attempt index and uses it to pick a
    credential, so attempt i always runs with slot i. The delay between
    attempts is fixed: this swaps tokens, it does not back off.

    Holds no per-call state, so one instance can serve any number of
    concurrent fetches.
    """

    def __init__(self,max_attempts: int,retry_delay: float = DEFAULT_RETRY_DELAY,sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {retry_delay}")
        self.max_attempts = max_attempts
        self.retry_delay  = retry_delay
        self._sleep       = sleep

    async def fetch(self, operation: Callable[[int], Awaitable[T]]) -> T:
        """
        Run `operation(attempt)` until it succeeds or the pool runs out.

        Raises:
            RetryExhaustedError: every attempt failed; `cause` is the
            last failure.
        """
        attempt = 0
        while True:
            try:
                return await operation(attempt)
            except Exception as exc:
                if attempt + 1 < self.max_attempts:
                    log.warning(
                        "Attempt %d/%d failed: %s — rotating credential in %.2fs",
                        attempt + 1, self.max_attempts, exc, self.retry_delay,
                    )
                    await self._sleep(self.retry_delay)
                    attempt += 1
                    continue

                log.debug("All %d attempts failed. Last error: %s", self.max_attempts, exc)
                raise RetryExhaustedError(self.max_attempts, exc) from exc
