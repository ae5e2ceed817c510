"""
Domain Layer — Error Taxonomy
------------------------------
Every failure that can cross a layer boundary is a ServiceError tagged with
a ServiceErrorKind. Errors may carry the failure that caused them, so a
retry exhaustion still knows what the last attempt died of.

Only one rule collapses kinds: the profile aggregation turns any cause into
a NOT_FOUND error (see ServiceError.not_found).
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ServiceErrorKind(str, Enum):
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"
    AUTH_FAILURE      = "AUTH_FAILURE"
    RATE_LIMITED      = "RATE_LIMITED"
    NOT_FOUND         = "NOT_FOUND"
    RETRY_EXHAUSTED   = "RETRY_EXHAUSTED"


class ServiceError(Exception):
    """
    A classified failure.

    Returned as a value by the public service surface and raised inside
    the retry loop. `cause` is the failure this one wraps, if any.
    """

    def __init__(self,message: str,kind: ServiceErrorKind,cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.kind    = kind
        self.cause   = cause

    @classmethod
    def not_found(cls, message: str = "Not found", cause: BaseException | None = None) -> ServiceError:
        return cls(message, ServiceErrorKind.NOT_FOUND, cause)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured log lines."""
        cause = self.cause
        return {
            "error_type": self.__class__.__name__,
            "kind":       self.kind.value,
            "message":    self.message,
            "cause": (
                cause.to_dict() if isinstance(cause, ServiceError)
                else repr(cause) if cause is not None
                else None
            ),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, kind={self.kind.value})"


class RetryExhaustedError(ServiceError):
    """Raised when every credential in the pool was tried and all failed."""

    def __init__(self, attempts: int, cause: BaseException) -> None:
        super().__init__(
            f"All {attempts} attempts failed. Last error: {cause}",
            ServiceErrorKind.RETRY_EXHAUSTED,
            cause,
        )
        self.attempts = attempts

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["attempts"] = self.attempts
        return d
