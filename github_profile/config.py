"""
Configuration read from environment variables.

This is the only module that looks at the environment. The composition
root calls load_settings() once and passes the pieces on; the service
and the retry never see os.environ.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from github_profile.application.retry import DEFAULT_RETRY_DELAY
from github_profile.domain.entities import CredentialPool
from github_profile.infrastructure.github_client import GITHUB_API_URL, REQUEST_TIMEOUT

# Slot order is fixed: slot 0 is tried first, slot 1 on the first retry.
TOKEN_VARIABLES = ("GITHUB_TOKEN1", "GITHUB_TOKEN2")


class ConfigError(Exception):
    """Raised when the environment cannot produce a usable Settings."""
    pass


@dataclass(frozen=True)
class Settings:
    credentials: CredentialPool
    retry_delay: float = DEFAULT_RETRY_DELAY
    api_url:     str   = GITHUB_API_URL
    timeout:     float = REQUEST_TIMEOUT


def _read_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must be >= 0, got {value}")
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the environment.
    Fails fast with ConfigError if no token slot is set at all.
    """
    if environ is None:
        environ = os.environ

    tokens = tuple(environ.get(name) or None for name in TOKEN_VARIABLES)
    if not any(tokens):
        raise ConfigError(
            f"At least one of {', '.join(TOKEN_VARIABLES)} environment variables is required"
        )

    timeout = _read_float(environ, "GITHUB_TIMEOUT", REQUEST_TIMEOUT)
    if timeout == 0:
        raise ConfigError("GITHUB_TIMEOUT must be > 0")

    return Settings(
        credentials = CredentialPool(tokens),
        retry_delay = _read_float(environ, "GITHUB_RETRY_DELAY", DEFAULT_RETRY_DELAY),
        api_url     = environ.get("GITHUB_API_URL") or GITHUB_API_URL,
        timeout     = timeout,
    )
