"""Credential providers and Authorization header composition."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# Number of token characters that may appear in logs
TOKEN_LOG_PREFIX_LENGTH = 3


class TokenProvider(Protocol):
    """Supplies the current bearer credential on demand."""

    def get(self) -> str | None:
        """Return the current token, or None if no credential is configured."""
        ...


class StaticTokenProvider:
    """Token provider returning a fixed token."""

    def __init__(self, token: str | None) -> None:
        self._token = token or None

    def get(self) -> str | None:
        return self._token


class FileTokenProvider:
    """Token provider reading the token from a file on every call.

    Suited to mounted secrets that are rotated on disk by an external agent.
    Read errors propagate to the caller.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Location of the token file."""
        return self._path

    def get(self) -> str | None:
        token = self._path.read_text(encoding="utf-8").strip()
        return token or None


def token_prefix(token: str | None) -> str:
    """Return a loggable prefix of a token, never the full secret."""
    if not token:
        return "(none)"
    if len(token) <= TOKEN_LOG_PREFIX_LENGTH:
        return "***"
    return f"{token[:TOKEN_LOG_PREFIX_LENGTH]}.."


def build_auth_headers(token: str | None) -> dict[str, str]:
    """Build request headers for the given token.

    Args:
        token: Bearer token, or None.

    Returns:
        Headers with an Authorization entry, or no headers when the token
        is missing.
    """
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}
