"""Helpers for turning exceptions into messages shown to the reader."""

from __future__ import annotations

from typing import Final

__all__: list[str] = ["extract_error_message", "is_network_error"]

DEFAULT_ERROR_MESSAGE: Final[str] = "Unknown error occurred"

_NETWORK_KEYWORDS: Final[tuple[str, ...]] = (
    "network",
    "fetch",
    "connection",
    "timeout",
    "unreachable",
    "could not be reached",
    "disconnected",
)


def extract_error_message(error: object, fallback: str = DEFAULT_ERROR_MESSAGE) -> str:
    """Return a readable message for any raised value.

    Exceptions with an empty message, and values that are not exceptions at all, yield ``fallback``.
    """
    if isinstance(error, BaseException):
        message: str = str(error).strip()
        return message or fallback
    if isinstance(error, str) and error.strip():
        return error.strip()
    return fallback


def is_network_error(error: object) -> bool:
    """Check whether an error message looks like a connectivity problem."""
    if isinstance(error, (ConnectionError, TimeoutError)):
        return True
    message: str = extract_error_message(error, "").lower()
    return any(keyword in message for keyword in _NETWORK_KEYWORDS)
