"""Exceptions raised by playback adapters and their collaborators."""

from __future__ import annotations

__all__: list[str] = [
    "NoVoicesAvailableError",
    "TTSExceptionError",
    "TTSNetworkError",
    "TTSNotSupportedError",
    "TTSPlaybackError",
    "TTSUnknownError",
    "TTSValidationError",
    "VoiceSettingNotSupportedError",
]


class TTSExceptionError(Exception):
    """Base class for TTS exceptions.

    The message of every subclass is written as is to the reader's error state, so it should be
    understandable without a stack trace.
    """


class TTSValidationError(TTSExceptionError):
    """Input rejected before anything was sent to a provider.

    Raised for empty or over-long text, an empty page and a missing voice selection.
    """


class TTSNotSupportedError(TTSExceptionError):
    """The active adapter lacks the requested capability."""


class VoiceSettingNotSupportedError(TTSNotSupportedError):
    """The active adapter does not allow selecting a voice."""


class NoVoicesAvailableError(TTSExceptionError):
    """The adapter did not return a voice catalog."""


class TTSNetworkError(TTSExceptionError):
    """The provider could not be reached or answered with an error."""


class TTSPlaybackError(TTSExceptionError):
    """The synthesized audio could not be written, decoded or played."""


class TTSUnknownError(TTSExceptionError):
    """Unexpected failure inside an adapter."""
