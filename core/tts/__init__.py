"""Speech synthesis adapters and audio playback.

This package provides the playback adapter contract, its error taxonomy, the provider channels and
the audio handle. Importing it registers the ElevenLabs and Azure adapters.
"""

from core.tts.errors import (
    NoVoicesAvailableError,
    TTSExceptionError,
    TTSNetworkError,
    TTSNotSupportedError,
    TTSPlaybackError,
    TTSUnknownError,
    TTSValidationError,
    VoiceSettingNotSupportedError,
)
from core.tts.interface import Interface
from core.tts.adapters import AzureAdapter, ElevenLabsAdapter  # noqa: I001  registers the adapters

__all__: list[str] = [
    "AzureAdapter",
    "ElevenLabsAdapter",
    "Interface",
    "NoVoicesAvailableError",
    "TTSExceptionError",
    "TTSNetworkError",
    "TTSNotSupportedError",
    "TTSPlaybackError",
    "TTSUnknownError",
    "TTSValidationError",
    "VoiceSettingNotSupportedError",
]
