"""Data models for the TTS reader.

This package contains dataclass definitions for configuration, playback state and events,
voices, and keyboard shortcuts.
"""

from __future__ import annotations

from models.config_models import Azure, Config, ElevenLabs, General, Keyboard, Reader
from models.playback_models import (
    AVAILABLE_ADAPTERS,
    AdapterDescriptor,
    AdapterType,
    PlaybackEvent,
    PlaybackEventInfo,
    PlaybackState,
    PlayResult,
    TextChunk,
    TtsState,
)
from models.shortcut_models import KeyEvent, KeyTarget, ShortcutBinding
from models.voice_models import Gender, VoiceDescriptor, VoicesState

__all__: list[str] = [
    "AVAILABLE_ADAPTERS",
    "AdapterDescriptor",
    "AdapterType",
    "Azure",
    "Config",
    "ElevenLabs",
    "Gender",
    "General",
    "KeyEvent",
    "KeyTarget",
    "Keyboard",
    "PlayResult",
    "PlaybackEvent",
    "PlaybackEventInfo",
    "PlaybackState",
    "Reader",
    "ShortcutBinding",
    "TextChunk",
    "TtsState",
    "VoiceDescriptor",
    "VoicesState",
]
