"""Configuration data models for the reader.

Each dataclass mirrors one section of the INI file; field names are the INI keys.
Default values are used for keys missing from the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

__all__: list[str] = [
    "Azure",
    "Config",
    "ElevenLabs",
    "General",
    "Keyboard",
    "Reader",
]


@dataclass
class General:
    DEBUG: bool = False
    VERSION: str = ""
    SCRIPT_NAME: str = ""
    TMP_DIR: Path | None = None
    LOG_FILE: str = ""


@dataclass
class Reader:
    DEFAULT_ADAPTER: str = "elevenlabs"
    MAX_TEXT_LENGTH: int = 5000
    # 0 reads every chunk of the page
    MAX_CHUNKS: int = 3
    WHOLE_PAGE_READING: bool = False
    MOCK_TTS: bool = False


@dataclass
class Keyboard:
    ENABLED: bool = True
    START_THROTTLE_MS: int = 1000
    TOGGLE_THROTTLE_MS: int = 300


@dataclass
class ElevenLabs:
    API_KEY: str = ""
    SERVER: str = "https://api.elevenlabs.io"
    MODEL_ID: str = "eleven_multilingual_v2"
    VOICE_ID: str = "JBFqnCBsd6RMkjVDRZzb"
    OUTPUT_FORMAT: str = "mp3_44100_128"
    TIMEOUT: float = 30.0


@dataclass
class Azure:
    API_KEY: str = ""
    REGION: str = "westeurope"
    VOICE: str = "en-US-AriaNeural"
    OUTPUT_FORMAT: str = "riff-24khz-16bit-mono-pcm"
    TIMEOUT: float = 30.0


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    READER: Reader = field(default_factory=Reader)
    KEYBOARD: Keyboard = field(default_factory=Keyboard)
    ELEVENLABS: ElevenLabs = field(default_factory=ElevenLabs)
    AZURE: Azure = field(default_factory=Azure)
