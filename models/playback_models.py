"""Data models for playback, adapters and the reader state machine.

This module defines:
- AdapterType / AdapterDescriptor: the selectable synthesis backends.
- PlaybackState / TtsState: the orchestration state machine and its published snapshot.
- PlaybackEvent / PlaybackEventInfo: adapter event kinds and their payload.
- TextChunk / PlayResult: the unit of text sent to an adapter and the outcome of playing it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, StrEnum, auto
from typing import Final

__all__: list[str] = [
    "AVAILABLE_ADAPTERS",
    "AdapterDescriptor",
    "AdapterType",
    "PlayResult",
    "PlaybackEvent",
    "PlaybackEventInfo",
    "PlaybackState",
    "TextChunk",
    "TtsState",
    "get_adapter_descriptor",
]


class AdapterType(StrEnum):
    ELEVENLABS = "elevenlabs"
    AZURE = "azure"


@dataclass(frozen=True)
class AdapterDescriptor:
    """A selectable backend.

    Attributes:
        key (AdapterType): Stable identifier.
        name (str): Display name.
        implemented (bool): Whether the backend can actually be used.
    """

    key: AdapterType
    name: str
    implemented: bool = True


AVAILABLE_ADAPTERS: Final[tuple[AdapterDescriptor, ...]] = (
    AdapterDescriptor(key=AdapterType.ELEVENLABS, name="ElevenLabs", implemented=True),
    AdapterDescriptor(key=AdapterType.AZURE, name="Azure TTS", implemented=True),
)


def get_adapter_descriptor(adapter_type: AdapterType) -> AdapterDescriptor:
    for descriptor in AVAILABLE_ADAPTERS:
        if descriptor.key == adapter_type:
            return descriptor
    msg: str = f"Unknown adapter type: {adapter_type}"
    raise ValueError(msg)


class PlaybackState(Enum):
    IDLE = auto()
    GENERATING = auto()
    PLAYING = auto()
    PAUSED = auto()
    STOPPED = auto()
    ERROR = auto()


@dataclass(frozen=True)
class TtsState:
    """Immutable snapshot of the reader state.

    Attributes:
        mode (PlaybackState): Current state machine mode.
        error (str | None): Message of the last failure, set only in ERROR mode.
        current_adapter (AdapterType): Backend the state belongs to.
        is_enabled (bool): Whether reading is enabled at all.
    """

    mode: PlaybackState = PlaybackState.IDLE
    error: str | None = None
    current_adapter: AdapterType = AdapterType.ELEVENLABS
    is_enabled: bool = True

    @property
    def is_playing(self) -> bool:
        return self.mode is PlaybackState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.mode is PlaybackState.PAUSED

    @property
    def is_generating(self) -> bool:
        return self.mode is PlaybackState.GENERATING

    @property
    def is_active(self) -> bool:
        return self.mode in (PlaybackState.GENERATING, PlaybackState.PLAYING, PlaybackState.PAUSED)

    def evolve(self, **changes) -> TtsState:
        return replace(self, **changes)


class PlaybackEvent(Enum):
    PLAY = "play"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    END = "end"
    ERROR = "error"


@dataclass(frozen=True)
class PlaybackEventInfo:
    """Payload delivered with every playback event.

    Attributes:
        event (PlaybackEvent): The event kind.
        success (bool | None): For END, whether the audio played to completion.
        error (Exception | None): For ERROR and failed END events, the cause.
        request_id (str | None): Provider request id of the chunk concerned, if known.
    """

    event: PlaybackEvent
    success: bool | None = None
    error: Exception | None = None
    request_id: str | None = None


@dataclass
class TextChunk:
    """A unit of extracted text and its structural role.

    Attributes:
        text (str): The text to speak.
        element_type (str | None): Lower-case element name, e.g. "h1" or "p". None for plain text.
    """

    text: str
    element_type: str | None = None

    def __post_init__(self) -> None:
        if self.element_type is not None:
            self.element_type = self.element_type.lower()


@dataclass
class PlayResult:
    """Outcome of a play request.

    Attributes:
        request_id (str | None): Provider request id, used for prosody continuity.
        discarded (bool): True if the audio arrived after a stop and was thrown away.
    """

    request_id: str | None = None
    discarded: bool = False
