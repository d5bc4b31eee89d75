from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.tts.errors import TTSNotSupportedError
from models.playback_models import AdapterType, PlaybackEvent, PlaybackEventInfo, PlayResult
from models.voice_models import Gender, VoiceDescriptor

if TYPE_CHECKING:
    from collections.abc import Callable

    from models.playback_models import TextChunk

DEFAULT_VOICES: list[VoiceDescriptor] = [
    VoiceDescriptor(id="voice-1", name="Rachel", language="en", gender=Gender.FEMALE),
    VoiceDescriptor(id="voice-2", name="Adam", language="en", gender=Gender.MALE),
]


class FakeAdapter:
    """In-memory stand-in for a playback adapter.

    ``play`` emits PLAY right away; tests end a chunk with ``finish()``.
    """

    def __init__(
        self,
        adapter_type: AdapterType = AdapterType.ELEVENLABS,
        *,
        voice_id: str | None = "voice-1",
        voices: list[VoiceDescriptor] | None = None,
    ) -> None:
        self.adapter_type: AdapterType = adapter_type
        self.current_voice_id: str | None = voice_id
        self.voices: list[VoiceDescriptor] | None = list(DEFAULT_VOICES) if voices is None else voices
        self.listeners: dict[PlaybackEvent, list[Callable[[PlaybackEventInfo], None]]] = {
            event: [] for event in PlaybackEvent
        }
        self.played: list[TextChunk] = []
        self.played_audio: list[bytes] = []
        self.playing: bool = False
        self.paused: bool = False
        self.stop_calls: int = 0
        self.destroyed: int = 0
        self.play_error: Exception | None = None
        self.voice_error: Exception | None = None
        self.set_voice_error: Exception | None = None
        self.on_destroy: Callable[[FakeAdapter], None] | None = None

    def on(self, event: PlaybackEvent, listener: Callable[[PlaybackEventInfo], None]) -> None:
        self.listeners[event].append(listener)

    def off(self, event: PlaybackEvent, listener: Callable[[PlaybackEventInfo], None]) -> None:
        if listener in self.listeners[event]:
            self.listeners[event].remove(listener)

    def listener_count(self) -> int:
        return sum(len(listeners) for listeners in self.listeners.values())

    def emit(self, event: PlaybackEvent, **kwargs) -> None:
        for listener in list(self.listeners[event]):
            listener(PlaybackEventInfo(event, **kwargs))

    async def play(self, chunk: TextChunk) -> PlayResult:
        if self.play_error is not None:
            raise self.play_error
        self.played.append(chunk)
        return self._start(f"req-{len(self.played)}")

    async def play_audio(self, data: bytes, *, suffix: str = "wav", request_id: str | None = None) -> PlayResult:
        _ = suffix
        self.played_audio.append(data)
        return self._start(request_id)

    def _start(self, request_id: str | None) -> PlayResult:
        self.playing = True
        self.paused = False
        self.emit(PlaybackEvent.PLAY, request_id=request_id)
        return PlayResult(request_id=request_id)

    def finish(self, *, success: bool = True) -> None:
        self.playing = False
        self.emit(PlaybackEvent.END, success=success)

    def pause(self) -> None:
        if self.playing and not self.paused:
            self.paused = True
            self.emit(PlaybackEvent.PAUSE)

    def resume(self) -> None:
        if self.paused:
            self.paused = False
            self.emit(PlaybackEvent.RESUME)

    def stop(self) -> None:
        self.stop_calls += 1
        if self.playing:
            self.playing = False
            self.paused = False
            self.emit(PlaybackEvent.STOP)

    async def get_voices(self) -> list[VoiceDescriptor] | None:
        if self.voice_error is not None:
            raise self.voice_error
        return None if self.voices is None else list(self.voices)

    async def set_voice(self, voice_id: str) -> None:
        if self.set_voice_error is not None:
            raise self.set_voice_error
        self.current_voice_id = voice_id

    async def get_voices_by_gender(self, gender: Gender) -> list[VoiceDescriptor]:
        _ = gender
        msg = "no native gender filter"
        raise TTSNotSupportedError(msg)

    async def get_current_voice_gender(self) -> Gender | None:
        msg = "no native gender lookup"
        raise TTSNotSupportedError(msg)

    async def destroy(self) -> None:
        self.destroyed += 1
        if self.on_destroy is not None:
            self.on_destroy(self)


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def make_adapter() -> type[FakeAdapter]:
    return FakeAdapter
