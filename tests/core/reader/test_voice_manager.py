from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.reader.voice_manager import VoiceManager, VoiceManagerCallbacks
from core.tts.errors import NoVoicesAvailableError, TTSNetworkError, VoiceSettingNotSupportedError
from models.voice_models import Gender, VoiceDescriptor

if TYPE_CHECKING:
    from .conftest import FakeAdapter


@pytest.fixture
def callbacks() -> VoiceManagerCallbacks:
    return VoiceManagerCallbacks(on_voices_loaded=MagicMock(), on_voice_changed=MagicMock(), on_voice_error=MagicMock())


@pytest.mark.asyncio
async def test_load_selects_first_voice(fake_adapter: FakeAdapter, callbacks: VoiceManagerCallbacks) -> None:
    manager = VoiceManager(fake_adapter, callbacks)

    voices: list[VoiceDescriptor] = await manager.load_voices()

    assert [voice.id for voice in voices] == ["voice-1", "voice-2"]
    assert manager.current_voice_id == "voice-1"
    assert manager.current_voice_info == voices[0]
    callbacks.on_voices_loaded.assert_called_once_with(voices)
    callbacks.on_voice_changed.assert_called_once_with("voice-1", voices[0])


@pytest.mark.asyncio
async def test_reload_keeps_selection(fake_adapter: FakeAdapter) -> None:
    manager = VoiceManager(fake_adapter)
    await manager.load_voices()
    await manager.set_voice("voice-2")

    await manager.load_voices()

    assert manager.current_voice_id == "voice-2"
    assert fake_adapter.current_voice_id == "voice-2"


@pytest.mark.asyncio
async def test_missing_catalog_raises(make_adapter: type[FakeAdapter], callbacks: VoiceManagerCallbacks) -> None:
    adapter = make_adapter()
    adapter.voices = None
    manager = VoiceManager(adapter, callbacks)

    with pytest.raises(NoVoicesAvailableError):
        await manager.load_voices()

    callbacks.on_voice_error.assert_called_once_with("No voices available from adapter")
    assert manager.is_loading is False


@pytest.mark.asyncio
async def test_empty_catalog_selects_nothing(make_adapter: type[FakeAdapter]) -> None:
    manager = VoiceManager(make_adapter(voices=[]))

    assert await manager.load_voices() == []
    assert manager.current_voice_id is None


@pytest.mark.asyncio
async def test_adapter_failure_is_reported(fake_adapter: FakeAdapter, callbacks: VoiceManagerCallbacks) -> None:
    fake_adapter.voice_error = TTSNetworkError("Network error: offline")
    manager = VoiceManager(fake_adapter, callbacks)

    with pytest.raises(TTSNetworkError):
        await manager.load_voices()

    callbacks.on_voice_error.assert_called_once_with("Network error: offline")
    assert manager.loaded_voices == []


@pytest.mark.asyncio
async def test_fixed_voice_adapter_still_selects_first_voice(fake_adapter: FakeAdapter) -> None:
    fake_adapter.set_voice_error = VoiceSettingNotSupportedError("Voice selection is not supported")
    manager = VoiceManager(fake_adapter)

    await manager.load_voices()

    assert manager.current_voice_id == "voice-1"


@pytest.mark.asyncio
async def test_set_voice_not_supported(fake_adapter: FakeAdapter, callbacks: VoiceManagerCallbacks) -> None:
    manager = VoiceManager(fake_adapter, callbacks)
    fake_adapter.set_voice_error = VoiceSettingNotSupportedError("Voice selection is not supported")

    with pytest.raises(VoiceSettingNotSupportedError):
        await manager.set_voice("voice-2")

    assert manager.current_voice_id is None
    callbacks.on_voice_error.assert_called_once_with("Voice selection is not supported")


@pytest.mark.asyncio
async def test_concurrent_load_makes_a_single_request(fake_adapter: FakeAdapter) -> None:
    gate = asyncio.Event()

    async def slow_catalog() -> list[VoiceDescriptor]:
        await gate.wait()
        return list(fake_adapter.voices or [])

    fake_adapter.get_voices = AsyncMock(side_effect=slow_catalog)
    manager = VoiceManager(fake_adapter)

    first = asyncio.create_task(manager.load_voices())
    await asyncio.sleep(0)
    assert manager.is_loading is True

    assert await manager.load_voices() == []
    gate.set()
    voices: list[VoiceDescriptor] = await first

    fake_adapter.get_voices.assert_awaited_once()
    assert [voice.id for voice in voices] == ["voice-1", "voice-2"]
    assert manager.is_loading is False


@pytest.mark.asyncio
async def test_set_voice_outside_catalog(fake_adapter: FakeAdapter, callbacks: VoiceManagerCallbacks) -> None:
    manager = VoiceManager(fake_adapter, callbacks)
    await manager.load_voices()
    callbacks.on_voice_changed.reset_mock()

    await manager.set_voice("missing")

    assert manager.current_voice_id == "missing"
    callbacks.on_voice_changed.assert_called_once_with("missing", None)
    assert await manager.get_current_voice_gender() is None

    await manager.set_voice("voice-2")
    assert await manager.get_current_voice_gender() == Gender.MALE


@pytest.mark.asyncio
async def test_gender_queries_fall_back_to_catalog(fake_adapter: FakeAdapter) -> None:
    manager = VoiceManager(fake_adapter)
    await manager.load_voices()

    male: list[VoiceDescriptor] = await manager.get_voices_by_gender(Gender.MALE)

    assert [voice.id for voice in male] == ["voice-2"]
    assert await manager.get_current_voice_gender() == Gender.FEMALE


@pytest.mark.asyncio
async def test_native_gender_queries_are_preferred() -> None:
    adapter = MagicMock()
    adapter.get_voices_by_gender = AsyncMock(return_value=[])
    adapter.get_current_voice_gender = AsyncMock(return_value=Gender.NEUTRAL)
    manager = VoiceManager(adapter)

    assert await manager.get_voices_by_gender(Gender.MALE) == []
    assert await manager.get_current_voice_gender() == Gender.NEUTRAL


@pytest.mark.asyncio
async def test_current_voice_gender_never_raises() -> None:
    adapter = MagicMock()
    adapter.get_current_voice_gender = AsyncMock(side_effect=TTSNetworkError("offline"))
    manager = VoiceManager(adapter)

    assert await manager.get_current_voice_gender() is None


@pytest.mark.asyncio
async def test_update_adapter_resets_cache(fake_adapter: FakeAdapter, make_adapter: type[FakeAdapter]) -> None:
    manager = VoiceManager(fake_adapter)
    await manager.load_voices()
    other = make_adapter(voices=[VoiceDescriptor(id="az-1", name="Aria")])

    manager.update_adapter(other)
    assert manager.loaded_voices == []
    assert manager.current_voice_id is None

    await manager.load_voices()
    assert manager.current_voice_id == "az-1"


@pytest.mark.asyncio
async def test_cleanup_drops_callbacks(fake_adapter: FakeAdapter, callbacks: VoiceManagerCallbacks) -> None:
    manager = VoiceManager(fake_adapter, callbacks)

    manager.cleanup()
    await manager.load_voices()

    callbacks.on_voices_loaded.assert_not_called()
