"""Unit tests for core.reader.services module."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from core.reader.services import ServiceBundleFactory, ServiceSlot
from handlers.text_source import StaticTextSource
from models.config_models import Config
from models.playback_models import AdapterType, PlaybackState

if TYPE_CHECKING:
    from core.reader.services import ServiceBundle

    from .conftest import FakeAdapter


class TrackingTextSource(StaticTextSource):
    def __init__(self, log: list[str]) -> None:
        super().__init__("Some text.")
        self.log: list[str] = log

    def close(self) -> None:
        self.log.append("close text source")


class RecordingKeySource:
    def __init__(self) -> None:
        self.listeners: list = []
        self.error: Exception | None = None

    def add_listener(self, listener) -> None:
        if self.error is not None:
            raise self.error
        self.listeners.append(listener)

    def remove_listener(self, listener) -> None:
        self.listeners.remove(listener)


@pytest.fixture
def log() -> list[str]:
    return []


@pytest.fixture
def key_source() -> RecordingKeySource:
    return RecordingKeySource()


@pytest.fixture
def factory(log: list[str], key_source: RecordingKeySource, make_adapter: type[FakeAdapter]) -> ServiceBundleFactory:
    def build(adapter_type: AdapterType, _config: Config) -> FakeAdapter:
        log.append(f"create {adapter_type}")
        adapter = make_adapter(adapter_type)
        adapter.on_destroy = lambda destroyed: log.append(f"destroy {destroyed.adapter_type}")
        return adapter

    config = Config()
    config.READER.MAX_CHUNKS = 2
    config.KEYBOARD.START_THROTTLE_MS = 500
    return ServiceBundleFactory(
        config,
        text_source_factory=lambda: TrackingTextSource(log),
        key_source=key_source,
        adapter_builder=build,
    )


@pytest.fixture
def slot(factory: ServiceBundleFactory) -> ServiceSlot:
    return ServiceSlot(factory, on_state_change=MagicMock(), on_adapter_switch=MagicMock())


@pytest.mark.asyncio
async def test_create_wires_bundle(factory: ServiceBundleFactory, key_source: RecordingKeySource) -> None:
    on_state_change = MagicMock()
    on_switch = MagicMock()

    bundle: ServiceBundle = await factory.create(AdapterType.AZURE, on_state_change, on_switch)

    assert bundle.adapter_type == AdapterType.AZURE
    assert bundle.orchestration.adapter is bundle.adapter
    assert bundle.orchestration.voice_manager is bundle.voice_manager
    assert bundle.orchestration.max_chunks == 2
    assert bundle.orchestration.state.current_adapter == AdapterType.AZURE
    assert len(key_source.listeners) == 1

    bundle.orchestration.state_manager.set_playing()
    assert on_state_change.call_args.args[0].mode is PlaybackState.PLAYING

    bundle.orchestration.switch_adapter()
    on_switch.assert_called_once_with(AdapterType.ELEVENLABS)


@pytest.mark.asyncio
async def test_create_respects_disabled_keyboard(factory: ServiceBundleFactory, key_source: RecordingKeySource) -> None:
    factory.config.KEYBOARD.ENABLED = False

    bundle: ServiceBundle = await factory.create(AdapterType.ELEVENLABS, MagicMock(), MagicMock())

    assert bundle.keyboard.dispatcher.enabled is False
    assert len(key_source.listeners) == 1


@pytest.mark.asyncio
async def test_switch_destroys_old_bundle_before_creating_new(slot: ServiceSlot, log: list[str]) -> None:
    await slot.get_services(AdapterType.ELEVENLABS)

    bundle: ServiceBundle = await slot.get_services(AdapterType.AZURE)

    assert log == ["create elevenlabs", "destroy elevenlabs", "close text source", "create azure"]
    assert slot.current is bundle


@pytest.mark.asyncio
async def test_same_type_returns_same_bundle(slot: ServiceSlot, log: list[str]) -> None:
    first: ServiceBundle = await slot.get_services(AdapterType.ELEVENLABS)
    second: ServiceBundle = await slot.get_services(AdapterType.ELEVENLABS)

    assert first is second
    assert log == ["create elevenlabs"]


@pytest.mark.asyncio
async def test_destroy_tears_down_every_member(
    factory: ServiceBundleFactory, key_source: RecordingKeySource, log: list[str]
) -> None:
    bundle: ServiceBundle = await factory.create(AdapterType.ELEVENLABS, MagicMock(), MagicMock())
    adapter: FakeAdapter = bundle.adapter

    await factory.destroy(bundle)

    assert adapter.destroyed == 1
    assert adapter.listener_count() == 0
    assert key_source.listeners == []
    assert bundle.voice_manager.loaded_voices == []
    assert log[-1] == "close text source"


@pytest.mark.asyncio
async def test_failing_member_does_not_stop_teardown(
    factory: ServiceBundleFactory, key_source: RecordingKeySource, log: list[str], caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG, logger="TTSReader")
    bundle: ServiceBundle = await factory.create(AdapterType.ELEVENLABS, MagicMock(), MagicMock())

    def broken(_adapter: FakeAdapter) -> None:
        msg = "device busy"
        raise RuntimeError(msg)

    bundle.adapter.on_destroy = broken

    await factory.destroy(bundle)

    assert "Failed to destroy adapter: device busy" in caplog.text
    assert key_source.listeners == []
    assert log[-1] == "close text source"


@pytest.mark.asyncio
async def test_release(slot: ServiceSlot, log: list[str]) -> None:
    await slot.release()
    assert log == []

    await slot.get_services(AdapterType.ELEVENLABS)
    await slot.release()

    assert slot.current is None
    assert log == ["create elevenlabs", "destroy elevenlabs", "close text source"]


@pytest.mark.asyncio
async def test_failed_create_tears_down_built_members(
    factory: ServiceBundleFactory, key_source: RecordingKeySource, log: list[str], caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG, logger="TTSReader")
    key_source.error = RuntimeError("no display")

    with pytest.raises(RuntimeError, match="no display"):
        await factory.create(AdapterType.ELEVENLABS, MagicMock(), MagicMock())

    assert log == ["create elevenlabs", "destroy elevenlabs", "close text source"]
    assert "Failed to create services for 'elevenlabs': no display" in caplog.text


@pytest.mark.asyncio
async def test_start_throttle_survives_adapter_switch(slot: ServiceSlot) -> None:
    first: ServiceBundle = await slot.get_services(AdapterType.ELEVENLABS)
    first.keyboard.start_or_toggle()
    assert len(first.keyboard.background_tasks) == 1

    second: ServiceBundle = await slot.get_services(AdapterType.AZURE)
    second.keyboard.start_or_toggle()

    assert second.keyboard.background_tasks == set()
    await slot.release()
