"""Command and subscription surface of the reader.

ReaderController is what a user interface talks to. It owns the service slot, forwards commands to
the live bundle, and publishes two streams: the reader state (TtsState) and the voice catalog
(VoicesState). Failures are reported on these streams rather than raised.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING, Final

from core.reader.services import ServiceSlot
from core.tts.errors import TTSExceptionError
from models.playback_models import AdapterType, TtsState, get_adapter_descriptor
from models.voice_models import VoicesState
from utils.error_utils import extract_error_message
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Coroutine
    from typing import Any

    from core.reader.services import ServiceBundle, ServiceBundleFactory
    from models.playback_models import AdapterDescriptor
    from models.voice_models import VoiceDescriptor

__all__: list[str] = ["ReaderController"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

NO_VOICE_MESSAGE: Final[str] = "Please select a voice"

type StateSubscriber = Callable[[TtsState], None]
type VoicesSubscriber = Callable[[VoicesState], None]


class ReaderController:
    """Commands for the reader and the state and voices streams.

    Args:
        factory (ServiceBundleFactory): Builds the service bundles.
        default_adapter (AdapterType): Adapter used by ``initialize``.
    """

    def __init__(
        self,
        factory: ServiceBundleFactory,
        *,
        default_adapter: AdapterType = AdapterType.ELEVENLABS,
    ) -> None:
        self._slot: ServiceSlot = ServiceSlot(
            factory,
            on_state_change=self._handle_state_change,
            on_adapter_switch=self._handle_adapter_switch,
            on_toggle=self._handle_toggle,
        )
        self._adapter_type: AdapterType = default_adapter
        self._state: TtsState = TtsState(current_adapter=default_adapter)
        self._voices_state: VoicesState = VoicesState()
        self._state_subscribers: list[StateSubscriber] = []
        self._voices_subscribers: list[VoicesSubscriber] = []
        self.background_tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> TtsState:
        return self._state

    @property
    def voices_state(self) -> VoicesState:
        return self._voices_state

    @property
    def services(self) -> ServiceBundle | None:
        return self._slot.current

    @property
    def adapter_type(self) -> AdapterType:
        return self._adapter_type

    async def initialize(self) -> None:
        """Build the services for the default adapter and load its voices."""
        bundle: ServiceBundle = await self._slot.get_services(self._adapter_type)
        self._publish_state(bundle.orchestration.state)
        await self.load_voices()

    # --- commands ---------------------------------------------------------

    async def start_reading(self) -> None:
        bundle: ServiceBundle | None = self._require_services()
        if bundle is None:
            return
        if self._voices_state.voices and not bundle.orchestration.current_voice_id():
            bundle.orchestration.state_manager.set_error(NO_VOICE_MESSAGE)
            return
        await bundle.orchestration.start_reading()

    def pause_reading(self) -> None:
        if (bundle := self._require_services()) is not None:
            bundle.orchestration.pause_reading()

    def resume_reading(self) -> None:
        if (bundle := self._require_services()) is not None:
            bundle.orchestration.resume_reading()

    def stop_reading(self) -> None:
        if (bundle := self._require_services()) is not None:
            bundle.orchestration.stop_reading()

    def toggle_enabled(self) -> bool:
        bundle: ServiceBundle | None = self._require_services()
        if bundle is None:
            return self._state.is_enabled
        return bundle.orchestration.toggle_enabled()

    async def change_voice(self, voice_id: str) -> None:
        bundle: ServiceBundle | None = self._require_services()
        if bundle is None:
            return
        try:
            await bundle.voice_manager.set_voice(voice_id)
        except TTSExceptionError as err:
            self._publish_voices(self._voices_state, error=extract_error_message(err))
            return
        self._publish_voices(self._voices_state, selected_voice=voice_id, error=None)

    async def change_adapter(self, adapter_type: AdapterType) -> None:
        """Replace the live services with those of another adapter and load its voices."""
        descriptor: AdapterDescriptor = get_adapter_descriptor(adapter_type)
        if not descriptor.implemented:
            self._report_error(f"{descriptor.name} is not yet implemented")
            return
        if self._slot.current is not None and self._slot.current.adapter_type == adapter_type:
            logger.debug("Adapter '%s' is already active", adapter_type)
            return

        enabled: bool = self._state.is_enabled
        self.stop_reading()
        try:
            bundle: ServiceBundle = await self._slot.get_services(adapter_type)
        except Exception as err:  # noqa: BLE001
            logger.error("Failed to switch to %s: %s", descriptor.name, err)
            self._report_error(f"Failed to switch to {descriptor.name}")
            return

        self._adapter_type = adapter_type
        bundle.orchestration.state_manager.set_enabled(enabled=enabled)
        self._publish_state(bundle.orchestration.state)
        self._publish_voices(VoicesState())
        logger.info("Switched to %s", descriptor.name)
        await self.load_voices()

    async def load_voices(self) -> list[VoiceDescriptor]:
        bundle: ServiceBundle | None = self._require_services()
        if bundle is None:
            return []
        self._publish_voices(self._voices_state, is_loading=True, error=None)
        try:
            voices: list[VoiceDescriptor] = await bundle.voice_manager.load_voices()
        except TTSExceptionError as err:
            self._publish_voices(self._voices_state, is_loading=False, error=extract_error_message(err))
            return []
        self._publish_voices(
            VoicesState(voices=tuple(voices), selected_voice=bundle.voice_manager.current_voice_id),
        )
        return voices

    async def close(self) -> None:
        for task in list(self.background_tasks):
            task.cancel()
        if self.background_tasks:
            await asyncio.wait(self.background_tasks, timeout=2.0)
        self.background_tasks.clear()
        await self._slot.release()
        self._state_subscribers.clear()
        self._voices_subscribers.clear()
        logger.info("Reader closed")

    # --- subscriptions ----------------------------------------------------

    def subscribe_state(self, subscriber: StateSubscriber) -> Callable[[], None]:
        self._state_subscribers.append(subscriber)
        return lambda: self._unsubscribe(self._state_subscribers, subscriber)

    def subscribe_voices(self, subscriber: VoicesSubscriber) -> Callable[[], None]:
        self._voices_subscribers.append(subscriber)
        return lambda: self._unsubscribe(self._voices_subscribers, subscriber)

    @staticmethod
    def _unsubscribe(subscribers: list, subscriber: object) -> None:
        if subscriber in subscribers:
            subscribers.remove(subscriber)

    # --- internals --------------------------------------------------------

    def _require_services(self) -> ServiceBundle | None:
        bundle: ServiceBundle | None = self._slot.current
        if bundle is None:
            logger.warning("Reader services are not initialized")
        return bundle

    def _report_error(self, message: str) -> None:
        bundle: ServiceBundle | None = self._slot.current
        if bundle is not None:
            bundle.orchestration.state_manager.set_error(message)
        else:
            logger.warning("Reader error: %s", message)
            self._publish_state(self._state.evolve(error=message))

    def _handle_state_change(self, state: TtsState) -> None:
        self._publish_state(state)

    def _handle_adapter_switch(self, adapter_type: AdapterType) -> None:
        # The switch destroys the bundle that requested it, so it runs as a task of its own
        self._spawn(self.change_adapter(adapter_type))

    def _handle_toggle(self, enabled: bool) -> None:  # noqa: FBT001
        logger.info("Reading %s by shortcut", "enabled" if enabled else "disabled")

    def _publish_state(self, state: TtsState) -> None:
        self._state = state
        for subscriber in list(self._state_subscribers):
            try:
                subscriber(state)
            except Exception:  # noqa: BLE001
                logger.exception("State subscriber failed")

    def _publish_voices(self, base: VoicesState, **changes) -> None:
        self._voices_state = replace(base, **changes)
        for subscriber in list(self._voices_subscribers):
            try:
                subscriber(self._voices_state)
            except Exception:  # noqa: BLE001
                logger.exception("Voices subscriber failed")

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task: asyncio.Task[None] = asyncio.create_task(coro, name="change_adapter_task")
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
