"""Service bundle construction and teardown.

A ServiceBundle holds everything that belongs to one adapter: the adapter itself, the text source,
the voice manager, the orchestration service, and the keyboard shortcuts. Switching the backend
always destroys the live bundle completely before the replacement is built, so two adapters never
hold audio resources at the same time.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.reader.keyboard import KeyboardDispatcher, ReaderShortcuts
from core.reader.orchestration import OrchestrationService
from core.reader.state_manager import TtsStateManager
from core.reader.voice_manager import VoiceManager
from core.tts.interface import Interface
from utils.logger_utils import LoggerUtils
from utils.throttle import Throttle

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.reader.keyboard import KeyEventSource
    from handlers.text_source import TextSource
    from models.config_models import Config
    from models.playback_models import AdapterType, TtsState

__all__: list[str] = ["ServiceBundle", "ServiceBundleFactory", "ServiceSlot"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class ServiceBundle:
    adapter_type: AdapterType
    adapter: Interface
    text_source: TextSource
    orchestration: OrchestrationService
    keyboard: ReaderShortcuts
    voice_manager: VoiceManager


class ServiceBundleFactory:
    """Builds and destroys service bundles.

    Args:
        config (Config): Application configuration.
        text_source_factory (Callable[[], TextSource]): Creates the text source of a new bundle.
        key_source (KeyEventSource): Source of global key presses.
        adapter_builder (Callable[[AdapterType, Config], Interface] | None): Builds adapters;
            defaults to the adapter registry.
    """

    def __init__(
        self,
        config: Config,
        *,
        text_source_factory: Callable[[], TextSource],
        key_source: KeyEventSource,
        adapter_builder: Callable[[AdapterType, Config], Interface] | None = None,
    ) -> None:
        self.config: Config = config
        self.text_source_factory: Callable[[], TextSource] = text_source_factory
        self.key_source: KeyEventSource = key_source
        self.adapter_builder: Callable[[AdapterType, Config], Interface] = adapter_builder or Interface.create
        # Shared by every bundle so a backend switch does not reopen the throttle windows
        self.start_throttle: Throttle = Throttle(config.KEYBOARD.START_THROTTLE_MS)
        self.toggle_throttle: Throttle = Throttle(config.KEYBOARD.TOGGLE_THROTTLE_MS)

    async def create(
        self,
        adapter_type: AdapterType,
        on_state_change: Callable[[TtsState], None],
        on_adapter_switch: Callable[[AdapterType], None],
        on_toggle: Callable[[bool], None] | None = None,
    ) -> ServiceBundle:
        """Build a complete bundle for an adapter type and wire its callbacks.

        If a step fails after the adapter was built, the members built so far are torn down before
        the error is raised again.
        """
        logger.info("Creating services for '%s'", adapter_type)
        adapter: Interface = self.adapter_builder(adapter_type, self.config)
        text_source: TextSource | None = None
        keyboard: ReaderShortcuts | None = None
        try:
            text_source = self.text_source_factory()
            voice_manager = VoiceManager(adapter)
            state_manager = TtsStateManager(adapter_type)

            reader = self.config.READER
            orchestration = OrchestrationService(
                adapter,
                text_source,
                state_manager,
                adapter_type=adapter_type,
                voice_manager=voice_manager,
                max_chunks=reader.MAX_CHUNKS,
                whole_page=reader.WHOLE_PAGE_READING,
                mock_tts=reader.MOCK_TTS,
                on_adapter_switch=on_adapter_switch,
            )
            orchestration.subscribe(on_state_change)

            keyboard = ReaderShortcuts(
                orchestration,
                KeyboardDispatcher(self.key_source),
                on_toggle=on_toggle,
                start_throttle=self.start_throttle,
                toggle_throttle=self.toggle_throttle,
            )
            keyboard.register()
            keyboard.set_enabled(enabled=self.config.KEYBOARD.ENABLED)
        except Exception as err:
            logger.error("Failed to create services for '%s': %s", adapter_type, err)
            steps: list[tuple[str, Callable[[], object]]] = []
            if keyboard is not None:
                steps.append(("keyboard", keyboard.cleanup))
            steps.append(("adapter", adapter.destroy))
            if text_source is not None:
                steps.append(("text source", text_source.close))
            await self._run_steps(steps)
            raise

        return ServiceBundle(
            adapter_type=adapter_type,
            adapter=adapter,
            text_source=text_source,
            orchestration=orchestration,
            keyboard=keyboard,
            voice_manager=voice_manager,
        )

    async def destroy(self, bundle: ServiceBundle) -> None:
        """Tear down every member of a bundle. Each step is guarded; failures are logged, never raised."""
        logger.info("Destroying services for '%s'", bundle.adapter_type)
        await self._run_steps(
            [
                ("orchestration", bundle.orchestration.destroy),
                ("keyboard", bundle.keyboard.cleanup),
                ("voice manager", bundle.voice_manager.cleanup),
                ("adapter", bundle.adapter.destroy),
                ("text source", bundle.text_source.close),
            ]
        )

    @staticmethod
    async def _run_steps(steps: list[tuple[str, Callable[[], object]]]) -> None:
        for name, step in steps:
            try:
                result: object = step()
                if inspect.isawaitable(result):
                    await result
            except Exception as err:  # noqa: BLE001
                logger.error("Failed to destroy %s: %s", name, err)


class ServiceSlot:
    """Holds the single live service bundle of a consumer.

    Args:
        factory (ServiceBundleFactory): Builds and destroys bundles.
        on_state_change (Callable[[TtsState], None]): Receives the state of the live bundle.
        on_adapter_switch (Callable[[AdapterType], None]): Receives switch requests of the live bundle.
        on_toggle (Callable[[bool], None] | None): Receives enable toggles made by shortcut.
    """

    def __init__(
        self,
        factory: ServiceBundleFactory,
        on_state_change: Callable[[TtsState], None],
        on_adapter_switch: Callable[[AdapterType], None],
        on_toggle: Callable[[bool], None] | None = None,
    ) -> None:
        self.factory: ServiceBundleFactory = factory
        self.on_state_change: Callable[[TtsState], None] = on_state_change
        self.on_adapter_switch: Callable[[AdapterType], None] = on_adapter_switch
        self.on_toggle: Callable[[bool], None] | None = on_toggle
        self._bundle: ServiceBundle | None = None
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def current(self) -> ServiceBundle | None:
        return self._bundle

    async def get_services(self, adapter_type: AdapterType) -> ServiceBundle:
        """Return the bundle for an adapter type, replacing a bundle of another type.

        The old bundle is destroyed before the new one is created.
        """
        async with self._lock:
            if self._bundle is not None and self._bundle.adapter_type == adapter_type:
                return self._bundle
            if self._bundle is not None:
                old_bundle: ServiceBundle = self._bundle
                self._bundle = None
                await self.factory.destroy(old_bundle)
            self._bundle = await self.factory.create(
                adapter_type,
                self.on_state_change,
                self.on_adapter_switch,
                self.on_toggle,
            )
            return self._bundle

    async def release(self) -> None:
        async with self._lock:
            if self._bundle is None:
                return
            bundle: ServiceBundle = self._bundle
            self._bundle = None
            await self.factory.destroy(bundle)
