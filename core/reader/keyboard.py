"""Global keyboard shortcuts.

KeyboardDispatcher maps key presses from a KeyEventSource to shortcut bindings. Presses aimed at
editable elements are left alone so typing is never intercepted. ReaderShortcuts defines the
default reader bindings on top of a dispatcher.

Default bindings:
    Shift+S   stop
    Shift+P   start, pause or resume (starting is throttled)
    Escape    emergency stop while playing or paused
    Shift+T   switch adapter
    Shift+Q   enable or disable reading (throttled)
"""

from __future__ import annotations

import asyncio
import inspect
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Final

from models.shortcut_models import ShortcutBinding
from utils.logger_utils import LoggerUtils
from utils.throttle import Throttle

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Coroutine
    from typing import Any

    from core.reader.orchestration import OrchestrationService
    from models.shortcut_models import KeyEvent

__all__: list[str] = ["KeyEventSource", "KeyboardDispatcher", "ReaderShortcuts"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_START_THROTTLE_MS: Final[int] = 1000
DEFAULT_TOGGLE_THROTTLE_MS: Final[int] = 300

type KeyListener = Callable[[KeyEvent], None]


class KeyEventSource(ABC):
    """Delivers key presses of the host application to listeners."""

    @abstractmethod
    def add_listener(self, listener: KeyListener) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_listener(self, listener: KeyListener) -> None:
        raise NotImplementedError


class KeyboardDispatcher:
    """Dispatches key presses to registered shortcut bindings.

    Args:
        source (KeyEventSource): Where key presses come from.
    """

    def __init__(self, source: KeyEventSource) -> None:
        self.source: KeyEventSource = source
        self._bindings: dict[str, ShortcutBinding] = {}
        self._attached: bool = False
        self._enabled: bool = True

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, *, enabled: bool) -> None:
        """Suppress or allow dispatching; the listener stays attached."""
        self._enabled = enabled

    def register(self, bindings: list[ShortcutBinding]) -> None:
        """Replace all bindings at once and make sure the listener is attached exactly once."""
        self._bindings = {binding.lookup_key: binding for binding in bindings}
        if not self._attached:
            self.source.add_listener(self.handle_key_event)
            self._attached = True
        logger.debug("Registered shortcuts: %s", ", ".join(binding.label for binding in bindings))

    def get_shortcuts(self) -> list[ShortcutBinding]:
        return list(self._bindings.values())

    def cleanup(self) -> None:
        if self._attached:
            self.source.remove_listener(self.handle_key_event)
            self._attached = False
        self._bindings = {}

    def handle_key_event(self, event: KeyEvent) -> None:
        if not self._enabled or event.target.is_editable:
            return
        binding: ShortcutBinding | None = self._bindings.get(event.lookup_key)
        if binding is None:
            return

        event.prevent_default()
        event.stop_propagation()
        if binding.throttle is not None and not binding.throttle.try_acquire():
            logger.debug("Shortcut '%s' throttled", binding.label)
            return
        try:
            binding.action()
        except Exception:  # noqa: BLE001
            logger.exception("Shortcut '%s' failed", binding.label)


class ReaderShortcuts:
    """The reader's default shortcuts bound to an orchestration service.

    Args:
        orchestration (OrchestrationService): Target of the commands.
        dispatcher (KeyboardDispatcher): Dispatcher the bindings are registered with.
        start_throttle_ms (int): Minimum interval between two starts via Shift+P.
        toggle_throttle_ms (int): Minimum interval between two Shift+Q toggles.
        clock (Callable[[], float]): Monotonic clock in seconds.
        start_throttle (Throttle | None): Start throttle to use instead of a new one, so its window
            can outlive this instance.
        toggle_throttle (Throttle | None): Toggle throttle to use instead of a new one.
        on_toggle (Callable[[bool], None] | None): Called with the new enabled flag after Shift+Q.
    """

    def __init__(
        self,
        orchestration: OrchestrationService,
        dispatcher: KeyboardDispatcher,
        *,
        start_throttle_ms: int = DEFAULT_START_THROTTLE_MS,
        toggle_throttle_ms: int = DEFAULT_TOGGLE_THROTTLE_MS,
        clock: Callable[[], float] = time.monotonic,
        on_toggle: Callable[[bool], None] | None = None,
        start_throttle: Throttle | None = None,
        toggle_throttle: Throttle | None = None,
    ) -> None:
        self.orchestration: OrchestrationService = orchestration
        self.dispatcher: KeyboardDispatcher = dispatcher
        self._on_toggle: Callable[[bool], None] | None = on_toggle
        # Only the start branch of Shift+P is throttled; pause and resume always go through
        self._start_throttle: Throttle = start_throttle or Throttle(start_throttle_ms, clock)
        self._toggle_throttle: Throttle = toggle_throttle or Throttle(toggle_throttle_ms, clock)
        self.background_tasks: set[asyncio.Task[None]] = set()

    def bindings(self) -> list[ShortcutBinding]:
        return [
            ShortcutBinding(key="s", shift=True, action=self.stop, description="Stop reading"),
            ShortcutBinding(key="p", shift=True, action=self.start_or_toggle, description="Start, pause or resume"),
            ShortcutBinding(key="Escape", action=self.emergency_stop, description="Emergency stop"),
            ShortcutBinding(key="t", shift=True, action=self.switch_adapter, description="Switch TTS adapter"),
            ShortcutBinding(
                key="q",
                shift=True,
                action=self.toggle_enabled,
                description="Enable or disable reading",
                throttle=self._toggle_throttle,
            ),
        ]

    def register(self) -> None:
        self.dispatcher.register(self.bindings())

    def set_enabled(self, *, enabled: bool) -> None:
        self.dispatcher.set_enabled(enabled=enabled)

    def cleanup(self) -> None:
        self.dispatcher.cleanup()
        for task in list(self.background_tasks):
            task.cancel()
        self.background_tasks.clear()

    def stop(self) -> None:
        self.orchestration.stop_reading()

    def start_or_toggle(self) -> None:
        if self.orchestration.is_playing():
            self.orchestration.pause_reading()
        elif self.orchestration.is_paused():
            self.orchestration.resume_reading()
        elif self._start_throttle.try_acquire():
            self._spawn(self.orchestration.start_reading())
        else:
            logger.debug("Start throttled")

    def emergency_stop(self) -> None:
        if self.orchestration.is_playing() or self.orchestration.is_paused():
            logger.info("Emergency stop")
            self.orchestration.stop_reading()

    def switch_adapter(self) -> None:
        self.orchestration.switch_adapter()

    def toggle_enabled(self) -> None:
        enabled: bool = self.orchestration.toggle_enabled()
        if self._on_toggle is not None:
            self._on_toggle(enabled)

    def _spawn(self, action: Coroutine[Any, Any, None] | None) -> None:
        if not inspect.iscoroutine(action):
            return
        task: asyncio.Task[None] = asyncio.create_task(action, name="shortcut_task")
        self.background_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self.background_tasks.discard(task)
        if task.cancelled():
            return
        if (err := task.exception()) is not None:
            logger.error("Shortcut action failed: %s", err)
