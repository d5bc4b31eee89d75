from __future__ import annotations

from typing import TYPE_CHECKING

from models.playback_models import AdapterType, PlaybackState, TtsState
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = ["StateListener", "TtsStateManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

type StateListener = Callable[[TtsState], None]


class TtsStateManager:
    """Owns the reader state snapshot and notifies subscribers of every change.

    Each transition replaces the snapshot; subscribers receive the new one synchronously, in
    subscription order. A failing subscriber is logged and does not affect the others.

    Args:
        adapter_type (AdapterType): Backend the state belongs to.
        enabled (bool): Initial enabled flag.
    """

    def __init__(self, adapter_type: AdapterType = AdapterType.ELEVENLABS, *, enabled: bool = True) -> None:
        self._state: TtsState = TtsState(current_adapter=adapter_type, is_enabled=enabled)
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> TtsState:
        return self._state

    @property
    def mode(self) -> PlaybackState:
        return self._state.mode

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_listeners(self) -> None:
        self._listeners.clear()

    def set_generating(self) -> None:
        self._update(mode=PlaybackState.GENERATING, error=None)

    def set_playing(self) -> None:
        self._update(mode=PlaybackState.PLAYING, error=None)

    def set_paused(self) -> None:
        self._update(mode=PlaybackState.PAUSED, error=None)

    def set_idle(self) -> None:
        self._update(mode=PlaybackState.IDLE, error=None)

    def set_error(self, message: str) -> None:
        logger.warning("Reader error: %s", message)
        self._update(mode=PlaybackState.ERROR, error=message)

    def stop(self) -> None:
        """Pass through Stopped to Idle; nothing happens while already Idle without an error."""
        if self._state.mode is PlaybackState.IDLE and self._state.error is None:
            return
        self._update(mode=PlaybackState.STOPPED, error=None)
        self._update(mode=PlaybackState.IDLE)

    def reset(self) -> None:
        self._update(mode=PlaybackState.IDLE, error=None)

    def set_adapter(self, adapter_type: AdapterType) -> None:
        self._update(current_adapter=adapter_type)

    def set_enabled(self, *, enabled: bool) -> None:
        if self._state.is_enabled != enabled:
            self._update(is_enabled=enabled)

    def toggle_enabled(self) -> bool:
        self.set_enabled(enabled=not self._state.is_enabled)
        return self._state.is_enabled

    def _update(self, **changes) -> None:
        new_state: TtsState = self._state.evolve(**changes)
        if new_state == self._state:
            return
        logger.debug("State: %s -> %s", self._state.mode.name, new_state.mode.name)
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:  # noqa: BLE001
                logger.exception("State listener failed")
