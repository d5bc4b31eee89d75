from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.tts.errors import (
    NoVoicesAvailableError,
    TTSExceptionError,
    TTSNotSupportedError,
    VoiceSettingNotSupportedError,
)
from utils.error_utils import extract_error_message
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.tts.interface import Interface
    from models.voice_models import Gender, VoiceDescriptor

__all__: list[str] = ["VoiceManager", "VoiceManagerCallbacks"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class VoiceManagerCallbacks:
    """Notifications raised by the VoiceManager; every callback is optional."""

    on_voices_loaded: Callable[[list[VoiceDescriptor]], None] | None = None
    on_voice_changed: Callable[[str, VoiceDescriptor | None], None] | None = None
    on_voice_error: Callable[[str], None] | None = None


class VoiceManager:
    """Caches the voice catalog of the active adapter and tracks the selected voice.

    Gender queries use the adapter's native implementation when it has one and otherwise fall back
    to the cached catalog.

    Args:
        adapter (Interface): The active playback adapter.
        callbacks (VoiceManagerCallbacks | None): Notification callbacks.
    """

    def __init__(self, adapter: Interface, callbacks: VoiceManagerCallbacks | None = None) -> None:
        self.adapter: Interface = adapter
        self.callbacks: VoiceManagerCallbacks = callbacks or VoiceManagerCallbacks()
        self._voices: list[VoiceDescriptor] = []
        self._current_voice_id: str | None = None
        self._is_loading: bool = False

    @property
    def loaded_voices(self) -> list[VoiceDescriptor]:
        return list(self._voices)

    @property
    def current_voice_id(self) -> str | None:
        return self._current_voice_id

    @property
    def current_voice_info(self) -> VoiceDescriptor | None:
        return self._find_voice(self._current_voice_id)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    async def load_voices(self) -> list[VoiceDescriptor]:
        """Fetch the catalog from the adapter and replace the cache.

        The first voice is selected only if no voice has been selected yet. A call made while
        another load is in flight returns the current cache without a new request.

        Raises:
            NoVoicesAvailableError: If the adapter returns no catalog.
            TTSExceptionError: If fetching the catalog fails.
        """
        if self._is_loading:
            logger.debug("Voice loading already in progress")
            return self.loaded_voices

        self._is_loading = True
        try:
            voices: list[VoiceDescriptor] | None = await self.adapter.get_voices()
            if voices is None:
                msg: str = "No voices available from adapter"
                raise NoVoicesAvailableError(msg)

            self._voices = list(voices)
            logger.info("Loaded %d voices", len(self._voices))
            self._notify_loaded()

            if self._current_voice_id is None and self._voices:
                await self._select_initial_voice(self._voices[0])
            return self.loaded_voices
        except TTSExceptionError as err:
            self._notify_error(extract_error_message(err))
            raise
        finally:
            self._is_loading = False

    async def set_voice(self, voice_id: str) -> None:
        """Select a voice on the adapter.

        Raises:
            VoiceSettingNotSupportedError: If the adapter has a fixed voice.
        """
        try:
            await self.adapter.set_voice(voice_id)
        except VoiceSettingNotSupportedError as err:
            self._notify_error(extract_error_message(err))
            raise
        self._current_voice_id = voice_id
        logger.info("Selected voice '%s'", voice_id)
        if self.callbacks.on_voice_changed is not None:
            self.callbacks.on_voice_changed(voice_id, self._find_voice(voice_id))

    async def get_voices_by_gender(self, gender: Gender) -> list[VoiceDescriptor]:
        try:
            return await self.adapter.get_voices_by_gender(gender)
        except TTSNotSupportedError:
            return [voice for voice in self._voices if voice.gender == gender]

    async def get_current_voice_gender(self) -> Gender | None:
        """Gender of the selected voice, or None when it cannot be determined. Never raises."""
        try:
            return await self.adapter.get_current_voice_gender()
        except TTSNotSupportedError:
            pass
        except Exception as err:  # noqa: BLE001
            logger.warning("Failed to get the current voice gender: %s", err)
            return None

        voice: VoiceDescriptor | None = self.current_voice_info
        return voice.gender if voice is not None else None

    def update_adapter(self, adapter: Interface) -> None:
        """Switch to another adapter; its catalog has to be loaded again."""
        self.adapter = adapter
        self._reset()

    def cleanup(self) -> None:
        self._reset()
        self.callbacks = VoiceManagerCallbacks()

    def _reset(self) -> None:
        self._voices = []
        self._current_voice_id = None
        self._is_loading = False

    async def _select_initial_voice(self, voice: VoiceDescriptor) -> None:
        try:
            await self.adapter.set_voice(voice.id)
        except VoiceSettingNotSupportedError:
            # Fixed voice adapters still report the voice they use
            logger.debug("Adapter has a fixed voice")
        self._current_voice_id = voice.id
        logger.info("Selected voice '%s'", voice.id)
        if self.callbacks.on_voice_changed is not None:
            self.callbacks.on_voice_changed(voice.id, voice)

    def _find_voice(self, voice_id: str | None) -> VoiceDescriptor | None:
        if voice_id is None:
            return None
        return next((voice for voice in self._voices if voice.id == voice_id), None)

    def _notify_loaded(self) -> None:
        if self.callbacks.on_voices_loaded is not None:
            self.callbacks.on_voices_loaded(self.loaded_voices)

    def _notify_error(self, message: str) -> None:
        logger.error("Voice error: %s", message)
        if self.callbacks.on_voice_error is not None:
            self.callbacks.on_voice_error(message)
