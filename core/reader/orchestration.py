"""Reading session orchestration.

The OrchestrationService drives one adapter through a reading session: it extracts the text chunks,
plays the first one, and plays the remaining ones from a background task, each after the previous
chunk has ended. Adapter events are translated into state transitions of the TtsStateManager and
then passed on unchanged to the service's own listeners.

State machine:
    Idle -> Generating -> Playing <-> Paused -> Stopped -> Idle
    Error can be entered from any active state; the next start leaves it again.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Final

from core.tts.errors import TTSValidationError
from core.tts.tone import generate_tone_wav
from models.playback_models import AVAILABLE_ADAPTERS, AdapterType, PlaybackEvent, PlaybackState
from utils.error_utils import extract_error_message
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Coroutine
    from typing import Any

    from core.reader.state_manager import StateListener, TtsStateManager
    from core.reader.voice_manager import VoiceManager
    from core.tts.interface import Interface, PlaybackListener
    from handlers.text_source import TextSource
    from models.playback_models import PlaybackEventInfo, PlayResult, TextChunk, TtsState

__all__: list[str] = ["OrchestrationService"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

NO_TEXT_MESSAGE: Final[str] = "No text found to convert"
NO_VOICE_MESSAGE: Final[str] = "Please select a voice"
START_FAILED_MESSAGE: Final[str] = "Failed to start reading"


class OrchestrationService:
    """Coordinates text extraction, voice checks, and playback for one adapter.

    Args:
        adapter (Interface): The playback adapter.
        text_source (TextSource): Provides the chunks of the current page.
        state_manager (TtsStateManager): Owner of the published state.
        adapter_type (AdapterType): Type of ``adapter``.
        voice_manager (VoiceManager | None): Consulted for the selected voice before the adapter default.
        max_chunks (int): Chunks read per start; 0 reads all. Ignored with whole page reading.
        whole_page (bool): Read every chunk and continue on the following pages.
        mock_tts (bool): Play generated test tones instead of synthesized speech.
        on_adapter_switch (Callable[[AdapterType], None] | None): Called by switch_adapter with the target type.
    """

    def __init__(
        self,
        adapter: Interface,
        text_source: TextSource,
        state_manager: TtsStateManager,
        *,
        adapter_type: AdapterType,
        voice_manager: VoiceManager | None = None,
        max_chunks: int = 3,
        whole_page: bool = False,
        mock_tts: bool = False,
        on_adapter_switch: Callable[[AdapterType], None] | None = None,
    ) -> None:
        self.adapter: Interface = adapter
        self.text_source: TextSource = text_source
        self.state_manager: TtsStateManager = state_manager
        self.voice_manager: VoiceManager | None = voice_manager
        self.max_chunks: int = max_chunks
        self.whole_page: bool = whole_page
        self._adapter_type: AdapterType = adapter_type
        self._mock_tts: bool = mock_tts
        self._on_adapter_switch: Callable[[AdapterType], None] | None = on_adapter_switch

        # A session is one start_reading; bumping the counter invalidates everything still running for it
        self._session: int = 0
        self._session_active: bool = False
        self._chunk_done: asyncio.Event = asyncio.Event()
        self._chunk_success: bool = False
        self.background_tasks: set[asyncio.Task[None]] = set()
        self._listeners: dict[PlaybackEvent, list[PlaybackListener]] = {event: [] for event in PlaybackEvent}
        self._destroyed: bool = False

        self._event_handlers: dict[PlaybackEvent, Callable[[PlaybackEventInfo], None]] = {
            PlaybackEvent.PLAY: self._on_play,
            PlaybackEvent.PAUSE: self._on_pause,
            PlaybackEvent.RESUME: self._on_resume,
            PlaybackEvent.STOP: self._on_stop,
            PlaybackEvent.END: self._on_end,
            PlaybackEvent.ERROR: self._on_error,
        }
        for event, handler in self._event_handlers.items():
            self.adapter.on(event, handler)

        self.state_manager.set_adapter(adapter_type)

    @property
    def state(self) -> TtsState:
        return self.state_manager.state

    def is_playing(self) -> bool:
        return self.state.is_playing

    def is_paused(self) -> bool:
        return self.state.is_paused

    # --- commands ---------------------------------------------------------

    async def start_reading(self) -> None:
        """Start a reading session.

        Ignored while disabled, generating or playing. A paused session is stopped first. Failures
        end in the Error state; nothing is raised to the caller.
        """
        state: TtsState = self.state
        if not state.is_enabled:
            logger.debug("Reading is disabled, start ignored")
            return
        if state.mode in (PlaybackState.GENERATING, PlaybackState.PLAYING):
            logger.debug("Reading already in progress, start ignored")
            return
        if state.mode is PlaybackState.PAUSED or self._session_active:
            self.stop_reading()

        session: int = self._begin_session()
        self.state_manager.set_generating()
        try:
            chunks: list[TextChunk] = await self._extract_chunks()
            # A stop issued during extraction ends the session before anything is played
            if not self._is_current(session):
                logger.debug("Session stopped during text extraction")
                return
            if not chunks:
                raise TTSValidationError(NO_TEXT_MESSAGE)
            if not self.current_voice_id():
                raise TTSValidationError(NO_VOICE_MESSAGE)

            logger.info("Reading %d chunk(s) with %s", len(chunks), self._adapter_type)
            result: PlayResult = await self._play_chunk(chunks[0])
            if result.discarded or not self._is_current(session):
                return
            self._spawn(self._continue_reading(session, chunks[1:]))
        except Exception as err:  # noqa: BLE001
            self._fail(session, err)
        finally:
            if self._is_current(session) and self.state.mode is PlaybackState.GENERATING:
                self._end_session()
                self.state_manager.set_idle()

    def pause_reading(self) -> None:
        if self.state.mode is not PlaybackState.PLAYING:
            logger.debug("Not playing, pause ignored")
            return
        self.adapter.pause()

    def resume_reading(self) -> None:
        if self.state.mode is not PlaybackState.PAUSED:
            logger.debug("Not paused, resume ignored")
            return
        self.adapter.resume()

    def stop_reading(self) -> None:
        """End the session and stop the adapter. Repeated calls change nothing."""
        self._end_session()
        self.adapter.stop()
        self.state_manager.stop()

    def switch_adapter(self, adapter_type: AdapterType | None = None) -> AdapterType:
        """Request a backend switch; without a type the next implemented adapter is chosen."""
        target: AdapterType = adapter_type or self._next_adapter_type()
        logger.info("Adapter switch requested: %s -> %s", self._adapter_type, target)
        if self._on_adapter_switch is not None:
            self._on_adapter_switch(target)
        return target

    def get_current_adapter_type(self) -> AdapterType:
        return self._adapter_type

    def set_mock_tts(self, *, enabled: bool) -> None:
        self._mock_tts = enabled
        logger.info("Mock TTS %s", "enabled" if enabled else "disabled")

    def is_mock_tts_enabled(self) -> bool:
        return self._mock_tts

    def toggle_enabled(self) -> bool:
        enabled: bool = self.state_manager.toggle_enabled()
        if not enabled:
            self.stop_reading()
        logger.info("Reading %s", "enabled" if enabled else "disabled")
        return enabled

    def current_voice_id(self) -> str | None:
        if self.voice_manager is not None and self.voice_manager.current_voice_id:
            return self.voice_manager.current_voice_id
        return self.adapter.current_voice_id

    # --- subscriptions ----------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self.state_manager.subscribe(listener)

    def on(self, event: PlaybackEvent, listener: PlaybackListener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: PlaybackEvent, listener: PlaybackListener) -> None:
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def destroy(self) -> None:
        """Stop playback, cancel the continuation task and detach from the adapter."""
        if self._destroyed:
            return
        self._destroyed = True
        self._end_session()
        self.adapter.stop()
        for task in list(self.background_tasks):
            task.cancel()
        self.background_tasks.clear()
        for event, handler in self._event_handlers.items():
            self.adapter.off(event, handler)
        for listeners in self._listeners.values():
            listeners.clear()
        self.state_manager.clear_listeners()
        logger.debug("Orchestration for %s destroyed", self._adapter_type)

    # --- session ----------------------------------------------------------

    def _begin_session(self) -> int:
        self._session += 1
        self._session_active = True
        self._chunk_done.clear()
        return self._session

    def _end_session(self) -> None:
        if not self._session_active:
            return
        self._session_active = False
        self._session += 1
        # Wake the continuation task so it can see the session is over
        self._chunk_success = False
        self._chunk_done.set()

    def _is_current(self, session: int) -> bool:
        return self._session_active and session == self._session

    def _fail(self, session: int, err: Exception) -> None:
        if not self._is_current(session):
            logger.debug("Ignoring failure of a finished session: %s", err)
            return
        self._end_session()
        self.state_manager.set_error(extract_error_message(err, START_FAILED_MESSAGE))

    async def _extract_chunks(self) -> list[TextChunk]:
        result = self.text_source.extract_text_chunks()
        if inspect.isawaitable(result):
            result = await result
        chunks: list[TextChunk] = list(result or [])
        if not self.whole_page and self.max_chunks > 0:
            chunks = chunks[: self.max_chunks]
        return chunks

    async def _play_chunk(self, chunk: TextChunk) -> PlayResult:
        self._chunk_done.clear()
        if self._mock_tts:
            return await self.adapter.play_audio(generate_tone_wav(chunk.text), suffix="wav")
        return await self.adapter.play(chunk)

    async def _wait_for_chunk_end(self, session: int) -> bool:
        await self._chunk_done.wait()
        return self._is_current(session) and self._chunk_success

    async def _continue_reading(self, session: int, chunks: list[TextChunk]) -> None:
        try:
            pending: list[TextChunk] = chunks
            while True:
                for chunk in pending:
                    if not await self._wait_for_chunk_end(session):
                        return
                    result: PlayResult = await self._play_chunk(chunk)
                    if result.discarded or not self._is_current(session):
                        return
                if not self.whole_page or not await self._advance_page(session):
                    break
                pending = await self._extract_chunks()
                if not pending:
                    logger.info("Next page has no text, reading finished")
                    break

            if await self._wait_for_chunk_end(session):
                logger.info("Reading finished")
                self._end_session()
                self.state_manager.set_idle()
        except asyncio.CancelledError:
            raise
        except Exception as err:  # noqa: BLE001
            self._fail(session, err)

    async def _advance_page(self, session: int) -> bool:
        if not await self._resolve(self.text_source.has_next_page()):
            return False
        # The last chunk of the page has to finish before the page changes
        if not await self._wait_for_chunk_end(session):
            return False
        self._chunk_success = True
        self._chunk_done.set()
        navigated: bool = bool(await self._resolve(self.text_source.navigate_to_next_page()))
        if navigated:
            logger.info("Continuing on the next page")
        return navigated and self._is_current(session)

    @staticmethod
    async def _resolve(value: Any) -> Any:
        if inspect.isawaitable(value):
            return await value
        return value

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task: asyncio.Task[None] = asyncio.create_task(coro, name="continue_reading_task")
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)

    def _next_adapter_type(self) -> AdapterType:
        implemented: list[AdapterType] = [descriptor.key for descriptor in AVAILABLE_ADAPTERS if descriptor.implemented]
        if self._adapter_type not in implemented:
            return implemented[0]
        return implemented[(implemented.index(self._adapter_type) + 1) % len(implemented)]

    # --- adapter events ---------------------------------------------------

    def _on_play(self, info: PlaybackEventInfo) -> None:
        self.state_manager.set_playing()
        self._republish(info)

    def _on_pause(self, info: PlaybackEventInfo) -> None:
        self.state_manager.set_paused()
        self._republish(info)

    def _on_resume(self, info: PlaybackEventInfo) -> None:
        self.state_manager.set_playing()
        self._republish(info)

    def _on_stop(self, info: PlaybackEventInfo) -> None:
        self._end_session()
        self.state_manager.stop()
        self._republish(info)

    def _on_end(self, info: PlaybackEventInfo) -> None:
        if self._session_active:
            self._chunk_success = bool(info.success)
            self._chunk_done.set()
        elif self.state.mode in (PlaybackState.PLAYING, PlaybackState.PAUSED):
            self.state_manager.set_idle()
        self._republish(info)

    def _on_error(self, info: PlaybackEventInfo) -> None:
        self._end_session()
        self.state_manager.set_error(f"TTS Error: {extract_error_message(info.error)}")
        self._republish(info)

    def _republish(self, info: PlaybackEventInfo) -> None:
        for listener in list(self._listeners[info.event]):
            try:
                listener(info)
            except Exception:  # noqa: BLE001
                logger.exception("Listener for '%s' event failed", info.event.value)
