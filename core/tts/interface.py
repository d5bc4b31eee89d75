from __future__ import annotations

import tempfile
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Final, Self

import pyaudio

from core.tts.audio_handle import AudioHandle
from core.tts.errors import (
    NoVoicesAvailableError,
    TTSExceptionError,
    TTSNetworkError,
    TTSNotSupportedError,
    TTSPlaybackError,
    TTSUnknownError,
    TTSValidationError,
    VoiceSettingNotSupportedError,
)
from models.playback_models import (
    AdapterType,
    PlaybackEvent,
    PlaybackEventInfo,
    PlayResult,
    TextChunk,
    get_adapter_descriptor,
)
from utils.file_utils import FileMissingError, FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.tts.channels import SynthesisChannel, SynthesisResult
    from handlers.text_processor import TextFormatter
    from models.config_models import Config
    from models.voice_models import Gender, VoiceDescriptor


__all__: list[str] = [
    "Interface",
    "NoVoicesAvailableError",
    "PlaybackListener",
    "TTSExceptionError",
    "TTSNetworkError",
    "TTSNotSupportedError",
    "TTSPlaybackError",
    "TTSUnknownError",
    "TTSValidationError",
    "VoiceSettingNotSupportedError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

type PlaybackListener = Callable[[PlaybackEventInfo], None]

# Audio encodings the providers return
SUPPORTED_FORMATS: Final[list[str]] = ["wav", "mp3"]
TMP_DIR_NAME: Final[str] = "tts_reader"
AUDIO_DIR_NAME: Final[str] = "audio"


class Interface(ABC):
    """Base class of the playback adapters.

    An adapter binds one synthesis backend to the audio output. It turns text chunks into audio through
    its synthesis channel, owns the single live audio handle and reports what happens through playback
    events. Events are delivered synchronously, in registration order, to the listeners of that event
    kind; a failing listener is logged and skipped.

    Concrete adapters register themselves by AdapterType when the class is defined and are built with
    ``Interface.create(adapter_type, config)``.

    Args:
        channel (SynthesisChannel): Provider channel used for synthesis and the voice catalog.
        formatter (TextFormatter): Validates and formats chunk text for the provider.
        audio_directory (Path): Directory for the temporary audio files of this adapter.
        default_voice_id (str | None): Voice used until another one is selected.
        model_id (str | None): Provider model, if the provider has several.

    Attributes:
        _registered_adapters (dict[AdapterType, type[Interface]]): Registered adapter classes.
    """

    _registered_adapters: ClassVar[dict[AdapterType, type[Interface]]] = {}

    def __init__(
        self,
        channel: SynthesisChannel,
        formatter: TextFormatter,
        *,
        audio_directory: Path,
        default_voice_id: str | None = None,
        model_id: str | None = None,
    ) -> None:
        self.channel: SynthesisChannel = channel
        self.formatter: TextFormatter = formatter
        self.audio_directory: Path = audio_directory
        self.model_id: str | None = model_id
        self._voice_id: str | None = default_voice_id
        self._listeners: dict[PlaybackEvent, list[PlaybackListener]] = {event: [] for event in PlaybackEvent}
        self._audio_handle: AudioHandle | None = None
        self._claimed_files: set[Path] = set()
        self._pyaudio: pyaudio.PyAudio | None = None
        self._current_request_id: str | None = None
        # Advanced by every stop; synthesis results from an older generation are discarded
        self._generation: int = 0
        self._destroyed: bool = False
        logger.debug("%s initialized", self.__class__.__name__)

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        # Intermediate base classes do not define an adapter type and are not registered
        if "fetch_adapter_type" in cls.__dict__:
            cls.register_adapter(cls)

    @classmethod
    def get_registered(cls) -> dict[AdapterType, type[Interface]]:
        return cls._registered_adapters

    @classmethod
    def register_adapter(cls, adapter_cls: type[Interface]) -> None:
        if not issubclass(adapter_cls, Interface):
            msg = "Must be a subclass of Interface"
            raise TypeError(msg)
        adapter_type: AdapterType = adapter_cls.fetch_adapter_type()
        Interface._registered_adapters[adapter_type] = adapter_cls
        logger.debug("Registered adapter: %s", adapter_type)

    @classmethod
    def get_adapter(cls, adapter_type: AdapterType) -> type[Interface]:
        """Retrieve a registered adapter class.

        Raises:
            TTSNotSupportedError: If no adapter is registered for the type.
        """
        try:
            return Interface._registered_adapters[adapter_type]
        except KeyError:
            msg: str = f"No such adapter registered: {adapter_type}"
            raise TTSNotSupportedError(msg) from None

    @classmethod
    def create(cls, adapter_type: AdapterType, config: Config) -> Interface:
        """Build the registered adapter for a type from the configuration."""
        return cls.get_adapter(adapter_type).from_config(config)

    @staticmethod
    @abstractmethod
    def fetch_adapter_type() -> AdapterType:
        """Get the adapter type this class implements."""
        raise NotImplementedError

    @classmethod
    @abstractmethod
    def from_config(cls, config: Config) -> Self:
        """Build the adapter with its channel and formatter from the configuration."""
        raise NotImplementedError

    @staticmethod
    def audio_directory_for(config: Config) -> Path:
        """Directory for the temporary audio files, below the configured TMP_DIR."""
        base: Path = config.GENERAL.TMP_DIR or Path(tempfile.gettempdir()).joinpath(TMP_DIR_NAME)
        return base.joinpath(AUDIO_DIR_NAME)

    @property
    def display_name(self) -> str:
        return get_adapter_descriptor(self.fetch_adapter_type()).name

    # --- events -----------------------------------------------------------

    def on(self, event: PlaybackEvent, listener: PlaybackListener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: PlaybackEvent, listener: PlaybackListener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            logger.debug("Listener for '%s' was not registered", event.value)

    def clear_listeners(self) -> None:
        for listeners in self._listeners.values():
            listeners.clear()

    def _emit(self, info: PlaybackEventInfo) -> None:
        for listener in list(self._listeners[info.event]):
            try:
                listener(info)
            except Exception:  # noqa: BLE001
                logger.exception("Listener for '%s' event failed", info.event.value)

    # --- playback ---------------------------------------------------------

    @property
    def is_playing(self) -> bool:
        return self._audio_handle is not None and self._audio_handle.is_active

    @property
    def is_paused(self) -> bool:
        return self._audio_handle is not None and self._audio_handle.is_paused

    @property
    def current_voice_id(self) -> str | None:
        return self._voice_id

    @property
    def current_request_id(self) -> str | None:
        return self._current_request_id

    async def play(self, chunk: TextChunk) -> PlayResult:
        """Synthesize a chunk and start playing it.

        Any previous audio is stopped and released first. When the adapter is stopped while the
        synthesis request is in flight, the returned audio is discarded.

        Args:
            chunk (TextChunk): The text and its element type.
        Returns:
            PlayResult: The provider request id, or a discarded result.
        Raises:
            TTSValidationError: If the text is rejected or no voice is selected.
            TTSNetworkError: If synthesis fails.
            TTSPlaybackError: If the audio cannot be played.
            TTSUnknownError: For any other failure.
        """
        self._ensure_alive()
        if not self.formatter.validate_text(chunk.text):
            msg: str = "Text validation failed: the text is empty or too long"
            raise TTSValidationError(msg)
        voice_id: str | None = self.current_voice_id
        if not voice_id:
            msg = "Please select a voice"
            raise TTSValidationError(msg)

        text: str = self.formatter.format_text(chunk.text, chunk.element_type)
        generation: int = self._generation
        self._release_audio_handle()

        try:
            result: SynthesisResult = await self._synthesize(text, voice_id)
        except TTSExceptionError as err:
            self._emit_failed_end(err, generation)
            raise
        except Exception as err:  # noqa: BLE001
            error = TTSUnknownError(f"Failed to generate audio with {self.display_name}: {err}")
            self._emit_failed_end(error, generation)
            raise error from err

        if generation != self._generation or self._destroyed:
            logger.info("Discarding audio of request '%s' received after stop", result.request_id)
            return PlayResult(request_id=result.request_id, discarded=True)

        self._remember_request(result.request_id)
        return self._start_audio(result.audio, result.suffix, result.request_id)

    async def play_audio(self, data: bytes, *, suffix: str = "wav", request_id: str | None = None) -> PlayResult:
        """Play audio that was produced elsewhere, e.g. a generated test tone."""
        self._ensure_alive()
        self._release_audio_handle()
        return self._start_audio(data, suffix, request_id)

    def pause(self) -> None:
        if self._audio_handle is None or not self._audio_handle.pause():
            logger.warning("No audio is playing, pause ignored")
            return
        self._emit(PlaybackEventInfo(PlaybackEvent.PAUSE, request_id=self._current_request_id))

    def resume(self) -> None:
        if self._audio_handle is None or not self._audio_handle.is_paused:
            logger.warning("No paused audio, resume ignored")
            return
        try:
            self._audio_handle.resume()
        except TTSPlaybackError as err:
            logger.error("%s", err)
            self._release_audio_handle()
            self._emit(PlaybackEventInfo(PlaybackEvent.ERROR, error=err, request_id=self._current_request_id))
            return
        self._emit(PlaybackEventInfo(PlaybackEvent.RESUME, request_id=self._current_request_id))

    def stop(self) -> None:
        """Stop the current audio. Results of synthesis requests still in flight are discarded."""
        self._generation += 1
        self._clear_request_history()
        if self._audio_handle is None:
            logger.debug("No audio to stop")
            return
        request_id: str | None = self._current_request_id
        self._release_audio_handle()
        self._emit(PlaybackEventInfo(PlaybackEvent.STOP, request_id=request_id))

    async def _synthesize(self, text: str, voice_id: str) -> SynthesisResult:
        return await self.channel.synthesize(text, voice_id, self.model_id)

    def _remember_request(self, request_id: str | None) -> None:
        """Hook for adapters that chain requests (override if necessary)."""
        _ = request_id

    def _clear_request_history(self) -> None:
        """Hook called on stop (override if necessary)."""

    def _start_audio(self, data: bytes, suffix: str, request_id: str | None) -> PlayResult:
        file_path: Path | None = None
        try:
            file_path = self.create_audio_filename(suffix=suffix)
            self.save_audio_file(file_path, data)
            handle = AudioHandle(
                file_path,
                self.pyaudio,
                on_end=self._handle_audio_end,
                on_error=self._handle_audio_error,
            )
            handle.start()
        except TTSPlaybackError as err:
            if file_path is not None:
                self._release_file(file_path)
            self._emit(PlaybackEventInfo(PlaybackEvent.END, success=False, error=err, request_id=request_id))
            raise

        self._audio_handle = handle
        self._current_request_id = request_id
        self._emit(PlaybackEventInfo(PlaybackEvent.PLAY, request_id=request_id))
        return PlayResult(request_id=request_id)

    def _handle_audio_end(self, handle: AudioHandle) -> None:
        if handle is not self._audio_handle:
            return
        request_id: str | None = self._current_request_id
        self._release_audio_handle()
        self._emit(PlaybackEventInfo(PlaybackEvent.END, success=True, request_id=request_id))

    def _handle_audio_error(self, handle: AudioHandle, err: TTSPlaybackError) -> None:
        if handle is not self._audio_handle:
            return
        request_id: str | None = self._current_request_id
        self._release_audio_handle()
        self._emit(PlaybackEventInfo(PlaybackEvent.ERROR, error=err, request_id=request_id))

    def _emit_failed_end(self, err: TTSExceptionError, generation: int) -> None:
        # Nobody waits for the chunk any more once the adapter has been stopped
        if generation == self._generation:
            self._emit(PlaybackEventInfo(PlaybackEvent.END, success=False, error=err))

    def _ensure_alive(self) -> None:
        if self._destroyed:
            msg: str = f"{self.display_name} adapter has been destroyed"
            raise TTSPlaybackError(msg)

    # --- voices -----------------------------------------------------------

    @abstractmethod
    async def get_voices(self) -> list[VoiceDescriptor] | None:
        """Fetch the voices the backend offers.

        Raises:
            TTSNetworkError: If the catalog cannot be fetched.
        """
        raise NotImplementedError

    async def set_voice(self, voice_id: str) -> None:
        """Select the voice used for following chunks (override if the backend supports it).

        Raises:
            VoiceSettingNotSupportedError: If the backend has a fixed voice.
        """
        _ = voice_id
        msg: str = "Voice setting not supported by current adapter"
        raise VoiceSettingNotSupportedError(msg)

    async def get_voices_by_gender(self, gender: Gender) -> list[VoiceDescriptor]:
        """Backend side gender filter (override if the backend has one).

        Raises:
            TTSNotSupportedError: If the backend has no native filter.
        """
        _ = gender
        msg: str = f"{self.display_name} has no native gender filter"
        raise TTSNotSupportedError(msg)

    async def get_current_voice_gender(self) -> Gender | None:
        """Backend side gender lookup of the current voice (override if the backend has one).

        Raises:
            TTSNotSupportedError: If the backend has no native lookup.
        """
        msg: str = f"{self.display_name} has no native gender lookup"
        raise TTSNotSupportedError(msg)

    # --- resources --------------------------------------------------------

    @property
    def pyaudio(self) -> pyaudio.PyAudio:
        """The PyAudio instance of this adapter, created on first use."""
        if self._pyaudio is None:
            self._pyaudio = pyaudio.PyAudio()
            logger.debug("PyAudio instance created for %s", self.__class__.__name__)
        return self._pyaudio

    def release_pyaudio(self) -> None:
        if self._pyaudio is not None:
            self._pyaudio.terminate()
            self._pyaudio = None
            logger.info("PyAudio resources released")

    def create_audio_filename(self, *, suffix: str = "wav") -> Path:
        """Create a unique audio file name in the audio directory.

        The file name has the form "{adapter type}_{uuid}.{suffix}".

        Raises:
            TTSPlaybackError: If the suffix is not a supported audio format or the directory cannot be created.
        """
        if suffix.lower() not in SUPPORTED_FORMATS:
            msg: str = f"'{suffix}' is an unsupported audio format"
            raise TTSPlaybackError(msg)
        try:
            self.audio_directory.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            msg = f"Could not create audio directory: '{self.audio_directory}'"
            raise TTSPlaybackError(msg) from err

        unique_identifier: str = "{" + str(uuid.uuid4()) + "}"
        return self.audio_directory.joinpath(f"{self.fetch_adapter_type()}_{unique_identifier}.{suffix.lower()}")

    def save_audio_file(self, filepath: Path, data: bytes) -> None:
        """Write audio data to a new file and claim it for later release.

        Raises:
            TTSPlaybackError: If the file exists already or cannot be created.
        """
        try:
            with filepath.open(mode="xb") as fhdl:
                fhdl.write(data)
                fhdl.flush()
        except FileExistsError as err:
            msg = f"File already exists: '{filepath}'"
            raise TTSPlaybackError(msg) from err
        except OSError as err:
            msg = f"Could not create file: '{filepath}'"
            raise TTSPlaybackError(msg) from err
        self._claimed_files.add(filepath)

    def _release_audio_handle(self) -> None:
        handle: AudioHandle | None = self._audio_handle
        if handle is None:
            return
        self._audio_handle = None
        self._current_request_id = None
        handle.stop()
        self._release_file(handle.file_path)

    def _release_file(self, file_path: Path) -> None:
        """Delete a claimed audio file; failures are logged, never raised."""
        self._claimed_files.discard(file_path)
        try:
            FileUtils.remove(file_path)
        except FileMissingError:
            logger.debug("Audio file already removed: '%s'", file_path)
        except (FileUtilsError, OSError) as err:
            logger.warning("Failed to release audio file '%s': %s", file_path, err)
        else:
            logger.debug("Deleted audio file: '%s'", file_path)

    @property
    def claimed_files(self) -> frozenset[Path]:
        return frozenset(self._claimed_files)

    async def destroy(self) -> None:
        """Stop audio, release every claimed file and the audio device, drop all listeners.

        Safe to call repeatedly. Cleanup failures are logged.
        """
        if self._destroyed:
            return
        self._destroyed = True
        self._generation += 1
        self._release_audio_handle()
        for file_path in list(self._claimed_files):
            self._release_file(file_path)
        self.clear_listeners()
        self.release_pyaudio()
        try:
            await self.channel.close()
        except (OSError, RuntimeError) as err:
            logger.warning("Failed to close %s channel: %s", self.display_name, err)
        logger.info("%s destroyed", self.__class__.__name__)
