from __future__ import annotations

import asyncio
import contextlib
from functools import partial
from typing import TYPE_CHECKING, Final

import pyaudio
import soundfile

from core.tts.errors import TTSPlaybackError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from pathlib import Path

__all__: list[str] = ["AudioHandle"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Every supported encoding (WAV PCM/float, MP3) is decoded by libsndfile to float32
STREAM_FORMAT: Final[int] = pyaudio.paFloat32
STREAM_DTYPE: Final[str] = "float32"
BUFFER_SECONDS: Final[float] = 0.2
MIN_BUFFER_FRAMES: Final[int] = 2048


def _stream_callback_logic(
    in_data,
    frame_count,
    time_info,
    status,
    /,
    sf: soundfile.SoundFile,
    loop: asyncio.AbstractEventLoop,
    on_complete: Callable[[], None],
    on_failure: Callable[[Exception], None],
) -> tuple[bytes | None, int]:
    """PyAudio stream callback, runs on the PortAudio thread.

    Reads the next block from the sound file. Completion and decoder failures are handed back to the
    event loop with ``call_soon_threadsafe``.

    Returns:
        tuple[bytes | None, int]: Audio data and playback status.
    """
    # The first four are position-only arguments defined by PyAudio.
    _ = in_data, time_info, status
    try:
        data = sf.read(frames=frame_count, dtype=STREAM_DTYPE)
        if data.shape[0] < frame_count:
            loop.call_soon_threadsafe(on_complete)
            return (data.tobytes(), pyaudio.paComplete)

    except soundfile.SoundFileRuntimeError as err:
        loop.call_soon_threadsafe(on_failure, err)
        return (None, pyaudio.paAbort)

    except RuntimeError as err:
        # Event loop already closed
        logger.critical("Runtime error in audio callback: %s", err)
        return (None, pyaudio.paAbort)

    return (data.tobytes(), pyaudio.paContinue)


class AudioHandle:
    """Playback of one audio file through a PyAudio callback stream.

    The handle never deletes its file; the owning adapter does that when it releases the handle.
    ``on_end`` is called once the file has been played to the end, ``on_error`` when decoding fails
    mid-stream. Neither is called after ``stop()``.

    Args:
        file_path (Path): The audio file to play.
        audio (pyaudio.PyAudio): The PyAudio instance owned by the adapter.
        on_end (Callable[[AudioHandle], None]): Completion callback, invoked on the event loop.
        on_error (Callable[[AudioHandle, TTSPlaybackError], None]): Failure callback, invoked on the event loop.
    """

    def __init__(
        self,
        file_path: Path,
        audio: pyaudio.PyAudio,
        *,
        on_end: Callable[[AudioHandle], None],
        on_error: Callable[[AudioHandle, TTSPlaybackError], None],
    ) -> None:
        self.file_path: Path = file_path
        self._audio: pyaudio.PyAudio = audio
        self._on_end: Callable[[AudioHandle], None] = on_end
        self._on_error: Callable[[AudioHandle, TTSPlaybackError], None] = on_error
        self._sf: soundfile.SoundFile | None = None
        self.stream: pyaudio.Stream | None = None
        self._paused: bool = False
        self._stopped: bool = False
        self._finished: bool = False

    def start(self) -> None:
        """Open the file and start the output stream.

        Raises:
            TTSPlaybackError: If the file cannot be decoded or the output device cannot be opened.
        """
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        try:
            self._sf = soundfile.SoundFile(self.file_path)
            callback_fn: partial[tuple[bytes | None, int]] = partial(
                _stream_callback_logic,
                sf=self._sf,
                loop=loop,
                on_complete=self._handle_complete,
                on_failure=self._handle_failure,
            )
            frame_buffer_size: int = max(MIN_BUFFER_FRAMES, int(self._sf.samplerate * BUFFER_SECONDS))
            logger.debug(
                "Audio properties - Format: %s, Channels: %s, Sampling rate: %s, Buffer size: %s",
                self._sf.format,
                self._sf.channels,
                self._sf.samplerate,
                frame_buffer_size,
            )
            self.stream = self._audio.open(
                format=STREAM_FORMAT,
                channels=self._sf.channels,
                rate=self._sf.samplerate,
                output=True,
                frames_per_buffer=frame_buffer_size,
                stream_callback=callback_fn,
            )
            self.stream.start_stream()
        except (soundfile.LibsndfileError, soundfile.SoundFileRuntimeError) as err:
            self._close()
            msg: str = f"Audio could not be decoded: {err}"
            raise TTSPlaybackError(msg) from err
        except (OSError, ValueError) as err:
            self._close()
            msg = f"Audio output could not be opened: {err}"
            raise TTSPlaybackError(msg) from err
        logger.debug("Playback started: '%s'", self.file_path)

    def pause(self) -> bool:
        """Suspend the stream; returns False if there was nothing to pause."""
        if self.stream is None or self._paused or self._stopped or self._finished:
            return False
        self.stream.stop_stream()
        self._paused = True
        return True

    def resume(self) -> bool:
        """Continue a paused stream; returns False if it was not paused.

        Raises:
            TTSPlaybackError: If the output device refuses to restart.
        """
        if self.stream is None or not self._paused or self._stopped:
            return False
        try:
            self.stream.start_stream()
        except OSError as err:
            msg: str = f"Audio output could not be resumed: {err}"
            raise TTSPlaybackError(msg) from err
        self._paused = False
        return True

    def stop(self) -> None:
        """Stop playback and close the stream and the file. Safe to call repeatedly."""
        if self._stopped:
            return
        self._stopped = True
        self._close()
        logger.debug("Playback stopped: '%s'", self.file_path)

    @property
    def is_active(self) -> bool:
        return self.stream is not None and not (self._paused or self._stopped or self._finished)

    @property
    def is_paused(self) -> bool:
        return self._paused and not self._stopped

    def _handle_complete(self) -> None:
        if self._stopped:
            return
        self._finished = True
        self._close()
        logger.debug("Playback completed: '%s'", self.file_path)
        self._on_end(self)

    def _handle_failure(self, err: Exception) -> None:
        if self._stopped:
            return
        self._finished = True
        self._close()
        logger.error("Playback failed: %s", err)
        self._on_error(self, TTSPlaybackError(f"Audio playback failed: {err}"))

    def _close(self) -> None:
        if self.stream is not None:
            with contextlib.suppress(OSError):
                self.stream.stop_stream()
            with contextlib.suppress(OSError):
                self.stream.close()
            self.stream = None
        if self._sf is not None:
            with contextlib.suppress(RuntimeError):
                self._sf.close()
            self._sf = None
