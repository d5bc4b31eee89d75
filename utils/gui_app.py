"""Reader window built with tkinter.

The window shows the document being read, the reader state, the voice and adapter selection,
and a pane with warnings and errors. tkinter runs inside the asyncio event loop: the window is
updated every few milliseconds from a coroutine, so the reader services and the widgets share
one thread.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import tkinter as tk
from tkinter import messagebox, scrolledtext, ttk
from typing import TYPE_CHECKING, Final

from handlers.text_source import DocumentTextSource, StaticTextSource
from models.playback_models import AVAILABLE_ADAPTERS, PlaybackState
from utils.gui_logging_handler import GUILoggingHandler
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from typing import Any

    from core.reader.controller import ReaderController
    from handlers.text_source import TextSource
    from models.playback_models import TtsState
    from models.voice_models import VoicesState

__all__: list[str] = ["ReaderApp"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

UPDATE_INTERVAL: Final[float] = 0.01

# GUI color constants (web colors)
STATUS_IDLE_COLOR: Final[str] = "#2F4F4F"  # Dark Slate Gray
STATUS_ACTIVE_COLOR: Final[str] = "#2E8B57"  # Sea Green
STATUS_ERROR_COLOR: Final[str] = "#DC143C"  # Crimson
DOCUMENT_BG: Final[str] = "#FFFAF0"  # Floral White
LOG_BG: Final[str] = "#1E1E1E"
LOG_FG: Final[str] = "#C0C0C0"

STATUS_TEXT: Final[dict[PlaybackState, str]] = {
    PlaybackState.IDLE: "Ready",
    PlaybackState.GENERATING: "Generating audio...",
    PlaybackState.PLAYING: "Playing",
    PlaybackState.PAUSED: "Paused",
    PlaybackState.STOPPED: "Stopped",
    PlaybackState.ERROR: "Error",
}

HELP_TEXT: Final[str] = (
    "Shift+P start/pause/resume | Shift+S stop | Esc emergency stop | Shift+T switch | Shift+Q on/off"
)


class ReaderApp:
    """The reader window.

    Args:
        window_title (str): The title of the window.
        geometry (str): The geometry of the window (format: "WIDTHxHEIGHT").
    """

    def __init__(self, window_title: str = "TTS Reader", geometry: str = "720x560") -> None:
        self.root: tk.Tk = tk.Tk()
        self.root.title(window_title)
        self.root.geometry(geometry)

        self.controller: ReaderController | None = None
        self.running: bool = False
        self.background_tasks: set[asyncio.Task[None]] = set()
        self._displayed_page: object = None
        self._voice_ids: list[str] = []

        self._create_widgets()
        self.gui_handler: GUILoggingHandler = GUILoggingHandler(self.log_widget, max_lines=20)
        self.root.protocol("WM_DELETE_WINDOW", self._on_closing)

    def _create_widgets(self) -> None:
        style = ttk.Style(self.root)
        style.configure("Reader.TButton", font=("Arial", 10, "bold"))
        style.configure("Reader.TLabel", font=("Arial", 10, "bold"), foreground=STATUS_IDLE_COLOR)

        control_frame: ttk.Frame = ttk.Frame(self.root)
        control_frame.pack(side=tk.TOP, fill=tk.X, padx=5, pady=5)

        ttk.Label(control_frame, text="Adapter:").pack(side=tk.LEFT)
        self.adapter_box: ttk.Combobox = ttk.Combobox(
            control_frame,
            state="readonly",
            width=14,
            values=[descriptor.name for descriptor in AVAILABLE_ADAPTERS],
        )
        self.adapter_box.pack(side=tk.LEFT, padx=5)
        self.adapter_box.bind("<<ComboboxSelected>>", self._on_adapter_selected)

        ttk.Label(control_frame, text="Voice:").pack(side=tk.LEFT)
        self.voice_box: ttk.Combobox = ttk.Combobox(control_frame, state="readonly", width=36)
        self.voice_box.pack(side=tk.LEFT, padx=5)
        self.voice_box.bind("<<ComboboxSelected>>", self._on_voice_selected)

        button_frame: ttk.Frame = ttk.Frame(self.root)
        button_frame.pack(side=tk.BOTTOM, fill=tk.X, padx=5, pady=5)
        for text, command in (
            ("Read", self._on_read),
            ("Pause/Resume", self._on_pause_resume),
            ("Stop", self._on_stop),
            ("Close", self._on_closing),
        ):
            ttk.Button(button_frame, text=text, command=command, style="Reader.TButton").pack(side=tk.RIGHT, padx=5)
        self.status_label: ttk.Label = ttk.Label(button_frame, text="Starting...", style="Reader.TLabel")
        self.status_label.pack(side=tk.LEFT, padx=5)

        self.log_widget: scrolledtext.ScrolledText = scrolledtext.ScrolledText(
            self.root, state="disabled", height=6, wrap=tk.WORD, font=("Courier", 9), bg=LOG_BG, fg=LOG_FG
        )
        self.log_widget.pack(side=tk.BOTTOM, fill=tk.X, padx=5)
        ttk.Label(self.root, text=HELP_TEXT).pack(side=tk.BOTTOM, fill=tk.X, padx=5)

        self.document_widget: scrolledtext.ScrolledText = scrolledtext.ScrolledText(
            self.root, state="disabled", wrap=tk.WORD, font=("Georgia", 11), bg=DOCUMENT_BG
        )
        self.document_widget.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)

    # --- controller binding -----------------------------------------------

    async def run_with_controller(self, controller: ReaderController) -> None:
        """Run the window until it is closed, then close the controller."""
        self.controller = controller
        self.running = True
        logging.getLogger().addHandler(self.gui_handler)
        unsubscribe_state = controller.subscribe_state(self.show_state)
        unsubscribe_voices = controller.subscribe_voices(self.show_voices)

        init_task: asyncio.Task[None] = asyncio.create_task(controller.initialize(), name="initialize_task")
        try:
            while self.running:
                try:
                    self.root.update()
                except tk.TclError:
                    # Window was closed
                    break

                if init_task is not None and init_task.done():
                    if not init_task.cancelled() and (err := init_task.exception()) is not None:
                        logger.error("Reader initialization failed: %s", err)
                        self.update_status(f"Error: {err}", STATUS_ERROR_COLOR)
                    init_task = None
                    self.refresh_document()

                await asyncio.sleep(UPDATE_INTERVAL)
        finally:
            self.running = False
            if init_task is not None and not init_task.done():
                init_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await init_task
            for task in list(self.background_tasks):
                task.cancel()
            unsubscribe_state()
            unsubscribe_voices()
            await controller.close()
            logging.getLogger().removeHandler(self.gui_handler)
            with contextlib.suppress(tk.TclError):
                self.root.destroy()

    def show_state(self, state: TtsState) -> None:
        text: str = STATUS_TEXT[state.mode]
        if state.error:
            text = f"{text}: {state.error}"
        if not state.is_enabled:
            text = f"{text} (disabled)"
        color: str = STATUS_ACTIVE_COLOR if state.is_active else STATUS_IDLE_COLOR
        if state.mode is PlaybackState.ERROR:
            color = STATUS_ERROR_COLOR
        self.update_status(text, color)
        with contextlib.suppress(ValueError):
            names: list[str] = [descriptor.key for descriptor in AVAILABLE_ADAPTERS]
            self.adapter_box.current(names.index(state.current_adapter))
        self.refresh_document()

    def show_voices(self, voices_state: VoicesState) -> None:
        self._voice_ids = [voice.id for voice in voices_state.voices]
        self.voice_box.configure(values=[str(voice) for voice in voices_state.voices])
        if voices_state.selected_voice in self._voice_ids:
            self.voice_box.current(self._voice_ids.index(voices_state.selected_voice))
        if voices_state.is_loading:
            self.update_status("Loading voices...", STATUS_ACTIVE_COLOR)
        elif voices_state.error:
            self.update_status(f"Voice error: {voices_state.error}", STATUS_ERROR_COLOR)

    def refresh_document(self) -> None:
        """Show the page of the live text source when it has changed."""
        if self.controller is None or self.controller.services is None:
            return
        source: TextSource = self.controller.services.text_source
        page: object = source.current_path if isinstance(source, DocumentTextSource) else id(source)
        if page == self._displayed_page:
            return
        self._displayed_page = page
        self.show_document(self.document_text(source))

    @staticmethod
    def document_text(source: TextSource) -> str:
        if isinstance(source, DocumentTextSource) and source.current_path is not None:
            return "\n\n".join(chunk.text for chunk in source.read_page(source.current_path))
        if isinstance(source, StaticTextSource):
            return source.text
        return ""

    def show_document(self, text: str) -> None:
        self.document_widget.config(state="normal")
        self.document_widget.delete("1.0", "end")
        self.document_widget.insert("end", text)
        self.document_widget.config(state="disabled")

    def update_status(self, status: str, color: str = STATUS_IDLE_COLOR) -> None:
        self.status_label.config(text=status, foreground=color)

    def show_error_dialog(self, title: str, message: str) -> None:
        messagebox.showerror(title, message, parent=self.root)

    # --- widget callbacks -------------------------------------------------

    def _on_read(self) -> None:
        if self.controller is not None:
            self._spawn(self.controller.start_reading())

    def _on_pause_resume(self) -> None:
        if self.controller is None:
            return
        if self.controller.state.is_paused:
            self.controller.resume_reading()
        else:
            self.controller.pause_reading()

    def _on_stop(self) -> None:
        if self.controller is not None:
            self.controller.stop_reading()

    def _on_adapter_selected(self, _event: tk.Event) -> None:
        if self.controller is None:
            return
        descriptor = AVAILABLE_ADAPTERS[self.adapter_box.current()]
        self._spawn(self.controller.change_adapter(descriptor.key))

    def _on_voice_selected(self, _event: tk.Event) -> None:
        index: int = self.voice_box.current()
        if self.controller is not None and 0 <= index < len(self._voice_ids):
            self._spawn(self.controller.change_voice(self._voice_ids[index]))

    def _on_closing(self) -> None:
        logger.info("Shutdown signal received from GUI")
        self.running = False

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task: asyncio.Task[Any] = asyncio.create_task(coro)
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
