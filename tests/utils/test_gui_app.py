"""Unit tests for utils.gui_app module."""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, cast
from unittest.mock import AsyncMock, MagicMock

import pytest

from handlers.text_source import DocumentTextSource, StaticTextSource
from models.playback_models import AdapterType, PlaybackState, TtsState
from models.voice_models import VoiceDescriptor, VoicesState
from utils import gui_app as gui_module

if TYPE_CHECKING:
    from pathlib import Path


class DummyTextWidget:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs
        self.state = "disabled"
        self._content: str = ""

    def config(self, **kwargs: Any) -> None:
        if "state" in kwargs:
            self.state = kwargs["state"]

    def insert(self, _index: str, text: str, _tag: str | None = None) -> None:
        self._content += text

    def get(self, _start: str, _end: str) -> str:
        return self._content

    def delete(self, _start: str, _end: str) -> None:
        self._content = ""

    def see(self, _index: str) -> None:
        return None

    def pack(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs

    def tag_config(self, tag_name: str, **kwargs: Any) -> None:
        _ = tag_name, kwargs


class DummyLabel:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs
        self.last_config: dict[str, Any] = {}

    def config(self, **kwargs: Any) -> None:
        self.last_config = kwargs

    def pack(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs


class DummyCombobox:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        _ = args
        self.values: list[str] = list(kwargs.get("values", []))
        self.index: int = -1

    def configure(self, **kwargs: Any) -> None:
        if "values" in kwargs:
            self.values = list(kwargs["values"])

    def current(self, index: int | None = None) -> int:
        if index is not None:
            self.index = index
        return self.index

    def bind(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs

    def pack(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs


class DummyWidget:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs

    def pack(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs

    def configure(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs


class DummyRoot:
    def __init__(self) -> None:
        self.protocols: list[tuple[str, Any]] = []
        self.titles: list[str] = []
        self.destroyed = False

    def title(self, value: str) -> None:
        self.titles.append(value)

    def geometry(self, value: str) -> None:
        _ = value

    def protocol(self, name: str, handler: Any) -> None:
        self.protocols.append((name, handler))

    def update(self) -> None:
        msg = "closed"
        raise gui_module.tk.TclError(msg)

    def destroy(self) -> None:
        self.destroyed = True


@pytest.fixture
def patched_gui(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    monkeypatch.setattr(gui_module.tk, "Tk", DummyRoot)
    monkeypatch.setattr(gui_module.ttk, "Style", DummyWidget)
    monkeypatch.setattr(gui_module.ttk, "Frame", DummyWidget)
    monkeypatch.setattr(gui_module.ttk, "Button", DummyWidget)
    monkeypatch.setattr(gui_module.ttk, "Label", DummyLabel)
    monkeypatch.setattr(gui_module.ttk, "Combobox", DummyCombobox)
    monkeypatch.setattr(gui_module.scrolledtext, "ScrolledText", DummyTextWidget)

    error_calls: list[tuple[str, str]] = []
    monkeypatch.setattr(gui_module.messagebox, "showerror", lambda title, msg, **_: error_calls.append((title, msg)))
    return SimpleNamespace(error_calls=error_calls)


def _controller(source: object | None = None) -> MagicMock:
    controller = MagicMock()
    controller.initialize = AsyncMock()
    controller.close = AsyncMock()
    controller.start_reading = AsyncMock()
    controller.change_adapter = AsyncMock()
    controller.change_voice = AsyncMock()
    controller.services = SimpleNamespace(text_source=source) if source is not None else None
    return controller


def test_window_setup(patched_gui: SimpleNamespace) -> None:
    _ = patched_gui
    app = gui_module.ReaderApp(window_title="TTS Reader - ver. 0.1.0")

    root = cast("DummyRoot", app.root)
    assert root.titles == ["TTS Reader - ver. 0.1.0"]
    assert root.protocols[0][0] == "WM_DELETE_WINDOW"
    assert cast("DummyCombobox", app.adapter_box).values == ["ElevenLabs", "Azure TTS"]


@pytest.mark.parametrize(
    ("state", "text", "color"),
    [
        (TtsState(), "Ready", gui_module.STATUS_IDLE_COLOR),
        (TtsState(mode=PlaybackState.PLAYING), "Playing", gui_module.STATUS_ACTIVE_COLOR),
        (TtsState(mode=PlaybackState.PAUSED, is_enabled=False), "Paused (disabled)", gui_module.STATUS_ACTIVE_COLOR),
        (
            TtsState(mode=PlaybackState.ERROR, error="Please select a voice"),
            "Error: Please select a voice",
            gui_module.STATUS_ERROR_COLOR,
        ),
    ],
)
def test_show_state_updates_status(patched_gui: SimpleNamespace, state: TtsState, text: str, color: str) -> None:
    _ = patched_gui
    app = gui_module.ReaderApp()

    app.show_state(state)

    assert cast("DummyLabel", app.status_label).last_config == {"text": text, "foreground": color}


def test_show_state_selects_adapter(patched_gui: SimpleNamespace) -> None:
    _ = patched_gui
    app = gui_module.ReaderApp()

    app.show_state(TtsState(current_adapter=AdapterType.AZURE))

    assert cast("DummyCombobox", app.adapter_box).index == 1


def test_show_voices(patched_gui: SimpleNamespace) -> None:
    _ = patched_gui
    app = gui_module.ReaderApp()
    voices = (VoiceDescriptor(id="v1", name="Rachel", language="en"), VoiceDescriptor(id="v2", name="Adam"))

    app.show_voices(VoicesState(voices=voices, selected_voice="v2"))

    voice_box = cast("DummyCombobox", app.voice_box)
    assert voice_box.values == ["Rachel (en, unknown)", "Adam (unknown, unknown)"]
    assert voice_box.index == 1

    app.show_voices(VoicesState(error="Network error: offline"))
    assert cast("DummyLabel", app.status_label).last_config["text"] == "Voice error: Network error: offline"


def test_document_text(tmp_path: Path) -> None:
    page: Path = tmp_path / "page.html"
    page.write_text("<h1>Title</h1><p>Body text.</p>", encoding="utf-8")

    assert gui_module.ReaderApp.document_text(DocumentTextSource([page])) == "Title\n\nBody text."
    assert gui_module.ReaderApp.document_text(StaticTextSource("Plain")) == "Plain"


def test_refresh_document_shows_page_once(patched_gui: SimpleNamespace) -> None:
    _ = patched_gui
    app = gui_module.ReaderApp()
    app.controller = _controller(StaticTextSource("Hello reader"))
    widget = cast("DummyTextWidget", app.document_widget)

    app.refresh_document()
    widget._content = "changed"
    app.refresh_document()

    assert widget.get("1.0", "end") == "changed"
    assert widget.state == "disabled"


def test_error_dialog(patched_gui: SimpleNamespace) -> None:
    app = gui_module.ReaderApp()

    app.show_error_dialog("Oops", "Error")

    assert patched_gui.error_calls == [("Oops", "Error")]


@pytest.mark.asyncio
async def test_buttons_forward_to_controller(patched_gui: SimpleNamespace) -> None:
    _ = patched_gui
    app = gui_module.ReaderApp()
    controller = _controller()
    controller.state = TtsState(mode=PlaybackState.PAUSED)
    app.controller = controller

    app._on_read()
    app._on_pause_resume()
    app._on_stop()
    cast("DummyCombobox", app.adapter_box).index = 1
    app._on_adapter_selected(MagicMock())
    app._voice_ids = ["v1"]
    cast("DummyCombobox", app.voice_box).index = 0
    app._on_voice_selected(MagicMock())
    for task in list(app.background_tasks):
        await task

    controller.start_reading.assert_awaited_once()
    controller.resume_reading.assert_called_once_with()
    controller.stop_reading.assert_called_once_with()
    controller.change_adapter.assert_awaited_once_with(AdapterType.AZURE)
    controller.change_voice.assert_awaited_once_with("v1")


@pytest.mark.asyncio
async def test_run_with_controller_closes_on_window_close(patched_gui: SimpleNamespace) -> None:
    _ = patched_gui
    app = gui_module.ReaderApp()
    controller = _controller()

    await app.run_with_controller(controller)

    assert app.running is False
    controller.close.assert_awaited_once()
    assert cast("DummyRoot", app.root).destroyed is True
    assert app.gui_handler not in gui_module.logging.getLogger().handlers
