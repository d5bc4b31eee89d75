"""Global key listener for tkinter windows.

Translates tkinter key presses into KeyEvents for the shortcut dispatcher. Widgets are mapped to
element kinds so presses inside text entry widgets can be recognized as typing.
"""

from __future__ import annotations

import tkinter as tk
from typing import TYPE_CHECKING, Final

from core.reader.keyboard import KeyEventSource
from models.shortcut_models import KeyEvent, KeyTarget
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.reader.keyboard import KeyListener

__all__: list[str] = ["TkKeyEventSource"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

KEY_SEQUENCE: Final[str] = "<KeyPress>"

# Modifier bits of tkinter's event.state
SHIFT_MASK: Final[int] = 0x0001
CONTROL_MASK: Final[int] = 0x0004
# Mod1 on X11, Alt on Windows
ALT_MASK: Final[int] = 0x0008 | 0x20000

INPUT_CLASSES: Final[frozenset[str]] = frozenset({"Entry", "TEntry", "Spinbox", "TSpinbox"})
SELECT_CLASSES: Final[frozenset[str]] = frozenset({"TCombobox", "Listbox"})


class TkKeyEventSource(KeyEventSource):
    """Key event source bound to every widget of a tkinter application.

    Args:
        root (tk.Misc): Any widget of the application; the binding is application wide.
    """

    def __init__(self, root: tk.Misc) -> None:
        self.root: tk.Misc = root
        self._listeners: list[KeyListener] = []
        self._bound: bool = False

    def add_listener(self, listener: KeyListener) -> None:
        self._listeners.append(listener)
        if not self._bound:
            self.root.bind_all(KEY_SEQUENCE, self._on_key_press, add="+")
            self._bound = True

    def remove_listener(self, listener: KeyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
        if not self._listeners and self._bound:
            self.root.unbind_all(KEY_SEQUENCE)
            self._bound = False

    def _on_key_press(self, tk_event: tk.Event) -> str | None:
        event: KeyEvent = self.to_key_event(tk_event)
        for listener in list(self._listeners):
            listener(event)
            if event.propagation_stopped:
                break
        # "break" stops tkinter from running the widget's own bindings
        return "break" if event.default_prevented else None

    @classmethod
    def to_key_event(cls, tk_event: tk.Event) -> KeyEvent:
        state: int = tk_event.state if isinstance(tk_event.state, int) else 0
        return KeyEvent(
            key=tk_event.keysym or "",
            ctrl=bool(state & CONTROL_MASK),
            alt=bool(state & ALT_MASK),
            shift=bool(state & SHIFT_MASK),
            target=cls.widget_target(tk_event.widget),
        )

    @staticmethod
    def widget_target(widget: tk.Misc | str | None) -> KeyTarget:
        """Map a widget to the element kind used for the editable check."""
        if widget is None or isinstance(widget, str):
            return KeyTarget()
        try:
            widget_class: str = widget.winfo_class()
        except (tk.TclError, AttributeError):
            return KeyTarget()

        if widget_class in INPUT_CLASSES:
            return KeyTarget(tag_name="input")
        if widget_class in SELECT_CLASSES:
            return KeyTarget(tag_name="select")
        if widget_class == "Text":
            try:
                editable: bool = str(widget.cget("state")) != tk.DISABLED
            except tk.TclError:
                editable = False
            return KeyTarget(tag_name="textarea") if editable else KeyTarget(tag_name="div")
        return KeyTarget(tag_name=widget_class.lower())
