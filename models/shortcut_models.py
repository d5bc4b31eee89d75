"""Data models for keyboard shortcuts.

This module defines:
- KeyTarget: The UI element a key event was aimed at.
- KeyEvent: A toolkit independent key press.
- ShortcutBinding: One keyboard command and the action bound to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable

    from utils.throttle import Throttle

__all__: list[str] = ["EDITABLE_TAGS", "KeyEvent", "KeyTarget", "ShortcutBinding", "build_lookup_key"]

EDITABLE_TAGS: Final[frozenset[str]] = frozenset({"input", "textarea", "select"})


def build_lookup_key(key: str, *, ctrl: bool = False, alt: bool = False, shift: bool = False) -> str:
    """Build the shortcut lookup key, e.g. ``"false+false+true+p"`` for Shift+P."""
    return f"{str(ctrl).lower()}+{str(alt).lower()}+{str(shift).lower()}+{key.lower()}"


@dataclass(frozen=True)
class KeyTarget:
    """The element a key event targets.

    Attributes:
        tag_name (str): Element kind, e.g. "input", "textarea", "select" or "div".
        content_editable (bool): Whether the element accepts free text input.
    """

    tag_name: str = ""
    content_editable: bool = False

    @property
    def is_editable(self) -> bool:
        return self.content_editable or self.tag_name.lower() in EDITABLE_TAGS


@dataclass
class KeyEvent:
    """A key press delivered to the shortcut dispatcher.

    Attributes:
        key (str): Key value, e.g. "p" or "Escape".
        ctrl (bool): Control modifier state.
        alt (bool): Alt modifier state.
        shift (bool): Shift modifier state.
        target (KeyTarget): The focused element.
        default_prevented (bool): Set by prevent_default(); the source suppresses the default handling.
        propagation_stopped (bool): Set by stop_propagation().
    """

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    target: KeyTarget = field(default_factory=KeyTarget)
    default_prevented: bool = False
    propagation_stopped: bool = False

    @property
    def lookup_key(self) -> str:
        return build_lookup_key(self.key, ctrl=self.ctrl, alt=self.alt, shift=self.shift)

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass
class ShortcutBinding:
    """One keyboard command.

    Attributes:
        key (str): Key value, matched case-insensitively.
        action (Callable[[], object]): Called when the combination is pressed.
        description (str): Human readable description shown in help texts.
        ctrl (bool): Control must be held.
        alt (bool): Alt must be held.
        shift (bool): Shift must be held.
        throttle (Throttle | None): Optional rate limit applied to the whole binding.
    """

    key: str
    action: Callable[[], object]
    description: str = ""
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    throttle: Throttle | None = None

    @property
    def lookup_key(self) -> str:
        return build_lookup_key(self.key, ctrl=self.ctrl, alt=self.alt, shift=self.shift)

    @property
    def label(self) -> str:
        modifiers: tuple[tuple[str, bool], ...] = (("Ctrl", self.ctrl), ("Alt", self.alt), ("Shift", self.shift))
        parts: list[str] = [name for name, held in modifiers if held]
        parts.append(self.key.upper() if len(self.key) == 1 else self.key.capitalize())
        return "+".join(parts)
