"""Logging handler writing to the reader window's log pane.

Only WARNING and above are shown, matching the console. The pane keeps the most recent lines and
colours each line by level.
"""

from __future__ import annotations

import logging
from tkinter import TclError
from typing import TYPE_CHECKING, Final

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from tkinter import Text

__all__: list[str] = ["GUILoggingHandler"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Web colors
LEVEL_COLORS: Final[dict[int, str]] = {
    logging.WARNING: "#FFD700",  # Gold
    logging.ERROR: "#FF7F50",  # Coral
    logging.CRITICAL: "#FF0000",  # Red
}
DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"


class GUILoggingHandler(logging.Handler):
    """Appends log records to a tkinter Text widget.

    Args:
        text_widget (Text): The log pane; kept read-only between writes.
        max_lines (int): Number of most recent lines to keep.
        level (int): Minimum level shown.
    """

    def __init__(self, text_widget: Text, max_lines: int = 20, level: int = logging.WARNING) -> None:
        super().__init__(level)
        self.text_widget: Text = text_widget
        self.max_lines: int = max_lines
        self.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        try:
            for levelno, color in LEVEL_COLORS.items():
                self.text_widget.tag_config(self.tag_for(levelno), foreground=color)
        except (AttributeError, TclError) as err:
            logger.debug("Failed to configure log pane tags: %s", err)

    @staticmethod
    def tag_for(levelno: int) -> str:
        return f"level_{logging.getLevelName(levelno).lower()}"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg: str = self.format(record)
            levelno: int = max((level for level in LEVEL_COLORS if level <= record.levelno), default=0)
            self.text_widget.config(state="normal")
            if levelno:
                self.text_widget.insert("end", msg + "\n", self.tag_for(levelno))
            else:
                self.text_widget.insert("end", msg + "\n")
            self._trim_lines()
            self.text_widget.see("end")
            self.text_widget.config(state="disabled")
        except (AttributeError, RuntimeError, TclError):
            self.handleError(record)

    def _trim_lines(self) -> None:
        lines: list[str] = self.text_widget.get("1.0", "end-1c").split("\n")
        # The pane ends with a newline, so the last element is always empty
        excess: int = len(lines) - 1 - self.max_lines
        if excess > 0:
            self.text_widget.delete("1.0", f"{excess + 1}.0")
