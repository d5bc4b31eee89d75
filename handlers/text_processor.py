"""Text normalization and formatting for speech synthesis.

Two formatters are provided:
- PlainTextFormatter: collapses whitespace only. Used by providers that take plain text.
- SsmlTextFormatter: escapes the text and wraps it in SSML matching the element role
  (headings are emphasized and followed by a pause, paragraphs end with a short break).
Both validate text length before anything is sent to a provider.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Final
from xml.sax.saxutils import escape

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["MAX_TEXT_LENGTH", "PlainTextFormatter", "SsmlTextFormatter", "TextFormatter"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

MAX_TEXT_LENGTH: Final[int] = 5000

HEADING_TAGS: Final[frozenset[str]] = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
PARAGRAPH_TAGS: Final[frozenset[str]] = frozenset({"p"})
MODERATE_EMPHASIS_TAGS: Final[frozenset[str]] = frozenset({"i", "em"})
STRONG_EMPHASIS_TAGS: Final[frozenset[str]] = frozenset({"b", "strong"})

_WHITESPACE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s+")


class TextFormatter(ABC):
    """Validates and formats chunk text for one provider.

    Args:
        max_length (int): Longest accepted text in characters.
    """

    def __init__(self, max_length: int = MAX_TEXT_LENGTH) -> None:
        self.max_length: int = max_length

    @staticmethod
    def normalize(text: str) -> str:
        """Collapse runs of whitespace into single spaces and trim the ends."""
        return _WHITESPACE_PATTERN.sub(" ", text).strip()

    def validate_text(self, text: str) -> bool:
        normalized: str = self.normalize(text)
        if not normalized:
            logger.debug("Rejected empty text")
            return False
        if len(normalized) > self.max_length:
            logger.warning("Rejected text of %d characters (limit %d)", len(normalized), self.max_length)
            return False
        return True

    @abstractmethod
    def format_text(self, text: str, element_type: str | None = None) -> str:
        """Return the text in the form the provider expects."""
        raise NotImplementedError


class PlainTextFormatter(TextFormatter):
    def format_text(self, text: str, element_type: str | None = None) -> str:
        _ = element_type
        return self.normalize(text)


class SsmlTextFormatter(TextFormatter):
    """Produces SSML fragments; the channel wraps them in ``<speak>`` and ``<voice>``."""

    def format_text(self, text: str, element_type: str | None = None) -> str:
        content: str = escape(self.normalize(text), {'"': "&quot;", "'": "&apos;"})
        tag: str = (element_type or "").lower()

        if tag in HEADING_TAGS:
            return (
                '<break time="0.5s"/>'
                f'<emphasis level="strong"><prosody rate="slow">{content}</prosody></emphasis>'
                '<break time="1s"/>'
            )
        if tag in PARAGRAPH_TAGS:
            return f'{content}<break time="0.3s"/>'
        if tag in MODERATE_EMPHASIS_TAGS:
            return f'<emphasis level="moderate">{content}</emphasis>'
        if tag in STRONG_EMPHASIS_TAGS:
            return f'<emphasis level="strong">{content}</emphasis>'
        return content
