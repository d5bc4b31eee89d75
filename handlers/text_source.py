"""Sources of the text to read.

A TextSource yields the chunks of the current page and, for paged documents, can move on to the
next page. Chunks carry the element type of the block they come from so the formatter can add
pauses and emphasis.
"""

from __future__ import annotations

import asyncio
import re
import textwrap
from abc import ABC, abstractmethod
from html.parser import HTMLParser
from typing import TYPE_CHECKING, Final

from models.playback_models import TextChunk
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable
    from pathlib import Path

__all__: list[str] = [
    "MAX_CHUNK_LENGTH",
    "DocumentTextSource",
    "StaticTextSource",
    "TextSource",
    "parse_html",
    "split_paragraphs",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

MAX_CHUNK_LENGTH: Final[int] = 1000
HTML_SUFFIXES: Final[list[str]] = [".html", ".htm", ".xhtml"]
TEXT_SUFFIXES: Final[list[str]] = [".txt", ".md"]
SUPPORTED_SUFFIXES: Final[list[str]] = HTML_SUFFIXES + TEXT_SUFFIXES

BLOCK_TAGS: Final[frozenset[str]] = frozenset(
    {"h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "blockquote", "pre", "td", "th", "dt", "dd", "figcaption"},
)
SKIP_TAGS: Final[frozenset[str]] = frozenset({"script", "style", "head", "noscript", "template", "nav"})

_PARAGRAPH_SEPARATOR: Final[re.Pattern[str]] = re.compile(r"\n\s*\n")
_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _limit_length(chunk: TextChunk, max_length: int) -> list[TextChunk]:
    if len(chunk.text) <= max_length:
        return [chunk]
    return [TextChunk(part, chunk.element_type) for part in textwrap.wrap(chunk.text, width=max_length)]


def split_paragraphs(text: str, max_length: int = MAX_CHUNK_LENGTH) -> list[TextChunk]:
    """Split plain text on blank lines into paragraph chunks of at most ``max_length`` characters."""
    chunks: list[TextChunk] = []
    for paragraph in _PARAGRAPH_SEPARATOR.split(text):
        normalized: str = _normalize(paragraph)
        if normalized:
            chunks.extend(_limit_length(TextChunk(normalized, "p"), max_length))
    return chunks


class _BlockTextParser(HTMLParser):
    """Collects the text of block elements; text outside any block has no element type."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.chunks: list[TextChunk] = []
        self._stack: list[str] = []
        self._buffer: list[str] = []
        self._skip_depth: int = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        _ = attrs
        if tag in SKIP_TAGS:
            self._skip_depth += 1
        elif tag in BLOCK_TAGS:
            self._flush()
            self._stack.append(tag)
        elif tag == "br":
            self._buffer.append(" ")

    def handle_endtag(self, tag: str) -> None:
        if tag in SKIP_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
        elif tag in BLOCK_TAGS:
            self._flush()
            while self._stack:
                if self._stack.pop() == tag:
                    break

    def handle_data(self, data: str) -> None:
        if not self._skip_depth:
            self._buffer.append(data)

    def close(self) -> None:
        super().close()
        self._flush()

    def _flush(self) -> None:
        text: str = _normalize("".join(self._buffer))
        self._buffer.clear()
        if text:
            self.chunks.append(TextChunk(text, self._stack[-1] if self._stack else None))


def parse_html(markup: str, max_length: int = MAX_CHUNK_LENGTH) -> list[TextChunk]:
    parser = _BlockTextParser()
    parser.feed(markup)
    parser.close()
    chunks: list[TextChunk] = []
    for chunk in parser.chunks:
        chunks.extend(_limit_length(chunk, max_length))
    return chunks


class TextSource(ABC):
    """Provides the chunks of the page being read.

    ``extract_text_chunks`` may be a plain method or a coroutine. Sources without pages keep the
    default ``has_next_page`` and ``navigate_to_next_page``.
    """

    @abstractmethod
    def extract_text_chunks(self) -> list[TextChunk] | Awaitable[list[TextChunk]]:
        raise NotImplementedError

    def has_next_page(self) -> bool:
        return False

    def navigate_to_next_page(self) -> bool:
        return False

    def close(self) -> None:
        """Release resources held by the source (override if necessary)."""


class StaticTextSource(TextSource):
    """A fixed text, split into paragraphs."""

    def __init__(self, text: str, max_length: int = MAX_CHUNK_LENGTH) -> None:
        self.text: str = text
        self.max_length: int = max_length

    def extract_text_chunks(self) -> list[TextChunk]:
        return split_paragraphs(self.text, self.max_length)


class DocumentTextSource(TextSource):
    """Reads HTML or plain text documents; each file is one page.

    Args:
        paths (list[Path]): The documents in reading order.
        max_length (int): Longest chunk in characters.

    Raises:
        FileMissingError: If a document does not exist.
        UnsupportedFileFormatError: If a document is neither HTML nor plain text.
    """

    def __init__(self, paths: list[Path], max_length: int = MAX_CHUNK_LENGTH) -> None:
        for path in paths:
            FileUtils.validate_file_path(path, SUPPORTED_SUFFIXES)
        self.paths: list[Path] = list(paths)
        self.max_length: int = max_length
        self.page_index: int = 0

    @property
    def current_path(self) -> Path | None:
        if not self.paths:
            return None
        return self.paths[self.page_index]

    @property
    def page_count(self) -> int:
        return len(self.paths)

    async def extract_text_chunks(self) -> list[TextChunk]:
        path: Path | None = self.current_path
        if path is None:
            return []
        chunks: list[TextChunk] = await asyncio.to_thread(self.read_page, path)
        logger.debug("Extracted %d chunks from '%s'", len(chunks), path)
        return chunks

    def read_page(self, path: Path) -> list[TextChunk]:
        content: str = path.read_text(encoding="utf-8", errors="replace")
        if path.suffix.lower() in HTML_SUFFIXES:
            return parse_html(content, self.max_length)
        return split_paragraphs(content, self.max_length)

    def has_next_page(self) -> bool:
        return self.page_index + 1 < len(self.paths)

    def navigate_to_next_page(self) -> bool:
        if not self.has_next_page():
            return False
        self.page_index += 1
        logger.info("Page %d of %d: '%s'", self.page_index + 1, len(self.paths), self.current_path)
        return True
