"""Input and communication handlers for the TTS reader.

This package provides the asynchronous HTTP client, text formatting for speech synthesis,
document text sources, and the global key event source.
"""

from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp, HttpResult
from handlers.text_processor import PlainTextFormatter, SsmlTextFormatter, TextFormatter
from handlers.text_source import DocumentTextSource, StaticTextSource, TextSource

__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "DocumentTextSource",
    "HttpResult",
    "PlainTextFormatter",
    "SsmlTextFormatter",
    "StaticTextSource",
    "TextFormatter",
    "TextSource",
]
