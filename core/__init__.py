"""Core of the TTS reader.

This package contains the speech synthesis adapters (``core.tts``) and the reading services built
on top of them (``core.reader``).
"""

from core.version import VERSION

__all__: list[str] = ["VERSION"]
