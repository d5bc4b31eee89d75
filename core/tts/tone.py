"""Test tone synthesis used instead of a provider when mock mode is on.

Each chunk becomes a short sine tone whose pitch depends on the text, so consecutive chunks
can be told apart by ear while working without network access or API keys.
"""

from __future__ import annotations

from io import BytesIO
from typing import Final

import numpy as np
import soundfile

__all__: list[str] = ["generate_tone_wav", "text_hash"]

SAMPLE_RATE: Final[int] = 22050
BASE_FREQUENCY: Final[float] = 440.0
FREQUENCY_STEP: Final[float] = 50.0
FREQUENCY_STEPS: Final[int] = 5
AMPLITUDE: Final[float] = 0.2
CHARACTERS_PER_SECOND: Final[float] = 30.0
MIN_DURATION: Final[float] = 1.0
MAX_DURATION: Final[float] = 3.0


def text_hash(text: str) -> int:
    """Stable 32-bit string hash (``h = h * 31 + c``); ``hash()`` is salted per process."""
    value: int = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    return value


def tone_parameters(text: str) -> tuple[float, float]:
    """Return (frequency in Hz, duration in seconds) of the tone for a text."""
    frequency: float = BASE_FREQUENCY + (text_hash(text) % FREQUENCY_STEPS) * FREQUENCY_STEP
    duration: float = min(MAX_DURATION, max(MIN_DURATION, len(text) / CHARACTERS_PER_SECOND))
    return frequency, duration


def generate_tone_wav(text: str) -> bytes:
    """Render the tone for a text as a mono 16-bit PCM WAV file."""
    frequency, duration = tone_parameters(text)
    samples: int = int(SAMPLE_RATE * duration)
    timeline = np.arange(samples, dtype=np.float32) / SAMPLE_RATE
    wave = (AMPLITUDE * np.sin(2.0 * np.pi * frequency * timeline)).astype(np.float32)

    buffer = BytesIO()
    soundfile.write(buffer, wave, SAMPLE_RATE, subtype="PCM_16", format="WAV")
    return buffer.getvalue()
