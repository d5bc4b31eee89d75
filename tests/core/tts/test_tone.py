from __future__ import annotations

from io import BytesIO

import pytest
import soundfile

from core.tts.tone import (
    BASE_FREQUENCY,
    FREQUENCY_STEP,
    FREQUENCY_STEPS,
    MAX_DURATION,
    MIN_DURATION,
    SAMPLE_RATE,
    generate_tone_wav,
    text_hash,
    tone_parameters,
)


def test_text_hash_is_stable() -> None:
    assert text_hash("") == 0
    assert text_hash("a") == 97
    assert text_hash("ab") == 97 * 31 + 98
    assert text_hash("chapter one") == text_hash("chapter one")


def test_text_hash_stays_within_32_bits() -> None:
    assert 0 <= text_hash("x" * 1000) <= 0xFFFFFFFF


@pytest.mark.parametrize(
    ("text", "duration"),
    [("", MIN_DURATION), ("a" * 60, 2.0), ("a" * 1000, MAX_DURATION)],
)
def test_tone_duration_follows_text_length(text: str, duration: float) -> None:
    _, actual = tone_parameters(text)

    assert actual == pytest.approx(duration)


def test_tone_frequency_is_one_of_the_steps() -> None:
    allowed: set[float] = {BASE_FREQUENCY + step * FREQUENCY_STEP for step in range(FREQUENCY_STEPS)}

    for text in ("one", "two", "three", "four", "five", "six"):
        frequency, _ = tone_parameters(text)
        assert frequency in allowed


def test_generate_tone_wav_is_mono_pcm() -> None:
    text: str = "a" * 60
    wav: bytes = generate_tone_wav(text)

    info = soundfile.info(BytesIO(wav))
    assert info.samplerate == SAMPLE_RATE
    assert info.channels == 1
    assert info.subtype == "PCM_16"
    assert info.frames == int(SAMPLE_RATE * 2.0)
