from __future__ import annotations

import pytest

from models.playback_models import AdapterType, TextChunk, TtsState, get_adapter_descriptor
from models.shortcut_models import KeyEvent, ShortcutBinding, build_lookup_key
from models.voice_models import AzureVoice, ElevenLabsVoice, ElevenLabsVoiceList, Gender, VoiceDescriptor


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Female", Gender.FEMALE),
        (" male ", Gender.MALE),
        ("neutral", Gender.NEUTRAL),
        ("robot", Gender.UNKNOWN),
        (None, Gender.UNKNOWN),
    ],
)
def test_gender_parse(label: str | None, expected: Gender) -> None:
    assert Gender.parse(label) is expected


def test_elevenlabs_voice_list_from_dict() -> None:
    voice_list = ElevenLabsVoiceList.from_dict(
        {
            "voices": [
                {"voice_id": "v1", "name": "Rachel", "labels": {"gender": "female", "accent": "american"}},
                {"voice_id": "v2", "name": "Clyde", "category": "premade", "settings": None},
            ]
        }
    )

    assert [voice.to_descriptor() for voice in voice_list.voices] == [
        VoiceDescriptor(id="v1", name="Rachel", language="unknown", gender=Gender.FEMALE),
        VoiceDescriptor(id="v2", name="Clyde"),
    ]


def test_elevenlabs_voice_with_null_labels() -> None:
    voice = ElevenLabsVoice.from_dict({"voice_id": "v3", "name": "Bella", "labels": None})

    assert voice.to_descriptor().gender is Gender.UNKNOWN


def test_azure_voice_from_pascal_case() -> None:
    voice = AzureVoice.from_dict(
        {
            "ShortName": "ja-JP-NanamiNeural",
            "LocalName": "七海",
            "Locale": "ja-JP",
            "LocaleName": "Japanese",
            "Gender": "Female",
        }
    )

    assert voice.to_descriptor() == VoiceDescriptor(
        id="ja-JP-NanamiNeural", name="七海 (Japanese)", language="ja-JP", gender=Gender.FEMALE
    )


def test_voice_descriptor_str() -> None:
    assert str(VoiceDescriptor(id="v1", name="Rachel", language="en", gender=Gender.FEMALE)) == "Rachel (en, female)"


def test_adapter_descriptor_lookup() -> None:
    assert get_adapter_descriptor(AdapterType.AZURE).name == "Azure TTS"
    with pytest.raises(ValueError, match="Unknown adapter type"):
        get_adapter_descriptor("polly")  # type: ignore[arg-type]


def test_text_chunk_lowercases_element_type() -> None:
    assert TextChunk("Intro", "H1").element_type == "h1"
    assert TextChunk("Plain").element_type is None


def test_tts_state_evolve_is_a_copy() -> None:
    state = TtsState()
    evolved: TtsState = state.evolve(is_enabled=False)

    assert state.is_enabled is True
    assert evolved.is_enabled is False
    assert evolved.is_active is False


def test_shortcut_lookup_keys() -> None:
    binding = ShortcutBinding(key="P", shift=True, action=lambda: None)

    assert binding.lookup_key == build_lookup_key("p", shift=True) == "false+false+true+p"
    assert KeyEvent(key="p", shift=True).lookup_key == binding.lookup_key
    assert binding.label == "Shift+P"
    assert ShortcutBinding(key="escape", action=lambda: None).label == "Escape"
