"""Data models for voices.

This module defines:
- Gender: Normalized gender tag of a voice.
- VoiceDescriptor: Provider independent description of a synthesizable voice.
- VoicesState: Snapshot published on the voices stream.
- ElevenLabsVoice / ElevenLabsVoiceList: ElevenLabs voice catalog payloads.
- AzureVoice: Azure Speech voice list payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "AzureVoice",
    "ElevenLabsVoice",
    "ElevenLabsVoiceList",
    "Gender",
    "VoiceDescriptor",
    "VoicesState",
]


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    NEUTRAL = "neutral"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> Gender:
        """Map a provider gender label to a Gender, ignoring case.

        Unrecognized or missing labels become UNKNOWN.
        """
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class VoiceDescriptor:
    """A synthesizable voice.

    Attributes:
        id (str): Provider voice identifier passed back on synthesis.
        name (str): Display name.
        language (str): Language tag such as "en-US", or "unknown".
        gender (Gender): Normalized gender tag.
    """

    id: str
    name: str
    language: str = "unknown"
    gender: Gender = Gender.UNKNOWN

    def __str__(self) -> str:
        return f"{self.name} ({self.language}, {self.gender})"


@dataclass(frozen=True)
class VoicesState:
    """Snapshot of the voice catalog as seen by subscribers."""

    voices: tuple[VoiceDescriptor, ...] = ()
    selected_voice: str | None = None
    is_loading: bool = False
    error: str | None = None


@dataclass_json
@dataclass
class ElevenLabsVoice(DataClassJsonMixin):
    """One entry of the ElevenLabs ``GET /v1/voices`` response.

    Attributes:
        voice_id (str): Voice identifier.
        name (str): Voice name.
        labels (dict[str, str]): Free-form labels; "language" and "gender" are used when present.
        category (str | None): Voice category such as "premade" or "cloned".
    """

    voice_id: str
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    category: str | None = None

    def to_descriptor(self) -> VoiceDescriptor:
        labels: dict[str, str] = self.labels or {}
        return VoiceDescriptor(
            id=self.voice_id,
            name=self.name,
            language=labels.get("language") or "unknown",
            gender=Gender.parse(labels.get("gender")),
        )


@dataclass_json
@dataclass
class ElevenLabsVoiceList(DataClassJsonMixin):
    voices: list[ElevenLabsVoice] = field(default_factory=list)


@dataclass_json(letter_case=LetterCase.PASCAL)  # type: ignore[arg-type]
@dataclass
class AzureVoice(DataClassJsonMixin):
    """One entry of the Azure Speech ``voices/list`` response (PascalCase keys)."""

    short_name: str
    local_name: str = ""
    display_name: str = ""
    locale: str = "unknown"
    locale_name: str = ""
    gender: str = ""
    voice_type: str | None = None

    def to_descriptor(self) -> VoiceDescriptor:
        name: str = self.local_name or self.display_name or self.short_name
        if self.locale_name:
            name = f"{name} ({self.locale_name})"
        return VoiceDescriptor(
            id=self.short_name,
            name=name,
            language=self.locale or "unknown",
            gender=Gender.parse(self.gender),
        )
