from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Final, Self

from core.tts.channels import ElevenLabsChannel
from core.tts.interface import Interface
from handlers.text_processor import PlainTextFormatter
from models.playback_models import AdapterType
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.tts.channels import SynthesisResult
    from models.config_models import Config
    from models.voice_models import Gender, VoiceDescriptor

__all__: list[str] = ["ElevenLabsAdapter"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# ElevenLabs accepts up to three previous request ids for prosody continuity
REQUEST_HISTORY_SIZE: Final[int] = 3


class ElevenLabsAdapter(Interface):
    """Playback adapter for the ElevenLabs text-to-speech API.

    The ids of the last requests are sent along with each synthesis so consecutive chunks keep a
    natural intonation. The history is dropped on stop, as a new reading starts a new passage.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._request_ids: deque[str] = deque(maxlen=REQUEST_HISTORY_SIZE)
        self._voices: list[VoiceDescriptor] | None = None

    @staticmethod
    def fetch_adapter_type() -> AdapterType:
        return AdapterType.ELEVENLABS

    @classmethod
    def from_config(cls, config: Config) -> Self:
        settings = config.ELEVENLABS
        return cls(
            ElevenLabsChannel(settings),
            PlainTextFormatter(config.READER.MAX_TEXT_LENGTH),
            audio_directory=cls.audio_directory_for(config),
            default_voice_id=settings.VOICE_ID,
            model_id=settings.MODEL_ID,
        )

    @property
    def previous_request_ids(self) -> list[str]:
        return list(self._request_ids)

    async def _synthesize(self, text: str, voice_id: str) -> SynthesisResult:
        return await self.channel.synthesize(text, voice_id, self.model_id, self.previous_request_ids)

    def _remember_request(self, request_id: str | None) -> None:
        if request_id:
            self._request_ids.append(request_id)

    def _clear_request_history(self) -> None:
        self._request_ids.clear()

    async def get_voices(self) -> list[VoiceDescriptor] | None:
        self._voices = await self.channel.fetch_voices()
        logger.info("Fetched %d voices from ElevenLabs", len(self._voices))
        return list(self._voices)

    async def set_voice(self, voice_id: str) -> None:
        self._voice_id = voice_id
        self._request_ids.clear()
        logger.info("Voice set to '%s'", voice_id)

    async def get_voices_by_gender(self, gender: Gender) -> list[VoiceDescriptor]:
        voices: list[VoiceDescriptor] = await self._catalog()
        return [voice for voice in voices if voice.gender == gender]

    async def get_current_voice_gender(self) -> Gender | None:
        voices: list[VoiceDescriptor] = await self._catalog()
        for voice in voices:
            if voice.id == self._voice_id:
                return voice.gender
        return None

    async def _catalog(self) -> list[VoiceDescriptor]:
        if self._voices is None:
            await self.get_voices()
        return self._voices or []
