from __future__ import annotations

from typing import TYPE_CHECKING, Self

from core.tts.channels import AzureChannel
from core.tts.interface import Interface
from handlers.text_processor import SsmlTextFormatter
from models.playback_models import AdapterType
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config
    from models.voice_models import VoiceDescriptor

__all__: list[str] = ["AzureAdapter"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class AzureAdapter(Interface):
    """Playback adapter for Azure Speech.

    Text is sent as SSML so headings and paragraphs get pauses and emphasis. Gender lookups are
    left to the voice manager, which works on the fetched catalog.
    """

    @staticmethod
    def fetch_adapter_type() -> AdapterType:
        return AdapterType.AZURE

    @classmethod
    def from_config(cls, config: Config) -> Self:
        settings = config.AZURE
        return cls(
            AzureChannel(settings),
            SsmlTextFormatter(config.READER.MAX_TEXT_LENGTH),
            audio_directory=cls.audio_directory_for(config),
            default_voice_id=settings.VOICE,
        )

    async def get_voices(self) -> list[VoiceDescriptor] | None:
        voices: list[VoiceDescriptor] = await self.channel.fetch_voices()
        logger.info("Fetched %d voices from Azure", len(voices))
        return voices

    async def set_voice(self, voice_id: str) -> None:
        self._voice_id = voice_id
        logger.info("Voice set to '%s'", voice_id)
