"""Provider specific synthesis channels.

A channel issues the network requests of one speech provider: synthesizing a piece of text into audio
bytes and fetching the provider's voice catalog. Communication failures are reported as
TTSNetworkError with a message that can be shown to the reader.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final
from xml.sax.saxutils import quoteattr

from core.tts.errors import TTSNetworkError
from handlers.async_comm import AsyncCommError, AsyncHttp, HttpResult
from models.voice_models import AzureVoice, ElevenLabsVoiceList, VoiceDescriptor
from utils.error_utils import is_network_error
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Azure, ElevenLabs

__all__: list[str] = ["AzureChannel", "ElevenLabsChannel", "SynthesisChannel", "SynthesisResult"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ELEVENLABS_REQUEST_ID_HEADER: Final[str] = "request-id"
AZURE_REQUEST_ID_HEADER: Final[str] = "x-requestid"
AZURE_DEFAULT_LANGUAGE: Final[str] = "en-US"
HTTP_UNAUTHORIZED: Final[int] = 401
HTTP_FORBIDDEN: Final[int] = 403


@dataclass
class SynthesisResult:
    """Audio returned by a provider.

    Attributes:
        audio (bytes): Encoded audio data.
        suffix (str): File suffix matching the encoding ("mp3" or "wav").
        request_id (str | None): Provider request id, if the provider reports one.
    """

    audio: bytes
    suffix: str
    request_id: str | None = None


class SynthesisChannel(ABC):
    """Network access to one speech provider.

    Args:
        provider_name (str): Provider name used in error messages.
        timeout (float): Total request timeout in seconds.
        http (AsyncHttp | None): HTTP client; a new one is created when omitted.
    """

    def __init__(self, provider_name: str, timeout: float, http: AsyncHttp | None = None) -> None:
        self.provider_name: str = provider_name
        self.timeout: float = timeout
        self.http: AsyncHttp = http or AsyncHttp()

    @abstractmethod
    async def synthesize(
        self,
        text: str,
        voice_id: str,
        model_id: str | None = None,
        previous_request_ids: list[str] | None = None,
    ) -> SynthesisResult:
        """Convert formatted text into audio.

        Raises:
            TTSNetworkError: If the provider cannot be reached or rejects the request.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_voices(self) -> list[VoiceDescriptor]:
        """Fetch the provider's voice catalog.

        Raises:
            TTSNetworkError: If the provider cannot be reached or rejects the request.
        """
        raise NotImplementedError

    async def close(self) -> None:
        await self.http.close()

    def _network_error(self, err: AsyncCommError, action: str) -> TTSNetworkError:
        """Translate a communication error into a reader facing TTSNetworkError."""
        msg: str
        if err.status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            msg = f"{self.provider_name} rejected the API key ({action}): {err}"
        elif is_network_error(err):
            msg = f"Network error while contacting {self.provider_name} ({action}): {err}"
        else:
            msg = f"{self.provider_name} API error ({action}): {err}"
        logger.error(msg)
        return TTSNetworkError(msg)

    def _require_api_key(self, api_key: str) -> None:
        if not api_key:
            msg: str = f"{self.provider_name} API key is not configured"
            raise TTSNetworkError(msg)

    @staticmethod
    def _audio_bytes(result: HttpResult, provider_name: str) -> bytes:
        if not isinstance(result.data, bytes) or not result.data:
            msg: str = f"{provider_name} returned no audio data"
            raise TTSNetworkError(msg)
        return result.data


class ElevenLabsChannel(SynthesisChannel):
    """ElevenLabs text-to-speech REST API.

    Synthesis posts to ``/v1/text-to-speech/{voice_id}`` and receives MPEG audio; the request id
    reported in the ``request-id`` header is passed back on following requests for continuity.
    """

    def __init__(self, settings: ElevenLabs, http: AsyncHttp | None = None) -> None:
        super().__init__("ElevenLabs", settings.TIMEOUT, http)
        self.api_key: str = settings.API_KEY
        self.server: str = settings.SERVER.rstrip("/")
        self.output_format: str = settings.OUTPUT_FORMAT
        self.http.add_handler("audio/mpeg", bytes)

    @property
    def headers(self) -> dict[str, str]:
        return {"xi-api-key": self.api_key}

    async def synthesize(
        self,
        text: str,
        voice_id: str,
        model_id: str | None = None,
        previous_request_ids: list[str] | None = None,
    ) -> SynthesisResult:
        self._require_api_key(self.api_key)
        payload: dict[str, Any] = {"text": text}
        if model_id:
            payload["model_id"] = model_id
        if previous_request_ids:
            payload["previous_request_ids"] = list(previous_request_ids)

        logger.info("'POST text-to-speech': voice '%s', %d characters", voice_id, len(text))
        try:
            result: HttpResult = await self.http.post(
                url=f"{self.server}/v1/text-to-speech/{voice_id}",
                params={"output_format": self.output_format},
                json_data=payload,
                headers={**self.headers, "Accept": "audio/mpeg"},
                total_timeout=self.timeout,
            )
        except AsyncCommError as err:
            raise self._network_error(err, "text-to-speech") from err

        return SynthesisResult(
            audio=self._audio_bytes(result, self.provider_name),
            suffix="mp3",
            request_id=result.header(ELEVENLABS_REQUEST_ID_HEADER),
        )

    async def fetch_voices(self) -> list[VoiceDescriptor]:
        self._require_api_key(self.api_key)
        logger.info("'GET voices': '%s'", self.server)
        try:
            result: HttpResult = await self.http.get(
                url=f"{self.server}/v1/voices",
                headers=self.headers,
                total_timeout=self.timeout,
            )
        except AsyncCommError as err:
            raise self._network_error(err, "voices") from err

        try:
            voice_list: ElevenLabsVoiceList = ElevenLabsVoiceList.from_dict(result.data, infer_missing=True)
        except (KeyError, TypeError, AttributeError) as err:
            msg: str = f"The voice list from {self.provider_name} is invalid: {err}"
            raise TTSNetworkError(msg) from err
        return [voice.to_descriptor() for voice in voice_list.voices]


class AzureChannel(SynthesisChannel):
    """Azure Speech REST API.

    Synthesis posts a complete SSML document to ``/cognitiveservices/v1``; the formatted chunk is
    placed inside a ``<voice>`` element of the selected voice.
    """

    def __init__(self, settings: Azure, http: AsyncHttp | None = None) -> None:
        super().__init__("Azure TTS", settings.TIMEOUT, http)
        self.api_key: str = settings.API_KEY
        self.region: str = settings.REGION
        self.output_format: str = settings.OUTPUT_FORMAT
        for content_type in ("audio/wav", "audio/x-wav", "audio/mpeg"):
            self.http.add_handler(content_type, bytes)

    @property
    def base_url(self) -> str:
        return f"https://{self.region}.tts.speech.microsoft.com/cognitiveservices"

    @property
    def suffix(self) -> str:
        return "wav" if self.output_format.startswith("riff") else "mp3"

    @staticmethod
    def build_ssml(fragment: str, voice_id: str) -> str:
        """Wrap an SSML fragment into a ``<speak>`` document for the given voice.

        The document language is taken from the voice name, e.g. "en-US" for "en-US-AriaNeural".
        """
        parts: list[str] = voice_id.split("-")
        language: str = "-".join(parts[:2]) if len(parts) >= 3 else AZURE_DEFAULT_LANGUAGE  # noqa: PLR2004
        return (
            f"<speak version='1.0' xml:lang={quoteattr(language)} xmlns='http://www.w3.org/2001/10/synthesis'>"
            f"<voice name={quoteattr(voice_id)}>{fragment}</voice>"
            "</speak>"
        )

    async def synthesize(
        self,
        text: str,
        voice_id: str,
        model_id: str | None = None,
        previous_request_ids: list[str] | None = None,
    ) -> SynthesisResult:
        _ = model_id, previous_request_ids
        self._require_api_key(self.api_key)
        logger.info("'POST cognitiveservices/v1': voice '%s', %d characters", voice_id, len(text))
        try:
            result: HttpResult = await self.http.post(
                url=f"{self.base_url}/v1",
                body=self.build_ssml(text, voice_id),
                headers={
                    "Ocp-Apim-Subscription-Key": self.api_key,
                    "Content-Type": "application/ssml+xml",
                    "X-Microsoft-OutputFormat": self.output_format,
                },
                total_timeout=self.timeout,
            )
        except AsyncCommError as err:
            raise self._network_error(err, "synthesis") from err

        # Azure does not always report a request id, so generate one for continuity tracking
        request_id: str = result.header(AZURE_REQUEST_ID_HEADER) or f"azure-{int(time.time() * 1000)}"
        return SynthesisResult(
            audio=self._audio_bytes(result, self.provider_name),
            suffix=self.suffix,
            request_id=request_id,
        )

    async def fetch_voices(self) -> list[VoiceDescriptor]:
        self._require_api_key(self.api_key)
        logger.info("'GET voices/list': region '%s'", self.region)
        try:
            result: HttpResult = await self.http.get(
                url=f"{self.base_url}/voices/list",
                headers={"Ocp-Apim-Subscription-Key": self.api_key},
                total_timeout=self.timeout,
            )
        except AsyncCommError as err:
            raise self._network_error(err, "voices") from err

        try:
            voices: list[AzureVoice] = [AzureVoice.from_dict(item, infer_missing=True) for item in result.data or []]
        except (KeyError, TypeError, AttributeError) as err:
            msg: str = f"The voice list from {self.provider_name} is invalid: {err}"
            raise TTSNetworkError(msg) from err
        return [voice.to_descriptor() for voice in voices]
