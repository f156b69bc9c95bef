import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from sightpath.exceptions import SpeechSynthesisError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceConfig:
    language_code: str = "ko-KR"
    name: str = "ko-KR-Neural2-c"
    ssml_gender: str = "MALE"
    audio_encoding: str = "MP3"


class SpeechService:
    BASE_URL: str = "https://texttospeech.googleapis.com/v1/text:synthesize"
    HEADERS: dict[str, str] = {"content-type": "application/json; charset=UTF-8"}

    def __init__(self, api_key: Optional[str], voice: VoiceConfig, timeout: int = 10,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.voice = voice
        self.timeout = timeout
        self.http_client = http_client

    @classmethod
    def from_settings(cls, settings) -> "SpeechService":
        return cls(
            api_key=settings.GOOGLE_TTS_API_KEY,
            voice=VoiceConfig(
                language_code=settings.TTS_LANGUAGE_CODE,
                name=settings.TTS_VOICE_NAME,
                ssml_gender=settings.TTS_SSML_GENDER,
                audio_encoding=settings.TTS_AUDIO_ENCODING,
            ),
            timeout=settings.TTS_TIMEOUT,
        )

    @property
    def media_type(self) -> str:
        return {
            "MP3": "audio/mpeg",
            "OGG_OPUS": "audio/ogg",
            "LINEAR16": "audio/wav",
        }.get(self.voice.audio_encoding, "application/octet-stream")

    def _payload(self, text: str) -> dict:
        return {
            "input": {"text": text},
            "voice": {
                "languageCode": self.voice.language_code,
                "name": self.voice.name,
                "ssmlGender": self.voice.ssml_gender,
            },
            "audioConfig": {"audioEncoding": self.voice.audio_encoding},
        }

    async def _post(self, client: httpx.AsyncClient, text: str) -> httpx.Response:
        return await client.post(
            self.BASE_URL,
            params={"key": self.api_key},
            headers=self.HEADERS,
            json=self._payload(text),
            timeout=self.timeout,
        )

    async def synthesize(self, text: str) -> bytes:
        if not self.api_key:
            raise SpeechSynthesisError("GOOGLE_TTS_API_KEY is not configured")

        try:
            if self.http_client is not None:
                resp = await self._post(self.http_client, text)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await self._post(client, text)
            resp.raise_for_status()
            audio_content = resp.json().get("audioContent")
        except (httpx.HTTPError, ValueError) as e:
            raise SpeechSynthesisError(f"Text to speech request failed: {e}") from e

        if not audio_content:
            raise SpeechSynthesisError("Text to speech response had no audioContent")

        try:
            audio = base64.b64decode(audio_content)
        except binascii.Error as e:
            raise SpeechSynthesisError(f"audioContent is not valid base64: {e}") from e

        logger.info(f"Synthesized {len(audio)} bytes of audio for: {text}")
        return audio
