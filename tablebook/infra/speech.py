"""
Speech collaborators: Deepgram speech-to-text and ElevenLabs text-to-speech.

Both degrade to an empty result (empty transcript / empty audio) when the
API key is missing or the request fails; callers never see an exception.
"""

import logging
from typing import Optional

import httpx

from tablebook.config import get_settings

logger = logging.getLogger(__name__)


class _HTTPService:
    """Lazily created httpx.AsyncClient shared by one collaborator."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or get_settings().speech_timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


class DeepgramTranscriber(_HTTPService):
    """
    Transcribes a complete recorded utterance with Deepgram's prerecorded API.

    POST {deepgram_url}?model=nova-2&smart_format=true
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        content_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(timeout)
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.deepgram_api_key
        self.url = url or settings.deepgram_url
        self.model = model or settings.deepgram_model
        self.content_type = content_type or settings.deepgram_content_type

        if not self.api_key:
            logger.warning("DEEPGRAM_API_KEY is missing - transcription disabled")

    async def transcribe(self, audio: bytes) -> str:
        """Transcribe audio bytes.

        Returns:
            Transcript text, or "" when there is nothing usable
        """
        if not self.api_key:
            logger.error("STT: missing API key")
            return ""
        if not audio:
            return ""

        client = await self._get_client()

        try:
            response = await client.post(
                self.url,
                params={"model": self.model, "smart_format": "true"},
                content=audio,
                headers={
                    "Authorization": f"Token {self.api_key}",
                    "Content-Type": self.content_type,
                },
            )
            response.raise_for_status()
            data = response.json()

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Deepgram STT error: {e}")
            return ""

        try:
            alternative = data["results"]["channels"][0]["alternatives"][0]
        except (KeyError, IndexError, TypeError):
            logger.warning("Deepgram response had no transcript")
            return ""

        transcript = alternative.get("transcript") or ""
        logger.debug(
            f"Transcribed {len(audio)} bytes "
            f"(confidence={alternative.get('confidence', 0)})"
        )
        return transcript


class ElevenLabsSynthesizer(_HTTPService):
    """
    Synthesizes reply text with ElevenLabs.

    POST {elevenlabs_url}/{voice_id} -> audio/mpeg
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        voice_ids: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(timeout)
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.elevenlabs_api_key
        self.url = (url or settings.elevenlabs_url).rstrip("/")
        self.model = model or settings.elevenlabs_model
        self.voice_ids = voice_ids or settings.voice_ids
        self.stability = settings.elevenlabs_stability
        self.similarity_boost = settings.elevenlabs_similarity_boost

        if not self.api_key:
            logger.warning("ELEVENLABS_API_KEY is missing - synthesis disabled")

    def voice_id(self, voice: str) -> str:
        """Resolve a voice selector ("voice_formal") or raw voice id."""
        if voice and len(voice) > 10 and voice not in self.voice_ids:
            return voice
        return self.voice_ids.get(voice, self.voice_ids["voice_formal"])

    async def synthesize(self, text: str, voice: str) -> bytes:
        """Synthesize speech.

        Returns:
            MP3 audio, or b"" on failure
        """
        if not self.api_key:
            logger.error("TTS: missing API key")
            return b""

        client = await self._get_client()

        try:
            response = await client.post(
                f"{self.url}/{self.voice_id(voice)}",
                json={
                    "text": text,
                    "model_id": self.model,
                    "voice_settings": {
                        "stability": self.stability,
                        "similarity_boost": self.similarity_boost,
                    },
                },
                headers={
                    "xi-api-key": self.api_key,
                    "Content-Type": "application/json",
                    "Accept": "audio/mpeg",
                },
            )
            response.raise_for_status()
            return response.content

        except httpx.HTTPError as e:
            logger.error(f"ElevenLabs TTS error: {e}")
            return b""
