"""Speech synthesizers: OpenAI text-to-speech and Amazon Polly."""
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from config import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    OPENAI_TTS_MODEL,
    OPENAI_TTS_VOICE,
    POLLY_VOICE_ID,
    POLLY_ENGINE,
    AWS_REGION,
    HTTP_TIMEOUT,
)
from services.errors import ConfigurationError, SynthesisError

logger = logging.getLogger(__name__)


class SpeechSynthesizer(ABC):
    """Turns text into encoded audio."""

    name = "speech"
    content_type = "audio/mpeg"
    file_extension = "mp3"

    @abstractmethod
    def synthesize(self, text: str) -> bytes:
        """
        Synthesize speech for the given text.

        Raises:
            SynthesisError: If no audio could be produced
        """


class OpenAISpeechSynthesizer(SpeechSynthesizer):
    """OpenAI /audio/speech endpoint; returns MP3 bytes."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        voice: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None
    ):
        self.api_key = api_key or OPENAI_API_KEY
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY must be provided or set in environment")

        self.model = model or OPENAI_TTS_MODEL
        self.voice = voice or OPENAI_TTS_VOICE
        self.base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self.http_client = http_client or httpx.Client(timeout=HTTP_TIMEOUT)
        logger.info(f"OpenAISpeechSynthesizer initialized (model={self.model}, voice={self.voice})")

    def synthesize(self, text: str) -> bytes:
        start_time = time.time()

        try:
            response = self.http_client.post(
                f"{self.base_url}/audio/speech",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"input": text, "model": self.model, "voice": self.voice}
            )
        except httpx.HTTPError as e:
            logger.error(f"HTTP request to OpenAI TTS failed: {e}")
            raise SynthesisError(f"OpenAI TTS request failed: {e}", cause=e) from e

        if not response.is_success:
            error_message = response.text or "Unknown error"
            logger.error(f"OpenAI TTS API error ({response.status_code}): {error_message}")
            raise SynthesisError(
                f"OpenAI TTS API failed: {error_message}",
                details={"status_code": response.status_code, "voice": self.voice}
            )

        audio = response.content
        if not audio:
            raise SynthesisError("OpenAI TTS returned no audio", details={"voice": self.voice})

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Synthesized {len(audio)} bytes with OpenAI TTS in {latency_ms}ms")
        return audio


class PollySpeechSynthesizer(SpeechSynthesizer):
    """Amazon Polly synthesize_speech with MP3 output."""

    name = "polly"

    def __init__(
        self,
        voice_id: Optional[str] = None,
        engine: Optional[str] = None,
        region_name: Optional[str] = None,
        client: Optional[Any] = None
    ):
        self.voice_id = voice_id or POLLY_VOICE_ID
        self.engine = engine or POLLY_ENGINE
        self.client = client or boto3.client("polly", region_name=region_name or AWS_REGION)
        logger.info(f"PollySpeechSynthesizer initialized (voice={self.voice_id})")

    def synthesize(self, text: str) -> bytes:
        start_time = time.time()
        params = {"Text": text, "OutputFormat": "mp3", "VoiceId": self.voice_id}
        if self.engine:
            params["Engine"] = self.engine

        try:
            response = self.client.synthesize_speech(**params)
            stream = response["AudioStream"]
            try:
                audio = stream.read()
            finally:
                stream.close()
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error generating speech with Polly: {e}")
            raise SynthesisError(f"Polly request failed: {e}", cause=e, details={"voice": self.voice_id}) from e

        if not audio:
            raise SynthesisError("Polly returned no audio", details={"voice": self.voice_id})

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Synthesized {len(audio)} bytes with Polly in {latency_ms}ms")
        return audio
