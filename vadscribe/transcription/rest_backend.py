"""Google Speech-to-Text recognition over the REST endpoint with an API key."""

import asyncio
import base64
import logging
import time
from datetime import datetime
from typing import Optional, Dict, Any

import aiohttp

from .base import AbstractRecognitionBackend
from ..errors import TransportFailure
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)

RECOGNIZE_URL = "https://speech.googleapis.com/v1/speech:recognize"


class GoogleRestSpeechBackend(AbstractRecognitionBackend):
    """Posts base64 WAV payloads to the v1 ``speech:recognize`` endpoint."""

    def __init__(self,
                 api_key: str,
                 sample_rate: int = 16000,
                 language: str = "pt-BR",
                 timeout: float = 10.0,
                 base_url: str = RECOGNIZE_URL):
        super().__init__(language, sample_rate)
        if not api_key:
            raise ValueError("Google API key is required for the REST backend")
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url
        self.service_name = "Google Speech-to-Text REST"

        logger.info(f"GoogleRestSpeechBackend initialized for language: {language}")

    def initialize(self) -> bool:
        return True

    def build_request(self, wav_bytes: bytes) -> Dict[str, Any]:
        """Build the JSON body for a recognize request."""
        return {
            "config": {
                "encoding": "LINEAR16",
                "sampleRateHertz": self.sample_rate,
                "languageCode": self.language,
            },
            "audio": {
                "content": base64.b64encode(wav_bytes).decode("ascii"),
            },
        }

    async def recognize(self, wav_bytes: bytes, session_id: Optional[str] = None) -> Optional[TranscriptionResult]:
        """Send the payload and return the first alternative of the first result."""
        start_time = time.time()
        self.requests_sent += 1

        headers = {"Content-Type": "application/json"}
        params = {"key": self.api_key}
        data = self.build_request(wav_bytes)
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.base_url, params=params, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        self.requests_failed += 1
                        logger.error(f"STT Error: HTTP {response.status}")
                        logger.error(f"STT Response: {error_text}")
                        raise TransportFailure(f"Google Speech API error: {error_text}", status=response.status)
                    body = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.requests_failed += 1
            logger.error(f"STT request failed for session {session_id}: {e!r}")
            raise TransportFailure(f"Google Speech request failed: {e!r}") from e
        processing_time = time.time() - start_time

        logger.debug(f"Google STT Response: {body}")
        results = body.get("results") or []
        if not results or not results[0].get("alternatives"):
            logger.debug("--- NO SPEECH DETECTED ---")
            return None

        alternative = results[0]["alternatives"][0]
        transcript = alternative.get("transcript", "")
        logger.info(f"Transcript: {transcript}")
        return TranscriptionResult(
            text=transcript,
            confidence=float(alternative.get("confidence", 0.0)),
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            session_id=session_id,
        )

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats.update({"service": self.service_name, "timeout": self.timeout})
        return stats
