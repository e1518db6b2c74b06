"""Google Speech-to-Text recognition backend using the cloud client library."""

import asyncio
import functools
import time
import logging
from datetime import datetime
from typing import Optional, Dict, Any

from .base import AbstractRecognitionBackend
from ..errors import TransportFailure
from ..models.transcription import TranscriptionResult

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.api_core.client_options import ClientOptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractRecognitionBackend):
    """Google Speech-to-Text API backend for one-shot recognition."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "pt-BR",
                 timeout: float = 10.0):
        """Initialize Google Speech backend.

        Args:
            api_key: Google Cloud API key
            credentials_path: Path to Google Cloud service account JSON file (used if no api_key)
            sample_rate: Sample rate declared to the service
            language: Language code (e.g., 'pt-BR', 'en-US')
            timeout: Per-request timeout in seconds
        """
        super().__init__(language, sample_rate)
        if not api_key and not credentials_path:
            raise ValueError("Google API key or credentials path is required - cannot initialize without credentials")
        self.api_key = api_key
        self.credentials_path = credentials_path
        self.timeout = timeout
        self.client = None
        self.service_name = "Google Speech-to-Text"
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=self.language,
        )

    def initialize(self) -> bool:
        """Initialize Google Speech client."""
        if self.api_key:
            logger.info("Using Google API key authentication")
            self.client = speech.SpeechClient(client_options=ClientOptions(api_key=self.api_key))
        else:
            logger.info(f"Loading Google credentials from: {self.credentials_path}")
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            self.client = speech.SpeechClient(credentials=credentials)
            logger.info(f"Using Google Cloud project: {credentials.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    async def recognize(self, wav_bytes: bytes, session_id: Optional[str] = None) -> Optional[TranscriptionResult]:
        """Recognize a WAV payload with the synchronous recognize call."""
        if self.client is None:
            raise RuntimeError("GoogleSpeechBackend.initialize() must be called before recognize()")

        start_time = time.time()
        self.requests_sent += 1
        logger.debug(f"Session: {session_id}; payload size: {len(wav_bytes)} bytes; language: {self.language}")

        audio = speech.RecognitionAudio(content=wav_bytes)
        try:
            # SpeechClient.recognize blocks; keep the event loop free while it runs
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, functools.partial(
                self.client.recognize, config=self.config, audio=audio, timeout=self.timeout))
        except gax_exceptions.DeadlineExceeded as e:
            self.requests_failed += 1
            logger.error(f"Google STT recognize deadline exceeded for session {session_id}")
            raise TransportFailure(f"Google Speech recognize timeout: {e.message}", status=e.code) from e
        except gax_exceptions.GoogleAPICallError as e:
            self.requests_failed += 1
            logger.error(f"Google STT API call error for session {session_id}: {e}")
            raise TransportFailure(f"Google Speech API error: {e.message}", status=e.code) from e
        processing_time = time.time() - start_time

        if not response.results or not response.results[0].alternatives:
            logger.debug("--- NO SPEECH DETECTED ---")
            return None

        alternative = response.results[0].alternatives[0]
        logger.debug(f"Transcript='{alternative.transcript}' (conf={alternative.confidence}, "
                     f"processing_time={processing_time:.3f}s)")
        return TranscriptionResult(
            text=alternative.transcript,
            confidence=alternative.confidence,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            session_id=session_id,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get Google-specific statistics."""
        stats = super().get_stats()
        stats.update({
            "service": self.service_name,
            "auth": "api_key" if self.api_key else "service_account",
            "timeout": self.timeout,
        })
        return stats
