"""Abstract base class for speech recognition backends."""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import logging

from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class AbstractRecognitionBackend(ABC):
    """Abstract base class for recognition backends."""

    def __init__(self, language: str = "pt-BR", sample_rate: int = 16000):
        """Initialize backend with language and payload sample rate."""
        self.language = language
        self.sample_rate = sample_rate
        self.requests_sent = 0
        self.requests_failed = 0

    @abstractmethod
    async def recognize(self, wav_bytes: bytes, session_id: Optional[str] = None) -> Optional[TranscriptionResult]:
        """Recognize speech in a WAV container.

        Args:
            wav_bytes: Mono 16-bit PCM WAV file bytes
            session_id: Session the audio belongs to

        Returns:
            Best transcript (first alternative of the first result), or None
            when the service returned no results

        Raises:
            TransportFailure: If the request failed
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get backend statistics."""
        return {
            "backend": self.__class__.__name__,
            "language": self.language,
            "sample_rate": self.sample_rate,
            "requests_sent": self.requests_sent,
            "requests_failed": self.requests_failed,
        }
