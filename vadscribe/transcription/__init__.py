"""Speech recognition backends for vadscribe."""

from .base import AbstractRecognitionBackend
from ..models.transcription import TranscriptionResult
from .google_backend import GoogleSpeechBackend
from .rest_backend import GoogleRestSpeechBackend

__all__ = [
    "AbstractRecognitionBackend",
    "TranscriptionResult",
    "GoogleSpeechBackend",
    "GoogleRestSpeechBackend",
]
