"""Services layer for vadscribe application logic."""

from .notifications import NotificationPublisher
from .session_manager import RecordingSessionManager
from .transcription_service import TranscriptionService

__all__ = [
    "NotificationPublisher",
    "RecordingSessionManager",
    "TranscriptionService",
]
