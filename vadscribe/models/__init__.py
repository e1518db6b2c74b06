"""Data models for the vadscribe package."""

from .audio import AudioStats
from .events import SessionEvent
from .session import RecordingSession, SessionState
from .transcription import TranscriptionResult
from .vad import VADConfig, VADDecision

__all__ = [
    "AudioStats",
    "SessionEvent",
    "RecordingSession",
    "SessionState",
    "TranscriptionResult",
    "VADConfig",
    "VADDecision",
]
