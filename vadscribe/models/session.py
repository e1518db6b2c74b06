"""Session-related data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Any


class SessionState(Enum):
    """Lifecycle state of a recording session."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


@dataclass
class RecordingSession:
    """A single capture-to-transcript attempt."""
    session_id: str
    audio_buffer: Any  # CaptureBuffer owned exclusively by this session
    continuous: bool
    max_duration: float
    state: SessionState = SessionState.RECORDING
    elapsed_duration: float = 0.0
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    stop_reason: Optional[str] = None  # "silence" | "manual"
