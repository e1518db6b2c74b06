"""Voice activity detection configuration and decisions."""

from dataclasses import dataclass
from enum import Enum


class VADDecision(Enum):
    """Outcome of a single silence evaluation."""
    CONTINUE = "continue"
    TRIGGER_STOP = "trigger_stop"


@dataclass(frozen=True)
class VADConfig:
    """Silence detection settings, fixed for the lifetime of a session."""
    min_recording_duration: float = 0.5  # Seconds before silence may stop the session
    silence_threshold: float = 0.01      # Mean absolute amplitude treated as silence
    silence_duration: float = 0.5        # Seconds of contiguous silence that end the session
    window_size: int = 256               # Samples inspected per tick

    def __post_init__(self):
        if self.min_recording_duration < 0:
            raise ValueError(f"min_recording_duration must be >= 0, got {self.min_recording_duration}")
        if self.silence_threshold < 0:
            raise ValueError(f"silence_threshold must be >= 0, got {self.silence_threshold}")
        if self.silence_duration < 0:
            raise ValueError(f"silence_duration must be >= 0, got {self.silence_duration}")
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
