"""Silence detection used to end a recording session automatically."""

import logging
from typing import Optional

import numpy as np

from ..models.vad import VADConfig, VADDecision

logger = logging.getLogger(__name__)


def average_volume(samples: np.ndarray) -> float:
    """Mean absolute amplitude of a sample window."""
    data = np.asarray(samples, dtype=np.float32)
    if data.size == 0:
        return 0.0
    return float(np.mean(np.abs(data)))


class SilenceDetector:
    """Tracks contiguous silence across ticks and decides when to stop.

    The silence timer only advances while the session has run longer than
    ``min_recording_duration`` and the window's average volume is below
    ``silence_threshold``. Any other evaluated window resets it to zero.
    """

    def __init__(self, config: Optional[VADConfig] = None):
        self.config = config or VADConfig()
        self.silence_timer = 0.0
        self.skipped_windows = 0

    def reset(self) -> None:
        """Reset detector state for a new session."""
        self.silence_timer = 0.0
        self.skipped_windows = 0

    def evaluate(self, window_samples: Optional[np.ndarray], dt: float, elapsed: float) -> VADDecision:
        """Evaluate the latest audio window.

        Args:
            window_samples: Most recent samples, or None if not enough audio yet
            dt: Seconds since the previous tick
            elapsed: Seconds since the session started

        Returns:
            VADDecision.TRIGGER_STOP once silence has lasted longer than
            ``silence_duration``, otherwise VADDecision.CONTINUE
        """
        if window_samples is None or len(window_samples) < self.config.window_size:
            # Not enough captured audio yet; leave the timer alone
            self.skipped_windows += 1
            logger.debug(f"Skipping silence check: window not available "
                         f"(skipped={self.skipped_windows}, elapsed={elapsed:.3f}s)")
            return VADDecision.CONTINUE

        avg_volume = average_volume(window_samples)

        if avg_volume < self.config.silence_threshold and elapsed > self.config.min_recording_duration:
            self.silence_timer += dt
            if self.silence_timer > self.config.silence_duration:
                logger.info(f"Silence detected for {self.silence_timer:.2f}s "
                            f"(avg_volume={avg_volume:.4f}, elapsed={elapsed:.2f}s)")
                return VADDecision.TRIGGER_STOP
        else:
            self.silence_timer = 0.0

        return VADDecision.CONTINUE
