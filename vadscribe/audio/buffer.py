"""Fixed-length capture buffer holding normalized float samples."""

import logging
import threading
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


class CaptureBuffer:
    """Preallocated clip of float samples written by the capture thread.

    In loop mode the write position wraps around and the oldest audio is
    overwritten. In one-shot mode writes stop once the clip is full.
    """

    def __init__(self, length_seconds: float, sample_rate: int = 16000, loop: bool = True):
        """Initialize capture buffer.

        Args:
            length_seconds: Clip length in seconds
            sample_rate: Audio sample rate
            loop: Wrap around when the clip is full instead of stopping
        """
        if length_seconds <= 0:
            raise ValueError(f"length_seconds must be positive, got {length_seconds}")

        self.length_seconds = length_seconds
        self.sample_rate = sample_rate
        self.loop = loop
        self.capacity = int(length_seconds * sample_rate)

        self.samples = np.zeros(self.capacity, dtype=np.float32)
        self.lock = threading.Lock()
        self._position = 0
        self.total_written = 0

        logger.debug(f"CaptureBuffer initialized: {length_seconds}s, "
                     f"{self.capacity} samples, loop={loop}")

    @property
    def position(self) -> int:
        """Current write position within the clip."""
        with self.lock:
            return self._position

    @property
    def is_full(self) -> bool:
        """True once a one-shot clip has no room left."""
        with self.lock:
            return not self.loop and self.total_written >= self.capacity

    def write(self, samples: np.ndarray) -> int:
        """Append samples at the write position.

        Returns:
            Number of samples actually stored
        """
        data = np.asarray(samples, dtype=np.float32).ravel()
        if data.size == 0:
            return 0

        with self.lock:
            if not self.loop:
                room = self.capacity - self.total_written
                data = data[:max(room, 0)]
                if data.size == 0:
                    return 0
            elif data.size > self.capacity:
                # Only the tail survives a write longer than the ring
                skipped = data.size - self.capacity
                self._position = (self._position + skipped) % self.capacity
                self.total_written += skipped
                data = data[skipped:]

            end = self._position + data.size
            if end <= self.capacity:
                self.samples[self._position:end] = data
            else:
                first = self.capacity - self._position
                self.samples[self._position:] = data[:first]
                self.samples[:data.size - first] = data[first:]

            self.total_written += data.size
            if self.loop:
                self._position = end % self.capacity
            else:
                self._position = end
            return data.size

    def read_latest(self, count: int) -> Optional[np.ndarray]:
        """Get the most recent samples in chronological order.

        Args:
            count: Number of samples to read

        Returns:
            Array of ``count`` samples, or None if fewer have been captured
        """
        with self.lock:
            available = min(self.total_written, self.capacity)
            if count <= 0 or count > available:
                return None

            start = self._position - count
            if start >= 0:
                return self.samples[start:self._position].copy()
            # Window straddles the wrap point
            return np.concatenate((self.samples[start:], self.samples[:self._position]))

    def snapshot(self) -> np.ndarray:
        """Get all captured audio in chronological order."""
        with self.lock:
            if self.total_written < self.capacity:
                return self.samples[:self.total_written].copy()
            if not self.loop or self._position == 0:
                return self.samples.copy()
            return np.concatenate((self.samples[self._position:], self.samples[:self._position]))

    def clear(self) -> None:
        """Clear the buffer."""
        with self.lock:
            self.samples.fill(0.0)
            self._position = 0
            self.total_written = 0
            logger.debug("Capture buffer cleared")
