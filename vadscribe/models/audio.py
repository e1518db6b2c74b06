"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    position: int
    capacity: int
    sample_rate: int
    chunk_size: int
    total_chunks: int
