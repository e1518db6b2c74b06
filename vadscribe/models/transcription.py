"""Transcription-related data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class TranscriptionResult:
    """Best transcript returned by a recognition backend."""
    text: str
    confidence: float
    processing_time: float
    timestamp: datetime
    service: str
    language: str = "pt-BR"
    session_id: Optional[str] = None
