"""Pytest configuration and fixtures for vadscribe tests."""

import pytest
import tempfile
import logging
import time
from datetime import datetime
from typing import List, Optional, Tuple
from unittest.mock import Mock, patch
import numpy as np
from pubsub import pub

from vadscribe.audio.buffer import CaptureBuffer
from vadscribe.errors import TransportFailure
from vadscribe.models.transcription import TranscriptionResult
from vadscribe.services.notifications import (
    TOPIC_SESSION_STOPPED,
    TOPIC_TRANSCRIPT_READY,
    TOPIC_TRANSCRIPTION_FAILED,
)
from vadscribe.transcription.base import AbstractRecognitionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop pubsub listeners left behind by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def audio_test_data():
    """Generate normalized float audio patterns."""
    def generate_audio(pattern="sine", samples=256, amplitude=0.5):
        """Generate audio data for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            samples: Number of samples
            amplitude: Peak amplitude

        Returns:
            np.ndarray: float32 samples
        """
        if pattern == "sine":
            t = np.arange(samples) / 16000
            wave_data = np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            wave_data = np.random.uniform(-1, 1, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")
        return (wave_data * amplitude).astype(np.float32)

    return generate_audio


class FakeCapture:
    """Capture collaborator feeding a CaptureBuffer from the test.

    ``prefill`` writes a tenth of a second at that amplitude on every start;
    ``device_fails`` makes capture end as soon as it starts.
    """

    def __init__(self, sample_rate: int = 16000, prefill: Optional[float] = None,
                 device_fails: bool = False):
        self.sample_rate = sample_rate
        self.prefill = prefill
        self.device_fails = device_fails
        self.is_recording = False
        self.buffer: Optional[CaptureBuffer] = None
        self.start_calls: List[Tuple[bool, float]] = []
        self.stop_calls = 0

    def start(self, loop: bool = True, length_seconds: float = 10.0) -> CaptureBuffer:
        self.start_calls.append((loop, length_seconds))
        self.buffer = CaptureBuffer(length_seconds, sample_rate=self.sample_rate, loop=loop)
        self.is_recording = not self.device_fails
        if self.prefill is not None:
            self.feed(self.prefill, count=self.sample_rate // 10)
        return self.buffer

    def stop(self) -> None:
        self.stop_calls += 1
        self.is_recording = False

    def feed(self, value: float, count: int = 256) -> None:
        """Write ``count`` samples of constant amplitude into the live buffer."""
        self.buffer.write(np.full(count, value, dtype=np.float32))


@pytest.fixture
def fake_capture():
    """Capture collaborator that records nothing until fed."""
    return FakeCapture()


@pytest.fixture
def capture_factory():
    """Build FakeCapture instances with prefilled audio or a failing device."""
    return FakeCapture


class FakeBackend(AbstractRecognitionBackend):
    """Recognition backend returning canned outcomes."""

    def __init__(self, transcript: Optional[str] = "olá mundo",
                 error: Optional[Exception] = None, delay: float = 0.0):
        super().__init__(language="pt-BR", sample_rate=16000)
        self.transcript = transcript
        self.error = error
        self.delay = delay
        self.received: List[Tuple[Optional[str], bytes]] = []
        self.cleaned_up = False

    def initialize(self) -> bool:
        return True

    async def recognize(self, wav_bytes: bytes, session_id: Optional[str] = None) -> Optional[TranscriptionResult]:
        if self.delay:
            time.sleep(self.delay)
        self.received.append((session_id, wav_bytes))
        self.requests_sent += 1
        if self.error:
            self.requests_failed += 1
            raise self.error
        if self.transcript is None:
            return None
        return TranscriptionResult(
            text=self.transcript,
            confidence=0.9,
            processing_time=self.delay,
            timestamp=datetime.now(),
            service="fake",
            language=self.language,
            session_id=session_id,
        )

    def cleanup(self) -> None:
        self.cleaned_up = True


@pytest.fixture
def backend_factory():
    """Build FakeBackend instances with custom outcomes."""
    return FakeBackend


@pytest.fixture
def fake_backend():
    """Backend that always returns a transcript."""
    return FakeBackend()


@pytest.fixture
def failing_backend():
    """Backend whose requests always fail."""
    return FakeBackend(error=TransportFailure("PERMISSION_DENIED: API key not valid", status=403))


class NotificationRecorder:
    """Subscribes to every notification topic and records the order of arrival."""

    def __init__(self):
        self.events = []
        pub.subscribe(self.on_stopped, TOPIC_SESSION_STOPPED)
        pub.subscribe(self.on_transcript, TOPIC_TRANSCRIPT_READY)
        pub.subscribe(self.on_failure, TOPIC_TRANSCRIPTION_FAILED)

    def on_stopped(self, event):
        self.events.append(("stopped", event))

    def on_transcript(self, transcript):
        self.events.append(("transcript", transcript))

    def on_failure(self, error):
        self.events.append(("failed", error))

    def kinds(self):
        return [kind for kind, _ in self.events]

    def wait_for(self, kind: str, timeout: float = 5.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if kind in self.kinds():
                return True
            time.sleep(0.01)
        return False


@pytest.fixture
def notifications():
    """Record everything published on the notification topics."""
    return NotificationRecorder()
