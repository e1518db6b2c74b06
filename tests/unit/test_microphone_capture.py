"""Unit tests for MicrophoneCapture class."""

import pytest
import threading
import time
from unittest.mock import patch
import numpy as np

from vadscribe.audio.buffer import CaptureBuffer
from vadscribe.audio.capture import MicrophoneCapture
from vadscribe.models.audio import AudioStats


def wait_until(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.mark.unit
class TestMicrophoneCapture:
    """Test cases for MicrophoneCapture class."""

    def test_initialization(self):
        """Test MicrophoneCapture initialization with default parameters."""
        capture = MicrophoneCapture()

        assert capture.sample_rate == 16000
        assert capture.chunk_size == 1024
        assert capture.channels == 1
        assert capture.is_recording is False
        assert capture.total_chunks == 0
        assert capture.buffer is None

    def test_start_returns_fresh_buffer(self, mock_pyaudio):
        capture = MicrophoneCapture()

        with patch.object(capture, '_capture_loop') as mock_record:
            buffer = capture.start(loop=True, length_seconds=2.0)

            assert isinstance(buffer, CaptureBuffer)
            assert buffer.capacity == 32000
            assert buffer.loop is True
            assert capture.is_recording is True
            assert capture.recording_thread.daemon is True
            assert wait_until(lambda: mock_record.called)

            capture.stop()

    def test_start_already_recording(self, mock_pyaudio):
        capture = MicrophoneCapture()

        with patch.object(capture, '_capture_loop') as mock_record:
            first = capture.start()
            wait_until(lambda: mock_record.called)
            second = capture.start()

            assert second is first
            assert mock_record.call_count == 1
            capture.stop()

    def test_stop_not_recording(self):
        capture = MicrophoneCapture()
        capture.stop()
        assert capture.is_recording is False

    def test_read_latest_without_buffer(self):
        capture = MicrophoneCapture()
        assert capture.read_latest(256) is None
        assert capture.get_position() == 0

    def test_records_into_buffer(self, mock_pyaudio, sample_audio_chunk):
        mock_pyaudio['stream'].read.return_value = sample_audio_chunk
        capture = MicrophoneCapture()

        buffer = capture.start(loop=True, length_seconds=1.0)
        assert wait_until(lambda: buffer.total_written >= 2048)
        capture.stop()

        assert capture.is_recording is False
        assert capture.total_chunks >= 2
        window = capture.read_latest(1024)
        assert window is not None
        assert np.abs(window).max() > 0.9
        mock_pyaudio['stream'].stop_stream.assert_called_once()
        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()

    def test_one_shot_capture_ends_when_full(self, mock_pyaudio):
        capture = MicrophoneCapture()

        buffer = capture.start(loop=False, length_seconds=0.1)

        assert wait_until(lambda: not capture.is_recording)
        assert buffer.is_full
        assert buffer.total_written == 1600

    def test_stream_error_stops_capture(self, mock_pyaudio):
        mock_pyaudio['stream'].read.side_effect = OSError("Input overflowed")
        capture = MicrophoneCapture()

        capture.start()

        assert wait_until(lambda: not capture.is_recording)
        mock_pyaudio['stream'].close.assert_called_once()

    def test_hung_thread_never_writes_into_next_buffer(self, mock_pyaudio):
        """A thread stuck in stream.read after stop() must not feed the next run."""
        release = threading.Event()
        reads = []

        def blocking_read(*args, **kwargs):
            reads.append(1)
            release.wait(5.0)
            return b'\x10\x00' * 1024

        mock_pyaudio['stream'].read.side_effect = blocking_read
        capture = MicrophoneCapture()
        capture.join_timeout = 0.1

        first = capture.start(loop=True, length_seconds=1.0)
        assert wait_until(lambda: reads)
        hung_thread = capture.recording_thread
        capture.stop()
        assert hung_thread.is_alive()

        # Restart is refused while the old thread is still on the device
        with pytest.raises(RuntimeError):
            capture.start(loop=True, length_seconds=1.0)
        assert capture.buffer is first
        assert capture.is_recording is False

        release.set()
        assert wait_until(lambda: not hung_thread.is_alive())
        written_by_first_run = first.total_written

        mock_pyaudio['stream'].read.side_effect = None
        mock_pyaudio['stream'].read.return_value = b'\x00' * 2048
        second = capture.start(loop=True, length_seconds=1.0)
        assert second is not first
        assert wait_until(lambda: second.total_written >= 1024)

        live = [t for t in threading.enumerate()
                if t.name == "AudioCaptureThread" and t.is_alive()]
        assert live == [capture.recording_thread]
        assert first.total_written == written_by_first_run
        capture.stop()

    def test_late_thread_exit_keeps_new_run_recording(self, mock_pyaudio):
        capture = MicrophoneCapture()

        with patch.object(capture, '_capture_loop'):
            stale_buffer = capture.start()
            stale_event = capture.stop_event
            capture.stop()
            current_buffer = capture.start()

        # The previous run's loop finishing must not flip the current run's state
        assert capture.stop_event is not stale_event
        MicrophoneCapture._capture_loop(capture, stale_buffer, stale_event)
        assert capture.is_recording is True
        assert capture.buffer is current_buffer
        assert current_buffer.total_written == 0
        capture.stop()

    def test_get_recording_stats(self, mock_pyaudio):
        capture = MicrophoneCapture()
        stats = capture.get_recording_stats()

        assert isinstance(stats, AudioStats)
        assert stats.is_recording is False
        assert stats.duration_seconds == 0.0
        assert stats.position == 0
        assert stats.capacity == 0
        assert stats.sample_rate == 16000
        assert stats.chunk_size == 1024
        assert stats.total_chunks == 0

    def test_get_recording_stats_while_recording(self, mock_pyaudio):
        capture = MicrophoneCapture()

        with patch.object(capture, '_capture_loop'):
            capture.start(length_seconds=1.0)
            time.sleep(0.05)

            stats = capture.get_recording_stats()
            assert stats.is_recording is True
            assert stats.duration_seconds > 0
            assert stats.capacity == 16000

            capture.stop()

    def test_destructor_cleanup(self):
        capture = MicrophoneCapture()

        with patch.object(MicrophoneCapture, 'stop') as mock_stop:
            capture.is_recording = True
            capture.__del__()
            mock_stop.assert_called_once()
            capture.is_recording = False
