"""Microphone capture writing into a fixed-length clip buffer."""

import logging
from datetime import datetime
from threading import Thread, Event
from typing import Optional

import numpy as np
import pyaudio

from ..models.audio import AudioStats
from .buffer import CaptureBuffer
from .wav import pcm16_to_float

logger = logging.getLogger(__name__)


class MicrophoneCapture:
    """Mono microphone capture running in a background thread."""

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize microphone capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz to match the recognition payload)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self.join_timeout = 2.0

        self.buffer: Optional[CaptureBuffer] = None

        self.start_time: Optional[datetime] = None
        self.total_chunks = 0

    def start(self, loop: bool = True, length_seconds: float = 10.0) -> CaptureBuffer:
        """Start capturing into a fresh buffer.

        Args:
            loop: Overwrite the oldest audio once the buffer is full
            length_seconds: Buffer length in seconds

        Returns:
            The buffer the capture thread writes into

        Raises:
            RuntimeError: If the thread of a previous run is still blocked on the device
        """
        if self.is_recording:
            logger.warning("Capture already running; keeping the current buffer")
            return self.buffer

        previous = self.recording_thread
        if previous and previous.is_alive():
            logger.warning("Previous capture thread still running, waiting for it to exit")
            previous.join(timeout=self.join_timeout)
            if previous.is_alive():
                raise RuntimeError("Previous capture thread is still reading from the device")

        logger.info(f"Starting microphone capture (loop={loop}, length={length_seconds}s)")
        # Each run owns its buffer and stop event so a late thread cannot touch the next run
        self.buffer = CaptureBuffer(length_seconds, sample_rate=self.sample_rate, loop=loop)
        self.stop_event = Event()
        self.start_time = datetime.now()
        self.total_chunks = 0

        self.recording_thread = Thread(target=self._capture_loop,
                                       args=(self.buffer, self.stop_event), daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()
        return self.buffer

    def stop(self) -> None:
        """Stop capturing and clean up resources."""
        if not self.is_recording:
            logger.warning("stop() called but capture is not running")
            return

        logger.info("Stopping microphone capture")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=self.join_timeout)
            if self.recording_thread.is_alive():
                logger.warning(f"Capture thread still alive after {self.join_timeout}s join")

        self.is_recording = False
        logger.info(f"Capture stopped. Total chunks: {self.total_chunks}")

    def get_position(self) -> int:
        """Current write position in the capture buffer."""
        return self.buffer.position if self.buffer else 0

    def read_latest(self, count: int) -> Optional[np.ndarray]:
        """Read the most recent samples without blocking."""
        if not self.buffer:
            return None
        return self.buffer.read_latest(count)

    def __open_audio_stream(self, audio: pyaudio.PyAudio):
        stream = audio.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __read_audio_chunk(self, stream) -> np.ndarray:
        audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1

        samples = pcm16_to_float(audio_chunk)
        if self.channels > 1:
            # Keep the first channel only; the recognizer expects mono
            samples = samples[::self.channels]
        return samples

    def _capture_loop(self, buffer: CaptureBuffer, stop_event: Event) -> None:
        """Internal method: capture loop in background thread."""
        audio = None
        stream = None
        try:
            audio = pyaudio.PyAudio()
            stream = self.__open_audio_stream(audio)
            while not stop_event.is_set():
                buffer.write(self.__read_audio_chunk(stream))
                if buffer.is_full:
                    logger.info("Capture buffer full, ending capture")
                    break
        except Exception as e:
            logger.error(f"Error in capture thread: {e}", exc_info=True)
        finally:
            # Release the device even if the loop failed
            if stream:
                stream.stop_stream()
                stream.close()
            if audio:
                audio.terminate()
            if stop_event is self.stop_event:
                self.is_recording = False

    def get_recording_stats(self) -> AudioStats:
        """Snapshot of capture progress for logging and the CLI."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            position=self.get_position(),
            capacity=self.buffer.capacity if self.buffer else 0,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
        )

    def __del__(self):
        """Stop the capture thread if the object is collected mid-recording."""
        if self.is_recording:
            self.stop()
