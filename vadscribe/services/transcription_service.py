"""Background transcription of finalized session audio."""

import asyncio
import logging
import queue
import threading
import time
from typing import Any, Dict, NamedTuple, Optional

import numpy as np

from ..audio.wav import encode_wav
from ..errors import TransportFailure
from ..models.session import RecordingSession
from ..transcription.base import AbstractRecognitionBackend
from .notifications import NotificationPublisher

logger = logging.getLogger(__name__)


class TranscriptionTask(NamedTuple):
    """A finalized recording waiting to be recognized."""
    session_id: str
    wav_bytes: bytes
    submitted_at: float


class TranscriptionService:
    """Runs recognition requests on a worker thread so the tick loop never blocks.

    Outcomes are reported through the notification sink: a transcript on
    success, nothing for an empty result, an error message on failure.
    Requests are never retried and stopping a session does not cancel one.
    """

    def __init__(self,
                 backend: AbstractRecognitionBackend,
                 publisher: Optional[NotificationPublisher] = None):
        """Initialize transcription service.

        Args:
            backend: Recognition backend, already initialized
            publisher: Notification sink for transcripts and failures
        """
        self.backend = backend
        self.publisher = publisher or NotificationPublisher()

        self.task_queue: "queue.Queue[Optional[TranscriptionTask]]" = queue.Queue()
        self.shutdown_event = threading.Event()

        self.completed = 0
        self.failed = 0
        self.empty = 0

        self.worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self.worker_thread.name = "transcription_worker"
        self.worker_thread.start()
        logger.info(f"TranscriptionService started with {backend.__class__.__name__}")

    def submit(self, session_id: str, wav_bytes: bytes) -> None:
        """Queue a WAV payload for recognition and return immediately."""
        if self.shutdown_event.is_set():
            logger.warning(f"Transcription service is shut down; dropping session {session_id}")
            return
        logger.debug(f"Queueing transcription for session {session_id} ({len(wav_bytes)} bytes)")
        self.task_queue.put(TranscriptionTask(session_id, wav_bytes, time.time()))

    def submit_samples(self, session: RecordingSession, samples: np.ndarray) -> None:
        """Encode finalized session samples and queue them for recognition."""
        if samples.size == 0:
            logger.warning(f"Session {session.session_id} captured no audio; nothing to transcribe")
            return
        wav_bytes = encode_wav(samples, self.backend.sample_rate)
        self.submit(session.session_id, wav_bytes)

    def _worker_loop(self) -> None:
        """Worker thread main loop with its own asyncio event loop."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            while True:
                task = self.task_queue.get()
                if task is None:
                    logger.debug("Transcription worker received sentinel, exiting.")
                    self.task_queue.task_done()
                    break
                try:
                    loop.run_until_complete(self._transcribe(task))
                except Exception as e:
                    self.failed += 1
                    logger.error(f"Unhandled exception transcribing session {task.session_id}: {e}", exc_info=True)
                    self.publisher.publish_failure(str(e))
                finally:
                    self.task_queue.task_done()
        finally:
            loop.close()
            logger.debug("Transcription worker exiting and closing its event loop.")

    async def _transcribe(self, task: TranscriptionTask) -> None:
        logger.info(f"Transcribing session {task.session_id} ({len(task.wav_bytes)} bytes)")
        try:
            result = await self.backend.recognize(task.wav_bytes, session_id=task.session_id)
        except TransportFailure as e:
            self.failed += 1
            logger.error(f"STT Error for session {task.session_id}: {e}")
            self.publisher.publish_failure(str(e))
            return

        if result is None:
            self.empty += 1
            logger.debug(f"No transcript for session {task.session_id}")
            return

        self.completed += 1
        latency = time.time() - task.submitted_at
        logger.info(f"Transcript for session {task.session_id}: '{result.text}' "
                    f"({result.confidence:.1%}, {latency:.2f}s after submit)")
        self.publisher.publish_transcript(result.text)

    def get_stats(self) -> Dict[str, Any]:
        """Outcome counters merged with the backend's request statistics."""
        stats = {
            "completed": self.completed,
            "failed": self.failed,
            "empty": self.empty,
            "pending": self.get_pending_task_count(),
        }
        stats.update(self.backend.get_stats())
        return stats

    def get_pending_task_count(self) -> int:
        """Get the number of queued transcription tasks."""
        return self.task_queue.qsize()

    def wait_idle(self, timeout: float = 30.0) -> bool:
        """Wait until every queued task has been processed.

        Returns:
            True if the queue drained within ``timeout``
        """
        deadline = time.time() + timeout
        while time.time() < deadline:
            if self.task_queue.unfinished_tasks == 0:
                return True
            time.sleep(0.05)
        return self.task_queue.unfinished_tasks == 0

    def shutdown(self, timeout: float = 30.0) -> bool:
        """Drain the queue, stop the worker and clean up the backend."""
        logger.info("Shutting down transcription service...")
        self.shutdown_event.set()

        drained = self.wait_idle(timeout)
        if not drained:
            logger.warning(f"Timeout reached while waiting for queue. "
                           f"{self.task_queue.unfinished_tasks} tasks remain.")

        self.task_queue.put(None)
        self.worker_thread.join(2.0)
        if self.worker_thread.is_alive():
            logger.warning("Transcription worker did not terminate cleanly.")

        try:
            self.backend.cleanup()
        except Exception as e:
            logger.warning(f"Error cleaning up backend: {e}")

        logger.info(f"Transcription service shutdown complete: {self.get_stats()}")
        return drained and not self.worker_thread.is_alive()
