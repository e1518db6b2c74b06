"""Recording session state machine driven by an external tick."""

import logging
import random
import string
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Protocol

import numpy as np

from ..audio.buffer import CaptureBuffer
from ..audio.silence import SilenceDetector
from ..errors import AlreadyRecording, NoActiveSession
from ..models.events import SessionEvent
from ..models.session import RecordingSession, SessionState
from ..models.vad import VADConfig, VADDecision
from .notifications import NotificationPublisher

logger = logging.getLogger(__name__)

DEFAULT_LOOP_LENGTH_SECONDS = 10.0
DEFAULT_CLIP_LENGTH_SECONDS = 5.0


class AudioSource(Protocol):
    """Capture collaborator the session manager records from."""

    is_recording: bool

    def start(self, loop: bool = True, length_seconds: float = 10.0) -> CaptureBuffer: ...

    def stop(self) -> None: ...


FinalizedCallback = Callable[[RecordingSession, np.ndarray], None]


class RecordingSessionManager:
    """Owns the idle -> recording -> stopped lifecycle of capture sessions.

    ``tick(dt)`` must be called sequentially by a single driver (game loop,
    timer, CLI loop). Entering Stopped publishes a ``session_stopped`` event
    and then hands the finalized samples to ``on_finalized`` without waiting
    for any transcription.
    """

    def __init__(self,
                 capture: AudioSource,
                 vad_config: Optional[VADConfig] = None,
                 on_finalized: Optional[FinalizedCallback] = None,
                 publisher: Optional[NotificationPublisher] = None,
                 loop_length_seconds: float = DEFAULT_LOOP_LENGTH_SECONDS,
                 clip_length_seconds: float = DEFAULT_CLIP_LENGTH_SECONDS):
        """Initialize session manager.

        Args:
            capture: Audio source providing the session buffers
            vad_config: Silence detection settings
            on_finalized: Called with the stopped session and its samples
            publisher: Notification sink for session events
            loop_length_seconds: Default buffer length for continuous sessions
            clip_length_seconds: Default buffer length for manual sessions
        """
        self.capture = capture
        self.vad_config = vad_config or VADConfig()
        self.detector = SilenceDetector(self.vad_config)
        self.on_finalized = on_finalized
        self.publisher = publisher or NotificationPublisher()
        self.loop_length_seconds = loop_length_seconds
        self.clip_length_seconds = clip_length_seconds

        self.current_session: Optional[RecordingSession] = None

    @property
    def state(self) -> SessionState:
        if self.current_session is None:
            return SessionState.IDLE
        return self.current_session.state

    @property
    def is_recording(self) -> bool:
        return self.state == SessionState.RECORDING

    @staticmethod
    def _new_session_id() -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        return f"{timestamp}_{random_suffix}"

    def start(self, continuous: bool = True, max_duration: Optional[float] = None) -> RecordingSession:
        """Start a new capture session.

        Args:
            continuous: Stop automatically on sustained silence
            max_duration: Capture buffer length in seconds; loops in continuous mode

        Returns:
            The new recording session

        Raises:
            AlreadyRecording: If a session is currently recording
        """
        if self.is_recording:
            raise AlreadyRecording(
                f"Session {self.current_session.session_id} is already recording")

        if max_duration is None:
            max_duration = self.loop_length_seconds if continuous else self.clip_length_seconds
        if max_duration <= 0:
            raise ValueError(f"max_duration must be positive, got {max_duration}")

        buffer = self.capture.start(loop=continuous, length_seconds=max_duration)

        self.detector.reset()
        self.current_session = RecordingSession(
            session_id=self._new_session_id(),
            audio_buffer=buffer,
            continuous=continuous,
            max_duration=max_duration,
            started_at=datetime.now(),
        )

        mode = "continuous" if continuous else "manual"
        logger.info(f"Started {mode} session {self.current_session.session_id} "
                    f"(buffer={max_duration}s)")
        return self.current_session

    def tick(self, dt: float) -> VADDecision:
        """Advance the active session by ``dt`` seconds.

        Raises:
            NoActiveSession: If no session is recording
        """
        if not self.is_recording:
            raise NoActiveSession("tick() called without a recording session")
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        session = self.current_session
        if not self.capture.is_recording:
            return VADDecision.CONTINUE

        session.elapsed_duration += dt
        if not session.continuous:
            return VADDecision.CONTINUE

        window = session.audio_buffer.read_latest(self.vad_config.window_size)
        decision = self.detector.evaluate(window, dt, session.elapsed_duration)
        if decision is VADDecision.TRIGGER_STOP:
            logger.info("Silence detected. Stopping...")
            self._finalize("silence")
        return decision

    def stop(self) -> RecordingSession:
        """Stop the active session regardless of detector state.

        Raises:
            NoActiveSession: If no session is recording
        """
        if not self.is_recording:
            raise NoActiveSession("stop() called without a recording session")
        return self._finalize("manual")

    def _finalize(self, reason: str) -> RecordingSession:
        session = self.current_session
        session.state = SessionState.STOPPED
        session.stopped_at = datetime.now()
        session.stop_reason = reason

        if self.capture.is_recording:
            self.capture.stop()

        samples = session.audio_buffer.snapshot()
        logger.info(f"Session {session.session_id} stopped ({reason}) after "
                    f"{session.elapsed_duration:.2f}s, {samples.size} samples")

        try:
            self.publisher.publish_stopped(SessionEvent(
                session_id=session.session_id,
                event_type="stopped",
                metadata={
                    "elapsed_duration": session.elapsed_duration,
                    "stop_reason": reason,
                    "sample_count": int(samples.size),
                },
            ))
        except Exception as e:
            # A failing listener must not cost the session its audio
            logger.error(f"session_stopped listener failed for {session.session_id}: {e}", exc_info=True)

        if self.on_finalized:
            self.on_finalized(session, samples)
        return session

    def get_status(self) -> Dict[str, Any]:
        """Get a snapshot of the manager state."""
        session = self.current_session
        return {
            "state": self.state.value,
            "session_id": session.session_id if session else None,
            "elapsed_duration": session.elapsed_duration if session else 0.0,
            "continuous": session.continuous if session else None,
            "silence_timer": self.detector.silence_timer,
            "skipped_windows": self.detector.skipped_windows,
            "stop_reason": session.stop_reason if session else None,
        }
