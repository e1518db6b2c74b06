"""Command-line entry point for vadscribe."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel

from vadscribe import __version__
from vadscribe.audio.capture import MicrophoneCapture
from vadscribe.errors import VadScribeError
from vadscribe.models.events import SessionEvent
from vadscribe.services.notifications import (
    NotificationPublisher,
    TOPIC_SESSION_STOPPED,
    TOPIC_TRANSCRIPT_READY,
    TOPIC_TRANSCRIPTION_FAILED,
)
from vadscribe.services.session_manager import RecordingSessionManager
from vadscribe.services.transcription_service import TranscriptionService
from vadscribe.transcription import AbstractRecognitionBackend, GoogleSpeechBackend, GoogleRestSpeechBackend

from .config import VadScribeConfig

logger = logging.getLogger(__name__)


def create_backend(config: VadScribeConfig) -> AbstractRecognitionBackend:
    """Create and initialize the configured recognition backend."""
    backend_name = config.get('google_cloud.backend', 'client')
    language = config.get_language()
    sample_rate = config.get_sample_rate()
    timeout = float(config.get('google_cloud.timeout_seconds', 10.0))
    api_key = config.get_api_key()

    logger.info(f"Initializing {backend_name} recognition backend (language={language})")
    if backend_name == 'rest':
        backend = GoogleRestSpeechBackend(
            api_key=api_key,
            sample_rate=sample_rate,
            language=language,
            timeout=timeout,
        )
    elif backend_name == 'client':
        backend = GoogleSpeechBackend(
            api_key=api_key,
            credentials_path=config.get_google_credentials_path(),
            sample_rate=sample_rate,
            language=language,
            timeout=timeout,
        )
    else:
        raise ValueError(f"Unknown google_cloud.backend: {backend_name!r} (expected 'client' or 'rest')")

    if not backend.initialize():
        raise RuntimeError(f"{backend.__class__.__name__} failed to initialize")
    return backend


class VadScribeApp:
    """Wires capture, session manager and transcription together and drives the tick loop."""

    def __init__(self, config: VadScribeConfig, console: Optional[Console] = None):
        self.config = config
        self.console = console or Console()
        self.transcripts = []
        self.errors = []
        self.should_exit = False

    def init(self, backend: Optional[AbstractRecognitionBackend] = None, capture=None) -> None:
        logger.info("Initializing services...")

        sample_rate = self.config.get_sample_rate()
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 1)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        self.publisher = NotificationPublisher()
        self.capture = capture or MicrophoneCapture(
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels,
        )
        self.transcription_service = TranscriptionService(
            backend or create_backend(self.config),
            self.publisher,
        )
        self.session_manager = RecordingSessionManager(
            capture=self.capture,
            vad_config=self.config.get_vad_config(),
            on_finalized=self.transcription_service.submit_samples,
            publisher=self.publisher,
            loop_length_seconds=float(self.config.get('audio.loop_length_seconds', 10.0)),
            clip_length_seconds=float(self.config.get('audio.clip_length_seconds', 5.0)),
        )

        pub.subscribe(self._on_stopped, TOPIC_SESSION_STOPPED)
        pub.subscribe(self._on_transcript, TOPIC_TRANSCRIPT_READY)
        pub.subscribe(self._on_failure, TOPIC_TRANSCRIPTION_FAILED)

    def _on_stopped(self, event: SessionEvent) -> None:
        reason = event.metadata.get("stop_reason", "")
        self.console.print(f"[yellow]Recording stopped ({reason}). Transcribing...[/yellow]")

    def _on_transcript(self, transcript: str) -> None:
        self.transcripts.append(transcript)
        self.console.print(Panel(transcript, title="Transcript", border_style="green"))

    def _on_failure(self, error: str) -> None:
        self.errors.append(error)
        self.console.print(f"[red]STT Error: {error}[/red]")

    def run(self, manual: bool = False, duration: float = 5.0) -> None:
        """Record one session and wait for its transcript.

        Args:
            manual: Record for ``duration`` seconds instead of stopping on silence
            duration: Manual recording length in seconds
        """
        tick_interval = float(self.config.get('session.tick_interval_seconds', 0.02))
        max_wait = float(self.config.get('session.max_wait_seconds', 30.0))

        try:
            if manual:
                self.session_manager.start(continuous=False, max_duration=duration)
                self.console.print(f"[cyan]Recording for {duration}s...[/cyan]")
            else:
                self.session_manager.start(continuous=True)
                self.console.print("[cyan]Listening... (stops after silence)[/cyan]")

            started = last = time.monotonic()
            while self.session_manager.is_recording and not self.should_exit:
                time.sleep(tick_interval)
                now = time.monotonic()
                self.session_manager.tick(now - last)
                last = now
                if not self.session_manager.is_recording:
                    break

                session = self.session_manager.current_session
                if not self.capture.is_recording:
                    # Manual clips end here when the buffer fills; a looping capture only on device failure
                    log = logger.info if manual else logger.warning
                    log(f"Capture ended during session {session.session_id}, stopping")
                    self.session_manager.stop()
                elif manual and session.elapsed_duration >= duration:
                    self.session_manager.stop()
                elif now - started > max_wait:
                    logger.warning(f"No end of speech after {max_wait}s, stopping")
                    self.session_manager.stop()

            if self.session_manager.is_recording:
                self.session_manager.stop()

            if not self.transcription_service.wait_idle(max_wait):
                logger.warning("Transcription did not finish in time")
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self.session_manager.is_recording:
            self.session_manager.stop()
        self.transcription_service.shutdown(timeout=5.0)
        for listener, topic in ((self._on_stopped, TOPIC_SESSION_STOPPED),
                                (self._on_transcript, TOPIC_TRANSCRIPT_READY),
                                (self._on_failure, TOPIC_TRANSCRIPTION_FAILED)):
            if pub.isSubscribed(listener, topic):
                pub.unsubscribe(listener, topic)


FILE_LOG_FORMAT = '%(asctime)s %(levelname)-8s %(threadName)s %(name)s:%(lineno)d - %(message)s'
CONSOLE_LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'
NOISY_LOGGERS = ('google', 'grpc', 'urllib3', 'aiohttp', 'pubsub')


def setup_logging(config: VadScribeConfig, level: str = "INFO") -> None:
    """Route logs to the configured file (everything) and stderr (warnings only)."""
    log_file = Path(config.get('logging.file_path', 'logs/vadscribe.log'))
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    handlers = [file_handler]

    # Console stays quiet so transcripts printed by rich are readable
    if config.get('logging.console_output', True):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
        handlers.append(console_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root.addHandler(handler)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))

    logger.info(f"vadscribe {__version__} logging to {log_file} at {level.upper()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="vadscribe - record until you stop talking, then transcribe",
    )
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to configuration YAML file"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )
    parser.add_argument(
        "--manual",
        action="store_true",
        help="Record for a fixed duration instead of stopping on silence"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=5.0,
        help="Recording length in seconds for manual mode (default: 5)"
    )
    parser.add_argument(
        "--language",
        type=str,
        help="Recognition language tag, e.g. en-US (overrides config)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vadscribe v{__version__}"
    )
    return parser


def main() -> None:
    """Main entry point for vadscribe."""
    args = build_parser().parse_args()

    try:
        config = VadScribeConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))
    if args.language:
        config.set('google_cloud.language', args.language)

    app = VadScribeApp(config)
    try:
        app.init()
        app.run(manual=args.manual, duration=args.duration)
    except KeyboardInterrupt:
        app.should_exit = True
        print("\nGoodbye!")
    except (VadScribeError, RuntimeError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        logger.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)

    if app.errors and not app.transcripts:
        sys.exit(2)


if __name__ == "__main__":
    main()
