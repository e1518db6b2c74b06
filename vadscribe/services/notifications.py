"""Notification sink publishing session and transcript events via pubsub."""

import logging
from pubsub import pub

from ..models.events import SessionEvent

logger = logging.getLogger(__name__)

TOPIC_SESSION_STOPPED = "session_stopped"
TOPIC_TRANSCRIPT_READY = "transcript_ready"
TOPIC_TRANSCRIPTION_FAILED = "transcription_failed"


class NotificationPublisher:
    """Publishes session lifecycle and transcription outcomes using pubsub.pub.

    Listeners subscribe with ``pub.subscribe(listener, topic)`` and receive:

    - ``session_stopped``: ``event`` (SessionEvent)
    - ``transcript_ready``: ``transcript`` (str)
    - ``transcription_failed``: ``error`` (str)
    """

    def __init__(self,
                 stopped_topic: str = TOPIC_SESSION_STOPPED,
                 transcript_topic: str = TOPIC_TRANSCRIPT_READY,
                 failure_topic: str = TOPIC_TRANSCRIPTION_FAILED):
        self.stopped_topic = stopped_topic
        self.transcript_topic = transcript_topic
        self.failure_topic = failure_topic
        logger.info(f"NotificationPublisher initialized with topics: "
                    f"{stopped_topic}, {transcript_topic}, {failure_topic}")

    def publish_stopped(self, event: SessionEvent) -> None:
        """Publish that a session has stopped recording."""
        pub.sendMessage(self.stopped_topic, event=event)
        logger.debug(f"Published session stopped: {event.session_id}")

    def publish_transcript(self, transcript: str) -> None:
        """Publish a recognized transcript."""
        pub.sendMessage(self.transcript_topic, transcript=transcript)
        logger.debug(f"Published transcript ({len(transcript)} chars)")

    def publish_failure(self, error: str) -> None:
        """Publish a recognition failure message."""
        pub.sendMessage(self.failure_topic, error=error)
        logger.debug(f"Published transcription failure: {error}")
