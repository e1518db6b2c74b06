"""vadscribe - silence-triggered speech capture and transcription."""

__version__ = "0.1.0"
