"""Exceptions raised by vadscribe."""

from typing import Optional


class VadScribeError(Exception):
    """Base class for vadscribe errors."""


class AlreadyRecording(VadScribeError):
    """Raised when a session is started while another one is recording."""


class NoActiveSession(VadScribeError):
    """Raised when tick() or stop() is called without a recording session."""


class TransportFailure(VadScribeError):
    """Raised when the recognition request fails or returns a non-success status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (status={self.status})"
        return self.message
