"""Audio buffering, encoding and silence detection.

The PyAudio-backed ``MicrophoneCapture`` lives in ``vadscribe.audio.capture``
and is imported from there directly.
"""

from .buffer import CaptureBuffer
from .silence import SilenceDetector, average_volume
from .wav import encode_wav, decode_wav

__all__ = [
    'CaptureBuffer',
    'SilenceDetector',
    'average_volume',
    'encode_wav',
    'decode_wav',
]
