"""WAV encoding for the recognition payload."""

import io
import logging
import wave
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)

PCM16_MAX = 32767


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Convert normalized float samples to 16-bit PCM, truncating toward zero."""
    data = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    return (data * PCM16_MAX).astype('<i2')


def pcm16_to_float(audio_data: bytes) -> np.ndarray:
    """Convert little-endian 16-bit PCM bytes to normalized float samples."""
    pcm = np.frombuffer(audio_data, dtype='<i2')
    return pcm.astype(np.float32) / PCM16_MAX


def encode_wav(samples: np.ndarray, sample_rate: int = 16000) -> bytes:
    """Wrap float samples in a mono 16-bit PCM WAV container.

    Args:
        samples: Normalized samples in [-1, 1]; values outside are clipped
        sample_rate: Sample rate declared in the header

    Returns:
        Complete WAV file bytes (44-byte header followed by the PCM data)
    """
    pcm = float_to_pcm16(samples)

    stream = io.BytesIO()
    with wave.open(stream, 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())

    wav_bytes = stream.getvalue()
    logger.debug(f"Encoded {pcm.size} samples into {len(wav_bytes)} WAV bytes at {sample_rate}Hz")
    return wav_bytes


def decode_wav(wav_bytes: bytes) -> Tuple[np.ndarray, int]:
    """Read a mono 16-bit WAV container back into PCM samples.

    Returns:
        Tuple of (int16 samples, sample_rate)
    """
    with wave.open(io.BytesIO(wav_bytes), 'rb') as wf:
        if wf.getnchannels() != 1 or wf.getsampwidth() != 2:
            raise ValueError(f"Expected mono 16-bit WAV, got {wf.getnchannels()} channels, "
                             f"{wf.getsampwidth() * 8} bits")
        sample_rate = wf.getframerate()
        frames = wf.readframes(wf.getnframes())

    return np.frombuffer(frames, dtype='<i2'), sample_rate
