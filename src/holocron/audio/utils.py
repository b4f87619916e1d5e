"""Shared helpers for the audio backend."""

from __future__ import annotations

import io
import wave
from collections.abc import Mapping

import numpy as np

__all__ = ["device_info_dict", "pcm_to_wav"]

PCM16_MAX = 32767


def device_info_dict(info: object) -> dict[str, object]:
    """Return a plain dict from sounddevice info objects for logging/debugging."""
    if isinstance(info, dict):
        return dict(info)
    if isinstance(info, Mapping):
        return dict(info.items())
    if hasattr(info, "__dict__"):
        return dict(vars(info))
    return {}


def pcm_to_wav(pcm: bytes, *, sample_rate: int, channels: int, dtype: str = "int16") -> bytes:
    """Wrap raw interleaved samples in a PCM16 WAV container."""

    samples = np.frombuffer(pcm, dtype=np.dtype(dtype))
    if samples.dtype.kind == "f":
        samples = (np.clip(samples, -1.0, 1.0) * PCM16_MAX).astype(np.int16)
    elif samples.dtype.kind in "iu" and samples.dtype != np.int16:
        samples = _rescale_to_int16(samples)
    elif samples.dtype != np.int16:
        raise ValueError(f"Unsupported sample dtype: {samples.dtype}")

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(samples.tobytes())
    return buffer.getvalue()


def _rescale_to_int16(samples: np.ndarray) -> np.ndarray:
    """Shift integer PCM of any width onto the signed 16-bit range."""

    bits = samples.dtype.itemsize * 8
    wide = samples.astype(np.int64)
    if samples.dtype.kind == "u":
        wide -= 1 << (bits - 1)
    if bits > 16:
        wide >>= bits - 16
    else:
        wide <<= 16 - bits
    return wide.astype(np.int16)
