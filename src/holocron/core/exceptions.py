"""Custom exception types shared across the Holocron package."""

from __future__ import annotations

from typing import Optional


class HolocronError(Exception):
    """Base class for every failure raised by an interaction stage."""


class CaptureError(HolocronError):
    """Raised when the microphone stage cannot start or finalize."""


class CaptureUnavailable(CaptureError):
    """Raised when the capability probe reported capture as unusable."""


class PermissionDenied(CaptureError):
    """Raised when the platform refuses microphone access."""


class CaptureInProgress(CaptureError):
    """Raised when a second recording is requested while one is open."""


class CaptureStartError(CaptureError):
    """Raised when configuring or acquiring the capture device fails."""


class NoRecordingProduced(CaptureError):
    """Raised when a stopped recording yields no source URI."""


class IncompleteRecording(CaptureError):
    """Raised when the device does not report the recording as finished."""


class ConfigurationError(HolocronError):
    """Raised when required settings (like the service endpoint) are missing."""


class TransportError(HolocronError):
    """Raised when the assistant service call fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PlaybackError(HolocronError):
    """Raised when a reply cannot be prepared for playback."""


class PlaybackPreparationError(PlaybackError):
    """Raised when loading, configuring or starting a playback session fails."""


class DecodeError(PlaybackError):
    """Raised when reply bytes cannot be converted into a playable reference."""


__all__ = [
    "CaptureError",
    "CaptureInProgress",
    "CaptureStartError",
    "CaptureUnavailable",
    "ConfigurationError",
    "DecodeError",
    "HolocronError",
    "IncompleteRecording",
    "NoRecordingProduced",
    "PermissionDenied",
    "PlaybackError",
    "PlaybackPreparationError",
    "TransportError",
]
