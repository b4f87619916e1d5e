"""Capability interface for the microphone/speaker driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True, slots=True)
class AudioMode:
    """Session-wide routing options applied before recording or playing."""

    allows_recording: bool = False
    plays_in_silent_mode: bool = True
    stays_active_in_background: bool = True
    duck_others: bool = True
    play_through_earpiece: bool = False


RECORDING_MODE = AudioMode(allows_recording=True)
PLAYBACK_MODE = AudioMode(allows_recording=False)


@dataclass(frozen=True, slots=True)
class RecordingStatus:
    """What the device reports once a recording has been stopped."""

    is_done_recording: bool
    duration_ms: int = 0
    frame_count: int = 0


class CaptureHandle(Protocol):
    async def stop(self) -> tuple[Optional[str], RecordingStatus]: ...

    async def release(self) -> None: ...


class PlaybackHandle(Protocol):
    async def start(self) -> None: ...

    async def release(self) -> None: ...


class AudioDevice(Protocol):
    """Subset of the device API the session managers rely on."""

    async def request_permission(self) -> bool: ...

    async def configure_mode(self, mode: AudioMode) -> None: ...

    async def acquire_capture(self) -> CaptureHandle: ...

    async def acquire_playback(self, uri: str) -> PlaybackHandle: ...


__all__ = [
    "AudioDevice",
    "AudioMode",
    "CaptureHandle",
    "PLAYBACK_MODE",
    "PlaybackHandle",
    "RECORDING_MODE",
    "RecordingStatus",
]
