"""Voice turn orchestration: probe, capture, upload and playback."""

from .capture import CaptureSession, CaptureSessionManager
from .interaction import StatusListener, VoiceInteraction
from .playback import PlaybackSession, PlaybackSessionManager
from .probe import CapabilityProbe, CapabilityState

__all__ = [
    "CapabilityProbe",
    "CapabilityState",
    "CaptureSession",
    "CaptureSessionManager",
    "PlaybackSession",
    "PlaybackSessionManager",
    "StatusListener",
    "VoiceInteraction",
]
