"""Audio device capability and its PortAudio implementation, imported lazily."""

from __future__ import annotations

from typing import TYPE_CHECKING

__all__ = ["AudioMode", "RecordingStatus", "SoundDeviceAudio"]


def __getattr__(name: str):
    if name in ("AudioMode", "RecordingStatus"):
        from . import device as _device

        return getattr(_device, name)
    if name == "SoundDeviceAudio":
        from .sounddevice_backend import SoundDeviceAudio as _SoundDeviceAudio

        return _SoundDeviceAudio
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if TYPE_CHECKING:  # pragma: no cover - import-time only
    from .device import AudioMode as AudioMode
    from .device import RecordingStatus as RecordingStatus
    from .sounddevice_backend import SoundDeviceAudio as SoundDeviceAudio
