"""
Lazy loaders for ``sounddevice`` and ``soundfile``.

Both wrap native libraries (PortAudio, libsndfile). Importing them lazily lets
the capability probe report a host without audio support as "capture
unavailable" instead of failing at import time.
"""

from __future__ import annotations

from types import ModuleType

_SOUNDDEVICE: ModuleType | None = None
_SOUNDFILE: ModuleType | None = None


def load_sounddevice() -> ModuleType:
    """Return the ``sounddevice`` module, raising RuntimeError when PortAudio is missing."""

    global _SOUNDDEVICE
    if _SOUNDDEVICE is None:
        try:
            import sounddevice
        except (ImportError, OSError) as exc:
            raise RuntimeError(
                "sounddevice could not be loaded. Install PortAudio "
                "(e.g. `apt install libportaudio2`) to enable audio capture."
            ) from exc
        _SOUNDDEVICE = sounddevice
    return _SOUNDDEVICE


def load_soundfile() -> ModuleType:
    """Return the ``soundfile`` module, raising RuntimeError when libsndfile is missing."""

    global _SOUNDFILE
    if _SOUNDFILE is None:
        try:
            import soundfile
        except (ImportError, OSError) as exc:
            raise RuntimeError(
                "soundfile could not be loaded. Install libsndfile to decode assistant replies."
            ) from exc
        _SOUNDFILE = soundfile
    return _SOUNDFILE


__all__ = ["load_sounddevice", "load_soundfile"]
