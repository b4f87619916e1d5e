"""Platform implementations selected once at startup."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from holocron.config import CACHE_DIRECTORY, PLATFORM_CHOICES, PLATFORM_NAME

from .base import AudioPlatform, UploadPart
from .native import NativePlatform
from .web import BlobRegistry, WebPlatform


def select_platform(
    name: Optional[str] = None, *, cache_dir: Path | str = CACHE_DIRECTORY
) -> AudioPlatform:
    """Return the platform implementation for ``name`` (defaults to HOLOCRON_PLATFORM)."""

    selected = (name or PLATFORM_NAME).strip().lower()
    if selected == "web":
        return WebPlatform()
    if selected == "native":
        return NativePlatform(cache_dir)
    raise ValueError(f"Unknown platform '{name}'. Choose from: {', '.join(PLATFORM_CHOICES)}.")


__all__ = [
    "AudioPlatform",
    "BlobRegistry",
    "NativePlatform",
    "UploadPart",
    "WebPlatform",
    "select_platform",
]
