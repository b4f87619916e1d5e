"""Native platform: recordings and replies are files inside the cache directory."""

from __future__ import annotations

import asyncio
import base64
import binascii
import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

from holocron.audio.device import PLAYBACK_MODE, RECORDING_MODE, AudioMode, RecordingStatus
from holocron.cli.logging_utils import CAPTURE_LOG_LABEL, LOGGER
from holocron.config import (
    CACHE_DIRECTORY,
    RECORDING_FILENAME,
    RECORDING_MIME_TYPE,
    REPLY_FILENAME,
)
from holocron.core.exceptions import (
    DecodeError,
    IncompleteRecording,
    NoRecordingProduced,
    PlaybackPreparationError,
)

from .base import UploadPart

if TYPE_CHECKING:  # pragma: no cover - import-time only
    from holocron.network.talk_client import ReplyPayload


def path_from_uri(uri: str) -> Path:
    """Return the filesystem path behind a ``file://`` URI (plain paths pass through)."""

    parsed = urlparse(uri)
    if parsed.scheme in ("", "file"):
        return Path(url2pathname(parsed.path))
    raise ValueError(f"Unsupported URI scheme for native storage: {uri}")


class CacheDirectory:
    """Fixed-name files under one directory, each write replacing the previous one."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def path_for(self, filename: str) -> Path:
        return self.root / filename

    def write_bytes(self, filename: str, data: bytes) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        target = self.path_for(filename)
        staging = target.with_name(f".{target.name}.partial")
        staging.write_bytes(data)
        os.replace(staging, target)
        return target

    def write_base64(self, filename: str, encoded: str) -> Path:
        """Decode base64 text and persist the binary result."""

        data = base64.b64decode(encoded, validate=True)
        return self.write_bytes(filename, data)

    def contains(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self.root.resolve())
        except ValueError:
            return False
        return True


class NativePlatform:
    """Persists the reply to ``<cache>/response.mp3`` before loading it."""

    name = "native"
    native = True

    def __init__(
        self,
        cache_dir: Path | str = CACHE_DIRECTORY,
        *,
        recording_filename: str = RECORDING_FILENAME,
        recording_mime_type: str = RECORDING_MIME_TYPE,
        reply_filename: str = REPLY_FILENAME,
    ):
        self.cache = CacheDirectory(cache_dir)
        self._recording_filename = recording_filename
        self._recording_mime_type = recording_mime_type
        self._reply_filename = reply_filename

    @property
    def reply_path(self) -> Path:
        return self.cache.path_for(self._reply_filename)

    def capture_mode(self) -> AudioMode:
        return RECORDING_MODE

    def playback_mode(self) -> Optional[AudioMode]:
        return PLAYBACK_MODE

    def check_recording(self, status: RecordingStatus) -> None:
        LOGGER.verbose(CAPTURE_LOG_LABEL, f"Recording status: {status}")
        if not status.is_done_recording:
            raise IncompleteRecording("Recording not completed properly")

    async def store_recording(self, data: bytes) -> str:
        path = await asyncio.to_thread(self.cache.write_bytes, self._recording_filename, data)
        return path.resolve().as_uri()

    async def upload_part(self, uri: str) -> UploadPart:
        path = path_from_uri(uri)
        if not path.is_file():
            raise NoRecordingProduced(f"Recording file {path} does not exist")
        return UploadPart(
            filename=self._recording_filename,
            mime_type=self._recording_mime_type,
            path=path,
        )

    async def stage_reply(self, payload: "ReplyPayload") -> str:
        if not payload.data:
            raise DecodeError("Assistant reply is empty; nothing to persist")
        encoded = base64.b64encode(payload.data).decode("ascii")
        try:
            path = await asyncio.to_thread(
                self.cache.write_base64, self._reply_filename, encoded
            )
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"Failed to convert reply to base64: {exc}") from exc
        except OSError as exc:
            raise PlaybackPreparationError(
                f"Unable to write reply to {self.reply_path}: {exc}"
            ) from exc
        return path.resolve().as_uri()

    async def read(self, uri: str) -> bytes:
        path = path_from_uri(uri)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise PlaybackPreparationError(f"Unable to read {path}: {exc}") from exc

    async def discard(self, uri: str) -> None:
        path = path_from_uri(uri)
        # The reply file stays until the next turn overwrites it.
        if path.resolve() == self.reply_path.resolve() or not self.cache.contains(path):
            return
        await asyncio.to_thread(path.unlink, missing_ok=True)


__all__ = ["CacheDirectory", "NativePlatform", "path_from_uri"]
