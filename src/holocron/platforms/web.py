"""Browser-like platform: recordings and replies live behind transient ``blob:`` URLs."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from holocron.audio.device import RECORDING_MODE, AudioMode, RecordingStatus
from holocron.cli.logging_utils import CAPTURE_LOG_LABEL, LOGGER
from holocron.config import RECORDING_FILENAME, RECORDING_MIME_TYPE
from holocron.core.exceptions import DecodeError, NoRecordingProduced

from .base import UploadPart

if TYPE_CHECKING:  # pragma: no cover - import-time only
    from holocron.network.talk_client import ReplyPayload

BLOB_SCHEME = "blob:"


@dataclass(frozen=True, slots=True)
class Blob:
    data: bytes
    mime_type: str


class BlobRegistry:
    """In-memory object URLs, mirroring ``URL.createObjectURL``/``revokeObjectURL``."""

    def __init__(self, origin: str = "holocron"):
        self._origin = origin
        self._blobs: dict[str, Blob] = {}

    def create(self, data: bytes, mime_type: str) -> str:
        uri = f"{BLOB_SCHEME}{self._origin}/{uuid.uuid4()}"
        self._blobs[uri] = Blob(bytes(data), mime_type)
        return uri

    def get(self, uri: str) -> Optional[Blob]:
        return self._blobs.get(uri)

    def revoke(self, uri: str) -> bool:
        return self._blobs.pop(uri, None) is not None

    def __contains__(self, uri: object) -> bool:
        return uri in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)


class WebPlatform:
    """Keeps every artifact in memory; nothing is written to disk."""

    name = "web"
    native = False

    def __init__(
        self,
        blobs: Optional[BlobRegistry] = None,
        *,
        recording_filename: str = RECORDING_FILENAME,
        recording_mime_type: str = RECORDING_MIME_TYPE,
    ):
        self.blobs = blobs or BlobRegistry()
        self._recording_filename = recording_filename
        self._recording_mime_type = recording_mime_type

    def capture_mode(self) -> AudioMode:
        return RECORDING_MODE

    def playback_mode(self) -> Optional[AudioMode]:
        return None

    def check_recording(self, status: RecordingStatus) -> None:
        # Browsers report no completion status; the blob URL is the only signal.
        LOGGER.verbose(CAPTURE_LOG_LABEL, f"Recording finished (web, {status.duration_ms} ms)")

    async def store_recording(self, data: bytes) -> str:
        return self.blobs.create(data, self._recording_mime_type)

    async def upload_part(self, uri: str) -> UploadPart:
        blob = self.blobs.get(uri)
        if blob is None:
            raise NoRecordingProduced(f"Recording {uri} is no longer available")
        return UploadPart(
            filename=self._recording_filename,
            mime_type=blob.mime_type,
            content=blob.data,
        )

    async def stage_reply(self, payload: "ReplyPayload") -> str:
        if not payload.data:
            raise DecodeError("Assistant reply is empty; nothing to wrap in a blob")
        return self.blobs.create(payload.data, payload.content_type)

    async def read(self, uri: str) -> bytes:
        blob = self.blobs.get(uri)
        if blob is None:
            raise DecodeError(f"Blob {uri} was revoked or never created")
        return blob.data

    async def discard(self, uri: str) -> None:
        self.blobs.revoke(uri)


__all__ = ["BLOB_SCHEME", "Blob", "BlobRegistry", "WebPlatform"]
