"""Platform capability shared by the session managers and the audio backend."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, TYPE_CHECKING, Iterator, Optional, Protocol, Union

from holocron.audio.device import AudioMode, RecordingStatus

if TYPE_CHECKING:  # pragma: no cover - import-time only
    from holocron.network.talk_client import ReplyPayload

FileField = tuple[str, Union[bytes, IO[bytes]], str]


@dataclass(frozen=True, slots=True)
class UploadPart:
    """The ``file`` field of a talk request, either in memory or on disk."""

    filename: str
    mime_type: str
    content: Optional[bytes] = None
    path: Optional[Path] = None

    @contextmanager
    def open(self) -> Iterator[FileField]:
        """Yield an ``httpx`` file tuple, closing any opened file afterwards."""

        if self.content is not None:
            yield (self.filename, self.content, self.mime_type)
            return
        if self.path is None:
            raise ValueError("UploadPart needs either content or a path")
        with self.path.open("rb") as handle:
            yield (self.filename, handle, self.mime_type)


class AudioPlatform(Protocol):
    """Everything that differs between the browser-like and native targets."""

    name: str
    native: bool

    def capture_mode(self) -> AudioMode: ...

    def playback_mode(self) -> Optional[AudioMode]: ...

    def check_recording(self, status: RecordingStatus) -> None: ...

    async def store_recording(self, data: bytes) -> str: ...

    async def upload_part(self, uri: str) -> UploadPart: ...

    async def stage_reply(self, payload: "ReplyPayload") -> str: ...

    async def read(self, uri: str) -> bytes: ...

    async def discard(self, uri: str) -> None: ...


__all__ = ["AudioPlatform", "FileField", "UploadPart"]
