"""Own the single active microphone recording."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from holocron.audio.device import AudioDevice, CaptureHandle, RecordingStatus
from holocron.cli.logging_utils import CAPTURE_LOG_LABEL, LOGGER
from holocron.core.exceptions import (
    CaptureError,
    CaptureInProgress,
    CaptureStartError,
    CaptureUnavailable,
    NoRecordingProduced,
    PermissionDenied,
)
from holocron.platforms.base import AudioPlatform

from .probe import CapabilityState


@dataclass(slots=True)
class CaptureSession:
    handle: CaptureHandle
    target_uri: Optional[str] = None
    status: Optional[RecordingStatus] = None


class CaptureSessionManager:
    """Acquire, stop and release capture handles one at a time."""

    name = "capture"

    def __init__(
        self,
        device: AudioDevice,
        platform: AudioPlatform,
        capability: Callable[[], Optional[CapabilityState]],
    ):
        self._device = device
        self._platform = platform
        self._capability = capability
        self._session: Optional[CaptureSession] = None

    @property
    def active(self) -> bool:
        return self._session is not None

    async def start(self) -> CaptureSession:
        state = self._capability()
        if state is None or not state.available:
            raise CaptureUnavailable("Audio recording is not available on this platform")
        if self._session is not None:
            raise CaptureInProgress("A recording is already in progress")

        LOGGER.verbose(CAPTURE_LOG_LABEL, "Starting recording...")
        try:
            if not await self._device.request_permission():
                raise PermissionDenied("Permission denied")
            await self._device.configure_mode(self._platform.capture_mode())
            handle = await self._device.acquire_capture()
        except CaptureError:
            raise
        except Exception as exc:
            raise CaptureStartError(f"Failed to start recording: {exc}") from exc

        self._session = CaptureSession(handle)
        LOGGER.log(CAPTURE_LOG_LABEL, "Recording started")
        return self._session

    async def finalize(self) -> Optional[CaptureSession]:
        """Stop the active recording and return it with its source URI.

        Returns None when nothing is recording. The handle is released on every
        path; a recording that produced an artifact but failed validation is
        discarded before the error propagates.
        """

        session = self._session
        if session is None:
            return None
        self._session = None

        try:
            uri, status = await session.handle.stop()
        finally:
            await session.handle.release()
        session.target_uri = uri
        session.status = status

        if not uri:
            raise NoRecordingProduced("No recording URI found")
        try:
            self._platform.check_recording(status)
        except CaptureError:
            await self.discard(session)
            raise
        LOGGER.verbose(CAPTURE_LOG_LABEL, f"Recording URI ({self._platform.name}): {uri}")
        return session

    async def discard(self, session: CaptureSession) -> None:
        """Remove the source recording once it is no longer needed."""

        uri = session.target_uri
        if not uri:
            return
        try:
            await self._platform.discard(uri)
        except Exception as exc:
            LOGGER.log(CAPTURE_LOG_LABEL, f"Unable to discard recording {uri}: {exc}", error=True)
            return
        LOGGER.verbose(CAPTURE_LOG_LABEL, f"Discarded recording {uri}")

    async def teardown(self) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        try:
            uri, _ = await session.handle.stop()
        finally:
            await session.handle.release()
        if uri:
            session.target_uri = uri
            await self.discard(session)


__all__ = ["CaptureSession", "CaptureSessionManager"]
