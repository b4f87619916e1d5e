"""Own the single loaded reply playback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from holocron.audio.device import AudioDevice, PlaybackHandle
from holocron.cli.logging_utils import LOGGER, PLAYBACK_LOG_LABEL
from holocron.core.exceptions import PlaybackError, PlaybackPreparationError
from holocron.network.talk_client import ReplyPayload
from holocron.platforms.base import AudioPlatform


@dataclass(slots=True)
class PlaybackSession:
    handle: PlaybackHandle
    source_uri: str


class PlaybackSessionManager:
    """Stage a reply, swap out the previous session and start the new one."""

    name = "playback"

    def __init__(self, device: AudioDevice, platform: AudioPlatform):
        self._device = device
        self._platform = platform
        self._session: Optional[PlaybackSession] = None

    @property
    def session(self) -> Optional[PlaybackSession]:
        return self._session

    async def play(self, payload: ReplyPayload) -> PlaybackSession:
        uri = await self._platform.stage_reply(payload)
        LOGGER.verbose(
            PLAYBACK_LOG_LABEL, f"Reply staged at {uri} ({len(payload.data)} bytes)"
        )

        await self._release_current()

        try:
            handle = await self._device.acquire_playback(uri)
        except PlaybackError:
            await self._platform.discard(uri)
            raise
        except Exception as exc:
            await self._platform.discard(uri)
            raise PlaybackPreparationError(f"Failed to load reply audio: {exc}") from exc

        session = PlaybackSession(handle, uri)
        self._session = session
        try:
            mode = self._platform.playback_mode()
            if mode is not None:
                await self._device.configure_mode(mode)
            await handle.start()
        except Exception as exc:
            raise PlaybackPreparationError(f"Failed to start reply playback: {exc}") from exc

        LOGGER.log(PLAYBACK_LOG_LABEL, "Playing assistant reply")
        return session

    async def teardown(self) -> None:
        await self._release_current()

    async def _release_current(self) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        try:
            await session.handle.release()
        finally:
            await self._platform.discard(session.source_uri)
        LOGGER.verbose(PLAYBACK_LOG_LABEL, f"Released playback of {session.source_uri}")


__all__ = ["PlaybackSession", "PlaybackSessionManager"]
