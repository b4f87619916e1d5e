"""
Voice turn state machine: record, upload, receive and play one reply at a time.

Every stage error is caught here, logged and turned into a return to IDLE; the
embedding caller only ever observes the status flags.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Callable, Optional

from holocron.audio.device import AudioDevice
from holocron.cli.logging_utils import (
    CAPTURE_LOG_LABEL,
    ERROR_LOG_LABEL,
    LOGGER,
    TRANSPORT_LOG_LABEL,
    log_state_transition,
)
from holocron.core.exceptions import (
    CaptureError,
    CaptureUnavailable,
    ConfigurationError,
    HolocronError,
    PlaybackError,
    TransportError,
)
from holocron.core.state import InteractionState, InteractionStatus
from holocron.network.talk_client import TalkClient
from holocron.platforms.base import AudioPlatform

from .capture import CaptureSession, CaptureSessionManager
from .playback import PlaybackSessionManager
from .probe import CapabilityProbe, CapabilityState

StatusListener = Callable[[InteractionStatus], None]


class VoiceInteraction:
    """Expose ``start_capture``/``stop_capture`` and the derived status flags."""

    def __init__(
        self,
        device: AudioDevice,
        platform: AudioPlatform,
        transport: Optional[TalkClient] = None,
    ):
        self._platform = platform
        self._transport = transport or TalkClient(platform)
        self._capture = CaptureSessionManager(device, platform, self._capability_state)
        self._playback = PlaybackSessionManager(device, platform)
        self._probe = CapabilityProbe(device, owners=(self._capture, self._playback))
        self._state = InteractionState.UNAVAILABLE
        self._starting = False
        self._listeners: list[StatusListener] = []
        self._exit_stack: Optional[AsyncExitStack] = None

    # ------------------------------------------------------------------
    # Lifecycle
    async def __aenter__(self) -> "VoiceInteraction":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> CapabilityState:
        if self._exit_stack is None:
            self._exit_stack = AsyncExitStack()
            self._exit_stack.push_async_callback(self._transport.aclose)
            capability = await self._probe.probe(self._exit_stack)
        else:
            capability = await self._probe.probe()
        if self._state is InteractionState.UNAVAILABLE and capability.available:
            self._transition(InteractionState.IDLE, "capture available")
        return capability

    async def close(self) -> None:
        exit_stack = self._exit_stack
        self._exit_stack = None
        if exit_stack is not None:
            await exit_stack.aclose()
        if self._state in (InteractionState.CAPTURING, InteractionState.AWAITING_REPLY):
            self._transition(InteractionState.IDLE, "closed")

    # ------------------------------------------------------------------
    # Observable state
    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def status(self) -> InteractionStatus:
        return InteractionStatus.from_state(self._state)

    @property
    def platform(self) -> AudioPlatform:
        return self._platform

    @property
    def playback(self) -> PlaybackSessionManager:
        return self._playback

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Commands
    async def start_capture(self) -> bool:
        """Begin recording; returns False (after logging why) when refused."""

        if self._state is InteractionState.UNAVAILABLE:
            self._report_failure(
                CaptureUnavailable("Audio recording is not available on this platform"),
                stage="Failed to start recording",
            )
            return False
        if self._state is not InteractionState.IDLE or self._starting:
            LOGGER.verbose(CAPTURE_LOG_LABEL, f"Ignoring start request while {self._state.value}")
            return False

        self._starting = True
        try:
            await self._capture.start()
        except CaptureError as exc:
            self._report_failure(exc, stage="Failed to start recording")
            return False
        finally:
            self._starting = False

        self._transition(InteractionState.CAPTURING, "recording started")
        return True

    async def stop_capture(self) -> bool:
        """Finish recording and run upload plus playback.

        Returns True when playback of the reply was initiated. A call without
        an active recording changes nothing and returns False.
        """

        if self._state is not InteractionState.CAPTURING or not self._capture.active:
            return False

        self._transition(InteractionState.AWAITING_REPLY, "recording stopped")
        session: Optional[CaptureSession] = None
        try:
            session = await self._capture.finalize()
            if session is None or not session.target_uri:
                return False
            reply = await self._transport.send(session.target_uri)
            await self._capture.discard(session)
            session = None
            await self._playback.play(reply)
            return True
        except HolocronError as exc:
            self._report_failure(exc)
            return False
        except Exception as exc:
            LOGGER.log(
                ERROR_LOG_LABEL,
                f"Unexpected failure during voice turn: {exc}",
                error=True,
                exc_info=exc,
            )
            return False
        finally:
            if session is not None:
                await self._capture.discard(session)
            self._transition(InteractionState.IDLE, "turn finished")

    # ------------------------------------------------------------------
    # Internal helpers
    def _capability_state(self) -> Optional[CapabilityState]:
        return self._probe.state

    def _transition(self, new: InteractionState, reason: str) -> None:
        previous = self._state
        if previous is new:
            return
        self._state = new
        log_state_transition(previous, new, reason)
        status = self.status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as exc:
                LOGGER.log(ERROR_LOG_LABEL, f"Status listener failed: {exc}", error=True)

    @staticmethod
    def _report_failure(exc: HolocronError, *, stage: Optional[str] = None) -> None:
        LOGGER.log(
            ERROR_LOG_LABEL,
            f"{stage or _failure_stage(exc)}: {type(exc).__name__}: {exc}",
            error=True,
        )
        if isinstance(exc, TransportError) and exc.status_code is not None:
            LOGGER.log(TRANSPORT_LOG_LABEL, f"Status: {exc.status_code}", error=True)
            LOGGER.log(TRANSPORT_LOG_LABEL, f"Response data: {exc.body}", error=True)


def _failure_stage(exc: HolocronError) -> str:
    if isinstance(exc, CaptureError):
        return "Failed to stop recording"
    if isinstance(exc, (TransportError, ConfigurationError)):
        return "Failed to communicate with AI"
    if isinstance(exc, PlaybackError):
        return "Failed to play reply"
    return "Voice turn failed"


__all__ = ["StatusListener", "VoiceInteraction"]
