"""Startup check deciding whether the microphone can be used at all."""

from __future__ import annotations

from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from holocron.audio.device import AudioDevice
from holocron.cli.logging_utils import LOGGER, PROBE_LOG_LABEL


class SessionOwner(Protocol):
    name: str

    async def teardown(self) -> None: ...


@dataclass(frozen=True, slots=True)
class CapabilityState:
    available: bool
    reason: Optional[str] = None


class CapabilityProbe:
    """Request microphone permission once and remember the answer."""

    def __init__(self, device: AudioDevice, *, owners: Sequence[SessionOwner] = ()):
        self._device = device
        self._owners = tuple(owners)
        self._state: Optional[CapabilityState] = None

    @property
    def state(self) -> Optional[CapabilityState]:
        return self._state

    async def probe(self, exit_stack: Optional[AsyncExitStack] = None) -> CapabilityState:
        if self._state is None:
            self._state = await self._check_device()

        if exit_stack is not None:
            for owner in self._owners:
                exit_stack.push_async_callback(self._teardown_owner, owner)
        return self._state

    async def _check_device(self) -> CapabilityState:
        try:
            granted = await self._device.request_permission()
        except Exception as exc:
            LOGGER.log(PROBE_LOG_LABEL, f"Audio module not available: {exc}", error=True)
            return CapabilityState(False, f"audio subsystem unavailable: {exc}")

        LOGGER.log(
            PROBE_LOG_LABEL,
            "Microphone ready" if granted else "Microphone permission not granted",
        )
        return CapabilityState(bool(granted), None if granted else "microphone permission not granted")

    @staticmethod
    async def _teardown_owner(owner: SessionOwner) -> None:
        try:
            await owner.teardown()
        except Exception as exc:
            LOGGER.log(
                PROBE_LOG_LABEL,
                f"Failed to release {owner.name} session during teardown: {exc}",
                error=True,
            )


__all__ = ["CapabilityProbe", "CapabilityState", "SessionOwner"]
