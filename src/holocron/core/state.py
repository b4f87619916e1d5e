"""Interaction states and the read-only status derived from them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class InteractionState(Enum):
    """High-level states for one voice turn."""

    UNAVAILABLE = "unavailable"
    IDLE = "idle"
    CAPTURING = "capturing"
    AWAITING_REPLY = "awaiting_reply"


@dataclass(frozen=True, slots=True)
class InteractionStatus:
    """Flags exposed to the embedding caller.

    Built only through :meth:`from_state`, so ``capturing`` and
    ``awaiting_reply`` can never be true at the same time.
    """

    capturing: bool = False
    awaiting_reply: bool = False
    capture_available: bool = False

    @classmethod
    def from_state(cls, state: InteractionState) -> "InteractionStatus":
        return cls(
            capturing=state is InteractionState.CAPTURING,
            awaiting_reply=state is InteractionState.AWAITING_REPLY,
            capture_available=state is not InteractionState.UNAVAILABLE,
        )


__all__ = ["InteractionState", "InteractionStatus"]
