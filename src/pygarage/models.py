"""Door state enums and device response models."""

from __future__ import annotations

import enum
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, StrictBool


class DoorState(enum.IntEnum):
    """Current door position.

    Values match the HomeKit ``CurrentDoorState`` characteristic, so an
    accessory sink can forward them without a lookup table.
    """

    OPEN = 0
    CLOSED = 1
    OPENING = 2
    CLOSING = 3
    STOPPED = 4

    @property
    def target(self) -> TargetDoorState | None:
        """Target hint matching a terminal state, ``None`` while in motion."""
        if self is DoorState.OPEN:
            return TargetDoorState.OPEN
        if self is DoorState.CLOSED:
            return TargetDoorState.CLOSED
        return None


class TargetDoorState(enum.IntEnum):
    """Requested door position (HomeKit ``TargetDoorState`` values)."""

    OPEN = 0
    CLOSED = 1


class CommandStatus(StrEnum):
    """Outcome of an open/close intent, as reported to the accessory framework."""

    SUCCESS = "success"
    IGNORED = "ignored"
    COMMUNICATION_FAILURE = "communication_failure"
    INVALID_TARGET = "invalid_target"


class InputStatus(BaseModel):
    """Body of ``/rpc/Input.GetStatus``.

    Only ``state`` is consumed; it is ``true`` while the reed switch at the
    fully-open position is triggered.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = 0
    state: StrictBool
