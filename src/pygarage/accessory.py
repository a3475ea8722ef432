"""Accessory-framework boundary.

The controller publishes state through an :class:`AccessorySink`. A
HomeKit bridge would forward both calls to the ``CurrentDoorState`` and
``TargetDoorState`` characteristics of a garage door opener service.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pygarage.models import DoorState, TargetDoorState


class AccessorySink(Protocol):
    """Receives door state updates from the controller."""

    def update_current_state(self, state: DoorState) -> None:
        ...

    def update_target_state(self, target: TargetDoorState) -> None:
        ...


class LoggingAccessorySink:
    """Sink that only logs, used when running without an accessory bridge."""

    def __init__(self, name: str, *, logger: logging.Logger | None = None) -> None:
        self._name = name
        self._logger = logger or logging.getLogger(__name__)
        self.current_state: DoorState | None = None
        self.target_state: TargetDoorState | None = None

    def update_current_state(self, state: DoorState) -> None:
        self.current_state = state
        self._logger.info("%s: current state %s", self._name, state.name)

    def update_target_state(self, target: TargetDoorState) -> None:
        self.target_state = target
        self._logger.info("%s: target state %s", self._name, target.name)
