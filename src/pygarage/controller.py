"""Door state machine reconciling commands with the door sensor.

The device has a single reed switch at the fully-open position. It can
confirm arrival at ``OPEN`` and departure to ``CLOSED``, but cannot tell
``OPENING`` from ``CLOSING`` or ``STOPPED``. Those intermediate states are
therefore only ever entered and left by the command handlers.

Sensor levels (poll results and webhook events) are applied immediately
against whatever state is current, including while a command is waiting
for the door to move. Commands are serialized among themselves so only one
of them drives the relay at a time.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any, Protocol

from pygarage.accessory import AccessorySink
from pygarage.config import GarageConfig
from pygarage.events import SensorChanged, SensorSource
from pygarage.exceptions import DeviceError
from pygarage.models import CommandStatus, DoorState, TargetDoorState

_logger = logging.getLogger(__name__)


class DoorDevice(Protocol):
    """Structural device interface used by the controller.

    ``DeviceClient`` is the production implementation; tests pass doubles.
    """

    async def read_sensor(self) -> bool:
        ...

    async def toggle_relay(self) -> None:
        ...

    def subscribe(self, callback: Callable[[SensorChanged], None]) -> Callable[[], None]:
        ...


class DoorController:
    """Owns the door state and drives the relay.

    Usage::

        async with DeviceClient(config) as device:
            async with DoorController(config, device, sink) as controller:
                await controller.set_target_state(TargetDoorState.OPEN)
    """

    def __init__(
        self,
        config: GarageConfig,
        device: DoorDevice,
        sink: AccessorySink,
    ) -> None:
        self._config = config
        self._device = device
        self._sink = sink
        # Not queried from the device; the first poll corrects it.
        self._state = DoorState.CLOSED
        self._command_lock = asyncio.Lock()
        self._poll_task: asyncio.Task[None] | None = None
        self._publish(self._state)
        device.subscribe(self.apply_sensor_event)

    @property
    def state(self) -> DoorState:
        return self._state

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def _publish(self, state: DoorState) -> None:
        self._sink.update_current_state(state)
        target = state.target
        if target is not None:
            self._sink.update_target_state(target)

    def _set_state(self, state: DoorState) -> None:
        """Store and publish *state*; the only place ``_state`` is written."""
        if state is self._state:
            return
        _logger.info("Setting door state to %s", state.name)
        self._state = state
        self._publish(state)

    # ------------------------------------------------------------------
    # Sensor reconciliation
    # ------------------------------------------------------------------

    def apply_sensor_reading(self, is_open: bool, source: SensorSource = SensorSource.POLL) -> bool:
        """Reconcile a sensor level with the current state.

        Returns ``True`` when the reading changed the door state.
        """
        if is_open:
            # Only news when we think the door is fully closed.
            if self._state is not DoorState.CLOSED:
                return False
            _logger.debug("Sensor reports open (%s) while CLOSED", source)
            self._set_state(DoorState.OPEN)
            return True

        # Mid-opening the switch has not been reached yet.
        if self._state in (DoorState.CLOSED, DoorState.OPENING):
            return False
        _logger.debug("Sensor reports closed (%s) while %s", source, self._state.name)
        self._set_state(DoorState.CLOSED)
        return True

    def apply_sensor_event(self, event: SensorChanged) -> bool:
        return self.apply_sensor_reading(event.is_open, event.source)

    async def poll_once(self) -> bool | None:
        """Read the sensor once and apply it.

        Returns the result of :meth:`apply_sensor_reading`, or ``None`` if
        the device could not be read.
        """
        try:
            is_open = await self._device.read_sensor()
        except DeviceError as exc:
            _logger.warning("Sensor poll failed: %s", exc)
            return None
        return self.apply_sensor_event(SensorChanged(is_open=is_open, source=SensorSource.POLL))

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                _logger.exception("Unexpected error while polling the door sensor")
            await asyncio.sleep(self._config.poll_interval)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the poll loop on the running event loop."""
        if self.is_polling:
            return
        self._poll_task = asyncio.create_task(self._poll_loop(), name="pygarage-poll")

    async def stop(self) -> None:
        task = self._poll_task
        self._poll_task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> DoorController:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def open_door(self) -> bool:
        """Open a closed door.

        Returns ``False`` without touching the relay unless the door is
        ``CLOSED``. Device errors propagate after the state has been
        resolved back to ``CLOSED``.
        """
        async with self._command_lock:
            if self._state is not DoorState.CLOSED:
                _logger.debug("Ignoring open command while %s", self._state.name)
                return False

            _logger.info("start - open_door")
            self._set_state(DoorState.OPENING)
            try:
                await self._device.toggle_relay()
            except DeviceError:
                self._set_state(DoorState.CLOSED)
                raise

            await asyncio.sleep(self._config.wait_open)

            try:
                is_open = await self._device.read_sensor()
            except DeviceError:
                if self._state is DoorState.OPENING:
                    self._set_state(DoorState.CLOSED)
                raise
            _logger.info("Input state after opening: %s", is_open)
            self._set_state(DoorState.OPEN if is_open else DoorState.CLOSED)
            _logger.info("end - open_door")
            return True

    async def close_door(self) -> bool:
        """Close an open door.

        Returns ``False`` without touching the relay unless the door is
        ``OPEN``. Device errors propagate after the state has been
        resolved back to ``OPEN``, unless a sensor event already closed it.
        """
        async with self._command_lock:
            if self._state is not DoorState.OPEN:
                _logger.debug("Ignoring close command while %s", self._state.name)
                return False

            _logger.info("start - close_door")
            await self._device.toggle_relay()
            self._set_state(DoorState.CLOSING)

            await asyncio.sleep(self._config.wait_closed)

            try:
                is_open = await self._device.read_sensor()
            except DeviceError:
                if self._state is DoorState.CLOSING:
                    self._set_state(DoorState.OPEN)
                raise
            _logger.info("Input state after closing: %s", is_open)
            self._set_state(DoorState.OPEN if is_open else DoorState.CLOSED)
            _logger.info("end - close_door")
            return True

    async def set_target_state(self, target: TargetDoorState | int) -> CommandStatus:
        """Accessory entry point for open/close intents.

        Waits for the whole command sequence, so a device failure is
        reported as ``COMMUNICATION_FAILURE`` instead of being lost.
        """
        try:
            target = TargetDoorState(target)
        except ValueError:
            _logger.warning("Rejecting unknown target door state %r", target)
            return CommandStatus.INVALID_TARGET
        _logger.info("Target door state requested: %s", target.name)
        try:
            if target is TargetDoorState.OPEN:
                performed = await self.open_door()
            else:
                performed = await self.close_door()
        except DeviceError as exc:
            _logger.warning("%s command failed: %s", target.name.title(), exc)
            return CommandStatus.COMMUNICATION_FAILURE
        return CommandStatus.SUCCESS if performed else CommandStatus.IGNORED
