"""pygarage - Async garage door controller for Shelly-style relay devices."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pygarage")
except PackageNotFoundError:
    __version__ = "0+local"
from pygarage.accessory import AccessorySink, LoggingAccessorySink
from pygarage.config import GarageConfig
from pygarage.controller import DoorController, DoorDevice
from pygarage.device import DeviceClient
from pygarage.events import SensorChanged, SensorSource
from pygarage.exceptions import (
    DeviceError,
    DeviceProtocolError,
    DeviceUnreachableError,
    GarageConfigError,
    GarageError,
)
from pygarage.models import CommandStatus, DoorState, InputStatus, TargetDoorState

__all__ = [
    "__version__",
    "AccessorySink",
    "CommandStatus",
    "DeviceClient",
    "DeviceError",
    "DeviceProtocolError",
    "DeviceUnreachableError",
    "DoorController",
    "DoorDevice",
    "DoorState",
    "GarageConfig",
    "GarageConfigError",
    "GarageError",
    "InputStatus",
    "LoggingAccessorySink",
    "SensorChanged",
    "SensorSource",
    "TargetDoorState",
]
