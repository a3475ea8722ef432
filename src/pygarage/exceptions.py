"""Custom exception hierarchy for pygarage."""

from __future__ import annotations


class GarageError(Exception):
    """Base exception for all pygarage errors."""


class GarageConfigError(GarageError):
    """Invalid or missing configuration."""


class DeviceError(GarageError):
    """Talking to the relay device failed."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class DeviceUnreachableError(DeviceError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(message, endpoint=endpoint)


class DeviceProtocolError(DeviceError):
    """Device answered, but the body was not what we expected.

    Callers facing the accessory framework treat this exactly like
    :class:`DeviceUnreachableError`; it is kept separate so logs show
    whether the device was down or talking nonsense.
    """
