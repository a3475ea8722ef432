"""Controller configuration for pygarage."""

from __future__ import annotations

import dataclasses
import ipaddress
import os
from typing import Any

from pygarage.exceptions import GarageConfigError


@dataclasses.dataclass(frozen=True)
class GarageConfig:
    """Controller configuration.

    Parameters
    ----------
    device_ip : str
        IPv4 address of the relay device. Anything else is rejected.
    webhook_port : int
        Port the inbound webhook listener binds to. ``0`` picks a free port.
    wait_open : float
        Seconds to wait after pulsing the relay before confirming the
        door reached the open position.
    wait_closed : float
        Seconds to wait after pulsing the relay before confirming the
        door is closed.
    name : str
        Accessory display name.
    webhook_host : str
        Address the webhook listener binds to.
    poll_interval : float
        Seconds between two sensor polls.
    relay_pulse : float
        Seconds the relay is held on. The door opener reacts to a pulse,
        not to a sustained signal.
    request_timeout : float
        Total timeout in seconds for each outbound device call.
    """

    device_ip: str
    webhook_port: int = 8080
    wait_open: float = 20.0
    wait_closed: float = 20.0
    name: str = "Garage Door"
    webhook_host: str = "0.0.0.0"
    poll_interval: float = 5.0
    relay_pulse: float = 1.0
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        # IPv4Address also takes ints and packed bytes; only dotted-quad text is accepted here.
        if not isinstance(self.device_ip, str):
            raise GarageConfigError(f"Invalid IP configuration: {self.device_ip!r}")
        try:
            ipaddress.IPv4Address(self.device_ip)
        except ValueError as exc:
            raise GarageConfigError(f"Invalid IP configuration: {self.device_ip!r}") from exc

        try:
            port = int(self.webhook_port)
        except (TypeError, ValueError) as exc:
            raise GarageConfigError(f"Invalid webhook port: {self.webhook_port!r}") from exc
        if not 0 <= port <= 65535:
            raise GarageConfigError(f"Invalid webhook port: {self.webhook_port}")
        object.__setattr__(self, "webhook_port", port)

        for field_name in ("wait_open", "wait_closed", "poll_interval", "relay_pulse", "request_timeout"):
            try:
                value = float(getattr(self, field_name))
            except (TypeError, ValueError) as exc:
                raise GarageConfigError(f"{field_name} is not a number: {getattr(self, field_name)!r}") from exc
            if value < 0:
                raise GarageConfigError(f"{field_name} must not be negative (got {value})")
            object.__setattr__(self, field_name, value)

    @property
    def base_url(self) -> str:
        return f"http://{self.device_ip}"

    @classmethod
    def from_env(cls, **overrides: Any) -> GarageConfig:
        """Create configuration from environment variables.

        Reads ``GARAGE_DEVICE_IP`` and the optional ``GARAGE_*`` variables
        listed in ``_ENV_CONFIG_MAP``. Explicit keyword arguments override
        environment values; ``None`` overrides are ignored so CLI options
        that were not given fall through to the environment.

        Returns
        -------
        GarageConfig
            Populated configuration.

        Raises
        ------
        GarageConfigError
            If no device address is available or a value does not parse.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, type]] = {
            "GARAGE_DEVICE_IP": ("device_ip", str),
            "GARAGE_WEBHOOK_PORT": ("webhook_port", int),
            "GARAGE_WAIT_OPEN": ("wait_open", float),
            "GARAGE_WAIT_CLOSED": ("wait_closed", float),
            "GARAGE_NAME": ("name", str),
            "GARAGE_WEBHOOK_HOST": ("webhook_host", str),
            "GARAGE_POLL_INTERVAL": ("poll_interval", float),
            "GARAGE_RELAY_PULSE": ("relay_pulse", float),
            "GARAGE_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, convert) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise GarageConfigError(f"{env_key} is not a valid {convert.__name__}: {val!r}") from exc

        config_kwargs.update({key: value for key, value in overrides.items() if value is not None})

        if "device_ip" not in config_kwargs:
            raise GarageConfigError("No device address configured (set GARAGE_DEVICE_IP)")

        return cls(**config_kwargs)
