from __future__ import annotations

import dataclasses

import pytest

from pygarage.config import GarageConfig
from pygarage.exceptions import GarageConfigError


def test_defaults_and_base_url() -> None:
    config = GarageConfig(device_ip="192.168.1.50")

    assert config.base_url == "http://192.168.1.50"
    assert config.webhook_port == 8080
    assert config.poll_interval == 5.0
    assert config.relay_pulse == 1.0


@pytest.mark.parametrize("address", ["", "garage.local", "192.168.1", "256.1.1.1", "::1", "fe80::1"])
def test_invalid_ipv4_rejected(address: str) -> None:
    with pytest.raises(GarageConfigError, match="Invalid IP configuration"):
        GarageConfig(device_ip=address)


def test_negative_wait_rejected() -> None:
    with pytest.raises(GarageConfigError, match="wait_open"):
        GarageConfig(device_ip="10.0.0.2", wait_open=-1)


def test_port_out_of_range_rejected() -> None:
    with pytest.raises(GarageConfigError, match="webhook port"):
        GarageConfig(device_ip="10.0.0.2", webhook_port=70000)


def test_config_is_immutable() -> None:
    config = GarageConfig(device_ip="10.0.0.2")

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.device_ip = "10.0.0.3"  # type: ignore[misc]


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GARAGE_DEVICE_IP", "10.0.0.7")
    monkeypatch.setenv("GARAGE_WEBHOOK_PORT", "9090")
    monkeypatch.setenv("GARAGE_WAIT_OPEN", "12.5")
    monkeypatch.setenv("GARAGE_WAIT_CLOSED", "14")

    config = GarageConfig.from_env()

    assert config.device_ip == "10.0.0.7"
    assert config.webhook_port == 9090
    assert config.wait_open == 12.5
    assert config.wait_closed == 14.0


def test_from_env_overrides_win_and_none_falls_through(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GARAGE_DEVICE_IP", "10.0.0.7")
    monkeypatch.setenv("GARAGE_WEBHOOK_PORT", "9090")

    config = GarageConfig.from_env(device_ip="10.0.0.8", webhook_port=None)

    assert config.device_ip == "10.0.0.8"
    assert config.webhook_port == 9090


def test_from_env_requires_address(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GARAGE_DEVICE_IP", raising=False)

    with pytest.raises(GarageConfigError, match="GARAGE_DEVICE_IP"):
        GarageConfig.from_env()


def test_from_env_rejects_unparsable_number(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GARAGE_DEVICE_IP", "10.0.0.7")
    monkeypatch.setenv("GARAGE_WAIT_OPEN", "soon")

    with pytest.raises(GarageConfigError, match="GARAGE_WAIT_OPEN"):
        GarageConfig.from_env()


@pytest.mark.parametrize("address", [" 10.0.0.2 ", "10.0.0.2\n", 167772162])
def test_address_must_be_exact_dotted_quad(address: object) -> None:
    with pytest.raises(GarageConfigError, match="Invalid IP configuration"):
        GarageConfig(device_ip=address)  # type: ignore[arg-type]


def test_non_numeric_port_is_config_error() -> None:
    with pytest.raises(GarageConfigError, match="webhook port"):
        GarageConfig(device_ip="10.0.0.2", webhook_port="abc")  # type: ignore[arg-type]


@pytest.mark.parametrize("field_name", ["wait_open", "wait_closed", "poll_interval", "relay_pulse", "request_timeout"])
def test_non_numeric_duration_is_config_error(field_name: str) -> None:
    with pytest.raises(GarageConfigError, match=field_name):
        GarageConfig(device_ip="10.0.0.2", **{field_name: "soon"})  # type: ignore[arg-type]
