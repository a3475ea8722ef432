"""HTTP client and webhook listener for the relay device."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp
from aiohttp import web
from pydantic import ValidationError

from pygarage.config import GarageConfig
from pygarage.events import SensorChanged, SensorSource
from pygarage.exceptions import DeviceProtocolError, DeviceUnreachableError, GarageError
from pygarage.models import InputStatus

_logger = logging.getLogger(__name__)

#: Single-channel device: input and switch are always ``id=0``.
CHANNEL_ID = "0"

SWITCH_SET_ENDPOINT = "/rpc/Switch.Set"
INPUT_STATUS_ENDPOINT = "/rpc/Input.GetStatus"

SensorCallback = Callable[[SensorChanged], None]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_status(raw: str) -> int:
    """Parse the leading integer of a webhook ``status`` value.

    Trailing garbage is ignored (``"2x"`` and ``"1.5"`` read as 2 and 1);
    a value without leading digits reads as ``0``, i.e. sensor closed.
    """
    match = _LEADING_INT.match(raw)
    if match is None:
        return 0
    return int(match.group(1))


class DeviceClient:
    """Async client for a Shelly-style relay with a door sensor input.

    Usage::

        async with DeviceClient(config) as device:
            device.subscribe(on_change)
            is_open = await device.read_sensor()

    Entering the context opens the HTTP session and binds the webhook
    listener; both stay up until the context exits.
    """

    def __init__(
        self,
        config: GarageConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._subscribers: list[SensorCallback] = []
        self._runner: web.AppRunner | None = None
        self._bound_port: int | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DeviceClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        try:
            await self.start_webhook()
        except BaseException:
            await self._close_session()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop_webhook()
        await self._close_session()

    async def _close_session(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Outbound calls
    # ------------------------------------------------------------------

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise GarageError("Client not initialized. Use 'async with DeviceClient(...) as device:'")
        return self._http_session

    async def _get(self, endpoint: str, params: Mapping[str, str]) -> str:
        """Issue a GET against the device and return the body text."""
        http = self._require_session()
        url = f"{self._config.base_url}{endpoint}"
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout or None)

        _logger.debug("GET %s params=%s", url, dict(params))

        try:
            async with http.get(url, params=params, timeout=timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise DeviceUnreachableError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except DeviceUnreachableError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise DeviceUnreachableError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc
        return text

    async def read_sensor(self) -> bool:
        """Return ``True`` while the door-open sensor is triggered."""
        text = await self._get(INPUT_STATUS_ENDPOINT, {"id": CHANNEL_ID})

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DeviceProtocolError(
                f"Invalid JSON from {INPUT_STATUS_ENDPOINT}: {text[:200]}",
                endpoint=INPUT_STATUS_ENDPOINT,
            ) from exc

        if not isinstance(body, dict):
            raise DeviceProtocolError(
                f"Expected a JSON object from {INPUT_STATUS_ENDPOINT}, got {type(body).__name__}",
                endpoint=INPUT_STATUS_ENDPOINT,
            )

        try:
            status = InputStatus.model_validate(body)
        except ValidationError as exc:
            raise DeviceProtocolError(
                f"Unexpected input status from {INPUT_STATUS_ENDPOINT}: {body}",
                endpoint=INPUT_STATUS_ENDPOINT,
            ) from exc

        _logger.debug("Input %s state=%s", status.id, status.state)
        return status.state

    async def set_relay(self, on: bool) -> None:
        await self._get(SWITCH_SET_ENDPOINT, {"id": CHANNEL_ID, "on": "true" if on else "false"})

    async def toggle_relay(self) -> None:
        """Pulse the relay: switch on, hold for ``relay_pulse`` seconds, switch off.

        If the second call fails the relay may be left on; nothing retries it.
        """
        await self.set_relay(True)
        await asyncio.sleep(self._config.relay_pulse)
        await self.set_relay(False)

    # ------------------------------------------------------------------
    # Webhook listener
    # ------------------------------------------------------------------

    @property
    def webhook_port(self) -> int | None:
        """Port the listener is bound to, ``None`` when not running."""
        return self._bound_port

    def subscribe(self, callback: SensorCallback) -> Callable[[], None]:
        """Register *callback* for webhook sensor events; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _emit(self, event: SensorChanged) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                _logger.warning("Sensor subscriber failed for %s", event, exc_info=True)

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        raw = request.query.get("status")
        if raw is not None:
            status = parse_status(raw)
            _logger.debug("Webhook %s %s status=%r -> %d", request.method, request.path, raw, status)
            self._emit(SensorChanged(is_open=status != 0, source=SensorSource.WEBHOOK))
        return web.Response(status=200)

    async def start_webhook(self) -> None:
        """Bind the webhook listener on ``webhook_host:webhook_port``."""
        if self._runner is not None:
            return
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle_webhook)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.webhook_host, self._config.webhook_port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise

        self._runner = runner
        addresses = runner.addresses
        self._bound_port = addresses[0][1] if addresses else self._config.webhook_port
        _logger.info("Listening for device webhook on port %s", self._bound_port)

    async def stop_webhook(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        self._bound_port = None
