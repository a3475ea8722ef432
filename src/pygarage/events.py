"""Normalized sensor events.

Webhook notifications and poll results are both converted into
:class:`SensorChanged` before they reach the door state machine.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SensorSource(StrEnum):
    POLL = "poll"
    WEBHOOK = "webhook"


class SensorChanged(BaseModel):
    """A single sensor level observed on the device.

    This is a level, not an edge: the device repeats the same value on
    every poll and may re-send it through the webhook.
    """

    model_config = ConfigDict(frozen=True)

    is_open: bool
    source: SensorSource
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
