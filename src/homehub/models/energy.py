"""Energy monitoring models."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from homehub.models._base import HubBaseModel

__all__ = [
    "DEFAULT_DEVICES",
    "DeviceReading",
    "PowerSample",
]


class DeviceReading(HubBaseModel):
    """Power draw of a single metered device."""

    # The dashboard's device table used ``power`` for the wattage.
    _KEY_ALIASES: ClassVar[dict[str, str]] = {"power": "watts"}

    id: int
    name: str | None = None
    watts: int | None = Field(default=None, ge=0)
    connected: bool | None = None


DEFAULT_DEVICES: tuple[DeviceReading, ...] = (
    DeviceReading(id=1, name="Living Room Light", watts=0, connected=True),
    DeviceReading(id=2, name="Kitchen Appliances", watts=0, connected=True),
    DeviceReading(id=3, name="Thermostat", watts=0, connected=True),
    DeviceReading(id=4, name="Entertainment System", watts=0, connected=False),
)


class PowerSample(BaseModel):
    """Whole-house consumption sampled once per minute."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    watts: int
