"""Per-topic payload variants and the payload codec.

Every topic the hub understands decodes into exactly one model below. Topics
without a registered model decode into :class:`UnknownPayload`, which
consumers treat as a no-op.
"""

from __future__ import annotations

import json
import logging
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from homehub import _constants as topics
from homehub.exceptions import HubDecodeError
from homehub.models._base import HubBaseModel
from homehub.models.energy import DeviceReading
from homehub.models.weather import CurrentWeather, ForecastDay

_logger = logging.getLogger(__name__)

__all__ = [
    "AlarmPayload",
    "BlindsPayload",
    "CameraPayload",
    "DoorEventPayload",
    "DoorLockPayload",
    "EnergyPayload",
    "ForecastPayload",
    "HubPayload",
    "LightPayload",
    "LocationPayload",
    "MotionPayload",
    "PAYLOAD_TYPES",
    "TemperaturePayload",
    "UnknownPayload",
    "WeatherPayload",
    "decode_payload",
]


class TemperaturePayload(HubBaseModel):
    """Thermostat reading or setpoint (``home/temperature``)."""

    temperature: int | None = None


class LightPayload(HubBaseModel):
    light: bool | None = None


class BlindsPayload(HubBaseModel):
    closed: bool | None = None


class DoorLockPayload(HubBaseModel):
    locked: bool | None = None


class MotionPayload(HubBaseModel):
    """Motion sensor event.

    Accepts both the security feed shape (``{"detected": true, "location": …}``)
    and the legacy publisher shape (``{"motion": true}``).
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {"motion": "detected"}

    detected: bool | None = None
    location: str | None = None


class DoorEventPayload(HubBaseModel):
    """Door contact event (``home/security/door``)."""

    action: str | None = None
    location: str | None = None

    @property
    def opened(self) -> bool:
        return (self.action or "").strip().lower() == "opened"


class CameraPayload(HubBaseModel):
    enabled: bool | None = None


class AlarmPayload(HubBaseModel):
    """Alarm status/command (``home/security/alarm``)."""

    armed: bool | None = None
    triggered: bool | None = None
    reset: bool | None = None


WeatherPayload = CurrentWeather


class ForecastPayload(HubBaseModel):
    """Multi-day forecast; the wire form is a bare JSON list of days."""

    days: tuple[ForecastDay, ...] | None = None

    @classmethod
    def from_json_value(cls, value: Any, *, topic: str = "") -> HubBaseModel:
        if isinstance(value, list):
            value = {"days": value}
        return super().from_json_value(value, topic=topic)

    def to_payload(self) -> list[dict[str, Any]]:  # type: ignore[override]
        return [day.to_payload() for day in self.days or ()]


class LocationPayload(HubBaseModel):
    """Weather location preference (``home/weather/location``)."""

    location: str | None = Field(default=None, min_length=1)


class EnergyPayload(HubBaseModel):
    """Whole-house power reading with optional per-device breakdown."""

    watts: int | None = Field(default=None, ge=0)
    devices: tuple[DeviceReading, ...] | None = None


class UnknownPayload(BaseModel):
    """Payload on a topic without a registered variant."""

    model_config = ConfigDict(frozen=True)

    topic: str
    data: Any = None


HubPayload = (
    TemperaturePayload
    | LightPayload
    | BlindsPayload
    | DoorLockPayload
    | MotionPayload
    | DoorEventPayload
    | CameraPayload
    | AlarmPayload
    | CurrentWeather
    | ForecastPayload
    | LocationPayload
    | EnergyPayload
    | UnknownPayload
)

PAYLOAD_TYPES: dict[str, type[HubBaseModel]] = {
    topics.TOPIC_TEMPERATURE: TemperaturePayload,
    topics.TOPIC_LIGHT: LightPayload,
    topics.TOPIC_BLINDS: BlindsPayload,
    topics.TOPIC_DOOR_LOCK: DoorLockPayload,
    topics.TOPIC_MOTION_LEGACY: MotionPayload,
    topics.TOPIC_SECURITY_MOTION: MotionPayload,
    topics.TOPIC_SECURITY_DOOR: DoorEventPayload,
    topics.TOPIC_SECURITY_CAMERA: CameraPayload,
    topics.TOPIC_SECURITY_ALARM: AlarmPayload,
    topics.TOPIC_WEATHER_CURRENT: CurrentWeather,
    topics.TOPIC_WEATHER_FORECAST: ForecastPayload,
    topics.TOPIC_WEATHER_LOCATION: LocationPayload,
    topics.TOPIC_ENERGY_CURRENT: EnergyPayload,
}


def decode_payload(topic: str, payload: bytes) -> HubPayload:
    """Decode raw message bytes into the variant registered for *topic*.

    Raises :class:`HubDecodeError` when the bytes are not JSON or the JSON
    does not have the shape the variant expects.
    """
    try:
        value = json.loads(payload)
    except ValueError as exc:
        raise HubDecodeError(f"Payload on {topic} is not valid JSON: {exc}", topic=topic) from exc

    model = PAYLOAD_TYPES.get(topic)
    if model is None:
        _logger.debug("No payload variant registered for topic=%s", topic)
        return UnknownPayload(topic=topic, data=value)
    return model.from_json_value(value, topic=topic)  # type: ignore[return-value]
