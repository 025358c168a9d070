"""Pydantic models for hub payloads, state and user-defined rules."""

from homehub.models._base import HubBaseModel, HubStrEnum
from homehub.models.automation import (
    AutomationLogEntry,
    AutomationRule,
    ImmediateSchedule,
    RuleAction,
    RuleCondition,
    Schedule,
    TimeOfDaySchedule,
)
from homehub.models.energy import DEFAULT_DEVICES, DeviceReading, PowerSample
from homehub.models.payloads import (
    AlarmPayload,
    BlindsPayload,
    CameraPayload,
    DoorEventPayload,
    DoorLockPayload,
    EnergyPayload,
    ForecastPayload,
    HubPayload,
    LightPayload,
    LocationPayload,
    MotionPayload,
    TemperaturePayload,
    UnknownPayload,
    decode_payload,
)
from homehub.models.security import (
    CAMERA_LOCATIONS,
    ActivityLogEntry,
    ActivityType,
    AlarmState,
    CameraSnapshot,
)
from homehub.models.weather import CurrentWeather, ForecastDay, WeatherCondition

__all__ = [
    "CAMERA_LOCATIONS",
    "DEFAULT_DEVICES",
    "ActivityLogEntry",
    "ActivityType",
    "AlarmPayload",
    "AlarmState",
    "AutomationLogEntry",
    "AutomationRule",
    "BlindsPayload",
    "CameraPayload",
    "CameraSnapshot",
    "CurrentWeather",
    "DeviceReading",
    "DoorEventPayload",
    "DoorLockPayload",
    "EnergyPayload",
    "ForecastDay",
    "ForecastPayload",
    "HubBaseModel",
    "HubPayload",
    "HubStrEnum",
    "ImmediateSchedule",
    "LightPayload",
    "LocationPayload",
    "MotionPayload",
    "PowerSample",
    "RuleAction",
    "RuleCondition",
    "Schedule",
    "TemperaturePayload",
    "TimeOfDaySchedule",
    "UnknownPayload",
    "WeatherCondition",
    "decode_payload",
]
