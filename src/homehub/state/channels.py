"""Logical state channels and the topics that feed them."""

from __future__ import annotations

import enum

from homehub import _constants as topics
from homehub.models._base import HubBaseModel
from homehub.models.energy import DEFAULT_DEVICES
from homehub.models.payloads import (
    AlarmPayload,
    BlindsPayload,
    CameraPayload,
    DoorEventPayload,
    DoorLockPayload,
    EnergyPayload,
    ForecastPayload,
    LightPayload,
    LocationPayload,
    MotionPayload,
    TemperaturePayload,
)
from homehub.models.weather import CurrentWeather


class Channel(enum.StrEnum):
    """A logical state slot derived from one or more topics."""

    TEMPERATURE = "temperature"
    LIGHT = "light"
    BLINDS = "blinds"
    DOOR_LOCK = "door_lock"
    MOTION = "motion"
    DOOR = "door"
    CAMERA = "camera"
    ALARM = "alarm"
    WEATHER = "weather"
    FORECAST = "forecast"
    LOCATION = "location"
    ENERGY = "energy"


TOPIC_CHANNELS: dict[str, Channel] = {
    topics.TOPIC_TEMPERATURE: Channel.TEMPERATURE,
    topics.TOPIC_LIGHT: Channel.LIGHT,
    topics.TOPIC_BLINDS: Channel.BLINDS,
    topics.TOPIC_DOOR_LOCK: Channel.DOOR_LOCK,
    topics.TOPIC_MOTION_LEGACY: Channel.MOTION,
    topics.TOPIC_SECURITY_MOTION: Channel.MOTION,
    topics.TOPIC_SECURITY_DOOR: Channel.DOOR,
    topics.TOPIC_SECURITY_CAMERA: Channel.CAMERA,
    topics.TOPIC_SECURITY_ALARM: Channel.ALARM,
    topics.TOPIC_WEATHER_CURRENT: Channel.WEATHER,
    topics.TOPIC_WEATHER_FORECAST: Channel.FORECAST,
    topics.TOPIC_WEATHER_LOCATION: Channel.LOCATION,
    topics.TOPIC_ENERGY_CURRENT: Channel.ENERGY,
}


_INITIAL_STATES: dict[Channel, HubBaseModel] = {
    Channel.TEMPERATURE: TemperaturePayload(),
    Channel.LIGHT: LightPayload(),
    Channel.BLINDS: BlindsPayload(),
    Channel.DOOR_LOCK: DoorLockPayload(),
    Channel.MOTION: MotionPayload(),
    Channel.DOOR: DoorEventPayload(),
    Channel.CAMERA: CameraPayload(),
    Channel.ALARM: AlarmPayload(armed=False, triggered=False),
    Channel.WEATHER: CurrentWeather(),
    Channel.FORECAST: ForecastPayload(days=()),
    Channel.LOCATION: LocationPayload(),
    Channel.ENERGY: EnergyPayload(watts=0, devices=DEFAULT_DEVICES),
}


def initial_state(channel: Channel) -> HubBaseModel:
    """State of *channel* before any message has been received."""
    return _INITIAL_STATES[channel].model_copy(deep=True)
