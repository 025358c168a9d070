"""Synthetic sensor readings.

Each generator is a pure function of a random source and the local time, so
tests can pass a seeded :class:`random.Random` and a fixed ``now``.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta

from homehub.models.energy import DEFAULT_DEVICES, DeviceReading
from homehub.models.payloads import EnergyPayload, ForecastPayload, MotionPayload, TemperaturePayload
from homehub.models.security import CAMERA_LOCATIONS
from homehub.models.weather import CurrentWeather, ForecastDay, WeatherCondition

# Share of the whole-house draw attributed to each default device, by id.
DEVICE_SHARES: dict[int, float] = {1: 0.15, 2: 0.40, 3: 0.20, 4: 0.25}

FORECAST_DAYS = 5


def is_evening(now: datetime) -> bool:
    return 17 <= now.hour < 22


def is_night(now: datetime) -> bool:
    return now.hour >= 22 or now.hour < 6


def temperature_reading(rng: random.Random, now: datetime) -> TemperaturePayload:
    """Indoor temperature, 20-25 °C, one degree warmer in the evening."""
    temperature = rng.randint(20, 25)
    if is_evening(now):
        temperature += 1
    return TemperaturePayload(temperature=temperature)


def motion_event(rng: random.Random, now: datetime) -> MotionPayload:
    return MotionPayload(
        detected=rng.random() > 0.5,
        location=rng.choice(list(CAMERA_LOCATIONS.values())),
    )


def power_draw(rng: random.Random, now: datetime) -> int:
    """Whole-house draw in watts: low at night, peak in the evening."""
    if is_night(now):
        base = 100 + rng.random() * 100
    elif is_evening(now):
        base = 300 + rng.random() * 150
    else:
        base = 200 + rng.random() * 100
    return round(base)


def energy_reading(rng: random.Random, now: datetime) -> EnergyPayload:
    watts = power_draw(rng, now)
    devices = tuple(
        DeviceReading(
            id=device.id,
            name=device.name,
            watts=round(watts * DEVICE_SHARES.get(device.id, 0.0)),
            connected=device.connected,
        )
        for device in DEFAULT_DEVICES
    )
    return EnergyPayload(watts=watts, devices=devices)


def current_weather(rng: random.Random, now: datetime) -> CurrentWeather:
    temp = rng.randint(0, 35)
    condition = WeatherCondition.from_temperature(temp)
    return CurrentWeather(
        temp=temp,
        condition=condition,
        icon=condition.icon,
        humidity=rng.randint(0, 99),
        wind_speed=rng.randint(0, 29),
    )


def forecast(rng: random.Random, now: datetime, current_temp: float) -> ForecastPayload:
    """Five days starting tomorrow, each within 5 °C of *current_temp*."""
    days = []
    for offset in range(1, FORECAST_DAYS + 1):
        day = now + timedelta(days=offset)
        temp = current_temp + rng.randint(0, 9) - 5
        condition = WeatherCondition.from_temperature(temp)
        days.append(
            ForecastDay(
                date=f"{day:%a}, {day:%b} {day.day}",
                temp=temp,
                condition=condition,
                icon=condition.icon,
            )
        )
    return ForecastPayload(days=tuple(days))
