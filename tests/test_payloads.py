"""Tests for per-topic payload decoding."""

from __future__ import annotations

import json

import pytest

from homehub.bus.message import encode_payload
from homehub.exceptions import HubDecodeError
from homehub.models import (
    AlarmPayload,
    CurrentWeather,
    DoorEventPayload,
    EnergyPayload,
    ForecastPayload,
    MotionPayload,
    TemperaturePayload,
    UnknownPayload,
    WeatherCondition,
    decode_payload,
)


def _raw(value: object) -> bytes:
    return json.dumps(value).encode()


class TestDecodePayload:
    def test_temperature(self) -> None:
        payload = decode_payload("home/temperature", _raw({"temperature": 26}))
        assert isinstance(payload, TemperaturePayload)
        assert payload.temperature == 26

    def test_weather_camel_case_keys(self) -> None:
        payload = decode_payload(
            "home/weather/current",
            _raw({"temp": 32, "condition": "hot", "humidity": 40, "windSpeed": 12}),
        )
        assert isinstance(payload, CurrentWeather)
        assert payload.wind_speed == 12
        assert payload.condition is WeatherCondition.HOT

    def test_invalid_field_is_dropped_individually(self) -> None:
        payload = decode_payload(
            "home/weather/current",
            _raw({"temp": 18, "humidity": 140, "windSpeed": "gusty"}),
        )
        assert isinstance(payload, CurrentWeather)
        assert payload.temp == 18
        assert payload.humidity is None
        assert payload.wind_speed is None
        assert payload.model_fields_set == {"temp"}

    def test_unknown_condition_resolves_to_unknown(self) -> None:
        payload = decode_payload("home/weather/current", _raw({"condition": "volcanic"}))
        assert isinstance(payload, CurrentWeather)
        assert payload.condition is WeatherCondition.UNKNOWN

    def test_condition_is_case_insensitive(self) -> None:
        payload = decode_payload("home/weather/current", _raw({"condition": "Sunny"}))
        assert isinstance(payload, CurrentWeather)
        assert payload.condition is WeatherCondition.SUNNY

    def test_unknown_keys_are_ignored(self) -> None:
        payload = decode_payload("home/security/alarm", _raw({"armed": True, "siren": "loud"}))
        assert isinstance(payload, AlarmPayload)
        assert payload.armed is True
        assert payload.model_fields_set == {"armed"}

    def test_legacy_motion_key(self) -> None:
        payload = decode_payload("home/motion", _raw({"motion": True}))
        assert isinstance(payload, MotionPayload)
        assert payload.detected is True

    def test_door_event_opened(self) -> None:
        payload = decode_payload("home/security/door", _raw({"action": "opened", "location": "Front Door"}))
        assert isinstance(payload, DoorEventPayload)
        assert payload.opened
        closed = decode_payload("home/security/door", _raw({"action": "closed"}))
        assert isinstance(closed, DoorEventPayload)
        assert not closed.opened

    def test_forecast_is_a_bare_list(self) -> None:
        days = [
            {"date": "Tue, Oct 20", "temp": 22, "condition": "partly_cloudy", "icon": "⛅"},
            {"date": "Wed, Oct 21", "temp": 31, "condition": "hot", "icon": "🥵"},
        ]
        payload = decode_payload("home/weather/forecast", _raw(days))
        assert isinstance(payload, ForecastPayload)
        assert payload.days is not None
        assert [day.condition for day in payload.days] == [WeatherCondition.PARTLY_CLOUDY, WeatherCondition.HOT]
        assert json.loads(encode_payload(payload)) == days

    def test_energy_devices_accept_power_key(self) -> None:
        payload = decode_payload(
            "home/energy/current",
            _raw({"watts": 250, "devices": [{"id": 1, "name": "Living Room Light", "power": 38, "connected": True}]}),
        )
        assert isinstance(payload, EnergyPayload)
        assert payload.devices is not None
        assert payload.devices[0].watts == 38

    def test_negative_watts_dropped(self) -> None:
        payload = decode_payload("home/energy/current", _raw({"watts": -5}))
        assert isinstance(payload, EnergyPayload)
        assert payload.watts is None

    def test_unknown_topic(self) -> None:
        payload = decode_payload("home/garage/door", _raw({"open": True}))
        assert isinstance(payload, UnknownPayload)
        assert payload.data == {"open": True}

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(HubDecodeError) as exc_info:
            decode_payload("home/temperature", b"{not json")
        assert exc_info.value.topic == "home/temperature"

    def test_non_object_raises(self) -> None:
        with pytest.raises(HubDecodeError):
            decode_payload("home/temperature", _raw([1, 2, 3]))


class TestEncodePayload:
    def test_bytes_pass_through(self) -> None:
        assert encode_payload(b"\x00\x01raw") == b"\x00\x01raw"

    def test_dict_is_compact_json(self) -> None:
        assert encode_payload({"armed": True, "triggered": False}) == b'{"armed":true,"triggered":false}'

    def test_model_uses_wire_keys(self) -> None:
        weather = CurrentWeather(temp=20, wind_speed=5)
        assert json.loads(encode_payload(weather)) == {"temp": 20, "windSpeed": 5}
