"""End-to-end tests driving a full hub over the in-memory bus."""

from __future__ import annotations

import asyncio
import random
from datetime import datetime

import pytest

from conftest import Recorder
from homehub import HomeHub, HubConfig, SimulatorIntervals
from homehub.bus import LoopbackTransport
from homehub.exceptions import (
    HubConnectionError,
    HubInvalidTransitionError,
    HubNotConnectedError,
    HubValidationError,
)
from homehub.models import ActivityType, BlindsPayload, CurrentWeather, LightPayload, TemperaturePayload
from homehub.security import AlarmMode
from homehub.state import Channel


def _config(**overrides: object) -> HubConfig:
    values: dict[str, object] = {"broker_url": "memory://e2e", "simulator_enabled": False}
    values.update(overrides)
    return HubConfig(**values)  # type: ignore[arg-type]


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_temperature_command_reaches_state() -> None:
    async with HomeHub(_config()) as hub:
        hub.set_temperature(26)
        await hub.wait_idle()

        state = hub.snapshot()[Channel.TEMPERATURE]
        assert isinstance(state, TemperaturePayload)
        assert state.temperature == 26
        assert hub.session.preferences.default_temperature == 26


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_armed_door_open_triggers_alarm_once() -> None:
    async with HomeHub(_config()) as hub:
        hub.arm_alarm()
        await hub.wait_idle()
        alarm_messages = Recorder()
        hub.bus.subscribe("home/security/alarm", alarm_messages)

        hub.simulate_door()
        await hub.wait_idle()
        hub.simulate_door("Back Door")
        await hub.wait_idle()

        assert hub.alarm.mode is AlarmMode.TRIGGERED
        assert alarm_messages.payloads == [{"triggered": True}]
        assert [entry.message for entry in hub.activity.entries(ActivityType.DOOR)] == [
            "Door opened at Back Door",
            "Door opened at Front Door",
        ]
        assert [entry.message for entry in hub.activity.entries(ActivityType.ALARM)] == [
            "Alarm triggered: door opened at Front Door"
        ]

        with pytest.raises(HubInvalidTransitionError):
            hub.disarm_alarm()
        hub.reset_alarm()
        hub.disarm_alarm()
        await hub.wait_idle()
        assert hub.alarm.mode is AlarmMode.DISARMED
        assert hub.session.preferences.alarm_armed is False


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_motion_at_selected_camera() -> None:
    async with HomeHub(_config()) as hub:
        hub.select_camera("garage")
        hub.simulate_motion()
        await hub.wait_idle()

        assert [entry.message for entry in hub.activity.entries(ActivityType.MOTION)] == ["Motion detected at Garage"]
        assert hub.alarm.mode is AlarmMode.DISARMED


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_startup_logs_initialization() -> None:
    async with HomeHub(_config()) as hub:
        assert [entry.message for entry in hub.activity.entries()] == ["Security system initialized"]
        assert hub.automation.running
        assert not hub.simulator.running
    assert not hub.bus.is_connected
    assert not hub.automation.running


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_default_automations_follow_weather() -> None:
    clock_time = datetime(2024, 10, 20, 9, 2)
    async with HomeHub(_config(), clock=lambda: clock_time) as hub:
        hub.bus.publish("home/weather/current", {"temp": 27, "condition": "sunny"})
        await hub.wait_idle()

        blinds = hub.snapshot()[Channel.BLINDS]
        assert isinstance(blinds, BlindsPayload)
        assert blinds.closed is True
        light = hub.snapshot()[Channel.LIGHT]
        assert isinstance(light, LightPayload)
        assert light.light is None

        hub.bus.publish("home/weather/current", {"temp": 15, "condition": "cloudy"})
        await hub.wait_idle()

        light = hub.snapshot()[Channel.LIGHT]
        assert isinstance(light, LightPayload)
        assert light.light is True
        assert [entry.message for entry in hub.automation.log()] == [
            "Triggered: Turn on lights when cloudy",
            "Triggered: Close blinds on sunny days",
        ]


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_user_automation_round_trip() -> None:
    async with HomeHub(_config()) as hub:
        rule = hub.add_automation({"name": "Windy blinds", "condition": "windy", "action": "closeBlinds"})
        assert rule.id == 4
        assert hub.toggle_automation(rule.id) is not None
        assert hub.delete_automation(rule.id) is True
        assert [r.id for r in hub.automation.rules()] == [1, 2, 3]


class TestCommandValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [15, 31, 22.5, True, "22"])
    async def test_setpoint_rejected(self, value: object) -> None:
        async with HomeHub(_config()) as hub:
            with pytest.raises(HubValidationError):
                hub.set_temperature(value)  # type: ignore[arg-type]
            assert hub.session.preferences.default_temperature == 22

    @pytest.mark.asyncio
    async def test_setpoint_bounds_accepted(self) -> None:
        async with HomeHub(_config()) as hub:
            hub.set_temperature(16)
            hub.set_temperature(30)
            assert hub.session.preferences.default_temperature == 30

    @pytest.mark.asyncio
    async def test_location(self) -> None:
        async with HomeHub(_config()) as hub:
            with pytest.raises(HubValidationError):
                hub.set_location("   ")
            hub.set_location("  London ")
            await hub.wait_idle()

            assert hub.session.preferences.weather_location == "London"
            assert hub.snapshot()[Channel.LOCATION].model_dump() == {"location": "London"}

    @pytest.mark.asyncio
    async def test_energy_savings_goal(self) -> None:
        async with HomeHub(_config()) as hub:
            with pytest.raises(HubValidationError):
                hub.set_energy_savings_goal(40)
            assert hub.set_energy_savings_goal(20) == 20
            assert hub.session.preferences.energy_savings_goal == 20

    @pytest.mark.asyncio
    async def test_snapshot_requires_camera(self) -> None:
        async with HomeHub(_config()) as hub:
            with pytest.raises(HubValidationError):
                hub.take_snapshot()
            hub.toggle_camera(True)
            assert hub.take_snapshot().location_name == "Front Door"


class TestConnection:
    @pytest.mark.asyncio
    async def test_commands_before_start_raise(self) -> None:
        hub = HomeHub(_config())
        with pytest.raises(HubNotConnectedError):
            hub.toggle_light(True)
        with pytest.raises(HubNotConnectedError):
            hub.arm_alarm()
        assert hub.alarm.mode is AlarmMode.DISARMED

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_then_retry(self) -> None:
        transport = LoopbackTransport(available=False)
        hub = HomeHub(_config(), transport=transport)

        with pytest.raises(HubConnectionError):
            await hub.start()
        assert not hub.bus.is_connected

        transport.available = True
        await hub.bus.reconnect()
        hub.toggle_door_lock(True)
        await hub.wait_idle()
        assert hub.snapshot()[Channel.DOOR_LOCK].model_dump() == {"locked": True}
        await hub.stop()


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_simulator_feeds_state() -> None:
    config = _config(
        simulator_enabled=True,
        simulator=SimulatorIntervals(temperature=0.01, motion=0.01, energy=0.01, weather=0.01, forecast=0.01),
    )
    async with HomeHub(config, rng=random.Random(11)) as hub:
        await asyncio.sleep(0.05)
        await hub.simulator.stop()
        await hub.wait_idle()

        weather = hub.snapshot()[Channel.WEATHER]
        assert isinstance(weather, CurrentWeather)
        assert weather.is_known
        assert hub.energy.history()
        assert hub.energy.current_watts > 0
