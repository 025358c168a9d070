"""Tests for the alarm state machine."""

from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import Recorder
from homehub.bus import EventBus, LoopbackTransport, Message
from homehub.exceptions import HubInvalidTransitionError, HubNotConnectedError
from homehub.models import ActivityType, AlarmState
from homehub.security import ActivityLog, AlarmMode, AlarmStateMachine
from homehub.session import HubSession
from homehub.state import StateStore


@pytest.fixture
def alarm(bus: EventBus, store: StateStore, activity: ActivityLog) -> AlarmStateMachine:
    return AlarmStateMachine(bus, store, activity)


def _messages(activity: ActivityLog, kind: ActivityType) -> list[str]:
    return [entry.message for entry in activity.entries(kind)]


class TestCommands:
    @pytest.mark.asyncio
    async def test_arm_publishes_status(self, bus: EventBus, alarm: AlarmStateMachine, recorder: Recorder) -> None:
        bus.subscribe("home/security/alarm", recorder)

        state = alarm.arm()
        await bus.wait_idle()

        assert state == AlarmState(armed=True, triggered=False)
        assert alarm.mode is AlarmMode.ARMED
        assert recorder.payloads == [{"armed": True, "triggered": False}]

    @pytest.mark.asyncio
    async def test_arm_twice_is_noop(
        self, bus: EventBus, alarm: AlarmStateMachine, activity: ActivityLog, recorder: Recorder
    ) -> None:
        bus.subscribe("home/security/alarm", recorder)
        alarm.arm()
        alarm.arm()
        await bus.wait_idle()

        assert len(recorder.messages) == 1
        assert _messages(activity, ActivityType.SYSTEM) == ["Alarm system armed"]

    @pytest.mark.asyncio
    async def test_disarm(self, bus: EventBus, alarm: AlarmStateMachine, activity: ActivityLog) -> None:
        alarm.arm()
        state = alarm.disarm()
        await bus.wait_idle()

        assert state == AlarmState()
        assert alarm.mode is AlarmMode.DISARMED
        assert _messages(activity, ActivityType.SYSTEM) == ["Alarm system disarmed", "Alarm system armed"]

    @pytest.mark.asyncio
    async def test_disarm_when_disarmed_is_noop(self, bus: EventBus, alarm: AlarmStateMachine, recorder: Recorder) -> None:
        bus.subscribe("home/security/alarm", recorder)
        alarm.disarm()
        await bus.wait_idle()
        assert recorder.messages == []

    @pytest.mark.asyncio
    async def test_trigger_while_disarmed_raises(self, alarm: AlarmStateMachine) -> None:
        with pytest.raises(HubInvalidTransitionError) as exc_info:
            alarm.trigger()
        assert exc_info.value.current == "disarmed"
        assert exc_info.value.action == "trigger"

    @pytest.mark.asyncio
    async def test_reset_requires_triggered(self, alarm: AlarmStateMachine) -> None:
        with pytest.raises(HubInvalidTransitionError):
            alarm.reset()
        alarm.arm()
        with pytest.raises(HubInvalidTransitionError):
            alarm.reset()

    @pytest.mark.asyncio
    async def test_trigger_then_reset(self, bus: EventBus, alarm: AlarmStateMachine, recorder: Recorder) -> None:
        bus.subscribe("home/security/alarm", recorder)
        alarm.arm()

        assert alarm.trigger("test") is True
        assert alarm.trigger("again") is False
        state = alarm.reset()
        await bus.wait_idle()

        assert state == AlarmState(armed=True, triggered=False)
        assert recorder.payloads == [
            {"armed": True, "triggered": False},
            {"triggered": True},
            {"reset": True, "triggered": False},
        ]

    @pytest.mark.asyncio
    async def test_disarm_while_triggered_raises_and_keeps_state(
        self, bus: EventBus, alarm: AlarmStateMachine
    ) -> None:
        alarm.arm()
        alarm.trigger()

        with pytest.raises(HubInvalidTransitionError):
            alarm.disarm()

        assert alarm.state == AlarmState(armed=True, triggered=True)

    @pytest.mark.asyncio
    async def test_command_while_disconnected_leaves_state(self, bus: EventBus, alarm: AlarmStateMachine) -> None:
        await bus.disconnect()
        with pytest.raises(HubNotConnectedError):
            alarm.arm()
        assert alarm.mode is AlarmMode.DISARMED

    @pytest.mark.asyncio
    async def test_can_transition_to(self, alarm: AlarmStateMachine) -> None:
        assert alarm.can_transition_to(AlarmMode.ARMED)
        assert not alarm.can_transition_to(AlarmMode.TRIGGERED)

    @pytest.mark.asyncio
    async def test_session_mirrors_armed_flag(self, bus: EventBus, store: StateStore, activity: ActivityLog) -> None:
        session = HubSession()
        alarm = AlarmStateMachine(bus, store, activity, session=session)

        alarm.arm()
        assert session.preferences.alarm_armed is True
        alarm.disarm()
        assert session.preferences.alarm_armed is False


class TestSensorEvents:
    @pytest.mark.asyncio
    async def test_motion_triggers_armed_alarm_once(
        self, bus: EventBus, alarm: AlarmStateMachine, activity: ActivityLog, recorder: Recorder
    ) -> None:
        alarm.arm()
        await bus.wait_idle()
        bus.subscribe("home/security/alarm", recorder)

        bus.publish("home/security/motion", {"detected": True, "location": "Backyard"})
        await bus.wait_idle()
        bus.publish("home/security/motion", {"detected": True, "location": "Garage"})
        await bus.wait_idle()

        assert alarm.mode is AlarmMode.TRIGGERED
        assert recorder.payloads == [{"triggered": True}]
        assert _messages(activity, ActivityType.MOTION) == ["Motion detected at Garage", "Motion detected at Backyard"]
        assert _messages(activity, ActivityType.ALARM) == ["Alarm triggered: motion at Backyard"]

    @pytest.mark.asyncio
    async def test_motion_while_disarmed_is_only_logged(
        self, bus: EventBus, alarm: AlarmStateMachine, activity: ActivityLog
    ) -> None:
        bus.publish("home/motion", {"motion": True})
        await bus.wait_idle()

        assert alarm.mode is AlarmMode.DISARMED
        assert _messages(activity, ActivityType.MOTION) == ["Motion detected at unknown location"]
        assert _messages(activity, ActivityType.ALARM) == []

    @pytest.mark.asyncio
    async def test_no_motion_is_ignored(self, bus: EventBus, alarm: AlarmStateMachine, activity: ActivityLog) -> None:
        alarm.arm()
        bus.publish("home/security/motion", {"detected": False})
        await bus.wait_idle()

        assert alarm.mode is AlarmMode.ARMED
        assert activity.entries(ActivityType.MOTION) == []

    @pytest.mark.asyncio
    async def test_door_opened_triggers(self, bus: EventBus, alarm: AlarmStateMachine, activity: ActivityLog) -> None:
        alarm.arm()
        bus.publish("home/security/door", {"action": "closed"})
        await bus.wait_idle()
        assert alarm.mode is AlarmMode.ARMED

        bus.publish("home/security/door", {"action": "opened", "location": "Back Door"})
        await bus.wait_idle()

        assert alarm.mode is AlarmMode.TRIGGERED
        assert _messages(activity, ActivityType.DOOR) == ["Door opened at Back Door", "Door closed at main entrance"]

    @pytest.mark.asyncio
    async def test_trigger_survives_disconnected_bus(
        self,
        bus: EventBus,
        transport: LoopbackTransport,
        alarm: AlarmStateMachine,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        alarm.arm()
        await bus.wait_idle()
        transport.inject("home/security/motion", b'{"detected":true}')
        transport.drop()

        with caplog.at_level(logging.WARNING, logger="homehub.security.alarm"):
            await bus.wait_idle()

        assert alarm.mode is AlarmMode.TRIGGERED
        assert any("status publish failed" in record.message for record in caplog.records)


class TestRemoteCommands:
    @pytest.mark.asyncio
    async def test_remote_arm_and_disarm(
        self, bus: EventBus, transport: LoopbackTransport, alarm: AlarmStateMachine
    ) -> None:
        transport.inject("home/security/alarm", b'{"armed":true}')
        await bus.wait_idle()
        assert alarm.mode is AlarmMode.ARMED

        transport.inject("home/security/alarm", b'{"armed":true}')
        await bus.wait_idle()
        assert alarm.mode is AlarmMode.ARMED

        transport.inject("home/security/alarm", b'{"armed":false}')
        await bus.wait_idle()
        assert alarm.mode is AlarmMode.DISARMED

    @pytest.mark.asyncio
    async def test_remote_trigger_and_reset(
        self, bus: EventBus, transport: LoopbackTransport, alarm: AlarmStateMachine, activity: ActivityLog
    ) -> None:
        alarm.arm()
        transport.inject("home/security/alarm", b'{"triggered":true}')
        await bus.wait_idle()
        assert alarm.mode is AlarmMode.TRIGGERED

        transport.inject("home/security/alarm", b'{"reset":true,"triggered":false}')
        await bus.wait_idle()
        assert alarm.mode is AlarmMode.ARMED
        assert _messages(activity, ActivityType.ALARM) == ["Alarm triggered: remote command"]

    @pytest.mark.asyncio
    async def test_remote_disarm_while_triggered_is_ignored(
        self,
        bus: EventBus,
        transport: LoopbackTransport,
        alarm: AlarmStateMachine,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        alarm.arm()
        alarm.trigger()
        await bus.wait_idle()

        with caplog.at_level(logging.WARNING, logger="homehub.security.alarm"):
            transport.inject("home/security/alarm", b'{"armed":false}')
            await bus.wait_idle()

        assert alarm.mode is AlarmMode.TRIGGERED
        assert any("Ignoring remote alarm command" in record.message for record in caplog.records)

    @pytest.mark.asyncio
    async def test_own_echoes_do_not_replay(
        self, bus: EventBus, alarm: AlarmStateMachine, activity: ActivityLog
    ) -> None:
        alarm.arm()
        alarm.disarm()
        await bus.wait_idle()

        assert alarm.mode is AlarmMode.DISARMED
        assert len(activity.entries(ActivityType.SYSTEM)) == 2

    @pytest.mark.asyncio
    async def test_lost_echo_does_not_hide_remote_command(
        self, bus: EventBus, transport: LoopbackTransport, alarm: AlarmStateMachine
    ) -> None:
        holding = asyncio.Event()

        async def hold_lane(_message: Message) -> None:
            holding.set()
            await asyncio.Event().wait()

        blocker = bus.subscribe("home/security/alarm", hold_lane)
        transport.inject("home/security/alarm", b'{"hold":true}')
        await holding.wait()
        alarm.arm()
        await bus.close()

        bus.unsubscribe(blocker)
        await bus.connect("memory://test")
        transport.inject("home/security/alarm", b'{"armed":false}')
        transport.inject("home/security/alarm", b'{"armed":true,"triggered":false}')
        await bus.wait_idle()

        assert alarm.mode is AlarmMode.ARMED

    @pytest.mark.asyncio
    async def test_close_detaches_listeners(
        self, bus: EventBus, transport: LoopbackTransport, alarm: AlarmStateMachine
    ) -> None:
        alarm.close()
        transport.inject("home/security/alarm", b'{"armed":true}')
        await bus.wait_idle()
        assert alarm.mode is AlarmMode.DISARMED
