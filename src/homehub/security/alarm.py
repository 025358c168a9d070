"""Security alarm state machine.

Valid transitions::

    DISARMED  -> ARMED       arm()
    ARMED     -> DISARMED    disarm()
    ARMED     -> TRIGGERED   trigger(), motion detected, door opened
    TRIGGERED -> ARMED       reset()

A triggered alarm must be reset before it can be disarmed. While triggered,
further motion or door events are logged but do not trigger again.
"""

from __future__ import annotations

import enum
import logging

from homehub._constants import TOPIC_SECURITY_ALARM
from homehub.bus.event_bus import EventBus
from homehub.bus.message import Message
from homehub.exceptions import HubConnectionError, HubInvalidTransitionError
from homehub.models.payloads import AlarmPayload, DoorEventPayload, MotionPayload
from homehub.models.security import ActivityType, AlarmState
from homehub.security.activity import ActivityLog
from homehub.session import HubSession
from homehub.state.channels import Channel
from homehub.state.store import ChannelUpdate, StateStore

_logger = logging.getLogger(__name__)


class AlarmMode(enum.StrEnum):
    DISARMED = "disarmed"
    ARMED = "armed"
    TRIGGERED = "triggered"


class AlarmStateMachine:
    """Arms, disarms, triggers and resets the alarm.

    Commands publish the new status on ``home/security/alarm`` before the
    local state changes, so a publish failure leaves the state untouched and
    propagates to the caller. Automatic triggers from sensor events always
    apply locally; their publish failures are only logged.

    Alarm messages from other publishers are applied idempotently, which
    also makes the echoes of this machine's own publishes no-ops.
    """

    VALID_TRANSITIONS: dict[AlarmMode, frozenset[AlarmMode]] = {
        AlarmMode.DISARMED: frozenset({AlarmMode.ARMED}),
        AlarmMode.ARMED: frozenset({AlarmMode.DISARMED, AlarmMode.TRIGGERED}),
        AlarmMode.TRIGGERED: frozenset({AlarmMode.ARMED}),
    }

    def __init__(
        self,
        bus: EventBus,
        store: StateStore,
        activity: ActivityLog,
        *,
        session: HubSession | None = None,
    ) -> None:
        self._bus = bus
        self._activity = activity
        self._session = session
        self._mode = AlarmMode.DISARMED
        # Messages published by this machine whose loopback delivery is still pending.
        self._own_echoes: list[Message] = []
        self._removers = [
            store.add_listener(self._on_motion, Channel.MOTION),
            store.add_listener(self._on_door, Channel.DOOR),
            store.add_listener(self._on_alarm, Channel.ALARM),
        ]

    def close(self) -> None:
        for remove in self._removers:
            remove()
        self._removers.clear()
        self._own_echoes.clear()

    @property
    def mode(self) -> AlarmMode:
        return self._mode

    @property
    def state(self) -> AlarmState:
        return AlarmState(
            armed=self._mode is not AlarmMode.DISARMED,
            triggered=self._mode is AlarmMode.TRIGGERED,
        )

    def can_transition_to(self, target: AlarmMode) -> bool:
        return target in self.VALID_TRANSITIONS[self._mode]

    def _check(self, target: AlarmMode, action: str) -> None:
        if not self.can_transition_to(target):
            raise HubInvalidTransitionError(
                f"Cannot {action} alarm while {self._mode}",
                current=str(self._mode),
                action=action,
            )

    def _publish(self, status: dict[str, bool]) -> None:
        self._own_echoes.append(self._bus.publish(TOPIC_SECURITY_ALARM, status))

    def _enter(self, target: AlarmMode, activity_type: ActivityType, message: str) -> None:
        previous = self._mode
        self._mode = target
        if self._session is not None:
            self._session.preferences.alarm_armed = target is not AlarmMode.DISARMED
        self._activity.record(activity_type, message)
        _logger.debug("Alarm transition %s -> %s", previous, target)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def arm(self) -> AlarmState:
        """Arm the alarm. No-op when already armed."""
        if self._mode is AlarmMode.ARMED:
            return self.state
        self._check(AlarmMode.ARMED, "arm")
        self._publish({"armed": True, "triggered": False})
        self._enter(AlarmMode.ARMED, ActivityType.SYSTEM, "Alarm system armed")
        return self.state

    def disarm(self) -> AlarmState:
        """Disarm the alarm. No-op when already disarmed; rejected while triggered."""
        if self._mode is AlarmMode.DISARMED:
            return self.state
        self._check(AlarmMode.DISARMED, "disarm")
        self._publish({"armed": False})
        self._enter(AlarmMode.DISARMED, ActivityType.SYSTEM, "Alarm system disarmed")
        return self.state

    def reset(self) -> AlarmState:
        """Clear a triggered alarm, leaving it armed."""
        if self._mode is not AlarmMode.TRIGGERED:
            raise HubInvalidTransitionError(
                f"Cannot reset alarm while {self._mode}",
                current=str(self._mode),
                action="reset",
            )
        self._publish({"reset": True, "triggered": False})
        self._enter(AlarmMode.ARMED, ActivityType.SYSTEM, "Alarm reset")
        return self.state

    def trigger(self, reason: str = "manual trigger") -> bool:
        """Trigger the armed alarm.

        Returns ``True`` when the alarm was triggered by this call, ``False``
        when it was already triggered. Raises
        :class:`HubInvalidTransitionError` while disarmed.
        """
        if self._mode is AlarmMode.TRIGGERED:
            return False
        self._check(AlarmMode.TRIGGERED, "trigger")
        self._publish({"triggered": True})
        self._enter(AlarmMode.TRIGGERED, ActivityType.ALARM, f"Alarm triggered: {reason}")
        return True

    def _auto_trigger(self, reason: str) -> None:
        if self._mode is not AlarmMode.ARMED:
            return
        self._enter(AlarmMode.TRIGGERED, ActivityType.ALARM, f"Alarm triggered: {reason}")
        try:
            self._publish({"triggered": True})
        except HubConnectionError as exc:
            _logger.warning("Alarm triggered but status publish failed: %s", exc)

    # ------------------------------------------------------------------
    # Store listeners
    # ------------------------------------------------------------------

    def _on_motion(self, update: ChannelUpdate) -> None:
        payload = update.payload
        if not isinstance(payload, MotionPayload) or not payload.detected:
            return
        location = payload.location or "unknown location"
        self._activity.record(ActivityType.MOTION, f"Motion detected at {location}")
        self._auto_trigger(f"motion at {location}")

    def _on_door(self, update: ChannelUpdate) -> None:
        payload = update.payload
        if not isinstance(payload, DoorEventPayload) or not payload.action:
            return
        location = payload.location or "main entrance"
        self._activity.record(ActivityType.DOOR, f"Door {payload.action} at {location}")
        if payload.opened:
            self._auto_trigger(f"door opened at {location}")

    def _on_alarm(self, update: ChannelUpdate) -> None:
        payload = update.payload
        if not isinstance(payload, AlarmPayload):
            return
        for index, sent in enumerate(self._own_echoes):
            if sent is update.message:
                del self._own_echoes[index]
                return
        try:
            if payload.reset and self._mode is AlarmMode.TRIGGERED:
                self._enter(AlarmMode.ARMED, ActivityType.SYSTEM, "Alarm reset")
            if payload.armed is not None and payload.armed != (self._mode is not AlarmMode.DISARMED):
                target = AlarmMode.ARMED if payload.armed else AlarmMode.DISARMED
                self._check(target, "arm" if payload.armed else "disarm")
                self._enter(target, ActivityType.SYSTEM, f"Alarm system {target}")
            if payload.triggered and self._mode is AlarmMode.ARMED:
                self._enter(AlarmMode.TRIGGERED, ActivityType.ALARM, "Alarm triggered: remote command")
        except HubInvalidTransitionError as exc:
            _logger.warning("Ignoring remote alarm command on %s: %s", update.topic, exc)
