"""High-level hub wiring the bus, state and engines together."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from homehub import _constants as topics
from homehub._constants import validate_setpoint
from homehub.automation.engine import AutomationEngine
from homehub.bus.event_bus import ConnectionInfo, EventBus
from homehub.bus.message import Message
from homehub.bus.transport import Transport
from homehub.config import HubConfig
from homehub.energy import EnergyMonitor
from homehub.exceptions import HubValidationError
from homehub.models._base import HubBaseModel
from homehub.models.automation import AutomationRule
from homehub.models.security import CAMERA_LOCATIONS, ActivityType, AlarmState, CameraSnapshot
from homehub.security.activity import ActivityLog
from homehub.security.alarm import AlarmStateMachine
from homehub.security.camera import CameraController
from homehub.session import HubSession
from homehub.simulator.runner import SensorSimulator
from homehub.state.channels import Channel
from homehub.state.store import StateStore

_logger = logging.getLogger(__name__)


class HomeHub:
    """Home automation hub.

    Usage::

        async with HomeHub(HubConfig.from_env()) as hub:
            hub.toggle_light(True)
            hub.arm_alarm()
            print(hub.snapshot()[Channel.LIGHT])

    Each command maps to a single publish on its fixed topic. Commands raise
    :class:`HubNotConnectedError` while the bus is down and
    :class:`HubValidationError` for rejected input.
    """

    def __init__(
        self,
        config: HubConfig | None = None,
        *,
        session: HubSession | None = None,
        transport: Transport | None = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or HubConfig()
        self.session = session or HubSession()
        self.bus = EventBus(
            transport,
            client_id=self._config.client_id,
            keepalive=self._config.mqtt_keepalive,
            connect_timeout=self._config.connect_timeout,
        )
        self.store = StateStore(self.bus)
        self.activity = ActivityLog(self._config.activity_log_capacity)
        self.alarm = AlarmStateMachine(self.bus, self.store, self.activity, session=self.session)
        self.camera = CameraController(self.bus, self.store, self.activity, session=self.session)
        self.energy = EnergyMonitor(self.store, session=self.session)
        self.automation = AutomationEngine.create_default(
            self.bus,
            self.store,
            clock=clock,
            tick_interval=self._config.automation_tick,
            log_capacity=self._config.automation_log_capacity,
        )
        self.simulator = SensorSimulator(self.bus, intervals=self._config.simulator, rng=rng, clock=clock)

    @property
    def config(self) -> HubConfig:
        return self._config

    async def __aenter__(self) -> HomeHub:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> ConnectionInfo:
        """Connect the bus, then start the automation tick and the simulator."""
        info = await self.bus.connect(self._config.broker_url)
        self.activity.record(ActivityType.SYSTEM, "Security system initialized")
        self.automation.start()
        if self._config.simulator_enabled:
            self.simulator.start()
        _logger.info("Hub started user=%s endpoint=%s", self.session.username, info.endpoint)
        return info

    async def stop(self) -> None:
        await self.simulator.stop()
        await self.automation.stop()
        await self.bus.wait_idle()
        for component in (self.automation, self.energy, self.camera, self.alarm, self.store):
            component.close()
        await self.bus.close()
        _logger.info("Hub stopped")

    async def wait_idle(self) -> None:
        """Wait until all published messages have been handled."""
        await self.bus.wait_idle()

    # ------------------------------------------------------------------
    # Device commands
    # ------------------------------------------------------------------

    def toggle_light(self, on: bool) -> Message:
        return self.bus.publish(topics.TOPIC_LIGHT, {"light": bool(on)})

    def set_temperature(self, temperature: int) -> Message:
        """Publish a thermostat setpoint (integer, 16-30 °C)."""
        try:
            validate_setpoint(temperature)
        except ValueError as exc:
            raise HubValidationError(str(exc)) from exc
        message = self.bus.publish(topics.TOPIC_TEMPERATURE, {"temperature": temperature})
        self.session.preferences.default_temperature = temperature
        return message

    def toggle_door_lock(self, locked: bool) -> Message:
        return self.bus.publish(topics.TOPIC_DOOR_LOCK, {"locked": bool(locked)})

    def set_location(self, location: str) -> Message:
        """Change the weather location."""
        name = location.strip() if isinstance(location, str) else ""
        if not name:
            raise HubValidationError("Weather location must be a non-empty string")
        message = self.bus.publish(topics.TOPIC_WEATHER_LOCATION, {"location": name})
        self.session.preferences.weather_location = name
        return message

    def set_energy_savings_goal(self, percent: int) -> int:
        try:
            self.session.preferences.energy_savings_goal = percent
        except ValidationError as exc:
            raise HubValidationError(f"Invalid energy savings goal {percent!r}") from exc
        return percent

    # ------------------------------------------------------------------
    # Security commands
    # ------------------------------------------------------------------

    def toggle_camera(self, enabled: bool) -> None:
        self.camera.set_enabled(bool(enabled))

    def select_camera(self, location: str) -> str:
        return self.camera.select(location)

    def take_snapshot(self) -> CameraSnapshot:
        return self.camera.take_snapshot()

    def arm_alarm(self) -> AlarmState:
        return self.alarm.arm()

    def disarm_alarm(self) -> AlarmState:
        return self.alarm.disarm()

    def reset_alarm(self) -> AlarmState:
        return self.alarm.reset()

    def simulate_motion(self) -> Message:
        """Publish a motion detection at the selected camera."""
        location = CAMERA_LOCATIONS[self.camera.selected]
        return self.bus.publish(topics.TOPIC_SECURITY_MOTION, {"detected": True, "location": location})

    def simulate_door(self, location: str = "Front Door") -> Message:
        return self.bus.publish(topics.TOPIC_SECURITY_DOOR, {"action": "opened", "location": location})

    # ------------------------------------------------------------------
    # Automations
    # ------------------------------------------------------------------

    def add_automation(self, rule: AutomationRule | Mapping[str, Any]) -> AutomationRule:
        return self.automation.add(rule)

    def toggle_automation(self, rule_id: int) -> AutomationRule | None:
        return self.automation.toggle(rule_id)

    def delete_automation(self, rule_id: int) -> bool:
        return self.automation.delete(rule_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[Channel, HubBaseModel]:
        """Copies of every channel's current state."""
        return self.store.snapshot()
