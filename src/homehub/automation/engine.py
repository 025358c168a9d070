"""Weather automation rule engine.

Rules are evaluated against the current weather snapshot whenever a new
weather reading is stored and on every periodic tick. A rule whose gates
stay open fires again on every evaluation; there is no cooldown.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from homehub._constants import AUTOMATION_LOG_CAPACITY
from homehub._periodic import PeriodicTask
from homehub.automation.actions import command_for
from homehub.automation.conditions import condition_matches, schedule_allows
from homehub.bus.event_bus import EventBus
from homehub.exceptions import HubConnectionError, HubValidationError
from homehub.models.automation import AutomationLogEntry, AutomationRule, RuleAction, RuleCondition
from homehub.models.weather import CurrentWeather
from homehub.state.channels import Channel
from homehub.state.logs import BoundedLog
from homehub.state.store import ChannelUpdate, StateStore

_logger = logging.getLogger(__name__)

DEFAULT_RULES: tuple[AutomationRule, ...] = (
    AutomationRule(
        name="Close blinds on sunny days",
        condition=RuleCondition.SUNNY,
        action=RuleAction.CLOSE_BLINDS,
        enabled=True,
        schedule="09:00",
    ),
    AutomationRule(
        name="Turn on lights when cloudy",
        condition=RuleCondition.CLOUDY,
        action=RuleAction.LIGHTS_ON,
        enabled=True,
        schedule="immediate",
    ),
    AutomationRule(
        name="Increase temperature when cold",
        condition=RuleCondition.COLD,
        action=RuleAction.INCREASE_TEMP,
        enabled=False,
        schedule="immediate",
    ),
)


class AutomationEngine:
    """Owns the rule set and fires device commands through the bus.

    Example::

        engine = AutomationEngine.create_default(bus, store)
        engine.start()
        ...
        await engine.stop()
    """

    def __init__(
        self,
        bus: EventBus,
        store: StateStore,
        *,
        clock: Callable[[], datetime] = datetime.now,
        tick_interval: float = 60.0,
        log_capacity: int = AUTOMATION_LOG_CAPACITY,
    ) -> None:
        self._bus = bus
        self._store = store
        self._clock = clock
        self._rules: dict[int, AutomationRule] = {}
        self._rule_ids = itertools.count(1)
        self._log: BoundedLog[AutomationLogEntry] = BoundedLog(log_capacity)
        self._log_ids = itertools.count(1)
        self._ticker = PeriodicTask("automation", tick_interval, self._on_tick)
        self._remove_listener = store.add_listener(self._on_weather, Channel.WEATHER)

    @classmethod
    def create_default(cls, bus: EventBus, store: StateStore, **kwargs: Any) -> AutomationEngine:
        """Create an engine seeded with the three stock weather rules."""
        engine = cls(bus, store, **kwargs)
        for rule in DEFAULT_RULES:
            engine.add(rule)
        return engine

    # ------------------------------------------------------------------
    # Rule set
    # ------------------------------------------------------------------

    def rules(self) -> list[AutomationRule]:
        """Rules in insertion order."""
        return list(self._rules.values())

    def get(self, rule_id: int) -> AutomationRule | None:
        return self._rules.get(rule_id)

    def add(self, rule: AutomationRule | Mapping[str, Any]) -> AutomationRule:
        """Add *rule*, assigning an id when it has none.

        Raises :class:`HubValidationError` for invalid fields (including an
        empty name) and for an id that is already taken. Nothing is changed
        on failure.
        """
        try:
            if isinstance(rule, AutomationRule):
                rule = AutomationRule.model_validate(rule.model_dump())
            else:
                rule = AutomationRule.model_validate(dict(rule))
        except ValidationError as exc:
            raise HubValidationError(f"Invalid automation rule: {exc}") from exc

        if rule.id is None:
            rule_id = next(self._rule_ids)
            while rule_id in self._rules:
                rule_id = next(self._rule_ids)
            rule = rule.model_copy(update={"id": rule_id})
        elif rule.id in self._rules:
            raise HubValidationError(f"Automation id {rule.id} already exists")

        assert rule.id is not None  # noqa: S101
        self._rules[rule.id] = rule
        _logger.info("Automation added id=%s name=%r schedule=%s", rule.id, rule.name, rule.schedule)
        return rule

    def toggle(self, rule_id: int) -> AutomationRule | None:
        """Flip ``enabled``; returns the updated rule or ``None`` if unknown."""
        rule = self._rules.get(rule_id)
        if rule is None:
            return None
        rule = rule.model_copy(update={"enabled": not rule.enabled})
        self._rules[rule_id] = rule
        _logger.info("Automation id=%s %s", rule_id, "enabled" if rule.enabled else "disabled")
        return rule

    def delete(self, rule_id: int) -> bool:
        removed = self._rules.pop(rule_id, None) is not None
        if removed:
            _logger.info("Automation deleted id=%s", rule_id)
        return removed

    def log(self) -> list[AutomationLogEntry]:
        """Recent firings, newest first."""
        return self._log.entries()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, now: datetime | None = None) -> list[AutomationRule]:
        """Evaluate every enabled rule once; returns the rules that fired."""
        weather = self._store.get_snapshot(Channel.WEATHER)
        assert isinstance(weather, CurrentWeather)  # noqa: S101
        if not weather.is_known:
            _logger.debug("Skipping automation evaluation: no weather reading yet")
            return []

        now = now or self._clock()
        fired: list[AutomationRule] = []
        for rule in list(self._rules.values()):
            if not rule.enabled:
                continue
            if not condition_matches(rule.condition, weather):
                continue
            if not schedule_allows(rule.schedule, now):
                continue
            self._fire(rule, now)
            fired.append(rule)
        return fired

    def _fire(self, rule: AutomationRule, now: datetime) -> None:
        command = command_for(rule.action)
        _logger.info("Triggering automation id=%s name=%r -> %s", rule.id, rule.name, command.topic)
        try:
            self._bus.publish(command.topic, command.payload)
        except HubConnectionError as exc:
            _logger.warning("Automation id=%s command publish failed: %s", rule.id, exc)
        self._log.append(
            AutomationLogEntry(
                id=next(self._log_ids),
                time=now,
                rule_id=rule.id,
                message=f"Triggered: {rule.name}",
            )
        )

    def _on_weather(self, update: ChannelUpdate) -> None:
        self.evaluate()

    def _on_tick(self) -> None:
        self.evaluate()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._ticker.running

    def start(self) -> None:
        """Start the periodic tick. Idempotent."""
        self._ticker.start()

    async def stop(self) -> None:
        """Stop the periodic tick. Idempotent."""
        await self._ticker.stop()

    def close(self) -> None:
        self._remove_listener()
