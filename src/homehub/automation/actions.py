"""Rule action -> device command mapping."""

from __future__ import annotations

from typing import Any, NamedTuple

from homehub._constants import TOPIC_BLINDS, TOPIC_LIGHT, TOPIC_TEMPERATURE
from homehub.models.automation import RuleAction

RAISED_SETPOINT_C = 24
LOWERED_SETPOINT_C = 20


class Command(NamedTuple):
    topic: str
    payload: dict[str, Any]


_COMMANDS: dict[RuleAction, Command] = {
    RuleAction.LIGHTS_ON: Command(TOPIC_LIGHT, {"light": True}),
    RuleAction.LIGHTS_OFF: Command(TOPIC_LIGHT, {"light": False}),
    RuleAction.CLOSE_BLINDS: Command(TOPIC_BLINDS, {"closed": True}),
    RuleAction.OPEN_BLINDS: Command(TOPIC_BLINDS, {"closed": False}),
    RuleAction.INCREASE_TEMP: Command(TOPIC_TEMPERATURE, {"temperature": RAISED_SETPOINT_C}),
    RuleAction.DECREASE_TEMP: Command(TOPIC_TEMPERATURE, {"temperature": LOWERED_SETPOINT_C}),
}


def command_for(action: RuleAction) -> Command:
    command = _COMMANDS[action]
    return Command(command.topic, dict(command.payload))
