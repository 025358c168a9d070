"""Weather automation rule models.

A rule binds a weather condition to a device command, optionally gated on a
time of day. Schedules accept the dashboard's string form: ``"immediate"``
or ``"HH:MM"``.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "AutomationLogEntry",
    "AutomationRule",
    "ImmediateSchedule",
    "RuleAction",
    "RuleCondition",
    "Schedule",
    "TimeOfDaySchedule",
    "parse_schedule",
]


class RuleCondition(enum.StrEnum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    WINDY = "windy"
    COLD = "cold"
    HOT = "hot"


class RuleAction(enum.StrEnum):
    """Device commands a rule can issue."""

    LIGHTS_ON = "lightsOn"
    LIGHTS_OFF = "lightsOff"
    CLOSE_BLINDS = "closeBlinds"
    OPEN_BLINDS = "openBlinds"
    INCREASE_TEMP = "increaseTemp"
    DECREASE_TEMP = "decreaseTemp"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS: dict[RuleAction, str] = {
    RuleAction.LIGHTS_ON: "Turn Lights On",
    RuleAction.LIGHTS_OFF: "Turn Lights Off",
    RuleAction.CLOSE_BLINDS: "Close Blinds",
    RuleAction.OPEN_BLINDS: "Open Blinds",
    RuleAction.INCREASE_TEMP: "Increase Temperature",
    RuleAction.DECREASE_TEMP: "Decrease Temperature",
}


class ImmediateSchedule(BaseModel):
    """Rule may fire at any time of day."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["immediate"] = "immediate"

    def __str__(self) -> str:
        return "immediate"


class TimeOfDaySchedule(BaseModel):
    """Rule may fire only close to ``hour:minute`` local time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["at"] = "at"
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


Schedule = Annotated[ImmediateSchedule | TimeOfDaySchedule, Field(discriminator="kind")]


def parse_schedule(value: Any) -> Any:
    """Convert ``"immediate"`` / ``"HH:MM"`` strings into schedule dicts.

    Anything else is returned unchanged for pydantic to validate.
    """
    if not isinstance(value, str):
        return value
    text = value.strip().lower()
    if text in {"", "immediate"}:
        return {"kind": "immediate"}
    hour_text, sep, minute_text = text.partition(":")
    if not sep or not hour_text.isdigit() or not minute_text.isdigit():
        raise ValueError(f"schedule must be 'immediate' or 'HH:MM', got {value!r}")
    return {"kind": "at", "hour": int(hour_text), "minute": int(minute_text)}


class AutomationRule(BaseModel):
    """User-defined condition -> action binding.

    ``id`` is assigned by the engine when the rule is added without one.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int | None = None
    name: str
    condition: RuleCondition
    action: RuleAction
    enabled: bool = True
    schedule: Schedule = Field(
        default_factory=ImmediateSchedule,
        validation_alias=AliasChoices("schedule", "time"),
    )

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("automation name must be non-empty")
        return name

    @field_validator("schedule", mode="before")
    @classmethod
    def _parse_schedule(cls, value: Any) -> Any:
        return parse_schedule(value)


class AutomationLogEntry(BaseModel):
    """One automation firing, as shown in the recent-automations list."""

    model_config = ConfigDict(frozen=True)

    id: int
    time: datetime
    rule_id: int | None = None
    message: str
