"""Per-user session and preferences shared by hub components.

One :class:`HubSession` is created per hub and passed by reference into the
components that read or update preferences. It is never persisted.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from homehub._constants import TEMPERATURE_MAX_C, TEMPERATURE_MIN_C


class Preferences(BaseModel):
    """User preferences edited through the command surface.

    Assignments are validated, so an out-of-range value raises
    ``pydantic.ValidationError`` and leaves the preference unchanged.
    """

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    default_temperature: int = Field(default=22, ge=TEMPERATURE_MIN_C, le=TEMPERATURE_MAX_C)
    weather_location: str = Field(default="New York", min_length=1)
    energy_savings_goal: int = Field(default=15, ge=5, le=30)
    """Target reduction against the daily baseline, in percent."""
    camera_on: bool = False
    alarm_armed: bool = False


class HubSession(BaseModel):
    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    username: str = "guest"
    preferences: Preferences = Field(default_factory=Preferences)

    @field_validator("username")
    @classmethod
    def _require_username(cls, value: str) -> str:
        if not value:
            raise ValueError("username must be non-empty")
        return value
