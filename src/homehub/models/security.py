"""Security models: alarm state, activity log entries, camera snapshots."""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator

__all__ = [
    "CAMERA_LOCATIONS",
    "ActivityLogEntry",
    "ActivityType",
    "AlarmState",
    "CameraSnapshot",
]


class ActivityType(enum.StrEnum):
    MOTION = "motion"
    DOOR = "door"
    CAMERA = "camera"
    ALARM = "alarm"
    SYSTEM = "system"


class AlarmState(BaseModel):
    """Published view of the alarm: ``triggered`` implies ``armed``."""

    model_config = ConfigDict(frozen=True)

    armed: bool = False
    triggered: bool = False

    @model_validator(mode="after")
    def _triggered_requires_armed(self) -> AlarmState:
        if self.triggered and not self.armed:
            raise ValueError("alarm cannot be triggered while disarmed")
        return self


class ActivityLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: ActivityType
    timestamp: datetime
    message: str


# Camera key -> display name.
CAMERA_LOCATIONS: dict[str, str] = {
    "frontDoor": "Front Door",
    "backyard": "Backyard",
    "livingRoom": "Living Room",
    "garage": "Garage",
}


class CameraSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: datetime
    location: str
    """Camera key (see ``CAMERA_LOCATIONS``)."""

    @property
    def location_name(self) -> str:
        return CAMERA_LOCATIONS.get(self.location, self.location)
