"""Alarm, camera and security activity log."""

from homehub.security.activity import ActivityLog
from homehub.security.alarm import AlarmMode, AlarmStateMachine
from homehub.security.camera import CameraController

__all__ = [
    "ActivityLog",
    "AlarmMode",
    "AlarmStateMachine",
    "CameraController",
]
