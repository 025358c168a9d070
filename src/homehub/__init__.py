"""homehub - Async home-automation event hub."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("homehub")
except PackageNotFoundError:
    __version__ = "0+local"
from homehub.automation import AutomationEngine
from homehub.bus import ConnectionState, EventBus, LoopbackTransport, Message, Subscription
from homehub.config import HubConfig, SimulatorIntervals
from homehub.energy import EnergyMonitor
from homehub.exceptions import (
    HubConfigError,
    HubConnectionError,
    HubDecodeError,
    HubError,
    HubInvalidTransitionError,
    HubNotConnectedError,
    HubValidationError,
)
from homehub.hub import HomeHub
from homehub.models import (
    ActivityLogEntry,
    ActivityType,
    AlarmState,
    AutomationLogEntry,
    AutomationRule,
    CurrentWeather,
    DeviceReading,
    ImmediateSchedule,
    RuleAction,
    RuleCondition,
    TimeOfDaySchedule,
    WeatherCondition,
)
from homehub.security import ActivityLog, AlarmMode, AlarmStateMachine, CameraController
from homehub.session import HubSession, Preferences
from homehub.simulator import SensorSimulator
from homehub.state import Channel, StateStore

__all__ = [
    "ActivityLog",
    "ActivityLogEntry",
    "ActivityType",
    "AlarmMode",
    "AlarmState",
    "AlarmStateMachine",
    "AutomationEngine",
    "AutomationLogEntry",
    "AutomationRule",
    "CameraController",
    "Channel",
    "ConnectionState",
    "CurrentWeather",
    "DeviceReading",
    "EnergyMonitor",
    "EventBus",
    "HomeHub",
    "HubConfig",
    "HubConfigError",
    "HubConnectionError",
    "HubDecodeError",
    "HubError",
    "HubInvalidTransitionError",
    "HubNotConnectedError",
    "HubSession",
    "HubValidationError",
    "ImmediateSchedule",
    "LoopbackTransport",
    "Message",
    "Preferences",
    "RuleAction",
    "RuleCondition",
    "SensorSimulator",
    "SimulatorIntervals",
    "StateStore",
    "Subscription",
    "TimeOfDaySchedule",
    "WeatherCondition",
    "__version__",
]
