"""Hub configuration for homehub."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from homehub._constants import ACTIVITY_LOG_CAPACITY, AUTOMATION_LOG_CAPACITY
from homehub.exceptions import HubConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise HubConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class SimulatorIntervals:
    """Tick interval (seconds) per simulated channel."""

    temperature: float = 5.0
    motion: float = 5.0
    energy: float = 1.0
    weather: float = 60.0
    forecast: float = 60.0


@dataclasses.dataclass(frozen=True)
class HubConfig:
    """Hub configuration.

    Parameters
    ----------
    broker_url : str
        Bus endpoint. ``memory://`` runs an in-process loopback bus;
        ``mqtt://host[:port]`` and ``mqtts://host[:port]`` use a broker.
    client_id : str
        MQTT client identifier.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    connect_timeout : float
        Seconds to wait for the broker CONNACK before giving up.
    simulator_enabled : bool
        Start the synthetic sensor generators with the hub.
    simulator : SimulatorIntervals
        Per-channel simulator tick intervals.
    automation_tick : float
        Seconds between periodic automation evaluations.
    activity_log_capacity : int
        Number of security activity entries retained.
    automation_log_capacity : int
        Number of automation log entries retained.
    """

    broker_url: str = "memory://local"
    client_id: str = "homehub"
    mqtt_keepalive: int = 60
    connect_timeout: float = 10.0
    simulator_enabled: bool = True
    simulator: SimulatorIntervals = dataclasses.field(default_factory=SimulatorIntervals)
    automation_tick: float = 60.0
    activity_log_capacity: int = ACTIVITY_LOG_CAPACITY
    automation_log_capacity: int = AUTOMATION_LOG_CAPACITY

    def __post_init__(self) -> None:
        if self.automation_tick <= 0:
            raise HubConfigError(f"automation_tick must be positive, got {self.automation_tick}")
        if self.activity_log_capacity <= 0 or self.automation_log_capacity <= 0:
            raise HubConfigError("log capacities must be positive")
        for field in dataclasses.fields(self.simulator):
            if getattr(self.simulator, field.name) <= 0:
                raise HubConfigError(f"simulator interval '{field.name}' must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> HubConfig:
        """Create configuration from environment variables.

        Reads ``HOMEHUB_*`` variables. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        HubConfig
            Populated configuration.
        """
        env = os.environ

        interval_kwargs: dict[str, float] = {}
        _ENV_INTERVAL_MAP = {
            "HOMEHUB_SIM_TEMPERATURE_INTERVAL": "temperature",
            "HOMEHUB_SIM_MOTION_INTERVAL": "motion",
            "HOMEHUB_SIM_ENERGY_INTERVAL": "energy",
            "HOMEHUB_SIM_WEATHER_INTERVAL": "weather",
            "HOMEHUB_SIM_FORECAST_INTERVAL": "forecast",
        }
        for env_key, field_name in _ENV_INTERVAL_MAP.items():
            val = env.get(env_key)
            if val is not None:
                interval_kwargs[field_name] = float(_env_number(env_key, val, float))

        simulator_overrides = overrides.pop("simulator", None)
        if isinstance(simulator_overrides, dict):
            interval_kwargs.update(simulator_overrides)
        elif isinstance(simulator_overrides, SimulatorIntervals):
            interval_kwargs = dataclasses.asdict(simulator_overrides)

        config_kwargs: dict[str, Any] = {"simulator": SimulatorIntervals(**interval_kwargs)}

        _ENV_STR_MAP = {
            "HOMEHUB_BROKER_URL": "broker_url",
            "HOMEHUB_CLIENT_ID": "client_id",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "HOMEHUB_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
            "HOMEHUB_CONNECT_TIMEOUT": ("connect_timeout", float),
            "HOMEHUB_AUTOMATION_TICK": ("automation_tick", float),
            "HOMEHUB_ACTIVITY_LOG_CAPACITY": ("activity_log_capacity", int),
            "HOMEHUB_AUTOMATION_LOG_CAPACITY": ("automation_log_capacity", int),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "simulator_enabled" not in overrides:
            config_kwargs["simulator_enabled"] = _env_bool(env.get("HOMEHUB_SIMULATOR_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
