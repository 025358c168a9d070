"""Energy monitoring: per-minute power history and savings progress."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime

from homehub._constants import ENERGY_BASELINE_KWH, ENERGY_HISTORY_CAPACITY
from homehub.models.energy import DeviceReading, PowerSample
from homehub.models.payloads import EnergyPayload
from homehub.session import HubSession
from homehub.state.channels import Channel
from homehub.state.store import ChannelUpdate, StateStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def savings_progress(consumption_kwh: float, goal_percent: float, baseline_kwh: float = ENERGY_BASELINE_KWH) -> int:
    """Percent of the way to using ``goal_percent`` less than *baseline_kwh*.

    100 at or below the target, 0 at or above the baseline, linear between.
    """
    target_reduction = baseline_kwh * (goal_percent / 100)
    if consumption_kwh <= baseline_kwh - target_reduction:
        return 100
    if consumption_kwh >= baseline_kwh:
        return 0
    return round((baseline_kwh - consumption_kwh) / target_reduction * 100)


class EnergyMonitor:
    """Follows the energy channel and keeps one sample per minute.

    The most recent ``ENERGY_HISTORY_CAPACITY`` samples are retained. Each
    sample stands for one minute at its wattage.
    """

    def __init__(
        self,
        store: StateStore,
        *,
        session: HubSession | None = None,
        clock: Callable[[], datetime] = _utcnow,
        capacity: int = ENERGY_HISTORY_CAPACITY,
    ) -> None:
        self._store = store
        self._session = session
        self._clock = clock
        self._history: deque[PowerSample] = deque(maxlen=capacity)
        self._current_watts = 0
        self._remove_listener = store.add_listener(self._on_energy, Channel.ENERGY)

    def close(self) -> None:
        self._remove_listener()

    @property
    def current_watts(self) -> int:
        return self._current_watts

    def devices(self) -> tuple[DeviceReading, ...]:
        state = self._store.get_snapshot(Channel.ENERGY)
        assert isinstance(state, EnergyPayload)  # noqa: S101
        return state.devices or ()

    def history(self) -> list[PowerSample]:
        """Samples oldest first."""
        return list(self._history)

    def _on_energy(self, update: ChannelUpdate) -> None:
        payload = update.payload
        if not isinstance(payload, EnergyPayload) or payload.watts is None:
            return
        self._current_watts = payload.watts
        self.record(payload.watts)

    def record(self, watts: int, at: datetime | None = None) -> PowerSample | None:
        """Add a sample unless one already exists for the same minute."""
        minute = (at or self._clock()).replace(second=0, microsecond=0)
        if self._history and self._history[-1].time == minute:
            return None
        sample = PowerSample(time=minute, watts=watts)
        self._history.append(sample)
        _logger.debug("Energy sample recorded time=%s watts=%d", minute.isoformat(), watts)
        return sample

    def total_consumption_kwh(self) -> float:
        """Consumption over the retained history, rounded to 0.1 kWh."""
        watt_minutes = sum(sample.watts for sample in self._history)
        return round(watt_minutes / 60 / 1000, 1)

    def savings_progress(self, goal_percent: float | None = None) -> int:
        if goal_percent is None:
            goal_percent = self._session.preferences.energy_savings_goal if self._session is not None else 15
        return savings_progress(self.total_consumption_kwh(), goal_percent)
