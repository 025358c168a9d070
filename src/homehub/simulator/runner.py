"""Periodic synthetic sensor publisher."""

from __future__ import annotations

import enum
import logging
import random
from collections.abc import Callable, Iterable
from datetime import datetime

from homehub import _constants as topics
from homehub._periodic import PeriodicTask
from homehub.bus.event_bus import EventBus
from homehub.config import SimulatorIntervals
from homehub.exceptions import HubConnectionError
from homehub.models._base import HubBaseModel
from homehub.simulator import generators

_logger = logging.getLogger(__name__)


class SimulatedChannel(enum.StrEnum):
    TEMPERATURE = "temperature"
    MOTION = "motion"
    ENERGY = "energy"
    WEATHER = "weather"
    FORECAST = "forecast"


CHANNEL_TOPICS: dict[SimulatedChannel, str] = {
    SimulatedChannel.TEMPERATURE: topics.TOPIC_TEMPERATURE,
    SimulatedChannel.MOTION: topics.TOPIC_SECURITY_MOTION,
    SimulatedChannel.ENERGY: topics.TOPIC_ENERGY_CURRENT,
    SimulatedChannel.WEATHER: topics.TOPIC_WEATHER_CURRENT,
    SimulatedChannel.FORECAST: topics.TOPIC_WEATHER_FORECAST,
}

# Weather is available as soon as the simulator starts; other channels
# publish after their first interval.
_IMMEDIATE = frozenset({SimulatedChannel.WEATHER, SimulatedChannel.FORECAST})


class SensorSimulator:
    """Publishes one synthetic reading per channel per tick.

    Each channel runs on its own timer. ``start()`` and ``stop()`` are
    idempotent and independent of the bus and automation lifecycles. A tick
    that cannot publish is logged and the timer keeps running.
    """

    def __init__(
        self,
        bus: EventBus,
        *,
        intervals: SimulatorIntervals | None = None,
        channels: Iterable[SimulatedChannel | str] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._bus = bus
        self._intervals = intervals or SimulatorIntervals()
        self._rng = rng or random.Random()
        self._clock = clock
        self._last_weather_temp: float | None = None
        selected = SimulatedChannel if channels is None else [SimulatedChannel(c) for c in channels]
        self._timers: dict[SimulatedChannel, PeriodicTask] = {
            channel: PeriodicTask(
                f"simulator:{channel}",
                getattr(self._intervals, channel.value),
                lambda channel=channel: self._tick(channel),
                immediate=channel in _IMMEDIATE,
            )
            for channel in selected
        }

    @property
    def channels(self) -> list[SimulatedChannel]:
        return list(self._timers)

    @property
    def running(self) -> bool:
        return any(timer.running for timer in self._timers.values())

    def start(self) -> None:
        for timer in self._timers.values():
            timer.start()
        _logger.info("Sensor simulator started channels=%s", ",".join(self._timers))

    async def stop(self) -> None:
        was_running = self.running
        for timer in self._timers.values():
            await timer.stop()
        if was_running:
            _logger.info("Sensor simulator stopped")

    def generate(self, channel: SimulatedChannel | str) -> HubBaseModel:
        """Produce the next reading for *channel* without publishing it."""
        channel = SimulatedChannel(channel)
        now = self._clock()
        if channel is SimulatedChannel.TEMPERATURE:
            return generators.temperature_reading(self._rng, now)
        if channel is SimulatedChannel.MOTION:
            return generators.motion_event(self._rng, now)
        if channel is SimulatedChannel.ENERGY:
            return generators.energy_reading(self._rng, now)
        if channel is SimulatedChannel.WEATHER:
            weather = generators.current_weather(self._rng, now)
            self._last_weather_temp = weather.temp
            return weather
        if self._last_weather_temp is None:
            self._last_weather_temp = generators.current_weather(self._rng, now).temp
        assert self._last_weather_temp is not None  # noqa: S101
        return generators.forecast(self._rng, now, self._last_weather_temp)

    def publish_once(self, channel: SimulatedChannel | str) -> HubBaseModel:
        """Generate and publish one reading. Bus errors propagate."""
        channel = SimulatedChannel(channel)
        reading = self.generate(channel)
        self._bus.publish(CHANNEL_TOPICS[channel], reading)
        return reading

    def _tick(self, channel: SimulatedChannel) -> None:
        try:
            self.publish_once(channel)
        except HubConnectionError as exc:
            _logger.warning("Simulator %s tick not published: %s", channel, exc)
