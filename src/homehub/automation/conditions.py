"""Rule gates: weather condition match and time-of-day schedule."""

from __future__ import annotations

from datetime import datetime

from homehub._constants import SCHEDULE_WINDOW_MINUTES
from homehub.models.automation import RuleCondition, Schedule, TimeOfDaySchedule
from homehub.models.weather import CurrentWeather, WeatherCondition

WINDY_THRESHOLD_KMH = 20
COLD_THRESHOLD_C = 10
HOT_THRESHOLD_C = 30

_CONDITION_GROUPS: dict[RuleCondition, frozenset[WeatherCondition]] = {
    RuleCondition.SUNNY: frozenset({WeatherCondition.SUNNY, WeatherCondition.HOT}),
    RuleCondition.CLOUDY: frozenset({WeatherCondition.CLOUDY, WeatherCondition.PARTLY_CLOUDY}),
    RuleCondition.RAINY: frozenset({WeatherCondition.RAINY}),
}


def condition_matches(condition: RuleCondition, weather: CurrentWeather) -> bool:
    """Whether *weather* satisfies a rule's *condition*.

    Missing readings never match.
    """
    if condition is RuleCondition.WINDY:
        return weather.wind_speed is not None and weather.wind_speed > WINDY_THRESHOLD_KMH
    if condition is RuleCondition.COLD:
        return weather.temp is not None and weather.temp < COLD_THRESHOLD_C
    if condition is RuleCondition.HOT:
        return weather.temp is not None and weather.temp > HOT_THRESHOLD_C
    return weather.condition in _CONDITION_GROUPS[condition]


def schedule_allows(schedule: Schedule, now: datetime) -> bool:
    """Immediate schedules always pass.

    A time-of-day schedule passes when the hour is equal and the minute is
    within ``SCHEDULE_WINDOW_MINUTES`` either side. The window does not wrap
    across hours: 09:58 does not match a 10:02 schedule.
    """
    if not isinstance(schedule, TimeOfDaySchedule):
        return True
    return now.hour == schedule.hour and abs(now.minute - schedule.minute) <= SCHEDULE_WINDOW_MINUTES
