"""Weather models: current conditions and forecast days."""

from __future__ import annotations

from pydantic import Field

from homehub.models._base import HubBaseModel, HubStrEnum

__all__ = [
    "CurrentWeather",
    "ForecastDay",
    "WeatherCondition",
]


class WeatherCondition(HubStrEnum):
    """Sky/temperature condition reported by the weather feed."""

    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"
    SNOWY = "snowy"
    FOGGY = "foggy"
    WINDY = "windy"
    COLD = "cold"
    HOT = "hot"
    UNKNOWN = "unknown"

    @property
    def icon(self) -> str:
        return _WEATHER_ICONS[self]

    @classmethod
    def from_temperature(cls, temp: float) -> WeatherCondition:
        """Condition bands used by the synthetic weather feed."""
        if temp > 30:
            return cls.HOT
        if temp > 25:
            return cls.SUNNY
        if temp > 18:
            return cls.PARTLY_CLOUDY
        if temp > 12:
            return cls.CLOUDY
        if temp > 5:
            return cls.RAINY
        return cls.COLD


_WEATHER_ICONS: dict[WeatherCondition, str] = {
    WeatherCondition.SUNNY: "☀️",
    WeatherCondition.PARTLY_CLOUDY: "⛅",
    WeatherCondition.CLOUDY: "☁️",
    WeatherCondition.RAINY: "🌧️",
    WeatherCondition.STORMY: "⛈️",
    WeatherCondition.SNOWY: "❄️",
    WeatherCondition.FOGGY: "🌫️",
    WeatherCondition.WINDY: "💨",
    WeatherCondition.COLD: "🥶",
    WeatherCondition.HOT: "🥵",
    WeatherCondition.UNKNOWN: "❓",
}


class CurrentWeather(HubBaseModel):
    """Latest weather observation (``home/weather/current``)."""

    temp: float | None = None
    """Outside temperature in °C."""
    condition: WeatherCondition | None = None
    icon: str | None = None
    humidity: float | None = Field(default=None, ge=0, le=100)
    """Relative humidity in percent."""
    wind_speed: float | None = Field(default=None, ge=0)
    """Wind speed in km/h (wire key ``windSpeed``)."""

    @property
    def is_known(self) -> bool:
        """Whether any reading has been received yet."""
        return self.temp is not None or self.condition is not None or self.wind_speed is not None


class ForecastDay(HubBaseModel):
    """One day of the multi-day forecast."""

    date: str | None = None
    temp: float | None = None
    condition: WeatherCondition | None = None
    icon: str | None = None
