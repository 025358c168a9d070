"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Topics
# ------------------------------------------------------------------

TOPIC_ROOT = "home/#"

TOPIC_TEMPERATURE = "home/temperature"
TOPIC_LIGHT = "home/light"
TOPIC_BLINDS = "home/blinds"
TOPIC_DOOR_LOCK = "home/door"
TOPIC_MOTION_LEGACY = "home/motion"

TOPIC_SECURITY_MOTION = "home/security/motion"
TOPIC_SECURITY_DOOR = "home/security/door"
TOPIC_SECURITY_CAMERA = "home/security/camera"
TOPIC_SECURITY_ALARM = "home/security/alarm"

TOPIC_WEATHER_CURRENT = "home/weather/current"
TOPIC_WEATHER_FORECAST = "home/weather/forecast"
TOPIC_WEATHER_LOCATION = "home/weather/location"

TOPIC_ENERGY_CURRENT = "home/energy/current"

# ------------------------------------------------------------------
# Limits
# ------------------------------------------------------------------

ACTIVITY_LOG_CAPACITY = 50
AUTOMATION_LOG_CAPACITY = 5
ENERGY_HISTORY_CAPACITY = 24

TEMPERATURE_MIN_C = 16
TEMPERATURE_MAX_C = 30

# Daily reference consumption the savings goal is measured against.
ENERGY_BASELINE_KWH = 5.0

SCHEDULE_WINDOW_MINUTES = 5


def validate_setpoint(temperature: int) -> int:
    """Return *temperature* if it is an integer setpoint within 16-30 °C.

    Raises :class:`ValueError` otherwise.
    """
    if isinstance(temperature, bool) or not isinstance(temperature, int):
        raise ValueError(f"temperature must be an integer, got {temperature!r}")
    if not TEMPERATURE_MIN_C <= temperature <= TEMPERATURE_MAX_C:
        raise ValueError(
            f"temperature must be between {TEMPERATURE_MIN_C} and {TEMPERATURE_MAX_C} °C, got {temperature}"
        )
    return temperature
