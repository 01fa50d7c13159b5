import logging
from typing import List, Sequence, Tuple

from krishi_weather.models import CurrentConditions, ForecastDay, Icon, Precaution

logger = logging.getLogger("krishi_weather.advisory")

WARNING_MARKER = "⚠️"
POSITIVE_MARKER = "✅"

# Thresholds
HEAVY_RAIN_PCT = 70
HIGH_TEMP_C = 35
HIGH_HUMIDITY_PCT = 80
EXCELLENT_MAX_AVG_RAIN = 20
EXCELLENT_TEMP_RANGE = (20, 32)
GOOD_MAX_AVG_RAIN = 30
GROWING_TEMP_RANGE = (22, 28)
GROWING_HUMIDITY_RANGE = (40, 70)

HEAVY_RAIN_ALERT = (
    f"{WARNING_MARKER} Heavy rainfall expected in the coming days. Take precautions for standing crops."
)
HIGH_TEMP_ALERT = f"{WARNING_MARKER} High temperature alert. Ensure adequate irrigation for crops."
HIGH_HUMIDITY_ALERT = f"{WARNING_MARKER} High humidity levels. Monitor crops for fungal diseases."
EXCELLENT_ALERT = (
    f"{POSITIVE_MARKER} Excellent weather conditions! "
    "Crops are safe with minimal rain chances and optimal temperatures."
)
GOOD_WEATHER_ALERT = (
    f"{POSITIVE_MARKER} Good weather ahead! Low rainfall expected - ideal for field activities and crop growth."
)
GROWING_ALERT = f"{POSITIVE_MARKER} Perfect growing conditions with balanced temperature and humidity levels."

PRECAUTIONS: Tuple[Precaution, ...] = (
    Precaution(
        condition="Heavy Rain",
        icon=Icon.RAIN,
        actions=(
            "Ensure proper drainage in fields to prevent waterlogging",
            "Harvest mature crops before rain if possible",
            "Cover stored grains and equipment",
            "Check irrigation channels for blockages",
        ),
    ),
    Precaution(
        condition="High Temperature",
        icon=Icon.SUN,
        actions=(
            "Increase irrigation frequency for crops",
            "Apply mulch to retain soil moisture",
            "Monitor for heat stress in plants",
            "Schedule farm work during cooler hours",
        ),
    ),
    Precaution(
        condition="High Humidity",
        icon=Icon.CLOUD,
        actions=(
            "Watch for fungal diseases on crops",
            "Ensure good air circulation in storage areas",
            "Apply preventive fungicides if necessary",
            "Delay irrigation if soil is already moist",
        ),
    ),
)


def _within(value: float, bounds: Tuple[float, float]) -> bool:
    low, high = bounds
    return low <= value <= high


def average_rainfall(forecast: Sequence[ForecastDay]) -> float:
    """Mean rainfall probability across the forecast, 0 when empty"""
    if not forecast:
        return 0.0
    return sum(day.rainfall for day in forecast) / len(forecast)


def is_warning(alert: str) -> bool:
    return alert.startswith(WARNING_MARKER)


def classify_alerts(current: CurrentConditions, forecast: Sequence[ForecastDay]) -> List[str]:
    """
    Derive alert messages from current conditions and the normalized forecast

    Rules are checked in a fixed order and more than one may fire. The
    "good weather ahead" message is only added when neither the
    "excellent conditions" message nor any warning was produced.
    """
    alerts: List[str] = []
    avg_rain = average_rainfall(forecast)

    if any(day.rainfall > HEAVY_RAIN_PCT for day in forecast):
        alerts.append(HEAVY_RAIN_ALERT)
    if current.temperature > HIGH_TEMP_C:
        alerts.append(HIGH_TEMP_ALERT)
    if current.humidity > HIGH_HUMIDITY_PCT:
        alerts.append(HIGH_HUMIDITY_ALERT)

    if avg_rain < EXCELLENT_MAX_AVG_RAIN and _within(current.temperature, EXCELLENT_TEMP_RANGE):
        alerts.append(EXCELLENT_ALERT)
    elif avg_rain < GOOD_MAX_AVG_RAIN and not any(is_warning(alert) for alert in alerts):
        alerts.append(GOOD_WEATHER_ALERT)

    if _within(current.temperature, GROWING_TEMP_RANGE) and _within(current.humidity, GROWING_HUMIDITY_RANGE):
        alerts.append(GROWING_ALERT)

    logger.debug(f"Average rainfall {avg_rain:.1f}%, produced {len(alerts)} alerts")
    return alerts


def get_precautions() -> List[Precaution]:
    """Return the full precaution catalog, independent of current weather"""
    return list(PRECAUTIONS)
