import logging
import math
from datetime import date
from typing import Iterable, List, Set

from krishi_weather.models import ForecastDay, ForecastSample, Icon

logger = logging.getLogger("krishi_weather.forecast")

MAX_FORECAST_DAYS = 7


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)"""
    return int(math.floor(value + 0.5))


def classify_icon(condition: str) -> Icon:
    """Map provider condition text to an icon category"""
    text = condition.lower()
    if "rain" in text:
        return Icon.RAIN
    if "cloud" in text:
        return Icon.CLOUD
    return Icon.SUN


def day_label(index: int) -> str:
    if index == 0:
        return "Today"
    if index == 1:
        return "Tomorrow"
    return f"Day {index + 1}"


def normalize_forecast(samples: Iterable[ForecastSample], max_days: int = MAX_FORECAST_DAYS) -> List[ForecastDay]:
    """
    Collapse sub-daily samples into one entry per calendar day

    The first sample seen for each date is used as-is, no averaging across
    the day. Dates come from each timestamp in its own timezone.

    Args:
        samples: Provider samples in the order they were returned
        max_days: Stop once this many distinct dates have been emitted
    """
    days: List[ForecastDay] = []
    seen: Set[date] = set()

    for sample in samples:
        if len(days) >= max_days:
            break

        sample_date = sample.timestamp.date()
        if sample_date in seen:
            continue
        seen.add(sample_date)

        days.append(
            ForecastDay(
                day=day_label(len(days)),
                temperature=round_half_up(sample.temperature),
                condition=sample.condition,
                rainfall=sample.precipitation_probability * 100,
                icon=classify_icon(sample.condition),
            )
        )

    logger.debug(f"Normalized forecast into {len(days)} days")
    return days
