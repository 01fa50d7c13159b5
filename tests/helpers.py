from datetime import datetime, timedelta, timezone
from typing import List

from krishi_weather.models import CurrentConditions, ForecastSample
from krishi_weather.provider import WeatherProvider

IST = timezone(timedelta(hours=5, minutes=30))
START = datetime(2026, 10, 19, 0, 0, tzinfo=IST)


def make_samples(days: int, per_day: int = 8, condition: str = "Clear", pop: float = 0.1) -> List[ForecastSample]:
    """Three-hourly samples from midnight 2026-10-19 (IST), at most 8 per day"""
    samples = []
    for day in range(days):
        for slot in range(per_day):
            samples.append(
                ForecastSample(
                    timestamp=START + timedelta(days=day, hours=slot * 3),
                    temperature=25.0 + day + slot / 10,
                    condition=condition,
                    precipitation_probability=pop,
                )
            )
    return samples


def openweather_current(temp=27.6, humidity=60, wind=3.5, clouds=40, main="Clouds"):
    return {
        "weather": [{"id": 802, "main": main, "description": "scattered clouds"}],
        "main": {"temp": temp, "humidity": humidity, "pressure": 1010},
        "wind": {"speed": wind},
        "clouds": {"all": clouds},
        "name": "Pune",
    }


def openweather_forecast(days=6, pop=0.1, main="Clear", tz_offset=19800):
    start = int(datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc).timestamp())
    items = []
    for i in range(days * 8):
        items.append(
            {
                "dt": start + i * 3 * 3600,
                "main": {"temp": 24.4 + (i % 8) * 0.5, "humidity": 55},
                "weather": [{"main": main, "description": main.lower()}],
                "pop": pop,
            }
        )
    return {"cod": "200", "list": items, "city": {"name": "Pune", "country": "IN", "timezone": tz_offset}}


class FakeProvider(WeatherProvider):
    """In-memory provider recording which calls were made"""

    name = "fake"

    def __init__(self, current: CurrentConditions, samples: List[ForecastSample], error=None, fail_on=None):
        self.current = current
        self.samples = samples
        self.error = error
        self.fail_on = fail_on
        self.calls = []

    async def fetch_current(self, location):
        self.calls.append(("current", location))
        if self.fail_on == "current":
            raise self.error
        return self.current

    async def fetch_forecast(self, location):
        self.calls.append(("forecast", location))
        if self.fail_on == "forecast":
            raise self.error
        return self.samples
