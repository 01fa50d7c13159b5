import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from krishi_weather.exceptions import UpstreamError
from krishi_weather.forecast import round_half_up
from krishi_weather.models import CurrentConditions, ForecastSample

logger = logging.getLogger("krishi_weather.provider")


class WeatherProvider:
    """Source of current conditions and sub-daily forecast samples"""

    name: str

    async def fetch_current(self, location: str) -> CurrentConditions:
        raise NotImplementedError

    async def fetch_forecast(self, location: str) -> List[ForecastSample]:
        raise NotImplementedError


class OpenWeatherProvider(WeatherProvider):
    """OpenWeatherMap current weather and 5 day / 3 hour forecast"""

    name = "openweathermap"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        country_code: str = "IN",
        units: str = "metric",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._country_code = country_code
        self._units = units
        self._transport = transport

    def _params(self, location: str) -> Dict[str, str]:
        return {
            "q": f"{location},{self._country_code}",
            "units": self._units,
            "appid": self._api_key,
        }

    async def _get(self, endpoint: str, location: str, failure_message: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(f"{self._base_url}/{endpoint}", params=self._params(location))
        except httpx.HTTPError as e:
            logger.error(f"Request to {endpoint} failed for {location}: {str(e)}")
            raise UpstreamError(failure_message) from e

        if not response.is_success:
            logger.error(f"Provider returned {response.status_code} for {endpoint} ({location}): {response.text[:200]}")
            raise UpstreamError(failure_message)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Provider returned invalid JSON for {endpoint}: {str(e)}")
            raise UpstreamError(failure_message) from e

    async def fetch_current(self, location: str) -> CurrentConditions:
        """Get current conditions for a location"""
        logger.info(f"Fetching current weather for {location}")
        data = await self._get("weather", location, "Failed to fetch current weather data")
        try:
            return parse_current(data)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unexpected current weather payload: {str(e)}")
            raise UpstreamError("Unexpected current weather data from provider") from e

    async def fetch_forecast(self, location: str) -> List[ForecastSample]:
        """Get 3-hourly forecast samples for a location"""
        logger.info(f"Fetching forecast for {location}")
        data = await self._get("forecast", location, "Failed to fetch forecast data")
        try:
            return parse_forecast(data)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unexpected forecast payload: {str(e)}")
            raise UpstreamError("Unexpected forecast data from provider") from e


def parse_current(data: Dict[str, Any]) -> CurrentConditions:
    """Convert an OpenWeatherMap /weather payload"""
    return CurrentConditions(
        temperature=round_half_up(data["main"]["temp"]),
        condition=data["weather"][0]["main"],
        humidity=data["main"]["humidity"],
        wind_speed=round_half_up(data["wind"]["speed"] * 3.6),  # m/s to km/h
        rain_chance=data["clouds"]["all"],
    )


def parse_forecast(data: Dict[str, Any]) -> List[ForecastSample]:
    """
    Convert an OpenWeatherMap /forecast payload

    Timestamps are placed in the city's UTC offset when the payload has one,
    so calendar days follow local time rather than UTC.
    """
    offset = (data.get("city") or {}).get("timezone") or 0
    tz = timezone(timedelta(seconds=offset))

    samples = []
    for item in data["list"]:
        samples.append(
            ForecastSample(
                timestamp=datetime.fromtimestamp(item["dt"], tz=tz),
                temperature=item["main"]["temp"],
                condition=item["weather"][0]["main"],
                precipitation_probability=item.get("pop", 0.0),
            )
        )
    return samples
