import logging
from typing import Optional

from krishi_weather.advisory import classify_alerts, get_precautions
from krishi_weather.config import Config, config
from krishi_weather.exceptions import ConfigurationError, MalformedRequestError
from krishi_weather.forecast import normalize_forecast
from krishi_weather.models import WeatherResponse
from krishi_weather.provider import OpenWeatherProvider, WeatherProvider

logger = logging.getLogger("krishi_weather.weather")


class WeatherService:
    """Fetches provider data and turns it into farming advisories"""

    def __init__(self, settings: Config = config, provider: Optional[WeatherProvider] = None):
        self.settings = settings
        self._provider = provider

    def _get_provider(self) -> WeatherProvider:
        if self._provider is not None:
            return self._provider

        if not self.settings.openweather_api_key:
            logger.error("OPENWEATHER_API_KEY environment variable is missing")
            raise ConfigurationError("Weather API key not configured")

        return OpenWeatherProvider(
            api_key=self.settings.openweather_api_key,
            base_url=self.settings.openweather_base_url,
            country_code=self.settings.country_code,
            units=self.settings.units,
        )

    async def get_weather_advisory(self, location: Optional[str]) -> WeatherResponse:
        """Get current weather, a daily forecast, alerts and precautions for a location"""
        location = (location or "").strip()
        if not location:
            raise MalformedRequestError("Location is required")

        provider = self._get_provider()
        logger.info(f"Starting weather request for {location}")

        logger.info("Step 1: Getting current conditions")
        current = await provider.fetch_current(location)

        logger.info("Step 2: Getting forecast")
        samples = await provider.fetch_forecast(location)

        logger.info("Step 3: Building advisories")
        forecast = normalize_forecast(samples)
        alerts = classify_alerts(current, forecast)

        logger.info(f"Weather data processed successfully for {location}")
        return WeatherResponse(
            current=current,
            forecast=tuple(forecast),
            alerts=tuple(alerts),
            precautions=tuple(get_precautions()),
        )
