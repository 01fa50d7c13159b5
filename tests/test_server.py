import pytest

from krishi_weather import server
from krishi_weather.config import Config
from krishi_weather.exceptions import UpstreamError
from krishi_weather.weather import WeatherService

from helpers import FakeProvider, make_samples


@pytest.mark.asyncio
async def test_weather_advisory_tool(monkeypatch, current):
    settings = Config(_env_file=None, openweather_api_key="k")
    service = WeatherService(settings, provider=FakeProvider(current, make_samples(3)))
    monkeypatch.setattr(server, "weather_service", service)

    result = await server.get_weather_advisory("Pune")

    assert result["current"]["temp"] == 25
    assert [d["day"] for d in result["forecast"]] == ["Today", "Tomorrow", "Day 3"]
    assert len(result["precautions"]) == 3


@pytest.mark.asyncio
async def test_weather_advisory_tool_returns_error(monkeypatch, current):
    provider = FakeProvider(current, [], error=UpstreamError("Failed to fetch current weather data"), fail_on="current")
    monkeypatch.setattr(server, "weather_service", WeatherService(Config(_env_file=None), provider=provider))

    result = await server.get_weather_advisory("Pune")

    assert result == {"error": "Failed to fetch current weather data"}


def test_precautions_tool():
    result = server.get_precautions()

    assert [p["icon"] for p in result] == ["rain", "sun", "cloud"]


def test_recommend_crops_tool():
    result = server.recommend_crops("clay", "up", "rabi", 1.0)

    assert [r["crop"] for r in result] == ["Wheat", "Maize", "Soybeans"]


def test_calculate_profit_tool():
    result = server.calculate_profit("Rice", 1.5, 2000, 4000, 6000, 45, 3400)

    assert result["total_cost"] == 18000
    assert result["total_yield"] == 67.5
    assert result["revenue"] == 229500
    assert result["roi"] == 1175.0


def test_predict_price_tool():
    result = server.predict_price("wheat", "Punjab")

    assert "points" not in result
    assert (result["current"], result["predicted"], result["change"], result["trend"]) == (2420, 2550, 5.37, "up")
