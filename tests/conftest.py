import pytest

from krishi_weather.listings import ListingCatalog
from krishi_weather.models import CurrentConditions
from krishi_weather.storage import MemoryStorage


@pytest.fixture
def current():
    return CurrentConditions(temperature=25, condition="Clouds", humidity=55, wind_speed=12, rain_chance=40)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def catalog(storage):
    return ListingCatalog(storage)
