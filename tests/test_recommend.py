import pytest
from pydantic import ValidationError

from krishi_weather.models import CropQuery, CropSuggestion
from krishi_weather.recommend import DEFAULT_CROPS, LookupRecommender


def query(soil="loamy", region="punjab", season="kharif", area=2.0):
    return CropQuery(soil_type=soil, region=region, season=season, area=area)


def test_table_entry():
    crops = [s.crop for s in LookupRecommender().recommend(query())]

    assert crops == ["Rice (Basmati)", "Cotton"]


def test_lookup_ignores_case_and_whitespace():
    crops = [s.crop for s in LookupRecommender().recommend(query(" Loamy", "PUNJAB", "Kharif "))]

    assert crops[0] == "Rice (Basmati)"


def test_default_for_unknown_combination():
    assert LookupRecommender().recommend(query(soil="black", region="maharashtra")) == list(DEFAULT_CROPS)


def test_custom_table_sorted_by_score():
    low = CropSuggestion(crop="Millet", score=60, yield_estimate="-", profit_estimate="-", reasoning="-")
    high = CropSuggestion(crop="Gram", score=90, yield_estimate="-", profit_estimate="-", reasoning="-")
    recommender = LookupRecommender(table={("sandy", "rajasthan", "rabi"): (low, high)})

    assert [s.crop for s in recommender.recommend(query("sandy", "rajasthan", "rabi"))] == ["Gram", "Millet"]


@pytest.mark.parametrize("area", [0, -1])
def test_area_must_be_positive(area):
    with pytest.raises(ValidationError):
        query(area=area)


def test_fields_required():
    with pytest.raises(ValidationError):
        query(soil="")
