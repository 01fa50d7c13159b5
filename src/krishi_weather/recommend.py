import logging
from typing import Dict, List, Tuple

from krishi_weather.models import CropQuery, CropSuggestion

logger = logging.getLogger("krishi_weather.recommend")


class Recommender:
    """Crop recommendation capability"""

    name: str

    def recommend(self, query: CropQuery) -> List[CropSuggestion]:
        raise NotImplementedError


# Keyed by (soil type, region, season)
CROP_TABLE: Dict[Tuple[str, str, str], Tuple[CropSuggestion, ...]] = {
    ("loamy", "punjab", "kharif"): (
        CropSuggestion(
            crop="Rice (Basmati)",
            score=95,
            yield_estimate="40-45 quintals/hectare",
            profit_estimate="₹60,000-80,000/hectare",
            reasoning=(
                "Excellent water availability and suitable temperature. "
                "Basmati commands premium prices in Punjab markets."
            ),
        ),
        CropSuggestion(
            crop="Cotton",
            score=88,
            yield_estimate="25-30 quintals/hectare",
            profit_estimate="₹50,000-70,000/hectare",
            reasoning="High demand in textile industry. Good resistance to pests in this region during Kharif season.",
        ),
    ),
}

DEFAULT_CROPS: Tuple[CropSuggestion, ...] = (
    CropSuggestion(
        crop="Wheat",
        score=92,
        yield_estimate="35-40 quintals/hectare",
        profit_estimate="₹45,000-60,000/hectare",
        reasoning="Suitable for your soil type and climate. High market demand with stable prices.",
    ),
    CropSuggestion(
        crop="Maize",
        score=85,
        yield_estimate="30-35 quintals/hectare",
        profit_estimate="₹40,000-55,000/hectare",
        reasoning="Good adaptability to various soil conditions. Growing demand for animal feed and food industry.",
    ),
    CropSuggestion(
        crop="Soybeans",
        score=80,
        yield_estimate="20-25 quintals/hectare",
        profit_estimate="₹35,000-50,000/hectare",
        reasoning="Nitrogen-fixing crop that improves soil health. Strong export market opportunities.",
    ),
)


class LookupRecommender(Recommender):
    """Static table lookup with a general-purpose fallback list"""

    name = "lookup"

    def __init__(
        self,
        table: Dict[Tuple[str, str, str], Tuple[CropSuggestion, ...]] = CROP_TABLE,
        default: Tuple[CropSuggestion, ...] = DEFAULT_CROPS,
    ):
        self.table = table
        self.default = default

    def recommend(self, query: CropQuery) -> List[CropSuggestion]:
        key = (query.soil_type.strip().lower(), query.region.strip().lower(), query.season.strip().lower())
        suggestions = self.table.get(key)
        if suggestions is None:
            logger.debug(f"No table entry for {key}, using default crops")
            suggestions = self.default
        return sorted(suggestions, key=lambda s: s.score, reverse=True)
