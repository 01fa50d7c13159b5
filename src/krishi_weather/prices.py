import logging
from typing import Dict, List, Tuple

from krishi_weather.exceptions import UnknownCropError
from krishi_weather.models import MonthlyPrice, PricePoint, PricePrediction, PriceQuery, PriceTrend

logger = logging.getLogger("krishi_weather.prices")


class PricePredictor:
    """Market price forecast capability"""

    name: str

    def predict(self, query: PriceQuery) -> PricePrediction:
        raise NotImplementedError

    def trend(self, crop: str) -> PriceTrend:
        raise NotImplementedError


def _weekly(history: List[float], today: float, next_7d: Tuple[float, float, float], next_14d: Tuple[float, float, float]):
    dates = ["Jan 1", "Jan 8", "Jan 15", "Jan 22", "Jan 29", "Feb 5", "Feb 12"]
    points = [PricePoint(date=date, price=price) for date, price in zip(dates, history)]
    points.append(PricePoint(date="Today", price=today, predicted=today))
    for label, (predicted, low, high) in (("Next 7d", next_7d), ("Next 14d", next_14d)):
        points.append(PricePoint(date=label, predicted=predicted, low=low, high=high))
    return tuple(points)


# Quoted per quintal, INR
WEEKLY_PRICES: Dict[str, Tuple[PricePoint, ...]] = {
    "wheat": _weekly([2200, 2250, 2180, 2300, 2350, 2280, 2400], 2420, (2480, 2430, 2530), (2550, 2480, 2620)),
    "rice": _weekly([3200, 3250, 3180, 3300, 3350, 3280, 3400], 3420, (3380, 3330, 3430), (3350, 3280, 3420)),
}

MONTHS = ["Jul", "Aug", "Sep", "Oct", "Nov", "Dec", "Jan", "Feb", "Mar", "Apr", "May (P)", "Jun (P)"]

MONTHLY_PRICES: Dict[str, Tuple[MonthlyPrice, ...]] = {
    crop: tuple(
        MonthlyPrice(month=month, price=price, predicted=month.endswith("(P)")) for month, price in zip(MONTHS, prices)
    )
    for crop, prices in {
        "wheat": [2100, 2150, 2200, 2180, 2250, 2300, 2280, 2350, 2400, 2420, 2480, 2550],
        "rice": [3100, 3150, 3200, 3180, 3250, 3300, 3280, 3350, 3400, 3420, 3380, 3350],
        "cotton": [5100, 5200, 5350, 5280, 5450, 5500, 5480, 5550, 5600, 5620, 5700, 5800],
    }.items()
}


def percent_change(current: float, predicted: float) -> float:
    return round((predicted - current) / current * 100, 2)


class LookupPricePredictor(PricePredictor):
    """
    Static price tables

    Weekly predictions fall back to the default crop when a crop has no
    table of its own. Monthly trends only exist for the crops listed.
    """

    name = "lookup"

    def __init__(
        self,
        weekly: Dict[str, Tuple[PricePoint, ...]] = WEEKLY_PRICES,
        monthly: Dict[str, Tuple[MonthlyPrice, ...]] = MONTHLY_PRICES,
        default_crop: str = "wheat",
    ):
        self.weekly = weekly
        self.monthly = monthly
        self.default_crop = default_crop

    def predict(self, query: PriceQuery) -> PricePrediction:
        key = query.crop.strip().lower()
        points = self.weekly.get(key)
        if points is None:
            logger.debug(f"No weekly prices for {key}, using {self.default_crop}")
            points = self.weekly[self.default_crop]

        today = next(p for p in points if p.date == "Today")
        current = today.price
        predicted = points[-1].predicted
        change = percent_change(current, predicted)
        return PricePrediction(
            crop=query.crop,
            region=query.region,
            points=list(points),
            current=current,
            predicted=predicted,
            change=change,
            trend="up" if change > 0 else "down",
        )

    def trend(self, crop: str) -> PriceTrend:
        key = crop.strip().lower()
        months = self.monthly.get(key)
        if months is None:
            raise UnknownCropError(f"No price history for {crop}")

        current = [m for m in months if not m.predicted][-1].price
        predicted = months[-1].price
        return PriceTrend(
            crop=key,
            months=list(months),
            current=current,
            predicted=predicted,
            change=percent_change(current, predicted),
        )
