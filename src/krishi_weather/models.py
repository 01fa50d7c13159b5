from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Icon(str, Enum):
    """Coarse weather icon category"""

    SUN = "sun"
    CLOUD = "cloud"
    RAIN = "rain"


class CurrentConditions(BaseModel):
    """Current weather snapshot for a location"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: int = Field(..., alias="temp")
    condition: str
    humidity: int = Field(..., ge=0, le=100)
    wind_speed: int = Field(..., alias="wind")  # km/h
    rain_chance: int = Field(..., ge=0, le=100, alias="rainfall")  # cloud coverage proxy


class ForecastSample(BaseModel):
    """Raw sub-daily forecast entry from the provider"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    temperature: float
    condition: str
    precipitation_probability: float = Field(..., ge=0, le=1)


class ForecastDay(BaseModel):
    """One normalized forecast day"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    day: str
    temperature: int = Field(..., alias="temp")
    condition: str
    rainfall: float = Field(..., ge=0, le=100)
    icon: Icon = Icon.SUN


class Precaution(BaseModel):
    """Farming guidance for a weather condition"""

    model_config = ConfigDict(frozen=True)

    condition: str
    icon: Icon
    actions: Tuple[str, ...]


class WeatherResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    current: CurrentConditions
    forecast: Tuple[ForecastDay, ...]
    alerts: Tuple[str, ...]
    precautions: Tuple[Precaution, ...]


class WeatherRequest(BaseModel):
    location: str

    @field_validator("location")
    @classmethod
    def location_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("location must not be empty")
        return value


class OrderStatus(str, Enum):
    PROCESSING = "Processing"
    DISPATCHED = "Dispatched"
    IN_TRANSIT = "In Transit"
    DELIVERED = "Delivered"


class CartItem(BaseModel):
    """Marketplace listing added to the cart"""

    id: str
    crop_name: str
    farmer_name: str
    price: float = Field(..., ge=0)  # per unit, INR
    quantity: int = Field(..., gt=0)
    unit: str = "kg"

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class QuantityUpdate(BaseModel):
    quantity: int


class Order(BaseModel):
    id: str
    items: List[CartItem]
    total: float
    status: OrderStatus = OrderStatus.PROCESSING
    date: datetime


class CropQuery(BaseModel):
    soil_type: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    season: str = Field(..., min_length=1)
    area: float = Field(..., gt=0)  # hectares


class CropSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    crop: str
    score: int = Field(..., ge=0, le=100)
    yield_estimate: str
    profit_estimate: str
    reasoning: str


class ListingCreate(BaseModel):
    """Produce a farmer puts up for sale"""

    crop_name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)  # per unit, INR
    quantity: float = Field(..., gt=0)
    unit: str = "quintal"
    location: str = Field(..., min_length=1)
    farmer_id: str = "self"
    farmer_name: str = "You"
    organic: bool = False


class Listing(ListingCreate):
    id: str
    distance_km: Optional[float] = None
    verified: bool = False


class ProfitInput(BaseModel):
    """Per-hectare costs and yield for a profit estimate"""

    crop: str = Field(..., min_length=1)
    area: float = Field(..., gt=0)  # hectares
    seed_cost: float = Field(..., ge=0)
    fertilizer_cost: float = Field(..., ge=0)
    labor_cost: float = Field(..., ge=0)
    expected_yield: float = Field(..., ge=0)  # quintals/hectare
    selling_price: float = Field(..., gt=0)  # per quintal


class ProfitResult(BaseModel):
    total_cost: float
    revenue: float
    profit: float
    roi: Optional[float] = None  # percent, undefined when there is no cost
    break_even: float  # quintals
    total_yield: float  # quintals


class PriceQuery(BaseModel):
    crop: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)


class PricePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    price: Optional[float] = None
    predicted: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None


class PricePrediction(BaseModel):
    crop: str
    region: str
    points: List[PricePoint]
    current: float
    predicted: float
    change: float  # percent, 2 decimals
    trend: str  # "up" or "down"


class MonthlyPrice(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str
    price: float
    predicted: bool = False


class PriceTrend(BaseModel):
    crop: str
    months: List[MonthlyPrice]
    current: float
    predicted: float
    change: float
