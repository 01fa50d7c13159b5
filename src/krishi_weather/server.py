import logging
from typing import Any, Dict, List

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from krishi_weather.advisory import get_precautions as precaution_catalog
from krishi_weather.config import configure_logging
from krishi_weather.exceptions import KrishiError
from krishi_weather.models import CropQuery, PriceQuery, ProfitInput
from krishi_weather.prices import LookupPricePredictor
from krishi_weather.profit import calculate_profit as profit_for
from krishi_weather.recommend import LookupRecommender
from krishi_weather.weather import WeatherService

load_dotenv()

logger = logging.getLogger("krishi_weather")

mcp = FastMCP(
    "Krishi Weather",
    instructions="Weather forecasts and farming advisories for locations in India",
)

weather_service = WeatherService()

recommender = LookupRecommender()

price_predictor = LookupPricePredictor()


# Tools
@mcp.tool()
async def get_weather_advisory(location: str) -> Dict[str, Any]:
    """
    Get current conditions, a 7 day forecast, alerts and precautions for a location

    Args:
        location: City or place name in India
    """
    logger.info(f"Starting weather advisory request for {location}")
    try:
        response = await weather_service.get_weather_advisory(location)
    except KrishiError as e:
        logger.error(f"Error getting weather advisory for {location}: {str(e)}")
        return {"error": str(e)}
    return response.model_dump(mode="json", by_alias=True)


@mcp.tool()
def get_precautions() -> List[Dict[str, Any]]:
    """List farming precautions for heavy rain, high temperature and high humidity"""
    return [precaution.model_dump(mode="json") for precaution in precaution_catalog()]


@mcp.tool()
def recommend_crops(soil_type: str, region: str, season: str, area: float) -> List[Dict[str, Any]]:
    """
    Suggest crops for a field

    Args:
        soil_type: e.g. loamy, clay, sandy, silt, black
        region: State or region, e.g. punjab
        season: kharif, rabi or zaid
        area: Field size in hectares
    """
    query = CropQuery(soil_type=soil_type, region=region, season=season, area=area)
    return [suggestion.model_dump(mode="json") for suggestion in recommender.recommend(query)]


@mcp.tool()
def calculate_profit(
    crop: str,
    area: float,
    seed_cost: float,
    fertilizer_cost: float,
    labor_cost: float,
    expected_yield: float,
    selling_price: float,
) -> Dict[str, Any]:
    """
    Estimate total cost, revenue, profit, ROI and break-even quantity for a crop

    Args:
        crop: Crop name
        area: Field size in hectares
        seed_cost: Seed cost per hectare (INR)
        fertilizer_cost: Fertilizer cost per hectare (INR)
        labor_cost: Labor cost per hectare (INR)
        expected_yield: Expected yield in quintals per hectare
        selling_price: Selling price per quintal (INR)
    """
    inp = ProfitInput(
        crop=crop,
        area=area,
        seed_cost=seed_cost,
        fertilizer_cost=fertilizer_cost,
        labor_cost=labor_cost,
        expected_yield=expected_yield,
        selling_price=selling_price,
    )
    return profit_for(inp).model_dump(mode="json")


@mcp.tool()
def predict_price(crop: str, region: str) -> Dict[str, Any]:
    """Predict the market price of a crop for the next two weeks"""
    prediction = price_predictor.predict(PriceQuery(crop=crop, region=region))
    return prediction.model_dump(mode="json", exclude={"points"})


# Prompts
@mcp.prompt()
def farm_advisory(location: str) -> str:
    """Ask for a farming plan based on the weather advisory for a location"""
    return f"""Use the get_weather_advisory tool for {location} and provide:
        1. A short summary of current conditions
        2. The days with the highest rain chance
        3. Which alerts need action this week and what to do
        4. Field activities that fit the forecast
        """


def main() -> None:
    configure_logging()
    mcp.run()


if __name__ == "__main__":
    main()
