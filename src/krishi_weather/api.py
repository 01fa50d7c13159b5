import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.datastructures import Headers

from krishi_weather import __version__
from krishi_weather.advisory import get_precautions
from krishi_weather.config import config, configure_logging
from krishi_weather.exceptions import KrishiError
from krishi_weather.listings import ListingCatalog, to_cart_item
from krishi_weather.models import (
    CartItem,
    CropQuery,
    CropSuggestion,
    Listing,
    ListingCreate,
    Order,
    Precaution,
    PricePrediction,
    PriceQuery,
    PriceTrend,
    ProfitInput,
    ProfitResult,
    QuantityUpdate,
    WeatherRequest,
    WeatherResponse,
)
from krishi_weather.orders import Cart, OrderBook, estimated_delivery, render_invoice
from krishi_weather.prices import LookupPricePredictor, PricePredictor
from krishi_weather.profit import calculate_profit, to_csv
from krishi_weather.recommend import LookupRecommender, Recommender
from krishi_weather.storage import StorageBackend, storage_from_config
from krishi_weather.weather import WeatherService

logger = logging.getLogger("krishi_weather.api")

APP_NAME = "Krishi Weather API"

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"

origins = [o.strip() for o in config.cors_origins.split(",") if o.strip()] or ["*"]


def cors_headers(origin: Optional[str] = None, allowed: List[str] = origins) -> Dict[str, str]:
    """CORS headers for responses the middleware does not decorate"""
    headers = {"Access-Control-Allow-Headers": ALLOW_HEADERS}
    if "*" in allowed:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin in allowed:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware answering successful preflights with an empty body"""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {k: v for k, v in response.headers.items() if k not in ("content-length", "content-type")}
        return Response(status_code=200, headers=headers)


app = FastAPI(title=APP_NAME, version=__version__)

app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Dependencies ----------
_weather_service = WeatherService()
_storage = storage_from_config(config)
_recommender = LookupRecommender()
_price_predictor = LookupPricePredictor()


def get_weather_service() -> WeatherService:
    return _weather_service


def get_storage() -> StorageBackend:
    return _storage


def get_cart(storage: StorageBackend = Depends(get_storage)) -> Cart:
    return Cart(storage)


def get_order_book(storage: StorageBackend = Depends(get_storage)) -> OrderBook:
    return OrderBook(storage)


def get_catalog(storage: StorageBackend = Depends(get_storage)) -> ListingCatalog:
    return ListingCatalog(storage)


def get_recommender() -> Recommender:
    return _recommender


def get_price_predictor() -> PricePredictor:
    return _price_predictor


# ---------- Errors ----------
def error_response(status_code: int, message: str, origin: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=cors_headers(origin))


@app.exception_handler(KrishiError)
async def krishi_error_handler(request: Request, exc: KrishiError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {str(exc)}")
    return error_response(exc.status_code, str(exc), request.headers.get("origin"))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())[1:]) or "body"
        problems.append(f"{field}: {err.get('msg')}")
    message = "Invalid request: " + "; ".join(problems)
    logger.warning(message)
    return error_response(400, message, request.headers.get("origin"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} raised {type(exc).__name__}")
    return error_response(500, str(exc), request.headers.get("origin"))


# ---------- Weather ----------
@app.options("/get-weather")
async def weather_preflight(request: Request) -> Response:
    return Response(status_code=200, headers=cors_headers(request.headers.get("origin")))


@app.post("/get-weather", response_model=WeatherResponse)
async def get_weather(
    body: WeatherRequest,
    service: WeatherService = Depends(get_weather_service),
) -> WeatherResponse:
    """Current conditions, 7 day forecast, alerts and precautions for a location"""
    return await service.get_weather_advisory(body.location)


@app.get("/precautions", response_model=List[Precaution])
async def precautions() -> List[Precaution]:
    return get_precautions()


# ---------- Cart ----------
@app.get("/cart")
async def read_cart(cart: Cart = Depends(get_cart)) -> Dict[str, Any]:
    items = cart.get()
    return {"items": [item.model_dump(mode="json") for item in items], "total": cart.total()}


@app.post("/cart/items", response_model=List[CartItem])
async def add_cart_item(item: CartItem, cart: Cart = Depends(get_cart)) -> List[CartItem]:
    return cart.add(item)


@app.patch("/cart/items/{item_id}", response_model=List[CartItem])
async def update_cart_item(item_id: str, update: QuantityUpdate, cart: Cart = Depends(get_cart)) -> List[CartItem]:
    return cart.update_quantity(item_id, update.quantity)


@app.delete("/cart/items/{item_id}", response_model=List[CartItem])
async def remove_cart_item(item_id: str, cart: Cart = Depends(get_cart)) -> List[CartItem]:
    return cart.remove(item_id)


@app.delete("/cart", status_code=204)
async def clear_cart(cart: Cart = Depends(get_cart)) -> Response:
    cart.clear()
    return Response(status_code=204)


@app.post("/cart/checkout", response_model=Order)
async def checkout(cart: Cart = Depends(get_cart), orders: OrderBook = Depends(get_order_book)) -> Order:
    return orders.checkout(cart)


# ---------- Orders ----------
@app.get("/orders")
async def list_orders(orders: OrderBook = Depends(get_order_book)) -> List[Dict[str, Any]]:
    return [
        {**order.model_dump(mode="json"), "estimated_delivery": estimated_delivery(order.status)}
        for order in orders.get()
    ]


@app.post("/orders/{order_id}/advance", response_model=Order)
async def advance_order(order_id: str, orders: OrderBook = Depends(get_order_book)) -> Order:
    return orders.advance(order_id)


@app.get("/orders/{order_id}/invoice", response_class=HTMLResponse)
async def order_invoice(order_id: str, orders: OrderBook = Depends(get_order_book)) -> HTMLResponse:
    order = orders.find(order_id)
    return HTMLResponse(
        content=render_invoice(order),
        headers={"Content-Disposition": f'inline; filename="invoice-{order.id}.html"'},
    )


# ---------- Crops ----------
@app.post("/crops/recommend", response_model=List[CropSuggestion])
async def recommend_crops(
    query: CropQuery,
    recommender: Recommender = Depends(get_recommender),
) -> List[CropSuggestion]:
    return recommender.recommend(query)


# ---------- Marketplace ----------
@app.get("/listings", response_model=List[Listing])
async def search_listings(
    q: str = "",
    region: Optional[str] = None,
    crop: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    organic: Optional[bool] = None,
    farmer_id: Optional[str] = None,
    catalog: ListingCatalog = Depends(get_catalog),
) -> List[Listing]:
    return catalog.search(q, region, crop, min_price, max_price, organic, farmer_id)


@app.post("/listings", response_model=Listing, status_code=201)
async def create_listing(data: ListingCreate, catalog: ListingCatalog = Depends(get_catalog)) -> Listing:
    return catalog.create(data)


@app.delete("/listings/{listing_id}", status_code=204)
async def delete_listing(listing_id: str, catalog: ListingCatalog = Depends(get_catalog)) -> Response:
    catalog.delete(listing_id)
    return Response(status_code=204)


@app.post("/listings/{listing_id}/cart", response_model=List[CartItem])
async def add_listing_to_cart(
    listing_id: str,
    quantity: int = Query(1, ge=1),
    catalog: ListingCatalog = Depends(get_catalog),
    cart: Cart = Depends(get_cart),
) -> List[CartItem]:
    return cart.add(to_cart_item(catalog.find(listing_id), quantity))


# ---------- Profit ----------
@app.post("/profit/calculate", response_model=ProfitResult)
async def profit_calculate(inp: ProfitInput) -> ProfitResult:
    return calculate_profit(inp)


@app.post("/profit/export")
async def profit_export(inp: ProfitInput) -> Response:
    filename = f"profit-calculation-{inp.crop.strip().lower().replace(' ', '-')}.csv"
    return Response(
        content=to_csv(inp, calculate_profit(inp)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------- Prices ----------
@app.post("/prices/predict", response_model=PricePrediction)
async def predict_price(
    query: PriceQuery,
    predictor: PricePredictor = Depends(get_price_predictor),
) -> PricePrediction:
    return predictor.predict(query)


@app.get("/prices/trends/{crop}", response_model=PriceTrend)
async def price_trend(crop: str, predictor: PricePredictor = Depends(get_price_predictor)) -> PriceTrend:
    return predictor.trend(crop)


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {"ok": True, "version": __version__, "storage": _storage.name}


def main() -> None:
    configure_logging()
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
