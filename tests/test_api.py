import httpx
import pytest
from fastapi.testclient import TestClient

from krishi_weather.api import app, cors_headers, get_storage, get_weather_service
from krishi_weather.config import Config
from krishi_weather.provider import OpenWeatherProvider
from krishi_weather.storage import MemoryStorage
from krishi_weather.weather import WeatherService

from helpers import openweather_current, openweather_forecast

ITEM = {"id": "lst-1", "crop_name": "Wheat", "farmer_name": "Gurpreet", "price": 25.5, "quantity": 10, "unit": "kg"}


def service_for(handler, api_key="test-key"):
    settings = Config(_env_file=None, openweather_api_key=api_key)
    if handler is None:
        return WeatherService(settings)
    return WeatherService(settings, provider=OpenWeatherProvider(api_key, transport=httpx.MockTransport(handler)))


def ok_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/weather"):
        return httpx.Response(200, json=openweather_current(temp=27.4, humidity=65, wind=3.0, clouds=20))
    return httpx.Response(200, json=openweather_forecast(days=6, pop=0.2, main="Rain"))


@pytest.fixture
def client():
    storage = MemoryStorage()
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_weather_service] = lambda: service_for(ok_handler)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_get_weather_success(client):
    response = client.post("/get-weather", json={"location": "Ludhiana"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"current", "forecast", "alerts", "precautions"}
    assert body["current"] == {"temp": 27, "condition": "Clouds", "humidity": 65, "wind": 11, "rainfall": 20}
    assert type(body["current"]["humidity"]) is int
    assert type(body["current"]["rainfall"]) is int
    assert '"humidity":65,' in response.text
    assert '"rainfall":20}' in response.text
    assert len(body["forecast"]) == 7
    assert body["forecast"][0] == {
        "day": "Today",
        "temp": 24,
        "condition": "Rain",
        "rainfall": pytest.approx(20.0),
        "icon": "rain",
    }
    assert [p["condition"] for p in body["precautions"]] == ["Heavy Rain", "High Temperature", "High Humidity"]


def test_current_failure_returns_error_envelope(client):
    def handler(request):
        return httpx.Response(401, json={"cod": 401, "message": "Invalid API key"})

    app.dependency_overrides[get_weather_service] = lambda: service_for(handler)

    response = client.post("/get-weather", json={"location": "Ludhiana"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch current weather data"}


def test_forecast_failure_returns_error_envelope(client):
    def handler(request):
        if request.url.path.endswith("/weather"):
            return httpx.Response(200, json=openweather_current())
        return httpx.Response(503)

    app.dependency_overrides[get_weather_service] = lambda: service_for(handler)

    response = client.post("/get-weather", json={"location": "Ludhiana"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch forecast data"}


def test_missing_api_key(client):
    app.dependency_overrides[get_weather_service] = lambda: service_for(None, api_key=None)

    response = client.post("/get-weather", json={"location": "Ludhiana"})

    assert response.status_code == 500
    assert response.json() == {"error": "Weather API key not configured"}


@pytest.mark.parametrize("payload", [{}, {"location": ""}, {"location": "   "}, {"city": "Pune"}])
def test_malformed_request(client, payload):
    response = client.post("/get-weather", json=payload)

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request")


def test_browser_preflight_has_empty_body(client):
    response = client.options(
        "/get-weather",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert "content-type" in response.headers["access-control-allow-headers"].lower()
    assert "POST" in response.headers["access-control-allow-methods"]


def test_bare_options_request(client):
    response = client.options("/get-weather")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert "content-type" in response.headers["access-control-allow-headers"]


def test_cors_headers_follow_allowed_origins():
    allowed = ["https://market.example"]

    assert cors_headers("https://market.example", allowed)["Access-Control-Allow-Origin"] == "https://market.example"
    assert cors_headers("https://market.example", allowed)["Vary"] == "Origin"
    assert "Access-Control-Allow-Origin" not in cors_headers("https://evil.example", allowed)
    assert cors_headers("https://anywhere.example", ["*"])["Access-Control-Allow-Origin"] == "*"


def test_error_envelope_carries_cors_headers(client):
    response = client.post("/cart/checkout", headers={"Origin": "http://localhost:5173"})

    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == "*"


def test_unexpected_exception_returns_json_envelope():
    class BrokenService:
        async def get_weather_advisory(self, location):
            raise RuntimeError("provider client exploded")

    app.dependency_overrides[get_weather_service] = lambda: BrokenService()
    try:
        response = TestClient(app, raise_server_exceptions=False).post("/get-weather", json={"location": "Pune"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"error": "provider client exploded"}


def forecast_client(forecast_body):
    def handler(request):
        if request.url.path.endswith("/weather"):
            return httpx.Response(200, json=openweather_current())
        return httpx.Response(200, json=forecast_body)

    app.dependency_overrides[get_weather_service] = lambda: service_for(handler)
    return TestClient(app, raise_server_exceptions=False)


def test_null_city_forecast_is_accepted(client):
    response = forecast_client({"cod": "200", "city": None, "list": []}).post("/get-weather", json={"location": "Pune"})

    assert response.status_code == 200
    assert response.json()["forecast"] == []


@pytest.mark.parametrize("forecast_body", [[{"dt": 0}], {"cod": "200", "city": {"timezone": 0}, "list": None}])
def test_malformed_forecast_stays_in_envelope(client, forecast_body):
    response = forecast_client(forecast_body).post("/get-weather", json={"location": "Pune"})

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"error": "Unexpected forecast data from provider"}


def test_precautions_endpoint(client):
    response = client.get("/precautions")

    assert response.status_code == 200
    assert len(response.json()) == 3


def test_cart_checkout_and_tracking(client):
    assert client.post("/cart/items", json=ITEM).status_code == 200
    client.post("/cart/items", json={**ITEM, "quantity": 2})
    client.post("/cart/items", json={**ITEM, "id": "lst-2", "crop_name": "Rice", "price": 40, "quantity": 1})

    cart = client.get("/cart").json()
    assert [i["quantity"] for i in cart["items"]] == [12, 1]
    assert cart["total"] == pytest.approx(25.5 * 12 + 40)

    client.patch("/cart/items/lst-2", json={"quantity": 0})
    assert len(client.get("/cart").json()["items"]) == 1

    order = client.post("/cart/checkout").json()
    assert order["status"] == "Processing"
    assert order["id"].startswith("ORD-")
    assert client.get("/cart").json()["items"] == []

    orders = client.get("/orders").json()
    assert orders[0]["estimated_delivery"] == "3-4 days"

    advanced = client.post(f"/orders/{order['id']}/advance").json()
    assert advanced["status"] == "Dispatched"

    invoice = client.get(f"/orders/{order['id']}/invoice")
    assert invoice.status_code == 200
    assert "text/html" in invoice.headers["content-type"]
    assert order["id"] in invoice.text


def test_checkout_empty_cart(client):
    response = client.post("/cart/checkout")

    assert response.status_code == 400
    assert response.json() == {"error": "Cart is empty"}


def test_unknown_order(client):
    response = client.post("/orders/ORD-NOPE/advance")

    assert response.status_code == 404
    assert "error" in response.json()


def test_recommend_crops(client):
    response = client.post(
        "/crops/recommend", json={"soil_type": "Loamy", "region": "Punjab", "season": "Kharif", "area": 2.5}
    )

    assert response.status_code == 200
    assert [s["crop"] for s in response.json()] == ["Rice (Basmati)", "Cotton"]


def test_recommend_crops_rejects_zero_area(client):
    response = client.post("/crops/recommend", json={"soil_type": "clay", "region": "up", "season": "rabi", "area": 0})

    assert response.status_code == 400


PROFIT = {
    "crop": "Wheat",
    "area": 2,
    "seed_cost": 3000,
    "fertilizer_cost": 5000,
    "labor_cost": 7000,
    "expected_yield": 40,
    "selling_price": 2400,
}


@pytest.mark.parametrize(
    "params,expected",
    [
        ({}, ["1", "2", "3", "4"]),
        ({"region": "Punjab"}, ["1", "3"]),
        ({"q": "suresh"}, ["2"]),
        ({"crop": "rice"}, ["2"]),
        ({"min_price": 1000, "max_price": 4000}, ["1", "2"]),
        ({"organic": "true"}, ["2", "3"]),
        ({"region": "all", "crop": "all"}, ["1", "2", "3", "4"]),
    ],
)
def test_search_listings(client, params, expected):
    response = client.get("/listings", params=params)

    assert response.status_code == 200
    assert [listing["id"] for listing in response.json()] == expected


def test_farmer_listing_lifecycle(client):
    created = client.post(
        "/listings", json={"crop_name": "Maize", "price": 1900, "quantity": 20, "location": "Punjab"}
    )

    assert created.status_code == 201
    listing = created.json()
    assert listing["id"].startswith("LST-")
    assert listing["unit"] == "quintal"
    assert [item["id"] for item in client.get("/listings", params={"region": "Punjab"}).json()] == [
        listing["id"],
        "1",
        "3",
    ]
    assert [item["id"] for item in client.get("/listings", params={"farmer_id": "self"}).json()] == [listing["id"]]

    assert client.delete(f"/listings/{listing['id']}").status_code == 204
    assert client.delete(f"/listings/{listing['id']}").status_code == 404


def test_listing_to_cart(client):
    response = client.post("/listings/1/cart", params={"quantity": 2})

    assert response.status_code == 200
    assert response.json() == [
        {"id": "1", "crop_name": "Wheat", "farmer_name": "Rajesh Kumar", "price": 2400.0, "quantity": 2, "unit": "quintal"}
    ]
    assert client.get("/cart").json()["total"] == pytest.approx(4800)


def test_listing_to_cart_rejects_bad_quantity(client):
    assert client.post("/listings/1/cart", params={"quantity": 0}).status_code == 400
    assert client.post("/listings/1/cart", params={"quantity": 500}).status_code == 400
    assert client.post("/listings/nope/cart").status_code == 404


def test_profit_calculate(client):
    response = client.post("/profit/calculate", json=PROFIT)

    assert response.status_code == 200
    assert response.json() == {
        "total_cost": 30000.0,
        "revenue": 192000.0,
        "profit": 162000.0,
        "roi": 540.0,
        "break_even": 12.5,
        "total_yield": 80.0,
    }


def test_profit_rejects_missing_fields(client):
    response = client.post("/profit/calculate", json={"crop": "Wheat", "area": 2})

    assert response.status_code == 400
    assert "selling_price" in response.json()["error"]


def test_profit_export_csv(client):
    response = client.post("/profit/export", json=PROFIT)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="profit-calculation-wheat.csv"' in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0] == "Profit Calculator Results"
    assert "Net Profit,162000.00" in lines


def test_predict_price(client):
    response = client.post("/prices/predict", json={"crop": "rice", "region": "Punjab"})

    assert response.status_code == 200
    body = response.json()
    assert (body["current"], body["predicted"], body["change"], body["trend"]) == (3420, 3350, -2.05, "down")
    assert len(body["points"]) == 10


def test_price_trend(client):
    response = client.get("/prices/trends/cotton")

    assert response.status_code == 200
    body = response.json()
    assert (body["current"], body["predicted"], body["change"]) == (5620, 5800, 3.2)
    assert [m["predicted"] for m in body["months"]][-3:] == [False, True, True]


def test_price_trend_unknown_crop(client):
    response = client.get("/prices/trends/maize")

    assert response.status_code == 404
    assert response.json() == {"error": "No price history for maize"}
