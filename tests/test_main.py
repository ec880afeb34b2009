"""Tests for the FastAPI routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from weather_dashboard.controller import DashboardController
from weather_dashboard.main import build_controller, create_app
from weather_dashboard.schemas import CitySuggestion, DashboardState
from weather_dashboard.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        weather_api_key="test-key",
        weather_api_base_url="https://owm.test/data/2.5",
        geocoding_api_base_url="https://owm.test/geo/1.0",
        activate_on_startup=False,
    )


@pytest.fixture
def mock_controller() -> MagicMock:
    controller = MagicMock(spec=DashboardController)
    controller.state = DashboardState()
    failed = DashboardState(error="Weather service error (404). Please try again later.")
    controller.fetch_weather_by_city = AsyncMock(return_value=failed)
    controller.fetch_weather_by_coordinates = AsyncMock(return_value=DashboardState())
    controller.fetch_current_location_weather = AsyncMock(return_value=DashboardState())
    controller.refresh = AsyncMock(return_value=DashboardState())
    controller.search_cities = AsyncMock(
        return_value=[CitySuggestion(name="Paris", country="FR", lat=48.85, lon=2.35)]
    )
    return controller


@pytest.fixture
def api(settings: Settings, mock_controller: MagicMock) -> TestClient:
    return TestClient(create_app(settings, controller=mock_controller))


class TestStateRoutes:
    def test_get_state(self, api: TestClient):
        resp = api.get("/api/state")
        assert resp.status_code == 200
        body = resp.json()
        assert body["current"] is None
        assert body["loading"] is False

    def test_clear_error(self, api: TestClient, mock_controller: MagicMock):
        resp = api.delete("/api/error")
        assert resp.status_code == 200
        mock_controller.clear_error.assert_called_once()


class TestWeatherRoutes:
    def test_by_city_returns_state_with_error(self, api: TestClient, mock_controller: MagicMock):
        resp = api.post("/api/weather/city", params={"q": " Atlantis "})
        assert resp.status_code == 200
        assert resp.json()["error"].startswith("Weather service error")
        mock_controller.fetch_weather_by_city.assert_awaited_once_with("Atlantis")

    def test_by_city_requires_query(self, api: TestClient):
        assert api.post("/api/weather/city").status_code == 422

    def test_by_coords(self, api: TestClient, mock_controller: MagicMock):
        resp = api.post("/api/weather/coords", params={"lat": 51.5, "lon": -0.12})
        assert resp.status_code == 200
        mock_controller.fetch_weather_by_coordinates.assert_awaited_once_with(51.5, -0.12)

    @pytest.mark.parametrize("lat, lon", [(91, 0), (-91, 0), (0, 181), (0, -181)])
    def test_by_coords_out_of_range(self, api: TestClient, lat, lon):
        resp = api.post("/api/weather/coords", params={"lat": lat, "lon": lon})
        assert resp.status_code == 422

    def test_location(self, api: TestClient, mock_controller: MagicMock):
        assert api.post("/api/weather/location").status_code == 200
        mock_controller.fetch_current_location_weather.assert_awaited_once()

    def test_refresh(self, api: TestClient, mock_controller: MagicMock):
        assert api.post("/api/weather/refresh").status_code == 200
        mock_controller.refresh.assert_awaited_once()


class TestSearchRoutes:
    def test_cities(self, api: TestClient, mock_controller: MagicMock):
        resp = api.get("/api/cities", params={"q": "Paris"})
        assert resp.status_code == 200
        assert resp.json() == [
            {"name": "Paris", "country": "FR", "state": None, "lat": 48.85, "lon": 2.35}
        ]
        mock_controller.search_cities.assert_awaited_once_with("Paris")

    def test_search_input_is_debounced(self, api: TestClient):
        debouncer = MagicMock()
        api.app.state.debouncer = debouncer

        resp = api.post("/api/search/input", params={"q": "Par"})

        assert resp.status_code == 202
        debouncer.schedule.assert_called_once_with("Par")


class TestWithoutApiKey:
    def test_city_lookup_reports_configuration_error(self):
        settings = Settings(_env_file=None, weather_api_key=None, activate_on_startup=False)
        api = TestClient(create_app(settings))

        resp = api.post("/api/weather/city", params={"q": "London"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["current"] is None
        assert body["error"] == (
            "Weather API key is not configured. Please check your environment variables."
        )

    def test_search_is_empty(self):
        settings = Settings(_env_file=None, weather_api_key=None, activate_on_startup=False)
        api = TestClient(create_app(settings))

        resp = api.get("/api/cities", params={"q": "London"})

        assert resp.status_code == 200
        assert resp.json() == []


class TestLifespan:
    def test_activates_on_startup(self, settings: Settings, mock_controller: MagicMock):
        settings = settings.model_copy(update={"activate_on_startup": True})
        mock_controller.activate = AsyncMock(return_value=DashboardState())

        with TestClient(create_app(settings, controller=mock_controller)) as api:
            api.get("/api/state")

        mock_controller.activate.assert_awaited_once()

    def test_disposes_debouncer_on_shutdown(self, settings: Settings, mock_controller: MagicMock):
        app = create_app(settings, controller=mock_controller)
        app.state.debouncer = MagicMock()

        with TestClient(app):
            pass

        app.state.debouncer.dispose.assert_called_once()


class TestBuildController:
    def test_without_home_position(self, settings: Settings):
        controller = build_controller(settings)
        assert not controller.geolocator.supported
        assert controller.default_city == "New York"

    def test_with_home_position(self, settings: Settings):
        settings = settings.model_copy(update={"home_lat": 52.52, "home_lon": 13.405})
        controller = build_controller(settings)
        assert controller.geolocator.supported
        assert controller.client.config.api_key == "test-key"
