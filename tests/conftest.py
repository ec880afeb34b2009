"""Shared test fixtures."""

import json
from pathlib import Path
from typing import Callable

import pytest

from weather_dashboard.settings import WeatherApiConfig
from weather_dashboard.weather_clients import OpenWeatherClient

FIXTURE_DIR = Path(__file__).parent / "fixtures"

WEATHER_BASE = "https://owm.test/data/2.5"
GEOCODING_BASE = "https://owm.test/geo/1.0"

# 2026-10-19 09:00:00 UTC (a Monday)
FORECAST_START = 1792400400
THREE_HOURS = 3 * 3600


def _load(name: str):
    with open(FIXTURE_DIR / name) as f:
        return json.load(f)


def make_bucket(
    dt: int,
    temp: float,
    icon: str = "01d",
    pop=0.0,
    main: str = "Clear",
    description: str = "clear sky",
) -> dict:
    """One 3-hour forecast entry shaped like the provider's /forecast list items."""
    item = {
        "dt": dt,
        "main": {"temp": temp, "feels_like": temp - 1, "pressure": 1012, "humidity": 70},
        "weather": [{"id": 800, "main": main, "description": description, "icon": icon}],
        "wind": {"speed": 3.1, "deg": 200},
    }
    if pop is not None:
        item["pop"] = pop
    return item


def make_forecast(count: int = 40, start: int = FORECAST_START, tz_offset: int = 0) -> dict:
    icons = ["01d", "02d", "10d", "04n"]
    items = [
        make_bucket(
            start + i * THREE_HOURS,
            temp=8 + (i % 8) * 1.5,
            icon=icons[i % len(icons)],
            pop=(i % 5) / 10,
        )
        for i in range(count)
    ]
    return {
        "cod": "200",
        "cnt": count,
        "list": items,
        "city": {"id": 2643743, "name": "London", "country": "GB", "timezone": tz_offset},
    }


@pytest.fixture
def api_config() -> WeatherApiConfig:
    return WeatherApiConfig(
        api_key="test-key",
        weather_base_url=WEATHER_BASE,
        geocoding_base_url=GEOCODING_BASE,
    )


@pytest.fixture
def client(api_config: WeatherApiConfig) -> OpenWeatherClient:
    return OpenWeatherClient(api_config, timeout_s=1.0)


@pytest.fixture
def current_london() -> dict:
    return _load("current_weather_london.json")


@pytest.fixture
def geocoding_paris() -> list:
    return _load("geocoding_paris.json")


@pytest.fixture
def forecast_payload() -> dict:
    return make_forecast()


@pytest.fixture
def bucket() -> Callable[..., dict]:
    return make_bucket


@pytest.fixture
def forecast_factory() -> Callable[..., dict]:
    return make_forecast
