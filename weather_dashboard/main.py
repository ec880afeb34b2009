"""
FastAPI entrypoint.

This file focuses on:
- routing
- wiring settings -> client -> controller
- startup (initial location load) and teardown (debounce timer)

Run with: uvicorn weather_dashboard.main:app
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Query, Request

from .controller import DashboardController, DebouncedSearch
from .geolocation import Geolocator, StaticPositionSource
from .schemas import CitySuggestion, Coordinates, DashboardState
from .settings import Settings
from .weather_clients import OpenWeatherClient

logger = logging.getLogger(__name__)


def build_controller(settings: Settings) -> DashboardController:
    """Construct the client/geolocator/controller graph from settings."""
    client = OpenWeatherClient(settings.api_config(), timeout_s=settings.request_timeout_s)

    source = None
    if settings.home_lat is not None and settings.home_lon is not None:
        source = StaticPositionSource(Coordinates(lat=settings.home_lat, lon=settings.home_lon))

    return DashboardController(client, Geolocator(source), default_city=settings.default_city)


def create_app(
    settings: Optional[Settings] = None,
    controller: Optional[DashboardController] = None,
) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.weather_api_key:
        logger.warning("WEATHER_API_KEY is not set; weather lookups will fail and search is disabled")

    controller = controller or build_controller(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        startup = None
        if settings.activate_on_startup:
            # Run in the background so the server accepts requests immediately.
            startup = asyncio.create_task(controller.activate())
        yield
        app.state.debouncer.dispose()
        if startup is not None and not startup.done():
            startup.cancel()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.controller = controller
    app.state.debouncer = DebouncedSearch(controller, delay_s=settings.search_debounce_s)

    # -------------------------
    # State
    # -------------------------

    @app.get("/api/state", response_model=DashboardState)
    async def get_state():
        """Everything the dashboard renders."""
        return controller.state

    @app.delete("/api/error", response_model=DashboardState)
    async def clear_error():
        controller.clear_error()
        return controller.state

    # -------------------------
    # Weather actions
    #
    # Failures are part of the returned state (state.error), so these
    # always answer 200 once the input validates.
    # -------------------------

    @app.post("/api/weather/city", response_model=DashboardState)
    async def weather_by_city(q: str = Query(..., min_length=1, max_length=255)):
        return await controller.fetch_weather_by_city(q.strip())

    @app.post("/api/weather/coords", response_model=DashboardState)
    async def weather_by_coords(
        lat: float = Query(..., ge=-90.0, le=90.0),
        lon: float = Query(..., ge=-180.0, le=180.0),
    ):
        return await controller.fetch_weather_by_coordinates(lat, lon)

    @app.post("/api/weather/location", response_model=DashboardState)
    async def weather_for_location():
        return await controller.fetch_current_location_weather()

    @app.post("/api/weather/refresh", response_model=DashboardState)
    async def refresh():
        return await controller.refresh()

    # -------------------------
    # City search
    # -------------------------

    @app.get("/api/cities", response_model=List[CitySuggestion])
    async def search_cities(q: str = Query("", max_length=255)):
        """Immediate search (no debounce), e.g. for a submit button."""
        return await controller.search_cities(q.strip())

    @app.post("/api/search/input", status_code=202)
    async def search_input(request: Request, q: str = Query("", max_length=255)):
        """
        Keystroke feed for the search box.
        Results land in state.search_results once typing pauses.
        """
        request.app.state.debouncer.schedule(q.strip())
        return {"scheduled": True}

    return app


app = create_app()
