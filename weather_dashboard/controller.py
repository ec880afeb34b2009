"""
Dashboard view state.

DashboardController owns the single DashboardState the front end renders and
exposes the user actions (search, pick a city, use my location, refresh).
Each action runs client -> normalizer in sequence and commits a brand-new
state when it finishes.

Overlapping actions:
- every weather action takes a ticket from a monotonic counter when it
  starts and only commits if its ticket is still the newest one issued
- searches use their own counter, so typing does not invalidate a weather
  fetch and vice versa
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set, Tuple

import httpx

from .errors import LocationError, WeatherError
from .geolocation import Geolocator
from .normalizer import to_forecast, to_snapshot, to_suggestions
from .schemas import CitySuggestion, DashboardState, Forecast, WeatherSnapshot
from .weather_clients import MIN_SEARCH_LENGTH, OpenWeatherClient

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Failed to fetch weather data"
LOCATION_ERROR = "Failed to fetch location weather"

Loader = Callable[[], Awaitable[Tuple[WeatherSnapshot, Forecast]]]


class DashboardController:
    def __init__(
        self,
        client: OpenWeatherClient,
        geolocator: Optional[Geolocator] = None,
        default_city: str = "New York",
    ):
        self.client = client
        self.geolocator = geolocator or Geolocator()
        self.default_city = default_city
        self._state = DashboardState()
        self._weather_ticket = 0
        self._search_ticket = 0

    @property
    def state(self) -> DashboardState:
        return self._state

    def _commit(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)

    # -------------------------
    # Weather actions
    # -------------------------

    async def fetch_weather_by_city(self, name: str) -> DashboardState:
        async def load():
            snapshot = to_snapshot(await self.client.fetch_current_by_city(name))
            coords = snapshot.coordinates
            forecast = to_forecast(await self.client.fetch_forecast(coords.lat, coords.lon))
            return snapshot, forecast

        return await self._run_weather(f"weather for {name!r}", load)

    async def fetch_weather_by_coordinates(self, lat: float, lon: float) -> DashboardState:
        async def load():
            return await self._load_coordinates(lat, lon)

        return await self._run_weather(f"weather at {lat:.4f},{lon:.4f}", load)

    async def fetch_current_location_weather(self) -> DashboardState:
        async def load():
            coords = await self.geolocator.locate()
            return await self._load_coordinates(coords.lat, coords.lon)

        return await self._run_weather("current location weather", load, fallback=LOCATION_ERROR)

    async def refresh(self) -> DashboardState:
        """Re-fetch whatever location is on screen. No-op before the first load."""
        if self._state.current is None:
            return self._state
        return await self.fetch_weather_by_city(self._state.current.location)

    async def activate(self) -> DashboardState:
        """
        Initial load: try the user's position first, then the default city.
        A failed position lookup is not shown as an error.
        """
        try:
            coords = await self.geolocator.locate()
        except LocationError as e:
            logger.info("Location unavailable (%s); loading %s instead", e, self.default_city)
            return await self.fetch_weather_by_city(self.default_city)
        return await self.fetch_weather_by_coordinates(coords.lat, coords.lon)

    def clear_error(self) -> None:
        self._commit(error=None)

    async def _load_coordinates(self, lat: float, lon: float) -> Tuple[WeatherSnapshot, Forecast]:
        snapshot = to_snapshot(await self.client.fetch_current_by_coordinates(lat, lon))
        forecast = to_forecast(await self.client.fetch_forecast(lat, lon))
        return snapshot, forecast

    async def _run_weather(
        self, what: str, load: Loader, fallback: str = GENERIC_ERROR
    ) -> DashboardState:
        """
        Run one weather action. Every failure ends up in state.error and
        clears the loading flag; nothing escapes to the caller.
        """
        self._weather_ticket += 1
        ticket = self._weather_ticket
        self._commit(loading=True, error=None)

        try:
            snapshot, forecast = await load()
        except WeatherError as e:
            logger.warning("Loading %s failed: %s", what, e)
            message = str(e) or fallback
        except httpx.HTTPError as e:
            logger.warning("Loading %s failed: %s", what, e)
            message = fallback
        except Exception:
            logger.exception("Unexpected error while loading %s", what)
            message = fallback
        else:
            if ticket != self._weather_ticket:
                logger.debug("Discarding stale %s (ticket %d < %d)", what, ticket, self._weather_ticket)
                return self._state
            self._commit(
                current=snapshot,
                hourly=forecast.hourly,
                daily=forecast.daily,
                loading=False,
                error=None,
            )
            return self._state

        if ticket == self._weather_ticket:
            self._commit(loading=False, error=message)
        return self._state

    # -------------------------
    # Search
    # -------------------------

    async def search_cities(self, query: str) -> List[CitySuggestion]:
        """
        Autocomplete suggestions for `query`.

        Never raises: any failure is logged and shows up as an empty list.
        """
        self._search_ticket += 1
        ticket = self._search_ticket

        if not query or len(query) < MIN_SEARCH_LENGTH:
            self._commit(search_results=[], search_loading=False)
            return []

        self._commit(search_loading=True)
        try:
            results = to_suggestions(await self.client.search_cities(query))
        except (WeatherError, httpx.HTTPError) as e:
            logger.warning("City search for %r failed: %s", query, e)
            results = []
        except Exception:
            logger.exception("Unexpected error in city search for %r", query)
            results = []

        if ticket == self._search_ticket:
            self._commit(search_results=results, search_loading=False)
        return results


class DebouncedSearch:
    """
    Cancellable timer in front of DashboardController.search_cities.

    Every schedule() clears the pending timer and starts a new one, so only
    the last input within `delay_s` triggers a request. dispose() cancels
    the pending timer for good (component teardown).
    """

    def __init__(self, controller: DashboardController, delay_s: float = 0.3):
        self.controller = controller
        self.delay_s = delay_s
        self._timer: Optional[asyncio.TimerHandle] = None
        self._in_flight: Set[asyncio.Future] = set()
        self._disposed = False

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self, query: str) -> None:
        if self._disposed:
            logger.debug("Ignoring search input after dispose: %r", query)
            return
        self.cancel()
        self._timer = asyncio.get_running_loop().call_later(self.delay_s, self._fire, query)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def dispose(self) -> None:
        self.cancel()
        self._disposed = True

    def _fire(self, query: str) -> None:
        self._timer = None
        task = asyncio.ensure_future(self.controller.search_cities(query))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
