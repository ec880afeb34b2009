"""
Weather clients.

API logic is kept apart from the controller and the FastAPI routes:
- easier to test in isolation
- the controller only sequences calls and stores results
- every request goes through one validation path (_get_json)
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

import httpx

from .errors import ConfigError, FormatError, HttpError
from .settings import WeatherApiConfig

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 8


class OpenWeatherClient:
    """
    OpenWeatherMap wrapper.

    Endpoints used (relative to the configured base URLs):
    - Current weather:
        {weather}/weather?q=...|lat=...&lon=...&units=metric&appid=KEY
    - 5-day forecast (3-hour increments):
        {weather}/forecast?lat=...&lon=...&units=metric&appid=KEY
    - Geocoding:
        {geocoding}/direct?q=...&limit=8&appid=KEY

    Methods return the parsed JSON payload untouched; turning it into
    dashboard models is the normalizer's job.
    """

    def __init__(self, config: WeatherApiConfig, timeout_s: float = 10.0):
        self.config = config
        self.timeout_s = timeout_s

    def _require_key(self) -> str:
        if not self.config.has_api_key:
            raise ConfigError(
                "Weather API key is not configured. Please check your environment variables."
            )
        return self.config.api_key

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """
        GET a provider endpoint and return its parsed JSON body.

        Raises:
        - HttpError for any non-2xx status
        - FormatError when the body is not declared as, or does not parse as, JSON
        """
        logger.debug("GET %s", url)
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            r = await client.get(url, params=params)

        if not r.is_success:
            logger.warning("Provider returned %d for %s: %s", r.status_code, url, r.text[:200])
            raise HttpError(r.status_code)

        content_type = r.headers.get("content-type", "")
        if "application/json" not in content_type:
            logger.warning("Non-JSON response (%s) from %s", content_type or "no content-type", url)
            raise FormatError(
                "API returned non-JSON response. Please check your API key and endpoints."
            )

        try:
            return r.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Unparsable JSON body from %s", url)
            raise FormatError(
                "Invalid API response format. Please check your API configuration."
            ) from None

    async def fetch_current_by_city(self, name: str) -> Dict[str, Any]:
        """Current conditions for a free-text city name ("Paris", "Austin,US")."""
        key = self._require_key()
        params = {"q": name, "appid": key, "units": "metric"}
        return await self._get_json(f"{self.config.weather_base_url}/weather", params)

    async def fetch_current_by_coordinates(self, lat: float, lon: float) -> Dict[str, Any]:
        """
        Current conditions for a lat/lon.
        The provider resolves the place name; nothing is reverse-geocoded here.
        """
        key = self._require_key()
        params = {"lat": lat, "lon": lon, "appid": key, "units": "metric"}
        return await self._get_json(f"{self.config.weather_base_url}/weather", params)

    async def fetch_forecast(self, lat: float, lon: float) -> Dict[str, Any]:
        """5-day forecast in 3-hour buckets (~40 entries under "list")."""
        key = self._require_key()
        params = {"lat": lat, "lon": lon, "appid": key, "units": "metric"}
        return await self._get_json(f"{self.config.weather_base_url}/forecast", params)

    async def search_cities(self, query: str) -> List[Dict[str, Any]]:
        """
        Geocoding matches for autocomplete.

        Search is non-critical, so it fails soft: a too-short query or a
        missing API key returns [] without touching the network.
        """
        if not query or len(query) < MIN_SEARCH_LENGTH:
            return []
        if not self.config.has_api_key:
            logger.error("City search skipped: weather API key is missing")
            return []

        params = {"q": query, "limit": SEARCH_LIMIT, "appid": self.config.api_key}
        return await self._get_json(f"{self.config.geocoding_base_url}/direct", params)
