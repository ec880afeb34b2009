from dataclasses import dataclass
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class WeatherApiConfig:
    """
    Everything the fetch client needs to talk to the provider.

    Built once from Settings and passed to OpenWeatherClient at construction,
    so the client never reads process state on its own.
    """
    api_key: Optional[str]
    weather_base_url: str
    geocoding_base_url: str

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables (WEATHER_API_KEY, WEATHER_API_BASE_URL, ...)
    - .env file (if present)

    A missing API key is allowed: searches degrade to empty results and
    weather fetches surface a configuration error.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    weather_api_key: Optional[str] = None
    weather_api_base_url: str = "https://api.openweathermap.org/data/2.5"
    geocoding_api_base_url: str = "https://api.openweathermap.org/geo/1.0"
    request_timeout_s: float = 10.0

    # Dashboard behaviour
    app_name: str = "Weather Dashboard"
    default_city: str = "New York"
    search_debounce_s: float = 0.3
    activate_on_startup: bool = True

    # Optional fixed position reported as "current location"
    home_lat: Optional[float] = None
    home_lon: Optional[float] = None

    log_level: str = "INFO"

    def api_config(self) -> WeatherApiConfig:
        return WeatherApiConfig(
            api_key=self.weather_api_key or None,
            weather_base_url=self.weather_api_base_url.rstrip("/"),
            geocoding_base_url=self.geocoding_api_base_url.rstrip("/"),
        )
