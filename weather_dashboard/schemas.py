"""
Pydantic schemas.

These are the normalized, presentation-ready shapes the dashboard renders.
They carry no provider vocabulary: icon codes, units and wind degrees are
all translated before a model is built.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IconCategory(str, Enum):
    """Closed set of icons the UI knows how to draw."""
    SUN = "sun"
    CLOUD = "cloud"
    RAIN = "rain"
    STORM = "storm"
    SNOW = "snow"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Coordinates(_Frozen):
    lat: float
    lon: float


class WeatherSnapshot(_Frozen):
    """Current conditions for one location."""
    location: str
    country: str = ""
    temperature: int
    condition: str
    description: str
    icon: IconCategory
    humidity: int
    wind_speed: int  # km/h
    wind_direction: str
    pressure: int  # inHg
    visibility: Optional[int] = None  # km
    feels_like: int
    sunrise: str
    sunset: str
    coordinates: Coordinates


class HourlyPoint(_Frozen):
    time: str
    temperature: int
    icon: IconCategory
    precipitation: int = Field(..., ge=0, le=100)
    description: str


class DailyPoint(_Frozen):
    day: str
    date: str
    high: int
    low: int
    condition: str
    icon: IconCategory
    precipitation: int = Field(..., ge=0, le=100)
    description: str


class CitySuggestion(_Frozen):
    """One geocoding match offered while the user types."""
    name: str
    country: str = ""
    state: Optional[str] = None
    lat: float
    lon: float


class Forecast(_Frozen):
    hourly: List[HourlyPoint] = []
    daily: List[DailyPoint] = []


class DashboardState(_Frozen):
    """
    Everything the front end needs to draw the dashboard.

    The controller never mutates a state in place; each completed operation
    commits a new instance.
    """
    current: Optional[WeatherSnapshot] = None
    hourly: List[HourlyPoint] = []
    daily: List[DailyPoint] = []
    loading: bool = False
    error: Optional[str] = None
    search_results: List[CitySuggestion] = []
    search_loading: bool = False
