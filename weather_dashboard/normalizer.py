"""
Normalizer: OpenWeather wire format -> dashboard models.

Everything here is pure. Payloads come straight from OpenWeatherClient and
leave as the frozen models in schemas.py.

Local time:
- OpenWeather reports each city's UTC offset in seconds ("timezone" on the
  current-weather payload, "city.timezone" on the forecast payload).
- Clock labels and per-day grouping are computed in that local time, so a
  dashboard shows Tokyo's sunrise in Tokyo time regardless of where the
  server runs. Without an offset, UTC is used.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .errors import ShapeError
from .schemas import (
    CitySuggestion,
    Coordinates,
    DailyPoint,
    Forecast,
    HourlyPoint,
    IconCategory,
    WeatherSnapshot,
)

HOURLY_LIMIT = 24
DAILY_LIMIT = 7

MS_TO_KMH = 3.6
HPA_TO_INHG = 0.02953

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

# https://openweathermap.org/weather-conditions#Icon-list
ICON_CODES: Dict[str, IconCategory] = {
    "01d": IconCategory.SUN,    # clear sky
    "01n": IconCategory.SUN,
    "02d": IconCategory.CLOUD,  # few clouds
    "02n": IconCategory.CLOUD,
    "03d": IconCategory.CLOUD,  # scattered clouds
    "03n": IconCategory.CLOUD,
    "04d": IconCategory.CLOUD,  # broken clouds
    "04n": IconCategory.CLOUD,
    "09d": IconCategory.RAIN,   # shower rain
    "09n": IconCategory.RAIN,
    "10d": IconCategory.RAIN,   # rain
    "10n": IconCategory.RAIN,
    "11d": IconCategory.STORM,  # thunderstorm
    "11n": IconCategory.STORM,
    "13d": IconCategory.SNOW,   # snow
    "13n": IconCategory.SNOW,
    "50d": IconCategory.CLOUD,  # mist
    "50n": IconCategory.CLOUD,
}


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    """Round .5 upwards (2.5 -> 3, -2.5 -> -2) instead of to the even neighbour."""
    return int(math.floor(value + 0.5))


def _require(data: Any, *path: Any) -> Any:
    """
    Walk a nested payload by keys / list indexes.

    Raises ShapeError naming the first missing step, e.g. "main.temp".
    """
    node = data
    walked: List[str] = []
    for step in path:
        walked.append(str(step))
        try:
            node = node[step]
        except (KeyError, IndexError, TypeError):
            raise ShapeError(
                f"Unexpected weather data: missing '{'.'.join(walked)}'."
            ) from None
        if node is None:
            raise ShapeError(f"Unexpected weather data: missing '{'.'.join(walked)}'.")
    return node


def _number(data: Any, *path: Any) -> float:
    value = _require(data, *path)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        dotted = ".".join(str(p) for p in path)
        raise ShapeError(f"Unexpected weather data: '{dotted}' is not a number.")
    return float(value)


def _condition(item: Any) -> Dict[str, Any]:
    condition = _require(item, "weather", 0)
    if not isinstance(condition, dict):
        raise ShapeError("Unexpected weather data: 'weather.0' is not an object.")
    return condition


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Optional nested object; absent is empty, anything but an object is a ShapeError."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ShapeError(f"Unexpected weather data: '{key}' is not an object.")
    return value


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ShapeError(f"Unexpected weather data: '{key}' is not a string.")
    return value


def _pop(item: Dict[str, Any]) -> float:
    # pop is 0..1 and may be absent on some buckets
    value = item.get("pop") if isinstance(item, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _percent(fraction: float) -> int:
    return min(100, max(0, round_half_up(fraction * 100)))


def _tz_offset(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def local_datetime(ts: float, tz_offset: int = 0) -> datetime:
    """Unix timestamp (UTC) -> wall-clock time at a fixed UTC offset."""
    return datetime.fromtimestamp(ts, tz=timezone(timedelta(seconds=tz_offset)))


def clock_label(moment: datetime) -> str:
    """12-hour clock with minutes, e.g. "6:05 AM"."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def hour_label(moment: datetime) -> str:
    """12-hour clock, hour only, e.g. "3 PM"."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour} {suffix}"


def date_label(day: date) -> str:
    """Short month + day, e.g. "Oct 19"."""
    return f"{day.strftime('%b')} {day.day}"


def day_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return day.strftime("%A")


# ---------------------------------------------------------------------------
# Public mapping functions
# ---------------------------------------------------------------------------

def map_icon_code(code: Optional[str]) -> IconCategory:
    """Provider icon code ("01d", "09n", ...) -> IconCategory. Unknown -> sun."""
    return ICON_CODES.get(code or "", IconCategory.SUN)


def wind_direction(degrees: float) -> str:
    """Meteorological degrees -> one of 16 compass labels."""
    index = round_half_up((degrees % 360) / 22.5) % len(COMPASS_POINTS)
    return COMPASS_POINTS[index]


def to_snapshot(raw: Dict[str, Any]) -> WeatherSnapshot:
    """
    Normalize a /weather payload.

    Units on the wire are metric (units=metric): °C, m/s, hPa, metres.
    """
    condition = _condition(raw)
    tz_offset = _tz_offset(raw.get("timezone"))

    visibility_m = raw.get("visibility")
    visibility = (
        round_half_up(visibility_m / 1000)
        if isinstance(visibility_m, (int, float)) and not isinstance(visibility_m, bool)
        else None
    )

    return WeatherSnapshot(
        location=str(_require(raw, "name")),
        country=str(_section(raw, "sys").get("country") or ""),
        temperature=round_half_up(_number(raw, "main", "temp")),
        condition=str(_require(condition, "main")),
        description=str(_require(condition, "description")),
        icon=map_icon_code(condition.get("icon")),
        humidity=round_half_up(_number(raw, "main", "humidity")),
        wind_speed=round_half_up(_number(raw, "wind", "speed") * MS_TO_KMH),
        wind_direction=wind_direction(_number(raw, "wind", "deg")),
        pressure=round_half_up(_number(raw, "main", "pressure") * HPA_TO_INHG),
        visibility=visibility,
        feels_like=round_half_up(_number(raw, "main", "feels_like")),
        sunrise=clock_label(local_datetime(_number(raw, "sys", "sunrise"), tz_offset)),
        sunset=clock_label(local_datetime(_number(raw, "sys", "sunset"), tz_offset)),
        coordinates=Coordinates(
            lat=_number(raw, "coord", "lat"),
            lon=_number(raw, "coord", "lon"),
        ),
    )


def to_hourly(raw_list: List[Dict[str, Any]], tz_offset: int = 0) -> List[HourlyPoint]:
    """First 24 forecast buckets; the first one is labelled "Now"."""
    points: List[HourlyPoint] = []
    for index, item in enumerate(raw_list[:HOURLY_LIMIT]):
        condition = _condition(item)
        if index == 0:
            time = "Now"
        else:
            time = hour_label(local_datetime(_number(item, "dt"), tz_offset))
        points.append(HourlyPoint(
            time=time,
            temperature=round_half_up(_number(item, "main", "temp")),
            icon=map_icon_code(condition.get("icon")),
            precipitation=_percent(_pop(item)),
            description=str(_require(condition, "description")),
        ))
    return points


def to_daily(
    raw_list: List[Dict[str, Any]],
    tz_offset: int = 0,
    today: Optional[date] = None,
) -> List[DailyPoint]:
    """
    Collapse 3-hour buckets into one card per calendar day (at most 7).

    For each day:
    - high / low are the max / min bucket temperature
    - condition, icon and description come from the middle bucket
      (index n // 2): a cheap stand-in for "what most of the day looks like"
    - precipitation is the mean pop across the day's buckets
    """
    if today is None:
        today = datetime.now(timezone(timedelta(seconds=tz_offset))).date()

    grouped: Dict[date, List[Dict[str, Any]]] = {}
    for item in raw_list:
        day = local_datetime(_number(item, "dt"), tz_offset).date()
        grouped.setdefault(day, []).append(item)

    days: List[DailyPoint] = []
    for day, items in list(grouped.items())[:DAILY_LIMIT]:
        temps = [_number(item, "main", "temp") for item in items]
        middle = _condition(items[len(items) // 2])
        mean_pop = sum(_pop(item) for item in items) / len(items)

        days.append(DailyPoint(
            day=day_label(day, today),
            date=date_label(day),
            high=round_half_up(max(temps)),
            low=round_half_up(min(temps)),
            condition=str(_require(middle, "main")),
            icon=map_icon_code(middle.get("icon")),
            precipitation=_percent(mean_pop),
            description=str(_require(middle, "description")),
        ))
    return days


def to_forecast(raw: Dict[str, Any], today: Optional[date] = None) -> Forecast:
    """Normalize a whole /forecast payload into hourly + daily sequences."""
    items = _require(raw, "list")
    if not isinstance(items, list):
        raise ShapeError("Unexpected weather data: 'list' is not a list.")
    tz_offset = _tz_offset(_section(raw, "city").get("timezone"))
    return Forecast(
        hourly=to_hourly(items, tz_offset),
        daily=to_daily(items, tz_offset, today=today),
    )


def to_suggestions(raw_list: Any) -> List[CitySuggestion]:
    """Normalize geocoding /direct rows into CitySuggestion objects."""
    if not isinstance(raw_list, list):
        raise ShapeError("Unexpected geocoding data: expected a list of places.")
    return [
        CitySuggestion(
            name=str(_require(row, "name")),
            country=str(row.get("country") or ""),
            state=_optional_text(row, "state"),
            lat=_number(row, "lat"),
            lon=_number(row, "lon"),
        )
        for row in raw_list
    ]
