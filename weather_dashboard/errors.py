"""
Error taxonomy.

Every failure the dashboard can show to a user derives from WeatherError,
so the controller can catch one type at its operation boundary and display
str(error) as-is.
"""

from __future__ import annotations


class WeatherError(RuntimeError):
    """Raised for user-facing weather lookup failures."""
    pass


class ConfigError(WeatherError):
    """The provider API key (or another required setting) is missing."""
    pass


class HttpError(WeatherError):
    """The provider answered with a non-2xx status."""

    def __init__(self, status: int, message: str | None = None):
        self.status = status
        super().__init__(message or f"Weather service error ({status}). Please try again later.")


class FormatError(WeatherError):
    """The provider answered with something that is not JSON."""
    pass


class ShapeError(WeatherError):
    """A JSON payload is missing fields the normalizer relies on."""
    pass


class LocationError(WeatherError):
    """
    The current position could not be determined.

    Shown verbatim like any WeatherError when the user asks for their
    location; activate() instead catches it and loads the default city.
    """
    pass
