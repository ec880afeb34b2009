"""
Single-shot position lookup.

The platform's positioning capability (a browser, a GPS daemon, a fixed
home location) is plugged in as a `source`. Geolocator adds the request
options the dashboard always uses: high accuracy, a 10 s timeout and a
5 minute position cache.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

from .errors import LocationError
from .schemas import Coordinates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_s: float = 10.0
    maximum_age_s: float = 300.0


PositionSource = Callable[[PositionOptions], Awaitable[Coordinates]]


class StaticPositionSource:
    """Reports the same position every time (e.g. a configured home location)."""

    def __init__(self, coords: Coordinates):
        self.coords = coords

    async def __call__(self, options: PositionOptions) -> Coordinates:
        return self.coords


class Geolocator:
    def __init__(
        self,
        source: Optional[PositionSource] = None,
        options: PositionOptions = PositionOptions(),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.options = options
        self._clock = clock
        self._cached: Optional[Tuple[float, Coordinates]] = None

    @property
    def supported(self) -> bool:
        return self.source is not None

    async def locate(self) -> Coordinates:
        """
        Current position.

        Raises LocationError if no source is configured, the source refuses
        (permission denied or any other failure), or it does not answer
        within options.timeout_s.
        """
        if self.source is None:
            raise LocationError("Geolocation is not supported on this platform.")

        if self._cached is not None:
            taken_at, coords = self._cached
            if self._clock() - taken_at <= self.options.maximum_age_s:
                return coords

        try:
            coords = await asyncio.wait_for(self.source(self.options), self.options.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Position request timed out after %.1fs", self.options.timeout_s)
            raise LocationError("Timed out while retrieving your location.") from None
        except LocationError:
            raise
        except Exception as e:
            logger.warning("Position request refused: %s", e)
            raise LocationError("Unable to retrieve your location.") from e

        self._cached = (self._clock(), coords)
        return coords

    def forget(self) -> None:
        """Drop the cached position."""
        self._cached = None
