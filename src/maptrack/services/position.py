"""Position sources for maptrack.

A position source answers ``get_current_position`` by calling exactly one of
its two callbacks, once. There is no retry and no streaming of updates.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Protocol

import requests

from maptrack.errors import PositionUnavailable

if TYPE_CHECKING:
    from collections.abc import Callable

    from maptrack.models.activity import Coordinates

logger = logging.getLogger("maptrack.position")

# Key pairs tried, in order, when reading a geolocation response
_COORDINATE_KEYS = (
    ("latitude", "longitude"),
    ("lat", "lon"),
    ("lat", "lng"),
)


class PositionSource(Protocol):
    """Capability surface of an asynchronous position provider."""

    def get_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_failure: Callable[[PositionUnavailable], None],
    ) -> None: ...


class FixedPositionSource:
    """Position source that always reports the same coordinates."""

    def __init__(self, coords: Coordinates) -> None:
        self.coords = coords

    def get_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_failure: Callable[[PositionUnavailable], None],
    ) -> None:
        on_success(self.coords)


class UnavailablePositionSource:
    """Position source that always fails, e.g. when none is configured."""

    def __init__(self, reason: str = "No position source configured") -> None:
        self.reason = reason

    def get_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_failure: Callable[[PositionUnavailable], None],
    ) -> None:
        on_failure(PositionUnavailable(self.reason))


def parse_position(data: Any) -> Coordinates:
    """Extract coordinates from a geolocation JSON payload.

    Args:
        data: Decoded JSON response.

    Returns:
        (latitude, longitude) tuple.

    Raises:
        PositionUnavailable: If no usable coordinate pair is present.
    """
    if isinstance(data, dict):
        for lat_key, lng_key in _COORDINATE_KEYS:
            if lat_key in data and lng_key in data:
                try:
                    lat = float(data[lat_key])
                    lng = float(data[lng_key])
                except (TypeError, ValueError) as e:
                    raise PositionUnavailable(f"Invalid coordinates in response: {e}") from e
                if not (math.isfinite(lat) and math.isfinite(lng)):
                    raise PositionUnavailable("Non-finite coordinates in response")
                if not (-90 <= lat <= 90 and -180 <= lng <= 180):
                    raise PositionUnavailable(f"Coordinates out of range: {lat}, {lng}")
                return (lat, lng)
    raise PositionUnavailable("Response has no coordinates")


class HttpPositionSource:
    """Position source backed by an IP geolocation HTTP endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_failure: Callable[[PositionUnavailable], None],
    ) -> None:
        logger.debug("Requesting position from %s", self.url)
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            coords = parse_position(response.json())
        except PositionUnavailable as e:
            logger.warning("Could not get position: %s", e)
            on_failure(e)
            return
        except (requests.RequestException, ValueError) as e:
            logger.warning("Could not get position from %s: %s", self.url, e)
            on_failure(PositionUnavailable(str(e)))
            return

        logger.debug("Position: %s", coords)
        on_success(coords)
