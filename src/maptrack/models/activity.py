"""Activity models.

Live activities are immutable dataclasses whose derived metric and
description are fixed at construction. Activities restored from storage are
``ActivitySnapshot`` field-bags: they carry whatever values were serialized
and are never turned back into ``Running`` or ``Cycling``.
"""

from __future__ import annotations

import math
import time
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

RUNNING = "running"
CYCLING = "cycling"
ACTIVITY_KINDS = (RUNNING, CYCLING)

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Number of trailing clock digits kept in an activity ID
ID_DIGITS = 10

Coordinates = tuple[float, float]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def valid_coordinates(coords: Any) -> bool:
    """True for a finite (latitude, longitude) pair inside the map range."""
    try:
        lat, lng = coords
    except (TypeError, ValueError):
        return False
    if not (_is_number(lat) and _is_number(lng)):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


class ActivityIdFactory:
    """Issue activity IDs from the millisecond clock.

    IDs are the last ten digits of the current time in milliseconds. When the
    clock has not advanced past the last issued value (two activities in the
    same millisecond, or a clock step backwards) the previous value is bumped
    by one, so IDs from one factory never repeat.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self._last: int | None = None

    def __call__(self) -> str:
        value = self._clock() % 10**ID_DIGITS
        if self._last is not None and value <= self._last:
            value = self._last + 1
        self._last = value
        return f"{value:0{ID_DIGITS}d}"

    def reserve(self, activity_id: str) -> None:
        """Never issue an ID at or below an existing numeric ID."""
        if not (activity_id.isascii() and activity_id.isdigit()) or len(activity_id) > ID_DIGITS:
            return
        value = int(activity_id)
        if self._last is None or value > self._last:
            self._last = value


_new_id = ActivityIdFactory()


def reserve_ids(activity_ids: Iterable[str]) -> None:
    """Keep new IDs clear of IDs restored from storage."""
    for activity_id in activity_ids:
        _new_id.reserve(activity_id)


def describe(kind: str, when: datetime) -> str:
    """Build the human-readable label, e.g. ``"Running on 14 June"``."""
    return f"{kind[:1].upper()}{kind[1:]} on {when.day} {MONTHS[when.month - 1]}"


@dataclass(frozen=True, kw_only=True)
class Activity:
    """Fields shared by every activity kind."""

    kind: ClassVar[str] = ""

    id: str
    coordinates: Coordinates
    distance_km: float  # in km
    duration_min: float  # in min
    created_at: datetime
    description: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "coordinates", (self.coordinates[0], self.coordinates[1]))
        object.__setattr__(self, "description", describe(self.kind, self.created_at))

    def to_dict(self) -> dict[str, Any]:
        """Convert activity to a field-bag for JSON serialization.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "kind": self.kind,
            "coordinates": [self.coordinates[0], self.coordinates[1]],
            "distance_km": self.distance_km,
            "duration_min": self.duration_min,
            "created_at": self.created_at.isoformat(),
            "description": self.description,
        }


@dataclass(frozen=True, kw_only=True)
class Running(Activity):
    """A running session with cadence and pace."""

    kind: ClassVar[str] = RUNNING

    cadence_spm: float  # in steps/min
    pace_min_per_km: float = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "pace_min_per_km", self.duration_min / self.distance_km)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["cadence_spm"] = self.cadence_spm
        data["pace_min_per_km"] = self.pace_min_per_km
        return data


@dataclass(frozen=True, kw_only=True)
class Cycling(Activity):
    """A cycling session with elevation gain and speed."""

    kind: ClassVar[str] = CYCLING

    elevation_gain_m: float  # in m, may be negative
    speed_km_per_h: float = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "speed_km_per_h", self.distance_km / (self.duration_min / 60))

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["elevation_gain_m"] = self.elevation_gain_m
        data["speed_km_per_h"] = self.speed_km_per_h
        return data


def create_running(
    coords: Coordinates,
    distance_km: float,
    duration_min: float,
    cadence_spm: float,
    *,
    created_at: datetime | None = None,
    activity_id: str | None = None,
) -> Running:
    """Create a running activity.

    Inputs are assumed to be validated by the caller.

    Args:
        coords: (latitude, longitude) of the activity.
        distance_km: Distance in kilometres.
        duration_min: Duration in minutes.
        cadence_spm: Cadence in steps per minute.
        created_at: Creation time (defaults to now).
        activity_id: Explicit ID (defaults to a fresh clock-based ID).

    Returns:
        Running instance.
    """
    return Running(
        id=activity_id or _new_id(),
        coordinates=coords,
        distance_km=distance_km,
        duration_min=duration_min,
        created_at=created_at or datetime.now(),
        cadence_spm=cadence_spm,
    )


def create_cycling(
    coords: Coordinates,
    distance_km: float,
    duration_min: float,
    elevation_gain_m: float,
    *,
    created_at: datetime | None = None,
    activity_id: str | None = None,
) -> Cycling:
    """Create a cycling activity.

    Inputs are assumed to be validated by the caller.

    Args:
        coords: (latitude, longitude) of the activity.
        distance_km: Distance in kilometres.
        duration_min: Duration in minutes.
        elevation_gain_m: Elevation gain in metres.
        created_at: Creation time (defaults to now).
        activity_id: Explicit ID (defaults to a fresh clock-based ID).

    Returns:
        Cycling instance.
    """
    return Cycling(
        id=activity_id or _new_id(),
        coordinates=coords,
        distance_km=distance_km,
        duration_min=duration_min,
        created_at=created_at or datetime.now(),
        elevation_gain_m=elevation_gain_m,
    )


class ActivitySnapshot(Mapping[str, Any]):
    """Read-only field-bag for an activity restored from storage."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Any]) -> None:
        self._fields = MappingProxyType(dict(fields))

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"ActivitySnapshot({dict(self._fields)!r})"

    @property
    def id(self) -> str:
        return self._fields["id"]

    @property
    def kind(self) -> str:
        return self._fields["kind"]

    @property
    def coordinates(self) -> Coordinates:
        lat, lng = self._fields["coordinates"]
        return (lat, lng)

    @property
    def description(self) -> str:
        return self._fields.get("description", "")

    def to_dict(self) -> dict[str, Any]:
        data = dict(self._fields)
        data["coordinates"] = list(data["coordinates"])
        return data


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value)


def activity_from_dict(data: Any) -> ActivitySnapshot:
    """Create an ActivitySnapshot from a deserialized field-bag.

    Args:
        data: Dictionary loaded from storage.

    Returns:
        ActivitySnapshot instance.

    Raises:
        ValueError: If the bag lacks an id, kind or a coordinate pair.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Activity entry must be an object, got {type(data).__name__}")
    if not isinstance(data.get("id"), str) or not isinstance(data.get("kind"), str):
        raise ValueError("Activity entry needs string 'id' and 'kind'")
    coords = data.get("coordinates")
    if not isinstance(coords, list) or len(coords) != 2 or not all(_is_number(c) for c in coords):
        raise ValueError(f"Activity {data['id']} has invalid coordinates: {coords!r}")
    return ActivitySnapshot(data)
