"""Unit tests for activity models."""

from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from maptrack.models.activity import (
    MONTHS,
    ActivityIdFactory,
    ActivitySnapshot,
    Cycling,
    Running,
    activity_from_dict,
    create_cycling,
    create_running,
    describe,
    valid_coordinates,
)


@pytest.mark.ai_generated
class TestDerivedMetrics:
    """Tests for pace and speed computed at construction."""

    @pytest.mark.parametrize(
        ("distance", "duration"),
        [(5, 30), (10.0, 52.5), (0.4, 3), (42.195, 180)],
    )
    def test_running_pace(self, distance: float, duration: float) -> None:
        """Pace is duration divided by distance."""
        running = create_running((0.0, 0.0), distance, duration, 170)

        assert running.pace_min_per_km == duration / distance

    @pytest.mark.parametrize(
        ("distance", "duration"),
        [(27, 95), (20.0, 60), (3.3, 7.5)],
    )
    def test_cycling_speed(self, distance: float, duration: float) -> None:
        """Speed is distance divided by duration in hours."""
        cycling = create_cycling((0.0, 0.0), distance, duration, 523)

        assert cycling.speed_km_per_h == distance / (duration / 60)

    def test_pace_not_rounded(self) -> None:
        """Derived metrics keep full precision."""
        running = create_running((0.0, 0.0), 3, 20, 160)

        assert running.pace_min_per_km == pytest.approx(6.6666666)
        assert running.pace_min_per_km != 6.7

    def test_cycling_accepts_negative_elevation(self) -> None:
        """Elevation gain may be negative."""
        cycling = create_cycling((0.0, 0.0), 10, 30, -120)

        assert cycling.elevation_gain_m == -120
        assert cycling.speed_km_per_h == 20.0


@pytest.mark.ai_generated
class TestDescription:
    """Tests for the human-readable label."""

    def test_running_description(self) -> None:
        running = create_running((0.0, 0.0), 5, 30, 160, created_at=datetime(2024, 6, 14, 8, 0))

        assert running.description == "Running on 14 June"

    def test_cycling_description(self) -> None:
        cycling = create_cycling((0.0, 0.0), 5, 30, 0, created_at=datetime(2025, 1, 1))

        assert cycling.description == "Cycling on 1 January"

    def test_month_table_is_complete(self) -> None:
        assert len(MONTHS) == 12
        assert MONTHS[0] == "January"
        assert MONTHS[11] == "December"

    def test_describe_uses_every_month(self) -> None:
        for month in range(1, 13):
            label = describe("running", datetime(2025, month, 3))
            assert label == f"Running on 3 {MONTHS[month - 1]}"


@pytest.mark.ai_generated
class TestActivityFields:
    """Tests for activity construction and serialization."""

    def test_kind_tags(self) -> None:
        assert create_running((1.0, 2.0), 5, 30, 160).kind == "running"
        assert create_cycling((1.0, 2.0), 5, 30, 10).kind == "cycling"

    def test_activities_are_immutable(self) -> None:
        running = create_running((1.0, 2.0), 5, 30, 160)

        with pytest.raises(dataclasses.FrozenInstanceError):
            running.distance_km = 10  # type: ignore[misc]
        with pytest.raises(dataclasses.FrozenInstanceError):
            running.pace_min_per_km = 1.0  # type: ignore[misc]

    def test_coordinates_become_tuple(self) -> None:
        running = create_running([51.5, -0.12], 5, 30, 160)  # type: ignore[arg-type]

        assert running.coordinates == (51.5, -0.12)

    def test_explicit_id_and_time(self) -> None:
        when = datetime(2025, 3, 2, 7, 15)
        running = create_running((1.0, 2.0), 5, 30, 160, created_at=when, activity_id="0000000042")

        assert running.id == "0000000042"
        assert running.created_at == when

    def test_generated_ids_are_distinct(self) -> None:
        ids = {create_running((1.0, 2.0), 5, 30, 160).id for _ in range(50)}

        assert len(ids) == 50

    def test_running_to_dict(self) -> None:
        when = datetime(2024, 6, 14, 8, 0)
        running = create_running((51.5, -0.12), 5, 30, 160, created_at=when, activity_id="1")

        assert running.to_dict() == {
            "id": "1",
            "kind": "running",
            "coordinates": [51.5, -0.12],
            "distance_km": 5,
            "duration_min": 30,
            "created_at": "2024-06-14T08:00:00",
            "description": "Running on 14 June",
            "cadence_spm": 160,
            "pace_min_per_km": 6.0,
        }

    def test_cycling_to_dict(self) -> None:
        when = datetime(2024, 6, 14, 8, 0)
        cycling = create_cycling((51.5, -0.12), 20, 60, 300, created_at=when, activity_id="2")
        data = cycling.to_dict()

        assert data["kind"] == "cycling"
        assert data["elevation_gain_m"] == 300
        assert data["speed_km_per_h"] == 20.0
        assert "cadence_spm" not in data
        assert "pace_min_per_km" not in data

    def test_variant_types(self) -> None:
        assert isinstance(create_running((0.0, 0.0), 1, 1, 1), Running)
        assert isinstance(create_cycling((0.0, 0.0), 1, 1, 1), Cycling)


@pytest.mark.ai_generated
class TestActivityIdFactory:
    """Tests for clock-based ID generation."""

    def test_id_is_last_ten_clock_digits(self) -> None:
        factory = ActivityIdFactory(clock=lambda: 1718352000123)

        assert factory() == "8352000123"

    def test_same_millisecond_is_bumped(self) -> None:
        factory = ActivityIdFactory(clock=lambda: 1718352000123)

        first, second, third = factory(), factory(), factory()

        assert (first, second, third) == ("8352000123", "8352000124", "8352000125")

    def test_clock_going_backwards(self) -> None:
        times = iter([1718352000500, 1718352000100])
        factory = ActivityIdFactory(clock=lambda: next(times))

        first = factory()
        second = factory()

        assert int(second) > int(first)

    def test_ids_are_zero_padded(self) -> None:
        factory = ActivityIdFactory(clock=lambda: 1500)

        assert factory() == "0000001500"

    def test_reserved_id_is_never_reissued(self) -> None:
        """IDs restored from an earlier run stay unique after a clock step back."""
        factory = ActivityIdFactory(clock=lambda: 1718352000100)

        factory.reserve("8352000500")

        assert factory() == "8352000501"

    def test_reserve_lower_id_keeps_clock(self) -> None:
        factory = ActivityIdFactory(clock=lambda: 1718352000100)

        factory.reserve("0000000042")

        assert factory() == "8352000100"

    @pytest.mark.parametrize("activity_id", ["abc", "", "12345678901", "-5", "1.5"])
    def test_reserve_ignores_non_clock_ids(self, activity_id: str) -> None:
        factory = ActivityIdFactory(clock=lambda: 1500)

        factory.reserve(activity_id)

        assert factory() == "0000001500"


@pytest.mark.ai_generated
class TestValidCoordinates:
    """Tests for the map coordinate check."""

    @pytest.mark.parametrize(
        "coords",
        [(51.5, -0.12), (0, 0), (-90, 180), (90.0, -180.0), [48.85, 2.35]],
    )
    def test_valid(self, coords) -> None:
        assert valid_coordinates(coords) is True

    @pytest.mark.parametrize(
        "coords",
        [
            (float("nan"), 0.0),
            (0.0, float("inf")),
            (90.5, 0.0),
            (0.0, -180.5),
            (True, 0.0),
            ("51.5", "-0.12"),
            (1.0,),
            None,
        ],
    )
    def test_invalid(self, coords) -> None:
        assert valid_coordinates(coords) is False


@pytest.mark.ai_generated
class TestActivitySnapshot:
    """Tests for restored field-bags."""

    def _bag(self) -> dict:
        return {
            "id": "1718352000",
            "kind": "running",
            "coordinates": [51.5, -0.12],
            "distance_km": 5,
            "duration_min": 30,
            "created_at": "2024-06-14T08:00:00",
            "description": "Running on 14 June",
            "cadence_spm": 160,
            "pace_min_per_km": 6.0,
        }

    def test_from_dict(self) -> None:
        snapshot = activity_from_dict(self._bag())

        assert isinstance(snapshot, ActivitySnapshot)
        assert snapshot.id == "1718352000"
        assert snapshot.kind == "running"
        assert snapshot.coordinates == (51.5, -0.12)
        assert snapshot.description == "Running on 14 June"
        assert snapshot["pace_min_per_km"] == 6.0

    def test_snapshot_is_not_a_live_model(self) -> None:
        snapshot = activity_from_dict(self._bag())

        assert not isinstance(snapshot, Running)
        assert not hasattr(snapshot, "pace_min_per_km")

    def test_snapshot_is_read_only(self) -> None:
        snapshot = activity_from_dict(self._bag())

        with pytest.raises(TypeError):
            snapshot["distance_km"] = 10  # type: ignore[index]

    def test_snapshot_keeps_serialized_values(self) -> None:
        """Stored derived values are kept even if they disagree with the inputs."""
        bag = self._bag()
        bag["pace_min_per_km"] = 99.0
        snapshot = activity_from_dict(bag)

        assert snapshot["pace_min_per_km"] == 99.0

    def test_to_dict_matches_bag(self) -> None:
        bag = self._bag()
        snapshot = activity_from_dict(bag)

        assert snapshot.to_dict() == bag
        assert snapshot == bag

    def test_to_dict_returns_copy(self) -> None:
        snapshot = activity_from_dict(self._bag())
        data = snapshot.to_dict()
        data["coordinates"].append(0)

        assert snapshot.coordinates == (51.5, -0.12)

    def test_source_dict_changes_do_not_leak(self) -> None:
        bag = self._bag()
        snapshot = activity_from_dict(bag)
        bag["id"] = "other"

        assert snapshot.id == "1718352000"

    @pytest.mark.parametrize(
        "bad",
        [
            None,
            [],
            "running",
            {"kind": "running", "coordinates": [1, 2]},
            {"id": "1", "coordinates": [1, 2]},
            {"id": 1, "kind": "running", "coordinates": [1, 2]},
            {"id": "1", "kind": "running"},
            {"id": "1", "kind": "running", "coordinates": [1]},
            {"id": "1", "kind": "running", "coordinates": ["a", "b"]},
            {"id": "1", "kind": "running", "coordinates": [True, 2]},
        ],
    )
    def test_invalid_bags_rejected(self, bad: object) -> None:
        with pytest.raises(ValueError):
            activity_from_dict(bad)
