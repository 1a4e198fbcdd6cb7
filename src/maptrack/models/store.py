"""In-memory activity store.

Holds live and restored activities in creation order. There is no edit or
delete operation; the only wholesale change is ``replace_all`` during
restore.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Union

from maptrack.errors import LookupMiss
from maptrack.models.activity import Activity, ActivitySnapshot

StoredActivity = Union[Activity, ActivitySnapshot]


class ActivityStore:
    """Ordered collection of activities."""

    def __init__(self, activities: Iterable[StoredActivity] = ()) -> None:
        self._activities: list[StoredActivity] = []
        self.replace_all(activities)

    def __len__(self) -> int:
        return len(self._activities)

    def __iter__(self) -> Iterator[StoredActivity]:
        return iter(tuple(self._activities))

    def append(self, activity: StoredActivity) -> None:
        """Add an activity at the end.

        Args:
            activity: Activity to add.

        Raises:
            ValueError: If an activity with the same ID is already stored.
        """
        if self.find_by_id(activity.id) is not None:
            raise ValueError(f"Duplicate activity id {activity.id!r}")
        self._activities.append(activity)

    def find_by_id(self, activity_id: str) -> StoredActivity | None:
        """Find an activity by ID.

        Args:
            activity_id: ID to look for.

        Returns:
            Matching activity or None.
        """
        for activity in self._activities:
            if activity.id == activity_id:
                return activity
        return None

    def get(self, activity_id: str) -> StoredActivity:
        """Get an activity by ID.

        Raises:
            LookupMiss: If no activity has this ID.
        """
        activity = self.find_by_id(activity_id)
        if activity is None:
            raise LookupMiss(activity_id)
        return activity

    def all(self) -> tuple[StoredActivity, ...]:
        """Return all activities in creation order."""
        return tuple(self._activities)

    def replace_all(self, activities: Iterable[StoredActivity]) -> None:
        """Swap the whole collection.

        Args:
            activities: New contents, in creation order.

        Raises:
            ValueError: If the new contents repeat an ID. The store is left
                unchanged in that case.
        """
        new_activities = list(activities)
        seen: set[str] = set()
        for activity in new_activities:
            if activity.id in seen:
                raise ValueError(f"Duplicate activity id {activity.id!r}")
            seen.add(activity.id)
        self._activities = new_activities
