"""Error types for maptrack.

None of these are fatal: they are either shown to the user as an alert or
absorbed with a logged fallback.
"""

from __future__ import annotations


class MaptrackError(Exception):
    """Base class for maptrack errors."""


class PositionUnavailable(MaptrackError):
    """The position source failed or permission was denied."""


class InvalidInput(MaptrackError, ValueError):
    """Form input failed the positive finite number check."""

    def __init__(self, message: str, fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields


class CorruptStateError(MaptrackError):
    """The persisted activity blob could not be parsed."""


class LookupMiss(MaptrackError, KeyError):
    """No activity with the requested ID."""

    def __str__(self) -> str:
        return f"No activity with id {self.args[0]!r}" if self.args else "No activity"
