"""Interaction controller for maptrack.

Drives the position -> map click -> form -> validate -> commit -> render ->
persist pipeline and keeps the map, form and list sinks consistent with the
activity store. Every public ``handle_*`` method is one synchronous event
handler.
"""

from __future__ import annotations

import enum
import logging
import math
from datetime import datetime
from typing import TYPE_CHECKING

from maptrack.errors import CorruptStateError, InvalidInput, LookupMiss, PositionUnavailable
from maptrack.models.activity import (
    CYCLING,
    RUNNING,
    Activity,
    create_cycling,
    create_running,
    reserve_ids,
    valid_coordinates,
)
from maptrack.models.store import ActivityStore
from maptrack.views.form import KIND_FIELDS
from maptrack.views.markup import popup_class, popup_content, row_html

if TYPE_CHECKING:
    from collections.abc import Callable

    from maptrack.models.activity import Coordinates
    from maptrack.models.state import PersistenceGateway
    from maptrack.models.store import StoredActivity
    from maptrack.services.position import PositionSource
    from maptrack.views.form import FormBoundary
    from maptrack.views.listing import ListSink
    from maptrack.views.map import MapSink

logger = logging.getLogger("maptrack.controller")

POSITION_ERROR_MESSAGE = "Could not get your position"
INVALID_INPUT_MESSAGE = "Inputs have to be positive numbers"
SAVE_ERROR_MESSAGE = "Could not save your activities"

DEFAULT_ZOOM = 15
DEFAULT_RECENTER_ZOOM = 13
DEFAULT_PAN_DURATION = 1.0


class ControllerState(enum.Enum):
    """Session states of the controller."""

    AWAITING_POSITION = "awaiting_position"
    MAP_READY = "map_ready"
    FORM_OPEN = "form_open"


def parse_number(text: str) -> float:
    """Coerce raw form text to a number.

    Blank text is 0 and unparseable text is NaN, so both fail the positive
    finite check downstream.
    """
    text = text.strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return math.nan


def _positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def build_activity(
    fields: dict[str, str],
    coords: Coordinates,
    created_at: datetime | None = None,
) -> Activity:
    """Validate raw form fields and build the matching activity.

    Args:
        fields: Raw form values keyed by field name.
        coords: Clicked map coordinates.
        created_at: Creation time (defaults to now).

    Returns:
        Running or Cycling instance.

    Raises:
        InvalidInput: If the kind is unknown or a value fails validation.
    """
    kind = fields.get("kind", "")
    distance = parse_number(fields.get("distance", ""))
    duration = parse_number(fields.get("duration", ""))

    bad = [name for name, value in (("distance", distance), ("duration", duration)) if not _positive(value)]

    if kind == RUNNING:
        cadence = parse_number(fields.get("cadence", ""))
        if not _positive(cadence):
            bad.append("cadence")
        if bad:
            raise InvalidInput(INVALID_INPUT_MESSAGE, tuple(bad))
        return create_running(coords, distance, duration, cadence, created_at=created_at)

    if kind == CYCLING:
        elevation = parse_number(fields.get("elevation", ""))
        if not math.isfinite(elevation):
            bad.append("elevation")
        if bad:
            raise InvalidInput(INVALID_INPUT_MESSAGE, tuple(bad))
        return create_cycling(coords, distance, duration, elevation, created_at=created_at)

    raise InvalidInput(f"Unknown activity type: {kind!r}", ("kind",))


class InteractionController:
    """Owns the activity store and the form session for one app launch."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        map_sink: MapSink,
        list_sink: ListSink,
        form: FormBoundary,
        position_source: PositionSource,
        alert: Callable[[str], None],
        zoom: int = DEFAULT_ZOOM,
        recenter_zoom: int = DEFAULT_RECENTER_ZOOM,
        pan_duration: float = DEFAULT_PAN_DURATION,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.gateway = gateway
        self.map_sink = map_sink
        self.list_sink = list_sink
        self.form = form
        self.position_source = position_source
        self.alert = alert
        self.zoom = zoom
        self.recenter_zoom = recenter_zoom
        self.pan_duration = pan_duration
        self.clock = clock

        self.store = ActivityStore()
        self.state = ControllerState.AWAITING_POSITION
        self.clicked_coords: Coordinates | None = None

    @property
    def map_ready(self) -> bool:
        return self.state is not ControllerState.AWAITING_POSITION

    def start(self) -> None:
        """Restore saved activities, render them to the list and ask for a position."""
        try:
            restored = self.gateway.restore()
        except CorruptStateError as e:
            logger.warning("Ignoring stored activities: %s", e)
            restored = []

        self.store.replace_all(restored)
        reserve_ids(activity.id for activity in restored)
        for activity in self.store.all():
            self._render_row(activity)
        if restored:
            logger.info("Restored %d activities", len(restored))

        self.position_source.get_current_position(self.handle_position, self.handle_position_error)

    def handle_position(self, coords: Coordinates) -> None:
        """Load the map once a position is known."""
        if self.map_ready:
            logger.warning("Ignoring repeated position callback: %s", coords)
            return

        self.map_sink.init_view(coords, self.zoom)
        self.map_sink.on_click(self.handle_map_click)
        self.state = ControllerState.MAP_READY
        logger.debug("Map ready at %s", coords)

        for activity in self.store.all():
            self._render_marker(activity)

    def handle_position_error(self, error: PositionUnavailable | None = None) -> None:
        """Tell the user the position could not be determined."""
        logger.info("Position unavailable: %s", error or "no details")
        self.alert(POSITION_ERROR_MESSAGE)

    def handle_map_click(self, coords: Coordinates) -> None:
        """Open the form for the clicked location."""
        if not self.map_ready:
            logger.debug("Ignoring map click before map is ready")
            return
        if not valid_coordinates(coords):
            logger.warning("Ignoring map click at invalid coordinates: %s", coords)
            return

        self.clicked_coords = coords
        self.form.show()
        self.form.focus("distance")
        self.state = ControllerState.FORM_OPEN

    def handle_kind_change(self) -> None:
        """Show the input row that belongs to the selected kind."""
        kind = self.form.read_fields().get("kind", "")
        if kind in KIND_FIELDS:
            self.form.show_kind_fields(kind)

    def handle_submit(self) -> Activity | None:
        """Validate the form and commit a new activity.

        Returns:
            The new activity, or None if the form was rejected or not open.
        """
        if self.state is not ControllerState.FORM_OPEN or self.clicked_coords is None:
            logger.warning("Ignoring submit: form is not open")
            return None

        try:
            activity = build_activity(self.form.read_fields(), self.clicked_coords, self.clock())
        except InvalidInput as e:
            logger.info("Rejected input (%s): %s", ", ".join(e.fields), e)
            self.alert(INVALID_INPUT_MESSAGE)
            return None

        self.store.append(activity)
        self._render_marker(activity)
        self._render_row(activity)
        self._save()
        self._close_form()

        logger.info("Recorded %s (%s)", activity.description, activity.id)
        return activity

    def handle_form_dismiss(self) -> None:
        """Close the form without recording anything."""
        if self.state is ControllerState.FORM_OPEN:
            self._close_form()

    def handle_row_click(self, activity_id: str) -> bool:
        """Pan the map to the activity behind a list row.

        Returns:
            True if the map was moved.
        """
        if not self.map_ready:
            return False

        try:
            activity = self.store.get(activity_id)
        except LookupMiss as e:
            logger.debug("%s", e)
            return False

        self.map_sink.set_view(
            activity.coordinates,
            self.recenter_zoom,
            animate=True,
            pan_duration_sec=self.pan_duration,
        )
        return True

    def _save(self) -> None:
        # The store stays authoritative; the next successful save catches up
        try:
            self.gateway.save(self.store.all())
        except OSError as e:
            logger.error("Saving activities failed: %s", e)
            self.alert(SAVE_ERROR_MESSAGE)

    def _close_form(self) -> None:
        self.form.clear_numeric_fields()
        self.form.hide()
        self.clicked_coords = None
        self.state = ControllerState.MAP_READY

    def _render_marker(self, activity: StoredActivity) -> None:
        data = activity.to_dict()
        self.map_sink.add_marker(activity.coordinates, popup_content(data), popup_class(activity.kind))

    def _render_row(self, activity: StoredActivity) -> None:
        self.list_sink.append_row(activity.id, row_html(activity.to_dict()))
