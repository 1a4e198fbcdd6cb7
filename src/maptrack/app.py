"""Application context for maptrack.

``AppContext`` is built once per process. It wires configuration, storage,
the position source and the event queue, and owns the current controller
together with its map, list and form sinks. ``reset`` clears stored
activities and relaunches from an empty state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from maptrack.config import Config, ensure_data_dir
from maptrack.controller import InteractionController
from maptrack.events import EventQueue
from maptrack.models.state import FileBlobStore, PersistenceGateway
from maptrack.services.position import (
    FixedPositionSource,
    HttpPositionSource,
    UnavailablePositionSource,
)
from maptrack.views.form import FormState
from maptrack.views.listing import ActivityList
from maptrack.views.map import MapView

if TYPE_CHECKING:
    from collections.abc import Callable

    from maptrack.errors import PositionUnavailable
    from maptrack.models.activity import Activity, Coordinates
    from maptrack.models.state import BlobStore
    from maptrack.services.position import PositionSource

logger = logging.getLogger("maptrack.app")

STORAGE_DIRNAME = "storage"


def position_source_from_config(config: Config) -> PositionSource:
    """Pick the position source described by the configuration.

    Fixed coordinates win over a geolocation URL. With neither, the source
    always fails and map features stay unavailable.
    """
    position = config.position
    if position.latitude is not None and position.longitude is not None:
        return FixedPositionSource((position.latitude, position.longitude))
    if position.geolocation_url:
        return HttpPositionSource(position.geolocation_url, timeout=position.timeout)
    return UnavailablePositionSource()


class QueuedPositionSource:
    """Deliver position callbacks through the event queue.

    The wrapped source may answer inline; either way the answer runs as its
    own queued handler, after the handler that asked.
    """

    def __init__(self, source: PositionSource, queue: EventQueue) -> None:
        self.source = source
        self.queue = queue

    def get_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_failure: Callable[[PositionUnavailable], None],
    ) -> None:
        self.source.get_current_position(
            lambda coords: self.queue.post(on_success, coords),
            lambda error: self.queue.post(on_failure, error),
        )


class AppContext:
    """Process-wide application state."""

    def __init__(
        self,
        config: Config,
        blobs: BlobStore | None = None,
        position_source: PositionSource | None = None,
        alert: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config
        if blobs is None:
            blobs = FileBlobStore(ensure_data_dir(config) / STORAGE_DIRNAME)
        self.gateway = PersistenceGateway(blobs, key=config.storage.key)
        self.queue = EventQueue()
        self.position_source = QueuedPositionSource(
            position_source or position_source_from_config(config), self.queue
        )
        self.alerts: list[str] = []
        self._alert = alert

        self.map_view: MapView
        self.activity_list: ActivityList
        self.form: FormState
        self.controller: InteractionController

    def use_position_source(self, source: PositionSource) -> None:
        """Replace the position source used by the next launch."""
        self.position_source = QueuedPositionSource(source, self.queue)

    def alert(self, message: str) -> None:
        """Show a message to the user."""
        self.alerts.append(message)
        if self._alert is not None:
            self._alert(message)

    def launch(self) -> InteractionController:
        """Build fresh sinks and a controller, then start it.

        Returns:
            The running controller.
        """
        self.map_view = MapView(tile_url=self.config.map.tile_url)
        self.activity_list = ActivityList()
        self.form = FormState()
        self.controller = InteractionController(
            gateway=self.gateway,
            map_sink=self.map_view,
            list_sink=self.activity_list,
            form=self.form,
            position_source=self.position_source,
            alert=self.alert,
            zoom=self.config.map.zoom,
            recenter_zoom=self.config.map.recenter_zoom,
            pan_duration=self.config.map.pan_duration,
        )
        self.queue.post(self.controller.start)
        self.queue.run_pending()
        logger.debug("Launched with %d activities", len(self.controller.store))
        return self.controller

    def reset(self) -> InteractionController:
        """Clear stored activities and relaunch from an empty state."""
        self.gateway.clear()
        return self.launch()

    def click_map(self, coords: Coordinates) -> None:
        """User clicks the map."""
        self.queue.post(self.map_view.click, coords)
        self.queue.run_pending()

    def fill_form(self, **values: str) -> None:
        """User types into the form."""
        self.form.fill(**values)
        if "kind" in values:
            self.change_kind()

    def change_kind(self) -> None:
        """User changes the activity type selector."""
        self.queue.post(self.controller.handle_kind_change)
        self.queue.run_pending()

    def submit(self) -> Activity | None:
        """User submits the form.

        Returns:
            The recorded activity, or None if the form was rejected.
        """
        result: list[Activity | None] = []
        self.queue.post(lambda: result.append(self.controller.handle_submit()))
        self.queue.run_pending()
        return result[0] if result else None

    def dismiss_form(self) -> None:
        """User closes the form."""
        self.queue.post(self.controller.handle_form_dismiss)
        self.queue.run_pending()

    def click_row(self, activity_id: str) -> bool:
        """User clicks a list row.

        Returns:
            True if the map moved to the activity.
        """
        result: list[bool] = []
        self.queue.post(lambda: result.append(self.controller.handle_row_click(activity_id)))
        self.queue.run_pending()
        return bool(result and result[0])
