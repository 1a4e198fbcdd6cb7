"""Map sink for maptrack.

``MapView`` keeps the map state in process (view center, click listener,
markers) and renders it as an interactive Leaflet.js page.
"""

from __future__ import annotations

import http.server
import json
import logging
import socketserver
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

    from maptrack.models.activity import Coordinates

logger = logging.getLogger("maptrack.map")

DEFAULT_TILE_URL = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)

# Leaflet popup options for activity markers
POPUP_OPTIONS = {
    "maxWidth": 250,
    "minWidth": 100,
    "autoClose": False,
    "closeOnClick": False,
}


class MapSink(Protocol):
    """Capability surface of the map renderer."""

    def init_view(self, coords: Coordinates, zoom: int) -> None: ...

    def on_click(self, handler: Callable[[Coordinates], None]) -> None: ...

    def add_marker(self, coords: Coordinates, popup_html: str, style_class: str) -> None: ...

    def set_view(
        self,
        coords: Coordinates,
        zoom: int,
        animate: bool = False,
        pan_duration_sec: float = 0.0,
    ) -> None: ...


@dataclass(frozen=True)
class Marker:
    """A marker with an open popup."""

    coords: Coordinates
    popup_html: str
    style_class: str


@dataclass(frozen=True)
class Pan:
    """A recorded view change."""

    coords: Coordinates
    zoom: int
    animate: bool
    pan_duration_sec: float


class MapView:
    """In-process map renderer."""

    def __init__(self, tile_url: str = DEFAULT_TILE_URL) -> None:
        self.tile_url = tile_url
        self.center: Coordinates | None = None
        self.zoom: int | None = None
        self.markers: list[Marker] = []
        self.pans: list[Pan] = []
        self._click_handlers: list[Callable[[Coordinates], None]] = []

    @property
    def ready(self) -> bool:
        """True once the view has been initialized."""
        return self.center is not None

    def init_view(self, coords: Coordinates, zoom: int) -> None:
        self.center = coords
        self.zoom = zoom
        logger.debug("Map view initialized at %s (zoom %d)", coords, zoom)

    def on_click(self, handler: Callable[[Coordinates], None]) -> None:
        self._click_handlers.append(handler)

    def click(self, coords: Coordinates) -> bool:
        """Deliver a user click at the given coordinates.

        Returns:
            True if any listener received the click.
        """
        if not self._click_handlers:
            logger.debug("Ignoring map click at %s: no listener", coords)
            return False
        for handler in list(self._click_handlers):
            handler(coords)
        return True

    def add_marker(self, coords: Coordinates, popup_html: str, style_class: str) -> None:
        self.markers.append(Marker(coords=coords, popup_html=popup_html, style_class=style_class))

    def set_view(
        self,
        coords: Coordinates,
        zoom: int,
        animate: bool = False,
        pan_duration_sec: float = 0.0,
    ) -> None:
        self.center = coords
        self.zoom = zoom
        self.pans.append(
            Pan(coords=coords, zoom=zoom, animate=animate, pan_duration_sec=pan_duration_sec)
        )

    def to_html(self, title: str = "Activities Map") -> str:
        """Generate a standalone Leaflet page with every marker.

        Args:
            title: Page title.

        Returns:
            HTML content as string.
        """
        if self.center is not None:
            center: list[float] = [self.center[0], self.center[1]]
            zoom = self.zoom if self.zoom is not None else 13
        elif self.markers:
            lats = [m.coords[0] for m in self.markers]
            lngs = [m.coords[1] for m in self.markers]
            center = [(min(lats) + max(lats)) / 2, (min(lngs) + max(lngs)) / 2]
            zoom = 13
        else:
            center = [0.0, 0.0]
            zoom = 2

        markers_json: list[dict[str, Any]] = [
            {
                "coords": [m.coords[0], m.coords[1]],
                "popup": m.popup_html,
                "className": m.style_class,
            }
            for m in self.markers
        ]

        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css">
    <style>
        body {{ margin: 0; padding: 0; }}
        #map {{ position: absolute; top: 0; bottom: 0; width: 100%; }}
        .running-popup .leaflet-popup-content-wrapper {{ border-left: 5px solid #00c46a; }}
        .cycling-popup .leaflet-popup-content-wrapper {{ border-left: 5px solid #ffb545; }}
    </style>
</head>
<body>
    <div id="map"></div>
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
    <script>
        var map = L.map('map').setView({json.dumps(center)}, {zoom});

        L.tileLayer({json.dumps(self.tile_url)}, {{
            attribution: {json.dumps(TILE_ATTRIBUTION)}
        }}).addTo(map);

        var markers = {json.dumps(markers_json, ensure_ascii=False)};
        var popupOptions = {json.dumps(POPUP_OPTIONS)};

        markers.forEach(function(marker) {{
            L.marker(marker.coords)
                .addTo(map)
                .bindPopup(L.popup(Object.assign({{className: marker.className}}, popupOptions)))
                .setPopupContent(marker.popup)
                .openPopup();
        }});
    </script>
</body>
</html>"""


def serve_map(
    html_path: Path,
    port: int = 8080,
    host: str = "127.0.0.1",
) -> None:
    """Start a local HTTP server to serve the map.

    Args:
        html_path: Path to the HTML file.
        port: Server port.
        host: Server host.
    """
    directory = html_path.parent

    class Handler(http.server.SimpleHTTPRequestHandler):
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            super().__init__(*args, directory=str(directory), **kwargs)

        def log_message(self, format: str, *args: object) -> None:
            logger.debug(format, *args)

    # Allow port reuse to avoid "Address already in use" errors
    socketserver.TCPServer.allow_reuse_address = True

    with socketserver.TCPServer((host, port), Handler) as httpd:
        url = f"http://{host}:{port}/{html_path.name}"
        logger.info("Serving at %s", url)
        logger.info("Press Ctrl+C to stop")

        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Server stopped")
