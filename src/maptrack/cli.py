"""Command-line interface for maptrack.

Provides CLI commands for recording, listing, viewing and resetting
activities.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from maptrack import __version__
from maptrack.config import DEFAULT_CONFIG_PATH, load_config
from maptrack.controller import INVALID_INPUT_MESSAGE
from maptrack.errors import CorruptStateError
from maptrack.lib.logging import console_level_for, setup_logging
from maptrack.models.activity import ACTIVITY_KINDS, CYCLING, RUNNING, valid_coordinates
from maptrack.services.position import FixedPositionSource
from maptrack.views.markup import format_metric

if TYPE_CHECKING:
    from maptrack.app import AppContext
    from maptrack.config import Config
    from maptrack.models.activity import Coordinates


class JSONOutput:
    """Helper for JSON output formatting."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._data: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        """Set a value in the output."""
        self._data[key] = value

    def update(self, data: dict[str, Any]) -> None:
        """Update with multiple values."""
        self._data.update(data)

    def output(self) -> None:
        """Print JSON output if enabled."""
        if self.enabled:
            click.echo(json.dumps(self._data, indent=2, default=str, ensure_ascii=False))


# Custom context class to hold shared state
class Context:
    """CLI context holding shared configuration and state."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: int = 0
        self.quiet: bool = False
        self.json_output: bool = False
        self.output: JSONOutput = JSONOutput()

    def log(self, message: str, level: int = 0) -> None:
        """Log a message if verbosity allows.

        Args:
            message: Message to log.
            level: Required verbosity level (0=normal, 1=-v, 2=-vv).
        """
        if self.json_output:
            return
        if self.quiet and level == 0:
            return
        if level <= self.verbose or level == 0:
            click.echo(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        if self.json_output:
            self.output.set("error", message)
            self.output.set("status", "error")
        else:
            click.echo(f"Error: {message}", err=True)

    def alert(self, message: str) -> None:
        """Show an application alert."""
        if self.json_output:
            self.output.set("alert", message)
        else:
            click.echo(message, err=True)

    def fail(self, message: str, code: int = 1) -> None:
        """Report an error and exit."""
        self.error(message)
        if self.json_output:
            self.output.output()
        sys.exit(code)


pass_context = click.make_pass_decorator(Context, ensure=True)


def _has_position(config: Config) -> bool:
    position = config.position
    return (position.latitude is not None and position.longitude is not None) or bool(
        position.geolocation_url
    )


def _build_app(
    ctx: Context,
    fallback: Coordinates | None = None,
    use_last_activity: bool = False,
    show_alerts: bool = True,
) -> AppContext:
    """Create the application context for a command.

    A terminal has no geolocation of its own: when no position is
    configured, ``fallback`` (or, with ``use_last_activity``, the location
    of the most recent activity) stands in for it so the map can load.
    """
    from maptrack.app import AppContext

    config = ctx.config
    if config is None:
        ctx.fail("Configuration not loaded")

    app = AppContext(config, alert=ctx.alert if show_alerts else None)
    if not _has_position(config):
        if fallback is None and use_last_activity:
            fallback = _last_position(app)
        if fallback is not None:
            app.use_position_source(FixedPositionSource(fallback))
    return app


def _last_position(app: AppContext) -> Coordinates | None:
    """Coordinates of the most recent stored activity, if any."""
    try:
        snapshots = app.gateway.restore()
    except CorruptStateError:
        return None
    return snapshots[-1].coordinates if snapshots else None


def _format_activity(data: dict[str, Any]) -> str:
    line = (
        f"{data['id']}  {str(data.get('description', '')):<22} "
        f"{data.get('distance_km', '-')} km  {data.get('duration_min', '-')} min"
    )
    if data.get("kind") == RUNNING and "pace_min_per_km" in data:
        line += f"  {format_metric(data['pace_min_per_km'])} min/km  {data.get('cadence_spm', '-')} spm"
    elif data.get("kind") == CYCLING and "speed_km_per_h" in data:
        line += f"  {format_metric(data['speed_km_per_h'])} km/h  {data.get('elevation_gain_m', '-')} m"
    return line


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help=f"Configuration file path (default: {DEFAULT_CONFIG_PATH})",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Data directory path (default: ./data)",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-error output",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output in JSON format",
)
@click.version_option(version=__version__, prog_name="maptrack")
@pass_context
def main(
    ctx: Context,
    config_path: Path | None,
    data_dir: Path | None,
    verbose: int,
    quiet: bool,
    json_output: bool,
) -> None:
    """Map-based running and cycling activity tracker.

    Record activities at map locations, list them, and render them as
    an interactive map.
    """
    ctx.verbose = verbose
    ctx.quiet = quiet
    ctx.json_output = json_output
    ctx.output = JSONOutput(json_output)

    try:
        ctx.config = load_config(config_path)
    except ValueError as e:
        ctx.fail(f"Invalid configuration: {e}", code=2)

    if data_dir is not None:
        ctx.config.data.directory = data_dir

    setup_logging(
        ctx.config,
        console_level=console_level_for(verbose, json_output),
        quiet=quiet,
    )


@main.command()
@click.option("--lat", type=float, required=True, help="Latitude of the map click")
@click.option("--lng", type=float, required=True, help="Longitude of the map click")
@click.option(
    "--type",
    "kind",
    type=click.Choice(ACTIVITY_KINDS),
    default=RUNNING,
    show_default=True,
    help="Activity type",
)
@click.option("--distance", default="", help="Distance in km")
@click.option("--duration", default="", help="Duration in min")
@click.option("--cadence", default="", help="Cadence in steps/min (running)")
@click.option("--elevation", default="", help="Elevation gain in m (cycling)")
@pass_context
def add(
    ctx: Context,
    lat: float,
    lng: float,
    kind: str,
    distance: str,
    duration: str,
    cadence: str,
    elevation: str,
) -> None:
    """Record an activity at a map location."""
    coords = (lat, lng)
    if not valid_coordinates(coords):
        ctx.fail(f"Invalid coordinates: {lat}, {lng}", code=2)

    app = _build_app(ctx, fallback=coords)

    try:
        controller = app.launch()
        if not controller.map_ready:
            ctx.fail("Map is not available: position unknown")

        app.click_map(coords)
        app.fill_form(
            kind=kind,
            distance=distance,
            duration=duration,
            cadence=cadence,
            elevation=elevation,
        )
        activity = app.submit()
    except Exception as e:
        ctx.fail(f"Recording failed: {e}")

    if activity is None:
        ctx.fail(INVALID_INPUT_MESSAGE, code=2)

    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "activity": activity.to_dict(),
            "total": len(controller.store),
        })
        ctx.output.output()
    else:
        ctx.log(f"Recorded {activity.description} ({activity.id})")
        ctx.log(_format_activity(activity.to_dict()), 1)


@main.command(name="list")
@pass_context
def list_cmd(ctx: Context) -> None:
    """List recorded activities, newest first."""
    app = _build_app(ctx, show_alerts=False)

    try:
        controller = app.launch()
    except Exception as e:
        ctx.fail(f"Loading activities failed: {e}")

    activities = [activity.to_dict() for activity in reversed(controller.store.all())]

    if ctx.json_output:
        ctx.output.update({"count": len(activities), "activities": activities})
        ctx.output.output()
    elif not activities:
        ctx.log("No activities recorded")
    else:
        for data in activities:
            ctx.log(_format_activity(data))
        ctx.log(f"\n{len(activities)} activities")


@main.command()
@click.argument("activity_id")
@pass_context
def show(ctx: Context, activity_id: str) -> None:
    """Center the map on an activity."""
    app = _build_app(ctx, use_last_activity=True)

    try:
        app.launch()
        moved = app.click_row(activity_id)
    except Exception as e:
        ctx.fail(f"Show failed: {e}")

    if not moved:
        ctx.fail(f"No activity {activity_id} on the map")

    activity = app.controller.store.get(activity_id)
    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "center": list(app.map_view.center or ()),
            "zoom": app.map_view.zoom,
            "activity": activity.to_dict(),
        })
        ctx.output.output()
    else:
        ctx.log(f"{activity.description} at {activity.coordinates[0]}, {activity.coordinates[1]}")


@main.command()
@click.confirmation_option(prompt="Delete all recorded activities?")
@pass_context
def reset(ctx: Context) -> None:
    """Delete all recorded activities."""
    app = _build_app(ctx, show_alerts=False)

    try:
        controller = app.reset()
    except Exception as e:
        ctx.fail(f"Reset failed: {e}")

    if ctx.json_output:
        ctx.output.update({"status": "success", "count": len(controller.store)})
        ctx.output.output()
    else:
        ctx.log("All activities deleted")


@main.group()
def view() -> None:
    """Render recorded activities."""
    pass


@view.command(name="map")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output HTML file (default: stdout or ./map.html)",
)
@click.option(
    "--serve",
    is_flag=True,
    help="Start local HTTP server to view map",
)
@click.option(
    "--port",
    default=8080,
    help="Server port (default: 8080)",
)
@pass_context
def map_cmd(ctx: Context, output: Path | None, serve: bool, port: int) -> None:
    """Generate interactive map with a marker per activity."""
    from maptrack.views.map import serve_map

    app = _build_app(ctx, use_last_activity=True)

    try:
        app.launch()
        html = app.map_view.to_html()

        if serve:
            output_path = output or Path("./map.html")
            output_path.write_text(html, encoding="utf-8")
            ctx.log(f"Map saved to {output_path}")
            ctx.log(f"Starting server at http://127.0.0.1:{port}")
            serve_map(output_path, port=port)
        elif output:
            output.write_text(html, encoding="utf-8")
            ctx.log(f"Map saved to {output}")
        else:
            click.echo(html)

    except Exception as e:
        ctx.fail(f"Map generation failed: {e}")


@view.command(name="list")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output HTML file (default: stdout)",
)
@pass_context
def list_view(ctx: Context, output: Path | None) -> None:
    """Generate the HTML activity list."""
    app = _build_app(ctx, show_alerts=False)

    try:
        app.launch()
        html = app.activity_list.to_html()

        if output:
            output.write_text(html, encoding="utf-8")
            ctx.log(f"List saved to {output}")
        else:
            click.echo(html)

    except Exception as e:
        ctx.fail(f"List generation failed: {e}")


if __name__ == "__main__":
    main()
