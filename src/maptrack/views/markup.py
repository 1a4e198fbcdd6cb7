"""HTML templates for map popups and list rows.

Templates work on field-bags (``to_dict()`` output) so live and restored
activities render the same way. Derived metrics are rounded to one decimal
here and nowhere else.
"""

from __future__ import annotations

import html
from typing import Any

from maptrack.models.activity import CYCLING, RUNNING

ACTIVITY_ICONS = {
    RUNNING: "🏃‍♂️",
    CYCLING: "🚴‍♀️",
}
DEFAULT_ICON = "📍"


def activity_icon(kind: str) -> str:
    """Get the icon for an activity kind."""
    return ACTIVITY_ICONS.get(kind, DEFAULT_ICON)


def popup_class(kind: str) -> str:
    """CSS class for a marker popup, e.g. ``running-popup``."""
    return f"{kind}-popup"


def popup_content(data: dict[str, Any]) -> str:
    """Render popup content: icon followed by the description."""
    return f"{activity_icon(data['kind'])} {html.escape(str(data.get('description', '')))}"


def format_metric(value: Any) -> str:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return f"{value:.1f}"
    return "-"


def _format_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return html.escape(str(value))


def _detail(icon: str, value: str, unit: str) -> str:
    return f"""
    <div class="workout__details">
      <span class="workout__icon">{icon}</span>
      <span class="workout__value">{value}</span>
      <span class="workout__unit">{unit}</span>
    </div>"""


def row_html(data: dict[str, Any]) -> str:
    """Render one activity list row.

    Args:
        data: Activity field-bag.

    Returns:
        ``<li>`` element carrying the activity ID in ``data-id``.
    """
    kind = data["kind"]
    parts = [
        f'<li class="workout workout--{html.escape(kind)}" data-id="{html.escape(data["id"])}">',
        f'    <h2 class="workout__title">{html.escape(str(data.get("description", "")))}</h2>',
        _detail(activity_icon(kind), _format_value(data.get("distance_km")), "km"),
        _detail("⏱", _format_value(data.get("duration_min")), "min"),
    ]

    if kind == RUNNING:
        parts.append(_detail("⚡️", format_metric(data.get("pace_min_per_km")), "min/km"))
        parts.append(_detail("🦶🏼", _format_value(data.get("cadence_spm")), "spm"))
    elif kind == CYCLING:
        parts.append(_detail("⚡️", format_metric(data.get("speed_km_per_h")), "km/h"))
        parts.append(_detail("⛰", _format_value(data.get("elevation_gain_m")), "m"))

    parts.append("</li>")
    return "\n".join(parts)
