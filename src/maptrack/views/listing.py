"""Activity list sink.

Rows are inserted directly below the form, so the most recent activity is
shown first. Rows are never updated or removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class ListSink(Protocol):
    """Capability surface of the activity list widget."""

    def append_row(self, activity_id: str, row_html: str) -> None: ...


@dataclass(frozen=True)
class ListRow:
    """One rendered list row."""

    activity_id: str
    html: str


class ActivityList:
    """In-process list widget."""

    def __init__(self) -> None:
        self._rows: list[ListRow] = []

    def __len__(self) -> int:
        return len(self._rows)

    def append_row(self, activity_id: str, row_html: str) -> None:
        self._rows.append(ListRow(activity_id=activity_id, html=row_html))

    @property
    def rows(self) -> list[ListRow]:
        """Rows in display order (newest first)."""
        return list(reversed(self._rows))

    def row_ids(self) -> list[str]:
        """Activity IDs in display order."""
        return [row.activity_id for row in self.rows]

    def to_html(self, title: str = "Activities") -> str:
        """Render the list as a standalone HTML page.

        Args:
            title: Page title.

        Returns:
            HTML content.
        """
        body = "\n".join(row.html for row in self.rows)
        if not body:
            body = '<li class="workouts__empty">No activities yet</li>'

        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 20px; }}
        .workouts {{ list-style: none; padding: 0; max-width: 520px; }}
        .workout {{ background: #42484d; color: #ececec; border-radius: 5px; padding: 12px 20px;
                    margin-bottom: 12px; display: grid; grid-template-columns: 1fr 1fr 1fr 1fr; gap: 6px; }}
        .workout--running {{ border-left: 5px solid #00c46a; }}
        .workout--cycling {{ border-left: 5px solid #ffb545; }}
        .workout__title {{ font-size: 1.1rem; grid-column: 1 / -1; margin: 0; }}
        .workout__unit {{ font-size: 0.8rem; color: #aaa; text-transform: uppercase; }}
    </style>
</head>
<body>
    <ul class="workouts">
{body}
    </ul>
</body>
</html>"""
