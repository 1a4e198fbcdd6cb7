"""Activity input form.

Fields hold raw text as typed; parsing and validation belong to the
controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from maptrack.models.activity import CYCLING, RUNNING

NUMERIC_FIELDS = ("distance", "duration", "cadence", "elevation")

# Kind-specific row shown for each activity kind
KIND_FIELDS = {
    RUNNING: "cadence",
    CYCLING: "elevation",
}


class FormBoundary(Protocol):
    """Capability surface of the input form."""

    def read_fields(self) -> dict[str, str]: ...

    def clear_numeric_fields(self) -> None: ...

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def focus(self, name: str) -> None: ...

    def show_kind_fields(self, kind: str) -> None: ...


@dataclass
class FormState:
    """In-process form widget."""

    kind: str = RUNNING
    distance: str = ""
    duration: str = ""
    cadence: str = ""
    elevation: str = ""
    hidden: bool = True
    focused: str | None = None
    visible_rows: set[str] = field(default_factory=lambda: {KIND_FIELDS[RUNNING]})

    def read_fields(self) -> dict[str, str]:
        return {
            "kind": self.kind,
            "distance": self.distance,
            "duration": self.duration,
            "cadence": self.cadence,
            "elevation": self.elevation,
        }

    def fill(self, **values: str) -> None:
        """Type values into form fields.

        Raises:
            KeyError: For an unknown field name.
        """
        for name, value in values.items():
            if name != "kind" and name not in NUMERIC_FIELDS:
                raise KeyError(name)
            setattr(self, name, value)

    def clear_numeric_fields(self) -> None:
        for name in NUMERIC_FIELDS:
            setattr(self, name, "")

    def show(self) -> None:
        self.hidden = False

    def hide(self) -> None:
        self.hidden = True
        self.focused = None

    def focus(self, name: str) -> None:
        self.focused = name

    def show_kind_fields(self, kind: str) -> None:
        row = KIND_FIELDS.get(kind)
        if row is not None:
            self.visible_rows = {row}
