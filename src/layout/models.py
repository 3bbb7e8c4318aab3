"""Layout dataclasses, outcome enums and exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from src.catalog import WidgetSize


# ── Value types ────────────────────────────────────────────────────


class Cell(NamedTuple):
    """A single grid cell position."""

    x: int
    y: int


@dataclass(frozen=True)
class Widget:
    """A placed rectangular occupant of one or more grid cells.

    ``grid_x`` / ``grid_y`` is the top-left anchor.  Instances are
    immutable; the registry swaps in an updated copy on reposition.
    """

    id: str
    type: str
    width: int
    height: int
    grid_x: int
    grid_y: int

    @property
    def right(self) -> int:
        return self.grid_x + self.width

    @property
    def bottom(self) -> int:
        return self.grid_y + self.height


@dataclass(frozen=True)
class HintBox:
    """Proposed drop rectangle shown while a drag is in progress."""

    grid_x: int
    grid_y: int
    width: int
    height: int
    is_valid: bool


@dataclass(frozen=True)
class FreedCells:
    """Cells that just became free, with a suggested highlight lifetime."""

    cells: frozenset[Cell]
    duration_ms: int
    widget_id: str | None = None


@dataclass(frozen=True)
class SpaceAnalysis:
    """Occupancy statistics and the candidate sizes that still fit."""

    occupancy_percentage: float
    has_any_space: bool
    available_sizes: tuple[WidgetSize, ...]     # catalog order
    total_cells: int
    occupied_cells: int
    free_cells: int


# ── Outcomes ───────────────────────────────────────────────────────


class FailureKind(str, Enum):
    NO_SPACE = "no_space"
    NOT_FOUND = "not_found"
    OUT_OF_BOUNDS = "out_of_bounds"
    OVERLAP = "overlap"


class MoveOutcome(str, Enum):
    COMMITTED = "committed"
    REJECTED = "rejected"


class DropOutcome(str, Enum):
    NOOP = "noop"               # released on the anchor cell (a tap)
    COMMITTED = "committed"
    REJECTED = "rejected"       # presentation bounces back to the anchor
    NOT_FOUND = "not_found"     # widget removed while dragging
    IGNORED = "ignored"         # event for a widget that is not dragging


@dataclass(frozen=True)
class MoveResult:
    """Result of a registry reposition."""

    outcome: MoveOutcome
    widget: Widget
    freed_cells: frozenset[Cell] = frozenset()
    reason: FailureKind | None = None    # set when rejected

    @property
    def ok(self) -> bool:
        return self.outcome is MoveOutcome.COMMITTED


@dataclass(frozen=True)
class DropResult:
    """Result of releasing a drag."""

    outcome: DropOutcome
    widget_id: str
    target: Cell | None = None
    anchor: Cell | None = None
    freed: FreedCells | None = None
    reason: FailureKind | None = None


@dataclass(frozen=True)
class Failure:
    """Structured reason for a failed session call."""

    kind: FailureKind
    message: str
    widget_id: str | None = None
    analysis: SpaceAnalysis | None = None


class EventKind(str, Enum):
    WIDGET_ADDED = "widget_added"
    WIDGET_REMOVED = "widget_removed"
    WIDGET_MOVED = "widget_moved"
    MOVE_REJECTED = "move_rejected"
    HINT_CHANGED = "hint_changed"
    CELLS_FREED = "cells_freed"
    DRAG_STARTED = "drag_started"
    DRAG_CANCELLED = "drag_cancelled"
    LAYOUT_RESET = "layout_reset"
    EDIT_MODE_CHANGED = "edit_mode_changed"


@dataclass(frozen=True)
class LayoutEvent:
    kind: EventKind
    widget_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LayoutSnapshot:
    """Everything the presentation layer renders after a call."""

    widgets: tuple[Widget, ...]
    hint: HintBox | None
    recently_freed: FreedCells | None
    edit_mode: bool
    dragging_id: str | None
    failure: Failure | None
    occupancy_percentage: float


# ── Exceptions ─────────────────────────────────────────────────────


class LayoutError(Exception):
    """Base class for recoverable layout errors."""


class NoSpaceError(LayoutError):
    """Raised when no free rectangle of the requested size exists."""

    def __init__(
        self, width: int, height: int,
        analysis: SpaceAnalysis | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.analysis = analysis
        super().__init__(f"No free {width}×{height} area on the grid")


class WidgetNotFoundError(LayoutError):
    """Raised when an operation references an id not in the registry."""

    def __init__(self, widget_id: str) -> None:
        self.widget_id = widget_id
        super().__init__(f"Widget '{widget_id}' not found")


class DragStateError(LayoutError):
    """Raised on an illegal drag state-machine transition."""

    def __init__(self, widget_id: str, state: str, action: str) -> None:
        self.widget_id = widget_id
        self.state = state
        self.action = action
        super().__init__(
            f"Cannot {action} drag for '{widget_id}' in state {state}")


class LayoutInvariantError(AssertionError):
    """The registry reached a state with overlapping or off-grid widgets.

    Indicates a programming error, never a user-facing condition.
    """

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__("Layout invariant violated: " + "; ".join(violations))


class CatalogError(ValueError):
    """Raised for a widget type or size outside the supplied catalogs."""
