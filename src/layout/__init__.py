"""Layout engine — widget placement and drag/drop on a fixed grid.

Submodules:
  config        LayoutConfig (grid size, cell pixels, drag threshold).
  models        Dataclasses, outcome enums and exceptions.
  geometry      Pixel <-> cell conversion and position clamping.
  occupancy     Free/occupied queries, first-fit search, space analysis.
  registry      WidgetRegistry, the ordered set of placed widgets.
  reconciler    DragReconciler, the per-widget drag state machine.
  session       LayoutSession, the orchestrator the presentation talks to.
  feedback      User-facing messages for failures and confirmations.
  serialization JSON conversion (snapshot_to_dict, event_to_dict, ...).
"""

from .config import LayoutConfig, DEFAULT_CONFIG
from .models import (
    Cell, Widget, HintBox, FreedCells, SpaceAnalysis, Failure, FailureKind,
    MoveOutcome, MoveResult, DropOutcome, DropResult, EventKind, LayoutEvent,
    LayoutSnapshot, LayoutError, NoSpaceError, WidgetNotFoundError,
    DragStateError, LayoutInvariantError, CatalogError,
)
from .geometry import pixel_delta_to_cell_delta, clamp_position
from .occupancy import (
    is_free, find_free_cell, cells_of, is_occupied, occupancy_percentage,
    analyze_space, layout_violations,
)
from .registry import WidgetRegistry
from .reconciler import DragReconciler, DragState
from .session import LayoutSession
from .serialization import snapshot_to_dict, event_to_dict

__all__ = [
    # Config
    "LayoutConfig", "DEFAULT_CONFIG",
    # Models
    "Cell", "Widget", "HintBox", "FreedCells", "SpaceAnalysis", "Failure",
    "FailureKind", "MoveOutcome", "MoveResult", "DropOutcome", "DropResult",
    "EventKind", "LayoutEvent", "LayoutSnapshot",
    "LayoutError", "NoSpaceError", "WidgetNotFoundError", "DragStateError",
    "LayoutInvariantError", "CatalogError",
    # Geometry
    "pixel_delta_to_cell_delta", "clamp_position",
    # Occupancy
    "is_free", "find_free_cell", "cells_of", "is_occupied",
    "occupancy_percentage", "analyze_space", "layout_violations",
    # Engine
    "WidgetRegistry", "DragReconciler", "DragState", "LayoutSession",
    # Serialization
    "snapshot_to_dict", "event_to_dict",
]
