"""Layout serialization — JSON-safe dicts for the web API."""

from __future__ import annotations

from src.catalog import size_to_dict

from .models import (
    Failure, FreedCells, HintBox, LayoutEvent, LayoutSnapshot,
    SpaceAnalysis, Widget,
)


def widget_to_dict(w: Widget) -> dict:
    return {
        "id": w.id,
        "type": w.type,
        "width": w.width,
        "height": w.height,
        "gridX": w.grid_x,
        "gridY": w.grid_y,
    }


def hint_to_dict(h: HintBox | None) -> dict | None:
    if h is None:
        return None
    return {
        "gridX": h.grid_x,
        "gridY": h.grid_y,
        "width": h.width,
        "height": h.height,
        "isValid": h.is_valid,
    }


def freed_to_dict(f: FreedCells | None) -> dict | None:
    if f is None:
        return None
    return {
        "widget_id": f.widget_id,
        "cells": [{"x": c.x, "y": c.y} for c in sorted(f.cells)],
        "duration_ms": f.duration_ms,
    }


def analysis_to_dict(a: SpaceAnalysis) -> dict:
    return {
        "occupancyPercentage": round(a.occupancy_percentage, 2),
        "hasAnySpace": a.has_any_space,
        "availableSizes": [size_to_dict(s) for s in a.available_sizes],
        "totalCells": a.total_cells,
        "occupiedCells": a.occupied_cells,
        "freeCells": a.free_cells,
    }


def failure_to_dict(f: Failure | None) -> dict | None:
    if f is None:
        return None
    return {
        "kind": f.kind.value,
        "message": f.message,
        "widget_id": f.widget_id,
        **({"analysis": analysis_to_dict(f.analysis)} if f.analysis else {}),
    }


def _data_to_json(value):
    if isinstance(value, HintBox):
        return hint_to_dict(value)
    if isinstance(value, list):
        return [_data_to_json(v) for v in value]
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return dict(value._asdict())
    return value


def event_to_dict(e: LayoutEvent) -> dict:
    return {
        "kind": e.kind.value,
        "widget_id": e.widget_id,
        "data": {k: _data_to_json(v) for k, v in e.data.items()},
    }


def snapshot_to_dict(s: LayoutSnapshot) -> dict:
    """Serialize a LayoutSnapshot to a JSON-safe dict."""
    return {
        "widgets": [widget_to_dict(w) for w in s.widgets],
        "hint": hint_to_dict(s.hint),
        "recently_freed": freed_to_dict(s.recently_freed),
        "edit_mode": s.edit_mode,
        "dragging_id": s.dragging_id,
        "failure": failure_to_dict(s.failure),
        "occupancy_percentage": round(s.occupancy_percentage, 2),
    }
