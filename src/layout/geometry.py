"""Pixel/grid conversions for drag handling and rendering."""

from __future__ import annotations

import math


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +inf."""
    return int(math.floor(value + 0.5))


def pixel_delta_to_cell_delta(
    dx: float, dy: float,
    cell_width: float, cell_height: float,
    gap: float,
) -> tuple[int, int]:
    """Convert a pixel displacement into a (columns, rows) delta.

    Each axis is divided by one cell step (cell + gap) and rounded, so
    the drag has to cross about half a cell before the target changes.
    """
    return (
        _round_half_up(dx / (cell_width + gap)),
        _round_half_up(dy / (cell_height + gap)),
    )


def clamp_position(
    x: int, y: int,
    delta_x: int, delta_y: int,
    width: int, height: int,
    columns: int, rows: int,
) -> tuple[int, int]:
    """Apply a cell delta and pin the result inside the grid.

    However large the delta, the widget lands on the nearest position
    where it still fits entirely on the grid.
    """
    new_x = max(0, min(columns - width, x + delta_x))
    new_y = max(0, min(rows - height, y + delta_y))
    return (new_x, new_y)


def exceeds_threshold(dx: float, dy: float, threshold: float) -> bool:
    """True once a gesture moved further than *threshold* on either axis."""
    return abs(dx) > threshold or abs(dy) > threshold


def cell_to_pixel(
    grid_x: int, grid_y: int,
    cell_width: float, cell_height: float,
    gap: float,
) -> tuple[float, float]:
    """Return the (left, top) pixel offset of a cell inside the grid."""
    left = grid_x * (cell_width + gap) + gap
    top = grid_y * (cell_height + gap) + gap
    return (left, top)


def widget_pixel_size(
    width: int, height: int,
    cell_width: float, cell_height: float,
    gap: float,
    scale: float = 1.0,
) -> tuple[float, float]:
    """Rendered (width, height) of a widget spanning several cells.

    Inner gaps between the spanned cells belong to the widget.
    """
    pixel_w = (cell_width * width + (width - 1) * gap) * scale
    pixel_h = (cell_height * height + (height - 1) * gap) * scale
    return (pixel_w, pixel_h)
