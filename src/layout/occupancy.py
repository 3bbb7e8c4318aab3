"""Occupancy queries over a set of placed widgets.

Every function here is pure: it reads the widget sequence it is given
and never mutates it, so repeated calls on an unchanged layout return
identical results.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from shapely.geometry import box as shapely_box

from .models import Cell, SpaceAnalysis, Widget


def _in_bounds(x: int, y: int, width: int, height: int,
               columns: int, rows: int) -> bool:
    return x >= 0 and y >= 0 and x + width <= columns and y + height <= rows


def rects_overlap(
    ax: int, ay: int, aw: int, ah: int,
    bx: int, by: int, bw: int, bh: int,
) -> bool:
    """Open-interval rectangle intersection; shared edges do not overlap."""
    return (ax < bx + bw and ax + aw > bx
            and ay < by + bh and ay + ah > by)


def is_free(
    x: int, y: int, width: int, height: int,
    widgets: Iterable[Widget],
    columns: int, rows: int,
    exclude_id: str | None = None,
) -> bool:
    """True if the rectangle lies on the grid and overlaps no widget.

    ``exclude_id`` lets a widget that is being moved ignore itself.
    """
    if not _in_bounds(x, y, width, height, columns, rows):
        return False
    for w in widgets:
        if w.id == exclude_id:
            continue
        if rects_overlap(x, y, width, height,
                         w.grid_x, w.grid_y, w.width, w.height):
            return False
    return True


def find_free_cell(
    width: int, height: int,
    widgets: Sequence[Widget],
    columns: int, rows: int,
    exclude_id: str | None = None,
) -> Cell | None:
    """First free top-left position in row-major order, or None.

    Rows are scanned top to bottom, columns left to right within a row.
    """
    for y in range(rows - height + 1):
        for x in range(columns - width + 1):
            if is_free(x, y, width, height, widgets, columns, rows, exclude_id):
                return Cell(x, y)
    return None


def cells_of(widget: Widget) -> frozenset[Cell]:
    """All cells covered by a widget."""
    return frozenset(
        Cell(x, y)
        for x in range(widget.grid_x, widget.grid_x + widget.width)
        for y in range(widget.grid_y, widget.grid_y + widget.height)
    )


def is_occupied(x: int, y: int, widgets: Iterable[Widget]) -> bool:
    """True if any widget covers cell (x, y)."""
    return any(
        w.grid_x <= x < w.grid_x + w.width
        and w.grid_y <= y < w.grid_y + w.height
        for w in widgets
    )


def occupied_cell_count(widgets: Iterable[Widget]) -> int:
    return sum(w.width * w.height for w in widgets)


def occupancy_percentage(
    widgets: Iterable[Widget], columns: int, rows: int,
) -> float:
    """Share of grid cells covered by widgets, 0–100."""
    return 100.0 * occupied_cell_count(widgets) / (columns * rows)


def has_any_space(
    widgets: Sequence[Widget], columns: int, rows: int,
) -> bool:
    return find_free_cell(1, 1, widgets, columns, rows) is not None


def available_sizes(
    widgets: Sequence[Widget],
    sizes: Iterable,
    columns: int, rows: int,
) -> list:
    """Filter *sizes* (objects with ``width``/``height``) to those that fit."""
    return [
        s for s in sizes
        if find_free_cell(s.width, s.height, widgets, columns, rows) is not None
    ]


def analyze_space(
    widgets: Sequence[Widget],
    sizes: Iterable,
    columns: int, rows: int,
) -> SpaceAnalysis:
    """Summarize how full the grid is and which sizes can still be added."""
    total = columns * rows
    occupied = occupied_cell_count(widgets)
    return SpaceAnalysis(
        occupancy_percentage=100.0 * occupied / total,
        has_any_space=has_any_space(widgets, columns, rows),
        available_sizes=tuple(available_sizes(widgets, sizes, columns, rows)),
        total_cells=total,
        occupied_cells=occupied,
        free_cells=total - occupied,
    )


def occupancy_grid(
    widgets: Iterable[Widget], columns: int, rows: int,
) -> list[list[str | None]]:
    """Row-major matrix of the widget id owning each cell (None = free)."""
    grid: list[list[str | None]] = [[None] * columns for _ in range(rows)]
    for w in widgets:
        for cell in cells_of(w):
            if 0 <= cell.x < columns and 0 <= cell.y < rows:
                grid[cell.y][cell.x] = w.id
    return grid


def layout_violations(
    widgets: Sequence[Widget], columns: int, rows: int,
) -> list[str]:
    """Audit the bounds and no-overlap invariants.

    Returns human-readable violations (empty = valid).  Widget rectangles
    are compared as polygons, so touching edges are allowed.
    """
    errors: list[str] = []
    grid_poly = shapely_box(0, 0, columns, rows)
    boxes = [
        (w, shapely_box(w.grid_x, w.grid_y, w.right, w.bottom))
        for w in widgets
    ]

    for w, rect in boxes:
        if w.width <= 0 or w.height <= 0:
            errors.append(f"Widget '{w.id}': non-positive size {w.width}×{w.height}")
            continue
        if not grid_poly.contains(rect):
            errors.append(
                f"Widget '{w.id}' at ({w.grid_x}, {w.grid_y}) size "
                f"{w.width}×{w.height} extends beyond the {columns}×{rows} grid")

    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            a, ra = boxes[i]
            b, rb = boxes[j]
            if ra.intersection(rb).area > 0:
                errors.append(f"Widgets '{a.id}' and '{b.id}' overlap")

    seen: set[str] = set()
    for w in widgets:
        if w.id in seen:
            errors.append(f"Duplicate widget id '{w.id}'")
        seen.add(w.id)

    return errors
