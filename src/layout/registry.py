"""Widget registry — the authoritative, ordered collection of placed widgets."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Callable, Iterator

from .models import (
    Cell, EventKind, FailureKind, MoveOutcome, MoveResult, Widget,
    LayoutInvariantError, NoSpaceError, WidgetNotFoundError,
)
from .occupancy import cells_of, find_free_cell, is_free, layout_violations


log = logging.getLogger(__name__)

Listener = Callable[[EventKind, "str | None"], None]


class WidgetRegistry:
    """Ordered widgets on a ``columns × rows`` grid.

    Insertion order is kept for rendering / z-order and carries no
    layout meaning.  Every mutation re-checks the bounds and no-overlap
    invariants and notifies subscribed listeners.
    """

    def __init__(self, columns: int, rows: int) -> None:
        self.columns = columns
        self.rows = rows
        self._widgets: list[Widget] = []
        self._issued_ids: set[str] = set()
        self._listeners: list[Listener] = []

    # ── Queries ────────────────────────────────────────────────────

    @property
    def widgets(self) -> tuple[Widget, ...]:
        """Immutable snapshot of the current widgets, in insertion order."""
        return tuple(self._widgets)

    @property
    def ids(self) -> list[str]:
        return [w.id for w in self._widgets]

    def __len__(self) -> int:
        return len(self._widgets)

    def __iter__(self) -> Iterator[Widget]:
        return iter(tuple(self._widgets))

    def __contains__(self, widget_id: object) -> bool:
        return self.find_by_id(widget_id) is not None  # type: ignore[arg-type]

    def find_by_id(self, widget_id: str) -> Widget | None:
        for w in self._widgets:
            if w.id == widget_id:
                return w
        return None

    def _index_of(self, widget_id: str) -> int:
        for i, w in enumerate(self._widgets):
            if w.id == widget_id:
                return i
        raise WidgetNotFoundError(widget_id)

    # ── Mutations ──────────────────────────────────────────────────

    def add(self, widget_type: str, width: int, height: int) -> Widget:
        """Place a new widget at the first free cell and append it.

        Raises
        ------
        NoSpaceError
            If no free ``width × height`` area exists right now.
        """
        cell = find_free_cell(width, height, self._widgets, self.columns, self.rows)
        if cell is None:
            raise NoSpaceError(width, height)

        widget = Widget(
            id=self._new_id(),
            type=widget_type,
            width=width,
            height=height,
            grid_x=cell.x,
            grid_y=cell.y,
        )
        self._widgets.append(widget)
        self.check_invariants()
        log.info("Added %s widget %s (%d×%d) at (%d, %d)",
                 widget_type, widget.id, width, height, cell.x, cell.y)
        self._notify(EventKind.WIDGET_ADDED, widget.id)
        return widget

    def remove(self, widget_id: str) -> frozenset[Cell]:
        """Remove a widget and return the cells it vacated."""
        idx = self._index_of(widget_id)
        widget = self._widgets.pop(idx)
        log.info("Removed %s widget %s", widget.type, widget_id)
        self._notify(EventKind.WIDGET_REMOVED, widget_id)
        return cells_of(widget)

    def move(self, widget_id: str, new_x: int, new_y: int) -> MoveResult:
        """Reposition a widget if the target rectangle is free.

        A rejected move leaves the widget untouched.  A committed move
        reports the whole pre-move footprint as freed.
        """
        idx = self._index_of(widget_id)
        widget = self._widgets[idx]

        if not is_free(new_x, new_y, widget.width, widget.height,
                       self._widgets, self.columns, self.rows,
                       exclude_id=widget_id):
            in_grid = (new_x >= 0 and new_y >= 0
                       and new_x + widget.width <= self.columns
                       and new_y + widget.height <= self.rows)
            reason = FailureKind.OVERLAP if in_grid else FailureKind.OUT_OF_BOUNDS
            log.debug("Rejected move of %s to (%d, %d): %s",
                      widget_id, new_x, new_y, reason.value)
            return MoveResult(MoveOutcome.REJECTED, widget, reason=reason)

        moved = dataclasses.replace(widget, grid_x=new_x, grid_y=new_y)
        self._widgets[idx] = moved
        self.check_invariants()
        log.info("Moved widget %s from (%d, %d) to (%d, %d)",
                 widget_id, widget.grid_x, widget.grid_y, new_x, new_y)
        self._notify(EventKind.WIDGET_MOVED, widget_id)
        return MoveResult(
            MoveOutcome.COMMITTED, moved,
            freed_cells=cells_of(widget),
        )

    def clear(self) -> int:
        """Remove every widget. Returns how many were removed."""
        count = len(self._widgets)
        self._widgets.clear()
        log.info("Cleared %d widgets", count)
        self._notify(EventKind.LAYOUT_RESET, None)
        return count

    # ── Invariants / listeners ─────────────────────────────────────

    def check_invariants(self) -> None:
        violations = layout_violations(self._widgets, self.columns, self.rows)
        if violations:
            raise LayoutInvariantError(violations)

    def subscribe(self, listener: Listener) -> None:
        """Call *listener(kind, widget_id)* after every mutation."""
        self._listeners.append(listener)

    def _notify(self, kind: EventKind, widget_id: str | None) -> None:
        for listener in list(self._listeners):
            listener(kind, widget_id)

    def _new_id(self) -> str:
        """Fresh id, never handed out before by this registry."""
        while True:
            wid = uuid.uuid4().hex[:9]
            if wid not in self._issued_ids:
                self._issued_ids.add(wid)
                return wid
