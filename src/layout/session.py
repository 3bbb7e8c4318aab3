"""Layout session — orchestrates registry, occupancy and drag reconciliation.

The session is the single owner of layout state: the widget registry,
the per-widget drag reconcilers, the one active-drag slot, edit mode,
the live hint box and the most recent freed-cell emission.  Every
public method is one inbound event from the presentation layer; after
each call the presentation reads ``snapshot()`` and ``drain_events()``.

Recoverable failures (no space, stale widget id, rejected drop) never
raise: they are logged and recorded as ``last_failure``.  Invalid
catalog input raises ``CatalogError``.
"""

from __future__ import annotations

import logging
from typing import Sequence

from src.catalog import WidgetCatalog, WidgetSize, WidgetType, load_catalog

from .config import DEFAULT_CONFIG, LayoutConfig
from .feedback import Message, move_rejected_message, no_space_message, reset_confirmation
from .models import (
    CatalogError, DropOutcome, DropResult, EventKind, Failure, FailureKind,
    FreedCells, HintBox, LayoutEvent, LayoutSnapshot, MoveResult, NoSpaceError,
    SpaceAnalysis, Widget, WidgetNotFoundError,
)
from .occupancy import analyze_space, occupancy_percentage
from .reconciler import DragReconciler, DragState
from .registry import WidgetRegistry


log = logging.getLogger(__name__)


class LayoutSession:
    """One user's dashboard editing session."""

    def __init__(
        self,
        config: LayoutConfig = DEFAULT_CONFIG,
        catalog: WidgetCatalog | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog if catalog is not None else load_catalog()
        self.registry = WidgetRegistry(config.columns, config.rows)
        self.registry.subscribe(self._on_registry_change)

        self.edit_mode = False
        self.hint: HintBox | None = None
        self.recently_freed: FreedCells | None = None
        self.last_failure: Failure | None = None

        self._drags: dict[str, DragReconciler] = {}
        self._active_id: str | None = None
        self._events: list[LayoutEvent] = []

    # ── Observation ────────────────────────────────────────────────

    @property
    def widgets(self) -> tuple[Widget, ...]:
        return self.registry.widgets

    @property
    def dragging_id(self) -> str | None:
        return self._active_id

    def snapshot(self) -> LayoutSnapshot:
        widgets = self.registry.widgets
        return LayoutSnapshot(
            widgets=widgets,
            hint=self.hint,
            recently_freed=self.recently_freed,
            edit_mode=self.edit_mode,
            dragging_id=self._active_id,
            failure=self.last_failure,
            occupancy_percentage=occupancy_percentage(
                widgets, self.config.columns, self.config.rows),
        )

    def drain_events(self) -> list[LayoutEvent]:
        """Return and forget every event emitted since the last drain."""
        events, self._events = self._events, []
        return events

    def space_analysis(self, sizes: Sequence[WidgetSize] | None = None) -> SpaceAnalysis:
        return analyze_space(
            self.registry.widgets,
            sizes if sizes is not None else self.catalog.sizes,
            self.config.columns, self.config.rows,
        )

    def reconciler(self, widget_id: str) -> DragReconciler | None:
        return self._drags.get(widget_id)

    # ── Add / remove / reset ───────────────────────────────────────

    def add_widget(
        self,
        widget_type: str,
        width: int,
        height: int,
        *,
        types: Sequence[WidgetType] | None = None,
        sizes: Sequence[WidgetSize] | None = None,
    ) -> Widget | None:
        """Place a new widget at the first free cell.

        ``types`` / ``sizes`` override the session catalog for this call.
        Returns None and records a NO_SPACE failure (with a full space
        analysis) when the size does not fit anywhere.
        """
        self.last_failure = None
        types = types if types is not None else self.catalog.types
        sizes = sizes if sizes is not None else self.catalog.sizes
        self._validate_request(widget_type, width, height, types, sizes)

        try:
            widget = self.registry.add(widget_type, width, height)
        except NoSpaceError as exc:
            exc.analysis = analyze_space(
                self.registry.widgets, sizes,
                self.config.columns, self.config.rows)
            label = next(
                (s.label for s in sizes if s.width == width and s.height == height),
                f"{width}×{height}")
            msg = no_space_message(widget_type, label, exc.analysis)
            log.warning("No free space for %s %d×%d (%.1f%% occupied)",
                        widget_type, width, height,
                        exc.analysis.occupancy_percentage)
            self.last_failure = Failure(
                FailureKind.NO_SPACE, msg.body, analysis=exc.analysis)
            return None

        self._emit(EventKind.WIDGET_ADDED, widget.id,
                   type=widget.type, x=widget.grid_x, y=widget.grid_y,
                   width=widget.width, height=widget.height)
        return widget

    def add_default_widget(self, widget_type: str) -> Widget | None:
        """Add a widget using its catalog default size."""
        entry = self.catalog.get_type(widget_type)
        if entry is None:
            raise CatalogError(f"Unknown widget type '{widget_type}'")
        return self.add_widget(widget_type, entry.default_width, entry.default_height)

    def remove_widget(self, widget_id: str) -> FreedCells | None:
        """Remove a widget and publish the cells it vacated."""
        self.last_failure = None
        try:
            cells = self.registry.remove(widget_id)
        except WidgetNotFoundError:
            self._not_found(widget_id, "remove")
            return None

        # A drag on the removed widget was already dropped by the registry
        # listener; a drag on any other widget keeps its hint.
        freed = FreedCells(cells, self.config.freed_cells_duration_ms, widget_id)
        self.recently_freed = freed
        self._emit(EventKind.WIDGET_REMOVED, widget_id)
        self._emit_freed(freed)
        return freed

    def pending_reset_count(self) -> int:
        """Number of widgets a confirmed reset would remove."""
        return len(self.registry)

    def reset_prompt(self) -> Message:
        return reset_confirmation(self.pending_reset_count())

    def reset_all(self, confirmed: bool = False) -> int:
        """Remove every widget once the caller confirmed. Returns the count."""
        self.last_failure = None
        if not confirmed:
            log.debug("Reset requested without confirmation; ignored")
            return 0
        self._cancel_active()
        count = self.registry.clear()
        self._set_hint(None)
        self.recently_freed = None
        self._emit(EventKind.LAYOUT_RESET, None, removed=count)
        return count

    # ── Edit mode ──────────────────────────────────────────────────

    def set_edit_mode(self, enabled: bool) -> None:
        self.last_failure = None
        enabled = bool(enabled)
        if not enabled:
            self._cancel_active()
            self._set_hint(None)
        if enabled != self.edit_mode:
            self.edit_mode = enabled
            log.debug("Edit mode %s", "on" if enabled else "off")
            self._emit(EventKind.EDIT_MODE_CHANGED, None, enabled=enabled)

    def toggle_edit_mode(self) -> bool:
        self.set_edit_mode(not self.edit_mode)
        return self.edit_mode

    # ── Drag gestures ──────────────────────────────────────────────

    def move_drag_start(self, widget_id: str) -> bool:
        """Begin dragging a widget. False if the drag is not permitted."""
        self.last_failure = None
        if not self.edit_mode:
            log.debug("Drag start for %s ignored: edit mode is off", widget_id)
            return False
        if self._active_id is not None:
            log.debug("Drag start for %s ignored: %s is already dragging",
                      widget_id, self._active_id)
            return False
        widget = self.registry.find_by_id(widget_id)
        if widget is None:
            self._not_found(widget_id, "drag")
            return False

        self._drags[widget_id].start(widget)
        self._active_id = widget_id
        self._emit(EventKind.DRAG_STARTED, widget_id,
                   x=widget.grid_x, y=widget.grid_y)
        return True

    def move_drag_update(self, widget_id: str, dx: float, dy: float) -> HintBox | None:
        """Feed the cumulative pixel displacement of the active drag."""
        self.last_failure = None
        if widget_id != self._active_id:
            if widget_id not in self.registry:
                self._not_found(widget_id, "drag update")
            return None
        hint = self._drags[widget_id].update(dx, dy, self.registry.widgets)
        self._set_hint(hint)
        return hint

    def move_drag_end(self, widget_id: str, dx: float, dy: float) -> DropResult:
        """Release the active drag and commit or reject the move."""
        self.last_failure = None
        if widget_id != self._active_id:
            if widget_id not in self.registry:
                self._not_found(widget_id, "drop")
                return DropResult(DropOutcome.NOT_FOUND, widget_id)
            return DropResult(DropOutcome.IGNORED, widget_id)

        rec = self._drags[widget_id]
        target = rec.finish(dx, dy, self.registry.widgets)
        anchor = rec.anchor

        if target == anchor:
            rec.resolve(DropOutcome.NOOP)
            self._release()
            return DropResult(DropOutcome.NOOP, widget_id, target, anchor)

        result = self.registry.move(widget_id, target.x, target.y)
        if result.ok:
            rec.resolve(DropOutcome.COMMITTED)
            self._release()
            freed = FreedCells(result.freed_cells,
                               self.config.freed_cells_duration_ms, widget_id)
            self.recently_freed = freed
            self._emit(EventKind.WIDGET_MOVED, widget_id,
                       from_x=anchor.x, from_y=anchor.y, x=target.x, y=target.y)
            self._emit_freed(freed)
            return DropResult(DropOutcome.COMMITTED, widget_id, target, anchor,
                              freed=freed)

        rec.resolve(DropOutcome.REJECTED)
        self._release()
        self._rejected(widget_id, result)
        return DropResult(DropOutcome.REJECTED, widget_id, target, anchor,
                          reason=result.reason)

    def move_drag_cancel(self, widget_id: str) -> bool:
        """Abandon a drag (gesture interrupted). No layout change."""
        self.last_failure = None
        rec = self._drags.get(widget_id)
        if rec is None or rec.state is DragState.IDLE:
            return False
        rec.cancel()
        if widget_id == self._active_id:
            self._release()
        self._emit(EventKind.DRAG_CANCELLED, widget_id)
        return True

    def drag_settled(self, widget_id: str) -> None:
        """The presentation finished animating a bounce back."""
        rec = self._drags.get(widget_id)
        if rec is not None:
            rec.settle()

    def move_widget(self, widget_id: str, x: int, y: int) -> MoveResult | None:
        """Reposition a widget directly, outside of any gesture."""
        self.last_failure = None
        if widget_id == self._active_id:
            self._cancel_active()
        before = self.registry.find_by_id(widget_id)
        try:
            result = self.registry.move(widget_id, x, y)
        except WidgetNotFoundError:
            self._not_found(widget_id, "move")
            return None
        if not result.ok:
            self._rejected(widget_id, result)
            return result
        freed = FreedCells(result.freed_cells,
                           self.config.freed_cells_duration_ms, widget_id)
        self.recently_freed = freed
        self._emit(EventKind.WIDGET_MOVED, widget_id,
                   from_x=before.grid_x, from_y=before.grid_y, x=x, y=y)
        self._emit_freed(freed)
        return result

    # ── Internals ──────────────────────────────────────────────────

    def _validate_request(
        self, widget_type: str, width: int, height: int,
        types: Sequence[WidgetType], sizes: Sequence[WidgetSize],
    ) -> None:
        if not isinstance(widget_type, str) or not widget_type:
            raise CatalogError("Widget type must be a non-empty string")
        if not any(t.type == widget_type for t in types):
            raise CatalogError(f"Invalid widget type: {widget_type}")
        if not isinstance(width, int) or not isinstance(height, int) \
                or isinstance(width, bool) or isinstance(height, bool) \
                or width < 1 or height < 1:
            raise CatalogError(
                f"Width and height must be positive integers, got {width!r}×{height!r}")
        if not any(s.width == width and s.height == height for s in sizes):
            raise CatalogError(f"Invalid widget size: {width}×{height}")

    def _on_registry_change(self, kind: EventKind, widget_id: str | None) -> None:
        """Keep the reconciler arena in step with the registry's widget set."""
        live = set(self.registry.ids)

        for wid in list(self._drags):
            if wid not in live:
                self._drags.pop(wid).cancel()
                if wid == self._active_id:
                    log.debug("Active drag on %s dropped with its widget", wid)
                    self._active_id = None
                    self._set_hint(None)

        for wid in live:
            if wid not in self._drags:
                self._drags[wid] = DragReconciler(wid, self.config)

        for rec in self._drags.values():
            rec.invalidate()

    def _cancel_active(self) -> None:
        if self._active_id is None:
            return
        wid = self._active_id
        self._drags[wid].cancel()
        self._release()
        self._emit(EventKind.DRAG_CANCELLED, wid)

    def _release(self) -> None:
        self._active_id = None
        self._set_hint(None)

    def _set_hint(self, hint: HintBox | None) -> None:
        if hint != self.hint:
            self.hint = hint
            self._emit(EventKind.HINT_CHANGED,
                       self._active_id, hint=hint)

    def _rejected(self, widget_id: str, result: MoveResult) -> None:
        reason = result.reason or FailureKind.OVERLAP
        msg = move_rejected_message()
        log.warning("Move of %s rejected (%s)", widget_id, reason.value)
        self.last_failure = Failure(reason, msg.body, widget_id=widget_id)
        self._emit(EventKind.MOVE_REJECTED, widget_id,
                   x=result.widget.grid_x, y=result.widget.grid_y,
                   reason=reason.value,
                   duration_ms=self.config.feedback_duration_ms)

    def _not_found(self, widget_id: str, action: str) -> None:
        log.warning("Widget %s not found for %s", widget_id, action)
        self.last_failure = Failure(
            FailureKind.NOT_FOUND, f"Widget '{widget_id}' not found",
            widget_id=widget_id)

    def _emit_freed(self, freed: FreedCells) -> None:
        self._emit(EventKind.CELLS_FREED, freed.widget_id,
                   cells=sorted(freed.cells), duration_ms=freed.duration_ms)

    def _emit(self, kind: EventKind, widget_id: str | None, **data) -> None:
        self._events.append(LayoutEvent(kind, widget_id, data))
