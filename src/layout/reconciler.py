"""Drag/drop reconciler — per-widget gesture state machine.

States::

    IDLE ──start──> DRAGGING ──finish──> COMMITTING ──resolve──> IDLE
                       │                     │
                       │                     └──(rejected)──> BOUNCING ──settle──> IDLE
                       └──cancel──> IDLE           (cancel also leaves BOUNCING)

The reconciler never mutates the registry: it turns cumulative pixel
displacement into a candidate cell plus a hint box, and reports the
final candidate at release.  The session decides whether to commit.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Sequence

from .config import LayoutConfig
from .geometry import clamp_position, exceeds_threshold, pixel_delta_to_cell_delta
from .models import Cell, DragStateError, DropOutcome, HintBox, Widget
from .occupancy import is_free


log = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    BOUNCING = "bouncing"


class DragReconciler:
    """Ephemeral drag state for one widget.

    The validity check behind the hint box is throttled: it only runs
    when the candidate cell changes, or after ``invalidate()`` signals
    that the surrounding layout changed.  The release position is
    always recomputed.
    """

    def __init__(self, widget_id: str, config: LayoutConfig) -> None:
        self.widget_id = widget_id
        self.config = config
        self.state = DragState.IDLE
        self.anchor: Cell | None = None
        self.width = 0
        self.height = 0
        self.hint: HintBox | None = None
        self._evaluated: Cell | None = None     # candidate behind current hint
        self.evaluations = 0                    # is_free calls made for hints

    @property
    def is_active(self) -> bool:
        """True while the gesture holds the session's drag slot."""
        return self.state in (DragState.DRAGGING, DragState.COMMITTING)

    # ── Transitions ────────────────────────────────────────────────

    def start(self, widget: Widget) -> None:
        if self.state not in (DragState.IDLE, DragState.BOUNCING):
            raise DragStateError(self.widget_id, self.state.value, "start")
        self.state = DragState.DRAGGING
        self.anchor = Cell(widget.grid_x, widget.grid_y)
        self.width = widget.width
        self.height = widget.height
        self.hint = None
        self._evaluated = None
        log.debug("Drag start %s at (%d, %d)",
                  self.widget_id, widget.grid_x, widget.grid_y)

    def update(
        self, dx: float, dy: float, widgets: Sequence[Widget],
    ) -> HintBox | None:
        """Feed the cumulative displacement; return the current hint."""
        if self.state is not DragState.DRAGGING:
            raise DragStateError(self.widget_id, self.state.value, "update")

        target = self.candidate(dx, dy)
        if target == self.anchor:
            self.hint = None
            self._evaluated = None
            return None
        if target == self._evaluated and self.hint is not None:
            return self.hint

        self.hint = self._evaluate(target, widgets)
        log.debug("Drag hint %s -> (%d, %d) valid=%s",
                  self.widget_id, target.x, target.y, self.hint.is_valid)
        return self.hint

    def finish(self, dx: float, dy: float, widgets: Sequence[Widget]) -> Cell:
        """Enter COMMITTING and return the final candidate cell."""
        if self.state is not DragState.DRAGGING:
            raise DragStateError(self.widget_id, self.state.value, "finish")
        target = self.candidate(dx, dy)
        if target != self.anchor:
            self.hint = self._evaluate(target, widgets)
        self.state = DragState.COMMITTING
        return target

    def resolve(self, outcome: DropOutcome) -> None:
        """Apply the session's decision for the released drag."""
        if self.state is not DragState.COMMITTING:
            raise DragStateError(self.widget_id, self.state.value, "resolve")
        self.hint = None
        self._evaluated = None
        if outcome is DropOutcome.REJECTED:
            self.state = DragState.BOUNCING
        else:
            self.state = DragState.IDLE

    def settle(self) -> None:
        """The bounce-back animation finished."""
        if self.state is DragState.BOUNCING:
            self.state = DragState.IDLE

    def cancel(self) -> None:
        """Abandon the gesture without touching the registry."""
        if self.state is not DragState.IDLE:
            log.debug("Drag cancel %s from %s", self.widget_id, self.state.value)
        self.state = DragState.IDLE
        self.hint = None
        self._evaluated = None

    def invalidate(self) -> None:
        """Forget the cached validity; the layout around us changed."""
        self._evaluated = None

    # ── Helpers ────────────────────────────────────────────────────

    def candidate(self, dx: float, dy: float) -> Cell:
        """Grid cell the widget would land on for this displacement."""
        if self.anchor is None:
            raise DragStateError(self.widget_id, self.state.value, "locate")
        cfg = self.config
        if not exceeds_threshold(dx, dy, cfg.drag_threshold_px):
            return self.anchor
        delta_x, delta_y = pixel_delta_to_cell_delta(
            dx, dy, cfg.cell_width, cfg.cell_height, cfg.gap)
        x, y = clamp_position(
            self.anchor.x, self.anchor.y, delta_x, delta_y,
            self.width, self.height, cfg.columns, cfg.rows)
        return Cell(x, y)

    def _evaluate(self, target: Cell, widgets: Sequence[Widget]) -> HintBox:
        self.evaluations += 1
        self._evaluated = target
        valid = is_free(target.x, target.y, self.width, self.height,
                        widgets, self.config.columns, self.config.rows,
                        exclude_id=self.widget_id)
        return HintBox(target.x, target.y, self.width, self.height, valid)
