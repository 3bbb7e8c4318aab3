"""Tests for the layout session (orchestration, drag flow, edit mode, reset).

Covers the end-to-end scenarios on the stock 3×6 grid:
  - occupancy stats after adding a 2×2 widget
  - full grid -> NO_SPACE failure with 100% occupancy
  - one-step drag -> valid hint -> committed move
  - mutual exclusion between concurrent drags
  - removal during a drag -> NOT_FOUND on release
"""

from __future__ import annotations

import unittest

from src.catalog import WidgetSize, WidgetType
from src.layout.models import (
    Cell, CatalogError, DropOutcome, EventKind, FailureKind, HintBox,
)
from src.layout.occupancy import find_free_cell, layout_violations
from src.layout.reconciler import DragState
from tests.dashboard_fixture import STEP, make_session


class TestAddRemove(unittest.TestCase):

    def setUp(self):
        self.s = make_session()

    def test_add_and_snapshot(self):
        widget = self.s.add_widget("trophies", 2, 2)
        snap = self.s.snapshot()
        self.assertEqual(snap.widgets, (widget,))
        self.assertAlmostEqual(snap.occupancy_percentage, 22.22, places=2)
        self.assertIsNone(snap.failure)
        analysis = self.s.space_analysis()
        self.assertTrue(analysis.has_any_space)
        self.assertEqual(analysis.occupied_cells, 4)

    def test_add_default_size(self):
        widget = self.s.add_default_widget("profile")
        self.assertEqual((widget.width, widget.height), (2, 1))

    def test_unknown_type(self):
        with self.assertRaises(CatalogError):
            self.s.add_widget("weather", 1, 1)
        with self.assertRaises(CatalogError):
            self.s.add_default_widget("weather")

    def test_size_not_in_catalog(self):
        with self.assertRaises(CatalogError):
            self.s.add_widget("goals", 3, 1)
        with self.assertRaises(CatalogError):
            self.s.add_widget("goals", 0, 1)

    def test_bool_size_rejected(self):
        with self.assertRaises(CatalogError):
            self.s.add_widget("goals", True, True)
        with self.assertRaises(CatalogError):
            self.s.add_widget("goals", 1, True)
        self.assertEqual(self.s.widgets, ())

    def test_call_time_catalogs(self):
        types = [WidgetType("weather", 3, 1)]
        sizes = [WidgetSize(3, 1, "Banner")]
        widget = self.s.add_widget("weather", 3, 1, types=types, sizes=sizes)
        self.assertEqual((widget.grid_x, widget.grid_y, widget.width), (0, 0, 3))

    def test_full_grid_no_space(self):
        for _ in range(18):
            self.assertIsNotNone(self.s.add_widget("goals", 1, 1))
        self.s.drain_events()

        self.assertIsNone(self.s.add_widget("x", 1, 1))
        failure = self.s.last_failure
        self.assertIs(failure.kind, FailureKind.NO_SPACE)
        self.assertEqual(failure.analysis.occupancy_percentage, 100.0)
        self.assertFalse(failure.analysis.has_any_space)
        self.assertIn("100% full", failure.message)
        self.assertEqual(len(self.s.widgets), 18)
        self.assertEqual(self.s.drain_events(), [])

    def test_no_space_lists_fitting_sizes(self):
        # Fill everything except the last row's right column
        for _ in range(17):
            self.s.add_widget("goals", 1, 1)
        self.assertIsNone(self.s.add_widget("trophies", 2, 2))
        failure = self.s.last_failure
        self.assertEqual([s.label for s in failure.analysis.available_sizes],
                         ["Small (1×1)"])
        self.assertIn("Small (1×1)", failure.message)

    def test_failure_cleared_on_next_call(self):
        for _ in range(18):
            self.s.add_widget("goals", 1, 1)
        self.s.add_widget("goals", 1, 1)
        self.assertIsNotNone(self.s.last_failure)
        self.s.remove_widget(self.s.widgets[0].id)
        self.assertIsNone(self.s.last_failure)

    def test_remove_publishes_freed_cells(self):
        widget = self.s.add_widget("profile", 2, 1)
        freed = self.s.remove_widget(widget.id)
        self.assertEqual(freed.cells, {Cell(0, 0), Cell(1, 0)})
        self.assertEqual(freed.duration_ms, 2000)
        self.assertEqual(self.s.snapshot().recently_freed, freed)
        kinds = [e.kind for e in self.s.drain_events()]
        self.assertEqual(kinds, [EventKind.WIDGET_ADDED,
                                 EventKind.WIDGET_REMOVED,
                                 EventKind.CELLS_FREED])

    def test_remove_missing_is_soft(self):
        self.assertIsNone(self.s.remove_widget("ghost"))
        self.assertIs(self.s.last_failure.kind, FailureKind.NOT_FOUND)

    def test_round_trip(self):
        widget = self.s.add_widget("goals", 1, 1)
        self.s.remove_widget(widget.id)
        self.assertEqual(self.s.widgets, ())
        self.assertEqual(find_free_cell(1, 1, self.s.widgets, 3, 6), (0, 0))


class TestDragFlow(unittest.TestCase):

    def setUp(self):
        self.s = make_session()
        self.a = self.s.add_widget("goals", 1, 1)     # (0, 0)
        self.s.set_edit_mode(True)
        self.s.drain_events()

    def test_one_step_drag_commits(self):
        self.assertTrue(self.s.move_drag_start(self.a.id))
        hint = self.s.move_drag_update(self.a.id, STEP, 0)
        self.assertEqual(hint, HintBox(1, 0, 1, 1, True))
        self.assertEqual(self.s.snapshot().hint, hint)

        result = self.s.move_drag_end(self.a.id, STEP, 0)
        self.assertIs(result.outcome, DropOutcome.COMMITTED)
        moved = self.s.registry.find_by_id(self.a.id)
        self.assertEqual((moved.grid_x, moved.grid_y), (1, 0))
        self.assertEqual(result.freed.cells, {Cell(0, 0)})

        snap = self.s.snapshot()
        self.assertIsNone(snap.hint)
        self.assertIsNone(snap.dragging_id)
        self.assertEqual(snap.recently_freed, result.freed)

    def test_release_on_anchor_is_noop(self):
        self.s.move_drag_start(self.a.id)
        self.s.move_drag_update(self.a.id, STEP, 0)
        result = self.s.move_drag_end(self.a.id, 20, 0)
        self.assertIs(result.outcome, DropOutcome.NOOP)
        self.assertIsNone(self.s.last_failure)
        self.assertIsNone(self.s.recently_freed)
        self.assertIsNone(self.s.dragging_id)

    def test_drop_on_occupied_bounces(self):
        b = self.s.add_widget("goals", 1, 1)           # (1, 0)
        self.s.move_drag_start(self.a.id)
        hint = self.s.move_drag_update(self.a.id, STEP, 0)
        self.assertFalse(hint.is_valid)

        result = self.s.move_drag_end(self.a.id, STEP, 0)
        self.assertIs(result.outcome, DropOutcome.REJECTED)
        self.assertEqual(result.anchor, Cell(0, 0))
        self.assertIs(result.reason, FailureKind.OVERLAP)
        self.assertIs(self.s.last_failure.kind, FailureKind.OVERLAP)
        unchanged = self.s.registry.find_by_id(self.a.id)
        self.assertEqual((unchanged.grid_x, unchanged.grid_y), (0, 0))
        self.assertEqual(self.s.registry.find_by_id(b.id).grid_x, 1)

        # Logically idle right away; bounce is presentation only
        self.assertIsNone(self.s.dragging_id)
        self.assertIs(self.s.reconciler(self.a.id).state, DragState.BOUNCING)
        self.s.drag_settled(self.a.id)
        self.assertIs(self.s.reconciler(self.a.id).state, DragState.IDLE)

    def test_mutual_exclusion(self):
        b = self.s.add_widget("goals", 1, 1)
        self.assertTrue(self.s.move_drag_start(self.a.id))
        self.assertFalse(self.s.move_drag_start(b.id))
        self.assertIs(self.s.reconciler(b.id).state, DragState.IDLE)
        self.assertEqual(self.s.dragging_id, self.a.id)
        # Events addressed to b are ignored while a is dragging
        self.assertIsNone(self.s.move_drag_update(b.id, STEP, 0))
        self.assertIs(self.s.move_drag_end(b.id, STEP, 0).outcome, DropOutcome.IGNORED)

    def test_start_requires_edit_mode(self):
        self.s.set_edit_mode(False)
        self.assertFalse(self.s.move_drag_start(self.a.id))
        self.assertIs(self.s.reconciler(self.a.id).state, DragState.IDLE)

    def test_start_unknown_widget(self):
        self.assertFalse(self.s.move_drag_start("ghost"))
        self.assertIs(self.s.last_failure.kind, FailureKind.NOT_FOUND)

    def test_cancel(self):
        self.s.move_drag_start(self.a.id)
        self.s.move_drag_update(self.a.id, STEP, STEP)
        self.assertTrue(self.s.move_drag_cancel(self.a.id))
        snap = self.s.snapshot()
        self.assertIsNone(snap.hint)
        self.assertIsNone(snap.dragging_id)
        self.assertEqual((snap.widgets[0].grid_x, snap.widgets[0].grid_y), (0, 0))
        self.assertFalse(self.s.move_drag_cancel(self.a.id))

    def test_exit_edit_mode_cancels_drag(self):
        self.s.move_drag_start(self.a.id)
        self.s.move_drag_update(self.a.id, STEP, 0)
        self.s.set_edit_mode(False)
        self.assertIsNone(self.s.dragging_id)
        self.assertIsNone(self.s.hint)
        self.assertIs(self.s.reconciler(self.a.id).state, DragState.IDLE)
        # A late release after the cancel commits nothing
        self.assertIs(self.s.move_drag_end(self.a.id, STEP, 0).outcome,
                      DropOutcome.IGNORED)
        self.assertEqual(self.s.registry.find_by_id(self.a.id).grid_x, 0)

    def test_toggle_edit_mode(self):
        self.assertFalse(self.s.toggle_edit_mode())
        self.assertTrue(self.s.toggle_edit_mode())

    def test_remove_during_drag(self):
        self.s.move_drag_start(self.a.id)
        self.s.move_drag_update(self.a.id, STEP, 0)
        self.s.remove_widget(self.a.id)
        self.assertIsNone(self.s.dragging_id)
        self.assertIsNone(self.s.hint)
        self.assertIsNone(self.s.reconciler(self.a.id))

        result = self.s.move_drag_end(self.a.id, STEP, 0)
        self.assertIs(result.outcome, DropOutcome.NOT_FOUND)
        self.assertIs(self.s.last_failure.kind, FailureKind.NOT_FOUND)
        self.assertEqual(self.s.widgets, ())

    def test_remove_other_widget_keeps_drag_hint(self):
        self.s.add_widget("goals", 1, 1)               # (1, 0)
        c = self.s.add_widget("goals", 1, 1)           # (2, 0)
        self.s.move_drag_start(self.a.id)
        hint = self.s.move_drag_update(self.a.id, 0, STEP)
        self.assertEqual(hint, HintBox(0, 1, 1, 1, True))

        self.s.remove_widget(c.id)
        self.assertEqual(self.s.dragging_id, self.a.id)
        self.assertEqual(self.s.hint, hint)
        self.assertIs(self.s.move_drag_end(self.a.id, 0, STEP).outcome,
                      DropOutcome.COMMITTED)

    def test_drag_commit_frees_whole_footprint(self):
        self.s.remove_widget(self.a.id)
        wide = self.s.add_widget("profile", 2, 1)      # (0, 0)
        self.s.move_drag_start(wide.id)
        result = self.s.move_drag_end(wide.id, STEP, 0)
        self.assertIs(result.outcome, DropOutcome.COMMITTED)
        self.assertEqual(result.freed.cells, {Cell(0, 0), Cell(1, 0)})

    def test_layout_change_refreshes_hint_validity(self):
        b = self.s.add_widget("goals", 1, 1)           # (1, 0)
        self.s.move_drag_start(self.a.id)
        self.assertFalse(self.s.move_drag_update(self.a.id, STEP, 0).is_valid)
        self.s.remove_widget(b.id)
        self.assertTrue(self.s.move_drag_update(self.a.id, STEP + 1, 0).is_valid)

    def test_hint_events(self):
        self.s.move_drag_start(self.a.id)
        self.s.move_drag_update(self.a.id, STEP, 0)
        self.s.move_drag_update(self.a.id, STEP + 5, 0)    # same cell
        self.s.move_drag_update(self.a.id, 0, 0)
        hints = [e.data["hint"] for e in self.s.drain_events()
                 if e.kind is EventKind.HINT_CHANGED]
        self.assertEqual(hints, [HintBox(1, 0, 1, 1, True), None])

    def test_direct_move(self):
        result = self.s.move_widget(self.a.id, 2, 5)
        self.assertTrue(result.ok)
        result = self.s.move_widget(self.a.id, 3, 5)
        self.assertFalse(result.ok)
        self.assertIs(self.s.last_failure.kind, FailureKind.OUT_OF_BOUNDS)
        self.assertIsNone(self.s.move_widget("ghost", 0, 0))


class TestReset(unittest.TestCase):

    def setUp(self):
        self.s = make_session()
        for wtype, wdt, hgt in [("profile", 2, 1), ("goals", 1, 1), ("trophies", 2, 2)]:
            self.s.add_widget(wtype, wdt, hgt)
        self.s.set_edit_mode(True)

    def test_requires_confirmation(self):
        self.assertEqual(self.s.pending_reset_count(), 3)
        self.assertIn("3 widgets", self.s.reset_prompt().body)
        self.assertEqual(self.s.reset_all(), 0)
        self.assertEqual(len(self.s.widgets), 3)

    def test_confirmed_reset_clears_everything(self):
        wid = self.s.widgets[0].id
        self.s.move_drag_start(wid)
        self.s.move_drag_update(wid, 0, STEP * 4)
        self.assertEqual(self.s.reset_all(confirmed=True), 3)
        snap = self.s.snapshot()
        self.assertEqual(snap.widgets, ())
        self.assertIsNone(snap.hint)
        self.assertIsNone(snap.dragging_id)
        self.assertIsNone(snap.recently_freed)
        self.assertIsNone(self.s.reconciler(wid))
        self.assertEqual(self.s.reset_prompt().title, "Nothing to Reset")


class TestSessionInvariant(unittest.TestCase):

    def test_scripted_editing_keeps_layout_valid(self):
        s = make_session()
        s.set_edit_mode(True)
        sizes = [(1, 1), (2, 1), (1, 2), (2, 2)]
        for step in range(120):
            if step % 3 == 0:
                wdt, hgt = sizes[step % 4]
                s.add_widget("goals", wdt, hgt)
            elif s.widgets:
                target = s.widgets[step % len(s.widgets)]
                if s.move_drag_start(target.id):
                    dx = ((step % 5) - 2) * STEP
                    dy = ((step % 7) - 3) * STEP
                    s.move_drag_update(target.id, dx / 2, dy / 2)
                    s.move_drag_end(target.id, dx, dy)
                if step % 11 == 0:
                    s.remove_widget(target.id)
            self.assertEqual(layout_violations(s.widgets, 3, 6), [])
            self.assertIsNone(s.dragging_id)


if __name__ == "__main__":
    unittest.main()
