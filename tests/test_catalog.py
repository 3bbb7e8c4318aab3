"""Tests for the widget catalog loader and the user-facing messages."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from src.catalog import (
    WidgetSize, catalog_to_dict, load_catalog, parse_catalog,
)
from src.layout.feedback import (
    format_widget_type, no_space_message, reset_confirmation,
)
from src.layout.models import SpaceAnalysis


class TestBundledCatalog(unittest.TestCase):

    def test_loads_clean(self):
        cat = load_catalog()
        self.assertTrue(cat.ok, [str(e) for e in cat.errors])
        self.assertEqual(
            [t.type for t in cat.types],
            ["profile", "school", "goals", "exam_prep", "trophies", "friends", "class"],
        )
        self.assertEqual([(s.width, s.height) for s in cat.sizes],
                         [(1, 1), (2, 1), (1, 2), (2, 2)])

    def test_defaults(self):
        cat = load_catalog()
        trophies = cat.get_type("trophies")
        self.assertEqual((trophies.default_width, trophies.default_height), (2, 2))
        self.assertIsNone(cat.get_type("weather"))
        self.assertEqual(cat.size_label(2, 1), "Wide (2×1)")
        self.assertEqual(cat.size_label(3, 1), "3×1")

    def test_serializes(self):
        data = catalog_to_dict(load_catalog())
        self.assertTrue(data["ok"])
        self.assertEqual(data["sizes"][0], {"width": 1, "height": 1, "label": "Small (1×1)"})
        self.assertEqual(data["types"][0]["default_width"], 2)
        json.dumps(data)


class TestCatalogValidation(unittest.TestCase):

    def test_duplicate_type(self):
        cat = parse_catalog({
            "types": [{"type": "goals", "default_width": 1, "default_height": 1}] * 2,
            "sizes": [{"width": 1, "height": 1}],
        })
        self.assertFalse(cat.ok)
        self.assertTrue(any("Duplicate" in e.message for e in cat.errors))

    def test_default_size_must_be_offered(self):
        cat = parse_catalog({
            "types": [{"type": "banner", "default_width": 3, "default_height": 1}],
            "sizes": [{"width": 1, "height": 1}],
        })
        self.assertEqual([e.field for e in cat.errors], ["default_size"])

    def test_bad_entry_skipped_and_reported(self):
        cat = parse_catalog({
            "types": [{"type": "goals", "default_width": 1, "default_height": 1},
                      {"type": "broken"}],
            "sizes": [{"width": 1, "height": 1}, {"width": "wide", "height": 1}],
        })
        self.assertEqual([t.type for t in cat.types], ["goals"])
        self.assertEqual(len(cat.sizes), 1)
        self.assertEqual({e.entry_id for e in cat.errors}, {"types[1]", "sizes[1]"})

    def test_size_label_defaults(self):
        cat = parse_catalog({"types": [], "sizes": [{"width": 2, "height": 2}]})
        self.assertEqual(cat.sizes[0].label, "2×2")

    def test_zero_size(self):
        cat = parse_catalog({"types": [], "sizes": [{"width": 0, "height": 1}]})
        self.assertFalse(cat.ok)

    def test_unreadable_files_are_recorded(self):
        with tempfile.TemporaryDirectory() as tmp:
            bad = Path(tmp) / "widgets.json"
            bad.write_text("{ not json", encoding="utf-8")
            cat = load_catalog(bad)
            self.assertEqual(cat.errors[0].field, "json")

            listing = Path(tmp) / "list.json"
            listing.write_text("[]", encoding="utf-8")
            self.assertEqual(load_catalog(listing).errors[0].field, "json")

            cat = load_catalog(Path(tmp) / "missing.json")
            self.assertEqual(cat.errors[0].field, "file")
            self.assertEqual((cat.types, cat.sizes), ([], []))


def _analysis(pct, has_space, sizes=()):
    occupied = round(18 * pct / 100)
    return SpaceAnalysis(pct, has_space, tuple(sizes), 18, occupied, 18 - occupied)


class TestMessages(unittest.TestCase):

    def test_format_widget_type(self):
        self.assertEqual(format_widget_type("exam_prep"), "EXAM PREP")

    def test_full_grid(self):
        msg = no_space_message("goals", "Small (1×1)", _analysis(100.0, False))
        self.assertEqual(msg.title, "Grid is Full")
        self.assertIn("100% full", msg.body)
        self.assertIn("GOALS", msg.body)

    def test_fragmented_without_any_space(self):
        msg = no_space_message("goals", "Small (1×1)", _analysis(50.0, False))
        self.assertEqual(msg.title, "Grid is Packed")

    def test_lists_sizes_that_fit(self):
        sizes = [WidgetSize(1, 1, "Small (1×1)"), WidgetSize(1, 2, "Tall (1×2)")]
        msg = no_space_message("trophies", "Large (2×2)", _analysis(50.0, True, sizes))
        self.assertEqual(msg.title, "No Space Available")
        self.assertIn("Small (1×1), Tall (1×2)", msg.body)

    def test_generic(self):
        msg = no_space_message("trophies", "Large (2×2)", _analysis(50.0, True))
        self.assertIn("Choose a smaller widget size", msg.body)

    def test_reset_confirmation(self):
        self.assertEqual(reset_confirmation(0).title, "Nothing to Reset")
        self.assertIn("1 widget?", reset_confirmation(1).body)
        self.assertIn("4 widgets?", reset_confirmation(4).body)


if __name__ == "__main__":
    unittest.main()
