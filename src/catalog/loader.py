"""Catalog loader — reads catalog/widgets.json, parses and validates it."""

from __future__ import annotations

import json
from pathlib import Path

from .models import ValidationError, WidgetCatalog, WidgetSize, WidgetType


CATALOG_DIR = Path(__file__).resolve().parent.parent.parent / "catalog"
CATALOG_FILE = CATALOG_DIR / "widgets.json"


# ── Validation ─────────────────────────────────────────────────────

def _validate(catalog: WidgetCatalog) -> list[ValidationError]:
    """Run all validation checks on a parsed catalog."""
    errs: list[ValidationError] = []

    seen_types: set[str] = set()
    for t in catalog.types:
        if not t.type:
            errs.append(ValidationError("_types", "type", "Must be a non-empty string"))
        if t.type in seen_types:
            errs.append(ValidationError(t.type, "type", "Duplicate widget type"))
        seen_types.add(t.type)
        if t.default_width < 1:
            errs.append(ValidationError(t.type, "default_width", "Must be >= 1"))
        if t.default_height < 1:
            errs.append(ValidationError(t.type, "default_height", "Must be >= 1"))

    seen_sizes: set[tuple[int, int]] = set()
    for s in catalog.sizes:
        sid = f"{s.width}x{s.height}"
        if s.width < 1 or s.height < 1:
            errs.append(ValidationError(sid, "size", "Width and height must be >= 1"))
        if (s.width, s.height) in seen_sizes:
            errs.append(ValidationError(sid, "size", "Duplicate size"))
        seen_sizes.add((s.width, s.height))

    # Default sizes must be selectable sizes
    for t in catalog.types:
        if (t.default_width, t.default_height) not in seen_sizes:
            errs.append(ValidationError(
                t.type, "default_size",
                f"Default size {t.default_width}×{t.default_height} is not in sizes"))

    return errs


# ── Parsing ────────────────────────────────────────────────────────

def _parse_type(data: dict) -> WidgetType:
    return WidgetType(
        type=data["type"],
        default_width=int(data["default_width"]),
        default_height=int(data["default_height"]),
        label=data.get("label", ""),
    )


def _parse_size(data: dict) -> WidgetSize:
    width = int(data["width"])
    height = int(data["height"])
    return WidgetSize(
        width=width,
        height=height,
        label=data.get("label", f"{width}×{height}"),
    )


def parse_catalog(data: dict) -> WidgetCatalog:
    """Parse an in-memory catalog dict.

    Entries that fail to parse are skipped (error recorded); entries that
    parse but fail validation are kept and reported.
    """
    types: list[WidgetType] = []
    sizes: list[WidgetSize] = []
    errors: list[ValidationError] = []

    for i, raw in enumerate(data.get("types", [])):
        try:
            types.append(_parse_type(raw))
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(f"types[{i}]", "parse", f"Parse error: {exc}"))

    for i, raw in enumerate(data.get("sizes", [])):
        try:
            sizes.append(_parse_size(raw))
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(f"sizes[{i}]", "parse", f"Parse error: {exc}"))

    catalog = WidgetCatalog(types=types, sizes=sizes, errors=errors)
    catalog.errors.extend(_validate(catalog))
    return catalog


# ── Public API ─────────────────────────────────────────────────────

def load_catalog(path: Path | None = None) -> WidgetCatalog:
    """Load and validate the widget catalog.

    Read and JSON errors are recorded on the result instead of raised.
    """
    p = path or CATALOG_FILE
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        return WidgetCatalog([], [], [ValidationError(p.stem, "json", f"Parse error: {exc}")])
    except OSError as exc:
        return WidgetCatalog([], [], [ValidationError(p.stem, "file", f"Read error: {exc}")])

    if not isinstance(raw, dict):
        return WidgetCatalog([], [], [ValidationError(p.stem, "json", "Top level must be an object")])
    return parse_catalog(raw)
