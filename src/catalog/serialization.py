"""Catalog serialization — convert dataclasses to JSON-safe dicts."""

from __future__ import annotations

from .models import WidgetCatalog, WidgetSize, WidgetType


def catalog_to_dict(catalog: WidgetCatalog) -> dict:
    """Serialize a WidgetCatalog to a JSON-safe dict for the web API."""
    return {
        "ok": catalog.ok,
        "types": [type_to_dict(t) for t in catalog.types],
        "sizes": [size_to_dict(s) for s in catalog.sizes],
        "errors": [{"entry_id": e.entry_id, "field": e.field, "message": e.message}
                   for e in catalog.errors],
    }


def type_to_dict(t: WidgetType) -> dict:
    return {
        "type": t.type,
        "default_width": t.default_width,
        "default_height": t.default_height,
        "label": t.label,
    }


def size_to_dict(s: WidgetSize) -> dict:
    return {"width": s.width, "height": s.height, "label": s.label}
