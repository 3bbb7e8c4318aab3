"""Catalog dataclasses — typed representations of catalog/widgets.json entries."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class WidgetType:
    type: str                           # opaque tag, e.g. "profile"
    default_width: int
    default_height: int
    label: str = ""


@dataclass(frozen=True)
class WidgetSize:
    width: int
    height: int
    label: str


@dataclass
class ValidationError:
    entry_id: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"[{self.entry_id}] {self.field}: {self.message}"


@dataclass
class WidgetCatalog:
    """Widget types and sizes offered to the user, plus load errors."""
    types: list[WidgetType]
    sizes: list[WidgetSize]
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0

    def get_type(self, name: str) -> WidgetType | None:
        return next((t for t in self.types if t.type == name), None)

    def has_size(self, width: int, height: int) -> bool:
        return any(s.width == width and s.height == height for s in self.sizes)

    def size_label(self, width: int, height: int) -> str:
        for s in self.sizes:
            if s.width == width and s.height == height:
                return s.label
        return f"{width}×{height}"
