"""User-facing diagnostics built from structured layout failures.

The engine only returns data; these helpers turn it into the titles and
messages a presentation layer shows in its dialogs.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import SpaceAnalysis


# Occupancy at which the grid is reported as full rather than fragmented.
FULL_GRID_PERCENTAGE = 95.0


@dataclass(frozen=True)
class Message:
    title: str
    body: str


def format_widget_type(widget_type: str) -> str:
    """``"exam_prep"`` -> ``"EXAM PREP"``."""
    return widget_type.replace("_", " ").upper()


def no_space_message(
    widget_type: str, size_label: str, analysis: SpaceAnalysis,
) -> Message:
    """Explain why a widget did not fit and what the user can do."""
    name = format_widget_type(widget_type)

    if analysis.occupancy_percentage >= FULL_GRID_PERCENTAGE:
        return Message(
            "Grid is Full",
            f"Your widget grid is {round(analysis.occupancy_percentage)}% full. "
            f"Cannot add {name} widget ({size_label}). "
            f"Try removing some existing widgets first to make space.",
        )
    if not analysis.has_any_space:
        return Message(
            "Grid is Packed",
            f"No free space remaining for new widgets. "
            f"Cannot add {name} widget ({size_label}). "
            f"Remove some widgets to free up space, then try again.",
        )
    if analysis.available_sizes:
        options = ", ".join(s.label for s in analysis.available_sizes)
        return Message(
            "No Space Available",
            f"Not enough space for {name} widget ({size_label}). "
            f"Available sizes that will fit: {options}. "
            f"Try selecting a smaller size or rearranging existing widgets.",
        )
    return Message(
        "No Space Available",
        f"Cannot fit {name} widget ({size_label}) in the available space. "
        f"Choose a smaller widget size, remove some existing widgets, "
        f"or rearrange widgets to create space.",
    )


def reset_confirmation(widget_count: int) -> Message:
    """Prompt shown before removing every widget."""
    if widget_count == 0:
        return Message(
            "Nothing to Reset",
            "Your profile is already empty. Add some widgets first!",
        )
    plural = "s" if widget_count > 1 else ""
    return Message(
        "Remove All Widgets",
        f"Are you sure you want to remove all {widget_count} widget{plural}? "
        f"This action cannot be undone.",
    )


def move_rejected_message() -> Message:
    return Message("Space Occupied", "That spot is taken. The widget went back.")
