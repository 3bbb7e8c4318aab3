"""Grid and gesture configuration for the layout engine.

Every stage (geometry, occupancy, registry, reconciler, session) reads its
grid size and pixel metrics from a single ``LayoutConfig`` so the engine
never hardcodes screen-dependent values.
"""

from __future__ import annotations

from dataclasses import dataclass


# Responsive sizing limits (pixels).
TOP_PADDING_RATIO = 0.08
BOTTOM_PADDING_RATIO = 0.04
MIN_TOP_PADDING = 60.0
MIN_BOTTOM_PADDING = 20.0
MIN_CELL_WIDTH = 60.0
MIN_CELL_HEIGHT = 60.0
MAX_CELL_WIDTH = 200.0
MAX_CELL_HEIGHT = 150.0


@dataclass(frozen=True)
class LayoutConfig:
    """Grid dimensions plus the pixel metrics used to interpret drags.

    Pixel distances are in logical screen pixels.
    """

    columns: int = 3
    """Number of grid columns."""

    rows: int = 6
    """Number of grid rows."""

    cell_width: float = 100.0
    """Rendered width of one cell."""

    cell_height: float = 100.0
    """Rendered height of one cell."""

    gap: float = 4.0
    """Gap between adjacent cells (also the outer margin)."""

    drag_threshold_px: float = 3.0
    """Displacement (on either axis) a gesture must exceed before it
    counts as a move rather than a tap."""

    freed_cells_duration_ms: int = 2000
    """Suggested highlight lifetime for recently-freed cells."""

    feedback_duration_ms: int = 1000
    """Suggested lifetime of the "space occupied" bounce feedback."""

    def __post_init__(self) -> None:
        if self.columns <= 0 or self.rows <= 0:
            raise ValueError(
                f"Grid must have positive dimensions, got "
                f"{self.columns}×{self.rows}")
        if self.cell_width <= 0 or self.cell_height <= 0:
            raise ValueError(
                f"Cell size must be positive, got "
                f"{self.cell_width}×{self.cell_height}")
        if self.gap < 0:
            raise ValueError(f"Gap must be >= 0, got {self.gap}")
        if self.drag_threshold_px < 0:
            raise ValueError(
                f"Drag threshold must be >= 0, got {self.drag_threshold_px}")

    # ── Derived helpers ────────────────────────────────────────────

    @property
    def total_cells(self) -> int:
        return self.columns * self.rows

    @property
    def step_x(self) -> float:
        """Horizontal pixel distance between two neighbouring cell origins."""
        return self.cell_width + self.gap

    @property
    def step_y(self) -> float:
        """Vertical pixel distance between two neighbouring cell origins."""
        return self.cell_height + self.gap

    @classmethod
    def for_screen(
        cls,
        screen_width: float,
        screen_height: float,
        *,
        columns: int = 3,
        rows: int = 6,
        gap: float = 4.0,
        **kwargs,
    ) -> "LayoutConfig":
        """Fit the grid to a screen, clamping cells to usable sizes.

        Vertical space loses a top padding of ``max(8%, 60px)`` and a
        bottom padding of ``max(4%, 20px)`` before the rows are divided.
        """
        top = max(screen_height * TOP_PADDING_RATIO, MIN_TOP_PADDING)
        bottom = max(screen_height * BOTTOM_PADDING_RATIO, MIN_BOTTOM_PADDING)
        available_height = screen_height - top - bottom
        available_width = screen_width - (columns + 1) * gap

        cell_width = available_width / columns
        cell_height = (available_height - (rows + 1) * gap) / rows

        cell_width = max(MIN_CELL_WIDTH, min(MAX_CELL_WIDTH, cell_width))
        cell_height = max(MIN_CELL_HEIGHT, min(MAX_CELL_HEIGHT, cell_height))

        return cls(
            columns=columns,
            rows=rows,
            cell_width=cell_width,
            cell_height=cell_height,
            gap=gap,
            **kwargs,
        )


# Module-level singleton — importable everywhere.
DEFAULT_CONFIG = LayoutConfig()
