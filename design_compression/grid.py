"""
Grid pattern detection for component instances.

Recognizes rows, columns and matrices of equally spaced instances so that
their absolute positions can be replaced by a shared GridLayout plus one
(column, row) cell per instance.

Algorithm:
    1. Reject groups that are too small or have instances without geometry.
    2. Cluster the X and Y positions (values within `tolerance` merge).
    3. One Y cluster is a row, one X cluster a column, anything else a matrix.
    4. Confidence = share of consistent pitches between adjacent clusters,
       scaled by the share of occupied cells.
    5. Above `min_confidence`, every instance gets its cluster indices.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_right
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

import numpy as np

from design_compression.config import GridDetectionConfig
from design_compression.primitives import Layout

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class GridPosition:
    column: int
    row: int

    def __str__(self) -> str:
        return f"({self.column}, {self.row})"


@dataclass(frozen=True)
class GridLayout:
    """
    Shared placement descriptor for the instances of one component.

    A cell (c, r) sits at origin + (c * (column_width + gap_x),
    r * (row_height + gap_y)); a missing width or height counts as 0, the gap
    then holds the full pitch.
    """

    id: str
    columns: int
    rows: int
    column_width: float | None = None
    row_height: float | None = None
    gap_x: float = 0.0
    gap_y: float = 0.0
    positions: Mapping[str, GridPosition] = field(default_factory=dict)
    confidence: float = 0.0
    origin_x: float = 0.0
    origin_y: float = 0.0
    name: str = "Grid Layout"

    def locate(self, position: GridPosition) -> tuple[float, float]:
        """Absolute (x, y) of a cell."""
        x = self.origin_x + position.column * ((self.column_width or 0.0) + self.gap_x)
        y = self.origin_y + position.row * ((self.row_height or 0.0) + self.gap_y)
        return x, y

    def cell_layout(self, position: GridPosition) -> Layout | None:
        """Full geometry of a cell, None when the grid has no uniform cell size."""
        if self.column_width is None or self.row_height is None:
            return None
        x, y = self.locate(position)
        return Layout(x, y, self.column_width, self.row_height)

    def reproduces(self, position: GridPosition, layout: Layout) -> bool:
        """True if the cell gives back exactly this geometry, bit for bit."""
        return self.cell_layout(position) == layout

    def restricted_to(self, instance_ids: Sequence[str]) -> GridLayout:
        kept = set(instance_ids)
        return replace(
            self,
            positions={k: v for k, v in self.positions.items() if k in kept},
        )


@dataclass(frozen=True)
class GridDetectionResult:
    """Detected grid, or None with the confidence that was reached."""

    grid: GridLayout | None
    confidence: float


def _cluster(values: Sequence[float], tolerance: float) -> list[float]:
    """Sorted cluster starts; a value joins a cluster within tolerance of its start."""
    starts: list[float] = []
    for value in sorted(values):
        if starts and value - starts[-1] <= tolerance:
            continue
        starts.append(value)
    return starts


def _cluster_index(value: float, starts: Sequence[float]) -> int:
    return max(bisect_right(starts, value) - 1, 0)


def _pitches(starts: Sequence[float]) -> np.ndarray:
    return np.diff(np.asarray(starts, dtype=float))


def _common_size(sizes: Sequence[float], tolerance: float) -> float | None:
    values = np.asarray(sizes, dtype=float)
    if np.ptp(values) <= tolerance:
        return float(values[0])
    return None


def detect_grid(
    geometries: Sequence[tuple[str, Layout | None]],
    config: GridDetectionConfig = GridDetectionConfig(),
    grid_id: str = "grid_0",
) -> GridDetectionResult:
    """
    Detects a row, column or matrix arrangement.

    Args:
        geometries: (instance id, layout) pairs of one component group.
        config: Tolerance, minimum group size and minimum confidence.
        grid_id: Id given to the detected grid.

    Returns:
        The grid when the confidence reaches config.min_confidence, otherwise
        grid=None with the confidence reached (0 when rejected upfront).
    """
    if len(geometries) < config.min_instances:
        return GridDetectionResult(None, 0.0)
    if any(layout is None for _, layout in geometries):
        return GridDetectionResult(None, 0.0)

    layouts = [layout for _, layout in geometries]
    tolerance = config.tolerance
    xs = _cluster([layout.x for layout in layouts], tolerance)
    ys = _cluster([layout.y for layout in layouts], tolerance)

    cells = {
        (_cluster_index(layout.x, xs), _cluster_index(layout.y, ys))
        for layout in layouts
    }
    occupancy = len(cells) / (len(xs) * len(ys))

    pitches_x = _pitches(xs)
    pitches_y = _pitches(ys)
    consistent = 0
    for pitches in (pitches_x, pitches_y):
        if pitches.size:
            reference = np.median(pitches)
            consistent += int(np.count_nonzero(np.abs(pitches - reference) <= tolerance))
    total = pitches_x.size + pitches_y.size
    consistency = consistent / total if total else 1.0
    confidence = consistency * occupancy

    if len(ys) == 1:
        name = "Row Layout"
    elif len(xs) == 1:
        name = "Column Layout"
    else:
        name = "Grid Layout"

    if confidence < config.min_confidence:
        logger.debug(
            f"No grid for {len(layouts)} instances: {name} confidence "
            f"{confidence:.2f} < {config.min_confidence}"
        )
        return GridDetectionResult(None, confidence)

    column_width = _common_size([layout.width for layout in layouts], tolerance)
    row_height = _common_size([layout.height for layout in layouts], tolerance)
    pitch_x = float(np.median(pitches_x)) if pitches_x.size else 0.0
    pitch_y = float(np.median(pitches_y)) if pitches_y.size else 0.0

    grid = GridLayout(
        id=grid_id,
        name=name,
        columns=len(xs),
        rows=len(ys),
        column_width=column_width,
        row_height=row_height,
        gap_x=pitch_x - (column_width or 0.0) if pitches_x.size else 0.0,
        gap_y=pitch_y - (row_height or 0.0) if pitches_y.size else 0.0,
        positions={
            instance_id: GridPosition(
                _cluster_index(layout.x, xs), _cluster_index(layout.y, ys)
            )
            for instance_id, layout in geometries
        },
        confidence=confidence,
        origin_x=xs[0],
        origin_y=ys[0],
    )
    logger.debug(
        f"Detected {name} {grid.columns}x{grid.rows} with confidence {confidence:.2f}"
    )
    return GridDetectionResult(grid, confidence)


def grid_to_css(grid: GridLayout) -> str:
    """Renders the grid as a CSS grid container rule."""
    selector = re.sub(r"[^a-zA-Z0-9]", "_", grid.id)
    column_size = f"{grid.column_width:g}px" if grid.column_width is not None else "1fr"
    row_size = f"{grid.row_height:g}px" if grid.row_height is not None else "auto"
    lines = [
        f".{selector} {{",
        "  display: grid;",
        f"  grid-template-columns: repeat({grid.columns}, {column_size});",
        f"  grid-template-rows: repeat({grid.rows}, {row_size});",
    ]
    if grid.gap_x and grid.gap_y:
        lines.append(f"  gap: {grid.gap_y:g}px {grid.gap_x:g}px;")
    elif grid.gap_x:
        lines.append(f"  column-gap: {grid.gap_x:g}px;")
    elif grid.gap_y:
        lines.append(f"  row-gap: {grid.gap_y:g}px;")
    lines.append("}")
    return "\n".join(lines)


__all__ = [
    "GridPosition",
    "GridLayout",
    "GridDetectionResult",
    "detect_grid",
    "grid_to_css",
]
