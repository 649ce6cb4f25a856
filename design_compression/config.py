"""
Configuration for the design compression engine.

Defaults are module constants; callers override them through the frozen
option objects below. Nothing in here is mutated at runtime.
"""

from dataclasses import dataclass, field

# Grouping
DEFAULT_MIN_INSTANCES = 2  # A component needs at least two instances to be factored

# Benefit check
DEFAULT_MIN_SAVINGS = 0.10  # Compressed group must be at least 10% smaller than literal

# Grid detection
DEFAULT_GRID_TOLERANCE = 5.0  # Position variation in design units (px)
DEFAULT_GRID_MIN_INSTANCES = 4
DEFAULT_GRID_MIN_CONFIDENCE = 0.8

# Identifier prefixes
SLOT_PREFIX = "slot_"
GRID_PREFIX = "grid_"


@dataclass(frozen=True)
class GridDetectionConfig:
    """Parameters of the grid pattern detector."""

    tolerance: float = DEFAULT_GRID_TOLERANCE
    min_instances: int = DEFAULT_GRID_MIN_INSTANCES
    min_confidence: float = DEFAULT_GRID_MIN_CONFIDENCE

    def __post_init__(self) -> None:
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")
        if self.min_instances < 1:
            raise ValueError(
                f"min_instances must be at least 1, got {self.min_instances}"
            )
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError(
                f"min_confidence must be within [0, 1], got {self.min_confidence}"
            )


@dataclass(frozen=True)
class CompressionOptions:
    """
    Options of a single compress_design call.

    Attributes:
        min_instances: Smallest group size worth templating.
        min_savings: Required relative size reduction of a group, in [0, 1).
        extract_grids: Run the grid pattern detector on each group.
        preserve_order: Record where each instance sat in the original forest
            so that expansion puts it back there.
        sparse_overrides: Only store overrides that differ from the slot default.
        grid: Grid detector parameters.
    """

    min_instances: int = DEFAULT_MIN_INSTANCES
    min_savings: float = DEFAULT_MIN_SAVINGS
    extract_grids: bool = True
    preserve_order: bool = True
    sparse_overrides: bool = True
    grid: GridDetectionConfig = field(default_factory=GridDetectionConfig)

    def __post_init__(self) -> None:
        if self.min_instances < 2:
            raise ValueError(
                f"min_instances must be at least 2, got {self.min_instances}"
            )
        if not 0.0 <= self.min_savings < 1.0:
            raise ValueError(
                f"min_savings must be within [0, 1), got {self.min_savings}"
            )


__all__ = [
    "DEFAULT_MIN_INSTANCES",
    "DEFAULT_MIN_SAVINGS",
    "DEFAULT_GRID_TOLERANCE",
    "DEFAULT_GRID_MIN_INSTANCES",
    "DEFAULT_GRID_MIN_CONFIDENCE",
    "SLOT_PREFIX",
    "GRID_PREFIX",
    "GridDetectionConfig",
    "CompressionOptions",
]
