"""
Compression entry point.

compress_design encodes every component group of a design, including groups
found inside instances that stay literal, and leaves everything else in the
passthrough forest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from design_compression.config import GRID_PREFIX, SLOT_PREFIX, CompressionOptions
from design_compression.design import (
    ComponentDefinition,
    CompressedDesign,
    CompressedInstance,
)
from design_compression.encoding import encode_forest
from design_compression.grid import GridLayout
from design_compression.grouping import strip_instances
from design_compression.nodes import Design
from design_compression.serialization import (
    compressed_to_dict,
    design_to_dict,
    estimate_size,
)
from design_compression.traversal import Indices, count_nodes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressionStats:
    original_nodes: int = 0
    instance_count: int = 0
    component_count: int = 0
    slot_count: int = 0
    grid_count: int = 0
    original_size: int = 0
    compressed_size: int = 0

    @property
    def reduction_percent(self) -> float:
        if self.original_size == 0:
            return 0.0
        return (1.0 - self.compressed_size / self.original_size) * 100.0

    def __str__(self) -> str:
        return (
            f"{self.original_nodes} nodes, {self.instance_count} instances of "
            f"{self.component_count} components, {self.slot_count} slots, "
            f"{self.grid_count} grids: {self.original_size} -> "
            f"{self.compressed_size} characters ({self.reduction_percent:.1f}% smaller)"
        )


@dataclass(frozen=True)
class CompressionResult:
    design: CompressedDesign
    stats: CompressionStats


def compress_design(
    design: Design, options: CompressionOptions = CompressionOptions()
) -> CompressionResult:
    """
    Compresses a design into components, instances and passthrough nodes.

    Components are ordered by the first appearance of their component id,
    instances by their position in the original forest. Grid ids are numbered
    in component order, so identical input gives identical output.
    """
    forest = encode_forest(design.nodes, options, SLOT_PREFIX, GRID_PREFIX)
    logger.debug(
        f"{len(forest.encoded)} components templated, {len(forest.literal)} with "
        f"literal instances, after {forest.rounds} rounds"
    )

    components: dict[str, ComponentDefinition] = {}
    layouts: dict[str, GridLayout] = {}
    encoded: list[tuple[Indices, CompressedInstance]] = []
    for component_id, (group, encoding) in forest.encoded.items():
        components[component_id] = encoding.component
        if encoding.grid is not None:
            layouts[encoding.grid.id] = encoding.grid
        encoded.extend(zip(group.placements, encoding.instances))

    encoded.sort(key=lambda item: item[0])
    passthrough = strip_instances(design.nodes, [placement for placement, _ in encoded])
    compressed = CompressedDesign(
        name=design.name,
        components=components,
        instances=tuple(instance for _, instance in encoded),
        nodes=passthrough,
        global_vars=design.global_vars,
        layouts=layouts,
    )

    stats = CompressionStats(
        original_nodes=count_nodes(design.nodes),
        instance_count=len(encoded),
        component_count=len(components),
        slot_count=compressed.slot_count,
        grid_count=len(layouts),
        original_size=estimate_size(design_to_dict(design)),
        compressed_size=estimate_size(compressed_to_dict(compressed)),
    )
    logger.info(f"Compressed {design.name!r}: {stats}")
    return CompressionResult(compressed, stats)


__all__ = [
    "CompressionStats",
    "CompressionResult",
    "compress_design",
]
