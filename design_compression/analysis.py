"""
Diagnostics over designs and their compressed form.

Functions:
    analyze_components(nodes, options)           - Per-component inventory with size estimates
    should_extract_as_component(node, inventory) - Whether a node's component is templated
    mark_nodes_for_extraction(nodes, inventory)  - Instances taken out of the forest
    compression_report(inventory)                - Human-readable inventory
    expansion_summary(compressed)                - Human-readable description of a compressed design
    component_hierarchy(compressed)              - Nesting of components inside other templates
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from design_compression.config import CompressionOptions
from design_compression.design import CompressedDesign
from design_compression.encoding import encode_forest
from design_compression.grid import grid_to_css
from design_compression.hints import semantic_names
from design_compression.nodes import DesignNode
from design_compression.serialization import estimate_size, node_to_dict
from design_compression.traversal import (
    Indices,
    children,
    count_nodes,
    depth_first_preorder,
    indexed_preorder,
)


@dataclass(frozen=True)
class ComponentSummary:
    """Compression outlook of one component."""

    component_id: str
    name: str
    instance_count: int
    literal_size: int
    compressed_size: int | None = None
    slot_count: int = 0
    has_grid: bool = False
    kept_literal: int = 0

    @property
    def compressible(self) -> bool:
        return self.compressed_size is not None


@dataclass(frozen=True)
class ComponentInventory:
    components: tuple[ComponentSummary, ...] = field(default_factory=tuple)
    total_nodes: int = 0
    extracted: frozenset[Indices] = field(default_factory=frozenset)

    @property
    def total_instances(self) -> int:
        return sum(summary.instance_count for summary in self.components)

    @property
    def original_size(self) -> int:
        return sum(summary.literal_size for summary in self.components)

    @property
    def estimated_size(self) -> int:
        return sum(
            summary.literal_size if summary.compressed_size is None else summary.compressed_size
            for summary in self.components
        )

    def summary(self, component_id: str) -> ComponentSummary | None:
        for summary in self.components:
            if summary.component_id == component_id:
                return summary
        return None


def _literal_size(nodes: Sequence[DesignNode]) -> int:
    return sum(estimate_size(node_to_dict(node)) for node in nodes)


def analyze_components(
    nodes: Sequence[DesignNode], options: CompressionOptions = CompressionOptions()
) -> ComponentInventory:
    """
    Lists every component of a forest with its literal and compressed size.

    Instances inside instances that stay literal are included, as
    compress_design would see them. Components of which no instance would be
    templated (too few instances, mismatching shapes, not enough savings) have
    compressed_size None.
    """
    forest = encode_forest(nodes, options)
    summaries = []
    for component_id in forest.component_ids:
        group, encoding = forest.encoded.get(component_id, (None, None))
        literal = forest.literal.get(component_id)
        templated = group.instances if group is not None else ()
        left = literal.instances if literal is not None else ()
        summaries.append(
            ComponentSummary(
                component_id=component_id,
                name=encoding.component.name if encoding else left[0].name,
                instance_count=len(templated) + len(left),
                literal_size=_literal_size(templated) + _literal_size(left),
                compressed_size=(
                    encoding.compressed_size + _literal_size(left) if encoding else None
                ),
                slot_count=len(encoding.component.slot_ids) if encoding else 0,
                has_grid=encoding is not None and encoding.grid is not None,
                kept_literal=len(left),
            )
        )
    return ComponentInventory(tuple(summaries), count_nodes(nodes), forest.extracted)


def should_extract_as_component(node: DesignNode, inventory: ComponentInventory) -> bool:
    """
    Whether node is an instance of a component that gets templated.

    This is a per-component answer; mark_nodes_for_extraction lists the exact
    instances taken out of the forest.
    """
    if not node.is_instance:
        return False
    summary = inventory.summary(node.component_id)
    return summary is not None and summary.compressible


def mark_nodes_for_extraction(
    nodes: Sequence[DesignNode], inventory: ComponentInventory
) -> tuple[tuple[Indices, DesignNode], ...]:
    """Instances compress_design takes out of the forest, in document order."""
    return tuple(
        (path, node) for path, node in indexed_preorder(nodes) if path in inventory.extracted
    )


def compression_report(inventory: ComponentInventory) -> str:
    lines = [
        f"Components: {len(inventory.components)}",
        f"Instances: {inventory.total_instances} of {inventory.total_nodes} nodes",
    ]
    for summary in inventory.components:
        if summary.compressible:
            outcome = (
                f"{summary.literal_size} -> {summary.compressed_size} characters, "
                f"{summary.slot_count} slots"
            )
            if summary.kept_literal:
                outcome += f", {summary.kept_literal} kept literal"
            if summary.has_grid:
                outcome += ", grid"
        else:
            outcome = f"{summary.literal_size} characters, kept literal"
        lines.append(
            f"  {summary.name} ({summary.component_id}): "
            f"{summary.instance_count} instances, {outcome}"
        )
    if inventory.original_size:
        saved = 1.0 - inventory.estimated_size / inventory.original_size
        lines.append(
            f"Instances total: {inventory.original_size} -> "
            f"{inventory.estimated_size} characters ({saved:.1%} smaller)"
        )
    return "\n".join(lines)


def expansion_summary(compressed: CompressedDesign) -> str:
    """Describes what expanding the design will produce."""
    orphans = [
        instance.id
        for instance in compressed.instances
        if instance.component_id not in compressed.components
    ]
    lines = [
        f"Design: {compressed.name}",
        f"Components: {len(compressed.components)} ({compressed.slot_count} slots)",
        f"Instances: {len(compressed.instances)}",
        f"Passthrough nodes: {len(compressed.nodes)}",
    ]
    for component in compressed.components.values():
        count = sum(
            1 for instance in compressed.instances if instance.component_id == component.id
        )
        names = semantic_names(component)
        slots = ", ".join(
            f"{slot_id} [{names[slot_id]}] {component.slots[slot_id].node_path} "
            f"({component.slots[slot_id].value_type})"
            for slot_id in component.slot_ids
            if slot_id in component.slots
        )
        lines.append(f"  {component.name} ({component.id}) x{count}: {slots or 'no slots'}")
    for grid in compressed.layouts.values():
        lines.append(
            f"  {grid.name} {grid.id}: {grid.columns}x{grid.rows}, "
            f"{len(grid.positions)} cells, confidence {grid.confidence:.2f}"
        )
        lines.extend(f"    {line}" for line in grid_to_css(grid).splitlines())
    if orphans:
        lines.append(f"Orphaned instances (skipped): {', '.join(orphans)}")
    return "\n".join(lines)


@dataclass(frozen=True)
class ComponentHierarchy:
    """
    Position of a component in the nesting graph.

    `children` are the components referenced inside this component's
    template, `parents` the components whose template references it. `depth`
    is the BFS distance from a top-level component, None when the component
    only sits on a nesting cycle.
    """

    component_id: str
    children: tuple[str, ...] = field(default_factory=tuple)
    parents: tuple[str, ...] = field(default_factory=tuple)
    depth: int | None = 0


def _nested_references(compressed: CompressedDesign) -> dict[str, tuple[str, ...]]:
    references: dict[str, tuple[str, ...]] = {}
    for component_id, component in compressed.components.items():
        found: list[str] = []
        for node in depth_first_preorder(children, component.template):
            if node is component.template:
                continue
            nested = node.component_id
            if (
                isinstance(nested, str)
                and nested in compressed.components
                and nested not in found
            ):
                found.append(nested)
        references[component_id] = tuple(found)
    return references


def component_hierarchy(compressed: CompressedDesign) -> dict[str, ComponentHierarchy]:
    """Nesting graph of the components of a compressed design."""
    references = _nested_references(compressed)
    parents: dict[str, list[str]] = {component_id: [] for component_id in references}
    for parent, kids in references.items():
        for kid in kids:
            parents[kid].append(parent)

    depths: dict[str, int] = {}
    queue = deque(component_id for component_id in references if not parents[component_id])
    for component_id in queue:
        depths[component_id] = 0
    while queue:
        current = queue.popleft()
        for kid in references[current]:
            if kid not in depths:
                depths[kid] = depths[current] + 1
                queue.append(kid)

    return {
        component_id: ComponentHierarchy(
            component_id=component_id,
            children=kids,
            parents=tuple(parents[component_id]),
            depth=depths.get(component_id),
        )
        for component_id, kids in references.items()
    }


def nesting_roots(hierarchy: Mapping[str, ComponentHierarchy]) -> tuple[str, ...]:
    """Components not nested in any other component."""
    return tuple(
        component_id for component_id, entry in hierarchy.items() if not entry.parents
    )


__all__ = [
    "ComponentSummary",
    "ComponentInventory",
    "ComponentHierarchy",
    "analyze_components",
    "should_extract_as_component",
    "mark_nodes_for_extraction",
    "compression_report",
    "expansion_summary",
    "component_hierarchy",
    "nesting_roots",
]
