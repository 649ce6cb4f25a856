"""
Instance encoding for component groups.

Functions:
    encode_instance(node, component, ...) - CompressedInstance of one source instance
    assign_grid(instances, grid)          - Swap layout data for grid cells where exact
    encode_group(group, options, ...)     - Full pipeline for one group, or None
    encode_forest(nodes, options, ...)    - Every group of a forest, including
                                            groups inside literal instances

A group is encoded in five steps:
    1. Align the instance subtrees (StructuralMismatch -> literal fallback).
    2. Detect the slots and build the template.
    3. Encode every instance as component reference + overrides.
    4. Optionally replace absolute positions with a detected grid.
    5. Keep the result only if it is smaller than the literal nodes by the
       configured margin. Placements are left out of this comparison: a
       literal node does not pay for its position in the tree either.

encode_forest runs in rounds. The first round groups the top-most instances
of the forest. Every instance whose group stays literal is opened, and the
next round adds the top-most instances below it to the remaining candidates
of their component. Subtrees of templated instances stay opaque. An opened
instance stays literal for good, so the rounds end once one opens nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from design_compression.config import GRID_PREFIX, SLOT_PREFIX, CompressionOptions
from design_compression.design import ComponentDefinition, CompressedInstance
from design_compression.errors import StructuralMismatch
from design_compression.grid import GridLayout, detect_grid
from design_compression.grouping import (
    ComponentGroup,
    group_instances,
    group_placed,
    instances_within,
    partition_groups,
)
from design_compression.nodes import DesignNode
from design_compression.paths import value_at
from design_compression.primitives import slot_value, values_equal
from design_compression.serialization import (
    component_to_dict,
    estimate_size,
    grid_to_dict,
    instance_to_dict,
    node_to_dict,
)
from design_compression.slots import detect_slots
from design_compression.templates import align_instances, build_template
from design_compression.traversal import Indices

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupEncoding:
    """Compressed form of one component group and its size estimates."""

    component: ComponentDefinition
    instances: tuple[CompressedInstance, ...]
    grid: GridLayout | None
    literal_size: int
    compressed_size: int
    similarity_score: float = 1.0

    @property
    def savings(self) -> float:
        if self.literal_size == 0:
            return 0.0
        return 1.0 - self.compressed_size / self.literal_size


def _encoded_size(
    component: ComponentDefinition,
    instances: Sequence[CompressedInstance],
    grid: GridLayout | None,
) -> int:
    size = estimate_size(component_to_dict(component))
    for instance in instances:
        encoded = instance_to_dict(instance)
        encoded.pop("placement", None)
        size += estimate_size(encoded)
    if grid is not None:
        size += estimate_size(grid_to_dict(grid))
    return size


def encode_instance(
    node: DesignNode,
    component: ComponentDefinition,
    placement: Indices | None = None,
    sparse: bool = True,
) -> CompressedInstance:
    """
    Encodes one instance against its component.

    With `sparse`, only the slots whose value differs from the slot default
    are written to `overrides`; otherwise every slot is.
    """
    overrides = {}
    for slot_id in component.slot_ids:
        slot = component.slots[slot_id]
        value = value_at(node, slot.node_path)
        if sparse and values_equal(value, slot.default_value.value):
            continue
        overrides[slot_id] = slot_value(slot.value_type, value)
    return CompressedInstance(
        id=node.id,
        component_id=component.id,
        name=node.name,
        visible=node.visible,
        overrides=overrides,
        layout_data=node.layout,
        placement=placement,
    )


def assign_grid(
    instances: Sequence[CompressedInstance], grid: GridLayout
) -> tuple[tuple[CompressedInstance, ...], GridLayout | None]:
    """
    Moves instances onto grid cells that give back their exact geometry.

    Returns:
        The instances, updated where the grid applies, and the grid restricted
        to its users; the grid is None when fewer than two instances use it.
    """
    users: list[str] = []
    for instance in instances:
        position = grid.positions.get(instance.id)
        if (
            position is not None
            and instance.layout_data is not None
            and grid.reproduces(position, instance.layout_data)
        ):
            users.append(instance.id)

    if len(users) < 2:
        return tuple(instances), None

    kept = set(users)
    updated = tuple(
        replace(
            instance,
            layout_data=None,
            grid_id=grid.id,
            position=grid.positions[instance.id],
        )
        if instance.id in kept
        else instance
        for instance in instances
    )
    return updated, grid.restricted_to(users)


def encode_group(
    group: ComponentGroup,
    options: CompressionOptions = CompressionOptions(),
    slot_prefix: str = SLOT_PREFIX,
    grid_id: str = "grid_0",
) -> GroupEncoding | None:
    """
    Runs template building, slot detection, grid detection and encoding.

    Returns:
        The encoding, or None when the group has to stay literal: the
        instances do not share a shape, share an id, or the encoding is not
        small enough.
    """
    component_id = group.component_id
    instance_ids = group.instance_ids
    if len(set(instance_ids)) != len(instance_ids):
        logger.debug(f"Component {component_id}: duplicate instance ids, kept literal")
        return None

    try:
        aligned = align_instances(group.instances)
    except StructuralMismatch as error:
        logger.debug(f"Component {component_id}: {error}, kept literal")
        return None

    detection = detect_slots(instance_ids, aligned, prefix=slot_prefix)
    first = group.instances[0]
    template = build_template(
        aligned, detection.slotted_fields(), component_id, first.name
    )
    component = ComponentDefinition(
        id=component_id,
        name=first.name,
        type=first.type,
        template=template,
        slot_ids=detection.slot_ids,
        slots=detection.slots,
    )
    logger.debug(
        f"Component {component_id}: {len(group)} instances, "
        f"{len(detection.slots)} slots, similarity {detection.similarity_score:.2f}"
    )

    placements: Sequence[Indices | None] = (
        group.placements if options.preserve_order else [None] * len(group)
    )
    instances = tuple(
        encode_instance(node, component, placement, options.sparse_overrides)
        for node, placement in zip(group.instances, placements)
    )

    grid = None
    if options.extract_grids:
        detection_result = detect_grid(
            [(node.id, node.layout) for node in group.instances],
            options.grid,
            grid_id,
        )
        if detection_result.grid is not None:
            instances, grid = assign_grid(instances, detection_result.grid)

    literal_size = sum(estimate_size(node_to_dict(node)) for node in group.instances)
    compressed_size = _encoded_size(component, instances, grid)

    threshold = literal_size * (1.0 - options.min_savings)
    if compressed_size >= threshold:
        logger.debug(
            f"Component {component_id}: {compressed_size} >= {threshold:.0f} "
            f"(literal {literal_size}), kept literal"
        )
        return None

    logger.debug(
        f"Component {component_id}: {literal_size} -> {compressed_size} characters"
    )
    return GroupEncoding(
        component=component,
        instances=instances,
        grid=grid,
        literal_size=literal_size,
        compressed_size=compressed_size,
        similarity_score=detection.similarity_score,
    )


@dataclass(frozen=True)
class ForestEncoding:
    """
    Encoding of every component group of a forest.

    `encoded` maps a component id to its templated group and that group's
    encoding; `literal` holds, per component, the instances left in the
    passthrough forest. Both follow `component_ids`, the order in which
    components were first found.
    """

    encoded: dict[str, tuple[ComponentGroup, GroupEncoding]] = field(default_factory=dict)
    literal: dict[str, ComponentGroup] = field(default_factory=dict)
    rounds: int = 0
    component_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def extracted(self) -> frozenset[Indices]:
        """Placements of every templated instance."""
        return frozenset(
            placement
            for group, _ in self.encoded.values()
            for placement in group.placements
        )


def _with_grid_id(encoding: GroupEncoding, grid_id: str) -> GroupEncoding:
    if encoding.grid is None or encoding.grid.id == grid_id:
        return encoding
    grid = replace(encoding.grid, id=grid_id)
    instances = tuple(
        replace(instance, grid_id=grid_id) if instance.grid_id is not None else instance
        for instance in encoding.instances
    )
    return replace(
        encoding,
        instances=instances,
        grid=grid,
        compressed_size=_encoded_size(encoding.component, instances, grid),
    )


def encode_forest(
    nodes: Sequence[DesignNode],
    options: CompressionOptions = CompressionOptions(),
    slot_prefix: str = SLOT_PREFIX,
    grid_prefix: str = GRID_PREFIX,
) -> ForestEncoding:
    """
    Encodes every component group of a forest, round after round.

    A component found again in a later round is encoded once more with its
    new instances merged into its remaining candidates. Grids are numbered in
    component order after the last round.
    """
    order: dict[str, int] = {}
    candidates: dict[str, ComponentGroup] = {}
    encodings: dict[str, GroupEncoding] = {}
    opened: dict[str, list[tuple[Indices, DesignNode]]] = {}

    found = group_instances(nodes)
    rounds = 0
    while found:
        rounds += 1
        merged: dict[str, ComponentGroup] = {}
        for component_id, new in found.items():
            order.setdefault(component_id, len(order))
            members = list(zip(new.placements, new.instances))
            previous = candidates.get(component_id)
            if previous is not None:
                members.extend(zip(previous.placements, previous.instances))
            merged[component_id] = group_placed(members)[component_id]

        compressible, small = partition_groups(merged, options.min_instances)
        kept_literal = list(small.values())
        for component_id, group in compressible.items():
            encoding = encode_group(
                group, options, slot_prefix, grid_id=f"{grid_prefix}{order[component_id]}"
            )
            if encoding is None:
                kept_literal.append(group)
                continue
            candidates[component_id] = group
            encodings[component_id] = encoding

        below: list[tuple[Indices, DesignNode]] = []
        for group in kept_literal:
            candidates.pop(group.component_id, None)
            encodings.pop(group.component_id, None)
            members = list(zip(group.placements, group.instances))
            opened.setdefault(group.component_id, []).extend(members)
            for path, node in members:
                below.extend(instances_within(path, node))

        logger.debug(
            f"Round {rounds}: {len(encodings)} components templated, "
            f"{len(below)} instances found inside literal ones"
        )
        found = group_placed(below)

    encoded: dict[str, tuple[ComponentGroup, GroupEncoding]] = {}
    for component_id in order:
        encoding = encodings.get(component_id)
        if encoding is None:
            continue
        if encoding.grid is not None:
            grid_count = sum(1 for _, other in encoded.values() if other.grid is not None)
            encoding = _with_grid_id(encoding, f"{grid_prefix}{grid_count}")
        encoded[component_id] = (candidates[component_id], encoding)
    literal = {
        component_id: group_placed(opened[component_id])[component_id]
        for component_id in order
        if component_id in opened
    }
    return ForestEncoding(encoded, literal, rounds, tuple(order))


__all__ = [
    "GroupEncoding",
    "ForestEncoding",
    "encode_instance",
    "assign_grid",
    "encode_group",
    "encode_forest",
]
