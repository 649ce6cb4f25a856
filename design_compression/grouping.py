"""
Component grouping.

Functions:
    group_instances(nodes)                   - Bucket instances by component id
    instances_within(path, node)             - Top-most instances below one node
    group_placed(found)                      - Bucket (placement, instance) pairs
    partition_groups(groups, min_instances)  - Split compressible and singleton groups
    strip_instances(nodes, placements)       - Passthrough forest without extracted instances

A walk stops at every node carrying a component reference, so one call only
sees top-most instances. Looking inside an instance that stays literal is a
separate step (instances_within), driven by the encoder.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace

from design_compression.nodes import DesignNode
from design_compression.traversal import Indices, children, postorder_map


@dataclass(frozen=True)
class ComponentGroup:
    """All top-most instances of one component, in document order."""

    component_id: str
    instances: tuple[DesignNode, ...] = field(default_factory=tuple)
    placements: tuple[Indices, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.instances)

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return tuple(node.id for node in self.instances)


def _top_most_instances(
    roots: Iterable[tuple[Indices, DesignNode]],
) -> Iterator[tuple[Indices, DesignNode]]:
    stack = list(roots)
    stack.reverse()
    while stack:
        path, node = stack.pop()
        if node.is_instance:
            yield path, node
            continue
        kids = children(node)
        stack.extend((path + (i,), kids[i]) for i in reversed(range(len(kids))))


def instances_within(path: Indices, node: DesignNode) -> list[tuple[Indices, DesignNode]]:
    """Top-most instances strictly below node, which sits at path."""
    kids = children(node)
    return list(_top_most_instances((path + (i,), kid) for i, kid in enumerate(kids)))


def group_placed(found: Iterable[tuple[Indices, DesignNode]]) -> dict[str, ComponentGroup]:
    """
    Buckets (placement, instance) pairs by component id.

    Groups keep the order in which their first member arrives; members are
    sorted by placement, which is document order.
    """
    buckets: dict[str, list[tuple[Indices, DesignNode]]] = {}
    for path, node in found:
        buckets.setdefault(node.component_id, []).append((path, node))
    groups = {}
    for component_id, members in buckets.items():
        members.sort(key=lambda item: item[0])
        groups[component_id] = ComponentGroup(
            component_id,
            tuple(node for _, node in members),
            tuple(path for path, _ in members),
        )
    return groups


def group_instances(nodes: Sequence[DesignNode]) -> dict[str, ComponentGroup]:
    """
    Partitions the top-most instances of a forest by component id.

    Groups are ordered by the first appearance of their component in a
    depth-first preorder walk; instances inside a group keep that order too.
    """
    return group_placed(_top_most_instances(((i,), node) for i, node in enumerate(nodes)))


def partition_groups(
    groups: Mapping[str, ComponentGroup], min_instances: int
) -> tuple[dict[str, ComponentGroup], dict[str, ComponentGroup]]:
    """Returns (groups worth compressing, groups left as plain nodes)."""
    compressible = {}
    singletons = {}
    for component_id, group in groups.items():
        if len(group) >= min_instances:
            compressible[component_id] = group
        else:
            singletons[component_id] = group
    return compressible, singletons


def strip_instances(
    nodes: Sequence[DesignNode], placements: Collection[Indices]
) -> tuple[DesignNode, ...]:
    """
    Removes the nodes at the given placements from the forest.

    Containers that lose children are rebuilt; untouched subtrees are reused
    as-is.
    """
    removed = frozenset(placements)
    if not removed:
        return tuple(nodes)

    def after(item: tuple[Indices, DesignNode]):
        path, node = item
        for i, child in enumerate(children(node)):
            child_path = path + (i,)
            if child_path not in removed:
                yield child_path, child

    def reconstruct(
        item: tuple[Indices, DesignNode], new_children: list[DesignNode]
    ) -> DesignNode:
        _, node = item
        if node.children is None:
            return node
        if len(new_children) == len(node.children) and all(
            new is old for new, old in zip(new_children, node.children)
        ):
            return node
        return replace(node, children=tuple(new_children))

    return tuple(
        postorder_map(((i,), node), after, reconstruct)
        for i, node in enumerate(nodes)
        if (i,) not in removed
    )


__all__ = [
    "ComponentGroup",
    "group_instances",
    "instances_within",
    "group_placed",
    "partition_groups",
    "strip_instances",
]
