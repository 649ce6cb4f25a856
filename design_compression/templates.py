"""
Template building for component groups.

Functions:
    align_instances(instances)   - Lockstep walk checking that all subtrees share one shape
    build_template(aligned, ...) - Canonical TemplateNode with SlotReferences at slotted fields

The template of a group is drafted from its first instance. Each field listed
by the slot detector is replaced with a SlotReference. The other fields keep
the first instance's value, which all instances share.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields

from design_compression.errors import StructuralMismatch
from design_compression.nodes import DesignNode, TemplateNode, slot_fields
from design_compression.primitives import SlotReference
from design_compression.traversal import Indices, children

_NODE_FIELDS = tuple(f.name for f in fields(DesignNode) if f.name != "children")


@dataclass(frozen=True)
class AlignedPosition:
    """The N instance nodes found at one child-index path."""

    indices: Indices
    nodes: tuple[DesignNode, ...]

    @property
    def is_root(self) -> bool:
        return not self.indices


def align_instances(instances: Sequence[DesignNode]) -> tuple[AlignedPosition, ...]:
    """
    Walks all instance subtrees in lockstep.

    At every position the nodes must share their type, whether they have a
    child list, and its length.

    Returns:
        The aligned positions in depth-first preorder, root first.

    Raises:
        ValueError: If no instance is given.
        StructuralMismatch: At the first position where the instances diverge.
    """
    if not instances:
        raise ValueError("Cannot align an empty instance group")

    aligned: list[AlignedPosition] = []
    stack: list[tuple[Indices, tuple[DesignNode, ...]]] = [((), tuple(instances))]
    while stack:
        indices, nodes = stack.pop()
        first = nodes[0]
        for other in nodes[1:]:
            if other.type != first.type:
                raise StructuralMismatch(
                    indices, f"type {other.type!r} differs from {first.type!r}"
                )
            if (other.children is None) != (first.children is None):
                raise StructuralMismatch(indices, "child list present on some nodes only")
            if len(children(other)) != len(children(first)):
                raise StructuralMismatch(
                    indices,
                    f"{len(children(other))} children instead of {len(children(first))}",
                )
        aligned.append(AlignedPosition(indices, nodes))
        for i in reversed(range(len(children(first)))):
            stack.append((indices + (i,), tuple(node.children[i] for node in nodes)))
    return tuple(aligned)


def build_template(
    aligned: Sequence[AlignedPosition],
    slotted: Mapping[tuple[Indices, str], str],
    component_id: str,
    name: str,
) -> TemplateNode:
    """
    Builds the template tree of a group.

    Args:
        aligned: Output of align_instances.
        slotted: (child indices, field name) -> slot id for every varying field.
        component_id: Id of the component, stored as the template root id.
        name: Name of the component, stored as the template root name.

    Returns:
        The template root. Root identity and geometry are left out: every
        compressed instance carries its own.
    """
    built: dict[Indices, TemplateNode] = {}
    # Reverse preorder visits children before their parent
    for position in reversed(aligned):
        first = position.nodes[0]
        eligible = slot_fields(position.is_root)
        values = {}
        for field_name in _NODE_FIELDS:
            slot_id = slotted.get((position.indices, field_name))
            if slot_id is not None and field_name in eligible:
                values[field_name] = SlotReference(slot_id)
            else:
                values[field_name] = getattr(first, field_name)
        if position.is_root:
            values.update(
                id=component_id,
                name=name,
                visible=True,
                layout=None,
                component_id=component_id,
            )
        if first.children is None:
            kids = None
        else:
            kids = tuple(
                built.pop(position.indices + (i,)) for i in range(len(first.children))
            )
        built[position.indices] = TemplateNode(children=kids, **values)
    return built[()]


__all__ = [
    "AlignedPosition",
    "align_instances",
    "build_template",
]
