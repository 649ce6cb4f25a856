"""
Slot detection across aligned component instances.

Every slot-eligible field at every aligned position is compared across the
instances of a group:

    all values equal  -> the field stays literal in the template
    any value differs -> a slot is allocated

Slot ids come from a counter local to one detection call and are assigned in
traversal order (preorder over positions, then field order), so identical
input always yields identical ids.

Example:
    Two buttons whose label reads "OK" and "Cancel":

        children[0].text -> slot_0, default TextValue("OK"),
                            variations {"btn-2": TextValue("Cancel")}
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from design_compression.config import SLOT_PREFIX
from design_compression.nodes import property_type, slot_fields
from design_compression.paths import NodePath
from design_compression.primitives import SlotValue, ValueType, slot_value, values_equal
from design_compression.templates import AlignedPosition
from design_compression.traversal import Indices


@dataclass(frozen=True)
class SlotDefinition:
    """
    A field that varies across the instances of one component.

    `variations` only lists the instances whose value differs from
    `default_value`; every other instance falls back to the default.
    """

    slot_id: str
    node_path: NodePath
    value_type: ValueType
    default_value: SlotValue
    variations: Mapping[str, SlotValue] = field(default_factory=dict)
    instance_count: int = 0

    def value_for(self, instance_id: str) -> SlotValue:
        return self.variations.get(instance_id, self.default_value)


@dataclass(frozen=True)
class SlotDetectionResult:
    """Slots of a group, plus how similar its instances were overall."""

    slots: Mapping[str, SlotDefinition] = field(default_factory=dict)
    total_paths: int = 0
    matching_paths: int = 0

    @property
    def similarity_score(self) -> float:
        if self.total_paths == 0:
            return 1.0
        return self.matching_paths / self.total_paths

    @property
    def slot_ids(self) -> tuple[str, ...]:
        return tuple(self.slots)

    def slotted_fields(self) -> dict[tuple[Indices, str], str]:
        """(child indices, field name) -> slot id, as consumed by build_template."""
        return {
            (slot.node_path.indices, slot.node_path.prop): slot_id
            for slot_id, slot in self.slots.items()
        }


class _SlotAllocator:
    """Hands out sequential slot ids for one detection call."""

    def __init__(self, prefix: str = SLOT_PREFIX):
        self.prefix = prefix
        self.counter = 0

    def fresh_id(self) -> str:
        slot_id = f"{self.prefix}{self.counter}"
        self.counter += 1
        return slot_id


def detect_slots(
    instance_ids: Sequence[str],
    aligned: Sequence[AlignedPosition],
    prefix: str = SLOT_PREFIX,
) -> SlotDetectionResult:
    """
    Classifies every eligible field of an aligned group as literal or slot.

    Args:
        instance_ids: Ids of the instance roots, in the order of the nodes
            held by each AlignedPosition.
        aligned: Output of align_instances.
        prefix: Prefix of the generated slot ids.

    Returns:
        The detected slots, keyed and ordered by slot id allocation.
    """
    allocator = _SlotAllocator(prefix)
    slots: dict[str, SlotDefinition] = {}
    total = 0
    matching = 0

    for position in aligned:
        if len(position.nodes) != len(instance_ids):
            raise ValueError(
                f"{len(position.nodes)} nodes at {position.indices} "
                f"for {len(instance_ids)} instances"
            )
        for field_name in slot_fields(position.is_root):
            total += 1
            values = [getattr(node, field_name) for node in position.nodes]
            default = values[0]
            differing = {
                instance_id: value
                for instance_id, value in zip(instance_ids, values)
                if not values_equal(value, default)
            }
            if not differing:
                matching += 1
                continue

            value_type = property_type(field_name)
            slot_id = allocator.fresh_id()
            slots[slot_id] = SlotDefinition(
                slot_id=slot_id,
                node_path=NodePath(position.indices, field_name),
                value_type=value_type,
                default_value=slot_value(value_type, default),
                variations={
                    instance_id: slot_value(value_type, value)
                    for instance_id, value in differing.items()
                },
                instance_count=len(instance_ids),
            )

    return SlotDetectionResult(slots=slots, total_paths=total, matching_paths=matching)


__all__ = [
    "SlotDefinition",
    "SlotDetectionResult",
    "detect_slots",
]
