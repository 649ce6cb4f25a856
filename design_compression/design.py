"""
Value objects of the compressed form.

    ComponentDefinition - Template + slot definitions, one per compressed group
    CompressedInstance  - Component reference + overrides (+ layout or grid cell)
    CompressedDesign    - Components, instances, passthrough nodes, styles, grids
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from design_compression.grid import GridLayout, GridPosition
from design_compression.nodes import DesignNode, TemplateNode
from design_compression.primitives import Layout, SlotValue
from design_compression.slots import SlotDefinition
from design_compression.traversal import Indices


@dataclass(frozen=True)
class ComponentDefinition:
    """Shared template of all instances of one component."""

    id: str
    name: str
    type: str
    template: TemplateNode
    slot_ids: tuple[str, ...] = field(default_factory=tuple)
    slots: Mapping[str, SlotDefinition] = field(default_factory=dict)


@dataclass(frozen=True)
class CompressedInstance:
    """
    One instance reduced to its identity and what makes it different.

    Either `layout_data` or (`grid_id`, `position`) locates the instance, never
    both; neither is set when the source node had no layout. `placement` is
    the child-index path of the instance in the original forest.
    """

    id: str
    component_id: str
    name: str
    visible: bool = True
    overrides: Mapping[str, SlotValue] = field(default_factory=dict)
    layout_data: Layout | None = None
    grid_id: str | None = None
    position: GridPosition | None = None
    placement: Indices | None = None

    def __post_init__(self) -> None:
        if self.layout_data is not None and self.grid_id is not None:
            raise ValueError(f"Instance {self.id} has both layout data and a grid cell")
        if (self.grid_id is None) != (self.position is None):
            raise ValueError(f"Instance {self.id} needs both grid_id and position")


@dataclass(frozen=True)
class CompressedDesign:
    name: str
    components: Mapping[str, ComponentDefinition] = field(default_factory=dict)
    instances: tuple[CompressedInstance, ...] = field(default_factory=tuple)
    nodes: tuple[DesignNode, ...] = field(default_factory=tuple)
    global_vars: Mapping[str, Any] = field(default_factory=lambda: {"styles": {}})
    layouts: Mapping[str, GridLayout] = field(default_factory=dict)

    @property
    def slot_count(self) -> int:
        return sum(len(component.slot_ids) for component in self.components.values())


__all__ = [
    "ComponentDefinition",
    "CompressedInstance",
    "CompressedDesign",
]
