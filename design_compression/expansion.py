"""
Expansion of a compressed design back into full node trees.

Functions:
    apply_overrides(template, overrides)       - Template with some slots filled in
    instantiate_template(component, overrides) - Template with its slots filled in
    expand_instance(instance, component, ...)  - Full instance subtree
    expand_design(compressed)                  - Full design forest

Slot resolution:
    override present                 -> override value
    slot known, no override          -> slot default
    slot unknown to the component    -> absent property ("" for id and name)

Instances whose component is missing are skipped with a warning. Nothing else
is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import fields, replace
from typing import Any

from design_compression.design import (
    ComponentDefinition,
    CompressedDesign,
    CompressedInstance,
)
from design_compression.grid import GridLayout
from design_compression.nodes import Design, DesignNode, TemplateNode
from design_compression.primitives import Layout, SlotReference, SlotValue
from design_compression.traversal import Indices, children, postorder_map

logger = logging.getLogger(__name__)

_NODE_FIELDS = tuple(f.name for f in fields(TemplateNode) if f.name != "children")
_ABSENT: dict[str, Any] = {"id": "", "name": "", "visible": True}


def apply_overrides(
    template: TemplateNode, overrides: Mapping[str, SlotValue | Any]
) -> TemplateNode:
    """
    Fills in the slot references named by overrides and keeps all others.

    The result is still a template, for instance a variant of a component
    with its label fixed and its color left open. Overrides may be SlotValue
    variants or raw property values.
    """

    def fill(value: Any) -> Any:
        if not isinstance(value, SlotReference) or value.slot_id not in overrides:
            return value
        override = overrides[value.slot_id]
        return override.value if isinstance(override, SlotValue) else override

    def reconstruct(node: TemplateNode, kids: list[TemplateNode]) -> TemplateNode:
        values = {name: fill(getattr(node, name)) for name in _NODE_FIELDS}
        return TemplateNode(
            children=None if node.children is None else tuple(kids), **values
        )

    return postorder_map(template, children, reconstruct)


def instantiate_template(
    component: ComponentDefinition, overrides: Mapping[str, SlotValue]
) -> DesignNode:
    """Rebuilds the template of a component bottom-up with every slot resolved."""
    for slot_id in overrides:
        if slot_id not in component.slots:
            logger.warning(
                f"Component {component.id}: override of unknown slot {slot_id} ignored"
            )

    def resolve(field_name: str, value: Any) -> Any:
        if not isinstance(value, SlotReference):
            return value
        slot = component.slots.get(value.slot_id)
        if slot is None:
            logger.warning(
                f"Component {component.id}: unknown slot {value.slot_id} "
                f"at {field_name}, left absent"
            )
            return _ABSENT.get(field_name)
        override = overrides.get(value.slot_id)
        resolved = override.value if override is not None else slot.default_value.value
        if resolved is None:
            return _ABSENT.get(field_name)
        return resolved

    def reconstruct(node: TemplateNode, kids: list[DesignNode]) -> DesignNode:
        values = {name: resolve(name, getattr(node, name)) for name in _NODE_FIELDS}
        return DesignNode(
            children=None if node.children is None else tuple(kids), **values
        )

    return postorder_map(component.template, children, reconstruct)


def _instance_layout(
    instance: CompressedInstance, layouts: Mapping[str, GridLayout]
) -> Layout | None:
    if instance.layout_data is not None:
        return instance.layout_data
    if instance.grid_id is None or instance.position is None:
        return None
    grid = layouts.get(instance.grid_id)
    if grid is None:
        logger.warning(
            f"Instance {instance.id}: unknown grid {instance.grid_id}, no layout"
        )
        return None
    cell = grid.cell_layout(instance.position)
    if cell is not None:
        return cell
    x, y = grid.locate(instance.position)
    return Layout(x, y, 0.0, 0.0)


def expand_instance(
    instance: CompressedInstance,
    component: ComponentDefinition,
    layouts: Mapping[str, GridLayout] | None = None,
) -> DesignNode:
    """Instantiates the template and puts the instance identity back on its root."""
    root = instantiate_template(component, instance.overrides)
    return replace(
        root,
        id=instance.id,
        name=instance.name,
        type=component.type,
        visible=instance.visible,
        layout=_instance_layout(instance, layouts or {}),
        component_id=instance.component_id,
    )


def _insert_at(
    forest: tuple[DesignNode, ...], placement: Indices, node: DesignNode
) -> tuple[DesignNode, ...] | None:
    """Copy of the forest with node inserted at placement, None if it does not fit."""
    if not placement:
        return None
    *parents, index = placement
    chain: list[tuple[tuple[DesignNode, ...], int, DesignNode]] = []
    siblings = forest
    for i in parents:
        if not 0 <= i < len(siblings) or siblings[i].children is None:
            return None
        chain.append((siblings, i, siblings[i]))
        siblings = siblings[i].children
    if not 0 <= index <= len(siblings):
        return None
    rebuilt = siblings[:index] + (node,) + siblings[index:]
    for container, i, parent in reversed(chain):
        rebuilt = container[:i] + (replace(parent, children=rebuilt),) + container[i + 1 :]
    return rebuilt


def _reinsert(
    nodes: Sequence[DesignNode], placed: Sequence[tuple[Indices, DesignNode]]
) -> tuple[DesignNode, ...]:
    forest = tuple(nodes)
    misplaced: list[DesignNode] = []
    for placement, node in sorted(placed, key=lambda item: item[0]):
        inserted = _insert_at(forest, placement, node)
        if inserted is None:
            logger.warning(
                f"Instance {node.id}: placement {list(placement)} outside the "
                f"passthrough tree, appended at top level"
            )
            misplaced.append(node)
        else:
            forest = inserted
    return forest + tuple(misplaced)


def expand_design(compressed: CompressedDesign) -> Design:
    """
    Reconstructs the full forest of a compressed design.

    When every expanded instance has a placement, instances go back to their
    original position; otherwise they precede the passthrough nodes.
    """
    expanded: list[tuple[Indices | None, DesignNode]] = []
    for instance in compressed.instances:
        component = compressed.components.get(instance.component_id)
        if component is None:
            logger.warning(
                f"Instance {instance.id}: component {instance.component_id} "
                f"not found, skipped"
            )
            continue
        node = expand_instance(instance, component, compressed.layouts)
        expanded.append((instance.placement, node))

    if expanded and all(placement is not None for placement, _ in expanded):
        nodes = _reinsert(compressed.nodes, expanded)
    else:
        nodes = tuple(node for _, node in expanded) + tuple(compressed.nodes)

    return Design(name=compressed.name, nodes=nodes, global_vars=compressed.global_vars)


__all__ = [
    "apply_overrides",
    "instantiate_template",
    "expand_instance",
    "expand_design",
]
