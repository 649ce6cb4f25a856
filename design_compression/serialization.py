"""
JSON-compatible encoding of design trees and of the compressed form.

Functions:
    node_to_dict / node_from_dict           - DesignNode <-> dict
    template_to_dict / template_from_dict   - TemplateNode <-> dict ({"$slot": id} markers)
    design_to_dict / design_from_dict       - Design <-> dict
    compressed_to_dict / compressed_from_dict - CompressedDesign <-> dict
    dumps / loads                           - Canonical compact JSON text
    estimate_size                           - Length of the canonical JSON text

Keys follow the camelCase wire format of the extraction layer. Sequences are
decoded as tuples so that decoded trees compare equal to trees built in code.
Slot values travel untagged; their tag is the owning slot's valueType.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import fields
from typing import Any

from design_compression.design import (
    ComponentDefinition,
    CompressedDesign,
    CompressedInstance,
)
from design_compression.errors import MalformedDesignError
from design_compression.grid import GridLayout, GridPosition
from design_compression.hints import CodeHint, code_hint, semantic_names
from design_compression.nodes import Design, DesignNode, TemplateNode
from design_compression.paths import parse_path
from design_compression.primitives import (
    Layout,
    SlotReference,
    SlotValue,
    ValueType,
    slot_value,
)
from design_compression.slots import SlotDefinition

SLOT_MARKER = "$slot"

_WIRE_KEYS = {
    "text_style": "textStyle",
    "stroke_weight": "strokeWeight",
    "corner_radius": "cornerRadius",
    "component_id": "componentId",
    "component_properties": "componentProperties",
}
_NODE_FIELDS = tuple(f.name for f in fields(DesignNode) if f.name != "children")
_REQUIRED_NODE_FIELDS = ("id", "name", "type")


def _wire(name: str) -> str:
    return _WIRE_KEYS.get(name, name)


def _require(data: Any, key: str, context: str) -> Any:
    if not isinstance(data, Mapping):
        raise MalformedDesignError(f"{context} must be an object, got {type(data).__name__}")
    if key not in data:
        raise MalformedDesignError(f"{context} is missing {key!r}")
    return data[key]


def _as_list(data: Any, context: str) -> list:
    if not isinstance(data, list | tuple):
        raise MalformedDesignError(f"{context} must be a list, got {type(data).__name__}")
    return list(data)


def _as_mapping(data: Any, context: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise MalformedDesignError(f"{context} must be an object, got {type(data).__name__}")
    return data


# =============================================================================
# Raw values
# =============================================================================


def to_json_value(value: Any) -> Any:
    """Converts a raw property value to plain JSON types."""
    match value:
        case Layout():
            return layout_to_dict(value)
        case Mapping():
            return {str(k): to_json_value(v) for k, v in value.items()}
        case list() | tuple():
            return [to_json_value(v) for v in value]
        case _:
            return value


def freeze(value: Any) -> Any:
    """Turns decoded JSON into the canonical in-memory form (lists become tuples)."""
    match value:
        case Mapping():
            return {k: freeze(v) for k, v in value.items()}
        case list() | tuple():
            return tuple(freeze(v) for v in value)
        case _:
            return value


def layout_to_dict(layout: Layout) -> dict[str, float]:
    return {"x": layout.x, "y": layout.y, "width": layout.width, "height": layout.height}


def layout_from_dict(data: Any) -> Layout:
    data = _as_mapping(data, "layout")
    try:
        return Layout(
            x=data.get("x", 0.0),
            y=data.get("y", 0.0),
            width=data.get("width", 0.0),
            height=data.get("height", 0.0),
        )
    except TypeError as error:
        raise MalformedDesignError(f"Invalid layout {data!r}") from error


def _field_from_json(name: str, data: Any) -> Any:
    if data is None:
        return None
    if name == "layout":
        return layout_from_dict(data)
    return freeze(data)


def slot_value_to_json(value: SlotValue) -> Any:
    return to_json_value(value.value)


def slot_value_from_json(value_type: ValueType | str, data: Any) -> SlotValue:
    value_type = ValueType(value_type)
    if value_type is ValueType.LAYOUT and data is not None:
        return slot_value(value_type, layout_from_dict(data))
    return slot_value(value_type, freeze(data))


# =============================================================================
# Nodes
# =============================================================================


def _node_fields_to_dict(node: DesignNode | TemplateNode) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for name in _NODE_FIELDS:
        value = getattr(node, name)
        if value is None:
            continue
        if isinstance(value, SlotReference):
            result[_wire(name)] = {SLOT_MARKER: value.slot_id}
        else:
            result[_wire(name)] = to_json_value(value)
    return result


def _tree_to_dict(node: DesignNode | TemplateNode) -> dict[str, Any]:
    """Encodes a tree; children lists are kept even when empty."""
    root = _node_fields_to_dict(node)
    stack = [(node, root)]
    while stack:
        current, encoded = stack.pop()
        if current.children is None:
            continue
        encoded["children"] = []
        for child in current.children:
            child_encoded = _node_fields_to_dict(child)
            encoded["children"].append(child_encoded)
            stack.append((child, child_encoded))
    return root


def _is_slot_marker(data: Any) -> bool:
    return isinstance(data, Mapping) and set(data) == {SLOT_MARKER}


def _fields_from_dict(data: Mapping, allow_slots: bool, context: str) -> dict[str, Any]:
    for name in _REQUIRED_NODE_FIELDS:
        _require(data, name, context)
    values: dict[str, Any] = {}
    for name in _NODE_FIELDS:
        raw = data.get(_wire(name))
        if allow_slots and _is_slot_marker(raw):
            values[name] = SlotReference(str(raw[SLOT_MARKER]))
        else:
            values[name] = _field_from_json(name, raw)
    if values["visible"] is None:
        values["visible"] = True
    return values


def _tree_from_dict(data: Any, cls: type, allow_slots: bool) -> Any:
    # Entries are keyed by preorder position, so a mapping reused at several
    # places in the payload decodes once per occurrence
    order: list[tuple[Mapping, list[int] | None]] = []
    stack: list[tuple[Any, int | None]] = [(data, None)]
    # First pass: preorder listing with the positions of child entries
    while stack:
        raw, parent = stack.pop()
        current = _as_mapping(raw, cls.__name__)
        position = len(order)
        if parent is not None:
            order[parent][1].append(position)
        raw_children = current.get("children")
        if raw_children is None:
            order.append((current, None))
            continue
        kids = _as_list(raw_children, f"{cls.__name__}.children")
        order.append((current, []))
        stack.extend((kid, position) for kid in reversed(kids))
    # Second pass in reverse preorder: children are built before parents
    built: list[Any] = [None] * len(order)
    for position in reversed(range(len(order))):
        current, kid_positions = order[position]
        values = _fields_from_dict(current, allow_slots, cls.__name__)
        kids = None if kid_positions is None else tuple(built[k] for k in kid_positions)
        built[position] = cls(children=kids, **values)
    return built[0]


def node_from_dict(data: Any) -> DesignNode:
    return _tree_from_dict(data, DesignNode, allow_slots=False)


def node_to_dict(node: DesignNode) -> dict[str, Any]:
    return _tree_to_dict(node)


def template_to_dict(template: TemplateNode) -> dict[str, Any]:
    return _tree_to_dict(template)


def template_from_dict(data: Any) -> TemplateNode:
    return _tree_from_dict(data, TemplateNode, allow_slots=True)


def design_to_dict(design: Design) -> dict[str, Any]:
    return {
        "name": design.name,
        "nodes": [node_to_dict(node) for node in design.nodes],
        "globalVars": to_json_value(design.global_vars),
    }


def design_from_dict(data: Any) -> Design:
    return Design(
        name=str(_require(data, "name", "design")),
        nodes=tuple(
            node_from_dict(node) for node in _as_list(_require(data, "nodes", "design"), "nodes")
        ),
        global_vars=dict(data.get("globalVars") or {"styles": {}}),
    )


# =============================================================================
# Compressed form
# =============================================================================


def slot_to_dict(slot: SlotDefinition) -> dict[str, Any]:
    return {
        "slotId": slot.slot_id,
        "nodePath": str(slot.node_path),
        "valueType": str(slot.value_type),
        "defaultValue": slot_value_to_json(slot.default_value),
        "variations": {
            instance_id: slot_value_to_json(value)
            for instance_id, value in slot.variations.items()
        },
        "instanceCount": slot.instance_count,
    }


def slot_from_dict(slot_id: str, data: Any) -> SlotDefinition:
    context = f"slot {slot_id}"
    try:
        value_type = ValueType(_require(data, "valueType", context))
        node_path = parse_path(str(_require(data, "nodePath", context)))
    except ValueError as error:
        raise MalformedDesignError(f"Invalid {context}: {error}") from error
    variations = _as_mapping(data.get("variations") or {}, f"{context}.variations")
    return SlotDefinition(
        slot_id=str(data.get("slotId", slot_id)),
        node_path=node_path,
        value_type=value_type,
        default_value=slot_value_from_json(value_type, data.get("defaultValue")),
        variations={
            str(instance_id): slot_value_from_json(value_type, value)
            for instance_id, value in variations.items()
        },
        instance_count=int(data.get("instanceCount", 0)),
    )


def code_hint_to_dict(hint: CodeHint) -> dict[str, Any]:
    result: dict[str, Any] = {"tsType": hint.ts_type, "reactProp": hint.react_prop}
    if hint.css_property is not None:
        result["cssProperty"] = hint.css_property
    if hint.example is not None:
        result["example"] = to_json_value(hint.example)
    if hint.is_style_prop:
        result["isStyleProp"] = True
    return result


def component_to_dict(component: ComponentDefinition, hints: bool = False) -> dict[str, Any]:
    """
    Encodes a component.

    With `hints`, every slot also carries its semanticName and codeHint. Both
    are derived data and ignored on decode.
    """
    slots = {slot_id: slot_to_dict(slot) for slot_id, slot in component.slots.items()}
    if hints:
        names = semantic_names(component)
        for slot_id, slot in component.slots.items():
            slots[slot_id]["semanticName"] = names[slot_id]
            slots[slot_id]["codeHint"] = code_hint_to_dict(code_hint(slot))
    return {
        "id": component.id,
        "name": component.name,
        "type": component.type,
        "template": template_to_dict(component.template),
        "slotIds": list(component.slot_ids),
        "slots": slots,
    }


def component_from_dict(data: Any) -> ComponentDefinition:
    component_id = str(_require(data, "id", "component"))
    context = f"component {component_id}"
    slots = _as_mapping(data.get("slots") or {}, f"{context}.slots")
    return ComponentDefinition(
        id=component_id,
        name=str(_require(data, "name", context)),
        type=str(_require(data, "type", context)),
        template=template_from_dict(_require(data, "template", context)),
        slot_ids=tuple(str(s) for s in _as_list(data.get("slotIds") or [], "slotIds")),
        slots={str(slot_id): slot_from_dict(str(slot_id), slot) for slot_id, slot in slots.items()},
    )


def grid_position_to_dict(position: GridPosition) -> dict[str, int]:
    return {"column": position.column, "row": position.row}


def grid_position_from_dict(data: Any) -> GridPosition:
    return GridPosition(
        column=int(_require(data, "column", "position")),
        row=int(_require(data, "row", "position")),
    )


def grid_to_dict(grid: GridLayout) -> dict[str, Any]:
    return {
        "id": grid.id,
        "name": grid.name,
        "columns": grid.columns,
        "rows": grid.rows,
        "columnWidth": grid.column_width,
        "rowHeight": grid.row_height,
        "gapX": grid.gap_x,
        "gapY": grid.gap_y,
        "originX": grid.origin_x,
        "originY": grid.origin_y,
        "positions": {
            instance_id: grid_position_to_dict(position)
            for instance_id, position in grid.positions.items()
        },
        "confidence": grid.confidence,
    }


def grid_from_dict(data: Any) -> GridLayout:
    grid_id = str(_require(data, "id", "grid"))
    context = f"grid {grid_id}"
    positions = _as_mapping(data.get("positions") or {}, f"{context}.positions")
    return GridLayout(
        id=grid_id,
        name=str(data.get("name", "Grid Layout")),
        columns=int(_require(data, "columns", context)),
        rows=int(_require(data, "rows", context)),
        column_width=data.get("columnWidth"),
        row_height=data.get("rowHeight"),
        gap_x=data.get("gapX", 0.0),
        gap_y=data.get("gapY", 0.0),
        origin_x=data.get("originX", 0.0),
        origin_y=data.get("originY", 0.0),
        positions={
            str(instance_id): grid_position_from_dict(position)
            for instance_id, position in positions.items()
        },
        confidence=data.get("confidence", 0.0),
    )


def instance_to_dict(instance: CompressedInstance) -> dict[str, Any]:
    result: dict[str, Any] = {
        "id": instance.id,
        "componentId": instance.component_id,
        "name": instance.name,
        "visible": instance.visible,
        "overrides": {
            slot_id: slot_value_to_json(value)
            for slot_id, value in instance.overrides.items()
        },
    }
    if instance.layout_data is not None:
        result["layoutData"] = layout_to_dict(instance.layout_data)
    if instance.grid_id is not None and instance.position is not None:
        result["gridId"] = instance.grid_id
        result["position"] = grid_position_to_dict(instance.position)
    if instance.placement is not None:
        result["placement"] = list(instance.placement)
    return result


def instance_from_dict(
    data: Any, components: Mapping[str, ComponentDefinition]
) -> CompressedInstance:
    """
    Decodes an instance; override tags come from its component's slots.

    Overrides of orphaned instances or unknown slots decode as PropertyValue.
    """
    instance_id = str(_require(data, "id", "instance"))
    context = f"instance {instance_id}"
    component_id = str(_require(data, "componentId", context))
    component = components.get(component_id)
    overrides = {}
    for slot_id, value in _as_mapping(data.get("overrides") or {}, f"{context}.overrides").items():
        slot = component.slots.get(slot_id) if component is not None else None
        value_type = slot.value_type if slot is not None else ValueType.PROPERTY
        overrides[str(slot_id)] = slot_value_from_json(value_type, value)
    layout_data = data.get("layoutData")
    position = data.get("position")
    placement = data.get("placement")
    try:
        return CompressedInstance(
            id=instance_id,
            component_id=component_id,
            name=str(data.get("name", "")),
            visible=bool(data.get("visible", True)),
            overrides=overrides,
            layout_data=layout_from_dict(layout_data) if layout_data is not None else None,
            grid_id=data.get("gridId"),
            position=grid_position_from_dict(position) if position is not None else None,
            placement=tuple(int(i) for i in placement) if placement is not None else None,
        )
    except ValueError as error:
        raise MalformedDesignError(f"Invalid {context}: {error}") from error


def compressed_to_dict(compressed: CompressedDesign, hints: bool = False) -> dict[str, Any]:
    return {
        "name": compressed.name,
        "components": {
            component_id: component_to_dict(component, hints)
            for component_id, component in compressed.components.items()
        },
        "instances": [instance_to_dict(instance) for instance in compressed.instances],
        "nodes": [node_to_dict(node) for node in compressed.nodes],
        "globalVars": to_json_value(compressed.global_vars),
        "layouts": {grid_id: grid_to_dict(grid) for grid_id, grid in compressed.layouts.items()},
    }


def compressed_from_dict(data: Any) -> CompressedDesign:
    name = str(_require(data, "name", "compressed design"))
    raw_components = _as_mapping(data.get("components") or {}, "components")
    components = {
        str(component_id): component_from_dict(component)
        for component_id, component in raw_components.items()
    }
    raw_layouts = _as_mapping(data.get("layouts") or {}, "layouts")
    return CompressedDesign(
        name=name,
        components=components,
        instances=tuple(
            instance_from_dict(instance, components)
            for instance in _as_list(data.get("instances") or [], "instances")
        ),
        nodes=tuple(node_from_dict(node) for node in _as_list(data.get("nodes") or [], "nodes")),
        global_vars=dict(data.get("globalVars") or {"styles": {}}),
        layouts={str(grid_id): grid_from_dict(grid) for grid_id, grid in raw_layouts.items()},
    )


# =============================================================================
# Text
# =============================================================================


def dumps(payload: Any) -> str:
    """Canonical compact JSON: sorted keys, no whitespace."""
    return json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as error:
        raise MalformedDesignError(f"Invalid JSON: {error}") from error


def estimate_size(payload: Any) -> int:
    """
    Size in characters of the canonical encoding of a JSON-compatible payload.

    Equals len(dumps(payload)) but walks the payload with an explicit stack,
    so arbitrarily deep node trees can be measured.
    """
    size = 0
    stack = [payload]
    while stack:
        current = stack.pop()
        match current:
            case Mapping():
                # Braces, one colon per entry, commas between entries
                size += 2 + len(current) + max(len(current) - 1, 0)
                for key, value in current.items():
                    size += len(dumps(str(key)))
                    stack.append(value)
            case list() | tuple():
                size += 2 + max(len(current) - 1, 0)
                stack.extend(current)
            case _:
                size += len(dumps(current))
    return size


__all__ = [
    "SLOT_MARKER",
    "to_json_value",
    "freeze",
    "layout_to_dict",
    "layout_from_dict",
    "slot_value_to_json",
    "slot_value_from_json",
    "node_to_dict",
    "node_from_dict",
    "template_to_dict",
    "template_from_dict",
    "design_to_dict",
    "design_from_dict",
    "slot_to_dict",
    "slot_from_dict",
    "component_to_dict",
    "component_from_dict",
    "grid_to_dict",
    "grid_from_dict",
    "instance_to_dict",
    "instance_from_dict",
    "compressed_to_dict",
    "compressed_from_dict",
    "dumps",
    "loads",
    "estimate_size",
]
