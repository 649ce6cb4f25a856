"""
Naming and code generation hints for slots.

Functions:
    semantic_name(node_path, context)  - Readable name such as "label-text"
    semantic_names(component)          - slot id -> unique semantic name
    code_hint(slot)                    - TypeScript/React/CSS mapping of a slot

Hints are derived from a component and its slots; they are never stored on
them, so a decoded component yields the same hints as the one it came from.

Example:
    A slot at children[1].fills under a node named "Icon" is called
    "icon-color" and hints at `style.backgroundColor` / `background-color`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from design_compression.design import ComponentDefinition
from design_compression.paths import NodePath, node_at
from design_compression.primitives import ValueType
from design_compression.slots import SlotDefinition

PROPERTY_TERMS = {
    "text": "text",
    "fills": "color",
    "strokes": "stroke",
    "opacity": "opacity",
    "visible": "visibility",
    "layout": "layout",
}

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NOT_WORD = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class CodeHint:
    """How a slot maps onto a component prop in generated code."""

    ts_type: str
    react_prop: str
    css_property: str | None = None
    example: Any = None
    is_style_prop: bool = False


def _kebab(text: str) -> str:
    return _NOT_WORD.sub("-", _CAMEL_BOUNDARY.sub(r"\1-\2", text).lower()).strip("-")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def semantic_name(node_path: NodePath, context: str | None = None) -> str:
    """
    Names a slot after its property, prefixed by the name of the node holding it.

    Root properties and nodes without a usable name get the bare property term.
    """
    term = PROPERTY_TERMS.get(node_path.prop, _kebab(node_path.prop))
    prefix = _kebab(context) if context and node_path.indices else ""
    if prefix and prefix != term:
        return f"{prefix}-{term}"
    return term


def semantic_names(component: ComponentDefinition) -> dict[str, str]:
    """Semantic name of every slot of a component, suffixed -2, -3... on collisions."""
    names: dict[str, str] = {}
    taken: dict[str, int] = {}
    for slot_id, slot in component.slots.items():
        node = node_at(component.template, slot.node_path.indices)
        context = node.name if node is not None and isinstance(node.name, str) else None
        base = semantic_name(slot.node_path, context)
        taken[base] = taken.get(base, 0) + 1
        names[slot_id] = base if taken[base] == 1 else f"{base}-{taken[base]}"
    return names


def _paint_color(paints: Any) -> str | None:
    if isinstance(paints, Sequence) and not isinstance(paints, str) and paints:
        first = paints[0]
        if isinstance(first, Mapping) and isinstance(first.get("color"), str):
            return first["color"]
    return None


def code_hint(slot: SlotDefinition) -> CodeHint:
    default = slot.default_value.value
    match slot.value_type:
        case ValueType.TEXT:
            return CodeHint("string", "children", example=default or "Text")
        case ValueType.FILLS:
            return CodeHint(
                "string",
                "style.backgroundColor",
                "background-color",
                _paint_color(default) or "#FFFFFF",
                True,
            )
        case ValueType.STROKES:
            return CodeHint(
                "string",
                "style.borderColor",
                "border-color",
                _paint_color(default) or "#000000",
                True,
            )
        case ValueType.OPACITY:
            return CodeHint(
                "number", "style.opacity", "opacity", 1 if default is None else default, True
            )
        case ValueType.VISIBILITY:
            return CodeHint("boolean", "hidden", example=True if default is None else default)
        case ValueType.LAYOUT:
            return CodeHint("CSSProperties", "style", example="{ width, height, x, y }", is_style_prop=True)
        case _:
            return CodeHint("unknown", _camel(slot.node_path.prop))


__all__ = [
    "PROPERTY_TERMS",
    "CodeHint",
    "semantic_name",
    "semantic_names",
    "code_hint",
]
