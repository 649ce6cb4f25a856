"""
Node types of the design tree.

Hierarchy:
    DesignNode    - Normalized node produced by the extraction layer
    TemplateNode  - Same shape, any property may be a SlotReference
    Design        - A named forest of DesignNodes with its style table

Property tables:
    PROPERTY_TYPES      - Visual property name -> ValueType tag
    ROOT_SLOT_FIELDS    - Properties of an instance root that may become slots
    NESTED_SLOT_FIELDS  - Properties of a descendant that may become slots
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Iterator

from design_compression.primitives import Layout, SlotReference, ValueType


@dataclass(frozen=True)
class DesignNode:
    """
    Uniform unit the engine operates on.

    `children` is None for leaves that cannot hold children and a (possibly
    empty) tuple otherwise; the two are kept distinct.
    """

    id: str
    name: str
    type: str
    visible: bool = True
    children: tuple[DesignNode, ...] | None = None
    text: str | None = None
    text_style: Mapping[str, Any] | None = None
    fills: tuple[Any, ...] | None = None
    strokes: tuple[Any, ...] | None = None
    stroke_weight: Any = None
    effects: tuple[Any, ...] | None = None
    opacity: float | None = None
    corner_radius: Any = None
    layout: Layout | None = None
    component_id: str | None = None
    component_properties: Mapping[str, Any] | None = None

    @property
    def is_instance(self) -> bool:
        return bool(self.component_id)

    def __str__(self) -> str:
        count = len(self.children) if self.children is not None else 0
        return f"{self.type}({self.id}, {self.name!r}, children={count})"


@dataclass(frozen=True)
class TemplateNode:
    """Canonical shape of a component; slotted properties hold SlotReferences."""

    id: str | SlotReference
    name: str | SlotReference
    type: str
    visible: bool | SlotReference = True
    children: tuple[TemplateNode, ...] | None = None
    text: str | SlotReference | None = None
    text_style: Mapping[str, Any] | SlotReference | None = None
    fills: tuple[Any, ...] | SlotReference | None = None
    strokes: tuple[Any, ...] | SlotReference | None = None
    stroke_weight: Any = None
    effects: tuple[Any, ...] | SlotReference | None = None
    opacity: float | SlotReference | None = None
    corner_radius: Any = None
    layout: Layout | SlotReference | None = None
    component_id: str | SlotReference | None = None
    component_properties: Mapping[str, Any] | SlotReference | None = None

    def slot_references(self) -> Iterator[tuple[str, SlotReference]]:
        """Yields (field name, reference) for the slotted fields of this node only."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, SlotReference):
                yield f.name, value


@dataclass(frozen=True)
class Design:
    """A named forest as produced by the extraction layer."""

    name: str
    nodes: tuple[DesignNode, ...] = field(default_factory=tuple)
    global_vars: Mapping[str, Any] = field(default_factory=lambda: {"styles": {}})


PROPERTY_TYPES: dict[str, ValueType] = {
    "visible": ValueType.VISIBILITY,
    "text": ValueType.TEXT,
    "text_style": ValueType.PROPERTY,
    "fills": ValueType.FILLS,
    "strokes": ValueType.STROKES,
    "stroke_weight": ValueType.PROPERTY,
    "effects": ValueType.PROPERTY,
    "opacity": ValueType.OPACITY,
    "corner_radius": ValueType.PROPERTY,
    "layout": ValueType.LAYOUT,
    "component_id": ValueType.PROPERTY,
    "component_properties": ValueType.PROPERTY,
}

# The compressed instance itself carries the root identity and geometry
ROOT_IDENTITY_FIELDS = ("id", "name", "visible", "layout", "component_id")

ROOT_SLOT_FIELDS: tuple[str, ...] = tuple(
    name for name in PROPERTY_TYPES if name not in ROOT_IDENTITY_FIELDS
)

NESTED_SLOT_FIELDS: tuple[str, ...] = ("id", "name", *PROPERTY_TYPES)


def property_type(name: str) -> ValueType:
    """Tag of a slot-eligible field; identity fields are plain properties."""
    return PROPERTY_TYPES.get(name, ValueType.PROPERTY)


def slot_fields(is_root: bool) -> tuple[str, ...]:
    return ROOT_SLOT_FIELDS if is_root else NESTED_SLOT_FIELDS


__all__ = [
    "DesignNode",
    "TemplateNode",
    "Design",
    "PROPERTY_TYPES",
    "ROOT_IDENTITY_FIELDS",
    "ROOT_SLOT_FIELDS",
    "NESTED_SLOT_FIELDS",
    "property_type",
    "slot_fields",
]
