"""
Primitive value types for the design compression engine.

This module defines:
- Layout, the geometry box carried by nodes and compressed instances
- ValueType, the tag attached to every slot
- The SlotValue variants (TextValue, FillsValue, ...), one per tag
- SlotReference, the placeholder used inside templates
- values_equal, the strict deep equality used to decide literal vs slot
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar


@dataclass(frozen=True)
class Layout:
    """Absolute position and size of a node."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.width}x{self.height})"


class ValueType(StrEnum):
    """Tag describing what kind of property a slot holds."""

    TEXT = "text"
    FILLS = "fills"
    STROKES = "strokes"
    OPACITY = "opacity"
    VISIBILITY = "visibility"
    LAYOUT = "layout"
    PROPERTY = "property"


@dataclass(frozen=True)
class SlotValue(ABC):
    """
    Base class of the tagged slot values.

    `value` is the raw property value; None means the property is absent on
    that instance.
    """

    value: Any
    value_type: ClassVar[ValueType]

    def __str__(self) -> str:
        return f"{self.value_type}({self.value!r})"


@dataclass(frozen=True)
class TextValue(SlotValue):
    """Text content of a text node."""

    value: str | None
    value_type: ClassVar[ValueType] = ValueType.TEXT


@dataclass(frozen=True)
class FillsValue(SlotValue):
    """Ordered fill paints."""

    value: tuple | None
    value_type: ClassVar[ValueType] = ValueType.FILLS


@dataclass(frozen=True)
class StrokesValue(SlotValue):
    """Ordered stroke paints."""

    value: tuple | None
    value_type: ClassVar[ValueType] = ValueType.STROKES


@dataclass(frozen=True)
class OpacityValue(SlotValue):
    value: float | None
    value_type: ClassVar[ValueType] = ValueType.OPACITY


@dataclass(frozen=True)
class VisibilityValue(SlotValue):
    value: bool | None
    value_type: ClassVar[ValueType] = ValueType.VISIBILITY


@dataclass(frozen=True)
class LayoutValue(SlotValue):
    value: Layout | None
    value_type: ClassVar[ValueType] = ValueType.LAYOUT


@dataclass(frozen=True)
class PropertyValue(SlotValue):
    """Any other scalar or structured visual property."""

    value: Any
    value_type: ClassVar[ValueType] = ValueType.PROPERTY


SLOT_VALUE_CLASSES: dict[ValueType, type[SlotValue]] = {
    ValueType.TEXT: TextValue,
    ValueType.FILLS: FillsValue,
    ValueType.STROKES: StrokesValue,
    ValueType.OPACITY: OpacityValue,
    ValueType.VISIBILITY: VisibilityValue,
    ValueType.LAYOUT: LayoutValue,
    ValueType.PROPERTY: PropertyValue,
}


def slot_value(value_type: ValueType | str, raw: Any) -> SlotValue:
    """Wraps a raw property value into the variant named by its tag."""
    return SLOT_VALUE_CLASSES[ValueType(value_type)](raw)


@dataclass(frozen=True)
class SlotReference:
    """Placeholder for a template property whose value varies per instance."""

    slot_id: str

    def __str__(self) -> str:
        return f"${{{self.slot_id}}}"


def values_equal(a: Any, b: Any) -> bool:
    """
    Strict deep equality between raw property values.

    Booleans never equal numbers and ints never equal floats, so 1 and 1.0
    end up in a slot and come back with their JSON spelling. Sequences (list
    or tuple) and mappings are compared element-wise; Layout compares its
    coordinates by value.
    """
    stack = [(a, b)]
    while stack:
        left, right = stack.pop()
        if isinstance(left, bool) or isinstance(right, bool):
            if not (isinstance(left, bool) and isinstance(right, bool)):
                return False
            if left != right:
                return False
            continue
        match left:
            case None:
                if right is not None:
                    return False
            case str():
                if not isinstance(right, str) or left != right:
                    return False
            case int() | float():
                if type(left) is not type(right) or left != right:
                    return False
            case Layout():
                if not isinstance(right, Layout) or left != right:
                    return False
            case Mapping():
                if not isinstance(right, Mapping) or left.keys() != right.keys():
                    return False
                stack.extend((left[key], right[key]) for key in left)
            case Sequence():
                if (
                    not isinstance(right, Sequence)
                    or isinstance(right, str)
                    or len(left) != len(right)
                ):
                    return False
                stack.extend(zip(left, right))
            case _:
                if left != right:
                    return False
    return True


__all__ = [
    "Layout",
    "ValueType",
    "SlotValue",
    "TextValue",
    "FillsValue",
    "StrokesValue",
    "OpacityValue",
    "VisibilityValue",
    "LayoutValue",
    "PropertyValue",
    "SLOT_VALUE_CLASSES",
    "slot_value",
    "SlotReference",
    "values_equal",
]
