"""
Structural equivalence of two design forests.

Used as the acceptance check of the compress/expand round trip. By default
only the shape is compared (id, name, type and children); the visual
properties are compared on request.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import fields

from design_compression.nodes import DesignNode
from design_compression.primitives import values_equal
from design_compression.traversal import Indices, children

_SHAPE_FIELDS = ("id", "name", "type")
_PROPERTY_FIELDS = tuple(
    f.name for f in fields(DesignNode) if f.name not in (*_SHAPE_FIELDS, "children")
)


def _location(path: Indices) -> str:
    return "nodes" + "".join(f"[{i}]" for i in path)


def find_mismatch(
    original: Sequence[DesignNode],
    expanded: Sequence[DesignNode],
    compare_properties: bool = False,
) -> str | None:
    """
    Describes the first difference between two forests, in preorder.

    Returns:
        None when the forests are equivalent, otherwise the location of the
        first differing node and what differs.
    """
    if len(original) != len(expanded):
        return f"nodes: {len(expanded)} nodes instead of {len(original)}"

    checked = _SHAPE_FIELDS + (_PROPERTY_FIELDS if compare_properties else ())
    stack: list[tuple[Indices, DesignNode, DesignNode]] = [
        ((i,), a, b) for i, (a, b) in reversed(tuple(enumerate(zip(original, expanded))))
    ]
    while stack:
        path, left, right = stack.pop()
        for name in checked:
            left_value = getattr(left, name)
            right_value = getattr(right, name)
            if not values_equal(left_value, right_value):
                return f"{_location(path)}.{name}: {right_value!r} instead of {left_value!r}"
        if (left.children is None) != (right.children is None):
            return f"{_location(path)}: child list present on one side only"
        left_kids = children(left)
        right_kids = children(right)
        if len(left_kids) != len(right_kids):
            return (
                f"{_location(path)}: {len(right_kids)} children "
                f"instead of {len(left_kids)}"
            )
        stack.extend(
            (path + (i,), left_kids[i], right_kids[i])
            for i in reversed(range(len(left_kids)))
        )
    return None


def validate_expansion(
    original: Sequence[DesignNode],
    expanded: Sequence[DesignNode],
    compare_properties: bool = False,
) -> bool:
    """True if both forests have the same shape (and properties, on request)."""
    return find_mismatch(original, expanded, compare_properties) is None


__all__ = [
    "find_mismatch",
    "validate_expansion",
]
