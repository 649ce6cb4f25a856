"""
Stable addressing of properties inside a component subtree.

A NodePath is the child-index sequence from the instance root followed by a
property name. Its string form uses bracket notation:

    fills                      -> property of the root
    children[0].text           -> property of the first child
    children[1].children[2].id -> property of a grandchild
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from design_compression.nodes import DesignNode, TemplateNode

_CHILD_STEP = re.compile(r"children\[(\d+)\]")


@dataclass(frozen=True, order=True)
class NodePath:
    """Locator of a property: child indices from the root, then the field name."""

    indices: tuple[int, ...]
    prop: str

    def __str__(self) -> str:
        steps = [f"children[{i}]" for i in self.indices]
        steps.append(self.prop)
        return ".".join(steps)

    @property
    def depth(self) -> int:
        return len(self.indices)


def parse_path(text: str) -> NodePath:
    """
    Parses the bracket notation produced by str(NodePath).

    Raises:
        ValueError: If a step is not of the form children[<int>] or the
            property name is missing.
    """
    *steps, prop = text.split(".")
    if not prop or prop.startswith("children"):
        raise ValueError(f"Path {text!r} does not end with a property name")
    indices = []
    for step in steps:
        match = _CHILD_STEP.fullmatch(step)
        if match is None:
            raise ValueError(f"Invalid step {step!r} in path {text!r}")
        indices.append(int(match.group(1)))
    return NodePath(tuple(indices), prop)


def node_at(
    root: DesignNode | TemplateNode, indices: tuple[int, ...]
) -> DesignNode | TemplateNode | None:
    """Follows child indices from root; None if the path leaves the tree."""
    current = root
    for index in indices:
        kids = current.children or ()
        if not 0 <= index < len(kids):
            return None
        current = kids[index]
    return current


def value_at(root: DesignNode | TemplateNode, path: NodePath) -> Any:
    """Reads the property addressed by path, None if it does not exist."""
    node = node_at(root, path.indices)
    if node is None:
        return None
    return getattr(node, path.prop, None)


__all__ = [
    "NodePath",
    "parse_path",
    "node_at",
    "value_at",
]
