"""
Tree traversal utilities for design trees.

All traversals use explicit stacks or queues: design files nest frames and
groups arbitrarily deep and must not hit the interpreter recursion limit.

Generic:
    depth_first_preorder(after, root)            - DFS yielding parent before children
    postorder_map(root, after, reconstruct)      - Rebuild a tree bottom-up

Design nodes:
    children(node)          - Direct children of a DesignNode/TemplateNode
    indexed_preorder(nodes) - (child-index path, node) pairs over a forest
    count_nodes(nodes)      - Number of nodes in a forest
    depth(nodes)            - Maximum depth of a forest (a root alone = 1)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Callable, Iterator, TypeAlias, TypeVar

from design_compression.nodes import DesignNode, TemplateNode

T = TypeVar("T")
U = TypeVar("U")

Indices: TypeAlias = tuple[int, ...]


def depth_first_preorder(
    after: Callable[[T], Iterable[T]], root: T | None
) -> Iterator[T]:
    """Yields the current object before its children, left to right."""
    if root is None:
        return
    stack = [root]
    while stack:
        current = stack.pop()
        yield current
        # Push in reverse to process left-to-right
        stack.extend(reversed(tuple(after(current))))


def postorder_map(
    root: T,
    after: Callable[[T], Iterable[T]],
    reconstruct: Callable[[T, list[U]], U],
) -> U:
    """
    Rebuilds a tree bottom-up.

    Args:
        root: The root object.
        after: Returns the children of an object.
        reconstruct: Builds the new object from the old one and its already
            rebuilt children, in order.

    Returns:
        The rebuilt root.
    """
    stack: list[tuple[T, tuple[T, ...] | None]] = [(root, None)]
    done: list[U] = []
    while stack:
        current, kids = stack.pop()
        if kids is None:
            kids = tuple(after(current))
            stack.append((current, kids))
            stack.extend((kid, None) for kid in reversed(kids))
            continue
        split = len(done) - len(kids)
        rebuilt = done[split:]
        del done[split:]
        done.append(reconstruct(current, rebuilt))
    return done[0]


def children(node: DesignNode | TemplateNode) -> tuple:
    """Direct children, empty for leaves."""
    return node.children or ()


def indexed_preorder(
    nodes: Sequence[DesignNode],
    descend: Callable[[DesignNode], bool] | None = None,
) -> Iterator[tuple[Indices, DesignNode]]:
    """
    DFS preorder over a forest, yielding each node with its child-index path.

    The path of a top-level node is (i,). When `descend` returns False for a
    node, that node is yielded but its subtree is skipped.
    """
    stack: list[tuple[Indices, DesignNode]] = [
        ((i,), node) for i, node in reversed(tuple(enumerate(nodes)))
    ]
    while stack:
        path, node = stack.pop()
        yield path, node
        if descend is not None and not descend(node):
            continue
        kids = children(node)
        stack.extend((path + (i,), kids[i]) for i in reversed(range(len(kids))))


def count_nodes(nodes: Sequence[DesignNode]) -> int:
    return sum(1 for _ in indexed_preorder(nodes))


def depth(nodes: Sequence[DesignNode]) -> int:
    """Returns the maximum depth of a forest (roots only = 1, empty = 0)."""
    current_depth = 0
    layer: tuple[DesignNode, ...] = tuple(nodes)
    while layer:
        current_depth += 1
        layer = tuple(child for node in layer for child in children(node))
    return current_depth


__all__ = [
    "Indices",
    "depth_first_preorder",
    "postorder_map",
    "children",
    "indexed_preorder",
    "count_nodes",
    "depth",
]
