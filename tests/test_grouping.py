"""Tests for design_compression/grouping.py"""

from design_compression.grouping import (
    group_instances,
    group_placed,
    instances_within,
    partition_groups,
    strip_instances,
)
from design_compression.nodes import DesignNode


def instance(node_id: str, component_id: str, *kids: DesignNode) -> DesignNode:
    return DesignNode(
        id=node_id,
        name=component_id,
        type="INSTANCE",
        component_id=component_id,
        children=tuple(kids),
    )


def frame(node_id: str, *kids: DesignNode) -> DesignNode:
    return DesignNode(id=node_id, name=node_id, type="FRAME", children=tuple(kids))


def forest() -> tuple[DesignNode, ...]:
    return (
        instance("a1", "A"),
        frame(
            "page",
            instance("b1", "B", instance("a-nested", "A")),
            frame("row", instance("a2", "A"), instance("c1", "C")),
        ),
        instance("b2", "B"),
    )


class TestGroupInstances:
    def test_groups_by_component(self):
        groups = group_instances(forest())
        assert list(groups) == ["A", "B", "C"]
        assert groups["A"].instance_ids == ("a1", "a2")
        assert groups["B"].instance_ids == ("b1", "b2")
        assert len(groups["C"]) == 1

    def test_placements(self):
        groups = group_instances(forest())
        assert groups["A"].placements == ((0,), (1, 1, 0))
        assert groups["B"].placements == ((1, 0), (2,))
        assert groups["C"].placements == ((1, 1, 1),)

    def test_nested_instances_stay_inside_their_parent(self):
        groups = group_instances(forest())
        assert "a-nested" not in groups["A"].instance_ids

    def test_empty_component_id_is_not_an_instance(self):
        node = DesignNode(id="x", name="x", type="FRAME", component_id="")
        assert group_instances((node,)) == {}

    def test_instances_within(self):
        nodes = forest()
        page = nodes[1]
        found = instances_within((1, 0), page.children[0])
        assert [(path, node.id) for path, node in found] == [((1, 0, 0), "a-nested")]
        assert instances_within((0,), nodes[0]) == []

    def test_instances_within_stops_at_instances(self):
        outer = frame("wrap", instance("b9", "B", instance("a9", "A")))
        found = instances_within((4,), instance("x", "X", outer))
        assert [(path, node.id) for path, node in found] == [((4, 0, 0), "b9")]

    def test_group_placed_sorts_members(self):
        groups = group_placed(
            [((3, 0), instance("a3", "A")), ((1,), instance("b1", "B")), ((0, 2), instance("a0", "A"))]
        )
        assert list(groups) == ["A", "B"]
        assert groups["A"].instance_ids == ("a0", "a3")
        assert groups["A"].placements == ((0, 2), (3, 0))

    def test_partition(self):
        compressible, singletons = partition_groups(group_instances(forest()), 2)
        assert list(compressible) == ["A", "B"]
        assert list(singletons) == ["C"]


class TestStripInstances:
    def test_no_placements(self):
        nodes = forest()
        assert strip_instances(nodes, []) == nodes

    def test_removes_top_level_and_nested(self):
        nodes = forest()
        stripped = strip_instances(nodes, [(0,), (1, 1, 0), (2,)])
        assert [n.id for n in stripped] == ["page"]
        page = stripped[0]
        assert [n.id for n in page.children] == ["b1", "row"]
        assert [n.id for n in page.children[1].children] == ["c1"]

    def test_untouched_subtrees_are_reused(self):
        nodes = forest()
        stripped = strip_instances(nodes, [(0,)])
        assert stripped[0] is nodes[1]
        assert stripped[1] is nodes[2]

    def test_deep_removal(self):
        node = instance("deep", "D")
        for i in range(5000):
            node = frame(f"f{i}", node)
        stripped = strip_instances((node,), [(0,) + (0,) * 5000])
        bottom = stripped[0]
        while bottom.children:
            bottom = bottom.children[0]
        assert bottom.id == "f0"
        assert bottom.children == ()
