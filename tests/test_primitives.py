"""Tests for design_compression/primitives.py and design_compression/paths.py"""

import pytest

from design_compression.nodes import DesignNode, property_type, slot_fields
from design_compression.paths import NodePath, node_at, parse_path, value_at
from design_compression.primitives import (
    FillsValue,
    Layout,
    LayoutValue,
    PropertyValue,
    TextValue,
    ValueType,
    VisibilityValue,
    slot_value,
    values_equal,
)


def card() -> DesignNode:
    title = DesignNode(id="title", name="Title", type="TEXT", text="Hello")
    body = DesignNode(id="body", name="Body", type="TEXT", text="World")
    column = DesignNode(id="column", name="Column", type="FRAME", children=(title, body))
    return DesignNode(
        id="card",
        name="Card",
        type="INSTANCE",
        children=(column,),
        fills=({"type": "SOLID", "color": "#FFFFFF"},),
        component_id="c1",
    )


class TestValuesEqual:
    def test_scalars(self):
        assert values_equal("a", "a")
        assert not values_equal("a", "b")
        assert values_equal(1.0, 1.0)
        assert not values_equal(1, 1.0)
        assert not values_equal({"r": 8}, {"r": 8.0})
        assert values_equal(None, None)
        assert not values_equal(None, 0)

    def test_bool_is_not_a_number(self):
        assert not values_equal(True, 1)
        assert not values_equal(0, False)
        assert values_equal(True, True)

    def test_sequences(self):
        assert values_equal((1, 2), [1, 2])
        assert not values_equal((1, 2), (2, 1))
        assert not values_equal((1,), (1, 1))
        assert not values_equal("ab", ("a", "b"))

    def test_mappings(self):
        assert values_equal({"a": 1, "b": [1, 2]}, {"b": (1, 2), "a": 1})
        assert not values_equal({"a": 1}, {"a": 1, "b": None})
        assert not values_equal({"a": {"c": 1}}, {"a": {"c": 2}})

    def test_layouts(self):
        assert values_equal(Layout(0, 0, 10, 10), Layout(0.0, 0.0, 10.0, 10.0))
        assert not values_equal(Layout(0, 0, 10, 10), Layout(0, 1, 10, 10))

    def test_deeply_nested_values(self):
        left: list = []
        right: list = []
        for _ in range(5000):
            left = [left]
            right = [right]
        assert values_equal(left, right)


class TestSlotValues:
    def test_variant_by_tag(self):
        assert slot_value(ValueType.TEXT, "OK") == TextValue("OK")
        assert slot_value("fills", ()) == FillsValue(())
        assert slot_value(ValueType.VISIBILITY, False) == VisibilityValue(False)
        assert slot_value(ValueType.LAYOUT, None) == LayoutValue(None)

    def test_tag_is_exposed(self):
        assert TextValue("x").value_type is ValueType.TEXT
        assert PropertyValue(3).value_type is ValueType.PROPERTY

    def test_unknown_tag(self):
        with pytest.raises(ValueError):
            slot_value("color", "#000")

    def test_property_tags(self):
        assert property_type("visible") is ValueType.VISIBILITY
        assert property_type("corner_radius") is ValueType.PROPERTY
        assert property_type("id") is ValueType.PROPERTY

    def test_root_identity_is_not_slot_eligible(self):
        for name in ("id", "name", "visible", "layout", "component_id"):
            assert name not in slot_fields(is_root=True)
            assert name in slot_fields(is_root=False)


class TestNodePath:
    def test_string_form(self):
        assert str(NodePath((), "fills")) == "fills"
        assert str(NodePath((0, 2), "text")) == "children[0].children[2].text"

    def test_parse(self):
        assert parse_path("fills") == NodePath((), "fills")
        assert parse_path("children[1].children[12].id") == NodePath((1, 12), "id")

    @pytest.mark.parametrize(
        "text", ["", "children[0]", "child[0].text", "children[x].text", "children[0]."]
    )
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            parse_path(text)

    def test_resolve(self):
        root = card()
        assert node_at(root, ()) is root
        assert node_at(root, (0, 1)).id == "body"
        assert node_at(root, (0, 2)) is None
        assert node_at(root, (0, 0, 0)) is None
        assert value_at(root, parse_path("children[0].children[0].text")) == "Hello"
        assert value_at(root, NodePath((3,), "text")) is None

    def test_depth(self):
        assert NodePath((), "text").depth == 0
        assert NodePath((0, 0, 1), "text").depth == 3
