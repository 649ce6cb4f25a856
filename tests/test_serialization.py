"""Tests for design_compression/serialization.py"""

import json

import pytest

from design_compression.compression import compress_design
from design_compression.errors import MalformedDesignError
from design_compression.nodes import Design, DesignNode, TemplateNode
from design_compression.primitives import (
    FillsValue,
    Layout,
    LayoutValue,
    PropertyValue,
    SlotReference,
    TextValue,
)
from design_compression.serialization import (
    compressed_from_dict,
    compressed_to_dict,
    design_from_dict,
    design_to_dict,
    dumps,
    estimate_size,
    freeze,
    loads,
    node_from_dict,
    node_to_dict,
    slot_value_from_json,
    template_from_dict,
    template_to_dict,
)


def button(node_id: str, label: str, color: str, x: float) -> DesignNode:
    return DesignNode(
        id=node_id,
        name="Button",
        type="INSTANCE",
        component_id="button",
        corner_radius=6,
        text_style={"fontFamily": "Inter", "fontSize": 14},
        fills=({"type": "SOLID", "color": color},),
        effects=({"type": "DROP_SHADOW", "offset": {"x": 0, "y": 2}, "radius": 4},),
        layout=Layout(x, 0.0, 120.0, 40.0),
        children=(
            DesignNode(id="label", name="Label", type="TEXT", text=label, opacity=0.9),
            DesignNode(id="icon", name="Icon", type="VECTOR", strokes=({"color": "#000"},), stroke_weight=2),
        ),
    )


def buttons_design() -> Design:
    colors = ["#111", "#222", "#111", "#111", "#222", "#111"]
    nodes = tuple(
        button(f"b{i}", f"Label {i}", color, i * 130.0) for i, color in enumerate(colors)
    )
    return Design("Buttons", nodes, {"styles": {"fill_1": {"color": "#111"}}})


class TestNodes:
    def test_wire_keys(self):
        data = node_to_dict(button("b1", "OK", "#fff", 0.0))
        assert data["componentId"] == "button"
        assert data["cornerRadius"] == 6
        assert data["textStyle"] == {"fontFamily": "Inter", "fontSize": 14}
        assert data["layout"] == {"x": 0.0, "y": 0.0, "width": 120.0, "height": 40.0}
        assert data["children"][1]["strokeWeight"] == 2
        assert "text" not in data
        assert "children" not in data["children"][0]

    def test_round_trip(self):
        node = button("b1", "OK", "#fff", 0.0)
        assert node_from_dict(json.loads(json.dumps(node_to_dict(node)))) == node

    def test_empty_children_are_kept(self):
        node = DesignNode(id="f", name="F", type="FRAME", children=())
        assert node_to_dict(node)["children"] == []
        assert node_from_dict(node_to_dict(node)).children == ()

    def test_visible_defaults_to_true(self):
        assert node_from_dict({"id": "a", "name": "A", "type": "TEXT"}).visible is True

    def test_missing_key(self):
        with pytest.raises(MalformedDesignError):
            node_from_dict({"id": "a", "type": "TEXT"})

    def test_wrong_shape(self):
        with pytest.raises(MalformedDesignError):
            node_from_dict({"id": "a", "name": "A", "type": "FRAME", "children": "nope"})
        with pytest.raises(ValueError):
            node_from_dict(["not", "a", "node"])

    def test_reused_child_mapping(self):
        label = {"id": "label", "name": "Label", "type": "TEXT", "text": "OK"}
        data = {"id": "row", "name": "Row", "type": "FRAME", "children": [label, label]}
        node = node_from_dict(data)
        first, second = node.children
        assert first == second == DesignNode(id="label", name="Label", type="TEXT", text="OK")

    def test_deep_tree(self):
        node = DesignNode(id="leaf", name="Leaf", type="TEXT")
        for i in range(10_000):
            node = DesignNode(id=f"f{i}", name="F", type="FRAME", children=(node,))
        data = node_to_dict(node)
        rebuilt = node_from_dict(data)
        while rebuilt.children:
            rebuilt = rebuilt.children[0]
        assert rebuilt.id == "leaf"
        assert estimate_size(data) > 10_000


class TestTemplates:
    def test_slot_marker(self):
        template = TemplateNode(
            id="card",
            name="Card",
            type="INSTANCE",
            fills=SlotReference("slot_0"),
            children=(TemplateNode(id="t", name="T", type="TEXT", text=SlotReference("slot_1")),),
        )
        data = template_to_dict(template)
        assert data["fills"] == {"$slot": "slot_0"}
        assert data["children"][0]["text"] == {"$slot": "slot_1"}
        assert template_from_dict(data) == template


class TestSlotValues:
    def test_tag_drives_decoding(self):
        assert slot_value_from_json("text", "OK") == TextValue("OK")
        assert slot_value_from_json("fills", [{"color": "#000"}]) == FillsValue(({"color": "#000"},))
        assert slot_value_from_json("layout", {"x": 1, "y": 2, "width": 3, "height": 4}) == LayoutValue(
            Layout(1, 2, 3, 4)
        )
        assert slot_value_from_json("layout", None) == LayoutValue(None)

    def test_freeze(self):
        assert freeze({"a": [1, [2, 3]]}) == {"a": (1, (2, 3))}


class TestCompressedDesign:
    def test_json_round_trip(self):
        compressed = compress_design(buttons_design()).design
        assert compressed.components
        text = dumps(compressed_to_dict(compressed))
        assert compressed_from_dict(loads(text)) == compressed

    def test_shape(self):
        compressed = compress_design(buttons_design()).design
        data = compressed_to_dict(compressed)
        assert set(data) == {"name", "components", "instances", "nodes", "globalVars", "layouts"}
        component = data["components"]["button"]
        assert set(component) == {"id", "name", "type", "template", "slotIds", "slots"}
        slot = component["slots"][component["slotIds"][0]]
        assert set(slot) == {
            "slotId",
            "nodePath",
            "valueType",
            "defaultValue",
            "variations",
            "instanceCount",
        }
        instance = data["instances"][0]
        assert {"id", "componentId", "name", "visible", "overrides"} <= set(instance)
        assert "layoutData" not in instance or "gridId" not in instance

    def test_hints_are_written_and_ignored_on_decode(self):
        compressed = compress_design(buttons_design()).design
        data = compressed_to_dict(compressed, hints=True)
        slots = data["components"]["button"]["slots"]
        by_path = {slot["nodePath"]: slot for slot in slots.values()}
        assert by_path["fills"]["semanticName"] == "color"
        assert by_path["fills"]["codeHint"] == {
            "tsType": "string",
            "reactProp": "style.backgroundColor",
            "cssProperty": "background-color",
            "example": "#111",
            "isStyleProp": True,
        }
        assert by_path["children[0].text"]["semanticName"] == "label-text"
        assert by_path["children[0].text"]["codeHint"]["reactProp"] == "children"
        assert "semanticName" not in dumps(compressed_to_dict(compressed))
        assert compressed_from_dict(loads(dumps(data))) == compressed

    def test_orphan_overrides_decode_as_properties(self):
        data = {
            "name": "Orphan",
            "instances": [
                {"id": "i1", "componentId": "gone", "name": "I", "visible": True, "overrides": {"slot_0": "x"}}
            ],
        }
        compressed = compressed_from_dict(data)
        assert compressed.instances[0].overrides == {"slot_0": PropertyValue("x")}
        assert compressed.components == {}

    def test_layout_and_grid_are_exclusive(self):
        data = {
            "name": "Broken",
            "instances": [
                {
                    "id": "i1",
                    "componentId": "c",
                    "name": "I",
                    "layoutData": {"x": 0, "y": 0, "width": 1, "height": 1},
                    "gridId": "grid_0",
                    "position": {"column": 0, "row": 0},
                }
            ],
        }
        with pytest.raises(MalformedDesignError):
            compressed_from_dict(data)

    def test_invalid_value_type(self):
        data = {
            "name": "Broken",
            "components": {
                "c": {
                    "id": "c",
                    "name": "C",
                    "type": "INSTANCE",
                    "template": {"id": "c", "name": "C", "type": "INSTANCE"},
                    "slots": {"slot_0": {"nodePath": "text", "valueType": "colour"}},
                }
            },
        }
        with pytest.raises(MalformedDesignError):
            compressed_from_dict(data)


class TestDesign:
    def test_round_trip(self):
        design = buttons_design()
        assert design_from_dict(loads(dumps(design_to_dict(design)))) == design

    def test_missing_nodes(self):
        with pytest.raises(MalformedDesignError):
            design_from_dict({"name": "x"})


class TestText:
    def test_canonical(self):
        assert dumps({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_invalid_json(self):
        with pytest.raises(MalformedDesignError):
            loads("{not json")

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            [],
            {"a": [1, 2.5, None, True], "b": {"c": "é\"q"}},
            [[[]], {"x": {}}],
            "plain",
        ],
    )
    def test_estimate_size(self, payload):
        assert estimate_size(payload) == len(dumps(payload))
