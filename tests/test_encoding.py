"""Tests for design_compression/encoding.py"""

from design_compression.config import CompressionOptions
from design_compression.design import CompressedInstance
from design_compression.encoding import assign_grid, encode_forest, encode_group, encode_instance
from design_compression.grid import GridLayout, GridPosition
from design_compression.grouping import ComponentGroup, group_instances
from design_compression.nodes import DesignNode
from design_compression.primitives import FillsValue, Layout, TextValue

TEXT_STYLE = {"fontFamily": "Inter", "fontSize": 14, "fontWeight": 600, "lineHeight": 20}
SHADOW = (
    {"type": "DROP_SHADOW", "color": "#00000040", "offset": {"x": 0, "y": 2}, "radius": 4},
)
WHITE = ({"type": "SOLID", "color": "#FFFFFF"},)


def button(node_id: str, label: str = "OK", color: str = "#0D6EFD", x: float = 0.0, y: float = 0.0):
    icon = DesignNode(
        id="icon",
        name="Icon",
        type="VECTOR",
        strokes=WHITE,
        stroke_weight=1.5,
        layout=Layout(12.0, 12.0, 16.0, 16.0),
    )
    text = DesignNode(
        id="label",
        name="Label",
        type="TEXT",
        text=label,
        text_style=TEXT_STYLE,
        fills=WHITE,
        layout=Layout(36.0, 10.0, 52.0, 20.0),
    )
    return DesignNode(
        id=node_id,
        name="Button",
        type="INSTANCE",
        component_id="button",
        fills=({"type": "SOLID", "color": color},),
        effects=SHADOW,
        corner_radius=8,
        layout=Layout(x, y, 100.0, 40.0),
        children=(icon, text),
    )


def only_group(nodes):
    (group,) = group_instances(nodes).values()
    return group


class TestEncodeGroup:
    def test_encodes_varying_group(self):
        nodes = (button("b1", "OK"), button("b2", "Cancel", "#DC3545"), button("b3", "Save"))
        encoding = encode_group(only_group(nodes))
        assert encoding is not None
        component = encoding.component
        assert component.id == "button"
        assert component.name == "Button"
        assert component.type == "INSTANCE"
        assert component.slot_ids == ("slot_0", "slot_1")
        assert encoding.compressed_size < encoding.literal_size
        assert encoding.savings > 0.1
        assert [i.placement for i in encoding.instances] == [(0,), (1,), (2,)]

    def test_structural_mismatch_stays_literal(self):
        odd = DesignNode(id="b3", name="Button", type="INSTANCE", component_id="button")
        assert encode_group(only_group((button("b1"), button("b2"), odd))) is None

    def test_duplicate_ids_stay_literal(self):
        assert encode_group(only_group((button("b1"), button("b1", "Other")))) is None

    def test_insufficient_savings(self):
        nodes = tuple(
            DesignNode(id=f"d{i}", name="Dot", type="INSTANCE", component_id="dot")
            for i in range(2)
        )
        assert encode_group(only_group(nodes)) is None

    def test_zero_savings_margin_accepts_smaller_encoding(self):
        nodes = (button("b1"), button("b2"))
        assert encode_group(only_group(nodes), CompressionOptions(min_savings=0.0)) is not None

    def test_without_order(self):
        nodes = (button("b1"), button("b2"))
        encoding = encode_group(only_group(nodes), CompressionOptions(preserve_order=False))
        assert all(instance.placement is None for instance in encoding.instances)

    def test_grid_extraction(self):
        nodes = tuple(button(f"b{i}", x=i * 110.0) for i in range(4))
        encoding = encode_group(only_group(nodes), grid_id="grid_3")
        assert encoding.grid is not None
        assert encoding.grid.id == "grid_3"
        assert all(instance.grid_id == "grid_3" for instance in encoding.instances)
        assert all(instance.layout_data is None for instance in encoding.instances)

        plain = encode_group(only_group(nodes), CompressionOptions(extract_grids=False))
        assert plain.grid is None
        assert plain.instances[3].layout_data == Layout(330.0, 0.0, 100.0, 40.0)

    def test_depth_does_not_change_the_benefit_check(self):
        nodes = (button("b1", "OK"), button("b2", "Cancel", "#DC3545"), button("b3", "Save"))
        shallow = ComponentGroup("button", nodes, ((0,), (1,), (2,)))
        deep = ComponentGroup("button", nodes, tuple((0,) * 500 + (k,) for k in range(3)))
        shallow_encoding = encode_group(shallow)
        deep_encoding = encode_group(deep)
        assert deep_encoding is not None
        assert deep_encoding.compressed_size == shallow_encoding.compressed_size
        assert deep_encoding.literal_size == shallow_encoding.literal_size
        assert deep_encoding.instances[2].placement == (0,) * 500 + (2,)


def card(node_id: str, *kids: DesignNode) -> DesignNode:
    return DesignNode(
        id=node_id, name="Card", type="INSTANCE", component_id="card", children=kids
    )


def row(prefix: str, count: int) -> tuple[DesignNode, ...]:
    labels = ["OK", "Cancel", "Save", "Delete", "Close"]
    return tuple(
        button(f"{prefix}{k}", labels[k], x=k * 110.0) for k in range(count)
    )


class TestEncodeForest:
    def test_top_level_groups(self):
        forest = encode_forest(row("b", 3))
        assert forest.rounds == 1
        assert forest.component_ids == ("button",)
        (group, encoding), = forest.encoded.values()
        assert group.instance_ids == ("b0", "b1", "b2")
        assert encoding.component.id == "button"
        assert forest.literal == {}

    def test_looks_inside_literal_instances(self):
        forest = encode_forest((card("c1", *row("b", 4)),))
        assert forest.rounds == 2
        assert forest.component_ids == ("card", "button")
        assert list(forest.encoded) == ["button"]
        group, _ = forest.encoded["button"]
        assert group.placements == ((0, 0), (0, 1), (0, 2), (0, 3))
        assert forest.literal["card"].instance_ids == ("c1",)
        assert forest.extracted == frozenset(group.placements)

    def test_opened_instances_stay_literal(self):
        solo = button("solo", "Solo", y=500.0)
        forest = encode_forest((solo, card("c1", *row("b", 4))))
        group, _ = forest.encoded["button"]
        assert group.instance_ids == ("b0", "b1", "b2", "b3")
        assert forest.literal["button"].instance_ids == ("solo",)
        assert forest.literal["card"].instance_ids == ("c1",)

    def test_later_rounds_merge_into_templated_groups(self):
        nodes = row("b", 3) + (card("c1", *row("inner", 2)),)
        forest = encode_forest(nodes)
        group, encoding = forest.encoded["button"]
        assert group.placements == ((0,), (1,), (2,), (3, 0), (3, 1))
        assert [i.id for i in encoding.instances] == ["b0", "b1", "b2", "inner0", "inner1"]

    def test_templated_instances_stay_opaque(self):
        inner = row("b", 3)
        forest = encode_forest((card("c1", *inner), card("c2", *inner)))
        assert forest.rounds == 1
        assert list(forest.encoded) == ["card"]
        assert "button" not in forest.component_ids

    def test_grids_are_numbered_in_component_order(self):
        nodes = (card("c1", *row("b", 4)),) + tuple(
            DesignNode(
                id=f"t{k}",
                name="Tile",
                type="INSTANCE",
                component_id="tile",
                fills=WHITE,
                effects=SHADOW,
                layout=Layout(0.0, k * 60.0, 200.0, 50.0),
                children=(button(f"tb{k}", x=12.0, y=k * 60.0 + 5.0),),
            )
            for k in range(4)
        )
        forest = encode_forest(nodes)
        grid_ids = [
            encoding.grid.id for _, encoding in forest.encoded.values() if encoding.grid
        ]
        assert grid_ids
        assert grid_ids == [f"grid_{k}" for k in range(len(grid_ids))]
        for _, encoding in forest.encoded.values():
            if encoding.grid is not None:
                assert all(
                    i.grid_id == encoding.grid.id
                    for i in encoding.instances
                    if i.grid_id is not None
                )


class TestEncodeInstance:
    def component(self):
        nodes = (button("b1", "OK"), button("b2", "Cancel", "#DC3545"), button("b3", "Save"))
        encoding = encode_group(only_group(nodes))
        assert encoding is not None
        return encoding.component

    def test_sparse_overrides(self):
        component = self.component()
        first = encode_instance(button("b1", "OK"), component)
        assert first.overrides == {}
        second = encode_instance(button("b2", "Cancel", "#DC3545"), component)
        assert second.overrides == {
            "slot_0": FillsValue(({"type": "SOLID", "color": "#DC3545"},)),
            "slot_1": TextValue("Cancel"),
        }

    def test_dense_overrides(self):
        instance = encode_instance(button("b1", "OK"), self.component(), sparse=False)
        assert instance.overrides["slot_1"] == TextValue("OK")
        assert len(instance.overrides) == 2

    def test_identity(self):
        instance = encode_instance(button("b9", x=5.0), self.component(), placement=(0, 3))
        assert instance.id == "b9"
        assert instance.name == "Button"
        assert instance.component_id == "button"
        assert instance.visible is True
        assert instance.layout_data == Layout(5.0, 0.0, 100.0, 40.0)
        assert instance.placement == (0, 3)


class TestAssignGrid:
    def grid(self):
        return GridLayout(
            id="g",
            columns=3,
            rows=1,
            column_width=100.0,
            row_height=40.0,
            gap_x=10.0,
            positions={f"i{k}": GridPosition(k, 0) for k in range(3)},
        )

    def instances(self, xs):
        return [
            CompressedInstance(
                id=f"i{k}", component_id="c", name="C", layout_data=Layout(x, 0.0, 100.0, 40.0)
            )
            for k, x in enumerate(xs)
        ]

    def test_exact_cells_only(self):
        updated, grid = assign_grid(self.instances([0.0, 110.0, 221.0]), self.grid())
        assert [i.grid_id for i in updated] == ["g", "g", None]
        assert updated[1].position == GridPosition(1, 0)
        assert updated[2].layout_data == Layout(221.0, 0.0, 100.0, 40.0)
        assert list(grid.positions) == ["i0", "i1"]

    def test_single_user_drops_grid(self):
        updated, grid = assign_grid(self.instances([0.0, 111.0, 221.0]), self.grid())
        assert grid is None
        assert all(i.grid_id is None for i in updated)
