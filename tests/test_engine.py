"""Tests for the composed overview and focus layouts."""

from pathlib import Path

import pytest

from layout_validator import (
    Severity,
    check_anchor_clearance,
    check_rank_monotonicity,
    validate_layout,
)
from schema_layout.layout.engine import compute_focus_layout, compute_overview_layout
from schema_layout.layout.geometry import Position
from schema_layout.schema import load_schema
from schema_layout.schema.geometry import build_node_height_map, build_node_width_map
from schema_layout.schema.loader import parse_schema_json

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"
SAMPLE = EXAMPLES_DIR / "sample_schema.json"


@pytest.fixture
def schema():
    return load_schema(SAMPLE)


def _sizes(schema):
    heights = build_node_height_map(schema)
    widths = build_node_width_map(schema)
    return widths.__getitem__, heights.__getitem__


def _errors(violations):
    return [v for v in violations if v.severity is Severity.ERROR]


# --- overview ---


def test_overview_places_every_object(schema):
    layout = compute_overview_layout(schema)
    assert set(layout.positions) == set(schema.node_ids())
    assert layout.unplaced_child_ids == ["archive.trgLegacyOrders"]


def test_overview_has_no_defects(schema):
    layout = compute_overview_layout(schema)
    get_width, get_height = _sizes(schema)
    violations = validate_layout(layout.positions, get_width, get_height, schema.edges)
    assert not _errors(violations), [v.message for v in violations]


def test_overview_ranks_left_to_right(schema):
    layout = compute_overview_layout(schema)
    ranks = layout.layer_by_node
    assert ranks["hr.Employee"] == ranks["hr.Manager"]
    # Views rank after every object they select from
    assert ranks["sales.vOrderSummary"] > ranks["sales.Order"]
    assert ranks["sales.Order"] > ranks["sales.OrderLine"]
    assert not check_rank_monotonicity(
        layout.positions, schema.dependency_edges(), layout.layer_by_node
    )


def test_overview_triggers_right_of_their_table(schema):
    layout = compute_overview_layout(schema)
    get_width, _ = _sizes(schema)
    anchored = {
        t.id: layout.positions[t.id]
        for t in schema.triggers
        if t.table_id in layout.positions
    }
    parent_of = {t.id: t.table_id for t in schema.triggers}
    assert not check_anchor_clearance(
        anchored, layout.positions, parent_of, get_width, 48.0
    )
    # Stacks start just under the table header
    order = layout.positions["sales.Order"]
    assert layout.positions["sales.trgOrderAudit"].y == order.y + 52.0


def test_overview_auxiliary_objects_below_cluster(schema):
    layout = compute_overview_layout(schema)
    _, get_height = _sizes(schema)
    cluster_ids = schema.table_view_ids() + [
        t.id for t in schema.triggers if t.id not in layout.unplaced_child_ids
    ]
    cluster_bottom = max(
        layout.positions[n].y + get_height(n) for n in cluster_ids
    )
    orphan = layout.positions["archive.trgLegacyOrders"]
    assert orphan.y == cluster_bottom + 100.0
    for routine_id in ["sales.uspPlaceOrder", "hr.uspReassign", "sales.ufnOrderTotal"]:
        assert layout.positions[routine_id].y >= orphan.y + get_height(
            "archive.trgLegacyOrders"
        )


def test_overview_is_deterministic(schema):
    first = compute_overview_layout(schema)
    second = compute_overview_layout(load_schema(SAMPLE))
    assert first.to_dict() == second.to_dict()


def test_overview_bounds_cover_everything(schema):
    layout = compute_overview_layout(schema)
    get_width, get_height = _sizes(schema)
    for node_id, pos in layout.positions.items():
        assert layout.bounds.min_x <= pos.x
        assert pos.x + get_width(node_id) <= layout.bounds.max_x
        assert layout.bounds.min_y <= pos.y
        assert pos.y + get_height(node_id) <= layout.bounds.max_bottom


def test_overview_of_empty_schema():
    layout = compute_overview_layout(parse_schema_json("{}"))
    assert layout.positions == {}
    assert layout.to_dict()["bounds"] == {
        "minX": 0.0,
        "maxX": 0.0,
        "minY": 0.0,
        "maxBottom": 0.0,
    }


def test_overview_without_edges(schema):
    layout = compute_overview_layout(schema, edges=[])
    assert set(layout.layer_by_node.values()) == {0}
    get_width, get_height = _sizes(schema)
    assert not _errors(validate_layout(layout.positions, get_width, get_height))


def test_to_dict_shape(schema):
    data = compute_overview_layout(schema).to_dict()
    assert set(data) == {"positions", "bounds", "ranks", "unplaced"}
    assert set(data["positions"]["sales.Order"]) == {"x", "y"}
    assert list(data["positions"]) == sorted(data["positions"])


# --- focus ---


def test_focus_sides(schema):
    layout = compute_focus_layout(schema, "sales.Order")
    pos = layout.positions
    assert pos["sales.Order"] == Position(0.0, 0.0)
    # Order -> Customer: Customer is upstream, on the left
    assert pos["sales.Customer"].x < 0
    # The view selects from Order: Order -> view, so the view is on the left
    assert pos["sales.vOrderSummary"].x < 0
    # OrderLine points at Order: downstream, on the right
    assert pos["sales.OrderLine"].x > 0
    assert "sales.Product" not in pos
    assert "hr.Employee" not in pos


def test_focus_has_no_overlap(schema):
    layout = compute_focus_layout(schema, "sales.Order")
    get_width, get_height = _sizes(schema)
    violations = validate_layout(layout.positions, get_width, get_height)
    assert not _errors(violations), [v.message for v in violations]


def test_focus_anchors_triggers_of_visible_tables(schema):
    layout = compute_focus_layout(schema, "sales.Order")
    assert "sales.trgOrderAudit" in layout.positions
    assert "sales.trgOrderLineCheck" in layout.positions
    assert layout.unplaced_child_ids == ["archive.trgLegacyOrders"]


def test_focus_auxiliary_objects_below_cluster(schema):
    layout = compute_focus_layout(schema, "sales.Order")
    _, get_height = _sizes(schema)
    routine_ids = {p.id for p in schema.stored_procedures} | {
        f.id for f in schema.scalar_functions
    }
    below = set(layout.unplaced_child_ids) | routine_ids
    cluster_bottom = max(
        pos.y + get_height(n) for n, pos in layout.positions.items() if n not in below
    )
    orphan = layout.positions["archive.trgLegacyOrders"]
    assert orphan.y == cluster_bottom + 100.0
    assert layout.positions["sales.uspPlaceOrder"].y > orphan.y


def test_focus_visible_ids_filter(schema):
    visible = {"sales.Order", "sales.Customer"}
    layout = compute_focus_layout(schema, "sales.Order", visible_ids=visible)
    assert set(layout.positions) == visible


def test_focus_explicit_neighbours(schema):
    layout = compute_focus_layout(
        schema, "sales.Order", neighbor_ids=["sales.Product"], visible_ids=[
            "sales.Order",
            "sales.Product",
        ]
    )
    # No edge from Order to Product, so it goes right
    assert layout.positions["sales.Product"].x > 0


def test_focus_cycle_neighbour_goes_right(schema):
    layout = compute_focus_layout(schema, "hr.Employee")
    assert layout.positions["hr.Manager"].x > 0


def test_focus_unknown_id(schema):
    layout = compute_focus_layout(schema, "nope.Nothing")
    assert layout.positions == {}
    assert layout.unplaced_child_ids == []
