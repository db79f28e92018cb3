"""Tests for the lane-balanced layered layout."""

import pytest

from layout_validator import check_node_overlap, check_rank_monotonicity
from schema_layout.layout.layered import (
    balance_lanes,
    lane_count_for_layer,
    layout_layered_left_to_right,
    pick_shortest_lane,
    sort_by_height_desc,
)

WIDTH = 240.0


def _height(node_id):
    # "tall_*" nodes are tables with many columns
    return 600.0 if node_id.startswith("tall") else 150.0


def _width(node_id):
    return WIDTH


def _layout(node_ids, edges, **kwargs):
    return layout_layered_left_to_right(
        node_ids,
        edges,
        layer_gap_x=140.0,
        lane_gap_x=72.0,
        gap_y=100.0,
        get_height=_height,
        get_width=_width,
        **kwargs,
    )


def test_pick_shortest_lane_first_wins_ties():
    assert pick_shortest_lane([10.0, 5.0, 5.0]) == 1
    assert pick_shortest_lane([0.0, 0.0]) == 0


def test_sort_by_height_desc_breaks_ties_by_id():
    assert sort_by_height_desc(["b", "tall_x", "a"], _height) == ["tall_x", "a", "b"]


def test_balance_lanes_tallest_first():
    lanes = balance_lanes(["tall_a", "b", "c", "d"], 2, 100.0, _height, _width)
    assert lanes.nodes == [["tall_a"], ["b", "c", "d"]]
    assert lanes.widths == [WIDTH, WIDTH]
    assert lanes.span(72.0) == 2 * WIDTH + 72.0


def test_lane_count_plain_heuristic():
    nodes = [f"n{i}" for i in range(5)]
    assert lane_count_for_layer(nodes, 4, 100.0, _height, _width) == 3
    assert lane_count_for_layer(nodes, 2, 100.0, _height, _width) == 2
    assert lane_count_for_layer([], 4, 100.0, _height, _width) == 1


def test_lane_count_aspect_ratio_only_widens():
    nodes = [f"tall{i}" for i in range(4)]
    plain = lane_count_for_layer(nodes, 10, 100.0, _height, _width)
    widened = lane_count_for_layer(nodes, 10, 100.0, _height, _width, 2.1)
    assert plain == 2
    # Stack of 4 x 600 + 300 gaps is far taller than one lane is wide
    assert widened == 4
    assert widened >= plain


def test_lane_count_never_exceeds_node_count():
    assert lane_count_for_layer(["tall0"], 10, 100.0, _height, _width, 5.0) == 1


def test_ranks_flow_left_to_right():
    edges = [("a", "b"), ("b", "c"), ("a", "d")]
    result = _layout(["a", "b", "c", "d"], edges)
    pos = result.positions
    assert pos["a"].x < pos["b"].x < pos["c"].x
    assert pos["b"].x == 0.0 + WIDTH + 140.0
    assert not check_rank_monotonicity(pos, edges, result.layer_by_node)


def test_cycle_members_share_a_rank():
    edges = [("A", "B"), ("B", "A"), ("B", "C")]
    result = _layout(["A", "B", "C"], edges)
    assert result.layer_by_node["A"] == result.layer_by_node["B"] == 0
    assert result.positions["C"].x > max(
        result.positions["A"].x, result.positions["B"].x
    )
    assert not check_rank_monotonicity(result.positions, edges, result.layer_by_node)


def test_no_overlap_in_busy_rank():
    node_ids = ["root"] + [f"n{i:02d}" for i in range(12)] + ["tall1", "tall2"]
    edges = [("root", n) for n in node_ids[1:]]
    result = _layout(node_ids, edges, max_lanes=4)
    assert not check_node_overlap(result.positions, _width, _height)
    rank_one_xs = {result.positions[n].x for n in node_ids[1:]}
    assert len(rank_one_xs) == 4


def test_nodes_stack_from_start_y():
    result = _layout(["a", "b"], [], start_x=50.0, start_y=30.0)
    ys = sorted(p.y for p in result.positions.values())
    assert ys[0] == 30.0
    assert min(p.x for p in result.positions.values()) == 50.0
    assert result.bounds.min_y == 30.0


def test_bounds_cover_every_node():
    result = _layout(["tall1", "b", "c"], [("tall1", "b")])
    for node_id, pos in result.positions.items():
        assert result.bounds.min_x <= pos.x
        assert pos.x + _width(node_id) <= result.bounds.max_x
        assert pos.y + _height(node_id) <= result.bounds.max_bottom


def test_deterministic():
    edges = [("a", "b"), ("c", "b"), ("b", "d"), ("d", "b")]
    first = _layout(["a", "b", "c", "d"], edges, target_aspect_ratio=2.1)
    second = _layout(["d", "c", "b", "a"], list(reversed(edges)), target_aspect_ratio=2.1)
    assert first.positions == second.positions


@pytest.mark.parametrize("node_ids", [[], ()])
def test_empty(node_ids):
    result = _layout(node_ids, [])
    assert result.positions == {}
    assert result.layer_by_node == {}
