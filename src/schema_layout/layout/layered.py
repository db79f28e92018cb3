"""Lane-balanced layered layout flowing left to right.

Ranks from :func:`compute_layer_ranks` become vertical tiers placed in
increasing X. Inside a tier, nodes are spread across a few side-by-side
lanes by a greedy bin-packing pass (tallest first, into the currently
shortest lane), which keeps a rank full of tall tables from turning into
one very tall column.
"""

from __future__ import annotations

__all__ = [
    "LaneSet",
    "LayeredLayoutResult",
    "balance_lanes",
    "lane_count_for_layer",
    "layout_layered_left_to_right",
    "pick_shortest_lane",
    "sort_by_height_desc",
    "stack_lanes",
]

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from schema_layout.layout.constants import MAX_LANES
from schema_layout.layout.geometry import (
    Bounds,
    Position,
    SizeFn,
    get_positioned_bounds,
)
from schema_layout.layout.layers import compute_layer_ranks

logger = logging.getLogger(__name__)


@dataclass
class LayeredLayoutResult:
    positions: dict[str, Position] = field(default_factory=dict)
    bounds: Bounds = field(default_factory=Bounds.empty)
    layer_by_node: dict[str, int] = field(default_factory=dict)


@dataclass
class LaneSet:
    """Nodes assigned to each lane, with each lane's widest node width."""

    nodes: list[list[str]]
    widths: list[float]

    @property
    def total_width(self) -> float:
        return sum(self.widths)

    def span(self, lane_gap_x: float) -> float:
        """Horizontal extent of all lanes including inner gaps."""
        return self.total_width + lane_gap_x * max(0, len(self.widths) - 1)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def pick_shortest_lane(lane_heights: Sequence[float]) -> int:
    """Index of the lane with the smallest accumulated height (first wins ties)."""
    target = 0
    best = lane_heights[0] if lane_heights else 0.0
    for idx in range(1, len(lane_heights)):
        if lane_heights[idx] < best:
            best = lane_heights[idx]
            target = idx
    return target


def sort_by_height_desc(node_ids: Iterable[str], get_height: SizeFn) -> list[str]:
    """Tallest first, ties broken by id."""
    return sorted(node_ids, key=lambda node_id: (-get_height(node_id), node_id))


def balance_lanes(
    ordered_ids: Sequence[str],
    lane_count: int,
    gap_y: float,
    get_height: SizeFn,
    get_width: SizeFn,
) -> LaneSet:
    """Greedily drop each node into the currently shortest lane."""
    heights = [0.0] * lane_count
    lanes = LaneSet(nodes=[[] for _ in range(lane_count)], widths=[0.0] * lane_count)
    for node_id in ordered_ids:
        lane = pick_shortest_lane(heights)
        lanes.nodes[lane].append(node_id)
        lanes.widths[lane] = max(lanes.widths[lane], get_width(node_id))
        heights[lane] += get_height(node_id) + gap_y
    return lanes


def stack_lanes(
    lanes: LaneSet,
    lane_xs: Sequence[float],
    start_y: float,
    gap_y: float,
    get_height: SizeFn,
    positions: dict[str, Position],
) -> None:
    """Write positions for every lane, stacking its nodes top-down."""
    for lane_idx, lane_nodes in enumerate(lanes.nodes):
        y_cursor = start_y
        for node_id in lane_nodes:
            positions[node_id] = Position(lane_xs[lane_idx], y_cursor)
            y_cursor += get_height(node_id) + gap_y


def lane_count_for_layer(
    layer_nodes: Sequence[str],
    max_lanes: int,
    gap_y: float,
    get_height: SizeFn,
    get_width: SizeFn,
    target_aspect_ratio: float | None = None,
) -> int:
    """Number of lanes for one rank.

    The base heuristic is ``ceil(sqrt(n))``. With a target aspect ratio,
    a rank whose single-column stack would be much taller than wide gets
    more lanes, up to ``max_lanes``.
    """
    if not layer_nodes:
        return 1

    lane_count = _clamp(math.ceil(math.sqrt(len(layer_nodes))), 1, max_lanes)
    if not target_aspect_ratio or target_aspect_ratio <= 0:
        return lane_count

    total_stack_height = sum(get_height(n) for n in layer_nodes) + gap_y * max(
        0, len(layer_nodes) - 1
    )
    avg_width = sum(get_width(n) for n in layer_nodes) / len(layer_nodes)
    balanced = math.ceil(
        math.sqrt(target_aspect_ratio * total_stack_height / max(1.0, avg_width))
    )
    # Never more lanes than nodes; an empty lane would only add a gap.
    return _clamp(max(lane_count, balanced), 1, min(max_lanes, len(layer_nodes)))


def layout_layered_left_to_right(
    node_ids: Sequence[str],
    edges: Iterable[tuple[str, str]],
    *,
    layer_gap_x: float,
    lane_gap_x: float,
    gap_y: float,
    get_height: SizeFn,
    get_width: SizeFn,
    max_lanes: int = MAX_LANES,
    target_aspect_ratio: float | None = None,
    start_x: float = 0.0,
    start_y: float = 0.0,
) -> LayeredLayoutResult:
    """Place nodes rank by rank, left to right.

    Ranks never overlap horizontally: each rank starts one ``layer_gap_x``
    past the previous rank's last lane, so for any edge between different
    ranks the source sits left of the target.
    """
    if not node_ids:
        return LayeredLayoutResult()

    ranks = compute_layer_ranks(node_ids, edges)
    positions: dict[str, Position] = {}
    rank_start_x = start_x

    for rank, layer_nodes in ranks.layers.items():
        if not layer_nodes:
            continue

        lane_count = lane_count_for_layer(
            layer_nodes,
            max_lanes,
            gap_y,
            get_height,
            get_width,
            target_aspect_ratio,
        )
        lanes = balance_lanes(
            sort_by_height_desc(layer_nodes, get_height),
            lane_count,
            gap_y,
            get_height,
            get_width,
        )

        lane_xs: list[float] = []
        lane_x = rank_start_x
        for width in lanes.widths:
            lane_xs.append(lane_x)
            lane_x += width + lane_gap_x

        stack_lanes(lanes, lane_xs, start_y, gap_y, get_height, positions)
        logger.debug(
            "Rank %d: %d nodes in %d lanes at x=%.1f",
            rank,
            len(layer_nodes),
            lane_count,
            rank_start_x,
        )
        rank_start_x += lanes.span(lane_gap_x) + layer_gap_x

    return LayeredLayoutResult(
        positions=positions,
        bounds=get_positioned_bounds(positions, get_height, get_width),
        layer_by_node=ranks.layer_by_node,
    )
