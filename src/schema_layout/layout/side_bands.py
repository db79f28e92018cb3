"""Side-band layout for focus views.

Neighbours of a focused node are packed into lane sets ("bands") that
grow away from an anchor X: to the right for downstream objects, to the
left for upstream ones. A band holds at most ``lane_count *
max_rows_per_lane`` nodes; overflow opens a new band one ``band_gap_x``
further out.
"""

from __future__ import annotations

__all__ = ["SideBandLayoutResult", "layout_side_bands"]

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from schema_layout.layout.constants import MAX_LANES, MAX_ROWS_PER_LANE
from schema_layout.layout.geometry import (
    Bounds,
    Position,
    SizeFn,
    get_positioned_bounds,
)
from schema_layout.layout.layered import (
    balance_lanes,
    sort_by_height_desc,
    stack_lanes,
)

logger = logging.getLogger(__name__)

Direction = Literal["left", "right"]


@dataclass
class SideBandLayoutResult:
    positions: dict[str, Position] = field(default_factory=dict)
    bounds: Bounds = field(default_factory=Bounds.empty)


def layout_side_bands(
    node_ids: Sequence[str],
    *,
    direction: Direction,
    anchor_x: float,
    band_gap_x: float,
    lane_gap_x: float,
    gap_y: float,
    get_height: SizeFn,
    get_width: SizeFn,
    max_lanes: int = MAX_LANES,
    max_rows_per_lane: int = MAX_ROWS_PER_LANE,
    start_y: float = 0.0,
) -> SideBandLayoutResult:
    """Pack ``node_ids`` into bands extending away from ``anchor_x``.

    For ``"right"`` the first lane's left edge sits on the anchor; for
    ``"left"`` the first lane's right edge does. Each further band starts
    a full ``band_gap_x`` past the previous band's far edge.
    """
    if direction not in ("left", "right"):
        raise ValueError(f"direction must be 'left' or 'right', got {direction!r}")

    if not node_ids:
        return SideBandLayoutResult()

    lane_count = max(1, min(max_lanes, math.ceil(math.sqrt(len(node_ids)))))
    band_capacity = lane_count * max(1, max_rows_per_lane)
    ordered = sort_by_height_desc(node_ids, get_height)

    positions: dict[str, Position] = {}
    band_offset = 0.0
    band_count = 0

    for band_start in range(0, len(ordered), band_capacity):
        band_nodes = ordered[band_start : band_start + band_capacity]
        lanes = balance_lanes(band_nodes, lane_count, gap_y, get_height, get_width)

        lane_xs: list[float] = []
        if direction == "right":
            lane_left = anchor_x + band_offset
            for width in lanes.widths:
                lane_xs.append(lane_left)
                lane_left += width + lane_gap_x
        else:
            lane_right = anchor_x - band_offset
            for width in lanes.widths:
                lane_xs.append(lane_right - width)
                lane_right -= width + lane_gap_x

        stack_lanes(lanes, lane_xs, start_y, gap_y, get_height, positions)
        band_offset += lanes.span(lane_gap_x) + band_gap_x
        band_count += 1

    logger.debug(
        "Side bands (%s): %d nodes in %d bands of %d lanes",
        direction,
        len(node_ids),
        band_count,
        lane_count,
    )
    return SideBandLayoutResult(
        positions=positions,
        bounds=get_positioned_bounds(positions, get_height, get_width),
    )
