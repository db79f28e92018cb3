"""Row-wrapped grid placement for flat, edge-less node collections.

Used for everything that has no dependency edges of its own: triggers
whose table is not on the canvas, stored procedures and scalar functions.
"""

from __future__ import annotations

__all__ = [
    "AuxGroupsLayoutResult",
    "GridLayoutResult",
    "layout_aux_groups_side_by_side",
    "layout_items_in_grid_rows",
]

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from schema_layout.layout.geometry import Bounds, Position, SizeFn

logger = logging.getLogger(__name__)


@dataclass
class GridLayoutResult:
    """Positions of one grid, the next free Y, and the grid's bounds."""

    positions: dict[str, Position] = field(default_factory=dict)
    next_y: float = 0.0
    bounds: Bounds = field(default_factory=Bounds.empty)


@dataclass
class AuxGroupsLayoutResult:
    """Positions of two side-by-side grids and their combined bounds."""

    positions: dict[str, Position] = field(default_factory=dict)
    next_y: float = 0.0
    bounds: Bounds = field(default_factory=Bounds.empty)


def layout_items_in_grid_rows(
    item_ids: Sequence[str],
    *,
    start_y: float,
    cols: int,
    node_width: float,
    gap_x: float,
    gap_y: float,
    get_height: SizeFn,
    get_width: SizeFn | None = None,
    start_x: float = 0.0,
) -> GridLayoutResult:
    """Place items left-to-right in rows of ``cols``, keeping input order.

    Each row is as tall as its tallest member, so the next row never
    overlaps a tall node sitting next to short siblings. ``next_y`` is the
    Y just past the last row's gap, ready to be used as the next layout's
    ``start_y``.
    """
    if not item_ids:
        return GridLayoutResult(
            positions={},
            next_y=start_y,
            bounds=Bounds(start_x, start_x, start_y, start_y),
        )

    cols = max(1, cols)
    positions: dict[str, Position] = {}
    current_y = start_y
    min_x = float("inf")
    max_x = float("-inf")
    max_bottom = start_y

    for row_start in range(0, len(item_ids), cols):
        row = item_ids[row_start : row_start + cols]
        row_height = max(get_height(node_id) for node_id in row)

        x_cursor = start_x
        for node_id in row:
            width = get_width(node_id) if get_width is not None else node_width
            positions[node_id] = Position(x_cursor, current_y)
            min_x = min(min_x, x_cursor)
            max_x = max(max_x, x_cursor + width)
            max_bottom = max(max_bottom, current_y + get_height(node_id))
            x_cursor += width + gap_x

        current_y += row_height + gap_y

    logger.debug(
        "Grid placed %d items in %d columns (next_y=%.1f)",
        len(item_ids),
        cols,
        current_y,
    )
    return GridLayoutResult(
        positions=positions,
        next_y=current_y,
        bounds=Bounds(min_x, max_x, start_y, max_bottom),
    )


def _default_cols(count: int) -> int:
    return max(1, math.ceil(math.sqrt(max(1, count))))


def layout_aux_groups_side_by_side(
    left_node_ids: Sequence[str],
    right_node_ids: Sequence[str],
    *,
    start_x: float,
    start_y: float,
    left_node_width_fallback: float,
    right_node_width_fallback: float,
    gap_x: float,
    gap_y: float,
    lane_gap_y: float,
    get_height: SizeFn,
    get_width: Callable[[str, float], float],
    left_cols: int | None = None,
    right_cols: int | None = None,
) -> AuxGroupsLayoutResult:
    """Lay out two auxiliary groups as grids next to each other.

    The right group starts one ``gap_x`` past the left group's right edge,
    or at ``start_x`` when the left group is empty. Both share ``start_y``.
    """
    left = layout_items_in_grid_rows(
        left_node_ids,
        start_x=start_x,
        start_y=start_y,
        cols=left_cols if left_cols is not None else _default_cols(len(left_node_ids)),
        node_width=left_node_width_fallback,
        gap_x=gap_x,
        gap_y=gap_y,
        get_height=get_height,
        get_width=lambda node_id: get_width(node_id, left_node_width_fallback),
    )

    right_start_x = left.bounds.max_x + gap_x if left_node_ids else start_x
    right = layout_items_in_grid_rows(
        right_node_ids,
        start_x=right_start_x,
        start_y=start_y,
        cols=(
            right_cols if right_cols is not None else _default_cols(len(right_node_ids))
        ),
        node_width=right_node_width_fallback,
        gap_x=gap_x,
        gap_y=gap_y,
        get_height=get_height,
        get_width=lambda node_id: get_width(node_id, right_node_width_fallback),
    )

    positions = {**left.positions, **right.positions}
    groups = [g for g, ids in ((left, left_node_ids), (right, right_node_ids)) if ids]
    if not groups:
        return AuxGroupsLayoutResult(positions=positions, next_y=start_y)

    max_bottom = max([start_y] + [g.bounds.max_bottom for g in groups])
    bounds = Bounds(
        min(g.bounds.min_x for g in groups),
        max(g.bounds.max_x for g in groups),
        start_y,
        max_bottom,
    )
    return AuxGroupsLayoutResult(
        positions=positions, next_y=max_bottom + lane_gap_y, bounds=bounds
    )
