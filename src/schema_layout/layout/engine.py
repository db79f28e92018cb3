"""Layout coordinator: composes the core layouts into full diagrams.

Overview: tables and views are ranked left to right, triggers are anchored
to their tables band by band, and everything without a place in that
cluster (orphan triggers, stored procedures, scalar functions) is gridded
underneath. Focus: one object in the middle, upstream neighbours in side
bands on the left, downstream neighbours on the right, the same trigger
anchoring and auxiliary grids below.

Each stage is chained to the previous one through its bounds; no stage
mutates another stage's output.
"""

from __future__ import annotations

__all__ = ["DiagramLayout", "compute_focus_layout", "compute_overview_layout"]

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from schema_layout.layout.anchored import (
    StackAnchor,
    layout_right_anchored_children_by_bands,
)
from schema_layout.layout.constants import (
    AUX_LANE_GAP_Y,
    AUX_MAX_COLS,
    AUX_NODE_GAP_X,
    FOCUS_MAX_ROWS_PER_LANE,
    FOCUS_SIDE_BAND_GAP_X,
    FOCUS_SIDE_LANE_GAP_X,
    FOCUS_TIER_GAP_X,
    GAP_Y,
    OVERVIEW_AUX_MAX_COLS,
    OVERVIEW_LANE_SCALE,
    OVERVIEW_LAYER_GAP_X,
    OVERVIEW_LAYER_LANE_GAP_X,
    OVERVIEW_MAX_LANES,
    OVERVIEW_MIN_LANES,
    OVERVIEW_TARGET_ASPECT_RATIO,
    TRIGGER_MIN_INTER_BAND_GAP_X_FOCUS,
    TRIGGER_MIN_INTER_BAND_GAP_X_OVERVIEW,
    TRIGGER_PARENT_GAP_X,
    TRIGGER_STACK_GAP_Y,
)
from schema_layout.layout.geometry import (
    Bounds,
    Position,
    get_combined_positioned_bounds,
    get_max_positioned_node_bottom,
    get_node_height,
    get_node_width,
    get_positioned_bounds,
)
from schema_layout.layout.grid import (
    layout_aux_groups_side_by_side,
    layout_items_in_grid_rows,
)
from schema_layout.layout.layered import layout_layered_left_to_right
from schema_layout.layout.side_bands import layout_side_bands
from schema_layout.schema.geometry import (
    ROUTINE_MIN_WIDTH,
    TABLE_VIEW_HEADER_HEIGHT,
    TABLE_VIEW_MIN_WIDTH,
    TRIGGER_MIN_WIDTH,
    build_node_height_map,
    build_node_width_map,
)
from schema_layout.schema.model import SchemaGraph

logger = logging.getLogger(__name__)


@dataclass
class DiagramLayout:
    """Final positions of a composed diagram."""

    positions: dict[str, Position] = field(default_factory=dict)
    bounds: Bounds = field(default_factory=Bounds.empty)
    layer_by_node: dict[str, int] = field(default_factory=dict)
    unplaced_child_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "positions": {
                node_id: {"x": pos.x, "y": pos.y}
                for node_id, pos in sorted(self.positions.items())
            },
            "bounds": {
                "minX": self.bounds.min_x,
                "maxX": self.bounds.max_x,
                "minY": self.bounds.min_y,
                "maxBottom": self.bounds.max_bottom,
            },
            "ranks": dict(sorted(self.layer_by_node.items())),
            "unplaced": list(self.unplaced_child_ids),
        }


class _Sizes:
    """Height/width lookups over one schema, with per-kind width fallbacks."""

    def __init__(self, schema: SchemaGraph) -> None:
        self.heights = build_node_height_map(schema)
        self.widths = build_node_width_map(schema)
        self._fallback: dict[str, float] = {}
        for node_id in schema.table_view_ids():
            self._fallback[node_id] = TABLE_VIEW_MIN_WIDTH
        for trigger in schema.triggers:
            self._fallback[trigger.id] = TRIGGER_MIN_WIDTH

    def height(self, node_id: str) -> float:
        return get_node_height(self.heights, node_id)

    def width(self, node_id: str) -> float:
        fallback = self._fallback.get(node_id, ROUTINE_MIN_WIDTH)
        return get_node_width(self.widths, node_id, fallback)

    def width_or(self, node_id: str, fallback: float) -> float:
        return get_node_width(self.widths, node_id, fallback)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _below_header(anchor: StackAnchor) -> float:
    return anchor.parent_top_y + TABLE_VIEW_HEADER_HEIGHT


def _overview_max_lanes(node_count: int) -> int:
    return _clamp(
        math.ceil(math.sqrt(max(1, node_count)) * OVERVIEW_LANE_SCALE),
        OVERVIEW_MIN_LANES,
        OVERVIEW_MAX_LANES,
    )


def _estimate_aux_cols(
    node_ids: Sequence[str], sizes: _Sizes, fallback_width: float
) -> int:
    """Columns that bring an auxiliary grid close to the target aspect ratio."""
    if not node_ids:
        return 1
    total_stack_height = sum(sizes.height(n) for n in node_ids) + GAP_Y * max(
        0, len(node_ids) - 1
    )
    avg_width = sum(sizes.width_or(n, fallback_width) for n in node_ids) / len(
        node_ids
    )
    return _clamp(
        math.ceil(
            math.sqrt(
                OVERVIEW_TARGET_ASPECT_RATIO * total_stack_height / max(1.0, avg_width)
            )
        ),
        1,
        OVERVIEW_AUX_MAX_COLS,
    )


def _place_aux_lane(
    positions: dict[str, Position],
    node_ids: Sequence[str],
    start_x: float,
    start_y: float,
    sizes: _Sizes,
    fallback_width: float,
    cols: int | None = None,
) -> float:
    """Grid ``node_ids`` at (start_x, start_y); return the next free Y."""
    if not node_ids:
        return start_y
    lane = layout_items_in_grid_rows(
        node_ids,
        start_x=start_x,
        start_y=start_y,
        cols=(
            cols
            if cols is not None
            else _clamp(math.ceil(math.sqrt(len(node_ids))), 1, AUX_MAX_COLS)
        ),
        node_width=fallback_width,
        gap_x=AUX_NODE_GAP_X,
        gap_y=GAP_Y,
        get_height=sizes.height,
        get_width=lambda n: sizes.width_or(n, fallback_width),
    )
    positions.update(lane.positions)
    return lane.bounds.max_bottom + AUX_LANE_GAP_Y


def _place_aux_groups(
    positions: dict[str, Position],
    procedure_ids: Sequence[str],
    function_ids: Sequence[str],
    start_x: float,
    start_y: float,
    sizes: _Sizes,
    left_cols: int | None = None,
    right_cols: int | None = None,
) -> float:
    groups = layout_aux_groups_side_by_side(
        procedure_ids,
        function_ids,
        start_x=start_x,
        start_y=start_y,
        left_node_width_fallback=ROUTINE_MIN_WIDTH,
        right_node_width_fallback=ROUTINE_MIN_WIDTH,
        gap_x=AUX_NODE_GAP_X,
        gap_y=GAP_Y,
        lane_gap_y=AUX_LANE_GAP_Y,
        get_height=sizes.height,
        get_width=sizes.width_or,
        left_cols=left_cols,
        right_cols=right_cols,
    )
    positions.update(groups.positions)
    return groups.next_y


def _anchor_triggers(
    main_positions: dict[str, Position],
    ordered_band_ids: list[str],
    parent_ids_by_band: dict[str, list[str]],
    child_ids_by_parent: dict[str, list[str]],
    sizes: _Sizes,
    min_lane_gap_x: float,
    min_band_gap_x: float,
) -> tuple[dict[str, Position], dict[str, Position], list[str], Bounds]:
    """Anchor triggers and apply the resulting parent shifts.

    Returns (shifted main positions, trigger positions, unplaced trigger
    ids, combined bounds of both).
    """
    anchored = layout_right_anchored_children_by_bands(
        ordered_band_ids,
        parent_ids_by_band,
        child_ids_by_parent,
        main_positions,
        get_parent_width=lambda n: sizes.width_or(n, TABLE_VIEW_MIN_WIDTH),
        get_parent_height=sizes.height,
        get_child_width=lambda n: sizes.width_or(n, TRIGGER_MIN_WIDTH),
        get_child_height=sizes.height,
        base_gap_x=TRIGGER_PARENT_GAP_X,
        stack_gap_y=TRIGGER_STACK_GAP_Y,
        min_lane_gap_x=min_lane_gap_x,
        min_band_gap_x=min_band_gap_x,
        get_child_stack_start_y=_below_header,
    )
    shifted = {
        node_id: Position(pos.x + anchored.parent_shift_by_id.get(node_id, 0.0), pos.y)
        for node_id, pos in main_positions.items()
    }
    bounds = get_combined_positioned_bounds(
        [shifted, anchored.positions], sizes.height, sizes.width
    )
    return shifted, anchored.positions, anchored.unplaced_child_ids, bounds


def compute_overview_layout(
    schema: SchemaGraph, edges: Iterable[tuple[str, str]] | None = None
) -> DiagramLayout:
    """Lay out the whole schema as a left-to-right dependency diagram.

    ``edges`` defaults to ``schema.dependency_edges()``.
    """
    sizes = _Sizes(schema)
    main_ids = schema.table_view_ids()
    layered = layout_layered_left_to_right(
        main_ids,
        list(schema.dependency_edges() if edges is None else edges),
        layer_gap_x=OVERVIEW_LAYER_GAP_X,
        lane_gap_x=OVERVIEW_LAYER_LANE_GAP_X,
        gap_y=GAP_Y,
        max_lanes=_overview_max_lanes(len(main_ids)),
        target_aspect_ratio=OVERVIEW_TARGET_ASPECT_RATIO,
        get_height=sizes.height,
        get_width=lambda n: sizes.width_or(n, TABLE_VIEW_MIN_WIDTH),
    )

    ordered_ranks = sorted(set(layered.layer_by_node.values()))
    ordered_band_ids = [f"overview-rank-{rank}" for rank in ordered_ranks]
    parent_ids_by_band: dict[str, list[str]] = {b: [] for b in ordered_band_ids}
    for node_id in main_ids:
        rank = layered.layer_by_node.get(node_id, 0)
        parent_ids_by_band[f"overview-rank-{rank}"].append(node_id)

    shifted, trigger_positions, orphan_triggers, cluster_bounds = _anchor_triggers(
        layered.positions,
        ordered_band_ids,
        parent_ids_by_band,
        schema.triggers_by_table(),
        sizes,
        min_lane_gap_x=OVERVIEW_LAYER_LANE_GAP_X,
        min_band_gap_x=TRIGGER_MIN_INTER_BAND_GAP_X_OVERVIEW,
    )

    positions: dict[str, Position] = {**shifted, **trigger_positions}
    next_y = get_max_positioned_node_bottom(positions, sizes.height) + GAP_Y
    next_y = _place_aux_lane(
        positions,
        orphan_triggers,
        cluster_bounds.min_x,
        next_y,
        sizes,
        TRIGGER_MIN_WIDTH,
        cols=_estimate_aux_cols(orphan_triggers, sizes, TRIGGER_MIN_WIDTH),
    )

    procedure_ids = [p.id for p in schema.stored_procedures]
    function_ids = [f.id for f in schema.scalar_functions]
    _place_aux_groups(
        positions,
        procedure_ids,
        function_ids,
        cluster_bounds.min_x,
        next_y,
        sizes,
        left_cols=_estimate_aux_cols(procedure_ids, sizes, ROUTINE_MIN_WIDTH),
        right_cols=_estimate_aux_cols(function_ids, sizes, ROUTINE_MIN_WIDTH),
    )

    logger.debug(
        "Overview layout: %d main nodes over %d ranks, %d triggers anchored, "
        "%d orphan triggers",
        len(main_ids),
        len(ordered_ranks),
        len(trigger_positions),
        len(orphan_triggers),
    )
    return DiagramLayout(
        positions=positions,
        bounds=get_positioned_bounds(positions, sizes.height, sizes.width),
        layer_by_node=dict(layered.layer_by_node),
        unplaced_child_ids=list(orphan_triggers),
    )


def compute_focus_layout(
    schema: SchemaGraph,
    focused_id: str,
    neighbor_ids: Iterable[str] | None = None,
    edges: Iterable[tuple[str, str]] | None = None,
    visible_ids: Iterable[str] | None = None,
) -> DiagramLayout:
    """Lay out one object with its direct neighbours around it.

    ``neighbor_ids`` defaults to every table/view sharing an edge with the
    focused object. Neighbours the focused object points at go left
    (upstream); the rest go right. ``visible_ids`` restricts which objects
    are placed at all (default: all of them). ``edges`` defaults to
    ``schema.dependency_edges()``.
    """
    edge_list = list(schema.dependency_edges() if edges is None else edges)
    visible = set(schema.node_ids() if visible_ids is None else visible_ids)
    if focused_id not in set(schema.node_ids()):
        logger.debug("Focused id %r not in schema; nothing to lay out", focused_id)
        return DiagramLayout()

    sizes = _Sizes(schema)
    table_view_ids = set(schema.table_view_ids())

    outgoing: dict[str, set[str]] = {}
    for source, target in edge_list:
        outgoing.setdefault(source, set()).add(target)

    if neighbor_ids is None:
        neighbors = {t for s, t in edge_list if s == focused_id}
        neighbors |= {s for s, t in edge_list if t == focused_id}
    else:
        neighbors = set(neighbor_ids)
    neighbors.discard(focused_id)

    upstream: list[str] = []
    downstream: list[str] = []
    for neighbor_id in sorted(neighbors):
        if neighbor_id not in visible or neighbor_id not in table_view_ids:
            continue
        focused_to_neighbor = neighbor_id in outgoing.get(focused_id, ())
        neighbor_to_focused = focused_id in outgoing.get(neighbor_id, ())
        if focused_to_neighbor and not neighbor_to_focused:
            upstream.append(neighbor_id)
        else:
            downstream.append(neighbor_id)

    positions: dict[str, Position] = {focused_id: Position(0.0, 0.0)}
    focused_width = sizes.width_or(focused_id, TABLE_VIEW_MIN_WIDTH)

    for direction, node_ids, anchor_x in (
        ("left", upstream, -FOCUS_TIER_GAP_X),
        ("right", downstream, focused_width + FOCUS_TIER_GAP_X),
    ):
        side = layout_side_bands(
            node_ids,
            direction=direction,
            anchor_x=anchor_x,
            band_gap_x=FOCUS_SIDE_BAND_GAP_X,
            lane_gap_x=FOCUS_SIDE_LANE_GAP_X,
            gap_y=GAP_Y,
            max_rows_per_lane=FOCUS_MAX_ROWS_PER_LANE,
            get_height=sizes.height,
            get_width=lambda n: sizes.width_or(n, TABLE_VIEW_MIN_WIDTH),
        )
        # Centre each side vertically on the focused node's top edge
        y_offset = -side.bounds.height / 2
        for node_id, pos in side.positions.items():
            positions[node_id] = Position(pos.x, pos.y + y_offset)

    main_positions = {n: p for n, p in positions.items() if n in table_view_ids}
    band_xs = sorted({p.x for p in main_positions.values()})
    ordered_band_ids = [f"focus-band-{i}" for i in range(len(band_xs))]
    band_id_by_x = dict(zip(band_xs, ordered_band_ids))
    parent_ids_by_band: dict[str, list[str]] = {b: [] for b in ordered_band_ids}
    for node_id, pos in main_positions.items():
        parent_ids_by_band[band_id_by_x[pos.x]].append(node_id)

    child_ids_by_parent: dict[str, list[str]] = {}
    for trigger in schema.triggers:
        if trigger.id in visible and trigger.id != focused_id:
            child_ids_by_parent.setdefault(trigger.table_id, []).append(trigger.id)

    shifted, trigger_positions, orphan_triggers, cluster_bounds = _anchor_triggers(
        main_positions,
        ordered_band_ids,
        parent_ids_by_band,
        child_ids_by_parent,
        sizes,
        min_lane_gap_x=FOCUS_SIDE_LANE_GAP_X,
        min_band_gap_x=TRIGGER_MIN_INTER_BAND_GAP_X_FOCUS,
    )
    positions.update(shifted)
    positions.update(trigger_positions)
    if focused_id not in table_view_ids:
        cluster_bounds = get_combined_positioned_bounds(
            [positions], sizes.height, sizes.width
        )

    next_y = get_max_positioned_node_bottom(positions, sizes.height) + GAP_Y
    next_y = _place_aux_lane(
        positions,
        orphan_triggers,
        cluster_bounds.min_x,
        next_y,
        sizes,
        TRIGGER_MIN_WIDTH,
    )
    _place_aux_groups(
        positions,
        [
            p.id
            for p in schema.stored_procedures
            if p.id in visible and p.id != focused_id
        ],
        [
            f.id
            for f in schema.scalar_functions
            if f.id in visible and f.id != focused_id
        ],
        cluster_bounds.min_x,
        next_y,
        sizes,
    )

    logger.debug(
        "Focus layout around %s: %d upstream, %d downstream, %d triggers",
        focused_id,
        len(upstream),
        len(downstream),
        len(trigger_positions),
    )
    return DiagramLayout(
        positions=positions,
        bounds=get_positioned_bounds(positions, sizes.height, sizes.width),
        unplaced_child_ids=list(orphan_triggers),
    )
