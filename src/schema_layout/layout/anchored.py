"""Placement of satellite nodes (e.g. triggers) to the right of their parent.

Two strategies:

* :func:`layout_right_anchored_children` stacks each parent's children in a
  column just right of the parent and slides the column right in fixed
  steps until it clears a caller-supplied set of occupied rectangles.
* :func:`layout_right_anchored_children_by_bands` works across a whole
  layered diagram. Parents are grouped into bands (one per rank) and lanes
  (one per parent X inside a band). Every lane gets one shared child
  column, and when that column eats into the next lane or band the
  remaining lanes/bands are shifted right. Shifts only ever move forward,
  so bands already finished are never revisited; callers apply
  ``parent_shift_by_id`` to their parent positions afterwards.

Children whose parent has no position are never an error; they come back
in ``unplaced_child_ids`` for the caller's fallback placement.
"""

from __future__ import annotations

__all__ = [
    "AnchoredLayoutResult",
    "BandAnchoredLayoutResult",
    "StackAnchor",
    "layout_right_anchored_children",
    "layout_right_anchored_children_by_bands",
]

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace

from schema_layout.layout.constants import MAX_COLLISION_STEPS
from schema_layout.layout.geometry import (
    Bounds,
    Position,
    PositionMap,
    Rect,
    SizeFn,
    get_positioned_bounds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StackAnchor:
    """What a stack-start callback gets to decide where a child stack begins."""

    parent_id: str
    parent_top_y: float
    parent_height: float
    total_stack_height: float


StackStartFn = Callable[[StackAnchor], float]


@dataclass
class AnchoredLayoutResult:
    positions: dict[str, Position] = field(default_factory=dict)
    unplaced_child_ids: list[str] = field(default_factory=list)
    bounds: Bounds = field(default_factory=Bounds.empty)


@dataclass
class BandAnchoredLayoutResult:
    positions: dict[str, Position] = field(default_factory=dict)
    unplaced_child_ids: list[str] = field(default_factory=list)
    parent_shift_by_id: dict[str, float] = field(default_factory=dict)
    band_shift_by_id: dict[str, float] = field(default_factory=dict)
    bounds: Bounds = field(default_factory=Bounds.empty)


def _stack_height(child_ids: Sequence[str], get_height: SizeFn, gap_y: float) -> float:
    return sum(get_height(c) for c in child_ids) + gap_y * max(0, len(child_ids) - 1)


def _stack_start_y(
    parent_id: str,
    parent: Position,
    parent_height: float,
    total_stack_height: float,
    get_child_stack_start_y: StackStartFn | None,
) -> float:
    """Callback-chosen stack top, or the top that centres the stack on the parent."""
    if get_child_stack_start_y is not None:
        return get_child_stack_start_y(
            StackAnchor(parent_id, parent.y, parent_height, total_stack_height)
        )
    return parent.y + parent_height / 2 - total_stack_height / 2


def _find_clear_column(
    candidate: Rect, occupied: Sequence[Rect], step_x: float
) -> Rect:
    """Slide ``candidate`` right in ``step_x`` increments until nothing overlaps.

    After MAX_COLLISION_STEPS tries, or straight away when ``step_x`` is not
    positive, the column jumps past every rectangle sharing its vertical
    span, which always clears.
    """
    for _ in range(MAX_COLLISION_STEPS if step_x > 0 else 0):
        if not any(candidate.intersects(rect) for rect in occupied):
            return candidate
        candidate = replace(candidate, x=candidate.x + step_x)

    if not any(candidate.intersects(rect) for rect in occupied):
        return candidate

    blockers = [
        rect
        for rect in occupied
        if rect.y < candidate.bottom and candidate.y < rect.bottom
    ]
    logger.debug(
        "Collision search exhausted at x=%.1f; jumping past %d rects",
        candidate.x,
        len(blockers),
    )
    return replace(candidate, x=max([candidate.x] + [r.right for r in blockers]))


def layout_right_anchored_children(
    child_ids: Sequence[str],
    *,
    get_parent_id: Callable[[str], str | None],
    parent_positions: PositionMap,
    get_parent_width: SizeFn,
    get_parent_height: SizeFn,
    get_child_width: SizeFn,
    get_child_height: SizeFn,
    base_gap_x: float,
    stack_gap_y: float,
    collision_step_x: float,
    occupied_rects: Iterable[Rect] = (),
    get_child_stack_start_y: StackStartFn | None = None,
) -> AnchoredLayoutResult:
    """Stack each parent's children in a column right of the parent.

    Parents are handled in id order and children within a parent in id
    order. The column starts at ``parent.x + parent_width + base_gap_x``
    and only ever moves right, so children never overlap their parent.
    Every placed column is added to the occupied set, so stacks of
    different parents do not collide either.
    """
    result = AnchoredLayoutResult()
    grouped: dict[str, list[str]] = {}

    for child_id in child_ids:
        parent_id = get_parent_id(child_id)
        if not parent_id or parent_id not in parent_positions:
            result.unplaced_child_ids.append(child_id)
            continue
        grouped.setdefault(parent_id, []).append(child_id)

    occupied = list(occupied_rects)

    for parent_id in sorted(grouped):
        parent = parent_positions[parent_id]
        children = sorted(set(grouped[parent_id]))
        total_height = _stack_height(children, get_child_height, stack_gap_y)
        start_y = _stack_start_y(
            parent_id,
            parent,
            get_parent_height(parent_id),
            total_height,
            get_child_stack_start_y,
        )
        column = _find_clear_column(
            Rect(
                parent.x + get_parent_width(parent_id) + base_gap_x,
                start_y,
                max(get_child_width(c) for c in children),
                total_height,
            ),
            occupied,
            collision_step_x,
        )

        y_cursor = start_y
        for child_id in children:
            result.positions[child_id] = Position(column.x, y_cursor)
            y_cursor += get_child_height(child_id) + stack_gap_y
        occupied.append(column)

    if result.unplaced_child_ids:
        logger.debug("%d children left unplaced", len(result.unplaced_child_ids))

    result.bounds = get_positioned_bounds(
        result.positions, get_child_height, get_child_width
    )
    return result


def layout_right_anchored_children_by_bands(
    ordered_band_ids: Sequence[str],
    parent_ids_by_band: Mapping[str, Sequence[str]],
    child_ids_by_parent: Mapping[str, Sequence[str]],
    parent_positions: PositionMap,
    *,
    get_parent_width: SizeFn,
    get_parent_height: SizeFn,
    get_child_width: SizeFn,
    get_child_height: SizeFn,
    base_gap_x: float,
    stack_gap_y: float,
    min_lane_gap_x: float,
    min_band_gap_x: float,
    get_child_stack_start_y: StackStartFn | None = None,
) -> BandAnchoredLayoutResult:
    """Anchor children to parents band by band, reflowing later bands.

    Child positions are in the *shifted* coordinate space: a caller gets a
    consistent diagram by moving every parent right by
    ``parent_shift_by_id.get(parent_id, 0)``. Only non-zero shifts are
    recorded. ``band_shift_by_id`` holds the cumulative shift inherited by
    each band from the bands before it.
    """
    result = BandAnchoredLayoutResult()
    placed: set[str] = set()
    unplaced: set[str] = set()

    banded_parents = {
        parent_id
        for band_id in ordered_band_ids
        for parent_id in parent_ids_by_band.get(band_id, ())
    }
    for parent_id, child_ids in child_ids_by_parent.items():
        if parent_id not in banded_parents or parent_id not in parent_positions:
            unplaced.update(child_ids)

    cumulative_shift = 0.0

    for band_index, band_id in enumerate(ordered_band_ids):
        if cumulative_shift > 0:
            result.band_shift_by_id[band_id] = cumulative_shift

        lanes: dict[float, list[str]] = {}
        for parent_id in parent_ids_by_band.get(band_id, ()):
            if parent_id in parent_positions:
                lanes.setdefault(parent_positions[parent_id].x, []).append(parent_id)

        lane_xs = sorted(lanes)
        lane_shift = 0.0
        band_right = float("-inf")

        for lane_index, lane_x in enumerate(lane_xs):
            lane_parents = sorted(
                set(lanes[lane_x]), key=lambda p: (parent_positions[p].y, p)
            )
            shift = cumulative_shift + lane_shift
            if shift:
                for parent_id in lane_parents:
                    result.parent_shift_by_id[parent_id] = shift

            lane_right = max(lane_x + shift + get_parent_width(p) for p in lane_parents)
            lane_occupied_right = lane_right
            column_x = lane_right + base_gap_x
            lane_cursor_y: float | None = None

            for parent_id in lane_parents:
                children = [
                    c
                    for c in sorted(set(child_ids_by_parent.get(parent_id, ())))
                    if c not in placed
                ]
                if not children:
                    continue

                parent = parent_positions[parent_id]
                stack_start = _stack_start_y(
                    parent_id,
                    parent,
                    get_parent_height(parent_id),
                    _stack_height(children, get_child_height, stack_gap_y),
                    get_child_stack_start_y,
                )
                y_cursor = stack_start
                if lane_cursor_y is not None:
                    # Stacks sharing the column must not run into each other.
                    y_cursor = max(stack_start, lane_cursor_y + stack_gap_y)

                for child_id in children:
                    height = get_child_height(child_id)
                    result.positions[child_id] = Position(column_x, y_cursor)
                    placed.add(child_id)
                    lane_cursor_y = y_cursor + height
                    lane_occupied_right = max(
                        lane_occupied_right, column_x + get_child_width(child_id)
                    )
                    y_cursor += height + stack_gap_y

            band_right = max(band_right, lane_occupied_right)

            if lane_index + 1 < len(lane_xs):
                next_lane_left = lane_xs[lane_index + 1] + cumulative_shift + lane_shift
                lane_shift += max(
                    0.0, lane_occupied_right + min_lane_gap_x - next_lane_left
                )

        if band_index + 1 >= len(ordered_band_ids) or band_right == float("-inf"):
            continue

        next_band_xs = [
            parent_positions[p].x
            for p in parent_ids_by_band.get(ordered_band_ids[band_index + 1], ())
            if p in parent_positions
        ]
        if not next_band_xs:
            continue

        next_band_left = min(next_band_xs) + cumulative_shift
        additional = max(0.0, band_right + min_band_gap_x - next_band_left)
        if additional:
            logger.debug(
                "Band %s pushes following bands right by %.1f", band_id, additional
            )
        cumulative_shift += additional

    for child_ids in child_ids_by_parent.values():
        unplaced.update(c for c in child_ids if c not in placed)
    result.unplaced_child_ids = sorted(unplaced - placed)

    result.bounds = get_positioned_bounds(
        result.positions, get_child_height, get_child_width
    )
    return result
