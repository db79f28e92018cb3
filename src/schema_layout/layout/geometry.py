"""Geometry primitives shared by every layout: positions, rectangles, bounds.

Layouts never own node sizes. They read them through accessor callables
(``node_id -> float``) supplied by the caller, and return plain position
mappings that can be folded into :class:`Bounds` for chaining.
"""

from __future__ import annotations

__all__ = [
    "Bounds",
    "Position",
    "PositionMap",
    "Rect",
    "SizeFn",
    "get_combined_positioned_bounds",
    "get_max_positioned_node_bottom",
    "get_node_height",
    "get_node_width",
    "get_positioned_bounds",
]

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from schema_layout.layout.constants import DEFAULT_NODE_HEIGHT

SizeFn = Callable[[str], float]


@dataclass(frozen=True)
class Position:
    """Top-left corner of a node box."""

    x: float
    y: float


PositionMap = Mapping[str, Position]


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def intersects(self, other: Rect) -> bool:
        """Strict overlap test; rectangles that only touch do not intersect."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


@dataclass(frozen=True)
class Bounds:
    """Bounding box of a set of positioned, sized nodes."""

    min_x: float
    max_x: float
    min_y: float
    max_bottom: float

    @classmethod
    def empty(cls) -> Bounds:
        return cls(0.0, 0.0, 0.0, 0.0)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_bottom - self.min_y


def get_node_height(heights: Mapping[str, float], node_id: str) -> float:
    """Look up a node height, falling back to DEFAULT_NODE_HEIGHT."""
    return heights.get(node_id, DEFAULT_NODE_HEIGHT)


def get_node_width(
    widths: Mapping[str, float], node_id: str, fallback_width: float
) -> float:
    """Look up a node width, falling back to the caller's default."""
    return widths.get(node_id, fallback_width)


def get_positioned_bounds(
    positions: PositionMap,
    get_height: SizeFn,
    get_width: SizeFn | None = None,
) -> Bounds:
    """Fold a position mapping into its bounding box.

    Without a width accessor every node counts as zero wide, so ``max_x``
    is the right-most left edge. An empty mapping yields ``Bounds.empty()``.
    """
    if not positions:
        return Bounds.empty()

    min_x = float("inf")
    max_x = float("-inf")
    min_y = float("inf")
    max_bottom = float("-inf")

    for node_id, pos in positions.items():
        width = get_width(node_id) if get_width is not None else 0.0
        min_x = min(min_x, pos.x)
        max_x = max(max_x, pos.x + width)
        min_y = min(min_y, pos.y)
        max_bottom = max(max_bottom, pos.y + get_height(node_id))

    return Bounds(min_x, max_x, min_y, max_bottom)


def get_combined_positioned_bounds(
    position_sets: Iterable[PositionMap],
    get_height: SizeFn,
    get_width: SizeFn | None = None,
) -> Bounds:
    """Bounds over the union of several position mappings.

    Later mappings win when the same node id appears more than once.
    """
    combined: dict[str, Position] = {}
    for position_set in position_sets:
        combined.update(position_set)
    return get_positioned_bounds(combined, get_height, get_width)


def get_max_positioned_node_bottom(
    positions: PositionMap, get_height: SizeFn
) -> float:
    """Largest node bottom (``y + height``); 0 for an empty mapping."""
    max_bottom = 0.0
    for node_id, pos in positions.items():
        max_bottom = max(max_bottom, pos.y + get_height(node_id))
    return max_bottom
