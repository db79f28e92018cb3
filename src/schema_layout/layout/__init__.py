"""Layout engine: ranks, lanes, bands and anchored satellites."""

from schema_layout.layout.anchored import (
    AnchoredLayoutResult,
    BandAnchoredLayoutResult,
    StackAnchor,
    layout_right_anchored_children,
    layout_right_anchored_children_by_bands,
)
from schema_layout.layout.engine import (
    DiagramLayout,
    compute_focus_layout,
    compute_overview_layout,
)
from schema_layout.layout.geometry import (
    Bounds,
    Position,
    Rect,
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
from schema_layout.layout.layers import DirectedEdge, LayerRanks, compute_layer_ranks
from schema_layout.layout.side_bands import layout_side_bands

__all__ = [
    "AnchoredLayoutResult",
    "BandAnchoredLayoutResult",
    "Bounds",
    "DiagramLayout",
    "DirectedEdge",
    "LayerRanks",
    "Position",
    "Rect",
    "StackAnchor",
    "compute_focus_layout",
    "compute_layer_ranks",
    "compute_overview_layout",
    "get_combined_positioned_bounds",
    "get_max_positioned_node_bottom",
    "get_node_height",
    "get_node_width",
    "get_positioned_bounds",
    "layout_aux_groups_side_by_side",
    "layout_items_in_grid_rows",
    "layout_layered_left_to_right",
    "layout_right_anchored_children",
    "layout_right_anchored_children_by_bands",
    "layout_side_bands",
]
