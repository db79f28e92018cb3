"""Layout constants used across layout modules.

Centralizes the default gaps, lane limits and fallback sizes shared by the
grid, layered, side-band and anchored-child layouts, plus the spacing the
overview and focus diagrams are composed with.
"""

# ---------------------------------------------------------------------------
# Node size fallbacks
# ---------------------------------------------------------------------------
DEFAULT_NODE_HEIGHT: float = 150.0
"""Height used for nodes without an entry in the height map."""

# ---------------------------------------------------------------------------
# Lane balancing
# ---------------------------------------------------------------------------
MAX_LANES: int = 4
"""Default upper bound on lanes per rank (layered) or per band (side bands)."""

MAX_ROWS_PER_LANE: int = 6
"""Default number of rows a side-band lane holds before a new band starts."""

# ---------------------------------------------------------------------------
# Anchored children
# ---------------------------------------------------------------------------
MAX_COLLISION_STEPS: int = 200
"""Collision steps tried before the column jumps past all obstacles."""

TRIGGER_PARENT_GAP_X: float = 48.0
"""Horizontal gap between a parent's right edge and its child stack."""

TRIGGER_STACK_GAP_Y: float = 24.0
"""Vertical gap between stacked children of one parent."""

# ---------------------------------------------------------------------------
# Shared diagram spacing
# ---------------------------------------------------------------------------
GAP_Y: float = 100.0
"""Vertical gap between stacked main nodes."""

# ---------------------------------------------------------------------------
# Overview diagram
# ---------------------------------------------------------------------------
OVERVIEW_LAYER_GAP_X: float = 140.0
"""Horizontal gap between consecutive ranks."""

OVERVIEW_LAYER_LANE_GAP_X: float = 72.0
"""Horizontal gap between lanes inside one rank."""

OVERVIEW_TARGET_ASPECT_RATIO: float = 2.1
"""Preferred width/height ratio used to widen tall ranks."""

OVERVIEW_MIN_LANES: int = 5
"""Lower bound of the node-count driven lane cap."""

OVERVIEW_MAX_LANES: int = 20
"""Upper bound of the node-count driven lane cap."""

OVERVIEW_LANE_SCALE: float = 1.8
"""Multiplier on sqrt(node count) when deriving the overview lane cap."""

TRIGGER_MIN_INTER_BAND_GAP_X_OVERVIEW: float = OVERVIEW_LAYER_GAP_X
"""Minimum gap between a rank's trigger column and the next rank."""

# ---------------------------------------------------------------------------
# Focus diagram
# ---------------------------------------------------------------------------
FOCUS_TIER_GAP_X: float = 60.0
"""Gap between the focused node and its neighbour bands."""

FOCUS_SIDE_BAND_GAP_X: float = 140.0
"""Gap between consecutive side bands."""

FOCUS_SIDE_LANE_GAP_X: float = 72.0
"""Gap between lanes inside one side band."""

FOCUS_MAX_ROWS_PER_LANE: int = 5
"""Rows per lane before a side band overflows into the next band."""

TRIGGER_MIN_INTER_BAND_GAP_X_FOCUS: float = FOCUS_TIER_GAP_X
"""Minimum gap between a band's trigger column and the next band."""

# ---------------------------------------------------------------------------
# Auxiliary grids (routines, orphan triggers)
# ---------------------------------------------------------------------------
AUX_LANE_GAP_Y: float = 80.0
"""Vertical gap after each auxiliary lane."""

AUX_NODE_GAP_X: float = 90.0
"""Horizontal gap between auxiliary grid cells."""

AUX_MAX_COLS: int = 8
"""Column cap for auxiliary grids in the focus diagram."""

OVERVIEW_AUX_MAX_COLS: int = 20
"""Column cap for aspect-estimated auxiliary grids in the overview."""
