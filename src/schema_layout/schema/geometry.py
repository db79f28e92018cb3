"""Node sizes derived from schema content.

Heights follow the card structure (a header plus one row per column for
tables and views, a fixed card for everything else). Widths come from a
per-character text-width estimate, so layout does not depend on a font
rasterizer being available.
"""

from __future__ import annotations

__all__ = [
    "ROUTINE_MIN_WIDTH",
    "TABLE_VIEW_HEADER_HEIGHT",
    "TABLE_VIEW_MIN_WIDTH",
    "TABLE_VIEW_ROW_HEIGHT",
    "TRIGGER_MIN_WIDTH",
    "build_node_height_map",
    "build_node_width_map",
    "get_table_view_node_height",
    "measure_text",
]

from schema_layout.layout.constants import DEFAULT_NODE_HEIGHT
from schema_layout.schema.model import (
    Parameter,
    ScalarFunction,
    SchemaGraph,
    StoredProcedure,
    Table,
    Trigger,
    View,
)

TABLE_VIEW_HEADER_HEIGHT: float = 52.0
TABLE_VIEW_ROW_HEIGHT: float = 28.0

TABLE_VIEW_MIN_WIDTH: float = 240.0
TRIGGER_MIN_WIDTH: float = 180.0
ROUTINE_MIN_WIDTH: float = 200.0

HEADER_FONT_SIZE = 14
BODY_FONT_SIZE = 12
META_FONT_SIZE = 10

# Extra horizontal room around the measured text of each card type
HEADER_PADDING = 110.0
COLUMN_PADDING = 120.0
TRIGGER_PADDING = 120.0
ROUTINE_PADDING = 130.0
ICON_WIDTH = 16.0
KEY_SLOT_WIDTH = 18.0

_NARROW_GLYPHS = "il.:;,'|"
_WIDE_GLYPHS = "MW@#%&"


def get_table_view_node_height(column_count: int) -> float:
    return TABLE_VIEW_HEADER_HEIGHT + column_count * TABLE_VIEW_ROW_HEIGHT


def measure_text(text: str, size: float = BODY_FONT_SIZE) -> float:
    """Estimate rendered text width in pixels for a sans-serif font."""
    width = 0.0
    for char in text:
        if char == " ":
            width += size * 0.36
        elif char in _NARROW_GLYPHS:
            width += size * 0.34
        elif char in _WIDE_GLYPHS:
            width += size * 0.9
        else:
            width += size * 0.62
    return width


def build_node_height_map(schema: SchemaGraph) -> dict[str, float]:
    heights: dict[str, float] = {}
    for table in schema.tables:
        heights[table.id] = get_table_view_node_height(len(table.columns))
    for view in schema.views:
        heights[view.id] = get_table_view_node_height(len(view.columns))
    for obj in [*schema.triggers, *schema.stored_procedures, *schema.scalar_functions]:
        heights[obj.id] = DEFAULT_NODE_HEIGHT
    return heights


def _table_width(table: Table) -> float:
    header = measure_text(table.name, HEADER_FONT_SIZE) + HEADER_PADDING
    widest = 0.0
    for column in table.columns:
        icons = (
            (ICON_WIDTH if column.is_primary_key else 0.0)
            + (ICON_WIDTH if column.is_nullable else 0.0)
            + KEY_SLOT_WIDTH
        )
        line = (
            measure_text(column.name, BODY_FONT_SIZE)
            + measure_text(column.data_type, META_FONT_SIZE)
            + icons
            + COLUMN_PADDING
        )
        widest = max(widest, line)
    return max(TABLE_VIEW_MIN_WIDTH, header, widest)


def _view_width(view: View) -> float:
    header = measure_text(view.name, HEADER_FONT_SIZE) + HEADER_PADDING
    widest = 0.0
    for column in view.columns:
        line = (
            measure_text(column.name, BODY_FONT_SIZE)
            + measure_text(column.data_type, META_FONT_SIZE)
            + (ICON_WIDTH if column.is_nullable else 0.0)
            + COLUMN_PADDING
        )
        widest = max(widest, line)
    return max(TABLE_VIEW_MIN_WIDTH, header, widest)


def _trigger_width(trigger: Trigger) -> float:
    widest = max(
        measure_text(trigger.name, HEADER_FONT_SIZE),
        measure_text(trigger.trigger_type, BODY_FONT_SIZE),
        measure_text(trigger.event_text(), BODY_FONT_SIZE),
    )
    return max(TRIGGER_MIN_WIDTH, widest + TRIGGER_PADDING)


def _parameter_width(parameters: list[Parameter]) -> float:
    return max(
        (measure_text(f"{p.name} {p.data_type}", BODY_FONT_SIZE) for p in parameters),
        default=0.0,
    )


def _routine_width(routine: StoredProcedure | ScalarFunction) -> float:
    widest = max(
        measure_text(routine.name, HEADER_FONT_SIZE),
        _parameter_width(routine.parameters),
    )
    if isinstance(routine, ScalarFunction):
        widest = max(widest, measure_text(routine.return_type, BODY_FONT_SIZE))
    return max(ROUTINE_MIN_WIDTH, widest + ROUTINE_PADDING)


def build_node_width_map(schema: SchemaGraph) -> dict[str, float]:
    widths: dict[str, float] = {}
    for table in schema.tables:
        widths[table.id] = _table_width(table)
    for view in schema.views:
        widths[view.id] = _view_width(view)
    for trigger in schema.triggers:
        widths[trigger.id] = _trigger_width(trigger)
    for routine in [*schema.stored_procedures, *schema.scalar_functions]:
        widths[routine.id] = _routine_width(routine)
    return widths
