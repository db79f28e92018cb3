"""Schema object model, node geometry and JSON loading."""

from schema_layout.schema.loader import load_schema, parse_schema_json
from schema_layout.schema.model import (
    Column,
    Parameter,
    ScalarFunction,
    SchemaGraph,
    StoredProcedure,
    Table,
    Trigger,
    View,
)

__all__ = [
    "Column",
    "Parameter",
    "ScalarFunction",
    "SchemaGraph",
    "StoredProcedure",
    "Table",
    "Trigger",
    "View",
    "load_schema",
    "parse_schema_json",
]
