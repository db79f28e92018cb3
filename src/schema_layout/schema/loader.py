"""Loader for schema graph JSON documents.

The document mirrors what the introspection backend emits: a top-level
object with optional ``tables``, ``views``, ``triggers``,
``storedProcedures``, ``scalarFunctions`` and ``edges`` lists, using
camelCase keys. Malformed documents raise ``ValueError`` naming the
offending entry. Edges pointing at unknown objects are kept as-is; the
layout engine ignores them.
"""

from __future__ import annotations

__all__ = ["load_schema", "parse_schema_json"]

import json
from pathlib import Path
from typing import Any

from schema_layout.layout.layers import DirectedEdge
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

_SECTIONS = (
    "tables",
    "views",
    "triggers",
    "storedProcedures",
    "scalarFunctions",
    "edges",
)


def load_schema(path: str | Path) -> SchemaGraph:
    """Read and parse a schema JSON file."""
    return parse_schema_json(Path(path).read_text())


def parse_schema_json(text: str) -> SchemaGraph:
    """Parse a schema graph JSON document."""
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON at line {e.lineno}: {e.msg}") from e

    if not isinstance(doc, dict):
        raise ValueError(
            "Schema document must be a JSON object with 'tables', 'views', "
            "'triggers', 'storedProcedures', 'scalarFunctions' and 'edges' lists"
        )

    for key in _SECTIONS:
        if key in doc and not isinstance(doc[key], list):
            raise ValueError(f"'{key}' must be a list, got {type(doc[key]).__name__}")

    graph = SchemaGraph(
        tables=[_parse_table(e, i) for i, e in enumerate(doc.get("tables", []))],
        views=[_parse_view(e, i) for i, e in enumerate(doc.get("views", []))],
        triggers=[_parse_trigger(e, i) for i, e in enumerate(doc.get("triggers", []))],
        stored_procedures=[
            _parse_procedure(e, i)
            for i, e in enumerate(doc.get("storedProcedures", []))
        ],
        scalar_functions=[
            _parse_function(e, i) for i, e in enumerate(doc.get("scalarFunctions", []))
        ],
        edges=[_parse_edge(e, i) for i, e in enumerate(doc.get("edges", []))],
    )
    _check_unique_ids(graph)
    return graph


def _require_object(entry: Any, kind: str, index: int) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise ValueError(f"{kind} #{index} must be an object")
    return entry


def _identity(entry: dict[str, Any], kind: str, index: int) -> tuple[str, str, str]:
    """Return (id, name, schema); name/schema default to the id's parts."""
    obj_id = entry.get("id")
    if not isinstance(obj_id, str) or not obj_id:
        raise ValueError(f"{kind} #{index} is missing a string 'id'")
    schema, _, name = obj_id.rpartition(".")
    return obj_id, str(entry.get("name") or name), str(entry.get("schema") or schema)


def _parse_columns(entry: dict[str, Any], owner_id: str) -> list[Column]:
    raw = entry.get("columns", [])
    if not isinstance(raw, list):
        raise ValueError(f"'columns' of '{owner_id}' must be a list")
    columns = []
    for col in raw:
        if not isinstance(col, dict) or "name" not in col:
            raise ValueError(f"Column of '{owner_id}' must be an object with a 'name'")
        columns.append(
            Column(
                name=str(col["name"]),
                data_type=str(col.get("dataType", "")),
                is_nullable=bool(col.get("isNullable", True)),
                is_primary_key=bool(col.get("isPrimaryKey", False)),
            )
        )
    return columns


def _parse_parameters(entry: dict[str, Any], owner_id: str) -> list[Parameter]:
    raw = entry.get("parameters", [])
    if not isinstance(raw, list):
        raise ValueError(f"'parameters' of '{owner_id}' must be a list")
    params = []
    for param in raw:
        if not isinstance(param, dict) or "name" not in param:
            raise ValueError(
                f"Parameter of '{owner_id}' must be an object with a 'name'"
            )
        params.append(Parameter(str(param["name"]), str(param.get("dataType", ""))))
    return params


def _parse_table(entry: Any, index: int) -> Table:
    entry = _require_object(entry, "Table", index)
    obj_id, name, schema = _identity(entry, "Table", index)
    return Table(obj_id, name, schema, _parse_columns(entry, obj_id))


def _parse_view(entry: Any, index: int) -> View:
    entry = _require_object(entry, "View", index)
    obj_id, name, schema = _identity(entry, "View", index)
    return View(
        obj_id,
        name,
        schema,
        _parse_columns(entry, obj_id),
        referenced_tables=[str(t) for t in entry.get("referencedTables", [])],
    )


def _parse_trigger(entry: Any, index: int) -> Trigger:
    entry = _require_object(entry, "Trigger", index)
    obj_id, name, schema = _identity(entry, "Trigger", index)
    table_id = entry.get("tableId")
    if not isinstance(table_id, str) or not table_id:
        raise ValueError(f"Trigger '{obj_id}' is missing a string 'tableId'")
    return Trigger(
        obj_id,
        name,
        schema,
        table_id,
        trigger_type=str(entry.get("triggerType", "")),
        fires_on_insert=bool(entry.get("firesOnInsert", False)),
        fires_on_update=bool(entry.get("firesOnUpdate", False)),
        fires_on_delete=bool(entry.get("firesOnDelete", False)),
    )


def _parse_procedure(entry: Any, index: int) -> StoredProcedure:
    entry = _require_object(entry, "Stored procedure", index)
    obj_id, name, schema = _identity(entry, "Stored procedure", index)
    return StoredProcedure(obj_id, name, schema, _parse_parameters(entry, obj_id))


def _parse_function(entry: Any, index: int) -> ScalarFunction:
    entry = _require_object(entry, "Scalar function", index)
    obj_id, name, schema = _identity(entry, "Scalar function", index)
    return ScalarFunction(
        obj_id,
        name,
        schema,
        _parse_parameters(entry, obj_id),
        return_type=str(entry.get("returnType", "")),
    )


def _parse_edge(entry: Any, index: int) -> DirectedEdge:
    if isinstance(entry, dict) and "from" in entry and "to" in entry:
        return DirectedEdge(str(entry["from"]), str(entry["to"]))
    if isinstance(entry, list) and len(entry) == 2:
        return DirectedEdge(str(entry[0]), str(entry[1]))
    raise ValueError(
        f"Edge #{index} must be an object with 'from' and 'to' or a [from, to] pair"
    )


def _check_unique_ids(graph: SchemaGraph) -> None:
    seen: set[str] = set()
    for obj_id in graph.node_ids():
        if obj_id in seen:
            raise ValueError(f"Duplicate object id '{obj_id}'")
        seen.add(obj_id)
