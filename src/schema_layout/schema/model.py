"""Data model for database object graphs."""

from __future__ import annotations

from dataclasses import dataclass, field

from schema_layout.layout.layers import DirectedEdge


@dataclass
class Column:
    """A column of a table or view."""

    name: str
    data_type: str
    is_nullable: bool = True
    is_primary_key: bool = False


@dataclass
class Table:
    """A table node. ``id`` has the form ``schema.table``."""

    id: str
    name: str
    schema: str
    columns: list[Column] = field(default_factory=list)


@dataclass
class View:
    """A view node; same shape as a table plus the objects it selects from."""

    id: str
    name: str
    schema: str
    columns: list[Column] = field(default_factory=list)
    referenced_tables: list[str] = field(default_factory=list)


@dataclass
class Trigger:
    """A trigger, drawn as a satellite of the table it fires on."""

    id: str
    name: str
    schema: str
    table_id: str
    trigger_type: str = ""
    fires_on_insert: bool = False
    fires_on_update: bool = False
    fires_on_delete: bool = False

    def event_text(self) -> str:
        """Short event marker, e.g. ``"I U"`` for insert+update."""
        events = [
            ("I", self.fires_on_insert),
            ("U", self.fires_on_update),
            ("D", self.fires_on_delete),
        ]
        return " ".join(letter for letter, fires in events if fires)


@dataclass
class Parameter:
    name: str
    data_type: str


@dataclass
class StoredProcedure:
    id: str
    name: str
    schema: str
    parameters: list[Parameter] = field(default_factory=list)


@dataclass
class ScalarFunction:
    id: str
    name: str
    schema: str
    parameters: list[Parameter] = field(default_factory=list)
    return_type: str = ""


@dataclass
class SchemaGraph:
    """Complete object graph of one database.

    ``edges`` are the explicit dependency edges between tables and views.
    ``dependency_edges()`` adds the edges implied by view references.
    """

    tables: list[Table] = field(default_factory=list)
    views: list[View] = field(default_factory=list)
    triggers: list[Trigger] = field(default_factory=list)
    stored_procedures: list[StoredProcedure] = field(default_factory=list)
    scalar_functions: list[ScalarFunction] = field(default_factory=list)
    edges: list[DirectedEdge] = field(default_factory=list)

    def table_view_ids(self) -> list[str]:
        """Ids of tables then views, in definition order."""
        return [t.id for t in self.tables] + [v.id for v in self.views]

    def node_ids(self) -> list[str]:
        """Every object id in the graph."""
        return (
            self.table_view_ids()
            + [t.id for t in self.triggers]
            + [p.id for p in self.stored_procedures]
            + [f.id for f in self.scalar_functions]
        )

    def triggers_by_table(self) -> dict[str, list[str]]:
        """Return table id -> trigger ids, in definition order."""
        grouped: dict[str, list[str]] = {}
        for trigger in self.triggers:
            grouped.setdefault(trigger.table_id, []).append(trigger.id)
        return grouped

    def dependency_edges(self) -> list[DirectedEdge]:
        """Explicit edges plus ``(referenced object, view)`` for every view.

        View references to ids that are not tables or views are skipped.
        Self-loops and repeated edges are dropped; first occurrence wins.
        """
        known = set(self.table_view_ids())
        candidates = list(self.edges)
        for view in self.views:
            candidates.extend(
                DirectedEdge(source, view.id)
                for source in view.referenced_tables
                if source in known
            )

        edges: list[DirectedEdge] = []
        seen: set[tuple[str, str]] = set()
        for source, target in candidates:
            if not source or not target or source == target:
                continue
            if (source, target) in seen:
                continue
            seen.add((source, target))
            edges.append(DirectedEdge(source, target))
        return edges
