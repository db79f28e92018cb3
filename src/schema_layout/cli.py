"""CLI for schema-layout."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from schema_layout import __version__
from schema_layout.layout import (
    compute_focus_layout,
    compute_layer_ranks,
    compute_overview_layout,
)
from schema_layout.layout.geometry import Rect
from schema_layout.schema import SchemaGraph, load_schema
from schema_layout.schema.geometry import build_node_height_map, build_node_width_map


def _load_or_exit(input_file: Path) -> SchemaGraph:
    try:
        return load_schema(input_file)
    except ValueError as e:
        click.echo(f"Parse error: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log layout decisions to stderr")
def cli(verbose: bool) -> None:
    """schema-layout: Lay out database object graphs as left-to-right diagrams."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Output JSON path. Defaults to <input>.layout.json")
@click.option("--focus", "focus_id", default=None,
              help="Lay out only this object and its direct neighbours")
@click.option("--indent", type=int, default=2,
              help="JSON indentation (default: 2)")
def layout(
    input_file: Path, output: Path | None, focus_id: str | None, indent: int
) -> None:
    """Compute node positions for a schema JSON file."""
    schema = _load_or_exit(input_file)

    if focus_id is not None:
        if focus_id not in schema.node_ids():
            click.echo(f"Unknown object '{focus_id}'", err=True)
            raise SystemExit(1)
        result = compute_focus_layout(schema, focus_id)
    else:
        result = compute_overview_layout(schema)

    if output is None:
        output = input_file.with_name(input_file.stem + ".layout.json")

    output.write_text(json.dumps(result.to_dict(), indent=indent) + "\n")
    click.echo(f"Placed {len(result.positions)} objects "
               f"({len(result.unplaced_child_ids)} triggers without a table) "
               f"-> {output}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
def info(input_file: Path) -> None:
    """Show information about a schema JSON file."""
    schema = _load_or_exit(input_file)
    edges = schema.dependency_edges()
    ranks = compute_layer_ranks(schema.table_view_ids(), edges)
    cycles = [c for c in ranks.components if len(c) > 1]

    click.echo(f"Tables: {len(schema.tables)}")
    click.echo(f"Views: {len(schema.views)}")
    click.echo(f"Triggers: {len(schema.triggers)}")
    click.echo(f"Stored procedures: {len(schema.stored_procedures)}")
    click.echo(f"Scalar functions: {len(schema.scalar_functions)}")
    click.echo(f"Edges: {len(edges)}")
    click.echo(f"Ranks: {len(ranks.layers)}")
    click.echo(f"Cycles: {len(cycles)}")
    for members in cycles:
        click.echo(f"  {' <-> '.join(members)}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
def validate(input_file: Path) -> None:
    """Validate a schema JSON file and check its overview layout."""
    schema = _load_or_exit(input_file)

    known = set(schema.node_ids())
    table_view_ids = set(schema.table_view_ids())
    warnings = []
    for source, target in schema.edges:
        for end in (source, target):
            if end not in known:
                warnings.append(f"Edge {source} -> {target} references "
                                f"unknown object '{end}'")
    for trigger in schema.triggers:
        if trigger.table_id not in table_view_ids:
            warnings.append(f"Trigger '{trigger.id}' fires on unknown "
                            f"table '{trigger.table_id}'")
    for view in schema.views:
        for source in view.referenced_tables:
            if source not in table_view_ids:
                warnings.append(f"View '{view.id}' references unknown "
                                f"object '{source}'")

    for warning in warnings:
        click.echo(f"Warning: {warning}", err=True)

    result = compute_overview_layout(schema)
    heights = build_node_height_map(schema)
    widths = build_node_width_map(schema)
    boxes = [
        (node_id, Rect(pos.x, pos.y, widths[node_id], heights[node_id]))
        for node_id, pos in sorted(result.positions.items())
    ]
    errors = []
    for i, (id_a, rect_a) in enumerate(boxes):
        for id_b, rect_b in boxes[i + 1:]:
            if rect_a.intersects(rect_b):
                errors.append(f"Objects '{id_a}' and '{id_b}' overlap")

    if errors:
        click.echo("Layout errors:", err=True)
        for err in errors:
            click.echo(f"  - {err}", err=True)
        raise SystemExit(1)

    click.echo(f"Valid: {len(known)} objects, "
               f"{len(schema.dependency_edges())} edges, "
               f"{len(warnings)} warnings")
