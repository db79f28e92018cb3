"""Tests for the CLI entry points."""

import json
from pathlib import Path

from click.testing import CliRunner

from schema_layout.cli import cli
from schema_layout.layout.engine import DiagramLayout
from schema_layout.layout.geometry import Position
from schema_layout.schema.geometry import TABLE_VIEW_MIN_WIDTH

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"
SAMPLE_JSON = EXAMPLES_DIR / "sample_schema.json"


def test_layout_writes_json(tmp_path):
    """layout command writes positions, bounds, ranks and unplaced ids."""
    out = tmp_path / "out.json"
    runner = CliRunner()
    result = runner.invoke(cli, ["layout", str(SAMPLE_JSON), "-o", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert set(data) == {"positions", "bounds", "ranks", "unplaced"}
    assert "sales.Order" in data["positions"]
    assert data["unplaced"] == ["archive.trgLegacyOrders"]


def test_layout_default_output(tmp_path):
    """layout command uses input stem + .layout.json when no -o given."""
    src = tmp_path / "db.json"
    src.write_text(SAMPLE_JSON.read_text())
    runner = CliRunner()
    result = runner.invoke(cli, ["layout", str(src)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "db.layout.json").exists()


def test_layout_output_ends_with_newline(tmp_path):
    out = tmp_path / "out.json"
    runner = CliRunner()
    result = runner.invoke(
        cli, ["layout", str(SAMPLE_JSON), "-o", str(out), "--indent", "0"]
    )
    assert result.exit_code == 0, result.output
    assert out.read_text().endswith("\n")


def test_layout_focus(tmp_path):
    out = tmp_path / "focus.json"
    runner = CliRunner()
    result = runner.invoke(
        cli, ["layout", str(SAMPLE_JSON), "-o", str(out), "--focus", "sales.Order"]
    )
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert data["positions"]["sales.Order"] == {"x": 0.0, "y": 0.0}
    assert "sales.Product" not in data["positions"]


def test_layout_focus_unknown_object(tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["layout", str(SAMPLE_JSON), "-o", str(tmp_path / "x.json"), "--focus", "nope"],
    )
    assert result.exit_code == 1
    assert "Unknown object" in result.output


def test_validate_success():
    """validate command succeeds on valid input and reports warnings."""
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", str(SAMPLE_JSON)])
    assert result.exit_code == 0, result.output
    assert "Valid:" in result.output
    assert "archive.OldOrders" in result.output


def test_validate_bad_file(tmp_path):
    """validate command reports parse errors."""
    bad = tmp_path / "bad.json"
    bad.write_text("not json at all")
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", str(bad)])
    assert result.exit_code == 1
    assert "Parse error" in result.output


def test_validate_dangling_edge(tmp_path):
    src = tmp_path / "dangling.json"
    src.write_text(
        json.dumps(
            {
                "tables": [{"id": "s.a"}],
                "edges": [{"from": "s.a", "to": "s.missing"}],
            }
        )
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", str(src)])
    assert result.exit_code == 0, result.output
    assert "unknown object 's.missing'" in result.output
    assert "1 warnings" in result.output


def test_info_output():
    """info command prints graph metadata."""
    runner = CliRunner()
    result = runner.invoke(cli, ["info", str(SAMPLE_JSON)])
    assert result.exit_code == 0
    assert "Tables: 6" in result.output
    assert "Views: 1" in result.output
    assert "Triggers: 4" in result.output
    assert "Edges: 7" in result.output
    assert "Ranks: 3" in result.output
    assert "Cycles: 1" in result.output
    assert "hr.Employee <-> hr.Manager" in result.output


def test_verbose_flag(tmp_path):
    out = tmp_path / "out.json"
    runner = CliRunner()
    result = runner.invoke(
        cli, ["--verbose", "layout", str(SAMPLE_JSON), "-o", str(out)]
    )
    assert result.exit_code == 0, result.output


def test_version():
    """--version flag prints version string."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "version" in result.output.lower()


def test_layout_nonexistent_file():
    """layout command fails gracefully on missing input."""
    runner = CliRunner()
    result = runner.invoke(cli, ["layout", "/nonexistent/file.json"])
    assert result.exit_code != 0


def test_validate_reports_overlapping_objects(tmp_path, monkeypatch):
    """validate flags overlapping objects but not ones that only touch."""
    src = tmp_path / "three.json"
    src.write_text(
        json.dumps({"tables": [{"id": "s.a"}, {"id": "s.b"}, {"id": "s.c"}]})
    )
    broken = DiagramLayout(
        positions={
            "s.a": Position(0.0, 0.0),
            "s.b": Position(10.0, 10.0),
            "s.c": Position(-TABLE_VIEW_MIN_WIDTH, 0.0),
        }
    )
    monkeypatch.setattr(
        "schema_layout.cli.compute_overview_layout", lambda schema: broken
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", str(src)])
    assert result.exit_code == 1
    assert "Objects 's.a' and 's.b' overlap" in result.output
    assert "s.c" not in result.output


def test_validate_unknown_view_reference(tmp_path):
    src = tmp_path / "view.json"
    src.write_text(
        json.dumps(
            {
                "tables": [{"id": "s.a"}],
                "views": [{"id": "s.v", "referencedTables": ["s.a", "s.gone"]}],
            }
        )
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", str(src)])
    assert result.exit_code == 0, result.output
    assert "View 's.v' references unknown object 's.gone'" in result.output
    assert "Valid: 2 objects, 1 edges, 1 warnings" in result.output
