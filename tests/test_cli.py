"""
tests/test_cli.py
End-to-end tests for gennetta.cli.

Tests cover:
- --version
- --demo --dry-run (in-memory generation, file listing)
- --analyze-only with table and JSON output
- --schema-file generation into a temporary directory, with --clean
- Exit codes for missing input, unknown tables, bad options and bad files
"""

from __future__ import annotations

import json
import pathlib
from typing import List

import pytest

from gennetta.cli import (
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)
from gennetta.exporters import MANIFEST_FILENAME


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


# ===========================================================================
# Basic invocation
# ===========================================================================


class TestCliBasics:
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == 0
        assert "GenNetta v" in capsys.readouterr().out

    def test_no_source_is_input_error(self) -> None:
        assert _run(["--dry-run"]) == EXIT_INPUT_ERROR

    def test_connection_and_schema_file_are_exclusive(self, schema_yaml_path: pathlib.Path) -> None:
        assert _run(["-c", "Server=db1", "--schema-file", str(schema_yaml_path)]) == 2


# ===========================================================================
# Analysis
# ===========================================================================


class TestCliAnalyze:
    def test_analyze_only_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = _run(["--demo", "-c", "Server=db1;Database=Shop;Password=pw", "--analyze-only"])
        assert code == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Schema Analysis" in out
        assert "DEMO DATA" in out
        assert "Password=***" in out
        assert "Users (9 columns)" in out

    def test_analyze_only_json(self, capsys: pytest.CaptureFixture[str], schema_yaml_path: pathlib.Path) -> None:
        code = _run(["--schema-file", str(schema_yaml_path), "--analyze-only", "--json"])
        assert code == EXIT_SUCCESS
        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is True
        assert payload["database"] == "BookStore"
        assert payload["demo"] is False
        assert [t["name"] for t in payload["tables"]][:2] == ["Authors", "Books"]


# ===========================================================================
# Generation
# ===========================================================================


class TestCliGenerate:
    def test_demo_dry_run(self, capsys: pytest.CaptureFixture[str], tmp_path: pathlib.Path) -> None:
        code = _run(["--demo", "--dry-run", "-t", "Users"])
        assert code == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "SUCCESS" in out
        assert "GenNettaApp/Models/Users.cs" in out
        assert "GenNettaApp/Models/Orders.cs" not in out

    def test_schema_file_to_output(self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path) -> None:
        code = _run([
            "--schema-file", str(schema_yaml_path),
            "-t", "Books", "-t", "Authors",
            "-o", str(output_dir),
            "--project-name", "BookStore",
            "--no-swagger",
        ])
        assert code == EXIT_SUCCESS
        assert (output_dir / "BookStore.sln").exists()
        assert (output_dir / "BookStore" / "Controllers" / "BooksApiController.cs").exists()
        assert not (output_dir / "BookStore" / "Models" / "Customers.cs").exists()
        csproj = (output_dir / "BookStore" / "BookStore.csproj").read_text(encoding="utf-8")
        assert "Swashbuckle" not in csproj
        manifest = json.loads((output_dir / MANIFEST_FILENAME).read_text(encoding="utf-8"))
        assert manifest["tables"] == ["Books", "Authors"]

    def test_all_tables_by_default(self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path) -> None:
        assert _run(["--schema-file", str(schema_yaml_path), "-o", str(output_dir)]) == EXIT_SUCCESS
        assert (output_dir / "GenNettaApp" / "Models" / "AuditLog.cs").exists()

    def test_clean(self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path) -> None:
        (output_dir / "stale.txt").write_text("old", encoding="utf-8")
        code = _run(["--schema-file", str(schema_yaml_path), "-t", "Books", "-o", str(output_dir), "--clean"])
        assert code == EXIT_SUCCESS
        assert not (output_dir / "stale.txt").exists()

    def test_missing_output_is_input_error(self) -> None:
        assert _run(["--demo", "-t", "Users"]) == EXIT_INPUT_ERROR

    def test_unknown_table_is_validation_error(self) -> None:
        assert _run(["--demo", "--dry-run", "-t", "Ghost"]) == EXIT_VALIDATION_ERROR

    def test_invalid_project_name_is_input_error(self) -> None:
        assert _run(["--demo", "--dry-run", "--project-name", "My App"]) == EXIT_INPUT_ERROR

    def test_bad_target_framework_fails_validation(self) -> None:
        code = _run(["--demo", "--dry-run", "--target-framework", "dotnet8"])
        assert code == EXIT_VALIDATION_ERROR

    def test_missing_schema_file(self, tmp_path: pathlib.Path) -> None:
        assert _run(["--schema-file", str(tmp_path / "nope.yaml"), "--dry-run"]) == EXIT_INPUT_ERROR
