"""
tests/test_generator.py
Unit tests for gennetta.generator.

Tests cover:
- analyze_schema success/failure payloads (never raises, masked echo, demo flag)
- Generic message for unexpected provider failures
- generate_bundle strict errors (empty selection, unknown table, validation)
- generate report for dry runs and real exports, step metrics and summary
"""

from __future__ import annotations

import json
import pathlib
from typing import Optional

import pytest

from gennetta.config import ServiceSettings
from gennetta.errors import QueryError, SchemaConnectionError, TableLookupError, ValidationError
from gennetta.exporters import MANIFEST_FILENAME
from gennetta.generator import GENERIC_FAILURE_MESSAGE, GenNettaPipeline
from gennetta.models import ConnectionDescriptor, GenerationConfig, SchemaSnapshot, TableDefinition
from gennetta.providers import DemoSchemaProvider, LiveSchemaProvider, SchemaProvider

CONN = "Server=db1;Database=Shop;User Id=sa;Password=s3cr3t;"


class RaisingProvider(SchemaProvider):
    """Provider that fails with a preset exception."""

    label = "raising"

    def __init__(self, exc: BaseException) -> None:
        self._exc = exc

    def fetch_schema(self, descriptor: Optional[ConnectionDescriptor]) -> SchemaSnapshot:
        raise self._exc


# ===========================================================================
# analyze_schema
# ===========================================================================


class TestAnalyzeSchema:
    """Tests for the never-raising analysis entry point."""

    def test_demo_success(self) -> None:
        pipeline = GenNettaPipeline(ServiceSettings(provider="demo"))
        response = pipeline.analyze_schema(CONN)
        assert response.success
        assert response.demo is True
        assert response.database == "Shop"
        assert [t.name for t in response.tables] == ["Users", "Products", "Orders", "Categories"]
        assert response.connection_string == "Server=db1;Database=Shop;User Id=sa;Password=***;"

    def test_live_success(self, engine_factory) -> None:
        provider = LiveSchemaProvider(ServiceSettings(), engine_factory=engine_factory)
        response = GenNettaPipeline(provider=provider).analyze_schema(CONN)
        assert response.success
        assert response.demo is False
        wire = response.to_wire()
        assert wire["tables"][0]["name"] == "Customers"
        assert wire["tables"][0]["columns"][0] == {
            "name": "CustomerId",
            "type": "int",
            "nullable": False,
            "primaryKey": True,
            "csharpType": "int",
        }
        assert "s3cr3t" not in json.dumps(wire)

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing_connection_string(self, raw) -> None:
        response = GenNettaPipeline(ServiceSettings(provider="demo")).analyze_schema(raw)
        assert not response.success
        assert response.error == "Connection string is required"
        assert response.error_code == ValidationError.code

    @pytest.mark.parametrize(
        "raw",
        [
            'Server=db1;Database=Shop;User Id=sa;Password="top;SECRETTAIL"',
            "Server=db1;Database=Shop;User Id=sa;Password:SECRETTAIL",
        ],
    )
    def test_malformed_input_never_echoes_password(self, raw: str) -> None:
        response = GenNettaPipeline(ServiceSettings(provider="demo")).analyze_schema(raw)
        assert not response.success
        assert response.error_code == ValidationError.code
        assert "SECRETTAIL" not in json.dumps(response.to_wire())
        assert response.connection_string.startswith("Server=db1;Database=Shop;User Id=sa;")

    def test_connection_failure(self) -> None:
        pipeline = GenNettaPipeline(provider=RaisingProvider(SchemaConnectionError("Could not connect to 'db1'")))
        response = pipeline.analyze_schema(CONN)
        assert not response.success
        assert response.error == "Could not connect to 'db1'"
        assert response.error_code == "CONNECTION_ERROR"
        assert "s3cr3t" not in response.connection_string

    def test_query_failure(self) -> None:
        pipeline = GenNettaPipeline(provider=RaisingProvider(QueryError("Metadata query failed: denied")))
        response = pipeline.analyze_schema(CONN)
        assert response.error_code == "QUERY_ERROR"

    def test_unexpected_error_is_generic(self) -> None:
        pipeline = GenNettaPipeline(provider=RaisingProvider(RuntimeError("driver internals s3cr3t")))
        response = pipeline.analyze_schema(CONN)
        assert not response.success
        assert response.error == GENERIC_FAILURE_MESSAGE
        assert "s3cr3t" not in json.dumps(response.to_wire())


# ===========================================================================
# generate_bundle
# ===========================================================================


class TestGenerateBundle:
    """Tests for the strict, in-memory generation variant."""

    def test_returns_files(self, snapshot: SchemaSnapshot) -> None:
        files = GenNettaPipeline().generate_bundle(snapshot, ["Books"], GenerationConfig(project_name="Shop"))
        assert "Shop/Models/Books.cs" in files
        assert "Shop/Models/Authors.cs" not in files

    def test_empty_selection(self, snapshot: SchemaSnapshot) -> None:
        with pytest.raises(ValidationError, match="at least one table"):
            GenNettaPipeline().generate_bundle(snapshot, [])

    def test_unknown_table(self, snapshot: SchemaSnapshot) -> None:
        with pytest.raises(TableLookupError, match="Ghost"):
            GenNettaPipeline().generate_bundle(snapshot, ["Books", "Ghost"])

    def test_validation_error(self) -> None:
        snap = SchemaSnapshot(tables=[TableDefinition(name="Home")], source="client")
        with pytest.raises(ValidationError) as exc_info:
            GenNettaPipeline().generate_bundle(snap, ["Home"])
        assert "already defines" in exc_info.value.message
        assert "RESERVED_CLASS_NAME" in exc_info.value.detail


# ===========================================================================
# generate
# ===========================================================================


class TestGenerate:
    """Tests for the reporting generation variant."""

    def test_dry_run_writes_nothing(self, snapshot: SchemaSnapshot, output_dir: pathlib.Path) -> None:
        report = GenNettaPipeline().generate(snapshot, ["Books"], output_dir=output_dir, dry_run=True)
        assert report.success
        assert report.dry_run
        assert report.total_files == len(report.files) > 0
        assert list(output_dir.iterdir()) == []
        assert report.manifest is None

    def test_no_output_dir_is_dry_run(self, snapshot: SchemaSnapshot) -> None:
        report = GenNettaPipeline().generate(snapshot, ["Books"])
        assert report.dry_run
        assert report.success

    def test_export(self, snapshot: SchemaSnapshot, output_dir: pathlib.Path) -> None:
        config = GenerationConfig(project_name="BookStore")
        report = GenNettaPipeline().generate(snapshot, ["Books", "Authors"], config, output_dir)
        assert report.success, report.summary()
        assert report.tables == ["Books", "Authors"]
        assert (output_dir / "BookStore.sln").exists()
        assert (output_dir / "BookStore" / "Models" / "Authors.cs").exists()
        assert (output_dir / MANIFEST_FILENAME).exists()
        assert report.manifest is not None
        assert report.manifest.total_files == report.total_files
        steps = [m.step_name for m in report.step_metrics]
        assert steps == ["Validate Selection", "Code Generation", "Export to Filesystem"]

    def test_duplicate_selection_reported_once(self, snapshot: SchemaSnapshot) -> None:
        report = GenNettaPipeline().generate(snapshot, ["Books", "Books"])
        assert report.success
        assert report.tables == ["Books"]
        assert report.validation_warnings

    def test_unknown_table_stops_before_generation(self, snapshot: SchemaSnapshot, output_dir: pathlib.Path) -> None:
        report = GenNettaPipeline().generate(snapshot, ["Ghost"], output_dir=output_dir)
        assert not report.success
        assert report.validation_errors
        assert report.files == {}
        assert list(output_dir.iterdir()) == []
        assert [m.step_name for m in report.step_metrics] == ["Validate Selection"]

    def test_summary_mentions_outcome(self, snapshot: SchemaSnapshot) -> None:
        ok = GenNettaPipeline().generate(snapshot, ["Books"]).summary()
        assert "SUCCESS" in ok
        assert "dry run" in ok
        failed = GenNettaPipeline().generate(snapshot, []).summary()
        assert "FAILED" in failed
        assert "Validation Errors" in failed

    def test_demo_pipeline_end_to_end(self, output_dir: pathlib.Path) -> None:
        pipeline = GenNettaPipeline(provider=DemoSchemaProvider())
        snap = pipeline.fetch_snapshot("Server=x;Database=Demo")
        report = pipeline.generate(snap, snap.table_names, output_dir=output_dir, clean=True)
        assert report.success
        assert (output_dir / "GenNettaApp" / "Views" / "Categories" / "Delete.cshtml").exists()
