"""
tests/test_providers.py
Unit tests for gennetta.providers.

Tests cover:
- Catalog type reconstruction (lengths, max, precision/scale)
- Live provider against a fake engine: per-table and batched column queries,
  view columns ignored, ordinal order preserved
- One engine per call, NullPool, engine always disposed
- Connection failures → SchemaConnectionError, query failures → QueryError,
  passwords never leaking into messages
- Demo provider labelling and file provider (YAML/JSON, bad input)
- Provider factory
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict

import pytest
from sqlalchemy.exc import NoSuchModuleError, OperationalError, ProgrammingError
from sqlalchemy.pool import NullPool

from gennetta.config import ServiceSettings
from gennetta.connection import parse_connection_string
from gennetta.errors import QueryError, SchemaConnectionError, ValidationError
from gennetta.providers import (
    DEMO_TABLES,
    DemoSchemaProvider,
    FileSchemaProvider,
    LiveSchemaProvider,
    create_provider,
    format_source_type,
    snapshot_from_dict,
)

CONN = "Server=db1;Database=Shop;User Id=sa;Password=s3cr3t"


# ===========================================================================
# format_source_type
# ===========================================================================


class TestFormatSourceType:
    @pytest.mark.parametrize(
        "args, expected",
        [
            (("nvarchar", 50), "nvarchar(50)"),
            (("varbinary", -1), "varbinary(max)"),
            (("decimal", None, 18, 2), "decimal(18,2)"),
            (("numeric", None, 10, None), "numeric(10,0)"),
            (("int", None, 10, 0), "int"),
            (("DATETIME2",), "datetime2"),
            (("ntext", 1073741823), "ntext"),
        ],
    )
    def test_rebuilds_declared_type(self, args, expected: str) -> None:
        assert format_source_type(*args) == expected


# ===========================================================================
# LiveSchemaProvider
# ===========================================================================


class TestLiveSchemaProvider:
    """Tests against the in-process fake engine from conftest."""

    def _provider(self, engine_factory, **settings: Any) -> LiveSchemaProvider:
        return LiveSchemaProvider(ServiceSettings(**settings), engine_factory=engine_factory)

    def test_reads_tables_and_columns(self, engine_factory, fake_catalog) -> None:
        snap = self._provider(engine_factory).fetch_schema(parse_connection_string(CONN))
        assert snap.source == "live"
        assert snap.database_name == "Shop"
        assert snap.table_names == ["Customers", "Orders"]

        customers = snap.get_table("Customers")
        assert customers is not None
        assert customers.column_names == ["CustomerId", "Name", "Notes"]
        assert customers.primary_key is not None
        assert customers.primary_key.name == "CustomerId"
        assert customers.get_column("Name").source_type == "nvarchar(100)"
        assert customers.get_column("Notes").source_type == "nvarchar(max)"
        assert customers.get_column("Notes").nullable is True

        orders = snap.get_table("Orders")
        assert orders.get_column("Total").source_type == "decimal(18,2)"
        assert orders.key_type == "long"

    def test_one_column_query_per_table(self, engine_factory, fake_catalog) -> None:
        self._provider(engine_factory).fetch_schema(parse_connection_string(CONN))
        column_queries = [q for q in fake_catalog.executed if ":table_name" in q]
        assert len(column_queries) == 2
        assert len(fake_catalog.executed) == 3

    def test_batched_columns_single_query(self, engine_factory, fake_catalog) -> None:
        snap = self._provider(engine_factory, batch_column_queries=True).fetch_schema(
            parse_connection_string(CONN)
        )
        assert sum("INFORMATION_SCHEMA.COLUMNS" in q for q in fake_catalog.executed) == 1
        assert not any(":table_name" in q for q in fake_catalog.executed)
        assert len(fake_catalog.executed) == 2
        # The view's column has no base table to land in
        assert snap.table_names == ["Customers", "Orders"]
        assert snap.get_table("Orders").column_names == ["OrderId", "Total", "PlacedAt"]

    def test_batched_and_per_table_agree(self, engine_factory) -> None:
        descriptor = parse_connection_string(CONN)
        a = self._provider(engine_factory).fetch_schema(descriptor)
        b = self._provider(engine_factory, batch_column_queries=True).fetch_schema(descriptor)
        assert a.tables == b.tables

    def test_engine_settings(self, engine_factory, fake_catalog) -> None:
        self._provider(engine_factory, connect_timeout=7).fetch_schema(parse_connection_string(CONN))
        engine = fake_catalog.engines[0]
        assert engine.kwargs["poolclass"] is NullPool
        assert engine.kwargs["connect_args"] == {"timeout": 7}
        assert engine.url.drivername == "mssql+pyodbc"
        assert engine.url.database == "Shop"

    def test_engine_disposed_and_connection_closed(self, engine_factory, fake_catalog) -> None:
        self._provider(engine_factory).fetch_schema(parse_connection_string(CONN))
        engine = fake_catalog.engines[0]
        assert engine.disposed
        assert all(c.closed for c in engine.connections)

    def test_fresh_engine_per_call(self, engine_factory, fake_catalog) -> None:
        provider = self._provider(engine_factory)
        descriptor = parse_connection_string(CONN)
        provider.fetch_schema(descriptor)
        provider.fetch_schema(descriptor)
        assert len(fake_catalog.engines) == 2
        assert all(e.disposed for e in fake_catalog.engines)

    def test_connect_failure(self, engine_factory, fake_catalog) -> None:
        fake_catalog.connect_error = OperationalError(
            "connect", {}, Exception("Login failed for user 'sa' with password s3cr3t")
        )
        with pytest.raises(SchemaConnectionError) as exc_info:
            self._provider(engine_factory).fetch_schema(parse_connection_string(CONN))
        assert "Could not connect to 'db1'" in exc_info.value.message
        assert "s3cr3t" not in exc_info.value.message
        assert fake_catalog.engines[0].disposed

    def test_query_failure(self, engine_factory, fake_catalog) -> None:
        fake_catalog.query_error = ProgrammingError(
            "SELECT", {}, Exception("The SELECT permission was denied")
        )
        with pytest.raises(QueryError, match="permission was denied"):
            self._provider(engine_factory).fetch_schema(parse_connection_string(CONN))
        assert fake_catalog.engines[0].disposed

    def test_invalidated_connection_is_connection_error(self, engine_factory, fake_catalog) -> None:
        fake_catalog.query_error = OperationalError(
            "SELECT", {}, Exception("TCP provider: connection reset"), connection_invalidated=True
        )
        with pytest.raises(SchemaConnectionError, match="Connection lost"):
            self._provider(engine_factory).fetch_schema(parse_connection_string(CONN))

    def test_missing_driver(self, fake_catalog) -> None:
        def broken_factory(url, **kwargs):
            raise NoSuchModuleError("Can't load plugin: sqlalchemy.dialects:mssql.pyodbc")

        provider = LiveSchemaProvider(ServiceSettings(), engine_factory=broken_factory)
        with pytest.raises(SchemaConnectionError, match="driver is not available"):
            provider.fetch_schema(parse_connection_string(CONN))

    def test_descriptor_required(self, engine_factory) -> None:
        with pytest.raises(ValidationError):
            self._provider(engine_factory).fetch_schema(None)

    def test_database_required_before_connecting(self, engine_factory, fake_catalog) -> None:
        with pytest.raises(ValidationError, match="Database"):
            self._provider(engine_factory).fetch_schema(parse_connection_string("Server=db1"))
        assert fake_catalog.engines == []


# ===========================================================================
# DemoSchemaProvider
# ===========================================================================


class TestDemoSchemaProvider:
    def test_labelled_as_demo(self) -> None:
        provider = DemoSchemaProvider()
        snap = provider.fetch_schema(parse_connection_string("Server=x;Database=Mine"))
        assert provider.is_demo
        assert snap.is_demo
        assert snap.source == "demo"
        assert snap.database_name == "Mine"
        assert snap.table_names == ["Users", "Products", "Orders", "Categories"]

    def test_without_descriptor(self) -> None:
        snap = DemoSchemaProvider().fetch_schema(None)
        assert snap.database_name == "Unknown"
        assert len(snap.tables) == len(DEMO_TABLES)

    def test_every_demo_table_has_key(self) -> None:
        assert all(t.primary_key is not None for t in DEMO_TABLES)


# ===========================================================================
# FileSchemaProvider
# ===========================================================================


class TestFileSchemaProvider:
    def test_yaml(self, schema_yaml_path: pathlib.Path) -> None:
        snap = FileSchemaProvider(schema_yaml_path).fetch_schema()
        assert snap.source == "file"
        assert snap.database_name == "BookStore"
        assert "Books" in snap.table_names

    def test_json(self, schema_json_path: pathlib.Path) -> None:
        snap = FileSchemaProvider(schema_json_path).fetch_schema()
        assert snap.get_table("Customers").key_type == "Guid"

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ValidationError, match="not found"):
            FileSchemaProvider(tmp_path / "nope.yaml").fetch_schema()

    def test_invalid_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("tables: [unclosed", encoding="utf-8")
        with pytest.raises(ValidationError, match="Invalid YAML"):
            FileSchemaProvider(path).fetch_schema()

    def test_top_level_not_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValidationError, match="Expected a mapping"):
            FileSchemaProvider(path).fetch_schema()

    def test_tables_required(self) -> None:
        with pytest.raises(ValidationError, match="'tables' list"):
            snapshot_from_dict({"database": "X"})

    def test_invalid_column_record(self, schema_dict: Dict[str, Any]) -> None:
        schema_dict["tables"][0]["columns"][0].pop("type")
        with pytest.raises(ValidationError, match="Invalid schema definition"):
            snapshot_from_dict(schema_dict)


# ===========================================================================
# create_provider
# ===========================================================================


class TestCreateProvider:
    def test_demo(self) -> None:
        assert isinstance(create_provider(ServiceSettings(provider="demo")), DemoSchemaProvider)

    def test_live_default(self) -> None:
        provider = create_provider(ServiceSettings())
        assert isinstance(provider, LiveSchemaProvider)
        assert provider.label == "live"
