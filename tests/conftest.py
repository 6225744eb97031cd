"""
tests/conftest.py
Shared fixtures for the gennetta test suite.

All fixtures are session-scoped or function-scoped as appropriate.
No external mocking libraries are used: the live provider runs against an
in-process fake of the SQLAlchemy engine/connection pair, and real file
I/O is performed inside temporary directories managed by pytest's
tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import os
import pathlib
from typing import Any, Dict, List, Optional

import pytest
import yaml
from fastapi.testclient import TestClient

from gennetta.api import create_app
from gennetta.config import ENV_PREFIX, ServiceSettings
from gennetta.models import ColumnDefinition, SchemaSnapshot, TableDefinition
from gennetta.providers import DemoSchemaProvider, snapshot_from_dict


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
    """Keep GENNETTA_* variables and a developer's .env out of every test."""
    for name in list(os.environ):
        if name.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def schema_json_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Same schema saved as JSON."""
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(schema_dict, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Snapshot fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def snapshot(schema_dict: Dict[str, Any]) -> SchemaSnapshot:
    """The BookStore snapshot from schema_example.yaml."""
    return snapshot_from_dict(schema_dict)


@pytest.fixture()
def demo_snapshot() -> SchemaSnapshot:
    return DemoSchemaProvider().fetch_schema(None)


def make_table(name: str, *columns: ColumnDefinition) -> TableDefinition:
    return TableDefinition(name=name, columns=list(columns))


def col(
    name: str,
    source_type: str = "int",
    nullable: bool = False,
    pk: bool = False,
) -> ColumnDefinition:
    return ColumnDefinition(
        name=name, source_type=source_type, nullable=nullable, is_primary_key=pk
    )


@pytest.fixture()
def minimal_snapshot() -> SchemaSnapshot:
    """Smallest useful snapshot: one table, a key and one string column."""
    return SchemaSnapshot(
        tables=[make_table("Item", col("Id", pk=True), col("Title", "nvarchar(100)"))],
        database_name="Minimal",
        source="file",
    )


# ---------------------------------------------------------------------------
# Fake SQLAlchemy engine for the live provider
# ---------------------------------------------------------------------------


def catalog_row(
    table: str,
    column: str,
    data_type: str,
    nullable: bool = False,
    pk: bool = False,
    max_length: Optional[int] = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
) -> Dict[str, Any]:
    """One row as returned by the INFORMATION_SCHEMA column query."""
    return {
        "TABLE_NAME": table,
        "COLUMN_NAME": column,
        "DATA_TYPE": data_type,
        "IS_NULLABLE": "YES" if nullable else "NO",
        "CHARACTER_MAXIMUM_LENGTH": max_length,
        "NUMERIC_PRECISION": precision,
        "NUMERIC_SCALE": scale,
        "IS_PRIMARY_KEY": 1 if pk else 0,
    }


class FakeResult:
    def __init__(self, rows: List[Dict[str, Any]]) -> None:
        self._rows = rows

    def mappings(self) -> "FakeResult":
        return self

    def all(self) -> List[Dict[str, Any]]:
        return list(self._rows)


class FakeCatalog:
    """
    In-memory catalog answering the provider's metadata queries.

    Set ``connect_error`` or ``query_error`` to an exception instance to make
    ``connect()`` or ``execute()`` raise it.
    """

    def __init__(self) -> None:
        self.tables: List[str] = ["Customers", "Orders"]
        self.columns: List[Dict[str, Any]] = [
            catalog_row("Customers", "CustomerId", "int", pk=True, precision=10, scale=0),
            catalog_row("Customers", "Name", "nvarchar", max_length=100),
            catalog_row("Customers", "Notes", "nvarchar", nullable=True, max_length=-1),
            catalog_row("Orders", "OrderId", "bigint", pk=True, precision=19, scale=0),
            catalog_row("Orders", "Total", "decimal", precision=18, scale=2),
            catalog_row("Orders", "PlacedAt", "datetime2", nullable=True),
            # Column of a view; the table query never lists it
            catalog_row("OrderSummary", "Total", "decimal", precision=18, scale=2),
        ]
        self.connect_error: Optional[BaseException] = None
        self.query_error: Optional[BaseException] = None
        self.executed: List[str] = []
        self.engines: List["FakeEngine"] = []

    def answer(self, sql: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        self.executed.append(sql)
        if self.query_error is not None:
            raise self.query_error
        if "INFORMATION_SCHEMA.COLUMNS" in sql:
            if "table_name" in params:
                return [r for r in self.columns if r["TABLE_NAME"] == params["table_name"]]
            return list(self.columns)
        return [{"TABLE_NAME": name} for name in self.tables]


class FakeConnection:
    def __init__(self, catalog: FakeCatalog) -> None:
        self._catalog = catalog
        self.closed = False

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.closed = True

    def execute(self, clause: Any, params: Optional[Dict[str, Any]] = None) -> FakeResult:
        return FakeResult(self._catalog.answer(str(clause), params or {}))


class FakeEngine:
    def __init__(self, catalog: FakeCatalog, url: Any, kwargs: Dict[str, Any]) -> None:
        self._catalog = catalog
        self.url = url
        self.kwargs = kwargs
        self.disposed = False
        self.connections: List[FakeConnection] = []

    def connect(self) -> FakeConnection:
        if self._catalog.connect_error is not None:
            raise self._catalog.connect_error
        connection = FakeConnection(self._catalog)
        self.connections.append(connection)
        return connection

    def dispose(self) -> None:
        self.disposed = True


@pytest.fixture()
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture()
def engine_factory(fake_catalog: FakeCatalog):
    """Drop-in for ``create_engine`` that hands out FakeEngines."""

    def factory(url: Any, **kwargs: Any) -> FakeEngine:
        engine = FakeEngine(fake_catalog, url, kwargs)
        fake_catalog.engines.append(engine)
        return engine

    return factory


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def demo_settings() -> ServiceSettings:
    return ServiceSettings(provider="demo", cors_origins=["http://localhost:3000"])


@pytest.fixture()
def client(demo_settings: ServiceSettings) -> TestClient:
    """TestClient over an app backed by the demo provider."""
    return TestClient(create_app(demo_settings))


# ---------------------------------------------------------------------------
# Output directory fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Provide a clean output directory inside tmp_path."""
    out = tmp_path / "generated_output"
    out.mkdir(parents=True, exist_ok=True)
    return out
