# File: gennetta/providers.py
"""
GenNetta - Schema Providers
===========================
Everything that can turn a connection descriptor into a ``SchemaSnapshot``.

Three implementations sit behind one interface and are never mixed:

- ``LiveSchemaProvider``: queries ``INFORMATION_SCHEMA`` through SQLAlchemy.
  One engine and one connection per call, both released in ``finally``.
  No pool, no retries.
- ``DemoSchemaProvider``: fixed sample tables, labelled ``source="demo"``.
- ``FileSchemaProvider``: a snapshot saved as JSON or YAML.

Query plan for the live provider::

    1. SELECT base tables of the catalog schema, ordered by name.
    2. For each table: SELECT columns LEFT JOIN primary-key usage,
       ordered by ORDINAL_POSITION.
       (``batch_column_queries`` replaces step 2 with one query for all tables.)
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import ArgumentError, DBAPIError, NoSuchModuleError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from gennetta.config import ServiceSettings
from gennetta.connection import build_sqlalchemy_url, scrub_secret
from gennetta.errors import QueryError, SchemaConnectionError, ValidationError
from gennetta.models import (
    ColumnDefinition,
    ConnectionDescriptor,
    SchemaSnapshot,
    TableDefinition,
)
from gennetta.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.providers")

# ---------------------------------------------------------------------------
# Catalog queries
# ---------------------------------------------------------------------------

TABLES_QUERY: str = """
SELECT TABLE_NAME
FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_TYPE = 'BASE TABLE'
  AND TABLE_SCHEMA = :schema
ORDER BY TABLE_NAME
"""

_COLUMNS_SELECT: str = """
SELECT
    c.TABLE_NAME,
    c.COLUMN_NAME,
    c.DATA_TYPE,
    c.IS_NULLABLE,
    c.CHARACTER_MAXIMUM_LENGTH,
    c.NUMERIC_PRECISION,
    c.NUMERIC_SCALE,
    CASE WHEN pk.COLUMN_NAME IS NOT NULL THEN 1 ELSE 0 END AS IS_PRIMARY_KEY
FROM INFORMATION_SCHEMA.COLUMNS c
LEFT JOIN (
    SELECT ku.TABLE_SCHEMA, ku.TABLE_NAME, ku.COLUMN_NAME
    FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
    JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku
      ON tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
     AND tc.TABLE_SCHEMA = ku.TABLE_SCHEMA
    WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
) pk
  ON c.TABLE_SCHEMA = pk.TABLE_SCHEMA
 AND c.TABLE_NAME = pk.TABLE_NAME
 AND c.COLUMN_NAME = pk.COLUMN_NAME
WHERE c.TABLE_SCHEMA = :schema
"""

TABLE_COLUMNS_QUERY: str = (
    _COLUMNS_SELECT
    + "  AND c.TABLE_NAME = :table_name\n"
    + "ORDER BY c.ORDINAL_POSITION\n"
)

ALL_COLUMNS_QUERY: str = _COLUMNS_SELECT + "ORDER BY c.TABLE_NAME, c.ORDINAL_POSITION\n"

# Types whose CHARACTER_MAXIMUM_LENGTH is part of the declared type
_SIZED_TYPES = frozenset({"char", "nchar", "varchar", "nvarchar", "binary", "varbinary"})
_PRECISION_TYPES = frozenset({"decimal", "numeric"})

EngineFactory = Callable[..., Engine]


def format_source_type(
    data_type: str,
    max_length: Optional[int] = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
) -> str:
    """
    Rebuild the declared type from catalog columns.

    Examples:
        >>> format_source_type("nvarchar", 50)
        'nvarchar(50)'
        >>> format_source_type("nvarchar", -1)
        'nvarchar(max)'
        >>> format_source_type("decimal", None, 18, 2)
        'decimal(18,2)'
    """
    base: str = data_type.strip().lower()
    if base in _PRECISION_TYPES and precision is not None:
        return f"{base}({int(precision)},{int(scale or 0)})"
    if base in _SIZED_TYPES and max_length is not None:
        return f"{base}(max)" if int(max_length) == -1 else f"{base}({int(max_length)})"
    return base


def column_from_row(row: Mapping[str, Any]) -> ColumnDefinition:
    """Build a ``ColumnDefinition`` from one row of the column query."""
    return ColumnDefinition(
        name=row["COLUMN_NAME"],
        source_type=format_source_type(
            row["DATA_TYPE"],
            row.get("CHARACTER_MAXIMUM_LENGTH"),
            row.get("NUMERIC_PRECISION"),
            row.get("NUMERIC_SCALE"),
        ),
        nullable=str(row["IS_NULLABLE"]).upper() == "YES",
        is_primary_key=int(row.get("IS_PRIMARY_KEY") or 0) == 1,
    )


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------


class SchemaProvider(ABC):
    """Produces a ``SchemaSnapshot``; one independent attempt per call."""

    label: str = "provider"
    is_demo: bool = False

    @abstractmethod
    def fetch_schema(self, descriptor: Optional[ConnectionDescriptor]) -> SchemaSnapshot:
        """
        Read the schema reachable through *descriptor*.

        Raises:
            ValidationError: The descriptor lacks something this provider needs.
            SchemaConnectionError: The data source could not be reached.
            QueryError: A metadata query was rejected.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} label={self.label}>"


# ---------------------------------------------------------------------------
# Live provider
# ---------------------------------------------------------------------------


class LiveSchemaProvider(SchemaProvider):
    """
    Introspects SQL Server through SQLAlchemy + pyodbc.

    Args:
        settings: Driver name, catalog schema, timeout and batching.
        engine_factory: Callable with ``create_engine``'s signature; swapped
            out in tests.
    """

    label = "live"

    def __init__(
        self,
        settings: Optional[ServiceSettings] = None,
        *,
        engine_factory: EngineFactory = create_engine,
    ) -> None:
        self._settings: ServiceSettings = settings or ServiceSettings()
        self._engine_factory: EngineFactory = engine_factory

    @property
    def settings(self) -> ServiceSettings:
        return self._settings

    def build_url(self, descriptor: ConnectionDescriptor) -> URL:
        return build_sqlalchemy_url(
            descriptor,
            driver=self._settings.odbc_driver,
            trust_server_certificate=self._settings.trust_server_certificate,
        )

    def fetch_schema(self, descriptor: Optional[ConnectionDescriptor]) -> SchemaSnapshot:
        if descriptor is None:
            raise ValidationError("Connection string is required")

        url: URL = self.build_url(descriptor)

        try:
            engine: Engine = self._engine_factory(
                url,
                poolclass=NullPool,
                connect_args={"timeout": self._settings.connect_timeout},
            )
        except (ImportError, NoSuchModuleError, ArgumentError) as exc:
            raise SchemaConnectionError(
                f"SQL Server driver is not available: {exc}"
            ) from exc

        logger.info(
            "Connecting to %s (database=%s, schema=%s).",
            descriptor.host,
            descriptor.database,
            self._settings.catalog_schema,
        )

        try:
            try:
                connection: Connection = engine.connect()
            except SQLAlchemyError as exc:
                raise SchemaConnectionError(
                    scrub_secret(
                        f"Could not connect to '{descriptor.host}': {self._reason(exc)}",
                        descriptor,
                    )
                ) from exc

            with Timer("introspection") as t:
                with connection:
                    tables: List[TableDefinition] = self._read_tables(connection, descriptor)
        finally:
            engine.dispose()

        logger.info(
            "Introspected %d table(s) from %s in %.3fs.",
            len(tables),
            descriptor.database,
            t.elapsed,
        )
        return SchemaSnapshot(
            tables=tables,
            database_name=descriptor.database,
            source="live",
        )

    # -- Query steps ----------------------------------------------------

    def _read_tables(
        self,
        connection: Connection,
        descriptor: ConnectionDescriptor,
    ) -> List[TableDefinition]:
        schema: str = self._settings.catalog_schema
        table_rows: List[Mapping[str, Any]] = self._execute(
            connection, TABLES_QUERY, {"schema": schema}, descriptor
        )
        table_names: List[str] = [row["TABLE_NAME"] for row in table_rows]
        logger.debug("Found %d base table(s) in schema '%s'.", len(table_names), schema)

        if self._settings.batch_column_queries:
            return self._read_columns_batched(connection, descriptor, table_names)

        tables: List[TableDefinition] = []
        for name in table_names:
            rows: List[Mapping[str, Any]] = self._execute(
                connection,
                TABLE_COLUMNS_QUERY,
                {"schema": schema, "table_name": name},
                descriptor,
            )
            tables.append(
                TableDefinition(name=name, columns=[column_from_row(r) for r in rows])
            )
        return tables

    def _read_columns_batched(
        self,
        connection: Connection,
        descriptor: ConnectionDescriptor,
        table_names: Sequence[str],
    ) -> List[TableDefinition]:
        rows: List[Mapping[str, Any]] = self._execute(
            connection,
            ALL_COLUMNS_QUERY,
            {"schema": self._settings.catalog_schema},
            descriptor,
        )
        by_table: Dict[str, List[ColumnDefinition]] = {name: [] for name in table_names}
        for row in rows:
            bucket: Optional[List[ColumnDefinition]] = by_table.get(row["TABLE_NAME"])
            # Views share INFORMATION_SCHEMA.COLUMNS; only keep base tables.
            if bucket is not None:
                bucket.append(column_from_row(row))
        return [TableDefinition(name=name, columns=by_table[name]) for name in table_names]

    def _execute(
        self,
        connection: Connection,
        sql: str,
        params: Dict[str, Any],
        descriptor: ConnectionDescriptor,
    ) -> List[Mapping[str, Any]]:
        try:
            return list(connection.execute(text(sql), params).mappings().all())
        except DBAPIError as exc:
            message: str = scrub_secret(self._reason(exc), descriptor)
            if exc.connection_invalidated:
                raise SchemaConnectionError(f"Connection lost during introspection: {message}") from exc
            raise QueryError(f"Metadata query failed: {message}") from exc
        except SQLAlchemyError as exc:
            raise QueryError(
                f"Metadata query failed: {scrub_secret(self._reason(exc), descriptor)}"
            ) from exc

    @staticmethod
    def _reason(exc: SQLAlchemyError) -> str:
        """The driver's message without SQLAlchemy's statement/parameter dump."""
        orig: Optional[BaseException] = getattr(exc, "orig", None)
        return str(orig) if orig is not None else str(exc)


# ---------------------------------------------------------------------------
# Demo provider
# ---------------------------------------------------------------------------


def _col(name: str, source_type: str, nullable: bool = False, pk: bool = False) -> ColumnDefinition:
    return ColumnDefinition(name=name, source_type=source_type, nullable=nullable, is_primary_key=pk)


DEMO_TABLES: Tuple[TableDefinition, ...] = (
    TableDefinition(
        name="Users",
        columns=[
            _col("Id", "int", pk=True),
            _col("Username", "nvarchar(50)"),
            _col("Email", "nvarchar(255)"),
            _col("PasswordHash", "nvarchar(255)"),
            _col("FirstName", "nvarchar(100)", nullable=True),
            _col("LastName", "nvarchar(100)", nullable=True),
            _col("IsActive", "bit"),
            _col("CreatedDate", "datetime2"),
            _col("ModifiedDate", "datetime2", nullable=True),
        ],
    ),
    TableDefinition(
        name="Products",
        columns=[
            _col("Id", "int", pk=True),
            _col("Name", "nvarchar(200)"),
            _col("Description", "nvarchar(max)", nullable=True),
            _col("Price", "decimal(18,2)"),
            _col("CategoryId", "int", nullable=True),
            _col("SKU", "nvarchar(50)"),
            _col("StockQuantity", "int"),
            _col("IsActive", "bit"),
            _col("CreatedDate", "datetime2"),
            _col("ModifiedDate", "datetime2", nullable=True),
        ],
    ),
    TableDefinition(
        name="Orders",
        columns=[
            _col("Id", "int", pk=True),
            _col("UserId", "int"),
            _col("OrderNumber", "nvarchar(50)"),
            _col("OrderDate", "datetime2"),
            _col("TotalAmount", "decimal(18,2)"),
            _col("Status", "nvarchar(50)"),
            _col("ShippingAddress", "nvarchar(500)", nullable=True),
            _col("BillingAddress", "nvarchar(500)", nullable=True),
            _col("CreatedDate", "datetime2"),
            _col("ModifiedDate", "datetime2", nullable=True),
        ],
    ),
    TableDefinition(
        name="Categories",
        columns=[
            _col("Id", "int", pk=True),
            _col("Name", "nvarchar(100)"),
            _col("Description", "nvarchar(500)", nullable=True),
            _col("ParentCategoryId", "int", nullable=True),
            _col("SortOrder", "int"),
            _col("IsActive", "bit"),
            _col("CreatedDate", "datetime2"),
            _col("ModifiedDate", "datetime2", nullable=True),
        ],
    ),
)


class DemoSchemaProvider(SchemaProvider):
    """
    Returns fixed sample tables without touching any database.

    Snapshots are labelled ``source="demo"`` so callers can tell users the
    schema is not theirs.
    """

    label = "demo"
    is_demo = True

    def fetch_schema(self, descriptor: Optional[ConnectionDescriptor]) -> SchemaSnapshot:
        database: str = (descriptor.database if descriptor else None) or "Unknown"
        logger.warning(
            "Demo provider: returning %d sample tables for '%s'; no database was contacted.",
            len(DEMO_TABLES),
            database,
        )
        return SchemaSnapshot(tables=DEMO_TABLES, database_name=database, source="demo")


# ---------------------------------------------------------------------------
# File provider
# ---------------------------------------------------------------------------


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a snapshot file (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed or isn't a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Schema path is not a file: {path}")

    text_content: str = path.read_text(encoding="utf-8")
    suffix: str = path.suffix.lower()

    data: Any
    if suffix == ".json":
        try:
            data = json.loads(text_content)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    else:
        # YAML is a superset of JSON, so unknown extensions go through it too.
        try:
            data = yaml.safe_load(text_content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )
    return data


def snapshot_from_dict(raw: Mapping[str, Any], *, source: str = "file") -> SchemaSnapshot:
    """
    Build a snapshot from ``{"database": ..., "tables": [...]}``.

    Raises:
        ValidationError: ``tables`` is missing or the records don't validate.
    """
    if "tables" not in raw or not isinstance(raw["tables"], list):
        raise ValidationError("Schema file must contain a 'tables' list.")
    try:
        return SchemaSnapshot.model_validate(
            {
                "tables": raw["tables"],
                "database": raw.get("database") or raw.get("database_name"),
                "source": source,
            }
        )
    except ValueError as exc:
        raise ValidationError(f"Invalid schema definition: {exc}") from exc


class FileSchemaProvider(SchemaProvider):
    """Reads a snapshot previously saved as JSON or YAML."""

    label = "file"

    def __init__(self, path: Path) -> None:
        self._path: Path = Path(path)

    def fetch_schema(self, descriptor: Optional[ConnectionDescriptor] = None) -> SchemaSnapshot:
        try:
            raw: Dict[str, Any] = load_schema_file(self._path)
        except (FileNotFoundError, ValueError) as exc:
            raise ValidationError(str(exc)) from exc
        snapshot: SchemaSnapshot = snapshot_from_dict(raw)
        logger.info("Loaded %d table(s) from %s.", len(snapshot.tables), self._path)
        return snapshot


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_provider(settings: ServiceSettings) -> SchemaProvider:
    """Pick the live or demo provider according to *settings*."""
    if settings.provider == "demo":
        return DemoSchemaProvider()
    return LiveSchemaProvider(settings)


__all__: List[str] = [
    "ALL_COLUMNS_QUERY",
    "DEMO_TABLES",
    "DemoSchemaProvider",
    "FileSchemaProvider",
    "LiveSchemaProvider",
    "SchemaProvider",
    "TABLES_QUERY",
    "TABLE_COLUMNS_QUERY",
    "column_from_row",
    "create_provider",
    "format_source_type",
    "load_schema_file",
    "snapshot_from_dict",
]

logger.debug("gennetta.providers loaded — %d public symbols.", len(__all__))
