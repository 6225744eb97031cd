# File: gennetta/models.py
"""
GenNetta - Core Data Models
===========================
Pydantic V2 models for everything that flows through the pipeline:

    Connection descriptor → SchemaSnapshot → selected tables → GeneratedFile

Schema records (``ColumnDefinition``, ``TableDefinition``, ``SchemaSnapshot``)
are frozen: once a provider has read them they are never mutated.  Wire
payloads for the HTTP service use the camelCase aliases the browser client
expects (``connectionString``, ``primaryKey``, ``selectedTables``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    SecretStr,
    computed_field,
    field_validator,
    model_validator,
)

from gennetta.errors import TableLookupError
from gennetta.utils import (
    count_lines,
    extract_length,
    is_audit_column,
    is_created_audit,
    is_csharp_identifier,
    is_updated_audit,
    sha256_hex,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.models")

# ---------------------------------------------------------------------------
# Target type lookup
# ---------------------------------------------------------------------------


class CSharpType(str, Enum):
    """Scalar types a SQL Server column can map to in the generated entity."""

    STRING = "string"
    INT = "int"
    LONG = "long"
    DECIMAL = "decimal"
    DOUBLE = "double"
    BOOL = "bool"
    DATETIME = "DateTime"
    GUID = "Guid"
    BYTES = "byte[]"


# Ordered: the first rule whose keyword occurs in the lower-cased source type
# wins.  "int" excludes "bigint" so the bigint rule is reachable.
_TYPE_RULES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...], CSharpType], ...] = (
    (("varchar", "nvarchar", "text", "char"), (), CSharpType.STRING),
    (("int",), ("bigint",), CSharpType.INT),
    (("bigint",), (), CSharpType.LONG),
    (("decimal", "numeric", "money"), (), CSharpType.DECIMAL),
    (("float", "real"), (), CSharpType.DOUBLE),
    (("bit",), (), CSharpType.BOOL),
    (("datetime", "timestamp", "date"), (), CSharpType.DATETIME),
    (("uniqueidentifier", "uuid"), (), CSharpType.GUID),
    (("varbinary", "binary", "image"), (), CSharpType.BYTES),
)

# Types that already accept null in C# and never take a ``?`` suffix
REFERENCE_TYPES: Tuple[CSharpType, ...] = (CSharpType.STRING, CSharpType.BYTES)


def map_source_type(source_type: Optional[str]) -> CSharpType:
    """
    Map a SQL Server type name to its C# scalar type.

    Total: unknown, empty or ``None`` input falls back to ``string``.

    Examples:
        >>> map_source_type("nvarchar(50)").value
        'string'
        >>> map_source_type("BIGINT").value
        'long'
        >>> map_source_type("geography").value
        'string'
    """
    lowered: str = (source_type or "").lower()
    for keywords, excluded, target in _TYPE_RULES:
        if any(k in lowered for k in keywords) and not any(x in lowered for x in excluded):
            return target
    return CSharpType.STRING


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    populate_by_name=True,
    use_enum_values=True,
    extra="ignore",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    populate_by_name=True,
    use_enum_values=True,
    extra="ignore",
    frozen=True,
)


# ---------------------------------------------------------------------------
# Schema records
# ---------------------------------------------------------------------------


class ColumnDefinition(BaseModel):
    """One column as read from the catalog, in ordinal position order."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    source_type: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("type", "sourceType", "source_type"),
        serialization_alias="type",
        description="SQL Server type, e.g. 'nvarchar(50)'.",
    )
    nullable: bool = Field(default=True, description="Column accepts NULL.")
    is_primary_key: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "primaryKey", "isPrimaryKey", "primary_key", "is_primary_key"
        ),
        serialization_alias="primaryKey",
        description="Column takes part in the primary key.",
    )

    @computed_field(alias="csharpType")  # type: ignore[misc]
    @property
    def target_type(self) -> str:
        """C# scalar type for the entity property."""
        return map_source_type(self.source_type).value

    @property
    def property_type(self) -> str:
        """Target type with ``?`` for nullable value types."""
        target: CSharpType = map_source_type(self.source_type)
        if self.nullable and target not in REFERENCE_TYPES:
            return f"{target.value}?"
        return target.value

    @property
    def is_string(self) -> bool:
        return map_source_type(self.source_type) is CSharpType.STRING

    @property
    def is_value_type(self) -> bool:
        return map_source_type(self.source_type) not in REFERENCE_TYPES

    @property
    def is_text_blob(self) -> bool:
        """``text``/``ntext`` columns, rendered as a textarea."""
        return "text" in self.source_type.lower()

    @property
    def max_length(self) -> Optional[int]:
        return extract_length(self.source_type)

    @property
    def is_unbounded(self) -> bool:
        """``nvarchar(max)`` and friends."""
        return "(max)" in self.source_type.lower().replace(" ", "")

    @property
    def is_audit_created(self) -> bool:
        return is_created_audit(self.name)

    @property
    def is_audit_updated(self) -> bool:
        return is_updated_audit(self.name)

    @property
    def is_audit(self) -> bool:
        return is_audit_column(self.name)

    def __repr__(self) -> str:
        flags: List[str] = []
        if self.is_primary_key:
            flags.append("PK")
        flags.append("NULL" if self.nullable else "NOT NULL")
        return f"<Column {self.name} {self.source_type} {' '.join(flags)}>"


class TableDefinition(BaseModel):
    """A base table and its ordered columns."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Table name.")
    columns: Tuple[ColumnDefinition, ...] = Field(
        default=(), description="Columns in ordinal position order."
    )

    _column_map: Dict[str, ColumnDefinition] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._column_map = {c.name: c for c in self.columns}

    def get_column(self, name: str) -> Optional[ColumnDefinition]:
        """O(1) column lookup by exact name."""
        return self._column_map.get(name)

    @property
    def primary_key(self) -> Optional[ColumnDefinition]:
        """First primary-key column, or None for heap tables."""
        for column in self.columns:
            if column.is_primary_key:
                return column
        return None

    @property
    def key_name(self) -> str:
        """Name of the key property used in routes and lookups."""
        pk: Optional[ColumnDefinition] = self.primary_key
        return pk.name if pk is not None else "Id"

    @property
    def key_type(self) -> str:
        """C# type of the key property (non-nullable)."""
        pk: Optional[ColumnDefinition] = self.primary_key
        return pk.target_type if pk is not None else CSharpType.INT.value

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def updated_audit_column(self) -> Optional[ColumnDefinition]:
        """The column the repository stamps on update, when there is one."""
        for column in self.columns:
            if column.is_audit_updated and column.target_type == CSharpType.DATETIME.value:
                return column
        return None

    @property
    def created_audit_column(self) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.is_audit_created and column.target_type == CSharpType.DATETIME.value:
                return column
        return None

    def __repr__(self) -> str:
        return f"<Table {self.name} columns={len(self.columns)}>"


class SchemaSnapshot(BaseModel):
    """
    Point-in-time view of a database's base tables.

    Invariant: table names are unique; ``get_table`` is an O(1) lookup built
    once on construction.
    """

    model_config = _FROZEN_CONFIG

    tables: Tuple[TableDefinition, ...] = Field(default=(), description="Tables in catalog order.")
    database_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("database", "databaseName", "database_name"),
        serialization_alias="database",
        description="Catalog the snapshot was read from.",
    )
    source: Literal["live", "demo", "file", "client"] = Field(
        default="live", description="Which provider produced the snapshot."
    )
    captured_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the snapshot was taken.",
    )

    _table_map: Dict[str, TableDefinition] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _validate_unique_table_names(self) -> "SchemaSnapshot":
        names: List[str] = [t.name for t in self.tables]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate table names in snapshot: {dupes}")
        return self

    def model_post_init(self, __context: Any) -> None:
        self._table_map = {t.name: t for t in self.tables}

    def get_table(self, name: str) -> Optional[TableDefinition]:
        """O(1) table lookup by exact name."""
        return self._table_map.get(name)

    def require_table(self, name: str) -> TableDefinition:
        """Like ``get_table`` but raises ``TableLookupError`` on a miss."""
        table: Optional[TableDefinition] = self._table_map.get(name)
        if table is None:
            raise TableLookupError(name, self.table_names)
        return table

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    @property
    def total_columns(self) -> int:
        return sum(len(t.columns) for t in self.tables)

    @property
    def is_demo(self) -> bool:
        return self.source == "demo"

    def __repr__(self) -> str:
        return (
            f"<SchemaSnapshot source={self.source} database={self.database_name!r} "
            f"tables={len(self.tables)}>"
        )


# ---------------------------------------------------------------------------
# Connection descriptor
# ---------------------------------------------------------------------------


class ConnectionDescriptor(BaseModel):
    """
    Parsed SQL Server connection string.

    The password is a ``SecretStr`` so it never shows up in ``repr`` or logs.
    """

    model_config = _FROZEN_CONFIG

    server: str = Field(..., min_length=1, description="Server / Data Source value as given.")
    database: Optional[str] = Field(default=None, description="Initial catalog.")
    username: Optional[str] = Field(default=None, description="SQL login.")
    password: Optional[SecretStr] = Field(default=None, description="SQL password.")
    trusted_connection: bool = Field(
        default=False, description="Use integrated (Windows) authentication."
    )

    @property
    def host(self) -> str:
        """Server without the ``tcp:`` prefix and port suffix."""
        value: str = self.server
        if value.lower().startswith("tcp:"):
            value = value[4:]
        return value.split(",", 1)[0].strip()

    @property
    def port(self) -> Optional[int]:
        """Port from ``host,port`` syntax, if given."""
        if "," not in self.server:
            return None
        raw: str = self.server.split(",", 1)[1].strip()
        return int(raw) if raw else None

    @property
    def password_value(self) -> Optional[str]:
        return self.password.get_secret_value() if self.password is not None else None


# ---------------------------------------------------------------------------
# Generated output
# ---------------------------------------------------------------------------


class GeneratedFile(BaseModel):
    """A single generated file; identified only by its relative path."""

    model_config = _SHARED_CONFIG

    path: str = Field(..., min_length=1, description="Relative output path.")
    content: str = Field(..., description="Full file content.")

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        return count_lines(self.content)

    @computed_field  # type: ignore[misc]
    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))

    @computed_field  # type: ignore[misc]
    @property
    def checksum(self) -> str:
        return sha256_hex(self.content)


class GenerationResult(BaseModel):
    """Everything one generation run produced, in emission order."""

    model_config = _SHARED_CONFIG

    project_name: str = Field(..., description="Project the files belong to.")
    tables: List[str] = Field(default_factory=list, description="Tables generated, in order.")
    files: List[GeneratedFile] = Field(default_factory=list, description="Generated files.")

    def as_mapping(self) -> Dict[str, str]:
        """Relative path → content, preserving emission order."""
        return {f.path: f.content for f in self.files}

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """Settings for the generated ASP.NET Core project."""

    model_config = _SHARED_CONFIG

    project_name: str = Field(
        default="GenNettaApp",
        validation_alias=AliasChoices("project_name", "projectName"),
        description="Root namespace, project file name and output directory.",
    )
    target_framework: str = Field(default="net8.0", description="TargetFramework moniker.")
    ef_core_version: str = Field(default="8.0.0", description="EF Core / ASP.NET package version.")
    swashbuckle_version: str = Field(default="6.5.0", description="Swashbuckle package version.")
    default_connection_string: str = Field(
        default=(
            "Server=localhost;Database=GenNettaApp;Trusted_Connection=true;"
            "TrustServerCertificate=true;"
        ),
        description="DefaultConnection written to appsettings.json.",
    )
    include_jwt_auth: bool = Field(default=True, description="Wire JWT bearer auth.")
    include_google_auth: bool = Field(default=True, description="Add Google OAuth settings.")
    include_swagger: bool = Field(default=True, description="Add Swagger / OpenAPI.")
    display_column_limit: int = Field(
        default=5, ge=1, le=20, description="Columns shown on each Index view."
    )

    @field_validator("project_name")
    @classmethod
    def _project_name_is_identifier(cls, v: str) -> str:
        if not is_csharp_identifier(v):
            raise ValueError(f"Project name '{v}' is not a valid C# identifier.")
        return v


# ---------------------------------------------------------------------------
# HTTP wire payloads
# ---------------------------------------------------------------------------


class AnalyzeSchemaRequest(BaseModel):
    """Body of ``POST /api/analyze-schema``."""

    model_config = _SHARED_CONFIG

    connection_string: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("connectionString", "connection_string"),
        description="Semicolon-delimited SQL Server connection string.",
    )


class AnalyzeSchemaResponse(BaseModel):
    """Structured outcome of a schema analysis; never carries a password."""

    model_config = _SHARED_CONFIG

    success: bool
    tables: Optional[List[TableDefinition]] = None
    error: Optional[str] = None
    connection_string: Optional[str] = Field(
        default=None,
        serialization_alias="connectionString",
        description="Echo of the input with the password masked.",
    )
    database: Optional[str] = None
    demo: bool = Field(default=False, description="True when the tables are demo data.")
    error_code: Optional[str] = Field(
        default=None, exclude=True, description="GenNettaError code behind a failure."
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GenerateRequest(BaseModel):
    """Body of ``POST /api/generate``."""

    model_config = _SHARED_CONFIG

    tables: List[TableDefinition] = Field(default_factory=list)
    selected_tables: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selectedTables", "selected_tables"),
    )
    project_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("projectName", "project_name"),
    )


class GenerateResponse(BaseModel):
    model_config = _SHARED_CONFIG

    success: bool
    files: Optional[Dict[str, str]] = None
    error: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "AnalyzeSchemaRequest",
    "AnalyzeSchemaResponse",
    "CSharpType",
    "ColumnDefinition",
    "ConnectionDescriptor",
    "GenerateRequest",
    "GenerateResponse",
    "GeneratedFile",
    "GenerationConfig",
    "GenerationResult",
    "REFERENCE_TYPES",
    "SchemaSnapshot",
    "TableDefinition",
    "map_source_type",
]

logger.debug("gennetta.models loaded — %d public symbols.", len(__all__))
