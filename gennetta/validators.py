# File: gennetta/validators.py
"""
GenNetta - Snapshot, Selection & Configuration Validators
=========================================================
Semantic checks that run before any template is rendered.

Pydantic already guarantees the structure of ``SchemaSnapshot`` and
``GenerationConfig``.  This module adds what pydantic cannot see: names that
will not survive as C# identifiers, tables without a usable key, duplicate
columns, and table selections that refer to nothing.

Every ``validate_*`` function is a single pass that returns its own
``ValidationResult``; ``validate_full`` merges them.

Usage:
    from gennetta.validators import validate_full
    result = validate_full(snapshot, ["Users"], config)
    if not result:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set

from gennetta.models import GenerationConfig, SchemaSnapshot
from gennetta.templates import class_name_for, property_name_for
from gennetta.utils import CSHARP_KEYWORDS, is_csharp_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """One finding: level, machine-readable code, message and context."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Ordered collection of ``ValidationIssue``s; truthy when error-free."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_warning]

    @property
    def all_items(self) -> List[ValidationIssue]:
        return list(self._items)

    @property
    def codes(self) -> List[str]:
        return [i.code for i in self._items]

    @property
    def has_errors(self) -> bool:
        return any(i.is_error for i in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self._items if i.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self._items if i.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def first_error_message(self) -> Optional[str]:
        """Message of the first error, for single-line error responses."""
        for item in self._items:
            if item.is_error:
                return item.message
        return None

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for key, value in item.context.items():
                lines.append(f"       {key}: {value}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_PACKAGE_VERSION_RE: re.Pattern[str] = re.compile(r"^\d+\.\d+\.\d+([\-\.][A-Za-z0-9\.\-]+)?$")
_TARGET_FRAMEWORK_RE: re.Pattern[str] = re.compile(r"^net\d+\.\d+$")

# Class names the shared scaffolding already defines
_RESERVED_CLASS_NAMES: FrozenSet[str] = frozenset({"Home", "ApplicationDbContext", "ErrorViewModel", "Program"})


# ---------------------------------------------------------------------------
# Snapshot validators
# ---------------------------------------------------------------------------


def validate_table_names(snapshot: SchemaSnapshot) -> ValidationResult:
    """
    Table names become C# class names, folder names and routes.

    Names that are not identifiers are sanitised by the template generator,
    so they only produce warnings; a sanitised name that collides with
    another table's class name is an error.
    """
    result: ValidationResult = ValidationResult()
    class_names: Dict[str, str] = {}

    for table in snapshot.tables:
        name: str = table.name
        ctx: Dict[str, Any] = {"table": name}

        cls: str = class_name_for(table)
        if not is_csharp_identifier(name):
            code: str = (
                "TABLE_NAME_CSHARP_KEYWORD" if name in CSHARP_KEYWORDS else "TABLE_NAME_NOT_IDENTIFIER"
            )
            result.add_warning(
                code,
                f"Table name '{name}' is not a valid C# identifier; "
                f"the generated class will be named '{cls}'.",
                {**ctx, "class": cls},
            )

        if cls in _RESERVED_CLASS_NAMES:
            result.add_error(
                "RESERVED_CLASS_NAME",
                f"Table '{name}' maps to class '{cls}', which the generated project already defines.",
                {**ctx, "class": cls},
            )
        if cls in class_names:
            result.add_error(
                "CLASS_NAME_COLLISION",
                f"Tables '{class_names[cls]}' and '{name}' both map to class '{cls}'.",
                {"table": name, "other": class_names[cls], "class": cls},
            )
        else:
            class_names[cls] = name

    return result


def validate_column_names(snapshot: SchemaSnapshot) -> ValidationResult:
    """Duplicate column names are errors; non-identifier names are warnings."""
    result: ValidationResult = ValidationResult()

    for table in snapshot.tables:
        if not table.columns:
            result.add_warning(
                "TABLE_HAS_NO_COLUMNS",
                f"Table '{table.name}' has no columns.",
                {"table": table.name},
            )
            continue

        seen: Set[str] = set()
        properties: Dict[str, str] = {}
        for column in table.columns:
            ctx: Dict[str, Any] = {"table": table.name, "column": column.name}
            if column.name in seen:
                result.add_error(
                    "DUPLICATE_COLUMN_NAME",
                    f"Column '{column.name}' appears more than once in table '{table.name}'.",
                    ctx,
                )
                continue
            seen.add(column.name)

            # Distinct column names can still sanitise to the same C# member.
            prop: str = property_name_for(table, column)
            if prop in properties:
                result.add_error(
                    "PROPERTY_NAME_COLLISION",
                    f"Columns '{properties[prop]}' and '{column.name}' in table '{table.name}' "
                    f"both map to property '{prop}'.",
                    {**ctx, "other": properties[prop], "property": prop},
                )
            else:
                properties[prop] = column.name

            if not is_csharp_identifier(column.name):
                result.add_warning(
                    "COLUMN_NAME_NOT_IDENTIFIER",
                    f"Column '{table.name}.{column.name}' is not a valid C# identifier; "
                    f"it will be mapped with [Column].",
                    ctx,
                )

    return result


def validate_primary_keys(snapshot: SchemaSnapshot) -> ValidationResult:
    """
    Generated repositories look entities up by a single key.

    A missing key or a composite key does not stop generation; the key
    falls back to ``Id`` or the first key column respectively.
    """
    result: ValidationResult = ValidationResult()

    for table in snapshot.tables:
        ctx: Dict[str, Any] = {"table": table.name}
        pk_columns: List[str] = [c.name for c in table.columns if c.is_primary_key]

        if not pk_columns:
            result.add_warning(
                "NO_PRIMARY_KEY",
                f"Table '{table.name}' has no primary key; generated lookups assume "
                f"an 'Id' key of type int.",
                ctx,
            )
        elif len(pk_columns) > 1:
            result.add_warning(
                "COMPOSITE_PRIMARY_KEY",
                f"Table '{table.name}' has a composite key {pk_columns}; only "
                f"'{pk_columns[0]}' is used for lookups.",
                {**ctx, "columns": pk_columns},
            )
        else:
            pk = table.primary_key
            if pk is not None and pk.nullable:
                result.add_warning(
                    "NULLABLE_PRIMARY_KEY",
                    f"Primary key '{table.name}.{pk.name}' is reported as nullable.",
                    ctx,
                )

    return result


# ---------------------------------------------------------------------------
# Selection validators
# ---------------------------------------------------------------------------


def validate_selection(snapshot: SchemaSnapshot, selected: Sequence[str]) -> ValidationResult:
    """
    Check a table selection against *snapshot*.

    - empty selection → error
    - repeated name → warning (generated once)
    - name missing from the snapshot → error
    """
    result: ValidationResult = ValidationResult()

    if not selected:
        result.add_error("EMPTY_SELECTION", "Select at least one table to generate.")
        return result

    seen: Set[str] = set()
    for name in selected:
        if name in seen:
            result.add_warning(
                "DUPLICATE_SELECTION",
                f"Table '{name}' is selected more than once; it is generated once.",
                {"table": name},
            )
            continue
        seen.add(name)

        if snapshot.get_table(name) is None:
            result.add_error(
                "UNKNOWN_TABLE",
                f"Table '{name}' was not found in the schema snapshot.",
                {"table": name, "available": ", ".join(snapshot.table_names)},
            )

    return result


# ---------------------------------------------------------------------------
# Configuration validators
# ---------------------------------------------------------------------------


def validate_generation_config(config: GenerationConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()

    if not _TARGET_FRAMEWORK_RE.match(config.target_framework):
        result.add_error(
            "INVALID_TARGET_FRAMEWORK",
            f"Target framework '{config.target_framework}' is not of the form 'netX.Y'.",
            {"target_framework": config.target_framework},
        )

    for field_name in ("ef_core_version", "swashbuckle_version"):
        version: str = getattr(config, field_name)
        if not _PACKAGE_VERSION_RE.match(version):
            result.add_error(
                "INVALID_PACKAGE_VERSION",
                f"'{version}' is not a valid NuGet package version.",
                {"field": field_name},
            )

    if not config.default_connection_string.strip():
        result.add_warning(
            "EMPTY_DEFAULT_CONNECTION",
            "appsettings.json will be generated without a DefaultConnection value.",
        )

    if config.include_google_auth and not config.include_jwt_auth:
        result.add_info(
            "GOOGLE_WITHOUT_JWT",
            "Google OAuth settings are emitted without JWT bearer authentication.",
        )

    return result


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def validate_snapshot(snapshot: SchemaSnapshot) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for validator in (validate_table_names, validate_column_names, validate_primary_keys):
        result.merge(validator(snapshot))
    return result


def validate_full(
    snapshot: SchemaSnapshot,
    selected: Sequence[str],
    config: GenerationConfig,
) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs the selection checks, the snapshot checks for the selected tables
    only, and the configuration checks.
    """
    logger.info(
        "Starting full validation — %d tables in snapshot, %d selected.",
        len(snapshot.tables),
        len(selected),
    )

    result: ValidationResult = ValidationResult()
    result.merge(validate_selection(snapshot, selected))

    chosen = [snapshot.get_table(name) for name in dict.fromkeys(selected)]
    subset: SchemaSnapshot = SchemaSnapshot(
        tables=tuple(t for t in chosen if t is not None),
        database_name=snapshot.database_name,
        source=snapshot.source,
        captured_at=snapshot.captured_at,
    )
    result.merge(validate_snapshot(subset))
    result.merge(validate_generation_config(config))

    if result.has_errors:
        logger.error("Validation FAILED with %d error(s). %s", result.error_count, result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_column_names",
    "validate_full",
    "validate_generation_config",
    "validate_primary_keys",
    "validate_selection",
    "validate_snapshot",
    "validate_table_names",
]

logger.debug("gennetta.validators loaded — %d public symbols.", len(__all__))
