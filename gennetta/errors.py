# File: gennetta/errors.py
"""
GenNetta - Error Taxonomy
=========================
Exceptions raised by the schema providers, the template generator and the
exporter. Each one is terminal for the single operation that raised it;
the pipeline and the HTTP layer translate them into structured failure
payloads.

Every class also derives from the closest built-in exception so callers
can catch ``LookupError`` / ``ConnectionError`` / ``ValueError`` without
importing this module.
"""

from __future__ import annotations

import logging
from typing import List, Optional

logger: logging.Logger = logging.getLogger("gennetta.errors")


class GenNettaError(Exception):
    """Base class for all GenNetta failures."""

    #: Short machine-readable code, used in reports and HTTP payloads.
    code: str = "GENNETTA_ERROR"

    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.detail: Optional[str] = detail

    def __str__(self) -> str:
        return self.message


class ValidationError(GenNettaError, ValueError):
    """Missing or malformed input (connection descriptor, selection, config)."""

    code = "VALIDATION_ERROR"


class SchemaConnectionError(GenNettaError, ConnectionError):
    """The data source could not be reached or rejected the credentials."""

    code = "CONNECTION_ERROR"


class QueryError(GenNettaError):
    """A metadata query was rejected by the server."""

    code = "QUERY_ERROR"


class TableLookupError(GenNettaError, LookupError):
    """A requested table has no definition in the schema snapshot."""

    code = "TABLE_NOT_FOUND"

    def __init__(self, table_name: str, available: Optional[List[str]] = None) -> None:
        self.table_name: str = table_name
        self.available: List[str] = list(available or [])
        super().__init__(f"Table '{table_name}' was not found in the schema snapshot.")


class ExportError(GenNettaError):
    """Writing the generated bundle to disk failed."""

    code = "EXPORT_ERROR"


__all__: List[str] = [
    "ExportError",
    "GenNettaError",
    "QueryError",
    "SchemaConnectionError",
    "TableLookupError",
    "ValidationError",
]
