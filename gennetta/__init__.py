# File: gennetta/__init__.py
"""
GenNetta — SQL Server Schema → ASP.NET Core Project Generator
=============================================================

Reads the base tables of a SQL Server database and turns a selection of
them into a complete ASP.NET Core MVC + Web API project: EF Core entities,
repositories, API and MVC controllers, Razor views, services and the
shared scaffolding around them.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │ CLI / HTTP   │────▶│ GenNettaPipeline │────▶│ TemplateGenerator│
    │ (cli, api)   │     │  (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬─────────┘     └──────────────────┘
                                  │
                ┌─────────────────┼─────────────────┐
                ▼                 ▼                 ▼
         ┌────────────┐   ┌─────────────┐   ┌───────────┐
         │ providers  │   │ validators  │   │ exporters │
         │ connection │   │   models    │   │           │
         └────────────┘   └─────────────┘   └───────────┘

Usage::

    from gennetta import GenNettaPipeline, ServiceSettings
    pipeline = GenNettaPipeline(ServiceSettings(provider="demo"))
    snapshot = pipeline.fetch_snapshot("Server=db1;Database=Shop;")
    files = pipeline.generate_bundle(snapshot, ["Users", "Orders"])

    # From the command line
    gennetta -c "Server=db1;Database=Shop;Trusted_Connection=true" -o ./ShopApp
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from gennetta.config import ServiceSettings
from gennetta.connection import mask_connection_string, parse_connection_string
from gennetta.errors import (
    ExportError,
    GenNettaError,
    QueryError,
    SchemaConnectionError,
    TableLookupError,
    ValidationError,
)
from gennetta.exporters import ExportManifest, ExportResult, ProjectExporter
from gennetta.generator import GenerationReport, GenNettaPipeline
from gennetta.models import (
    AnalyzeSchemaResponse,
    ColumnDefinition,
    ConnectionDescriptor,
    CSharpType,
    GenerationConfig,
    SchemaSnapshot,
    TableDefinition,
    map_source_type,
)
from gennetta.providers import (
    DemoSchemaProvider,
    FileSchemaProvider,
    LiveSchemaProvider,
    SchemaProvider,
)
from gennetta.templates import TemplateGenerator
from gennetta.validators import ValidationResult, validate_full
from gennetta.wizard import WizardState, WizardStep

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "GenNettaPipeline",
    "GenerationReport",
    "ServiceSettings",
    # Models
    "AnalyzeSchemaResponse",
    "CSharpType",
    "ColumnDefinition",
    "ConnectionDescriptor",
    "GenerationConfig",
    "SchemaSnapshot",
    "TableDefinition",
    "map_source_type",
    # Schema providers
    "DemoSchemaProvider",
    "FileSchemaProvider",
    "LiveSchemaProvider",
    "SchemaProvider",
    "mask_connection_string",
    "parse_connection_string",
    # Errors
    "ExportError",
    "GenNettaError",
    "QueryError",
    "SchemaConnectionError",
    "TableLookupError",
    "ValidationError",
    # Generation
    "TemplateGenerator",
    "ValidationResult",
    "validate_full",
    "ProjectExporter",
    "ExportManifest",
    "ExportResult",
    # Wizard
    "WizardState",
    "WizardStep",
]
