# File: gennetta/generator.py
"""
GenNetta - Pipeline Orchestrator
================================

Connects the two halves of GenNetta:

    Connection string → Schema Provider → SchemaSnapshot
    SchemaSnapshot + selection → Validation → Template Generation → Export

``GenNettaPipeline`` backs the CLI, the HTTP service and the wizard.

Error handling strategy:
    - ``analyze_schema`` never raises; every failure becomes a structured
      ``AnalyzeSchemaResponse`` with ``success=False``.  Unexpected
      exceptions are logged with their traceback and surfaced as a generic
      message so that driver internals never reach the client.
    - ``generate`` records validation, generation and export errors in a
      ``GenerationReport`` instead of raising.
    - ``generate_bundle`` is the strict variant used by the HTTP layer: it
      raises ``ValidationError`` / ``TableLookupError``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from gennetta.config import ServiceSettings
from gennetta.connection import mask_connection_string, parse_connection_string
from gennetta.errors import GenNettaError, TableLookupError, ValidationError
from gennetta.exporters import ExportManifest, ExportResult, ProjectExporter
from gennetta.models import (
    AnalyzeSchemaResponse,
    ConnectionDescriptor,
    GenerationConfig,
    SchemaSnapshot,
)
from gennetta.providers import SchemaProvider, create_provider
from gennetta.templates import TemplateGenerator
from gennetta.utils import Timer, bundle_totals
from gennetta.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.generator")

GENERIC_FAILURE_MESSAGE: str = "Failed to analyze database schema"


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Outcome of ``GenNettaPipeline.generate()``: status, metrics, files."""

    success: bool = False
    project_name: str = ""
    output_directory: str = ""
    dry_run: bool = False

    tables: List[str] = field(default_factory=list)
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    # Relative path → content; kept for dry runs and HTTP responses
    files: Dict[str, str] = field(default_factory=dict)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Human-readable summary box."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        output: str = "(dry run, nothing written)" if self.dry_run else self.output_directory
        lines.append("=" * 60)
        lines.append("  GenNetta — Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Output:           {output or '-'}")
        lines.append(f"  Tables:           {', '.join(self.tables) or '-'}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append("─" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} {step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        sections = (
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
        )
        for title, items, icon in sections:
            if not items:
                continue
            lines.append("─" * 60)
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# GenNettaPipeline — orchestrator
# ---------------------------------------------------------------------------


class GenNettaPipeline:
    """
    Schema analysis and project generation behind one object.

    Usage::

        pipeline = GenNettaPipeline(ServiceSettings(provider="demo"))
        response = pipeline.analyze_schema("Server=db1;Database=Shop;")
        snapshot = pipeline.fetch_snapshot("Server=db1;Database=Shop;")
        report = pipeline.generate(snapshot, ["Users"], output_dir=Path("./out"))
        print(report.summary())

    Reusable: each call opens and releases its own connection.
    """

    def __init__(
        self,
        settings: Optional[ServiceSettings] = None,
        provider: Optional[SchemaProvider] = None,
    ) -> None:
        self._settings: ServiceSettings = settings or ServiceSettings()
        self._provider: SchemaProvider = provider or create_provider(self._settings)
        logger.debug("GenNettaPipeline initialised with %r.", self._provider)

    @property
    def settings(self) -> ServiceSettings:
        return self._settings

    @property
    def provider(self) -> SchemaProvider:
        return self._provider

    # -----------------------------------------------------------------
    # Schema analysis
    # -----------------------------------------------------------------

    def fetch_snapshot(self, connection_string: Optional[str]) -> SchemaSnapshot:
        """
        Parse *connection_string* and read the schema behind it.

        Raises:
            ValidationError: Missing or malformed connection string.
            SchemaConnectionError: The server could not be reached.
            QueryError: A metadata query failed.
        """
        descriptor: ConnectionDescriptor = parse_connection_string(connection_string)
        with Timer("fetch_schema") as t:
            snapshot: SchemaSnapshot = self._provider.fetch_schema(descriptor)
        logger.info(
            "Schema analysed via %s provider: %d table(s), %d column(s) in %.3fs.",
            self._provider.label,
            len(snapshot.tables),
            snapshot.total_columns,
            t.elapsed,
        )
        return snapshot

    def analyze_schema(self, connection_string: Optional[str]) -> AnalyzeSchemaResponse:
        """
        Analyse the database behind *connection_string*; never raises.

        Returns:
            ``success=True`` with the tables, the masked connection string
            and a ``demo`` flag, or ``success=False`` with an error message.
        """
        masked: Optional[str] = mask_connection_string(connection_string) or None
        try:
            snapshot: SchemaSnapshot = self.fetch_snapshot(connection_string)
        except GenNettaError as exc:
            logger.warning("Schema analysis failed [%s]: %s", exc.code, exc.message)
            return AnalyzeSchemaResponse(
                success=False,
                error=exc.message,
                connection_string=masked,
                error_code=exc.code,
            )
        except Exception:
            logger.exception("Unexpected error while analysing schema.")
            return AnalyzeSchemaResponse(
                success=False,
                error=GENERIC_FAILURE_MESSAGE,
                connection_string=masked,
                error_code=GenNettaError.code,
            )

        return AnalyzeSchemaResponse(
            success=True,
            tables=list(snapshot.tables),
            connection_string=masked,
            database=snapshot.database_name,
            demo=snapshot.is_demo,
        )

    # -----------------------------------------------------------------
    # Generation: strict variant
    # -----------------------------------------------------------------

    def generate_bundle(
        self,
        snapshot: SchemaSnapshot,
        selected: Sequence[str],
        config: Optional[GenerationConfig] = None,
    ) -> Dict[str, str]:
        """
        Generate the project for *selected* and return it without writing.

        Raises:
            ValidationError: Empty selection or a validation error.
            TableLookupError: A selected table is not in *snapshot*.
        """
        config = config or GenerationConfig()
        if not selected:
            raise ValidationError("Select at least one table to generate.")

        template_gen: TemplateGenerator = TemplateGenerator(config)
        template_gen.resolve_tables(snapshot, selected)

        result: ValidationResult = validate_full(snapshot, selected, config)
        if not result:
            raise ValidationError(
                result.first_error_message() or "Validation failed.",
                detail=result.format_report(),
            )
        return template_gen.generate_all(snapshot, selected)

    # -----------------------------------------------------------------
    # Generation: reporting variant
    # -----------------------------------------------------------------

    def generate(
        self,
        snapshot: SchemaSnapshot,
        selected: Sequence[str],
        config: Optional[GenerationConfig] = None,
        output_dir: Optional[Path] = None,
        *,
        dry_run: bool = False,
        clean: bool = False,
    ) -> GenerationReport:
        """
        Validate → generate → export, recording every outcome in a report.

        Args:
            snapshot: Schema to generate from.
            selected: Table names, in the order they should be emitted.
            config: Project settings; defaults apply when omitted.
            output_dir: Where to write the project; nothing is written when
                omitted or when *dry_run* is set.
            dry_run: Generate in memory only.
            clean: Wipe *output_dir* before writing.
        """
        config = config or GenerationConfig()
        pipeline_start: float = time.perf_counter()

        report: GenerationReport = GenerationReport(
            project_name=config.project_name,
            output_directory=str(output_dir.resolve()) if output_dir is not None else "",
            dry_run=dry_run or output_dir is None,
            tables=list(dict.fromkeys(selected)),
        )

        if not self._step_validate(snapshot, selected, config, report):
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        files: Dict[str, str] = self._step_generate(snapshot, selected, config, report)
        if not files:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        if not report.dry_run and output_dir is not None:
            self._step_export(files, config, output_dir, clean, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        snapshot: SchemaSnapshot,
        selected: Sequence[str],
        config: GenerationConfig,
        report: GenerationReport,
    ) -> bool:
        with Timer("validation") as t:
            result: ValidationResult = validate_full(snapshot, selected, config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.warning_count:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Selection",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        for warn in result.warnings:
            logger.warning("  ⚠ %s", warn)
        if result.has_errors:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return False
        return True

    # -----------------------------------------------------------------
    # Pipeline step: code generation
    # -----------------------------------------------------------------

    def _step_generate(
        self,
        snapshot: SchemaSnapshot,
        selected: Sequence[str],
        config: GenerationConfig,
        report: GenerationReport,
    ) -> Dict[str, str]:
        files: Dict[str, str] = {}

        with Timer("code_generation") as t:
            try:
                files = TemplateGenerator(config).generate_all(snapshot, selected)
            except TableLookupError as exc:
                report.generation_errors.append(str(exc))
                logger.error("Generation aborted: %s", exc)

        total_lines, total_bytes = bundle_totals(files)
        report.files = files
        report.total_files = len(files)
        report.total_lines = total_lines
        report.total_bytes = total_bytes

        detail: str = f"{len(files)} files, ~{total_lines:,} lines, {len(report.tables)} tables"
        report.step_metrics.append(GenerationStepMetric(
            step_name="Code Generation",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))
        logger.info("Code generation complete: %s in %.3fs.", detail, t.elapsed)
        return files

    # -----------------------------------------------------------------
    # Pipeline step: export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        files: Dict[str, str],
        config: GenerationConfig,
        output_dir: Path,
        clean: bool,
        report: GenerationReport,
    ) -> None:
        with Timer("export") as t:
            exporter: ProjectExporter = ProjectExporter(
                output_dir,
                project_name=config.project_name,
                clean_before_export=clean,
            )
            export_result: ExportResult = exporter.export(files, tables=report.tables)

        report.export_errors.extend(export_result.errors)
        report.manifest = export_result.manifest

        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=export_result.success,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{export_result.manifest.total_files} files, "
                f"{export_result.manifest.total_bytes:,} bytes"
            ),
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    @staticmethod
    def _finalise_report(report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors or report.generation_errors or report.export_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GENERIC_FAILURE_MESSAGE",
    "GenNettaPipeline",
    "GenerationReport",
    "GenerationStepMetric",
]

logger.debug("gennetta.generator loaded.")
