# File: gennetta/exporters.py
"""
GenNetta - Project Exporter
===========================

Writes a generated file bundle (relative path → content) to disk:

    1. Optionally wipes the output directory first (``.git`` is kept).
    2. Writes every file atomically (temp file + rename).
    3. Refuses paths that would land outside the output directory.
    4. Writes ``gennetta_manifest.json`` with sizes and SHA-256 checksums.

A failed file does not abort the batch; the error is recorded and the
remaining files are still written.  Re-running on the same directory is
safe.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

from gennetta.errors import ExportError
from gennetta.utils import Timer, clean_directory, count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.exporters")

MANIFEST_FILENAME: str = "gennetta_manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Everything that was written, serialisable for later verification."""

    project_name: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    tables: List[str] = field(default_factory=list)
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "tables": list(self.tables),
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Outcome of ``ProjectExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


class ProjectExporter:
    """
    Writes generated files under one output directory.

    Usage::

        exporter = ProjectExporter(Path("./out"), project_name="ShopApp")
        result = exporter.export(files, tables=["Users"])
        print(result.manifest.to_json())

    Not thread-safe; use one exporter per output directory.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        project_name: str = "",
        clean_before_export: bool = False,
        write_manifest: bool = True,
    ) -> None:
        self._output_dir: Path = Path(output_dir).resolve()
        self._project_name: str = project_name
        self._clean_before_export: bool = clean_before_export
        self._write_manifest: bool = write_manifest

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "ProjectExporter initialised: output_dir=%s, clean=%s.",
            self._output_dir,
            self._clean_before_export,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(
        self,
        generated_files: Dict[str, str],
        tables: Optional[List[str]] = None,
    ) -> ExportResult:
        """
        Write *generated_files* to the output directory.

        Args:
            generated_files: Relative path → file content.
            tables: Table names recorded in the manifest.

        Returns:
            ExportResult with success flag, manifest and error details.
        """
        self._errors = []
        self._warnings = []
        self._file_records = []

        with Timer("export") as timer:
            try:
                self._pre_export_cleanup()
                self._write_generated_files(generated_files)
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest(tables or [])
        if self._write_manifest and not self._errors:
            self._write_manifest_file(manifest)

        success: bool = not self._errors
        result: ExportResult = ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error("Export completed with %d error(s) in %.3fs.", len(self._errors), timer.elapsed)

        return result

    def resolve_target(self, relative_path: str) -> Path:
        """
        Absolute target for *relative_path*.

        Raises:
            ExportError: The path is absolute or escapes the output directory.
        """
        pure: PurePosixPath = PurePosixPath(relative_path.replace("\\", "/"))
        if pure.is_absolute() or ".." in pure.parts:
            raise ExportError(f"Refusing to write outside the output directory: '{relative_path}'.")
        return self._output_dir.joinpath(*pure.parts)

    # -----------------------------------------------------------------
    # Internal: directory management
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> None:
        if not self._clean_before_export or not self._output_dir.exists():
            return
        logger.info("Cleaning output directory: %s", self._output_dir)
        clean_directory(self._output_dir, keep_git=True)

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_generated_files(self, generated_files: Dict[str, str]) -> None:
        for rel_path, content in generated_files.items():
            try:
                target: Path = self.resolve_target(rel_path)
                self._file_records.append(self._write_single_file(target, content, rel_path))
            except (ExportError, OSError) as exc:
                error_msg: str = f"Failed to write {rel_path}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg)

        logger.info("Wrote %d generated files to %s.", len(self._file_records), self._output_dir)

    def _write_single_file(self, full_path: Path, content: str, rel_path: str) -> FileRecord:
        size_bytes: int = write_file(full_path, content, atomic=True)
        return FileRecord(
            relative_path=rel_path,
            absolute_path=str(full_path),
            size_bytes=size_bytes,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self, tables: List[str]) -> ExportManifest:
        import gennetta

        return ExportManifest(
            project_name=self._project_name,
            generator_version=gennetta.__version__,
            export_timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            tables=list(tables),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )

    def _write_manifest_file(self, manifest: ExportManifest) -> None:
        manifest_path: Path = self._output_dir / MANIFEST_FILENAME
        try:
            write_file(manifest_path, manifest.to_json() + "\n", atomic=True)
            logger.debug("Wrote manifest to %s.", manifest_path)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ExportManifest",
    "ExportResult",
    "FileRecord",
    "MANIFEST_FILENAME",
    "ProjectExporter",
]

logger.debug("gennetta.exporters loaded.")
