# File: gennetta/cli.py
"""
GenNetta - Command-Line Interface
=================================

``argparse`` front end for schema analysis, project generation and the HTTP
service.

Usage examples::

    # List the tables behind a connection string
    gennetta -c "Server=db1;Database=Shop;User Id=sa;Password=..." --analyze-only

    # Generate a project for two tables
    gennetta -c "Server=db1;Database=Shop;Trusted_Connection=true" \\
        -t Users -t Orders -o ./ShopApp --project-name ShopApp

    # Work from a saved snapshot without a database
    gennetta --schema-file schema_example.yaml -o ./out --clean

    # Demo tables, generate in memory only
    gennetta --demo --dry-run

    # Run the HTTP service
    gennetta --serve --port 8000

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
    5 — connection/query error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from gennetta.config import ServiceSettings
from gennetta.connection import parse_connection_string
from gennetta.errors import (
    GenNettaError,
    QueryError,
    SchemaConnectionError,
    TableLookupError,
    ValidationError,
)
from gennetta.generator import GenerationReport, GenNettaPipeline
from gennetta.models import AnalyzeSchemaResponse, GenerationConfig, SchemaSnapshot
from gennetta.providers import DemoSchemaProvider, FileSchemaProvider
from gennetta.wizard import WizardState

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4
EXIT_CONNECTION_ERROR: int = 5


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``gennetta`` logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s", datefmt="%H:%M:%S")
    )

    root_logger: logging.Logger = logging.getLogger("gennetta")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from gennetta import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="gennetta",
        description=(
            "GenNetta — SQL Server schema analysis and ASP.NET Core project generator.\n\n"
            "Reads the base tables of a database (or a saved snapshot) and generates "
            "an MVC + Web API project with EF Core entities, repositories, "
            "controllers, Razor views and services."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  %(prog)s -c "Server=db1;Database=Shop;Trusted_Connection=true" --analyze-only\n'
            "  %(prog)s --schema-file schema.yaml -t Users -o ./out\n"
            "  %(prog)s --demo --dry-run\n"
            "  %(prog)s --serve --port 8000\n"
        ),
    )

    parser.add_argument("--version", action="version", version=f"GenNetta v{__version__}")

    # --- Schema source ---
    source_group = parser.add_argument_group("schema source")
    source = source_group.add_mutually_exclusive_group()
    source.add_argument(
        "-c", "--connection-string",
        type=str,
        default=None,
        metavar="CONN",
        help="SQL Server connection string (Server=...;Database=...;...).",
    )
    source.add_argument(
        "--schema-file",
        type=str,
        default=None,
        metavar="PATH",
        help="Saved schema snapshot (JSON or YAML) to generate from.",
    )
    source_group.add_argument(
        "--demo",
        action="store_true",
        default=False,
        help="Use the built-in demo tables instead of contacting a database.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--analyze-only",
        action="store_true",
        default=False,
        help="Only list the tables and columns; generate nothing.",
    )
    mode_group.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="With --analyze-only, print the analysis payload as JSON.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Generate in memory and list the files without writing them.",
    )
    mode_group.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the HTTP service instead of a one-off generation.",
    )

    # --- Generation ---
    gen_group = parser.add_argument_group("generation")
    gen_group.add_argument(
        "-t", "--table",
        dest="tables",
        action="append",
        default=None,
        metavar="NAME",
        help="Table to generate (repeatable). Defaults to every table.",
    )
    gen_group.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory. Required unless --dry-run or --analyze-only.",
    )
    gen_group.add_argument("--project-name", type=str, default=None, metavar="NAME", help="Root namespace.")
    gen_group.add_argument("--target-framework", type=str, default=None, metavar="TFM", help="e.g. net8.0.")
    gen_group.add_argument("--no-jwt", action="store_true", default=False, help="Skip JWT bearer auth.")
    gen_group.add_argument("--no-google", action="store_true", default=False, help="Skip Google OAuth settings.")
    gen_group.add_argument("--no-swagger", action="store_true", default=False, help="Skip Swagger.")
    gen_group.add_argument(
        "--clean",
        action="store_true",
        default=False,
        help="Clean the output directory before writing.",
    )

    # --- Service ---
    serve_group = parser.add_argument_group("service")
    serve_group.add_argument("--host", type=str, default=None, help="Bind address for --serve.")
    serve_group.add_argument("--port", type=int, default=None, help="Port for --serve.")

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_generation_config(args: argparse.Namespace) -> GenerationConfig:
    """
    GenerationConfig from CLI flags.

    Raises:
        ValueError: An override does not validate.
    """
    overrides: Dict[str, Any] = {}
    if args.project_name is not None:
        overrides["project_name"] = args.project_name
    if args.target_framework is not None:
        overrides["target_framework"] = args.target_framework
    if args.no_jwt:
        overrides["include_jwt_auth"] = False
    if args.no_google:
        overrides["include_google_auth"] = False
    if args.no_swagger:
        overrides["include_swagger"] = False
    return GenerationConfig.model_validate(overrides)


# ---------------------------------------------------------------------------
# Serve mode
# ---------------------------------------------------------------------------


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from gennetta.api import create_app

    settings: ServiceSettings = ServiceSettings()
    if args.demo:
        settings.provider = "demo"
    if args.host is not None:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port

    logger.info("Serving on http://%s:%d (provider=%s).", settings.host, settings.port, settings.provider)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Schema acquisition
# ---------------------------------------------------------------------------


def _load_snapshot(args: argparse.Namespace, pipeline: GenNettaPipeline) -> SchemaSnapshot:
    """
    Read the snapshot from whichever source the flags name.

    Raises:
        ValidationError: Missing or unusable input.
        SchemaConnectionError / QueryError: The live database failed.
    """
    if args.schema_file:
        return FileSchemaProvider(Path(args.schema_file)).fetch_schema()
    if args.demo:
        descriptor = parse_connection_string(args.connection_string) if args.connection_string else None
        return DemoSchemaProvider().fetch_schema(descriptor)
    if not args.connection_string:
        raise ValidationError("Connection string is required (use -c, --schema-file or --demo).")
    return pipeline.fetch_snapshot(args.connection_string)


def _print_analysis(snapshot: SchemaSnapshot, masked: Optional[str], as_json: bool) -> None:
    if as_json:
        response: AnalyzeSchemaResponse = AnalyzeSchemaResponse(
            success=True,
            tables=list(snapshot.tables),
            connection_string=masked,
            database=snapshot.database_name,
            demo=snapshot.is_demo,
        )
        print(json.dumps(response.to_wire(), indent=2))
        return

    print(f"\n{'=' * 60}")
    print("  Schema Analysis")
    print(f"{'=' * 60}")
    print(f"  Database: {snapshot.database_name or '-'}")
    print(f"  Source:   {snapshot.source}{'  (DEMO DATA)' if snapshot.is_demo else ''}")
    if masked:
        print(f"  Conn:     {masked}")
    print(f"  Tables:   {len(snapshot.tables)}")
    print(f"{'─' * 60}")
    for table in snapshot.tables:
        print(f"  {table.name} ({len(table.columns)} columns)")
        for column in table.columns:
            flags: str = " PK" if column.is_primary_key else ""
            nullable: str = "NULL" if column.nullable else "NOT NULL"
            print(f"      {column.name:<24s} {column.source_type:<18s} {nullable}{flags}")
    print(f"{'=' * 60}\n")


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _report_exit_code(report: GenerationReport) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.validation_errors:
        return EXIT_VALIDATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    return EXIT_GENERATION_ERROR


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    settings: ServiceSettings = ServiceSettings()
    pipeline: GenNettaPipeline = GenNettaPipeline(settings)
    wizard: WizardState = WizardState()

    # Step 1: connection
    try:
        snapshot: SchemaSnapshot = _load_snapshot(args, pipeline)
    except ValidationError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR
    except (SchemaConnectionError, QueryError) as exc:
        logger.error("%s", exc)
        return EXIT_CONNECTION_ERROR

    wizard.connect(args.connection_string or "", snapshot)
    if snapshot.is_demo:
        logger.warning("Using DEMO tables; no database was contacted.")

    if args.analyze_only:
        _print_analysis(snapshot, wizard.connection_string or None, args.json)
        return EXIT_SUCCESS

    # Step 2: selection
    try:
        config: GenerationConfig = _build_generation_config(args)
    except ValueError as exc:
        logger.error("Invalid generation option: %s", exc)
        return EXIT_INPUT_ERROR

    try:
        wizard.select_tables(args.tables or snapshot.table_names, config)
    except (TableLookupError, ValidationError) as exc:
        logger.error("%s", exc)
        return EXIT_VALIDATION_ERROR

    # Step 3: generation
    if args.output is None and not args.dry_run:
        logger.error("Output directory is required. Use -o/--output or --dry-run.")
        parser.print_usage(sys.stderr)
        return EXIT_INPUT_ERROR

    output_dir: Optional[Path] = Path(args.output).resolve() if args.output else None
    try:
        report: GenerationReport = pipeline.generate(
            snapshot,
            wizard.selected_tables,
            wizard.config,
            output_dir,
            dry_run=args.dry_run,
            clean=args.clean,
        )
    except GenNettaError as exc:
        logger.error("Generation failed: %s", exc)
        return EXIT_GENERATION_ERROR

    print(report.summary())
    if report.dry_run and report.success:
        for path in report.files:
            print(f"  {path}")

    return _report_exit_code(report)


# ---------------------------------------------------------------------------
# Banner
# ---------------------------------------------------------------------------


def _print_banner() -> None:
    banner: str = r"""
    ╔═══════════════════════════════════════════════════╗
    ║   GenNetta — Schema → ASP.NET Core generator      ║
    ╚═══════════════════════════════════════════════════╝
    """
    print(banner, file=sys.stderr)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose

    _setup_logging(verbosity)

    if verbosity >= 1:
        _print_banner()

    if args.serve:
        sys.exit(_run_serve(args))

    exit_code: int = _run(args, parser)
    if exit_code == EXIT_SUCCESS:
        logger.info("Done.")
    else:
        logger.error("Failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EXIT_CONNECTION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_INPUT_ERROR",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "cli_main",
]

logger.debug("gennetta.cli loaded.")
