# File: gennetta/api.py
"""
GenNetta - HTTP Service
=======================
FastAPI application exposing the pipeline to a browser client.

Endpoints:
    POST /api/analyze-schema   {connectionString} → tables or error
    POST /api/generate         {tables, selectedTables, projectName?} → files
    GET  /health               liveness probe

Failure bodies keep the ``{success: false, error}`` shape with a matching
status code: 400 for bad input, 404 for an unknown table, 500 for
connection, query or unexpected failures.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gennetta.config import ServiceSettings
from gennetta.errors import TableLookupError, ValidationError
from gennetta.generator import GenNettaPipeline
from gennetta.models import (
    AnalyzeSchemaRequest,
    AnalyzeSchemaResponse,
    GenerateRequest,
    GenerateResponse,
    GenerationConfig,
    SchemaSnapshot,
)
from gennetta.providers import SchemaProvider

logger: logging.Logger = logging.getLogger("gennetta.api")

# ─────────────────────────────────────────────────────────────────────────────
# Models
# ─────────────────────────────────────────────────────────────────────────────


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


RESP_ERRORS: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Bad Request"},
    404: {"model": ErrorResponse, "description": "Table Not Found"},
    500: {"model": ErrorResponse, "description": "Analysis Failed"},
}

GENERIC_GENERATE_FAILURE: str = "Failed to generate project"

# GenNettaError.code → HTTP status for analysis failures
_ANALYZE_STATUS: Dict[str, int] = {
    ValidationError.code: 400,
}

router = APIRouter(tags=["gennetta"])


def get_pipeline(request: Request) -> GenNettaPipeline:
    return request.app.state.pipeline


# ─────────────────────────────────────────────────────────────────────────────
# Endpoints
# ─────────────────────────────────────────────────────────────────────────────


@router.post(
    "/api/analyze-schema",
    responses=RESP_ERRORS,
    summary="Analyze Database Schema",
)
def analyze_schema(
    body: AnalyzeSchemaRequest,
    pipeline: GenNettaPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """
    Read the base tables and columns behind a connection string.

    The echoed connection string always has its password masked.  When the
    service runs the demo provider the response carries ``demo: true``.
    """
    response: AnalyzeSchemaResponse = pipeline.analyze_schema(body.connection_string)
    status: int = 200
    if not response.success:
        status = _ANALYZE_STATUS.get(response.error_code or "", 500)
    return JSONResponse(status_code=status, content=response.to_wire())


@router.post(
    "/api/generate",
    responses=RESP_ERRORS,
    summary="Generate ASP.NET Core Project",
)
def generate_project(
    body: GenerateRequest,
    pipeline: GenNettaPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Render the project for the selected tables and return path → content."""
    try:
        snapshot: SchemaSnapshot = SchemaSnapshot(tables=tuple(body.tables), source="client")
        config: GenerationConfig = (
            GenerationConfig(project_name=body.project_name)
            if body.project_name
            else GenerationConfig()
        )
    except ValueError as exc:
        return _failure(400, f"Invalid generation request: {exc}")

    try:
        files: Dict[str, str] = pipeline.generate_bundle(snapshot, body.selected_tables, config)
    except TableLookupError as exc:
        return _failure(404, exc.message)
    except ValidationError as exc:
        return _failure(400, exc.message)
    except Exception:
        logger.exception("Unexpected error while generating project.")
        return _failure(500, GENERIC_GENERATE_FAILURE)

    return JSONResponse(status_code=200, content=GenerateResponse(success=True, files=files).to_wire())


@router.get("/health", summary="Health Check")
def health() -> Dict[str, str]:
    return {"status": "ok"}


def _failure(status: int, message: str) -> JSONResponse:
    logger.warning("Request failed (%d): %s", status, message)
    return JSONResponse(
        status_code=status,
        content=GenerateResponse(success=False, error=message).to_wire(),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report malformed request bodies as ``{success: false, error}`` with 400.

    Only field locations and messages are reported; the offending input is
    left out because it may be a connection string.
    """
    problems: List[str] = []
    for err in exc.errors():
        loc: str = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        msg: str = str(err.get("msg", "invalid"))
        problems.append(f"{loc}: {msg}" if loc else msg)
    return _failure(400, "Invalid request body: " + "; ".join(problems))


# ─────────────────────────────────────────────────────────────────────────────
# App factory
# ─────────────────────────────────────────────────────────────────────────────


def create_app(
    settings: Optional[ServiceSettings] = None,
    provider: Optional[SchemaProvider] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service settings; read from the environment when omitted.
        provider: Schema provider override (tests inject fakes here).
    """
    import gennetta

    settings = settings or ServiceSettings()
    app: FastAPI = FastAPI(
        title="GenNetta",
        description="Analyze a SQL Server schema and generate an ASP.NET Core project.",
        version=gennetta.__version__,
    )
    app.state.pipeline = GenNettaPipeline(settings, provider)

    origins: List[str] = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)

    logger.info(
        "GenNetta service created (provider=%s, cors=%s).",
        app.state.pipeline.provider.label,
        ", ".join(origins),
    )
    return app


__all__: List[str] = [
    "GENERIC_GENERATE_FAILURE",
    "create_app",
    "get_pipeline",
    "request_validation_handler",
    "router",
]
