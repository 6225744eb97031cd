"""
tests/test_api.py
HTTP tests for gennetta.api using FastAPI's TestClient.

Tests cover:
- POST /api/analyze-schema: demo success, masked echo, 400 for bad input,
  500 for connection/query failures
- POST /api/generate: 200 with path → content, 400 for empty selection or
  invalid payloads, 404 for unknown tables
- GET /health
- CORS headers for configured origins
- {success: false, error} bodies for invalid request bodies and unexpected
  generation failures
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from gennetta.api import GENERIC_GENERATE_FAILURE, create_app
from gennetta.config import ServiceSettings
from gennetta.errors import QueryError, SchemaConnectionError
from gennetta.generator import GenNettaPipeline
from gennetta.models import ConnectionDescriptor, GenerationConfig, SchemaSnapshot
from gennetta.providers import LiveSchemaProvider, SchemaProvider

CONN = "Server=db1;Database=Shop;User Id=sa;Password=s3cr3t"


class RaisingProvider(SchemaProvider):
    label = "raising"

    def __init__(self, exc: BaseException) -> None:
        self._exc = exc

    def fetch_schema(self, descriptor: Optional[ConnectionDescriptor]) -> SchemaSnapshot:
        raise self._exc


class ExplodingPipeline(GenNettaPipeline):
    """Pipeline whose generation step fails with a non-GenNetta error."""

    def generate_bundle(
        self,
        snapshot: SchemaSnapshot,
        selected: Sequence[str],
        config: Optional[GenerationConfig] = None,
    ) -> Dict[str, str]:
        raise RuntimeError("renderer crashed")


def _tables_payload() -> List[Dict[str, Any]]:
    return [
        {
            "name": "Users",
            "columns": [
                {"name": "Id", "type": "int", "nullable": False, "primaryKey": True},
                {"name": "Email", "type": "nvarchar(255)", "nullable": False, "primaryKey": False},
                {"name": "CreatedAt", "type": "datetime2", "nullable": False, "primaryKey": False},
            ],
        },
        {
            "name": "Orders",
            "columns": [
                {"name": "Id", "type": "int", "nullable": False, "primaryKey": True},
                {"name": "Total", "type": "decimal(18,2)", "nullable": False, "primaryKey": False},
            ],
        },
    ]


# ===========================================================================
# /api/analyze-schema
# ===========================================================================


class TestAnalyzeSchemaEndpoint:
    """Tests for schema analysis over HTTP."""

    def test_demo_success(self, client: TestClient) -> None:
        resp = client.post("/api/analyze-schema", json={"connectionString": CONN})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["demo"] is True
        assert body["database"] == "Shop"
        assert body["connectionString"] == "Server=db1;Database=Shop;User Id=sa;Password=***"
        assert "s3cr3t" not in resp.text
        users = body["tables"][0]
        assert users["name"] == "Users"
        assert users["columns"][0]["primaryKey"] is True

    def test_missing_connection_string(self, client: TestClient) -> None:
        resp = client.post("/api/analyze-schema", json={})
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": "Connection string is required",
            "demo": False,
        }

    def test_malformed_connection_string(self, client: TestClient) -> None:
        resp = client.post("/api/analyze-schema", json={"connectionString": "just-a-host"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    @pytest.mark.parametrize(
        "exc",
        [
            SchemaConnectionError("Could not connect to 'db1': login timeout"),
            QueryError("Metadata query failed: denied"),
        ],
    )
    def test_provider_failure_is_500(self, exc: Exception) -> None:
        client = TestClient(create_app(ServiceSettings(), provider=RaisingProvider(exc)))
        resp = client.post("/api/analyze-schema", json={"connectionString": CONN})
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == exc.message
        assert "s3cr3t" not in resp.text

    def test_unexpected_failure_is_generic_500(self) -> None:
        client = TestClient(create_app(ServiceSettings(), provider=RaisingProvider(KeyError("x"))))
        resp = client.post("/api/analyze-schema", json={"connectionString": CONN})
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to analyze database schema"

    def test_live_provider_over_http(self, engine_factory) -> None:
        provider = LiveSchemaProvider(ServiceSettings(), engine_factory=engine_factory)
        client = TestClient(create_app(ServiceSettings(), provider=provider))
        resp = client.post("/api/analyze-schema", json={"connectionString": CONN})
        assert resp.status_code == 200
        assert [t["name"] for t in resp.json()["tables"]] == ["Customers", "Orders"]
        assert resp.json()["demo"] is False


# ===========================================================================
# /api/generate
# ===========================================================================


class TestGenerateEndpoint:
    """Tests for project generation over HTTP."""

    def test_generates_selected_tables(self, client: TestClient) -> None:
        resp = client.post(
            "/api/generate",
            json={"tables": _tables_payload(), "selectedTables": ["Users"], "projectName": "Shop"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        files = body["files"]
        assert "Shop/Models/Users.cs" in files
        assert "Shop/Models/Orders.cs" not in files
        assert "public class Users" in files["Shop/Models/Users.cs"]

    def test_default_project_name(self, client: TestClient) -> None:
        resp = client.post("/api/generate", json={"tables": _tables_payload(), "selectedTables": ["Orders"]})
        assert resp.status_code == 200
        assert "GenNettaApp.sln" in resp.json()["files"]

    def test_accepts_analyze_output_verbatim(self, client: TestClient) -> None:
        analysis = client.post("/api/analyze-schema", json={"connectionString": CONN}).json()
        resp = client.post(
            "/api/generate",
            json={"tables": analysis["tables"], "selectedTables": ["Products", "Users"]},
        )
        assert resp.status_code == 200
        assert "GenNettaApp/Controllers/ProductsApiController.cs" in resp.json()["files"]

    def test_empty_selection_is_400(self, client: TestClient) -> None:
        resp = client.post("/api/generate", json={"tables": _tables_payload(), "selectedTables": []})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Select at least one table to generate."}

    def test_unknown_table_is_404(self, client: TestClient) -> None:
        resp = client.post(
            "/api/generate",
            json={"tables": _tables_payload(), "selectedTables": ["Users", "Ghost"]},
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "Table 'Ghost' was not found in the schema snapshot."

    def test_invalid_project_name_is_400(self, client: TestClient) -> None:
        resp = client.post(
            "/api/generate",
            json={"tables": _tables_payload(), "selectedTables": ["Users"], "projectName": "My App"},
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_duplicate_table_definitions_are_400(self, client: TestClient) -> None:
        tables = _tables_payload()
        resp = client.post(
            "/api/generate",
            json={"tables": tables + tables[:1], "selectedTables": ["Users"]},
        )
        assert resp.status_code == 400


# ===========================================================================
# Request validation and unexpected failures
# ===========================================================================


class TestErrorEnvelope:
    """Every failure keeps the {success: false, error} body."""

    def test_column_without_type_is_400(self, client: TestClient) -> None:
        tables = _tables_payload()
        del tables[0]["columns"][1]["type"]
        resp = client.post("/api/generate", json={"tables": tables, "selectedTables": ["Users"]})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert "tables.0.columns.1.type" in body["error"]
        assert "detail" not in body

    def test_non_string_connection_string_is_400(self, client: TestClient) -> None:
        resp = client.post("/api/analyze-schema", json={"connectionString": ["Password=s3cr3t"]})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid request body: connectionString")
        assert "s3cr3t" not in resp.text

    def test_malformed_json_is_400(self, client: TestClient) -> None:
        resp = client.post(
            "/api/analyze-schema",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_unexpected_generation_failure_is_generic_500(self, demo_settings: ServiceSettings) -> None:
        app = create_app(demo_settings)
        app.state.pipeline = ExplodingPipeline(demo_settings)
        resp = TestClient(app).post(
            "/api/generate",
            json={"tables": _tables_payload(), "selectedTables": ["Users"]},
        )
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": GENERIC_GENERATE_FAILURE}
        assert "renderer crashed" not in resp.text


# ===========================================================================
# /health and CORS
# ===========================================================================


class TestServiceMisc:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_cors_allowed_origin(self, client: TestClient) -> None:
        resp = client.options(
            "/api/analyze-schema",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_demo_provider_selected_from_settings(self, client: TestClient) -> None:
        assert client.app.state.pipeline.provider.is_demo
