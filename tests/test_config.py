"""
tests/test_config.py
Unit tests for gennetta.config.

Tests cover:
- Defaults when no GENNETTA_* variables are set
- GENNETTA_* environment variables, including comma-separated CORS origins
- .env file loading and precedence of environment over .env
- Keyword arguments overriding the environment
- Rejection of bad values
"""

from __future__ import annotations

import pathlib

import pytest
from pydantic import ValidationError as PydanticValidationError

from gennetta.config import ServiceSettings
from gennetta.connection import DEFAULT_ODBC_DRIVER


class TestServiceSettings:
    """Tests for environment-driven service settings."""

    def test_defaults(self) -> None:
        settings = ServiceSettings()
        assert settings.provider == "live"
        assert settings.odbc_driver == DEFAULT_ODBC_DRIVER
        assert settings.catalog_schema == "dbo"
        assert settings.batch_column_queries is False
        assert settings.cors_origins == ["*"]
        assert settings.port == 8000

    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GENNETTA_PROVIDER", "demo")
        monkeypatch.setenv("GENNETTA_BATCH_COLUMN_QUERIES", "true")
        monkeypatch.setenv("GENNETTA_PORT", "9001")
        monkeypatch.setenv("GENNETTA_LOG_LEVEL", "debug")
        settings = ServiceSettings()
        assert settings.provider == "demo"
        assert settings.batch_column_queries is True
        assert settings.port == 9001
        assert settings.log_level == "DEBUG"

    def test_unprefixed_variables_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER", "demo")
        assert ServiceSettings().provider == "live"

    def test_cors_origins_comma_separated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GENNETTA_CORS_ORIGINS", "http://localhost:3000, https://app.example.com,")
        assert ServiceSettings().cors_origins == ["http://localhost:3000", "https://app.example.com"]

    def test_dotenv_file(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / ".env").write_text(
            "GENNETTA_PROVIDER=demo\nGENNETTA_CATALOG_SCHEMA=sales\n", encoding="utf-8"
        )
        settings = ServiceSettings()
        assert settings.provider == "demo"
        assert settings.catalog_schema == "sales"

    def test_environment_beats_dotenv(self, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".env").write_text("GENNETTA_CATALOG_SCHEMA=sales\n", encoding="utf-8")
        monkeypatch.setenv("GENNETTA_CATALOG_SCHEMA", "hr")
        assert ServiceSettings().catalog_schema == "hr"

    def test_keyword_arguments_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GENNETTA_PROVIDER", "demo")
        assert ServiceSettings(provider="live").provider == "live"

    def test_assignment_is_validated(self) -> None:
        settings = ServiceSettings()
        settings.provider = "demo"
        assert settings.provider == "demo"
        with pytest.raises(PydanticValidationError):
            settings.provider = "postgres"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("GENNETTA_PROVIDER", "postgres"),
            ("GENNETTA_LOG_LEVEL", "chatty"),
            ("GENNETTA_PORT", "0"),
            ("GENNETTA_CONNECT_TIMEOUT", "soon"),
        ],
    )
    def test_bad_values_rejected(self, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(PydanticValidationError):
            ServiceSettings()
