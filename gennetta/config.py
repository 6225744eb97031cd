# File: gennetta/config.py
"""
GenNetta - Service Settings
===========================
Runtime settings for the schema providers, the HTTP service and logging,
read by pydantic-settings from ``GENNETTA_*`` environment variables and a
``.env`` file in the working directory.  Keyword arguments passed to
``ServiceSettings(...)`` take precedence over both.

Generation options for the emitted project live in
``gennetta.models.GenerationConfig``; this module only covers how the
service itself runs.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from gennetta.connection import DEFAULT_ODBC_DRIVER

logger: logging.Logger = logging.getLogger("gennetta.config")

ENV_PREFIX: str = "GENNETTA_"


class ServiceSettings(BaseSettings):
    """How schema analysis and the HTTP service behave."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    provider: Literal["live", "demo"] = Field(
        default="live",
        description="'live' introspects SQL Server; 'demo' returns labelled sample tables.",
    )
    odbc_driver: str = Field(default=DEFAULT_ODBC_DRIVER, description="pyodbc driver name.")
    catalog_schema: str = Field(default="dbo", description="Schema whose base tables are listed.")
    batch_column_queries: bool = Field(
        default=False, description="Read all columns in one query instead of one per table."
    )
    connect_timeout: int = Field(default=15, ge=1, le=300, description="Login timeout in seconds.")
    trust_server_certificate: bool = Field(default=True)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    # Comma-separated in the environment, not JSON.
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        upper: str = v.upper()
        if upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level '{v}'.")
        return upper

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v: object) -> object:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    def model_post_init(self, __context: Any) -> None:
        logger.debug(
            "Service settings: provider=%s schema=%s batch=%s driver=%s",
            self.provider,
            self.catalog_schema,
            self.batch_column_queries,
            self.odbc_driver,
        )


__all__: List[str] = ["ENV_PREFIX", "ServiceSettings"]
