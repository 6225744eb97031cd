# File: gennetta/connection.py
"""
GenNetta - Connection Descriptor Parsing
========================================
Parses SQL Server style connection strings into ``ConnectionDescriptor``
records, masks passwords for echoing, and turns descriptors into
SQLAlchemy URLs for the live schema provider.

Parsing rules:
    - pairs are separated by ``;``; empty segments are skipped;
    - the first ``=`` splits key from value;
    - keys are matched case-insensitively against a fixed alias set;
    - the last occurrence of a key wins;
    - unrecognised keys are ignored.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from sqlalchemy.engine import URL

from gennetta.errors import ValidationError
from gennetta.models import ConnectionDescriptor

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.connection")

# ---------------------------------------------------------------------------
# Key aliases (lower-case, whitespace-collapsed) → canonical field
# ---------------------------------------------------------------------------

KEY_ALIASES: Dict[str, str] = {
    "server": "server",
    "data source": "server",
    "address": "server",
    "addr": "server",
    "database": "database",
    "initial catalog": "database",
    "user id": "username",
    "uid": "username",
    "user": "username",
    "password": "password",
    "pwd": "password",
    "trusted_connection": "trusted_connection",
    "integrated security": "trusted_connection",
}

PASSWORD_MASK: str = "***"

_TRUE_VALUES = frozenset({"true", "yes", "sspi", "1"})
_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")

DEFAULT_ODBC_DRIVER: str = "ODBC Driver 18 for SQL Server"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalise_key(key: str) -> str:
    return _WHITESPACE_RE.sub(" ", key.strip()).lower()


def _split_pairs(raw: str) -> List[List[str]]:
    """
    Split *raw* into ``[key, value]`` pairs, keeping original spelling.

    Raises:
        ValidationError: A non-empty segment has no ``=``.
    """
    pairs: List[List[str]] = []
    for position, segment in enumerate(raw.split(";"), start=1):
        if not segment.strip():
            continue
        if "=" not in segment:
            # The segment text may be part of a password, so only its position is reported.
            raise ValidationError(
                f"Malformed connection string: segment {position} is not of the form key=value."
            )
        key, value = segment.split("=", 1)
        pairs.append([key, value])
    return pairs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_connection_string(raw: Optional[str]) -> ConnectionDescriptor:
    """
    Parse a connection string into a ``ConnectionDescriptor``.

    Args:
        raw: e.g. ``"Server=db1;Database=Shop;User Id=sa;Password=secret;"``.

    Returns:
        The parsed descriptor.

    Raises:
        ValidationError: Empty input, a segment without ``=``, no server,
            or a non-numeric port.
    """
    if raw is None or not raw.strip():
        raise ValidationError("Connection string is required")

    values: Dict[str, str] = {}
    for key, value in _split_pairs(raw):
        canonical: Optional[str] = KEY_ALIASES.get(_normalise_key(key))
        if canonical is None:
            logger.debug("Ignoring an unrecognised connection string key.")
            continue
        values[canonical] = value.strip()

    server: str = values.get("server", "")
    if not server:
        raise ValidationError("Connection string must specify Server or Data Source.")

    if "," in server:
        port_text: str = server.split(",", 1)[1].strip()
        if port_text and not port_text.isdigit():
            raise ValidationError(f"Invalid port '{port_text}' in server '{server}'.")

    descriptor: ConnectionDescriptor = ConnectionDescriptor(
        server=server,
        database=values.get("database") or None,
        username=values.get("username") or None,
        password=values.get("password") if "password" in values else None,
        trusted_connection=values.get("trusted_connection", "").lower() in _TRUE_VALUES,
    )
    logger.debug(
        "Parsed connection string: server=%s database=%s user=%s trusted=%s",
        descriptor.server,
        descriptor.database,
        descriptor.username,
        descriptor.trusted_connection,
    )
    return descriptor


def mask_connection_string(raw: Optional[str]) -> str:
    """
    Replace every password value in *raw* with ``***``.

    Key spelling, pair order and a trailing ``;`` are preserved.  Only
    segments with a recognised, non-password key are echoed as written;
    anything else (unknown keys, text without ``=``, fragments of a quoted
    value split on ``;``) is replaced by ``***`` as a whole.

    Example:
        >>> mask_connection_string("Server=db1;Password=secret;")
        'Server=db1;Password=***;'
    """
    if not raw:
        return ""

    segments: List[str] = []
    for segment in raw.split(";"):
        if not segment.strip():
            segments.append(segment)
            continue
        canonical: Optional[str] = None
        key: str = ""
        if "=" in segment:
            key, _value = segment.split("=", 1)
            canonical = KEY_ALIASES.get(_normalise_key(key))
        if canonical is None:
            segments.append(PASSWORD_MASK)
        elif canonical == "password":
            segments.append(f"{key}={PASSWORD_MASK}")
        else:
            segments.append(segment)
    return ";".join(segments)


def scrub_secret(message: str, descriptor: Optional[ConnectionDescriptor]) -> str:
    """Remove the descriptor's password from an error message, if present."""
    if descriptor is None:
        return message
    secret: Optional[str] = descriptor.password_value
    if secret:
        message = message.replace(secret, PASSWORD_MASK)
    return message


def build_sqlalchemy_url(
    descriptor: ConnectionDescriptor,
    *,
    driver: str = DEFAULT_ODBC_DRIVER,
    trust_server_certificate: bool = True,
) -> URL:
    """
    Build a ``mssql+pyodbc`` URL for *descriptor*.

    Raises:
        ValidationError: The descriptor has no database; introspection needs a catalog.
    """
    if not descriptor.database:
        raise ValidationError("Connection string must specify Database or Initial Catalog.")

    query: Dict[str, str] = {"driver": driver}
    if trust_server_certificate:
        query["TrustServerCertificate"] = "yes"
    if descriptor.trusted_connection:
        query["Trusted_Connection"] = "yes"

    use_login: bool = not descriptor.trusted_connection
    return URL.create(
        "mssql+pyodbc",
        username=descriptor.username if use_login else None,
        password=descriptor.password_value if use_login else None,
        host=descriptor.host,
        port=descriptor.port,
        database=descriptor.database,
        query=query,
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_ODBC_DRIVER",
    "KEY_ALIASES",
    "PASSWORD_MASK",
    "build_sqlalchemy_url",
    "mask_connection_string",
    "parse_connection_string",
    "scrub_secret",
]
