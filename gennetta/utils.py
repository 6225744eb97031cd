# File: gennetta/utils.py
"""
GenNetta - Utility Functions & Helpers
======================================
String helpers for C# code generation, file I/O, checksums and a timing
context manager used throughout the pipeline.

- Naming helpers are decorated with ``@lru_cache(maxsize=None)`` because the
  template generator asks for the same table names many times per run.
- File writes go through a temp file and an atomic rename.
- Standard library only.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import shutil
import tempfile
import time
import uuid
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_CSHARP_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NON_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9_]")
_LENGTH_RE: re.Pattern[str] = re.compile(r"\((\d+)\)")

# C# keywords that cannot be used as bare identifiers
CSHARP_KEYWORDS: FrozenSet[str] = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
    "char", "checked", "class", "const", "continue", "decimal", "default",
    "delegate", "do", "double", "else", "enum", "event", "explicit",
    "extern", "false", "finally", "fixed", "float", "for", "foreach",
    "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
    "lock", "long", "namespace", "new", "null", "object", "operator",
    "out", "override", "params", "private", "protected", "public",
    "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
    "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
    "ushort", "using", "virtual", "void", "volatile", "while",
})

# Column names treated as audit timestamps (compared lower-cased)
CREATED_AUDIT_NAMES: FrozenSet[str] = frozenset({"createdat", "createddate", "createdon"})
UPDATED_AUDIT_NAMES: FrozenSet[str] = frozenset({"updatedat", "modifieddate", "modifiedat", "updatedon"})


# ---------------------------------------------------------------------------
# Cached naming helpers
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation, good enough for page titles and routes.

    Words that already look plural are returned unchanged so that a table
    called ``Users`` is titled "Users" rather than "Userses".

    Examples:
        >>> to_plural("Category")
        'Categories'
        >>> to_plural("Box")
        'Boxes'
        >>> to_plural("Orders")
        'Orders'
    """
    if not name:
        return ""

    lower: str = name.lower()

    irregulars: Dict[str, str] = {
        "person": "people",
        "child": "children",
        "man": "men",
        "woman": "women",
        "datum": "data",
        "index": "indices",
        "status": "statuses",
        "address": "addresses",
    }

    if lower in irregulars:
        plural: str = irregulars[lower]
        if name[0].isupper():
            return plural[0].upper() + plural[1:]
        return plural

    if lower.endswith("s") and not lower.endswith("ss"):
        return name

    if lower.endswith(("sh", "ch", "x", "z", "ss")):
        return name + "es"
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"

    return name + "s"


@functools.lru_cache(maxsize=None)
def is_csharp_identifier(name: str) -> bool:
    """True when *name* can be used verbatim as a C# class or member name."""
    return bool(_CSHARP_IDENTIFIER_RE.match(name)) and name not in CSHARP_KEYWORDS


@functools.lru_cache(maxsize=None)
def safe_identifier(name: str) -> str:
    """
    Make *name* usable as a C# identifier.

    Invalid characters become underscores and a leading digit gets an
    underscore prefix.  Keywords are capitalised (``event`` → ``Event``)
    rather than escaped with ``@``: the result is also used as a prefix or
    suffix of other identifiers, in file paths and in Razor ``asp-for``
    attributes, none of which accept the verbatim form.
    """
    cleaned: str = _NON_IDENTIFIER_RE.sub("_", name.strip()) or "_"
    if cleaned[0].isdigit():
        cleaned = "_" + cleaned
    if cleaned in CSHARP_KEYWORDS:
        cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned


@functools.lru_cache(maxsize=None)
def extract_length(source_type: str) -> Optional[int]:
    """Return the declared length of ``nvarchar(50)``-style types, if any."""
    match: Optional[re.Match[str]] = _LENGTH_RE.search(source_type)
    return int(match.group(1)) if match else None


def is_created_audit(column_name: str) -> bool:
    return column_name.lower() in CREATED_AUDIT_NAMES


def is_updated_audit(column_name: str) -> bool:
    return column_name.lower() in UPDATED_AUDIT_NAMES


def is_audit_column(column_name: str) -> bool:
    """True for created/updated timestamp columns managed by the application."""
    return is_created_audit(column_name) or is_updated_audit(column_name)


def deterministic_guid(*parts: str) -> str:
    """
    Upper-case GUID derived from *parts*.

    Used wherever Visual Studio expects a GUID so that generated output stays
    byte-identical between runs.
    """
    return str(uuid.uuid5(uuid.NAMESPACE_URL, "gennetta:" + "/".join(parts))).upper()


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path* as UTF-8.

    When *atomic* is True, writes to a temporary file in the same directory
    and renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd: int
        tmp_path: str
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            os.replace(tmp_path, str(path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def clean_directory(path: Path, keep_git: bool = True) -> None:
    """
    Remove all contents of a directory without removing the directory itself.

    If *keep_git* is True, ``.git`` and ``.gitignore`` are preserved.
    """
    if not path.exists():
        return

    for item in path.iterdir():
        if keep_git and item.name in {".git", ".gitignore"}:
            continue
        if item.is_dir():
            shutil.rmtree(item)
        else:
            item.unlink()

    logger.debug("Cleaned directory: %s (keep_git=%s)", path, keep_git)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


def bundle_totals(files: Dict[str, str]) -> Tuple[int, int]:
    """Return ``(total_lines, total_bytes)`` for a path → content mapping."""
    total_lines: int = sum(count_lines(content) for content in files.values())
    total_bytes: int = sum(len(content.encode("utf-8")) for content in files.values())
    return total_lines, total_bytes


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for pipeline steps.

    Usage:
        with Timer("fetch schema") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CREATED_AUDIT_NAMES",
    "CSHARP_KEYWORDS",
    "UPDATED_AUDIT_NAMES",
    "Timer",
    "bundle_totals",
    "clean_directory",
    "count_lines",
    "deterministic_guid",
    "ensure_directory",
    "extract_length",
    "is_audit_column",
    "is_created_audit",
    "is_csharp_identifier",
    "is_updated_audit",
    "safe_identifier",
    "sha256_hex",
    "to_plural",
    "write_file",
]
