"""Error types raised inside the catalog core.

Fetch and decode failures are scoped to a single package: ``CatalogCache``
catches them per package and leaves the package out of the snapshot. They are
never raised out of a refresh.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    FETCH_FAILED = "FETCH_FAILED"
    DECODE_FAILED = "DECODE_FAILED"
    CACHE_MISS = "CACHE_MISS"
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"


class CatalogError(Exception):
    """Structured error carrying a machine-readable code."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def __repr__(self) -> str:
        return f"CatalogError(code={self.code.value!r}, message={self.message!r})"
