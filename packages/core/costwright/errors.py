"""Error types raised by the engine.

Catalog-data oddities never raise; only malformed requests and broken bundled
tables do.
"""

from __future__ import annotations


class CostwrightError(Exception):
    """Base class for all costwright errors."""


class InvalidRequestError(CostwrightError, ValueError):
    """Raised when a caller asks for a tier, resource kind or template that does not exist."""

    def __init__(self, field: str, value: object, allowed: list[str] | None = None):
        self.field = field
        self.value = value
        self.allowed = allowed or []
        msg = f"Invalid {field}: {value!r}"
        if self.allowed:
            msg += f" (expected one of: {', '.join(self.allowed)})"
        super().__init__(msg)


class RuleTableError(CostwrightError, ValueError):
    """Raised when a bundled data table breaks one of its load-time checks."""

    def __init__(self, table: str, reason: str):
        self.table = table
        self.reason = reason
        super().__init__(f"{table}: {reason}")


class CatalogError(CostwrightError):
    """Raised when a catalog file exists but cannot be read."""
