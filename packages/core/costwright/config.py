"""Environment-driven paths for bundled tables and vendor catalog files."""

from __future__ import annotations

import os
from pathlib import Path

BUNDLED_DATA_DIR = Path(__file__).parent / "data"

ENV_DATA_DIR = "COSTWRIGHT_DATA_DIR"
ENV_CATALOG_DIR = "COSTWRIGHT_CATALOG_DIR"


def data_dir() -> Path:
    """Directory holding the rule, tier, reference-price and template tables."""
    override = os.environ.get(ENV_DATA_DIR, "").strip()
    return Path(override) if override else BUNDLED_DATA_DIR


def catalog_dir(explicit: str | Path | None = None) -> Path:
    """Directory holding aws.json / azure.json / gcp.json.

    Resolution order: explicit argument, COSTWRIGHT_CATALOG_DIR, ./data.
    """
    if explicit:
        return Path(explicit)
    override = os.environ.get(ENV_CATALOG_DIR, "").strip()
    if override:
        return Path(override)
    return Path.cwd() / "data"
