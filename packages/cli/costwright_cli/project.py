"""Project directory support: finds and loads .costwright/ configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

DEFAULT_TIER = "Small"


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start (default: cwd) looking for .costwright/ directory."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / ".costwright").is_dir():
            return parent
    return None


def load_project_config(project_root: Path) -> dict[str, Any]:
    """Load .costwright/config.yaml if it exists."""
    config_path = project_root / ".costwright" / "config.yaml"
    if config_path.exists():
        return yaml.safe_load(config_path.read_text()) or {}
    return {}


def resolve_tier(explicit: str | None, start: Path | None = None) -> str:
    """Command-line tier, else the project's ``tier``, else Small."""
    if explicit:
        return explicit
    root = find_project_root(start)
    if root:
        tier = load_project_config(root).get("tier")
        if tier:
            return str(tier)
    return DEFAULT_TIER


def resolve_catalog_dir(explicit: Path | None, start: Path | None = None) -> Path | None:
    """Command-line directory, else the project's ``catalog_dir``.

    A relative ``catalog_dir`` is taken relative to the project root. None
    leaves the choice to FileCatalog ($COSTWRIGHT_CATALOG_DIR, then ./data).
    """
    if explicit:
        return explicit
    root = find_project_root(start)
    if root:
        configured = load_project_config(root).get("catalog_dir")
        if configured:
            path = Path(configured)
            return path if path.is_absolute() else root / path
    return None
