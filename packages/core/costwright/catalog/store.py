"""Catalog sources: vendor price-list JSON files or an in-memory list.

A vendor file looks like ``{"data": {"products": [...]}}`` where each product
is one SKU line (vendorName, service, region, productFamily, attributes,
prices). The engine only ever calls ``fetch_all()``.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Protocol, runtime_checkable

from pydantic import ValidationError

from costwright.config import catalog_dir
from costwright.errors import CatalogError
from costwright.models import RawCatalogEntry

log = logging.getLogger(__name__)

# Merged in this order
CATALOG_FILES = ("aws.json", "azure.json", "gcp.json")


@runtime_checkable
class Catalog(Protocol):
    def fetch_all(self) -> list[RawCatalogEntry]: ...


class InMemoryCatalog:
    """A fixed list of entries; what tests and embedding callers hand the engine."""

    def __init__(self, entries: Iterable[RawCatalogEntry | dict[str, Any]] = ()):
        self._entries = [
            e if isinstance(e, RawCatalogEntry) else RawCatalogEntry.model_validate(e) for e in entries
        ]

    def fetch_all(self) -> list[RawCatalogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def load_catalog_file(path: Path) -> list[RawCatalogEntry]:
    """Parse one vendor file.

    Raises CatalogError when the file is not valid catalog JSON. A product that
    fails validation is logged and skipped so one bad SKU cannot hide the rest.
    """
    try:
        # parse_float keeps prices exact
        data = json.loads(path.read_text(), parse_float=Decimal)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read catalog file {path}: {e}") from e

    products = ((data or {}).get("data") or {}).get("products")
    if products is None:
        raise CatalogError(f"{path} has no data.products list")
    entries: list[RawCatalogEntry] = []
    for index, raw in enumerate(products):
        try:
            entries.append(RawCatalogEntry.model_validate(raw))
        except ValidationError as e:
            log.warning("Skipping malformed product %d in %s: %s", index, path, e)
    return entries


class FileCatalog:
    """Reads aws.json, azure.json and gcp.json from one directory.

    Missing files are skipped; the directory defaults to
    ``$COSTWRIGHT_CATALOG_DIR`` or ``./data``.
    """

    def __init__(self, directory: str | Path | None = None):
        self.directory = catalog_dir(directory)

    def fetch_all(self) -> list[RawCatalogEntry]:
        entries: list[RawCatalogEntry] = []
        for filename in CATALOG_FILES:
            path = self.directory / filename
            if not path.exists():
                log.debug("Catalog file %s not found, skipping", path)
                continue
            loaded = load_catalog_file(path)
            log.debug("Loaded %d products from %s", len(loaded), path)
            entries.extend(loaded)
        return entries
