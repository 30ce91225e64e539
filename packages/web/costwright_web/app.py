"""FastAPI backend wrapping the costwright core package."""

from __future__ import annotations

import asyncio
import logging
import threading
import time

from costwright import __version__
from costwright.aggregate import CostAggregator
from costwright.catalog import Catalog, FileCatalog
from costwright.classifier import product_family_mappings
from costwright.errors import InvalidRequestError
from costwright.models import Cloud, RawCatalogEntry
from costwright.templates import get_template, list_templates
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

log = logging.getLogger(__name__)

app = FastAPI(title="Costwright", version=__version__, description="Cross-cloud cost comparison")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class CachedCatalog:
    """Keeps the last fetch of a catalog for ``ttl_seconds``."""

    def __init__(self, source: Catalog, ttl_seconds: int = 3600):
        self._source = source
        self._ttl = ttl_seconds
        self._entries: list[RawCatalogEntry] | None = None
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def fetch_all(self) -> list[RawCatalogEntry]:
        # One refresh at a time; waiting callers reuse its result
        with self._lock:
            if self._entries is None or time.time() - self._fetched_at >= self._ttl:
                self._entries = self._source.fetch_all()
                self._fetched_at = time.time()
            return list(self._entries)


# Lazy singletons
_catalog: Catalog | None = None
_aggregator: CostAggregator | None = None


def get_catalog() -> Catalog:
    global _catalog
    if _catalog is None:
        _catalog = CachedCatalog(FileCatalog())
    return _catalog


def get_aggregator() -> CostAggregator:
    global _aggregator
    if _aggregator is None:
        _aggregator = CostAggregator()
    return _aggregator


# --- Request models ---


class CompareRequest(BaseModel):
    resources: list[str] = Field(default_factory=list)
    usage: str = "Small"
    template: str | None = None


class CompareTiersRequest(BaseModel):
    resources: list[str] = Field(default_factory=list)
    tiers: list[str] | None = None


class NormalizeRequest(BaseModel):
    categories: list[str] | None = None
    usage: str = "Small"


# --- Endpoints ---


@app.get("/api/health")
def health():
    try:
        count = len(get_catalog().fetch_all())
    except Exception:
        log.exception("Catalog unavailable")
        return {"status": "ok", "catalog_loaded": False}
    return {"status": "ok", "catalog_loaded": True, "products": count}


@app.post("/api/compare")
async def compare(req: CompareRequest):
    try:
        kinds = list(get_template(req.template).resources) if req.template else []
        kinds += req.resources
        comparison = await asyncio.to_thread(get_aggregator().compare_cost, get_catalog(), kinds, req.usage)
        return comparison.model_dump(mode="json")
    except InvalidRequestError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        log.exception("Compare endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e


@app.post("/api/compare/tiers")
async def compare_tiers(req: CompareTiersRequest):
    try:
        comparisons = await asyncio.to_thread(
            get_aggregator().compare_tiers, get_catalog(), req.resources, req.tiers
        )
        return {"comparisons": [c.model_dump(mode="json") for c in comparisons]}
    except InvalidRequestError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        log.exception("Compare tiers endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e


@app.post("/api/normalize")
async def normalize(req: NormalizeRequest):
    try:
        grouped = await asyncio.to_thread(get_aggregator().normalize, get_catalog(), req.categories, req.usage)
        return grouped.model_dump(mode="json")
    except InvalidRequestError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        log.exception("Normalize endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e


@app.get("/api/templates")
def templates():
    return {"templates": [t.model_dump(mode="json") for t in list_templates()]}


@app.get("/api/catalog/mappings")
async def catalog_mappings(provider: str | None = None):
    try:
        cloud = Cloud(provider) if provider else None
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Unknown provider: {provider}") from e
    try:
        entries = await asyncio.to_thread(get_catalog().fetch_all)
        if cloud is not None:
            entries = [e for e in entries if e.vendor == cloud]
        return {"mappings": [m.model_dump(mode="json") for m in product_family_mappings(entries)]}
    except Exception as e:
        log.exception("Catalog mappings endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e
