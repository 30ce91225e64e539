"""Costwright: cross-cloud price normalization and cost comparison."""

from costwright.errors import CatalogError, CostwrightError, InvalidRequestError, RuleTableError
from costwright.models import (
    CanonicalResource,
    CategorizedResources,
    Category,
    Cloud,
    CostBreakdownEntry,
    CostComparison,
    CostComparisonResult,
    PriceEntry,
    PriceKind,
    RawCatalogEntry,
    ResourceSelection,
    SubCategory,
    UsageTier,
)

__version__ = "0.1.0"

__all__ = [
    "CanonicalResource",
    "CatalogError",
    "CategorizedResources",
    "Category",
    "Cloud",
    "CostAggregator",
    "CostBreakdownEntry",
    "CostComparison",
    "CostComparisonResult",
    "CostwrightError",
    "FileCatalog",
    "InMemoryCatalog",
    "InvalidRequestError",
    "PriceEntry",
    "PriceKind",
    "RawCatalogEntry",
    "ResourceSelection",
    "RuleTableError",
    "SubCategory",
    "UsageTier",
    "classify",
    "compare_cost",
    "compare_tiers",
    "get_template",
    "list_templates",
    "normalize",
]


def __getattr__(name: str):
    # Lazy imports: these load YAML tables on first use
    if name in ("CostAggregator", "compare_cost", "compare_tiers", "normalize"):
        from costwright import aggregate

        return getattr(aggregate, name)
    if name == "classify":
        from costwright.classifier import classify

        return classify
    if name in ("FileCatalog", "InMemoryCatalog"):
        from costwright import catalog

        return getattr(catalog, name)
    if name in ("get_template", "list_templates"):
        from costwright import templates

        return getattr(templates, name)
    raise AttributeError(f"module 'costwright' has no attribute {name!r}")
