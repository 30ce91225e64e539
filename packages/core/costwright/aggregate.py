"""Cost aggregation: normalized catalog in, per-provider monthly totals out.

The catalog is normalized once per call, partitioned by (provider,
sub-category), and the selector runs once per provider per requested kind.
Results always list AWS, Azure and GCP in that order, and every provider total
is the exact Decimal sum of its breakdown.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Union

from costwright.catalog import Catalog
from costwright.classifier import ClassificationRules, get_rules
from costwright.errors import InvalidRequestError
from costwright.formula import monthly_cost
from costwright.models import (
    CanonicalResource,
    CategorizedResources,
    Category,
    Cloud,
    CostBreakdownEntry,
    CostComparison,
    CostComparisonResult,
    RawCatalogEntry,
    ResourceSelection,
    SubCategory,
    UsageTier,
)
from costwright.reference import SECTIONS, ReferencePrices, get_reference_prices
from costwright.resources import normalize_catalog
from costwright.selector import ResourceSelector
from costwright.tiers import TierTable, get_tiers, parse_tier

log = logging.getLogger(__name__)

PROVIDERS: tuple[Cloud, ...] = (Cloud.AWS, Cloud.AZURE, Cloud.GCP)

# Kinds priced only from the reference table
REFERENCE_KINDS = frozenset(SECTIONS.values())

CatalogSource = Union[Catalog, Iterable[RawCatalogEntry]]

Partitions = dict[tuple[Cloud, SubCategory], list[CanonicalResource]]


def _lookup(enum_cls, field: str, value):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == wanted:
                return member
    raise InvalidRequestError(field, value, [m.value for m in enum_cls])


def parse_sub_category(value: SubCategory | str) -> SubCategory:
    return _lookup(SubCategory, "resource kind", value)


def parse_category(value: Category | str) -> Category:
    return _lookup(Category, "category", value)


def _entries(catalog: CatalogSource) -> list[RawCatalogEntry]:
    if isinstance(catalog, Catalog):
        return catalog.fetch_all()
    return list(catalog)


class CostAggregator:
    """Runs normalization, selection and costing against one catalog snapshot."""

    def __init__(
        self,
        rules: ClassificationRules | None = None,
        tiers: TierTable | None = None,
        reference: ReferencePrices | None = None,
    ):
        self.rules = rules or get_rules()
        self.tiers = tiers or get_tiers()
        self.reference = reference or get_reference_prices()
        self.selector = ResourceSelector(self.tiers)

    def normalize(
        self,
        catalog: CatalogSource,
        categories: Iterable[Category | str] | None,
        usage: UsageTier | str,
    ) -> CategorizedResources:
        """Normalized inventory grouped by requested category.

        ``categories=None`` returns every category present. Reference offers
        for the tier are listed after the catalog-derived resources.
        """
        tier = parse_tier(usage)
        wanted = list(Category) if categories is None else [parse_category(c) for c in categories]

        resources = normalize_catalog(_entries(catalog), self.rules) + self.reference.all_offers(tier)
        grouped: dict[Category, list[CanonicalResource]] = {}
        for category in wanted:
            members = [r for r in resources if r.category == category]
            if members or categories is not None:
                grouped[category] = members
        return CategorizedResources(categories=grouped)

    def compare_cost(
        self,
        catalog: CatalogSource,
        kinds: Iterable[SubCategory | str],
        usage: UsageTier | str,
    ) -> CostComparison:
        # Reject bad requests before touching the catalog
        tier = parse_tier(usage)
        requested = [parse_sub_category(k) for k in kinds]

        partitions = self._partition(normalize_catalog(_entries(catalog), self.rules), tier)
        return self._compare(partitions, requested, tier)

    def compare_tiers(
        self,
        catalog: CatalogSource,
        kinds: Iterable[SubCategory | str],
        tiers: Iterable[UsageTier | str] | None = None,
    ) -> list[CostComparison]:
        """One comparison per tier, normalizing the catalog only once."""
        wanted = list(UsageTier) if tiers is None else [parse_tier(t) for t in tiers]
        requested = [parse_sub_category(k) for k in kinds]

        resources = normalize_catalog(_entries(catalog), self.rules)
        return [self._compare(self._partition(resources, tier), requested, tier) for tier in wanted]

    def select(
        self,
        pool: Iterable[CanonicalResource],
        cloud: Cloud,
        sub_category: SubCategory,
        tier: UsageTier,
    ) -> ResourceSelection:
        resource = self.selector.select(pool, cloud, sub_category, tier)
        cost = monthly_cost(resource, self.tiers.usage(tier)) if resource is not None else Decimal(0)
        return ResourceSelection(
            cloud=cloud,
            sub_category=sub_category,
            tier=tier,
            resource=resource,
            monthly_cost=cost,
        )

    def _partition(self, resources: list[CanonicalResource], tier: UsageTier) -> Partitions:
        partitions: Partitions = {}
        for resource in resources:
            if resource.sub_category in REFERENCE_KINDS:
                continue
            partitions.setdefault((resource.cloud, resource.sub_category), []).append(resource)
        for offer in self.reference.all_offers(tier):
            partitions.setdefault((offer.cloud, offer.sub_category), []).append(offer)
        return partitions

    def _compare(self, partitions: Partitions, requested: list[SubCategory], tier: UsageTier) -> CostComparison:
        results: list[CostComparisonResult] = []
        for cloud in PROVIDERS:
            breakdown: list[CostBreakdownEntry] = []
            for sub_category in requested:
                selection = self.select(partitions.get((cloud, sub_category), []), cloud, sub_category, tier)
                breakdown.append(
                    CostBreakdownEntry(
                        sub_category=sub_category,
                        cost=selection.monthly_cost,
                        resource_details=selection.resource.model_dump_json() if selection.matched else None,
                    )
                )
            total = sum((entry.cost for entry in breakdown), Decimal(0))
            log.debug("%s total at %s: %s", cloud.value, tier.value, total)
            results.append(CostComparisonResult(cloud=cloud, total_monthly_price=total, breakdown=breakdown))
        return CostComparison(usage=tier, resources=requested, results=results)


def normalize(
    catalog: CatalogSource,
    categories: Iterable[Category | str] | None,
    usage: UsageTier | str,
) -> CategorizedResources:
    return CostAggregator().normalize(catalog, categories, usage)


def compare_cost(
    catalog: CatalogSource,
    kinds: Iterable[SubCategory | str],
    usage: UsageTier | str,
) -> CostComparison:
    """Per-provider monthly cost of ``kinds`` at ``usage``. See CostAggregator.compare_cost."""
    return CostAggregator().compare_cost(catalog, kinds, usage)


def compare_tiers(
    catalog: CatalogSource,
    kinds: Iterable[SubCategory | str],
    tiers: Iterable[UsageTier | str] | None = None,
) -> list[CostComparison]:
    return CostAggregator().compare_tiers(catalog, kinds, tiers)
