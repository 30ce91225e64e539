"""Reference prices for load balancers and monitoring.

The vendor catalogs carry no usable per-SKU price for these kinds, so a flat
monthly price per provider and tier comes from data/reference_prices.yaml.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path

import yaml

from costwright.config import data_dir
from costwright.errors import RuleTableError
from costwright.models import (
    CanonicalResource,
    Cloud,
    SubCategory,
    UsageTier,
    resource_type_for,
)

# YAML section -> sub-category it prices
SECTIONS: dict[str, SubCategory] = {
    "load_balancer": SubCategory.LOAD_BALANCER,
    "monitoring": SubCategory.MONITORING,
}


class ReferencePrices:
    """Flat monthly offers, keyed by (sub-category, tier), in file order."""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path else data_dir() / "reference_prices.yaml"
        self._offers: dict[tuple[SubCategory, UsageTier], tuple[CanonicalResource, ...]] = {}
        self._load()

    def _load(self) -> None:
        table = self._path.name
        data = yaml.safe_load(self._path.read_text()) or {}
        for section, sub_category in SECTIONS.items():
            cls = resource_type_for(sub_category)
            offers: dict[UsageTier, list[CanonicalResource]] = {tier: [] for tier in UsageTier}
            seen: set[Cloud] = set()
            for row in data.get(section) or []:
                try:
                    cloud = Cloud(row["cloud"])
                except (KeyError, ValueError) as e:
                    raise RuleTableError(table, f"bad {section} row {row!r}: {e}") from e
                if cloud in seen:
                    raise RuleTableError(table, f"second {section} offer for {cloud.value}")
                seen.add(cloud)

                for tier_name, raw in (row.get("monthly") or {}).items():
                    tier = _tier(table, tier_name)
                    try:
                        monthly = Decimal(str(raw))
                    except InvalidOperation as e:
                        raise RuleTableError(table, f"bad price {raw!r} for {cloud.value} {tier_name}") from e
                    offers[tier].append(
                        cls(
                            cloud=cloud,
                            category=sub_category.category,
                            sub_category=sub_category,
                            name=row.get("name") or "Unknown",
                            price_per_month=monthly,
                        )
                    )
            for tier, resources in offers.items():
                self._offers[(sub_category, tier)] = tuple(resources)

    def offers(self, sub_category: SubCategory, tier: UsageTier) -> list[CanonicalResource]:
        """Reference offers for a kind at a tier; empty for kinds or tiers without any."""
        return list(self._offers.get((sub_category, tier), ()))

    def all_offers(self, tier: UsageTier) -> list[CanonicalResource]:
        result: list[CanonicalResource] = []
        for sub_category in SECTIONS.values():
            result.extend(self.offers(sub_category, tier))
        return result


def _tier(table: str, name: str) -> UsageTier:
    try:
        return UsageTier(name)
    except ValueError as e:
        raise RuleTableError(table, f"unknown tier {name!r}") from e


_reference: ReferencePrices | None = None


def get_reference_prices() -> ReferencePrices:
    global _reference
    if _reference is None:
        _reference = ReferencePrices()
    return _reference


def reload_reference_prices(path: str | Path | None = None) -> ReferencePrices:
    global _reference
    _reference = ReferencePrices(path)
    return _reference
