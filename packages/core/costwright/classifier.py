"""Classifier: maps a vendor's (product family, service) pair to a canonical category.

Rule tables live in data/classification/<vendor>.yaml; one file per vendor.
Lookup is an exact, case-sensitive match on the pair. Anything unmatched is
Other/Uncategorized, so classification never fails.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml

from costwright.config import data_dir
from costwright.errors import RuleTableError
from costwright.models import Category, Cloud, ProductFamilyMapping, RawCatalogEntry, SubCategory

log = logging.getLogger(__name__)

Classification = tuple[Category, SubCategory]

UNCATEGORIZED: Classification = (Category.OTHER, SubCategory.UNCATEGORIZED)


class RuleTable:
    """Immutable classification rules for a single vendor."""

    __slots__ = ("cloud", "rules", "service_overrides")

    def __init__(
        self,
        cloud: Cloud,
        rules: Mapping[tuple[str, str], Classification],
        service_overrides: Mapping[str, Classification] | None = None,
    ):
        self.cloud = cloud
        self.rules = MappingProxyType(dict(rules))
        self.service_overrides = MappingProxyType(dict(service_overrides or {}))

    def lookup(self, product_family: str, service: str) -> Classification:
        override = self.service_overrides.get(service)
        if override is not None:
            return override
        return self.rules.get((product_family, service), UNCATEGORIZED)

    def __len__(self) -> int:
        return len(self.rules)


def _parse_classification(table: str, row: dict[str, Any]) -> Classification:
    try:
        category = Category(row["category"])
        sub_category = SubCategory(row["sub_category"])
    except (KeyError, ValueError) as e:
        raise RuleTableError(table, f"bad rule {row!r}: {e}") from e
    if sub_category.category != category:
        raise RuleTableError(
            table,
            f"{sub_category.value} belongs to {sub_category.category.value}, not {category.value}",
        )
    return category, sub_category


def load_rule_table(path: Path) -> RuleTable:
    """Parse and validate one vendor YAML file.

    Raises RuleTableError on duplicate (product_family, service) keys, unknown
    categories, or a sub-category filed under the wrong parent.
    """
    data = yaml.safe_load(path.read_text()) or {}
    table = path.name
    try:
        cloud = Cloud(data["vendor"])
    except (KeyError, ValueError) as e:
        raise RuleTableError(table, f"missing or unknown vendor: {e}") from e

    rules: dict[tuple[str, str], Classification] = {}
    for row in data.get("rules") or []:
        key = (row.get("product_family") or "", row.get("service") or "")
        if key in rules:
            raise RuleTableError(table, f"duplicate rule for product_family={key[0]!r} service={key[1]!r}")
        rules[key] = _parse_classification(table, row)

    overrides: dict[str, Classification] = {}
    for row in data.get("service_overrides") or []:
        service = row.get("service") or ""
        if not service:
            raise RuleTableError(table, f"service override without a service: {row!r}")
        if service in overrides:
            raise RuleTableError(table, f"duplicate service override for {service!r}")
        overrides[service] = _parse_classification(table, row)

    return RuleTable(cloud, rules, overrides)


class ClassificationRules:
    """All vendor rule tables, loaded once from YAML."""

    def __init__(self, rules_dir: str | Path | None = None):
        self._dir = Path(rules_dir) if rules_dir else data_dir() / "classification"
        self._tables: dict[Cloud, RuleTable] = {}
        self._load()

    def _load(self) -> None:
        for yaml_path in sorted(self._dir.glob("*.yaml")):
            table = load_rule_table(yaml_path)
            if table.cloud in self._tables:
                raise RuleTableError(yaml_path.name, f"second rule table for vendor {table.cloud.value}")
            self._tables[table.cloud] = table
        log.debug("Loaded classification rules for %s", ", ".join(c.value for c in self._tables))

    def table(self, cloud: Cloud) -> RuleTable | None:
        return self._tables.get(cloud)

    def classify(self, vendor: Cloud | str, product_family: str | None, service: str | None) -> Classification:
        try:
            cloud = Cloud(vendor)
        except ValueError:
            return UNCATEGORIZED
        table = self._tables.get(cloud)
        if table is None:
            return UNCATEGORIZED
        return table.lookup(product_family or "", service or "")

    def stats(self) -> dict[str, int]:
        return {cloud.value: len(table) for cloud, table in self._tables.items()}


# Module-level singleton, loaded lazily on first access
_rules: ClassificationRules | None = None


def get_rules() -> ClassificationRules:
    """Return the shared rule set, loading from disk if needed."""
    global _rules
    if _rules is None:
        _rules = ClassificationRules()
    return _rules


def reload_rules(rules_dir: str | Path | None = None) -> ClassificationRules:
    """Force-reload the rule tables (tests, or after editing the YAML)."""
    global _rules
    _rules = ClassificationRules(rules_dir)
    return _rules


def classify(vendor: Cloud | str, product_family: str | None, service: str | None) -> Classification:
    """Canonical (Category, SubCategory) for a vendor SKU. Never raises."""
    return get_rules().classify(vendor, product_family, service)


def product_family_mappings(
    entries: Iterable[RawCatalogEntry],
    rules: ClassificationRules | None = None,
) -> list[ProductFamilyMapping]:
    """One row per distinct (vendor, product family, service) seen in a catalog."""
    rules = rules or get_rules()
    seen: set[tuple[Cloud, str, str]] = set()
    mappings: list[ProductFamilyMapping] = []
    for entry in entries:
        key = (entry.vendor, entry.product_family, entry.service)
        if key in seen:
            continue
        seen.add(key)
        category, sub_category = rules.classify(entry.vendor, entry.product_family, entry.service)
        mappings.append(
            ProductFamilyMapping(
                cloud=entry.vendor,
                product_family=entry.product_family,
                service=entry.service,
                category=category,
                sub_category=sub_category,
            )
        )
    category_order = list(Category)
    sub_order = list(SubCategory)
    # sorted() is stable, so catalog order survives within a sub-category
    return sorted(mappings, key=lambda m: (category_order.index(m.category), sub_order.index(m.sub_category)))
