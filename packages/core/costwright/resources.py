"""Builds CanonicalResource variants from raw catalog entries.

One pass per entry: classify, extract specs, normalize prices, then pick the
variant class from the sub-category tag.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from costwright.classifier import ClassificationRules, get_rules
from costwright.extract import extract_specs
from costwright.models import CanonicalResource, RawCatalogEntry, resource_type_for
from costwright.pricing import price_fields

log = logging.getLogger(__name__)


def build_resource(entry: RawCatalogEntry, rules: ClassificationRules | None = None) -> CanonicalResource:
    rules = rules or get_rules()
    category, sub_category = rules.classify(entry.vendor, entry.product_family, entry.service)
    specs = extract_specs(entry, sub_category)
    prices = price_fields(entry.prices, sub_category, entry.attributes.get("description"))

    cls = resource_type_for(sub_category)
    fields: dict[str, Any] = {
        "cloud": entry.vendor,
        "category": category,
        "sub_category": sub_category,
        "region": entry.region,
        "name": specs.name,
        "vcpu": specs.vcpu,
        "memory": specs.memory,
        **prices,
    }

    extras: dict[str, Any] = {
        "database_engine": specs.database_engine,
        "service": entry.service,
        "product_family": entry.product_family,
        "attributes": dict(entry.attributes),
        **specs.details,
    }
    # Only the fields the variant declares
    fields.update({k: v for k, v in extras.items() if k in cls.model_fields})
    return cls(**fields)


def normalize_catalog(
    entries: Iterable[RawCatalogEntry],
    rules: ClassificationRules | None = None,
) -> list[CanonicalResource]:
    """Every entry as a canonical resource, in catalog order. Nothing is dropped."""
    rules = rules or get_rules()
    resources = [build_resource(entry, rules) for entry in entries]
    log.debug("Normalized %d catalog entries", len(resources))
    return resources
