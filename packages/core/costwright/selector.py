"""Resource selection: the cheapest resource of a kind that fits a usage tier.

Each resource kind has one selection policy:

  sized    VMs and databases: vCPU and memory at or above the tier minimums,
           hourly price > 0, cheapest hourly price wins.
  flat     load balancer and monitoring reference offers: first offer for the
           provider.
  scored   kinds priced on several dimensions: score is the first populated
           field of an ordered preference list; unscored resources rank last.
           Functions, gateways and storage only score on prices > 0.
  capped   managed Kubernetes: hourly price > 0 and under the tier ceiling.
  generic  everything else: hourly price > 0, cheapest wins.

Ties keep catalog order, so the first-seen resource wins.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from enum import Enum
from typing import Iterable

from costwright.extract import parse_memory_gb
from costwright.models import CanonicalResource, Cloud, SubCategory, UsageTier, UsageTierSpec
from costwright.tiers import TierTable, get_tiers

log = logging.getLogger(__name__)


class SelectionPolicy(str, Enum):
    SIZED = "sized"
    FLAT = "flat"
    SCORED = "scored"
    CAPPED = "capped"
    GENERIC = "generic"


POLICIES: dict[SubCategory, SelectionPolicy] = {
    SubCategory.VIRTUAL_MACHINES: SelectionPolicy.SIZED,
    SubCategory.RELATIONAL: SelectionPolicy.SIZED,
    SubCategory.NOSQL: SelectionPolicy.SIZED,
    SubCategory.LOAD_BALANCER: SelectionPolicy.FLAT,
    SubCategory.MONITORING: SelectionPolicy.FLAT,
    SubCategory.CLOUD_FUNCTIONS: SelectionPolicy.SCORED,
    SubCategory.API_GATEWAY: SelectionPolicy.SCORED,
    SubCategory.BLOB_STORAGE: SelectionPolicy.SCORED,
    SubCategory.BLOCK_STORAGE: SelectionPolicy.SCORED,
    SubCategory.CDN: SelectionPolicy.SCORED,
    SubCategory.WEB_APPLICATION_FIREWALL: SelectionPolicy.SCORED,
    SubCategory.KUBERNETES: SelectionPolicy.CAPPED,
}

# Price fields consulted for a score, most preferred first
SCORE_FIELDS: dict[SubCategory, tuple[str, ...]] = {
    SubCategory.CLOUD_FUNCTIONS: ("price_per_request", "price_per_gb_second"),
    SubCategory.API_GATEWAY: ("price_per_month", "price_per_request"),
    SubCategory.BLOB_STORAGE: ("price_per_gb_month", "price_per_request"),
    SubCategory.BLOCK_STORAGE: ("price_per_gb_month", "price_per_iops", "price_per_snapshot"),
    SubCategory.CDN: ("price_per_gb_out", "price_per_request"),
    SubCategory.WEB_APPLICATION_FIREWALL: ("price_per_hour", "price_per_gb_out", "price_per_rule"),
}

# Kinds whose zero-priced lines (free grants) never count as a score
POSITIVE_SCORES = frozenset(
    {
        SubCategory.CLOUD_FUNCTIONS,
        SubCategory.API_GATEWAY,
        SubCategory.BLOB_STORAGE,
        SubCategory.BLOCK_STORAGE,
    }
)


def policy_for(sub_category: SubCategory) -> SelectionPolicy:
    return POLICIES.get(sub_category, SelectionPolicy.GENERIC)


def price_score(
    resource: CanonicalResource,
    fields: Iterable[str],
    positive_only: bool = False,
) -> Decimal | None:
    """First populated price among ``fields``; None means unscored.

    With ``positive_only`` a zero price counts as unpopulated.
    """
    for name in fields:
        value = getattr(resource, name)
        if value is None or (positive_only and value <= 0):
            continue
        return value
    return None


def meets_sizing(resource: CanonicalResource, spec: UsageTierSpec) -> bool:
    # Unknown vCPU or unparsable memory count as 0
    vcpu = resource.vcpu or 0
    memory = parse_memory_gb(resource.memory) or Decimal(0)
    return vcpu >= spec.min_cpu and memory >= spec.min_memory_gb


def _positive_hourly(resource: CanonicalResource) -> bool:
    return resource.price_per_hour is not None and resource.price_per_hour > 0


def _cheapest_hourly(candidates: list[CanonicalResource]) -> CanonicalResource | None:
    if not candidates:
        return None
    # min() keeps the first of equal keys
    return min(candidates, key=lambda r: r.price_per_hour)


def select_sized(pool: list[CanonicalResource], spec: UsageTierSpec) -> CanonicalResource | None:
    return _cheapest_hourly([r for r in pool if _positive_hourly(r) and meets_sizing(r, spec)])


def select_flat(pool: list[CanonicalResource]) -> CanonicalResource | None:
    return pool[0] if pool else None


def select_scored(
    pool: list[CanonicalResource],
    fields: tuple[str, ...],
    positive_only: bool = False,
) -> CanonicalResource | None:
    if not pool:
        return None

    def rank(resource: CanonicalResource) -> tuple[int, Decimal]:
        score = price_score(resource, fields, positive_only)
        return (1, Decimal(0)) if score is None else (0, score)

    return min(pool, key=rank)


def select_capped(pool: list[CanonicalResource], ceiling: Decimal | None) -> CanonicalResource | None:
    return _cheapest_hourly(
        [r for r in pool if _positive_hourly(r) and (ceiling is None or r.price_per_hour <= ceiling)]
    )


def select_generic(pool: list[CanonicalResource]) -> CanonicalResource | None:
    return _cheapest_hourly([r for r in pool if _positive_hourly(r)])


class ResourceSelector:
    """Picks one resource per (provider, kind, tier) from a normalized pool."""

    def __init__(self, tiers: TierTable | None = None):
        self.tiers = tiers or get_tiers()

    def select(
        self,
        pool: Iterable[CanonicalResource],
        provider: Cloud,
        sub_category: SubCategory,
        tier: UsageTier,
    ) -> CanonicalResource | None:
        candidates = [r for r in pool if r.cloud == provider and r.sub_category == sub_category]
        policy = policy_for(sub_category)

        if policy is SelectionPolicy.SIZED:
            chosen = select_sized(candidates, self.tiers.sizing(sub_category, tier))
        elif policy is SelectionPolicy.FLAT:
            chosen = select_flat(candidates)
        elif policy is SelectionPolicy.SCORED:
            chosen = select_scored(
                candidates, SCORE_FIELDS[sub_category], positive_only=sub_category in POSITIVE_SCORES
            )
        elif policy is SelectionPolicy.CAPPED:
            chosen = select_capped(candidates, self.tiers.kubernetes_ceiling(tier))
        else:
            chosen = select_generic(candidates)

        if chosen is None:
            log.debug(
                "No %s match for %s at %s among %d candidates",
                sub_category.value,
                provider.value,
                tier.value,
                len(candidates),
            )
        return chosen
