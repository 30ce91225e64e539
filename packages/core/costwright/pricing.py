"""Price normalization: vendor (amount, unit) lines to canonical price fields.

Each PriceKind has one named rule: a unit/description matcher plus a
conversion. A resource kind declares an ordered claim list of rules. For each
price line, in preference order, the first rule in the claim list that matches
claims the line; each canonical field keeps the first line that claimed it.

The order of a claim list is the tie-break when a line matches several rules.
Text heuristics (snapshot/backup, rule/policy) sit ahead of the generic GB and
month rules they overlap with.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable

from costwright.models import HOURS_PER_MONTH, PRICE_FIELDS, PriceEntry, PriceKind, SubCategory

log = logging.getLogger(__name__)

HOURS_PER_DAY = Decimal(24)

ON_DEMAND_OPTIONS = frozenset({"on_demand", "ondemand", "consumption"})


@dataclass(frozen=True)
class PriceRule:
    name: str
    kind: PriceKind
    matches: Callable[[str, str], bool]
    convert: Callable[[Decimal], Decimal]


def _as_is(amount: Decimal) -> Decimal:
    return amount


def daily_to_hourly(amount: Decimal) -> Decimal:
    return amount / HOURS_PER_DAY


def hourly_to_monthly(amount: Decimal) -> Decimal:
    return amount * HOURS_PER_MONTH


# --- Matchers; both arguments arrive lower-cased ---


def _is_daily(unit: str, description: str) -> bool:
    return "day" in unit


def _is_hourly(unit: str, description: str) -> bool:
    # "hrs" is how the AWS price list spells it
    return "hour" in unit or "hrs" in unit


def _is_per_request(unit: str, description: str) -> bool:
    return "request" in unit


def _is_gb_second(unit: str, description: str) -> bool:
    return "gb-s" in unit or "gbs" in unit


def _is_monthly(unit: str, description: str) -> bool:
    return "month" in unit


def _is_iops(unit: str, description: str) -> bool:
    return "iops" in unit


def _is_per_gb(unit: str, description: str) -> bool:
    return "gb" in unit and "request" not in unit and "hour" not in unit


def _is_firewall_gb(unit: str, description: str) -> bool:
    return "gibibyte" in unit or ("gb" in unit and "hour" not in unit)


def _is_snapshot(unit: str, description: str) -> bool:
    return "gb" in unit and ("snapshot" in description or "backup" in description)


def _is_per_rule(unit: str, description: str) -> bool:
    return "month" in unit and ("rule" in description or "policy" in description)


DAILY = PriceRule("daily", PriceKind.HOURLY, _is_daily, daily_to_hourly)
HOURLY = PriceRule("hourly", PriceKind.HOURLY, _is_hourly, _as_is)
MONTHLY = PriceRule("monthly", PriceKind.MONTHLY, _is_monthly, _as_is)
PER_REQUEST = PriceRule("per_request", PriceKind.PER_REQUEST, _is_per_request, _as_is)
PER_GB_SECOND = PriceRule("per_gb_second", PriceKind.PER_GB_SECOND, _is_gb_second, _as_is)
PER_GB_MONTH = PriceRule("per_gb_month", PriceKind.PER_GB_MONTH, _is_per_gb, _as_is)
PER_GB_OUT = PriceRule("per_gb_out", PriceKind.PER_GB_OUT, _is_per_gb, _as_is)
FIREWALL_PER_GB = PriceRule("firewall_per_gb", PriceKind.PER_GB_OUT, _is_firewall_gb, _as_is)
PER_IOPS = PriceRule("per_iops", PriceKind.PER_IOPS, _is_iops, _as_is)
PER_SNAPSHOT = PriceRule("per_snapshot", PriceKind.PER_SNAPSHOT, _is_snapshot, _as_is)
PER_RULE = PriceRule("per_rule", PriceKind.PER_RULE, _is_per_rule, _as_is)

HOURLY_CLAIMS: tuple[PriceRule, ...] = (DAILY, HOURLY, MONTHLY)

CLAIMS: dict[SubCategory, tuple[PriceRule, ...]] = {
    SubCategory.CLOUD_FUNCTIONS: (PER_REQUEST, PER_GB_SECOND),
    SubCategory.API_GATEWAY: (PER_REQUEST, MONTHLY, DAILY, HOURLY),
    SubCategory.LOAD_BALANCER: (MONTHLY, DAILY, HOURLY),
    SubCategory.MONITORING: (MONTHLY, DAILY, HOURLY),
    SubCategory.BLOB_STORAGE: (PER_REQUEST, PER_GB_MONTH),
    SubCategory.BLOCK_STORAGE: (PER_IOPS, PER_SNAPSHOT, PER_GB_MONTH),
    SubCategory.CDN: (PER_REQUEST, PER_GB_OUT),
    SubCategory.WEB_APPLICATION_FIREWALL: (PER_RULE, MONTHLY, DAILY, HOURLY, FIREWALL_PER_GB),
}

# Kinds without an hour-unit line still take the preferred amount as hourly
_NOT_HOURLY_PRICED = frozenset(
    {
        SubCategory.CLOUD_FUNCTIONS,
        SubCategory.API_GATEWAY,
        SubCategory.LOAD_BALANCER,
        SubCategory.MONITORING,
        SubCategory.BLOB_STORAGE,
        SubCategory.BLOCK_STORAGE,
        SubCategory.CDN,
        SubCategory.WEB_APPLICATION_FIREWALL,
    }
)


def claims_for(sub_category: SubCategory) -> tuple[PriceRule, ...]:
    return CLAIMS.get(sub_category, HOURLY_CLAIMS)


def is_hourly_priced(sub_category: SubCategory) -> bool:
    return sub_category not in _NOT_HOURLY_PRICED


def preferred_prices(prices: Iterable[PriceEntry]) -> list[PriceEntry]:
    """Priced lines with on-demand/consumption first, catalog order kept within each group."""
    on_demand: list[PriceEntry] = []
    rest: list[PriceEntry] = []
    for price in prices:
        if price.amount is None:
            continue
        option = (price.purchase_option or "").strip().lower()
        (on_demand if option in ON_DEMAND_OPTIONS else rest).append(price)
    return on_demand + rest


def match_rule(price: PriceEntry, rules: Iterable[PriceRule], description: str = "") -> PriceRule | None:
    """First rule in ``rules`` that claims this price line."""
    unit = (price.unit or "").lower()
    desc = description.lower()
    for rule in rules:
        if rule.matches(unit, desc):
            return rule
    return None


def normalize_prices(
    prices: Iterable[PriceEntry],
    sub_category: SubCategory,
    description: str | None = None,
) -> dict[PriceKind, Decimal]:
    """Canonical prices for one catalog entry.

    Kinds that cannot be determined are left out of the result; an entry
    without any priced lines yields an empty dict, never zeros.
    """
    ordered = preferred_prices(prices)
    if not ordered:
        return {}

    rules = claims_for(sub_category)
    result: dict[PriceKind, Decimal] = {}
    unclaimed: list[PriceEntry] = []
    for price in ordered:
        rule = match_rule(price, rules, description or "")
        if rule is None:
            unclaimed.append(price)
            continue
        if rule.kind not in result:
            result[rule.kind] = rule.convert(price.amount)

    if PriceKind.HOURLY not in result and is_hourly_priced(sub_category) and unclaimed:
        log.debug("No hour-unit price for %s; using %s %s", sub_category.value, unclaimed[0].amount, unclaimed[0].unit)
        result[PriceKind.HOURLY] = unclaimed[0].amount

    if PriceKind.MONTHLY not in result and PriceKind.HOURLY in result:
        result[PriceKind.MONTHLY] = hourly_to_monthly(result[PriceKind.HOURLY])

    return result


def price_fields(
    prices: Iterable[PriceEntry],
    sub_category: SubCategory,
    description: str | None = None,
) -> dict[str, Decimal]:
    """``normalize_prices`` keyed by CanonicalResource field name."""
    return {PRICE_FIELDS[kind]: amount for kind, amount in normalize_prices(prices, sub_category, description).items()}
