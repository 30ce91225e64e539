"""Named monthly-cost formulas: one plain function per pricing shape.

Every formula takes the selected resource and the tier's UsageProfile and
returns a Decimal. A price field the resource does not carry contributes
nothing; nothing is rounded, so a provider total is the exact sum of its parts.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

from costwright.models import HOURS_PER_MONTH, CanonicalResource, SubCategory, UsageProfile

ZERO = Decimal(0)

Formula = Callable[[CanonicalResource, UsageProfile], Decimal]


def _times(price: Decimal | None, quantity: Decimal) -> Decimal:
    return price * quantity if price is not None else ZERO


def per_hour(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    """Hourly rate * 730 hours/month."""
    return _times(resource.price_per_hour, HOURS_PER_MONTH)


def flat_monthly(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    return resource.price_per_month if resource.price_per_month is not None else ZERO


def per_invocation(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    """Serverless functions: requests plus GB-seconds of compute."""
    return _times(resource.price_per_request, usage.monthly_requests) + _times(
        resource.price_per_gb_second, usage.gb_seconds
    )


def fixed_plus_request(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    """API gateways: any fixed monthly fee plus per-request charges."""
    return flat_monthly(resource, usage) + _times(resource.price_per_request, usage.monthly_requests)


def object_storage(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    return _times(resource.price_per_gb_month, usage.storage_gb) + _times(
        resource.price_per_request, usage.monthly_requests
    )


def provisioned_volume(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    """Block volumes: capacity plus provisioned IOPS. Snapshots are not assumed."""
    return _times(resource.price_per_gb_month, usage.storage_gb) + _times(
        resource.price_per_iops, usage.provisioned_iops
    )


def per_gb_out(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    """CDN: egress plus requests."""
    return _times(resource.price_per_gb_out, usage.egress_gb) + _times(
        resource.price_per_request, usage.monthly_requests
    )


def fixed_plus_rules(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    """Firewalls: fixed monthly fee, per-rule fees and processed GB."""
    return (
        flat_monthly(resource, usage)
        + _times(resource.price_per_rule, usage.rules)
        + _times(resource.price_per_gb_out, usage.egress_gb)
    )


MONTHLY_FORMULAS: dict[str, Formula] = {
    "per_hour": per_hour,
    "flat_monthly": flat_monthly,
    "per_invocation": per_invocation,
    "fixed_plus_request": fixed_plus_request,
    "object_storage": object_storage,
    "provisioned_volume": provisioned_volume,
    "per_gb_out": per_gb_out,
    "fixed_plus_rules": fixed_plus_rules,
}

# Kinds not listed are priced per hour
FORMULA_FOR: dict[SubCategory, str] = {
    SubCategory.LOAD_BALANCER: "flat_monthly",
    SubCategory.MONITORING: "flat_monthly",
    SubCategory.CLOUD_FUNCTIONS: "per_invocation",
    SubCategory.API_GATEWAY: "fixed_plus_request",
    SubCategory.BLOB_STORAGE: "object_storage",
    SubCategory.BLOCK_STORAGE: "provisioned_volume",
    SubCategory.CDN: "per_gb_out",
    SubCategory.WEB_APPLICATION_FIREWALL: "fixed_plus_rules",
}


def formula_for(sub_category: SubCategory) -> Formula:
    return MONTHLY_FORMULAS[FORMULA_FOR.get(sub_category, "per_hour")]


def monthly_cost(resource: CanonicalResource, usage: UsageProfile) -> Decimal:
    """Monthly-equivalent cost of one selected resource."""
    return formula_for(resource.sub_category)(resource, usage)
