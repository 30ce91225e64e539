"""Usage-tier tables: sizing minimums, Kubernetes price ceilings, usage profiles.

Loaded once from data/usage_tiers.yaml and validated at load time: every
sizing column must be non-decreasing from one tier to the next.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from costwright.config import data_dir
from costwright.errors import InvalidRequestError, RuleTableError
from costwright.models import SubCategory, UsageProfile, UsageTier, UsageTierSpec

COMPUTE = "compute"
DATABASE = "database"

# Which sizing column applies to each sized resource kind
SIZING_PROFILE: dict[SubCategory, str] = {
    SubCategory.VIRTUAL_MACHINES: COMPUTE,
    SubCategory.RELATIONAL: DATABASE,
    SubCategory.NOSQL: DATABASE,
}


def parse_tier(value: UsageTier | str) -> UsageTier:
    """Strict tier lookup; unknown names are a caller error, never a default."""
    if isinstance(value, UsageTier):
        return value
    if isinstance(value, str):
        for tier in UsageTier:
            if tier.value.lower() == value.strip().lower():
                return tier
    raise InvalidRequestError("usage tier", value, [t.value for t in UsageTier])


def _decimal(table: str, value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except ArithmeticError as e:
        raise RuleTableError(table, f"not a number: {value!r}") from e


class TierTable:
    """Tier-indexed lookups. Immutable after load."""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path else data_dir() / "usage_tiers.yaml"
        self._sizing: dict[str, MappingProxyType] = {}
        self._k8s_ceilings: dict[UsageTier, Decimal | None] = {}
        self._usage: dict[UsageTier, UsageProfile] = {}
        self._load()

    def _load(self) -> None:
        table = self._path.name
        data = yaml.safe_load(self._path.read_text()) or {}

        declared = [str(t) for t in data.get("tiers") or []]
        if declared != [t.value for t in UsageTier]:
            raise RuleTableError(table, f"tiers must be listed as {[t.value for t in UsageTier]}")

        for profile, rows in (data.get("sizing") or {}).items():
            specs: dict[UsageTier, UsageTierSpec] = {}
            for tier in UsageTier:
                row = (rows or {}).get(tier.value)
                if row is None:
                    raise RuleTableError(table, f"sizing.{profile} has no {tier.value} row")
                specs[tier] = UsageTierSpec(
                    min_cpu=int(row["min_cpu"]),
                    min_memory_gb=_decimal(table, row["min_memory_gb"]),
                )
            _check_monotonic(table, profile, specs)
            self._sizing[profile] = MappingProxyType(specs)

        for profile in SIZING_PROFILE.values():
            if profile not in self._sizing:
                raise RuleTableError(table, f"missing sizing profile {profile!r}")

        ceilings = data.get("kubernetes_max_hourly") or {}
        for tier in UsageTier:
            raw = ceilings.get(tier.value)
            self._k8s_ceilings[tier] = None if raw is None else _decimal(table, raw)

        usage = data.get("usage") or {}
        for tier in UsageTier:
            row = usage.get(tier.value) or {}
            self._usage[tier] = UsageProfile(**{k: _decimal(table, v) for k, v in row.items()})

    def sizing(self, sub_category: SubCategory, tier: UsageTier) -> UsageTierSpec | None:
        """Minimums for a sized kind at a tier; None for kinds that are not sized."""
        profile = SIZING_PROFILE.get(sub_category)
        if profile is None:
            return None
        return self._sizing[profile][tier]

    def profile(self, name: str) -> dict[UsageTier, UsageTierSpec]:
        return dict(self._sizing[name])

    def kubernetes_ceiling(self, tier: UsageTier) -> Decimal | None:
        return self._k8s_ceilings[tier]

    def usage(self, tier: UsageTier) -> UsageProfile:
        return self._usage[tier]


def _check_monotonic(table: str, profile: str, specs: dict[UsageTier, UsageTierSpec]) -> None:
    previous: UsageTierSpec | None = None
    for tier in UsageTier:
        spec = specs[tier]
        if previous is not None and (
            spec.min_cpu < previous.min_cpu or spec.min_memory_gb < previous.min_memory_gb
        ):
            raise RuleTableError(table, f"sizing.{profile} shrinks at {tier.value}")
        previous = spec


_tiers: TierTable | None = None


def get_tiers() -> TierTable:
    global _tiers
    if _tiers is None:
        _tiers = TierTable()
    return _tiers


def reload_tiers(path: str | Path | None = None) -> TierTable:
    global _tiers
    _tiers = TierTable(path)
    return _tiers
