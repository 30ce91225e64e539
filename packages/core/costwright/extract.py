"""Attribute extraction: canonical spec fields from vendor attribute bags.

Every field is read through an explicit, ordered chain of attribute keys;
the first present, non-blank value wins. When no key carries the value,
vendor-specific text heuristics take over (GCP descriptions and machine
types, Azure vCore SKU names). Nothing here raises: an unmatched field is
simply None.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Mapping

from costwright.models import Cloud, RawCatalogEntry, SubCategory

log = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"

# Vendor-agnostic keys first, vendor synonyms after
INSTANCE_NAME_KEYS = ("instanceType", "vmSize", "armSkuName", "skuName", "machineType", "meterName")
VCPU_KEYS = ("vcpu", "vCPU", "vCPUs", "vCpusAvailable", "numberOfCores")
MEMORY_KEYS = ("memory",)
MEMORY_GB_KEYS = ("memoryInGB", "memoryGb")
ENGINE_KEYS = ("databaseEngine", "engine", "databaseFamily")

NAME_KEYS: dict[SubCategory, tuple[str, ...]] = {
    SubCategory.VIRTUAL_MACHINES: INSTANCE_NAME_KEYS,
    SubCategory.RELATIONAL: ("instanceType", "databaseEngine", "armSkuName", "skuName", "machineType", "meterName"),
    SubCategory.NOSQL: ("instanceType", "databaseEngine", "armSkuName", "skuName", "machineType", "meterName"),
    SubCategory.CLOUD_FUNCTIONS: ("group", "meterName", "description"),
    SubCategory.KUBERNETES: ("usageType", "meterName", "description"),
    SubCategory.CONTAINER_INSTANCES: ("usageType", "productName"),
    SubCategory.CACHING: ("instanceType", "meterName", "description"),
    SubCategory.API_GATEWAY: ("group", "meterName"),
    SubCategory.LOAD_BALANCER: ("usageType", "meterName", "group"),
    SubCategory.BLOB_STORAGE: ("storageClass", "meterName"),
    SubCategory.BLOCK_STORAGE: ("volumeType", "skuName", "meterName", "description"),
    SubCategory.CDN: ("group", "meterName", "description"),
    SubCategory.WEB_APPLICATION_FIREWALL: ("servicename", "productName"),
    SubCategory.DATA_WAREHOUSE: ("servicename", "meterName", "resourceGroup"),
    SubCategory.MESSAGING: ("servicename", "productName"),
    SubCategory.QUEUEING: ("servicename", "productName"),
    SubCategory.MONITORING: ("servicename", "productName"),
}

# Kinds whose display name never falls back to the service name
_NO_SERVICE_FALLBACK = frozenset(
    {
        SubCategory.VIRTUAL_MACHINES,
        SubCategory.RELATIONAL,
        SubCategory.NOSQL,
        SubCategory.CLOUD_FUNCTIONS,
        SubCategory.KUBERNETES,
        SubCategory.CONTAINER_INSTANCES,
        SubCategory.CACHING,
        SubCategory.DATA_WAREHOUSE,
    }
)

# Variant-specific fields: field name -> key chain
DETAIL_KEYS: dict[SubCategory, dict[str, tuple[str, ...]]] = {
    SubCategory.KUBERNETES: {"node_type": ("instanceType", "productName", "description")},
    SubCategory.BLOB_STORAGE: {"storage_class": ("storageClass", "volumeType", "skuName")},
    SubCategory.BLOCK_STORAGE: {
        "volume_type": ("volumeType", "skuName", "resourceGroup"),
        "max_iops": ("maxIopsvolume", "maxIops"),
        "max_volume_size": ("maxVolumeSize", "volumeSize"),
    },
}

_GCP_VCPU_RE = re.compile(r"(\d+)\s+vCPU")
_GCP_MEMORY_RE = re.compile(r"(\d+(?:\.\d+)?)\s*GB RAM")
_AZURE_VCORE_RE = re.compile(r"(\d+)\s*vCore", re.IGNORECASE)

# GB of RAM per vCPU, by GCP machine-type family; first match wins
GCP_MEMORY_RATIOS: tuple[tuple[str, Decimal], ...] = (
    ("highcpu", Decimal(2)),
    ("highmem", Decimal(8)),
    ("ultramem", Decimal(25)),
)
GCP_STANDARD_MEMORY_RATIO = Decimal(4)


@dataclass(frozen=True)
class ResourceSpecs:
    """Spec fields pulled out of one catalog entry."""

    name: str = UNKNOWN_NAME
    vcpu: int | None = None
    memory: str | None = None
    database_engine: str | None = None
    details: dict[str, str] = field(default_factory=dict)


def first_non_blank(attrs: Mapping[str, str], *keys: str) -> str | None:
    """Value of the first key in ``keys`` that is present and not blank."""
    for key in keys:
        value = attrs.get(key)
        if value is not None and value.strip():
            return value
    return None


def first_int(attrs: Mapping[str, str], *keys: str) -> int | None:
    """First value among ``keys`` that parses as a non-negative integer."""
    for key in keys:
        value = attrs.get(key)
        if value is None:
            continue
        try:
            parsed = int(value.strip())
        except ValueError:
            continue
        if parsed >= 0:
            return parsed
    return None


def parse_memory_gb(memory: str | None) -> Decimal | None:
    """Leading whitespace-delimited token of a memory string, as a Decimal.

    "4 GB" -> 4, "3.75 GiB" -> 3.75, "lots" -> None.
    """
    if memory is None:
        return None
    parts = memory.split()
    if not parts:
        return None
    try:
        value = Decimal(parts[0])
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def format_gb(value: Decimal | int | str) -> str:
    return f"{value} GB"


# --- Text heuristics ---


def extract_gcp_vcpu_from_description(description: str | None) -> int | None:
    """``"<N> vCPU"`` in a GCP SKU description, e.g. "4 vCPU + 15GB RAM" -> 4."""
    if not description:
        return None
    m = _GCP_VCPU_RE.search(description)
    return int(m.group(1)) if m else None


def extract_gcp_memory_from_description(description: str | None) -> Decimal | None:
    """``"<M>GB RAM"`` in a GCP SKU description, e.g. "4 vCPU + 15GB RAM" -> 15."""
    if not description:
        return None
    m = _GCP_MEMORY_RE.search(description)
    return Decimal(m.group(1)) if m else None


def gcp_vcpu_from_machine_type(machine_type: str | None) -> int | None:
    """Trailing numeric part of a machine type with at least three dash parts.

    "n2-standard-8" -> 8; "e2-micro" and "n2-standard-custom" -> None.
    """
    if not machine_type:
        return None
    parts = machine_type.split("-")
    if len(parts) < 3:
        return None
    try:
        return int(parts[-1])
    except ValueError:
        return None


def gcp_memory_ratio(machine_type: str) -> Decimal:
    lowered = machine_type.lower()
    for marker, ratio in GCP_MEMORY_RATIOS:
        if marker in lowered:
            return ratio
    return GCP_STANDARD_MEMORY_RATIO


def estimate_gcp_memory_gb(machine_type: str, vcpus: int) -> Decimal:
    """Heuristic memory size: vCPUs times the family's GB-per-vCPU ratio."""
    return Decimal(vcpus) * gcp_memory_ratio(machine_type)


def extract_azure_vcores_from_sku_name(sku_name: str | None) -> int | None:
    """``"<N> vCore"`` in an Azure SKU name, e.g. "4 vCore" -> 4."""
    if not sku_name:
        return None
    m = _AZURE_VCORE_RE.search(sku_name)
    return int(m.group(1)) if m else None


# --- Field extraction ---


def extract_name(entry: RawCatalogEntry, sub_category: SubCategory | None = None) -> str:
    attrs = entry.attributes
    keys = NAME_KEYS.get(sub_category, INSTANCE_NAME_KEYS) if sub_category else INSTANCE_NAME_KEYS
    name = first_non_blank(attrs, *keys)
    if name is None and sub_category in (SubCategory.RELATIONAL, SubCategory.NOSQL):
        # Cloud SQL SKUs often only carry a resource group
        if entry.vendor == Cloud.GCP and entry.service == "Cloud SQL":
            name = first_non_blank(attrs, "resourceGroup")
    if name is None and sub_category not in _NO_SERVICE_FALLBACK and entry.service.strip():
        name = entry.service
    return name or UNKNOWN_NAME


def extract_vcpu(entry: RawCatalogEntry) -> int | None:
    attrs = entry.attributes
    vcpu = first_int(attrs, *VCPU_KEYS)
    if vcpu is not None:
        return vcpu
    if entry.vendor == Cloud.AZURE:
        return extract_azure_vcores_from_sku_name(attrs.get("skuName"))
    if entry.vendor == Cloud.GCP:
        vcpu = extract_gcp_vcpu_from_description(attrs.get("description"))
        if vcpu is not None:
            return vcpu
        return gcp_vcpu_from_machine_type(attrs.get("machineType"))
    return None


def extract_memory(entry: RawCatalogEntry) -> str | None:
    attrs = entry.attributes
    memory = first_non_blank(attrs, *MEMORY_KEYS)
    if memory is not None:
        return memory
    memory_gb = first_non_blank(attrs, *MEMORY_GB_KEYS)
    if memory_gb is not None:
        return format_gb(memory_gb.strip())
    if entry.vendor != Cloud.GCP:
        return None

    from_description = extract_gcp_memory_from_description(attrs.get("description"))
    if from_description is not None:
        return format_gb(from_description)
    machine_type = first_non_blank(attrs, "machineType")
    vcpus = gcp_vcpu_from_machine_type(machine_type)
    if machine_type and vcpus is not None:
        log.debug("Estimating memory for GCP machine type %s", machine_type)
        return format_gb(estimate_gcp_memory_gb(machine_type, vcpus))
    return None


def infer_database_engine(entry: RawCatalogEntry) -> str | None:
    """Engine from attributes, then the service name, then (GCP) the description."""
    engine = first_non_blank(entry.attributes, *ENGINE_KEYS)
    if engine is not None:
        return engine

    service = entry.service.lower()
    if "postgresql" in service:
        return "PostgreSQL"
    if "mysql" in service:
        return "MySQL"
    if entry.vendor == Cloud.AZURE and "sql database" in service:
        return "SQL Server"

    if entry.vendor == Cloud.GCP:
        description = (entry.attributes.get("description") or "").lower()
        if "mysql" in description:
            return "MySQL"
        if "postgresql" in description or "postgres" in description:
            return "PostgreSQL"
        if "sql server" in description:
            return "SQL Server"
    return None


def extract_details(entry: RawCatalogEntry, sub_category: SubCategory) -> dict[str, str]:
    details: dict[str, str] = {}
    for field_name, keys in DETAIL_KEYS.get(sub_category, {}).items():
        value = first_non_blank(entry.attributes, *keys)
        if value is not None:
            details[field_name] = value
    return details


def extract_specs(entry: RawCatalogEntry, sub_category: SubCategory | None = None) -> ResourceSpecs:
    """All spec fields for one entry; ``sub_category`` picks the display-name chain."""
    return ResourceSpecs(
        name=extract_name(entry, sub_category),
        vcpu=extract_vcpu(entry),
        memory=extract_memory(entry),
        database_engine=infer_database_engine(entry),
        details=extract_details(entry, sub_category) if sub_category else {},
    )
