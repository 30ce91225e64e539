"""Canonical pricing model: the types every stage of the engine passes along.

Raw vendor SKUs come in as RawCatalogEntry, get turned into one of the
CanonicalResource variants, and leave as a CostComparison. All value types are
frozen: a resource is derived per request and never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, computed_field, field_validator

HOURS_PER_MONTH = Decimal(730)


class Cloud(str, Enum):
    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"

    @classmethod
    def _missing_(cls, value: object) -> Cloud | None:
        # Vendor files spell it "AWS" / "Azure" / "GCP"
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class Category(str, Enum):
    COMPUTE = "Compute"
    DATABASE = "Database"
    STORAGE = "Storage"
    NETWORKING = "Networking"
    ANALYTICS = "Analytics"
    AI = "AI"
    MANAGEMENT = "Management"
    SECURITY = "Security"
    OTHER = "Other"


class SubCategory(str, Enum):
    VIRTUAL_MACHINES = "VirtualMachines"
    CLOUD_FUNCTIONS = "CloudFunctions"
    KUBERNETES = "Kubernetes"
    CONTAINER_INSTANCES = "ContainerInstances"
    RELATIONAL = "Relational"
    NOSQL = "NoSQL"
    DATABASE_STORAGE = "DatabaseStorage"
    CACHING = "Caching"
    BLOB_STORAGE = "BlobStorage"
    BLOCK_STORAGE = "BlockStorage"
    FILE_STORAGE = "FileStorage"
    BACKUP = "Backup"
    LOAD_BALANCER = "LoadBalancer"
    API_GATEWAY = "ApiGateway"
    VPN_GATEWAY = "VpnGateway"
    DNS = "Dns"
    CDN = "CDN"
    DATA_WAREHOUSE = "DataWarehouse"
    STREAMING = "Streaming"
    QUEUEING = "Queueing"
    MESSAGING = "Messaging"
    MACHINE_LEARNING = "MachineLearning"
    SECRETS = "Secrets"
    COMPLIANCE = "Compliance"
    WEB_APPLICATION_FIREWALL = "WebApplicationFirewall"
    MONITORING = "Monitoring"
    UNCATEGORIZED = "Uncategorized"

    @property
    def category(self) -> Category:
        return _PARENT_CATEGORY[self]


_PARENT_CATEGORY: dict[SubCategory, Category] = {
    SubCategory.VIRTUAL_MACHINES: Category.COMPUTE,
    SubCategory.CLOUD_FUNCTIONS: Category.COMPUTE,
    SubCategory.KUBERNETES: Category.COMPUTE,
    SubCategory.CONTAINER_INSTANCES: Category.COMPUTE,
    SubCategory.RELATIONAL: Category.DATABASE,
    SubCategory.NOSQL: Category.DATABASE,
    SubCategory.DATABASE_STORAGE: Category.DATABASE,
    SubCategory.CACHING: Category.DATABASE,
    SubCategory.BLOB_STORAGE: Category.STORAGE,
    SubCategory.BLOCK_STORAGE: Category.STORAGE,
    SubCategory.FILE_STORAGE: Category.STORAGE,
    SubCategory.BACKUP: Category.STORAGE,
    SubCategory.LOAD_BALANCER: Category.NETWORKING,
    SubCategory.API_GATEWAY: Category.NETWORKING,
    SubCategory.VPN_GATEWAY: Category.NETWORKING,
    SubCategory.DNS: Category.NETWORKING,
    SubCategory.CDN: Category.NETWORKING,
    SubCategory.DATA_WAREHOUSE: Category.ANALYTICS,
    SubCategory.STREAMING: Category.ANALYTICS,
    SubCategory.QUEUEING: Category.MANAGEMENT,
    SubCategory.MESSAGING: Category.MANAGEMENT,
    SubCategory.MACHINE_LEARNING: Category.AI,
    SubCategory.SECRETS: Category.SECURITY,
    SubCategory.COMPLIANCE: Category.SECURITY,
    SubCategory.WEB_APPLICATION_FIREWALL: Category.SECURITY,
    SubCategory.MONITORING: Category.MANAGEMENT,
    SubCategory.UNCATEGORIZED: Category.OTHER,
}


class UsageTier(str, Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    EXTRA_LARGE = "ExtraLarge"

    @property
    def rank(self) -> int:
        return list(UsageTier).index(self)


class PriceKind(str, Enum):
    HOURLY = "Hourly"
    MONTHLY = "Monthly"
    PER_REQUEST = "PerRequest"
    PER_GB_MONTH = "PerGbMonth"
    PER_GB_SECOND = "PerGbSecond"
    PER_IOPS = "PerIops"
    PER_RULE = "PerRule"
    PER_GB_OUT = "PerGbOut"
    PER_SNAPSHOT = "PerSnapshot"


# PriceKind -> CanonicalResource field it populates
PRICE_FIELDS: dict[PriceKind, str] = {
    PriceKind.HOURLY: "price_per_hour",
    PriceKind.MONTHLY: "price_per_month",
    PriceKind.PER_REQUEST: "price_per_request",
    PriceKind.PER_GB_MONTH: "price_per_gb_month",
    PriceKind.PER_GB_SECOND: "price_per_gb_second",
    PriceKind.PER_IOPS: "price_per_iops",
    PriceKind.PER_RULE: "price_per_rule",
    PriceKind.PER_GB_OUT: "price_per_gb_out",
    PriceKind.PER_SNAPSHOT: "price_per_snapshot",
}


# --- Raw catalog data ---


class PriceEntry(BaseModel):
    """One price line of a vendor SKU. ``amount`` is None when the vendor left it blank."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    amount: Decimal | None = Field(default=None, alias="USD")
    unit: str | None = None
    purchase_option: str | None = Field(default=None, alias="purchaseOption")

    @field_validator("amount", mode="before")
    @classmethod
    def _lenient_amount(cls, v: Any) -> Any:
        # Blank, unparsable and non-finite amounts read as unpriced
        if v is None or isinstance(v, bool):
            return None
        try:
            amount = v if isinstance(v, Decimal) else Decimal(str(v).strip())
        except (InvalidOperation, ValueError):
            return None
        return amount if amount.is_finite() else None


class RawCatalogEntry(BaseModel):
    """A single vendor SKU line as supplied by a catalog."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    vendor: Cloud = Field(alias="vendorName")
    service: str = ""
    region: str = ""
    product_family: str = Field(default="", alias="productFamily")
    attributes: dict[str, str] = Field(default_factory=dict)
    prices: list[PriceEntry] = Field(default_factory=list)

    @field_validator("service", "region", "product_family", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("attributes", mode="before")
    @classmethod
    def _attribute_pairs(cls, v: Any) -> Any:
        # Vendor files carry attributes as [{"key": ..., "value": ...}]
        if isinstance(v, list):
            pairs: dict[str, str] = {}
            for item in v:
                if not isinstance(item, Mapping):
                    continue
                key = item.get("key") or item.get("Key")
                if key is None:
                    continue
                value = item.get("value", item.get("Value"))
                pairs.setdefault(key, "" if value is None else str(value))
            return pairs
        if isinstance(v, dict):
            return {k: "" if val is None else str(val) for k, val in v.items()}
        return v


# --- Canonical resources ---


class CanonicalResource(BaseModel):
    model_config = ConfigDict(frozen=True)

    cloud: Cloud
    category: Category
    sub_category: SubCategory
    region: str = ""
    name: str = "Unknown"
    vcpu: int | None = Field(default=None, ge=0)
    memory: str | None = None
    price_per_hour: Decimal | None = None
    price_per_month: Decimal | None = None
    price_per_request: Decimal | None = None
    price_per_gb_month: Decimal | None = None
    price_per_gb_second: Decimal | None = None
    price_per_iops: Decimal | None = None
    price_per_rule: Decimal | None = None
    price_per_gb_out: Decimal | None = None
    price_per_snapshot: Decimal | None = None


class ComputeInstance(CanonicalResource):
    pass


class DatabaseInstance(CanonicalResource):
    database_engine: str | None = None


class LoadBalancer(CanonicalResource):
    pass


class Monitoring(CanonicalResource):
    pass


class CloudFunction(CanonicalResource):
    pass


class KubernetesCluster(CanonicalResource):
    node_type: str | None = None


class ApiGateway(CanonicalResource):
    pass


class BlobStorage(CanonicalResource):
    storage_class: str | None = None


class BlockStorage(CanonicalResource):
    volume_type: str | None = None
    max_iops: str | None = None
    max_volume_size: str | None = None


class ContentDelivery(CanonicalResource):
    pass


class Firewall(CanonicalResource):
    pass


class GenericResource(CanonicalResource):
    service: str = ""
    product_family: str = ""
    attributes: dict[str, str] = Field(default_factory=dict)


RESOURCE_TYPES: dict[SubCategory, type[CanonicalResource]] = {
    SubCategory.VIRTUAL_MACHINES: ComputeInstance,
    SubCategory.RELATIONAL: DatabaseInstance,
    SubCategory.NOSQL: DatabaseInstance,
    SubCategory.LOAD_BALANCER: LoadBalancer,
    SubCategory.MONITORING: Monitoring,
    SubCategory.CLOUD_FUNCTIONS: CloudFunction,
    SubCategory.KUBERNETES: KubernetesCluster,
    SubCategory.API_GATEWAY: ApiGateway,
    SubCategory.BLOB_STORAGE: BlobStorage,
    SubCategory.BLOCK_STORAGE: BlockStorage,
    SubCategory.CDN: ContentDelivery,
    SubCategory.WEB_APPLICATION_FIREWALL: Firewall,
}


def resource_type_for(sub_category: SubCategory) -> type[CanonicalResource]:
    """Variant class for a sub-category; everything unlisted is a GenericResource."""
    return RESOURCE_TYPES.get(sub_category, GenericResource)


# --- Selection and cost results ---


class UsageTierSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_cpu: int = Field(ge=0)
    min_memory_gb: Decimal = Field(ge=0)


class UsageProfile(BaseModel):
    """Monthly consumption assumed for metered resources at one tier."""

    model_config = ConfigDict(frozen=True)

    monthly_requests: Decimal = Decimal(0)
    gb_seconds: Decimal = Decimal(0)
    storage_gb: Decimal = Decimal(0)
    egress_gb: Decimal = Decimal(0)
    provisioned_iops: Decimal = Decimal(0)
    rules: Decimal = Decimal(0)


class ResourceSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    cloud: Cloud
    sub_category: SubCategory
    tier: UsageTier
    resource: SerializeAsAny[CanonicalResource] | None = None
    monthly_cost: Decimal = Decimal(0)

    @property
    def matched(self) -> bool:
        return self.resource is not None


class CostBreakdownEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    sub_category: SubCategory
    cost: Decimal = Decimal(0)
    resource_details: str | None = None

    @computed_field
    @property
    def category(self) -> Category:
        return self.sub_category.category


class CostComparisonResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    cloud: Cloud
    total_monthly_price: Decimal = Decimal(0)
    breakdown: list[CostBreakdownEntry] = Field(default_factory=list)

    def by_category(self) -> dict[Category, Decimal]:
        """Breakdown costs summed per parent category, in first-seen order."""
        totals: dict[Category, Decimal] = {}
        for entry in self.breakdown:
            totals[entry.category] = totals.get(entry.category, Decimal(0)) + entry.cost
        return totals

    def cost_of(self, sub_category: SubCategory) -> Decimal:
        return sum((e.cost for e in self.breakdown if e.sub_category == sub_category), Decimal(0))


class CostComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    usage: UsageTier
    resources: list[SubCategory] = Field(default_factory=list)
    results: list[CostComparisonResult] = Field(default_factory=list)

    def for_cloud(self, cloud: Cloud | str) -> CostComparisonResult:
        target = Cloud(cloud)
        for result in self.results:
            if result.cloud == target:
                return result
        raise KeyError(target.value)


class CategorizedResources(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: dict[Category, list[SerializeAsAny[CanonicalResource]]] = Field(default_factory=dict)

    def total(self) -> int:
        return sum(len(v) for v in self.categories.values())


class ProductFamilyMapping(BaseModel):
    model_config = ConfigDict(frozen=True)

    cloud: Cloud
    product_family: str
    service: str
    category: Category
    sub_category: SubCategory
