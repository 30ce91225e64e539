"""Shared fixtures for core tests."""

from __future__ import annotations

from typing import Any

import pytest
from costwright.catalog import InMemoryCatalog
from costwright.models import RawCatalogEntry


def make_entry(
    vendor: str,
    service: str,
    product_family: str = "",
    attributes: dict[str, str] | None = None,
    prices: list[dict[str, Any]] | None = None,
    region: str = "us-east-1",
) -> RawCatalogEntry:
    """A catalog entry in the vendor file shape (camelCase keys, ``USD`` amounts)."""
    return RawCatalogEntry.model_validate(
        {
            "vendorName": vendor,
            "service": service,
            "region": region,
            "productFamily": product_family,
            "attributes": [{"key": k, "value": v} for k, v in (attributes or {}).items()],
            "prices": prices or [],
        }
    )


def hourly(amount: str, option: str = "on_demand") -> dict[str, Any]:
    return {"USD": amount, "unit": "Hrs", "purchaseOption": option}


@pytest.fixture
def t2_medium() -> RawCatalogEntry:
    return make_entry(
        "AWS",
        "AmazonEC2",
        "Compute Instance",
        {"instanceType": "t2.medium", "vcpu": "2", "memory": "4 GB"},
        [hourly("0.05")],
    )


@pytest.fixture
def vm_catalog(t2_medium) -> InMemoryCatalog:
    return InMemoryCatalog([t2_medium])


@pytest.fixture
def db_catalog() -> InMemoryCatalog:
    return InMemoryCatalog(
        [
            make_entry(
                "AWS",
                "AmazonRDS",
                "Database Instance",
                {"instanceType": "db.t3.small", "vcpu": "2", "memory": "4 GB", "databaseEngine": "MySQL"},
                [hourly("0.068")],
            ),
            make_entry(
                "AWS",
                "AmazonRDS",
                "Database Instance",
                {"instanceType": "db.t3.micro", "vcpu": "1", "memory": "2 GB", "databaseEngine": "MySQL"},
                [hourly("0.034")],
            ),
        ]
    )


@pytest.fixture
def mixed_catalog() -> InMemoryCatalog:
    """A few SKUs per vendor across sized, scored and generic kinds."""
    return InMemoryCatalog(
        [
            make_entry(
                "AWS",
                "AmazonEC2",
                "Compute Instance",
                {"instanceType": "m5.large", "vcpu": "2", "memory": "8 GiB"},
                [hourly("0.096")],
            ),
            make_entry(
                "AWS",
                "AmazonEC2",
                "Compute Instance",
                {"instanceType": "m5.xlarge", "vcpu": "4", "memory": "16 GiB"},
                [hourly("0.192")],
            ),
            make_entry(
                "AWS",
                "AmazonEC2",
                "Compute Instance",
                {"instanceType": "m5.2xlarge", "vcpu": "8", "memory": "32 GiB"},
                [hourly("0.384")],
            ),
            make_entry(
                "Azure",
                "Virtual Machines",
                "Compute",
                {"armSkuName": "Standard_D2s_v3", "vCPUs": "2", "memoryInGB": "8"},
                [{"USD": "0.096", "unit": "1 Hour", "purchaseOption": "Consumption"}],
            ),
            make_entry(
                "Azure",
                "Virtual Machines",
                "Compute",
                {"armSkuName": "Standard_D4s_v3", "vCPUs": "4", "memoryInGB": "16"},
                [{"USD": "0.192", "unit": "1 Hour", "purchaseOption": "Consumption"}],
            ),
            make_entry(
                "GCP",
                "Compute Engine",
                "Compute",
                {"machineType": "n2-standard-2", "description": "N2 Instance 2 vCPU + 8GB RAM"},
                [{"USD": "0.0971", "unit": "hour"}],
            ),
            make_entry(
                "GCP",
                "Compute Engine",
                "Compute",
                {"machineType": "n2-standard-4"},
                [{"USD": "0.1942", "unit": "hour"}],
            ),
            make_entry(
                "AWS",
                "AWSLambda",
                "Serverless",
                {"group": "AWS-Lambda-Requests"},
                [{"USD": "0.0000002", "unit": "Requests", "purchaseOption": "on_demand"}],
            ),
            make_entry(
                "AWS",
                "AmazonElastiCache",
                "Cache Instance",
                {"instanceType": "cache.t3.micro", "vcpu": "2", "memory": "0.5 GiB"},
                [hourly("0.017")],
            ),
            make_entry("GCP", "Some Future Service", "Mystery", {}, [{"USD": "1.00", "unit": "hour"}]),
        ]
    )


@pytest.fixture
def entry():
    """The ``make_entry`` factory, for tests that build their own SKUs."""
    return make_entry
