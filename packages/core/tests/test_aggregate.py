"""Tests for cost comparison and categorized normalization."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest
from costwright.aggregate import (
    PROVIDERS,
    CostAggregator,
    compare_cost,
    compare_tiers,
    normalize,
    parse_category,
    parse_sub_category,
)
from costwright.catalog import InMemoryCatalog
from costwright.errors import InvalidRequestError
from costwright.models import Category, Cloud, SubCategory, UsageTier


class ExplodingCatalog:
    """Fails the test if anything reads it."""

    def fetch_all(self):
        raise AssertionError("catalog should not be read")


def costs(comparison, sub_category: SubCategory) -> dict[Cloud, Decimal]:
    return {r.cloud: r.cost_of(sub_category) for r in comparison.results}


class TestComparisons:
    def test_single_vm_small(self, vm_catalog):
        comparison = compare_cost(vm_catalog, ["VirtualMachines"], "Small")
        assert [r.cloud for r in comparison.results] == [Cloud.AWS, Cloud.AZURE, Cloud.GCP]
        aws = comparison.for_cloud("aws")
        assert aws.total_monthly_price == Decimal("36.50")
        assert len(aws.breakdown) == 1
        assert json.loads(aws.breakdown[0].resource_details)["name"] == "t2.medium"
        for cloud in (Cloud.AZURE, Cloud.GCP):
            result = comparison.for_cloud(cloud)
            assert result.total_monthly_price == 0
            assert result.breakdown[0].resource_details is None

    def test_single_vm_outgrown_at_medium(self, vm_catalog):
        comparison = compare_cost(vm_catalog, ["VirtualMachines"], "Medium")
        aws = comparison.for_cloud(Cloud.AWS)
        assert aws.total_monthly_price == 0
        assert aws.breakdown[0].resource_details is None

    def test_database_picks_cheapest_fit(self, db_catalog):
        comparison = compare_cost(db_catalog, [SubCategory.RELATIONAL], UsageTier.SMALL)
        aws = comparison.for_cloud(Cloud.AWS)
        assert aws.total_monthly_price == Decimal("24.82")
        details = json.loads(aws.breakdown[0].resource_details)
        assert details["name"] == "db.t3.micro"
        assert details["database_engine"] == "MySQL"

    def test_load_balancer_from_reference_prices(self):
        comparison = compare_cost(InMemoryCatalog(), ["LoadBalancer"], "Small")
        assert costs(comparison, SubCategory.LOAD_BALANCER) == {
            Cloud.AWS: Decimal("16.51"),
            Cloud.AZURE: Decimal("0"),
            Cloud.GCP: Decimal("18.41"),
        }
        # Azure's offer is free but still matched
        assert comparison.for_cloud(Cloud.AZURE).breakdown[0].resource_details is not None

    def test_reference_offers_at_extra_large(self):
        comparison = compare_cost(InMemoryCatalog(), ["LoadBalancer", "Monitoring"], "ExtraLarge")
        for result in comparison.results:
            assert result.total_monthly_price == 0
            for entry in result.breakdown:
                assert json.loads(entry.resource_details)["cloud"] == result.cloud.value

        grouped = normalize(InMemoryCatalog(), None, "ExtraLarge")
        assert {c: len(r) for c, r in grouped.categories.items()} == {Category.NETWORKING: 3, Category.MANAGEMENT: 3}

    def test_free_function_grant_is_not_picked(self, entry):
        catalog = InMemoryCatalog(
            [
                entry("AWS", "AWSLambda", "Serverless", {"group": "paid"}, [{"USD": "0.0000002", "unit": "Requests"}]),
                entry("AWS", "AWSLambda", "Serverless", {"group": "free"}, [{"USD": "0", "unit": "Requests"}]),
            ]
        )
        aws = compare_cost(catalog, ["CloudFunctions"], "Small").for_cloud(Cloud.AWS)
        assert json.loads(aws.breakdown[0].resource_details)["name"] == "paid"
        assert aws.total_monthly_price == Decimal("0.2")

    def test_empty_request(self, mixed_catalog):
        comparison = compare_cost(mixed_catalog, [], "Large")
        assert comparison.resources == []
        assert len(comparison.results) == 3
        for result in comparison.results:
            assert result.total_monthly_price == 0
            assert result.breakdown == []


class TestMixedCatalog:
    def test_vm_costs_by_tier(self, mixed_catalog):
        expected = {
            UsageTier.SMALL: {Cloud.AWS: "70.08", Cloud.AZURE: "70.08", Cloud.GCP: "70.883"},
            UsageTier.MEDIUM: {Cloud.AWS: "140.16", Cloud.AZURE: "140.16", Cloud.GCP: "141.766"},
            UsageTier.LARGE: {Cloud.AWS: "280.32", Cloud.AZURE: "0", Cloud.GCP: "0"},
            UsageTier.EXTRA_LARGE: {Cloud.AWS: "0", Cloud.AZURE: "0", Cloud.GCP: "0"},
        }
        for tier, by_cloud in expected.items():
            comparison = compare_cost(mixed_catalog, ["VirtualMachines"], tier)
            assert costs(comparison, SubCategory.VIRTUAL_MACHINES) == {c: Decimal(v) for c, v in by_cloud.items()}

    def test_serverless_and_cache(self, mixed_catalog):
        comparison = compare_cost(mixed_catalog, ["CloudFunctions", "Caching"], "Small")
        aws = comparison.for_cloud(Cloud.AWS)
        assert aws.cost_of(SubCategory.CLOUD_FUNCTIONS) == Decimal("0.2")
        assert aws.cost_of(SubCategory.CACHING) == Decimal("12.41")
        assert aws.total_monthly_price == Decimal("12.61")

    def test_total_is_sum_of_breakdown(self, mixed_catalog):
        kinds = ["VirtualMachines", "LoadBalancer", "Monitoring", "CloudFunctions", "Caching", "Relational"]
        for tier in UsageTier:
            for result in compare_cost(mixed_catalog, kinds, tier).results:
                assert result.total_monthly_price == sum((e.cost for e in result.breakdown), Decimal(0))
                assert [e.sub_category.value for e in result.breakdown] == kinds

    def test_breakdown_keeps_duplicates(self, mixed_catalog):
        aws = compare_cost(mixed_catalog, ["VirtualMachines", "VirtualMachines"], "Small").for_cloud(Cloud.AWS)
        assert len(aws.breakdown) == 2
        assert aws.total_monthly_price == Decimal("140.16")

    def test_by_category(self, mixed_catalog):
        aws = compare_cost(mixed_catalog, ["VirtualMachines", "LoadBalancer", "Caching"], "Small").for_cloud("aws")
        assert aws.by_category() == {
            Category.COMPUTE: Decimal("70.08"),
            Category.NETWORKING: Decimal("16.51"),
            Category.DATABASE: Decimal("12.41"),
        }

    def test_deterministic(self, mixed_catalog):
        kinds = ["VirtualMachines", "Caching", "LoadBalancer"]
        first = compare_cost(mixed_catalog, kinds, "Medium")
        second = compare_cost(mixed_catalog, kinds, "Medium")
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_accepts_plain_entry_list(self, mixed_catalog):
        from_list = compare_cost(mixed_catalog.fetch_all(), ["VirtualMachines"], "Small")
        assert from_list == compare_cost(mixed_catalog, ["VirtualMachines"], "Small")

    def test_catalog_load_balancers_are_ignored(self, entry):
        catalog = InMemoryCatalog(
            [entry("AWS", "AWSELB", "Load Balancer", {"usageType": "LoadBalancerUsage"}, [{"USD": "0.0225", "unit": "Hrs"}])]
        )
        aws = compare_cost(catalog, ["LoadBalancer"], "Small").for_cloud(Cloud.AWS)
        assert aws.total_monthly_price == Decimal("16.51")


class TestRequestValidation:
    def test_unknown_tier(self):
        with pytest.raises(InvalidRequestError, match="usage tier"):
            compare_cost(ExplodingCatalog(), ["VirtualMachines"], "Gigantic")

    def test_unknown_kind(self):
        with pytest.raises(InvalidRequestError, match="resource kind"):
            compare_cost(ExplodingCatalog(), ["VirtualMachines", "Mainframe"], "Small")

    def test_kind_lookup_is_case_insensitive(self):
        assert parse_sub_category("virtualmachines") is SubCategory.VIRTUAL_MACHINES
        assert parse_category(" compute ") is Category.COMPUTE

    def test_unknown_category(self):
        with pytest.raises(InvalidRequestError, match="category"):
            normalize(ExplodingCatalog(), ["Quantum"], "Small")


class TestCompareTiers:
    def test_one_comparison_per_tier(self, mixed_catalog):
        comparisons = compare_tiers(mixed_catalog, ["VirtualMachines"])
        assert [c.usage for c in comparisons] == list(UsageTier)

    def test_matches_single_tier_comparisons(self, mixed_catalog):
        kinds = ["VirtualMachines", "LoadBalancer"]
        for comparison in compare_tiers(mixed_catalog, kinds, ["Small", "Large"]):
            assert comparison == compare_cost(mixed_catalog, kinds, comparison.usage)

    def test_reads_catalog_once(self, mixed_catalog):
        calls = []

        class CountingCatalog:
            def fetch_all(self):
                calls.append(1)
                return mixed_catalog.fetch_all()

        compare_tiers(CountingCatalog(), ["VirtualMachines"])
        assert len(calls) == 1

    def test_sized_costs_never_shrink_while_matched(self, mixed_catalog):
        comparisons = compare_tiers(mixed_catalog, ["VirtualMachines"])
        for cloud in PROVIDERS:
            matched = [c.for_cloud(cloud).cost_of(SubCategory.VIRTUAL_MACHINES) for c in comparisons]
            matched = [cost for cost in matched if cost > 0]
            assert matched == sorted(matched)


class TestNormalize:
    def test_groups_present_categories(self, mixed_catalog):
        grouped = normalize(mixed_catalog, None, "Small")
        assert list(grouped.categories) == [
            Category.COMPUTE,
            Category.DATABASE,
            Category.NETWORKING,
            Category.MANAGEMENT,
            Category.OTHER,
        ]
        names = [r.name for r in grouped.categories[Category.COMPUTE]]
        assert names[:3] == ["m5.large", "m5.xlarge", "m5.2xlarge"]

    def test_reference_offers_follow_catalog_resources(self, mixed_catalog):
        grouped = normalize(mixed_catalog, ["Networking"], "Small")
        assert [r.cloud for r in grouped.categories[Category.NETWORKING]] == [Cloud.GCP, Cloud.AZURE, Cloud.AWS]

    def test_requested_empty_category_is_listed(self, mixed_catalog):
        grouped = normalize(mixed_catalog, ["Storage", "Database"], "Small")
        assert list(grouped.categories) == [Category.STORAGE, Category.DATABASE]
        assert grouped.categories[Category.STORAGE] == []
        assert [r.name for r in grouped.categories[Category.DATABASE]] == ["cache.t3.micro"]

    def test_total_counts_every_resource(self, mixed_catalog):
        grouped = normalize(mixed_catalog, None, "ExtraLarge")
        assert grouped.total() == len(mixed_catalog) + 6

    def test_variant_fields_survive_serialization(self, db_catalog):
        grouped = normalize(db_catalog, ["Database"], "Small")
        dumped = grouped.model_dump(mode="json")
        assert dumped["categories"]["Database"][0]["database_engine"] == "MySQL"


class TestAggregatorInstance:
    def test_select_reports_cost(self, vm_catalog):
        aggregator = CostAggregator()
        from costwright.resources import normalize_catalog

        pool = normalize_catalog(vm_catalog.fetch_all())
        selection = aggregator.select(pool, Cloud.AWS, SubCategory.VIRTUAL_MACHINES, UsageTier.SMALL)
        assert selection.matched
        assert selection.monthly_cost == Decimal("36.50")

        missing = aggregator.select(pool, Cloud.GCP, SubCategory.VIRTUAL_MACHINES, UsageTier.SMALL)
        assert not missing.matched
        assert missing.monthly_cost == 0
