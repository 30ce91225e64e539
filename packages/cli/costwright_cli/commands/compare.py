from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from costwright.aggregate import PROVIDERS, CostAggregator
from costwright.catalog import FileCatalog
from costwright.models import CostComparison
from costwright.templates import get_template
from rich.console import Console
from rich.table import Table

from costwright_cli.project import resolve_catalog_dir, resolve_tier
from costwright_cli.utils import ctx_obj, handle_error, money

console = Console()


def compare(
    ctx: typer.Context,
    kinds: Annotated[list[str] | None, typer.Argument(help="Resource kinds, e.g. VirtualMachines Relational")] = None,
    tier: Annotated[str | None, typer.Option("--tier", "-t", help="Usage tier (Small, Medium, Large, ExtraLarge)")] = None,
    template: Annotated[str | None, typer.Option("--template", help="Start from a named template's kinds")] = None,
    catalog_dir: Annotated[
        Path | None, typer.Option("--catalog-dir", help="Directory holding aws.json, azure.json, gcp.json")
    ] = None,
    all_tiers: Annotated[bool, typer.Option("--all-tiers", help="Compare every usage tier")] = False,
) -> None:
    """Compare the monthly cost of resource kinds across AWS, Azure and GCP."""
    try:
        requested = list(get_template(template).resources) if template else []
        requested += kinds or []
        catalog = FileCatalog(resolve_catalog_dir(catalog_dir))
        aggregator = CostAggregator()

        with console.status("Pricing resources..."):
            if all_tiers:
                comparisons = aggregator.compare_tiers(catalog, requested)
            else:
                comparisons = [aggregator.compare_cost(catalog, requested, resolve_tier(tier))]

        if ctx_obj(ctx).get("json"):
            payload = [c.model_dump(mode="json") for c in comparisons]
            print(json.dumps({"comparisons": payload} if all_tiers else payload[0]))
            return

        if all_tiers:
            _print_tier_table(comparisons)
        else:
            _print_comparison_table(comparisons[0])
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def _print_comparison_table(comparison: CostComparison) -> None:
    if not comparison.resources:
        console.print("[yellow]No resource kinds requested; every total is $0.00.[/yellow]")
        return

    table = Table(title=f"Monthly Cost Comparison ({comparison.usage.value})")
    table.add_column("Resource", style="cyan")
    table.add_column("Category", style="dim")
    for cloud in PROVIDERS:
        table.add_column(cloud.value.upper(), justify="right")

    for i, sub_category in enumerate(comparison.resources):
        row = [sub_category.value, sub_category.category.value]
        for result in comparison.results:
            entry = result.breakdown[i]
            row.append(money(entry.cost) if entry.resource_details else "[dim]no match[/dim]")
        table.add_row(*row)

    table.add_section()
    table.add_row("[bold]TOTAL[/bold]", "", *[money(r.total_monthly_price) for r in comparison.results])
    console.print(table)


def _print_tier_table(comparisons: list[CostComparison]) -> None:
    table = Table(title="Monthly Totals by Usage Tier")
    table.add_column("Tier", style="cyan")
    for cloud in PROVIDERS:
        table.add_column(cloud.value.upper(), justify="right")
    for comparison in comparisons:
        table.add_row(comparison.usage.value, *[money(r.total_monthly_price) for r in comparison.results])
    console.print(table)
