from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from costwright.aggregate import CostAggregator
from costwright.catalog import FileCatalog
from rich.console import Console
from rich.table import Table

from costwright_cli.project import resolve_catalog_dir, resolve_tier
from costwright_cli.utils import ctx_obj, handle_error, money, unit_price

console = Console()


def normalize(
    ctx: typer.Context,
    categories: Annotated[
        list[str] | None, typer.Argument(help="Categories to show, e.g. Compute Database (default: all)")
    ] = None,
    tier: Annotated[str | None, typer.Option("--tier", "-t", help="Tier for reference-priced resources")] = None,
    catalog_dir: Annotated[
        Path | None, typer.Option("--catalog-dir", help="Directory holding aws.json, azure.json, gcp.json")
    ] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Rows per category (0 = all)")] = 25,
) -> None:
    """Show the catalog as canonical resources, grouped by category."""
    try:
        catalog = FileCatalog(resolve_catalog_dir(catalog_dir))
        with console.status("Normalizing catalog..."):
            grouped = CostAggregator().normalize(catalog, categories or None, resolve_tier(tier))

        if ctx_obj(ctx).get("json"):
            print(json.dumps(grouped.model_dump(mode="json")))
            return

        if not grouped.total():
            console.print("[yellow]No resources found.[/yellow]")
            return

        for category, resources in grouped.categories.items():
            shown = resources[:limit] if limit else resources
            table = Table(title=f"{category.value} ({len(resources)} resources)")
            table.add_column("Cloud")
            table.add_column("Kind", style="cyan")
            table.add_column("Name")
            table.add_column("Region", style="dim")
            table.add_column("vCPU", justify="right")
            table.add_column("Memory", justify="right")
            table.add_column("$/hr", justify="right")
            table.add_column("$/mo", justify="right")
            for r in shown:
                table.add_row(
                    r.cloud.value,
                    r.sub_category.value,
                    r.name,
                    r.region or "-",
                    str(r.vcpu) if r.vcpu is not None else "-",
                    r.memory or "-",
                    unit_price(r.price_per_hour),
                    money(r.price_per_month),
                )
            console.print(table)
            if len(shown) < len(resources):
                console.print(f"[dim]... {len(resources) - len(shown)} more[/dim]")
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
