from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from costwright.catalog import FileCatalog
from costwright.classifier import get_rules, product_family_mappings
from costwright.models import Cloud
from rich.console import Console
from rich.table import Table

from costwright_cli.project import resolve_catalog_dir
from costwright_cli.utils import ctx_obj, handle_error

console = Console()

catalog_app = typer.Typer(
    name="catalog",
    help="Inspect vendor catalogs and classification rules.",
    no_args_is_help=True,
)


@catalog_app.callback(invoke_without_command=True)
def catalog_callback(ctx: typer.Context) -> None:
    # Propagate json/verbose flags from parent ctx into this sub-app's ctx
    if ctx.obj is None and ctx.parent and ctx.parent.obj:
        ctx.obj = ctx.parent.obj
    elif ctx.obj is None:
        ctx.ensure_object(dict)


@catalog_app.command("mappings")
def catalog_mappings(
    ctx: typer.Context,
    provider: Annotated[str | None, typer.Option(help="Only this provider (aws, azure, gcp)")] = None,
    catalog_dir: Annotated[
        Path | None, typer.Option("--catalog-dir", help="Directory holding aws.json, azure.json, gcp.json")
    ] = None,
) -> None:
    """List each product family / service pair and how it is classified."""
    try:
        cloud = Cloud(provider) if provider else None
        entries = FileCatalog(resolve_catalog_dir(catalog_dir)).fetch_all()
        if cloud is not None:
            entries = [e for e in entries if e.vendor == cloud]
        mappings = product_family_mappings(entries)
    except Exception as e:
        handle_error(ctx, e)
        return

    if ctx_obj(ctx).get("json"):
        print(json.dumps({"mappings": [m.model_dump(mode="json") for m in mappings]}))
        return

    if not mappings:
        console.print("[yellow]Catalog is empty.[/yellow]")
        return

    table = Table(title="Product Family Mappings")
    table.add_column("Cloud")
    table.add_column("Product Family")
    table.add_column("Service")
    table.add_column("Category", style="cyan")
    table.add_column("Sub-category", style="cyan")
    for m in mappings:
        table.add_row(m.cloud.value, m.product_family or "-", m.service or "-", m.category.value, m.sub_category.value)
    console.print(table)


@catalog_app.command("rules")
def catalog_rules(ctx: typer.Context) -> None:
    """Show how many classification rules each provider has."""
    try:
        stats = get_rules().stats()
    except Exception as e:
        handle_error(ctx, e)
        return

    if ctx_obj(ctx).get("json"):
        print(json.dumps({"rules": stats}))
        return

    table = Table(title="Classification Rules")
    table.add_column("Cloud", style="cyan")
    table.add_column("Rules", justify="right")
    for cloud, count in stats.items():
        table.add_row(cloud, str(count))
    console.print(table)
