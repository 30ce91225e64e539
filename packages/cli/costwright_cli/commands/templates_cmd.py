from __future__ import annotations

import json

import typer
from costwright.templates import list_templates
from rich.console import Console
from rich.table import Table

from costwright_cli.utils import ctx_obj, handle_error

console = Console()


def templates(ctx: typer.Context) -> None:
    """List the built-in resource-kind templates."""
    try:
        presets = list_templates()
    except Exception as e:
        handle_error(ctx, e)
        return

    if ctx_obj(ctx).get("json"):
        print(json.dumps({"templates": [t.model_dump(mode="json") for t in presets]}))
        return

    table = Table(title="Templates")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Resources", style="dim")
    for t in presets:
        table.add_row(t.name, t.description, ", ".join(r.value for r in t.resources) or "-")
    console.print(table)
