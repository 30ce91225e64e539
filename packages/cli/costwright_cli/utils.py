from __future__ import annotations

import json
from decimal import Decimal

import typer
from costwright.errors import CatalogError, RuleTableError
from rich.console import Console

_err_console = Console(stderr=True)


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    import yaml

    obj = ctx_obj(ctx)
    verbose = obj.get("verbose", False)
    json_mode = obj.get("json", False)

    if isinstance(e, FileNotFoundError):
        msg = f"File not found: {e}"
    elif isinstance(e, yaml.YAMLError):
        msg = f"Invalid YAML: {e}"
    elif isinstance(e, CatalogError):
        msg = f"Catalog error: {e}"
    elif isinstance(e, RuleTableError):
        msg = f"Broken data table {e}"
    elif isinstance(e, ValueError):
        msg = str(e)
    else:
        msg = f"Error: {e}"

    if json_mode:
        print(json.dumps({"error": msg}))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)


def ctx_obj(ctx: typer.Context) -> dict:
    """Global flags, looked up through the parent chain for sub-app commands."""
    while ctx is not None:
        if ctx.obj:
            return ctx.obj
        ctx = ctx.parent
    return {}


def money(value: Decimal | None) -> str:
    if value is None:
        return "-"
    return f"${value:,.2f}"


def unit_price(value: Decimal | None) -> str:
    if value is None:
        return "-"
    return f"${value:,.4f}"
