from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

console = Console()


def serve(
    host: Annotated[str, typer.Option(help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on")] = 8000,
) -> None:
    """Run the HTTP API (compare, normalize, templates, catalog mappings)."""
    import uvicorn
    from costwright_web.app import app

    console.print(f"[cyan]Serving Costwright API on http://{host}:{port}[/cyan]")
    uvicorn.run(app, host=host, port=port)
