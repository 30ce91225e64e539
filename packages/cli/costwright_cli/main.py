import logging

import typer

from costwright_cli import __version__
from costwright_cli.commands.catalog_cmd import catalog_app
from costwright_cli.commands.compare import compare
from costwright_cli.commands.normalize import normalize
from costwright_cli.commands.serve import serve
from costwright_cli.commands.templates_cmd import templates


def _version_callback(value: bool) -> None:
    if value:
        print(f"costwright {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="costwright",
    help="Compare cloud costs across AWS, Azure and GCP",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


app.command()(compare)
app.command()(normalize)
app.command()(templates)
app.command()(serve)
app.add_typer(catalog_app, name="catalog")
