"""``waypoint`` command line."""

import typer

from waypoint.__version__ import __version__
from waypoint.cli.commands import chat, graph, server

app = typer.Typer(
    name="waypoint",
    help="Waypoint - graph-driven sales assistant",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(chat.app, name="chat", help="Chat with the assistant in the terminal")
app.add_typer(server.app, name="server", help="Start the Waypoint API server")
app.add_typer(graph.app, name="graph", help="Validate config and print the node graph")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"Waypoint version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_print_version,
        is_eager=True,
    ),
) -> None:
    """Waypoint - graph-driven sales assistant"""


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
