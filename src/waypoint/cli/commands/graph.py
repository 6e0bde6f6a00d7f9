"""Graph command: validate the configuration and print the node graph."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from waypoint.actions.registry import HandlerRegistry
from waypoint.config.loader import ConfigLoader
from waypoint.core.errors import ConfigError
from waypoint.dm.builder import build_graph
from waypoint.runtime.builder import register_builtin_handlers

app = typer.Typer(help="Validate configuration and show the node graph")


@app.callback(invoke_without_command=True)
def show_graph(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to waypoint.yaml or config directory"
    ),
) -> None:
    """Build the node graph from config and print it."""
    console = Console()
    try:
        waypoint_config = ConfigLoader.load_or_default(config)
        graph = build_graph(
            waypoint_config.nodes,
            register_builtin_handlers(HandlerRegistry()),
            waypoint_config.settings.conversation.start_node,
        )
    except ConfigError as e:
        typer.echo(f"Invalid config: {e}", err=True)
        raise typer.Exit(1) from e

    table = Table(title=f"Node graph (start: {graph.start_node_id})")
    table.add_column("Node", style="bold")
    table.add_column("Requires")
    table.add_column("Next")
    table.add_column("Handler")
    table.add_column("Reply")
    for node in graph:
        table.add_row(
            node.id,
            ", ".join(sorted(node.required_fields)) or "-",
            ", ".join(node.next_node_ids) or "-",
            node.handler_name or "-",
            node.reply_policy.value if node.has_handler else "-",
        )
    console.print(table)

    unreachable = set(graph.node_ids) - graph.reachable_from(graph.start_node_id)
    if unreachable:
        console.print(f"[yellow]Unreachable from start: {', '.join(sorted(unreachable))}[/]")
    console.print(f"[green]OK[/] {len(graph)} nodes")
