"""Chat command for interactive sessions."""

import asyncio
from pathlib import Path

import typer

app = typer.Typer(help="Start interactive chat with the sales assistant")


@app.callback(invoke_without_command=True)
def run_chat(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to waypoint.yaml or config directory"
    ),
    debug: bool = typer.Option(False, "--debug", help="Debug mode"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show node and context per turn"),
) -> None:
    """Start interactive chat session."""
    from waypoint.cli.chat_runner import ChatConfig, run_chat_session

    chat_config = ChatConfig(config_path=config, debug=debug, verbose=verbose)

    try:
        asyncio.run(run_chat_session(chat_config))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        typer.echo(f"Fatal error: {e}", err=True)
        raise typer.Exit(1) from e
