"""Main CLI application using Typer."""

import logging
import sys

import typer
from rich.console import Console
from rich.logging import RichHandler

from crudmind import __version__

app = typer.Typer(
    name="crudmind",
    help="crudmind - Chat with your SQL database, with confirmation before every write",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@app.command()
def version():
    """Show crudmind version."""
    console.print(f"crudmind version {__version__}")


@app.command()
def chat(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/.crudmind/crudmind.yaml)",
    ),
    conversation_id: str = typer.Option(
        None,
        "--conversation",
        help="Resume a stored conversation (sqlite backend)",
    ),
):
    """Start interactive chat session."""
    from crudmind.cli.chat import chat_command

    chat_command(config_path=config_path, conversation_id=conversation_id)


@app.command()
def schema(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
):
    """Show the database schema the agent sees."""
    from crudmind.cli.schema_cmd import schema_command

    schema_command(config_path=config_path)


@app.command()
def start(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    detach: bool = typer.Option(False, "--detach", "-d", help="Run server in background"),
):
    """Start crudmind API server."""
    from crudmind.cli.server_cmd import start_command

    start_command(config_path=config_path, detach=detach)


@app.command()
def stop():
    """Stop crudmind API server."""
    from crudmind.cli.server_cmd import stop_command

    stop_command()


@app.command()
def status():
    """Check crudmind server status."""
    from crudmind.cli.server_cmd import status_command

    status_command()


def main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
