"""Typer application for the triggerbot command line."""

from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from triggerbot.cli.chat import chat_command
from triggerbot.cli.server import server_command
from triggerbot.core.commands.registry import CommandRegistry
from triggerbot.utils.config import Config

app = typer.Typer(
    name="triggerbot",
    help="TriggerBot: prefix command dispatcher for chat platforms",
    no_args_is_help=True,
    add_completion=True,
)

console = Console()


def load_config_callback(ctx: typer.Context, workspace: str) -> str:
    """Validate the workspace and stash its Config in ctx.obj."""
    workspace_path = Path(workspace)
    if not workspace_path.is_dir():
        console.print(f"[red]Workspace directory not found: {workspace_path}[/red]")
        raise typer.Exit(1)

    try:
        config = Config.load(workspace_path)
    except (ValidationError, yaml.YAMLError, OSError) as e:
        console.print(f"[red]Error loading config: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    return workspace


@app.callback()
def main(
    ctx: typer.Context,
    workspace: str = typer.Option(
        Path.home() / ".triggerbot",
        "--workspace",
        "-w",
        help="Workspace holding config.user.yaml and config.runtime.yaml",
        callback=load_config_callback,
    ),
) -> None:
    """TriggerBot: prefix command dispatcher for chat platforms."""


@app.command()
def chat(ctx: typer.Context) -> None:
    """Dispatch commands typed into the local console."""
    chat_command(ctx)


@app.command("run")
def run(ctx: typer.Context) -> None:
    """Start the server for the configured platforms."""
    server_command(ctx)


@app.command("commands")
def list_commands(
    ctx: typer.Context,
    all_: Annotated[
        bool, typer.Option("--all", "-a", help="Include passive and hidden commands")
    ] = False,
) -> None:
    """List every registered command and its triggers."""
    config: Config = ctx.obj["config"]
    registry = CommandRegistry.with_builtins()

    table = Table(title="Commands")
    table.add_column("Usage")
    table.add_column("Triggers")
    table.add_column("Description")

    prefix = config.dispatch.default_prefixes[-1] if config.dispatch.default_prefixes else ""
    for command in registry.walk():
        if not all_ and (command.passive or command.hidden):
            continue
        table.add_row(
            escape(f"{prefix}{command.usage}"),
            ", ".join(command.triggers),
            command.description,
        )

    console.print(table)


if __name__ == "__main__":
    app()
