"""`triggerbot run`: serve commands on the configured platforms."""

import asyncio

import typer

from triggerbot.core.context import SharedContext
from triggerbot.server.server import Server
from triggerbot.utils.logging import setup_logging


def server_command(ctx: typer.Context) -> None:
    config = ctx.obj.get("config")
    setup_logging(config, console_output=True)

    if not config.messagebus.enabled:
        typer.echo("Message bus disabled, nothing to serve")
        raise typer.Exit(1)

    context = SharedContext(config)
    platforms = ", ".join(bus.platform_name for bus in context.messagebus_buses)
    typer.echo(f"Prefixes: {', '.join(config.dispatch.default_prefixes)}")
    typer.echo(f"Serving commands on platform(s): {platforms}")
    typer.echo("Press Ctrl+C to stop")

    try:
        asyncio.run(Server(context).run())
    except KeyboardInterrupt:
        typer.echo("\nServer stopped")
