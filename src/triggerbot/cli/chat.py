"""Chat CLI command dispatching console input."""

import asyncio

import typer

from triggerbot.core.context import SharedContext
from triggerbot.messagebus.cli_bus import CliBus
from triggerbot.server.messagebus_worker import MessageBusWorker
from triggerbot.utils.config import Config
from triggerbot.utils.logging import setup_logging


async def run_chat(config: Config) -> None:
    """Feed console lines to the dispatcher until the user quits."""
    context = SharedContext(config)
    bus = CliBus(config.messagebus.cli)
    context.messagebus_buses = [bus]

    prefixes = ", ".join(config.dispatch.default_prefixes)
    bus.console.print(
        f"Prefixes: {prefixes} (or mention {config.messagebus.cli.mention}). "
        "Type 'quit' to exit.",
        markup=False,
    )

    try:
        await MessageBusWorker(context).run()
    finally:
        await context.dispatcher.drain()


def chat_command(ctx: typer.Context) -> None:
    """Dispatch commands typed into the local console."""
    config = ctx.obj.get("config")

    setup_logging(config, console_output=False)

    asyncio.run(run_chat(config))
