"""Built-in command handlers."""

from typing import TYPE_CHECKING

from triggerbot.core.commands import verifiers
from triggerbot.core.commands.argument import Argument
from triggerbot.core.commands.base import Command

if TYPE_CHECKING:
    from triggerbot.core.commands.registry import CommandRegistry
    from triggerbot.core.dispatcher import CommandEvent
    from triggerbot.messagebus.base import MessageEvent


class HelpCommand(Command):
    """Show available commands."""

    name = "help"
    aliases = ["?", "commands"]
    description = "Show available commands, or the usage of one command"
    arguments = [
        Argument("command", verifiers.string, endless=True, default=None),
    ]
    _registry: "CommandRegistry | None" = None

    def set_registry(self, registry: "CommandRegistry") -> None:
        """Set the registry reference for dynamic help generation."""
        self._registry = registry

    async def execute(
        self, event: "MessageEvent", command_event: "CommandEvent", query: str | None
    ) -> None:
        await command_event.reply(self.render(event, command_event, query))

    def render(
        self, event: "MessageEvent", command_event: "CommandEvent", query: str | None
    ) -> str:
        if self._registry is None:
            return "Help unavailable: registry not set."

        prefix = command_event.prefix
        dispatcher = command_event.dispatcher

        if query:
            wanted = query.strip().lower()
            found: list[Command] = []
            for trigger, command in self._registry.candidates(event, dispatcher):
                if trigger.lower() == wanted and not command.is_placeholder:
                    if command not in found:
                        found.append(command)
            if not found:
                return f"No command named `{query.strip()}`"
            lines = []
            for command in found:
                lines.append(f"`{prefix}{command.usage}` - {command.description}")
                if command.aliases:
                    lines.append(f"Aliases: {', '.join(command.aliases)}")
            return "\n".join(lines)

        lines = ["**Available Commands:**"]
        for command in self._registry.walk():
            if command.passive or command.hidden:
                continue
            if not command.verify(event, dispatcher):
                continue
            lines.append(f"`{prefix}{command.usage}` - {command.description}")
        return "\n".join(lines)


class PingCommand(Command):
    """Check that the bot is responding."""

    name = "ping"
    description = "Check that the bot is responding"
    cooldown_ms = 3000

    async def execute(self, event: "MessageEvent", command_event: "CommandEvent") -> None:
        await command_event.reply("Pong!")
