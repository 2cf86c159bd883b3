"""Command registry holding the forest of registered commands."""

from typing import TYPE_CHECKING, Iterator

from triggerbot.core.commands.base import Command
from triggerbot.core.commands.tokenizer import SEPARATOR

if TYPE_CHECKING:
    from triggerbot.core.dispatcher import CommandDispatcher
    from triggerbot.messagebus.base import MessageEvent


class CommandRegistry:
    """Registry for prefix commands and their subcommand trees."""

    def __init__(self) -> None:
        self._commands: list[Command] = []

    def register(self, *commands: Command) -> None:
        """Register root commands; registering the same instance twice is a no-op."""
        for command in commands:
            if command not in self._commands:
                self._commands.append(command)

    def unregister(self, *commands: Command) -> None:
        for command in commands:
            if command in self._commands:
                self._commands.remove(command)

    def list_commands(self) -> list[Command]:
        """Root commands in registration order."""
        return list(self._commands)

    def walk(self) -> Iterator[Command]:
        """Every registered node, depth-first, passive ones included."""
        stack = list(reversed(self._commands))
        while stack:
            command = stack.pop()
            yield command
            stack.extend(reversed(command.children))

    def candidates(
        self,
        event: "MessageEvent | None" = None,
        dispatcher: "CommandDispatcher | None" = None,
    ) -> list[tuple[str, Command]]:
        """
        Flatten the forest into (trigger, command) pairs.

        Every alias of a subcommand is appended to every trigger of its
        parent. Placeholders for omitted optional arguments follow their
        source command. Passive commands and commands whose verify() rejects
        the event are left out, their children are still reachable.

        Args:
            event: Message being dispatched, passed to Command.verify
            dispatcher: Dispatcher handling the event, passed to Command.verify

        Returns:
            Candidates in registration order, not yet sorted by specificity
        """
        pairs: list[tuple[str, Command]] = []
        for command in self._commands:
            self._collect(command, [""], event, dispatcher, pairs)
        return pairs

    def _collect(
        self,
        command: Command,
        parent_triggers: list[str],
        event: "MessageEvent | None",
        dispatcher: "CommandDispatcher | None",
        pairs: list[tuple[str, Command]],
    ) -> None:
        triggers = [
            f"{parent}{SEPARATOR}{alias}" if parent else alias
            for parent in parent_triggers
            for alias in command.triggers
        ]

        if not command.passive and command.verify(event, dispatcher):
            nodes = [command, *command.variants()]
            for trigger in triggers:
                pairs.extend((trigger, node) for node in nodes)

        for child in command.children:
            self._collect(child, triggers, event, dispatcher, pairs)

    @classmethod
    def with_builtins(cls) -> "CommandRegistry":
        """Create registry with built-in commands registered."""
        from triggerbot.core.commands.handlers import HelpCommand, PingCommand

        registry = cls()
        help_command = HelpCommand()
        help_command.set_registry(registry)
        registry.register(help_command, PingCommand())
        return registry
