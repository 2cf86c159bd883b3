"""Base classes for prefix commands."""

import weakref
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from triggerbot.core.commands.argument import Argument
from triggerbot.core.exceptions import CommandDefinitionError

if TYPE_CHECKING:
    from triggerbot.core.dispatcher import CommandDispatcher, CommandEvent
    from triggerbot.messagebus.base import MessageEvent


COMMAND_OPTIONS = (
    "case_sensitive",
    "execute_async",
    "passive",
    "cooldown_ms",
    "bot_permissions",
    "developer_only",
    "hidden",
)


class Command(ABC):
    """
    Base class for prefix commands.

    Subclasses declare their triggers, arguments and flags as class
    attributes and implement execute(). execute() receives the verified
    argument values positionally and may be a plain method or a coroutine.
    """

    name: str = ""
    aliases: list[str] = []
    description: str = ""
    arguments: list[Argument] = []
    case_sensitive: bool = False
    execute_async: bool = False
    passive: bool = False
    cooldown_ms: int = 0
    bot_permissions: list[str] = []
    developer_only: bool = False
    hidden: bool = False

    is_placeholder: bool = False

    def __init__(self) -> None:
        self.aliases = list(self.aliases)
        self.arguments = list(self.arguments)
        self.bot_permissions = list(self.bot_permissions)
        self.children: list[Command] = []
        self._parent: weakref.ref[Command] | None = None
        self._validate()

    def _validate(self) -> None:
        triggers = self.triggers
        if not triggers or any(not t or t != t.strip() for t in triggers):
            raise CommandDefinitionError(
                f"{type(self).__name__} has an empty or padded trigger: {triggers!r}"
            )

        for argument in self.arguments[:-1]:
            if argument.endless:
                raise CommandDefinitionError(
                    f"{self.name}: only the last argument may be endless "
                    f"({argument.name!r} is not last)"
                )

        seen_optional = False
        for argument in self.arguments:
            if argument.is_optional:
                seen_optional = True
            elif seen_optional:
                raise CommandDefinitionError(
                    f"{self.name}: required argument {argument.name!r} "
                    "follows an optional one"
                )

    @property
    def triggers(self) -> list[str]:
        """Name followed by every alias."""
        return [self.name, *self.aliases]

    @property
    def parent(self) -> "Command | None":
        if self._parent is None:
            return None
        return self._parent()

    @property
    def qualified_name(self) -> str:
        """Full trigger chain from the root command, using primary names."""
        parent = self.parent
        if parent is None:
            return self.name
        if self.is_placeholder:
            return parent.qualified_name
        return f"{parent.qualified_name} {self.name}"

    @property
    def cooldown_key(self) -> "Command":
        """The command whose cooldown this one shares; itself unless a placeholder."""
        return self

    @property
    def argument_info(self) -> str:
        return " ".join(argument.info for argument in self.arguments)

    @property
    def usage(self) -> str:
        return f"{self.qualified_name} {self.argument_info}".strip()

    def add_subcommand(self, child: "Command") -> "Command":
        """Attach child below this command; the child keeps a weak back-reference."""
        if child.parent is not None:
            raise CommandDefinitionError(
                f"{child.name} is already a subcommand of {child.parent.name}"
            )
        child._parent = weakref.ref(self)
        self.children.append(child)
        return child

    def variants(self) -> list["PlaceholderCommand"]:
        """Placeholders for every way of leaving out trailing optional arguments."""
        optional = 0
        for argument in reversed(self.arguments):
            if not argument.is_optional:
                break
            optional += 1
        return [PlaceholderCommand(self, omitted) for omitted in range(1, optional + 1)]

    def verify(self, event: "MessageEvent | None", dispatcher: "CommandDispatcher | None") -> bool:
        """Whether this command may be dispatched for the given event."""
        if self.developer_only:
            if event is None or dispatcher is None:
                return False
            return event.author_id in dispatcher.developers
        return True

    @abstractmethod
    def execute(self, event: "MessageEvent", command_event: "CommandEvent", *args: Any) -> Any:
        """Run the command body."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.usage!r}>"


class PlaceholderCommand(Command):
    """
    Synthetic command standing in for a source command with trailing
    optional arguments left out. Omitted values come from the defaults.
    """

    is_placeholder = True

    def __init__(self, source: Command, omitted: int):
        self.source = source
        self.name = source.name
        self.aliases = source.aliases
        self.description = source.description
        self.arguments = source.arguments[: len(source.arguments) - omitted]
        self.case_sensitive = source.case_sensitive
        self.execute_async = source.execute_async
        self.passive = source.passive
        self.cooldown_ms = source.cooldown_ms
        self.bot_permissions = source.bot_permissions
        self.developer_only = source.developer_only
        self.hidden = source.hidden
        super().__init__()
        self._parent = weakref.ref(source)

    @property
    def cooldown_key(self) -> Command:
        return self.source.cooldown_key

    def variants(self) -> list["PlaceholderCommand"]:
        return []

    def verify(self, event: "MessageEvent | None", dispatcher: "CommandDispatcher | None") -> bool:
        return self.source.verify(event, dispatcher)

    def execute(self, event: "MessageEvent", command_event: "CommandEvent", *args: Any) -> Any:
        omitted = self.source.arguments[len(args):]
        defaults = [argument.get_default(event) for argument in omitted]
        return self.source.execute(event, command_event, *args, *defaults)


class FunctionCommand(Command):
    """Command whose body is a plain function or coroutine function."""

    def __init__(
        self,
        name: str,
        callback: Callable[..., Any],
        *,
        aliases: list[str] | None = None,
        description: str = "",
        arguments: list[Argument] | None = None,
        **options: Any,
    ):
        self.name = name
        self.callback = callback
        self.aliases = aliases or []
        self.description = description or (callback.__doc__ or "").strip()
        self.arguments = arguments or []
        for key, value in options.items():
            if key not in COMMAND_OPTIONS:
                raise CommandDefinitionError(f"Unknown command option: {key}")
            setattr(self, key, value)
        super().__init__()

    def execute(self, event: "MessageEvent", command_event: "CommandEvent", *args: Any) -> Any:
        return self.callback(event, command_event, *args)


class CommandGroup(Command):
    """Passive container that only exists to hold subcommands."""

    passive = True

    def __init__(
        self,
        name: str,
        *children: Command,
        aliases: list[str] | None = None,
        description: str = "",
    ):
        self.name = name
        self.aliases = aliases or []
        self.description = description
        super().__init__()
        for child in children:
            self.add_subcommand(child)

    def execute(self, event: "MessageEvent", command_event: "CommandEvent", *args: Any) -> Any:
        raise NotImplementedError(f"{self.name} is a passive command group")
