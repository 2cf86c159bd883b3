"""Routing of incoming messages to registered commands."""

import asyncio
import concurrent.futures
import inspect
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from triggerbot.core.commands.argument import Invalid, ValidEndNow
from triggerbot.core.commands.base import Command
from triggerbot.core.commands.ordering import Candidate, sort_candidates
from triggerbot.core.commands.registry import CommandRegistry
from triggerbot.core.commands.tokenizer import SEPARATOR, read_token, strip_trigger
from triggerbot.core.cooldown import CooldownManager
from triggerbot.core.exceptions import (
    BotPermissionError,
    CooldownActiveError,
    PermissionDeniedError,
)
from triggerbot.utils.config import DispatchConfig

if TYPE_CHECKING:
    from triggerbot.messagebus.base import MessageEvent

logger = logging.getLogger(__name__)

HELP_FOOTER = "* means required. [] means optional. ... means multiple values."

PREFIX_QUERIES = ("prefix", "prefixes")


@dataclass
class CommandEvent:
    """Details of one dispatch: how the command was invoked and with what."""

    event: "MessageEvent"
    dispatcher: "CommandDispatcher"
    prefix: str
    trigger: str  # as typed by the user
    command_trigger: str  # as registered
    command: Command | None
    arguments: list[Any] = field(default_factory=list)

    async def reply(self, content: str) -> None:
        await self.event.reply(content)


@dataclass
class MatchResult:
    """Outcome of matching message text against the candidate list."""

    command: Command | None = None
    command_trigger: str = ""
    trigger: str = ""
    arguments: list[Any] = field(default_factory=list)
    possible_commands: list[Command] = field(default_factory=list)


class CommandEventListener:
    """Receives notifications about command executions. Override what you need."""

    def on_command_executed(
        self, command: Command, event: "MessageEvent", command_event: CommandEvent
    ) -> Any:
        pass

    def on_command_execution_failed(
        self,
        command: Command,
        event: "MessageEvent",
        command_event: CommandEvent,
        error: Exception,
    ) -> Any:
        pass


PrefixFunction = Callable[["MessageEvent"], list[str] | None]
HelpFunction = Callable[["MessageEvent", CommandEvent, list[Command]], str | None]


def run_in_thread(function: Callable[..., Any], *args: Any) -> "asyncio.Future[Any]":
    """
    Run function on a fresh daemon thread and return an awaitable for its result.

    Each call gets its own thread, so any number of blocking handlers can
    wait on each other without starving a fixed-size pool.
    """
    future: concurrent.futures.Future = concurrent.futures.Future()

    def target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(function(*args))
        except BaseException as e:
            future.set_exception(e)

    name = getattr(function, "__qualname__", "handler")
    threading.Thread(target=target, name=f"command-{name}", daemon=True).start()
    return asyncio.wrap_future(future)


class CommandDispatcher:
    """
    Resolves the prefix of a message, finds the most specific command that
    fully matches the rest and runs it.

    Commands flagged execute_async run as separate tasks (plain handlers on
    a thread of their own) and handle() returns right away. Every other
    command runs inside handle(), so the bus delivers the next message only
    after it finished.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        config: DispatchConfig | None = None,
        cooldowns: CooldownManager | None = None,
    ):
        self.registry = registry
        self.config = config or DispatchConfig()
        self.cooldowns = cooldowns or CooldownManager()
        self._prefix_function: PrefixFunction | None = None
        self._help_function: HelpFunction | None = None
        self._listeners: list[CommandEventListener] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def developers(self) -> list[str]:
        return self.config.developers

    # ------------------------------------------------------------------
    # Listeners and hooks
    # ------------------------------------------------------------------

    def add_listener(self, *listeners: CommandEventListener) -> "CommandDispatcher":
        for listener in listeners:
            if listener not in self._listeners:
                self._listeners.append(listener)
        return self

    def remove_listener(self, *listeners: CommandEventListener) -> "CommandDispatcher":
        for listener in listeners:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return self

    @property
    def listeners(self) -> tuple[CommandEventListener, ...]:
        """Snapshot of the registered listeners."""
        return tuple(self._listeners)

    def set_prefix_function(self, function: PrefixFunction | None) -> "CommandDispatcher":
        """
        Set the hook returning the prefixes for a message, e.g. per guild.

        The mention prefix is always active on top of whatever it returns.
        """
        self._prefix_function = function
        return self

    def set_help_function(self, function: HelpFunction | None) -> "CommandDispatcher":
        self._help_function = function
        return self

    def get_prefixes(self, event: "MessageEvent") -> list[str]:
        """Prefixes for this message, longest first. Empty strings are dropped."""
        if self._prefix_function is not None:
            prefixes = self._prefix_function(event)
            if prefixes is not None:
                return sorted((p for p in prefixes if p), key=len, reverse=True)
            logger.warning("Prefix function returned None, using the default prefixes")
        return list(self.config.default_prefixes)

    def get_help(
        self,
        event: "MessageEvent",
        command_event: CommandEvent,
        commands: list[Command],
    ) -> str:
        """Usage message for commands the user probably meant."""
        if self._help_function is not None:
            content = self._help_function(event, command_event, commands)
            if content is not None:
                return content
            logger.warning("Help function returned None, using the default help")

        lines = ["**Help**"]
        lines.extend(f"{command_event.prefix}{command.usage}" for command in commands)
        lines.append(f"_{HELP_FOOTER}_")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle(self, event: "MessageEvent") -> bool:
        """
        Process one incoming message.

        Returns:
            True if the message was treated as a command: a command matched,
            the prefix query was answered or a usage message was sent
        """
        message = event.content
        prefixes = self.get_prefixes(event)

        prefix = self._mention_prefix(event)
        if prefix is not None:
            if message[len(prefix):] in PREFIX_QUERIES:
                await self._send(event, self._render_prefixes(prefixes))
                return True
        else:
            prefix = next((p for p in prefixes if message.startswith(p)), None)

        if prefix is None:
            return False

        started = time.perf_counter()
        text = message[len(prefix):]
        candidates = sort_candidates(self.registry.candidates(event, self))
        result = self.match(text, candidates, event)

        if result.command is None:
            if self.config.help_enabled and result.possible_commands:
                command_event = CommandEvent(event, self, prefix, text, text, None)
                help_message = self.get_help(event, command_event, result.possible_commands)
                await self._send(event, help_message)
                return True
            return False

        command_event = CommandEvent(
            event=event,
            dispatcher=self,
            prefix=prefix,
            trigger=result.trigger,
            command_trigger=result.command_trigger,
            command=result.command,
            arguments=result.arguments,
        )

        if result.command.execute_async:
            task = asyncio.create_task(
                self._execute(result.command, command_event, started)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            await self._execute(result.command, command_event, started)
        return True

    async def drain(self) -> None:
        """Wait for every command started with execute_async to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def match(
        self,
        text: str,
        candidates: list[Candidate],
        event: "MessageEvent | None" = None,
    ) -> MatchResult:
        """
        Try candidates in order and return the first that consumes all of text.

        Args:
            text: Message content without the prefix
            candidates: (trigger, command) pairs, most specific first
            event: Message passed to the argument verifiers

        Returns:
            MatchResult with command set on success; otherwise possible_commands
            lists the commands whose trigger matched but arguments did not
        """
        possible: dict[int, Command] = {}

        for command_trigger, command in candidates:
            rest = strip_trigger(text, command_trigger, command.case_sensitive)
            if rest is None:
                continue

            arguments, suggest = self._read_arguments(command, rest, event)
            if arguments is None:
                if suggest:
                    owner = command.parent if command.is_placeholder else command
                    if owner is not None:
                        possible.setdefault(id(owner), owner)
                continue

            return MatchResult(
                command=command,
                command_trigger=command_trigger,
                trigger=text[: len(command_trigger)],
                arguments=arguments,
            )

        return MatchResult(possible_commands=list(possible.values()))

    def _read_arguments(
        self, command: Command, rest: str, event: "MessageEvent | None"
    ) -> tuple[list[Any] | None, bool]:
        """
        Tokenize and verify rest against the command's arguments.

        Returns:
            (values, False) on success, (None, suggest) on failure where
            suggest tells whether the command is worth showing as help
        """
        values: list[Any] = []
        ended = False

        for argument in command.arguments:
            if rest:
                if not rest.startswith(SEPARATOR):
                    return None, False
                rest = rest[len(SEPARATOR):]

            if argument.endless:
                token, rest = rest, ""
            else:
                token, rest = read_token(rest, argument)

            if not token and not argument.accept_empty:
                return None, True

            outcome = argument.verify(event, token)
            if isinstance(outcome, Invalid):
                logger.debug(
                    f"Argument {argument.name!r} of {command.usage!r} "
                    f"{outcome.reason or 'is invalid'}: {token!r}"
                )
                return None, True

            values.append(outcome.value)
            if isinstance(outcome, ValidEndNow):
                ended = True
                break

        if rest:
            return None, False

        if len(values) != len(command.arguments):
            if not ended:
                return None, False
            omitted = command.arguments[len(values):]
            values.extend(argument.get_default(event) for argument in omitted)

        return values, False

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _execute(
        self, command: Command, command_event: CommandEvent, started: float
    ) -> None:
        event = command_event.event

        try:
            self._check_permissions(command, command_event)
            self._acquire_cooldown(command, command_event)
        except PermissionDeniedError as e:
            logger.info(f"Not executing {e.trigger}, missing {e.missing}")
            await self._send(event, self._render_missing_permissions(e))
            return
        except CooldownActiveError as e:
            await self._send(
                event,
                "This command has a cooldown, please try again in "
                f"{e.remaining_ms / 1000} seconds",
            )
            return

        try:
            await self._invoke(command, command_event)
        except BotPermissionError as e:
            self.cooldowns.cancel(command, event.author_id)
            logger.warning(
                f"Attempted to execute command ({command_event.command_trigger}) "
                f"with arguments {command_event.arguments}, though it failed due to "
                f"missing permissions, time elapsed {self._elapsed(started)}ms: {e}"
            )
            await self._send(event, "Missing permissions")
            return
        except Exception as e:
            self.cooldowns.cancel(command, event.author_id)
            logger.exception(
                f"Attempted to execute command ({command_event.command_trigger}) "
                f"with the arguments {command_event.arguments} but it failed"
            )
            await self._notify("on_command_execution_failed", command, event, command_event, e)
            if self.config.reply_on_failure:
                await self._send(
                    event,
                    f"Something went wrong while executing **{command_event.command_trigger}**",
                )
            return

        logger.info(
            f"Executed command ({command_event.command_trigger}) with the arguments "
            f"{command_event.arguments}, time elapsed {self._elapsed(started)}ms"
        )
        await self._notify("on_command_executed", command, event, command_event)

    async def _invoke(self, command: Command, command_event: CommandEvent) -> None:
        args = (command_event.event, command_event, *command_event.arguments)

        if command.execute_async and not inspect.iscoroutinefunction(command.execute):
            result = await run_in_thread(command.execute, *args)
        else:
            result = command.execute(*args)

        if inspect.isawaitable(result):
            await result

    def _check_permissions(self, command: Command, command_event: CommandEvent) -> None:
        granted = command_event.event.permissions
        if granted is None:
            return

        required = dict.fromkeys([*self.config.generic_permissions, *command.bot_permissions])
        missing = [permission for permission in required if permission not in granted]
        if missing:
            raise PermissionDeniedError(command_event.command_trigger, missing)

    def _acquire_cooldown(self, command: Command, command_event: CommandEvent) -> None:
        if command.cooldown_ms <= 0:
            return

        remaining = self.cooldowns.try_start(command, command_event.event.author_id)
        if remaining > 0:
            raise CooldownActiveError(command_event.command_trigger, remaining)

    async def _notify(self, method: str, *args: Any) -> None:
        for listener in self.listeners:
            try:
                result = getattr(listener, method)(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Command listener {listener!r} failed in {method}")

    async def _send(self, event: "MessageEvent", content: str) -> None:
        try:
            await event.reply(content)
        except Exception as e:
            logger.error(f"Failed to send reply: {e}")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @staticmethod
    def _mention_prefix(event: "MessageEvent") -> str | None:
        for mention in event.mentions:
            if event.content.startswith(mention + SEPARATOR):
                return mention + SEPARATOR
        return None

    @staticmethod
    def _render_prefixes(prefixes: list[str]) -> str:
        if not prefixes:
            return "I only respond to mentions"
        verb = "es are" if len(prefixes) > 1 else " is"
        return f"My prefix{verb} **{', '.join(prefixes)}**"

    @staticmethod
    def _render_missing_permissions(error: PermissionDeniedError) -> str:
        plural = "s" if len(error.missing) > 1 else ""
        listing = "\n".join(error.missing)
        return f"Missing permission{plural} to execute **{error.trigger}**\n```\n{listing}\n```"

    @staticmethod
    def _elapsed(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)
