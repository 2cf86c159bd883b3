"""Platform-neutral message types and the MessageBus interface."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from triggerbot.utils.config import Config

logger = logging.getLogger(__name__)


@dataclass
class MessageContext:
    """Platform-specific origin of a message; user_id identifies the author."""

    user_id: str


T = TypeVar("T", bound=MessageContext)


@dataclass
class MessageEvent(Generic[T]):
    """
    An incoming message as seen by the command dispatcher.

    Attributes:
        content: Raw message text
        context: Platform-specific context used to reply
        bus: Bus the message arrived on
        mentions: Strings that mention the bot, each usable as a prefix
        permissions: The bot's effective permission names where the message
            was sent, None when the platform has no permission model there
    """

    content: str
    context: T
    bus: "MessageBus[T]"
    mentions: tuple[str, ...] = ()
    permissions: frozenset[str] | None = None

    @property
    def author_id(self) -> str:
        return self.context.user_id

    async def reply(self, content: str) -> None:
        await self.bus.reply(content, self.context)


OnMessage = Callable[[MessageEvent[T]], Awaitable[None]]


def split_message(content: str, limit: int) -> list[str]:
    """
    Cut a reply into pieces of at most `limit` characters.

    Cuts happen after the last newline that fits, or hard at `limit` when a
    single line is too long. Empty content gives no pieces.
    """
    chunks: list[str] = []
    rest = content
    while len(rest) > limit:
        cut = rest.rfind("\n", 0, limit) + 1 or limit
        chunks.append(rest[:cut])
        rest = rest[cut:]
    if rest:
        chunks.append(rest)
    return chunks


async def wait_for_shutdown(task: asyncio.Task | None, timeout: float = 2.0) -> None:
    """Give a bus' polling task a moment to finish after its client was closed."""
    if task is None or task.done():
        return
    try:
        await asyncio.wait_for(task, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Task {task.get_name()} did not finish within {timeout}s")
    except Exception as e:
        logger.debug(f"Task {task.get_name()} ended with error: {e}")


class MessageBus(ABC, Generic[T]):
    """A chat platform the worker can listen on and reply through."""

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Short platform identifier, e.g. 'telegram'."""

    @abstractmethod
    async def run(self, on_message: OnMessage[T]) -> None:
        """
        Listen for messages until stop() is called.

        Messages are delivered one at a time: the bus awaits on_message
        before handing over the next message. Raises RuntimeError when the
        bus is already running.
        """

    @abstractmethod
    def is_allowed(self, context: T) -> bool:
        """Whether the author of a message may use the bot at all."""

    @abstractmethod
    async def reply(self, content: str, context: T) -> None:
        """Send `content` back to where `context` came from."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop listening. Safe to call on a bus that never ran."""

    @staticmethod
    def from_config(config: Config) -> list["MessageBus[Any]"]:
        """Instantiate every enabled platform, telegram first."""
        from triggerbot.messagebus.discord_bus import DiscordBus
        from triggerbot.messagebus.telegram_bus import TelegramBus

        settings = config.messagebus
        buses: list["MessageBus[Any]"] = []
        if settings.telegram and settings.telegram.enabled:
            buses.append(TelegramBus(settings.telegram))
        if settings.discord and settings.discord.enabled:
            buses.append(DiscordBus(settings.discord))
        return buses
