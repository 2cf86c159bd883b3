"""Discord message bus implementation."""

import asyncio
import logging
from dataclasses import dataclass

import discord

from triggerbot.messagebus.base import (
    MessageBus,
    MessageContext,
    MessageEvent,
    OnMessage,
    split_message,
    wait_for_shutdown,
)
from triggerbot.utils.config import DiscordConfig

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 2000


@dataclass
class DiscordContext(MessageContext):
    """Context for Discord messages; replies go to channel_id."""

    channel_id: str
    guild_id: str | None = None


def channel_permissions(message: discord.Message) -> frozenset[str] | None:
    """Names of the permissions the bot holds in the message's channel, None in DMs."""
    if message.guild is None:
        return None
    me = message.guild.me
    permissions = message.channel.permissions_for(me)  # type: ignore[union-attr,arg-type]
    return frozenset(name for name, granted in permissions if granted)


def _intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.messages = True
    intents.message_content = True
    return intents


class DiscordBus(MessageBus[DiscordContext]):
    """Discord platform implementation using discord.py."""

    platform_name = "discord"

    def __init__(self, config: DiscordConfig):
        self.config = config
        self.client: discord.Client | None = None
        self._client_task: asyncio.Task | None = None

    def accepts(self, message: discord.Message) -> bool:
        """Skip empty messages, our own messages and other channels when one is configured."""
        if not message.content:
            return False
        if self.client is not None and message.author == self.client.user:
            return False
        channel_id = self.config.channel_id
        return channel_id is None or str(message.channel.id) == channel_id

    def to_event(self, message: discord.Message) -> MessageEvent[DiscordContext]:
        """Translate a discord.py message into a dispatcher event."""
        context = DiscordContext(
            user_id=str(message.author.id),
            channel_id=str(message.channel.id),
            guild_id=str(message.guild.id) if message.guild else None,
        )

        mentions: tuple[str, ...] = ()
        if self.client and self.client.user:
            # Nicknamed members are mentioned as <@!id>
            bot_id = self.client.user.id
            mentions = (f"<@{bot_id}>", f"<@!{bot_id}>")

        return MessageEvent(
            content=message.content,
            context=context,
            bus=self,
            mentions=mentions,
            permissions=channel_permissions(message),
        )

    async def run(self, on_message: OnMessage[DiscordContext]) -> None:
        """
        Connect and deliver messages until stop() is called.

        discord.py runs every gateway event in a task of its own, so accepted
        messages go through a queue and are handed to on_message one at a time.
        """
        if self._client_task is not None:
            raise RuntimeError("DiscordBus already running")

        self.client = discord.Client(intents=_intents())
        callback = on_message
        inbox: asyncio.Queue[discord.Message] = asyncio.Queue()

        @self.client.event
        async def on_message(message: discord.Message) -> None:
            if self.accepts(message):
                inbox.put_nowait(message)

        delivery = asyncio.create_task(self._deliver(inbox, callback), name="discord-delivery")
        self._client_task = asyncio.create_task(
            self.client.start(self.config.bot_token), name="discord-client"
        )
        logger.info("DiscordBus started")
        try:
            await self._client_task
        finally:
            delivery.cancel()
            try:
                await delivery
            except asyncio.CancelledError:
                pass

    async def _deliver(
        self, inbox: "asyncio.Queue[discord.Message]", callback: OnMessage[DiscordContext]
    ) -> None:
        while True:
            event = self.to_event(await inbox.get())
            logger.debug(
                f"Discord message from {event.author_id} in {event.context.channel_id}"
            )
            try:
                await callback(event)
            except Exception as e:
                logger.error(f"Error in message callback: {e}")

    def is_allowed(self, context: DiscordContext) -> bool:
        allowed = self.config.allowed_user_ids
        return not allowed or context.user_id in allowed

    async def reply(self, content: str, context: DiscordContext) -> None:
        """Send `content` to the originating channel, split at the Discord length limit."""
        if self.client is None:
            raise RuntimeError("DiscordBus not started")

        channel = self.client.get_channel(int(context.channel_id))
        if channel is None:
            raise ValueError(f"Channel {context.channel_id} not found")

        for chunk in split_message(content, MESSAGE_LIMIT):
            await channel.send(chunk)  # type: ignore[union-attr]
        logger.debug(f"Sent Discord reply to {context.channel_id}")

    async def stop(self) -> None:
        client, self.client = self.client, None
        if client is None:
            return

        await client.close()
        await wait_for_shutdown(self._client_task)
        self._client_task = None
        logger.info("DiscordBus stopped")
