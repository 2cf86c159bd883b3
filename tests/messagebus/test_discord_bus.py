"""Tests for DiscordBus."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from triggerbot.messagebus.discord_bus import DiscordBus, DiscordContext, channel_permissions
from triggerbot.utils.config import DiscordConfig


def make_message(content="!ping", guild=True):
    message = MagicMock()
    message.content = content
    message.author.id = 111
    message.channel.id = 222
    if guild:
        message.guild.id = 333
    else:
        message.guild = None
    return message


def test_discord_bus_platform_name():
    """Test that DiscordBus has correct platform name."""
    bus = DiscordBus(DiscordConfig(bot_token="test_token"))
    assert bus.platform_name == "discord"


class TestChannelPermissions:
    """Tests for channel_permissions."""

    def test_none_in_direct_messages(self):
        assert channel_permissions(make_message(guild=False)) is None

    def test_granted_names_only(self):
        message = make_message()
        message.channel.permissions_for.return_value = [
            ("send_messages", True),
            ("kick_members", False),
            ("embed_links", True),
        ]
        assert channel_permissions(message) == frozenset({"send_messages", "embed_links"})
        message.channel.permissions_for.assert_called_once_with(message.guild.me)


class TestDiscordBusToEvent:
    """Tests for DiscordBus.to_event."""

    def test_builds_context_and_mentions(self):
        bus = DiscordBus(DiscordConfig(bot_token="test_token"))
        bus.client = MagicMock()
        bus.client.user.id = 42

        message = make_message()
        message.channel.permissions_for.return_value = [("send_messages", True)]
        event = bus.to_event(message)

        assert event.content == "!ping"
        assert event.context == DiscordContext(user_id="111", channel_id="222", guild_id="333")
        assert event.mentions == ("<@42>", "<@!42>")
        assert event.permissions == frozenset({"send_messages"})

    def test_direct_message(self):
        bus = DiscordBus(DiscordConfig(bot_token="test_token"))
        event = bus.to_event(make_message(guild=False))
        assert event.context.guild_id is None
        assert event.mentions == ()
        assert event.permissions is None


@pytest.mark.asyncio
async def test_discord_bus_run_stop():
    """Test that DiscordBus can run and stop."""
    bus = DiscordBus(DiscordConfig(bot_token="test_token"))

    mock_client = MagicMock()
    mock_client.start = AsyncMock()
    mock_client.close = AsyncMock()

    with patch("triggerbot.messagebus.discord_bus.discord.Client", return_value=mock_client):
        await bus.run(AsyncMock())
        await bus.stop()

    mock_client.start.assert_awaited_once_with("test_token")
    mock_client.close.assert_awaited_once()
    assert bus.client is None


class TestDiscordBusReply:
    """Tests for DiscordBus.reply method."""

    @pytest.mark.asyncio
    async def test_reply_sends_to_channel_id(self):
        """reply should send to context.channel_id."""
        bus = DiscordBus(DiscordConfig(bot_token="test-token"))

        mock_client = MagicMock()
        mock_channel = MagicMock()
        mock_channel.send = AsyncMock()
        mock_client.get_channel.return_value = mock_channel
        bus.client = mock_client

        ctx = DiscordContext(user_id="user123", channel_id="456789")
        await bus.reply(content="Test reply", context=ctx)

        mock_client.get_channel.assert_called_once_with(456789)
        mock_channel.send.assert_called_once_with("Test reply")

    @pytest.mark.asyncio
    async def test_reply_raises_when_not_started(self):
        bus = DiscordBus(DiscordConfig(bot_token="test-token"))
        with pytest.raises(RuntimeError, match="DiscordBus not started"):
            await bus.reply("hi", DiscordContext(user_id="u", channel_id="1"))

    @pytest.mark.asyncio
    async def test_reply_raises_for_unknown_channel(self):
        bus = DiscordBus(DiscordConfig(bot_token="test-token"))
        bus.client = MagicMock()
        bus.client.get_channel.return_value = None
        with pytest.raises(ValueError, match="Channel 1 not found"):
            await bus.reply("hi", DiscordContext(user_id="u", channel_id="1"))

    @pytest.mark.asyncio
    async def test_stop_without_run_is_safe(self):
        await DiscordBus(DiscordConfig(bot_token="test_token")).stop()


class TestDiscordBusAccepts:
    """Tests for DiscordBus.accepts."""

    def test_skips_empty_content(self):
        bus = DiscordBus(DiscordConfig(bot_token="test_token"))
        assert not bus.accepts(make_message(content=""))

    def test_skips_own_messages(self):
        bus = DiscordBus(DiscordConfig(bot_token="test_token"))
        bus.client = MagicMock()
        message = make_message()
        message.author = bus.client.user
        assert not bus.accepts(message)

    def test_configured_channel_only(self):
        bus = DiscordBus(DiscordConfig(bot_token="test_token", channel_id="222"))
        assert bus.accepts(make_message())

        other = make_message()
        other.channel.id = 999
        assert not bus.accepts(other)


@pytest.mark.asyncio
async def test_discord_reply_splits_long_content():
    bus = DiscordBus(DiscordConfig(bot_token="test-token"))
    bus.client = MagicMock()
    channel = bus.client.get_channel.return_value
    channel.send = AsyncMock()

    await bus.reply("x" * 2500, DiscordContext(user_id="u", channel_id="1"))

    sent = [call.args[0] for call in channel.send.await_args_list]
    assert [len(chunk) for chunk in sent] == [2000, 500]


@pytest.mark.asyncio
async def test_discord_bus_delivers_messages_in_order():
    """A slow callback holds back the next message even though discord.py dispatches concurrently."""
    bus = DiscordBus(DiscordConfig(bot_token="test_token"))
    handlers = {}
    order = []
    fast_seen = asyncio.Event()

    client = MagicMock()
    client.event = lambda handler: handlers.setdefault(handler.__name__, handler)
    client.close = AsyncMock()

    async def start(token):
        # discord.py runs each gateway event as a separate task
        await asyncio.gather(
            *(
                asyncio.create_task(handlers["on_message"](make_message(content)))
                for content in ("!slow", "!fast")
            )
        )
        await fast_seen.wait()

    client.start = start

    async def on_message(event):
        if event.content == "!slow":
            order.append("slow-start")
            await asyncio.sleep(0.05)
            order.append("slow-end")
        else:
            order.append("fast")
            fast_seen.set()

    with patch("triggerbot.messagebus.discord_bus.discord.Client", return_value=client):
        await asyncio.wait_for(bus.run(on_message), timeout=2)

    assert order == ["slow-start", "slow-end", "fast"]
