"""Tests for the console bus."""

from unittest.mock import AsyncMock, patch

import pytest

from triggerbot.messagebus.cli_bus import CliBus, CliContext
from triggerbot.utils.config import CliConfig


def test_context_defaults_to_cli_user():
    assert CliContext() == CliContext(user_id="cli-user")


class TestCliBus:
    """Tests for CliBus."""

    def test_platform_name(self):
        assert CliBus().platform_name == "cli"

    def test_is_allowed(self):
        assert CliBus().is_allowed(CliContext(user_id="anyone"))

    def test_to_event_uses_config(self):
        bus = CliBus(CliConfig(user_id="me", mention="@bot"))
        event = bus.to_event("@bot ping")
        assert event.author_id == "me"
        assert event.mentions == ("@bot",)
        assert event.permissions is None
        assert event.bus is bus

    @pytest.mark.asyncio
    async def test_run_dispatches_until_quit(self):
        bus = CliBus()
        on_message = AsyncMock()

        with patch("builtins.input", side_effect=["!ping", "   ", "!help", "quit"]):
            await bus.run(on_message)

        contents = [call.args[0].content for call in on_message.await_args_list]
        assert contents == ["!ping", "!help"]

    @pytest.mark.asyncio
    async def test_run_stops_on_eof(self):
        bus = CliBus()
        on_message = AsyncMock()

        with patch("builtins.input", side_effect=EOFError):
            await bus.run(on_message)

        on_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_bus(self):
        bus = CliBus()
        on_message = AsyncMock(side_effect=[RuntimeError("boom"), None])

        with patch("builtins.input", side_effect=["!a", "!b", "exit"]):
            await bus.run(on_message)

        assert on_message.await_count == 2

    @pytest.mark.asyncio
    async def test_reply_prints_without_markup(self):
        bus = CliBus()
        with patch.object(bus.console, "print") as mock_print:
            await bus.reply("!roll [sides]", CliContext())
        mock_print.assert_called_once_with("!roll [sides]", markup=False)

    @pytest.mark.asyncio
    async def test_stop_without_run_is_safe(self):
        await CliBus().stop()
