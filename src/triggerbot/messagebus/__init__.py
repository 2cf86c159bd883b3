"""Message bus implementations for different platforms."""

from triggerbot.messagebus.base import MessageBus, MessageContext, MessageEvent
from triggerbot.messagebus.telegram_bus import TelegramBus
from triggerbot.messagebus.discord_bus import DiscordBus
from triggerbot.messagebus.cli_bus import CliBus

__all__ = [
    "MessageBus",
    "MessageContext",
    "MessageEvent",
    "TelegramBus",
    "DiscordBus",
    "CliBus",
]
