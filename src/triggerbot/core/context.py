from triggerbot.core.commands.registry import CommandRegistry
from triggerbot.core.dispatcher import CommandDispatcher
from triggerbot.messagebus.base import MessageBus
from triggerbot.utils.config import Config


class SharedContext:
    """Global shared state for the application."""

    config: Config
    command_registry: CommandRegistry
    dispatcher: CommandDispatcher
    messagebus_buses: list[MessageBus]

    def __init__(self, config: Config):
        self.config = config
        self.command_registry = CommandRegistry.with_builtins()
        self.dispatcher = CommandDispatcher(self.command_registry, config.dispatch)
        self.messagebus_buses = MessageBus.from_config(config)
