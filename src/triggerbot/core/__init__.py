"""Core command dispatch functionality."""

from .context import SharedContext
from .cooldown import CooldownManager
from .dispatcher import CommandDispatcher, CommandEvent, CommandEventListener

__all__ = [
    "CommandDispatcher",
    "CommandEvent",
    "CommandEventListener",
    "CooldownManager",
    "SharedContext",
]
