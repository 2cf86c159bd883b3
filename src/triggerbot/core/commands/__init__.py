"""Prefix commands: declarations, registry and matching helpers."""

from triggerbot.core.commands.argument import (
    Argument,
    EndlessArgument,
    Invalid,
    Valid,
    ValidEndNow,
    VerificationOutcome,
)
from triggerbot.core.commands.base import (
    Command,
    CommandGroup,
    FunctionCommand,
    PlaceholderCommand,
)
from triggerbot.core.commands.registry import CommandRegistry

__all__ = [
    "Argument",
    "EndlessArgument",
    "Invalid",
    "Valid",
    "ValidEndNow",
    "VerificationOutcome",
    "Command",
    "CommandGroup",
    "FunctionCommand",
    "PlaceholderCommand",
    "CommandRegistry",
]
