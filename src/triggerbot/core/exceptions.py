"""Custom exceptions for triggerbot."""


class CommandDefinitionError(Exception):
    """Raised when a command declaration is malformed."""

    pass


class PermissionDeniedError(Exception):
    """Raised when the bot lacks permissions required by a command."""

    def __init__(self, trigger: str, missing: list[str]):
        self.trigger = trigger
        self.missing = missing
        super().__init__(
            f"Missing permission{'s' if len(missing) > 1 else ''} "
            f"to execute {trigger}: {', '.join(missing)}"
        )


class CooldownActiveError(Exception):
    """Raised when a command is used again before its cooldown expired."""

    def __init__(self, trigger: str, remaining_ms: int):
        self.trigger = trigger
        self.remaining_ms = remaining_ms
        super().__init__(f"{trigger} is on cooldown for another {remaining_ms}ms")


class BotPermissionError(Exception):
    """Raised by command handlers when the platform refused an action."""

    pass
