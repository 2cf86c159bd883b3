"""Shared test fixtures for triggerbot test suite."""

from pathlib import Path
from typing import Any, Callable

import pytest

from triggerbot.core.commands.base import FunctionCommand
from triggerbot.core.commands.registry import CommandRegistry
from triggerbot.core.context import SharedContext
from triggerbot.core.dispatcher import CommandDispatcher
from triggerbot.messagebus.base import MessageBus, MessageContext, MessageEvent
from triggerbot.utils.config import Config, DispatchConfig


class RecordingBus(MessageBus[MessageContext]):
    """Bus that keeps every reply in memory."""

    platform_name = "fake"

    def __init__(self) -> None:
        self.replies: list[str] = []

    async def run(self, on_message) -> None:
        pass

    def is_allowed(self, context: MessageContext) -> bool:
        return True

    async def reply(self, content: str, context: MessageContext) -> None:
        self.replies.append(content)

    async def stop(self) -> None:
        pass


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config with workspace pointing to tmp_path."""
    return Config(workspace=tmp_path)


@pytest.fixture
def test_context(test_config: Config) -> SharedContext:
    """SharedContext with test config."""
    return SharedContext(config=test_config)


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def make_event(bus: RecordingBus) -> Callable[..., MessageEvent]:
    """Factory for events arriving on the recording bus."""

    def factory(
        content: str,
        user_id: str = "user-1",
        permissions: frozenset[str] | None = None,
        mentions: tuple[str, ...] = ("<@42>", "<@!42>"),
    ) -> MessageEvent:
        return MessageEvent(
            content=content,
            context=MessageContext(user_id=user_id),
            bus=bus,
            mentions=mentions,
            permissions=permissions,
        )

    return factory


@pytest.fixture
def calls() -> list[tuple[str, tuple[Any, ...]]]:
    """(command name, arguments) for every executed test command."""
    return []


@pytest.fixture
def make_command(calls) -> Callable[..., FunctionCommand]:
    """Factory for commands that record their invocations in `calls`."""

    def factory(name: str, *arguments, callback=None, **options) -> FunctionCommand:
        def record(event, command_event, *args):
            calls.append((name, args))
            if callback is not None:
                return callback(event, command_event, *args)

        return FunctionCommand(name, record, arguments=list(arguments), **options)

    return factory


@pytest.fixture
def registry() -> CommandRegistry:
    return CommandRegistry()


@pytest.fixture
def dispatcher(registry: CommandRegistry) -> CommandDispatcher:
    return CommandDispatcher(registry, DispatchConfig(default_prefixes=["!"]))
