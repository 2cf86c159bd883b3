"""Console message bus for local testing."""

import asyncio
import logging
from dataclasses import dataclass

from rich.console import Console

from triggerbot.messagebus.base import MessageBus, MessageContext, MessageEvent, OnMessage
from triggerbot.utils.config import CliConfig

logger = logging.getLogger(__name__)

QUIT_WORDS = frozenset({"quit", "exit", "q"})


@dataclass
class CliContext(MessageContext):
    """Context for console messages."""

    user_id: str = "cli-user"


class CliBus(MessageBus[CliContext]):
    """Reads commands from stdin and prints replies with rich."""

    platform_name = "cli"

    def __init__(self, config: CliConfig | None = None):
        self.config = config or CliConfig()
        self.console = Console()
        self._stop_event = asyncio.Event()
        self._running = False

    def is_allowed(self, context: CliContext) -> bool:
        return True

    def to_event(self, text: str) -> MessageEvent[CliContext]:
        """Build a dispatcher event; the console has no permission model."""
        return MessageEvent(
            content=text,
            context=CliContext(user_id=self.config.user_id),
            bus=self,
            mentions=(self.config.mention,),
        )

    async def _read_line(self) -> str | None:
        """Next line typed by the user, None when the session should end."""
        try:
            line = await asyncio.to_thread(input, "You: ")
        except (EOFError, KeyboardInterrupt):
            logger.info("Console input closed")
            return None
        if line.strip().lower() in QUIT_WORDS:
            return None
        return line

    async def run(self, on_message: OnMessage[CliContext]) -> None:
        if self._running:
            raise RuntimeError("CliBus already running")

        self._running = True
        self._stop_event.clear()
        try:
            while not self._stop_event.is_set():
                line = await self._read_line()
                if line is None:
                    break
                if not line.strip():
                    continue

                try:
                    await on_message(self.to_event(line))
                except Exception as e:
                    logger.error(f"Error in message callback: {e}")
        finally:
            self._running = False
            logger.info("CliBus stopped")

    async def reply(self, content: str, context: CliContext) -> None:
        # Usage strings contain [brackets] that rich would read as markup
        self.console.print(content, markup=False)

    async def stop(self) -> None:
        if self._running:
            self._stop_event.set()
