"""Worker feeding platform messages into the command dispatcher."""

import asyncio
from typing import TYPE_CHECKING, Any

from triggerbot.messagebus.base import MessageBus, MessageEvent, OnMessage
from triggerbot.server.base import Worker

if TYPE_CHECKING:
    from triggerbot.core.context import SharedContext


class MessageBusWorker(Worker):
    """Runs every configured bus concurrently; one dispatcher serves them all."""

    def __init__(self, context: "SharedContext"):
        super().__init__(context)
        self.buses = context.messagebus_buses

    async def run(self) -> None:
        self.logger.info(f"Listening on {len(self.buses)} bus(es)")
        try:
            await asyncio.gather(*(bus.run(self._on_message(bus)) for bus in self.buses))
        except asyncio.CancelledError:
            await asyncio.gather(*(bus.stop() for bus in self.buses))
            raise

    def _on_message(self, bus: MessageBus[Any]) -> OnMessage[Any]:
        async def on_message(event: MessageEvent[Any]) -> None:
            if not bus.is_allowed(event.context):
                self.logger.debug(f"Ignored {bus.platform_name} message from {event.author_id}")
                return
            try:
                if await self.context.dispatcher.handle(event):
                    self.logger.debug(f"Dispatched {bus.platform_name} command")
            except Exception as e:
                self.logger.error(f"Error handling {bus.platform_name} message: {e}")

        return on_message
