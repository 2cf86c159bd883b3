"""Top-level server that supervises the workers."""

import asyncio
import logging
from typing import TYPE_CHECKING

from triggerbot.server.base import Worker
from triggerbot.server.messagebus_worker import MessageBusWorker

if TYPE_CHECKING:
    from triggerbot.core.context import SharedContext

logger = logging.getLogger(__name__)


class Server:
    """Runs the workers, restarts crashed ones and drains commands on shutdown."""

    def __init__(self, context: "SharedContext", monitor_interval: float = 5.0):
        self.context = context
        self.monitor_interval = monitor_interval
        self.workers: list[Worker] = []

    async def run(self) -> None:
        self.workers = self._build_workers()
        for worker in self.workers:
            worker.start()
            logger.info(f"Started {worker.name}")

        try:
            await self._supervise()
        except asyncio.CancelledError:
            logger.info("Server shutting down...")
            await self._shutdown()
            raise

    def _build_workers(self) -> list[Worker]:
        buses = self.context.messagebus_buses
        if not buses:
            logger.warning("No message buses configured")
            return []

        platforms = ", ".join(bus.platform_name for bus in buses)
        logger.info(f"Listening on: {platforms}")
        return [MessageBusWorker(self.context)]

    async def _supervise(self) -> None:
        while True:
            for worker in self.workers:
                if worker.has_crashed():
                    self._report_crash(worker)
                    worker.start()
            await asyncio.sleep(self.monitor_interval)

    def _report_crash(self, worker: Worker) -> None:
        error = worker.get_exception()
        if error is None:
            logger.warning(f"{worker.name} returned early, restarting")
        else:
            logger.error(f"{worker.name} crashed, restarting", exc_info=error)

    async def _shutdown(self) -> None:
        for worker in reversed(self.workers):
            await worker.stop()
        await self.context.dispatcher.drain()
