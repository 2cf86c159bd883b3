"""Supervised background workers."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from triggerbot.core.context import SharedContext


class Worker(ABC):
    """
    A long-running coroutine owned by the server.

    The server polls `has_crashed` and calls `start` again to restart a
    worker; `restarts` counts how often that happened.
    """

    def __init__(self, context: "SharedContext"):
        self.context = context
        self.name = type(self).__name__
        self.logger = logging.getLogger(f"triggerbot.server.{self.name}")
        self.restarts = 0
        self._task: asyncio.Task | None = None

    @abstractmethod
    async def run(self) -> None:
        """Worker body, expected to run until cancelled."""

    def start(self) -> asyncio.Task:
        if self._task is not None:
            self.restarts += 1
        self._task = asyncio.create_task(self.run(), name=self.name)
        return self._task

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def has_crashed(self) -> bool:
        """True once the task finished on its own instead of being cancelled."""
        task = self._task
        return task is not None and task.done() and not task.cancelled()

    def get_exception(self) -> BaseException | None:
        if not self.has_crashed():
            return None
        return self._task.exception()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            self.logger.debug(f"{self.name} cancelled")
