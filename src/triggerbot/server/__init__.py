"""Worker-based server architecture."""

from triggerbot.server.base import Worker
from triggerbot.server.messagebus_worker import MessageBusWorker
from triggerbot.server.server import Server

__all__ = ["Worker", "MessageBusWorker", "Server"]
