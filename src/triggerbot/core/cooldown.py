"""Per-command, per-user cooldown bookkeeping."""

import threading
import time
from typing import Callable

from triggerbot.core.commands.base import Command

_STRIPES = 32


class CooldownManager:
    """
    In-memory ledger of the last time a user started each command.

    Read-then-write on a key happens under that key's stripe lock, so
    handlers running in worker threads and the event loop can share it
    without serializing unrelated keys.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._started: dict[tuple[Command, str], float] = {}
        self._locks = [threading.Lock() for _ in range(_STRIPES)]

    def _lock(self, key: tuple[Command, str]) -> threading.Lock:
        return self._locks[hash(key) % _STRIPES]

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _remaining(self, key: tuple[Command, str], duration_ms: int) -> int:
        started = self._started.get(key)
        if started is None:
            return 0
        left = started + duration_ms - self._now_ms()
        if left <= 0:
            self._started.pop(key, None)
            return 0
        return max(1, int(left))

    def remaining(self, command: Command, user_id: str) -> int:
        """Milliseconds until user_id may use command again, 0 if usable now."""
        if command.cooldown_ms <= 0:
            return 0
        key = (command.cooldown_key, user_id)
        with self._lock(key):
            return self._remaining(key, command.cooldown_ms)

    def start(self, command: Command, user_id: str) -> None:
        """Record now as the last use of command by user_id."""
        if command.cooldown_ms <= 0:
            return
        key = (command.cooldown_key, user_id)
        with self._lock(key):
            self._started[key] = self._now_ms()

    def try_start(self, command: Command, user_id: str) -> int:
        """
        Start the cooldown if it is not active.

        Returns:
            0 when the cooldown was started, otherwise the milliseconds left
        """
        if command.cooldown_ms <= 0:
            return 0
        key = (command.cooldown_key, user_id)
        with self._lock(key):
            left = self._remaining(key, command.cooldown_ms)
            if left == 0:
                self._started[key] = self._now_ms()
            return left

    def cancel(self, command: Command, user_id: str) -> None:
        """Forget the last use, e.g. because the invocation failed."""
        if command.cooldown_ms <= 0:
            return
        key = (command.cooldown_key, user_id)
        with self._lock(key):
            self._started.pop(key, None)

    def __len__(self) -> int:
        return len(self._started)
