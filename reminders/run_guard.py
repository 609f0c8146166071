from __future__ import annotations

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Iterator


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class RunGuard:
    """
    Two-state guard for scheduled batches. A fire while RUNNING is skipped, not queued.

    Use `hold()` so the guard returns to IDLE on every exit path:

        with guard.hold() as acquired:
            if not acquired:
                return
            ...
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def try_acquire(self) -> bool:
        with self._lock:
            if self._state is RunState.RUNNING:
                return False
            self._state = RunState.RUNNING
            return True

    def release(self) -> None:
        with self._lock:
            self._state = RunState.IDLE

    @contextmanager
    def hold(self) -> Iterator[bool]:
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
