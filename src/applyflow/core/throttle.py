from __future__ import annotations

import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable


class DiscoveryThrottled(Exception):
    def __init__(self, wait_seconds: int):
        super().__init__(f"Please wait {wait_seconds} seconds before fetching more jobs.")
        self.wait_seconds = wait_seconds


class ThrottleStore(ABC):
    """Single timestamp slot per key."""

    @abstractmethod
    def get(self, key: str) -> float | None:
        ...

    @abstractmethod
    def set(self, key: str, timestamp: float) -> None:
        ...


class InMemoryThrottleStore(ThrottleStore):
    def __init__(self) -> None:
        self._slots: dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> float | None:
        with self._lock:
            return self._slots.get(key)

    def set(self, key: str, timestamp: float) -> None:
        with self._lock:
            self._slots[key] = timestamp

    def clear(self) -> None:
        with self._lock:
            self._slots.clear()


class DiscoveryThrottle:
    def __init__(
        self,
        store: ThrottleStore,
        *,
        window_sec: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.window_sec = window_sec
        self.clock = clock

    @staticmethod
    def key_for(user_id: str) -> str:
        return f"jobs_{user_id}"

    def remaining(self, user_id: str) -> int:
        last = self.store.get(self.key_for(user_id))
        if last is None:
            return 0
        remaining = last + self.window_sec - self.clock()
        if remaining <= 0:
            return 0
        return max(1, math.ceil(remaining))

    def check(self, user_id: str) -> None:
        wait_seconds = self.remaining(user_id)
        if wait_seconds > 0:
            raise DiscoveryThrottled(wait_seconds)

    def record(self, user_id: str) -> None:
        self.store.set(self.key_for(user_id), self.clock())
