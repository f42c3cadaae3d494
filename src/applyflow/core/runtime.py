from __future__ import annotations

from applyflow.core.throttle import InMemoryThrottleStore

_THROTTLE_STORE: InMemoryThrottleStore | None = None


def get_throttle_store() -> InMemoryThrottleStore:
    global _THROTTLE_STORE
    if _THROTTLE_STORE is None:
        _THROTTLE_STORE = InMemoryThrottleStore()
    return _THROTTLE_STORE
