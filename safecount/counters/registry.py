"""Process-wide named counters.

Each name maps to one SafeCounter for the life of the process. Used by the
service layer to count requests and by the demo to keep per-step tallies.
"""
from threading import Lock
from typing import Dict

from .safe_counter import SafeCounter

_lock = Lock()
_counters: Dict[str, SafeCounter] = {}


def get_counter(name: str, initial: int = 0) -> SafeCounter:
    """Return the counter registered under name, creating it on first use.

    ``initial`` only applies when the counter is created.
    """
    with _lock:
        counter = _counters.get(name)
        if counter is None:
            counter = SafeCounter(initial)
            _counters[name] = counter
        return counter


def incr(name: str, n: int = 1) -> int:
    counter = get_counter(name)
    value = counter.snapshot()
    for _ in range(n):
        value = counter.increment()
    return value


def get_counts() -> Dict[str, int]:
    with _lock:
        items = list(_counters.items())
    return {name: counter.snapshot() for name, counter in items}


def reset_registry() -> None:
    with _lock:
        _counters.clear()
