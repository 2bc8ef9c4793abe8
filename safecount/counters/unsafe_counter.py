"""Unsynchronized counter kept as a negative control.

Never use this for real counting. It exists so the concurrency tests can
show that the workload harness is able to surface lost updates.
"""
import time


class UnsafeCounter:
    strategy = "unsafe"

    def __init__(self, initial: int = 0, yield_seconds: float = 0.0):
        self.value = initial
        # Sleeping between read and write widens the race window
        self.yield_seconds = yield_seconds

    def increment(self) -> int:
        current = self.value
        time.sleep(self.yield_seconds)
        self.value = current + 1
        return self.value

    def snapshot(self) -> int:
        return self.value

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"UnsafeCounter({self.value})"
