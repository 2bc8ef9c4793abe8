from threading import Lock


class SafeCounter:
    """Integer counter whose increment is a single locked read-modify-write"""

    strategy = "lock"

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = Lock()

    def increment(self) -> int:
        """Advance the value by one and return the new value"""
        with self._lock:
            self._value += 1
            return self._value

    def snapshot(self) -> int:
        """Return the value after some whole number of completed increments"""
        with self._lock:
            return self._value

    def __int__(self) -> int:
        return self.snapshot()

    def __repr__(self) -> str:
        return f"SafeCounter({self.snapshot()})"
