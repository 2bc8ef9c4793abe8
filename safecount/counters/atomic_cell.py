from threading import Lock


class AtomicCell:
    """Owned integer cell with compare-and-set.

    CPython exposes no hardware CAS, so the compare and the store happen
    under a private lock. Callers never see the lock; they only get
    ``get`` and ``compare_and_set``.
    """

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = Lock()

    def get(self) -> int:
        with self._lock:
            return self._value

    def compare_and_set(self, expected: int, new: int) -> bool:
        """Store ``new`` only if the cell still holds ``expected``"""
        with self._lock:
            if self._value != expected:
                return False
            self._value = new
            return True


class CasCounter:
    """Counter built on an AtomicCell and a retry loop"""

    strategy = "cas"

    def __init__(self, initial: int = 0):
        self._cell = AtomicCell(initial)

    def increment(self) -> int:
        while True:
            current = self._cell.get()
            if self._cell.compare_and_set(current, current + 1):
                return current + 1

    def snapshot(self) -> int:
        return self._cell.get()

    def __int__(self) -> int:
        return self.snapshot()

    def __repr__(self) -> str:
        return f"CasCounter({self.snapshot()})"
