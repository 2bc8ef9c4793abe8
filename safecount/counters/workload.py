"""Concurrent increment workloads.

Increments are submitted as tasks to a fixed thread pool rather than one
thread per call. All tasks wait on a start gate so the first batch hits the
counter together, which is what exposes lost updates in unsafe counters.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from threading import Event
from typing import Callable, Dict, List, Protocol

from ..observability import COUNTER_INCREMENTS, WORKLOAD_LOST_UPDATES
from .safe_counter import SafeCounter
from .unsafe_counter import UnsafeCounter

logger = logging.getLogger(__name__)


class Counter(Protocol):
    strategy: str

    def increment(self) -> int: ...

    def snapshot(self) -> int: ...


CounterFactory = Callable[[int], Counter]


@dataclass(frozen=True)
class IncrementCall:
    value: int
    started_ns: int
    finished_ns: int


@dataclass
class IncrementRun:
    strategy: str
    initial: int
    total: int
    workers: int
    calls: List[IncrementCall] = field(default_factory=list)
    final: int = 0
    elapsed_seconds: float = 0.0

    @property
    def expected(self) -> int:
        return self.initial + self.total

    @property
    def observed(self) -> List[int]:
        """Values returned by increment(), in completion order"""
        return [c.value for c in self.calls]

    @property
    def lost_updates(self) -> int:
        return self.expected - self.final

    def is_exact(self) -> bool:
        return self.final == self.expected

    def duplicates(self) -> List[int]:
        seen: Dict[int, int] = {}
        for value in self.observed:
            seen[value] = seen.get(value, 0) + 1
        return sorted(v for v, n in seen.items() if n > 1)

    def missing(self) -> List[int]:
        wanted = set(range(self.initial + 1, self.expected + 1))
        return sorted(wanted - set(self.observed))

    def to_dict(self) -> Dict:
        return {
            "strategy": self.strategy,
            "initial": self.initial,
            "total": self.total,
            "workers": self.workers,
            "final": self.final,
            "expected": self.expected,
            "lost_updates": self.lost_updates,
            "duplicates": len(self.duplicates()),
            "elapsed_seconds": round(self.elapsed_seconds, 6),
        }


def run_increments(counter: Counter, total: int, workers: int = 8) -> IncrementRun:
    """Issue ``total`` increments against ``counter`` from ``workers`` threads"""
    if total < 0:
        raise ValueError("total must be >= 0")
    if workers < 1:
        raise ValueError("workers must be >= 1")

    initial = counter.snapshot()
    gate = Event()

    def one_increment() -> IncrementCall:
        gate.wait()
        started = time.monotonic_ns()
        value = counter.increment()
        return IncrementCall(value, started, time.monotonic_ns())

    run = IncrementRun(
        strategy=getattr(counter, "strategy", type(counter).__name__),
        initial=initial,
        total=total,
        workers=workers,
    )
    t0 = time.perf_counter()
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="incr") as pool:
        futures = [pool.submit(one_increment) for _ in range(total)]
        gate.set()
        for fut in as_completed(futures):
            run.calls.append(fut.result())
    run.elapsed_seconds = time.perf_counter() - t0
    run.final = counter.snapshot()

    COUNTER_INCREMENTS.labels(strategy=run.strategy).inc(total)
    if run.lost_updates > 0:
        WORKLOAD_LOST_UPDATES.labels(strategy=run.strategy).inc(run.lost_updates)
        logger.warning(
            "Lost updates detected strategy=%s expected=%s final=%s",
            run.strategy, run.expected, run.final,
        )
    return run


@dataclass
class TrialReport:
    strategy: str
    expected: int
    finals: List[int] = field(default_factory=list)

    @property
    def lost_updates(self) -> List[int]:
        return [self.expected - f for f in self.finals]

    @property
    def all_exact(self) -> bool:
        return all(f == self.expected for f in self.finals)

    @property
    def failed_trials(self) -> int:
        return sum(1 for f in self.finals if f != self.expected)


def run_trials(
    factory: CounterFactory,
    trials: int = 100,
    total: int = 40,
    workers: int = 20,
    initial: int = 0,
) -> TrialReport:
    """Repeat the same workload on fresh counters and collect the finals"""
    report = TrialReport(strategy="", expected=initial + total)
    for _ in range(trials):
        run = run_increments(factory(initial), total, workers)
        report.strategy = run.strategy
        report.finals.append(run.final)
    logger.info(
        "Trials finished strategy=%s trials=%s failed=%s",
        report.strategy, trials, report.failed_trials,
    )
    return report


@dataclass(frozen=True)
class RaceDemoResult:
    expected: int
    unsafe_final: int
    safe_final: int


def race_demo(iterations: int = 20, workers: int = 8, yield_seconds: float = 0.001) -> RaceDemoResult:
    """Increment an unsafe and a safe counter side by side.

    Each iteration submits one increment to each counter, mirroring the
    classic demo that starts a pair of incrementer threads per loop.
    """
    unsafe = UnsafeCounter(0, yield_seconds=yield_seconds)
    safe = SafeCounter(0)
    gate = Event()

    def bump(counter: Counter, label: str) -> None:
        gate.wait()
        logger.info("Incremented value of %s is: %s", label, counter.increment())

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="race") as pool:
        futures = []
        for _ in range(iterations):
            futures.append(pool.submit(bump, unsafe, "integer"))
            futures.append(pool.submit(bump, safe, "atomic integer"))
        gate.set()
        for fut in futures:
            fut.result()

    result = RaceDemoResult(iterations, unsafe.snapshot(), safe.snapshot())
    logger.info(
        "Race demo finished expected=%s unsafe=%s safe=%s",
        result.expected, result.unsafe_final, result.safe_final,
    )
    return result
