"""Counters Module - race-free integer counters and the workloads that check them"""

from .safe_counter import SafeCounter
from .atomic_cell import AtomicCell, CasCounter
from .unsafe_counter import UnsafeCounter
from .registry import get_counter, incr, get_counts, reset_registry
from .workload import run_increments, run_trials, race_demo, IncrementRun, TrialReport

__all__ = [
    'SafeCounter',
    'AtomicCell',
    'CasCounter',
    'UnsafeCounter',
    'get_counter',
    'incr',
    'get_counts',
    'reset_registry',
    'run_increments',
    'run_trials',
    'race_demo',
    'IncrementRun',
    'TrialReport',
]
