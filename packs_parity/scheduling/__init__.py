"""Concurrent scheduling of per-file comparisons."""

from .scheduler import CounterSnapshot, RunCounters, RunReport, RunState, Scheduler

__all__ = ["CounterSnapshot", "RunCounters", "RunReport", "RunState", "Scheduler"]
