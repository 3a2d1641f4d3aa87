from __future__ import annotations

from typing import Dict, List, Sequence

from .models import Number, ProcessMetrics, ScheduledSlice, ScheduleResult, SystemMetrics


def _mean(values: Sequence[Number]) -> float:
    return sum(values) / len(values) if values else 0.0


def count_context_switches(timeline: Sequence[ScheduledSlice]) -> int:
    """Dispatches that hand the CPU to a different process than the previous slice."""
    ordered = sorted(timeline, key=lambda s: s.start_time)
    return sum(1 for prev, cur in zip(ordered, ordered[1:]) if prev.pid != cur.pid)


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Fill in ``result.system`` from the per-process entries and the timeline.

    The makespan runs from the first arrival to the last completion, so an
    idle stretch before anything arrives does not count against utilization.
    A process starves when it waits more than twice the average wait.
    """
    entries = result.processes
    busy: Number = sum(s.end_time - s.start_time for s in result.timeline)

    if entries:
        makespan = max(p.completion_time for p in entries) - min(p.arrival_time for p in entries)
        avg_wait = _mean([p.waiting_time for p in entries])
        starving = sum(1 for p in entries if p.waiting_time > 2 * avg_wait)
    else:
        makespan, starving = 0, 0

    result.system = SystemMetrics(
        cpu_busy_time=busy,
        makespan=makespan,
        throughput=len(entries) / makespan if makespan > 0 else 0.0,
        cpu_utilization=busy / makespan if makespan > 0 else 0.0,
        starvation_count=starving,
        idle_time=max(makespan - busy, 0),
        context_switches=count_context_switches(result.timeline),
    )
    return result.system


def summarize_process_metrics(processes: List[ProcessMetrics]) -> Dict[str, float]:
    """Averages used by the comparison table, plus the worst wait."""
    return {
        "avg_waiting": _mean([p.waiting_time for p in processes]),
        "avg_turnaround": _mean([p.turnaround_time for p in processes]),
        "avg_response": _mean([p.response_time for p in processes]),
        "max_waiting": max((p.waiting_time for p in processes), default=0),
    }
