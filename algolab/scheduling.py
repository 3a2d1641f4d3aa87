from __future__ import annotations

import logging
import math
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_QUANTUM, MLFQ_LEVELS, MLFQ_QUANTUM_GROWTH
from .errors import ValidationError
from .metrics import compute_system_metrics
from .models import Number, Process, ProcessMetrics, ScheduledSlice, ScheduleResult
from .workload import parse_quanta, require_positive, validate_processes

logger = logging.getLogger(__name__)

SortKey = Callable[[Process], tuple]


def _process_metrics(p: Process, start_time: Number, completion_time: Number) -> ProcessMetrics:
    turnaround_time = completion_time - p.arrival_time
    return ProcessMetrics(
        pid=p.pid,
        arrival_time=p.arrival_time,
        burst_time=p.burst_time,
        start_time=start_time,
        completion_time=completion_time,
        waiting_time=turnaround_time - p.burst_time,
        turnaround_time=turnaround_time,
        response_time=start_time - p.arrival_time,
        priority=p.priority,
    )


def _finish(
    algorithm: str,
    processes: List[Process],
    start: Dict[str, Number],
    completion: Dict[str, Number],
    timeline: List[ScheduledSlice],
    quantum: Optional[Number] = None,
    quanta: Tuple[Number, ...] = (),
) -> ScheduleResult:
    """
    Build the report: one entry per process ordered by start time, then
    arrival, then input order.
    """
    order = {p.pid: i for i, p in enumerate(processes)}
    metrics = [_process_metrics(p, start[p.pid], completion[p.pid]) for p in processes]
    metrics.sort(key=lambda m: (m.start_time, m.arrival_time, order[m.pid]))

    result = ScheduleResult(
        algorithm=algorithm,
        quantum=quantum,
        processes=metrics,
        timeline=timeline,
        quanta=quanta,
    )
    compute_system_metrics(result)
    logger.info(f"{algorithm}: scheduled {len(metrics)} processes in {len(timeline)} slices")
    return result


def _by_arrival(processes: List[Process]) -> List[Process]:
    # sorted() is stable, so equal arrivals keep input order.
    return sorted(processes, key=lambda p: p.arrival_time)


def _require_quantum(quantum: Optional[Number]) -> Number:
    if quantum is None:
        raise ValidationError("quantum", "Round Robin requires a positive time quantum")
    return require_positive(quantum, "quantum")


def schedule_fcfs(processes: Iterable[Process], quantum: Optional[Number] = None) -> ScheduleResult:
    """
    First-Come First-Serve (non-preemptive) scheduling.
    """
    procs = validate_processes(processes)
    queue = _by_arrival(procs)

    time: Number = 0
    timeline: List[ScheduledSlice] = []
    start: Dict[str, Number] = {}
    completion: Dict[str, Number] = {}

    for i, p in enumerate(queue):
        if time < p.arrival_time:
            time = p.arrival_time

        start[p.pid] = time
        end_time = time + p.burst_time
        waiting = tuple(q.pid for q in queue[i + 1:] if q.arrival_time <= time)
        timeline.append(ScheduledSlice(pid=p.pid, start_time=time, end_time=end_time, ready_queue=waiting))

        completion[p.pid] = end_time
        time = end_time

    return _finish("FCFS", procs, start, completion, timeline, quantum=quantum)


def _run_non_preemptive(algorithm: str, procs: List[Process], key: SortKey) -> ScheduleResult:
    """
    At each decision point pick the arrived, unstarted process with the
    smallest ``key`` and run it to completion.
    """
    pending = _by_arrival(procs)

    time: Number = pending[0].arrival_time if pending else 0
    timeline: List[ScheduledSlice] = []
    start: Dict[str, Number] = {}
    completion: Dict[str, Number] = {}

    while pending:
        ready = [p for p in pending if p.arrival_time <= time]
        if not ready:
            # Nothing has arrived yet: jump to the next arrival.
            time = pending[0].arrival_time
            continue

        p = min(ready, key=key)
        pending.remove(p)

        start[p.pid] = time
        end_time = time + p.burst_time
        waiting = tuple(q.pid for q in ready if q is not p)
        timeline.append(ScheduledSlice(pid=p.pid, start_time=time, end_time=end_time, ready_queue=waiting))
        logger.debug(f"{algorithm}: t={time} dispatch {p.pid} (ready: {', '.join(waiting) or '-'})")

        completion[p.pid] = end_time
        time = end_time

    return _finish(algorithm, procs, start, completion, timeline)


def _run_preemptive(algorithm: str, procs: List[Process], key: Callable[[Process, Number], tuple]) -> ScheduleResult:
    """
    Re-evaluate ``key`` at every arrival. The running process keeps the CPU
    until it completes or the next arrival, and the clock jumps straight to
    that event.
    """
    remaining: Dict[str, Number] = {p.pid: p.burst_time for p in procs}

    time: Number = min((p.arrival_time for p in procs), default=0)
    timeline: List[ScheduledSlice] = []
    start: Dict[str, Number] = {}
    completion: Dict[str, Number] = {}

    def next_arrival_after(t: Number) -> Optional[Number]:
        return min((p.arrival_time for p in procs if p.arrival_time > t and remaining[p.pid] > 0), default=None)

    while any(rt > 0 for rt in remaining.values()):
        ready = [p for p in procs if p.arrival_time <= time and remaining[p.pid] > 0]
        if not ready:
            nxt = next_arrival_after(time)
            if nxt is None:
                break
            time = nxt
            continue

        current = min(ready, key=lambda p: key(p, remaining[p.pid]))
        start.setdefault(current.pid, time)

        finish_time = time + remaining[current.pid]
        nxt_arrival = next_arrival_after(time)
        if nxt_arrival is not None and nxt_arrival < finish_time:
            end_time = nxt_arrival
            remaining[current.pid] -= end_time - time
        else:
            end_time = finish_time
            remaining[current.pid] = 0
            completion[current.pid] = end_time

        waiting = tuple(p.pid for p in ready if p is not current)
        timeline.append(
            ScheduledSlice(
                pid=current.pid,
                start_time=time,
                end_time=end_time,
                remaining=remaining[current.pid],
                ready_queue=waiting,
            )
        )
        time = end_time

    return _finish(algorithm, procs, start, completion, timeline)


def _order_of(procs: List[Process]) -> Dict[str, int]:
    return {p.pid: i for i, p in enumerate(procs)}


def _priority_value(p: Process) -> float:
    # Treat missing priority as lowest priority.
    return p.priority if p.priority is not None else float("inf")


def schedule_sjf(processes: Iterable[Process], quantum: Optional[Number] = None) -> ScheduleResult:
    """
    Shortest Job First (non-preemptive).

    Among processes that have arrived and not started, choose the smallest
    burst time; ties go to the earlier arrival, then input order.
    """
    procs = validate_processes(processes)
    order = _order_of(procs)
    return _run_non_preemptive(
        "SJF (non-preemptive)",
        procs,
        key=lambda p: (p.burst_time, p.arrival_time, order[p.pid]),
    )


def schedule_priority(processes: Iterable[Process], quantum: Optional[Number] = None) -> ScheduleResult:
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority. Ties are broken by
    earlier arrival time, then input order.
    """
    procs = validate_processes(processes)
    order = _order_of(procs)
    return _run_non_preemptive(
        "Priority (non-preemptive)",
        procs,
        key=lambda p: (_priority_value(p), p.arrival_time, order[p.pid]),
    )


def schedule_srtf(processes: Iterable[Process], quantum: Optional[Number] = None) -> ScheduleResult:
    """
    Shortest Remaining Time First (preemptive SJF).
    """
    procs = validate_processes(processes)
    order = _order_of(procs)
    return _run_preemptive(
        "SJF (preemptive)",
        procs,
        key=lambda p, rem: (rem, p.arrival_time, order[p.pid]),
    )


def schedule_priority_preemptive(processes: Iterable[Process], quantum: Optional[Number] = None) -> ScheduleResult:
    """
    Preemptive Priority scheduling: a newly arrived process with a smaller
    priority number takes the CPU from the running one.
    """
    procs = validate_processes(processes)
    order = _order_of(procs)
    return _run_preemptive(
        "Priority (preemptive)",
        procs,
        key=lambda p, rem: (_priority_value(p), p.arrival_time, order[p.pid]),
    )


def schedule_rr(processes: Iterable[Process], quantum: Optional[Number] = None) -> ScheduleResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Processes that arrive while a slice runs join the ready queue ahead of
    the process that was just preempted.
    """
    q = _require_quantum(quantum)
    procs = validate_processes(processes)

    pending: Deque[Process] = deque(_by_arrival(procs))
    ready: Deque[Process] = deque()
    remaining: Dict[str, Number] = {p.pid: p.burst_time for p in procs}

    time: Number = pending[0].arrival_time if pending else 0
    timeline: List[ScheduledSlice] = []
    start: Dict[str, Number] = {}
    completion: Dict[str, Number] = {}

    def enqueue_new_arrivals(current_time: Number) -> None:
        while pending and pending[0].arrival_time <= current_time:
            ready.append(pending.popleft())

    while ready or pending:
        enqueue_new_arrivals(time)
        if not ready:
            # Jump to next arrival if CPU is idle
            time = pending[0].arrival_time
            continue

        current = ready.popleft()
        start.setdefault(current.pid, time)

        if remaining[current.pid] <= q:
            end_time = time + remaining[current.pid]
            remaining[current.pid] = 0
        else:
            end_time = time + q
            remaining[current.pid] -= q

        timeline.append(
            ScheduledSlice(
                pid=current.pid,
                start_time=time,
                end_time=end_time,
                remaining=remaining[current.pid],
                ready_queue=tuple(p.pid for p in ready),
            )
        )
        time = end_time

        # Arrivals during the slice go first, then the preempted process.
        enqueue_new_arrivals(time)

        if remaining[current.pid] > 0:
            ready.append(current)
        else:
            completion[current.pid] = time

    return _finish("Round Robin", procs, start, completion, timeline, quantum=q)


def mlfq_quanta(quantum: Optional[Number] = None, quanta: Optional[Sequence[Number] | str] = None) -> List[Number]:
    """
    Resolve the bounded MLFQ level quanta.

    An explicit ``quanta`` list wins; otherwise the levels grow
    geometrically from ``quantum`` (2 -> 2, 4, 8).
    """
    if quanta is not None:
        return parse_quanta(quanta)
    base = DEFAULT_QUANTUM if quantum is None else require_positive(quantum, "quantum")
    return [base * MLFQ_QUANTUM_GROWTH ** level for level in range(MLFQ_LEVELS)]


def schedule_mlfq(
    processes: Iterable[Process],
    quantum: Optional[Number] = None,
    quanta: Optional[Sequence[Number] | str] = None,
) -> ScheduleResult:
    """
    Multi-Level Feedback Queue.

    - Each bounded level runs round-robin with its own quantum; one final
      level below them has no quantum and runs processes to completion.
    - New arrivals always enter the highest-priority queue (Q0).
    - A process that uses its entire quantum without finishing is demoted
      one level (capped at the lowest).
    - Arrivals during a slice reach Q0 before the demoted process is queued.
    - If the CPU is idle, time jumps to the next arrival.
    """
    levels = mlfq_quanta(quantum, quanta)
    procs = validate_processes(processes)

    limits: List[Number] = list(levels) + [math.inf]
    queues: List[Deque[Process]] = [deque() for _ in limits]
    pending: Deque[Process] = deque(_by_arrival(procs))
    remaining: Dict[str, Number] = {p.pid: p.burst_time for p in procs}

    time: Number = pending[0].arrival_time if pending else 0
    timeline: List[ScheduledSlice] = []
    start: Dict[str, Number] = {}
    completion: Dict[str, Number] = {}

    def enqueue_new_arrivals(current_time: Number) -> None:
        while pending and pending[0].arrival_time <= current_time:
            queues[0].append(pending.popleft())

    while pending or any(queues):
        enqueue_new_arrivals(time)

        level = next((i for i, queue in enumerate(queues) if queue), None)
        if level is None:
            time = pending[0].arrival_time
            continue

        current = queues[level].popleft()
        start.setdefault(current.pid, time)

        if remaining[current.pid] <= limits[level]:
            end_time = time + remaining[current.pid]
            remaining[current.pid] = 0
        else:
            end_time = time + limits[level]
            remaining[current.pid] -= limits[level]

        waiting = tuple(p.pid for queue in queues for p in queue)
        timeline.append(
            ScheduledSlice(
                pid=current.pid,
                start_time=time,
                end_time=end_time,
                remaining=remaining[current.pid],
                level=level,
                ready_queue=waiting,
            )
        )
        time = end_time

        enqueue_new_arrivals(time)

        if remaining[current.pid] > 0:
            next_level = min(level + 1, len(queues) - 1)
            if next_level != level:
                logger.debug(f"MLFQ: demoted {current.pid} from Q{level} to Q{next_level}")
            queues[next_level].append(current)
        else:
            completion[current.pid] = time

    return _finish("MLFQ", procs, start, completion, timeline, quantum=levels[0], quanta=tuple(levels))


ALGORITHMS = {
    "fcfs": schedule_fcfs,
    "sjf": schedule_sjf,
    "srtf": schedule_srtf,
    "priority": schedule_priority,
    "priority-p": schedule_priority_preemptive,
    "rr": schedule_rr,
    "mlfq": schedule_mlfq,
}

QUANTUM_ALGORITHMS = {"rr", "mlfq"}


def run_algorithm(
    name: str,
    processes: Iterable[Process],
    quantum: Optional[Number] = None,
    quanta: Optional[Sequence[Number] | str] = None,
) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. ``quantum`` is used by Round Robin
    and as the MLFQ base quantum; ``quanta`` only by MLFQ.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise ValidationError("algorithm", f"unknown algorithm {name!r} (choose from {', '.join(ALGORITHMS)})")

    if name == "mlfq":
        return schedule_mlfq(processes, quantum=quantum, quanta=quanta)
    return ALGORITHMS[name](processes, quantum=quantum)
