from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .config import DEFAULT_HEAD, DISK_CYLINDERS
from .errors import ValidationError
from .models import DiskResult, DiskStep
from .workload import parse_int_list, require_positive, to_int

logger = logging.getLogger(__name__)

ALGORITHMS = {
    "fcfs": "FCFS",
    "sstf": "SSTF",
    "scan": "SCAN",
    "cscan": "C-SCAN",
    "look": "LOOK",
    "clook": "C-LOOK",
}

DIRECTIONS = ("left", "right")

# (cylinder, serviced) pairs; unserviced entries are boundary waypoints.
Plan = List[Tuple[int, bool]]


def _sstf(head: int, requests: List[int]) -> List[int]:
    pending = list(requests)
    current = head
    order: List[int] = []
    while pending:
        # min() keeps the first of equally near requests.
        best = min(range(len(pending)), key=lambda i: abs(pending[i] - current))
        current = pending.pop(best)
        order.append(current)
    return order


def _plan_sweep(head: int, first: List[int], waypoints: List[int], second: List[int]) -> Plan:
    """
    Serve ``first``, travel through ``waypoints``, then serve ``second``.
    Waypoints that coincide with the position before or after them are
    dropped, so a request sitting on the boundary is served in its place.
    """
    raw: Plan = [(r, True) for r in first]
    raw.extend((w, False) for w in waypoints)
    raw.extend((r, True) for r in second)

    plan: Plan = []
    for i, (position, serviced) in enumerate(raw):
        if not serviced:
            previous = plan[-1][0] if plan else head
            following = raw[i + 1][0] if i + 1 < len(raw) else None
            if position in (previous, following):
                continue
        plan.append((position, serviced))
    return plan


def plan_requests(algorithm: str, head: int, direction: str, requests: List[int], cylinders: int) -> Plan:
    """
    Order the requests for ``algorithm``. Requests sitting exactly under the
    head belong to the side the head is moving towards.
    """
    top = cylinders - 1

    if algorithm == "fcfs":
        return [(r, True) for r in requests]
    if algorithm == "sstf":
        return [(r, True) for r in _sstf(head, requests)]

    if direction == "right":
        ahead = sorted(r for r in requests if r >= head)
        behind = sorted((r for r in requests if r < head), reverse=True)
        near_edge, far_edge = top, 0
    else:
        ahead = sorted((r for r in requests if r <= head), reverse=True)
        behind = sorted(r for r in requests if r > head)
        near_edge, far_edge = 0, top

    if algorithm == "scan":
        return _plan_sweep(head, ahead, [near_edge], behind)
    if algorithm == "cscan":
        return _plan_sweep(head, ahead, [near_edge, far_edge], list(reversed(behind)))
    if algorithm == "look":
        return _plan_sweep(head, ahead, [], behind)
    # clook: jump from the last request ahead to the farthest one behind.
    return _plan_sweep(head, ahead, [], list(reversed(behind)))


def schedule_disk(
    requests: Sequence[int] | str,
    head: int = DEFAULT_HEAD,
    algorithm: str = "fcfs",
    direction: str = "right",
    cylinders: int = DISK_CYLINDERS,
) -> DiskResult:
    """
    Produce the visit order and per-move timeline for a request queue.

    Every move counts towards the total seek, including the C-SCAN return
    sweep; the average divides by the number of requests served.
    """
    algorithm = algorithm.lower()
    if algorithm not in ALGORITHMS:
        raise ValidationError("algorithm", f"unknown disk scheduling algorithm {algorithm!r}")
    direction = direction.lower()
    if direction not in DIRECTIONS:
        raise ValidationError("direction", f"expected 'left' or 'right', got {direction!r}")

    cylinders = int(require_positive(to_int(cylinders, "cylinders"), "cylinders"))
    head = to_int(head, "head")
    if not 0 <= head < cylinders:
        raise ValidationError("head", f"must be between 0 and {cylinders - 1}, got {head}")
    queue = parse_int_list(requests, "requests")
    for r in queue:
        if not 0 <= r < cylinders:
            raise ValidationError("requests", f"cylinder {r} outside 0-{cylinders - 1}")

    plan = plan_requests(algorithm, head, direction, queue, cylinders)

    result = DiskResult(algorithm=ALGORITHMS[algorithm], head=head, direction=direction)
    position = head
    total = 0
    for index, (target, serviced) in enumerate(plan):
        move = abs(target - position)
        total += move
        result.steps.append(DiskStep(index=index, position=target, move=move, cumulative=total, serviced=serviced))
        if serviced:
            result.order.append(target)
        position = target

    logger.info(f"{result.algorithm}: served {result.served} requests, total seek {total}")
    return result
