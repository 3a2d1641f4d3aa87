"""
Deadlock avoidance with the Banker's Algorithm.

Implements the safety algorithm and resource-request admission over
Max / Allocation / Available matrices.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .errors import Denial, ValidationError
from .models import BankersState, RequestOutcome, SafetyResult, SafetyStep
from .workload import require_non_negative, to_int

logger = logging.getLogger(__name__)


def _vector(values: Sequence[int], field: str) -> np.ndarray:
    return np.array([int(require_non_negative(to_int(v, field), field)) for v in values], dtype=int)


def _matrix(rows: Sequence[Sequence[int]], field: str) -> np.ndarray:
    vectors = [_vector(row, field) for row in rows]
    widths = {len(v) for v in vectors}
    if len(widths) > 1:
        raise ValidationError(field, "every row must have the same number of resource types")
    if not vectors:
        return np.zeros((0, 0), dtype=int)
    return np.vstack(vectors)


def _fmt_sequence(sequence: List[int]) -> str:
    return " -> ".join(f"P{pid}" for pid in sequence)


def create_state(
    max_demand: Sequence[Sequence[int]],
    allocation: Sequence[Sequence[int]],
    available: Sequence[int],
) -> BankersState:
    """
    Validate and build a Banker's state.

    Raises:
        ValidationError: if shapes disagree, a value is negative, or an
            allocation exceeds its maximum claim
    """
    max_matrix = _matrix(max_demand, "max_demand")
    alloc_matrix = _matrix(allocation, "allocation")
    available_vector = _vector(available, "available")

    if max_matrix.shape != alloc_matrix.shape:
        raise ValidationError("allocation", f"shape {alloc_matrix.shape} does not match max_demand {max_matrix.shape}")
    if max_matrix.size and max_matrix.shape[1] != available_vector.shape[0]:
        raise ValidationError("available", f"expected {max_matrix.shape[1]} resource types, got {available_vector.shape[0]}")
    if np.any(alloc_matrix > max_matrix):
        raise ValidationError("allocation", "allocation exceeds the maximum claim")

    return BankersState(max_demand=max_matrix, allocation=alloc_matrix, available=available_vector)


def check_safety(available: Sequence[int], allocation: Sequence[Sequence[int]], need: Sequence[Sequence[int]]) -> SafetyResult:
    """
    Run the safety algorithm.

    Algorithm:
    1. Work = Available, Finish = [False] * P
    2. Scan processes in index order; if Finish[i] is False and
       Need[i] <= Work, then Work += Allocation[i], Finish[i] = True and i
       joins the safe sequence
    3. Repeat passes until one finishes nobody
    4. Safe iff every process finished

    The sequence found is one of possibly many; scan order is the tie-break.

    Time Complexity: O(P²×R)
    """
    work = np.array(available, dtype=int)
    alloc = np.asarray(allocation, dtype=int)
    need = np.asarray(need, dtype=int)
    finish = np.zeros(alloc.shape[0], dtype=bool)

    result = SafetyResult(safe=False)

    made_progress = True
    while made_progress:
        made_progress = False
        for i in range(alloc.shape[0]):
            if finish[i]:
                continue
            can_finish = bool(np.all(need[i] <= work))
            if can_finish:
                work = work + alloc[i]
                finish[i] = True
                result.sequence.append(i)
                made_progress = True
            result.steps.append(
                SafetyStep(
                    pid=i,
                    need=tuple(int(x) for x in need[i]),
                    work=tuple(int(x) for x in work),
                    finished=can_finish,
                )
            )

    result.safe = bool(np.all(finish))
    return result


def is_safe(state: BankersState) -> SafetyResult:
    return check_safety(state.available, state.allocation, state.need)


def request_resources(state: BankersState, pid: int, request: Sequence[int]) -> RequestOutcome:
    """
    Handle a resource request.

    Steps:
    1. Deny if request > Need[pid] (claims exceeded)
    2. Deny if request > Available (resources exceeded)
    3. Tentatively allocate and run the safety algorithm
    4. Safe: commit. Unsafe: discard the tentative state and deny

    Returns:
        RequestOutcome whose ``state`` is the committed state when granted
        and the untouched input state otherwise
    """
    pid = to_int(pid, "pid")
    if not 0 <= pid < state.num_processes:
        raise ValidationError("pid", f"expected a process between 0 and {state.num_processes - 1}, got {pid}")
    req = _vector(request, "request")
    if req.shape[0] != state.num_resources:
        raise ValidationError("request", f"expected {state.num_resources} values, got {req.shape[0]}")

    if np.any(req > state.need[pid]):
        message = f"P{pid}: request {req.tolist()} exceeds need {state.need[pid].tolist()}. Denied."
        logger.info(message)
        return RequestOutcome(state=state, granted=False, message=message, denial=Denial.CLAIMS_EXCEEDED)

    if np.any(req > state.available):
        message = f"P{pid}: request {req.tolist()} exceeds available {state.available.tolist()}. Denied."
        logger.info(message)
        return RequestOutcome(state=state, granted=False, message=message, denial=Denial.RESOURCES_EXCEEDED)

    allocation = state.allocation.copy()
    allocation[pid] += req
    tentative = BankersState(
        max_demand=state.max_demand,
        allocation=allocation,
        available=state.available - req,
    )

    safety = is_safe(tentative)
    if not safety.safe:
        message = f"P{pid}: request {req.tolist()} would lead to an unsafe state. Denied."
        logger.info(message)
        return RequestOutcome(state=state, granted=False, message=message, safety=safety, denial=Denial.UNSAFE_STATE)

    message = f"P{pid}: request {req.tolist()} granted. Safe sequence: {_fmt_sequence(safety.sequence)}"
    logger.debug(message)
    return RequestOutcome(state=tentative, granted=True, message=message, safety=safety)


def release_resources(state: BankersState, pid: int, release: Sequence[int]) -> BankersState:
    """
    Return instances held by ``pid`` to the available pool.

    Raises:
        ValidationError: if ``pid`` would release more than it holds
    """
    pid = to_int(pid, "pid")
    if not 0 <= pid < state.num_processes:
        raise ValidationError("pid", f"expected a process between 0 and {state.num_processes - 1}, got {pid}")
    rel = _vector(release, "release")
    if rel.shape[0] != state.num_resources:
        raise ValidationError("release", f"expected {state.num_resources} values, got {rel.shape[0]}")
    if np.any(rel > state.allocation[pid]):
        raise ValidationError("release", f"P{pid} holds only {state.allocation[pid].tolist()}")

    allocation = state.allocation.copy()
    allocation[pid] -= rel
    logger.debug(f"P{pid}: released {rel.tolist()}")
    return BankersState(max_demand=state.max_demand, allocation=allocation, available=state.available + rel)
