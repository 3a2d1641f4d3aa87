"""
Scripted synchronization scenarios.

These are single-threaded state machines that narrate what semaphores and
fork locks would do; each user event produces the next state and a log line.
Nothing here runs concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from .config import BUFFER_CAPACITY, BUFFER_INITIAL_ITEMS, PHILOSOPHERS
from .errors import ValidationError
from .models import BufferState, TableState
from .workload import require_non_negative, require_positive, to_int

logger = logging.getLogger(__name__)

TABLE_STRATEGIES = ("naive", "backoff", "ordered")


# ==================== Producer-consumer ====================


def create_buffer(capacity: int = BUFFER_CAPACITY, items: int = BUFFER_INITIAL_ITEMS) -> BufferState:
    capacity = int(require_positive(to_int(capacity, "capacity"), "capacity"))
    items = int(require_non_negative(to_int(items, "items"), "items"))
    if items > capacity:
        raise ValidationError("items", f"buffer holds at most {capacity} items")
    return BufferState(capacity=capacity, items=items, log=(f"Initialized buffer with {items} items.",))


def _record(state: BufferState, entry: str, **changes) -> BufferState:
    logger.debug(entry)
    return replace(state, step=state.step + 1, log=state.log + (f"{state.step}. {entry}",), **changes)


def produce(state: BufferState) -> BufferState:
    """wait(empty) -> wait(mutex) -> add item -> signal(mutex) -> signal(full)."""
    if state.items >= state.capacity:
        return _record(state, "Producer blocked: empty=0, waits on empty semaphore.")
    return _record(
        state,
        f"Producer: wait(empty={state.empty}) -> wait(mutex={state.mutex}) -> add item "
        f"-> signal(mutex) -> signal(full={state.full + 1}).",
        items=state.items + 1,
    )


def consume(state: BufferState) -> BufferState:
    """wait(full) -> wait(mutex) -> remove item -> signal(mutex) -> signal(empty)."""
    if state.items <= 0:
        return _record(state, "Consumer blocked: full=0, waits on full semaphore.")
    return _record(
        state,
        f"Consumer: wait(full={state.full}) -> wait(mutex={state.mutex}) -> remove item "
        f"-> signal(mutex) -> signal(empty={state.empty + 1}).",
        items=state.items - 1,
    )


def resize(state: BufferState, capacity: int) -> BufferState:
    """Change the buffer capacity, dropping items that no longer fit."""
    capacity = int(require_positive(to_int(capacity, "capacity"), "capacity"))
    return _record(state, f"Capacity set to {capacity}.", capacity=capacity, items=min(state.items, capacity))


# ==================== Dining philosophers ====================


def create_table(philosophers: int = PHILOSOPHERS, strategy: str = "backoff") -> TableState:
    """
    Strategies:
        naive: take the left fork, then wait for the right one (can deadlock)
        backoff: take the left fork; put it back if the right one is taken
        ordered: take the lower-numbered fork first, then wait for the other
    """
    count = int(require_positive(to_int(philosophers, "philosophers"), "philosophers"))
    if count < 2:
        raise ValidationError("philosophers", "at least two philosophers are needed")
    if strategy not in TABLE_STRATEGIES:
        raise ValidationError("strategy", f"expected one of {', '.join(TABLE_STRATEGIES)}, got {strategy!r}")
    return TableState(forks=(None,) * count, strategy=strategy)


def _forks_for(state: TableState, pid: int) -> Tuple[int, int]:
    left, right = pid, (pid + 1) % state.size
    if state.strategy == "ordered":
        return min(left, right), max(left, right)
    return left, right


def _check_pid(state: TableState, pid: int) -> int:
    pid = to_int(pid, "pid")
    if not 0 <= pid < state.size:
        raise ValidationError("pid", f"expected a philosopher between 0 and {state.size - 1}, got {pid}")
    return pid


def _say(state: TableState, forks: List[Optional[int]], lines: List[str], eating: Optional[Tuple[int, ...]] = None) -> TableState:
    for line in lines:
        logger.debug(line)
    return replace(
        state,
        forks=tuple(forks),
        eating=state.eating if eating is None else eating,
        log=state.log + tuple(lines),
    )


def try_eat(state: TableState, pid: int) -> TableState:
    """
    One attempt by philosopher ``pid`` to eat.

    Under ``backoff`` an attempt takes both forks or neither. Under the
    hold-and-wait strategies an attempt picks up one fork: the first fork if
    it is not yet held, otherwise the second.
    """
    pid = _check_pid(state, pid)
    forks = list(state.forks)
    if pid in state.eating:
        return _say(state, forks, [f"[P{pid}] is already eating."])

    first, second = _forks_for(state, pid)
    lines = [f"[P{pid}] wants to eat and needs F{first} and F{second}."]

    if forks[first] != pid:
        if forks[first] is not None:
            lines.append(f"[P{pid}] F{first} is in use. Will try again later.")
            return _say(state, forks, lines)
        forks[first] = pid
        lines.append(f"[P{pid}] grabbed F{first}. Waiting for F{second}...")
        if state.strategy != "backoff":
            return _say(state, forks, lines)

    if forks[second] is not None:
        if state.strategy == "backoff":
            forks[first] = None
            lines.append(f"[P{pid}] F{second} is in use. Must release F{first}!")
            lines.append(f"[P{pid}] released F{first} and will try to eat again later.")
        else:
            lines.append(f"[P{pid}] F{second} is in use. Holding F{first} and waiting.")
        return _say(state, forks, lines)

    forks[second] = pid
    lines.append(f"[P{pid}] grabbed F{second}. EATING!")
    return _say(state, forks, lines, eating=state.eating + (pid,))


def finish_eating(state: TableState, pid: int) -> TableState:
    pid = _check_pid(state, pid)
    forks = list(state.forks)
    if pid not in state.eating:
        return _say(state, forks, [f"[P{pid}] is not eating."])

    first, second = _forks_for(state, pid)
    forks[first] = None
    forks[second] = None
    return _say(
        state,
        forks,
        [f"[P{pid}] is done eating.", f"[P{pid}] released F{first} and F{second}."],
        eating=tuple(p for p in state.eating if p != pid),
    )


def is_deadlocked(state: TableState) -> bool:
    """Every fork is held, nobody is eating, so nobody can ever proceed."""
    return not state.eating and all(owner is not None for owner in state.forks)


_ACTIONS = {"eat": try_eat, "done": finish_eating}


def run_script(state: TableState, events: Iterable[Tuple[str, int]]) -> TableState:
    """Apply ``(action, pid)`` events in order; actions are ``eat`` and ``done``."""
    for action, pid in events:
        if action not in _ACTIONS:
            raise ValidationError("action", f"expected 'eat' or 'done', got {action!r}")
        state = _ACTIONS[action](state, pid)
    return state
