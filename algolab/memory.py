"""
Contiguous memory allocation.

Covers variable partitioning with First/Best/Worst/Next Fit, fixed
partitioning (MFT), compaction for variable partitioning (MVT), and the
one-shot partition fit report. Every operation takes a ``MemoryState`` and
returns a new one; a denied request hands back the state it was given.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_MEMORY_SIZE, DEFAULT_PARTITION_SIZE
from .errors import Denial, LayoutError, ValidationError
from .models import AllocationOutcome, MemoryBlock, MemoryState, MemoryStats, PartitionReport
from .workload import parse_int_list, require_positive, to_int

logger = logging.getLogger(__name__)

STRATEGIES = {
    "first": "First Fit",
    "best": "Best Fit",
    "worst": "Worst Fit",
    "next": "Next Fit",
}

VARIABLE = "variable"
FIXED = "fixed"


def _positive_int(value, field: str) -> int:
    return int(require_positive(to_int(value, field), field))


def _check_strategy(strategy: str) -> str:
    strategy = strategy.lower()
    if strategy not in STRATEGIES:
        raise ValidationError("strategy", f"unknown fit strategy {strategy!r} (choose from {', '.join(STRATEGIES)})")
    return strategy


def create_memory(total_size: int = DEFAULT_MEMORY_SIZE) -> MemoryState:
    """A variable-partition pool holding one free block."""
    size = _positive_int(total_size, "memory_size")
    return MemoryState(scheme=VARIABLE, blocks=(MemoryBlock(block_id=1, start=0, size=size),), next_id=2)


def create_fixed(memory_size: int = DEFAULT_MEMORY_SIZE, partition_size: int = DEFAULT_PARTITION_SIZE) -> MemoryState:
    """
    Divide memory into fixed partitions of ``partition_size``; the final
    partition takes whatever is left and may be smaller.
    """
    memory_size = _positive_int(memory_size, "memory_size")
    partition_size = _positive_int(partition_size, "partition_size")

    blocks: List[MemoryBlock] = []
    start = 0
    while start < memory_size:
        size = min(partition_size, memory_size - start)
        blocks.append(MemoryBlock(block_id=len(blocks) + 1, start=start, size=size, fixed=True))
        start += size

    return MemoryState(scheme=FIXED, blocks=tuple(blocks), next_id=len(blocks) + 1)


def _relayout(blocks: Iterable[MemoryBlock]) -> Tuple[MemoryBlock, ...]:
    laid_out = []
    address = 0
    for block in blocks:
        laid_out.append(block if block.start == address else replace(block, start=address))
        address += block.size
    return tuple(laid_out)


def coalesce(blocks: Sequence[MemoryBlock]) -> Tuple[MemoryBlock, ...]:
    """
    Merge runs of adjacent free blocks; the merged hole keeps the id of the
    first block in the run. Fixed partitions are never merged.
    """
    merged: List[MemoryBlock] = []
    for block in blocks:
        prev = merged[-1] if merged else None
        if prev is not None and prev.free and block.free and not prev.fixed and not block.fixed:
            merged[-1] = replace(prev, size=prev.size + block.size)
        else:
            merged.append(block)
    return _relayout(merged)


def check_canonical(state: MemoryState, context: str = "") -> None:
    """
    Verify the block list invariants.

    Raises:
        LayoutError: if blocks overlap or leave gaps, or (for variable
            partitioning) two free blocks are adjacent
    """
    address = 0
    for block in state.blocks:
        if block.start != address:
            raise LayoutError(f"Gap or overlap at block {block.block_id} {context}")
        if block.size <= 0:
            raise LayoutError(f"Empty block {block.block_id} {context}")
        address = block.end

    if state.scheme == VARIABLE:
        for left, right in zip(state.blocks, state.blocks[1:]):
            if left.free and right.free:
                raise LayoutError(f"Adjacent free blocks {left.block_id} and {right.block_id} {context}")


def _scan_start(state: MemoryState) -> int:
    """Index of the block holding the next-fit address (0 when past the end)."""
    for i, block in enumerate(state.blocks):
        if block.end > state.next_fit_address:
            return i
    return 0


def find_block(state: MemoryState, size: int, strategy: str = "first") -> Optional[int]:
    """
    Return the index of the free block chosen by ``strategy`` for ``size``,
    or ``None`` when nothing fits.
    """
    strategy = _check_strategy(strategy)
    blocks = state.blocks
    fits = [i for i, b in enumerate(blocks) if b.free and b.size >= size]
    if not fits:
        return None

    if strategy == "best":
        # min()/max() keep the first of equal candidates.
        return min(fits, key=lambda i: blocks[i].size)
    if strategy == "worst":
        return max(fits, key=lambda i: blocks[i].size)
    if strategy == "next":
        n = len(blocks)
        begin = _scan_start(state)
        for offset in range(n):
            idx = (begin + offset) % n
            if idx in fits:
                return idx
        return None
    return fits[0]


def allocate(state: MemoryState, size: int, strategy: str = "first", label: Optional[str] = None) -> AllocationOutcome:
    """
    Place a request of ``size`` units.

    Variable partitioning splits the chosen hole into an allocated block of
    exactly ``size`` and a free remainder. Fixed partitioning hands over the
    whole partition and records the requested size.
    """
    size = _positive_int(size, "size")
    strategy = _check_strategy(strategy)

    index = find_block(state, size, strategy)
    if index is None:
        message = f"Request {size} denied: no suitable hole."
        logger.info(message)
        return AllocationOutcome(state=state, granted=False, message=message, denial=Denial.NO_FIT)

    label = label or f"P{state.next_label}"
    target = state.blocks[index]
    blocks = list(state.blocks)

    if target.fixed:
        block_id = target.block_id
        blocks[index] = replace(target, free=False, label=label, requested=size)
        next_id = state.next_id
        message = f"Allocated {label} in partition {target.block_id} ({target.size} units)."
    else:
        block_id = state.next_id
        pieces = [MemoryBlock(block_id=block_id, start=target.start, size=size, free=False, label=label, requested=size)]
        if target.size > size:
            # The hole keeps its id and shrinks to the remainder.
            pieces.append(replace(target, start=target.start + size, size=target.size - size))
        blocks[index:index + 1] = pieces
        next_id = state.next_id + 1
        message = f"Allocated {size} to {label} via {STRATEGIES[strategy]}."

    new_state = MemoryState(
        scheme=state.scheme,
        blocks=coalesce(blocks) if state.scheme == VARIABLE else tuple(blocks),
        next_id=next_id,
        next_label=state.next_label + 1,
        next_fit_address=target.start + size,
    )
    check_canonical(new_state, f"after allocating {size} to {label}")
    logger.debug(message)
    return AllocationOutcome(state=new_state, granted=True, message=message, block_id=block_id)


def free(state: MemoryState, block_id: int) -> AllocationOutcome:
    """
    Release an allocated block and, for variable partitioning, merge it
    with free neighbours on both sides.
    """
    block_id = to_int(block_id, "block_id")
    target = state.block(block_id)
    if target is None or target.free:
        message = f"Block {block_id} is not allocated."
        logger.info(message)
        return AllocationOutcome(state=state, granted=False, message=message, denial=Denial.UNKNOWN_TARGET)

    released = replace(target, free=True, label="Free", requested=0)
    blocks = tuple(released if b.block_id == block_id else b for b in state.blocks)
    if state.scheme == VARIABLE:
        blocks = coalesce(blocks)

    new_state = replace(state, blocks=blocks)
    check_canonical(new_state, f"after freeing block {block_id}")
    message = f"Freed {target.label}. Coalesced adjacent holes." if state.scheme == VARIABLE else f"Freed {target.label}."
    logger.debug(message)
    return AllocationOutcome(state=new_state, granted=True, message=message, block_id=block_id)


def compact(state: MemoryState) -> MemoryState:
    """
    Slide every allocated block down to address 0, keeping their order, and
    gather all free space into one hole at the top.
    """
    if state.scheme != VARIABLE:
        raise ValidationError("scheme", "compaction applies to variable partitioning (MVT) only")

    allocated = [b for b in state.blocks if not b.free]
    free_total = sum(b.size for b in state.blocks if b.free)
    blocks = list(allocated)
    next_id = state.next_id
    if free_total > 0:
        blocks.append(MemoryBlock(block_id=next_id, start=0, size=free_total))
        next_id += 1

    used = sum(b.size for b in allocated)
    new_state = MemoryState(
        scheme=state.scheme,
        blocks=_relayout(blocks),
        next_id=next_id,
        next_label=state.next_label,
        next_fit_address=used,
    )
    check_canonical(new_state, "after compaction")
    logger.info(f"Compacted {len(allocated)} blocks; {free_total} units free in one hole")
    return new_state


def memory_stats(state: MemoryState) -> MemoryStats:
    free_blocks = [b for b in state.blocks if b.free]
    allocated = [b for b in state.blocks if not b.free]

    total_free = sum(b.size for b in free_blocks)
    largest_free = max((b.size for b in free_blocks), default=0)
    return MemoryStats(
        total=state.total_size,
        used=state.total_size - total_free,
        total_free=total_free,
        largest_free=largest_free,
        external_fragmentation=total_free - largest_free,
        internal_fragmentation=sum(max(b.size - b.requested, 0) for b in allocated),
    )


# ==================== Partition fit report ====================


def fit_partitions(partitions: Sequence[int] | str, requests: Sequence[int] | str, strategy: str = "first") -> PartitionReport:
    """
    Fit each request, in order, into a fixed partition that holds at most one
    process. Next Fit resumes its scan at the partition it last filled.
    """
    strategy = _check_strategy(strategy)
    sizes = [_positive_int(p, "partitions") for p in parse_int_list(partitions, "partitions")]
    needs = [_positive_int(r, "requests") for r in parse_int_list(requests, "requests")]

    owner: List[Optional[int]] = [None] * len(sizes)
    placed: List[Optional[int]] = [None] * len(needs)
    frag = [0] * len(sizes)
    last = 0

    for i, need in enumerate(needs):
        fits = [j for j in range(len(sizes)) if owner[j] is None and sizes[j] >= need]
        chosen: Optional[int] = None
        if fits:
            if strategy == "best":
                chosen = min(fits, key=lambda j: sizes[j])
            elif strategy == "worst":
                chosen = max(fits, key=lambda j: sizes[j])
            elif strategy == "next":
                chosen = next((last + k) % len(sizes) for k in range(len(sizes)) if (last + k) % len(sizes) in fits)
                last = chosen
            else:
                chosen = fits[0]

        if chosen is not None:
            placed[i] = chosen
            owner[chosen] = i
            frag[chosen] = sizes[chosen] - need

    return PartitionReport(
        strategy=strategy,
        partitions=sizes,
        requests=needs,
        partition_owner=owner,
        process_partition=placed,
        internal_fragmentation=frag,
    )


def format_partition_report(report: PartitionReport) -> str:
    """
    Render the fixed-column report: process table, then partition table,
    with 1-based ids, Yes/No flags and ``-`` for unassigned.
    """
    rule = "-" * 55
    title = STRATEGIES[report.strategy].upper()
    lines = [
        "",
        rule,
        f"               ~ {title} ~",
        rule,
        "",
        f"Total memory: {report.total_memory}",
        f"Total internal fragmentation: {report.total_internal_fragmentation}",
        f"Processes NOT allocated: {report.unallocated}",
        "",
        "ProcID\tMemRequired\tAllocated\tPartition",
    ]
    for i, need in enumerate(report.requests):
        part = report.process_partition[i]
        alloc = "Yes" if part is not None else "No"
        part_id = part + 1 if part is not None else "-"
        lines.append(f"{i + 1}\t{need}\t\t{alloc}\t\t{part_id}")

    lines.append("")
    lines.append("PartID\tAllocated\tInterFrag\tProcID")
    for j in range(len(report.partitions)):
        owner = report.partition_owner[j]
        alloc = "Yes" if owner is not None else "No"
        pid = owner + 1 if owner is not None else "-"
        lines.append(f"{j + 1}\t{alloc}\t\t{report.internal_fragmentation[j]}\t\t{pid}")

    lines.append(rule)
    lines.append("")
    return "\n".join(lines)
