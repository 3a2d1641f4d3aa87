from dataclasses import replace

import pytest

from algolab.errors import Denial, LayoutError, ValidationError
from algolab.memory import (
    allocate,
    check_canonical,
    compact,
    create_fixed,
    create_memory,
    fit_partitions,
    format_partition_report,
    free,
    memory_stats,
)

PARTITIONS = "100 500 200 300 600"
REQUESTS = "212 417 112 426"


def _fragmented():
    """200 units: P1 0-50, hole 50-80, P3 80-120, hole 120-200."""
    state = create_memory(200)
    for size in (50, 30, 40):
        state = allocate(state, size).state
    return free(state, 3).state


def _check_invariants(state):
    assert sum(b.size for b in state.blocks) == state.total_size
    address = 0
    for block in state.blocks:
        assert block.start == address
        address = block.end
    for left, right in zip(state.blocks, state.blocks[1:]):
        assert not (left.free and right.free)


def test_allocate_splits_hole():
    state = create_memory(200)
    outcome = allocate(state, 50)
    assert outcome.granted
    assert outcome.block_id == 2
    first, rest = outcome.state.blocks
    assert (first.start, first.size, first.free, first.label) == (0, 50, False, "P1")
    assert (rest.block_id, rest.start, rest.size, rest.free) == (1, 50, 150, True)
    # The input state is untouched.
    assert len(state.blocks) == 1


@pytest.mark.parametrize(
    "strategy, expected_start",
    [("first", 50), ("best", 50), ("worst", 120), ("next", 120)],
)
def test_fit_strategies(strategy, expected_start):
    outcome = allocate(_fragmented(), 25, strategy)
    block = outcome.state.block(outcome.block_id)
    assert block.start == expected_start
    _check_invariants(outcome.state)


def test_next_fit_wraps_to_hole_before_last_allocation():
    state = create_memory(100)
    state = allocate(state, 20).state
    state = allocate(state, 70).state
    state = free(state, 2).state
    # Only 10 units remain after the last allocation; the scan wraps.
    outcome = allocate(state, 15, "next")
    assert outcome.granted
    assert outcome.state.block(outcome.block_id).start == 0
    assert outcome.state.next_fit_address == 15
    _check_invariants(outcome.state)


def test_check_canonical_rejects_broken_layouts():
    state = create_memory(100)
    check_canonical(state)
    gap = replace(state, blocks=(replace(state.blocks[0], start=5),))
    with pytest.raises(LayoutError):
        check_canonical(gap)
    split = replace(
        state,
        blocks=(replace(state.blocks[0], size=40), replace(state.blocks[0], block_id=9, start=40, size=60)),
    )
    with pytest.raises(LayoutError):
        check_canonical(split)


def test_no_fit_returns_same_state():
    state = _fragmented()
    outcome = allocate(state, 500)
    assert not outcome.granted
    assert outcome.denial is Denial.NO_FIT
    assert outcome.state is state


def test_free_coalesces_both_neighbours():
    state = free(_fragmented(), 4).state
    assert len(state.blocks) == 2
    assert state.blocks[1].free and state.blocks[1].size == 150
    state = free(state, 2).state
    assert len(state.blocks) == 1 and state.blocks[0].free
    _check_invariants(state)


def test_free_unknown_or_free_block():
    state = _fragmented()
    for block_id in (99, 3):
        outcome = free(state, block_id)
        assert outcome.denial is Denial.UNKNOWN_TARGET
        assert outcome.state is state


def test_memory_stats():
    stats = memory_stats(_fragmented())
    assert stats.total == 200
    assert stats.used == 90
    assert stats.total_free == 110
    assert stats.largest_free == 80
    assert stats.external_fragmentation == 30
    assert stats.internal_fragmentation == 0


def test_compaction_moves_free_space_to_the_end():
    state = compact(_fragmented())
    assert [(b.block_id, b.start, b.size, b.free) for b in state.blocks] == [
        (2, 0, 50, False),
        (4, 50, 40, False),
        (5, 90, 110, True),
    ]
    _check_invariants(state)


def test_fixed_partitions():
    state = create_fixed(130, 50)
    assert [b.size for b in state.blocks] == [50, 50, 30]

    outcome = allocate(state, 20)
    assert outcome.block_id == 1
    assert len(outcome.state.blocks) == 3
    assert memory_stats(outcome.state).internal_fragmentation == 30

    denied = allocate(outcome.state, 60)
    assert denied.denial is Denial.NO_FIT

    released = free(outcome.state, 1).state
    assert [b.size for b in released.blocks] == [50, 50, 30]
    assert all(b.free for b in released.blocks)


def test_fixed_partitions_cannot_be_compacted():
    with pytest.raises(ValidationError):
        compact(create_fixed(200, 50))


def test_bad_sizes_rejected():
    with pytest.raises(ValidationError):
        create_memory(0)
    with pytest.raises(ValidationError):
        allocate(create_memory(100), -5)


@pytest.mark.parametrize(
    "strategy, placed, total_frag",
    [
        ("first", [1, 4, 2, None], 559),
        ("best", [3, 1, 2, 4], 433),
        ("worst", [4, 1, 3, None], 659),
        ("next", [1, 4, 2, None], 559),
    ],
)
def test_fit_partitions(strategy, placed, total_frag):
    report = fit_partitions(PARTITIONS, REQUESTS, strategy)
    assert report.process_partition == placed
    assert report.total_internal_fragmentation == total_frag
    assert report.total_memory == 1700


def test_partition_report_text():
    text = format_partition_report(fit_partitions(PARTITIONS, REQUESTS, "first"))
    assert "~ FIRST FIT ~" in text
    assert "Total memory: 1700" in text
    assert "Processes NOT allocated: 1" in text
    assert "4\t426\t\tNo\t\t-" in text
    assert "2\tYes\t\t288\t\t1" in text
