import pytest

from algolab.errors import ValidationError
from algolab.paging import ALGORITHMS, compare_policies, detect_belady, simulate_paging

TEXTBOOK = "7 0 1 2 0 3 0 4 2 3 0 3 2"
BELADY = "1 2 3 4 1 2 5 1 2 3 4 5"


def test_fifo_textbook_counts():
    assert simulate_paging(TEXTBOOK, 3, "fifo").faults == 10
    assert simulate_paging(TEXTBOOK, 4, "fifo").faults == 7

    check = detect_belady(TEXTBOOK, 3)
    assert (check.smaller, check.larger) == (10, 7)
    assert not check.anomaly


def test_belady_anomaly():
    check = detect_belady(BELADY, 3)
    assert (check.smaller, check.larger) == (9, 10)
    assert check.anomaly


def test_lru_and_opt_counts():
    assert simulate_paging(TEXTBOOK, 3, "lru").faults == 9
    assert simulate_paging(TEXTBOOK, 3, "opt").faults == 7


def test_opt_never_loses():
    for frames in (1, 2, 3, 4):
        results = compare_policies(BELADY, frames)
        best = results["opt"].faults
        assert all(best <= r.faults for r in results.values())


@pytest.mark.parametrize("algorithm", sorted(ALGORITHMS))
def test_frames_never_overflow(algorithm):
    result = simulate_paging(TEXTBOOK, 3, algorithm)
    assert result.hits + result.faults == 13
    for step in result.steps:
        resident = [p for p in step.frames if p is not None]
        assert len(step.frames) == 3
        assert len(resident) == len(set(resident))
        assert step.page in step.frames


def test_empty_frames_fill_before_replacement():
    result = simulate_paging("4 5 6", 3, "lru")
    assert [s.replaced_index for s in result.steps] == [0, 1, 2]
    assert all(s.evicted_page is None for s in result.steps)


def test_clock_second_chance():
    result = simulate_paging(BELADY, 3, "clock")
    assert result.faults == 9
    assert result.steps[-1].frames == (5, 3, 4)
    # Page 5 evicted frame 0 and cleared the others; the hits on 1 and 2 set them again.
    assert result.steps[6].reference_bits == (1, 0, 0)
    assert not result.steps[8].fault
    assert result.steps[8].reference_bits == (1, 1, 1)


def test_mru_evicts_most_recent():
    result = simulate_paging("1 2 3 4", 3, "mru")
    assert result.steps[-1].frames == (1, 2, 4)
    assert result.steps[-1].evicted_page == 3


def test_wsclock_falls_back_to_oldest_frame():
    result = simulate_paging("1 2 3 4", 3, "wsclock", window=100)
    last = result.steps[-1]
    assert last.evicted_page == 1
    assert last.frames == (4, 2, 3)


def test_wsclock_evicts_clean_page_outside_window():
    result = simulate_paging("1 2 3 3 3 3 3 3 4", 2, "wsclock", window=4)
    # t=2: the hand clears both bits and refreshes frame 1's timestamp,
    # then nothing is outside the window so frame 0 is taken.
    step = result.steps[2]
    assert (step.evicted_page, step.replaced_index) == (1, 0)
    assert step.reference_bits == (1, 0)
    assert step.last_used == (2, 2)
    # t=8: frame 1 has bit 0 and age 6 > 4, so it goes first.
    step = result.steps[8]
    assert (step.page, step.evicted_page, step.replaced_index) == (4, 2, 1)
    assert step.frames == (3, 4)
    assert step.reference_bits == (1, 1)
    assert step.last_used == (7, 8)
    assert step.hand == 0


def test_compare_policies_passes_window_to_wsclock():
    refs = "1 2 3 3 3 3 3 3 4"
    narrow = compare_policies(refs, 2, window=4)["wsclock"]
    wide = compare_policies(refs, 2, window=100)["wsclock"]
    assert narrow.steps == simulate_paging(refs, 2, "wsclock", window=4).steps
    assert wide.steps == simulate_paging(refs, 2, "wsclock", window=100).steps
    # A wide window forces a full revolution that clears frame 0's bit.
    assert wide.steps[8].reference_bits == (0, 1)
    assert narrow.steps[8].reference_bits == (1, 1)


def test_hit_ratio():
    result = simulate_paging("1 1 1 1", 1, "fifo")
    assert result.faults == 1
    assert result.hit_ratio == 0.75


def test_invalid_input():
    with pytest.raises(ValidationError) as exc:
        simulate_paging(TEXTBOOK, 0)
    assert exc.value.field == "frame_count"
    with pytest.raises(ValidationError):
        simulate_paging("", 3)
    with pytest.raises(ValidationError):
        simulate_paging("1 -2", 3)
    with pytest.raises(ValidationError):
        simulate_paging(TEXTBOOK, 3, "random")
