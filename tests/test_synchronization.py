import pytest

from algolab.errors import ValidationError
from algolab.synchronization import (
    consume,
    create_buffer,
    create_table,
    finish_eating,
    is_deadlocked,
    produce,
    resize,
    run_script,
    try_eat,
)


def test_buffer_defaults_and_semaphores():
    buffer = create_buffer()
    assert (buffer.capacity, buffer.items) == (5, 2)
    assert (buffer.empty, buffer.full, buffer.mutex) == (3, 2, 1)


def test_produce_narrates_semaphores():
    buffer = create_buffer()
    after = produce(buffer)
    assert after.items == 3
    assert buffer.items == 2
    assert after.log[-1] == (
        "1. Producer: wait(empty=3) -> wait(mutex=1) -> add item -> signal(mutex) -> signal(full=3)."
    )


def test_blocked_operations_are_logged():
    full = produce(create_buffer(2, 2))
    assert full.items == 2
    assert full.log[-1] == "1. Producer blocked: empty=0, waits on empty semaphore."

    empty = consume(create_buffer(3, 0))
    assert empty.items == 0
    assert empty.log[-1] == "1. Consumer blocked: full=0, waits on full semaphore."


def test_consume_and_resize():
    buffer = consume(create_buffer(5, 2))
    assert buffer.items == 1
    assert buffer.log[-1].endswith("signal(empty=4).")

    buffer = resize(create_buffer(5, 4), 2)
    assert (buffer.capacity, buffer.items) == (2, 2)


def test_buffer_validation():
    with pytest.raises(ValidationError):
        create_buffer(2, 3)
    with pytest.raises(ValidationError):
        resize(create_buffer(), 0)


def test_backoff_philosopher_eats_with_both_forks():
    table = try_eat(create_table(5, "backoff"), 0)
    assert table.eating == (0,)
    assert table.forks == (0, 0, None, None, None)


def test_backoff_releases_left_fork_when_right_is_taken():
    table = run_script(create_table(5, "backoff"), [("eat", 1), ("eat", 0)])
    assert table.eating == (1,)
    assert table.forks == (None, 1, 1, None, None)
    assert "[P0] released F0 and will try to eat again later." in table.log


def test_finish_eating_releases_forks():
    table = finish_eating(try_eat(create_table(), 2), 2)
    assert table.eating == ()
    assert all(owner is None for owner in table.forks)


def test_naive_strategy_can_deadlock():
    table = run_script(create_table(5, "naive"), [("eat", pid) for pid in range(5)])
    assert table.forks == (0, 1, 2, 3, 4)
    assert is_deadlocked(table)


def test_ordered_strategy_avoids_deadlock():
    table = run_script(create_table(5, "ordered"), [("eat", pid) for pid in range(5)])
    # P4 reaches for F0 first and finds it taken, so F4 stays free for P3.
    assert table.forks == (0, 1, 2, 3, None)
    assert not is_deadlocked(table)

    table = try_eat(table, 3)
    assert table.eating == (3,)


def test_table_validation():
    with pytest.raises(ValidationError):
        create_table(5, "waiter")
    with pytest.raises(ValidationError):
        create_table(1)
    with pytest.raises(ValidationError):
        try_eat(create_table(), 5)
    with pytest.raises(ValidationError):
        run_script(create_table(), [("sleep", 0)])
