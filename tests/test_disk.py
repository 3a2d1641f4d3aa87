import pytest

from algolab.disk import schedule_disk
from algolab.errors import ValidationError

QUEUE = "98 183 37 122 14 124 65 67"


@pytest.mark.parametrize(
    "algorithm, direction, total",
    [
        ("fcfs", "right", 640),
        ("sstf", "right", 236),
        ("scan", "right", 331),
        ("scan", "left", 236),
        ("cscan", "right", 382),
        ("look", "right", 299),
        ("clook", "right", 322),
    ],
)
def test_total_seek(algorithm, direction, total):
    result = schedule_disk(QUEUE, 53, algorithm, direction)
    assert result.total_seek == total
    assert result.served == 8
    assert result.average_seek == total / 8


def test_sstf_order():
    result = schedule_disk(QUEUE, 53, "sstf")
    assert result.order == [65, 67, 37, 14, 98, 122, 124, 183]


def test_scan_visits_boundary_without_serving_it():
    result = schedule_disk(QUEUE, 53, "scan", "right")
    assert result.path == [53, 65, 67, 98, 122, 124, 183, 199, 37, 14]
    assert [s.position for s in result.steps if not s.serviced] == [199]
    assert 199 not in result.order


def test_cscan_return_jump_counts():
    result = schedule_disk(QUEUE, 53, "cscan", "right")
    assert result.path[-4:] == [199, 0, 14, 37]
    jump = next(s for s in result.steps if s.position == 0)
    assert jump.move == 199
    assert not jump.serviced


def test_scan_reaches_boundary_when_nothing_remains_behind():
    result = schedule_disk("60 70", 53, "scan", "right")
    assert result.path == [53, 60, 70, 199]
    assert result.total_seek == 146
    assert result.order == [60, 70]
    assert result.average_seek == 73


def test_cscan_wraps_even_when_nothing_remains_behind():
    result = schedule_disk("60 70", 53, "cscan", "right")
    assert result.path == [53, 60, 70, 199, 0]
    assert result.total_seek == 146 + 199
    assert [s.serviced for s in result.steps] == [True, True, False, False]


def test_boundary_request_replaces_waypoint():
    result = schedule_disk("10 0", 53, "scan", "left")
    assert result.path == [53, 10, 0]
    assert all(s.serviced for s in result.steps)


def test_cumulative_seek_is_running_sum():
    result = schedule_disk(QUEUE, 53, "look", "left")
    running = 0
    for step in result.steps:
        running += step.move
        assert step.cumulative == running


def test_invalid_input():
    with pytest.raises(ValidationError) as exc:
        schedule_disk(QUEUE, 200)
    assert exc.value.field == "head"
    with pytest.raises(ValidationError) as exc:
        schedule_disk("10 250", 53)
    assert exc.value.field == "requests"
    with pytest.raises(ValidationError) as exc:
        schedule_disk(QUEUE, 53, "scan", "up")
    assert exc.value.field == "direction"
    with pytest.raises(ValidationError):
        schedule_disk(QUEUE, 53, "elevator")
