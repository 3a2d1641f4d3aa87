from pathlib import Path

import pytest

from algolab.errors import ValidationError
from algolab.models import Process
from algolab.workload import (
    load_workload,
    parse_int_list,
    parse_number_list,
    parse_quanta,
    to_number,
    validate_processes,
)


def test_load_json(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A","arrival_time":0,"burst_time":3,"priority":1},'
                 '{"pid":"B","arrival_time":1,"burst_time":2}]')
    procs = load_workload(p)
    assert isinstance(procs[0], Process)
    assert procs[1].priority is None
    assert procs[1].arrival_time == 1


def test_load_csv(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival_time,burst_time,priority\nA,0,3,1\nB,1.5,2,\n")
    procs = load_workload(p)
    assert procs[0].pid == "A"
    assert procs[1].priority is None
    assert procs[1].arrival_time == 1.5


def test_blank_pids_are_numbered_by_position(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"arrival_time":0,"burst_time":3},{"pid":"","arrival_time":1,"burst_time":2}]')
    assert [proc.pid for proc in load_workload(p)] == ["P1", "P2"]


def test_unsupported_format(tmp_path: Path):
    p = tmp_path / "w.txt"
    p.write_text("")
    with pytest.raises(ValidationError) as exc:
        load_workload(p)
    assert exc.value.field == "workload"


def test_missing_field_is_named(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A","burst_time":3}]')
    with pytest.raises(ValidationError) as exc:
        load_workload(p)
    assert exc.value.field == "arrival_time"


def test_duplicate_pids_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_processes([Process("A", 0, 1), Process("A", 1, 1)])
    assert exc.value.field == "pid"


def test_negative_arrival_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_processes([Process("A", -1, 1)])
    assert exc.value.field == "arrival_time"


def test_to_number():
    assert to_number("2.5", "x") == 2.5
    value = to_number("3.0", "x")
    assert value == 3 and isinstance(value, int)
    for bad in (True, "abc", float("nan"), "inf"):
        with pytest.raises(ValidationError):
            to_number(bad, "x")


def test_parse_lists():
    assert parse_number_list("7 0, 1,2", "refs") == [7, 0, 1, 2]
    assert parse_number_list("", "refs") == []
    assert parse_int_list([1, "2", 3.0], "refs") == [1, 2, 3]
    with pytest.raises(ValidationError):
        parse_int_list("1 2.5", "refs")


def test_parse_quanta():
    assert parse_quanta("2, 0, 4") == [2, 4]
    with pytest.raises(ValidationError) as exc:
        parse_quanta("0 -1")
    assert exc.value.field == "quanta"
