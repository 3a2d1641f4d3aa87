import json
from pathlib import Path

import pytest

from algolab import paging
from algolab.cli import main


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")


def _workload(tmp_path: Path) -> Path:
    p = tmp_path / "w.json"
    p.write_text(json.dumps([
        {"pid": "P1", "arrival_time": 0, "burst_time": 5, "priority": 2},
        {"pid": "P2", "arrival_time": 1, "burst_time": 3, "priority": 1},
        {"pid": "P3", "arrival_time": 2, "burst_time": 8, "priority": 3},
    ]))
    return p


def test_run(tmp_path, capsys):
    assert main(["run", "-a", "rr", "-w", str(_workload(tmp_path)), "-q", "2"]) == 0
    out = capsys.readouterr().out
    assert "Round Robin" in out
    assert "Quantum: 2" in out
    assert "Per-process metrics" in out


def test_run_mlfq_quanta(tmp_path, capsys):
    assert main(["run", "-a", "mlfq", "-w", str(_workload(tmp_path)), "--quanta", "2,4"]) == 0
    assert "Quanta: 2, 4" in capsys.readouterr().out


def test_compare(tmp_path, capsys):
    assert main(["compare", "-w", str(_workload(tmp_path))]) == 0
    out = capsys.readouterr().out
    assert "FCFS" in out
    assert "MLFQ" in out


def test_missing_workload_exits_with_error(tmp_path, capsys):
    assert main(["run", "-a", "fcfs", "-w", str(tmp_path / "nope.json")]) == 2
    assert "Error" in capsys.readouterr().out


def test_memory(capsys):
    assert main(["memory", "alloc:50", "alloc:30", "free:3", "alloc:500", "--strategy", "best"]) == 0
    out = capsys.readouterr().out
    assert "Allocated 50 to P1 via Best Fit." in out
    assert "Request 500 denied: no suitable hole." in out
    assert "External fragmentation" in out


def test_memory_bad_operation(capsys):
    assert main(["memory", "grow:10"]) == 2
    assert "unknown memory operation" in capsys.readouterr().out


def test_partitions(capsys):
    assert main(["partitions", "-p", "100 500 200 300 600", "-r", "212 417 112 426"]) == 0
    out = capsys.readouterr().out
    assert "~ FIRST FIT ~" in out
    assert "~ NEXT FIT ~" in out
    assert "Total internal fragmentation: 433" in out


def test_partitions_prompts_for_sizes(monkeypatch, capsys):
    answers = iter(["2", "100", "200", "1", "150"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    assert main(["partitions", "-s", "first"]) == 0
    out = capsys.readouterr().out
    assert "Total memory: 300" in out
    assert "Total internal fragmentation: 50" in out


def test_paging(capsys):
    assert main(["paging", "-r", "1 2 3 4 1 2 5 1 2 3 4 5", "-f", "3"]) == 0
    out = capsys.readouterr().out
    assert "Faults: 9" in out
    assert "Belady's anomaly detected" in out


def test_paging_comparison(capsys):
    assert main(["paging", "-r", "7 0 1 2 0 3 0 4 2 3 0 3 2", "-a", "all"]) == 0
    out = capsys.readouterr().out
    assert "Optimal (OPT)" in out
    assert "No Belady's anomaly" in out


def test_paging_comparison_uses_window(monkeypatch, capsys):
    seen = []
    original = paging.compare_policies

    def recording(references, frames, window):
        seen.append(window)
        return original(references, frames, window)

    monkeypatch.setattr(paging, "compare_policies", recording)
    assert main(["paging", "-r", "1 2 3 4", "-a", "all", "--window", "7"]) == 0
    assert seen == [7]


def test_disk(capsys):
    assert main(["disk", "-r", "98 183 37 122 14 124 65 67", "--head", "53", "-a", "sstf"]) == 0
    assert "Total seek: 236" in capsys.readouterr().out


def test_files(capsys):
    assert main(["files", "alloc:A:5", "alloc:B:3:linked", "alloc:C:2:indexed", "free:A"]) == 0
    out = capsys.readouterr().out
    assert "Freed blocks labeled A" in out
    assert "-> nil" in out


def test_bankers(capsys):
    assert main(["bankers", "--request", "1:1 0 2", "--request", "0:0 2 0"]) == 0
    out = capsys.readouterr().out
    assert "Safe sequence: P1 -> P3 -> P4 -> P0 -> P2" in out
    assert "granted" in out
    assert "unsafe state. Denied." in out


def test_sync_buffer(capsys):
    assert main(["sync", "buffer", "produce", "produce", "produce", "produce", "consume"]) == 0
    out = capsys.readouterr().out
    assert "Producer blocked" in out
    assert "Buffer: 4/5" in out


def test_sync_philosophers_deadlock(capsys):
    events = [f"eat:{pid}" for pid in range(5)]
    assert main(["sync", "philosophers", "--strategy", "naive", *events]) == 0
    assert "Deadlock" in capsys.readouterr().out
