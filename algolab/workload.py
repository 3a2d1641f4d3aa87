from __future__ import annotations

import csv
import json
import math
import re
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence, Union

from .errors import ValidationError
from .models import Number, Process

_SEPARATORS = re.compile(r"[\s,]+")


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise ValidationError("workload", f"unsupported format {suffix!r} (use .json or .csv)")


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise ValidationError("workload", "JSON workload must be a list of process objects")

    return validate_processes([_process_from_mapping(entry) for entry in raw])


def _load_csv(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        processes = [_process_from_mapping(row) for row in reader]
    return validate_processes(processes)


def _process_from_mapping(mapping: Any) -> Process:
    if not isinstance(mapping, Mapping):
        raise ValidationError("workload", f"invalid process entry: {mapping!r}")

    try:
        arrival_raw = mapping["arrival_time"]
        burst_raw = mapping["burst_time"]
    except KeyError as exc:
        raise ValidationError(str(exc.args[0]), f"missing in process entry {dict(mapping)!r}") from exc

    priority_val = mapping.get("priority")
    priority = None
    if priority_val not in (None, ""):
        priority = int(to_number(priority_val, "priority"))

    return Process(
        pid=str(mapping.get("pid") or ""),
        arrival_time=to_number(arrival_raw, "arrival_time"),
        burst_time=to_number(burst_raw, "burst_time"),
        priority=priority,
    )


def to_number(value: Any, field: str) -> Number:
    """
    Coerce ``value`` to an int (when integral) or float.

    Booleans, NaN and infinities are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(field, f"expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        number: Number = value
    else:
        text = str(value).strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise ValidationError(field, f"expected a number, got {value!r}") from None

    if isinstance(number, float):
        if not math.isfinite(number):
            raise ValidationError(field, f"expected a finite number, got {value!r}")
        if number.is_integer():
            return int(number)
    return number


def to_int(value: Any, field: str) -> int:
    number = to_number(value, field)
    if not isinstance(number, int):
        raise ValidationError(field, f"expected a whole number, got {value!r}")
    return number


def require_positive(value: Any, field: str) -> Number:
    number = to_number(value, field)
    if number <= 0:
        raise ValidationError(field, f"must be greater than zero, got {number}")
    return number


def require_non_negative(value: Any, field: str) -> Number:
    number = to_number(value, field)
    if number < 0:
        raise ValidationError(field, f"must not be negative, got {number}")
    return number


def validate_processes(processes: Iterable[Process]) -> List[Process]:
    """
    Return validated copies of ``processes``.

    Blank pids are filled in as P1..Pn by position; duplicate pids are
    rejected because the reports key on them.
    """
    validated: List[Process] = []
    seen: set[str] = set()

    for index, p in enumerate(processes, start=1):
        pid = str(p.pid).strip() or f"P{index}"
        if pid in seen:
            raise ValidationError("pid", f"duplicate process id {pid!r}")
        seen.add(pid)

        priority = p.priority
        if priority is not None:
            priority = to_int(priority, "priority")

        validated.append(
            Process(
                pid=pid,
                arrival_time=require_non_negative(p.arrival_time, "arrival_time"),
                burst_time=require_positive(p.burst_time, "burst_time"),
                priority=priority,
            )
        )

    return validated


def parse_number_list(value: Union[str, Sequence[Any]], field: str) -> List[Number]:
    """
    Parse whitespace or comma separated numbers, e.g. ``"7 0 1 2, 0 3"``.
    """
    tokens = _SEPARATORS.split(value.strip()) if isinstance(value, str) else list(value)
    return [to_number(token, field) for token in tokens if token != ""]


def parse_int_list(value: Union[str, Sequence[Any]], field: str) -> List[int]:
    return [to_int(token, field) for token in parse_number_list(value, field)]


def parse_quanta(value: Union[str, Sequence[Any]]) -> List[Number]:
    """
    Parse the MLFQ level quanta (``"2,4,8"``).

    Non-positive entries are dropped; an empty result is rejected.
    """
    quanta = [q for q in parse_number_list(value, "quanta") if q > 0]
    if not quanta:
        raise ValidationError("quanta", "enter at least one positive time quantum (e.g. 2,4,8)")
    return quanta
