from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import MemoryBlock, Number, ScheduledSlice

COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def fmt_time(value: Number) -> str:
    """Whole numbers print bare, fractional ones with up to two decimals."""
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.2f}".rstrip("0").rstrip(".")
    return str(int(value))


class _Palette:
    def __init__(self) -> None:
        self._colors: Dict[str, str] = {}

    def __call__(self, key: str) -> str:
        if key not in self._colors:
            self._colors[key] = COLORS[len(self._colors) % len(COLORS)]
        return self._colors[key]


def _cells(span: Number, scale: float) -> int:
    return max(1, round(span * scale))


def build_rich_gantt(slices: List[ScheduledSlice], scale: float = 1.0) -> Tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.

    ``scale`` is the number of character cells per time unit; every slice
    gets at least one cell so short fractional slices stay visible.
    """
    if not slices:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))
    pid_color = _Palette()

    timeline = Text()
    labels = Text()
    time_marks = "0"
    last_time: Number = 0

    for sl in slices:
        idle_gap = sl.start_time - last_time
        if idle_gap > 0:
            gap = _cells(idle_gap, scale)
            timeline.append(" " * gap)
            labels.append(" " * gap)
            last_time = sl.start_time
            time_marks += f" {fmt_time(last_time):>3}"

        width = _cells(sl.end_time - sl.start_time, scale)
        timeline.append(" " * width, style=f"on {pid_color(sl.pid)}")
        labels.append(sl.pid[:width].ljust(width), style="bold")

        last_time = sl.end_time
        time_marks += f" {fmt_time(last_time):>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks


def build_memory_map(blocks: Sequence[MemoryBlock], width: int = 60) -> Panel:
    """
    Memory laid out as one bar, each block proportional to its size. Free
    holes are dim, allocated blocks take their owner's color.
    """
    total = sum(b.size for b in blocks)
    if not total:
        return Panel("Empty memory", title="Memory Map")

    label_color = _Palette()
    bar = Text()
    labels = Text()
    for block in blocks:
        cells = _cells(block.size, width / total)
        if block.free:
            bar.append("." * cells, style="dim")
            labels.append(" " * cells)
        else:
            bar.append(" " * cells, style=f"on {label_color(block.label)}")
            labels.append(block.label[:cells].ljust(cells), style="bold")

    table = Table.grid(padding=(0, 0))
    table.add_row(bar)
    table.add_row(labels)
    return Panel.fit(table, title=f"Memory Map ({total} units)")
