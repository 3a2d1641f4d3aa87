from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from . import bankers, disk, files, memory, paging, synchronization
from .config import (
    BLOCK_POOL_SIZE,
    BUFFER_CAPACITY,
    BUFFER_INITIAL_ITEMS,
    DEFAULT_FRAMES,
    DEFAULT_HEAD,
    DEFAULT_INDEX_BLOCKS,
    DEFAULT_MEMORY_SIZE,
    DEFAULT_PARTITION_SIZE,
    DEFAULT_QUANTUM,
    DISK_CYLINDERS,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    PHILOSOPHERS,
    WSCLOCK_WINDOW,
)
from .errors import ValidationError
from .gantt import COLORS, build_memory_map, build_rich_gantt, fmt_time
from .metrics import summarize_process_metrics
from .models import AllocationOutcome, BankersState, BlockPool, FileOutcome, MemoryState, ScheduleResult
from .scheduling import ALGORITHMS, QUANTUM_ALGORITHMS, run_algorithm
from .workload import load_workload, parse_int_list, to_int

logger = logging.getLogger(__name__)

CLASSIC_MAX = "7 5 3; 3 2 2; 9 0 2; 2 2 2; 4 3 3"
CLASSIC_ALLOCATION = "0 1 0; 2 0 0; 3 0 2; 2 1 1; 0 0 2"
CLASSIC_AVAILABLE = "3 3 2"


def configure_logging(verbose: bool = False) -> None:
    """Route engine logs through Rich on stderr; ``verbose`` shows per-decision detail."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, markup=False)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="algolab",
        description="Operating-system algorithm simulator: CPU scheduling, memory, paging, disk, files, deadlock avoidance.",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Log every scheduling and replacement decision.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", parents=[common], help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help=f"Algorithm to use ({', '.join(ALGORITHMS)}).",
    )
    run_parser.add_argument("--workload", "-w", required=True, help="Path to JSON or CSV workload file.")
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=float,
        default=None,
        help="Time quantum for round-robin, base quantum for MLFQ (ignored by the others).",
    )
    run_parser.add_argument("--quanta", default=None, help="MLFQ level quanta, e.g. '2,4,8' (overrides --quantum).")
    run_parser.add_argument(
        "--scale",
        type=float,
        default=1.0,
        help="Gantt chart cells per time unit (default: 1).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        parents=[common],
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument("--workload", "-w", required=True, help="Path to JSON or CSV workload file.")
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help=f"Algorithms to compare (default: {' '.join(ALGORITHMS)}).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=float,
        default=DEFAULT_QUANTUM,
        help=f"Time quantum used for RR/MLFQ when included (default: {DEFAULT_QUANTUM}).",
    )
    compare_parser.add_argument("--quanta", default=None, help="MLFQ level quanta, e.g. '2,4,8'.")

    memory_parser = subparsers.add_parser(
        "memory",
        parents=[common],
        help="Apply alloc:SIZE, free:ID and compact operations to a memory pool.",
    )
    memory_parser.add_argument("ops", nargs="*", help="Operations, e.g. alloc:40 alloc:25 free:2 compact.")
    memory_parser.add_argument(
        "--scheme",
        choices=["fit", "mft", "mvt"],
        default="fit",
        help="fit: variable partitions with any strategy; mft: fixed partitions; mvt: variable partitions, First Fit.",
    )
    memory_parser.add_argument("--strategy", "-s", choices=list(memory.STRATEGIES), default="first")
    memory_parser.add_argument("--size", type=int, default=DEFAULT_MEMORY_SIZE, help="Total memory units.")
    memory_parser.add_argument(
        "--partition-size",
        type=int,
        default=DEFAULT_PARTITION_SIZE,
        help="MFT partition size (default: %(default)s).",
    )

    partitions_parser = subparsers.add_parser(
        "partitions",
        parents=[common],
        help="Fit processes into fixed partitions and print the fragmentation report.",
    )
    partitions_parser.add_argument("--partitions", "-p", default=None, help="Partition sizes, e.g. '100 500 200 300 600'.")
    partitions_parser.add_argument("--requests", "-r", default=None, help="Process sizes, e.g. '212 417 112 426'.")
    partitions_parser.add_argument(
        "--strategy",
        "-s",
        nargs="+",
        choices=list(memory.STRATEGIES),
        default=list(memory.STRATEGIES),
        help="Strategies to report (default: all).",
    )

    paging_parser = subparsers.add_parser("paging", parents=[common], help="Simulate page replacement.")
    paging_parser.add_argument("--references", "-r", required=True, help="Reference string, e.g. '7 0 1 2 0 3'.")
    paging_parser.add_argument("--frames", "-f", type=int, default=DEFAULT_FRAMES)
    paging_parser.add_argument(
        "--algorithm",
        "-a",
        choices=list(paging.ALGORITHMS) + ["all"],
        default="fifo",
        help="Replacement policy, or 'all' for a comparison table.",
    )
    paging_parser.add_argument(
        "--window",
        type=int,
        default=WSCLOCK_WINDOW,
        help="WSClock working-set window (default: %(default)s).",
    )

    disk_parser = subparsers.add_parser("disk", parents=[common], help="Simulate disk-arm scheduling.")
    disk_parser.add_argument("--requests", "-r", required=True, help="Cylinder queue, e.g. '98 183 37 122'.")
    disk_parser.add_argument("--head", type=int, default=DEFAULT_HEAD)
    disk_parser.add_argument(
        "--algorithm",
        "-a",
        choices=list(disk.ALGORITHMS) + ["all"],
        default="fcfs",
        help="Scheduling algorithm, or 'all' for a comparison table.",
    )
    disk_parser.add_argument("--direction", "-d", choices=list(disk.DIRECTIONS), default="right")
    disk_parser.add_argument("--cylinders", type=int, default=DISK_CYLINDERS)

    files_parser = subparsers.add_parser(
        "files",
        parents=[common],
        help="Apply alloc:NAME:SIZE[:STRATEGY] and free:NAME operations to a block pool.",
    )
    files_parser.add_argument("ops", nargs="*", help="Operations, e.g. alloc:A:5 alloc:B:3:linked free:A.")
    files_parser.add_argument("--strategy", "-s", choices=list(files.STRATEGIES), default="contiguous")
    files_parser.add_argument("--capacity", type=int, default=BLOCK_POOL_SIZE)
    files_parser.add_argument("--reserved", default="", help="Blocks occupied from the start, e.g. '0 1 7'.")
    files_parser.add_argument("--index-blocks", type=int, default=DEFAULT_INDEX_BLOCKS)

    bankers_parser = subparsers.add_parser(
        "bankers",
        parents=[common],
        help="Check a resource state for safety and process requests (Banker's algorithm).",
    )
    bankers_parser.add_argument("--max", dest="max_demand", default=CLASSIC_MAX, help="Max matrix, rows separated by ';'.")
    bankers_parser.add_argument("--allocation", default=CLASSIC_ALLOCATION, help="Allocation matrix, rows separated by ';'.")
    bankers_parser.add_argument("--available", default=CLASSIC_AVAILABLE, help="Available vector.")
    bankers_parser.add_argument(
        "--request",
        action="append",
        default=[],
        metavar="PID:VECTOR",
        help="Resource request, e.g. '1:1 0 2'. May be repeated.",
    )
    bankers_parser.add_argument(
        "--release",
        action="append",
        default=[],
        metavar="PID:VECTOR",
        help="Resources returned before requests are processed. May be repeated.",
    )

    sync_parser = subparsers.add_parser(
        "sync",
        parents=[common],
        help="Step through producer-consumer or dining-philosophers scenarios.",
    )
    sync_parser.add_argument(
        "scenario",
        choices=["buffer", "philosophers"],
        help="buffer: produce/consume/resize:N events; philosophers: eat:PID/done:PID events.",
    )
    sync_parser.add_argument("events", nargs="*")
    sync_parser.add_argument("--capacity", type=int, default=BUFFER_CAPACITY)
    sync_parser.add_argument("--items", type=int, default=BUFFER_INITIAL_ITEMS)
    sync_parser.add_argument("--philosophers", type=int, default=PHILOSOPHERS)
    sync_parser.add_argument("--strategy", choices=list(synchronization.TABLE_STRATEGIES), default="backoff")

    return parser


# ==================== CPU scheduling ====================


def _print_result(result: ScheduleResult, console: Console, scale: float = 1.0) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quanta:
        console.print(f"[bold]Quanta:[/bold] {', '.join(fmt_time(q) for q in result.quanta)}, then run to completion")
    elif result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {fmt_time(result.quantum)}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline, scale=scale)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    columns = (
        ("PID", "center"),
        ("Arrive", "right"),
        ("Burst", "right"),
        ("Start", "right"),
        ("Complete", "right"),
        ("Wait", "right"),
        ("Turnaround", "right"),
        ("Response", "right"),
        ("Priority", "center"),
    )
    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for name, justify in columns:
        proc_table.add_column(name, justify=justify)

    for p in result.processes:
        times = (
            p.arrival_time,
            p.burst_time,
            p.start_time,
            p.completion_time,
            p.waiting_time,
            p.turnaround_time,
            p.response_time,
        )
        proc_table.add_row(
            p.pid,
            *(fmt_time(t) for t in times),
            "" if p.priority is None else str(p.priority),
        )

    console.print(proc_table)
    console.print()

    summary = summarize_process_metrics(result.processes)
    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg waiting", f"{summary['avg_waiting']:.2f}")
        sys_table.add_row("Avg turnaround", f"{summary['avg_turnaround']:.2f}")
        sys_table.add_row("Avg response", f"{summary['avg_response']:.2f}")
        sys_table.add_row("Max waiting", fmt_time(summary["max_waiting"]))
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")
        sys_table.add_row("Idle time", fmt_time(sys.idle_time))
        sys_table.add_row("Context switches", str(sys.context_switches))
        sys_table.add_row("Starvation count", str(sys.starvation_count))

        console.print(sys_table)


def _cmd_run(args: argparse.Namespace, console: Console) -> None:
    processes = load_workload(Path(args.workload))
    quantum = args.quantum if args.algorithm.lower() in QUANTUM_ALGORITHMS else None
    result = run_algorithm(args.algorithm, processes, quantum=quantum, quanta=args.quanta)
    _print_result(result, console, scale=args.scale)


def _cmd_compare(args: argparse.Namespace, console: Console) -> None:
    processes = load_workload(Path(args.workload))

    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")

    for alg in args.algorithms:
        q = args.quantum if alg.lower() in QUANTUM_ALGORITHMS else None
        result = run_algorithm(alg, processes, quantum=q, quanta=args.quanta if alg.lower() == "mlfq" else None)
        summary = summarize_process_metrics(result.processes)
        quantum = ",".join(fmt_time(x) for x in result.quanta) if result.quanta else (
            "" if result.quantum is None else fmt_time(result.quantum)
        )
        summary_table.add_row(
            result.algorithm,
            quantum,
            f"{summary['avg_waiting']:.2f}",
            f"{summary['avg_turnaround']:.2f}",
            f"{summary['avg_response']:.2f}",
        )

    console.print(summary_table)


# ==================== Memory ====================


def _apply_memory_op(state: MemoryState, op: str, strategy: str) -> AllocationOutcome:
    name, _, arg = op.partition(":")
    name = name.strip().lower()
    if name == "alloc":
        return memory.allocate(state, arg, strategy)
    if name == "free":
        return memory.free(state, arg)
    if name == "compact":
        return AllocationOutcome(state=memory.compact(state), granted=True, message="Compacted memory into one hole.")
    raise ValidationError("ops", f"unknown memory operation {op!r} (use alloc:SIZE, free:ID or compact)")


def _print_memory(state: MemoryState, console: Console) -> None:
    table = Table(title="Memory blocks", box=box.SIMPLE_HEAVY)
    for h in ("ID", "Start", "End", "Size", "Owner", "Requested", "Internal frag"):
        table.add_column(h, justify="left" if h == "Owner" else "right")
    for b in state.blocks:
        table.add_row(
            str(b.block_id),
            str(b.start),
            str(b.end),
            str(b.size),
            "[dim]Free[/dim]" if b.free else b.label,
            "" if b.free else str(b.requested),
            "" if b.free else str(b.size - b.requested),
        )
    console.print(table)
    console.print(build_memory_map(state.blocks))

    stats = memory.memory_stats(state)
    stats_table = Table(title="Memory statistics", box=box.SIMPLE_HEAVY)
    stats_table.add_column("Metric")
    stats_table.add_column("Value", justify="right")
    stats_table.add_row("Total", str(stats.total))
    stats_table.add_row("Used", str(stats.used))
    stats_table.add_row("Free", str(stats.total_free))
    stats_table.add_row("Largest hole", str(stats.largest_free))
    stats_table.add_row("External fragmentation", str(stats.external_fragmentation))
    stats_table.add_row("Internal fragmentation", str(stats.internal_fragmentation))
    console.print(stats_table)


def _cmd_memory(args: argparse.Namespace, console: Console) -> None:
    if args.scheme == "mft":
        state = memory.create_fixed(args.size, args.partition_size)
    else:
        state = memory.create_memory(args.size)
    strategy = "first" if args.scheme == "mvt" else args.strategy

    for op in args.ops:
        outcome = _apply_memory_op(state, op, strategy)
        color = "green" if outcome.granted else "red"
        console.print(f"[{color}]{op}[/{color}]: {outcome.message}")
        state = outcome.state

    _print_memory(state, console)


def _prompt_sizes(noun: str) -> List[int]:
    count = to_int(input(f"Enter number of {noun}s: ").strip(), f"{noun}s")
    return [to_int(input(f"Enter size of {noun} {i}: ").strip(), noun) for i in range(1, count + 1)]


def _cmd_partitions(args: argparse.Namespace, console: Console) -> None:
    partitions = parse_int_list(args.partitions, "partitions") if args.partitions else _prompt_sizes("partition")
    requests = parse_int_list(args.requests, "requests") if args.requests else _prompt_sizes("process")

    for strategy in args.strategy:
        report = memory.fit_partitions(partitions, requests, strategy)
        console.print(memory.format_partition_report(report), markup=False, highlight=False)


# ==================== Paging ====================


def _cmd_paging(args: argparse.Namespace, console: Console) -> None:
    references = paging.parse_references(args.references)

    if args.algorithm == "all":
        table = Table(title=f"Page replacement with {args.frames} frames", box=box.SIMPLE_HEAVY)
        for h in ("Algorithm", "Faults", "Hits", "Hit ratio"):
            table.add_column(h, justify="left" if h == "Algorithm" else "right")
        for result in paging.compare_policies(references, args.frames, args.window).values():
            table.add_row(result.algorithm, str(result.faults), str(result.hits), f"{result.hit_ratio:.2%}")
        console.print(table)
    else:
        result = paging.simulate_paging(references, args.frames, args.algorithm, args.window)
        table = Table(title=f"{result.algorithm} with {result.frame_count} frames", box=box.SIMPLE_HEAVY)
        table.add_column("#", justify="right")
        table.add_column("Ref", justify="right")
        for i in range(result.frame_count):
            table.add_column(f"F{i}", justify="center")
        table.add_column("Result")
        table.add_column("Evicted", justify="right")

        for step in result.steps:
            cells = []
            for i, page in enumerate(step.frames):
                text = "-" if page is None else str(page)
                cells.append(f"[bold red]{text}[/bold red]" if i == step.replaced_index else text)
            table.add_row(
                str(step.index + 1),
                str(step.page),
                *cells,
                "[red]Fault[/red]" if step.fault else "[green]Hit[/green]",
                "" if step.evicted_page is None else str(step.evicted_page),
            )
        console.print(table)
        console.print(
            f"[bold]Faults:[/bold] {result.faults}  [bold]Hits:[/bold] {result.hits}  "
            f"[bold]Hit ratio:[/bold] {result.hit_ratio:.2%}"
        )

    if args.algorithm in {"fifo", "all"}:
        check = paging.detect_belady(references, args.frames)
        verdict = "[red]Belady's anomaly detected[/red]" if check.anomaly else "[green]No Belady's anomaly[/green]"
        console.print(
            f"FIFO faults: {check.smaller} with {check.frame_count} frames, "
            f"{check.larger} with {check.frame_count + 1} frames. {verdict}"
        )


# ==================== Disk ====================


def _cmd_disk(args: argparse.Namespace, console: Console) -> None:
    if args.algorithm == "all":
        table = Table(title=f"Disk scheduling from cylinder {args.head}", box=box.SIMPLE_HEAVY)
        for h in ("Algorithm", "Order", "Total seek", "Avg seek"):
            table.add_column(h, justify="right" if "seek" in h else "left")
        for name in disk.ALGORITHMS:
            result = disk.schedule_disk(args.requests, args.head, name, args.direction, args.cylinders)
            table.add_row(
                result.algorithm,
                " ".join(str(c) for c in result.order),
                str(result.total_seek),
                f"{result.average_seek:.2f}",
            )
        console.print(table)
        return

    result = disk.schedule_disk(args.requests, args.head, args.algorithm, args.direction, args.cylinders)
    table = Table(title=f"{result.algorithm} from cylinder {result.head} ({result.direction})", box=box.SIMPLE_HEAVY)
    for h in ("Step", "Cylinder", "Move", "Cumulative"):
        table.add_column(h, justify="right")
    for step in result.steps:
        position = str(step.position) if step.serviced else f"[dim]{step.position} (sweep)[/dim]"
        table.add_row(str(step.index + 1), position, str(step.move), str(step.cumulative))
    console.print(table)
    console.print(f"[bold]Path:[/bold] {' -> '.join(str(c) for c in result.path)}")
    console.print(
        f"[bold]Total seek:[/bold] {result.total_seek}  "
        f"[bold]Average seek:[/bold] {result.average_seek:.2f} over {result.served} requests"
    )


# ==================== Files ====================


def _apply_file_op(pool: BlockPool, op: str, strategy: str, index_blocks: int) -> FileOutcome:
    parts = op.split(":")
    action = parts[0].strip().lower()
    if action == "alloc" and len(parts) in (3, 4):
        chosen = parts[3] if len(parts) == 4 else strategy
        return files.allocate_file(pool, parts[1], parts[2], chosen, index_blocks)
    if action == "free" and len(parts) == 2:
        return files.free_file(pool, parts[1])
    raise ValidationError("ops", f"unknown file operation {op!r} (use alloc:NAME:SIZE[:STRATEGY] or free:NAME)")


def _block_grid(pool: BlockPool, per_row: int = 8) -> Text:
    owners: Dict[str, str] = {}
    grid = Text()
    for block in pool.blocks:
        if block.index and block.index % per_row == 0:
            grid.append("\n")
        if block.free:
            grid.append(f"{block.index:>3} {'.':<7}", style="dim")
            continue
        if block.owner not in owners:
            owners[block.owner] = COLORS[len(owners) % len(COLORS)]
        marker = "*" if block.role == "index" else ""
        grid.append(f"{block.index:>3} {(block.owner + marker)[:7]:<7}", style=owners[block.owner])
    return grid


def _cmd_files(args: argparse.Namespace, console: Console) -> None:
    pool = files.create_pool(args.capacity, parse_int_list(args.reserved, "reserved") if args.reserved else ())

    for op in args.ops:
        outcome = _apply_file_op(pool, op, args.strategy, args.index_blocks)
        color = "green" if outcome.granted else "red"
        line = f"[{color}]{op}[/{color}]: {outcome.message}"
        if outcome.overhead is not None:
            line += f" (seeks {outcome.overhead.seeks}, metadata {outcome.overhead.metadata})"
        console.print(line)
        pool = outcome.pool

    console.print(_block_grid(pool))
    console.print()

    table = Table(title="Files", box=box.SIMPLE_HEAVY)
    for h in ("Name", "Strategy", "Size", "Blocks", "Index blocks"):
        table.add_column(h)
    for entry in pool.files:
        if entry.strategy == "linked":
            chain = files.linked_chain(entry)
            blocks = " -> ".join(str(b) for b in chain) + " -> nil"
        else:
            blocks = " ".join(str(b) for b in entry.data_blocks)
        table.add_row(
            entry.name,
            files.STRATEGIES[entry.strategy],
            str(entry.size),
            blocks,
            " ".join(str(b) for b in entry.index_blocks),
        )
    console.print(table)

    extents = files.free_extents(pool)
    console.print(
        f"[bold]Free blocks:[/bold] {pool.free_count}/{pool.capacity}  "
        f"[bold]Free extents:[/bold] {', '.join(f'{s}+{n}' for s, n in extents) or 'none'}"
    )


# ==================== Banker's algorithm ====================


def _parse_matrix(text: str, field: str) -> List[List[int]]:
    return [parse_int_list(row, field) for row in text.split(";") if row.strip()]


def _parse_pid_vector(text: str, field: str) -> Tuple[int, List[int]]:
    pid, sep, vector = text.partition(":")
    if not sep:
        raise ValidationError(field, f"expected PID:VECTOR, got {text!r}")
    return to_int(pid.strip(), "pid"), parse_int_list(vector, field)


def _print_bankers(state: BankersState, console: Console) -> None:
    table = Table(title="Resource state", box=box.SIMPLE_HEAVY)
    for h in ("Process", "Max", "Allocation", "Need"):
        table.add_column(h, justify="center")
    need = state.need
    for pid in range(state.num_processes):
        table.add_row(
            f"P{pid}",
            " ".join(str(x) for x in state.max_demand[pid]),
            " ".join(str(x) for x in state.allocation[pid]),
            " ".join(str(x) for x in need[pid]),
        )
    console.print(table)
    console.print(f"[bold]Available:[/bold] {' '.join(str(x) for x in state.available)}")

    safety = bankers.is_safe(state)
    if safety.safe:
        console.print(f"[green]Safe state.[/green] Safe sequence: {' -> '.join(f'P{p}' for p in safety.sequence)}")
    else:
        console.print("[red]Unsafe state.[/red] No safe sequence exists.")


def _cmd_bankers(args: argparse.Namespace, console: Console) -> None:
    state = bankers.create_state(
        _parse_matrix(args.max_demand, "max_demand"),
        _parse_matrix(args.allocation, "allocation"),
        parse_int_list(args.available, "available"),
    )

    for text in args.release:
        pid, vector = _parse_pid_vector(text, "release")
        state = bankers.release_resources(state, pid, vector)
        console.print(f"P{pid} released {' '.join(str(x) for x in vector)}.")

    _print_bankers(state, console)

    for text in args.request:
        pid, vector = _parse_pid_vector(text, "request")
        outcome = bankers.request_resources(state, pid, vector)
        color = "green" if outcome.granted else "red"
        console.print(f"[{color}]{outcome.message}[/{color}]")
        state = outcome.state

    if args.request:
        _print_bankers(state, console)


# ==================== Synchronization ====================


def _split_event(event: str) -> Tuple[str, str]:
    action, _, arg = event.partition(":")
    return action.strip().lower(), arg.strip()


def _cmd_sync(args: argparse.Namespace, console: Console) -> None:
    if args.scenario == "buffer":
        buffer = synchronization.create_buffer(args.capacity, args.items)
        for event in args.events:
            action, arg = _split_event(event)
            if action == "produce":
                buffer = synchronization.produce(buffer)
            elif action == "consume":
                buffer = synchronization.consume(buffer)
            elif action == "resize":
                buffer = synchronization.resize(buffer, arg)
            else:
                raise ValidationError("events", f"unknown buffer event {event!r} (use produce, consume or resize:N)")
        for line in buffer.log:
            console.print(line, markup=False, highlight=False)
        console.print(
            f"[bold]Buffer:[/bold] {buffer.items}/{buffer.capacity}  "
            f"empty={buffer.empty} full={buffer.full} mutex={buffer.mutex}"
        )
        return

    table = synchronization.create_table(args.philosophers, args.strategy)
    table = synchronization.run_script(table, [_split_event(event) for event in args.events])
    for line in table.log:
        console.print(line, markup=False, highlight=False)
    holders = ", ".join(f"F{i}:{'-' if owner is None else f'P{owner}'}" for i, owner in enumerate(table.forks))
    console.print(f"[bold]Forks:[/bold] {holders}")
    console.print(f"[bold]Eating:[/bold] {', '.join(f'P{p}' for p in table.eating) or 'nobody'}")
    if synchronization.is_deadlocked(table):
        console.print("[red]Deadlock: every philosopher holds one fork and waits for another.[/red]")


_COMMANDS: Dict[str, Callable[[argparse.Namespace, Console], None]] = {
    "run": _cmd_run,
    "compare": _cmd_compare,
    "memory": _cmd_memory,
    "partitions": _cmd_partitions,
    "paging": _cmd_paging,
    "disk": _cmd_disk,
    "files": _cmd_files,
    "bankers": _cmd_bankers,
    "sync": _cmd_sync,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    try:
        _COMMANDS[args.command](args, console)
    except (OSError, ValueError) as exc:
        # ValidationError is a ValueError; OSError covers unreadable workload files.
        logger.debug("command failed", exc_info=True)
        console.print(Text(f"Error: {exc}", style="red"))
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
