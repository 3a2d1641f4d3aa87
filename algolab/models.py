from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import numpy as np

from .errors import Denial

Number = Union[int, float]


# ==================== CPU scheduling ====================


@dataclass
class Process:
    pid: str
    arrival_time: Number
    burst_time: Number
    priority: Optional[int] = None


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.

    ``remaining`` is the burst left after the slice; ``ready_queue`` lists the
    processes that were waiting when the slice was dispatched.
    """

    pid: str
    start_time: Number
    end_time: Number
    remaining: Number = 0
    level: Optional[int] = None
    ready_queue: Tuple[str, ...] = ()


@dataclass
class ProcessMetrics:
    pid: str
    arrival_time: Number
    burst_time: Number
    start_time: Number
    completion_time: Number
    waiting_time: Number
    turnaround_time: Number
    response_time: Number
    priority: Optional[int] = None


@dataclass
class SystemMetrics:
    cpu_busy_time: Number
    makespan: Number
    throughput: float
    cpu_utilization: float
    starvation_count: int = 0
    idle_time: Number = 0
    context_switches: int = 0


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[Number]
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    system: Optional[SystemMetrics] = None
    quanta: Tuple[Number, ...] = ()


# ==================== Memory ====================


@dataclass(frozen=True)
class MemoryBlock:
    """
    A contiguous extent of memory.

    ``requested`` is the size the owner asked for; it only differs from
    ``size`` for fixed partitions, where the gap is internal fragmentation.
    """

    block_id: int
    start: int
    size: int
    free: bool = True
    label: str = "Free"
    requested: int = 0
    fixed: bool = False

    @property
    def end(self) -> int:
        return self.start + self.size


@dataclass(frozen=True)
class MemoryState:
    scheme: str
    blocks: Tuple[MemoryBlock, ...]
    next_id: int
    next_label: int = 1
    next_fit_address: int = 0

    @property
    def total_size(self) -> int:
        return sum(b.size for b in self.blocks)

    def block(self, block_id: int) -> Optional[MemoryBlock]:
        return next((b for b in self.blocks if b.block_id == block_id), None)


@dataclass(frozen=True)
class AllocationOutcome:
    state: MemoryState
    granted: bool
    message: str
    block_id: Optional[int] = None
    denial: Optional[Denial] = None


@dataclass(frozen=True)
class MemoryStats:
    total: int
    used: int
    total_free: int
    largest_free: int
    external_fragmentation: int
    internal_fragmentation: int


@dataclass
class PartitionReport:
    """Result of fitting a request list into fixed partitions in one pass."""

    strategy: str
    partitions: List[int]
    requests: List[int]
    partition_owner: List[Optional[int]]
    process_partition: List[Optional[int]]
    internal_fragmentation: List[int]

    @property
    def total_memory(self) -> int:
        return sum(self.partitions)

    @property
    def total_internal_fragmentation(self) -> int:
        return sum(self.internal_fragmentation)

    @property
    def unallocated(self) -> int:
        return sum(1 for p in self.process_partition if p is None)


# ==================== Paging ====================


@dataclass(frozen=True)
class PagingStep:
    index: int
    page: int
    fault: bool
    frames: Tuple[Optional[int], ...]
    replaced_index: Optional[int]
    evicted_page: Optional[int]
    reference_bits: Tuple[int, ...]
    last_used: Tuple[int, ...]
    hand: int


@dataclass
class PagingResult:
    algorithm: str
    frame_count: int
    steps: List[PagingStep] = field(default_factory=list)
    hits: int = 0
    faults: int = 0

    @property
    def references(self) -> int:
        return len(self.steps)

    @property
    def hit_ratio(self) -> float:
        return self.hits / self.references if self.references else 0.0


@dataclass(frozen=True)
class BeladyCheck:
    frame_count: int
    smaller: int
    larger: int

    @property
    def anomaly(self) -> bool:
        return self.larger > self.smaller


# ==================== Disk scheduling ====================


@dataclass(frozen=True)
class DiskStep:
    index: int
    position: int
    move: int
    cumulative: int
    serviced: bool = True


@dataclass
class DiskResult:
    algorithm: str
    head: int
    direction: str
    order: List[int] = field(default_factory=list)
    steps: List[DiskStep] = field(default_factory=list)

    @property
    def path(self) -> List[int]:
        return [self.head] + [s.position for s in self.steps]

    @property
    def total_seek(self) -> int:
        return self.steps[-1].cumulative if self.steps else 0

    @property
    def served(self) -> int:
        return len(self.order)

    @property
    def average_seek(self) -> float:
        return self.total_seek / self.served if self.served else 0.0


# ==================== File allocation ====================


@dataclass(frozen=True)
class DiskBlock:
    index: int
    owner: Optional[str] = None
    role: str = "data"

    @property
    def free(self) -> bool:
        return self.owner is None


@dataclass(frozen=True)
class FileEntry:
    name: str
    strategy: str
    data_blocks: Tuple[int, ...]
    index_blocks: Tuple[int, ...] = ()

    @property
    def size(self) -> int:
        return len(self.data_blocks)


@dataclass(frozen=True)
class Overhead:
    seeks: int
    metadata: int


@dataclass(frozen=True)
class BlockPool:
    blocks: Tuple[DiskBlock, ...]
    files: Tuple[FileEntry, ...] = ()

    @property
    def capacity(self) -> int:
        return len(self.blocks)

    @property
    def free_count(self) -> int:
        return sum(1 for b in self.blocks if b.free)

    def file(self, name: str) -> Optional[FileEntry]:
        return next((f for f in self.files if f.name == name), None)


@dataclass(frozen=True)
class FileOutcome:
    pool: BlockPool
    granted: bool
    message: str
    entry: Optional[FileEntry] = None
    overhead: Optional[Overhead] = None
    denial: Optional[Denial] = None


# ==================== Banker's algorithm ====================


@dataclass(frozen=True, eq=False)
class BankersState:
    """
    Resource matrices for deadlock avoidance.

    Attributes:
        max_demand: [P][R] maximum claim of each process
        allocation: [P][R] instances currently held
        available: [R] free instances by type
    """

    max_demand: np.ndarray
    allocation: np.ndarray
    available: np.ndarray

    def __post_init__(self) -> None:
        # Each state owns read-only copies; derive new states instead of editing.
        for name in ("max_demand", "allocation", "available"):
            array = np.array(getattr(self, name), dtype=int)
            array.flags.writeable = False
            object.__setattr__(self, name, array)

    @property
    def num_processes(self) -> int:
        return self.allocation.shape[0]

    @property
    def num_resources(self) -> int:
        return self.available.shape[0]

    @property
    def need(self) -> np.ndarray:
        """Need = Max - Allocation, clamped at zero."""
        return np.maximum(self.max_demand - self.allocation, 0)


@dataclass(frozen=True)
class SafetyStep:
    pid: int
    need: Tuple[int, ...]
    work: Tuple[int, ...]
    finished: bool


@dataclass
class SafetyResult:
    safe: bool
    sequence: List[int] = field(default_factory=list)
    steps: List[SafetyStep] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class RequestOutcome:
    state: BankersState
    granted: bool
    message: str
    safety: Optional[SafetyResult] = None
    denial: Optional[Denial] = None


# ==================== Synchronization ====================


@dataclass(frozen=True)
class BufferState:
    capacity: int
    items: int
    step: int = 1
    log: Tuple[str, ...] = ()

    @property
    def empty(self) -> int:
        return max(self.capacity - self.items, 0)

    @property
    def full(self) -> int:
        return self.items

    @property
    def mutex(self) -> int:
        return 1


@dataclass(frozen=True)
class TableState:
    """
    Fork ownership around the table; ``forks[i]`` is the philosopher holding
    fork ``i`` or ``None``.
    """

    forks: Tuple[Optional[int], ...]
    eating: Tuple[int, ...] = ()
    strategy: str = "backoff"
    log: Tuple[str, ...] = ()

    @property
    def size(self) -> int:
        return len(self.forks)

