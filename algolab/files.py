from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from .config import BLOCK_POOL_SIZE, DEFAULT_INDEX_BLOCKS
from .errors import Denial, ValidationError
from .models import BlockPool, DiskBlock, FileEntry, FileOutcome, Overhead
from .workload import require_positive, to_int

logger = logging.getLogger(__name__)

STRATEGIES = {
    "contiguous": "Contiguous",
    "linked": "Linked",
    "indexed": "Indexed (1-level)",
}

RESERVED = "(reserved)"


def _positive_int(value, field: str) -> int:
    return int(require_positive(to_int(value, field), field))


def create_pool(capacity: int = BLOCK_POOL_SIZE, reserved: Iterable[int] = ()) -> BlockPool:
    """
    A pool of ``capacity`` free blocks; indices in ``reserved`` start out
    occupied and belong to no file.
    """
    capacity = _positive_int(capacity, "capacity")
    taken = set()
    for index in reserved:
        index = to_int(index, "reserved")
        if not 0 <= index < capacity:
            raise ValidationError("reserved", f"block {index} outside 0-{capacity - 1}")
        taken.add(index)

    return BlockPool(
        blocks=tuple(DiskBlock(index=i, owner=RESERVED if i in taken else None) for i in range(capacity))
    )


def allocation_overhead(strategy: str, size: int, index_blocks: int = DEFAULT_INDEX_BLOCKS) -> Overhead:
    """
    Seeks to reach a file and metadata units spent on it: contiguous needs a
    single directory entry, linked one pointer per block, indexed its index
    blocks.
    """
    if strategy == "linked":
        return Overhead(seeks=2, metadata=size)
    if strategy == "indexed":
        return Overhead(seeks=2, metadata=index_blocks)
    return Overhead(seeks=1, metadata=1)


def find_run(pool: BlockPool, size: int) -> Optional[int]:
    """Start of the first run of ``size`` consecutive free blocks."""
    count = 0
    start = 0
    for block in pool.blocks:
        if block.free:
            if count == 0:
                start = block.index
            count += 1
            if count >= size:
                return start
        else:
            count = 0
    return None


def free_extents(pool: BlockPool) -> List[Tuple[int, int]]:
    """Maximal runs of free blocks as ``(start, length)`` pairs."""
    extents: List[Tuple[int, int]] = []
    for block in pool.blocks:
        if not block.free:
            continue
        if extents and extents[-1][0] + extents[-1][1] == block.index:
            start, length = extents[-1]
            extents[-1] = (start, length + 1)
        else:
            extents.append((block.index, 1))
    return extents


def _deny(pool: BlockPool, denial: Denial, message: str) -> FileOutcome:
    logger.info(message)
    return FileOutcome(pool=pool, granted=False, message=message, denial=denial)


def allocate_file(
    pool: BlockPool,
    name: str,
    size: int,
    strategy: str = "contiguous",
    index_blocks: int = DEFAULT_INDEX_BLOCKS,
) -> FileOutcome:
    """
    Place a file of ``size`` data blocks.

    Linked and indexed placement take the lowest-numbered free blocks, so
    runs are reproducible; nothing about those strategies depends on which
    free blocks are picked.
    """
    strategy = strategy.lower()
    if strategy not in STRATEGIES:
        raise ValidationError("strategy", f"unknown file allocation strategy {strategy!r}")
    name = str(name).strip()
    if not name or name == RESERVED:
        raise ValidationError("name", "file name must not be empty")
    if pool.file(name) is not None:
        raise ValidationError("name", f"file {name!r} already exists")
    size = _positive_int(size, "size")
    index_count = _positive_int(index_blocks, "index_blocks") if strategy == "indexed" else 0

    free = [b.index for b in pool.blocks if b.free]
    index: List[int] = []

    if strategy == "contiguous":
        start = find_run(pool, size)
        if start is None:
            return _deny(pool, Denial.NO_CONTIGUOUS_RUN, f"Contiguous allocation failed: no stretch of {size} free blocks.")
        data = list(range(start, start + size))
        message = f"Contiguous: placed {name} in blocks {start}-{start + size - 1}."
    elif strategy == "linked":
        if size > len(free):
            return _deny(pool, Denial.INSUFFICIENT_BLOCKS, "Linked allocation failed: not enough free blocks.")
        data = free[:size]
        message = f"Linked: allocated {size} blocks with next pointers for {name}."
    else:
        if index_count + size > len(free):
            return _deny(
                pool,
                Denial.INSUFFICIENT_BLOCKS,
                "Indexed allocation failed: insufficient free blocks for index + data.",
            )
        index = free[:index_count]
        data = free[index_count:index_count + size]
        message = f"Indexed: reserved {index_count} index block(s) and {size} data block(s) for {name}."

    roles: Dict[int, str] = {i: "index" for i in index}
    roles.update({i: "data" for i in data})
    blocks = tuple(
        replace(b, owner=name, role=roles[b.index]) if b.index in roles else b
        for b in pool.blocks
    )
    entry = FileEntry(name=name, strategy=strategy, data_blocks=tuple(data), index_blocks=tuple(index))
    logger.debug(message)
    return FileOutcome(
        pool=BlockPool(blocks=blocks, files=pool.files + (entry,)),
        granted=True,
        message=message,
        entry=entry,
        overhead=allocation_overhead(strategy, size, index_count),
    )


def free_file(pool: BlockPool, name: str) -> FileOutcome:
    """Release every block owned by ``name``; adjacent holes read as one extent afterwards."""
    entry = pool.file(str(name).strip())
    if entry is None:
        return _deny(pool, Denial.UNKNOWN_TARGET, f"No file named {name!r}.")

    blocks = tuple(
        DiskBlock(index=b.index) if b.owner == entry.name else b
        for b in pool.blocks
    )
    new_pool = BlockPool(blocks=blocks, files=tuple(f for f in pool.files if f.name != entry.name))
    message = f"Freed blocks labeled {entry.name}; {len(free_extents(new_pool))} free extent(s)."
    logger.debug(message)
    return FileOutcome(pool=new_pool, granted=True, message=message, entry=entry)


def linked_chain(entry: FileEntry) -> Dict[int, Optional[int]]:
    """Next-block pointers of a file, in chain order; the tail points to ``None``."""
    chain = list(entry.data_blocks)
    return {block: (chain[i + 1] if i + 1 < len(chain) else None) for i, block in enumerate(chain)}
