"""
AlgoLab package.

Deterministic simulators for classic operating-system algorithms: CPU
scheduling, contiguous memory allocation, page replacement, disk scheduling,
file allocation, deadlock avoidance and scripted synchronization, with a
command-line interface for running them.
"""

__all__ = [
    "bankers",
    "cli",
    "disk",
    "files",
    "memory",
    "paging",
    "scheduling",
    "synchronization",
]
