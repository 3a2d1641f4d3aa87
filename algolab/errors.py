from __future__ import annotations

from enum import Enum


class AlgoLabError(Exception):
    """Base class for every error raised by the simulation engines."""


class ValidationError(AlgoLabError, ValueError):
    """
    Raised when an input field is non-numeric, non-positive or out of range.

    Raised before any simulation starts, so caller state is never touched.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class LayoutError(AlgoLabError):
    """Raised when a memory block list has gaps, overlaps or unmerged holes."""


class Denial(Enum):
    """Named outcomes for requests an engine refuses without raising."""

    NO_FIT = "no free block or partition fits the request"
    UNKNOWN_TARGET = "no allocated block or file with that id"
    NO_CONTIGUOUS_RUN = "no run of consecutive free blocks is long enough"
    INSUFFICIENT_BLOCKS = "not enough free blocks"
    CLAIMS_EXCEEDED = "request exceeds the process need"
    RESOURCES_EXCEEDED = "request exceeds available resources"
    UNSAFE_STATE = "granting the request would leave the system unsafe"
