from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_FRAMES, WSCLOCK_WINDOW
from .errors import ValidationError
from .models import BeladyCheck, PagingResult, PagingStep
from .workload import parse_int_list, require_non_negative, require_positive, to_int

logger = logging.getLogger(__name__)

ALGORITHMS = {
    "fifo": "FIFO",
    "lru": "LRU",
    "mru": "MRU",
    "clock": "CLOCK",
    "wsclock": "WSClock",
    "opt": "Optimal (OPT)",
}

# Policies that keep a circular hand across faults.
_HAND_POLICIES = {"fifo", "clock", "wsclock"}


def parse_references(references: Sequence[int] | str) -> List[int]:
    pages = [int(require_non_negative(p, "references")) for p in parse_int_list(references, "references")]
    if not pages:
        raise ValidationError("references", "enter at least one page reference")
    return pages


def _next_use(refs: List[int], page: Optional[int], after: int) -> float:
    for j in range(after + 1, len(refs)):
        if refs[j] == page:
            return j
    return math.inf


def _select_victim(
    algorithm: str,
    frames: List[Optional[int]],
    ref_bits: List[int],
    last_used: List[int],
    hand: int,
    refs: List[int],
    now: int,
    window: int,
) -> Tuple[int, int]:
    """
    Choose the frame to evict when every frame is occupied.

    Returns ``(victim, hand)``; the hand is only meaningful for the
    FIFO/CLOCK family. ``ref_bits`` and ``last_used`` are updated in place
    for the frames the clock hand passes.
    """
    n = len(frames)

    if algorithm == "fifo":
        return hand, (hand + 1) % n

    if algorithm == "lru":
        return min(range(n), key=lambda i: last_used[i]), hand

    if algorithm == "mru":
        return max(range(n), key=lambda i: last_used[i]), hand

    if algorithm == "clock":
        while True:
            if ref_bits[hand] == 0:
                return hand, (hand + 1) % n
            ref_bits[hand] = 0
            hand = (hand + 1) % n

    if algorithm == "wsclock":
        for _ in range(n):
            if ref_bits[hand] == 1:
                ref_bits[hand] = 0
                last_used[hand] = now
            elif now - last_used[hand] > window:
                return hand, (hand + 1) % n
            hand = (hand + 1) % n
        # A full revolution found nothing outside the window: take the
        # oldest frame, scanning from the hand.
        victim = min(((hand + k) % n for k in range(n)), key=lambda i: last_used[i])
        return victim, (victim + 1) % n

    # OPT: farthest next use; pages never used again win outright.
    return max(range(n), key=lambda i: (_next_use(refs, frames[i], now), i)), hand


def simulate_paging(
    references: Sequence[int] | str,
    frame_count: int = DEFAULT_FRAMES,
    algorithm: str = "fifo",
    window: int = WSCLOCK_WINDOW,
) -> PagingResult:
    """
    Replay ``references`` against ``frame_count`` frames.

    Empty frames are filled lowest index first before the policy is asked
    for a victim. Logical time is the reference index; a hit sets the
    frame's reference bit and refreshes its last-used time.
    """
    algorithm = algorithm.lower()
    if algorithm not in ALGORITHMS:
        raise ValidationError("algorithm", f"unknown page replacement policy {algorithm!r}")
    refs = parse_references(references)
    n = int(require_positive(to_int(frame_count, "frame_count"), "frame_count"))
    window = int(require_non_negative(to_int(window, "window"), "window"))

    frames: List[Optional[int]] = [None] * n
    ref_bits = [0] * n
    last_used = [-1] * n
    hand = 0

    result = PagingResult(algorithm=ALGORITHMS[algorithm], frame_count=n)

    for now, page in enumerate(refs):
        replaced: Optional[int] = None
        evicted: Optional[int] = None

        if page in frames:
            slot = frames.index(page)
            ref_bits[slot] = 1
            last_used[slot] = now
            result.hits += 1
        else:
            result.faults += 1
            if None in frames:
                replaced = frames.index(None)
                if algorithm in _HAND_POLICIES:
                    hand = (replaced + 1) % n
            else:
                replaced, hand = _select_victim(algorithm, frames, ref_bits, last_used, hand, refs, now, window)
                evicted = frames[replaced]
                logger.debug(f"{ALGORITHMS[algorithm]}: t={now} evict page {evicted} from frame {replaced} for {page}")

            frames[replaced] = page
            ref_bits[replaced] = 1
            last_used[replaced] = now

        result.steps.append(
            PagingStep(
                index=now,
                page=page,
                fault=replaced is not None,
                frames=tuple(frames),
                replaced_index=replaced,
                evicted_page=evicted,
                reference_bits=tuple(ref_bits),
                last_used=tuple(last_used),
                hand=hand,
            )
        )

    logger.info(f"{result.algorithm}: {result.faults} faults, {result.hits} hits over {len(refs)} references")
    return result


def detect_belady(references: Sequence[int] | str, frame_count: int = DEFAULT_FRAMES) -> BeladyCheck:
    """
    Run FIFO with ``frame_count`` and ``frame_count + 1`` frames; the check
    reports an anomaly when the extra frame causes strictly more faults.
    """
    smaller = simulate_paging(references, frame_count, "fifo")
    larger = simulate_paging(references, smaller.frame_count + 1, "fifo")
    check = BeladyCheck(frame_count=smaller.frame_count, smaller=smaller.faults, larger=larger.faults)
    if check.anomaly:
        logger.info(
            f"Belady's anomaly: FIFO faults with {check.frame_count + 1} frames ({check.larger}) "
            f"exceeded faults with {check.frame_count} frames ({check.smaller})"
        )
    return check


def compare_policies(
    references: Sequence[int] | str,
    frame_count: int = DEFAULT_FRAMES,
    window: int = WSCLOCK_WINDOW,
) -> Dict[str, PagingResult]:
    """Run every policy on the same reference string; only WSClock reads ``window``."""
    refs = parse_references(references)
    return {name: simulate_paging(refs, frame_count, name, window) for name in ALGORITHMS}
