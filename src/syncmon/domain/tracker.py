from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Iterable

from .models import RangeEvent, StatusTransition, SyncStatus
from .value_types import BlockGap

logger = logging.getLogger(__name__)

UNINITIALIZED = -1
DEFAULT_GAP_TOLERANCE = 192


class SyncTracker:
    """
    In-memory coverage of one update-event stream.

    Keeps one entry per range origin (`start`), with the largest `count` ever
    seen for it, sorted by `start`. Entries from different origins may overlap;
    gap computation treats each entry's end as a high-water mark.

    Gaps are half-open `[start, end)`. The trailing boundary is
    `latest_block - gap_tolerance`; with `inclusive_boundary=True` that safe
    height itself is reported as missing (gap end is `safe + 1`), otherwise the
    gap stops right before it.
    """

    def __init__(
        self,
        gap_tolerance: int = DEFAULT_GAP_TOLERANCE,
        *,
        accepted_gaps: Iterable[int] = (),
        inclusive_boundary: bool = True,
    ) -> None:
        if gap_tolerance < 0:
            raise ValueError(f"gap_tolerance must be >= 0, got {gap_tolerance}")
        self._counts: dict[int, int] = {}
        self._starts: list[int] = []
        self._frontier = UNINITIALIZED
        self._status = SyncStatus.IN_SYNC
        self._gap_tolerance = gap_tolerance
        self._accepted_gaps = frozenset(accepted_gaps)
        self._inclusive = inclusive_boundary

    # ---- getters ----------------------------------------------------------
    @property
    def covered_ranges(self) -> list[RangeEvent]:
        return [RangeEvent(s, self._counts[s]) for s in self._starts]

    @property
    def frontier(self) -> int: return self._frontier

    @property
    def initialized(self) -> bool: return self._frontier != UNINITIALIZED

    @property
    def status(self) -> SyncStatus: return self._status

    @property
    def gap_tolerance(self) -> int: return self._gap_tolerance

    @property
    def accepted_gaps(self) -> frozenset[int]: return self._accepted_gaps

    @property
    def inclusive_boundary(self) -> bool: return self._inclusive

    def safe_boundary(self, latest_block: int) -> int:
        return latest_block - self._gap_tolerance

    # ---- ingestion ---------------------------------------------------------
    def add_event(self, event: RangeEvent) -> None:
        """Merge one event; a known origin keeps the max count, never shrinks."""
        prev = self._counts.get(event.start)
        if prev is not None:
            self._counts[event.start] = max(prev, event.count)
            return
        self._starts.insert(bisect_left(self._starts, event.start), event.start)
        self._counts[event.start] = event.count

    # ---- gap computation ---------------------------------------------------
    def get_missing_blocks(self, latest_block: int) -> list[BlockGap]:
        safe = self.safe_boundary(latest_block)
        limit = safe + 1 if self._inclusive else safe

        if not self._starts:
            return [(0, limit)] if limit > 0 else []

        missing: list[BlockGap] = []

        def emit(s: int, e: int) -> None:
            # zero-count ranges would otherwise split one gap in two
            if missing and missing[-1][1] == s:
                missing[-1] = (missing[-1][0], e)
            else:
                missing.append((s, e))

        first = self._starts[0]
        if first > 0:
            if first in self._accepted_gaps:
                logger.info("ignoring accepted gap [0, %d)", first)
            else:
                emit(0, first)

        next_expected = first + self._counts[first]
        for s in self._starts[1:]:
            if s > next_expected:
                emit(next_expected, s)
            next_expected = max(next_expected, s + self._counts[s])

        if next_expected < safe:
            emit(next_expected, limit)
        return missing

    # ---- state transition --------------------------------------------------
    def check_and_update_monitor_status(
        self, events: Iterable[RangeEvent], latest_block: int
    ) -> StatusTransition:
        for ev in events:
            self.add_event(ev)

        missing = self.get_missing_blocks(latest_block)
        old_status = self._status
        new_status = SyncStatus.OUT_OF_SYNC if missing else SyncStatus.IN_SYNC

        self._status = new_status
        if latest_block < self._frontier:
            # node behind the one answering last cycle; keep the frontier monotonic
            logger.warning(
                "frontier regression: latest block %d < frontier %d, keeping frontier",
                latest_block, self._frontier,
            )
        else:
            self._frontier = latest_block
        return StatusTransition(old_status, new_status, missing)

    def __len__(self) -> int: return len(self._starts)

    def __repr__(self) -> str:
        return (f"SyncTracker(ranges={len(self._starts)}, frontier={self._frontier}, "
                f"status={self._status.value}, gap_tolerance={self._gap_tolerance})")
