from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple
from .value_types import Address, BlockGap, Topic0


@dataclass(slots=True, frozen=True)
class BlockRange:
    """Inclusive [start, end] block window, as used by eth_getLogs."""
    start: int
    end: int
    def span(self) -> int: return self.end - self.start + 1


@dataclass(slots=True, frozen=True)
class RangeEvent:
    """Blocks [start, start + count) reported as finalized by one update."""
    start: int
    count: int

    def __post_init__(self) -> None:
        for name in ("start", "count"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int):
                raise TypeError(f"RangeEvent.{name} must be an int, got {type(v).__name__}")
            if v < 0:
                raise ValueError(f"RangeEvent.{name} must be >= 0, got {v}")

    def end(self) -> int: return self.start + self.count


class SyncStatus(str, Enum):
    IN_SYNC = "in_sync"
    OUT_OF_SYNC = "out_of_sync"


class StatusTransition(NamedTuple):
    old_status: SyncStatus
    new_status: SyncStatus
    missing_blocks: list[BlockGap]

    @property
    def changed(self) -> bool: return self.old_status is not self.new_status


@dataclass(slots=True, frozen=True)
class EventLog:
    address: Address
    topic0: Topic0
    data_hex: str
    block_number: int
    tx_hash: str
    log_index: int
