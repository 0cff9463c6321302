"""
Shared pytest fixtures for the syncmon test suite.

Provides an in-memory RPC node, a recording reporter and a factory for
ABI-encoded UpdateEvent logs.
"""

from __future__ import annotations

from typing import Callable, Sequence

import pytest

from syncmon.domain.decoding import UPDATE_EVENT_T0
from syncmon.domain.models import EventLog, StatusTransition
from syncmon.domain.value_types import Address, Topic0

CONTRACT = Address("0xF990f9CB1A0aa6B51c0720a6f4cAe577d7AbD86A")


def encode_update_data(start: int, count: int) -> str:
    """ABI data of UpdateEvent(uint32, bytes32, bytes32, uint32)."""
    words = [start.to_bytes(32, "big"), b"\x11" * 32, b"\x22" * 32, count.to_bytes(32, "big")]
    return "0x" + b"".join(words).hex()


class FakeRPC:
    """In-memory node: a head height plus logs, with scriptable failures."""

    def __init__(self, head: int = 0, logs: Sequence[EventLog] = ()) -> None:
        self.head = head
        self.logs = list(logs)
        self.fail_latest = 0
        self.fail_get_logs = 0
        self.latest_calls = 0
        self.get_logs_calls: list[tuple[int, int]] = []

    async def latest_block(self) -> int:
        self.latest_calls += 1
        if self.fail_latest > 0:
            self.fail_latest -= 1
            raise ConnectionError("node unreachable")
        return self.head

    async def get_logs(self, address: Address, topic0s: Sequence[Topic0], from_block: int, to_block: int) -> list[EventLog]:
        self.get_logs_calls.append((from_block, to_block))
        if self.fail_get_logs > 0:
            self.fail_get_logs -= 1
            raise ConnectionError("read timeout")
        return [l for l in self.logs if from_block <= l.block_number <= to_block and l.topic0 in topic0s]


class RecordingReporter:
    def __init__(self) -> None:
        self.reports: list[tuple[StatusTransition, int, int, int]] = []

    def report(self, transition: StatusTransition, *, from_block: int, to_block: int, fetched: int) -> None:
        self.reports.append((transition, from_block, to_block, fetched))


@pytest.fixture
def update_log() -> Callable[..., EventLog]:
    """Factory for UpdateEvent logs: update_log(start, count, block=...)."""
    counter = iter(range(1_000_000))

    def make(start: int, count: int, block: int | None = None, topic0: Topic0 = UPDATE_EVENT_T0) -> EventLog:
        i = next(counter)
        return EventLog(
            address=Address(CONTRACT.lower()),
            topic0=topic0,
            data_hex=encode_update_data(start, count),
            block_number=block if block is not None else start + count,
            tx_hash="0x" + f"{i:064x}",
            log_index=0,
        )

    return make


@pytest.fixture
def fake_rpc() -> FakeRPC:
    return FakeRPC()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
