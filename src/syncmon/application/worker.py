from __future__ import annotations
import asyncio, logging
from dataclasses import dataclass

from ..domain.decoding import UPDATE_EVENT_T0, decode_update_events
from ..domain.models import EventLog, StatusTransition
from ..domain.tracker import SyncTracker
from ..domain.value_types import Address, Topic0
from ..ports.reporting import StatusReporter
from ..ports.rpc import RPCClient
from .planning import plan_chunks
from .utils import retry_async

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CycleResult:
    transition: StatusTransition
    from_block: int
    to_block: int
    fetched: int


class MonitorWorker:
    """
    Drives one SyncTracker from a JSON-RPC node.

    A cycle fetches the latest height, pulls every UpdateEvent log between
    the tracker frontier and that height (minus the finality offset), and
    only then commits the batch to the tracker. A failed fetch leaves the
    tracker untouched.
    """

    def __init__(
        self,
        rpc: RPCClient,
        tracker: SyncTracker,
        reporter: StatusReporter,
        *,
        address: Address,
        topic0: Topic0 = UPDATE_EVENT_T0,
        start_block: int = 0,
        finality_offset: int = 6,
        retries: int = 3,
        retry_backoff_s: float = 0.8,
        log_chunk_size: int = 10_000,
        concurrency: int = 4,
    ) -> None:
        self.rpc = rpc
        self.tracker = tracker
        self.reporter = reporter
        self.address = address
        self.topic0 = topic0
        self.start_block = start_block
        self.finality_offset = finality_offset
        self.retries = retries
        self.retry_backoff_s = retry_backoff_s
        self.log_chunk_size = log_chunk_size
        self.concurrency = concurrency
        self._lock = asyncio.Lock()

    async def latest_block(self) -> int:
        raw = await retry_async(self.rpc.latest_block, attempts=self.retries,
                                backoff_s=self.retry_backoff_s, what="eth_blockNumber")
        return max(0, raw - self.finality_offset)

    async def fetch_logs(self, from_block: int, to_block: int) -> list[EventLog]:
        """All logs in [from_block, to_block], or an exception; never a partial list."""
        chunks = plan_chunks(from_block, to_block, self.log_chunk_size)
        sem = asyncio.Semaphore(self.concurrency)

        async def run_chunk(fb: int, tb: int) -> list[EventLog]:
            async with sem:
                return await retry_async(
                    lambda: self.rpc.get_logs(self.address, [self.topic0], fb, tb),
                    attempts=self.retries, backoff_s=self.retry_backoff_s,
                    what=f"eth_getLogs [{fb}, {tb}]",
                )

        tasks = [asyncio.create_task(run_chunk(c.start, c.end)) for c in chunks]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        logs = [log for chunk_logs in results for log in chunk_logs]
        logs.sort(key=lambda l: (l.block_number, l.log_index))
        return logs

    async def check_once(self, at_block: int | None = None) -> CycleResult:
        """One fetch-merge-report cycle; `at_block` pins the height instead of asking the node."""
        async with self._lock:
            latest = await self.latest_block() if at_block is None else at_block
            from_block = self.tracker.frontier if self.tracker.initialized else self.start_block
            logs: list[EventLog] = []
            if from_block <= latest:
                logs = await self.fetch_logs(from_block, latest)
            else:
                logger.debug("nothing to fetch: from_block %d > latest %d", from_block, latest)

            events = decode_update_events(logs, topic0=self.topic0)
            transition = self.tracker.check_and_update_monitor_status(events, latest)
            res = CycleResult(transition=transition, from_block=from_block, to_block=latest, fetched=len(events))
        self.reporter.report(transition, from_block=from_block, to_block=latest, fetched=len(events))
        return res

    async def run(self, stop: asyncio.Event, *, interval_s: float = 20.0, max_cycles: int | None = None) -> int:
        """Run cycles until `stop` is set; returns the number of completed cycles.

        The next cycle is armed only after the previous one returned. A failing
        cycle is logged and retried on the next tick.
        """
        cycles = attempts = 0
        while not stop.is_set():
            attempts += 1
            try:
                await self.check_once()
                cycles += 1
            except Exception:
                logger.exception("monitor cycle failed, retrying in %.1fs", interval_s)
            if max_cycles is not None and attempts >= max_cycles:
                break
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_s)
            except asyncio.TimeoutError:
                pass
        logger.info("monitor stopped after %d cycle(s)", cycles)
        return cycles
