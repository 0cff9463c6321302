from __future__ import annotations
import logging
from ..domain.models import StatusTransition, SyncStatus
from ..ports.reporting import StatusReporter

logger = logging.getLogger(__name__)


class LoggingReporter(StatusReporter):
    """Reports each cycle through `logging`; status edges are logged distinctly."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def report(self, transition: StatusTransition, *, from_block: int, to_block: int, fetched: int) -> None:
        old, new, missing = transition
        self.log.info("Got %d new events for block %d to %d", fetched, from_block, to_block)
        if old is SyncStatus.IN_SYNC:
            if new is SyncStatus.OUT_OF_SYNC:
                self.log.warning("Updater became out of sync, %d missing range(s)", len(missing))
                self._gaps(missing)
            else:
                self.log.info("Updater is still in sync")
        else:
            if new is SyncStatus.IN_SYNC:
                self.log.info("Updater alert resolved, it is in sync")
            else:
                self.log.warning("Updater is still out of sync, %d missing range(s)", len(missing))
                self._gaps(missing)

    def _gaps(self, missing: list[tuple[int, int]]) -> None:
        for s, e in missing:
            self.log.warning("  missing blocks [%d, %d) (%d blocks)", s, e, e - s)
