# syncmon/ports/reporting.py
from __future__ import annotations

from typing import Protocol
from ..domain.models import StatusTransition


class StatusReporter(Protocol):
    """Port receiving the outcome of every monitor cycle."""

    def report(
        self,
        transition: StatusTransition,
        *,
        from_block: int,
        to_block: int,
        fetched: int,
    ) -> None:
        """Log/alert on the transition; edges must be distinguishable from steady state."""
