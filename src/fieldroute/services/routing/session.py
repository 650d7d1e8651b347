"""Planning session that keeps only the most recently requested result."""

from __future__ import annotations

import itertools
import logging
from typing import Optional

from .models import PlanRequest, PlanResult
from .offloader import RouteOffloader

logger = logging.getLogger(__name__)


class PlanningSession:
    """Issue plan requests and apply results last-write-wins.

    Each request gets a sequence number. A completed result replaces the
    current one only if its sequence number is higher than that of the last
    applied result; older completions are discarded.
    """

    def __init__(self, offloader: Optional[RouteOffloader] = None) -> None:
        self._offloader = offloader or RouteOffloader()
        self._sequence = itertools.count(1)
        self._applied_sequence = 0
        self.current: Optional[PlanResult] = None

    @property
    def applied_sequence(self) -> int:
        return self._applied_sequence

    def next_sequence(self) -> int:
        return next(self._sequence)

    def apply(self, sequence: int, result: PlanResult) -> bool:
        if sequence <= self._applied_sequence:
            logger.debug(
                f"Discarding stale route result #{sequence} (already showing #{self._applied_sequence})"
            )
            return False
        self._applied_sequence = sequence
        self.current = result
        return True

    async def request(self, request: PlanRequest) -> Optional[PlanResult]:
        """Plan ``request`` and return its result, or None if a newer one was applied first."""
        sequence = self.next_sequence()
        result = await self._offloader.compute(request)
        return result if self.apply(sequence, result) else None
