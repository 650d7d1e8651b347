"""Decide between inline and background execution of the route planner.

Large inputs are planned in a separate worker process so the event loop that
issued the request stays responsive. Only plain dictionaries cross the
process boundary, and any failure on the background path is recovered by
planning inline.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import Any, Callable, Optional

from ...config import settings
from .models import PlanRequest, PlanResult
from .planner import plan_route, validate_request

ExecutorFactory = Callable[[], Executor]

logger = logging.getLogger(__name__)


def background_execution_available() -> bool:
    """Return True if the host can start worker processes."""
    if sys.platform in {"emscripten", "wasi"}:
        return False
    try:
        # ProcessPoolExecutor needs working semaphores (sem_open)
        import multiprocessing.synchronize  # noqa: F401
    except ImportError:
        return False
    return True


def _new_worker() -> Executor:
    return ProcessPoolExecutor(max_workers=1)


def plan_in_worker(payload: dict[str, Any]) -> dict[str, Any]:
    """Worker entry point: plain dict in, PlanResult-shaped dict out."""
    return plan_route(PlanRequest.from_dict(payload)).to_dict()


class RouteOffloader:
    def __init__(
        self,
        *,
        threshold: Optional[int] = None,
        enabled: Optional[bool] = None,
        executor_factory: Optional[ExecutorFactory] = None,
    ) -> None:
        self.threshold = settings.async_offload_threshold if threshold is None else threshold
        if enabled is None:
            enabled = settings.offload_enabled and background_execution_available()
        self.enabled = enabled
        self.executor_factory = executor_factory or _new_worker

    def should_offload(self, request: PlanRequest) -> bool:
        return self.enabled and len(request.points) >= self.threshold

    def compute_sync(self, request: PlanRequest) -> PlanResult:
        return plan_route(request)

    async def compute(self, request: PlanRequest) -> PlanResult:
        """Plan ``request``, in a background worker when it is large enough.

        Invalid requests raise before any worker is started.
        """
        validate_request(request)
        if not self.should_offload(request):
            return self.compute_sync(request)

        try:
            payload = await self._run_in_worker(request.to_dict())
            return PlanResult.from_dict(payload)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(
                f"Background route planning failed for {len(request.points)} points: {exc!r}. "
                f"Planning synchronously instead."
            )
            return self.compute_sync(request)

    async def _run_in_worker(self, payload: dict[str, Any]) -> dict[str, Any]:
        loop = asyncio.get_running_loop()
        executor = self.executor_factory()
        logger.debug(f"Dispatching {len(payload['points'])} points to a background worker")
        try:
            return await loop.run_in_executor(executor, plan_in_worker, payload)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
