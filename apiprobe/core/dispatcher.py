"""Bounded-concurrency burst dispatch."""

import asyncio
import time
from typing import Any, Dict, Optional, Set

import httpx

from apiprobe.core.metrics import MetricsAggregator
from apiprobe.core.models import BurstRequest, Outcome, TargetConfig


def body_kwargs(payload: Any) -> Dict[str, Any]:
    """Map a payload onto httpx request kwargs (JSON for containers, raw otherwise)."""
    if payload is None:
        return {}
    if isinstance(payload, (dict, list)):
        return {"json": payload}
    if isinstance(payload, (str, bytes)):
        return {"content": payload}
    return {"json": payload}


class RequestDispatcher:
    def __init__(self, client: httpx.AsyncClient, target: TargetConfig, logger=None):
        self.client = client
        self.target = target
        self.logger = logger
        self.peak_in_flight = 0
        self._active = 0

    async def _call(self, url: str, request: BurstRequest) -> Outcome:
        start = time.perf_counter()
        try:
            resp = await self.client.request(
                method=request.method, url=url,
                headers=request.headers or None, **body_kwargs(request.payload))
        except httpx.HTTPError as exc:
            return Outcome(status_code=None, ok=False,
                           error=f"{type(exc).__name__}: {exc}")
        elapsed = (time.perf_counter() - start) * 1000
        if resp.is_error:
            return Outcome(status_code=resp.status_code, elapsed_ms=elapsed, ok=False,
                           error=f"HTTP {resp.status_code} {resp.reason_phrase}")
        return Outcome(status_code=resp.status_code, elapsed_ms=elapsed, ok=True)

    async def _settle(self, url: str, request: BurstRequest,
                      aggregator: MetricsAggregator, slots: asyncio.Semaphore) -> None:
        self._active += 1
        self.peak_in_flight = max(self.peak_in_flight, self._active)
        try:
            outcome = await self._call(url, request)
            aggregator.record(outcome)
            if self.logger and self.logger.verbose >= 2:
                code = outcome.status_code if outcome.status_code is not None else "---"
                detail = f" ({outcome.error})" if outcome.error else ""
                self.logger.debug(f"← {code} {request.method} {url}{detail}")
        finally:
            self._active -= 1
            slots.release()

    async def dispatch(self, request: BurstRequest,
                       aggregator: Optional[MetricsAggregator] = None) -> MetricsAggregator:
        """Issue every request of the burst; returns once all of them have settled."""
        aggregator = aggregator or MetricsAggregator()
        url = self.target.url_for(request.endpoint)
        slots = asyncio.Semaphore(request.concurrency)
        in_flight: Set[asyncio.Task] = set()

        for _ in range(request.total_requests):
            await slots.acquire()
            task = asyncio.ensure_future(self._settle(url, request, aggregator, slots))
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)

        if in_flight:
            await asyncio.gather(*in_flight)
        return aggregator
