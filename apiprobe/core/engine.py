from typing import Any, Dict, Iterable, List, Optional, Union

import httpx

from apiprobe.core.dispatcher import RequestDispatcher
from apiprobe.core.metrics import MetricsAggregator
from apiprobe.core.models import (
    BurstRequest, MetricsSummary, RateProbeRequest, RateProbeResult,
    TargetConfig, VulnerabilityCase, VulnerabilityResult, check_endpoint,
)
from apiprobe.probes.rate_limit import RateLimitProbe
from apiprobe.probes.vulnerability import VulnerabilityProbe

CaseLike = Union[VulnerabilityCase, Dict[str, Any]]


class Harness:
    """Entry point for the route layer: one target, three operations."""

    def __init__(self, target: Union[TargetConfig, str], client: httpx.AsyncClient | None = None,
                 proxy: str | None = None, timeout: float = 10.0, verify: bool = False, logger=None):
        self.target = target if isinstance(target, TargetConfig) else TargetConfig(target)
        self.logger = logger
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            verify=verify, proxy=proxy, follow_redirects=True, timeout=timeout)

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # ---------- operations ----------

    async def run_burst(self, request: Union[BurstRequest, Dict[str, Any]]) -> MetricsSummary:
        if isinstance(request, dict):
            request = BurstRequest.from_dict(request)
        request = request.validate()

        if self.logger:
            self.logger.info(
                f"Burst {request.method} {self.target.url_for(request.endpoint)}: "
                f"{request.total_requests} requests, concurrency {request.concurrency}")

        dispatcher = RequestDispatcher(self.client, self.target, logger=self.logger)
        aggregator = await dispatcher.dispatch(request, MetricsAggregator())
        summary = aggregator.summarize(peak_in_flight=dispatcher.peak_in_flight)

        if self.logger:
            self.logger.summary("Burst", {
                "ok": summary.successful_requests,
                "failed": summary.failed_requests,
                "avg_ms": f"{summary.average_response_time_ms:.1f}",
            })
        return summary

    async def run_rate_probe(self, request: Union[RateProbeRequest, Dict[str, Any]]) -> RateProbeResult:
        if isinstance(request, dict):
            request = RateProbeRequest.from_dict(request)
        request = request.validate()

        result = await RateLimitProbe(self.client, self.target, logger=self.logger).run(request)

        if self.logger:
            self.logger.summary("Rate probe", result.to_dict())
        return result

    async def run_vulnerability_probe(self, endpoint: str,
                                      cases: Optional[Iterable[CaseLike]] = None) -> List[VulnerabilityResult]:
        endpoint = check_endpoint(endpoint)
        if cases is not None:
            cases = [c if isinstance(c, VulnerabilityCase) else VulnerabilityCase.from_dict(c)
                     for c in cases]

        probe = VulnerabilityProbe(self.client, self.target, logger=self.logger)
        results = await probe.run(endpoint, cases)

        if self.logger:
            flagged = sum(1 for r in results if r.potentially_vulnerable)
            self.logger.summary("Input validation", {"cases": len(results), "flagged": flagged})
        return results
