"""Per-run accumulation of burst outcomes."""

import threading
from copy import deepcopy

from apiprobe.core.models import Metrics, MetricsSummary, Outcome


class MetricsAggregator:
    """Collects outcomes from concurrently settling calls of one burst."""

    def __init__(self):
        self._metrics = Metrics()
        self._lock = threading.Lock()

    def record(self, outcome: Outcome) -> None:
        with self._lock:
            m = self._metrics
            m.total_requests += 1
            if outcome.ok:
                m.successful_requests += 1
            else:
                m.failed_requests += 1
            if outcome.elapsed_ms is not None:
                m.response_times_ms.append(outcome.elapsed_ms)
            code = outcome.status_code
            m.status_codes[code] = m.status_codes.get(code, 0) + 1

    def snapshot(self) -> Metrics:
        with self._lock:
            return deepcopy(self._metrics)

    def summarize(self, peak_in_flight: int = 0) -> MetricsSummary:
        m = self.snapshot()
        rate = (m.successful_requests / m.total_requests) * 100 if m.total_requests else 0.0
        times = m.response_times_ms
        avg = sum(times) / len(times) if times else 0
        return MetricsSummary(
            total_requests=m.total_requests,
            successful_requests=m.successful_requests,
            failed_requests=m.failed_requests,
            success_rate=rate,
            average_response_time_ms=avg,
            status_code_distribution=m.status_codes,
            peak_in_flight=peak_in_flight,
        )
