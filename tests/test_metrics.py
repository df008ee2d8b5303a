import threading

from apiprobe.core.metrics import MetricsAggregator
from apiprobe.core.models import Outcome


def test_summary_of_empty_run():
    summary = MetricsAggregator().summarize()
    assert summary.total_requests == 0
    assert summary.success_rate == 0.0
    assert summary.average_response_time_ms == 0


def test_record_tallies_every_bucket():
    agg = MetricsAggregator()
    agg.record(Outcome(status_code=200, elapsed_ms=10.0, ok=True))
    agg.record(Outcome(status_code=200, elapsed_ms=30.0, ok=True))
    agg.record(Outcome(status_code=500, elapsed_ms=20.0, ok=False, error="HTTP 500"))
    agg.record(Outcome(status_code=None, ok=False, error="ConnectError"))

    m = agg.snapshot()
    assert (m.total_requests, m.successful_requests, m.failed_requests) == (4, 2, 2)
    assert m.response_times_ms == [10.0, 30.0, 20.0]
    assert m.status_codes == {200: 2, 500: 1, None: 1}

    summary = agg.summarize(peak_in_flight=2)
    assert summary.success_rate == 50
    assert summary.average_response_time_ms == 20.0
    assert summary.to_dict() == {
        "totalRequests": 4,
        "successfulRequests": 2,
        "failedRequests": 2,
        "successRate": 50.0,
        "averageResponseTimeMs": 20.0,
        "statusCodeDistribution": {"200": 2, "500": 1, "none": 1},
        "peakInFlight": 2,
    }


def test_snapshot_is_a_copy():
    agg = MetricsAggregator()
    agg.record(Outcome(status_code=200, elapsed_ms=1.0, ok=True))
    snap = agg.snapshot()
    snap.status_codes[200] = 99
    assert agg.snapshot().status_codes == {200: 1}


def test_record_is_thread_safe():
    agg = MetricsAggregator()

    def worker():
        for i in range(500):
            agg.record(Outcome(status_code=200 if i % 2 else 502, elapsed_ms=1.0, ok=bool(i % 2)))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    m = agg.snapshot()
    assert m.total_requests == 4000
    assert m.successful_requests + m.failed_requests == 4000
    assert sum(m.status_codes.values()) == 4000
    assert len(m.response_times_ms) == 4000
