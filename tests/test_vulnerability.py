import json

import httpx
import pytest

from apiprobe.core.models import InvalidConfiguration, VulnerabilityCase
from apiprobe.probes.vulnerability import DEFAULT_CASES
from apiprobe.reporters.console import Log
from conftest import refused, status_handler

DEFAULT_NAMES = ["SQL Injection", "XSS", "Large Payload", "Path Traversal"]


def test_default_cases():
    assert [c.name for c in DEFAULT_CASES] == DEFAULT_NAMES
    assert DEFAULT_CASES[2].payload == "x" * 100_000


@pytest.mark.asyncio
async def test_rejecting_endpoint_is_not_flagged(harness_for):
    harness = harness_for(status_handler(400))

    results = await harness.run_vulnerability_probe("comments")

    assert [r.test_name for r in results] == DEFAULT_NAMES
    assert all(r.potentially_vulnerable is False for r in results)
    assert all(r.status_code == 400 for r in results)


@pytest.mark.asyncio
async def test_accepting_endpoint_is_flagged_in_order(harness_for):
    harness = harness_for(status_handler(200))

    results = await harness.run_vulnerability_probe("comments")

    assert [r.to_dict() for r in results] == [
        {"testName": name, "statusCode": 200, "potentiallyVulnerable": True}
        for name in DEFAULT_NAMES
    ]


@pytest.mark.asyncio
async def test_payload_is_sole_json_field(harness_for):
    bodies = []

    def handler(request):
        assert request.method == "POST"
        bodies.append(json.loads(request.content))
        return httpx.Response(400, request=request)

    harness = harness_for(handler)
    await harness.run_vulnerability_probe("/comments")

    assert [list(b) for b in bodies] == [["input"]] * 4
    assert [b["input"] for b in bodies] == [c.payload for c in DEFAULT_CASES]


@pytest.mark.asyncio
async def test_failures_do_not_break_ordering(harness_for):
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 2:
            raise httpx.ReadTimeout("timed out", request=request)
        if calls["n"] == 3:
            return httpx.Response(413, request=request)
        return httpx.Response(400, request=request)

    harness = harness_for(handler)
    results = await harness.run_vulnerability_probe("comments")

    assert [r.test_name for r in results] == DEFAULT_NAMES
    timeout, too_large = results[1], results[2]
    assert timeout.status_code is None
    assert timeout.potentially_vulnerable is False
    assert "timed out" in timeout.error
    assert too_large.status_code == 413
    assert too_large.potentially_vulnerable is True
    assert too_large.error == "Request failed with status code 413"
    assert results[0].error == "Request failed with status code 400"


@pytest.mark.asyncio
async def test_unreachable_target(harness_for):
    harness = harness_for(refused)

    results = await harness.run_vulnerability_probe("comments")

    assert len(results) == 4
    assert all(r.status_code is None and r.error for r in results)
    assert "statusCode" in results[0].to_dict() and "error" in results[0].to_dict()


@pytest.mark.asyncio
async def test_caller_supplied_cases(harness_for):
    harness = harness_for(status_handler(200))

    results = await harness.run_vulnerability_probe("comments", [
        {"name": "NoSQL", "payload": {"$gt": ""}},
        VulnerabilityCase("Empty", ""),
    ])

    assert [r.test_name for r in results] == ["NoSQL", "Empty"]
    assert await harness.run_vulnerability_probe("comments", []) == []


@pytest.mark.asyncio
async def test_malformed_case_is_rejected(harness_for):
    harness = harness_for(status_handler(200))
    with pytest.raises(InvalidConfiguration):
        await harness.run_vulnerability_probe("comments", [{"payload": "no name"}])


@pytest.mark.asyncio
async def test_flagged_cases_are_logged(harness_for, capsys):
    harness = harness_for(status_handler(200), logger=Log(verbose=2))

    await harness.run_vulnerability_probe("comments")

    err = capsys.readouterr().err
    assert err.count("[FLAGGED]") == 4
    assert "Input validation" in err


@pytest.mark.asyncio
@pytest.mark.parametrize("endpoint", ["", "/", None])
async def test_empty_endpoint_fails_before_any_call(harness_for, endpoint):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, request=request)

    harness = harness_for(handler)
    with pytest.raises(InvalidConfiguration):
        await harness.run_vulnerability_probe(endpoint)
    assert calls == []
