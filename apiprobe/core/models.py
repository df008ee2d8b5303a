"""Shared data models for the API prober."""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


class InvalidConfiguration(ValueError):
    """A run was configured with values it cannot start from."""


def _positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidConfiguration(f"{name} must be a positive integer, got {value!r}")
    return value


def _positive_number(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfiguration(f"{name} must be a positive number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    if not math.isfinite(number) or number <= 0:
        raise InvalidConfiguration(f"{name} must be a positive finite number, got {value!r}")
    return number


def check_endpoint(value) -> str:
    if not isinstance(value, str):
        raise InvalidConfiguration(f"endpoint must be a string, got {value!r}")
    endpoint = value.strip().lstrip("/")
    if not endpoint:
        raise InvalidConfiguration("endpoint must not be empty")
    return endpoint


def _headers(value) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise InvalidConfiguration("headers must be a mapping")
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, str) or not (k + v).isascii():
            raise InvalidConfiguration(f"Header must be ASCII text: {k!r}: {v!r}")
    return dict(value)


@dataclass(frozen=True)
class TargetConfig:
    """Base URL of the system under test."""
    base_url: str

    def __post_init__(self):
        url = self.base_url
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise InvalidConfiguration(f"Target URL must be http(s), got {url!r}")
        object.__setattr__(self, "base_url", url.rstrip("/"))

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"


@dataclass
class BurstRequest:
    endpoint: str
    method: str = "GET"
    concurrency: int = 10
    total_requests: int = 100
    payload: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BurstRequest":
        """Accepts both snake_case and the route layer's camelCase keys."""
        return cls(
            endpoint=data.get("endpoint", ""),
            method=data.get("method") or "GET",
            concurrency=data.get("concurrency", data.get("concurrentRequests", 10)),
            total_requests=data.get("total_requests", data.get("totalRequests", 100)),
            payload=data.get("payload"),
            headers=dict(data.get("headers") or {}),
        )

    def validate(self) -> "BurstRequest":
        """Return a normalised copy; the instance itself is left untouched."""
        endpoint = check_endpoint(self.endpoint)
        if not isinstance(self.method, str) or self.method.upper() not in HTTP_METHODS:
            raise InvalidConfiguration(f"Unsupported HTTP method: {self.method!r}")
        _positive_int("total_requests", self.total_requests)
        _positive_int("concurrency", self.concurrency)
        if self.concurrency > self.total_requests:
            raise InvalidConfiguration(
                f"concurrency ({self.concurrency}) exceeds total_requests ({self.total_requests})")
        return replace(self, endpoint=endpoint, method=self.method.upper(),
                       headers=_headers(self.headers))


@dataclass
class Outcome:
    """One settled call of a burst."""
    status_code: Optional[int] = None
    elapsed_ms: Optional[float] = None
    ok: bool = False
    error: Optional[str] = None


@dataclass
class Metrics:
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    response_times_ms: List[float] = field(default_factory=list)
    # None is the "no response" bucket
    status_codes: Dict[Optional[int], int] = field(default_factory=dict)


@dataclass
class MetricsSummary:
    total_requests: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    average_response_time_ms: float
    status_code_distribution: Dict[Optional[int], int]
    peak_in_flight: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRequests": self.total_requests,
            "successfulRequests": self.successful_requests,
            "failedRequests": self.failed_requests,
            "successRate": self.success_rate,
            "averageResponseTimeMs": self.average_response_time_ms,
            "statusCodeDistribution": {
                ("none" if code is None else str(code)): count
                for code, count in self.status_code_distribution.items()
            },
            "peakInFlight": self.peak_in_flight,
        }


@dataclass
class RateProbeRequest:
    endpoint: str
    requests_per_second: float
    duration: float = 60.0
    stop_on_throttle: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateProbeRequest":
        return cls(
            endpoint=data.get("endpoint", ""),
            requests_per_second=data.get("requests_per_second", data.get("requestsPerSecond")),
            duration=data.get("duration", 60.0),
            stop_on_throttle=data.get("stop_on_throttle", data.get("stopOnThrottle", True)),
        )

    def validate(self) -> "RateProbeRequest":
        """Return a normalised copy; the instance itself is left untouched."""
        return replace(
            self,
            endpoint=check_endpoint(self.endpoint),
            requests_per_second=_positive_number("requests_per_second", self.requests_per_second),
            duration=_positive_number("duration", self.duration),
        )

    @property
    def interval(self) -> float:
        """Pause between two requests, in seconds."""
        return 1.0 / self.requests_per_second


@dataclass
class RateProbeResult:
    requests_made: int
    rate_limit_hits: int
    average_requests_per_second: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestsMade": self.requests_made,
            "rateLimitHits": self.rate_limit_hits,
            "averageRequestsPerSecond": self.average_requests_per_second,
        }


@dataclass(frozen=True)
class VulnerabilityCase:
    name: str
    payload: Any

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VulnerabilityCase":
        if not isinstance(data, dict) or "name" not in data or "payload" not in data:
            raise InvalidConfiguration(f"Vulnerability case needs 'name' and 'payload': {data!r}")
        return cls(name=str(data["name"]), payload=data["payload"])


@dataclass
class VulnerabilityResult:
    test_name: str
    status_code: Optional[int]
    potentially_vulnerable: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "testName": self.test_name,
            "statusCode": self.status_code,
            "potentiallyVulnerable": self.potentially_vulnerable,
        }
        if self.error is not None:
            out["error"] = self.error
        return out

    def __str__(self):
        flag = "POTENTIALLY VULNERABLE" if self.potentially_vulnerable else "rejected"
        code = self.status_code if self.status_code is not None else "no response"
        return f"{self.test_name}: {flag} (HTTP {code})"
