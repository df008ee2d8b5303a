"""Abstract base for the sequential probes."""

from abc import ABC, abstractmethod

import httpx

from apiprobe.core.models import TargetConfig


class BaseProbe(ABC):
    """Every probe issues its requests one at a time through a shared client."""

    name: str = "Unnamed Probe"

    def __init__(self, client: httpx.AsyncClient, target: TargetConfig, logger=None):
        self.client = client
        self.target = target
        self.logger = logger

    # ── public API ──────────────────────────────────────────────

    @abstractmethod
    async def run(self, *args, **kwargs):
        ...

    # ── shared helpers ──────────────────────────────────────────

    @staticmethod
    def describe_error(exc: httpx.HTTPError) -> str:
        return f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__

