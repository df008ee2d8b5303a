"""Input-validation smoke test.

Each case is POSTed as ``{"input": payload}``. A well-validated endpoint is
expected to reject all of them with 400; any other status code is flagged.
This is a heuristic: a legitimate 200 for a harmless-looking payload is
flagged too.
"""

from typing import Iterable, List, Optional, Sequence

import httpx
from colorama import Style

from apiprobe.core.models import VulnerabilityCase, VulnerabilityResult
from apiprobe.probes.base import BaseProbe

BAD_REQUEST = 400

DEFAULT_CASES: Sequence[VulnerabilityCase] = (
    VulnerabilityCase("SQL Injection", "' OR 1=1 --"),
    VulnerabilityCase("XSS", "<script>alert('XSS')</script>"),
    VulnerabilityCase("Large Payload", "x" * 100_000),
    VulnerabilityCase("Path Traversal", "../../etc/passwd"),
)


class VulnerabilityProbe(BaseProbe):

    name = "Input Validation Probe"

    def __init__(self, client: httpx.AsyncClient, target, logger=None,
                 cases: Optional[Iterable[VulnerabilityCase]] = None):
        super().__init__(client, target, logger)
        self.cases: List[VulnerabilityCase] = list(DEFAULT_CASES if cases is None else cases)

    def get_payloads(self, cases: Optional[Iterable[VulnerabilityCase]] = None) -> List[VulnerabilityCase]:
        return self.cases if cases is None else list(cases)

    @staticmethod
    def check_response(response: httpx.Response) -> bool:
        return response.status_code != BAD_REQUEST

    async def _probe(self, url: str, case: VulnerabilityCase) -> VulnerabilityResult:
        try:
            resp = await self.client.post(url, json={"input": case.payload})
        except httpx.HTTPError as exc:
            return VulnerabilityResult(
                test_name=case.name, status_code=None,
                potentially_vulnerable=False, error=self.describe_error(exc))

        error = None
        if resp.is_error:
            error = f"Request failed with status code {resp.status_code}"
        return VulnerabilityResult(
            test_name=case.name, status_code=resp.status_code,
            potentially_vulnerable=self.check_response(resp), error=error)

    async def run(self, endpoint: str,
                  cases: Optional[Iterable[VulnerabilityCase]] = None) -> List[VulnerabilityResult]:
        url = self.target.url_for(endpoint)
        results: List[VulnerabilityResult] = []

        if self.logger:
            self.logger.info(f"Probing input validation on {url}")

        for case in self.get_payloads(cases):
            if self.logger and self.logger.verbose >= 2:
                preview = str(case.payload)
                if len(preview) > 60:
                    preview = preview[:57] + "..."
                self.logger.debug(f"→ POST {case.name} = {self.logger.PAY}{preview}{Style.RESET_ALL}")
            result = await self._probe(url, case)
            results.append(result)
            if not self.logger:
                continue
            if result.potentially_vulnerable:
                self.logger.finding(case.name, url, result.status_code)
            elif result.status_code is None:
                self.logger.fail(f"{case.name}: {result.error}")
            else:
                self.logger.ok(str(result))

        return results
