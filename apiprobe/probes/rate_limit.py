import asyncio
import time

import httpx

from apiprobe.core.models import RateProbeRequest, RateProbeResult
from apiprobe.probes.base import BaseProbe

TOO_MANY_REQUESTS = 429


class RateLimitProbe(BaseProbe):
    """
    Paced single GETs for a fixed wall-clock duration.
      - 429 counts as a request made and as a throttle hit.
      - Any other error response, or no response at all, ends the probe and
        is not counted.
    """

    name = "Rate Limit Probe"

    async def run(self, request: RateProbeRequest) -> RateProbeResult:
        url = self.target.url_for(request.endpoint)
        interval = request.interval
        requests_made = 0
        rate_limit_hits = 0

        if self.logger:
            self.logger.info(
                f"Probing rate limit on {url} at {request.requests_per_second:g} req/s "
                f"for {request.duration:g}s")

        start = time.monotonic()
        while time.monotonic() - start < request.duration:
            try:
                resp = await self.client.get(url)
            except httpx.HTTPError as exc:
                if self.logger:
                    self.logger.fail(f"Probe stopped: {self.describe_error(exc)}")
                break

            if resp.status_code == TOO_MANY_REQUESTS:
                requests_made += 1
                rate_limit_hits += 1
                if self.logger:
                    retry = resp.headers.get("Retry-After")
                    hint = f" (Retry-After: {retry})" if retry else ""
                    self.logger.warn(f"Throttled after {requests_made} requests{hint}")
                if request.stop_on_throttle:
                    break
            elif resp.is_error:
                if self.logger:
                    self.logger.fail(f"Probe stopped: HTTP {resp.status_code}")
                break
            else:
                requests_made += 1

            if self.logger and self.logger.verbose >= 2:
                self.logger.debug(f"← {resp.status_code} GET {url}")
            await asyncio.sleep(interval)

        return RateProbeResult(
            requests_made=requests_made,
            rate_limit_hits=rate_limit_hits,
            average_requests_per_second=requests_made / request.duration,
        )
