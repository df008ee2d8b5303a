import argparse
import asyncio
import json
import sys

from apiprobe.core.engine import Harness
from apiprobe.core.models import (
    BurstRequest, InvalidConfiguration, RateProbeRequest,
)
from apiprobe.reporters.console import Log


def _parse_headers(raw):
    headers = {}
    for h in raw or []:
        if ":" not in h:
            raise InvalidConfiguration(f"Header must look like 'Name: value', got {h!r}")
        k, v = h.split(":", 1)
        headers[k.strip()] = v.strip()
    return headers


def _parse_payload(raw):
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw  # sent as a raw body


def _load_cases(path):
    if path is None:
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise InvalidConfiguration(f"Cannot read cases file {path!r}: {exc}") from exc
    if not isinstance(data, list):
        raise InvalidConfiguration("Cases file must hold a JSON list of {name, payload} objects")
    return data


def build_parser():
    p = argparse.ArgumentParser(prog="apiprobe", description="API load tester and prober")
    p.add_argument("--proxy", help="Proxy (e.g. http://127.0.0.1:8080)")
    p.add_argument("--timeout", type=float, default=10.0, help="Per-request timeout in seconds")
    p.add_argument("-v", "--verbose", action="count", default=1, help="-v, -vv")
    p.add_argument("-q", "--quiet", action="store_true", help="Only warnings and failures")
    sub = p.add_subparsers(dest="command", required=True)

    burst = sub.add_parser("burst", help="Concurrent request burst")
    burst.add_argument("--target", required=True, help="Base URL of the API under test")
    burst.add_argument("--endpoint", required=True)
    burst.add_argument("--method", default="GET")
    burst.add_argument("--concurrency", type=int, default=10)
    burst.add_argument("--total", type=int, default=100)
    burst.add_argument("--payload", help="Request body (JSON, or sent raw)")
    burst.add_argument("-H", "--header", action="append", dest="headers",
                       help="'Name: value', repeatable")

    rate = sub.add_parser("rate-limit", help="Paced rate-limit probe")
    rate.add_argument("--target", required=True)
    rate.add_argument("--endpoint", required=True)
    rate.add_argument("--rps", type=float, required=True, help="Requests per second")
    rate.add_argument("--duration", type=float, default=60.0, help="Seconds")
    rate.add_argument("--keep-going", action="store_true",
                      help="Keep probing after a 429 instead of stopping")

    vuln = sub.add_parser("vuln-scan", help="Input-validation payload probe")
    vuln.add_argument("--target", required=True)
    vuln.add_argument("--endpoint", required=True)
    vuln.add_argument("--cases", help="JSON file with [{\"name\", \"payload\"}, ...]")
    return p


async def run(args, log):
    async with Harness(args.target, proxy=args.proxy, timeout=args.timeout, logger=log) as harness:
        if args.command == "burst":
            req = BurstRequest(
                endpoint=args.endpoint, method=args.method,
                concurrency=args.concurrency, total_requests=args.total,
                payload=_parse_payload(args.payload), headers=_parse_headers(args.headers))
            return (await harness.run_burst(req)).to_dict()
        if args.command == "rate-limit":
            req = RateProbeRequest(
                endpoint=args.endpoint, requests_per_second=args.rps,
                duration=args.duration, stop_on_throttle=not args.keep_going)
            return (await harness.run_rate_probe(req)).to_dict()
        results = await harness.run_vulnerability_probe(args.endpoint, _load_cases(args.cases))
        return [r.to_dict() for r in results]


def main(argv=None):
    args = build_parser().parse_args(argv)
    log = Log(verbose=0 if args.quiet else args.verbose)

    try:
        data = asyncio.run(run(args, log))
    except InvalidConfiguration as exc:
        log.fail(str(exc))
        print(json.dumps({"status": "error", "message": str(exc)}))
        return 1

    print(json.dumps({"status": "success", "data": data}, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
