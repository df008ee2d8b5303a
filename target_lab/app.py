"""TargetLab: controllable stub API for exercising apiprobe.

Endpoints behave predictably so burst, rate-limit and input-validation runs
have known answers: fixed status codes, artificial latency, a fixed-window
rate limiter and one validated / one naive input handler.
"""

import os
import re
import threading
import time

from flask import Flask, jsonify, request

app = Flask(__name__)
app.config.setdefault("RATE_LIMIT", int(os.environ.get("LAB_RATE_LIMIT", "5")))
app.config.setdefault("RATE_WINDOW_S", float(os.environ.get("LAB_RATE_WINDOW_S", "1.0")))
app.config.setdefault("MAX_INPUT_BYTES", 10_000)


# ── Fixed-window limiter ────────────────────────────────────────

class FixedWindowLimiter:
    def __init__(self):
        self._lock = threading.Lock()
        self._window_start = 0.0
        self._count = 0

    def hit(self, limit: int, window_s: float, now: float | None = None) -> float:
        """Register one request; returns 0 when allowed, else seconds until reset."""
        now = time.monotonic() if now is None else now
        with self._lock:
            if now - self._window_start >= window_s:
                self._window_start = now
                self._count = 0
            self._count += 1
            if self._count <= limit:
                return 0.0
            return window_s - (now - self._window_start)

    def reset(self):
        with self._lock:
            self._window_start = 0.0
            self._count = 0


limiter = FixedWindowLimiter()


# ── Input validation ────────────────────────────────────────────

_SUSPICIOUS = [
    re.compile(r"'\s*(or|and)\s+\d+\s*=\s*\d+", re.I),   # tautologies
    re.compile(r"--|;|/\*"),                              # SQL comment / stacking
    re.compile(r"<\s*/?\s*script", re.I),
    re.compile(r"\bon\w+\s*=", re.I),                     # inline handlers
    re.compile(r"\.\.[/\\]"),                             # traversal
]


def is_malicious(value) -> bool:
    if not isinstance(value, str):
        return True
    if len(value.encode("utf-8")) > app.config["MAX_INPUT_BYTES"]:
        return True
    return any(rx.search(value) for rx in _SUSPICIOUS)


# ══════════════════════════════════════════════════════════════════
#  Routes
# ══════════════════════════════════════════════════════════════════

@app.route("/")
def home():
    return jsonify(endpoints=["/echo", "/slow", "/status/<code>",
                              "/throttled", "/validated", "/naive"])


@app.route("/echo", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
def echo():
    return jsonify(method=request.method, args=request.args.to_dict(),
                   json=request.get_json(silent=True))


@app.route("/slow", methods=["GET", "POST"])
def slow():
    delay_ms = request.args.get("delay_ms", 100, type=int)
    time.sleep(max(delay_ms, 0) / 1000)
    return jsonify(delayed_ms=delay_ms)


@app.route("/status/<int:code>", methods=["GET", "POST"])
def status(code):
    return jsonify(status=code), code


@app.route("/throttled")
def throttled():
    retry_after = limiter.hit(app.config["RATE_LIMIT"], app.config["RATE_WINDOW_S"])
    if retry_after:
        resp = jsonify(error="Too Many Requests")
        resp.status_code = 429
        resp.headers["Retry-After"] = str(max(1, round(retry_after)))
        return resp
    return jsonify(ok=True)


@app.route("/validated", methods=["POST"])
def validated():
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or "input" not in body or is_malicious(body["input"]):
        return jsonify(error="invalid input"), 400
    return jsonify(accepted=body["input"])


@app.route("/naive", methods=["POST"])
def naive():
    # No validation at all
    body = request.get_json(silent=True) or {}
    value = body.get("input", "")
    return jsonify(received_bytes=len(str(value)))


if __name__ == "__main__":
    print("\n  TargetLab starting on http://127.0.0.1:5000\n")
    app.run(host="127.0.0.1", port=5000, threaded=True)
