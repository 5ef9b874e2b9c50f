"""
Lightweight in-process metrics: counters and histograms for LLM call
duration, retries, and pipeline failures.

Emitted as structured logs and exposed via /metrics as a JSON snapshot.
"""

import time
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, Any

from growthforge.utils.logger import get_logger

logger = get_logger("metrics")

_counters: Dict[str, int] = defaultdict(int)
_histograms: Dict[str, list] = defaultdict(list)

MAX_HISTOGRAM_SAMPLES = 500  # Rolling window


def inc(name: str, value: int = 1) -> None:
    """Increment a counter."""
    _counters[name] += value


def observe(name: str, value: float) -> None:
    """Record a histogram observation (e.g., duration)."""
    bucket = _histograms[name]
    bucket.append(value)
    if len(bucket) > MAX_HISTOGRAM_SAMPLES:
        _histograms[name] = bucket[-MAX_HISTOGRAM_SAMPLES:]


@asynccontextmanager
async def track_duration(service: str, operation: str = "call"):
    """
    Track call duration and success/failure.

    Usage:
        async with track_duration("llm", "role_profile"):
            text = await client.complete(...)
    """
    start = time.monotonic()
    try:
        yield
    except BaseException:
        duration_ms = (time.monotonic() - start) * 1000
        observe(f"{service}.{operation}.duration_ms", duration_ms)
        inc(f"{service}.{operation}.error")
        logger.warning(
            "metrics.call",
            extra={
                "service": service,
                "operation": operation,
                "duration_ms": round(duration_ms, 1),
                "status": "error",
            },
        )
        raise
    duration_ms = (time.monotonic() - start) * 1000
    observe(f"{service}.{operation}.duration_ms", duration_ms)
    inc(f"{service}.{operation}.success")
    logger.info(
        "metrics.call",
        extra={
            "service": service,
            "operation": operation,
            "duration_ms": round(duration_ms, 1),
            "status": "success",
        },
    )


def get_counter(name: str) -> int:
    return _counters.get(name, 0)


def get_snapshot() -> Dict[str, Any]:
    """Return a snapshot of all counters and histogram summaries."""
    snapshot: Dict[str, Any] = {"counters": dict(_counters)}

    summaries = {}
    for name, samples in _histograms.items():
        if samples:
            sorted_s = sorted(samples)
            p50_idx = int(len(sorted_s) * 0.5)
            p95_idx = int(len(sorted_s) * 0.95)
            summaries[name] = {
                "count": len(sorted_s),
                "p50": round(sorted_s[p50_idx], 1),
                "p95": round(sorted_s[min(p95_idx, len(sorted_s) - 1)], 1),
                "max": round(sorted_s[-1], 1),
            }
    snapshot["histograms"] = summaries
    snapshot["pipeline"] = pipeline_summary()
    return snapshot


def pipeline_summary() -> Dict[str, Dict[str, Any]]:
    """
    Per generation operation: completed runs and failures by error kind.

    Built from the pipeline.<operation>.done and
    pipeline.<operation>.failed.<kind> counters.
    """
    summary: Dict[str, Dict[str, Any]] = {}
    for name, value in _counters.items():
        parts = name.split(".")
        if parts[0] != "pipeline" or len(parts) < 3:
            continue
        entry = summary.setdefault(parts[1], {"done": 0, "failed": {}})
        if parts[2] == "done":
            entry["done"] += value
        elif parts[2] == "failed" and len(parts) == 4:
            entry["failed"][parts[3]] = entry["failed"].get(parts[3], 0) + value
        else:
            entry[parts[2]] = value
    return summary


def reset() -> None:
    """Reset all metrics (useful for testing)."""
    _counters.clear()
    _histograms.clear()
