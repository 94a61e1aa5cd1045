# User value: This file counts requests and upstream calls so slow or failing portal screens are visible.
import threading
from typing import Any

_LOCK = threading.Lock()
_COUNTERS: dict[tuple, float] = {}
_SUMMARIES: dict[tuple, dict] = {}


def _key(name: str, labels: dict[str, Any]) -> tuple:
    return (name, tuple(sorted((k, str(v)) for k, v in labels.items())))


def incr(name: str, value: float = 1, **labels: Any) -> None:
    key = _key(name, labels)
    with _LOCK:
        _COUNTERS[key] = _COUNTERS.get(key, 0) + value


def observe_ms(name: str, duration_ms: float, **labels: Any) -> None:
    key = _key(name, labels)
    with _LOCK:
        summary = _SUMMARIES.setdefault(key, {"count": 0, "sum_ms": 0.0, "max_ms": 0.0})
        summary["count"] += 1
        summary["sum_ms"] += float(duration_ms)
        summary["max_ms"] = max(summary["max_ms"], float(duration_ms))


def snapshot() -> dict:
    with _LOCK:
        counters = [
            {"name": name, "labels": dict(labels), "value": value}
            for (name, labels), value in sorted(_COUNTERS.items())
        ]
        summaries = [
            {
                "name": name,
                "labels": dict(labels),
                "count": s["count"],
                "avg_ms": round(s["sum_ms"] / s["count"], 3) if s["count"] else 0.0,
                "max_ms": round(s["max_ms"], 3),
            }
            for (name, labels), s in sorted(_SUMMARIES.items())
        ]
    return {"counters": counters, "latency": summaries}


def reset() -> None:
    with _LOCK:
        _COUNTERS.clear()
        _SUMMARIES.clear()
