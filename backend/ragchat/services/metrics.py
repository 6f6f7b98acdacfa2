from __future__ import annotations

import time
import contextvars
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def now() -> float:
    return time.perf_counter()


def elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


def _latency(values: List[int]) -> Dict[str, Optional[int]]:
    if not values:
        return {"p50": None, "p95": None, "max": None}
    s = sorted(values)

    def pick(p: float) -> int:
        return s[min(len(s) - 1, int(round(p * (len(s) - 1))))]

    return {"p50": pick(0.50), "p95": pick(0.95), "max": s[-1]}


@dataclass
class _Calls:
    calls: int = 0
    items: int = 0
    errors: int = 0
    latency_ms: List[int] = field(default_factory=list)


@dataclass
class RunMetrics:
    """Everything recorded while one run is active: a corpus build or a single /generate request."""

    http_status: Dict[str, Counter] = field(default_factory=dict)
    http_latency_ms: Dict[str, List[int]] = field(default_factory=dict)
    calls: Dict[str, _Calls] = field(default_factory=dict)
    fallbacks: Counter = field(default_factory=Counter)
    stages_ms: Dict[str, int] = field(default_factory=dict)

    def summary(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "provider": {
                name: {
                    "req": sum(codes.values()),
                    "status": {str(code): n for code, n in sorted(codes.items())},
                    "latency": _latency(self.http_latency_ms.get(name, [])),
                }
                for name, codes in self.http_status.items()
            },
            "llm": {
                key: {"calls": c.calls, "items": c.items, "errors": c.errors, "latency": _latency(c.latency_ms)}
                for key, c in self.calls.items()
            },
        }
        if self.fallbacks:
            out["fallbacks"] = dict(self.fallbacks)
        if self.stages_ms:
            out["stages_ms"] = dict(self.stages_ms)
        return out


_current: contextvars.ContextVar[Optional[RunMetrics]] = contextvars.ContextVar("ragchat_run_metrics", default=None)


def current() -> Optional[RunMetrics]:
    return _current.get()


def begin_run() -> contextvars.Token:
    return _current.set(RunMetrics())


def end_run(token: Optional[contextvars.Token] = None) -> Dict[str, Any]:
    run = _current.get()
    if token is not None:
        _current.reset(token)
    return run.summary() if run is not None else {"provider": {}, "llm": {}}


def record_http(provider: str, status: int, latency_ms: int) -> None:
    run = _current.get()
    if run is None:
        return
    run.http_status.setdefault(provider, Counter())[int(status)] += 1
    run.http_latency_ms.setdefault(provider, []).append(int(latency_ms))


def record_llm(provider: str, model: str, *, items: int = 0, latency_ms: int = 0, ok: bool = True) -> None:
    run = _current.get()
    if run is None:
        return
    c = run.calls.setdefault(f"{provider}:{model}", _Calls())
    c.calls += 1
    c.items += int(items)
    c.latency_ms.append(int(latency_ms))
    if not ok:
        c.errors += 1


def record_fallback(kind: str) -> None:
    run = _current.get()
    if run is not None:
        run.fallbacks[kind] += 1


def record_stage(stage: str, latency_ms: int) -> None:
    """Time spent in one step of the generate flow (embedding_query, retrieving, generating)."""
    run = _current.get()
    if run is not None:
        run.stages_ms[stage] = run.stages_ms.get(stage, 0) + int(latency_ms)
