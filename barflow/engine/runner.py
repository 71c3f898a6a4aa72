"""
Drive contexts over bar streams.

- run_context: evaluate one context bar by bar, collecting snapshots
- parameter_sweep: build one independent context per parameter set and
  evaluate them concurrently

Contexts share nothing, so each sweep task owns its graph outright; the
bar list is shared read-only (bars are frozen).

Usage:
    def build(params):
        return build_context({"nodes": {
            "close": {"type": "close"},
            "sma": {"type": "sma", "source": "close", "bar_count": params["n"]},
        }})

    results = parameter_sweep(build, [{"n": 5}, {"n": 20}], bars)
    for result in results:
        print(result.params, result.final)
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence

from ..config import get_config
from ..context import IndicatorContext
from ..series.bar import Bar
from ..utils.logger import get_logger

logger = get_logger()


@dataclass
class BarSnapshot:
    """Context values after one accepted bar."""

    begin_time: Any
    values: dict[str, Any]
    stable: bool


@dataclass
class SweepResult:
    """Outcome of one parameter set in a sweep."""

    index: int
    params: Mapping[str, Any]
    snapshots: list[BarSnapshot] = field(default_factory=list)
    duration_sec: float = 0.0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def final(self) -> dict[str, Any]:
        """Values after the last bar, empty if nothing ran."""
        return self.snapshots[-1].values if self.snapshots else {}


def run_context(context: IndicatorContext, bars: Iterable[Bar]) -> list[BarSnapshot]:
    """
    Feed bars to context in order and snapshot every indicator after each.

    Duplicate or out-of-order bars are ignored by the context and produce
    no snapshot.
    """
    snapshots: list[BarSnapshot] = []
    last_begin = None
    for bar in bars:
        context.on_bar(bar)
        if last_begin is not None and bar.begin_time <= last_begin:
            continue
        last_begin = bar.begin_time
        snapshots.append(
            BarSnapshot(begin_time=bar.begin_time, values=context.snapshot(), stable=context.is_stable)
        )
    return snapshots


def _run_single(
    index: int,
    build: Callable[[Mapping[str, Any]], IndicatorContext],
    params: Mapping[str, Any],
    bars: Sequence[Bar],
) -> SweepResult:
    start = time.perf_counter()
    context = build(params)
    snapshots = run_context(context, bars)
    return SweepResult(
        index=index,
        params=params,
        snapshots=snapshots,
        duration_sec=time.perf_counter() - start,
    )


def parameter_sweep(
    build: Callable[[Mapping[str, Any]], IndicatorContext],
    param_sets: Sequence[Mapping[str, Any]],
    bars: Iterable[Bar],
    max_workers: int | None = None,
) -> list[SweepResult]:
    """
    Evaluate one freshly built context per parameter set, concurrently.

    Args:
        build: Callable returning a new IndicatorContext for a param set.
            It must not return a context shared with another param set.
        param_sets: Parameter mappings, one per context.
        bars: Bar stream; materialized once and shared by every task.
        max_workers: Thread pool size (default: BARFLOW_MAX_WORKERS).

    Returns:
        One SweepResult per param set, in input order. A param set whose
        build or evaluation raised carries the error text instead of
        snapshots.
    """
    bars = list(bars)
    workers = max_workers or get_config().engine.max_workers
    if workers < 1:
        raise ValueError(
            f"max_workers must be >= 1, got {workers}\n"
            f"\n"
            f"Fix: parameter_sweep(build, param_sets, bars, max_workers=4)"
        )

    logger.event("SWEEP_STARTED", param_sets=len(param_sets), bars=len(bars), workers=workers)
    start = time.perf_counter()
    results: list[SweepResult] = []

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures: dict[Future, int] = {
            pool.submit(_run_single, index, build, params, bars): index
            for index, params in enumerate(param_sets)
        }
        for future in as_completed(futures):
            index = futures[future]
            try:
                results.append(future.result())
            except Exception as e:
                logger.error(f"Sweep param set {index} failed: {type(e).__name__}: {e}")
                results.append(
                    SweepResult(
                        index=index,
                        params=param_sets[index],
                        error=f"{type(e).__name__}: {e}",
                    )
                )

    results.sort(key=lambda result: result.index)
    failures = sum(1 for result in results if not result.ok)
    logger.event(
        "SWEEP_FINISHED",
        level=logging.WARNING if failures else logging.INFO,
        param_sets=len(results),
        failures=failures,
        duration_sec=f"{time.perf_counter() - start:.3f}",
    )
    return results
