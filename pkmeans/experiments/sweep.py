"""
Сравнение стратегий накопления при разном числе воркеров.

Для каждой пары (стратегия, число воркеров) выполняется серия прогонов
ExperimentRunner; ускорение и эффективность считаются относительно прогона
той же стратегии с наименьшим числом воркеров.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Sequence

import numpy as np

from pkmeans.core.base import DEFAULT_MAX_ITERS, DEFAULT_THRESHOLD
from pkmeans.core.cpu_multiprocessing import (
    AccumulationStrategy,
    KMeansCPUMultiprocessing,
    MultiprocessingConfig,
)
from pkmeans.experiments.runner import ExperimentRunner
from pkmeans.metrics.metrics import efficiency, overhead_ratio, speedup


def _make_factory(
    strategy: AccumulationStrategy,
    n_workers: int,
    backend: str,
    threshold: float,
    max_iters: int,
) -> Callable[..., KMeansCPUMultiprocessing]:
    mp = MultiprocessingConfig(n_processes=n_workers, backend=backend, strategy=strategy)
    return lambda **kw: KMeansCPUMultiprocessing(
        max_iters=max_iters, threshold=threshold, mp=mp, **kw
    )


def run_strategy_sweep(
    X: np.ndarray,
    initial_centroids: np.ndarray,
    workers: Sequence[int],
    strategies: Iterable[AccumulationStrategy | str] = tuple(AccumulationStrategy),
    threshold: float = DEFAULT_THRESHOLD,
    max_iters: int = DEFAULT_MAX_ITERS,
    backend: str = "process",
    repeats: int = 3,
    warmup: int = 1,
    max_seconds: float | None = None,
    logger: logging.Logger | None = None,
    result_sink: Callable[[Dict[str, Any]], None] | None = None,
) -> List[Dict[str, Any]]:
    """
    Прогоняет каждую стратегию по списку чисел воркеров.

    Returns:
        Список записей: параметры запуска, статистика ExperimentRunner и
        метрики speedup, efficiency, reduce_ratio (доля редукции в T_fit, %)

    Raises:
        ValueError: Если список воркеров пуст или содержит непозитивные значения
    """
    counts = sorted(set(int(p) for p in workers))
    if not counts or counts[0] <= 0:
        raise ValueError(f"workers must be positive integers, got {list(workers)}")

    N, D = X.shape
    K = initial_centroids.shape[0]
    results: List[Dict[str, Any]] = []

    for strategy in (AccumulationStrategy(s) for s in strategies):
        base_p = counts[0]
        base_time: float | None = None

        for p in counts:
            meta = {"N": N, "D": D, "K": K, "strategy": strategy.value, "workers": p}
            runner = ExperimentRunner(
                X,
                initial_centroids,
                model_factory=_make_factory(strategy, p, backend, threshold, max_iters),
                meta=meta,
                logger=logger,
            )
            timing = runner.run(repeats=repeats, warmup=warmup, max_seconds=max_seconds)

            t_fit = timing["T_fit_avg"]
            if base_time is None:
                base_time = t_fit

            sp = speedup(base_time, t_fit) if t_fit > 0 else 0.0
            record = {
                **meta,
                "backend": backend,
                "timing": timing,
                "speedup": sp,
                "efficiency": efficiency(sp, p) * base_p,
                "reduce_ratio": overhead_ratio(timing["T_reduce_total_avg"], t_fit),
            }
            results.append(record)
            if result_sink:
                result_sink(record)

            if logger:
                logger.info(
                    f"strategy={strategy.value} workers={p}: T_fit={t_fit:.6f}s, "
                    f"speedup={record['speedup']:.2f}, "
                    f"efficiency={record['efficiency']:.2f}"
                )

    return results
