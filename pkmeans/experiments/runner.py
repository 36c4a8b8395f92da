import logging
import time
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from pkmeans.metrics.metrics import throughput
from pkmeans.metrics.timers import Timer
from pkmeans.utils.logging import format_run_prefix


class _PrefixedLogger:
    """Обёртка над логгером, добавляющая префикс к каждому сообщению."""

    def __init__(self, base_logger: logging.Logger | None, prefix: str) -> None:
        self._base = base_logger
        self._prefix = prefix

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self._base:
            self._base.info(f"{self._prefix} {msg}", *args, **kwargs)


class ExperimentRunner:
    """
    Запускает серию прогонов KMeans на одном наборе точек.

    Ожидается, что снаружи будут переданы:
    - X и initial_centroids: входные массивы (не изменяются);
    - model_factory: callable, создающий модель по n_clusters и logger;
    - meta: словарь с N, D, K (и при наличии strategy, workers) для логов.
    """

    def __init__(
        self,
        X: np.ndarray,
        initial_centroids: np.ndarray,
        model_factory: Callable[..., Any],
        meta: Dict[str, Any],
        logger: logging.Logger | None = None,
    ) -> None:
        self.X = X
        self.initial_centroids = initial_centroids
        self.model_factory = model_factory
        self.meta = meta
        self.logger = logger

        self._prefix = format_run_prefix(meta)

    def _create_model(self) -> Any:
        """Создаёт новую модель под K текущего запуска."""
        # Передаём в модель логгер с префиксом запуска,
        # чтобы сообщения вида "Iteration X/Y" были понятны.
        logger = _PrefixedLogger(self.logger, self._prefix)
        return self.model_factory(n_clusters=self.meta["K"], logger=logger)

    def run(
        self,
        repeats: int = 5,
        warmup: int = 1,
        max_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Запускает несколько прогонов KMeans с таймингом.

        :param repeats: количество измеряемых прогонов
        :param warmup: количество «разогревочных» запусков
        :param max_seconds: лимит времени (warmup + измеряемые прогоны).
            Если прогнозируемое время превысит лимит, цикл прерывается,
            а в результатах выставляется флаг estimated.
        :return: словарь с агрегированной статистикой времени
        """
        if repeats <= 0:
            raise ValueError("repeats must be positive")

        if self.logger:
            self.logger.info(f"{self._prefix} Warmup x{warmup}")

        warmup_start = time.perf_counter()
        for _ in range(warmup):
            self._create_model().fit(self.X, self.initial_centroids)
        warmup_elapsed = time.perf_counter() - warmup_start

        times: List[float] = []
        runs: List[Dict[str, Any]] = []
        estimated = False

        for run_idx in range(1, repeats + 1):
            if self.logger:
                self.logger.info(f"{self._prefix} Run {run_idx}/{repeats}")

            model = self._create_model()
            with Timer() as t_fit:
                result = model.fit(self.X, self.initial_centroids)
            t_fit_val = float(t_fit.elapsed)
            times.append(t_fit_val)

            runs.append(
                {
                    "run_idx": run_idx,
                    "T_fit": t_fit_val,
                    "T_assign_total": float(model.t_assign_total),
                    "T_reduce_total": float(getattr(model, "t_reduce_total", 0.0)),
                    "T_update_total": float(model.t_update_total),
                    "T_iter_total": float(model.t_iter_total),
                    "n_iters_actual": int(result.n_iters),
                    "status": result.status.value,
                    "throughput_ops": (
                        throughput(
                            self.meta["N"],
                            self.meta["K"],
                            self.meta["D"],
                            result.n_iters,
                            t_fit_val,
                        )
                        if t_fit_val > 0.0
                        else 0.0
                    ),
                }
            )

            if max_seconds is not None:
                avg_time = sum(times) / len(times)
                remaining = (repeats - run_idx) * avg_time
                spent = warmup_elapsed + sum(times)
                if run_idx < repeats and spent + remaining > max_seconds:
                    estimated = True
                    if self.logger:
                        self.logger.warning(
                            f"{self._prefix} Early stop on time limit: "
                            f"spent={spent:.2f}s, remaining_est={remaining:.2f}s, "
                            f"limit={max_seconds:.2f}s"
                        )
                    break

        stats: Dict[str, Any] = {
            "T_fit_avg": float(np.mean(times)),
            "T_fit_std": float(np.std(times)),
            "T_fit_min": float(np.min(times)),
            # агрегированные времена по фазам внутри fit
            "T_assign_total_avg": float(np.mean([r["T_assign_total"] for r in runs])),
            "T_reduce_total_avg": float(np.mean([r["T_reduce_total"] for r in runs])),
            "T_update_total_avg": float(np.mean([r["T_update_total"] for r in runs])),
            "T_iter_total_avg": float(np.mean([r["T_iter_total"] for r in runs])),
            "throughput_ops_avg": float(np.mean([r["throughput_ops"] for r in runs])),
            "n_iters_actual": runs[-1]["n_iters_actual"],
            "status": runs[-1]["status"],
            "runs": runs,
            "estimated": estimated,
            "repeats_done": len(times),
            "repeats_requested": repeats,
            "warmup_seconds": warmup_elapsed,
            "time_spent_seconds": warmup_elapsed + sum(times),
        }

        if self.logger:
            self.logger.info(
                f"{self._prefix} Timing: "
                f"T_fit_avg={stats['T_fit_avg']:.6f}s, "
                f"T_fit_std={stats['T_fit_std']:.6f}s, "
                f"T_fit_min={stats['T_fit_min']:.6f}s, "
                f"T_assign_total_avg={stats['T_assign_total_avg']:.6f}s, "
                f"T_update_total_avg={stats['T_update_total_avg']:.6f}s"
            )

        return stats
