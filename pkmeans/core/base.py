from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

import numpy as np

from pkmeans.core.accumulator import ClusterAccumulator
from pkmeans.core.update import update_centroids
from pkmeans.data.validation import validate_inputs
from pkmeans.metrics.timers import Timer

# Предохранитель от несходимости: после стольких итераций цикл останавливается
DEFAULT_MAX_ITERS = 500
# Доля точек, сменивших кластер, при которой итерации прекращаются
DEFAULT_THRESHOLD = 0.001
# Метка «ещё не назначен» до первой итерации
UNASSIGNED = -1


class Status(str, Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    CAPPED = "capped"


@dataclass
class KMeansResult:
    """Результат одного вызова fit(...)."""

    centroids: np.ndarray
    labels: np.ndarray
    n_iters: int
    status: Status
    fraction_changed: float

    @property
    def converged(self) -> bool:
        return self.status == Status.CONVERGED

    @property
    def success(self) -> bool:
        # Достижение лимита итераций не ошибка, а штатное завершение
        return self.status in (Status.CONVERGED, Status.CAPPED)


class KMeansBase(ABC):
    """
    Базовый класс для реализаций KMeans (алгоритм Ллойда).

    Отвечает за цикл итераций (контроллер сходимости) и сбор таймингов:
    - T_назначения: время шага назначения вместе с накоплением сумм
      (и редукцией, если она есть);
    - T_обновления: время шага update_centroids;
    - T_итерации: сумма двух предыдущих.

    Остановка: доля точек, сменивших кластер, <= threshold (CONVERGED)
    либо выполнено max_iters итераций (CAPPED).
    """

    def __init__(
        self,
        n_clusters: int,
        max_iters: int = DEFAULT_MAX_ITERS,
        threshold: float = DEFAULT_THRESHOLD,
        logger: Any | None = None,
    ):
        self.K = n_clusters
        self.max_iters = max_iters
        self.threshold = threshold
        self.logger = logger

        self.centroids: np.ndarray | None = None
        self.labels: np.ndarray | None = None
        self.status: Status | None = None
        self.fraction_changed: float = 1.0

        # агрегированные тайминги за один вызов fit(...)
        self.t_assign_total: float = 0.0
        self.t_update_total: float = 0.0
        self.t_iter_total: float = 0.0

        # Реальное количество выполненных итераций
        self.n_iters_actual: int = 0

    def fit(
        self,
        X: np.ndarray,
        initial_centroids: np.ndarray,
        initial_labels: np.ndarray | None = None,
    ) -> KMeansResult:
        """
        Основной цикл KMeans с остановкой по доле сменивших кластер точек.

        Входные массивы не изменяются. Если передан initial_labels, первая
        итерация сравнивает назначения с ним (тёплый старт), иначе все точки
        считаются неназначенными (UNASSIGNED).
        """
        X = np.ascontiguousarray(X, dtype=np.float64)
        validate_inputs(
            X,
            initial_centroids,
            n_clusters=self.K,
            threshold=self.threshold,
            max_iters=self.max_iters,
            initial_labels=initial_labels,
        )
        N = X.shape[0]

        self.centroids = np.array(initial_centroids, dtype=np.float64, copy=True)
        if initial_labels is None:
            labels = np.full(N, UNASSIGNED, dtype=np.int32)
        else:
            labels = np.array(initial_labels, dtype=np.int32, copy=True)

        # сбрасываем накопленные тайминги для нового запуска
        self.t_assign_total = 0.0
        self.t_update_total = 0.0
        self.t_iter_total = 0.0
        self.n_iters_actual = 0
        self.fraction_changed = 1.0
        self.status = Status.RUNNING

        self._begin(X, labels)
        try:
            for i in range(self.max_iters):
                with Timer() as t_assign:
                    delta, accumulator = self.assign_and_accumulate(X, self.centroids)
                with Timer() as t_update:
                    update_centroids(self.centroids, accumulator)

                t_assign_elapsed = t_assign.elapsed
                t_update_elapsed = t_update.elapsed

                self.t_assign_total += t_assign_elapsed
                self.t_update_total += t_update_elapsed
                self.t_iter_total += t_assign_elapsed + t_update_elapsed
                self.n_iters_actual = i + 1

                self.fraction_changed = delta / N
                converged = self.fraction_changed <= self.threshold

                if self.logger and (i == 0 or (i + 1) % 10 == 0 or converged):
                    status = " (converged)" if converged else ""
                    self.logger.info(
                        f"  Iteration {i + 1}/{self.max_iters}{status} "
                        f"(T_assign={t_assign_elapsed:.6f}s, "
                        f"T_update={t_update_elapsed:.6f}s, "
                        f"changed={self.fraction_changed:.4f})"
                    )

                if converged:
                    self.status = Status.CONVERGED
                    if self.logger:
                        self.logger.info(
                            f"  Convergence reached after {i + 1} iterations "
                            f"(changed={self.fraction_changed:.2e} "
                            f"<= threshold={self.threshold:.2e})"
                        )
                    break
            else:
                self.status = Status.CAPPED
                if self.logger:
                    self.logger.info(
                        f"  Iteration cap reached ({self.max_iters}) "
                        f"with changed={self.fraction_changed:.2e}"
                    )

            self.labels = self._collect_labels()
        finally:
            self._end()

        return KMeansResult(
            centroids=self.centroids.copy(),
            labels=self.labels.copy(),
            n_iters=self.n_iters_actual,
            status=self.status,
            fraction_changed=self.fraction_changed,
        )

    def _begin(self, X: np.ndarray, labels: np.ndarray) -> None:
        """Подготовка рабочих буферов перед первой итерацией."""
        self.labels = labels

    def _collect_labels(self) -> np.ndarray:
        """Итоговые метки после последней итерации."""
        return self.labels

    def _end(self) -> None:
        """Освобождение ресурсов после fit (вызывается всегда)."""

    def _new_accumulator(self, D: int) -> ClusterAccumulator:
        return ClusterAccumulator(self.K, D)

    @abstractmethod
    def assign_and_accumulate(
        self, X: np.ndarray, centroids: np.ndarray
    ) -> Tuple[int, Any]:
        """
        Шаг назначения точек кластерам с накоплением сумм.

        Обновляет метки точек и возвращает (delta, accumulator), где delta:
        число точек, сменивших кластер, а accumulator содержит суммы и
        размеры кластеров для update_centroids.
        """
        raise NotImplementedError
