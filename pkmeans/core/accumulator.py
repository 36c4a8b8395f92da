"""
Аккумуляторы сумм и размеров кластеров для шага обновления.

Две стратегии накопления:
- ClusterAccumulator: приватный буфер воркера (thread-local), пишется без
  синхронизации и сливается в общий итог функцией reduce_accumulators;
  буферы всех воркеров лежат в shared memory (WorkerAccumulators) и
  переживают итерации;
- SharedClusterAccumulator: общий буфер в shared memory, каждое добавление
  точки выполняется под блокировкой своего кластера (atomic).
"""

from __future__ import annotations

from multiprocessing import Lock, RawArray
from typing import Any, Iterable, List

import numpy as np

# Максимальное число блокировок для atomic-аккумулятора.
# Кластер k защищается блокировкой k % n_stripes.
DEFAULT_LOCK_STRIPES = 64


class ClusterAccumulator:
    """
    Суммы координат (K, D) и количества точек (K,) по кластерам.

    Используется как итоговый аккумулятор итерации и как приватный
    буфер одного воркера. Если переданы sums и counts, аккумулятор пишет
    прямо в них (например, в слот WorkerAccumulators).
    """

    def __init__(
        self,
        n_clusters: int,
        n_dims: int,
        sums: np.ndarray | None = None,
        counts: np.ndarray | None = None,
    ) -> None:
        if sums is None or counts is None:
            sums = np.zeros((n_clusters, n_dims), dtype=np.float64)
            counts = np.zeros(n_clusters, dtype=np.int64)
        self.sums = sums
        self.counts = counts

    @property
    def shape(self) -> tuple[int, int]:
        return self.sums.shape

    def add(self, k: int, point: np.ndarray) -> None:
        """Добавляет одну точку в кластер k."""
        self.counts[k] += 1
        self.sums[k] += point

    def add_points(self, points: np.ndarray, labels: np.ndarray) -> None:
        """Добавляет чанк точек с уже вычисленными метками."""
        np.add.at(self.sums, labels, points)
        self.counts += np.bincount(labels, minlength=self.counts.shape[0])

    def merge(self, other: ClusterAccumulator) -> None:
        """Прибавляет содержимое другого аккумулятора к этому."""
        self.sums += other.sums
        self.counts += other.counts

    def reset(self) -> None:
        self.sums.fill(0.0)
        self.counts.fill(0)


def reduce_accumulators(
    partials: Iterable[ClusterAccumulator], into: ClusterAccumulator
) -> ClusterAccumulator:
    """
    Последовательная редукция приватных аккумуляторов в общий.

    Каждый частичный буфер после слияния обнуляется: слоты
    WorkerAccumulators переиспользуются на следующей итерации.

    Args:
        partials: Приватные аккумуляторы воркеров
        into: Общий аккумулятор итерации

    Returns:
        Аккумулятор into
    """
    for partial in partials:
        into.merge(partial)
        partial.reset()
    return into


class SharedClusterAccumulator:
    """
    Аккумулятор в shared memory для стратегии atomic.

    Суммы и счётчики лежат в RawArray и видны всем воркерам пула (процессам
    или потокам). Добавление точки в кластер k выполняется под блокировкой,
    отвечающей за k; блокировка держится только на время одного добавления.
    """

    def __init__(
        self,
        n_clusters: int,
        n_dims: int,
        n_stripes: int = DEFAULT_LOCK_STRIPES,
    ) -> None:
        if n_stripes <= 0:
            raise ValueError("n_stripes must be positive")

        self.n_clusters = n_clusters
        self.n_dims = n_dims

        self._sums_raw = RawArray("d", n_clusters * n_dims)
        self._counts_raw = RawArray("q", n_clusters)
        self._locks: List[Any] = [Lock() for _ in range(min(n_clusters, n_stripes))]

        self._views: tuple[np.ndarray, np.ndarray] | None = None

    def __getstate__(self) -> dict:
        # numpy-представления пересоздаются в воркере поверх тех же буферов
        state = self.__dict__.copy()
        state["_views"] = None
        return state

    def _get_views(self) -> tuple[np.ndarray, np.ndarray]:
        if self._views is None:
            sums = np.frombuffer(self._sums_raw, dtype=np.float64).reshape(
                self.n_clusters, self.n_dims
            )
            counts = np.frombuffer(self._counts_raw, dtype=np.int64)
            self._views = (sums, counts)
        return self._views

    @property
    def sums(self) -> np.ndarray:
        return self._get_views()[0]

    @property
    def counts(self) -> np.ndarray:
        return self._get_views()[1]

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n_clusters, self.n_dims)

    def lock_for(self, k: int) -> Any:
        return self._locks[k % len(self._locks)]

    def atomic_add(self, k: int, point: np.ndarray) -> None:
        """Атомарно добавляет точку в кластер k."""
        sums, counts = self._get_views()
        with self.lock_for(k):
            counts[k] += 1
            sums[k] += point

    def reset(self) -> None:
        sums, counts = self._get_views()
        sums.fill(0.0)
        counts.fill(0)

    def snapshot(self) -> ClusterAccumulator:
        """Копия текущего содержимого в обычном аккумуляторе."""
        acc = ClusterAccumulator(self.n_clusters, self.n_dims)
        acc.sums[:] = self.sums
        acc.counts[:] = self.counts
        return acc


class WorkerAccumulators:
    """
    Приватные аккумуляторы воркеров для стратегии thread-local.

    Один слот (K, D) + (K,) на воркера, все слоты в общем RawArray, поэтому
    процесс-воркер пишет в тот же буфер, который потом читает редукция.
    Слот w пишется только задачей w, синхронизация не нужна. Память
    пропорциональна n_slots × K × D и не зависит от числа чанков.
    """

    def __init__(self, n_slots: int, n_clusters: int, n_dims: int) -> None:
        if n_slots <= 0:
            raise ValueError("n_slots must be positive")

        self.n_slots = n_slots
        self.n_clusters = n_clusters
        self.n_dims = n_dims

        self._sums_raw = RawArray("d", n_slots * n_clusters * n_dims)
        self._counts_raw = RawArray("q", n_slots * n_clusters)

        self._slots: List[ClusterAccumulator] | None = None

    def __getstate__(self) -> dict:
        state = self.__dict__.copy()
        state["_slots"] = None
        return state

    def _get_slots(self) -> List[ClusterAccumulator]:
        if self._slots is None:
            sums = np.frombuffer(self._sums_raw, dtype=np.float64).reshape(
                self.n_slots, self.n_clusters, self.n_dims
            )
            counts = np.frombuffer(self._counts_raw, dtype=np.int64).reshape(
                self.n_slots, self.n_clusters
            )
            self._slots = [
                ClusterAccumulator(self.n_clusters, self.n_dims, sums=sums[w], counts=counts[w])
                for w in range(self.n_slots)
            ]
        return self._slots

    def slot(self, w: int) -> ClusterAccumulator:
        return self._get_slots()[w]

    def partials(self) -> List[ClusterAccumulator]:
        """Все слоты по порядку, для reduce_accumulators."""
        return list(self._get_slots())

    def reset(self) -> None:
        for acc in self._get_slots():
            acc.reset()
