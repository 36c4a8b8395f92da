from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from multiprocessing import Pool, RawArray, cpu_count
from multiprocessing.pool import ThreadPool
from typing import List, Optional, Tuple

import numpy as np

from pkmeans.core.accumulator import (
    DEFAULT_LOCK_STRIPES,
    ClusterAccumulator,
    SharedClusterAccumulator,
    WorkerAccumulators,
    reduce_accumulators,
)
from pkmeans.core.base import DEFAULT_MAX_ITERS, DEFAULT_THRESHOLD, KMeansBase
from pkmeans.core.distance import nearest_centroids
from pkmeans.metrics.timers import Timer


class AccumulationStrategy(str, Enum):
    """Способ накопления сумм кластеров между воркерами."""

    ATOMIC = "atomic"
    THREAD_LOCAL = "thread_local"


BACKENDS = ("process", "thread")


@dataclass(frozen=True)
class MultiprocessingConfig:
    """Параметры параллельного KMeans."""

    n_processes: int = 4
    chunk_size: Optional[int] = None
    backend: str = "process"
    strategy: AccumulationStrategy = AccumulationStrategy.THREAD_LOCAL
    n_lock_stripes: int = DEFAULT_LOCK_STRIPES


# --- Глобальное состояние воркеров: shared X, метки и аккумуляторы ---
_SHARED_X_BUF: RawArray | None = None
_SHARED_X_SHAPE: Tuple[int, int] | None = None
_SHARED_LABELS_BUF: RawArray | None = None
_SHARED_ACC: SharedClusterAccumulator | None = None
_SHARED_LOCALS: WorkerAccumulators | None = None


def _init_shared(
    x_raw: RawArray,
    shape: Tuple[int, int],
    labels_raw: RawArray,
    accumulator: SharedClusterAccumulator | None,
    locals_: WorkerAccumulators | None = None,
) -> None:
    """Инициализатор пула: регистрирует shared-буферы."""
    global _SHARED_X_BUF, _SHARED_X_SHAPE, _SHARED_LABELS_BUF, _SHARED_ACC, _SHARED_LOCALS
    _SHARED_X_BUF = x_raw
    _SHARED_X_SHAPE = shape
    _SHARED_LABELS_BUF = labels_raw
    _SHARED_ACC = accumulator
    _SHARED_LOCALS = locals_


def _get_shared_X() -> np.ndarray:
    """NumPy-представление shared X."""
    assert _SHARED_X_BUF is not None and _SHARED_X_SHAPE is not None
    arr = np.frombuffer(_SHARED_X_BUF, dtype=np.float64)
    return arr.reshape(_SHARED_X_SHAPE)


def _get_shared_labels() -> np.ndarray:
    """NumPy-представление shared меток."""
    assert _SHARED_LABELS_BUF is not None
    return np.frombuffer(_SHARED_LABELS_BUF, dtype=np.int32)


def _assign_chunk(start: int, stop: int, centroids: np.ndarray) -> Tuple[np.ndarray, int]:
    """Назначение для чанка [start, stop): пишет метки, возвращает (метки, delta)."""
    X = _get_shared_X()
    labels = _get_shared_labels()

    nearest = nearest_centroids(X[start:stop], centroids)
    delta = int(np.count_nonzero(labels[start:stop] != nearest))
    # Чанки не пересекаются, запись меток без синхронизации
    labels[start:stop] = nearest
    return nearest, delta


def _atomic_chunk_worker(args: Tuple[int, List[Tuple[int, int]], np.ndarray]) -> int:
    """Чанки одного воркера для стратегии atomic: каждая точка идёт в общий аккумулятор."""
    _, bounds, centroids = args
    assert _SHARED_ACC is not None

    X = _get_shared_X()
    delta = 0
    for start, stop in bounds:
        nearest, chunk_delta = _assign_chunk(start, stop, centroids)
        delta += chunk_delta
        for offset, k in enumerate(nearest):
            _SHARED_ACC.atomic_add(int(k), X[start + offset])

    return delta


def _local_chunk_worker(args: Tuple[int, List[Tuple[int, int]], np.ndarray]) -> int:
    """
    Чанки одного воркера для стратегии thread-local.

    Все чанки задачи копятся в приватный слот w, возвращается только delta.
    """
    w, bounds, centroids = args
    assert _SHARED_LOCALS is not None

    X = _get_shared_X()
    local = _SHARED_LOCALS.slot(w)
    delta = 0
    for start, stop in bounds:
        nearest, chunk_delta = _assign_chunk(start, stop, centroids)
        delta += chunk_delta
        local.add_points(X[start:stop], nearest)

    return delta


class KMeansCPUMultiprocessing(KMeansBase):
    """
    K-Means на CPU с пулом воркеров и shared X (пул один раз на fit).

    Стратегия накопления задаётся в MultiprocessingConfig.strategy:
    - ATOMIC: воркеры добавляют точки прямо в общий аккумулятор под
      блокировками кластеров;
    - THREAD_LOCAL: каждый воркер копит суммы своих чанков в приватном
      слоте WorkerAccumulators, затем главный процесс последовательно
      сворачивает слоты в итог и обнуляет их для следующей итерации.

    Чанки раскладываются по воркерам по кругу, на воркера одна задача
    за итерацию.
    """

    def __init__(
        self,
        n_clusters: int,
        max_iters: int = DEFAULT_MAX_ITERS,
        threshold: float = DEFAULT_THRESHOLD,
        mp: MultiprocessingConfig = MultiprocessingConfig(),
        logger=None,
    ) -> None:
        super().__init__(
            n_clusters=n_clusters, max_iters=max_iters, threshold=threshold, logger=logger
        )
        if mp.backend not in BACKENDS:
            raise ValueError(f"Unknown backend {mp.backend!r}, expected one of {BACKENDS}")
        if int(mp.n_processes) <= 0:
            raise ValueError("n_processes must be positive")
        if mp.chunk_size is not None and int(mp.chunk_size) <= 0:
            raise ValueError("chunk_size must be positive")

        self.mp = mp
        self.strategy = AccumulationStrategy(mp.strategy)

        # Время последовательной редукции (только THREAD_LOCAL)
        self.t_reduce_total: float = 0.0

        # Пул, чанки и shared-буферы переиспользуются в рамках fit
        self._pool: Optional[Pool] = None
        self._chunks: Optional[List[Tuple[int, int]]] = None
        self._tasks: Optional[List[List[Tuple[int, int]]]] = None
        self._labels_raw: RawArray | None = None
        self._shared_acc: SharedClusterAccumulator | None = None
        self._total_acc: ClusterAccumulator | None = None
        self._locals: WorkerAccumulators | None = None

    @property
    def n_workers(self) -> int:
        if self.mp.backend == "process":
            return max(1, min(int(self.mp.n_processes), cpu_count()))
        return int(self.mp.n_processes)

    # --- Пул и разбиение ---

    def _make_chunks(self, N: int, n_workers: int) -> List[Tuple[int, int]]:
        """Статическое разбиение индексов на непрерывные чанки [start, stop)."""
        if self.mp.chunk_size is None:
            chunks = np.array_split(np.arange(N), n_workers)
            bounds = [(int(idx[0]), int(idx[-1]) + 1) for idx in chunks if idx.size > 0]
        else:
            cs = int(self.mp.chunk_size)
            bounds = [(i, min(i + cs, N)) for i in range(0, N, cs)]
        return bounds

    @staticmethod
    def _group_chunks(
        chunks: List[Tuple[int, int]], n_workers: int
    ) -> List[List[Tuple[int, int]]]:
        """Раскладка чанков по воркерам по кругу: одна задача на воркера."""
        groups = [chunks[w::n_workers] for w in range(n_workers)]
        return [g for g in groups if g]

    def _begin(self, X: np.ndarray, labels: np.ndarray) -> None:
        """Инициализация пула, shared X, shared меток, аккумуляторов и чанков."""
        N, D = X.shape
        n_workers = self.n_workers

        self.t_reduce_total = 0.0
        self._chunks = self._make_chunks(N, n_workers)
        self._tasks = self._group_chunks(self._chunks, n_workers)

        # Копируем X один раз в shared RawArray (float64)
        x_raw = RawArray("d", int(X.size))
        np.frombuffer(x_raw, dtype=np.float64).reshape(X.shape)[:] = X

        self._labels_raw = RawArray("i", N)
        np.frombuffer(self._labels_raw, dtype=np.int32)[:] = labels

        if self.strategy == AccumulationStrategy.ATOMIC:
            self._shared_acc = SharedClusterAccumulator(
                self.K, D, n_stripes=self.mp.n_lock_stripes
            )
            self._total_acc = None
            self._locals = None
        else:
            self._shared_acc = None
            self._total_acc = ClusterAccumulator(self.K, D)
            self._locals = WorkerAccumulators(len(self._tasks), self.K, D)

        pool_cls = Pool if self.mp.backend == "process" else ThreadPool
        self._pool = pool_cls(
            processes=n_workers,
            initializer=_init_shared,
            initargs=(x_raw, X.shape, self._labels_raw, self._shared_acc, self._locals),
        )

        if self.logger:
            self.logger.info(
                f"  Pool ready: backend={self.mp.backend}, workers={n_workers}, "
                f"chunks={len(self._chunks)}, strategy={self.strategy.value}"
            )

    def _collect_labels(self) -> np.ndarray:
        assert self._labels_raw is not None
        return np.frombuffer(self._labels_raw, dtype=np.int32).copy()

    def _end(self) -> None:
        """Закрыть пул после fit."""
        if self._pool is not None:
            self._pool.close()
            self._pool.join()
        self._pool = None
        self._chunks = None
        self._tasks = None
        self._labels_raw = None
        self._shared_acc = None
        self._total_acc = None
        self._locals = None

    # ---------- Assignment + accumulation (parallel over workers) ----------

    def assign_and_accumulate(self, X: np.ndarray, centroids: np.ndarray):
        assert self._pool is not None and self._tasks is not None

        # Аргументы воркерам: номер слота, его чанки и центроиды (только чтение)
        args: List[Tuple[int, List[Tuple[int, int]], np.ndarray]] = [
            (w, bounds, centroids) for w, bounds in enumerate(self._tasks)
        ]

        if self.strategy == AccumulationStrategy.ATOMIC:
            assert self._shared_acc is not None
            self._shared_acc.reset()
            deltas = self._pool.map(_atomic_chunk_worker, args)
            return sum(deltas), self._shared_acc

        assert self._total_acc is not None and self._locals is not None
        deltas = self._pool.map(_local_chunk_worker, args)

        with Timer() as t_reduce:
            reduce_accumulators(self._locals.partials(), self._total_acc)
        self.t_reduce_total += t_reduce.elapsed

        return sum(deltas), self._total_acc
