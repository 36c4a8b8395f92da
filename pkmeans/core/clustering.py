"""
Точка входа ядра: один вызов кластеризации с выбором стратегии накопления.
"""

from __future__ import annotations

import logging
from multiprocessing import cpu_count

import numpy as np

from pkmeans.core.base import DEFAULT_MAX_ITERS, DEFAULT_THRESHOLD, KMeansResult
from pkmeans.core.cpu_multiprocessing import (
    AccumulationStrategy,
    KMeansCPUMultiprocessing,
    MultiprocessingConfig,
)


def kmeans_clustering(
    points: np.ndarray,
    initial_centroids: np.ndarray,
    threshold: float = DEFAULT_THRESHOLD,
    strategy: AccumulationStrategy | str = AccumulationStrategy.THREAD_LOCAL,
    n_workers: int | None = None,
    max_iters: int = DEFAULT_MAX_ITERS,
    backend: str = "process",
    chunk_size: int | None = None,
    initial_labels: np.ndarray | None = None,
    logger: logging.Logger | None = None,
) -> KMeansResult:
    """
    Кластеризует points на K = len(initial_centroids) кластеров.

    Args:
        points: Точки (N, D) или PointSet; не изменяются
        initial_centroids: Начальные центроиды (K, D); не изменяются
        threshold: Доля сменивших кластер точек, при которой цикл останавливается
        strategy: "atomic" или "thread_local"
        n_workers: Число воркеров (по умолчанию cpu_count())
        max_iters: Лимит итераций (по умолчанию 500)
        backend: "process" (multiprocessing.Pool) или "thread" (ThreadPool)
        chunk_size: Размер статического чанка (по умолчанию один чанк на воркер)
        initial_labels: Стартовые метки для тёплого старта
        logger: Логгер для сообщений об итерациях

    Returns:
        KMeansResult с центроидами, метками, числом итераций и статусом

    Raises:
        ValueError: При нарушении предусловий (до начала вычислений)
    """
    X = np.asarray(points, dtype=np.float64)
    centroids = np.asarray(initial_centroids, dtype=np.float64)
    if centroids.ndim != 2:
        raise ValueError(
            f"Initial centroids must be a 2-D array, got ndim={centroids.ndim}"
        )

    try:
        strategy = AccumulationStrategy(strategy)
    except ValueError:
        raise ValueError(
            f"Unknown strategy {strategy!r}, expected one of "
            f"{[s.value for s in AccumulationStrategy]}"
        ) from None

    mp = MultiprocessingConfig(
        n_processes=cpu_count() if n_workers is None else n_workers,
        chunk_size=chunk_size,
        backend=backend,
        strategy=strategy,
    )
    model = KMeansCPUMultiprocessing(
        n_clusters=centroids.shape[0],
        max_iters=max_iters,
        threshold=threshold,
        mp=mp,
        logger=logger,
    )
    return model.fit(X, centroids, initial_labels=initial_labels)
