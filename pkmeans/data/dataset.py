"""
Загрузка входного набора точек и выбор начальных центроидов.

Модуль предоставляет класс Dataset, внешнюю по отношению к ядру обвязку:
ядро получает только готовые массивы points и initial_centroids.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from pkmeans.data.io import read_binary_points, read_text_points
from pkmeans.data.pointset import PointSet

logger = logging.getLogger(__name__)

INIT_METHODS = ("first", "random")


def pick_initial_centroids(
    X: np.ndarray,
    n_clusters: int,
    method: str = "first",
    seed: int | None = None,
) -> np.ndarray:
    """
    Выбирает K начальных центроидов среди точек.

    Args:
        X: Точки (N, D)
        n_clusters: K
        method: "first" (первые K точек) или "random" (K различных случайных точек)
        seed: Seed для method="random"

    Returns:
        Копия выбранных точек (K, D)

    Raises:
        ValueError: Если K вне [1, N] или метод неизвестен
    """
    X = np.asarray(X)
    N = X.shape[0]
    if not 1 <= n_clusters <= N:
        raise ValueError(f"n_clusters must be in [1, {N}], got {n_clusters}")

    if method == "first":
        return np.array(X[:n_clusters], dtype=np.float64)
    if method == "random":
        rng = np.random.default_rng(seed)
        idx = rng.choice(N, size=n_clusters, replace=False)
        return np.array(X[np.sort(idx)], dtype=np.float64)

    raise ValueError(f"Unknown init method {method!r}, expected one of {INIT_METHODS}")


class Dataset:
    """
    Набор точек для одного запуска кластеризации.

    Хранит PointSet, путь к исходному файлу и выбранные начальные центроиды.
    """

    def __init__(self, points: PointSet, source: str | Path | None = None) -> None:
        self.points = points
        self.source = Path(source) if source is not None else None
        self.initial_centroids: np.ndarray | None = None

    @classmethod
    def load(cls, path: str | Path, binary: bool = False) -> Dataset:
        """
        Загружает точки из текстового или бинарного файла.

        Raises:
            OSError: Если файл недоступен
            ValueError: Если содержимое файла некорректно
        """
        logger.info(f"Loading dataset from {path}")
        X = read_binary_points(path) if binary else read_text_points(path)
        return cls(PointSet(X), source=path)

    @property
    def X(self) -> np.ndarray:
        return self.points.as_array()

    def meta(self) -> dict:
        """Метаданные для префиксов логов и записей бенчмарка."""
        K = None if self.initial_centroids is None else self.initial_centroids.shape[0]
        return {
            "N": self.points.n_points,
            "D": self.points.n_dims,
            "K": K,
            "source": str(self.source) if self.source is not None else None,
        }

    def select_centroids(
        self, n_clusters: int, method: str = "first", seed: int | None = None
    ) -> np.ndarray:
        self.initial_centroids = pick_initial_centroids(
            self.X, n_clusters, method=method, seed=seed
        )
        logger.info(
            f"Initial centroids selected: method={method}, "
            f"shape={self.initial_centroids.shape}"
        )
        return self.initial_centroids
