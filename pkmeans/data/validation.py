"""
Проверка входных данных перед кластеризацией.

Ядро не выполняет никаких вычислений на некорректных данных: все нарушения
предусловий обнаруживаются здесь и приводят к ValueError до начала итераций.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from pkmeans.data.dataset import Dataset


def validate_inputs(
    X: np.ndarray,
    initial_centroids: np.ndarray,
    *,
    n_clusters: int,
    threshold: float,
    max_iters: int,
    initial_labels: np.ndarray | None = None,
) -> None:
    """
    Проверяет точки, начальные центроиды и параметры запуска.

    Args:
        X: Точки (N, D)
        initial_centroids: Начальные центроиды (K, D)
        n_clusters: Ожидаемое K
        threshold: Порог доли сменивших кластер точек, [0, 1]
        max_iters: Лимит итераций, >= 1
        initial_labels: Необязательные стартовые метки (N,), значения в [-1, K)

    Raises:
        ValueError: Если нарушено любое из предусловий
    """
    if n_clusters <= 0:
        raise ValueError(f"n_clusters must be positive, got {n_clusters}")
    if max_iters <= 0:
        raise ValueError(f"max_iters must be positive, got {max_iters}")
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be in [0, 1], got {threshold}")

    if X.ndim != 2:
        raise ValueError(f"Points must be a 2-D array, got ndim={X.ndim}")
    N, D = X.shape
    if N == 0 or D == 0:
        raise ValueError(f"Points must be non-empty, got shape {X.shape}")

    centroids = np.asarray(initial_centroids)
    if centroids.shape != (n_clusters, D):
        raise ValueError(
            f"Expected centroids shape ({n_clusters}, {D}), got {centroids.shape}"
        )

    if not np.all(np.isfinite(X)):
        raise ValueError("Points contain NaN or infinite values")
    if not np.all(np.isfinite(centroids)):
        raise ValueError("Initial centroids contain NaN or infinite values")

    if initial_labels is not None:
        labels = np.asarray(initial_labels)
        if labels.shape != (N,):
            raise ValueError(
                f"Expected initial labels shape ({N},), got {labels.shape}"
            )
        if labels.size and (labels.min() < -1 or labels.max() >= n_clusters):
            raise ValueError(
                f"Initial labels must be in [-1, {n_clusters}), "
                f"got [{labels.min()}, {labels.max()}]"
            )


def validate_dataset(dataset: Dataset) -> None:
    """
    Проверяет согласованность загруженного датасета.

    Args:
        dataset: Экземпляр Dataset для валидации

    Raises:
        ValueError: Если центроиды не выбраны или их форма не совпадает с данными
    """
    if dataset.initial_centroids is None:
        raise ValueError("Initial centroids are not selected")

    K = dataset.initial_centroids.shape[0]
    if K > dataset.points.n_points:
        raise ValueError(
            f"Cannot pick {K} initial centroids from {dataset.points.n_points} points"
        )
    if dataset.initial_centroids.shape[1] != dataset.points.n_dims:
        raise ValueError(
            f"Expected centroids with {dataset.points.n_dims} dimensions, "
            f"got {dataset.initial_centroids.shape[1]}"
        )
