"""
Генератор синтетических наборов точек для запусков и бенчмарков.

Использует sklearn.make_blobs и сохраняет данные в текстовом или
бинарном формате pkmeans.data.io.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from sklearn.datasets import make_blobs

from pkmeans.data.io import write_binary_points, write_text_points


@dataclass
class BlobsConfig:
    """Параметры синтетического набора."""

    N: int
    D: int
    K: int
    cluster_std: float = 1.0
    center_box: tuple[float, float] = (-10.0, 10.0)
    seed: int = 42


def generate_blobs(config: BlobsConfig) -> tuple[np.ndarray, np.ndarray]:
    """
    Генерирует точки вокруг K центров.

    Returns:
        (X, labels_true): точки (N, D) float64 и истинные метки (N,)
    """
    X, labels = make_blobs(
        n_samples=config.N,
        n_features=config.D,
        centers=config.K,
        cluster_std=config.cluster_std,
        center_box=config.center_box,
        random_state=config.seed,
    )
    return X.astype(np.float64), labels.astype(np.int32)


def generate_to_file(
    path: str | Path, config: BlobsConfig, binary: bool = False
) -> Path:
    """Генерирует набор и сохраняет его в файл; возвращает путь."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    X, _ = generate_blobs(config)
    if binary:
        write_binary_points(path, X)
    else:
        write_text_points(path, X)
    return path
