"""
Шаг обновления центроидов по накопленным суммам.

Политика обновления:
- кластер с count > 1 получает среднее своих точек;
- кластер с count == 0 (пустой) или count == 1 (одиночный) сохраняет
  прежний центроид без изменений.

Одиночные кластеры не обновляются, это поведение покрыто отдельными
тестами.
"""

from __future__ import annotations

from typing import Any

import numpy as np

# Кластер обновляется только если в нём строго больше точек
MIN_COUNT_FOR_UPDATE = 1


def update_centroids(centroids: np.ndarray, accumulator: Any) -> np.ndarray:
    """
    Обновляет центроиды на месте и обнуляет аккумулятор.

    Args:
        centroids: Текущие центроиды (K, D), изменяются на месте
        accumulator: Объект с полями sums (K, D), counts (K,) и методом reset()
            (ClusterAccumulator или SharedClusterAccumulator)

    Returns:
        Тот же массив centroids
    """
    sums = accumulator.sums
    counts = accumulator.counts

    updatable = counts > MIN_COUNT_FOR_UPDATE
    if np.any(updatable):
        centroids[updatable] = sums[updatable] / counts[updatable, None]

    accumulator.reset()
    return centroids
