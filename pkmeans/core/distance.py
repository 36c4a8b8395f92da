"""
Евклидовы расстояния и поиск ближайшего центроида.

Все функции работают с квадратом расстояния: для выбора ближайшего
центроида важен только порядок расстояний, корень не нужен.

Квадраты разностей всегда суммируются по измерениям в порядке 0..D-1,
по одному сложению на измерение. Поэтому все формы назначения получают
побитово одинаковые расстояния и выбирают один и тот же центроид даже
при ничьих.

Правило разрешения ничьих: при равных расстояниях выигрывает центроид
с меньшим индексом.
"""

from __future__ import annotations

import numpy as np


def squared_distance(point: np.ndarray, centroid: np.ndarray) -> float:
    """
    Квадрат евклидова расстояния между точкой и центроидом.

    Args:
        point: Координаты точки, форма (D,)
        centroid: Координаты центроида, форма (D,)

    Returns:
        Сумма квадратов покоординатных разностей
    """
    point = np.asarray(point, dtype=np.float64)
    centroid = np.asarray(centroid, dtype=np.float64)

    total = 0.0
    for d in range(point.shape[0]):
        diff = float(point[d]) - float(centroid[d])
        total += diff * diff
    return total


def nearest_centroid(point: np.ndarray, centroids: np.ndarray) -> int:
    """
    Индекс ближайшего к точке центроида (последовательный просмотр).

    Минимум инициализируется нулевым центроидом, далее индекс меняется
    только при строго меньшем расстоянии.
    """
    index = 0
    min_dist = squared_distance(point, centroids[0])

    for k in range(1, centroids.shape[0]):
        dist = squared_distance(point, centroids[k])
        if dist < min_dist:
            min_dist = dist
            index = k

    return index


def distance_matrix(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Матрица квадратов расстояний (M, K) для чанка точек."""
    M = points.shape[0]
    K, D = centroids.shape
    distances = np.zeros((M, K), dtype=np.float64)

    # (M, 1) - (1, K) → (M, K) на каждое измерение
    for d in range(D):
        diff = points[:, d, None] - centroids[None, :, d]
        distances += diff * diff

    return distances


def nearest_centroids(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """
    Векторизованное назначение для чанка точек.

    np.argmin возвращает первое вхождение минимума, поэтому правило
    ничьих совпадает с nearest_centroid.

    Returns:
        Метки кластеров, форма (M,), dtype int32
    """
    distances = distance_matrix(points, centroids)
    return np.argmin(distances, axis=1).astype(np.int32, copy=False)


def nearest_centroids_by_dimension(
    points: np.ndarray, centroids: np.ndarray
) -> np.ndarray:
    """
    Назначение с накоплением частичных расстояний по измерениям.

    Внешний цикл идёт по измерениям, внутренний (векторизованный) по всем
    K центроидам сразу. Разности пишутся в один заранее выделенный буфер
    (M, K), без временных массивов на каждое измерение. Порядок сложений
    тот же, что у distance_matrix, поэтому и метки совпадают.
    """
    M = points.shape[0]
    K, D = centroids.shape
    partial = np.zeros((M, K), dtype=np.float64)
    buf = np.empty((M, K), dtype=np.float64)

    for d in range(D):
        np.subtract(points[:, d, None], centroids[None, :, d], out=buf)
        np.multiply(buf, buf, out=buf)
        partial += buf

    return np.argmin(partial, axis=1).astype(np.int32, copy=False)
