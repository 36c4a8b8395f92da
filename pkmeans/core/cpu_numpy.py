# core/cpu_numpy.py
from __future__ import annotations

from typing import Tuple

import numpy as np

from .accumulator import ClusterAccumulator
from .base import KMeansBase
from .distance import nearest_centroids


class KMeansCPUNumpy(KMeansBase):
    """Простая однопоточная реализация KMeans на NumPy (baseline)."""

    def _begin(self, X: np.ndarray, labels: np.ndarray) -> None:
        super()._begin(X, labels)
        self._accumulator = self._new_accumulator(X.shape[1])

    def assign_and_accumulate(
        self, X: np.ndarray, centroids: np.ndarray
    ) -> Tuple[int, ClusterAccumulator]:
        labels = nearest_centroids(X, centroids)
        delta = int(np.count_nonzero(labels != self.labels))
        self.labels[:] = labels

        self._accumulator.add_points(X, labels)
        return delta, self._accumulator
