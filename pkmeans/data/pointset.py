"""
Представление набора точек с явной раскладкой памяти.

Каноническая раскладка point-major: массив (N, D) в C-порядке, координаты
одной точки лежат подряд. Данные в dimension-major раскладке (D, N) приводятся
к канонической при создании PointSet.
"""

from __future__ import annotations

from enum import Enum

import numpy as np


class Layout(str, Enum):
    POINT_MAJOR = "point_major"
    DIMENSION_MAJOR = "dimension_major"


class PointSet:
    """
    Неизменяемый набор из N точек размерности D.

    Доступ к точке и к измерению не зависит от исходной раскладки.
    Экземпляр можно передавать туда, где ожидается np.ndarray (N, D).
    """

    def __init__(
        self, coords: np.ndarray, layout: Layout | str = Layout.POINT_MAJOR
    ) -> None:
        """
        Args:
            coords: Двумерный массив координат
            layout: Раскладка coords: (N, D) для POINT_MAJOR
                или (D, N) для DIMENSION_MAJOR

        Raises:
            ValueError: Если массив не двумерный или раскладка неизвестна
        """
        layout = Layout(layout)
        arr = np.array(coords, dtype=np.float64, copy=True)
        if arr.ndim != 2:
            raise ValueError(f"Coordinates must be a 2-D array, got ndim={arr.ndim}")

        if layout == Layout.DIMENSION_MAJOR:
            arr = arr.T

        self._data = np.ascontiguousarray(arr)
        self._data.flags.writeable = False

    @classmethod
    def from_dimension_major(cls, coords: np.ndarray) -> PointSet:
        return cls(coords, layout=Layout.DIMENSION_MAJOR)

    @property
    def n_points(self) -> int:
        return self._data.shape[0]

    @property
    def n_dims(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self._data.shape

    def point(self, i: int) -> np.ndarray:
        """Координаты i-й точки, форма (D,)."""
        return self._data[i]

    def dimension(self, j: int) -> np.ndarray:
        """Значения j-го измерения у всех точек, форма (N,)."""
        return self._data[:, j]

    def as_array(self) -> np.ndarray:
        """Каноническое представление (N, D) только для чтения."""
        return self._data

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is not None and np.dtype(dtype) != self._data.dtype:
            return self._data.astype(dtype)
        if copy:
            return self._data.copy()
        return self._data

    def __len__(self) -> int:
        return self.n_points

    def __repr__(self) -> str:
        return f"PointSet(n_points={self.n_points}, n_dims={self.n_dims})"
