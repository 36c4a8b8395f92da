"""
Тесты вычисления расстояний и поиска ближайшего центроида.
"""

import numpy as np
import pytest
from pkmeans.core.distance import (
    distance_matrix,
    nearest_centroid,
    nearest_centroids,
    nearest_centroids_by_dimension,
    squared_distance,
)


class TestSquaredDistance:
    """Тесты квадрата евклидова расстояния."""

    def test_basic(self):
        """Квадрат расстояния без извлечения корня."""
        assert squared_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == 25.0

    def test_zero_for_same_point(self):
        p = np.array([1.5, -2.0, 7.0])
        assert squared_distance(p, p.copy()) == 0.0

    def test_symmetric(self):
        a = np.array([1.0, 2.0, 3.0])
        b = np.array([-1.0, 0.5, 9.0])
        assert squared_distance(a, b) == pytest.approx(squared_distance(b, a))

    def test_distance_matrix_matches_pairwise(self):
        """Матрица расстояний побитово совпадает с попарным вычислением."""
        rng = np.random.default_rng(0)
        X = rng.normal(size=(7, 4))
        C = rng.normal(size=(3, 4))

        dm = distance_matrix(X, C)

        assert dm.shape == (7, 3)
        for i in range(7):
            for k in range(3):
                assert dm[i, k] == squared_distance(X[i], C[k])


class TestNearestCentroid:
    """Тесты выбора ближайшего центроида и правила ничьих."""

    def test_picks_closest(self):
        centroids = np.array([[0.0, 0.0], [10.0, 0.0], [5.0, 5.0]])
        assert nearest_centroid(np.array([9.0, 1.0]), centroids) == 1
        assert nearest_centroid(np.array([4.0, 6.0]), centroids) == 2

    def test_tie_keeps_lowest_index(self):
        """При равных расстояниях выигрывает меньший индекс."""
        point = np.array([0.0, 0.0])
        centroids = np.array([[2.0, 0.0], [1.0, 0.0], [-1.0, 0.0]])
        assert nearest_centroid(point, centroids) == 1

        centroids = np.array([[1.0, 0.0], [-1.0, 0.0]])
        assert nearest_centroid(point, centroids) == 0

    def test_duplicate_centroids_tie(self):
        """Одинаковые центроиды: назначение всегда в первый."""
        X = np.array([[1.0, 1.0], [3.0, 3.0]])
        centroids = np.array([[2.0, 2.0], [2.0, 2.0]])
        np.testing.assert_array_equal(nearest_centroids(X, centroids), [0, 0])
        np.testing.assert_array_equal(nearest_centroids_by_dimension(X, centroids), [0, 0])

    def test_single_centroid(self):
        X = np.random.default_rng(1).normal(size=(5, 3))
        centroids = np.zeros((1, 3))
        np.testing.assert_array_equal(nearest_centroids(X, centroids), np.zeros(5))

    def test_vectorized_matches_scalar(self):
        """Векторизованное назначение совпадает с последовательным просмотром."""
        rng = np.random.default_rng(7)
        X = rng.normal(size=(200, 5))
        centroids = rng.normal(size=(6, 5)) * 2

        labels = nearest_centroids(X, centroids)

        assert labels.dtype == np.int32
        expected = [nearest_centroid(x, centroids) for x in X]
        np.testing.assert_array_equal(labels, expected)

    def test_by_dimension_matches_by_cluster(self):
        """Обход по измерениям даёт те же метки, что и обход по кластерам."""
        rng = np.random.default_rng(11)
        X = rng.normal(size=(300, 8))
        centroids = rng.normal(size=(5, 8))

        np.testing.assert_array_equal(
            nearest_centroids_by_dimension(X, centroids),
            nearest_centroids(X, centroids),
        )


class TestFormsAgreeOnTies:
    """Все формы назначения суммируют измерения в одном порядке."""

    @staticmethod
    def _permuted_ties(n_trials=500, D=37, seed=0):
        # c1 = p + перестановка (c0 - p): математически c0 и c1 равноудалены от p
        rng = np.random.default_rng(seed)
        for _ in range(n_trials):
            p = rng.normal(size=D)
            c0 = rng.normal(size=D)
            c1 = p + rng.permutation(c0 - p)
            yield p, np.vstack([c0, c1])

    def test_distances_bit_identical(self):
        for p, centroids in self._permuted_ties(n_trials=100):
            dm = distance_matrix(p[None, :], centroids)
            assert dm[0, 0] == squared_distance(p, centroids[0])
            assert dm[0, 1] == squared_distance(p, centroids[1])

    def test_same_label_on_permuted_ties(self):
        for p, centroids in self._permuted_ties():
            scalar = nearest_centroid(p, centroids)
            chunk = int(nearest_centroids(p[None, :], centroids)[0])
            by_dimension = int(nearest_centroids_by_dimension(p[None, :], centroids)[0])
            assert scalar == chunk == by_dimension

    def test_chunk_forms_agree_on_permuted_ties(self):
        """Чанк из многих точек: обе векторизованные формы и скалярный просмотр совпадают."""
        rng = np.random.default_rng(3)
        D = 29
        X = rng.normal(size=(64, D))
        c0 = rng.normal(size=D)
        # Для X[0] центроид 1 и его копии 2, 3 перестановочно равноудалены с центроидом 0
        c1 = X[0] + rng.permutation(c0 - X[0])
        centroids = np.vstack([c0, c1, c1, c1])

        chunk = nearest_centroids(X, centroids)
        by_dimension = nearest_centroids_by_dimension(X, centroids)
        scalar = [nearest_centroid(x, centroids) for x in X]

        np.testing.assert_array_equal(chunk, by_dimension)
        np.testing.assert_array_equal(chunk, scalar)
        # Дубликаты центроида 1 никогда не выигрывают у него самого
        assert not np.any(np.isin(chunk, [2, 3]))
