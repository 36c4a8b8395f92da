"""
Тесты контроллера сходимости: сценарии остановки, тёплый старт,
граничные случаи и проверка предусловий.
"""

import numpy as np
import pytest
from pkmeans.core.base import DEFAULT_MAX_ITERS, UNASSIGNED, Status
from pkmeans.core.cpu_multiprocessing import (
    AccumulationStrategy,
    KMeansCPUMultiprocessing,
    MultiprocessingConfig,
)
from pkmeans.core.cpu_numpy import KMeansCPUNumpy
from pkmeans.core.distance import nearest_centroids


def _serial(**kw):
    return KMeansCPUNumpy(**kw)


def _threads_local(**kw):
    return KMeansCPUMultiprocessing(
        mp=MultiprocessingConfig(
            n_processes=3, backend="thread", strategy=AccumulationStrategy.THREAD_LOCAL
        ),
        **kw,
    )


def _threads_atomic(**kw):
    return KMeansCPUMultiprocessing(
        mp=MultiprocessingConfig(
            n_processes=3, backend="thread", strategy=AccumulationStrategy.ATOMIC
        ),
        **kw,
    )


def _processes_local(**kw):
    return KMeansCPUMultiprocessing(
        mp=MultiprocessingConfig(
            n_processes=2, backend="process", strategy=AccumulationStrategy.THREAD_LOCAL
        ),
        **kw,
    )


def _processes_atomic(**kw):
    return KMeansCPUMultiprocessing(
        mp=MultiprocessingConfig(
            n_processes=2, backend="process", strategy=AccumulationStrategy.ATOMIC
        ),
        **kw,
    )


@pytest.fixture(
    params=[_serial, _threads_local, _threads_atomic, _processes_local, _processes_atomic],
    ids=["serial", "thread-local", "thread-atomic", "process-local", "process-atomic"],
)
def make_model(request):
    return request.param


class TestConvergenceScenarios:
    """Сценарии остановки цикла."""

    def test_four_points_two_iterations(self, make_model, four_points):
        """Четыре точки, K=2, порог 0: сходимость за 2 итерации."""
        X, initial_centroids = four_points
        model = make_model(n_clusters=2, threshold=0.0)

        result = model.fit(X, initial_centroids)

        assert result.status == Status.CONVERGED
        assert result.n_iters == 2
        assert result.fraction_changed == 0.0
        np.testing.assert_array_equal(result.labels, [0, 0, 1, 1])
        np.testing.assert_array_equal(result.centroids, [[0.0, 0.5], [10.0, 0.5]])

    def test_first_iteration_changes_every_point(self, four_points):
        """С меткой UNASSIGNED первая итерация меняет все точки."""
        X, initial_centroids = four_points
        model = KMeansCPUNumpy(n_clusters=2, threshold=0.0, max_iters=1)

        result = model.fit(X, initial_centroids)

        assert result.fraction_changed == 1.0
        assert result.status == Status.CAPPED

    def test_singleton_and_empty_clusters_keep_centroids(self, make_model, singleton_dataset):
        """Одиночный и пустой кластеры сохраняют исходные центроиды побитово."""
        X, initial_centroids = singleton_dataset
        model = make_model(n_clusters=4, threshold=0.0)

        result = model.fit(X, initial_centroids)

        assert result.status == Status.CONVERGED
        np.testing.assert_array_equal(result.labels, [0, 0, 1, 1, 2])
        assert result.centroids[2].tobytes() == initial_centroids[2].tobytes()
        assert result.centroids[3].tobytes() == initial_centroids[3].tobytes()
        np.testing.assert_array_equal(result.centroids[0], [0.0, 0.5])
        np.testing.assert_array_equal(result.centroids[1], [10.0, 0.5])

    def test_single_cluster(self, make_model, medium_dataset):
        """K=1: центроид равен среднему всех точек, все метки нулевые."""
        X, _ = medium_dataset
        model = make_model(n_clusters=1, threshold=0.0)

        result = model.fit(X, X[:1])

        # Первая итерация всегда меняет все точки, вторая подтверждает
        assert result.status == Status.CONVERGED
        assert result.n_iters == 2
        np.testing.assert_array_equal(result.labels, np.zeros(X.shape[0]))
        np.testing.assert_allclose(result.centroids[0], X.mean(axis=0), rtol=1e-10, atol=1e-9)

    def test_single_cluster_threshold_one(self, medium_dataset):
        """K=1 при пороге 1.0 завершается за одну итерацию."""
        X, _ = medium_dataset
        result = KMeansCPUNumpy(n_clusters=1, threshold=1.0).fit(X, X[:1])

        assert result.n_iters == 1
        assert result.status == Status.CONVERGED
        np.testing.assert_allclose(result.centroids[0], X.mean(axis=0), rtol=1e-10, atol=1e-9)

    def test_cap_reached(self, make_model, small_dataset):
        """Достижение лимита итераций: штатное завершение со статусом CAPPED."""
        X, initial_centroids = small_dataset
        model = make_model(n_clusters=2, threshold=0.0, max_iters=1)

        result = model.fit(X, initial_centroids)

        assert result.status == Status.CAPPED
        assert result.success
        assert not result.converged
        assert result.n_iters == 1
        assert np.all((result.labels >= 0) & (result.labels < 2))

    def test_convergence_checked_before_cap(self, four_points):
        """Сходимость на последней разрешённой итерации даёт CONVERGED."""
        X, initial_centroids = four_points
        result = KMeansCPUNumpy(n_clusters=2, threshold=0.0, max_iters=2).fit(
            X, initial_centroids
        )
        assert result.status == Status.CONVERGED
        assert result.n_iters == 2

    def test_default_cap(self):
        model = KMeansCPUNumpy(n_clusters=2)
        assert model.max_iters == DEFAULT_MAX_ITERS == 500


class TestConvergenceProperties:
    """Свойства результата после завершения."""

    def test_labels_in_range(self, make_model, medium_dataset):
        X, initial_centroids = medium_dataset
        result = make_model(n_clusters=3, threshold=0.0).fit(X, initial_centroids)

        assert result.labels.shape == (X.shape[0],)
        assert np.all((result.labels >= 0) & (result.labels < 3))

    def test_labels_are_nearest_to_final_centroids(self, medium_dataset):
        """При сходимости с порогом 0 метки равны argmin по итоговым центроидам."""
        X, initial_centroids = medium_dataset
        result = _threads_local(n_clusters=3, threshold=0.0).fit(X, initial_centroids)

        assert result.status == Status.CONVERGED
        np.testing.assert_array_equal(result.labels, nearest_centroids(X, result.centroids))

    def test_warm_start_is_idempotent(self, medium_dataset):
        """Повторный запуск с итоговыми центроидами и метками: одна итерация без изменений."""
        X, initial_centroids = medium_dataset
        first = _threads_local(n_clusters=3, threshold=0.0).fit(X, initial_centroids)

        second = _threads_local(n_clusters=3, threshold=0.0).fit(
            X, first.centroids, initial_labels=first.labels
        )

        assert second.n_iters == 1
        assert second.fraction_changed == 0.0
        assert second.status == Status.CONVERGED
        np.testing.assert_array_equal(second.labels, first.labels)
        np.testing.assert_array_equal(second.centroids, first.centroids)

    def test_initial_labels_not_modified(self, four_points):
        X, initial_centroids = four_points
        labels = np.full(4, UNASSIGNED, dtype=np.int32)

        KMeansCPUNumpy(n_clusters=2, threshold=0.0).fit(X, initial_centroids, initial_labels=labels)

        np.testing.assert_array_equal(labels, [UNASSIGNED] * 4)


class TestPreconditions:
    """Нарушение предусловий обнаруживается до начала вычислений."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"threshold": -0.1},
            {"threshold": 1.5},
            {"max_iters": 0},
        ],
    )
    def test_invalid_parameters(self, four_points, kwargs):
        X, initial_centroids = four_points
        with pytest.raises(ValueError):
            KMeansCPUNumpy(n_clusters=2, **kwargs).fit(X, initial_centroids)

    def test_centroid_shape_mismatch(self, four_points):
        X, _ = four_points
        with pytest.raises(ValueError, match="centroids shape"):
            KMeansCPUNumpy(n_clusters=2).fit(X, np.zeros((3, 2)))
        with pytest.raises(ValueError, match="centroids shape"):
            KMeansCPUNumpy(n_clusters=2).fit(X, np.zeros((2, 3)))

    def test_non_positive_clusters(self, four_points):
        X, _ = four_points
        with pytest.raises(ValueError, match="n_clusters"):
            KMeansCPUNumpy(n_clusters=0).fit(X, np.zeros((0, 2)))

    def test_empty_points(self):
        with pytest.raises(ValueError, match="non-empty"):
            KMeansCPUNumpy(n_clusters=1).fit(np.zeros((0, 2)), np.zeros((1, 2)))

    def test_one_dimensional_points(self):
        with pytest.raises(ValueError, match="2-D"):
            KMeansCPUNumpy(n_clusters=1).fit(np.zeros(5), np.zeros((1, 1)))

    def test_nan_values(self, four_points):
        X, initial_centroids = four_points
        bad_X = X.copy()
        bad_X[0, 0] = np.nan
        with pytest.raises(ValueError, match="NaN"):
            KMeansCPUNumpy(n_clusters=2).fit(bad_X, initial_centroids)

        bad_c = initial_centroids.copy()
        bad_c[1, 1] = np.inf
        with pytest.raises(ValueError, match="NaN"):
            KMeansCPUNumpy(n_clusters=2).fit(X, bad_c)

    def test_invalid_initial_labels(self, four_points):
        X, initial_centroids = four_points
        with pytest.raises(ValueError, match="labels"):
            KMeansCPUNumpy(n_clusters=2).fit(
                X, initial_centroids, initial_labels=np.array([0, 1, 2, 0])
            )
        with pytest.raises(ValueError, match="labels"):
            KMeansCPUNumpy(n_clusters=2).fit(X, initial_centroids, initial_labels=np.zeros(3))

    def test_invalid_parallel_config(self):
        with pytest.raises(ValueError, match="backend"):
            KMeansCPUMultiprocessing(n_clusters=2, mp=MultiprocessingConfig(backend="gpu"))
        with pytest.raises(ValueError, match="n_processes"):
            KMeansCPUMultiprocessing(n_clusters=2, mp=MultiprocessingConfig(n_processes=0))
        with pytest.raises(ValueError, match="chunk_size"):
            KMeansCPUMultiprocessing(n_clusters=2, mp=MultiprocessingConfig(chunk_size=0))
        with pytest.raises(ValueError):
            KMeansCPUMultiprocessing(n_clusters=2, mp=MultiprocessingConfig(strategy="locks"))
