from .core import (
    DEFAULT_MAX_ITERS,
    DEFAULT_THRESHOLD,
    AccumulationStrategy,
    KMeansCPUMultiprocessing,
    KMeansCPUNumpy,
    KMeansResult,
    MultiprocessingConfig,
    Status,
    kmeans_clustering,
)
from .data import PointSet

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_MAX_ITERS",
    "DEFAULT_THRESHOLD",
    "AccumulationStrategy",
    "KMeansCPUMultiprocessing",
    "KMeansCPUNumpy",
    "KMeansResult",
    "MultiprocessingConfig",
    "Status",
    "kmeans_clustering",
    "PointSet",
]
