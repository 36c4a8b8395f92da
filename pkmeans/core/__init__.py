from .base import (
    DEFAULT_MAX_ITERS,
    DEFAULT_THRESHOLD,
    UNASSIGNED,
    KMeansBase,
    KMeansResult,
    Status,
)
from .cpu_numpy import KMeansCPUNumpy
from .cpu_multiprocessing import (
    AccumulationStrategy,
    KMeansCPUMultiprocessing,
    MultiprocessingConfig,
)
from .clustering import kmeans_clustering

__all__ = [
    "DEFAULT_MAX_ITERS",
    "DEFAULT_THRESHOLD",
    "UNASSIGNED",
    "KMeansBase",
    "KMeansResult",
    "Status",
    "KMeansCPUNumpy",
    "AccumulationStrategy",
    "KMeansCPUMultiprocessing",
    "MultiprocessingConfig",
    "kmeans_clustering",
]
