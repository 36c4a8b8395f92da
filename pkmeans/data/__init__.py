from .pointset import Layout, PointSet
from .dataset import Dataset, pick_initial_centroids
from .validation import validate_dataset, validate_inputs

__all__ = [
    "Layout",
    "PointSet",
    "Dataset",
    "pick_initial_centroids",
    "validate_dataset",
    "validate_inputs",
]
