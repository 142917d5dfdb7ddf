from .dims import FeatureDims
from .dataset import Dataset

__all__ = [
    "FeatureDims",
    "Dataset",
]
