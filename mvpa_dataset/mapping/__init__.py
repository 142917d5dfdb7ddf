"""Mapping between N-dimensional arrays and samples x features datasets.

Design principle:
  - ``flatten`` and ``unflatten`` share one feature layout (first feature dimension
    fastest), so flatten followed by unflatten reproduces the input array exactly.
  - Unflatten works on a single sample; multi-sample callers iterate, as
    :func:`map2meeg` does.
"""

from .flatten import feature_indices, flatten, unflatten
from .meeg import map2meeg

__all__ = [
    "feature_indices",
    "flatten",
    "unflatten",
    "map2meeg",
]
