"""Flatten N-dimensional arrays into datasets and back.

Layout convention
-----------------
An array of shape ``(nsamples, n_1, ..., n_K)`` is folded into a matrix of shape
``(nsamples, n_1 * ... * n_K)``. Feature columns enumerate the Cartesian grid of
the feature dimensions with the **first feature dimension varying fastest**
(Fortran order over the trailing axes). For labels ``('i', 'j')`` with sizes
``(3, 2)`` the feature attributes are::

    fa['i'] = [0, 1, 2, 0, 1, 2]
    fa['j'] = [0, 0, 0, 1, 1, 1]

Feature attributes are 0-based indices into the dimension value lists.
``unflatten`` places each feature at its ``fa`` coordinate, so it inverts this
layout and any permutation or subset of its columns.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as np

from mvpa_dataset.errors import (
    DimensionSizeMismatchError,
    InvalidDatasetError,
    MultipleSamplesError,
    ShapeMismatchError,
)
from mvpa_dataset.models.dataset import Dataset
from mvpa_dataset.models.dims import FeatureDims


def feature_indices(dim_sizes: Sequence[int]) -> Tuple[np.ndarray, ...]:
    """Per-dimension 0-based indices of every feature column, first dimension fastest."""
    sizes = tuple(int(n) for n in dim_sizes)
    nfeatures = int(np.prod(sizes, dtype=np.int64))
    if not sizes:
        return ()
    return tuple(
        idx.astype(np.int64, copy=False)
        for idx in np.unravel_index(np.arange(nfeatures), sizes, order="F")
    )


def flatten(
    arr: Any,
    dim_labels: Sequence[str],
    dim_values: Sequence[Any],
) -> Dataset:
    """Fold a ``(nsamples, n_1, ..., n_K)`` array into a samples x features dataset.

    Parameters
    ----------
    arr:
        Array whose first axis is the sample axis and whose remaining axes are the
        feature dimensions.
    dim_labels:
        K labels, one per feature axis.
    dim_values:
        K value lists; ``dim_values[k]`` must have ``arr.shape[k + 1]`` elements.

    Returns
    -------
    Dataset
        With ``samples``, ``fa`` (one index array per label) and ``fdim`` set.
        The input array is not modified.
    """
    arr = np.asarray(arr)
    nlabels = len(dim_labels)
    if arr.ndim - 1 != nlabels or nlabels != len(dim_values):
        raise ShapeMismatchError(
            f"Array with {arr.ndim} dimensions needs {arr.ndim - 1} feature dimensions, "
            f"got {nlabels} labels and {len(dim_values)} value lists"
        )

    if len(set(dim_labels)) != nlabels:
        raise ShapeMismatchError(f"Feature dimension labels must be unique, got {list(dim_labels)}")

    fdim = FeatureDims.from_lists(dim_labels, dim_values)
    for k, (label, values) in enumerate(fdim):
        if arr.shape[k + 1] != values.size:
            raise DimensionSizeMismatchError(
                f"Dimension '{label}' (axis {k + 1}) has size {arr.shape[k + 1]}, "
                f"but {values.size} values were given"
            )

    nsamples = int(arr.shape[0])
    # never alias the caller's array
    samples = np.reshape(arr, (nsamples, fdim.nfeatures), order="F").copy()

    fa = dict(zip(fdim.labels, feature_indices(fdim.shape)))

    return Dataset(samples=samples, fa=fa, fdim=fdim)


def unflatten(ds: Dataset) -> Tuple[np.ndarray, Tuple[str, ...], Tuple[np.ndarray, ...]]:
    """Rebuild the ``(1, n_1, ..., n_K)`` array of a single-sample dataset.

    Returns
    -------
    arr, dim_labels, dim_values
        ``arr`` holds the sample at the coordinates given by ``ds.fa``; grid positions
        not covered by any feature are zero.
    """
    if ds.fdim is None:
        raise InvalidDatasetError("Dataset has no feature dimensions; cannot unflatten")
    if ds.nsamples != 1:
        raise MultipleSamplesError(
            f"Only a single sample can be unflattened, found {ds.nsamples}; "
            "unflatten each sample separately"
        )

    fdim = ds.fdim
    coords = []
    for label, values in fdim:
        if label not in ds.fa:
            raise InvalidDatasetError(f"Missing feature attribute '{label}'")
        idx = np.asarray(ds.fa[label])
        if idx.shape != (ds.nfeatures,):
            raise InvalidDatasetError(
                f"Feature attribute '{label}' has shape {idx.shape}, expected ({ds.nfeatures},)"
            )
        if idx.size and (idx.min() < 0 or idx.max() >= values.size):
            raise InvalidDatasetError(
                f"Feature attribute '{label}' indexes outside [0, {values.size})"
            )
        coords.append(idx.astype(np.intp, copy=False))

    arr = np.zeros((1,) + fdim.shape, dtype=ds.samples.dtype)
    arr[(np.zeros(ds.nfeatures, dtype=np.intp),) + tuple(coords)] = ds.samples[0]

    return arr, fdim.labels, fdim.values
