from __future__ import annotations

from typing import Any, Optional

import numpy as np

from mvpa_dataset.errors import InvalidDatasetError
from mvpa_dataset.models.dataset import Dataset


_MEEG_KEYS = ("samples_field", "samples_type", "samples_label")
_DS_TYPES = ("meeg", "fmri")


def check_dataset(ds: Any, ds_type: Optional[str] = None, raise_: bool = True) -> bool:
    """Check the structural invariants of a dataset.

    Parameters
    ----------
    ds:
        Object to check; anything that is not a :class:`Dataset` is invalid.
    ds_type:
        Optional extra requirements: 'meeg' needs ``a['meeg']`` with the sample field,
        samples type and samples label; 'fmri' needs ``a['vol']`` with a 4x4 ``mat``
        and a ``dim`` equal to the feature dimension sizes.
    raise_:
        If True, raise :class:`InvalidDatasetError` describing the first violated
        invariant; if False, return False instead.

    Returns
    -------
    bool
        True if all checks pass.
    """
    if ds_type is not None and ds_type not in _DS_TYPES:
        raise ValueError(f"Unsupported dataset type '{ds_type}', supported are: {', '.join(_DS_TYPES)}")

    problem = _first_problem(ds, ds_type)
    if problem is None:
        return True
    if raise_:
        raise InvalidDatasetError(problem)
    return False


def _first_problem(ds: Any, ds_type: Optional[str]) -> Optional[str]:
    if not isinstance(ds, Dataset):
        return f"Expected a Dataset, got {type(ds).__name__}"

    samples = ds.samples
    if not isinstance(samples, np.ndarray):
        return f".samples must be a numpy array, got {type(samples).__name__}"
    if samples.ndim != 2:
        return f".samples must be 2-D, found {samples.ndim} dimensions"
    if samples.dtype.kind not in "biufc":
        return f".samples must be numeric or boolean, found dtype {samples.dtype}"

    nsamples, nfeatures = samples.shape

    for label, values in ds.sa.items():
        n = np.shape(values)[0] if np.ndim(values) else 0
        if n != nsamples:
            return f"sample attribute '{label}' has {n} values, expected {nsamples} (one per sample)"

    for label, values in ds.fa.items():
        if np.ndim(values) != 1 or len(values) != nfeatures:
            return f"feature attribute '{label}' has shape {np.shape(values)}, expected ({nfeatures},)"

    problem = _check_fdim(ds)
    if problem is not None:
        return problem

    if ds_type == "meeg":
        meeg = ds.a.get("meeg")
        if not isinstance(meeg, dict):
            return "MEEG dataset requires dataset attribute 'meeg'"
        for key in _MEEG_KEYS:
            if key not in meeg:
                return f"MEEG dataset attribute 'meeg' lacks '{key}'"
        if ds.fdim is None:
            return "MEEG dataset requires feature dimensions"

    if ds_type == "fmri":
        vol = ds.a.get("vol")
        if not isinstance(vol, dict) or "mat" not in vol or "dim" not in vol:
            return "fMRI dataset requires dataset attribute 'vol' with 'mat' and 'dim'"
        if np.shape(vol["mat"]) != (4, 4):
            return f"vol['mat'] must be 4x4, found {np.shape(vol['mat'])}"
        if ds.fdim is None:
            return "fMRI dataset requires feature dimensions"
        dim = tuple(int(d) for d in np.ravel(vol["dim"]))
        if dim != ds.fdim.shape:
            return f"vol['dim'] {dim} differs from feature dimension sizes {ds.fdim.shape}"

    return None


def _check_fdim(ds: Dataset) -> Optional[str]:
    fdim = ds.fdim
    if fdim is None:
        return None

    if len(set(fdim.labels)) != len(fdim.labels):
        return f"duplicate feature dimension labels: {list(fdim.labels)}"

    coords = []
    for label, values in fdim:
        if label not in ds.fa:
            return f"feature dimension '{label}' has no feature attribute"
        idx = np.asarray(ds.fa[label])
        if idx.dtype.kind not in "iu":
            return f"feature attribute '{label}' must hold integer indices, found dtype {idx.dtype}"
        if idx.size and (int(idx.min()) < 0 or int(idx.max()) >= values.size):
            return (
                f"feature attribute '{label}' has indices outside [0, {values.size}) "
                f"(range {int(idx.min())}..{int(idx.max())})"
            )
        coords.append(idx.astype(np.int64, copy=False))

    if coords and ds.nfeatures > 1:
        linear = np.ravel_multi_index(tuple(coords), fdim.shape, order="F")
        uniq, counts = np.unique(linear, return_counts=True)
        if uniq.size != linear.size:
            first = int(np.flatnonzero(np.isin(linear, uniq[counts > 1]))[0])
            return f"feature {first} shares its coordinates with another feature"

    return None
