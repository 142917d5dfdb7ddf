from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from mvpa_dataset.errors import ShapeMismatchError
from mvpa_dataset.models.dims import FeatureDims


@dataclass(eq=False)
class Dataset:
    """
    Canonical samples x features representation of a recording.

    Attributes
    ----------
    samples:
        2-D array, shape ``(nsamples, nfeatures)``, whatever the rank of the source array.
    sa:
        Sample attributes. Each value is a 1-D array of length ``nsamples``, aligned
        with the rows of ``samples`` (e.g. 'targets', 'chunks', 'rpt').
    fa:
        Feature attributes. For every label in ``fdim`` a 1-D integer array of length
        ``nfeatures`` holding 0-based indices into ``fdim.values_for(label)``.
    fdim:
        Ordered feature dimensions (labels and their value lists).
    a:
        Free-form dataset attributes ('meeg', 'vol', 'format', ...).
    warnings:
        Diagnostics collected while the dataset was built. Never used for errors.

    Notes
    -----
    - The dataset is changed only through :meth:`set_sa` / :meth:`set_fa`, which keep
      the length invariants. Use :func:`mvpa_dataset.validation.check_dataset` for a
      full structural check.
    """
    samples: np.ndarray
    sa: Dict[str, np.ndarray] = field(default_factory=dict)
    fa: Dict[str, np.ndarray] = field(default_factory=dict)
    fdim: Optional[FeatureDims] = None
    a: Dict[str, Any] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()

    @property
    def nsamples(self) -> int:
        return int(self.samples.shape[0])

    @property
    def nfeatures(self) -> int:
        return int(self.samples.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.nsamples, self.nfeatures

    # ------------------------------------------------------------------
    # Attribute assignment
    # ------------------------------------------------------------------

    def set_sa(self, label: str, values: Any) -> None:
        """Set a sample attribute; a scalar is broadcast to every sample."""
        self.sa[label] = _broadcast(values, self.nsamples, f"sample attribute '{label}'")

    def set_fa(self, label: str, values: Any) -> None:
        """Set a feature attribute; a scalar is broadcast to every feature."""
        self.fa[label] = _broadcast(values, self.nfeatures, f"feature attribute '{label}'")

    def add_warning(self, message: str) -> None:
        self.warnings = self.warnings + (message,)

    # ------------------------------------------------------------------
    # Views / copies
    # ------------------------------------------------------------------

    def copy(self, deep: bool = True) -> Dataset:
        if not deep:
            return Dataset(
                samples=self.samples,
                sa=dict(self.sa),
                fa=dict(self.fa),
                fdim=self.fdim,
                a=dict(self.a),
                warnings=self.warnings,
            )
        return Dataset(
            samples=self.samples.copy(),
            sa={k: v.copy() for k, v in self.sa.items()},
            fa={k: v.copy() for k, v in self.fa.items()},
            fdim=self.fdim,
            a=copy.deepcopy(self.a),
            warnings=self.warnings,
        )

    def select_samples(self, index: Any) -> Dataset:
        """Return a new dataset with the rows selected by ``index`` (int, slice, mask or indices)."""
        idx = np.arange(self.nsamples)[index]
        idx = np.atleast_1d(idx)
        return Dataset(
            samples=self.samples[idx, :],
            sa={k: v[idx] for k, v in self.sa.items()},
            fa={k: v.copy() for k, v in self.fa.items()},
            fdim=self.fdim,
            a=copy.deepcopy(self.a),
            warnings=self.warnings,
        )

    def sa_table(self) -> pd.DataFrame:
        """Sample attributes as a DataFrame (one row per sample).

        Multi-column attributes (e.g. FieldTrip ``trialinfo``) are expanded to
        ``<label>_<k>`` columns.
        """
        columns: Dict[str, np.ndarray] = {}
        for label, values in self.sa.items():
            arr = np.asarray(values)
            if arr.ndim == 1:
                columns[label] = arr
            else:
                flat = arr.reshape(arr.shape[0], -1)
                for k in range(flat.shape[1]):
                    columns[f"{label}_{k}"] = flat[:, k]
        return pd.DataFrame(columns, index=pd.RangeIndex(self.nsamples, name="sample"))


def _broadcast(values: Any, n: int, what: str) -> np.ndarray:
    arr = np.asarray(values)
    # a single value (scalar or 1-element vector) applies to every row
    if arr.ndim <= 1 and arr.size == 1:
        return np.repeat(arr.reshape(1), n)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr[:, 0]
    if arr.shape[0] != n:
        raise ShapeMismatchError(f"{what}: expected {n} values, got {arr.shape[0]}")
    return arr
