"""Synthetic datasets for tests and examples.

``synthetic_dataset()`` builds a small dataset of a given type (fMRI volume,
MEEG timelock or time-frequency, surface) with targets and chunks, and
optionally modality, subject and repetition sample attributes. Samples are
Gaussian noise plus a class-dependent offset on a subset of the features, so
targets are decodable; ``sigma`` controls how far apart the classes are.

Random numbers come from a generator seeded per call; the global numpy random
state is never read or changed, so repeated calls return identical data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from mvpa_dataset.mapping.flatten import flatten
from mvpa_dataset.models.dataset import Dataset
from mvpa_dataset.validation.check import check_dataset


DATASET_TYPES = ("fmri", "meeg", "timelock", "timefreq", "surface")

# nan: use all available values of that dimension
DIM_SIZES: Dict[str, Tuple[float, float, float]] = {
    "tiny": (2, 1, 1),
    "small": (3, 2, 1),
    "normal": (3, 2, 5),
    "big": (np.nan, 7, 5),
    "huge": (np.nan, 17, 19),
}

# option name -> sample attribute name, in Cartesian product order (first fastest)
_SA_COUNTS: Tuple[Tuple[str, str], ...] = (
    ("ntargets", "targets"),
    ("nchunks", "chunks"),
    ("nmodalities", "modality"),
    ("nsubjects", "subject"),
    ("nreps", "rep"),
)


@dataclass(frozen=True)
class SyntheticOptions:
    type: str = "fmri"
    size: str = "small"
    sens: str = "neuromag306_all"
    sigma: float = 3.0
    ntargets: Optional[int] = 2
    nchunks: Optional[int] = 3
    nmodalities: Optional[int] = None
    nsubjects: Optional[int] = None
    nreps: Optional[int] = None
    targets: Any = None
    chunks: Any = None
    target1: int = 1
    seed: int = 0


# ---------------------------------------------------------------------------
# Channel labels
# ---------------------------------------------------------------------------


def neuromag306_channels(chan_type: str = "all") -> List[str]:
    """Channel labels of the Neuromag-306 system.

    chan_type: '+'-separated combination of 'all' (or ''), 'planar', 'axial' and
    'planar_combined'. Planar and combined-planar labels are mutually exclusive.
    """
    # 26 positions x 4 rows, minus positions 8 of rows 3 and 4: 102 locations
    locations = [
        f"{pos:02d}{row}"
        for row in range(1, 5)
        for pos in range(1, 27)
        if not (pos == 8 and row in (3, 4))
    ]

    keep = [False] * 4
    for tp in chan_type.split("+"):
        if tp in ("all", ""):
            keep[0] = keep[1] = keep[2] = True
        elif tp == "planar_combined":
            keep[3] = True
        elif tp == "planar":
            keep[1] = keep[2] = True
        elif tp == "axial":
            keep[0] = True
        else:
            raise ValueError(f"Unsupported channel type {tp}")

    if (keep[1] or keep[2]) and keep[3]:
        raise ValueError("planar and planar_combined channels are mutually exclusive")

    labels = []
    for loc in locations:
        per_loc = (
            f"MEG{loc}1",
            f"MEG{loc}2",
            f"MEG{loc}3",
            f"MEG{loc}2+{loc}3",
        )
        labels.extend(lab for lab, k in zip(per_loc, keep) if k)
    return labels


SENSOR_CATALOGS = {
    "neuromag306": neuromag306_channels,
}


def meeg_channels(sens: str) -> List[str]:
    key, _, chan_type = sens.partition("_")
    if key not in SENSOR_CATALOGS:
        supported = ", ".join(f"{k}*" for k in SENSOR_CATALOGS)
        raise ValueError(f"Unsupported sens type {key}, supported are: {supported}")
    return SENSOR_CATALOGS[key](chan_type)


# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------


def _dim_labels_values(opt: SyntheticOptions) -> Tuple[List[str], List[np.ndarray], Dict[str, Any]]:
    a: Dict[str, Any] = {}
    if opt.type == "fmri":
        mat = np.eye(4)
        mat[:3, :3] *= 10
        a["vol"] = {"mat": mat}
        labels = ["i", "j", "k"]
        values = [np.arange(20), np.arange(20), np.arange(20)]

    elif opt.type in ("meeg", "timelock", "timefreq"):
        chan = np.asarray(meeg_channels(opt.sens))
        time = np.round(np.linspace(-0.2, 1.3, 31), 10)
        if opt.type == "timefreq":
            labels = ["chan", "freq", "time"]
            values = [chan, np.arange(2, 41, 2), time]
            a["meeg"] = {"samples_type": "freq", "samples_field": "powspctrm"}
        else:
            labels = ["chan", "time"]
            values = [chan, time]
            a["meeg"] = {"samples_type": "timelock", "samples_field": "trial"}
        a["meeg"]["samples_label"] = "rpt"

    elif opt.type == "surface":
        labels = ["node_indices"]
        values = [np.arange(4000)]

    else:
        raise ValueError(f"Unsupported type '{opt.type}', supported are: {', '.join(DATASET_TYPES)}")

    return labels, values, a


def _dim_sizes(size: str, values: Sequence[np.ndarray]) -> List[int]:
    if size not in DIM_SIZES:
        raise ValueError(f"Unsupported size {size}. Supported are: {', '.join(DIM_SIZES)}")
    sizes = []
    for n, vals in zip(DIM_SIZES[size], values):
        sizes.append(int(vals.size) if np.isnan(n) else int(n))
    return sizes


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------


def cartesian_product(counts: Sequence[int]) -> np.ndarray:
    """All combinations of 1..n for each count, first column varying fastest."""
    grids = np.meshgrid(*[np.arange(1, n + 1) for n in counts], indexing="ij")
    # first column fastest: Fortran-order ravel
    return np.column_stack([g.ravel(order="F") for g in grids])


def _generate_samples(
    targets: np.ndarray,
    nfeatures: int,
    class_distance: float,
    rng: np.random.Generator,
) -> np.ndarray:
    nsamples = targets.size
    nclasses = np.unique(targets).size

    samples = rng.standard_normal((nsamples, nfeatures))

    # target t (1-based) gets the offset on features f with f % (nclasses+1) == t-1
    period = nclasses + 1
    cols = np.arange(nfeatures) % period
    add_msk = (cols[None, :] + 1 - targets[:, None]) % period == 0
    samples[add_msk] += class_distance
    return samples


def synthetic_dataset(**kwargs: Any) -> Dataset:
    """Generate a synthetic dataset.

    Keyword arguments are the fields of :class:`SyntheticOptions`:

    - type: 'fmri', 'meeg' (same as 'timelock'), 'timelock', 'timefreq' or 'surface'
    - size: 'tiny', 'small', 'normal', 'big' or 'huge' (number of features)
    - sens: sensor layout for MEEG types, 'neuromag306_<chan_type>'
    - sigma: class separation; larger is easier to decode
    - ntargets, nchunks, nmodalities, nsubjects, nreps: number of unique values of
      the corresponding sample attribute; None omits modality/subject/rep
    - targets, chunks: optional scalar overriding that attribute for all samples
    - target1: value of the first target
    - seed: seed of the random generator

    The dataset has ntargets * nchunks * nmodalities * nsubjects * nreps samples.
    """
    opt = SyntheticOptions(**kwargs)

    labels, values, a = _dim_labels_values(opt)
    sizes = _dim_sizes(opt.size, values)
    values = [vals[:n] for vals, n in zip(values, sizes)]

    ds = flatten(np.zeros([1] + sizes), labels, values)
    ds.a.update(a)
    if opt.type == "fmri":
        ds.a["vol"]["dim"] = np.asarray(sizes)

    counts = []
    present = []
    for opt_name, sa_name in _SA_COUNTS:
        n = getattr(opt, opt_name)
        counts.append(max(int(n or 0), 1))
        present.append(n is not None)
    cp = cartesian_product(counts)

    nfeatures = ds.nfeatures
    nelem = np.log(nfeatures * max(int(opt.nreps or 0), 1))
    class_distance = opt.sigma / nelem

    rng = np.random.default_rng(opt.seed)
    samples = _generate_samples(cp[:, 0], nfeatures, class_distance, rng)

    out = Dataset(samples=samples, fa=ds.fa, fdim=ds.fdim, a=ds.a)
    for k, (_, sa_name) in enumerate(_SA_COUNTS):
        if present[k] or sa_name in ("targets", "chunks"):
            out.set_sa(sa_name, cp[:, k])

    for name in ("chunks", "targets"):
        v = getattr(opt, name)
        if v is None:
            continue
        if np.ndim(v) != 0:
            raise ValueError(f"Value for '{name}' must be a scalar")
        out.set_sa(name, v)

    out.sa["targets"] = out.sa["targets"] + opt.target1 - 1

    check_dataset(out)
    return out
