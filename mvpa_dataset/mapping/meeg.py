from __future__ import annotations

from typing import Any, Dict

import numpy as np

from mvpa_dataset.errors import InvalidDatasetError
from mvpa_dataset.mapping.flatten import unflatten
from mvpa_dataset.models.dataset import Dataset


# feature dimension label -> field holding its coordinates in a FieldTrip struct
FT_COORDINATE_FIELDS: Dict[str, str] = {"chan": "label"}

# per-sample FieldTrip fields carried through sample attributes
FT_SAMPLE_FIELDS = ("trialinfo", "cumtapcnt")


def ft_coordinate_field(dim_label: str) -> str:
    """Name of the FieldTrip field holding the coordinates of ``dim_label``."""
    return FT_COORDINATE_FIELDS.get(dim_label, dim_label)


def map2meeg(ds: Dataset) -> Dict[str, Any]:
    """Map an MEEG dataset back to a FieldTrip-like dict.

    Each sample is unflattened on its own and the results are stacked along a
    leading samples axis. The output always keeps that axis, also for a single
    sample, so ``dimord`` starts with the samples label (usually 'rpt').

    The dict holds:
      - ``dimord``: samples label and feature labels joined by '_'
      - the sample field from ``ds.a['meeg']`` ('trial', 'powspctrm', ...)
      - one coordinate field per feature dimension ('label' for channels)
      - ``trialinfo`` / ``cumtapcnt`` if present as sample attributes

    Writing the result to a file is left to the caller.
    """
    meeg = ds.a.get("meeg")
    if not isinstance(meeg, dict) or ds.fdim is None:
        raise InvalidDatasetError("Dataset has no MEEG attributes or feature dimensions")

    samples_field = str(meeg.get("samples_field", "trial"))
    samples_label = str(meeg.get("samples_label", "rpt"))

    blocks = []
    for k in range(ds.nsamples):
        arr, _, _ = unflatten(ds.select_samples(slice(k, k + 1)))
        blocks.append(arr)
    if blocks:
        data = np.concatenate(blocks, axis=0)
    else:
        data = np.zeros((0,) + ds.fdim.shape, dtype=ds.samples.dtype)

    ft: Dict[str, Any] = {
        "dimord": "_".join((samples_label,) + ds.fdim.labels),
        samples_field: data,
    }
    for label, values in ds.fdim:
        field_name = ft_coordinate_field(label)
        if values.dtype.kind in "US":
            ft[field_name] = [str(v) for v in values]
        else:
            ft[field_name] = values.copy()

    for name in FT_SAMPLE_FIELDS:
        if name in ds.sa:
            ft[name] = np.asarray(ds.sa[name]).copy()

    senstype = meeg.get("senstype")
    if senstype:
        ft["senstype"] = senstype

    return ft
