from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from mvpa_dataset.errors import (
    NoSampleFieldError,
    RankMismatchError,
    UnexpectedDimensionError,
    UnknownFormatError,
    UnsupportedDataTypeError,
)
from mvpa_dataset.externals import check_external
from mvpa_dataset.ingest.fieldtrip import UNKNOWN, BuiltinFieldTrip, resolve_senstype
from mvpa_dataset.mapping.flatten import flatten
from mvpa_dataset.mapping.meeg import FT_SAMPLE_FIELDS, ft_coordinate_field
from mvpa_dataset.models.dataset import Dataset

logger = logging.getLogger(__name__)

# label of the synthesized sample axis when the data hold a single sample
SINGLE_SAMPLE_LABEL = "rpt"


@dataclass(frozen=True)
class SampleLayout:
    """
    Where a FieldTrip data type keeps its samples.

    sample_fields: candidate fields holding the data, in priority order.
    dim_labels: feature dimensions the data type may have.
    stored_field: sample field name recorded in the dataset; None keeps the field found.
    """
    sample_fields: Tuple[str, ...]
    dim_labels: Tuple[str, ...]
    stored_field: Optional[str] = None


SAMPLE_LAYOUTS: Dict[str, SampleLayout] = {
    "freq": SampleLayout(("fourierspctrm", "powspctrm"), ("chan", "freq", "time")),
    # single-trial data before averages; single-sample data is stored as 'trial'
    "timelock": SampleLayout(("trial", "avg"), ("chan", "time"), stored_field="trial"),
}


@dataclass(frozen=True)
class FieldTripReaderConfig:
    """
    Reader configuration for FieldTrip timelock / time-frequency structures.

    senstype_min_fraction:
      Fraction of channel labels that must follow a layout's naming convention
      before that layout is assumed (used only when the lookup reports 'unknown').
    sample_fields:
      Per-sample fields copied into sample attributes when their row count equals
      the number of samples.
    """
    senstype_min_fraction: float = 0.4
    sample_fields: Tuple[str, ...] = FT_SAMPLE_FIELDS


# ---------------------------------------------------------------------------
# .mat loading
# ---------------------------------------------------------------------------


def _mat_to_python(obj: Any) -> Any:
    """Convert scipy.io.loadmat output (struct_as_record=False) into dicts, lists and arrays."""
    from scipy.io.matlab import mat_struct

    if isinstance(obj, mat_struct):
        return {name: _mat_to_python(getattr(obj, name)) for name in obj._fieldnames}
    if isinstance(obj, np.ndarray):
        if obj.dtype == object:
            items = [_mat_to_python(x) for x in obj.ravel(order="F")]
            if obj.size == 1 and isinstance(items[0], dict):
                return items[0]
            return items
        if obj.dtype.kind == "U":
            if obj.size == 1:
                return str(obj.ravel()[0])
            return [str(x) for x in obj.ravel(order="F")]
    return obj


def is_mat_v73(path: str | Path) -> bool:
    """True for MATLAB v7.3 files (HDF5 container, optionally behind the 512-byte MAT header)."""
    with open(path, "rb") as fh:
        head = fh.read(128)
    return head.startswith(b"\x89HDF") or head.startswith(b"MATLAB 7.3")


def _matlab_class(obj: Any) -> str:
    cls = obj.attrs.get("MATLAB_class", b"")
    if isinstance(cls, bytes):
        cls = cls.decode("ascii", errors="replace")
    return str(cls)


def _hdf_to_python(obj: Any, f: Any) -> Any:
    """Convert a v7.3 HDF5 node into dicts, lists, strings and arrays in MATLAB shape.

    HDF5 stores MATLAB arrays with reversed axes; cells hold object references into
    the file and chars are uint16 code points.
    """
    import h5py

    if isinstance(obj, h5py.Group):
        return {name: _hdf_to_python(obj[name], f) for name in obj.keys()}

    cls = _matlab_class(obj)
    if obj.attrs.get("MATLAB_empty", 0):
        return "" if cls == "char" else np.zeros((0,))

    data = np.asarray(obj[()])
    if cls == "cell":
        return [_hdf_to_python(f[ref], f) for ref in data.T.ravel(order="F")]

    arr = data.T
    if cls == "char":
        rows = ["".join(chr(int(c)) for c in row) for row in np.atleast_2d(arr)]
        return rows[0] if len(rows) == 1 else rows
    if arr.dtype.names and {"real", "imag"} <= set(arr.dtype.names):
        arr = arr["real"] + 1j * arr["imag"]
    if cls == "logical":
        arr = arr.astype(bool)
    return arr


def _load_mat_v73(path: Path) -> Dict[str, Any]:
    import h5py

    with h5py.File(str(path), "r") as f:
        # '#refs#' and '#subsystem#' hold cell contents, not variables
        return {name: _hdf_to_python(f[name], f) for name in f.keys() if not name.startswith("#")}


def _load_mat_v5(path: Path) -> Dict[str, Any]:
    from scipy.io import loadmat

    mat = loadmat(str(path), squeeze_me=False, struct_as_record=False, chars_as_strings=True)
    return {name: _mat_to_python(value) for name, value in mat.items() if not name.startswith("__")}


def load_ft_mat(path: str | Path) -> Dict[str, Any]:
    """Read a FieldTrip structure from a MATLAB .mat file.

    The file should hold a single struct variable; with several variables the first
    one carrying a 'dimord' field is used. Array shapes are preserved (no squeezing).
    Files saved with ``-v7.3`` are read with h5py, older versions with scipy.io.
    """
    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(str(p))

    if is_mat_v73(p):
        check_external("h5py")
        logger.debug("%s is a MATLAB v7.3 (HDF5) file", p.name)
        variables = _load_mat_v73(p)
    else:
        check_external("scipy")
        variables = _load_mat_v5(p)
    names = list(variables)

    candidates = [(name, value) for name, value in variables.items() if isinstance(value, dict)]

    if len(names) == 1 and candidates:
        return candidates[0][1]
    for name, value in candidates:
        if "dimord" in value:
            logger.debug("Using variable '%s' from %s", name, p.name)
            return value
    raise UnknownFormatError(f"No FieldTrip structure found in {p.name} (variables: {names})")


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class FieldTripReader:
    """
    Reader for FieldTrip timelock and time-frequency data (.mat file or in-memory mapping).

    The data array is described by ``dimord``, e.g. 'rpt_chan_time' or 'chan_freq_time'.
    If the first entry of ``dimord`` is itself a feature dimension of the data type, the
    data hold one sample (an average) and a leading sample axis of size 1 is inserted.
    Otherwise the first axis is the sample axis and its indices become a sample attribute.
    """

    def __init__(
        self,
        config: Optional[FieldTripReaderConfig] = None,
        fieldtrip: Any = None,
    ):
        self.config = config or FieldTripReaderConfig()
        self.fieldtrip = fieldtrip if fieldtrip is not None else BuiltinFieldTrip()

    def read(self, source: str | Path | Mapping[str, Any]) -> Dataset:
        if isinstance(source, Mapping):
            return self.convert(source)
        return self.convert(load_ft_mat(source))

    def convert(self, ft: Mapping[str, Any]) -> Dataset:
        cfg = self.config
        warnings: List[str] = []

        datatype = self.fieldtrip.datatype(ft)
        layout = SAMPLE_LAYOUTS.get(datatype)
        if layout is None:
            raise UnsupportedDataTypeError(
                f"Unsupported FieldTrip datatype '{datatype}', supported are: "
                f"{', '.join(SAMPLE_LAYOUTS)}"
            )

        samples_field = None
        for name in layout.sample_fields:
            if name in ft:
                samples_field = name
                break
        if samples_field is None:
            raise NoSampleFieldError(
                f"No sample data for datatype '{datatype}': expected one of "
                f"{list(layout.sample_fields)}"
            )
        samples_arr = np.asarray(ft[samples_field])

        if "dimord" not in ft:
            raise NoSampleFieldError("FieldTrip structure has no 'dimord' field")
        dimord = str(ft["dimord"])
        dim_labels = dimord.split("_")

        sa: Dict[str, np.ndarray] = {}
        insert_sample_dim = dim_labels[0] in layout.dim_labels
        if insert_sample_dim:
            nsamples = 1
            samples_arr = samples_arr.reshape((1,) + samples_arr.shape)
            samples_label = SINGLE_SAMPLE_LABEL
            feature_labels = dim_labels
            warnings.append(f"dimord '{dimord}' has no sample axis: inserted singleton '{samples_label}'")
            logger.debug("Inserted singleton sample axis '%s' for dimord '%s'", samples_label, dimord)
        else:
            nsamples = int(samples_arr.shape[0]) if samples_arr.ndim else 0
            samples_label = dim_labels[0]
            feature_labels = dim_labels[1:]
            sa[samples_label] = np.arange(nsamples)

        seen = set()
        for label in feature_labels:
            if label not in layout.dim_labels:
                raise UnexpectedDimensionError(
                    label,
                    f"Unexpected dimension '{label}' in dimord '{dimord}' "
                    f"(expected a subset of {list(layout.dim_labels)})",
                )
            if label in seen:
                raise UnexpectedDimensionError(label, f"Dimension '{label}' repeated in dimord '{dimord}'")
            seen.add(label)

        nfeature_dim = samples_arr.ndim - 1
        if nfeature_dim != len(feature_labels):
            raise RankMismatchError(
                f"Found {nfeature_dim} feature dimensions, expected {len(feature_labels)} "
                f"from dimord '{dimord}'"
            )

        dim_values = []
        for label in feature_labels:
            field_name = ft_coordinate_field(label)
            if field_name not in ft:
                raise KeyError(f"Missing field '{field_name}' with the values of dimension '{label}'")
            dim_values.append(np.asarray(ft[field_name]).ravel())

        ds = flatten(samples_arr, feature_labels, dim_values)

        meeg: Dict[str, Any] = {
            "samples_field": layout.stored_field or samples_field,
            "samples_type": datatype,
            "samples_label": samples_label,
        }
        senstype, sens_warnings = resolve_senstype(
            ft, self.fieldtrip, min_fraction=cfg.senstype_min_fraction
        )
        warnings.extend(sens_warnings)
        logger.debug("senstype: %s", senstype)
        if senstype != UNKNOWN:
            meeg["senstype"] = senstype
        ds.a["meeg"] = meeg

        for label, values in sa.items():
            ds.set_sa(label, values)

        for name in cfg.sample_fields:
            if name not in ft:
                continue
            values = np.asarray(ft[name])
            nrows = values.shape[0] if values.ndim else 1
            if nrows != nsamples:
                msg = f"ignored '{name}': {nrows} rows for {nsamples} samples"
                logger.warning(msg)
                warnings.append(msg)
                continue
            ds.set_sa(name, values)

        logger.debug(
            "FieldTrip %s data: %d samples x %d features (%s)",
            datatype, ds.nsamples, ds.nfeatures, dimord,
        )
        for msg in warnings:
            ds.add_warning(msg)
        return ds
