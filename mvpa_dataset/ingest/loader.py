from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from mvpa_dataset.externals import check_external
from mvpa_dataset.ingest.formats import FormatRegistry, default_registry
from mvpa_dataset.models.dataset import Dataset
from mvpa_dataset.validation.check import check_dataset

logger = logging.getLogger(__name__)


def meeg_dataset(
    source: str | Path | Mapping[str, Any] | Dataset,
    *,
    targets: Any = None,
    chunks: Any = None,
    registry: Optional[FormatRegistry] = None,
    fieldtrip: Any = None,
) -> Dataset:
    """Load MEEG data as a samples x features dataset.

    Parameters
    ----------
    source:
        Path to a FieldTrip .mat file or an EEGLAB .txt export, an in-memory
        FieldTrip-like mapping, or a dataset. A dataset is validated and
        returned unchanged; an invalid one raises :class:`InvalidDatasetError`.
    targets, chunks:
        Optional sample attributes. A single value is used for every sample;
        otherwise one value per sample is required. Ignored when ``source``
        is already a dataset.
    registry:
        Format registry to dispatch on (default: :func:`default_registry`).
    fieldtrip:
        FieldTrip capability (``datatype(ft)`` / ``senstype(ft)``) used by the
        default registry; ignored when ``registry`` is given.

    Returns
    -------
    Dataset
        ``a['meeg']`` describes the sample field, samples type and label;
        ``a['format']`` names the adapter that read the input.
    """
    if isinstance(source, Dataset):
        check_dataset(source, "meeg")
        if targets is not None or chunks is not None:
            logger.debug("Input is already a dataset; targets and chunks are ignored")
        return source

    if registry is None:
        registry = default_registry(fieldtrip=fieldtrip)

    adapter = registry.match(source)
    logger.debug("Reading %s with format '%s'", _describe(source), adapter.name)

    check_external(adapter.externals)

    ds = adapter.reader(source)
    ds.a["format"] = adapter.name

    if targets is not None:
        ds.set_sa("targets", targets)
    if chunks is not None:
        ds.set_sa("chunks", chunks)

    check_dataset(ds, "meeg")

    for msg in ds.warnings:
        logger.debug("%s: %s", adapter.name, msg)
    logger.info("Loaded %s: %d samples x %d features", adapter.name, ds.nsamples, ds.nfeatures)
    return ds


def _describe(source: Any) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return type(source).__name__
