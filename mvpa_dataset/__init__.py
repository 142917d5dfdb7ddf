"""MVPA dataset -- canonical samples x features datasets for neuroimaging recordings.

This package provides tools for:
- Representing recordings as a 2-D samples x features matrix with sample attributes,
  feature attributes and dataset attributes (:class:`Dataset`)
- Flattening N-dimensional arrays (sample axis + named feature dimensions) into
  datasets, and unflattening them back
- Reading MEEG data from FieldTrip structures (.mat files or in-memory mappings)
  and EEGLAB text exports, with format detection by input signature
- Mapping MEEG datasets back to FieldTrip-like structures
- Validating dataset invariants
- Generating synthetic datasets for tests and examples

Key principles:
- Exact round trip: flatten followed by unflatten reproduces the input array
- No partial results: a failed load raises and returns nothing
- Feature attributes are 0-based indices into the feature dimension values

Main subpackages:
- models: Dataset and FeatureDims
- mapping: flatten, unflatten, map2meeg
- ingest: format registry, readers and the meeg_dataset entry point
- validation: check_dataset
"""

from .errors import MvpaDatasetError
from .ingest.loader import meeg_dataset
from .mapping import flatten, map2meeg, unflatten
from .models import Dataset, FeatureDims
from .synthetic import synthetic_dataset
from .validation import check_dataset

__all__ = [
    "MvpaDatasetError",
    "meeg_dataset",
    "flatten",
    "unflatten",
    "map2meeg",
    "Dataset",
    "FeatureDims",
    "synthetic_dataset",
    "check_dataset",
]
