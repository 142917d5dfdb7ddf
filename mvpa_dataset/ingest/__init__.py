"""Ingest package - format detection and readers for MEEG recordings.

This package handles:
- Dispatching an input (file path or in-memory structure) to a reader
- Reading FieldTrip timelock / time-frequency structures (.mat or mapping)
- Reading EEGLAB epoched data exported as text (*.txt)
- Inferring the sensor layout from channel names when it is not recorded

Key entry points:
- meeg_dataset: load any supported input as a validated Dataset
- FormatRegistry / default_registry: signature -> reader dispatch table
- FieldTripReader, EeglabTxtReader: the format readers

Design principle:
- Readers produce datasets through ``flatten`` only
- Errors abort the load; diagnostics go to ``Dataset.warnings``
"""

from .fieldtrip import BuiltinFieldTrip, detect_senstype_from_labels, resolve_senstype
from .formats import FormatAdapter, FormatRegistry, default_registry, endswith, is_ft_struct
from .loader import meeg_dataset
from .readers_eeglab import EeglabReaderConfig, EeglabTxtReader, trial_template
from .readers_fieldtrip import FieldTripReader, FieldTripReaderConfig, load_ft_mat

__all__ = [
    "BuiltinFieldTrip",
    "detect_senstype_from_labels",
    "resolve_senstype",
    "FormatAdapter",
    "FormatRegistry",
    "default_registry",
    "endswith",
    "is_ft_struct",
    "meeg_dataset",
    "EeglabReaderConfig",
    "EeglabTxtReader",
    "trial_template",
    "FieldTripReader",
    "FieldTripReaderConfig",
    "load_ft_mat",
]
