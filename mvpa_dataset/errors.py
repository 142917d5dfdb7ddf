"""Error taxonomy for dataset construction, validation and reconstitution.

Every error derives from :class:`MvpaDatasetError` and from the closest
builtin exception, so callers that already catch ``ValueError`` (or
``ImportError`` for missing dependencies) keep working.

Errors are raised where the problem is detected and are never downgraded to
warnings: a failed load returns no dataset at all.
"""

from __future__ import annotations


class MvpaDatasetError(Exception):
    """Base class for all errors raised by this package."""


# ---------------------------------------------------------------------------
# Flatten / unflatten
# ---------------------------------------------------------------------------


class ShapeMismatchError(MvpaDatasetError, ValueError):
    """Array rank, label count and value-list count disagree."""


class DimensionSizeMismatchError(MvpaDatasetError, ValueError):
    """An axis length differs from the number of values of its dimension."""


class MultipleSamplesError(MvpaDatasetError, ValueError):
    """Unflatten was asked to reconstruct more than one sample."""


# ---------------------------------------------------------------------------
# Format dispatch
# ---------------------------------------------------------------------------


class UnknownFormatError(MvpaDatasetError, ValueError):
    """No registered format adapter matches the input."""


class MissingDependencyError(MvpaDatasetError, ImportError):
    """An external dependency required by a format adapter is absent."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"Missing external dependency: '{name}'", name=name)


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


class UnsupportedDataTypeError(MvpaDatasetError, ValueError):
    """Structured recording of a data type that cannot be flattened."""


class NoSampleFieldError(MvpaDatasetError, ValueError):
    """None of the sample fields expected for the data type is present."""


class UnexpectedDimensionError(MvpaDatasetError, ValueError):
    """An axis in the dimension order descriptor is not a known feature dimension."""

    def __init__(self, dim_label: str, message: str | None = None):
        self.dim_label = dim_label
        super().__init__(message or f"Unexpected dimension '{dim_label}'")


class RankMismatchError(MvpaDatasetError, ValueError):
    """Array feature rank differs from the number of described feature axes."""


class IncompleteReadError(MvpaDatasetError, ValueError):
    """Tabular input could not be parsed up to the end of the data."""


class NonContiguousDataError(MvpaDatasetError, ValueError):
    """Timestamps of a tabular export do not repeat as whole trials."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class InvalidDatasetError(MvpaDatasetError, ValueError):
    """A dataset violates a structural invariant."""
