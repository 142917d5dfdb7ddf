"""FieldTrip structure inspection: data type and sensor layout.

The structured reader only needs two answers about a FieldTrip-like mapping:
its data type ('timelock', 'freq', ...) and the sensor layout it was recorded
with. Both come from a *capability* object with ``datatype(ft)`` and
``senstype(ft)`` methods. :class:`BuiltinFieldTrip` answers from the fields of
the mapping alone; another implementation can be injected into the reader.

When the capability reports an 'unknown' layout, :func:`resolve_senstype`
falls back to matching channel names against known naming conventions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple

import numpy as np


UNKNOWN = "unknown"

_SPECTRUM_FIELDS = ("powspctrm", "fourierspctrm", "crsspctrm")
_TIMELOCK_FIELDS = ("avg", "trial")


# ---------------------------------------------------------------------------
# Built-in capability
# ---------------------------------------------------------------------------


class BuiltinFieldTrip:
    """FieldTrip capability based on field presence only (no toolbox required)."""

    def datatype(self, ft: Any) -> str:
        if not isinstance(ft, Mapping):
            return UNKNOWN
        if "freq" in ft and any(f in ft for f in _SPECTRUM_FIELDS):
            return "freq"
        trial = ft.get("trial")
        if isinstance(trial, (list, tuple)) or (
            isinstance(trial, np.ndarray) and trial.dtype == object
        ):
            # one array per trial, possibly of different lengths
            return "raw"
        if "time" in ft and "label" in ft and any(f in ft for f in _TIMELOCK_FIELDS):
            return "timelock"
        return UNKNOWN

    def senstype(self, ft: Any) -> str:
        if not isinstance(ft, Mapping):
            return UNKNOWN
        explicit = ft.get("senstype")
        if isinstance(explicit, str) and explicit:
            return explicit
        for key in ("grad", "elec"):
            sens = ft.get(key)
            if isinstance(sens, Mapping):
                tp = sens.get("type")
                if isinstance(tp, str) and tp:
                    return tp
        return UNKNOWN


# ---------------------------------------------------------------------------
# Channel-name heuristic
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LayoutPattern:
    """Channel naming convention of a sensor layout."""
    senstype: str
    pattern: str


LAYOUT_PATTERNS: Tuple[LayoutPattern, ...] = (
    LayoutPattern("neuromag", r"MEG.\d\d\d"),
    LayoutPattern("ctf", r"^M[LRZ][CFOPT]\d\d"),
    LayoutPattern("yokogawa", r"^AG\d\d\d"),
)


def match_fraction(labels: Sequence[str], pattern: str) -> float:
    """Fraction of ``labels`` in which ``pattern`` is found (nan for no labels)."""
    if len(labels) == 0:
        return float("nan")
    rx = re.compile(pattern)
    hits = sum(1 for lab in labels if rx.search(str(lab)))
    return hits / float(len(labels))


def detect_senstype_from_labels(
    labels: Sequence[str],
    *,
    min_fraction: float = 0.4,
    patterns: Sequence[LayoutPattern] = LAYOUT_PATTERNS,
) -> Tuple[str, List[str]]:
    """Guess a sensor layout from channel names.

    A layout is accepted when more than ``min_fraction`` of the labels follow its
    naming pattern; the first pattern in ``patterns`` order wins.

    Returns
    -------
    senstype : str
        Layout name, or 'unknown'.
    warnings : list of str
        Diagnostic messages.
    """
    warnings: List[str] = []
    for lp in patterns:
        frac = match_fraction(labels, lp.pattern)
        if np.isfinite(frac) and frac > min_fraction:
            warnings.append(
                f"senstype '{lp.senstype}' inferred from channel names "
                f"({frac:.2f} of {len(labels)} labels match {lp.pattern!r})"
            )
            return lp.senstype, warnings
    return UNKNOWN, warnings


def resolve_senstype(
    ft: Mapping[str, Any],
    fieldtrip: Any,
    *,
    min_fraction: float = 0.4,
) -> Tuple[str, List[str]]:
    """Sensor layout of ``ft``: capability lookup first, channel names second."""
    senstype = fieldtrip.senstype(ft)
    if senstype != UNKNOWN:
        return senstype, []
    labels = ft.get("label")
    if labels is None:
        return UNKNOWN, []
    labels = [str(lab) for lab in np.asarray(labels, dtype=object).ravel()]
    return detect_senstype_from_labels(labels, min_fraction=min_fraction)
