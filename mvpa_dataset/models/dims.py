from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Sequence, Tuple

import numpy as np


def _as_values(values: Any) -> np.ndarray:
    """Return dimension values as a 1-D array (channel labels stay strings)."""
    arr = np.asarray(values)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    return arr.ravel()


@dataclass(frozen=True, eq=False)
class FeatureDims:
    """
    Ordered feature dimensions of a dataset: one (label, values) pair per axis.

    labels: short identifiers such as 'chan', 'freq', 'time' or 'i', 'j', 'k'.
    values: 1-D arrays with the distinct values taken along each axis, in the order
            used to build the feature indices in ``Dataset.fa``.

    The order is fixed at construction and is the order consumed by unflatten.
    """
    labels: Tuple[str, ...]
    values: Tuple[np.ndarray, ...]

    @classmethod
    def from_lists(cls, labels: Sequence[str], values: Sequence[Any]) -> FeatureDims:
        if len(labels) != len(values):
            raise ValueError(f"Got {len(labels)} labels but {len(values)} value lists")
        return cls(
            labels=tuple(str(lab) for lab in labels),
            values=tuple(_as_values(v) for v in values),
        )

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(v.size) for v in self.values)

    @property
    def nfeatures(self) -> int:
        return int(np.prod(self.shape, dtype=np.int64))

    def __len__(self) -> int:
        return len(self.labels)

    def __iter__(self) -> Iterator[Tuple[str, np.ndarray]]:
        return iter(zip(self.labels, self.values))

    def __contains__(self, label: object) -> bool:
        return label in self.labels

    def index(self, label: str) -> int:
        try:
            return self.labels.index(label)
        except ValueError:
            raise KeyError(f"No feature dimension '{label}' (have {list(self.labels)})") from None

    def values_for(self, label: str) -> np.ndarray:
        return self.values[self.index(label)]

    def to_dict(self) -> Dict[str, List[Any]]:
        """Return a JSON-friendly dict."""
        return {
            "labels": list(self.labels),
            "values": [v.tolist() for v in self.values],
        }
