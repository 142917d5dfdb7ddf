"""Dataset validation.

:func:`check_dataset` re-checks the structural invariants of a dataset. It is used
to recognise input that is already canonical and as the last step of every load,
so a dataset that violates an invariant is never returned.
"""

from .check import check_dataset

__all__ = ["check_dataset"]
