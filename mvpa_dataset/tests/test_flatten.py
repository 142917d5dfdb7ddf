"""Tests for flatten / unflatten.

Covers:
- feature layout (first feature dimension fastest) and 0-based indices
- round trip for several ranks and dtypes
- unique coordinate tuples per feature
- shape / size validation
- single-sample restriction and partial feature sets in unflatten
"""

from __future__ import annotations

import numpy as np
import pytest

from mvpa_dataset.errors import (
    DimensionSizeMismatchError,
    InvalidDatasetError,
    MultipleSamplesError,
    ShapeMismatchError,
)
from mvpa_dataset.mapping.flatten import feature_indices, flatten, unflatten


def _values(shape):
    return [np.arange(n) * 10 for n in shape]


# -----------------------------------------------------------------------
# Layout
# -----------------------------------------------------------------------


def test_feature_layout_first_dimension_fastest() -> None:
    arr = np.arange(6, dtype=float).reshape(1, 3, 2)
    ds = flatten(arr, ["i", "j"], [[1, 2, 3], [1, 2]])

    np.testing.assert_array_equal(ds.fa["i"], [0, 1, 2, 0, 1, 2])
    np.testing.assert_array_equal(ds.fa["j"], [0, 0, 0, 1, 1, 1])
    # column f holds arr[0, fa_i[f], fa_j[f]]
    np.testing.assert_array_equal(ds.samples[0], arr[0, ds.fa["i"], ds.fa["j"]])
    assert ds.fdim.labels == ("i", "j")
    assert ds.fdim.shape == (3, 2)


def test_flatten_samples_are_rows() -> None:
    rng = np.random.default_rng(1)
    arr = rng.standard_normal((4, 3, 2, 5))
    ds = flatten(arr, ["chan", "freq", "time"], _values((3, 2, 5)))

    assert ds.samples.shape == (4, 30)
    for f in range(ds.nfeatures):
        c, q, t = ds.fa["chan"][f], ds.fa["freq"][f], ds.fa["time"][f]
        np.testing.assert_array_equal(ds.samples[:, f], arr[:, c, q, t])


def test_feature_indices_matches_flatten() -> None:
    ds = flatten(np.zeros((1, 2, 3, 4)), ["a", "b", "c"], _values((2, 3, 4)))
    idx = feature_indices((2, 3, 4))
    for label, expected in zip(("a", "b", "c"), idx):
        np.testing.assert_array_equal(ds.fa[label], expected)


def test_coordinates_unique() -> None:
    ds = flatten(np.zeros((2, 3, 4, 5)), ["x", "y", "z"], _values((3, 4, 5)))
    tuples = set(zip(ds.fa["x"].tolist(), ds.fa["y"].tolist(), ds.fa["z"].tolist()))
    assert len(tuples) == ds.nfeatures == 60


def test_flatten_does_not_modify_or_alias_input() -> None:
    arr = np.arange(12, dtype=float).reshape(2, 3, 2)
    before = arr.copy()
    ds = flatten(arr, ["chan", "time"], _values((3, 2)))
    ds.samples[:] = -1
    np.testing.assert_array_equal(arr, before)


# -----------------------------------------------------------------------
# Round trip
# -----------------------------------------------------------------------


@pytest.mark.parametrize("shape", [(4,), (3, 2), (2, 3, 4), (2, 1, 3, 2)])
def test_round_trip_float(shape) -> None:
    rng = np.random.default_rng(0)
    arr = rng.standard_normal((1,) + shape)
    labels = [f"d{k}" for k in range(len(shape))]
    values = _values(shape)

    out, out_labels, out_values = unflatten(flatten(arr, labels, values))

    assert out.shape == arr.shape
    np.testing.assert_array_equal(out, arr)
    assert out_labels == tuple(labels)
    for got, expected in zip(out_values, values):
        np.testing.assert_array_equal(got, expected)


def test_round_trip_integer_and_bool() -> None:
    arr_i = np.arange(24, dtype=np.int32).reshape(1, 2, 3, 4)
    out_i, _, _ = unflatten(flatten(arr_i, ["a", "b", "c"], _values((2, 3, 4))))
    assert out_i.dtype == np.int32
    assert np.array_equal(out_i, arr_i)

    arr_b = (np.arange(6) % 2 == 0).reshape(1, 3, 2)
    out_b, _, _ = unflatten(flatten(arr_b, ["a", "b"], _values((3, 2))))
    assert out_b.dtype == bool
    assert np.array_equal(out_b, arr_b)


def test_round_trip_string_dimension_values() -> None:
    arr = np.arange(6, dtype=float).reshape(1, 3, 2)
    chans = ["MEG0111", "MEG0112", "MEG0113"]
    _, _, values = unflatten(flatten(arr, ["chan", "time"], [chans, [0.0, 0.1]]))
    assert values[0].tolist() == chans


# -----------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------


def test_flatten_label_count_mismatch() -> None:
    with pytest.raises(ShapeMismatchError):
        flatten(np.zeros((1, 3, 2)), ["chan"], [np.arange(3)])


def test_flatten_value_list_count_mismatch() -> None:
    with pytest.raises(ShapeMismatchError):
        flatten(np.zeros((1, 3, 2)), ["chan", "time"], [np.arange(3)])


def test_flatten_dimension_size_mismatch() -> None:
    with pytest.raises(DimensionSizeMismatchError, match="time"):
        flatten(np.zeros((1, 3, 2)), ["chan", "time"], [np.arange(3), np.arange(5)])


def test_unflatten_multiple_samples() -> None:
    ds = flatten(np.zeros((2, 3)), ["chan"], [np.arange(3)])
    with pytest.raises(MultipleSamplesError):
        unflatten(ds)


def test_unflatten_feature_subset_zero_filled() -> None:
    arr = np.arange(1, 7, dtype=float).reshape(1, 3, 2)
    ds = flatten(arr, ["i", "j"], _values((3, 2)))

    keep = np.array([5, 0, 3])  # permuted subset
    ds.samples = ds.samples[:, keep]
    ds.fa = {k: v[keep] for k, v in ds.fa.items()}

    out, _, _ = unflatten(ds)
    expected = np.zeros_like(arr)
    for f in keep:
        i, j = np.unravel_index(f, (3, 2), order="F")
        expected[0, i, j] = arr[0, i, j]
    np.testing.assert_array_equal(out, expected)


def test_unflatten_index_out_of_range() -> None:
    ds = flatten(np.zeros((1, 3)), ["chan"], [np.arange(3)])
    ds.fa["chan"] = np.array([0, 1, 3])
    with pytest.raises(InvalidDatasetError):
        unflatten(ds)


def test_flatten_repeated_label() -> None:
    with pytest.raises(ShapeMismatchError, match="unique"):
        flatten(np.zeros((1, 2, 2)), ["chan", "chan"], [["a", "b"], ["a", "b"]])
