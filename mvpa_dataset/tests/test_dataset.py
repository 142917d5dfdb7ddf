from __future__ import annotations

import numpy as np
import pytest

from mvpa_dataset.errors import ShapeMismatchError
from mvpa_dataset.mapping.flatten import flatten
from mvpa_dataset.models.dims import FeatureDims


def _ds(nsamples: int = 3):
    arr = np.arange(nsamples * 4, dtype=float).reshape(nsamples, 2, 2)
    return flatten(arr, ["chan", "time"], [["A", "B"], [0.0, 0.5]])


def test_set_sa_broadcasts_scalar() -> None:
    ds = _ds(4)
    ds.set_sa("targets", 7)
    np.testing.assert_array_equal(ds.sa["targets"], [7, 7, 7, 7])


def test_set_sa_vector() -> None:
    ds = _ds(3)
    ds.set_sa("chunks", [1, 2, 3])
    np.testing.assert_array_equal(ds.sa["chunks"], [1, 2, 3])


def test_set_sa_column_vector_is_flattened() -> None:
    ds = _ds(3)
    ds.set_sa("trialinfo", np.array([[1], [2], [3]]))
    assert ds.sa["trialinfo"].shape == (3,)


def test_set_sa_wrong_length_raises() -> None:
    ds = _ds(3)
    with pytest.raises(ShapeMismatchError):
        ds.set_sa("targets", [1, 2])
    assert "targets" not in ds.sa


def test_set_fa_wrong_length_raises() -> None:
    ds = _ds(2)
    with pytest.raises(ShapeMismatchError):
        ds.set_fa("roi", [1, 2, 3])


def test_select_samples_and_copy() -> None:
    ds = _ds(3)
    ds.set_sa("targets", [1, 2, 1])

    sub = ds.select_samples(ds.sa["targets"] == 1)
    assert sub.nsamples == 2
    np.testing.assert_array_equal(sub.samples, ds.samples[[0, 2]])
    np.testing.assert_array_equal(sub.sa["targets"], [1, 1])

    cp = ds.copy()
    cp.samples[0, 0] = -99
    cp.sa["targets"][0] = 5
    assert ds.samples[0, 0] != -99
    assert ds.sa["targets"][0] == 1


def test_sa_table() -> None:
    ds = _ds(2)
    ds.set_sa("targets", [1, 2])
    ds.set_sa("trialinfo", np.array([[10, 11], [20, 21]]))

    df = ds.sa_table()
    assert list(df.columns) == ["targets", "trialinfo_0", "trialinfo_1"]
    assert df["trialinfo_1"].tolist() == [11, 21]


def test_feature_dims_lookup() -> None:
    fdim = FeatureDims.from_lists(["chan", "time"], [["A", "B", "C"], [0.0, 0.1]])
    assert len(fdim) == 2
    assert "time" in fdim
    assert fdim.index("time") == 1
    assert fdim.values_for("chan").tolist() == ["A", "B", "C"]
    assert fdim.nfeatures == 6
    assert fdim.to_dict()["labels"] == ["chan", "time"]
    with pytest.raises(KeyError):
        fdim.index("freq")


def test_add_warning() -> None:
    ds = _ds(2)
    ds.add_warning("first")
    ds.add_warning("second")
    assert ds.warnings == ("first", "second")
    assert ds.copy().warnings == ("first", "second")
