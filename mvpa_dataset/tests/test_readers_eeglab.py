"""Tests for the EEGLAB text export reader."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from mvpa_dataset.errors import IncompleteReadError, NonContiguousDataError
from mvpa_dataset.ingest.readers_eeglab import (
    EeglabReaderConfig,
    EeglabTxtReader,
    trial_template,
)


CHANS = ["Fz", "Cz", "Pz"]
TIMES_MS = [-100, 0, 100, 200]


def _value(trial: int, chan: int, time: int) -> float:
    return 100.0 * trial + 10.0 * chan + time


def _write_export(path: Path, ntrial: int = 2, times=TIMES_MS, trailing_tab: bool = True) -> Path:
    end = "\t" if trailing_tab else ""
    lines = ["Time\t" + "\t".join(CHANS) + "\t"]
    for trial in range(ntrial):
        for k, t in enumerate(times):
            vals = [f"{_value(trial, c, k):g}" for c in range(len(CHANS))]
            lines.append(f"{t}\t" + "\t".join(vals) + end)
    path.write_text("\n".join(lines) + "\n")
    return path


# -----------------------------------------------------------------------
# trial_template
# -----------------------------------------------------------------------


def test_trial_template() -> None:
    t_trial, ntrial = trial_template(np.array(TIMES_MS * 3, dtype=float))
    np.testing.assert_array_equal(t_trial, TIMES_MS)
    assert ntrial == 3


def test_trial_template_single_trial() -> None:
    t_trial, ntrial = trial_template(np.array([1.0, 2.0, 3.0]))
    assert ntrial == 1
    assert t_trial.size == 3


def test_trial_template_not_starting_at_minimum() -> None:
    with pytest.raises(NonContiguousDataError):
        trial_template(np.array([0.0, -100.0, 100.0, 0.0, -100.0, 100.0]))


def test_trial_template_partial_trial() -> None:
    with pytest.raises(NonContiguousDataError):
        trial_template(np.array(TIMES_MS + TIMES_MS[:2], dtype=float))


# -----------------------------------------------------------------------
# Reader
# -----------------------------------------------------------------------


def test_read_export(tmp_path: Path) -> None:
    path = _write_export(tmp_path / "epochs.txt")
    ds = EeglabTxtReader().read(path)

    assert ds.samples.shape == (2, 12)
    assert ds.fdim.labels == ("chan", "time")
    assert ds.fdim.values_for("chan").tolist() == CHANS
    np.testing.assert_allclose(ds.fdim.values_for("time"), [-0.1, 0.0, 0.1, 0.2])

    # every (chan, time) pair appears once
    pairs = set(zip(ds.fa["chan"].tolist(), ds.fa["time"].tolist()))
    assert len(pairs) == 12

    for trial in range(2):
        for f in range(ds.nfeatures):
            expected = _value(trial, ds.fa["chan"][f], ds.fa["time"][f])
            assert ds.samples[trial, f] == expected

    assert ds.a["meeg"] == {"samples_field": "trial", "samples_type": "timelock", "samples_label": "rpt"}
    np.testing.assert_array_equal(ds.sa["rpt"], [0, 1])


def test_read_export_without_trailing_delimiter(tmp_path: Path) -> None:
    path = _write_export(tmp_path / "epochs.txt", ntrial=3, trailing_tab=False)
    ds = EeglabTxtReader().read(path)
    assert ds.samples.shape == (3, 12)


def test_time_scale_config(tmp_path: Path) -> None:
    path = _write_export(tmp_path / "epochs.txt", ntrial=1)
    ds = EeglabTxtReader(EeglabReaderConfig(time_scale=1.0)).read(path)
    np.testing.assert_allclose(ds.fdim.values_for("time"), TIMES_MS)


def test_perturbed_timestamp(tmp_path: Path) -> None:
    times = TIMES_MS * 2
    times[6], times[5] = times[5], times[6]
    path = tmp_path / "epochs.txt"
    lines = ["Time\t" + "\t".join(CHANS) + "\t"]
    lines += [f"{t}\t1\t2\t3\t" for t in times]
    path.write_text("\n".join(lines) + "\n")

    with pytest.raises(NonContiguousDataError):
        EeglabTxtReader().read(path)


def test_unparsable_value(tmp_path: Path) -> None:
    path = tmp_path / "epochs.txt"
    path.write_text("Time\tFz\tCz\t\n-100\t1\t2\t\n0\tabc\t2\t\n")
    with pytest.raises(IncompleteReadError, match="row 2"):
        EeglabTxtReader().read(path)


def test_missing_value(tmp_path: Path) -> None:
    path = tmp_path / "epochs.txt"
    path.write_text("Time\tFz\tCz\t\n-100\t1\t2\n0\t1\n")
    with pytest.raises(IncompleteReadError):
        EeglabTxtReader().read(path)


def test_no_channel_labels(tmp_path: Path) -> None:
    path = tmp_path / "epochs.txt"
    path.write_text("Time\n0\n")
    with pytest.raises(IncompleteReadError):
        EeglabTxtReader().read(path)


def test_no_data_rows(tmp_path: Path) -> None:
    path = tmp_path / "epochs.txt"
    path.write_text("Time\tFz\tCz\t\n")
    with pytest.raises(IncompleteReadError):
        EeglabTxtReader().read(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        EeglabTxtReader().read(tmp_path / "nope.txt")
