from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from mvpa_dataset.errors import IncompleteReadError, NonContiguousDataError
from mvpa_dataset.mapping.flatten import flatten
from mvpa_dataset.models.dataset import Dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EeglabReaderConfig:
    """
    Reader configuration for EEGLAB time series exported as text (*.txt).

    delimiter:
      Column separator of header and data lines.
    time_scale:
      Factor converting the exported time column to seconds (EEGLAB writes ms).
    """
    delimiter: str = "\t"
    time_scale: float = 1e-3


def trial_template(timepoints: np.ndarray) -> Tuple[np.ndarray, int]:
    """Return the timepoints of one trial and the number of trials.

    A trial runs from the first occurrence of the smallest timestamp to the first
    occurrence of the largest one. The whole column must consist of whole copies of
    that template, starting at the first row.
    """
    t = np.asarray(timepoints, dtype=np.float64)
    nrows = int(t.size)
    if nrows == 0:
        raise NonContiguousDataError("No timepoints found")

    pos_start = int(np.argmax(t == t.min()))
    pos_end = int(np.argmax(t == t.max()))

    t_trial = t[pos_start:pos_end + 1]
    ntime = int(t_trial.size)

    if pos_start != 0 or ntime == 0 or nrows % ntime != 0:
        raise NonContiguousDataError(
            f"Data not contiguous or unexpected order of time points: trial template "
            f"rows {pos_start}..{pos_end} does not tile {nrows} rows"
        )
    ntrial = nrows // ntime
    if not np.array_equal(np.tile(t_trial, ntrial), t):
        raise NonContiguousDataError(
            "Data not contiguous or unexpected order of time points: "
            f"timestamps are not {ntrial} repetitions of a {ntime}-point trial"
        )
    return t_trial, ntrial


class EeglabTxtReader:
    """
    Reads EEGLAB epoched data exported as tab-separated text.

    File layout:
      - line 1: header; the entries between the first and the last one are channel labels
      - other lines: time (ms) followed by one value per channel; trials are concatenated

    Returns a dataset with samples = trials and features = channel x time.
    """

    def __init__(self, config: Optional[EeglabReaderConfig] = None):
        self.config = config or EeglabReaderConfig()

    def read(self, path: str | Path) -> Dataset:
        p = Path(path).expanduser().resolve()
        if not p.exists():
            raise FileNotFoundError(str(p))

        text = p.read_text(errors="replace")
        chan_labels, mat = self._parse(text, name=p.name)

        timepoints = mat[:, 0]
        t_trial, ntrial = trial_template(timepoints)
        ntime = int(t_trial.size)
        nchan = len(chan_labels)

        # rows are trial-major: (trial, time) per channel column
        data = mat[:, 1:].reshape(ntrial, ntime, nchan).transpose(0, 2, 1)

        ds = flatten(data, ["chan", "time"], [chan_labels, t_trial * self.config.time_scale])

        ds.a["meeg"] = {
            "samples_field": "trial",
            "samples_type": "timelock",
            "samples_label": "rpt",
        }
        ds.set_sa("rpt", np.arange(ntrial))

        logger.debug("EEGLAB text %s: %d trials, %d channels, %d timepoints", p.name, ntrial, nchan, ntime)
        return ds

    def _parse(self, text: str, name: str = "<text>") -> Tuple[List[str], np.ndarray]:
        delim = self.config.delimiter
        lines = text.splitlines()
        if not lines:
            raise IncompleteReadError(f"{name}: empty file")

        header = lines[0].rstrip("\r\n").split(delim)
        chan_labels = [h.strip() for h in header[1:-1]]
        nchan = len(chan_labels)
        if nchan == 0:
            raise IncompleteReadError(f"{name}: no channel labels in header")

        body = "\n".join(lines[1:])
        if not body.strip():
            raise IncompleteReadError(f"{name}: no data rows")

        try:
            df = pd.read_csv(
                io.StringIO(body),
                sep=delim,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine="python",
            )
        except pd.errors.ParserError as exc:
            raise IncompleteReadError(f"Could not read all data from {name}: {exc}") from exc
        # trailing delimiters give empty last columns
        while df.shape[1] > nchan + 1 and (df.iloc[:, -1].str.strip() == "").all():
            df = df.iloc[:, :-1]

        if df.shape[1] != nchan + 1:
            raise IncompleteReadError(
                f"{name}: expected {nchan + 1} columns (time + {nchan} channels), found {df.shape[1]}"
            )

        values = df.apply(lambda col: pd.to_numeric(col.str.strip(), errors="coerce"))
        bad = values.isna().any(axis=1).to_numpy()
        if bad.any():
            row = int(np.flatnonzero(bad)[0])
            raise IncompleteReadError(
                f"Could not read all data from {name}: unparsable values at data row {row + 1}"
            )

        return chan_labels, values.to_numpy(dtype=np.float64)
