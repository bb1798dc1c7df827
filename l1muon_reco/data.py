from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

import numpy as np
import pandas as pd

from l1muon_reco.state import Track

TRACK_COLUMNS = ("x", "y", "z", "px", "py", "pz", "charge")


def tracks_from_frame(df: pd.DataFrame) -> List[Track]:
    r"""
    Convert a table of inner-track kinematics into :class:`Track` records.

    Parameters
    ----------
    df : pandas.DataFrame
        Columns ``x, y, z`` (inner position, cm), ``px, py, pz`` (inner
        momentum, GeV/c) and ``charge``. An optional ``track_id`` column is
        carried over; otherwise the row position is used.

    Returns
    -------
    list of Track
        One record per row, in row order.

    Raises
    ------
    KeyError
        If a required column is missing.
    ValueError
        If a charge is zero, non-integral, or any kinematic value is not finite.

    Examples
    --------
    >>> df = pd.DataFrame({"x":[0.], "y":[0.], "z":[0.], "px":[0.], "py":[0.], "pz":[10.], "charge":[1]})
    >>> tracks_from_frame(df)[0].charge
    1
    """
    missing = [c for c in TRACK_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f"Missing required column(s): {', '.join(missing)}")

    pos = df[["x", "y", "z"]].to_numpy(dtype=np.float64, copy=False)
    mom = df[["px", "py", "pz"]].to_numpy(dtype=np.float64, copy=False)
    charge = df["charge"].to_numpy(dtype=np.float64, copy=False)

    if not (np.all(np.isfinite(pos)) and np.all(np.isfinite(mom))):
        raise ValueError("Track positions and momenta must be finite.")
    if np.any(charge != np.round(charge)) or np.any(charge == 0):
        raise ValueError("Track charges must be non-zero integers.")

    if "track_id" in df.columns:
        ids = df["track_id"].to_numpy(dtype=np.int64, copy=False)
    else:
        ids = np.arange(len(df), dtype=np.int64)

    return [
        Track(pos[i], mom[i], int(charge[i]), int(ids[i]))
        for i in range(len(df))
    ]


def load_tracks(path: Union[str, Path]) -> List[Track]:
    """Read a CSV of inner-track kinematics (see :func:`tracks_from_frame`)."""
    df = pd.read_csv(path)
    tracks = tracks_from_frame(df)
    logging.info("Loaded %d tracks from %s", len(tracks), path)
    return tracks
