from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from l1muon_reco.extrapolation import REFERENCE_SURFACES, SurfaceKind, SurfaceSpec, TrackExtrapolation

#: Value written for surfaces a track did not reach.
DEFAULT_SENTINEL = -999999.0

_TWO_PI = 2.0 * np.pi


def polar_coordinates(position: Sequence[float]) -> Tuple[float, float]:
    r"""
    Transverse polar coordinates of a global position.

    .. math::

        r = \sqrt{x^2+y^2}, \qquad
        \phi = \operatorname{atan2}(y, x) + 2\pi\,[\operatorname{atan2}(y,x) < 0],

    so that :math:`\phi \in [0, 2\pi)`.

    Parameters
    ----------
    position : array_like, shape (3,) or (2,)
        Global :math:`(x, y[, z])`.

    Returns
    -------
    r, phi : float

    Examples
    --------
    >>> r, phi = polar_coordinates((0.0, -2.0, 5.0))
    >>> r, round(phi / np.pi, 6)
    (2.0, 1.5)
    """
    x, y = float(position[0]), float(position[1])
    phi = np.arctan2(y, x)
    if phi < 0.0:
        phi += _TWO_PI
    return float(np.hypot(x, y)), float(phi)


def extrapolation_table(results: Sequence[TrackExtrapolation],
                        sentinel: float = DEFAULT_SENTINEL,
                        surfaces: Optional[Sequence[SurfaceSpec]] = None) -> pd.DataFrame:
    r"""
    Flatten per-track extrapolations into one row per track.

    Columns
    -------
    - ``track_id``, ``charge``
    - plane ``<name>``: ``r_<name>``, ``phi_<name>``
    - cylinder ``<name>``: ``z_<name>``, ``phi_<name>``
    - every surface: ``valid_<name>`` (bool)

    Parameters
    ----------
    results : sequence of TrackExtrapolation
        Output of :meth:`~l1muon_reco.extrapolation.MuonExtrapolator.process`.
        All entries must share the same surface list.
    sentinel : float, optional
        Filler for the coordinates of unreached surfaces (default
        ``-999999``).
    surfaces : sequence of SurfaceSpec, optional
        Surface list that fixes the columns. Defaults to the surfaces of the
        first entry, or to :data:`REFERENCE_SURFACES` when ``results`` is
        empty, so an empty input still yields the full column layout.

    Returns
    -------
    pandas.DataFrame
        One row per input track in input order, coordinates as float and
        ``valid_<name>`` as bool even when empty. ``valid_<name>`` is the
        authoritative discriminant; the sentinel is only a filler.

    Raises
    ------
    ValueError
        If the entries do not share the same surface list (or differ from
        ``surfaces`` when given).
    """
    if surfaces is not None:
        specs = tuple(surfaces)
    elif results:
        specs = results[0].surfaces
    else:
        specs = REFERENCE_SURFACES
    if any(r.surfaces != specs for r in results):
        raise ValueError("All extrapolations must use the same surface list.")

    columns: Dict[str, List] = {"track_id": [], "charge": []}
    for spec in specs:
        first = "r" if spec.kind is SurfaceKind.PLANE else "z"
        columns[f"{first}_{spec.name}"] = []
        columns[f"phi_{spec.name}"] = []
        columns[f"valid_{spec.name}"] = []

    for res in results:
        columns["track_id"].append(res.track.track_id)
        columns["charge"].append(res.track.charge)
        for spec in specs:
            first = "r" if spec.kind is SurfaceKind.PLANE else "z"
            tsos = res[spec.name]
            if tsos.is_valid:
                pos = tsos.global_position
                r, phi = polar_coordinates(pos)
                first_val = r if spec.kind is SurfaceKind.PLANE else float(pos[2])
            else:
                first_val, phi = sentinel, sentinel
            columns[f"{first}_{spec.name}"].append(first_val)
            columns[f"phi_{spec.name}"].append(phi)
            columns[f"valid_{spec.name}"].append(tsos.is_valid)

    df = pd.DataFrame(columns)
    for spec in specs:
        first = "r" if spec.kind is SurfaceKind.PLANE else "z"
        df = df.astype({f"{first}_{spec.name}": float, f"phi_{spec.name}": float, f"valid_{spec.name}": bool})
    return df
