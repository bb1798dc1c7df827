#!/usr/bin/env python3
r"""
Offline-muon extrapolation runner.

Reads inner-track kinematics of offline muons, extrapolates each track to the
second muon station (endcap planes :math:`z=\pm 790` cm and barrel cylinder
:math:`\rho = 500` cm by default) and logs the per-surface reach and the head
of the resulting table, so that trigger-level muons can be compared on an
equal footing.

Each (track, surface) pair is extrapolated with the along-momentum
propagator first and the opposite-momentum propagator as fallback. The
runner uses the field-free :class:`~l1muon_reco.propagators.straight_line.StraightLinePropagator`
pair; library callers inject their own field-aware propagators into
:class:`~l1muon_reco.extrapolation.MuonExtrapolator`.

CLI overview
------------
.. code-block:: bash

   l1muon-reco -f muons.csv
   l1muon-reco -f muons.csv --config config.json --head 20 -v
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

import l1muon_reco.data as l1_data
from l1muon_reco.config import load_config
from l1muon_reco.extrapolation import MuonExtrapolator
from l1muon_reco.propagators.straight_line import straight_line_pair
from l1muon_reco.summary import extrapolation_table


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Extrapolate offline muon tracks to the second muon station.")
    p.add_argument("-f", "--file", type=str, required=True,
                   help="CSV with columns x,y,z,px,py,pz,charge[,track_id].")
    p.add_argument("--config", type=str, default=None,
                   help="Path to JSON config (field, surfaces, sentinel). Default: built-in reference setup.")
    p.add_argument("--head", type=int, default=10,
                   help="Number of result rows to log (default: 10).")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Enable verbose logging.")
    return p


def setup_logging(verbose: bool = False) -> None:
    r"""
    Configure process-wide logging.

    Parameters
    ----------
    verbose : bool, optional
        If ``True``, set level to ``DEBUG``; otherwise ``INFO``.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )


def run(tracks_path: Path, config_path: Optional[Path] = None, head: int = 10) -> pd.DataFrame:
    r"""
    Load tracks, extrapolate them to every configured surface and tabulate.

    Parameters
    ----------
    tracks_path : pathlib.Path
        Track CSV, see :func:`l1muon_reco.data.load_tracks`.
    config_path : pathlib.Path, optional
        JSON configuration; built-in defaults when omitted.
    head : int, optional
        Rows of the result table to log.

    Returns
    -------
    pandas.DataFrame
        Output of :func:`l1muon_reco.summary.extrapolation_table`.
    """
    if config_path is not None:
        logging.info("Reading config from %s", config_path)
    cfg = load_config(config_path)

    tracks = l1_data.load_tracks(tracks_path)
    field = cfg.build_field()
    logging.info("Field model: %r", field)

    along, opposite = straight_line_pair(cfg.tolerance)
    extrapolator = MuonExtrapolator(field, along, opposite, cfg.surfaces)
    results = extrapolator.process(tracks)

    table = extrapolation_table(results, sentinel=cfg.invalid_sentinel, surfaces=cfg.surfaces)
    if head > 0 and not table.empty:
        logging.info("First %d rows:\n%s", min(head, len(table)), table.head(head).to_string(index=False))
    return table


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    tracks_path = Path(args.file)
    if not tracks_path.is_file():
        raise FileNotFoundError(f"No track file found at --file={args.file}")
    run(tracks_path, Path(args.config) if args.config else None, head=args.head)


if __name__ == "__main__":
    main()
