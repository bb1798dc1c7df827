from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple, Union

import orjson

from l1muon_reco.extrapolation import REFERENCE_SURFACES, SurfaceSpec
from l1muon_reco.field import UniformMagneticField
from l1muon_reco.summary import DEFAULT_SENTINEL

DEFAULTS: Mapping[str, Any] = {
    "field": {"bx": 0.0, "by": 0.0, "bz": 0.0},
    "surfaces": [
        {"name": s.name, "kind": s.kind.value, "value": s.value} for s in REFERENCE_SURFACES
    ],
    "invalid_sentinel": DEFAULT_SENTINEL,
    "tolerance": 1e-9,
}


def _deep_update(d: dict, u: Mapping) -> dict:
    out = dict(d)
    for k, v in u.items():
        if isinstance(v, Mapping) and isinstance(out.get(k), Mapping):
            out[k] = _deep_update(dict(out[k]), v)
        else:
            out[k] = v
    return out


@dataclass(frozen=True)
class ExtrapolationConfig:
    r"""
    Run configuration of the muon extrapolation.

    Attributes
    ----------
    field : tuple of float
        Uniform field :math:`(B_x, B_y, B_z)` [T].
    surfaces : tuple of SurfaceSpec
        Target surfaces.
    invalid_sentinel : float
        Table filler for unreached surfaces.
    tolerance : float
        Propagator path-length tolerance [cm].
    """
    field: Tuple[float, float, float]
    surfaces: Tuple[SurfaceSpec, ...]
    invalid_sentinel: float = DEFAULT_SENTINEL
    tolerance: float = 1e-9

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "ExtrapolationConfig":
        r"""
        Build a configuration from a (partial) mapping merged over :data:`DEFAULTS`.

        Raises
        ------
        ValueError
            On an unknown surface kind, a non-finite surface value, a negative
            cylinder radius, or a malformed entry.
        """
        merged = _deep_update(dict(DEFAULTS), cfg)
        try:
            f = merged["field"]
            field = (float(f.get("bx", 0.0)), float(f.get("by", 0.0)), float(f.get("bz", 0.0)))
            surfaces = tuple(
                SurfaceSpec(str(s["name"]), s["kind"], float(s["value"])) for s in merged["surfaces"]
            )
            sentinel = float(merged["invalid_sentinel"])
            tolerance = float(merged["tolerance"])
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed extrapolation config: {e}") from e
        return cls(field, surfaces, sentinel, tolerance)

    def build_field(self) -> UniformMagneticField:
        return UniformMagneticField(*self.field)


def load_config(config_path: Union[str, Path, None] = None) -> ExtrapolationConfig:
    r"""
    Load a JSON configuration with :mod:`orjson`.

    Parameters
    ----------
    config_path : str or pathlib.Path, optional
        JSON file. ``None`` returns the built-in defaults.

    Returns
    -------
    ExtrapolationConfig

    Raises
    ------
    ValueError
        If the file cannot be parsed or holds an invalid configuration.
    """
    if config_path is None:
        return ExtrapolationConfig.from_mapping({})
    path = Path(config_path)
    try:
        raw = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as e:
        raise ValueError(f"Failed to parse {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"Failed to parse {path}: top-level JSON value must be an object.")
    return ExtrapolationConfig.from_mapping(raw)
