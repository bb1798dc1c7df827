from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from l1muon_reco.field import MagneticField
from l1muon_reco.propagators.propagator import Propagator
from l1muon_reco.state import FreeTrajectoryState, Track, TrajectoryStateOnSurface, build_free_state
from l1muon_reco.surfaces import Surface, build_cylinder, build_plane

logger = logging.getLogger(__name__)


def extrapolate(state: FreeTrajectoryState,
                surface: Surface,
                prop_along: Propagator,
                prop_opposite: Propagator) -> TrajectoryStateOnSurface:
    r"""
    Extrapolate a free state to a surface, trying both senses of travel.

    A helix can meet a given plane or cylinder either ahead of or behind the
    reference point. The along-momentum propagator is tried first; only if it
    does not reach the surface is the opposite propagator asked, and its
    answer (Valid or Invalid) is final.

    Parameters
    ----------
    state : FreeTrajectoryState
        Starting state, reused unchanged by both attempts.
    surface : Surface
        Target surface.
    prop_along, prop_opposite : Propagator
        Propagators for the two senses of travel.

    Returns
    -------
    TrajectoryStateOnSurface
        The along result if Valid, otherwise the opposite result. Never raises
        for a missing intersection.
    """
    tsos = prop_along.propagate(state, surface)
    if tsos.is_valid:
        return tsos
    logger.debug("Along-momentum propagation to %r failed; trying opposite direction.", surface)
    return prop_opposite.propagate(state, surface)


class SurfaceKind(Enum):
    PLANE = "plane"
    CYLINDER = "cylinder"


@dataclass(frozen=True, slots=True)
class SurfaceSpec:
    r"""
    Named target surface of the per-track extrapolation.

    Attributes
    ----------
    name : str
        Short label used in result columns (e.g. ``"me2_p"``).
    kind : SurfaceKind
        ``PLANE`` (``value`` is :math:`z`) or ``CYLINDER`` (``value`` is
        :math:`\rho`).
    value : float
        Plane offset or cylinder radius [cm].
    """
    name: str
    kind: SurfaceKind
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", SurfaceKind(self.kind))
        object.__setattr__(self, "value", float(self.value))
        if not math.isfinite(self.value):
            raise ValueError(f"Surface '{self.name}': value must be finite, got {self.value}.")
        if self.kind is SurfaceKind.CYLINDER and self.value < 0.0:
            raise ValueError(f"Surface '{self.name}': cylinder radius must be non-negative, got {self.value}.")

    def build(self) -> Surface:
        if self.kind is SurfaceKind.PLANE:
            return build_plane(self.value)
        return build_cylinder(self.value)


# Second muon station: endcap disks ME2+/ME2- and barrel wheel MB2.
REFERENCE_SURFACES: Tuple[SurfaceSpec, ...] = (
    SurfaceSpec("me2_p", SurfaceKind.PLANE, 790.0),
    SurfaceSpec("me2_n", SurfaceKind.PLANE, -790.0),
    SurfaceSpec("mb2", SurfaceKind.CYLINDER, 500.0),
)


@dataclass(frozen=True, slots=True)
class TrackExtrapolation:
    """Extrapolation results of one track, keyed by surface name."""
    track: Track
    results: Dict[str, TrajectoryStateOnSurface]
    surfaces: Tuple[SurfaceSpec, ...]

    def __getitem__(self, name: str) -> TrajectoryStateOnSurface:
        return self.results[name]

    @property
    def n_valid(self) -> int:
        return sum(1 for t in self.results.values() if t.is_valid)


class MuonExtrapolator:
    r"""
    Extrapolates offline muon inner tracks to the second muon station.

    For each track a single :class:`~l1muon_reco.state.FreeTrajectoryState` is
    built and extrapolated, independently, to every configured surface with
    :func:`extrapolate`. Nothing is cached between calls: each call builds a
    fresh starting state and a fresh surface, so results do not depend on the
    order in which tracks or surfaces are processed.

    Parameters
    ----------
    field : MagneticField
        Field model bound to every starting state.
    prop_along, prop_opposite : Propagator
        Injected propagators for the two senses of travel.
    surfaces : sequence of SurfaceSpec, optional
        Target surfaces; :data:`REFERENCE_SURFACES` by default.

    Raises
    ------
    ValueError
        If ``surfaces`` is empty or contains duplicate names.

    Notes
    -----
    Thread safety is that of the injected field and propagators; the
    extrapolator holds no mutable state of its own.
    """
    __slots__ = ("field", "prop_along", "prop_opposite", "surfaces", "log", "__dict__")

    def __init__(self,
                 field: MagneticField,
                 prop_along: Propagator,
                 prop_opposite: Propagator,
                 surfaces: Optional[Sequence[SurfaceSpec]] = None):
        specs = tuple(REFERENCE_SURFACES if surfaces is None else surfaces)
        if not specs:
            raise ValueError("At least one target surface is required.")
        names = [s.name for s in specs]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate surface names: {names}")
        self.field = field
        self.prop_along = prop_along
        self.prop_opposite = prop_opposite
        self.surfaces = specs
        self.log = logging.getLogger(self.__class__.__name__)

    def free_state(self, track: Track) -> FreeTrajectoryState:
        return build_free_state(track, self.field)

    def extrapolate_to_plane(self, track: Track, z: float) -> TrajectoryStateOnSurface:
        """Extrapolate ``track`` to the plane :math:`z = z_0`."""
        return extrapolate(self.free_state(track), build_plane(z), self.prop_along, self.prop_opposite)

    def extrapolate_to_cylinder(self, track: Track, rho: float) -> TrajectoryStateOnSurface:
        """Extrapolate ``track`` to the beam-axis cylinder of radius ``rho``."""
        return extrapolate(self.free_state(track), build_cylinder(rho), self.prop_along, self.prop_opposite)

    def extrapolate_track(self, track: Track) -> TrackExtrapolation:
        r"""
        Extrapolate one track to every configured surface.

        Parameters
        ----------
        track : Track
            Offline track.

        Returns
        -------
        TrackExtrapolation
            One :class:`~l1muon_reco.state.TrajectoryStateOnSurface` per
            surface name.
        """
        start = self.free_state(track)
        results = {
            spec.name: extrapolate(start, spec.build(), self.prop_along, self.prop_opposite)
            for spec in self.surfaces
        }
        return TrackExtrapolation(track, results, self.surfaces)

    def process(self, tracks: Iterable[Track]) -> List[TrackExtrapolation]:
        r"""
        Extrapolate a sequence of tracks.

        Failures are local to a (track, surface) pair and never stop the loop.
        Per-surface valid counts are logged at INFO level.

        Parameters
        ----------
        tracks : iterable of Track
            Tracks in any order; duplicates are processed independently.

        Returns
        -------
        list of TrackExtrapolation
            In input order.
        """
        out: List[TrackExtrapolation] = []
        n_valid: Counter = Counter()
        for track in tracks:
            res = self.extrapolate_track(track)
            for name, tsos in res.results.items():
                n_valid[name] += int(tsos.is_valid)
            out.append(res)

        for spec in self.surfaces:
            self.log.info("Surface %-8s (%s %g): %d/%d tracks reached",
                          spec.name, spec.kind.value, spec.value, n_valid[spec.name], len(out))
        return out
