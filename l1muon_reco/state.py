from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from l1muon_reco.field import MagneticField

if TYPE_CHECKING:  # pragma: no cover
    from l1muon_reco.surfaces import Surface


def _frozen_vector(values: Sequence[float], name: str) -> np.ndarray:
    v = np.array(values, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {v.shape}.")
    v.setflags(write=False)
    return v


class InvalidStateError(ValueError):
    """Raised when a position or momentum is read from an Invalid on-surface state."""


@dataclass(frozen=True, eq=False, slots=True)
class Track:
    r"""
    Inner-track kinematics of an offline muon.

    Attributes
    ----------
    inner_position : (3,) ndarray
        Reference point :math:`(x,y,z)` of the inner track [cm].
    inner_momentum : (3,) ndarray
        Momentum :math:`(p_x,p_y,p_z)` at ``inner_position`` [GeV/c].
    charge : int
        Signed charge, :math:`\pm 1` for muons.
    track_id : int, optional
        Caller bookkeeping only; duplicates are processed independently.

    Notes
    -----
    Both vectors are copied and flagged read-only on construction, so a
    ``Track`` cannot be altered through the arrays it was built from.
    """
    inner_position: np.ndarray
    inner_momentum: np.ndarray
    charge: int
    track_id: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "inner_position", _frozen_vector(self.inner_position, "inner_position"))
        object.__setattr__(self, "inner_momentum", _frozen_vector(self.inner_momentum, "inner_momentum"))
        object.__setattr__(self, "charge", int(self.charge))


@dataclass(frozen=True, eq=False, slots=True)
class FreeTrajectoryState:
    r"""
    Particle state :math:`(\mathbf{x}, \mathbf{p}, q)` unconstrained by any surface.

    The state is bound to the field model it will be propagated through.
    Instances are never mutated; each propagation starts from the same object.

    Attributes
    ----------
    position : (3,) ndarray
        Global position [cm].
    momentum : (3,) ndarray
        Global momentum [GeV/c].
    charge : int
        Signed charge.
    field : MagneticField
        Field model used by propagators.
    """
    position: np.ndarray
    momentum: np.ndarray
    charge: int
    field: MagneticField

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _frozen_vector(self.position, "position"))
        object.__setattr__(self, "momentum", _frozen_vector(self.momentum, "momentum"))
        object.__setattr__(self, "charge", int(self.charge))

    @property
    def momentum_magnitude(self) -> float:
        return float(np.linalg.norm(self.momentum))

    @property
    def transverse_momentum(self) -> float:
        return float(np.hypot(self.momentum[0], self.momentum[1]))

    @property
    def direction(self) -> np.ndarray:
        r"""
        Unit direction :math:`\hat{\mathbf{p}} = \mathbf{p}/\lVert\mathbf{p}\rVert`.

        Raises
        ------
        ValueError
            If the momentum is the zero vector.
        """
        p = self.momentum_magnitude
        if p == 0.0:
            raise ValueError("Direction is undefined for a zero momentum.")
        return self.momentum / p

    @property
    def signed_inverse_momentum(self) -> float:
        r"""
        :math:`q/p` in :math:`(\mathrm{GeV}/c)^{-1}`.

        Raises
        ------
        ValueError
            If the momentum is the zero vector.
        """
        p = self.momentum_magnitude
        if p == 0.0:
            raise ValueError("q/p is undefined for a zero momentum.")
        return self.charge / p

    def field_at_position(self) -> np.ndarray:
        return self.field.field_at(self.position)


def build_free_state(track: Track, field: MagneticField) -> FreeTrajectoryState:
    r"""
    Build the starting state of an extrapolation from a track's inner kinematics.

    Parameters
    ----------
    track : Track
        Offline track.
    field : MagneticField
        Field model the state is bound to.

    Returns
    -------
    FreeTrajectoryState
        State with ``position == track.inner_position``,
        ``momentum == track.inner_momentum`` and ``charge == track.charge``.

    Notes
    -----
    Total over any well-formed ``Track``: a zero momentum is accepted here and
    left for the propagator to report as Invalid.
    """
    return FreeTrajectoryState(
        position=track.inner_position,
        momentum=track.inner_momentum,
        charge=track.charge,
        field=field,
    )


@dataclass(frozen=True, eq=False, slots=True)
class TrajectoryStateOnSurface:
    r"""
    Outcome of propagating a free state to a surface.

    Either **Valid** (carries the global position and momentum on the surface)
    or **Invalid** (the surface was not reached). Build instances through
    :meth:`valid` and :meth:`invalid`; test the discriminant with
    :attr:`is_valid` (or ``bool(tsos)``) before reading the kinematics.

    Attributes
    ----------
    surface : Surface or None
        Target surface of the propagation.

    Raises
    ------
    InvalidStateError
        When :attr:`global_position` or :attr:`global_momentum` is read from an
        Invalid state.

    Examples
    --------
    >>> TrajectoryStateOnSurface.invalid().is_valid
    False
    """
    is_valid: bool
    _position: Optional[np.ndarray] = dataclasses.field(default=None, repr=False)
    _momentum: Optional[np.ndarray] = dataclasses.field(default=None, repr=False)
    surface: Optional["Surface"] = dataclasses.field(default=None, repr=False)

    @classmethod
    def valid(cls,
              position: Sequence[float],
              momentum: Sequence[float],
              surface: Optional["Surface"] = None) -> "TrajectoryStateOnSurface":
        return cls(True,
                   _frozen_vector(position, "position"),
                   _frozen_vector(momentum, "momentum"),
                   surface)

    @classmethod
    def invalid(cls, surface: Optional["Surface"] = None) -> "TrajectoryStateOnSurface":
        return cls(False, None, None, surface)

    def __bool__(self) -> bool:
        return self.is_valid

    @property
    def global_position(self) -> np.ndarray:
        if not self.is_valid:
            raise InvalidStateError("Invalid trajectory state has no global position.")
        return self._position

    @property
    def global_momentum(self) -> np.ndarray:
        if not self.is_valid:
            raise InvalidStateError("Invalid trajectory state has no global momentum.")
        return self._momentum

    def __repr__(self) -> str:
        if not self.is_valid:
            return "TrajectoryStateOnSurface(invalid)"
        x, y, z = self._position
        return f"TrajectoryStateOnSurface(valid, position=({x:g}, {y:g}, {z:g}))"
