from __future__ import annotations

import abc
import math
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

_LOCAL_Z = np.array([0.0, 0.0, 1.0])


def _global_vector(values: Sequence[float], name: str) -> np.ndarray:
    v = np.array(values, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {v.shape}.")
    if not np.all(np.isfinite(v)):
        raise ValueError(f"{name} must be finite, got {v.tolist()}.")
    v.setflags(write=False)
    return v


class Surface(abc.ABC):
    r"""
    Oriented detector surface placed in the global frame.

    A surface is defined by the origin of its local frame (``position``) and
    the rotation taking local axes to global axes. Local and global
    coordinates are related by

    .. math::

        \mathbf{x}_{\text{global}} = \mathbf{t} + R\,\mathbf{x}_{\text{local}},

    with :math:`\mathbf{t}` = ``position`` and :math:`R` = ``rotation``.
    Surfaces are immutable.

    Parameters
    ----------
    position : array_like, shape (3,)
        Origin of the local frame in global coordinates.
    rotation : scipy.spatial.transform.Rotation, optional
        Local-to-global rotation; identity if omitted.
    """
    __slots__ = ("_position", "_rotation")

    def __init__(self, position: Sequence[float], rotation: Optional[Rotation] = None):
        self._position = _global_vector(position, "position")
        self._rotation = Rotation.identity() if rotation is None else rotation

    @property
    def position(self) -> np.ndarray:
        return self._position

    @property
    def rotation(self) -> Rotation:
        return self._rotation

    def to_local(self, point: Sequence[float]) -> np.ndarray:
        """Global point -> local frame."""
        p = np.asarray(point, dtype=np.float64) - self._position
        return self._rotation.inv().apply(p)

    def to_global(self, point: Sequence[float]) -> np.ndarray:
        """Local point -> global frame."""
        return self._rotation.apply(np.asarray(point, dtype=np.float64)) + self._position

    def to_local_vector(self, vector: Sequence[float]) -> np.ndarray:
        return self._rotation.inv().apply(np.asarray(vector, dtype=np.float64))

    @abc.abstractmethod
    def signed_distance(self, point: Sequence[float]) -> float:
        """Signed distance of a global point from the surface (zero on it)."""

    def contains(self, point: Sequence[float], tol: float = 1e-9) -> bool:
        return abs(self.signed_distance(point)) <= tol


class Plane(Surface):
    r"""
    Infinite plane through ``position`` with normal :math:`\hat{n} = R\,\hat{z}`.

    The signed distance of a point :math:`\mathbf{x}` is
    :math:`(\mathbf{x}-\mathbf{t})\cdot\hat{n}`.
    """
    __slots__ = ()

    @property
    def normal(self) -> np.ndarray:
        return self._rotation.apply(_LOCAL_Z)

    def signed_distance(self, point: Sequence[float]) -> float:
        return float((np.asarray(point, dtype=np.float64) - self._position) @ self.normal)

    def __repr__(self) -> str:
        return f"Plane(position={tuple(float(c) for c in self._position)})"


class Cylinder(Surface):
    r"""
    Infinite circular cylinder of radius :math:`\rho` about the axis
    :math:`\hat{a} = R\,\hat{z}` through ``position``.

    The signed distance of a point is its distance from the axis minus
    :math:`\rho` (negative inside).

    Parameters
    ----------
    position : array_like, shape (3,)
        A point on the axis.
    rotation : scipy.spatial.transform.Rotation, optional
        Local-to-global rotation; identity if omitted.
    radius : float
        Cylinder radius :math:`\rho\ge 0`.

    Raises
    ------
    ValueError
        If ``radius`` is negative or not finite.
    """
    __slots__ = ("_radius",)

    def __init__(self, position: Sequence[float], rotation: Optional[Rotation], radius: float):
        radius = float(radius)
        if not math.isfinite(radius) or radius < 0.0:
            raise ValueError(f"Cylinder radius must be a finite non-negative number, got {radius}.")
        super().__init__(position, rotation)
        self._radius = radius

    @property
    def radius(self) -> float:
        return self._radius

    @property
    def axis(self) -> np.ndarray:
        return self._rotation.apply(_LOCAL_Z)

    def signed_distance(self, point: Sequence[float]) -> float:
        local = self.to_local(point)
        return float(np.hypot(local[0], local[1]) - self._radius)

    def __repr__(self) -> str:
        return f"Cylinder(position={tuple(float(c) for c in self._position)}, radius={self._radius:g})"


def build_plane(z: float) -> Plane:
    r"""
    Plane :math:`z = z_0` perpendicular to the beam axis.

    Parameters
    ----------
    z : float
        Longitudinal offset of the plane [cm].

    Returns
    -------
    Plane
        Plane through :math:`(0,0,z_0)` with identity rotation, i.e. normal
        :math:`(0,0,1)`.

    Raises
    ------
    ValueError
        If ``z`` is not finite.

    Examples
    --------
    >>> build_plane(790.0).signed_distance((10.0, -3.0, 790.0))
    0.0
    """
    return Plane((0.0, 0.0, float(z)), Rotation.identity())


def build_cylinder(rho: float) -> Cylinder:
    r"""
    Cylinder of radius :math:`\rho` coaxial with the beam axis.

    Parameters
    ----------
    rho : float
        Radius [cm], must be non-negative.

    Returns
    -------
    Cylinder
        Cylinder about the origin with identity rotation.

    Raises
    ------
    ValueError
        If ``rho`` is negative or not finite (a caller programming error).
    """
    return Cylinder((0.0, 0.0, 0.0), Rotation.identity(), rho)
