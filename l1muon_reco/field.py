from __future__ import annotations

import abc
from typing import Sequence

import numpy as np


def _as_point(point: Sequence[float]) -> np.ndarray:
    p = np.asarray(point, dtype=np.float64)
    if p.shape != (3,):
        raise ValueError(f"Expected a 3D point, got shape {p.shape}.")
    return p


class MagneticField(abc.ABC):
    r"""
    Abstract magnetic-field model.

    A field model is a read-only capability shared by every trajectory state
    built during processing. Implementations must be defined over the whole
    region spanned by the target surfaces (:math:`|z|\le 790`,
    :math:`r\le 500` cm for the reference muon stations).

    Notes
    -----
    Units are Tesla for the returned vector and cm for the query point.
    """

    @abc.abstractmethod
    def field_at(self, point: Sequence[float]) -> np.ndarray:
        r"""
        Field vector :math:`\mathbf{B}(\mathbf{x})` at a global point.

        Parameters
        ----------
        point : array_like, shape (3,)
            Global position :math:`(x, y, z)`.

        Returns
        -------
        ndarray, shape (3,)
            :math:`(B_x, B_y, B_z)` in Tesla.
        """


class UniformMagneticField(MagneticField):
    r"""
    Constant field :math:`\mathbf{B}=(B_x,B_y,B_z)` everywhere.

    With the default arguments this is the field-free model.

    Parameters
    ----------
    bx, by, bz : float, optional
        Field components in Tesla (default ``0``).

    Raises
    ------
    ValueError
        If any component is not finite.

    Examples
    --------
    >>> UniformMagneticField(bz=3.8).field_at((0.0, 0.0, 100.0))
    array([0. , 0. , 3.8])
    """
    __slots__ = ("_b",)

    def __init__(self, bx: float = 0.0, by: float = 0.0, bz: float = 0.0):
        b = np.array([bx, by, bz], dtype=np.float64)
        if not np.all(np.isfinite(b)):
            raise ValueError("Magnetic field components must be finite.")
        b.setflags(write=False)
        self._b = b

    @property
    def vector(self) -> np.ndarray:
        return self._b

    def field_at(self, point: Sequence[float]) -> np.ndarray:
        _as_point(point)
        return self._b.copy()

    def __repr__(self) -> str:
        bx, by, bz = self._b
        return f"UniformMagneticField(bx={bx:g}, by={by:g}, bz={bz:g})"
