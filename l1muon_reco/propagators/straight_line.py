from typing import Optional, Tuple

import numpy as np

from l1muon_reco.propagators.propagator import PropagationDirection, Propagator
from l1muon_reco.state import FreeTrajectoryState, TrajectoryStateOnSurface
from l1muon_reco.surfaces import Cylinder, Plane, Surface


class StraightLinePropagator(Propagator):
    r"""
    Field-free propagator: the trajectory is the straight line

    .. math::

        \mathbf{x}(s) = \mathbf{x}_0 + s\,\hat{\mathbf{p}},

    with path length :math:`s` in cm. The ``ALONG_MOMENTUM`` propagator accepts
    :math:`s \ge 0`, the ``OPPOSITE_TO_MOMENTUM`` propagator accepts
    :math:`s \le 0`; when two intersections are admissible the one closest to
    the start wins. Momentum is carried over unchanged.

    The intersection is solved in closed form in the surface's local frame,
    so any plane/cylinder orientation is supported.

    Parameters
    ----------
    direction : PropagationDirection, optional
        Sense of travel; ``ALONG_MOMENTUM`` by default.
    tolerance : float, optional
        Path-length tolerance [cm]: a crossing at :math:`|s|` below it counts
        as admissible in both senses, so a start point on the surface is
        reached. Default ``1e-9``.
    parallel_tolerance : float, optional
        Dimensionless threshold on the unit direction: a plane is never
        reached when :math:`|u_z|` is below it, a cylinder never when
        :math:`\sqrt{u_x^2+u_y^2}` is. Default ``1e-9``.

    Notes
    -----
    Intended for zero-field studies and as the reference propagator of the
    extrapolation tests; in a real field the caller injects its own
    field-aware propagators.
    """

    def __init__(self,
                 direction: PropagationDirection = PropagationDirection.ALONG_MOMENTUM,
                 tolerance: float = 1e-9,
                 parallel_tolerance: float = 1e-9):
        super().__init__(direction)
        self.tolerance = float(tolerance)
        self.parallel_tolerance = float(parallel_tolerance)

    def _accepts(self, s: float) -> bool:
        return self.direction.sign * s >= -self.tolerance

    def _on_surface(self,
                    state: FreeTrajectoryState,
                    surface: Surface,
                    origin: np.ndarray,
                    u: np.ndarray,
                    s: Optional[float]) -> TrajectoryStateOnSurface:
        if s is None:
            return TrajectoryStateOnSurface.invalid(surface)
        position = surface.to_global(origin + s * u)
        return TrajectoryStateOnSurface.valid(position, state.momentum, surface)

    def _propagate_to_plane(self, state: FreeTrajectoryState, plane: Plane) -> TrajectoryStateOnSurface:
        r"""
        Solve :math:`z_\text{loc}(s) = z_0 + s\,u_z = 0` in the plane frame.

        Directions with :math:`|u_z|` below ``parallel_tolerance`` never reach the plane.
        """
        origin = plane.to_local(state.position)
        u = plane.to_local_vector(state.direction)
        if abs(u[2]) < self.parallel_tolerance:
            return TrajectoryStateOnSurface.invalid(plane)
        s = -origin[2] / u[2]
        return self._on_surface(state, plane, origin, u, s if self._accepts(s) else None)

    def _propagate_to_cylinder(self, state: FreeTrajectoryState, cylinder: Cylinder) -> TrajectoryStateOnSurface:
        r"""
        Solve :math:`\lVert \mathbf{x}_{\perp}(s) \rVert^2 = \rho^2` in the cylinder frame.

        With :math:`a = u_x^2+u_y^2`, :math:`b = 2(x_0u_x+y_0u_y)`,
        :math:`c = x_0^2+y_0^2-\rho^2` the roots of :math:`as^2+bs+c=0` are
        taken in the cancellation-free form :math:`q/a,\ c/q` with
        :math:`q = -\tfrac12\big(b + \operatorname{sign}(b)\sqrt{b^2-4ac}\big)`.
        A direction parallel to the axis (:math:`a\approx 0`) or a negative
        discriminant gives no intersection.
        """
        origin = cylinder.to_local(state.position)
        u = cylinder.to_local_vector(state.direction)
        a = u[0] * u[0] + u[1] * u[1]
        if a < self.parallel_tolerance * self.parallel_tolerance:
            return TrajectoryStateOnSurface.invalid(cylinder)
        b = 2.0 * (origin[0] * u[0] + origin[1] * u[1])
        c = origin[0] * origin[0] + origin[1] * origin[1] - cylinder.radius ** 2
        roots = _quadratic_roots(a, b, c)
        if roots is None:
            return TrajectoryStateOnSurface.invalid(cylinder)

        admissible = [s for s in roots if self._accepts(s)]
        s = min(admissible, key=abs) if admissible else None
        return self._on_surface(state, cylinder, origin, u, s)


def _quadratic_roots(a: float, b: float, c: float) -> Optional[Tuple[float, float]]:
    disc = b * b - 4.0 * a * c
    if disc < 0.0:
        return None
    q = -0.5 * (b + np.copysign(np.sqrt(disc), b))
    if q == 0.0:
        # b == 0 and c == 0: tangent at the start point
        return 0.0, 0.0
    r1, r2 = q / a, c / q
    return (r1, r2) if r1 <= r2 else (r2, r1)


def straight_line_pair(tolerance: float = 1e-9,
                       parallel_tolerance: float = 1e-9) -> Tuple[StraightLinePropagator, StraightLinePropagator]:
    """Return ``(along, opposite)`` straight-line propagators."""
    return (StraightLinePropagator(PropagationDirection.ALONG_MOMENTUM, tolerance, parallel_tolerance),
            StraightLinePropagator(PropagationDirection.OPPOSITE_TO_MOMENTUM, tolerance, parallel_tolerance))
