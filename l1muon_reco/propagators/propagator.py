import abc
import logging
from enum import Enum

from l1muon_reco.state import FreeTrajectoryState, TrajectoryStateOnSurface
from l1muon_reco.surfaces import Cylinder, Plane, Surface


class PropagationDirection(Enum):
    """Sense of travel along the trajectory relative to the stored momentum."""
    ALONG_MOMENTUM = "along"
    OPPOSITE_TO_MOMENTUM = "opposite"

    @property
    def sign(self) -> int:
        return 1 if self is PropagationDirection.ALONG_MOMENTUM else -1

    def reversed(self) -> "PropagationDirection":
        if self is PropagationDirection.ALONG_MOMENTUM:
            return PropagationDirection.OPPOSITE_TO_MOMENTUM
        return PropagationDirection.ALONG_MOMENTUM


class Propagator(abc.ABC):
    r"""
    Abstract base class for propagators of free trajectory states to surfaces.

    A propagator moves a :class:`~l1muon_reco.state.FreeTrajectoryState` along
    its trajectory, in a fixed :class:`PropagationDirection`, until it lies on
    a target :class:`~l1muon_reco.surfaces.Surface`. Concrete propagators
    implement :meth:`_propagate_to_plane` and :meth:`_propagate_to_cylinder`;
    :meth:`propagate` dispatches on the surface type.

    **Contract.**

    - Deterministic for fixed inputs.
    - "Surface not reached" is an ordinary outcome and is returned as an
      Invalid :class:`~l1muon_reco.state.TrajectoryStateOnSurface`, never
      raised.
    - Numerical or field failures raised during the solve
      (:class:`ArithmeticError`, :class:`ValueError`) are folded into an
      Invalid result as well.
    - Propagators hold no per-call state, so one instance can serve every
      track and surface of an event.

    Parameters
    ----------
    direction : PropagationDirection, optional
        Sense of travel; ``ALONG_MOMENTUM`` by default.

    Attributes
    ----------
    direction : PropagationDirection
        Sense of travel.
    log : logging.Logger
        Logger named after the concrete class.
    """
    __slots__ = ("direction", "log", "__dict__")

    def __init__(self, direction: PropagationDirection = PropagationDirection.ALONG_MOMENTUM):
        self.direction = PropagationDirection(direction)
        self.log = logging.getLogger(self.__class__.__name__)

    def propagate(self, state: FreeTrajectoryState, surface: Surface) -> TrajectoryStateOnSurface:
        r"""
        Propagate ``state`` to ``surface``.

        Parameters
        ----------
        state : FreeTrajectoryState
            Starting state; not modified.
        surface : Surface
            Target plane or cylinder.

        Returns
        -------
        TrajectoryStateOnSurface
            Valid on-surface state, or Invalid if the surface is not reached
            in this propagator's direction.

        Raises
        ------
        TypeError
            If ``surface`` is neither a :class:`Plane` nor a :class:`Cylinder`.
        """
        if isinstance(surface, Plane):
            step = self._propagate_to_plane
        elif isinstance(surface, Cylinder):
            step = self._propagate_to_cylinder
        else:
            raise TypeError(f"Unsupported surface type: {type(surface).__name__}")

        try:
            return step(state, surface)
        except (ArithmeticError, ValueError) as e:
            self.log.debug("Propagation %s to %r failed: %s", self.direction.value, surface, e)
            return TrajectoryStateOnSurface.invalid(surface)

    @abc.abstractmethod
    def _propagate_to_plane(self, state: FreeTrajectoryState, plane: Plane) -> TrajectoryStateOnSurface:
        ...

    @abc.abstractmethod
    def _propagate_to_cylinder(self, state: FreeTrajectoryState, cylinder: Cylinder) -> TrajectoryStateOnSurface:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(direction={self.direction.name})"
