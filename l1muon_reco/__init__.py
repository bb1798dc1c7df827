__all__ = [
    "MagneticField", "UniformMagneticField",
    "Track", "FreeTrajectoryState", "TrajectoryStateOnSurface",
    "InvalidStateError", "build_free_state",
    "Surface", "Plane", "Cylinder", "build_plane", "build_cylinder",
    "Propagator", "PropagationDirection",
    "StraightLinePropagator", "straight_line_pair",
    "extrapolate", "MuonExtrapolator", "TrackExtrapolation",
    "SurfaceKind", "SurfaceSpec", "REFERENCE_SURFACES",
    "polar_coordinates", "extrapolation_table",
    "tracks_from_frame", "load_tracks",
    "ExtrapolationConfig", "load_config",
]

# Field models
from .field import MagneticField, UniformMagneticField

# Trajectory states
from .state import (
    Track,
    FreeTrajectoryState,
    TrajectoryStateOnSurface,
    InvalidStateError,
    build_free_state,
)

# Surfaces
from .surfaces import Surface, Plane, Cylinder, build_plane, build_cylinder

# Propagators
from .propagators.propagator import Propagator, PropagationDirection
from .propagators.straight_line import StraightLinePropagator, straight_line_pair

# Extrapolation
from .extrapolation import (
    extrapolate,
    MuonExtrapolator,
    TrackExtrapolation,
    SurfaceKind,
    SurfaceSpec,
    REFERENCE_SURFACES,
)

# Downstream summary
from .summary import polar_coordinates, extrapolation_table

# Data & configuration
from .data import tracks_from_frame, load_tracks
from .config import ExtrapolationConfig, load_config
