import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import itertools

import numpy as np
import pytest

from l1muon_reco.extrapolation import (
    REFERENCE_SURFACES,
    MuonExtrapolator,
    SurfaceKind,
    SurfaceSpec,
    extrapolate,
)
from l1muon_reco.field import UniformMagneticField
from l1muon_reco.propagators.propagator import PropagationDirection, Propagator
from l1muon_reco.propagators.straight_line import straight_line_pair
from l1muon_reco.state import Track, TrajectoryStateOnSurface, build_free_state
from l1muon_reco.surfaces import build_cylinder, build_plane

FIELD = UniformMagneticField()


class FixedPropagator(Propagator):
    """Returns a fixed Valid position, or Invalid when ``position`` is None."""

    def __init__(self, position=None, direction=PropagationDirection.ALONG_MOMENTUM):
        super().__init__(direction)
        self.position = position
        self.calls = 0

    def _result(self, state, surface):
        self.calls += 1
        if self.position is None:
            return TrajectoryStateOnSurface.invalid(surface)
        return TrajectoryStateOnSurface.valid(self.position, state.momentum, surface)

    _propagate_to_plane = _result
    _propagate_to_cylinder = _result


class ExplodingPropagator(Propagator):
    def propagate(self, state, surface):
        raise AssertionError("opposite propagator must not be called")

    def _propagate_to_plane(self, state, plane):
        raise AssertionError

    def _propagate_to_cylinder(self, state, cylinder):
        raise AssertionError


class FailingFieldPropagator(Propagator):
    """Simulates a field model undefined at the queried point."""

    def _propagate_to_plane(self, state, plane):
        raise FloatingPointError("field undefined")

    def _propagate_to_cylinder(self, state, cylinder):
        raise ValueError("field undefined")


def _state():
    return build_free_state(Track((1.0, 2.0, 3.0), (0.5, 0.5, 10.0), 1), FIELD)


def test_fallback_to_opposite_when_along_fails():
    p = (7.0, 8.0, 790.0)
    along = FixedPropagator(None)
    opposite = FixedPropagator(p, PropagationDirection.OPPOSITE_TO_MOMENTUM)
    tsos = extrapolate(_state(), build_plane(790.0), along, opposite)
    assert tsos.is_valid
    assert np.array_equal(tsos.global_position, p)
    assert along.calls == 1 and opposite.calls == 1


def test_both_invalid_returns_invalid():
    along = FixedPropagator(None)
    opposite = FixedPropagator(None, PropagationDirection.OPPOSITE_TO_MOMENTUM)
    tsos = extrapolate(_state(), build_cylinder(500.0), along, opposite)
    assert not tsos.is_valid
    assert opposite.calls == 1


def test_valid_along_short_circuits_opposite():
    q = (300.0, 400.0, 12.0)
    tsos = extrapolate(_state(), build_cylinder(500.0), FixedPropagator(q), ExplodingPropagator())
    assert tsos.is_valid
    assert np.array_equal(tsos.global_position, q)


def test_capability_failures_fold_into_invalid():
    failing = FailingFieldPropagator()
    assert not extrapolate(_state(), build_plane(790.0), failing, failing).is_valid
    assert not extrapolate(_state(), build_cylinder(500.0), failing, failing).is_valid


def test_determinism():
    along, opposite = straight_line_pair()
    state = _state()
    surface = build_plane(-790.0)
    first = extrapolate(state, surface, along, opposite)
    for _ in range(5):
        again = extrapolate(state, surface, along, opposite)
        assert again.is_valid == first.is_valid
        assert np.allclose(again.global_position, first.global_position)


def test_end_to_end_longitudinal_track_in_zero_field():
    along, opposite = straight_line_pair()
    ex = MuonExtrapolator(FIELD, along, opposite)
    track = Track((0.0, 0.0, 0.0), (0.0, 0.0, 10.0), 1)

    plus = ex.extrapolate_to_plane(track, 790.0)
    assert plus.is_valid
    assert np.allclose(plus.global_position, [0.0, 0.0, 790.0])

    minus = ex.extrapolate_to_plane(track, -790.0)
    assert minus.is_valid
    assert np.allclose(minus.global_position, [0.0, 0.0, -790.0])

    assert not ex.extrapolate_to_cylinder(track, 500.0).is_valid

    res = ex.extrapolate_track(track)
    assert res["me2_p"].is_valid and res["me2_n"].is_valid
    assert not res["mb2"].is_valid
    assert res.n_valid == 2


def test_independence_of_processing_order():
    along, opposite = straight_line_pair()
    ex = MuonExtrapolator(FIELD, along, opposite)
    track_a = Track((0.0, 0.0, 0.0), (3.0, 4.0, 5.0), 1, track_id=1)
    track_b = Track((10.0, -5.0, 2.0), (-1.0, 0.2, -3.0), -1, track_id=2)
    calls = [(t, s) for t in (track_a, track_b) for s in REFERENCE_SURFACES]

    def run(order):
        out = {}
        for track, spec in order:
            tsos = extrapolate(ex.free_state(track), spec.build(), along, opposite)
            out[(track.track_id, spec.name)] = (
                tsos.is_valid, tuple(tsos.global_position) if tsos.is_valid else None
            )
        return out

    reference = run(calls)
    for perm in itertools.islice(itertools.permutations(calls), 0, 720, 97):
        assert run(perm) == reference


def test_process_keeps_order_and_duplicates():
    along, opposite = straight_line_pair()
    ex = MuonExtrapolator(FIELD, along, opposite)
    t = Track((0.0, 0.0, 0.0), (1.0, 0.0, 1.0), 1, track_id=3)
    out = ex.process([t, t])
    assert len(out) == 2
    assert out[0].track is t and out[1].track is t
    assert np.allclose(out[0]["mb2"].global_position, [500.0, 0.0, 500.0])
    assert np.allclose(out[0]["mb2"].global_position, out[1]["mb2"].global_position)


def test_surface_specs():
    assert [s.name for s in REFERENCE_SURFACES] == ["me2_p", "me2_n", "mb2"]
    spec = SurfaceSpec("st", "cylinder", 400)
    assert spec.kind is SurfaceKind.CYLINDER
    assert spec.build().radius == 400.0
    with pytest.raises(ValueError):
        SurfaceSpec("bad", "cylinder", -1.0)
    with pytest.raises(ValueError):
        SurfaceSpec("bad", "sphere", 1.0)


@pytest.mark.parametrize("kind", ["plane", "cylinder"])
@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_surface_spec_rejects_non_finite_values(kind, value):
    with pytest.raises(ValueError, match="finite"):
        SurfaceSpec("bad", kind, value)


def test_extrapolator_rejects_bad_surface_lists():
    along, opposite = straight_line_pair()
    with pytest.raises(ValueError):
        MuonExtrapolator(FIELD, along, opposite, surfaces=[])
    dup = [SurfaceSpec("a", "plane", 1.0), SurfaceSpec("a", "plane", 2.0)]
    with pytest.raises(ValueError):
        MuonExtrapolator(FIELD, along, opposite, surfaces=dup)
