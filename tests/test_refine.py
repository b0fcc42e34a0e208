import numpy as np
import pytest

import proxymesh.refine as ps
from proxymesh import error_measure, pattern_search

A = np.array([0.0, 0.0, 0.0])
B = np.array([1.0, 0.0, 0.0])
C = np.array([0.0, 1.0, 0.0])
UP = np.array([0.0, 0.0, 1.0])
FLAT = (A, B, C, UP, UP, UP)


def test_error_vanishes_along_the_normal():
    # u = 0.2, v = 0.3 puts the base point at (0.3, 0.5, 0)
    point = np.array([0.3, 0.5, 0.7])
    assert error_measure(point, 0.2, 0.3, *FLAT) == pytest.approx(0.0)


def test_error_is_squared_lateral_displacement():
    point = np.array([0.4, 0.5, 0.7])
    assert error_measure(point, 0.2, 0.3, *FLAT) == pytest.approx(0.01)

    far = np.array([0.4, 0.5, 7.0])
    assert error_measure(far, 0.2, 0.3, *FLAT) == pytest.approx(0.01)


def test_normals_are_renormalized():
    point = np.array([0.4, 0.5, 0.7])
    long_normals = (A, B, C, 3 * UP, 3 * UP, 3 * UP)
    assert error_measure(point, 0.2, 0.3, *long_normals) == \
        pytest.approx(error_measure(point, 0.2, 0.3, *FLAT))


def test_converges_on_flat_triangle():
    point = np.array([0.3, 0.5, 0.2])

    u, v, w = pattern_search(1 / 3, 1 / 3, point, *FLAT, max_iter=1000)

    assert u == pytest.approx(0.2, abs=1e-4)
    assert v == pytest.approx(0.3, abs=1e-4)
    assert u + v + w == pytest.approx(1.0)


def test_coordinates_are_not_clamped():
    # The point lies above (1.0, 0.5), outside the triangle
    point = np.array([1.0, 0.5, 0.3])

    u, v, w = pattern_search(0.0, 0.75, point, *FLAT, max_iter=1000)

    assert u == pytest.approx(-0.5, abs=1e-4)
    assert u < 0.0


def test_never_increases_error():
    rng = np.random.default_rng(11)
    for _ in range(50):
        a, b, c = rng.normal(size=(3, 3))
        n = np.cross(b - a, c - a)
        n /= np.linalg.norm(n)
        na, nb, nc = (n + 0.3 * rng.normal(size=3) for _ in range(3))
        point = (a + b + c) / 3 + rng.normal(size=3) * 0.5
        u0, v0 = rng.uniform(0.0, 0.5, size=2)

        u, v, _ = pattern_search(u0, v0, point, a, b, c, na, nb, nc)

        assert error_measure(point, u, v, a, b, c, na, nb, nc) <= \
            error_measure(point, u0, v0, a, b, c, na, nb, nc)


def test_zero_iterations_returns_start():
    point = np.array([0.9, 0.9, 0.3])
    assert pattern_search(0.2, 0.3, point, *FLAT, max_iter=0) == pytest.approx((0.2, 0.3, 0.5))


def test_iteration_limit_bounds_work(monkeypatch):
    calls = []
    original = ps.error_measure

    def counting(*args):
        calls.append(args)
        return original(*args)

    monkeypatch.setattr(ps, "error_measure", counting)
    point = np.array([0.9, 0.9, 0.3])

    ps.pattern_search(1 / 3, 1 / 3, point, *FLAT, max_iter=5)

    # One initial evaluation plus four probes per iteration
    assert len(calls) == 1 + 4 * 5


def test_refine_module_is_reachable_from_package():
    import proxymesh

    assert proxymesh.refine is ps
    assert proxymesh.pattern_search is ps.pattern_search
    assert proxymesh.error_measure is ps.error_measure


def test_stops_when_step_is_small():
    point = np.array([0.3, 0.5, 0.2])
    # Starting at the optimum: every probe is worse, so only halvings happen
    u, v, w = pattern_search(0.2, 0.3, point, *FLAT, min_step=0.01, max_iter=1000)
    assert (u, v) == (0.2, 0.3)
