import numpy as np
import pytest

from proxymesh import closest_point_on_triangle

A = np.array([0.0, 0.0, 0.0])
B = np.array([1.0, 0.0, 0.0])
C = np.array([0.0, 1.0, 0.0])


@pytest.mark.parametrize("point, d2, uvw", [
    # interior
    ([0.25, 0.25, 1.0], 1.0, (0.5, 0.25, 0.25)),
    # edge ab
    ([0.5, -1.0, 0.0], 1.0, (0.5, 0.5, 0.0)),
    # edge bc
    ([1.0, 1.0, 0.0], 0.5, (0.0, 0.5, 0.5)),
    # edge ca
    ([-1.0, 0.5, 0.0], 1.0, (0.5, 0.0, 0.5)),
    # vertex a
    ([-1.0, -1.0, 0.0], 2.0, (1.0, 0.0, 0.0)),
    # vertex b
    ([2.0, -0.5, 0.0], 1.25, (0.0, 1.0, 0.0)),
    # vertex c
    ([-0.5, 2.0, 0.0], 1.25, (0.0, 0.0, 1.0)),
])
def test_regions(point, d2, uvw):
    result = closest_point_on_triangle(np.array(point), A, B, C)

    assert result[0] == pytest.approx(d2)
    np.testing.assert_allclose(result[1:], uvw, atol=1e-12)


def test_point_on_triangle_has_zero_distance():
    d2, u, v, w = closest_point_on_triangle(np.array([0.2, 0.3, 0.0]), A, B, C)

    assert d2 == pytest.approx(0.0)
    np.testing.assert_allclose((u, v, w), (0.5, 0.2, 0.3))


def test_matches_dense_sampling():
    rng = np.random.default_rng(3)
    a, b, c = rng.normal(size=(3, 3))

    # Dense barycentric grid over the triangle
    s = np.linspace(0.0, 1.0, 201)
    S, T = np.meshgrid(s, s)
    mask = S + T <= 1.0
    samples = a + S[mask, None] * (b - a) + T[mask, None] * (c - a)

    for point in rng.normal(size=(100, 3)) * 2.0:
        d2, u, v, w = closest_point_on_triangle(point, a, b, c)

        assert min(u, v, w) >= -1e-12
        assert u + v + w == pytest.approx(1.0)
        closest = u * a + v * b + w * c
        assert np.dot(point - closest, point - closest) == pytest.approx(d2, abs=1e-12)

        brute = np.min(np.sum((samples - point) ** 2, axis=1))
        assert d2 <= brute + 1e-12


def test_degenerate_triangle_returns_corner():
    point = np.array([1.0, 2.0, 3.0])
    d2, u, v, w = closest_point_on_triangle(point, A, A, A)

    assert d2 == pytest.approx(14.0)
    assert (u, v, w) == (1.0, 0.0, 0.0)
