"""
Pattern Search Refinement
=========================

Derivative-free refinement of barycentric coordinates on a proxy triangle.

The refined base point is the one from which the dense point lies along
the interpolated vertex normal, so that offsetting along the normal
reconstructs it. Coordinates are not clamped to the triangle.
"""

import numpy as np
from typing import Tuple

from .geometry import normalized

INITIAL_STEP = 0.025


def error_measure(point: np.ndarray, u: float, v: float,
                  a: np.ndarray, b: np.ndarray, c: np.ndarray,
                  na: np.ndarray, nb: np.ndarray, nc: np.ndarray) -> float:
    """
    Misalignment between the offset direction and the interpolated normal.

    Computes |n x (p - point)|^2 where p = u*a + v*b + w*c is the base point
    and n the renormalized blend of the corner normals. The displacement is
    not normalized: the farther a point lies from its base triangle, the
    more its direction error counts.

    Args:
        point: Dense-mesh point
        u, v: Barycentric weights of a and b (w = 1 - u - v)
        a, b, c: Triangle corners
        na, nb, nc: Corner normals

    Returns:
        Squared length of the cross product
    """
    w = 1.0 - u - v
    p = u * a + v * b + w * c
    n = normalized(u * na + v * nb + w * nc)
    cross = np.cross(n, p - point)
    return float(np.dot(cross, cross))


def pattern_search(u_init: float, v_init: float, point: np.ndarray,
                   a: np.ndarray, b: np.ndarray, c: np.ndarray,
                   na: np.ndarray, nb: np.ndarray, nc: np.ndarray,
                   min_step: float = 1e-6, max_iter: int = 100) -> Tuple[float, float, float]:
    """
    Minimize error_measure over (u, v) with a coordinate pattern search.

    Each iteration probes u - step, u + step, v - step and v + step and moves
    to the best probe if it improves on the current error; otherwise the
    step is halved. See https://en.wikipedia.org/wiki/Pattern_search_(optimization)

    Args:
        u_init, v_init: Starting barycentric weights of a and b
        point: Dense-mesh point
        a, b, c: Triangle corners
        na, nb, nc: Corner normals
        min_step: Stop once the step falls below this size
        max_iter: Maximum number of iterations

    Returns:
        Barycentric coordinates (u, v, 1 - u - v), not clamped
    """
    u = u_init
    v = v_init
    step = INITIAL_STEP
    error = error_measure(point, u, v, a, b, c, na, nb, nc)

    for _ in range(max_iter):
        best = None
        for du, dv in ((-step, 0.0), (step, 0.0), (0.0, -step), (0.0, step)):
            probe = error_measure(point, u + du, v + dv, a, b, c, na, nb, nc)
            if probe < error:
                error = probe
                best = (u + du, v + dv)

        if best is None:
            step *= 0.5
            if step < min_step:
                break
        else:
            u, v = best

    return u, v, 1.0 - u - v
