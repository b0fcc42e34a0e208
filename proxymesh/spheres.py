"""
Bounding Spheres
================

One enclosing sphere per proxy triangle, used to prune the
nearest-triangle search of the detail mapper.
"""

import numpy as np
from typing import NamedTuple, Tuple

from .geometry import as_points, as_triangles


class Sphere(NamedTuple):
    center: np.ndarray
    radius: float


def bounding_sphere(a: np.ndarray, b: np.ndarray, c: np.ndarray,
                    radius_enlargement: float = 1e-6) -> Sphere:
    """
    Compute a sphere containing the three corners of a triangle.

    The three diametral spheres over the edges ab, bc and ca are tried in
    turn; the first one that also contains the opposite corner is used.
    Otherwise the triangle is acute and its circumsphere is returned.

    Args:
        a, b, c: Triangle corners
        radius_enlargement: Added to the radius to absorb rounding error

    Returns:
        Sphere with center and radius
    """
    for p, q, r in ((a, b, c), (b, c, a), (c, a, b)):
        center = 0.5 * (p + q)
        diameter2 = np.dot(p - q, p - q)
        # |r - center| < |p - q| / 2  <=>  4 |r - center|^2 < |p - q|^2
        if 4.0 * np.dot(r - center, r - center) < diameter2:
            return Sphere(center, 0.5 * np.sqrt(diameter2) + radius_enlargement)

    # Circumcenter from squared edge lengths opposite to each corner
    a2 = np.dot(c - b, c - b)
    b2 = np.dot(a - c, a - c)
    c2 = np.dot(b - a, b - a)
    wa = a2 * (b2 + c2 - a2)
    wb = b2 * (c2 + a2 - b2)
    wc = c2 * (a2 + b2 - c2)
    total = wa + wb + wc
    if total <= 0.0:
        # Collinear or coincident corners
        center = (a + b + c) / 3.0
        radius = max(np.linalg.norm(a - center), np.linalg.norm(b - center),
                     np.linalg.norm(c - center))
        return Sphere(center, radius + radius_enlargement)

    center = (wa * a + wb * b + wc * c) / total
    return Sphere(center, np.linalg.norm(a - center) + radius_enlargement)


def build_spheres(points, triangles,
                  radius_enlargement: float = 1e-6) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute one bounding sphere per triangle.

    Args:
        points: (N, 3) vertex positions
        triangles: (M, 3) face indices
        radius_enlargement: Added to every radius

    Returns:
        Tuple of ((M, 3) centers, (M,) radii)
    """
    points = as_points(points)
    triangles = as_triangles(triangles, len(points))

    centers = np.zeros((len(triangles), 3))
    radii = np.zeros(len(triangles))
    for i, (ia, ib, ic) in enumerate(triangles):
        sphere = bounding_sphere(points[ia], points[ib], points[ic], radius_enlargement)
        centers[i] = sphere.center
        radii[i] = sphere.radius

    return centers, radii
