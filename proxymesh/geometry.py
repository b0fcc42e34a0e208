"""
Geometry Primitives
===================

Triangle records, array coercion and small vector helpers shared by the
simplifier and the detail mapper.
"""

import numpy as np
from typing import NamedTuple, Tuple
import trimesh

from .exceptions import InvalidGeometry


class Triangle(NamedTuple):
    """Three vertex indices of a triangle."""
    a: int
    b: int
    c: int


def as_points(points, name: str = "points") -> np.ndarray:
    """
    Coerce a point list into a float64 (N, 3) array.

    Args:
        points: Sequence of 3D points or (N, 3) array
        name: Name used in error messages

    Returns:
        (N, 3) float64 array
    """
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise InvalidGeometry(f"{name} must have shape (N, 3), got {arr.shape}")
    return arr


def as_triangles(triangles, n_points: int) -> np.ndarray:
    """
    Coerce a triangle index list into an int64 (M, 3) array.

    Args:
        triangles: Sequence of index triples or (M, 3) array
        n_points: Number of points the indices refer to

    Returns:
        (M, 3) int64 array
    """
    arr = np.asarray(triangles, dtype=np.int64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.int64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise InvalidGeometry(f"triangles must have shape (M, 3), got {arr.shape}")
    if arr.min() < 0 or arr.max() >= n_points:
        raise InvalidGeometry(
            f"triangle indices must lie in [0, {n_points}), "
            f"got range [{arr.min()}, {arr.max()}]"
        )
    return arr


def face_normal(v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> np.ndarray:
    """Unnormalized face normal (e1 x e2)."""
    return np.cross(v1 - v0, v2 - v0)


DEGENERATE_NORMAL_LENGTH = 1e-12


def is_degenerate(face, v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> bool:
    """
    Check whether a face is degenerate.

    A face is degenerate when two of its indices coincide or its corners are
    collinear, i.e. the cross product of its edges is (numerically) the zero
    vector.
    """
    if face[0] == face[1] or face[1] == face[2] or face[0] == face[2]:
        return True
    return np.linalg.norm(face_normal(v0, v1, v2)) < DEGENERATE_NORMAL_LENGTH


def vertex_normals(points, triangles) -> np.ndarray:
    """
    Compute unit vertex normals of a triangle mesh.

    Normals are taken from trimesh, which averages the incident face normals.
    Vertices without incident faces get a zero normal.

    Args:
        points: (N, 3) vertex positions
        triangles: (M, 3) face indices

    Returns:
        (N, 3) array of vertex normals
    """
    points = as_points(points)
    triangles = as_triangles(triangles, len(points))
    mesh = trimesh.Trimesh(vertices=points, faces=triangles, process=False)
    return np.array(mesh.vertex_normals, dtype=np.float64)


def normalized(v: np.ndarray) -> np.ndarray:
    """Return v / |v|, or v unchanged when it has zero length."""
    length = np.linalg.norm(v)
    if length == 0.0:
        return v
    return v / length


def barycentric_blend(uvw: Tuple[float, float, float],
                      a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Blend three corner quantities with barycentric weights."""
    u, v, w = uvw
    return u * a + v * b + w * c
