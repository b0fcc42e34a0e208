"""
Low-to-High Resolution Mapper
=============================

Maps every point of a dense mesh onto a coarse proxy mesh so that the
dense mesh can be rebuilt from the proxy after the proxy has deformed.

Each dense point is assigned to a proxy triangle. The barycentric
coordinates of its base point on that triangle and an offset along the
interpolated vertex normal are frozen at construction time; reconstruction
re-evaluates them against the proxy's current positions and normals.
"""

import logging
import math
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .exceptions import NoCandidateTriangle
from .geometry import Triangle, as_points, as_triangles, barycentric_blend, normalized
from .refine import pattern_search
from .projection import closest_point_on_triangle
from .spheres import build_spheres

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointMapping:
    """
    Everything needed to rebuild one dense point from the proxy mesh.

    Attributes:
        triangle_index: Index of the proxy triangle
        triangle: Vertex ids of that triangle
        barycentric: Weights (u, v, w) of its corners; may lie slightly
                     outside [0, 1]
        offset: Signed distance along the interpolated normal
    """
    triangle_index: int
    triangle: Triangle
    barycentric: Tuple[float, float, float]
    offset: float


def evaluate(mapping: PointMapping, points: np.ndarray, normals: np.ndarray) -> np.ndarray:
    """
    Reconstruct a dense point from the current proxy positions and normals.

    Args:
        mapping: Frozen mapping record
        points: (N, 3) current proxy positions
        normals: (N, 3) current proxy normals

    Returns:
        Reconstructed 3D position
    """
    ia, ib, ic = mapping.triangle
    base = barycentric_blend(mapping.barycentric, points[ia], points[ib], points[ic])
    normal = normalized(barycentric_blend(mapping.barycentric,
                                          normals[ia], normals[ib], normals[ic]))
    return base + mapping.offset * normal


class LowToHighMapper:
    """
    Mapping from a proxy (low resolution) mesh to a dense point set.

    The nearest proxy triangle of each dense point is found with a bounding
    sphere prune and an exact point-triangle distance; the barycentric
    coordinates are then refined by a pattern search so that the offset
    direction matches the interpolated normal, which reduces artifacts when
    the proxy deforms.
    """

    def __init__(self, low_points, low_normals, low_triangles, high_points,
                 min_step: float = 1e-6, max_iter: int = 100,
                 workers: Optional[int] = None):
        """
        Build the mapping of every high resolution point.

        Args:
            low_points: (N, 3) proxy vertex positions at rest
            low_normals: (N, 3) proxy vertex normals at rest
            low_triangles: (M, 3) proxy faces
            high_points: (K, 3) dense points to map
            min_step: Pattern search stopping step
            max_iter: Pattern search iteration limit
            workers: Thread count for construction (None = executor default,
                     1 = no thread pool)
        """
        self.min_step = min_step
        self.max_iter = max_iter
        self.workers = workers

        self._rest_points = as_points(low_points, "low_points")
        self._rest_normals = as_points(low_normals, "low_normals")
        self._triangles = as_triangles(low_triangles, len(self._rest_points))
        if len(self._rest_normals) != len(self._rest_points):
            raise ValueError(
                f"expected {len(self._rest_points)} normals, got {len(self._rest_normals)}"
            )
        if len(self._triangles) == 0:
            raise NoCandidateTriangle("proxy mesh has no triangles to map onto")

        # Bounding spheres as a basic acceleration structure
        self._centers, self._radii = build_spheres(self._rest_points, self._triangles)

        # Buffers used for reconstruction, replaced by update()
        self._points = self._rest_points
        self._normals = self._rest_normals

        high_points = as_points(high_points, "high_points")
        logger.info("Mapping %d points onto %d proxy triangles",
                    len(high_points), len(self._triangles))

        if workers == 1:
            self._mappings = [self.map_point(p) for p in high_points]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                self._mappings = list(pool.map(self.map_point, high_points))

        self._triangle_table = np.array([m.triangle for m in self._mappings],
                                        dtype=np.int64).reshape(-1, 3)
        self._barycentric_table = np.array([m.barycentric for m in self._mappings],
                                           dtype=np.float64).reshape(-1, 3)
        self._offset_table = np.array([m.offset for m in self._mappings], dtype=np.float64)

    @classmethod
    def build_mapping(cls, low_points, low_normals, low_triangles, high_points,
                      **kwargs) -> List[PointMapping]:
        """Compute the mapping records without keeping a mapper around."""
        return cls(low_points, low_normals, low_triangles, high_points, **kwargs).mappings

    @property
    def mappings(self) -> List[PointMapping]:
        return list(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)

    def __getitem__(self, index: int) -> PointMapping:
        return self._mappings[index]

    def find_closest_triangle(self, point: np.ndarray) -> Tuple[int, float, float, float]:
        """
        Find the proxy triangle closest to a point.

        A triangle is skipped when (best_distance + radius)^2 <= |point - center|^2,
        since no point inside its bounding sphere can beat the current best.

        Args:
            point: Query point

        Returns:
            Tuple of (triangle index, squared distance, u, v)
        """
        center_d2 = np.sum((self._centers - point) ** 2, axis=1)

        closest = -1
        closest_dist = math.inf
        closest_d2 = math.inf
        u_best = v_best = 1.0 / 3.0

        for i, (ia, ib, ic) in enumerate(self._triangles):
            bound = closest_dist + self._radii[i]
            if bound * bound <= center_d2[i]:
                continue

            d2, u, v, _ = closest_point_on_triangle(
                point, self._rest_points[ia], self._rest_points[ib], self._rest_points[ic]
            )
            if d2 < closest_d2:
                closest_d2 = d2
                closest_dist = math.sqrt(d2)
                closest = i
                u_best, v_best = u, v

        if closest < 0:
            raise NoCandidateTriangle(f"no proxy triangle found for point {point}")

        return closest, closest_d2, u_best, v_best

    def map_point(self, point) -> PointMapping:
        """
        Compute the mapping of a single dense point.

        Reads only the rest-state proxy buffers and the sphere table, so
        calls for different points can run concurrently.
        """
        point = np.asarray(point, dtype=np.float64)
        index, _, u, v = self.find_closest_triangle(point)

        ia, ib, ic = (int(i) for i in self._triangles[index])
        a, b, c = self._rest_points[ia], self._rest_points[ib], self._rest_points[ic]
        na, nb, nc = self._rest_normals[ia], self._rest_normals[ib], self._rest_normals[ic]

        uvw = pattern_search(u, v, point, a, b, c, na, nb, nc,
                             min_step=self.min_step, max_iter=self.max_iter)

        direction = point - barycentric_blend(uvw, a, b, c)
        normal = barycentric_blend(uvw, na, nb, nc)
        offset = float(np.linalg.norm(direction) * np.sign(np.dot(direction, normal)))

        return PointMapping(index, Triangle(ia, ib, ic), uvw, offset)

    def update(self, points, normals):
        """
        Replace the proxy positions and normals used by reconstruction.

        Typically called once per simulation step with the deformed proxy.
        """
        points = as_points(points, "points")
        normals = as_points(normals, "normals")
        if points.shape != self._points.shape or normals.shape != self._normals.shape:
            raise ValueError(
                f"expected buffers of shape {self._points.shape}, "
                f"got {points.shape} and {normals.shape}"
            )
        self._points = points
        self._normals = normals

    def evaluate(self, mapping: PointMapping, points=None, normals=None) -> np.ndarray:
        """Reconstruct one dense point, by default from the stored proxy buffers."""
        points = self._points if points is None else as_points(points, "points")
        normals = self._normals if normals is None else as_points(normals, "normals")
        return evaluate(mapping, points, normals)

    def high_res_point(self, index: int) -> np.ndarray:
        """Reconstruct the dense point with the given index."""
        return evaluate(self._mappings[index], self._points, self._normals)

    def evaluate_all(self, points=None, normals=None) -> np.ndarray:
        """
        Reconstruct every dense point at once.

        Args:
            points: (N, 3) current proxy positions (default: stored buffers)
            normals: (N, 3) current proxy normals (default: stored buffers)

        Returns:
            (K, 3) reconstructed dense points
        """
        points = self._points if points is None else as_points(points, "points")
        normals = self._normals if normals is None else as_points(normals, "normals")

        bary = self._barycentric_table[:, :, None]
        base = np.sum(bary * points[self._triangle_table], axis=1)
        blended = np.sum(bary * normals[self._triangle_table], axis=1)

        lengths = np.linalg.norm(blended, axis=1, keepdims=True)
        lengths[lengths == 0.0] = 1.0

        return base + self._offset_table[:, None] * (blended / lengths)


def build_mapping(low_points, low_normals, low_triangles, high_points,
                  min_step: float = 1e-6, max_iter: int = 100,
                  workers: Optional[int] = None) -> List[PointMapping]:
    """Compute one PointMapping per high resolution point."""
    return LowToHighMapper.build_mapping(
        low_points, low_normals, low_triangles, high_points,
        min_step=min_step, max_iter=max_iter, workers=workers
    )
