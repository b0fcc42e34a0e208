"""
Quadric Error Metrics (QEM) Implementation
==========================================

Computes plane quadrics, per-vertex error quadrics and optimal
contraction targets for vertex pairs.

Based on: "Surface Simplification Using Quadric Error Metrics"
by Michael Garland and Paul S. Heckbert (SIGGRAPH 1997)
"""

import logging
import numpy as np
from typing import List, Optional, Tuple

from .exceptions import InvalidGeometry
from .geometry import DEGENERATE_NORMAL_LENGTH, is_degenerate

logger = logging.getLogger(__name__)


class QuadricErrorMetrics:
    """
    Implements Quadric Error Metrics for pair contraction.

    The fundamental quadric Kp for a plane ax + by + cz + d = 0 is the 4x4 matrix:
    Kp = p * p^T where p = [a, b, c, d]^T

    The error of a vertex v = [x, y, z, 1]^T with respect to Q is:
    error(v) = v^T * Q * v

    When contracting a pair (v1, v2) -> v_new, the combined quadric is:
    Q_new = Q1 + Q2
    """

    def __init__(self, strict: bool = True, singular_threshold: float = 1e-10):
        """
        Initialize QEM calculator.

        Args:
            strict: Raise InvalidGeometry on degenerate faces instead of
                    dropping them with a warning.
            singular_threshold: Determinant magnitude below which the
                                optimal-target system counts as singular.
        """
        self.strict = strict
        self.singular_threshold = singular_threshold

    def compute_face_plane(self, v0: np.ndarray, v1: np.ndarray,
                           v2: np.ndarray) -> Optional[np.ndarray]:
        """
        Compute the plane equation coefficients for a triangle face.

        The plane equation is: ax + by + cz + d = 0
        where [a, b, c] is the unit normal and d = -dot(normal, v0)

        Args:
            v0, v1, v2: Triangle vertices as 3D points

        Returns:
            Plane coefficients [a, b, c, d], or None for a degenerate face
        """
        normal = np.cross(v1 - v0, v2 - v0)
        norm_length = np.linalg.norm(normal)

        if norm_length < DEGENERATE_NORMAL_LENGTH:
            return None

        normal = normal / norm_length
        d = -np.dot(normal, v0)

        return np.array([normal[0], normal[1], normal[2], d])

    def compute_fundamental_quadric(self, plane: np.ndarray) -> np.ndarray:
        """
        Compute the fundamental error quadric Kp = p * p^T for a plane.
        """
        return np.outer(plane, plane)

    def compute_face_quadrics(self, vertices: np.ndarray,
                              faces) -> Tuple[List[int], List[np.ndarray]]:
        """
        Compute the plane quadric of every non-degenerate face.

        Degenerate faces (repeated indices or collinear corners) raise
        InvalidGeometry in strict mode; otherwise they are logged and left
        out of the result.

        Args:
            vertices: (N, 3) array of vertex positions
            faces: (M, 3) array of face indices

        Returns:
            Tuple of (indices of kept faces, their 4x4 quadrics)
        """
        kept = []
        quadrics = []
        degenerate = 0

        for fi, face in enumerate(faces):
            v0, v1, v2 = vertices[face[0]], vertices[face[1]], vertices[face[2]]
            if is_degenerate(face, v0, v1, v2):
                degenerate += 1
                message = (
                    f"Encountered degenerate face ({face[0]} {face[1]} {face[2]})\n"
                    f"Vertex 1: {v0}\n"
                    f"Vertex 2: {v1}\n"
                    f"Vertex 3: {v2}"
                )
                if self.strict:
                    raise InvalidGeometry(message)
                logger.warning(message)
                continue

            plane = self.compute_face_plane(v0, v1, v2)
            kept.append(fi)
            quadrics.append(self.compute_fundamental_quadric(plane))

        if degenerate:
            logger.warning("Dropped %d degenerate faces", degenerate)

        return kept, quadrics

    def compute_vertex_quadrics(self, vertices: np.ndarray,
                                faces) -> Tuple[np.ndarray, List[int]]:
        """
        Compute initial error quadrics for all vertices.

        For each vertex, the quadric is the sum of fundamental quadrics
        of all non-degenerate faces incident to that vertex.

        Args:
            vertices: (N, 3) array of vertex positions
            faces: (M, 3) array of face indices

        Returns:
            Tuple of ((N, 4, 4) array of vertex quadrics, indices of kept faces)
        """
        quadrics = np.zeros((len(vertices), 4, 4))
        kept, face_quadrics = self.compute_face_quadrics(vertices, faces)

        for fi, Kp in zip(kept, face_quadrics):
            for vi in faces[fi]:
                quadrics[vi] += Kp

        return quadrics, kept

    def compute_optimal_position(self, Q: np.ndarray, v1: np.ndarray,
                                 v2: np.ndarray) -> Tuple[np.ndarray, float]:
        """
        Compute the optimal position for a pair contraction.

        Solves for the position that minimizes v^T * Q * v:
        [Q[0:3, 0:4]] [x]   [0]
        [ 0  0  0  1] [1] = [1]

        If the system is singular, falls back to the cheapest of the two
        endpoints and their midpoint.

        Args:
            Q: Combined 4x4 quadric matrix
            v1, v2: Pair endpoint positions

        Returns:
            Tuple of (optimal_position, error)
        """
        A = Q.copy()
        A[3, :] = [0.0, 0.0, 0.0, 1.0]

        if abs(np.linalg.det(A)) > self.singular_threshold:
            # The target is the last column of A^-1, i.e. A^-1 @ e4.
            v_opt = np.linalg.solve(A, np.array([0.0, 0.0, 0.0, 1.0]))[:3]
            return v_opt, self.compute_error(Q, v_opt)

        candidates = [v1, v2, (v1 + v2) / 2]
        best_pos = v1
        best_error = float('inf')

        for pos in candidates:
            error = self.compute_error(Q, pos)
            if error < best_error:
                best_error = error
                best_pos = pos

        return np.array(best_pos, dtype=np.float64), best_error

    def compute_error(self, Q: np.ndarray, v: np.ndarray) -> float:
        """
        Compute the quadric error v^T * Q * v for v = [x, y, z, 1].
        """
        v_homo = np.array([v[0], v[1], v[2], 1.0])
        return float(v_homo @ Q @ v_homo)

    def compute_pair_contraction(self, Q1: np.ndarray, Q2: np.ndarray,
                                 v1: np.ndarray, v2: np.ndarray) -> Tuple[np.ndarray, float]:
        """
        Compute the target and cost for contracting the pair (v1, v2).

        Args:
            Q1, Q2: Quadrics of the two pair vertices
            v1, v2: Positions of the two pair vertices

        Returns:
            Tuple of (optimal_position, error)
        """
        return self.compute_optimal_position(Q1 + Q2, v1, v2)
