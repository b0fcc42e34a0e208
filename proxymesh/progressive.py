"""
Progressive Mesh
================

Replays the vertex-split records of a simplification run to refine the
proxy mesh back towards the original, one split at a time.
"""

import logging
import numpy as np
from collections import defaultdict
from typing import Dict, List, Tuple

from .geometry import Triangle
from .contraction import SimplifiedMesh, VertexSplit

logger = logging.getLogger(__name__)


class ProgressiveMesh:
    """
    A base mesh plus a stack of vertex splits.

    Splits are applied in the order they are stored, which reverses the
    contractions starting from the last one. Applying split k reintroduces
    the vertex with id base_vertex_count + k.
    """

    def __init__(self, simplified: SimplifiedMesh):
        self._points: List[np.ndarray] = [p.copy() for p in simplified.points]
        self._faces: List[List[int]] = [list(map(int, f)) for f in simplified.triangles]
        self._splits: List[VertexSplit] = list(simplified.splits)
        self._applied = 0

        self._face_lookup: Dict[Tuple[int, int, int], List[int]] = defaultdict(list)
        for fi, face in enumerate(self._faces):
            self._face_lookup[tuple(face)].append(fi)

    @property
    def vertex_count(self) -> int:
        return len(self._points)

    @property
    def face_count(self) -> int:
        return len(self._faces)

    @property
    def remaining_splits(self) -> int:
        return len(self._splits) - self._applied

    def refine(self, count: int = 1) -> int:
        """
        Apply the next vertex splits.

        Args:
            count: Number of splits to apply

        Returns:
            Number of splits actually applied
        """
        applied = 0
        while applied < count and self._applied < len(self._splits):
            self._apply(self._splits[self._applied])
            self._applied += 1
            applied += 1
        return applied

    def refine_to(self, face_count: int) -> int:
        """Apply splits until the mesh has at least face_count faces."""
        applied = 0
        while self.face_count < face_count and self.remaining_splits > 0:
            applied += self.refine(1)
        return applied

    def _apply(self, split: VertexSplit):
        if split.t != len(self._points):
            raise ValueError(
                f"split reintroduces vertex {split.t}, expected {len(self._points)}"
            )

        self._points[split.s] = split.s_position.copy()
        self._points.append(split.t_position.copy())

        for face in split.faces:
            contracted = tuple(split.s if vi == split.t else vi for vi in face)
            if split.s in face:
                # Removed by the contraction; restore it
                self._add_face(face)
                continue

            candidates = self._face_lookup.get(contracted)
            if candidates:
                fi = candidates.pop()
                self._faces[fi] = list(face)
                self._face_lookup[tuple(face)].append(fi)
            else:
                logger.debug("Split of vertex %d found no face %s to re-attribute",
                             split.s, contracted)
                self._add_face(face)

    def _add_face(self, face: Triangle):
        self._face_lookup[tuple(face)].append(len(self._faces))
        self._faces.append(list(face))

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return the current (points, triangles) arrays."""
        points = np.array(self._points, dtype=np.float64).reshape(-1, 3)
        triangles = np.array(self._faces, dtype=np.int64).reshape(-1, 3)
        return points, triangles
