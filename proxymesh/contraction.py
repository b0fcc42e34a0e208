"""
Pair Contraction Simplifier
===========================

Reduces a dense triangle mesh to a coarse proxy mesh by iteratively
contracting the least-cost vertex pair, using Quadric Error Metrics
with an indexed priority queue.
"""

import logging
import numpy as np
from typing import Callable, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field
import trimesh
from scipy.spatial import cKDTree

from .geometry import Triangle, as_points, as_triangles
from .pair_queue import ContractionPair, PairKey, PairQueue, pair_key
from .qem import QuadricErrorMetrics

logger = logging.getLogger(__name__)

# Marks the slot of the removed vertex in a pending split record.
SPLIT_SENTINEL = -1


@dataclass(frozen=True)
class VertexSplit:
    """
    Reverses one pair contraction of a progressive mesh.

    Attributes:
        s: Id of the vertex that survived the contraction
        t: Id reintroduced for the removed vertex
        s_position: Position of s before the contraction
        t_position: Position of the removed vertex before the contraction
        faces: Faces of the removed vertex before the contraction, with its
               slot set to t
    """
    s: int
    t: int
    s_position: np.ndarray
    t_position: np.ndarray
    faces: Tuple[Triangle, ...]


@dataclass
class _PendingSplit:
    removed: int
    s: int
    s_position: np.ndarray
    t_position: np.ndarray
    faces: List[Tuple[int, int, int]]


@dataclass
class SimplifiedMesh:
    """Result of a simplification run."""
    points: np.ndarray
    triangles: np.ndarray
    splits: List[VertexSplit] = field(default_factory=list)

    def to_trimesh(self) -> trimesh.Trimesh:
        """Wrap the proxy mesh in a trimesh object without merging anything."""
        return trimesh.Trimesh(vertices=self.points, faces=self.triangles, process=False)


class PairContraction:
    """
    Mesh simplification by pair contraction (Garland & Heckbert).

    Implements iterative pair contraction with:
    - Edge pairs plus optional distance-threshold pairs
    - Indexed priority queue with local cost updates
    - Strict or permissive handling of degenerate faces
    - Optional vertex-split records for progressive meshes
    """

    def __init__(self, distance_threshold: float = 0.0, strict: bool = True):
        """
        Initialize the simplifier.

        Args:
            distance_threshold: Vertices closer than this form contraction
                                pairs even without a shared edge (0 disables)
            strict: Raise InvalidGeometry on degenerate faces; otherwise
                    drop them with a warning
        """
        self.distance_threshold = distance_threshold
        self.strict = strict
        self.qem = QuadricErrorMetrics(strict=strict)

        # State variables (initialized per run)
        self._vertices: Optional[np.ndarray] = None
        self._faces: Optional[List[List[int]]] = None
        self._quadrics: Optional[np.ndarray] = None
        self._deleted_vertices: Optional[Set[int]] = None
        self._deleted_faces: Optional[Set[int]] = None
        self._vertex_faces: Optional[Dict[int, Set[int]]] = None
        self._vertex_pairs: Optional[Dict[int, Set[PairKey]]] = None
        self._queue: Optional[PairQueue] = None
        self._emit_split_records = False
        self._removed_order: Optional[List[int]] = None
        self._pending_splits: Optional[List[_PendingSplit]] = None
        self._contraction_history: Optional[List[dict]] = None

    def simplify(self, points, triangles, target_face_count: int,
                 emit_split_records: bool = False,
                 progress_callback: Optional[Callable[[float], None]] = None) -> SimplifiedMesh:
        """
        Simplify the mesh until it has at most target_face_count faces.

        Args:
            points: (N, 3) vertex positions
            triangles: (M, 3) face indices
            target_face_count: Stop once the face count is not above this
            emit_split_records: Record VertexSplit entries for a progressive mesh
            progress_callback: Optional callback for progress updates

        Returns:
            SimplifiedMesh with compacted points, triangles and split records
        """
        if target_face_count < 0:
            raise ValueError(f"target_face_count must be >= 0, got {target_face_count}")

        points = as_points(points)
        triangles = as_triangles(triangles, len(points))

        if target_face_count >= len(triangles):
            return SimplifiedMesh(points.copy(), triangles.copy(), [])

        self.prepare(points, triangles, emit_split_records)

        initial_faces = self.face_count
        faces_to_remove = initial_faces - target_face_count
        logger.info("Starting simplification: %d -> %d faces", initial_faces, target_face_count)

        contractions = 0
        last_progress = 0.0

        while self.face_count > target_face_count:
            if self.step() is None:
                logger.debug("No more valid pairs to contract")
                break

            contractions += 1
            if progress_callback is not None:
                progress = (initial_faces - self.face_count) / max(1, faces_to_remove)
                if progress - last_progress >= 0.05:
                    progress_callback(min(1.0, progress))
                    last_progress = progress

        logger.info("Simplification complete: %d faces, %d contractions",
                    self.face_count, contractions)

        return self.build_mesh()

    def prepare(self, points, triangles, emit_split_records: bool = False):
        """
        Initialize quadrics, incidence sets and the pair queue.

        After this call the mesh can be reduced one contraction at a time
        with step().
        """
        points = as_points(points)
        triangles = as_triangles(triangles, len(points))

        self._vertices = points.copy()
        self._faces = [list(map(int, f)) for f in triangles]
        self._deleted_vertices = set()
        self._deleted_faces = set()
        self._emit_split_records = emit_split_records
        self._removed_order = []
        self._pending_splits = []
        self._contraction_history = []

        # Degenerate faces never enter the arena's live set
        self._quadrics, kept = self.qem.compute_vertex_quadrics(self._vertices, triangles)
        self._deleted_faces = set(range(len(self._faces))) - set(kept)

        self._vertex_faces = {i: set() for i in range(len(self._vertices))}
        self._vertex_pairs = {i: set() for i in range(len(self._vertices))}
        for fi in kept:
            for vi in self._faces[fi]:
                self._vertex_faces[vi].add(fi)

        self._queue = PairQueue()
        self._initialize_pairs(kept)

    def _initialize_pairs(self, kept: List[int]):
        """Build the candidate pair set: mesh edges plus close vertex pairs."""
        for fi in kept:
            s = sorted(self._faces[fi])
            for key in ((s[0], s[1]), (s[0], s[2]), (s[1], s[2])):
                self._add_pair(key)

        if self.distance_threshold > 0:
            tree = cKDTree(self._vertices)
            for i, j in sorted(tree.query_pairs(self.distance_threshold)):
                if np.linalg.norm(self._vertices[i] - self._vertices[j]) < self.distance_threshold:
                    self._add_pair(pair_key(i, j))

    def _add_pair(self, key: PairKey):
        if key in self._queue:
            return
        self._queue.push(self._compute_pair(*key))
        self._vertex_pairs[key[0]].add(key)
        self._vertex_pairs[key[1]].add(key)

    def _compute_pair(self, s: int, t: int) -> ContractionPair:
        """Compute the optimal target and cost for contracting s and t."""
        target, cost = self.qem.compute_pair_contraction(
            self._quadrics[s], self._quadrics[t],
            self._vertices[s], self._vertices[t]
        )
        return ContractionPair(s, t, target, cost)

    def step(self) -> Optional[ContractionPair]:
        """
        Contract the least-cost pair.

        Returns:
            The contracted pair, or None when no pair is left
        """
        pair = self._queue.pop()
        if pair is None:
            return None
        self._contract(pair)
        return pair

    def _contract(self, pair: ContractionPair):
        """
        Contract a pair: v1 is kept and moved to the target, v2 is deleted.

        Faces shared by v1 and v2 degenerate and are removed; every other
        reference to v2 is rewritten to v1.
        """
        v1, v2 = pair.v1, pair.v2

        if self._emit_split_records:
            self._add_split_record(v1, v2)

        self._contraction_history.append({
            'pair': (v1, v2),
            'cost': pair.cost,
            'target': pair.target.copy()
        })

        self._vertices[v1] = pair.target
        self._quadrics[v1] = self._quadrics[v1] + self._quadrics[v2]

        faces_of_v1 = self._vertex_faces[v1]
        faces_of_v2 = self._vertex_faces.pop(v2)
        degenerated = faces_of_v1 & faces_of_v2

        for fi in faces_of_v2 - degenerated:
            face = self._faces[fi]
            for i in range(3):
                if face[i] == v2:
                    face[i] = v1
            faces_of_v1.add(fi)

        for fi in degenerated:
            for vi in self._faces[fi]:
                if vi != v2:
                    self._vertex_faces[vi].discard(fi)
            self._deleted_faces.add(fi)

        self._deleted_vertices.add(v2)

        # Rename v2 -> v1 in every pair touching either vertex and recompute
        affected = self._vertex_pairs[v1] | self._vertex_pairs.pop(v2)
        renamed = set()
        for key in affected:
            self._queue.remove(key)
            s, t = (v1 if vi == v2 else vi for vi in key)
            if s == t:
                continue
            new_key = pair_key(s, t)
            other = s if t == v1 else t
            self._vertex_pairs[other].discard(key)
            self._vertex_pairs[other].add(new_key)
            renamed.add(new_key)

        self._vertex_pairs[v1] = renamed
        for key in sorted(renamed):
            self._queue.push(self._compute_pair(*key))

    def _add_split_record(self, v1: int, v2: int):
        """Record the pre-contraction state needed to split v1 back into v1 and v2."""
        self._removed_order.append(v2)
        faces = []
        for fi in sorted(self._vertex_faces[v2]):
            faces.append(tuple(SPLIT_SENTINEL if vi == v2 else vi for vi in self._faces[fi]))
        self._pending_splits.append(_PendingSplit(
            removed=v2,
            s=v1,
            s_position=self._vertices[v1].copy(),
            t_position=self._vertices[v2].copy(),
            faces=faces
        ))

    @property
    def face_count(self) -> int:
        """Number of live faces."""
        return len(self._faces) - len(self._deleted_faces)

    @property
    def pair_count(self) -> int:
        """Number of queued contraction pairs."""
        return len(self._queue)

    def live_vertices(self) -> List[int]:
        """Ids of the vertices that have not been contracted away."""
        return [i for i in range(len(self._vertices)) if i not in self._deleted_vertices]

    def live_faces(self) -> List[Triangle]:
        """Live faces, in terms of the original (uncompacted) vertex ids."""
        return [Triangle(*self._faces[fi]) for fi in range(len(self._faces))
                if fi not in self._deleted_faces]

    def vertex_position(self, v: int) -> np.ndarray:
        return self._vertices[v].copy()

    def vertex_quadric(self, v: int) -> np.ndarray:
        return self._quadrics[v].copy()

    def incident_faces(self, v: int) -> Set[int]:
        return set(self._vertex_faces.get(v, ()))

    def incident_pairs(self, v: int) -> Set[PairKey]:
        return set(self._vertex_pairs.get(v, ()))

    def build_mesh(self) -> SimplifiedMesh:
        """
        Build the output mesh from the current state.

        Surviving vertices are compacted to 0..M-1 in id order. With split
        records, removed vertices get the ids M, M+1, ... starting from the
        most recently removed one, and the records are resolved against
        that completed mapping.
        """
        survivors = self.live_vertices()
        vertex_remap = {old: new for new, old in enumerate(survivors)}

        points = self._vertices[survivors] if survivors else np.zeros((0, 3))
        active_faces = [[vertex_remap[vi] for vi in face] for face in self.live_faces()]
        triangles = np.array(active_faces, dtype=np.int64) if active_faces \
            else np.zeros((0, 3), dtype=np.int64)

        splits = []
        if self._emit_split_records:
            # First pass: reserve ids for the vertices the splits reintroduce
            next_id = len(survivors)
            for removed in reversed(self._removed_order):
                vertex_remap[removed] = next_id
                next_id += 1

            # Second pass: resolve the sentinel slots
            for pending in reversed(self._pending_splits):
                t = vertex_remap[pending.removed]
                faces = tuple(
                    Triangle(*(t if vi == SPLIT_SENTINEL else vertex_remap[vi] for vi in face))
                    for face in pending.faces
                )
                splits.append(VertexSplit(
                    s=vertex_remap[pending.s],
                    t=t,
                    s_position=pending.s_position,
                    t_position=pending.t_position,
                    faces=faces
                ))

        return SimplifiedMesh(points=points, triangles=triangles, splits=splits)

    def get_contraction_history(self) -> List[dict]:
        """Get the history of pair contractions performed."""
        return self._contraction_history.copy() if self._contraction_history else []

    def get_vertex_errors(self, points, triangles) -> np.ndarray:
        """
        Compute the quadric error at each vertex of a mesh.

        Useful for error visualization after simplification.
        """
        points = as_points(points)
        triangles = as_triangles(triangles, len(points))
        quadrics, _ = QuadricErrorMetrics(strict=False).compute_vertex_quadrics(points, triangles)

        errors = np.zeros(len(points))
        for i, (v, Q) in enumerate(zip(points, quadrics)):
            errors[i] = self.qem.compute_error(Q, v)

        return errors


def compute_initial_quadrics(points, triangles, strict: bool = True) -> np.ndarray:
    """
    Per-vertex quadrics of a mesh before any contraction.

    Args:
        points: (N, 3) vertex positions
        triangles: (M, 3) face indices
        strict: Raise on degenerate faces instead of dropping them

    Returns:
        (N, 4, 4) array of vertex quadrics
    """
    points = as_points(points)
    triangles = as_triangles(triangles, len(points))
    quadrics, _ = QuadricErrorMetrics(strict=strict).compute_vertex_quadrics(points, triangles)
    return quadrics


def simplify(points, triangles, target_face_count: int,
             emit_split_records: bool = False, distance_threshold: float = 0.0,
             strict: bool = True) -> SimplifiedMesh:
    """Functional wrapper around PairContraction.simplify."""
    return PairContraction(distance_threshold=distance_threshold, strict=strict).simplify(
        points, triangles, target_face_count, emit_split_records
    )
