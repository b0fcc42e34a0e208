"""
Utility Functions
=================

Mesh loading, sample mesh creation and trimesh conversion helpers.
"""

import logging
from typing import Optional, Tuple
import numpy as np
import trimesh

from .geometry import vertex_normals
from .contraction import PairContraction, SimplifiedMesh

logger = logging.getLogger(__name__)


def load_mesh(path: str) -> trimesh.Trimesh:
    """
    Load a mesh from file.

    Supports: OBJ, PLY, STL, OFF, and other formats supported by trimesh.

    Args:
        path: Path to mesh file

    Returns:
        Loaded trimesh object
    """
    mesh = trimesh.load(path, force='mesh')

    if isinstance(mesh, trimesh.Scene):
        # Convert scene to single mesh
        meshes = [geom for geom in mesh.geometry.values()
                  if isinstance(geom, trimesh.Trimesh)]
        if not meshes:
            raise ValueError("No valid meshes found in file")
        mesh = trimesh.util.concatenate(meshes)

    return mesh


def save_mesh(mesh: trimesh.Trimesh, path: str):
    """Save a mesh to file."""
    mesh.export(path)
    logger.info("Saved mesh to: %s", path)


def mesh_arrays(mesh: trimesh.Trimesh) -> Tuple[np.ndarray, np.ndarray]:
    """Return (points, triangles) arrays of a trimesh object."""
    return (np.array(mesh.vertices, dtype=np.float64),
            np.array(mesh.faces, dtype=np.int64))


def create_sample_mesh(mesh_type: str = "sphere") -> trimesh.Trimesh:
    """
    Create a sample mesh for testing.

    Args:
        mesh_type: Type of mesh to create:
            - "icosahedron": Unit icosahedron (12 vertices, 20 faces)
            - "sphere": Icosphere
            - "torus": Torus
            - "cube": Subdivided cube
            - "cylinder": Cylinder

    Returns:
        Generated trimesh object
    """
    if mesh_type == "icosahedron":
        mesh = trimesh.creation.icosahedron()
    elif mesh_type == "torus":
        mesh = trimesh.creation.torus(major_radius=1.0, minor_radius=0.3,
                                      major_sections=48, minor_sections=24)
    elif mesh_type == "cube":
        mesh = trimesh.creation.box(extents=[1, 1, 1])
        for _ in range(3):
            mesh = mesh.subdivide()
    elif mesh_type == "cylinder":
        mesh = trimesh.creation.cylinder(radius=0.5, height=2.0, sections=48)
    else:
        mesh = trimesh.creation.icosphere(subdivisions=3, radius=1.0)

    logger.debug("Created %s mesh: %d vertices, %d faces",
                 mesh_type, len(mesh.vertices), len(mesh.faces))
    return mesh


def simplify_trimesh(mesh: trimesh.Trimesh,
                     target_faces: Optional[int] = None,
                     target_ratio: Optional[float] = None,
                     emit_split_records: bool = False,
                     **kwargs) -> SimplifiedMesh:
    """
    Simplify a trimesh object to a target face count or ratio.

    Args:
        mesh: Input trimesh object
        target_faces: Target number of faces (mutually exclusive with target_ratio)
        target_ratio: Target ratio of faces to keep (0.0 to 1.0)
        emit_split_records: Record vertex splits for a progressive mesh
        **kwargs: Passed on to PairContraction

    Returns:
        SimplifiedMesh result
    """
    if target_faces is None and target_ratio is None:
        raise ValueError("Must specify either target_faces or target_ratio")

    if target_ratio is not None:
        target_faces = max(4, int(len(mesh.faces) * target_ratio))

    points, triangles = mesh_arrays(mesh)
    return PairContraction(**kwargs).simplify(points, triangles, target_faces,
                                              emit_split_records=emit_split_records)


def proxy_normals(simplified: SimplifiedMesh) -> np.ndarray:
    """Vertex normals of a simplified proxy mesh."""
    return vertex_normals(simplified.points, simplified.triangles)


def bend(points: np.ndarray, amount: float = 0.3, axis: int = 1) -> np.ndarray:
    """
    Apply a smooth bend to a point set, standing in for a deformation step.

    Points are rotated about the z axis by an angle proportional to their
    coordinate along `axis`.

    Args:
        points: (N, 3) positions
        amount: Rotation in radians per unit along the axis
        axis: Coordinate that drives the rotation

    Returns:
        (N, 3) bent positions
    """
    points = np.asarray(points, dtype=np.float64)
    angles = amount * points[:, axis]
    cos, sin = np.cos(angles), np.sin(angles)
    bent = points.copy()
    bent[:, 0] = cos * points[:, 0] - sin * points[:, 1]
    bent[:, 1] = sin * points[:, 0] + cos * points[:, 1]
    return bent
