import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
import trimesh


@pytest.fixture
def tetrahedron():
    points = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ])
    triangles = np.array([
        [0, 2, 1],
        [0, 1, 3],
        [0, 3, 2],
        [1, 2, 3],
    ])
    return points, triangles


@pytest.fixture
def icosahedron():
    mesh = trimesh.creation.icosahedron()
    return np.array(mesh.vertices), np.array(mesh.faces)


@pytest.fixture
def icosphere():
    mesh = trimesh.creation.icosphere(subdivisions=2, radius=1.0)
    return np.array(mesh.vertices), np.array(mesh.faces)


def make_grid(rows, cols, z=None):
    """Flat grid in the unit square, two triangles per cell."""
    x = np.linspace(0.0, 1.0, cols)
    y = np.linspace(0.0, 1.0, rows)
    X, Y = np.meshgrid(x, y)
    Z = np.zeros_like(X) if z is None else z(X, Y)
    points = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

    triangles = []
    for i in range(rows - 1):
        for j in range(cols - 1):
            idx = i * cols + j
            triangles.append([idx, idx + 1, idx + cols])
            triangles.append([idx + 1, idx + cols + 1, idx + cols])
    return points, np.array(triangles)


@pytest.fixture
def flat_grid():
    return make_grid(8, 8)


@pytest.fixture
def flat_square():
    points = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [1.0, 1.0, 0.0],
        [0.0, 1.0, 0.0],
    ])
    triangles = np.array([[0, 1, 2], [0, 2, 3]])
    normals = np.tile([0.0, 0.0, 1.0], (4, 1))
    return points, normals, triangles


def is_connected(triangles):
    """True when the faces form one edge-connected component."""
    triangles = [tuple(t) for t in triangles]
    if not triangles:
        return False
    vertex_faces = {}
    for fi, face in enumerate(triangles):
        for vi in face:
            vertex_faces.setdefault(vi, set()).add(fi)

    seen = {0}
    stack = [0]
    while stack:
        fi = stack.pop()
        for vi in triangles[fi]:
            for other in vertex_faces[vi]:
                if other not in seen:
                    seen.add(other)
                    stack.append(other)
    return len(seen) == len(triangles)
