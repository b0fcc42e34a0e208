from collections import Counter

import numpy as np
import pytest

from proxymesh import ProgressiveMesh, simplify
from proxymesh.contraction import SimplifiedMesh


def face_signatures(points, triangles):
    """Orientation-independent multiset of faces by corner position."""
    return Counter(
        tuple(sorted(tuple(np.round(points[vi], 9)) for vi in face))
        for face in triangles
    )


def test_full_refinement_restores_original(icosphere):
    points, triangles = icosphere
    proxy = simplify(points, triangles, 30, emit_split_records=True)
    progressive = ProgressiveMesh(proxy)

    assert progressive.vertex_count == len(proxy.points)
    assert progressive.face_count == len(proxy.triangles)

    applied = progressive.refine(len(proxy.splits) + 10)

    assert applied == len(proxy.splits)
    assert progressive.remaining_splits == 0
    assert progressive.vertex_count == len(points)
    assert progressive.face_count == len(triangles)

    refined_points, refined_triangles = progressive.to_arrays()
    assert face_signatures(refined_points, refined_triangles) == \
        face_signatures(points, triangles)


def test_refine_to_stops_at_face_count(icosphere):
    points, triangles = icosphere
    proxy = simplify(points, triangles, 20, emit_split_records=True)
    progressive = ProgressiveMesh(proxy)

    progressive.refine_to(100)

    assert progressive.face_count >= 100
    assert progressive.face_count < len(triangles)
    assert 0 < progressive.remaining_splits < len(proxy.splits)

    refined_points, refined_triangles = progressive.to_arrays()
    assert refined_triangles.max() < len(refined_points)


def test_each_split_adds_one_vertex(icosphere):
    points, triangles = icosphere
    proxy = simplify(points, triangles, 60, emit_split_records=True)
    progressive = ProgressiveMesh(proxy)

    for k in range(5):
        assert progressive.refine() == 1
        assert progressive.vertex_count == len(proxy.points) + k + 1


def test_mesh_without_splits_does_not_refine(tetrahedron):
    points, triangles = tetrahedron
    progressive = ProgressiveMesh(SimplifiedMesh(points, triangles))

    assert progressive.refine() == 0
    assert progressive.refine_to(100) == 0
    assert progressive.face_count == 4


def test_out_of_order_split_is_rejected(icosphere):
    points, triangles = icosphere
    proxy = simplify(points, triangles, 60, emit_split_records=True)
    proxy.splits = proxy.splits[1:]

    with pytest.raises(ValueError):
        ProgressiveMesh(proxy).refine()
