import numpy as np
import pytest
import trimesh

from proxymesh import LowToHighMapper, MappingEvaluator
from proxymesh.utils import mesh_arrays, proxy_normals, simplify_trimesh


@pytest.fixture
def evaluator():
    return MappingEvaluator(sample_points=2000)


def test_mapping_metrics_on_flat_proxy(evaluator, flat_square):
    points, normals, triangles = flat_square
    detail = np.array([[0.2, 0.3, 0.1], [0.7, 0.4, -0.05], [0.5, 0.9, 0.0]])
    mapper = LowToHighMapper(points, normals, triangles, detail)

    metrics = evaluator.mapping_metrics(mapper, detail)

    assert metrics['mapped_points'] == 3
    assert metrics['max_error'] < 1e-9
    assert metrics['rms_error'] <= metrics['max_error'] + 1e-15
    assert metrics['max_abs_offset'] == pytest.approx(0.1)
    assert metrics['outside_fraction'] == 0.0


def test_reconstruction_errors_follow_proxy_buffers(evaluator, flat_square):
    points, normals, triangles = flat_square
    detail = np.array([[0.2, 0.3, 0.1], [0.7, 0.4, -0.05]])
    mapper = LowToHighMapper(points, normals, triangles, detail)
    shift = np.array([0.0, 0.0, 0.5])

    errors = evaluator.reconstruction_errors(mapper, detail, points + shift, normals)

    np.testing.assert_allclose(errors, 0.5)


def test_compute_all_metrics(evaluator):
    original = trimesh.creation.icosphere(subdivisions=3)
    proxy = simplify_trimesh(original, target_ratio=0.1)

    metrics = evaluator.compute_all_metrics(original, proxy.to_trimesh())

    assert metrics['original_faces'] == len(original.faces)
    assert metrics['simplified_faces'] == len(proxy.triangles)
    assert metrics['face_reduction_ratio'] <= 0.1
    assert metrics['hausdorff_distance'] == max(metrics['hausdorff_forward'],
                                                metrics['hausdorff_backward'])
    assert 0.0 < metrics['hausdorff_distance'] < 0.5
    assert metrics['chamfer_distance'] >= 0.0


def test_report_includes_mapping_section(evaluator):
    original = trimesh.creation.icosphere(subdivisions=2)
    proxy = simplify_trimesh(original, target_faces=60)
    points, _ = mesh_arrays(original)
    mapper = LowToHighMapper(proxy.points, proxy_normals(proxy), proxy.triangles, points)

    metrics = evaluator.compute_all_metrics(original, proxy.to_trimesh())
    metrics['runtime'] = 0.25
    report = evaluator.generate_report(metrics, evaluator.mapping_metrics(mapper, points))

    assert "MESH STATISTICS" in report
    assert "DETAIL MAPPING" in report
    assert "Runtime" in report
    assert "DETAIL MAPPING" not in evaluator.generate_report(metrics)


def test_distance_helpers_agree(evaluator):
    mesh = trimesh.creation.icosphere(subdivisions=2)
    shifted = mesh.copy()
    shifted.apply_translation([0.5, 0.0, 0.0])

    hausdorff, forward, backward = evaluator.hausdorff_distance(mesh, shifted)

    assert hausdorff == max(forward, backward)
    assert hausdorff >= 0.4
    assert evaluator.chamfer_distance(mesh, shifted) > 0.0
