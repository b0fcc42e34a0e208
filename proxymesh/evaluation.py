"""
Mapping Evaluation Module
=========================

Provides quantitative evaluation metrics for proxy meshes and detail
mappings:
- Reconstruction error of a mapping (max / mean / RMS)
- Hausdorff and Chamfer distance between dense and proxy meshes
- Vertex/Face count statistics
"""

import numpy as np
from typing import Dict, Optional, Tuple
import trimesh
from scipy.spatial import cKDTree

from .geometry import as_points
from .mapper import LowToHighMapper


class MappingEvaluator:
    """
    Evaluation tools for assessing proxy meshes and their detail mappings.
    """

    def __init__(self, sample_points: int = 10000):
        """
        Initialize evaluator.

        Args:
            sample_points: Number of points to sample for distance metrics
        """
        self.sample_points = sample_points

    def reconstruction_errors(self, mapper: LowToHighMapper, high_points,
                              points=None, normals=None) -> np.ndarray:
        """
        Distance between each dense point and its reconstruction.

        Args:
            mapper: Mapper built for high_points
            high_points: (K, 3) expected dense positions
            points, normals: Proxy buffers to reconstruct from (default: the
                             mapper's current buffers)

        Returns:
            (K,) array of distances
        """
        high_points = as_points(high_points, "high_points")
        reconstructed = mapper.evaluate_all(points, normals)
        return np.linalg.norm(reconstructed - high_points, axis=1)

    def mapping_metrics(self, mapper: LowToHighMapper, high_points,
                        points=None, normals=None) -> Dict[str, float]:
        """
        Summarize the reconstruction error of a mapping.

        Returns:
            Dictionary with max, mean and RMS error plus offset statistics
        """
        errors = self.reconstruction_errors(mapper, high_points, points, normals)
        offsets = np.array([m.offset for m in mapper.mappings])
        bary = np.array([m.barycentric for m in mapper.mappings]).reshape(-1, 3)

        metrics = {
            'mapped_points': len(errors),
            'max_error': float(errors.max()) if len(errors) else 0.0,
            'mean_error': float(errors.mean()) if len(errors) else 0.0,
            'rms_error': float(np.sqrt(np.mean(errors ** 2))) if len(errors) else 0.0,
            'max_abs_offset': float(np.abs(offsets).max()) if len(offsets) else 0.0,
            # Coordinates outside the triangle are allowed but worth watching
            'outside_fraction': float(np.mean(np.any(bary < 0, axis=1))) if len(bary) else 0.0,
        }
        return metrics

    def compute_all_metrics(self, original: trimesh.Trimesh,
                            simplified: trimesh.Trimesh) -> Dict[str, float]:
        """
        Compare a proxy mesh against the dense mesh it was built from.

        Returns:
            Dictionary with face/vertex counts and ratios, sampled surface
            distances and the relative area change
        """
        n_faces, n_vertices = len(original.faces), len(original.vertices)
        metrics = {
            'original_faces': n_faces,
            'original_vertices': n_vertices,
            'simplified_faces': len(simplified.faces),
            'simplified_vertices': len(simplified.vertices),
            'face_reduction_ratio': len(simplified.faces) / max(1, n_faces),
            'vertex_reduction_ratio': len(simplified.vertices) / max(1, n_vertices),
        }
        metrics.update(self.surface_distances(original, simplified))

        original_area = float(original.area)
        simplified_area = float(simplified.area)
        metrics['original_area'] = original_area
        metrics['simplified_area'] = simplified_area
        metrics['area_error'] = abs(simplified_area - original_area) / max(original_area, 1e-10)

        return metrics

    def _sample_pair(self, mesh1: trimesh.Trimesh,
                     mesh2: trimesh.Trimesh) -> Tuple[np.ndarray, np.ndarray]:
        """Sample points on both surfaces, falling back to the vertices."""
        try:
            return mesh1.sample(self.sample_points), mesh2.sample(self.sample_points)
        except (ValueError, IndexError):
            return np.asarray(mesh1.vertices), np.asarray(mesh2.vertices)

    def _nearest_distances(self, mesh1: trimesh.Trimesh,
                           mesh2: trimesh.Trimesh) -> Tuple[np.ndarray, np.ndarray]:
        """Nearest-sample distances from mesh1 to mesh2 and back."""
        samples1, samples2 = self._sample_pair(mesh1, mesh2)
        forward, _ = cKDTree(samples2).query(samples1)
        backward, _ = cKDTree(samples1).query(samples2)
        return forward, backward

    def surface_distances(self, mesh1: trimesh.Trimesh,
                          mesh2: trimesh.Trimesh) -> Dict[str, float]:
        """
        Hausdorff and Chamfer distances from a single surface sampling.

        The Chamfer distance is the sum of the mean squared nearest-sample
        distances in both directions.
        """
        forward, backward = self._nearest_distances(mesh1, mesh2)
        return {
            'hausdorff_distance': float(max(forward.max(), backward.max())),
            'hausdorff_forward': float(forward.max()),
            'hausdorff_backward': float(backward.max()),
            'chamfer_distance': float(np.mean(forward ** 2) + np.mean(backward ** 2)),
        }

    def hausdorff_distance(self, mesh1: trimesh.Trimesh,
                           mesh2: trimesh.Trimesh) -> Tuple[float, float, float]:
        """Symmetric, forward and backward sampled Hausdorff distance."""
        d = self.surface_distances(mesh1, mesh2)
        return d['hausdorff_distance'], d['hausdorff_forward'], d['hausdorff_backward']

    def chamfer_distance(self, mesh1: trimesh.Trimesh,
                         mesh2: trimesh.Trimesh) -> float:
        """Sampled symmetric Chamfer distance."""
        return self.surface_distances(mesh1, mesh2)['chamfer_distance']

    def generate_report(self, metrics: Dict[str, float],
                        mapping_metrics: Optional[Dict[str, float]] = None,
                        method_name: str = "QEM proxy") -> str:
        """
        Format simplification and mapping metrics as a text report.

        Args:
            metrics: Output of compute_all_metrics, optionally with 'runtime'
            mapping_metrics: Output of mapping_metrics
            method_name: Name shown in the header

        Returns:
            Multi-line report
        """
        def section(title, rows):
            return ["", title, "-" * 40] + [f"  {label:<22} {value}" for label, value in rows]

        def distance(source, key):
            return f"{source.get(key, np.nan):>12.6f}"

        lines = ["=" * 60, f"Proxy Mesh Report - {method_name}", "=" * 60]
        lines += section("MESH STATISTICS", [
            ("Faces:", f"{metrics.get('original_faces', 'N/A')} -> "
                       f"{metrics.get('simplified_faces', 'N/A')}"),
            ("Vertices:", f"{metrics.get('original_vertices', 'N/A')} -> "
                          f"{metrics.get('simplified_vertices', 'N/A')}"),
            ("Faces kept:", f"{metrics.get('face_reduction_ratio', 0) * 100:.2f}%"),
        ])
        lines += section("SURFACE DISTANCE", [
            ("Hausdorff:", distance(metrics, 'hausdorff_distance')),
            ("  dense -> proxy:", distance(metrics, 'hausdorff_forward')),
            ("  proxy -> dense:", distance(metrics, 'hausdorff_backward')),
            ("Chamfer:", distance(metrics, 'chamfer_distance')),
            ("Area change:", f"{metrics.get('area_error', 0) * 100:>11.4f}%"),
        ])

        if mapping_metrics is not None:
            lines += section("DETAIL MAPPING", [
                ("Mapped points:", f"{mapping_metrics.get('mapped_points', 0)}"),
                ("Max error:", distance(mapping_metrics, 'max_error')),
                ("Mean error:", distance(mapping_metrics, 'mean_error')),
                ("RMS error:", distance(mapping_metrics, 'rms_error')),
                ("Max |offset|:", distance(mapping_metrics, 'max_abs_offset')),
                ("Outside triangle:",
                 f"{mapping_metrics.get('outside_fraction', 0) * 100:>11.2f}%"),
            ])

        if 'runtime' in metrics:
            lines += ["", f"  Runtime: {metrics['runtime']:.4f} seconds"]

        lines += ["", "=" * 60]
        return "\n".join(lines)

    def print_report(self, metrics: Dict[str, float],
                     mapping_metrics: Optional[Dict[str, float]] = None,
                     method_name: str = "QEM proxy"):
        """Print the report to the console."""
        print(self.generate_report(metrics, mapping_metrics, method_name))
