"""
Proxy Mesh Simplification and Detail Mapping
============================================

Reduces a dense triangle mesh to a coarse proxy with Quadric Error Metrics
pair contraction ("Surface Simplification Using Quadric Error Metrics",
Garland and Heckbert, SIGGRAPH 1997), and maps every dense vertex onto the
proxy so it can be rebuilt after the proxy deforms.
"""

from .exceptions import InvalidGeometry, NoCandidateTriangle
from .geometry import Triangle, vertex_normals
from .qem import QuadricErrorMetrics
from .contraction import PairContraction, SimplifiedMesh, VertexSplit, simplify
from .progressive import ProgressiveMesh
from .spheres import Sphere, bounding_sphere, build_spheres
from .projection import closest_point_on_triangle
from .refine import error_measure, pattern_search
from .mapper import LowToHighMapper, PointMapping, build_mapping, evaluate
from .evaluation import MappingEvaluator
from .visualization import StatisticsVisualizer

__version__ = "1.0.0"
__all__ = [
    "InvalidGeometry", "NoCandidateTriangle",
    "Triangle", "vertex_normals",
    "QuadricErrorMetrics",
    "PairContraction", "SimplifiedMesh", "VertexSplit", "simplify",
    "ProgressiveMesh",
    "Sphere", "bounding_sphere", "build_spheres",
    "closest_point_on_triangle",
    "error_measure", "pattern_search",
    "LowToHighMapper", "PointMapping", "build_mapping", "evaluate",
    "MappingEvaluator", "StatisticsVisualizer",
]
