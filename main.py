"""
Proxy Mesh Simplification and Detail Mapping - Main Demo
========================================================

This script:
1. Loads a mesh or creates a sample mesh
2. Simplifies it into proxy meshes of several sizes (QEM pair contraction)
3. Maps the dense vertices onto a proxy and checks the rest-state reconstruction
4. Bends the proxy, standing in for a deformation solver, and rebuilds the dense mesh
5. Replays the progressive-mesh vertex splits
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import matplotlib.pyplot as plt
import trimesh

from proxymesh import (
    InvalidGeometry,
    LowToHighMapper,
    MappingEvaluator,
    PairContraction,
    ProgressiveMesh,
    StatisticsVisualizer,
)
from proxymesh.utils import (
    bend,
    create_sample_mesh,
    load_mesh,
    mesh_arrays,
    proxy_normals,
)
from proxymesh.geometry import vertex_normals


def run_single_simplification(mesh: trimesh.Trimesh, target_faces: int,
                              distance_threshold: float = 0.0,
                              strict: bool = True,
                              emit_split_records: bool = False) -> tuple:
    """
    Run a single simplification and return the proxy with its runtime.
    """
    simplifier = PairContraction(distance_threshold=distance_threshold, strict=strict)
    points, triangles = mesh_arrays(mesh)

    start_time = time.time()
    proxy = simplifier.simplify(points, triangles, target_faces,
                                emit_split_records=emit_split_records)
    runtime = time.time() - start_time

    return proxy, runtime, simplifier


def demo_simplification(mesh: trimesh.Trimesh, targets, output_dir: Path,
                        mesh_name: str, args, plot: bool):
    """
    Simplify to several target face counts and report statistics.
    """
    print("\n" + "=" * 60)
    print("SIMPLIFICATION DEMO")
    print("=" * 60)

    evaluator = MappingEvaluator(sample_points=5000)
    proxies = []
    max_errors = []

    for target in targets:
        print(f"\n--- Simplifying to {target} faces ---")
        proxy, runtime, simplifier = run_single_simplification(
            mesh, target, args.distance_threshold, not args.permissive
        )
        proxies.append(proxy)

        metrics = evaluator.compute_all_metrics(mesh, proxy.to_trimesh())
        print(f"  Faces: {len(mesh.faces)} -> {len(proxy.triangles)}")
        print(f"  Vertices: {len(mesh.vertices)} -> {len(proxy.points)}")
        print(f"  Hausdorff: {metrics['hausdorff_distance']:.6f}")
        print(f"  Runtime: {runtime:.3f}s")

        mapper = LowToHighMapper(proxy.points, proxy_normals(proxy), proxy.triangles,
                                 mesh.vertices, workers=args.workers)
        max_errors.append(evaluator.mapping_metrics(mapper, mesh.vertices)['max_error'])

        output_path = output_dir / f"{mesh_name}_proxy_{target}.ply"
        proxy.to_trimesh().export(str(output_path))
        print(f"Saved: {output_path}")

    if plot:
        visualizer = StatisticsVisualizer()
        fig = visualizer.plot_statistics(
            len(mesh.faces), len(mesh.vertices), proxies, targets, max_errors,
            save_path=str(output_dir / f"{mesh_name}_statistics.png")
        )
        plt.close(fig)
        fig = visualizer.plot_contraction_costs(
            simplifier.get_contraction_history(),
            save_path=str(output_dir / f"{mesh_name}_contraction_costs.png")
        )
        plt.close(fig)

    return proxies


def demo_detail_mapping(mesh: trimesh.Trimesh, target: int, output_dir: Path,
                        mesh_name: str, args, plot: bool):
    """
    Map the dense mesh onto a proxy, deform the proxy and rebuild the dense mesh.
    """
    print("\n" + "=" * 60)
    print("DETAIL MAPPING DEMO")
    print("=" * 60)

    evaluator = MappingEvaluator(sample_points=5000)
    proxy, _, _ = run_single_simplification(mesh, target, args.distance_threshold,
                                            not args.permissive)
    normals = proxy_normals(proxy)

    start_time = time.time()
    mapper = LowToHighMapper(proxy.points, normals, proxy.triangles, mesh.vertices,
                             min_step=args.min_step, max_iter=args.max_iter,
                             workers=args.workers)
    runtime = time.time() - start_time
    print(f"  Mapped {len(mapper)} points in {runtime:.3f}s")

    metrics = evaluator.compute_all_metrics(mesh, proxy.to_trimesh())
    metrics['runtime'] = runtime
    mapping_metrics = evaluator.mapping_metrics(mapper, mesh.vertices)
    evaluator.print_report(metrics, mapping_metrics)

    # Deform the proxy, then rebuild the dense mesh from it
    bent_points = bend(proxy.points, amount=args.bend)
    bent_normals = vertex_normals(bent_points, proxy.triangles)
    mapper.update(bent_points, bent_normals)
    rebuilt = mapper.evaluate_all()

    reference = bend(mesh.vertices, amount=args.bend)
    errors = evaluator.reconstruction_errors(mapper, reference)
    print(f"  Deformed reconstruction vs bent original: "
          f"max {errors.max():.6f}, mean {errors.mean():.6f}")

    rebuilt_mesh = trimesh.Trimesh(vertices=rebuilt, faces=mesh.faces, process=False)
    output_path = output_dir / f"{mesh_name}_rebuilt.ply"
    rebuilt_mesh.export(str(output_path))
    print(f"Saved: {output_path}")

    if plot:
        fig = StatisticsVisualizer().plot_error_histogram(
            errors, title=f"{mesh_name} - Deformed Reconstruction Error",
            save_path=str(output_dir / f"{mesh_name}_mapping_errors.png")
        )
        plt.close(fig)

    return mapper


def demo_progressive(mesh: trimesh.Trimesh, target: int, args):
    """
    Simplify with vertex-split records and refine back to the original size.
    """
    print("\n" + "=" * 60)
    print("PROGRESSIVE MESH DEMO")
    print("=" * 60)

    proxy, _, _ = run_single_simplification(mesh, target, args.distance_threshold,
                                            not args.permissive, emit_split_records=True)
    progressive = ProgressiveMesh(proxy)
    print(f"  Base: {progressive.vertex_count} vertices, {progressive.face_count} faces, "
          f"{progressive.remaining_splits} splits")

    for goal in (2 * target, 4 * target, len(mesh.faces)):
        progressive.refine_to(goal)
        print(f"  Refined: {progressive.vertex_count} vertices, {progressive.face_count} faces")

    return progressive


def main():
    """Main demo entry point."""
    parser = argparse.ArgumentParser(
        description="Proxy mesh simplification and detail mapping demo"
    )
    parser.add_argument(
        "--mesh", "-m", type=str, default=None,
        help="Path to input mesh file. If not provided, uses a sample mesh."
    )
    parser.add_argument(
        "--sample", "-s", type=str, default="sphere",
        help="Sample mesh to create when --mesh is not given (default: sphere)"
    )
    parser.add_argument(
        "--output", "-o", type=str, default="output",
        help="Output directory for results"
    )
    parser.add_argument(
        "--target-faces", "-t", type=int, default=None,
        help="Proxy face count (default: --ratio of the input)"
    )
    parser.add_argument(
        "--ratio", "-r", type=float, default=0.1,
        help="Proxy face ratio when --target-faces is not given (default: 0.1)"
    )
    parser.add_argument(
        "--distance-threshold", "-d", type=float, default=0.0,
        help="Pair vertices closer than this even without an edge (default: 0, off)"
    )
    parser.add_argument(
        "--permissive", action="store_true",
        help="Drop degenerate faces with a warning instead of failing"
    )
    parser.add_argument(
        "--min-step", type=float, default=1e-6,
        help="Pattern search stopping step (default: 1e-6)"
    )
    parser.add_argument(
        "--max-iter", type=int, default=100,
        help="Pattern search iteration limit (default: 100)"
    )
    parser.add_argument(
        "--workers", "-w", type=int, default=None,
        help="Threads used to build the mapping (default: executor default)"
    )
    parser.add_argument(
        "--bend", type=float, default=0.3,
        help="Bend applied to the proxy in the deformation demo (default: 0.3)"
    )
    parser.add_argument(
        "--quick", "-q", action="store_true",
        help="Quick mode - skip the multi-target and progressive demos"
    )
    parser.add_argument(
        "--plot", "-p", action="store_true",
        help="Save statistics plots to the output directory"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("PROXY MESH SIMPLIFICATION AND DETAIL MAPPING")
    print("Using Quadric Error Metrics (QEM)")
    print("=" * 60)

    if args.mesh:
        print(f"\nLoading mesh from: {args.mesh}")
        mesh = load_mesh(args.mesh)
        mesh_name = Path(args.mesh).stem
    else:
        print(f"\nNo mesh specified, creating sample mesh: {args.sample}")
        mesh = create_sample_mesh(args.sample)
        mesh_name = f"sample_{args.sample}"

    print(f"\nMesh loaded: {mesh_name}")
    print(f"  Vertices: {len(mesh.vertices)}")
    print(f"  Faces: {len(mesh.faces)}")

    target = args.target_faces
    if target is None:
        target = max(4, int(len(mesh.faces) * args.ratio))

    try:
        demo_detail_mapping(mesh, target, output_dir, mesh_name, args, args.plot)

        if not args.quick:
            targets = sorted({max(4, target // 2), target, min(len(mesh.faces), target * 2)})
            demo_simplification(mesh, targets, output_dir, mesh_name, args, args.plot)
            demo_progressive(mesh, target, args)
    except InvalidGeometry as e:
        print(f"\nInvalid input geometry: {e}")
        print("Re-run with --permissive to drop degenerate faces.")
        return 1

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print(f"Results saved to: {output_dir.absolute()}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
