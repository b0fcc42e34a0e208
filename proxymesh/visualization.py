"""
Statistics Visualization Module
===============================

matplotlib plots of simplification and mapping statistics: face and
vertex counts per target, contraction cost curves and reconstruction
error histograms.
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from typing import List, Optional, Sequence, Tuple

from .contraction import SimplifiedMesh

logger = logging.getLogger(__name__)


class StatisticsVisualizer:
    """
    Plots for proxy mesh quality and detail mapping accuracy.
    """

    def __init__(self, figsize: Tuple[int, int] = (14, 5)):
        """
        Initialize visualizer.

        Args:
            figsize: Default figure size for plots
        """
        self.figsize = figsize

    def _save(self, fig: plt.Figure, save_path: Optional[str], what: str):
        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Saved %s to %s", what, save_path)

    def plot_statistics(self, original_faces: int, original_vertices: int,
                        proxies: Sequence[SimplifiedMesh],
                        targets: Sequence[int],
                        max_errors: Optional[List[float]] = None,
                        save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot proxy statistics against the requested face counts.

        Args:
            original_faces: Face count of the dense mesh
            original_vertices: Vertex count of the dense mesh
            proxies: Simplified meshes, one per target
            targets: Requested face counts
            max_errors: Optional maximum reconstruction error per proxy
            save_path: Optional path to save the figure

        Returns:
            Matplotlib figure object
        """
        n_plots = 2 + (1 if max_errors else 0)
        fig, axes = plt.subplots(1, n_plots, figsize=(5 * n_plots, 4))
        labels = [str(t) for t in targets]
        positions = range(len(targets))

        face_counts = [len(p.triangles) for p in proxies]
        axes[0].bar(positions, face_counts, color='steelblue')
        axes[0].axhline(y=original_faces, color='red', linestyle='--',
                        label=f'Original ({original_faces})')
        axes[0].set_xticks(list(positions))
        axes[0].set_xticklabels(labels)
        axes[0].set_xlabel('Target Faces')
        axes[0].set_ylabel('Face Count')
        axes[0].set_title('Face Count vs Target')
        axes[0].legend()

        vertex_counts = [len(p.points) for p in proxies]
        axes[1].bar(positions, vertex_counts, color='forestgreen')
        axes[1].axhline(y=original_vertices, color='red', linestyle='--',
                        label=f'Original ({original_vertices})')
        axes[1].set_xticks(list(positions))
        axes[1].set_xticklabels(labels)
        axes[1].set_xlabel('Target Faces')
        axes[1].set_ylabel('Vertex Count')
        axes[1].set_title('Vertex Count vs Target')
        axes[1].legend()

        if max_errors:
            axes[2].plot(list(targets), max_errors, 'o-', color='crimson')
            axes[2].set_xlabel('Target Faces')
            axes[2].set_ylabel('Max Reconstruction Error')
            axes[2].set_title('Mapping Error vs Proxy Size')

        fig.suptitle('Proxy Statistics', fontsize=14, fontweight='bold')
        fig.tight_layout()
        self._save(fig, save_path, "statistics")
        return fig

    def plot_contraction_costs(self, history: List[dict],
                               save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot the cost of every contraction in order.

        Args:
            history: Contraction history from PairContraction
            save_path: Optional path to save the figure
        """
        costs = np.array([entry['cost'] for entry in history])
        fig, ax = plt.subplots(figsize=(self.figsize[0] / 2, 4))
        ax.plot(np.arange(len(costs)), costs, color='purple')
        if len(costs) and costs.max() > 0:
            ax.set_yscale('symlog', linthresh=max(costs[costs > 0].min(), 1e-12))
        ax.set_xlabel('Contraction')
        ax.set_ylabel('Quadric Cost')
        ax.set_title('Contraction Cost')
        fig.tight_layout()
        self._save(fig, save_path, "contraction costs")
        return fig

    def plot_error_histogram(self, errors: np.ndarray, bins: int = 40,
                             title: str = "Reconstruction Error",
                             save_path: Optional[str] = None) -> plt.Figure:
        """
        Histogram of per-point reconstruction errors.

        Args:
            errors: Per-point distances
            bins: Number of histogram bins
            title: Plot title
            save_path: Optional path to save the figure
        """
        fig, ax = plt.subplots(figsize=(self.figsize[0] / 2, 4))
        ax.hist(np.asarray(errors), bins=bins, color='steelblue', edgecolor='black',
                linewidth=0.3)
        ax.set_xlabel('Distance')
        ax.set_ylabel('Points')
        ax.set_title(title)
        fig.tight_layout()
        self._save(fig, save_path, "error histogram")
        return fig
