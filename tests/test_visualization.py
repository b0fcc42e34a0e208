import matplotlib.pyplot as plt
import numpy as np

from proxymesh import PairContraction, StatisticsVisualizer


def test_statistics_plots(tmp_path, icosphere):
    points, triangles = icosphere
    simplifier = PairContraction()
    targets = [40, 80]
    proxies = [simplifier.simplify(points, triangles, t) for t in targets]
    visualizer = StatisticsVisualizer()

    path = tmp_path / "stats.png"
    fig = visualizer.plot_statistics(len(triangles), len(points), proxies, targets,
                                     max_errors=[0.02, 0.01], save_path=str(path))
    assert len(fig.axes) == 3
    assert path.exists()
    plt.close(fig)

    path = tmp_path / "costs.png"
    fig = visualizer.plot_contraction_costs(simplifier.get_contraction_history(),
                                            save_path=str(path))
    assert path.exists()
    plt.close(fig)


def test_error_histogram(tmp_path):
    errors = np.abs(np.random.default_rng(4).normal(size=500)) * 1e-4
    path = tmp_path / "hist.png"

    fig = StatisticsVisualizer().plot_error_histogram(errors, save_path=str(path))

    assert path.exists()
    plt.close(fig)
