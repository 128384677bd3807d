import matplotlib.pyplot as plt

from meshicp import IcpConfig, icp_optimised, plot_convergence, rotate


def test_plot_convergence_saves_figure(tmp_path, ellipsoid):
    result = icp_optimised(ellipsoid, rotate(ellipsoid, 0, 0, 5), IcpConfig(max_iterations=5))
    path = tmp_path / "convergence.png"
    fig = plot_convergence(result, save_path=str(path), tolerance=1e-6)
    assert path.exists()
    assert "CONVERGED" in fig.axes[0].get_title() or "MAX_ITERS_REACHED" in fig.axes[0].get_title()
    plt.close(fig)


def test_plot_convergence_accepts_plain_sequence():
    fig = plot_convergence([3.0, 2.0, 1.5], save_path=None)
    assert len(fig.axes[0].lines) == 1
    plt.close(fig)
