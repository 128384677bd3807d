"""Visualization utilities for ICP results."""

import logging

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_convergence(result, save_path='icp_convergence.png', tolerance=None, show=False):
    """
    Plot the error history of an ICP run.

    Args:
        result: IcpResult, or a plain sequence of error values
        save_path: Path to save the plot, None to skip saving
        tolerance: Optional tolerance drawn for reference
        show: Open an interactive window after saving

    Returns:
        The matplotlib Figure
    """
    errors = getattr(result, 'errors', result)
    state = getattr(result, 'state', None)

    fig, ax = plt.subplots(figsize=(12, 7))

    # Plot convergence curve
    ax.plot(range(len(errors)), errors, marker='o', linewidth=2, markersize=4,
            color='#2E86AB', label='Mean Distance')

    if tolerance is not None:
        ax.axhline(y=tolerance, color='red', linestyle='--', linewidth=1.5,
                   alpha=0.7, label=f'Tolerance ({tolerance:g})')

    ax.set_xlabel('Iteration', fontsize=12)
    ax.set_ylabel('Mean Distance', fontsize=12)

    # Build title
    title = 'ICP Convergence'
    if state is not None:
        title += f"\n{state.name} after {len(errors) - 1} iterations"
    if len(errors) > 0:
        title += f"\nInitial: {errors[0]:.4f} → Final: {errors[-1]:.4f}"

    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)
    ax.legend(loc='best')

    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, dpi=150)
        logger.info("Convergence plot saved to '%s'", save_path)
    if show:
        plt.show()
    return fig
