"""Random subsampling of point sets to bound per-iteration cost."""

import numpy as np

from .errors import ConfigurationError, DegenerateInputError
from .utils import as_points


def _check_rate(rate):
    if not 0.0 < rate <= 1.0:
        raise ConfigurationError(f"Subsample rate must be in (0, 1], got {rate}")


def subsample_indices(n, rate, rng=None):
    """
    Draw row indices uniformly without replacement.

    Args:
        n: Number of rows to sample from
        rate: Sampling rate in (0, 1]
        rng: Seed or numpy Generator

    Returns:
        Sorted array of max(1, round(rate * n)) distinct row indices
    """
    _check_rate(rate)
    if n < 1:
        raise DegenerateInputError("Cannot subsample an empty point set")
    size = max(1, int(round(rate * n)))
    if size >= n:
        return np.arange(n)
    rng = np.random.default_rng(rng)
    return np.sort(rng.choice(n, size=size, replace=False))


def get_subsample(points, rate, rng=None):
    """Return a uniformly drawn subset of the rows of `points`."""
    points = as_points(points)
    return points[subsample_indices(points.shape[0], rate, rng)]
