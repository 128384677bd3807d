"""Registration parameters supplied by the caller."""

import dataclasses
import numbers
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError
from .spatial_index import INDEX_BACKENDS


@dataclass(frozen=True)
class IcpConfig:
    """
    Parameters for the ICP drivers.

    Attributes:
        subsample_rate: Fraction of processed points used per iteration, in (0, 1]
        max_iterations: Iteration cap, positive
        tolerance: Stop once the error improves by less than this
        max_normal_angle: Normal-based matching rejects pairs deviating more
            than this many degrees
        noise_sd: Standard deviation for synthetic noise injection (test data only)
        seed: Seed for the subsampler, None for fresh entropy
        n_jobs: joblib worker count for correspondence queries (-1 = all cores)
        index_backend: Spatial index backend name ('scipy' or 'kdtree')
    """

    subsample_rate: float = 1.0
    max_iterations: int = 50
    tolerance: float = 1e-6
    max_normal_angle: float = 45.0
    noise_sd: float = 0.0
    seed: Optional[int] = None
    n_jobs: int = 1
    index_backend: str = "scipy"

    def __post_init__(self):
        if not 0.0 < self.subsample_rate <= 1.0:
            raise ConfigurationError(
                f"subsample_rate must be in (0, 1], got {self.subsample_rate}")
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, numbers.Integral) \
                or self.max_iterations < 1:
            raise ConfigurationError(
                f"max_iterations must be a positive integer, got {self.max_iterations}")
        if not self.tolerance >= 0:
            raise ConfigurationError(f"tolerance must be >= 0, got {self.tolerance}")
        if not 0.0 < self.max_normal_angle <= 180.0:
            raise ConfigurationError(
                f"max_normal_angle must be in (0, 180], got {self.max_normal_angle}")
        if not self.noise_sd >= 0:
            raise ConfigurationError(f"noise_sd must be >= 0, got {self.noise_sd}")
        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero")

        if self.index_backend not in INDEX_BACKENDS:
            raise ConfigurationError(
                f"Unknown index backend '{self.index_backend}', "
                f"expected one of {sorted(INDEX_BACKENDS)}")

    def replace(self, **changes):
        """Return a validated copy with some fields changed."""
        return dataclasses.replace(self, **changes)
