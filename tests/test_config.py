import numpy as np
import pytest

from meshicp import ConfigurationError, IcpConfig


def test_defaults_are_valid():
    config = IcpConfig()
    assert config.subsample_rate == 1.0
    assert config.max_iterations == 50
    assert config.index_backend == "scipy"


@pytest.mark.parametrize("changes", [
    {"subsample_rate": 0.0},
    {"subsample_rate": 1.01},
    {"max_iterations": 0},
    {"max_iterations": -3},
    {"max_iterations": 2.5},
    {"max_iterations": 5.0},
    {"max_iterations": "5"},
    {"tolerance": -1e-6},
    {"tolerance": float("nan")},
    {"max_normal_angle": 0.0},
    {"max_normal_angle": 181.0},
    {"noise_sd": -0.1},
    {"noise_sd": float("nan")},
    {"n_jobs": 0},
    {"index_backend": "octree"},
])
def test_out_of_range_values_rejected(changes):
    with pytest.raises(ConfigurationError):
        IcpConfig(**changes)


def test_replace_validates():
    config = IcpConfig(subsample_rate=0.3)
    assert config.replace(max_iterations=5).max_iterations == 5
    assert config.replace(max_iterations=5).subsample_rate == 0.3
    with pytest.raises(ConfigurationError):
        config.replace(subsample_rate=2.0)


def test_config_is_immutable():
    with pytest.raises(Exception):
        IcpConfig().max_iterations = 3


def test_numpy_integer_iterations_accepted():
    assert IcpConfig(max_iterations=np.int64(7)).max_iterations == 7
