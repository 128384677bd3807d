import numpy as np
import pytest

from meshicp import DegenerateInputError, build_index, get_error_metric


def test_zero_for_coinciding_points(rng):
    target = rng.normal(size=(100, 3))
    assert get_error_metric(target, target[::3]) == 0.0


def test_positive_when_any_point_is_off(rng):
    target = rng.normal(size=(100, 3))
    processed = target[:10].copy()
    processed[0] += 0.5
    error = get_error_metric(target, processed)
    assert error > 0.0


def test_mean_of_nearest_distances():
    target = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
    processed = np.array([[1.0, 0.0, 0.0], [10.0, 3.0, 0.0]])
    assert get_error_metric(target, processed) == pytest.approx(2.0)


def test_non_negative(rng):
    for _ in range(5):
        assert get_error_metric(rng.normal(size=(20, 3)), rng.normal(size=(20, 3))) >= 0.0


def test_accepts_prebuilt_index(rng):
    target = rng.normal(size=(50, 3))
    processed = rng.normal(size=(10, 3))
    index = build_index(target, backend="kdtree")
    assert get_error_metric(index, processed) == pytest.approx(get_error_metric(target, processed))


def test_empty_inputs_rejected():
    with pytest.raises(DegenerateInputError):
        get_error_metric(np.empty((0, 3)), np.zeros((1, 3)))
    with pytest.raises(DegenerateInputError):
        get_error_metric(np.zeros((1, 3)), np.empty((0, 3)))
