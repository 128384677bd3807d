import numpy as np
import pytest

from meshicp import (DegenerateInputError, ShapeMismatchError, build_index,
                     find_correspondences, find_correspondences_normal_based)


def test_every_query_gets_its_nearest_target(rng):
    target = rng.uniform(size=(200, 3))
    processed = rng.uniform(size=(30, 3))
    corr = find_correspondences(target, processed)

    assert len(corr) == 30
    d = np.linalg.norm(processed[:, None] - target[None], axis=2)
    np.testing.assert_array_equal(corr.target_indices, d.argmin(axis=1))
    np.testing.assert_allclose(corr.matched, target[d.argmin(axis=1)])
    np.testing.assert_allclose(corr.distances, d.min(axis=1))
    np.testing.assert_array_equal(corr.source_indices, np.arange(30))


def test_matches_need_not_be_injective():
    target = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
    processed = np.array([[0.1, 0.0, 0.0], [-0.1, 0.0, 0.0], [0.0, 0.2, 0.0]])
    corr = find_correspondences(target, processed)
    np.testing.assert_array_equal(corr.target_indices, [0, 0, 0])


def test_prebuilt_index_and_source_indices(rng):
    target = rng.uniform(size=(50, 3))
    index = build_index(target, backend="kdtree")
    corr = find_correspondences(target, target[[4, 9]], index=index, source_indices=[4, 9])
    np.testing.assert_array_equal(corr.target_indices, [4, 9])
    np.testing.assert_array_equal(corr.source_indices, [4, 9])
    np.testing.assert_allclose(corr.distances, 0.0)


def test_empty_target_is_an_error():
    with pytest.raises(DegenerateInputError):
        find_correspondences(np.empty((0, 3)), np.zeros((2, 3)))


def test_source_indices_length_checked():
    with pytest.raises(ShapeMismatchError):
        find_correspondences(np.eye(3), np.eye(3), source_indices=[0, 1])


def test_normal_based_returns_target_normals():
    target = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    normals = np.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
    processed = target + 0.01
    corr = find_correspondences_normal_based(target, processed, normals)
    np.testing.assert_allclose(corr.normals, normals)
    np.testing.assert_array_equal(corr.weights, np.ones(3))


def test_normal_based_rejects_deviating_normals():
    target = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0]])
    target_normals = np.tile([0.0, 0.0, 1.0], (4, 1))
    processed = target.copy()
    processed_normals = np.array([
        [0.0, 0.0, 1.0],    # same
        [0.0, 0.0, -1.0],   # flipped sign, same line
        [1.0, 0.0, 0.0],    # perpendicular
        [0.0, 0.0, 0.0],    # unavailable
    ])
    corr = find_correspondences_normal_based(target, processed, target_normals,
                                             processed_normals=processed_normals,
                                             max_angle=30.0)
    np.testing.assert_array_equal(corr.weights, [1.0, 1.0, 0.0, 1.0])
    assert corr.n_accepted == 3
    assert len(corr) == 4


def test_normal_based_shape_checks():
    target = np.eye(3)
    with pytest.raises(ShapeMismatchError):
        find_correspondences_normal_based(target, target, np.ones((2, 3)))
    with pytest.raises(ShapeMismatchError):
        find_correspondences_normal_based(target, target, np.ones((3, 3)),
                                          processed_normals=np.ones((2, 3)))
