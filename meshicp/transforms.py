"""Rigid transforms and their estimation from matched point pairs."""

import logging
from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation

from .errors import ConfigurationError, DegenerateInputError, ShapeMismatchError
from .utils import as_points, check_same_length

logger = logging.getLogger(__name__)

MIN_PAIRS = 3


@dataclass(frozen=True)
class RigidTransform:
    """
    Rotation followed by translation: x -> R @ x + t.

    Attributes:
        rotation: 3x3 orthonormal matrix with determinant +1
        translation: 3-vector
    """

    rotation: np.ndarray
    translation: np.ndarray

    @classmethod
    def identity(cls):
        return cls(np.eye(3), np.zeros(3))

    @classmethod
    def from_matrix(cls, matrix):
        """Build from a 4x4 homogeneous matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise ShapeMismatchError(f"Expected a 4x4 matrix, got {matrix.shape}")
        return cls(matrix[:3, :3].copy(), matrix[:3, 3].copy())

    def as_matrix(self):
        """4x4 homogeneous transformation matrix."""
        transformation = np.eye(4)
        transformation[:3, :3] = self.rotation
        transformation[:3, 3] = self.translation
        return transformation

    def apply(self, points):
        return apply_rigid_transform(points, self)

    def compose(self, other):
        """Transform equivalent to applying `other` first, then `self`."""
        return RigidTransform(self.rotation @ other.rotation,
                              self.rotation @ other.translation + self.translation)

    def inverse(self):
        rotation_t = self.rotation.T
        return RigidTransform(rotation_t, -rotation_t @ self.translation)


@dataclass(frozen=True)
class TransformEstimate:
    """
    Point-to-point solver output.

    Attributes:
        transform: Estimated rigid transform
        mse: Weighted mean squared residual of the pairs after applying it
    """

    transform: RigidTransform
    mse: float


def _pair_weights(n, weights):
    if weights is None:
        return np.ones(n)
    weights = np.asarray(weights, dtype=np.float64)
    if weights.shape != (n,):
        raise ShapeMismatchError(f"weights must have shape ({n},), got {weights.shape}")
    if np.any(weights < 0):
        raise ValueError("weights must be non-negative")
    return weights


def estimate_rigid_transform(processed, matched, weights=None):
    """
    Closed-form point-to-point alignment (Procrustes via SVD).

    Args:
        processed: (K, 3) points to be moved
        matched: (K, 3) corresponding target points
        weights: Optional (K,) non-negative pair weights

    Returns:
        TransformEstimate mapping `processed` onto `matched`
    """
    processed = as_points(processed, name="processed points")
    matched = as_points(matched, name="matched points")
    check_same_length(processed, matched, "processed points", "matched points")
    weights = _pair_weights(processed.shape[0], weights)

    if np.count_nonzero(weights) < MIN_PAIRS:
        raise DegenerateInputError(
            f"At least {MIN_PAIRS} weighted pairs are needed to estimate a rigid "
            f"transform, got {np.count_nonzero(weights)}")

    # Normalize weights
    weights = weights / np.sum(weights)

    # Compute weighted centroids
    source_centroid = np.sum(processed * weights[:, np.newaxis], axis=0)
    target_centroid = np.sum(matched * weights[:, np.newaxis], axis=0)

    # Center the points
    source_centered = processed - source_centroid
    target_centered = matched - target_centroid

    # Weighted covariance matrix
    H = (source_centered * weights[:, np.newaxis]).T @ target_centered
    U, S, Vt = np.linalg.svd(H)

    # Compute rotation matrix
    R = Vt.T @ U.T

    # Handle reflection case
    if np.linalg.det(R) < 0:
        Vt[-1, :] *= -1
        R = Vt.T @ U.T

    # Compute translation
    t = target_centroid - R @ source_centroid

    residuals = matched - (processed @ R.T + t)
    mse = float(np.sum(weights * np.sum(residuals ** 2, axis=1)))

    return TransformEstimate(RigidTransform(R, t), mse)


def estimate_rigid_transform_point_to_plane(processed, matched, normals, weights=None):
    """
    Linearized point-to-plane alignment.

    Solves for small rotation angles [alpha, beta, gamma] and a translation
    minimizing sum(w * (n . (R s + t - d))^2). Only valid when the rotation
    between the sets is close to identity.

    Args:
        processed: (K, 3) points to be moved
        matched: (K, 3) corresponding target points
        normals: (K, 3) target normals at the matched points; zero rows are ignored
        weights: Optional (K,) non-negative pair weights

    Returns:
        RigidTransform mapping `processed` towards the tangent planes of `matched`
    """
    processed = as_points(processed, name="processed points")
    matched = as_points(matched, name="matched points")
    normals = as_points(normals, name="normals")
    check_same_length(processed, matched, "processed points", "matched points")
    check_same_length(processed, normals, "processed points", "normals")
    weights = _pair_weights(processed.shape[0], weights)

    usable = (weights > 0) & (np.linalg.norm(normals, axis=1) > 0)
    if np.count_nonzero(usable) < MIN_PAIRS:
        raise DegenerateInputError(
            f"At least {MIN_PAIRS} pairs with a normal are needed for point-to-plane "
            f"estimation, got {np.count_nonzero(usable)}")

    s = processed[usable]
    d = matched[usable]
    n = normals[usable]
    w = np.sqrt(weights[usable] / np.sum(weights[usable]))

    # Row of A: [s x n, n]; b: n . (d - s)
    A = w[:, np.newaxis] * np.hstack([np.cross(s, n), n])
    b = w * np.einsum('ij,ij->i', n, d - s)

    params, _, rank, _ = np.linalg.lstsq(A, b, rcond=None)
    if rank < 6:
        logger.debug("Point-to-plane system is rank deficient (rank %d)", rank)

    # Exact rotation for the solved angle vector keeps R orthonormal
    R = Rotation.from_rotvec(params[0:3]).as_matrix()
    return RigidTransform(R, params[3:6].copy())


def apply_rigid_transform(points, transform):
    """Return R @ p + t for every row p."""
    points = as_points(points, allow_empty=True)
    return points @ transform.rotation.T + transform.translation


def rotation_matrix(x, y, z):
    """Rotation by x, y, z degrees about the fixed X, Y and Z axes, applied in that order."""
    return Rotation.from_euler('xyz', [x, y, z], degrees=True).as_matrix()


def rotate(points, x, y, z):
    """Rotate a point set about its centroid by x, y, z degrees (see rotation_matrix)."""
    points = as_points(points)
    centroid = points.mean(axis=0)
    return (points - centroid) @ rotation_matrix(x, y, z).T + centroid


def add_noise(points, sd, rng=None):
    """
    Add isotropic Gaussian noise, for generating test data.

    Args:
        points: (N, 3) point set
        sd: Standard deviation per coordinate, >= 0
        rng: Seed or numpy Generator
    """
    if sd < 0:
        raise ConfigurationError(f"Noise standard deviation must be >= 0, got {sd}")
    points = as_points(points)
    rng = np.random.default_rng(rng)
    return points + rng.normal(0.0, sd, size=points.shape)
