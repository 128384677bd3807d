"""Correspondence search between a processed point set and a target."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .spatial_index import ensure_index
from .utils import as_points, check_same_length


@dataclass(frozen=True)
class Correspondences:
    """
    One match per processed row; several rows may share a target row.

    Attributes:
        processed: (K, 3) query points
        matched: (K, 3) nearest target point for each query
        source_indices: (K,) row of each query in the array it was taken from
        target_indices: (K,) row of each match in the target
        distances: (K,) Euclidean distance of each pair
        normals: (K, 3) target normal at each match (normal-based search only)
        weights: (K,) 1 for accepted pairs, 0 for pairs rejected by the
            normal test (normal-based search only)
    """

    processed: np.ndarray
    matched: np.ndarray
    source_indices: np.ndarray
    target_indices: np.ndarray
    distances: np.ndarray
    normals: Optional[np.ndarray] = None
    weights: Optional[np.ndarray] = None

    def __len__(self):
        return self.processed.shape[0]

    @property
    def n_accepted(self):
        if self.weights is None:
            return len(self)
        return int(np.count_nonzero(self.weights))


def find_correspondences(target, processed, index=None, n_jobs=1, source_indices=None):
    """
    Match every processed row to its nearest target row.

    Args:
        target: (N, 3) target points, or a SpatialIndex over them
        processed: (K, 3) query points
        index: Prebuilt SpatialIndex over `target`
        n_jobs: joblib workers for the query
        source_indices: Rows of `processed` in a larger array, recorded in the result

    Returns:
        Correspondences with len == K
    """
    index = ensure_index(target, index)
    processed = as_points(processed, name="processed points")

    nearest = index.query(processed, n_jobs=n_jobs)
    if source_indices is None:
        source_indices = np.arange(processed.shape[0])
    else:
        source_indices = np.asarray(source_indices)
        check_same_length(source_indices, processed, "source_indices", "processed points")

    return Correspondences(
        processed=processed,
        matched=index.points[nearest.indices],
        source_indices=source_indices,
        target_indices=nearest.indices,
        distances=nearest.distances,
    )


def find_correspondences_normal_based(target, processed, target_normals,
                                      processed_normals=None, max_angle=45.0,
                                      index=None, n_jobs=1, source_indices=None):
    """
    Nearest-point matching that also carries the target normals.

    A pair is rejected (weight 0) when both normals are available and the
    angle between their lines exceeds `max_angle` degrees. The comparison
    ignores normal sign, since orientation is only reliable for meshes.

    Args:
        target: (N, 3) target points, or a SpatialIndex over them
        processed: (K, 3) query points
        target_normals: (N, 3) normals of the target rows
        processed_normals: Optional (K, 3) normals of the query rows
        max_angle: Rejection threshold in degrees
        index: Prebuilt SpatialIndex over `target`
        n_jobs: joblib workers for the query
        source_indices: Rows of `processed` in a larger array

    Returns:
        Correspondences with `normals` and `weights` populated
    """
    index = ensure_index(target, index)
    target_normals = as_points(target_normals, name="target normals")
    check_same_length(target_normals, index.points, "target normals", "target points")

    result = find_correspondences(index.points, processed, index=index, n_jobs=n_jobs,
                                  source_indices=source_indices)
    matched_normals = target_normals[result.target_indices]
    weights = np.ones(len(result))

    if processed_normals is not None:
        processed_normals = as_points(processed_normals, name="processed normals")
        check_same_length(processed_normals, result.processed,
                          "processed normals", "processed points")

        query_norm = np.linalg.norm(processed_normals, axis=1)
        match_norm = np.linalg.norm(matched_normals, axis=1)
        available = (query_norm > 0) & (match_norm > 0)

        cosines = np.ones(len(result))
        cosines[available] = np.abs(np.einsum(
            'ij,ij->i', processed_normals[available], matched_normals[available]
        )) / (query_norm[available] * match_norm[available])
        weights[cosines < np.cos(np.radians(max_angle))] = 0.0

    return Correspondences(
        processed=result.processed,
        matched=result.matched,
        source_indices=result.source_indices,
        target_indices=result.target_indices,
        distances=result.distances,
        normals=matched_normals,
        weights=weights,
    )
