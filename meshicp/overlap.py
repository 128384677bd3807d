"""Split a mesh's faces by whether the target covers them."""

import logging
from dataclasses import dataclass

import numpy as np

from .spatial_index import ensure_index
from .utils import as_faces, as_points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlapPartition:
    """
    Disjoint face-index subsets whose union is every face of the mesh.

    Attributes:
        overlapping: Sorted indices of faces lying within reach of the target
        non_overlapping: Sorted indices of the remaining faces
        threshold: Distance threshold the classification used
    """

    overlapping: np.ndarray
    non_overlapping: np.ndarray
    threshold: float

    def overlapping_faces(self, faces):
        return np.asarray(faces)[self.overlapping]

    def non_overlapping_faces(self, faces):
        return np.asarray(faces)[self.non_overlapping]

    def overlapping_vertices(self, faces):
        """Sorted unique vertex indices referenced by overlapping faces."""
        return np.unique(self.overlapping_faces(faces))


def find_non_overlapping_faces(target, processed, faces, threshold=None,
                               spacing_factor=2.0, index=None):
    """
    Classify faces of the processed mesh as overlapping the target or not.

    A face overlaps when all three of its vertices lie within `threshold`
    of some target point.

    Args:
        target: (N, 3) target points, or a SpatialIndex over them
        processed: (P, 3) vertices of the processed mesh
        faces: (M, 3) faces of the processed mesh
        threshold: Distance limit; defaults to spacing_factor times the
            median point spacing of the target
        spacing_factor: Multiplier for the default threshold
        index: Prebuilt SpatialIndex over `target`

    Returns:
        OverlapPartition
    """
    index = ensure_index(target, index)
    processed = as_points(processed, name="processed points")
    faces = as_faces(faces, processed.shape[0])

    if threshold is None:
        threshold = spacing_factor * index.spacing()
    if threshold < 0:
        raise ValueError(f"threshold must be >= 0, got {threshold}")

    distances = index.query(processed).distances
    vertex_covered = distances <= threshold
    face_covered = vertex_covered[faces].all(axis=1)

    partition = OverlapPartition(
        overlapping=np.flatnonzero(face_covered),
        non_overlapping=np.flatnonzero(~face_covered),
        threshold=float(threshold),
    )
    logger.debug("%d of %d faces overlap the target (threshold %.4g)",
                 partition.overlapping.shape[0], faces.shape[0], threshold)
    return partition
