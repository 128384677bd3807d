"""Alignment quality measure."""

import numpy as np

from .overlap import find_non_overlapping_faces
from .spatial_index import ensure_index
from .utils import as_points


def get_error_metric(target, processed, index=None, faces=None, threshold=None, n_jobs=1):
    """
    Mean distance from each processed point to its nearest target point.

    Args:
        target: (N, 3) target points, or a SpatialIndex over them
        processed: (P, 3) processed points
        index: Prebuilt SpatialIndex over `target`
        faces: Optional (M, 3) faces of the processed mesh; when given only
            vertices of faces overlapping the target are measured
        threshold: Overlap distance threshold (see find_non_overlapping_faces)
        n_jobs: joblib workers for the query

    Returns:
        Non-negative float, 0 only if every processed point lies on a target point
    """
    index = ensure_index(target, index)
    processed = as_points(processed, name="processed points")

    if faces is not None:
        partition = find_non_overlapping_faces(index.points, processed, faces,
                                               threshold=threshold, index=index)
        vertices = partition.overlapping_vertices(faces)
        if vertices.shape[0] > 0:
            processed = processed[vertices]

    distances = index.query(processed, n_jobs=n_jobs).distances
    return float(np.mean(distances))
