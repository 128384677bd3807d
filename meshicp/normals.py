"""
Per-vertex normal estimation.

A zero row in any returned normal array means "normal unavailable"
(isolated vertex, zero-area faces, or a degenerate neighborhood) and
must not be used as a direction.
"""

import logging

import numpy as np
import open3d as o3d

from .utils import as_faces, as_points

logger = logging.getLogger(__name__)

# Relative eigenvalue below which a neighborhood direction counts as flat
_DEGENERATE_EIGEN_RATIO = 1e-10


def _normalize_rows(vectors, eps=1e-12):
    norms = np.linalg.norm(vectors, axis=1)
    valid = np.isfinite(norms) & (norms > eps)
    normalized = np.zeros_like(vectors)
    normalized[valid] = vectors[valid] / norms[valid, np.newaxis]
    return normalized


def compute_vertex_normals(vertices, faces):
    """
    Area-weighted vertex normals of a triangle mesh.

    The cross product of two triangle edges has length twice the triangle
    area, so summing unnormalized face normals weights them by area.
    Orientation follows the winding: counter-clockwise faces seen from
    outside give outward normals.

    Args:
        vertices: (N, 3) vertex positions
        faces: (M, 3) vertex indices per triangle

    Returns:
        (N, 3) unit normals, zero for vertices without a non-degenerate face
    """
    vertices = as_points(vertices, name="vertices")
    faces = as_faces(faces, vertices.shape[0])

    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    face_normals = np.cross(v1 - v0, v2 - v0)

    accumulated = np.zeros_like(vertices)
    for corner in range(3):
        np.add.at(accumulated, faces[:, corner], face_normals)

    normals = _normalize_rows(accumulated)
    n_missing = np.count_nonzero(~normals.any(axis=1))
    if n_missing:
        logger.debug("%d of %d vertices have no usable face normal", n_missing, len(normals))
    return normals


def compute_normals(points, k=30):
    """
    Normals of an unstructured point cloud from local plane fits.

    Uses Open3D's PCA-based estimate over the k nearest neighbors. Normals
    are flipped to point away from the cloud centroid, which is only a
    heuristic for outward orientation.

    Args:
        points: (N, 3) point cloud
        k: Neighborhood size

    Returns:
        (N, 3) unit normals, zero where the neighborhood is degenerate
    """
    points = as_points(points)
    if points.shape[0] < 3:
        return np.zeros_like(points)

    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(points)
    search_param = o3d.geometry.KDTreeSearchParamKNN(knn=k)
    pcd.estimate_normals(search_param=search_param)
    pcd.estimate_covariances(search_param=search_param)

    normals = _normalize_rows(np.asarray(pcd.normals).copy())

    # Orient away from the centroid
    outward = points - points.mean(axis=0)
    flip = np.einsum('ij,ij->i', normals, outward) < 0
    normals[flip] *= -1

    # A plane needs two significant spreading directions
    eigenvalues = np.linalg.eigvalsh(np.asarray(pcd.covariances))
    largest = eigenvalues[:, 2]
    degenerate = eigenvalues[:, 1] <= _DEGENERATE_EIGEN_RATIO * np.maximum(largest, 1e-300)
    degenerate |= largest <= 0
    normals[degenerate] = 0.0

    if np.any(degenerate):
        logger.debug("%d of %d points have a degenerate neighborhood",
                     np.count_nonzero(degenerate), len(normals))
    return normals


def get_vertex_normals(points, faces=None, k=30):
    """Mesh normals when faces are given, otherwise point-cloud normals."""
    if faces is not None:
        return compute_vertex_normals(points, faces)
    return compute_normals(points, k=k)
