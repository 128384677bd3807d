"""
meshicp - Rigid registration of 3-D point sets and meshes with Iterative Closest Point (ICP)

- Subsample-optimized point-to-point ICP and normal-based point-to-plane ICP
- Swappable nearest-neighbor index (scipy k-d tree or a pure numpy k-d tree)
- Overlap classification for partially overlapping scans
- Brute-force start-rotation search against bad local minima
"""

from .config import IcpConfig
from .correspondence import Correspondences, find_correspondences, find_correspondences_normal_based
from .errors import ConfigurationError, DegenerateInputError, RegistrationError, ShapeMismatchError
from .icp import (IcpResult, IcpState, StartRotationResult, find_best_start_rotation,
                  icp_normal_based, icp_optimised)
from .kdtree import KDTree
from .metrics import get_error_metric
from .normals import compute_normals, compute_vertex_normals, get_vertex_normals
from .overlap import OverlapPartition, find_non_overlapping_faces
from .sampling import get_subsample, subsample_indices
from .spatial_index import NearestNeighbors, SpatialIndex, build_index
from .transforms import (RigidTransform, TransformEstimate, add_noise, apply_rigid_transform,
                         estimate_rigid_transform, estimate_rigid_transform_point_to_plane,
                         rotate, rotation_matrix)
from .visualization import plot_convergence

__version__ = "1.0.0"
__all__ = [
    "IcpConfig", "Correspondences", "find_correspondences", "find_correspondences_normal_based",
    "ConfigurationError", "DegenerateInputError", "RegistrationError", "ShapeMismatchError",
    "IcpResult", "IcpState", "StartRotationResult", "find_best_start_rotation",
    "icp_normal_based", "icp_optimised", "KDTree", "get_error_metric",
    "compute_normals", "compute_vertex_normals", "get_vertex_normals",
    "OverlapPartition", "find_non_overlapping_faces", "get_subsample", "subsample_indices",
    "NearestNeighbors", "SpatialIndex", "build_index", "RigidTransform", "TransformEstimate",
    "add_noise", "apply_rigid_transform", "estimate_rigid_transform",
    "estimate_rigid_transform_point_to_plane", "rotate", "rotation_matrix", "plot_convergence",
]
