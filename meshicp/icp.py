"""Iterative Closest Point (ICP) algorithm implementation."""

import enum
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import IcpConfig
from .correspondence import find_correspondences, find_correspondences_normal_based
from .errors import DegenerateInputError
from .metrics import get_error_metric
from .normals import get_vertex_normals
from .sampling import subsample_indices
from .spatial_index import build_index, ensure_index
from .transforms import (MIN_PAIRS, RigidTransform, estimate_rigid_transform,
                         estimate_rigid_transform_point_to_plane, rotation_matrix)
from .utils import as_points

logger = logging.getLogger(__name__)

DEFAULT_START_ANGLES = (0, 90, 180, 270)


class IcpState(enum.Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERS_REACHED = "max_iters_reached"


@dataclass(frozen=True)
class IcpResult:
    """
    Outcome of an ICP run.

    Attributes:
        points: Aligned copy of the processed point set (best iterate seen)
        state: CONVERGED or MAX_ITERS_REACHED
        iterations: Number of iterations run
        error: Error metric of `points`
        errors: Error after each iteration, preceded by the initial error
        transform: Cumulative transform taking the input processed set to `points`
    """

    points: np.ndarray
    state: IcpState
    iterations: int
    error: float
    errors: Tuple[float, ...]
    transform: RigidTransform

    @property
    def converged(self):
        return self.state is IcpState.CONVERGED


@dataclass(frozen=True)
class StartRotationResult:
    """
    Outcome of the start-rotation search.

    Attributes:
        points: Processed set moved by the winning candidate (or unchanged)
        angles: (x, y, z) degrees of the winning candidate, None if the
            input orientation was kept
        transform: Transform taking the input processed set to `points`
        error: Error metric of `points`
        baseline_error: Error metric of the input processed set
    """

    points: np.ndarray
    angles: Optional[Tuple[float, float, float]]
    transform: RigidTransform
    error: float
    baseline_error: float


def _run_icp(index, processed, config, step, method):
    """
    Shared driver loop.

    `step(current, sample, cumulative)` returns the local RigidTransform for
    one iteration given the current points, the subsampled row indices and
    the cumulative transform so far.
    """
    total_start = time.perf_counter()
    n_points = processed.shape[0]
    if n_points < MIN_PAIRS:
        raise DegenerateInputError(
            f"ICP needs at least {MIN_PAIRS} processed points, got {n_points}")

    # Keep at least MIN_PAIRS rows per iteration
    rate = min(1.0, max(config.subsample_rate, MIN_PAIRS / n_points))
    rng = np.random.default_rng(config.seed)

    state = IcpState.INITIALIZED
    logger.debug("State -> %s", state.name)
    current = processed
    cumulative = RigidTransform.identity()
    error = get_error_metric(index.points, current, index=index, n_jobs=config.n_jobs)
    errors = [error]
    best_error, best_points, best_transform = error, current, cumulative

    logger.info("ICP %s: %d processed points, %d target points, subsample rate %.3f",
                method, n_points, len(index), rate)

    state = IcpState.ITERATING
    logger.debug("State -> %s", state.name)
    iterations = 0
    for i in range(config.max_iterations):
        sample = subsample_indices(n_points, rate, rng)
        local = step(current, sample, cumulative)

        current = local.apply(current)
        cumulative = local.compose(cumulative)

        previous = error
        error = get_error_metric(index.points, current, index=index, n_jobs=config.n_jobs)
        errors.append(error)
        iterations = i + 1

        if error < best_error:
            best_error, best_points, best_transform = error, current, cumulative

        if i % 10 == 0:
            logger.info("Iter %3d: distance=%.6f", i, error)

        if previous - error < config.tolerance:
            state = IcpState.CONVERGED
            break
    else:
        state = IcpState.MAX_ITERS_REACHED

    logger.debug("State -> %s", state.name)
    total_time = time.perf_counter() - total_start
    logger.info("ICP %s finished: %s after %d iterations in %.3fs",
                method, state.name, iterations, total_time)
    logger.info("Initial distance: %.6f, final distance: %.6f, improvement: %.6f",
                errors[0], best_error, errors[0] - best_error)

    return IcpResult(
        points=best_points,
        state=state,
        iterations=iterations,
        error=best_error,
        errors=tuple(errors),
        transform=best_transform,
    )


def icp_optimised(target, processed, config=None):
    """
    Point-to-point ICP on a random subsample of the processed set per iteration.

    Each iteration matches a fresh subsample against the full target,
    estimates the local transform from those pairs and applies it to the
    whole processed set.

    Args:
        target: (N, 3) fixed point set
        processed: (P, 3) point set to move
        config: IcpConfig (defaults used when None)

    Returns:
        IcpResult
    """
    config = config if config is not None else IcpConfig()
    processed = as_points(processed, name="processed points")
    index = build_index(target, backend=config.index_backend)

    def step(current, sample, cumulative):
        corr = find_correspondences(index.points, current[sample], index=index,
                                    n_jobs=config.n_jobs, source_indices=sample)
        return estimate_rigid_transform(corr.processed, corr.matched).transform

    return _run_icp(index, processed, config, step, "point_to_point")


def icp_normal_based(target, processed, config=None, target_faces=None, processed_faces=None):
    """
    Point-to-plane ICP with normal-checked correspondences.

    Target normals are computed once; processed normals are computed once
    and rotated along with the running estimate. Pairs whose normals differ
    by more than `config.max_normal_angle` are left out of the estimate.
    The linearized solver assumes the remaining misalignment is a small
    rotation, so large initial rotations should go through
    find_best_start_rotation first.

    Args:
        target: (N, 3) fixed point set
        processed: (P, 3) point set to move
        config: IcpConfig (defaults used when None)
        target_faces: Optional (M, 3) faces for mesh normals of the target
        processed_faces: Optional (K, 3) faces for mesh normals of the processed set

    Returns:
        IcpResult
    """
    config = config if config is not None else IcpConfig()
    processed = as_points(processed, name="processed points")
    index = build_index(target, backend=config.index_backend)

    target_normals = get_vertex_normals(index.points, target_faces)
    processed_normals = get_vertex_normals(processed, processed_faces)

    def step(current, sample, cumulative):
        query_normals = processed_normals[sample] @ cumulative.rotation.T
        corr = find_correspondences_normal_based(
            index.points, current[sample], target_normals,
            processed_normals=query_normals, max_angle=config.max_normal_angle,
            index=index, n_jobs=config.n_jobs, source_indices=sample,
        )
        usable = np.count_nonzero((corr.weights > 0) & np.any(corr.normals != 0, axis=1))
        if usable < MIN_PAIRS:
            # Identity step leaves the error unchanged, so the improvement test stops the loop
            logger.warning("Only %d of %d pairs passed the normal test (max angle %.1f), "
                           "keeping the current alignment", usable, len(corr),
                           config.max_normal_angle)
            return RigidTransform.identity()
        return estimate_rigid_transform_point_to_plane(
            corr.processed, corr.matched, corr.normals, weights=corr.weights)

    return _run_icp(index, processed, config, step, "point_to_plane")


def _trial_alignment(index, points, iterations, n_jobs):
    transform = RigidTransform.identity()
    for _ in range(iterations):
        corr = find_correspondences(index.points, points, index=index, n_jobs=n_jobs)
        local = estimate_rigid_transform(corr.processed, corr.matched).transform
        points = local.apply(points)
        transform = local.compose(transform)
    return points, transform


def find_best_start_rotation(target, processed, angles=DEFAULT_START_ANGLES,
                             trial_iterations=3, config=None, index=None):
    """
    Try coarse start orientations and keep the one that aligns best.

    Every (x, y, z) in angles x angles x angles (lexicographic order)
    rotates the processed set about its centroid, moves that centroid onto
    the target centroid and runs `trial_iterations` point-to-point steps.
    The first candidate with the smallest error wins. If none beats the
    untouched input, the input is returned as is.

    Args:
        target: (N, 3) fixed point set, or a SpatialIndex over it
        processed: (P, 3) point set to move
        angles: Candidate angles in degrees, used for each axis
        trial_iterations: Point-to-point steps per candidate, >= 0
        config: IcpConfig, for the index backend and n_jobs
        index: Prebuilt SpatialIndex over `target`

    Returns:
        StartRotationResult
    """
    if trial_iterations < 0:
        raise ValueError(f"trial_iterations must be >= 0, got {trial_iterations}")
    config = config if config is not None else IcpConfig()
    index = ensure_index(target, index, backend=config.index_backend)
    processed = as_points(processed, name="processed points")

    baseline = get_error_metric(index.points, processed, index=index, n_jobs=config.n_jobs)
    best = StartRotationResult(processed.copy(), None, RigidTransform.identity(),
                               baseline, baseline)

    centroid = processed.mean(axis=0)
    target_centroid = index.points.mean(axis=0)
    n_candidates = 0
    for x, y, z in itertools.product(angles, repeat=3):
        n_candidates += 1
        R = rotation_matrix(x, y, z)
        start = RigidTransform(R, target_centroid - R @ centroid)
        points, trial = _trial_alignment(index, start.apply(processed),
                                         trial_iterations, config.n_jobs)
        error = get_error_metric(index.points, points, index=index, n_jobs=config.n_jobs)
        if error < best.error:
            best = StartRotationResult(points, (x, y, z), trial.compose(start),
                                       error, baseline)

    logger.info("Start rotation search: %d candidates, best %s (error %.6f, baseline %.6f)",
                n_candidates, best.angles, best.error, baseline)
    return best
