"""General utility functions."""

import logging
import time
from functools import wraps

import numpy as np

from .errors import DegenerateInputError, ShapeMismatchError

logger = logging.getLogger(__name__)


def time_function(func):
    """
    Decorator to time function execution.
    For recursive functions, only times the top-level call.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not hasattr(wrapper, '_in_call'):
            wrapper._in_call = False

        if not wrapper._in_call:
            wrapper._in_call = True
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = time.perf_counter() - start_time
                logger.debug("%s took %.6f seconds", func.__name__, elapsed)
                return result
            finally:
                wrapper._in_call = False
        else:
            return func(*args, **kwargs)

    return wrapper


def as_points(points, name="points", allow_empty=False):
    """
    Validate and convert a point set to a float (N, 3) array.

    Args:
        points: Array-like of shape (N, 3)
        name: Name used in error messages
        allow_empty: Accept N == 0

    Returns:
        New float64 array (never a view of the input)
    """
    arr = np.array(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        if arr.size == 0 and not allow_empty:
            raise DegenerateInputError(f"{name} is empty")
        raise ShapeMismatchError(f"{name} must have shape (N, 3), got {arr.shape}")
    if arr.shape[0] == 0 and not allow_empty:
        raise DegenerateInputError(f"{name} is empty")
    return arr


def as_faces(faces, n_vertices, name="faces"):
    """Validate a (M, 3) face array whose entries index into n_vertices points."""
    arr = np.array(faces, dtype=np.int64)
    if arr.size == 0:
        raise DegenerateInputError(f"{name} is empty")
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ShapeMismatchError(f"{name} must have shape (M, 3), got {arr.shape}")
    if arr.min() < 0 or arr.max() >= n_vertices:
        raise DegenerateInputError(
            f"{name} reference vertices outside [0, {n_vertices})")
    return arr


def check_same_length(first, second, first_name, second_name):
    if len(first) != len(second):
        raise ShapeMismatchError(
            f"{first_name} and {second_name} differ in length "
            f"({len(first)} != {len(second)})")


def bounding_box_scale(points):
    """Largest extent of the axis-aligned bounding box."""
    points = as_points(points)
    return float(np.max(points.max(axis=0) - points.min(axis=0)))
