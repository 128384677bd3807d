"""
Nearest-neighbor queries behind a small, swappable interface.

An index is built once from a point set and afterwards only read, so a
single instance can be queried concurrently from a thread pool.
"""

import logging
from typing import NamedTuple

import numpy as np
from joblib import Parallel, delayed
from scipy.spatial import cKDTree

from .errors import ConfigurationError
from .kdtree import KDTree, nearest_neighbor_search
from .utils import as_points, time_function

logger = logging.getLogger(__name__)

# Below this many query rows a thread pool costs more than it saves
MIN_PARALLEL_QUERIES = 2048


class NearestNeighbors(NamedTuple):
    """
    Result of a nearest-neighbor query.

    Attributes:
        distances: (K,) distance from each query row to its nearest indexed row
        indices: (K,) row of the indexed point set closest to each query row
    """

    distances: np.ndarray
    indices: np.ndarray


class SpatialIndex:
    """
    Base class of the nearest-neighbor backends.

    Subclasses implement `_query_chunk` and `_nearest_other`; chunking and
    the parallel map live here.
    """

    def __init__(self, points):
        self.points = as_points(points, name="indexed points")
        self.points.setflags(write=False)

    def __len__(self):
        return self.points.shape[0]

    def query(self, queries, n_jobs=1):
        """
        Find the nearest indexed row for every query row.

        Args:
            queries: (K, 3) array of query points
            n_jobs: joblib worker count; 1 runs inline, -1 uses all cores

        Returns:
            NearestNeighbors with one entry per query row
        """
        queries = as_points(queries, name="query points", allow_empty=True)
        if queries.shape[0] == 0:
            return NearestNeighbors(np.empty(0), np.empty(0, dtype=np.int64))

        if n_jobs == 1 or queries.shape[0] < MIN_PARALLEL_QUERIES:
            distances, indices = self._query_chunk(queries)
        else:
            n_chunks = max(1, min(queries.shape[0] // 256, 64))
            chunks = np.array_split(queries, n_chunks)
            results = Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(self._query_chunk)(chunk) for chunk in chunks
            )
            distances = np.concatenate([r[0] for r in results])
            indices = np.concatenate([r[1] for r in results])

        return NearestNeighbors(np.asarray(distances, dtype=np.float64),
                                np.asarray(indices, dtype=np.int64))

    def spacing(self):
        """Median distance from each indexed point to its nearest other indexed point."""
        if len(self) < 2:
            return 0.0
        return float(np.median(self._nearest_other()))

    def _query_chunk(self, queries):
        raise NotImplementedError

    def _nearest_other(self):
        raise NotImplementedError


class ScipyIndex(SpatialIndex):
    """Backend on scipy's compiled k-d tree."""

    def __init__(self, points, leaf_size=16):
        super().__init__(points)
        self.tree = cKDTree(self.points, leafsize=leaf_size)

    def _query_chunk(self, queries):
        return self.tree.query(queries, k=1)

    def _nearest_other(self):
        distances, _ = self.tree.query(self.points, k=2)
        return distances[:, 1]


class TreeIndex(SpatialIndex):
    """Backend on the package's own numpy k-d tree."""

    def __init__(self, points, leaf_size=128):
        super().__init__(points)
        self.tree = KDTree(leaf_size=leaf_size, dimension=3)
        self.root = self.tree.build(self.points)

    def _query_chunk(self, queries):
        results = [nearest_neighbor_search(q, self.root, self.points) for q in queries]
        indices, distances = zip(*results)
        return np.array(distances), np.array(indices)

    def _nearest_other(self):
        return np.array([
            nearest_neighbor_search(p, self.root, self.points, exclude=i)[1]
            for i, p in enumerate(self.points)
        ])


INDEX_BACKENDS = {
    "scipy": ScipyIndex,
    "kdtree": TreeIndex,
}


@time_function
def build_index(points, backend="scipy", **kwargs):
    """
    Build a spatial index over a point set.

    Args:
        points: (N, 3) point set, N >= 1
        backend: Key of INDEX_BACKENDS
        **kwargs: Passed to the backend (e.g. leaf_size)

    Returns:
        SpatialIndex instance
    """
    try:
        index_cls = INDEX_BACKENDS[backend]
    except KeyError:
        raise ConfigurationError(
            f"Unknown index backend '{backend}', expected one of {sorted(INDEX_BACKENDS)}"
        ) from None
    index = index_cls(points, **kwargs)
    logger.debug("Built %s index over %d points", backend, len(index))
    return index


def ensure_index(target, index=None, backend="scipy"):
    """Return `index` if given, otherwise build one over `target`."""
    if index is not None:
        return index
    if isinstance(target, SpatialIndex):
        return target
    return build_index(target, backend=backend)
