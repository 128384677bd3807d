"""KD-Tree implementation for efficient spatial partitioning and nearest neighbor search."""

import numpy as np
from .utils import time_function


class Node:
    def __init__(self):
        self.point = None
        self.index = None
        self.left = None
        self.right = None
        self.axis = None
        self.indices = None
    def set_point(self, point, index):
        self.point = point
        self.index = index
    def set_left(self, left):
        self.left = left
    def set_right(self, right):
        self.right = right
    def set_axis(self, axis):
        self.axis = axis
    def set_indices(self, indices):
        self.indices = indices

class KDTree:
    def __init__(self, leaf_size=128, dimension=3):
        self.root = None
        self.points = None
        self.leaf_size = max(1, int(leaf_size))
        self.dimension = dimension

    @time_function
    def build(self, points=None, depth=0, indices=None):
        # Initialize indices only at the top-level call
        if indices is None:
            pts = self.points if points is None else points
            if pts is None or pts.shape[0] == 0:
                return None
            indices = np.arange(pts.shape[0], dtype=np.int64)
            # Keep a reference to the canonical points array
            if points is not None:
                self.points = points

        n_points = indices.shape[0]

        # No points
        if n_points == 0:
            return None

        # Leaf: store the indices to avoid creating millions of nodes
        if n_points <= self.leaf_size:
            leaf = Node()
            leaf.set_axis(depth % self.dimension)
            leaf.set_indices(indices)
            if depth == 0:
                self.root = leaf
            return leaf

        # Choose splitting axis
        axis = depth % self.dimension

        # Compute median position and in-place partition indices by the chosen axis
        median_index = n_points // 2
        # argpartition gives positions that would place kth in its final position
        order = np.argpartition(self.points[indices, axis], median_index)
        # Reorder this segment of indices in-place to avoid large copies
        indices[:] = indices[order]

        median_point_index = indices[median_index]

        node = Node()
        node.set_axis(axis)
        node.set_point(self.points[median_point_index], median_point_index)

        # Build subtrees using views (no copies) into the shared indices array
        left_view = indices[:median_index]
        right_view = indices[median_index+1:]

        node.set_left(self.build(depth=depth+1, indices=left_view))
        node.set_right(self.build(depth=depth+1, indices=right_view))
        if depth == 0:
            self.root = node
        return node


def nearest_neighbor_search(query_point, root, points_array, exclude=None):
    """
    Iterative nearest neighbor search in KD-tree.

    Args:
        query_point: Point to find the nearest neighbor for
        root: Root node of the KD-tree
        points_array: Numpy array of points the tree was built on
        exclude: Optional row index that is never reported (self-match)

    Returns:
        Tuple of (row index of nearest point, distance); (-1, inf) if nothing qualifies
    """
    # Entries are (node, lower bound on the distance to anything below node)
    stack = [(root, 0.0)]
    best = (-1, np.inf)

    while stack:
        node, bound = stack.pop()
        if node is None or bound > best[1]:
            continue

        # Leaf node: check all points in the leaf
        if node.indices is not None:
            candidates = node.indices
            if exclude is not None:
                candidates = candidates[candidates != exclude]
                if candidates.shape[0] == 0:
                    continue
            dists = np.linalg.norm(points_array[candidates] - query_point, axis=1)
            idx = np.argmin(dists)
            dist = dists[idx]
            if dist < best[1]:
                best = (int(candidates[idx]), dist)
            continue

        # Internal node: check node point
        if node.index != exclude:
            dist = np.linalg.norm(node.point - query_point)
            if dist < best[1]:
                best = (int(node.index), dist)

        # Traverse tree
        axis = node.axis
        if query_point[axis] < node.point[axis]:
            near_node, far_node = node.left, node.right
        else:
            near_node, far_node = node.right, node.left

        # Far side pushed first so the near side is explored first
        stack.append((far_node, max(bound, abs(query_point[axis] - node.point[axis]))))
        stack.append((near_node, bound))

    return best
