"""
Extended KD-Tree (bucketed, adaptive 2D binary space partition)

This module provides the spatial index behind KCapFL. Unlike the classic
point kd-tree, an extended kd-tree stores points only in leaves ("buckets")
of bounded size, and internal nodes only hold a cutting dimension and a
cutting value. Splits are chosen adaptively from the data of the leaf that
overflows rather than by alternating dimensions.

Key Features:
- Bulk and single insertion into a fixed bounding rectangle
- Exact point lookup
- Nearest neighbor query (branch-and-bound over cells)
- K-nearest neighbors query (driven by the MinK selector)
- Deletion with collapse of emptied buckets
- Deterministic structure dump for debugging
- Brute-force baselines for comparison

Splitting Rule:
    When a leaf exceeds the bucket size, its points are bounded by a
    rectangle; the cut dimension is the wider side (x on ties) and the cut
    value is the median coordinate along it (the mean of the two middle
    coordinates for even counts). Points equal to a cut value may end up
    on either side, so exact lookup must search both subtrees on ties.

Complexity Analysis:
- Bulk insert: O(n log² n) (sort per level)
- Find: O(log n) average, both sides visited on ties
- Nearest / k-nearest: O(log n + k log k) average, O(n) worst case
- Delete: O(log n) average
- Space: O(n)

Reference:
    Friedman, J. H., Bentley, J. L., Finkel, R. A. (1977). An algorithm for
    finding best matches in logarithmic expected time. ACM Transactions on
    Mathematical Software, 3(3), 209-226.
"""

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union
import numpy as np

from ..data_models import LabeledPoint2D, Point2D, Rectangle2D, points_to_array
from ..errors import InvalidCapacityError, NotFoundError, OutOfBoundsError
from ..heaps.min_k import MinK


@dataclass
class InternalNode:
    """
    A splitting node of the extended kd-tree.

    Attributes:
        cut_dim: Cutting dimension (0 for x, 1 for y)
        cut_val: Cutting value
        left: Subtree with coordinate[cut_dim] <= cut_val
        right: Subtree with coordinate[cut_dim] >= cut_val
    """
    cut_dim: int
    cut_val: float
    left: "Node"
    right: "Node"


@dataclass
class LeafNode:
    """
    A bucket of at most bucket_size points, in no particular order.
    """
    points: List[LabeledPoint2D] = field(default_factory=list)


Node = Union[InternalNode, LeafNode]


def _by_x_then_y(p: LabeledPoint2D) -> Tuple[float, float]:
    return (p.x, p.y)


def _by_y_then_x(p: LabeledPoint2D) -> Tuple[float, float]:
    return (p.y, p.x)


def _sort_key(dim: int):
    return _by_x_then_y if dim == 0 else _by_y_then_x


class XkdTree:
    """
    Extended kd-tree over labeled 2D points inside a fixed bounding box.

    Example:
        >>> bbox = Rectangle2D.from_bounds(0, 0, 10, 10)
        >>> tree = XkdTree(bucket_size=2, bbox=bbox)
        >>> tree.bulk_insert([LabeledPoint2D.of("a", 1, 1),
        ...                   LabeledPoint2D.of("b", 9, 9),
        ...                   LabeledPoint2D.of("c", 2, 1)])
        >>> tree.nearest_neighbor(Point2D(8, 8)).label
        'b'
        >>> [p.label for p in tree.k_nearest_neighbor(Point2D(0, 0), 2)]
        ['a', 'c']

    Attributes:
        root: Root node of the tree (an empty leaf when the tree is empty)
        bucket_size: Maximum number of points in a leaf
        bbox: Bounding rectangle; points outside it are rejected
    """

    def __init__(self, bucket_size: int, bbox: Rectangle2D):
        """
        Create an empty tree.

        Args:
            bucket_size: Maximum number of points per leaf (must be > 0)
            bbox: Fixed region of the tree, kept for its whole lifetime

        Raises:
            InvalidCapacityError: If bucket_size is not positive
        """
        if bucket_size <= 0:
            raise InvalidCapacityError(
                f"Bucket size must be positive, got {bucket_size}"
            )
        self.bucket_size = bucket_size
        self.bbox = bbox
        self.root: Node = LeafNode()
        self._size = 0

    def clear(self) -> None:
        """Reset to a single empty leaf. The bounding box is kept."""
        self.root = LeafNode()
        self._size = 0

    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def __contains__(self, point: Union[Point2D, LabeledPoint2D]) -> bool:
        return self.find(point) is not None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find(self, point: Union[Point2D, LabeledPoint2D]) -> Optional[LabeledPoint2D]:
        """
        Exact lookup.

        Args:
            point: A Point2D matches any stored point with exactly these
                coordinates; a LabeledPoint2D only matches itself (same
                label and coordinates)

        Returns:
            The stored labeled point, or None if there is no match
        """
        return self._find(self.root, _as_point(point), point)

    def _find(self, node: Node, q: Point2D, target) -> Optional[LabeledPoint2D]:
        if isinstance(node, LeafNode):
            for p in node.points:
                if _matches(p, target):
                    return p
            return None

        c = q.get(node.cut_dim)
        if c < node.cut_val:
            return self._find(node.left, q, target)
        if c > node.cut_val:
            return self._find(node.right, q, target)
        # On the cut line the point may live on either side
        res = self._find(node.left, q, target)
        if res is None:
            res = self._find(node.right, q, target)
        return res

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def insert(self, point: LabeledPoint2D) -> None:
        """Insert a single point (a bulk insert of one element)."""
        self.bulk_insert([point])

    def bulk_insert(self, points: List[LabeledPoint2D]) -> None:
        """
        Insert a batch of points.

        Every point is checked against the bounding box before the tree is
        touched, so a rejected batch leaves the tree unchanged.

        Args:
            points: Points to insert

        Raises:
            OutOfBoundsError: If any point lies outside the bounding box
        """
        if not points:
            return
        for p in points:
            if not self.bbox.contains(p.point):
                raise OutOfBoundsError(
                    f"Attempt to insert point {p} outside bounding box {self.bbox}"
                )
        self.root = self._bulk_insert(self.root, list(points))
        self._size += len(points)

    def _bulk_insert(self, node: Node, pts: List[LabeledPoint2D]) -> Node:
        if isinstance(node, InternalNode):
            pts.sort(key=_sort_key(node.cut_dim))
            coords = [p.get(node.cut_dim) for p in pts]
            split = bisect_left(coords, node.cut_val)
            if split > 0:
                node.left = self._bulk_insert(node.left, pts[:split])
            if split < len(pts):
                node.right = self._bulk_insert(node.right, pts[split:])
            return node

        node.points.extend(pts)
        if len(node.points) <= self.bucket_size:
            return node
        return self._split_leaf(node.points)

    def _split_leaf(self, pts: List[LabeledPoint2D]) -> InternalNode:
        """Turn an overflowing bucket into an internal node with two leaves."""
        extent = Rectangle2D.from_points(pts)
        cut_dim = 1 if extent.width(0) < extent.width(1) else 0
        pts.sort(key=_sort_key(cut_dim))

        m = len(pts) // 2
        cut_val = pts[m].get(cut_dim)
        if len(pts) % 2 == 0:
            cut_val = (pts[m - 1].get(cut_dim) + pts[m].get(cut_dim)) / 2

        left = self._bulk_insert(LeafNode(), pts[:m])
        right = self._bulk_insert(LeafNode(), pts[m:])
        return InternalNode(cut_dim, cut_val, left, right)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, point: Union[Point2D, LabeledPoint2D]) -> LabeledPoint2D:
        """
        Remove one stored point.

        Matching follows find(): coordinates only for a Point2D, the exact
        labeled point for a LabeledPoint2D. A leaf emptied by the removal
        is unlinked: its parent is replaced by the leaf's sibling.

        Returns:
            The removed labeled point

        Raises:
            NotFoundError: If no stored point matches
        """
        q = _as_point(point)
        if self._size == 0:
            raise NotFoundError(f"Deletion of nonexistent point {point}")

        new_root, removed = self._delete(self.root, q, point)
        if removed is None:
            raise NotFoundError(f"Deletion of nonexistent point {point}")
        self.root = new_root if new_root is not None else LeafNode()
        self._size -= 1
        return removed

    def _delete(self, node: Node, q: Point2D,
                target) -> Tuple[Optional[Node], Optional[LabeledPoint2D]]:
        """Return (replacement subtree or None if emptied, removed point)."""
        if isinstance(node, LeafNode):
            for i, p in enumerate(node.points):
                if _matches(p, target):
                    del node.points[i]
                    return (node if node.points else None), p
            return node, None

        c = q.get(node.cut_dim)
        if c <= node.cut_val:
            child, removed = self._delete(node.left, q, target)
            if removed is not None:
                if child is None:
                    return node.right, removed
                node.left = child
                return node, removed
        if c >= node.cut_val:
            child, removed = self._delete(node.right, q, target)
            if removed is not None:
                if child is None:
                    return node.left, removed
                node.right = child
                return node, removed
        return node, None

    # ------------------------------------------------------------------
    # Nearest neighbor queries
    # ------------------------------------------------------------------

    def nearest_neighbor(self, center: Union[Point2D, LabeledPoint2D]) -> Optional[LabeledPoint2D]:
        """
        Find the stored point closest to center.

        Uses branch-and-bound pruning: the subtree on the query's side of
        the cut is searched first, and the sibling only if its cell could
        contain a point closer than the best found so far.

        Returns:
            Closest labeled point, or None if the tree is empty
        """
        if self._size == 0:
            return None
        return self._nearest(self.root, _as_point(center), self.bbox, None)

    def _nearest(self, node: Node, q: Point2D, cell: Rectangle2D,
                 best: Optional[LabeledPoint2D]) -> Optional[LabeledPoint2D]:
        if isinstance(node, LeafNode):
            best_dist = q.distance_sq(best.point) if best is not None else float('inf')
            for p in node.points:
                d = q.distance_sq(p.point)
                if d < best_dist:
                    best, best_dist = p, d
            return best

        left_cell, right_cell = cell.split_at(node.cut_dim, node.cut_val)
        if q.get(node.cut_dim) < node.cut_val:
            near, near_cell, far, far_cell = node.left, left_cell, node.right, right_cell
        else:
            near, near_cell, far, far_cell = node.right, right_cell, node.left, left_cell

        best = self._nearest(near, q, near_cell, best)
        if best is None or far_cell.distance_sq(q) < q.distance_sq(best.point):
            best = self._nearest(far, q, far_cell, best)
        return best

    def k_nearest_neighbor(self, center: Union[Point2D, LabeledPoint2D],
                           k: int) -> List[LabeledPoint2D]:
        """
        Find the k stored points closest to center.

        Same traversal as nearest_neighbor, but candidates are collected in
        a MinK selector and a subtree is pruned when its cell is farther
        than the current k-th best distance.

        Args:
            center: Query point
            k: Number of neighbors to find

        Returns:
            Up to k labeled points sorted by distance (fewer only if the
            tree holds fewer than k points)

        Raises:
            InvalidCapacityError: If k is not positive
        """
        if k <= 0:
            raise InvalidCapacityError(f"k must be positive, got {k}")
        if self._size == 0:
            return []
        min_k: MinK[float, LabeledPoint2D] = MinK(k, float('inf'))
        self._k_nearest(self.root, _as_point(center), self.bbox, min_k)
        return min_k.list()

    def _k_nearest(self, node: Node, q: Point2D, cell: Rectangle2D,
                   min_k: MinK) -> None:
        if isinstance(node, LeafNode):
            for p in node.points:
                min_k.add(q.distance_sq(p.point), p)
            return

        if cell.distance_sq(q) > min_k.get_kth():
            return

        left_cell, right_cell = cell.split_at(node.cut_dim, node.cut_val)
        if q.get(node.cut_dim) < node.cut_val:
            self._k_nearest(node.left, q, left_cell, min_k)
            self._k_nearest(node.right, q, right_cell, min_k)
        else:
            self._k_nearest(node.right, q, right_cell, min_k)
            self._k_nearest(node.left, q, left_cell, min_k)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def list(self) -> List[str]:
        """
        Debug dump of the tree structure.

        Preorder with the right subtree before the left. Internal nodes
        render as "(x=<cut>)" or "(y=<cut>)", leaves as
        "[ {label: (x, y)} ... ]" with members sorted by label.
        """
        out: List[str] = []
        self._list(self.root, out)
        return out

    def _list(self, node: Node, out: List[str]) -> None:
        if isinstance(node, LeafNode):
            members = sorted(node.points, key=lambda p: p.label)
            out.append("[" + "".join(f" {{{p}}}" for p in members) + " ]")
            return
        axis = "x" if node.cut_dim == 0 else "y"
        out.append(f"({axis}={node.cut_val})")
        self._list(node.right, out)
        self._list(node.left, out)

    def height(self) -> int:
        """Number of edges on the longest root-to-leaf path."""
        def _height(node: Node) -> int:
            if isinstance(node, LeafNode):
                return 0
            return 1 + max(_height(node.left), _height(node.right))
        return _height(self.root)

    def points(self) -> Iterator[LabeledPoint2D]:
        """Iterate over all stored points, leaf by leaf."""
        stack: List[Node] = [self.root]
        while stack:
            node = stack.pop()
            if isinstance(node, LeafNode):
                yield from node.points
            else:
                stack.append(node.right)
                stack.append(node.left)

    def __repr__(self) -> str:
        return (f"XkdTree(size={self._size}, bucket_size={self.bucket_size}, "
                f"bbox={self.bbox})")


def _as_point(point: Union[Point2D, LabeledPoint2D]) -> Point2D:
    if isinstance(point, LabeledPoint2D):
        return point.point
    return point


def _matches(stored: LabeledPoint2D, target: Union[Point2D, LabeledPoint2D]) -> bool:
    if isinstance(target, LabeledPoint2D):
        return stored == target
    return stored.point == target


def brute_force_nearest_neighbor(
    points: np.ndarray,
    query: np.ndarray
) -> Tuple[int, float]:
    """
    Brute-force nearest neighbor search (baseline).

    Computes the squared distance to all points and returns the minimum.
    Used for correctness testing and benchmarking against the kd-tree.

    Args:
        points: Array of shape (n, 2) containing data points
        query: Query point as [x, y] array

    Returns:
        Tuple of (index of nearest point, squared distance)

    Complexity:
        Time: O(n)
    """
    points = points_to_array(points)
    query = np.asarray(query, dtype=np.float64)

    distances = np.sum((points - query) ** 2, axis=1)
    nearest_idx = np.argmin(distances)
    return int(nearest_idx), float(distances[nearest_idx])


def brute_force_k_nearest(
    points: np.ndarray,
    query: np.ndarray,
    k: int
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Brute-force k-nearest neighbors (baseline).

    Args:
        points: Array of shape (n, 2) containing data points
        query: Query point as [x, y] array
        k: Number of neighbors

    Returns:
        Tuple of (indices shape (min(k, n),), squared distances), both
        sorted by distance

    Complexity:
        Time: O(n log n)
    """
    points = points_to_array(points)
    query = np.asarray(query, dtype=np.float64)

    distances = np.sum((points - query) ** 2, axis=1)
    order = np.argsort(distances, kind="stable")[:k]
    return order, distances[order]


def validate_xkdtree(
    n_points: int = 1000,
    n_queries: int = 100,
    k: int = 5,
    bucket_size: int = 4,
    seed: int = 42
) -> bool:
    """
    Validate the extended kd-tree against brute force.

    Generates random points and queries in [0, 1000]², then checks nearest
    and k-nearest neighbor distances, and membership after deleting half
    of the points.

    Returns:
        True if all checks pass, False otherwise

    Example:
        >>> assert validate_xkdtree(200, 20, seed=42)
    """
    np.random.seed(seed)

    coords = np.random.uniform(0, 1000, size=(n_points, 2))
    queries = np.random.uniform(0, 1000, size=(n_queries, 2))
    labeled = [LabeledPoint2D.of(i, x, y) for i, (x, y) in enumerate(coords)]

    tree = XkdTree(bucket_size, Rectangle2D.from_bounds(0, 0, 1000, 1000))
    tree.bulk_insert(labeled)

    for qx, qy in queries:
        q = Point2D(float(qx), float(qy))

        nn = tree.nearest_neighbor(q)
        _, bf_dist = brute_force_nearest_neighbor(coords, np.array([qx, qy]))
        if not np.isclose(q.distance_sq(nn.point), bf_dist, rtol=1e-10):
            return False

        knn = tree.k_nearest_neighbor(q, k)
        _, bf_dists = brute_force_k_nearest(coords, np.array([qx, qy]), k)
        knn_dists = np.array([q.distance_sq(p.point) for p in knn])
        if not np.allclose(knn_dists, bf_dists, rtol=1e-10):
            return False

    for p in labeled[::2]:
        tree.delete(p)
    if len(tree) != n_points - len(labeled[::2]):
        return False
    return all(tree.find(p) is None for p in labeled[::2]) and \
        all(tree.find(p) is not None for p in labeled[1::2])


if __name__ == "__main__":
    print("Validating extended kd-tree implementation...")
    if validate_xkdtree():
        print("✓ XkdTree validation passed!")
    else:
        print("✗ XkdTree validation failed!")

    print("\nDemo:")
    pts = [LabeledPoint2D.of(f"P{i}", x, y) for i, (x, y) in enumerate([
        (0, 0), (10, 0), (5, 5), (2, 8), (8, 3),
        (1, 4), (6, 7), (3, 2), (9, 9), (4, 6)
    ])]
    tree = XkdTree(2, Rectangle2D.from_bounds(0, 0, 10, 10))
    tree.bulk_insert(pts)
    for line in tree.list():
        print(f"  {line}")
    print(f"Nearest to (5, 4): {tree.nearest_neighbor(Point2D(5, 4))}")
    print(f"3-nearest to (5, 4): {[str(p) for p in tree.k_nearest_neighbor(Point2D(5, 4), 3)]}")
