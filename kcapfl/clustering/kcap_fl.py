"""
k-Capacitated Facility Location (KCapFL) Clustering

Partitions a point set into disjoint clusters of exactly k points with a
greedy rule: repeatedly take the point whose k-nearest-neighbor radius is
currently smallest, lock its neighborhood in as a cluster, and remove the
members from further consideration.

Algorithm:
    Build:
        1. Bulk-load all points into an extended kd-tree
        2. For every point p, compute its k nearest neighbors N(p) and push
           (dist²(p, k-th neighbor), N(p)) into a leftist heap

    Extract (repeated until the tree is empty):
        1. Pop the candidate with the smallest radius
        2. If all its members are still in the tree, delete them and
           return the candidate as the next cluster
        3. Otherwise the candidate is stale. If its anchor (first member)
           is still unclaimed, recompute the anchor's k nearest neighbors
           against the current tree and push the fresh candidate; if the
           anchor was claimed, drop the candidate. Go to 1.

Stale candidates are repaired lazily, only when they surface as the global
minimum, instead of recomputing neighborhoods every time a point is
claimed. The result is a greedy approximation, not an optimal partition.
Equal radii leave the extraction order up to the heap.

Complexity Analysis:
- Build: O(n log² n) for the tree + n k-NN queries
- Extract all: O(c · k log n) for the committed clusters, plus one k-NN
  query and heap insert per repaired candidate
"""

from typing import List, Optional, Sequence

from ..data_models import Cluster, ClusteringResult, LabeledPoint2D, Rectangle2D
from ..config import ClusteringConfig
from ..errors import (
    EmptyHeapError,
    InternalConsistencyError,
    InvalidCapacityError,
    InvalidSizeError,
)
from ..geometry.xkd_tree import XkdTree
from ..heaps.leftist_heap import LeftistHeap
from ..hpc.timing import Timer
from ..logger import get_logger

log = get_logger("clustering")


class KCapFL:
    """
    Greedy k-capacitated facility locator.

    Example:
        >>> bbox = Rectangle2D.from_bounds(0, 0, 20, 20)
        >>> fl = KCapFL(capacity=2, bucket_size=2, bbox=bbox)
        >>> fl.build([LabeledPoint2D.of("A", 0, 0), LabeledPoint2D.of("B", 1, 0),
        ...           LabeledPoint2D.of("C", 10, 10), LabeledPoint2D.of("D", 11, 10)])
        >>> sorted(sorted(fl.extract_cluster().labels) for _ in range(2))
        [['A', 'B'], ['C', 'D']]
        >>> fl.extract_cluster() is None
        True

    Attributes:
        capacity: Number of points per cluster (k)
        kd_tree: Unclaimed points
        heap: Pending candidate clusters keyed by squared radius
        repaired: Stale candidates recomputed for a surviving anchor
        discarded: Stale candidates dropped because the anchor was claimed
    """

    def __init__(self, capacity: int, bucket_size: int, bbox: Rectangle2D):
        if capacity <= 0:
            raise InvalidCapacityError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.kd_tree = XkdTree(bucket_size, bbox)
        self.heap: LeftistHeap[float, List[LabeledPoint2D]] = LeftistHeap()
        self.repaired = 0
        self.discarded = 0

    def clear(self) -> None:
        self.kd_tree.clear()
        self.heap.clear()
        self.repaired = 0
        self.discarded = 0

    def build(self, points: Sequence[LabeledPoint2D]) -> None:
        """
        Load the point set and seed one candidate per point.

        Args:
            points: Points to cluster

        Raises:
            InvalidSizeError: If the number of points is not a positive
                multiple of the capacity
            OutOfBoundsError: If a point lies outside the bounding box
        """
        if len(points) <= 0 or len(points) % self.capacity != 0:
            raise InvalidSizeError(
                f"Invalid point set size {len(points)} for capacity {self.capacity}"
            )
        self.kd_tree.bulk_insert(list(points))
        for p in points:
            self._push_candidate(p)
        log.debug("Built index of %d points, %d candidates, height %d",
                  len(self.kd_tree), len(self.heap), self.kd_tree.height())

    def _push_candidate(self, anchor: LabeledPoint2D) -> None:
        neighbors = self.kd_tree.k_nearest_neighbor(anchor, self.capacity)
        # Coincident points tie at distance 0 and may push the anchor out
        # of its own neighborhood or away from the front
        if anchor in neighbors:
            neighbors.remove(anchor)
        else:
            neighbors.pop()
        members = [anchor] + neighbors
        radius_sq = anchor.point.distance_sq(members[-1].point)
        self.heap.insert(radius_sq, members)

    def extract_cluster(self) -> Optional[Cluster]:
        """
        Extract the next cluster.

        Returns:
            The next cluster, or None once every point has been claimed

        Raises:
            InternalConsistencyError: If the candidate heap runs dry while
                unclaimed points remain (a bookkeeping bug)
        """
        while len(self.kd_tree) > 0:
            try:
                radius_sq = self.heap.get_min_key()
                members = self.heap.extract_min()
            except EmptyHeapError as err:
                log.critical("Candidate heap empty with %d unclaimed points",
                             len(self.kd_tree))
                raise InternalConsistencyError(
                    f"No candidates left for {len(self.kd_tree)} unclaimed points"
                ) from err

            if all(self.kd_tree.find(m) is not None for m in members):
                for m in members:
                    self.kd_tree.delete(m)
                log.debug("Cluster around %s, radius² %s", members[0].label, radius_sq)
                return Cluster(members, radius_sq)

            anchor = members[0]
            if self.kd_tree.find(anchor) is not None:
                self._push_candidate(anchor)
                self.repaired += 1
                log.debug("Repaired stale candidate of %s", anchor.label)
            else:
                self.discarded += 1
        return None

    def extract_all(self) -> ClusteringResult:
        """
        Extract clusters until every point is claimed.

        Returns:
            ClusteringResult with clusters in extraction order
        """
        clusters: List[Cluster] = []
        with Timer(verbose=False) as timer:
            cluster = self.extract_cluster()
            while cluster is not None:
                clusters.append(cluster)
                cluster = self.extract_cluster()
        return ClusteringResult(
            clusters=clusters,
            capacity=self.capacity,
            processing_time_ms=timer.elapsed_ms,
            metadata={
                "repaired_candidates": self.repaired,
                "discarded_candidates": self.discarded
            }
        )

    def list_kd_tree(self) -> List[str]:
        """Debug dump of the kd-tree (see XkdTree.list)."""
        return self.kd_tree.list()

    def list_heap(self) -> List[str]:
        """Debug dump of the candidate heap (see LeftistHeap.list)."""
        return self.heap.list()


def cluster_points(
    points: Sequence[LabeledPoint2D],
    config: Optional[ClusteringConfig] = None
) -> ClusteringResult:
    """
    Convenience wrapper: build a KCapFL from a config and extract all
    clusters.

    Args:
        points: Points to cluster
        config: Run parameters; defaults to ClusteringConfig()

    Returns:
        ClusteringResult, whose processing time includes the build
    """
    config = (config or ClusteringConfig()).validate()
    if len(points) == 0:
        raise InvalidSizeError(
            f"Invalid point set size 0 for capacity {config.capacity}"
        )
    bbox = config.bounding_box_for(points)

    locator = KCapFL(config.capacity, config.bucket_size, bbox)
    with Timer(verbose=False) as build_timer:
        locator.build(points)
    result = locator.extract_all()

    result.processing_time_ms += build_timer.elapsed_ms
    result.metadata["build_time_ms"] = build_timer.elapsed_ms
    result.metadata["bucket_size"] = config.bucket_size
    result.metadata["bbox"] = bbox.to_dict()
    return result
