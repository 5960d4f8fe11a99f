"""
Tests for the KCapFL Greedy Cluster Extractor

Test Categories:
1. Construction and build validation
2. Small worked examples (including stale-candidate repair)
3. Completeness: n/k disjoint clusters of size k covering all points
4. Internal consistency failure
5. cluster_points convenience wrapper

Run with: pytest tests/test_kcap_fl.py -v
"""

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kcapfl.clustering.kcap_fl import KCapFL, cluster_points
from kcapfl.config import ClusteringConfig
from kcapfl.data_models import LabeledPoint2D, Rectangle2D
from kcapfl.errors import (
    InternalConsistencyError,
    InvalidCapacityError,
    InvalidSizeError,
    OutOfBoundsError,
)
from kcapfl.synthetic_data import PointPattern, generate_points


BOX = Rectangle2D.from_bounds(0, 0, 20, 20)


def extract_everything(locator: KCapFL) -> list:
    clusters = []
    cluster = locator.extract_cluster()
    while cluster is not None:
        clusters.append(cluster)
        cluster = locator.extract_cluster()
    return clusters


def assert_valid_partition(clusters, points, k):
    """Every cluster has k members, clusters are disjoint, union is all points."""
    assert len(clusters) == len(points) // k
    seen = []
    for cluster in clusters:
        assert len(cluster.members) == k
        seen.extend(cluster.labels)
    assert len(seen) == len(set(seen))
    assert set(seen) == {p.label for p in points}


class TestConstruction:
    """Tests for constructor and build validation."""

    def test_invalid_capacity(self):
        with pytest.raises(InvalidCapacityError):
            KCapFL(0, 2, BOX)

    def test_invalid_bucket_size(self):
        with pytest.raises(InvalidCapacityError):
            KCapFL(2, 0, BOX)

    def test_empty_point_set_rejected(self):
        with pytest.raises(InvalidSizeError):
            KCapFL(2, 2, BOX).build([])

    def test_size_not_multiple_of_capacity(self):
        """Test that build fails unless n is a multiple of k."""
        points = [LabeledPoint2D.of(i, i, i) for i in range(5)]
        locator = KCapFL(2, 2, BOX)
        with pytest.raises(InvalidSizeError):
            locator.build(points)
        assert len(locator.kd_tree) == 0
        assert locator.heap.is_empty()

    def test_out_of_bounds_point(self):
        points = [LabeledPoint2D.of("a", 1, 1), LabeledPoint2D.of("b", 25, 1)]
        with pytest.raises(OutOfBoundsError):
            KCapFL(2, 2, BOX).build(points)

    def test_build_seeds_one_candidate_per_point(self):
        points = [LabeledPoint2D.of(i, i, 2 * i) for i in range(6)]
        locator = KCapFL(3, 2, BOX)
        locator.build(points)
        assert len(locator.heap) == 6
        assert len(locator.kd_tree) == 6
        assert locator.heap.check_invariants()


class TestWorkedExamples:
    """Small examples with known answers."""

    def test_two_pairs(self):
        """k=2: {A, B} and {C, D}, both with squared radius 1."""
        points = [
            LabeledPoint2D.of("A", 0, 0),
            LabeledPoint2D.of("B", 1, 0),
            LabeledPoint2D.of("C", 10, 10),
            LabeledPoint2D.of("D", 11, 10),
        ]
        locator = KCapFL(2, 2, BOX)
        locator.build(points)

        first = locator.extract_cluster()
        second = locator.extract_cluster()

        assert {frozenset(first.labels), frozenset(second.labels)} == {
            frozenset({"A", "B"}), frozenset({"C", "D"})
        }
        assert first.radius_sq == 1.0
        assert second.radius_sq == 1.0
        assert locator.extract_cluster() is None
        assert len(locator.kd_tree) == 0

    def test_stale_candidate_is_repaired(self):
        """
        C's first candidate {C, B} goes stale once {A, B} is claimed, so
        C's neighborhood is recomputed against the remaining points.
        """
        points = [
            LabeledPoint2D.of("A", 0, 0),
            LabeledPoint2D.of("B", 1, 0),
            LabeledPoint2D.of("C", 2.5, 0),
            LabeledPoint2D.of("D", 10, 0),
        ]
        locator = KCapFL(2, 1, BOX)
        locator.build(points)

        first = locator.extract_cluster()
        assert set(first.labels) == {"A", "B"}

        second = locator.extract_cluster()
        assert set(second.labels) == {"C", "D"}
        assert second.radius_sq == pytest.approx(56.25)
        assert locator.repaired >= 1
        assert locator.extract_cluster() is None

    def test_claimed_anchor_is_discarded(self):
        points = [
            LabeledPoint2D.of("A", 0, 0),
            LabeledPoint2D.of("B", 1, 0),
            LabeledPoint2D.of("C", 10, 10),
            LabeledPoint2D.of("D", 12, 10),
        ]
        locator = KCapFL(2, 2, BOX)
        locator.build(points)
        locator.extract_cluster()
        assert locator.discarded == 0

        # The mirrored {A, B} candidate surfaces next with a claimed anchor
        second = locator.extract_cluster()
        assert set(second.labels) == {"C", "D"}
        assert locator.discarded == 1

    def test_capacity_one(self):
        points = [LabeledPoint2D.of(i, i, 0) for i in range(4)]
        locator = KCapFL(1, 2, BOX)
        locator.build(points)
        clusters = extract_everything(locator)
        assert_valid_partition(clusters, points, 1)
        assert all(c.radius_sq == 0.0 for c in clusters)

    def test_single_cluster(self):
        points = [LabeledPoint2D.of(i, i, i) for i in range(5)]
        locator = KCapFL(5, 2, BOX)
        locator.build(points)
        cluster = locator.extract_cluster()
        assert sorted(cluster.labels) == list(range(5))
        assert locator.extract_cluster() is None

    def test_duplicate_coordinates(self):
        points = [LabeledPoint2D.of(f"d{i}", 3, 3) for i in range(4)] + \
            [LabeledPoint2D.of(f"e{i}", 15, 15) for i in range(2)]
        locator = KCapFL(2, 2, BOX)
        locator.build(points)
        clusters = extract_everything(locator)
        assert_valid_partition(clusters, points, 2)

    def test_anchor_leads_its_candidate(self):
        points = [LabeledPoint2D.of(f"d{i}", 3, 3) for i in range(3)] + \
            [LabeledPoint2D.of("e", 4, 3)]
        locator = KCapFL(2, 2, BOX)
        locator.build(points)
        anchors = []
        while not locator.heap.is_empty():
            anchors.append(locator.heap.extract_min()[0].label)
        assert sorted(anchors) == ["d0", "d1", "d2", "e"]


class TestCompleteness:
    """n/k disjoint clusters of exactly k points."""

    @pytest.mark.parametrize("pattern", list(PointPattern))
    @pytest.mark.parametrize("k", [2, 3, 5])
    def test_partition(self, pattern, k):
        points = generate_points(12 * k, pattern, extent=100.0, seed=7)
        locator = KCapFL(k, 3, Rectangle2D.from_bounds(0, 0, 100, 100))
        locator.build(points)

        clusters = extract_everything(locator)

        assert_valid_partition(clusters, points, k)
        assert len(locator.kd_tree) == 0

    def test_radius_matches_members(self):
        points = generate_points(60, PointPattern.UNIFORM, extent=100.0, seed=3)
        locator = KCapFL(4, 4, Rectangle2D.from_bounds(0, 0, 100, 100))
        locator.build(points)

        for cluster in extract_everything(locator):
            center = cluster.center.point
            dists = [center.distance_sq(m.point) for m in cluster.members]
            assert cluster.radius_sq == pytest.approx(max(dists))

    def test_first_cluster_has_globally_smallest_radius(self):
        points = generate_points(90, PointPattern.BLOBS, extent=100.0, seed=11)
        coords = np.array([[p.x, p.y] for p in points])
        k = 3
        locator = KCapFL(k, 4, Rectangle2D.from_bounds(0, 0, 100, 100))
        locator.build(points)

        # k-th smallest squared distance from each point (itself included)
        d2 = np.sum((coords[:, None, :] - coords[None, :, :]) ** 2, axis=2)
        kth = np.sort(d2, axis=1)[:, k - 1]

        first = locator.extract_cluster()
        assert first.radius_sq == pytest.approx(kth.min())

    def test_clear_allows_rebuild(self):
        points = generate_points(12, PointPattern.UNIFORM, extent=20.0, seed=5)
        locator = KCapFL(3, 2, BOX)
        locator.build(points)
        locator.extract_cluster()
        locator.clear()
        assert len(locator.kd_tree) == 0
        assert locator.heap.is_empty()

        locator.build(points)
        assert_valid_partition(extract_everything(locator), points, 3)


class TestConsistency:
    """The heap running dry while points remain is a bookkeeping bug."""

    def test_empty_heap_with_points_raises(self):
        points = [LabeledPoint2D.of(i, i, i) for i in range(4)]
        locator = KCapFL(2, 2, BOX)
        locator.build(points)
        locator.heap.clear()

        with pytest.raises(InternalConsistencyError):
            locator.extract_cluster()

    def test_consistency_error_is_assertion(self):
        assert issubclass(InternalConsistencyError, AssertionError)


class TestDebugViews:
    """Tests for the debug dumps exposed by the extractor."""

    def test_list_kd_tree_and_heap(self):
        points = [LabeledPoint2D.of("A", 0, 0), LabeledPoint2D.of("B", 1, 0)]
        locator = KCapFL(2, 2, BOX)
        locator.build(points)

        assert locator.list_kd_tree() == ["[ {A: (0.0, 0.0)} {B: (1.0, 0.0)} ]"]
        dump = locator.list_heap()
        assert dump[0].startswith("(1.0, [")
        assert len([line for line in dump if line != "[]"]) == 2

        locator.extract_cluster()
        assert locator.list_kd_tree() == ["[ ]"]


class TestClusterPoints:
    """Tests for the config-driven wrapper."""

    def test_cluster_points_defaults(self):
        points = generate_points(30, PointPattern.BLOBS, extent=50.0, seed=1)
        result = cluster_points(points)

        assert result.capacity == 3
        assert len(result.clusters) == 10
        assert result.num_points == 30
        assert result.processing_time_ms >= 0.0
        assert "build_time_ms" in result.metadata

    def test_cluster_points_with_config(self):
        points = generate_points(24, PointPattern.UNIFORM, extent=10.0, seed=2)
        config = ClusteringConfig(capacity=4, bucket_size=2,
                                  bbox=Rectangle2D.from_bounds(0, 0, 10, 10))
        result = cluster_points(points, config)
        assert_valid_partition(result.clusters, points, 4)
        assert result.metadata["bbox"] == {"low": [0.0, 0.0], "high": [10.0, 10.0]}

    def test_cluster_points_invalid_size(self):
        points = generate_points(10, PointPattern.UNIFORM, seed=3)
        with pytest.raises(InvalidSizeError):
            cluster_points(points, ClusteringConfig(capacity=3))

    def test_cluster_points_empty(self):
        """Test that an empty point set is a size error, not a bbox error."""
        with pytest.raises(InvalidSizeError):
            cluster_points([])
        with pytest.raises(InvalidSizeError):
            cluster_points([], ClusteringConfig(bbox=BOX))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
