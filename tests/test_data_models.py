"""
Tests for Data Models, Configuration and Synthetic Data

Test Categories:
1. Point and rectangle geometry
2. Cluster / result serialization
3. ClusteringConfig validation and persistence
4. Point set generation and file I/O

Run with: pytest tests/test_data_models.py -v
"""

import json

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kcapfl.config import ClusteringConfig
from kcapfl.data_models import (
    Cluster,
    ClusteringResult,
    LabeledPoint2D,
    Point2D,
    Rectangle2D,
    labeled_points_from_array,
    points_to_array,
)
from kcapfl.errors import InvalidCapacityError
from kcapfl.synthetic_data import (
    PointPattern,
    generate_points,
    load_points,
    save_points_to_csv,
    save_points_to_json,
)


class TestGeometry:
    """Tests for Point2D and Rectangle2D."""

    def test_point_distance(self):
        p, q = Point2D(0, 0), Point2D(3, 4)
        assert p.distance_sq(q) == 25.0
        assert p.distance(q) == 5.0
        assert p.get(0) == 0 and q.get(1) == 4

    def test_point_str(self):
        assert str(Point2D(1.0, 2.5)) == "(1.0, 2.5)"
        assert str(LabeledPoint2D.of("a", 1, 2)) == "a: (1.0, 2.0)"

    def test_invalid_rectangle(self):
        with pytest.raises(ValueError):
            Rectangle2D.from_bounds(5, 0, 1, 10)

    def test_contains_is_closed(self):
        box = Rectangle2D.from_bounds(0, 0, 10, 10)
        assert box.contains(Point2D(0, 0))
        assert box.contains(Point2D(10, 10))
        assert not box.contains(Point2D(10.001, 5))

    def test_distance_to_rectangle(self):
        box = Rectangle2D.from_bounds(0, 0, 10, 10)
        assert box.distance_sq(Point2D(5, 5)) == 0.0
        assert box.distance_sq(Point2D(13, 5)) == 9.0
        assert box.distance_sq(Point2D(-3, -4)) == 25.0

    def test_split_at(self):
        box = Rectangle2D.from_bounds(0, 0, 10, 8)
        left, right = box.split_at(0, 4.0)
        assert left == Rectangle2D.from_bounds(0, 0, 4, 8)
        assert right == Rectangle2D.from_bounds(4, 0, 10, 8)

        low, high = box.split_at(1, 2.0)
        assert low.width(1) == 2.0
        assert high.width(1) == 6.0

    def test_from_points_and_expand(self):
        pts = [LabeledPoint2D.of("a", 1, 5), LabeledPoint2D.of("b", 4, 2)]
        box = Rectangle2D.from_points(pts)
        assert box == Rectangle2D.from_bounds(1, 2, 4, 5)
        assert box.expand(Point2D(0, 9)) == Rectangle2D.from_bounds(0, 2, 4, 9)

        with pytest.raises(ValueError):
            Rectangle2D.from_points([])

    def test_array_conversion(self):
        coords = np.array([[1.0, 2.0], [3.0, 4.0]])
        pts = labeled_points_from_array(coords)
        assert [p.label for p in pts] == ["P_0000", "P_0001"]
        np.testing.assert_array_equal(points_to_array(pts), coords)

        with pytest.raises(ValueError):
            labeled_points_from_array(coords, labels=["only-one"])


class TestSerialization:
    """Tests for JSON round trips of clustering output."""

    def make_result(self) -> ClusteringResult:
        a, b = LabeledPoint2D.of("a", 0, 0), LabeledPoint2D.of("b", 3, 4)
        c, d = LabeledPoint2D.of("c", 9, 9), LabeledPoint2D.of("d", 9, 10)
        return ClusteringResult(
            clusters=[Cluster([c, d], 1.0), Cluster([a, b], 25.0)],
            capacity=2,
            processing_time_ms=1.5,
            metadata={"repaired_candidates": 0}
        )

    def test_result_properties(self):
        result = self.make_result()
        assert result.num_points == 4
        assert result.total_radius_sq == 26.0
        assert result.max_radius_sq == 25.0
        assert result.clusters[1].radius == 5.0
        assert result.clusters[0].center.label == "c"
        assert "KCAPFL CLUSTERING REPORT" in result.summary()

    def test_empty_result(self):
        result = ClusteringResult(clusters=[], capacity=3)
        assert result.num_points == 0
        assert result.max_radius_sq == 0.0

    def test_json_round_trip(self, tmp_path):
        result = self.make_result()
        path = tmp_path / "result.json"
        result.save_to_json(str(path))

        loaded = ClusteringResult.load_from_json(str(path))
        assert loaded.capacity == 2
        assert [c.labels for c in loaded.clusters] == [["c", "d"], ["a", "b"]]
        assert loaded.clusters[1].members[1] == LabeledPoint2D.of("b", 3, 4)
        assert loaded.metadata == {"repaired_candidates": 0}


class TestConfig:
    """Tests for ClusteringConfig."""

    def test_defaults(self):
        config = ClusteringConfig().validate()
        assert config.capacity == 3
        assert config.bucket_size == 4
        assert config.bbox is None

    @pytest.mark.parametrize("field_name", ["capacity", "bucket_size"])
    def test_non_positive_rejected(self, field_name):
        config = ClusteringConfig(**{field_name: 0})
        with pytest.raises(InvalidCapacityError):
            config.validate()

    def test_negative_padding_rejected(self):
        with pytest.raises(ValueError):
            ClusteringConfig(padding=-1.0).validate()

    def test_bounding_box_from_data(self):
        pts = [LabeledPoint2D.of("a", 2, 3), LabeledPoint2D.of("b", 6, 5)]
        box = ClusteringConfig(padding=1.0).bounding_box_for(pts)
        assert box == Rectangle2D.from_bounds(1, 2, 7, 6)

        fixed = Rectangle2D.from_bounds(0, 0, 100, 100)
        assert ClusteringConfig(bbox=fixed).bounding_box_for(pts) is fixed

    def test_json_round_trip(self, tmp_path):
        config = ClusteringConfig(capacity=5, bucket_size=8,
                                  bbox=Rectangle2D.from_bounds(0, 0, 50, 50),
                                  seed=7)
        path = tmp_path / "config.json"
        config.save_to_json(str(path))
        assert ClusteringConfig.load_from_json(str(path)) == config

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"capacity": 6}))
        config = ClusteringConfig.load_from_json(str(path))
        assert config.capacity == 6
        assert config.bucket_size == 4
        assert config.bbox is None

    def test_invalid_file_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"capacity": -1}))
        with pytest.raises(InvalidCapacityError):
            ClusteringConfig.load_from_json(str(path))


class TestSyntheticData:
    """Tests for point generation and file I/O."""

    @pytest.mark.parametrize("pattern", list(PointPattern))
    def test_count_and_bounds(self, pattern):
        points = generate_points(50, pattern, extent=20.0, seed=1)
        assert len(points) == 50
        coords = points_to_array(points)
        assert coords.min() >= 0.0
        assert coords.max() <= 20.0
        assert len({p.label for p in points}) == 50

    def test_reproducible(self):
        a = generate_points(30, PointPattern.BLOBS, seed=42)
        b = generate_points(30, PointPattern.BLOBS, seed=42)
        c = generate_points(30, PointPattern.BLOBS, seed=43)
        assert a == b
        assert a != c

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            generate_points(-1)

    def test_json_io(self, tmp_path):
        points = generate_points(10, seed=3)
        path = tmp_path / "points.json"
        save_points_to_json(points, str(path))
        assert load_points(str(path)) == points

    def test_csv_io(self, tmp_path):
        points = generate_points(10, seed=4)
        path = tmp_path / "points.csv"
        save_points_to_csv(points, str(path))

        loaded = load_points(str(path))
        assert [p.label for p in loaded] == [p.label for p in points]
        np.testing.assert_allclose(points_to_array(loaded), points_to_array(points))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
