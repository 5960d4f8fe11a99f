"""
Data Models for the KCapFL Clustering Engine

This module defines the geometric value types and result containers used
throughout the system. Uses Python dataclasses for clean, type-hinted data
containers.

Data Flow:
    Point2D → LabeledPoint2D → XkdTree / KCapFL → Cluster → ClusteringResult
    Rectangle2D bounds the index and describes kd-tree cells during search.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Iterable, Sequence, Tuple
import json
import numpy as np


@dataclass(frozen=True)
class Point2D:
    """
    Immutable 2D point. Equality is exact coordinate equality.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """
    x: float
    y: float

    def get(self, dim: int) -> float:
        """Return the coordinate along dimension 0 (x) or 1 (y)."""
        return self.x if dim == 0 else self.y

    def distance_sq(self, other: "Point2D") -> float:
        """Squared Euclidean distance to another point."""
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def distance(self, other: "Point2D") -> float:
        return float(np.sqrt(self.distance_sq(other)))

    def as_array(self) -> np.ndarray:
        """Return coordinates as numpy array for vectorized operations."""
        return np.array([self.x, self.y], dtype=np.float64)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class Rectangle2D:
    """
    Axis-aligned rectangle given by its lower-left and upper-right corners.

    Used both as the fixed bounding box of an index and as the cell of a
    kd-tree node during nearest neighbor search.

    Attributes:
        low: Corner with the smallest coordinates
        high: Corner with the largest coordinates
    """
    low: Point2D
    high: Point2D

    def __post_init__(self):
        if self.low.x > self.high.x or self.low.y > self.high.y:
            raise ValueError(
                f"Invalid rectangle: low {self.low} exceeds high {self.high}"
            )

    @classmethod
    def from_bounds(cls, x_min: float, y_min: float,
                    x_max: float, y_max: float) -> "Rectangle2D":
        return cls(Point2D(float(x_min), float(y_min)),
                   Point2D(float(x_max), float(y_max)))

    @classmethod
    def from_points(cls, points: Iterable[Any]) -> "Rectangle2D":
        """
        Smallest rectangle containing all points.

        Args:
            points: Point2D / LabeledPoint2D objects or an (n, 2) array

        Raises:
            ValueError: If no points are given
        """
        coords = points_to_array(points)
        if len(coords) == 0:
            raise ValueError("Cannot bound an empty point set")
        x_min, y_min = coords.min(axis=0)
        x_max, y_max = coords.max(axis=0)
        return cls.from_bounds(x_min, y_min, x_max, y_max)

    def contains(self, point: Point2D) -> bool:
        """Closed containment test (boundary counts as inside)."""
        return (self.low.x <= point.x <= self.high.x and
                self.low.y <= point.y <= self.high.y)

    def expand(self, point: Point2D) -> "Rectangle2D":
        """Return the smallest rectangle containing this one and point."""
        return Rectangle2D(
            Point2D(min(self.low.x, point.x), min(self.low.y, point.y)),
            Point2D(max(self.high.x, point.x), max(self.high.y, point.y))
        )

    def width(self, dim: int) -> float:
        """Extent along dimension 0 (x) or 1 (y)."""
        return self.high.get(dim) - self.low.get(dim)

    def distance_sq(self, point: Point2D) -> float:
        """
        Squared distance from point to the closest point of the rectangle.

        Zero when the point lies inside. This is the pruning bound used
        by the kd-tree searches.
        """
        dx = max(self.low.x - point.x, 0.0, point.x - self.high.x)
        dy = max(self.low.y - point.y, 0.0, point.y - self.high.y)
        return dx * dx + dy * dy

    def left_part(self, dim: int, value: float) -> "Rectangle2D":
        """Part of the rectangle with coordinate[dim] <= value."""
        if dim == 0:
            return Rectangle2D(self.low, Point2D(value, self.high.y))
        return Rectangle2D(self.low, Point2D(self.high.x, value))

    def right_part(self, dim: int, value: float) -> "Rectangle2D":
        """Part of the rectangle with coordinate[dim] >= value."""
        if dim == 0:
            return Rectangle2D(Point2D(value, self.low.y), self.high)
        return Rectangle2D(Point2D(self.low.x, value), self.high)

    def split_at(self, dim: int, value: float) -> Tuple["Rectangle2D", "Rectangle2D"]:
        return self.left_part(dim, value), self.right_part(dim, value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "low": [self.low.x, self.low.y],
            "high": [self.high.x, self.high.y]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rectangle2D":
        return cls.from_bounds(data["low"][0], data["low"][1],
                               data["high"][0], data["high"][1])

    def __str__(self) -> str:
        return f"[{self.low}, {self.high}]"


@dataclass(frozen=True)
class LabeledPoint2D:
    """
    A point carrying an opaque, comparable label.

    Labels identify points in cluster output and order the contents of a
    leaf in debug dumps. Uniqueness is assumed, not enforced.

    Attributes:
        label: Identifier of the point (e.g. "P_0001")
        point: The underlying coordinates
    """
    label: Any
    point: Point2D

    @classmethod
    def of(cls, label: Any, x: float, y: float) -> "LabeledPoint2D":
        return cls(label, Point2D(float(x), float(y)))

    @property
    def x(self) -> float:
        return self.point.x

    @property
    def y(self) -> float:
        return self.point.y

    def get(self, dim: int) -> float:
        return self.point.get(dim)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"label": self.label, "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LabeledPoint2D":
        """Create from dictionary (JSON deserialization)."""
        return cls.of(data["label"], float(data["x"]), float(data["y"]))

    def __str__(self) -> str:
        return f"{self.label}: {self.point}"


def points_to_array(points: Iterable[Any]) -> np.ndarray:
    """
    Extract coordinates as a NumPy array for vectorized operations.

    Accepts Point2D, LabeledPoint2D or anything already array-like.

    Returns:
        np.ndarray: Shape (n, 2) array of (x, y) coordinates
    """
    if isinstance(points, np.ndarray):
        return np.asarray(points, dtype=np.float64).reshape(-1, 2)
    rows = [[p.x, p.y] for p in points]
    return np.array(rows, dtype=np.float64).reshape(-1, 2)


def labeled_points_from_array(
    coords: np.ndarray,
    labels: Optional[Sequence[Any]] = None,
    prefix: str = "P"
) -> List[LabeledPoint2D]:
    """
    Wrap an (n, 2) coordinate array as labeled points.

    Args:
        coords: Array of shape (n, 2)
        labels: Optional labels, one per row. Defaults to "P_0000", ...
        prefix: Prefix for generated labels

    Returns:
        List of LabeledPoint2D in row order
    """
    coords = np.asarray(coords, dtype=np.float64).reshape(-1, 2)
    if labels is None:
        labels = [f"{prefix}_{i:04d}" for i in range(len(coords))]
    elif len(labels) != len(coords):
        raise ValueError(
            f"Got {len(labels)} labels for {len(coords)} points"
        )
    return [
        LabeledPoint2D.of(label, x, y)
        for label, (x, y) in zip(labels, coords)
    ]


@dataclass
class Cluster:
    """
    One finalized group of exactly `capacity` points.

    Attributes:
        members: Points of the cluster, ordered by distance from the anchor
        radius_sq: Squared distance from the anchor to its farthest member
    """
    members: List[LabeledPoint2D]
    radius_sq: float

    @property
    def center(self) -> LabeledPoint2D:
        """The anchor point (facility) the cluster was grown from."""
        return self.members[0]

    @property
    def radius(self) -> float:
        return float(np.sqrt(self.radius_sq))

    @property
    def labels(self) -> List[Any]:
        return [m.label for m in self.members]

    def __len__(self) -> int:
        return len(self.members)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": self.center.label,
            "radius_sq": self.radius_sq,
            "members": [m.to_dict() for m in self.members]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cluster":
        return cls(
            members=[LabeledPoint2D.from_dict(m) for m in data["members"]],
            radius_sq=float(data["radius_sq"])
        )


@dataclass
class ClusteringResult:
    """
    Complete output of a clustering run.

    Attributes:
        clusters: Clusters in extraction order (non-decreasing radius is
            typical but not guaranteed after stale-candidate repairs)
        capacity: Number of points per cluster
        processing_time_ms: Wall-clock time of build + extraction
        metadata: Additional run information
    """
    clusters: List[Cluster]
    capacity: int
    processing_time_ms: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def num_points(self) -> int:
        return sum(len(c) for c in self.clusters)

    @property
    def total_radius_sq(self) -> float:
        return float(sum(c.radius_sq for c in self.clusters))

    @property
    def max_radius_sq(self) -> float:
        if not self.clusters:
            return 0.0
        return float(max(c.radius_sq for c in self.clusters))

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "=" * 60,
            "KCAPFL CLUSTERING REPORT",
            "=" * 60,
            f"Points clustered: {self.num_points}",
            f"Capacity (k):     {self.capacity}",
            f"Clusters:         {len(self.clusters)}",
            f"Max radius:       {np.sqrt(self.max_radius_sq):.4f}",
            f"Sum of radii^2:   {self.total_radius_sq:.4f}",
            f"Processing time:  {self.processing_time_ms:.2f} ms",
            "=" * 60,
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capacity": self.capacity,
            "processing_time_ms": self.processing_time_ms,
            "clusters": [c.to_dict() for c in self.clusters],
            "metadata": self.metadata
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusteringResult":
        return cls(
            clusters=[Cluster.from_dict(c) for c in data["clusters"]],
            capacity=int(data["capacity"]),
            processing_time_ms=float(data.get("processing_time_ms", 0.0)),
            metadata=data.get("metadata") or {}
        )

    def save_to_json(self, filepath: str) -> None:
        """Save result to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_from_json(cls, filepath: str) -> "ClusteringResult":
        """Load result from JSON file."""
        with open(filepath, 'r') as f:
            return cls.from_dict(json.load(f))
