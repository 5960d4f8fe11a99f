"""
Clustering Configuration

Construction parameters for KCapFL runs, with JSON persistence so that a
run can be reproduced from a file. Command line flags override values
loaded from a file.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
import json

from .data_models import Rectangle2D
from .errors import InvalidCapacityError


@dataclass
class ClusteringConfig:
    """
    Parameters of a clustering run.

    Attributes:
        capacity: Number of points per cluster (k)
        bucket_size: Maximum number of points per kd-tree leaf
        bbox: Fixed region of the index; derived from the data when None
        padding: Margin added around a derived bounding box
        seed: Random seed for synthetic data generation
    """
    capacity: int = 3
    bucket_size: int = 4
    bbox: Optional[Rectangle2D] = None
    padding: float = 0.0
    seed: int = 42

    def validate(self) -> "ClusteringConfig":
        """
        Check parameter ranges.

        Raises:
            InvalidCapacityError: If capacity or bucket_size is not positive
            ValueError: If padding is negative
        """
        if self.capacity <= 0:
            raise InvalidCapacityError(f"Capacity must be positive, got {self.capacity}")
        if self.bucket_size <= 0:
            raise InvalidCapacityError(
                f"Bucket size must be positive, got {self.bucket_size}"
            )
        if self.padding < 0:
            raise ValueError(f"Padding must be non-negative, got {self.padding}")
        return self

    def bounding_box_for(self, points: Iterable[Any]) -> Rectangle2D:
        """Return the configured bbox, or one fitted (and padded) to points."""
        if self.bbox is not None:
            return self.bbox
        fitted = Rectangle2D.from_points(points)
        return Rectangle2D.from_bounds(
            fitted.low.x - self.padding, fitted.low.y - self.padding,
            fitted.high.x + self.padding, fitted.high.y + self.padding
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "capacity": self.capacity,
            "bucket_size": self.bucket_size,
            "bbox": self.bbox.to_dict() if self.bbox is not None else None,
            "padding": self.padding,
            "seed": self.seed
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusteringConfig":
        """Create from dictionary (JSON deserialization)."""
        bbox = data.get("bbox")
        return cls(
            capacity=int(data.get("capacity", cls.capacity)),
            bucket_size=int(data.get("bucket_size", cls.bucket_size)),
            bbox=Rectangle2D.from_dict(bbox) if bbox else None,
            padding=float(data.get("padding", cls.padding)),
            seed=int(data.get("seed", cls.seed))
        ).validate()

    def save_to_json(self, filepath: str) -> None:
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_from_json(cls, filepath: str) -> "ClusteringConfig":
        with open(filepath, 'r') as f:
            return cls.from_dict(json.load(f))
