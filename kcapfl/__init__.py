"""
KCapFL: k-Capacitated Facility Location Clustering

This package partitions a 2D point set into disjoint clusters of exactly k
points with a greedy facility-location rule, backed by three cooperating
data structures.

Main modules:
- data_models: Points, rectangles, clusters and results
- heaps: MinK bounded selector and leftist (meldable) heap
- geometry: Extended kd-tree spatial index
- clustering: The KCapFL greedy extractor
- synthetic_data: Point set generation and I/O
- hpc: Timing and benchmarking utilities
"""

from .clustering.kcap_fl import KCapFL, cluster_points
from .config import ClusteringConfig
from .data_models import (
    Cluster,
    ClusteringResult,
    LabeledPoint2D,
    Point2D,
    Rectangle2D,
)
from .errors import (
    EmptyHeapError,
    InternalConsistencyError,
    InvalidCapacityError,
    InvalidSizeError,
    KCapFLError,
    NotFoundError,
    OutOfBoundsError,
)
from .geometry.xkd_tree import XkdTree
from .heaps.leftist_heap import LeftistHeap
from .heaps.min_k import MinK

__version__ = "1.0.0"

__all__ = [
    'KCapFL',
    'cluster_points',
    'ClusteringConfig',
    'Cluster',
    'ClusteringResult',
    'LabeledPoint2D',
    'Point2D',
    'Rectangle2D',
    'EmptyHeapError',
    'InternalConsistencyError',
    'InvalidCapacityError',
    'InvalidSizeError',
    'KCapFLError',
    'NotFoundError',
    'OutOfBoundsError',
    'XkdTree',
    'LeftistHeap',
    'MinK',
]
