"""
Geometry Module for KCapFL Clustering

This module provides the spatial index used by the clustering engine:
- Extended kd-tree with bucketed leaves, k-nearest-neighbor search and
  deletion
- Brute-force baselines for validation and benchmarking
"""

from .xkd_tree import (
    XkdTree,
    InternalNode,
    LeafNode,
    brute_force_nearest_neighbor,
    brute_force_k_nearest,
    validate_xkdtree
)

__all__ = [
    'XkdTree',
    'InternalNode',
    'LeafNode',
    'brute_force_nearest_neighbor',
    'brute_force_k_nearest',
    'validate_xkdtree'
]
