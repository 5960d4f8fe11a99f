"""
Clustering Module

Greedy k-capacitated facility location on top of the extended kd-tree and
the leftist heap.
"""

from .kcap_fl import KCapFL, cluster_points

__all__ = [
    'KCapFL',
    'cluster_points'
]
