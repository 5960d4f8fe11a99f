"""
Heap Structures

- min_k: fixed-capacity selector of the k smallest keys (k-NN accumulator)
- leftist_heap: meldable min-heap used as the candidate priority queue
"""

from .min_k import MinK
from .leftist_heap import LeftistHeap, LHNode

__all__ = [
    'MinK',
    'LeftistHeap',
    'LHNode'
]
