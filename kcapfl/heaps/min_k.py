"""
MinK: Bounded Selector of the k Smallest Keys

MinK keeps the k smallest (key, value) pairs seen so far. It is the
accumulator behind every k-nearest-neighbor query of the extended kd-tree,
where keys are squared distances and values are labeled points.

Implementation:
    A 1-indexed, array-backed max-heap. The root (index 1) always holds the
    largest retained key, i.e. the current k-th smallest key. Once the heap
    is full, a new pair only enters by replacing the root, and only when
    its key is strictly smaller.

Complexity Analysis:
- add: O(log k)
- get_kth: O(1)
- list: O(k log k)
- Space: O(k)
"""

from typing import Generic, List, Optional, TypeVar

from ..errors import InvalidCapacityError

K = TypeVar("K")
V = TypeVar("V")


class _Pair(Generic[K, V]):
    __slots__ = ("key", "value")

    def __init__(self, key: K, value: V):
        self.key = key
        self.value = value


class MinK(Generic[K, V]):
    """
    Fixed-capacity max-heap retaining the k smallest keys.

    Example:
        >>> mk = MinK(2, float('inf'))
        >>> for key, value in [(5.0, 'a'), (1.0, 'b'), (3.0, 'c')]:
        ...     mk.add(key, value)
        >>> mk.get_kth()
        3.0
        >>> mk.list()
        ['b', 'c']

    Attributes:
        k: Number of pairs retained
        max_key: Sentinel returned by get_kth() until k pairs are held
    """

    def __init__(self, k: int, max_key: K):
        if k <= 0:
            raise InvalidCapacityError(f"MinK capacity must be positive, got {k}")
        self.k = k
        self.max_key = max_key
        # Slot 0 is unused so that children of i are 2i and 2i + 1
        self._heap: List[Optional[_Pair]] = [None]

    def size(self) -> int:
        """Number of pairs currently retained."""
        return len(self._heap) - 1

    def __len__(self) -> int:
        return self.size()

    def clear(self) -> None:
        self._heap = [None]

    def get_kth(self) -> K:
        """
        Current pruning bound.

        Returns:
            The largest retained key once k pairs are held, else max_key
        """
        if self.size() == self.k:
            return self._heap[1].key
        return self.max_key

    def add(self, key: K, value: V) -> None:
        """
        Offer a pair to the selector.

        While fewer than k pairs are held the pair is always kept; after
        that it replaces the current maximum only if key is strictly
        smaller.
        """
        if self.size() < self.k:
            pair = _Pair(key, value)
            self._heap.append(pair)
            i = self._sift_up(self.size(), key)
            self._heap[i] = pair
        elif key < self._heap[1].key:
            pair = _Pair(key, value)
            self._heap[1] = pair
            i = self._sift_down(1, key)
            self._heap[i] = pair

    def _sift_up(self, i: int, key: K) -> int:
        # Move smaller-keyed parents down until key fits
        while i > 1 and key > self._heap[i // 2].key:
            self._heap[i] = self._heap[i // 2]
            i //= 2
        return i

    def _sift_down(self, i: int, key: K) -> int:
        n = self.size()
        while 2 * i <= n:
            child = 2 * i
            if child + 1 <= n and self._heap[child + 1].key > self._heap[child].key:
                child += 1
            if self._heap[child].key > key:
                self._heap[i] = self._heap[child]
                i = child
            else:
                break
        return i

    def keys(self) -> List[K]:
        """Retained keys in ascending order."""
        return sorted(pair.key for pair in self._heap[1:])

    def list(self) -> List[V]:
        """
        Retained values ordered by ascending key.

        Ties are not ordered in any particular way.
        """
        pairs = sorted(self._heap[1:], key=lambda pair: pair.key)
        return [pair.value for pair in pairs]

    def is_valid_heap(self) -> bool:
        """Check the max-heap property (every parent >= its children)."""
        n = self.size()
        for i in range(2, n + 1):
            if self._heap[i].key > self._heap[i // 2].key:
                return False
        return True

    def __repr__(self) -> str:
        return f"MinK(k={self.k}, size={self.size()}, kth={self.get_kth()!r})"
