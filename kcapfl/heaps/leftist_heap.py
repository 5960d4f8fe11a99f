"""
Leftist Heap: a Meldable Min-Heap of Key/Value Pairs

KCapFL uses this heap as its priority queue of candidate clusters keyed by
squared radius. Besides insert and extract-min, two heaps can be melded in
logarithmic time and a heap can be split around a threshold key.

Structure:
    Every node stores a null path length (NPL): the length of the shortest
    path from the node to a node with a missing child. A missing child has
    NPL -1, so a node with at most one child has NPL 0.

Invariants:
    - Heap order: every node's key <= both children's keys
    - Leftist: NPL(left child) >= NPL(right child) for every node
    - NPL(node) = NPL(right child) + 1

Because the right spine is always the shortest path, it has O(log n)
nodes, which bounds the cost of merge.

Complexity Analysis:
- insert: O(log n)
- extract_min: O(log n)
- merge_with: O(log n + log m)
- split: O(n) traversal + O(r log n) re-merging of r detached subtrees

Reference:
    Crane, C. A. (1972). Linear lists and priority queues as balanced
    binary trees. Stanford University, STAN-CS-72-259.
"""

from typing import Any, Generic, List, Optional, Tuple, TypeVar

from ..errors import EmptyHeapError

K = TypeVar("K")
V = TypeVar("V")


class LHNode:
    """
    A node in the leftist heap.

    Attributes:
        key: Priority of the entry (smaller comes out first)
        value: Payload
        left: Left subtree (the one with the longer null path)
        right: Right subtree
        npl: Null path length of this node
    """
    __slots__ = ("key", "value", "left", "right", "npl")

    def __init__(self, key: Any, value: Any):
        self.key = key
        self.value = value
        self.left: Optional["LHNode"] = None
        self.right: Optional["LHNode"] = None
        self.npl = 0


def _npl(node: Optional[LHNode]) -> int:
    return -1 if node is None else node.npl


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(str(v) for v in value) + "]"
    return str(value)


class LeftistHeap(Generic[K, V]):
    """
    Meldable min-heap over (key, value) pairs.

    Example:
        >>> h = LeftistHeap()
        >>> for key in [5, 1, 3]:
        ...     h.insert(key, f"v{key}")
        >>> h.extract_min()
        'v1'
        >>> other = LeftistHeap()
        >>> other.insert(2, "v2")
        >>> h.merge_with(other)
        >>> other.is_empty()
        True
        >>> h.get_min_key()
        2
    """

    def __init__(self):
        self.root: Optional[LHNode] = None
        self._size = 0

    def is_empty(self) -> bool:
        return self.root is None

    def __len__(self) -> int:
        return self._size

    def clear(self) -> None:
        self.root = None
        self._size = 0

    def insert(self, key: K, value: V) -> None:
        """Insert a pair by merging the heap with a singleton node."""
        self.root = self._merge(self.root, LHNode(key, value))
        self._size += 1

    def merge_with(self, other: Optional["LeftistHeap[K, V]"]) -> None:
        """
        Meld another heap into this one.

        The donor is left structurally empty so its nodes, now owned by
        this heap, cannot be reached through it anymore. Melding a heap
        with itself (or with None) does nothing.
        """
        if other is None or other is self:
            return
        self.root = self._merge(self.root, other.root)
        self._size += other._size
        other.root = None
        other._size = 0

    @classmethod
    def _merge(cls, u: Optional[LHNode], v: Optional[LHNode]) -> Optional[LHNode]:
        """
        Merge two leftist trees and return the new root.

        The smaller root wins; its right subtree is merged with the other
        tree, and children are swapped if the right side became the one
        with the longer null path.
        """
        if u is None:
            return v
        if v is None:
            return u
        if u.key > v.key:
            u, v = v, u
        if u.left is None:
            u.left = v
        else:
            u.right = cls._merge(u.right, v)
            if u.left.npl < u.right.npl:
                u.left, u.right = u.right, u.left
            u.npl = u.right.npl + 1
        return u

    def get_min_key(self) -> Optional[K]:
        """Return the smallest key, or None if the heap is empty."""
        if self.root is None:
            return None
        return self.root.key

    def extract_min(self) -> V:
        """
        Remove and return the value with the smallest key.

        Raises:
            EmptyHeapError: If the heap is empty
        """
        if self.root is None:
            raise EmptyHeapError("extract_min on an empty heap")
        value = self.root.value
        self.root = self._merge(self.root.left, self.root.right)
        self._size -= 1
        return value

    def split(self, threshold: K) -> "LeftistHeap[K, V]":
        """
        Move every entry with key > threshold into a new heap.

        A preorder walk detaches each subtree whose root key exceeds the
        threshold (all of its descendants do too, by heap order). The
        detached subtrees are melded, left to right, into the returned
        heap, and the remaining structure is repaired so that NPL values
        and the leftist property hold again.

        Args:
            threshold: Keys strictly greater than this are moved

        Returns:
            New heap holding the removed entries
        """
        self.root, detached = self._detach_above(self.root, threshold)

        result: LeftistHeap[K, V] = LeftistHeap()
        if detached:
            moved = 0
            for subtree in detached:
                moved += self._count(subtree)
                result.root = self._merge(result.root, subtree)
            result._size = moved
            self._size -= moved
            self.root = self._fix(self.root)
        return result

    @staticmethod
    def _detach_above(root: Optional[LHNode],
                      threshold: Any) -> Tuple[Optional[LHNode], List[LHNode]]:
        detached: List[LHNode] = []
        if root is None:
            return None, detached
        if root.key > threshold:
            return None, [root]

        # (parent, side) pairs, popped in left-to-right preorder
        stack: List[Tuple[LHNode, str]] = []
        if root.right is not None:
            stack.append((root, "right"))
        if root.left is not None:
            stack.append((root, "left"))
        while stack:
            parent, side = stack.pop()
            node = getattr(parent, side)
            if node.key > threshold:
                detached.append(node)
                setattr(parent, side, None)
                continue
            if node.right is not None:
                stack.append((node, "right"))
            if node.left is not None:
                stack.append((node, "left"))
        return root, detached

    @staticmethod
    def _fix(root: Optional[LHNode]) -> Optional[LHNode]:
        """Recompute NPL values bottom-up and restore the leftist property."""
        if root is None:
            return None
        order: List[LHNode] = []
        stack = [root]
        while stack:
            node = stack.pop()
            order.append(node)
            if node.left is not None:
                stack.append(node.left)
            if node.right is not None:
                stack.append(node.right)

        # Children always come after their parent in `order`
        for node in reversed(order):
            if node.left is None and node.right is not None:
                node.left, node.right = node.right, None
            if node.right is None:
                node.npl = 0
            else:
                if node.left.npl < node.right.npl:
                    node.left, node.right = node.right, node.left
                node.npl = node.right.npl + 1
        return root

    @staticmethod
    def _count(root: Optional[LHNode]) -> int:
        count = 0
        stack = [root] if root is not None else []
        while stack:
            node = stack.pop()
            count += 1
            if node.left is not None:
                stack.append(node.left)
            if node.right is not None:
                stack.append(node.right)
        return count

    def list(self) -> List[str]:
        """
        Debug dump of the heap structure.

        Preorder, right subtree before left. Each node renders as
        "(key, value) [npl]" and each missing child as "[]".
        """
        out: List[str] = []
        stack: List[Optional[LHNode]] = [self.root]
        while stack:
            node = stack.pop()
            if node is None:
                out.append("[]")
                continue
            out.append(f"({node.key}, {_format_value(node.value)}) [{node.npl}]")
            stack.append(node.left)
            stack.append(node.right)
        return out

    def check_invariants(self) -> bool:
        """
        Verify heap order, the leftist property and stored NPL values.

        Returns:
            True if every node satisfies all three invariants
        """
        stack = [self.root] if self.root is not None else []
        while stack:
            node = stack.pop()
            for child in (node.left, node.right):
                if child is not None:
                    if child.key < node.key:
                        return False
                    stack.append(child)
            if _npl(node.left) < _npl(node.right):
                return False
            if node.npl != min(_npl(node.left), _npl(node.right)) + 1:
                return False
        return True

    def __repr__(self) -> str:
        return f"LeftistHeap(size={self._size}, min_key={self.get_min_key()!r})"
