"""
Exception Types for the KCapFL Clustering Engine

All errors raised by the package derive from KCapFLError. Each concrete
error also derives from the closest builtin exception so that callers that
only know about ValueError / LookupError keep working.

Hierarchy:
    KCapFLError
    ├── InvalidCapacityError      (ValueError)   non-positive k or bucket size
    ├── InvalidSizeError          (ValueError)   point count not a multiple of k
    ├── OutOfBoundsError          (ValueError)   insert outside the bounding box
    ├── NotFoundError             (LookupError)  delete of an absent point
    │   └── EmptyHeapError                       extract-min on an empty heap
    └── InternalConsistencyError  (AssertionError)
"""


class KCapFLError(Exception):
    """Base class for all errors raised by kcapfl."""


class InvalidCapacityError(KCapFLError, ValueError):
    """A capacity, bucket size or k parameter was not positive."""


class InvalidSizeError(KCapFLError, ValueError):
    """The point set size is not a positive multiple of the capacity."""


class OutOfBoundsError(KCapFLError, ValueError):
    """A point lies outside the fixed bounding rectangle of an index."""


class NotFoundError(KCapFLError, LookupError):
    """The requested point (or heap entry) does not exist."""


class EmptyHeapError(NotFoundError):
    """extract_min() was called on an empty heap."""


class InternalConsistencyError(KCapFLError, AssertionError):
    """
    Raised when the extractor's bookkeeping is broken.

    This is never expected during normal use: it signals that the candidate
    heap ran dry while the spatial index still held unclaimed points.
    """
