"""
Exceptions Raised While Building and Combining Intervals
--------------------------------------------------------

All exceptions raised by :mod:`rangewell` derive from
:class:`~rangewell.errors.RangewellError`, itself a :class:`ValueError`, so callers that already
guard against bad input with ``except ValueError`` keep working.

Only malformed input raises.  A query that finds nothing, or a query on a sequence name the
subject has never seen, returns an empty result instead.

Module Contents
~~~~~~~~~~~~~~~

    - :class:`~rangewell.errors.InvalidRangeError` -- malformed coordinates or sequence name
    - :class:`~rangewell.errors.InvalidStrandError` -- unrecognized strand symbol
    - :class:`~rangewell.errors.LengthMismatchError` -- a column whose length does not match
    - :class:`~rangewell.errors.NoOverlapError` -- an intersection of two disjoint intervals
    - :class:`~rangewell.errors.IndexMismatchError` -- an index used with another collection
"""


class RangewellError(ValueError):
    """Base class for all errors raised by this package."""


class InvalidRangeError(RangewellError):
    """Raised when an interval's coordinates or sequence name are invalid."""


class InvalidStrandError(RangewellError):
    """Raised when a strand symbol is not one of ``+``, ``-`` or ``*``."""


class LengthMismatchError(RangewellError):
    """Raised when a column of values does not line up with the collection it describes."""


class NoOverlapError(RangewellError):
    """Raised when intersecting two intervals that do not overlap."""


class IndexMismatchError(RangewellError):
    """Raised when an overlap index is used with a collection it was not built from."""
