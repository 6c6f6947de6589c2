"""
Indexing Intervals for Fast Overlap Queries
-------------------------------------------

This module builds an index over one collection of intervals (the "subject") so that the subject
intervals overlapping any query interval can be found in ``O(log n + k)`` time.

Examples of Querying an Index
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

.. code-block:: python

    >>> from rangewell.intervals import Interval, IntervalCollection
    >>> from rangewell.overlap_index import OverlapIndex
    >>> subject = IntervalCollection([
    ...     Interval("chr1", 15, 25, "+"),
    ...     Interval("chr1", 30, 40, "+"),
    ...     Interval("chr2", 1, 100, "-"),
    ... ])
    >>> index = OverlapIndex.build(subject)
    >>> index.query(Interval("chr1", 10, 20, "+"))
    [0]
    >>> index.query(Interval("chr1", 10, 35, "*"))
    [0, 1]
    >>> index.query(Interval("chr3", 10, 20, "+"))
    []
    >>> index.nearest(Interval("chr1", 27, 28, "+"))
    [0, 1]

Implementation
~~~~~~~~~~~~~~

Subject intervals are partitioned by sequence name.  Each partition sorts its intervals by start
and lays an implicit binary tree over the sorted array: the element at index ``i`` is a node at
level ``k`` when the lowest ``k`` bits of ``i`` are set and bit ``k`` is not, with children at
``i - 2**(k-1)`` and ``i + 2**(k-1)``.  Each node stores the largest end in its subtree, so a
query can skip any subtree whose largest end lies before the query start.  The tree needs no
pointers and is built with a single sort plus one pass per level.

An index is immutable once built and holds its own copy of the subject coordinates, so it may be
shared by threads.  A different subject collection needs a new index.

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.overlap_index.OverlapIndex` -- Finds the subject intervals that
        overlap, are enclosed by, or are nearest to a query interval
"""

import bisect
import logging
from typing import Dict
from typing import Iterator
from typing import List
from typing import Tuple

from rangewell.intervals import Interval
from rangewell.intervals import IntervalCollection
from rangewell.intervals import Strand
from rangewell.itertools import MergingIterator
from rangewell.itertools import peekable

# Subtrees at or below this level are scanned linearly rather than descended into
_SCAN_LEVEL: int = 3


class _Partition:
    """The subject intervals on a single sequence name.

    Intervals are addressed by their position in start-sorted order; ``indices`` maps a position
    back to the interval's index in the subject collection.
    """

    def __init__(self, indices: List[int], subject: IntervalCollection) -> None:
        self.indices: List[int] = sorted(indices, key=lambda i: (subject[i].start, i))
        self.starts: List[int] = [subject[i].start for i in self.indices]
        self.ends: List[int] = [subject[i].end for i in self.indices]
        self.strands: List[Strand] = [subject[i].strand for i in self.indices]
        self.max_ends, self.root_level = _augment(self.ends)

        # positions ordered by end, for finding the closest interval upstream of a query
        self._by_end: List[int] = sorted(range(len(self.ends)), key=lambda p: self.ends[p])
        self._sorted_ends: List[int] = [self.ends[p] for p in self._by_end]

    def __len__(self) -> int:
        return len(self.indices)

    def overlapping(self, start: int, end: int) -> List[int]:
        """Returns the positions, in ascending order, of intervals intersecting [start, end]."""
        n = len(self.indices)
        hits: List[int] = []
        root = (1 << self.root_level) - 1
        stack: List[Tuple[int, int, bool]] = [(self.root_level, root, False)]
        while stack:
            level, node, left_done = stack.pop()
            if level <= _SCAN_LEVEL:
                first = node >> level << level
                last = min(first + (1 << (level + 1)) - 1, n)
                pos = first
                while pos < last and self.starts[pos] <= end:
                    if start <= self.ends[pos]:
                        hits.append(pos)
                    pos += 1
            elif not left_done:
                left = node - (1 << (level - 1))
                stack.append((level, node, True))
                # the left child may lie past the end of the array, in which case part of its
                # subtree may still hold real intervals
                if left >= n or self.max_ends[left] >= start:
                    stack.append((level - 1, left, False))
            elif node < n and self.starts[node] <= end:
                if start <= self.ends[node]:
                    hits.append(node)
                stack.append((level - 1, node + (1 << (level - 1)), False))
        return hits

    def preceding(self, start: int) -> Iterator[int]:
        """Yields the positions of intervals that end before ``start``, closest first."""
        for k in range(bisect.bisect_left(self._sorted_ends, start) - 1, -1, -1):
            yield self._by_end[k]

    def following(self, end: int) -> Iterator[int]:
        """Yields the positions of intervals that start after ``end``, closest first."""
        yield from range(bisect.bisect_right(self.starts, end), len(self.starts))


def _augment(ends: List[int]) -> Tuple[List[int], int]:
    """Computes the largest end below each node of the implicit tree over start-sorted intervals.

    Returns:
        the largest end in the subtree rooted at each position, and the level of the root
    """
    n = len(ends)
    max_ends = list(ends)
    # the rightmost node at the current level, and the largest end below it
    last_pos = (n - 1) & ~1
    last = max_ends[last_pos]
    level = 1
    while (1 << level) <= n:
        half = 1 << (level - 1)
        for pos in range((half << 1) - 1, n, half << 2):
            left = max_ends[pos - half]
            right = max_ends[pos + half] if pos + half < n else last
            max_ends[pos] = max(ends[pos], left, right)
        last_pos = last_pos - half if (last_pos >> level) & 1 else last_pos + half
        if last_pos < n and max_ends[last_pos] > last:
            last = max_ends[last_pos]
        level += 1
    return max_ends, level - 1


class OverlapIndex:
    """An index over a collection of subject intervals, for overlap queries.

    Use :func:`~rangewell.overlap_index.OverlapIndex.build` to create an index.  All queries
    return indices into the subject collection, in ascending order.  A query on a sequence name
    with no subject intervals returns no hits.

    Strand matching: unless ``ignore_strand`` is True, a subject interval only matches a query
    interval when their strands are equal or either is unknown (``*``).
    """

    def __init__(self, partitions: Dict[str, _Partition], subject: IntervalCollection) -> None:
        self._partitions = partitions
        self._size = len(subject)
        self.subject: IntervalCollection = subject

    @classmethod
    def build(cls, subject: IntervalCollection) -> "OverlapIndex":
        """Builds an index over the given subject intervals."""
        logger = logging.getLogger(__name__)
        partitions: Dict[str, _Partition] = {}
        for seq_name, indices in subject.partition().items():
            partitions[seq_name] = _Partition(indices=indices, subject=subject)
            logger.debug("Indexed %d intervals on %s", len(indices), seq_name)
        return cls(partitions=partitions, subject=subject)

    def __len__(self) -> int:
        """The number of subject intervals in the index."""
        return self._size

    def built_from(self, subject: IntervalCollection) -> bool:
        """True if this index was built over the given collection."""
        return subject is self.subject

    @property
    def seq_names(self) -> List[str]:
        """The sequence names with at least one subject interval."""
        return list(self._partitions)

    def query(self, interval: Interval, ignore_strand: bool = False) -> List[int]:
        """Returns the subject intervals that overlap the given interval.

        Args:
            interval: the query interval
            ignore_strand: True to match subject intervals on any strand

        Returns:
            the indices of the overlapping subject intervals, in ascending order
        """
        partition = self._partitions.get(interval.seq_name)
        if partition is None:
            return []
        positions = partition.overlapping(interval.start, interval.end)
        return sorted(
            partition.indices[pos] for pos in positions
            if ignore_strand or interval.strand.compatible(partition.strands[pos])
        )

    def overlaps_any(self, interval: Interval, ignore_strand: bool = False) -> bool:
        """True if any subject interval overlaps the given interval."""
        return len(self.query(interval, ignore_strand=ignore_strand)) > 0

    def get_enclosed(self, interval: Interval, ignore_strand: bool = False) -> List[int]:
        """Returns the subject intervals that lie entirely within the given interval."""
        partition = self._partitions.get(interval.seq_name)
        if partition is None:
            return []
        return sorted(
            partition.indices[pos]
            for pos in partition.overlapping(interval.start, interval.end)
            if interval.start <= partition.starts[pos]
            and partition.ends[pos] <= interval.end
            and (ignore_strand or interval.strand.compatible(partition.strands[pos]))
        )

    def nearest(self, interval: Interval, ignore_strand: bool = False) -> List[int]:
        """Returns the subject intervals nearest to the given interval.

        Overlapping subject intervals are nearest.  When none overlap, the subject intervals the
        fewest bases away, upstream or downstream, are returned; all ties are returned.

        Returns:
            the indices of the nearest subject intervals, in ascending order, or an empty list if
            no subject interval lies on the same sequence (and a compatible strand)
        """
        hits = self.query(interval, ignore_strand=ignore_strand)
        if hits:
            return hits
        partition = self._partitions.get(interval.seq_name)
        if partition is None:
            return []

        def compatible(pos: int) -> bool:
            return ignore_strand or interval.strand.compatible(partition.strands[pos])

        def gap(pos: int) -> int:
            if partition.ends[pos] < interval.start:
                return interval.start - partition.ends[pos] - 1
            return partition.starts[pos] - interval.end - 1

        candidates = peekable(MergingIterator(
            filter(compatible, partition.preceding(interval.start)),
            filter(compatible, partition.following(interval.end)),
            keyfunc=gap,
        ))
        if not candidates.can_peek():
            return []
        closest = gap(candidates.peek())
        # a zero-width interval can lie both upstream and downstream of a zero-width query
        return sorted({
            partition.indices[pos] for pos in candidates.takewhile(lambda p: gap(p) == closest)
        })
