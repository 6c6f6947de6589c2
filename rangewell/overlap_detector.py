"""
Utility Classes for Querying Overlaps with Genomic Regions
----------------------------------------------------------

An :class:`~rangewell.overlap_detector.OverlapDetector` holds a growing set of intervals and
answers overlap queries against them.  Intervals may be added at any time; the underlying
:class:`~rangewell.overlap_index.OverlapIndex` is rebuilt in full on the first query after an
addition, never patched.

Examples of Detecting Overlaps
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

.. code-block:: python

    >>> from rangewell.intervals import Interval
    >>> from rangewell.overlap_detector import OverlapDetector
    >>> detector = OverlapDetector()
    >>> query = Interval("chr1", 2, 20)
    >>> detector.overlaps_any(query)
    False
    >>> detector.add(Interval("chr2", 1, 100))
    >>> detector.add(Interval("chr1", 21, 100))
    >>> detector.overlaps_any(query)
    False
    >>> detector.add(Interval("chr1", 1, 2))
    >>> detector.overlaps_any(query)
    True
    >>> detector.get_overlaps(query)
    [Interval(seq_name='chr1', start=1, end=2, strand=<Strand.Unknown: '*'>)]
    >>> detector.get_nearest(Interval("chr1", 10, 19))
    [Interval(seq_name='chr1', start=21, end=100, strand=<Strand.Unknown: '*'>)]

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.overlap_detector.OverlapDetector` -- Detects and returns overlaps
        between a set of genomic regions and another genomic region
"""

import logging
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional

from rangewell.intervals import Interval
from rangewell.intervals import IntervalCollection
from rangewell.overlap_index import OverlapIndex


class OverlapDetector:
    """Detects and returns overlaps between a set of intervals and a query interval.

    Intervals are returned in the order they were added.

    Args:
        ignore_strand: True to report intervals on any strand, False to only report intervals
            whose strand is compatible with the query's
    """

    def __init__(self, ignore_strand: bool = False) -> None:
        self._ignore_strand = ignore_strand
        self._intervals: List[Interval] = []
        self._subject: IntervalCollection = IntervalCollection()
        self._index: Optional[OverlapIndex] = None

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._intervals)

    def add(self, interval: Interval) -> None:
        """Adds an interval to the detector."""
        self._intervals.append(interval)
        self._index = None

    def add_all(self, intervals: Iterable[Interval]) -> None:
        """Adds one or more intervals to the detector."""
        for interval in intervals:
            self.add(interval)

    def _built_index(self) -> OverlapIndex:
        if self._index is None:
            self._subject = IntervalCollection(self._intervals)
            self._index = OverlapIndex.build(self._subject)
            logger = logging.getLogger(__name__)
            logger.debug("Rebuilt overlap index over %d intervals", len(self._subject))
        return self._index

    def overlaps_any(self, interval: Interval) -> bool:
        """True if any interval in the detector overlaps the given interval."""
        return self._built_index().overlaps_any(interval, ignore_strand=self._ignore_strand)

    def get_overlaps(self, interval: Interval) -> List[Interval]:
        """Returns the intervals in the detector that overlap the given interval."""
        index = self._built_index()
        return [
            self._subject[i] for i in index.query(interval, ignore_strand=self._ignore_strand)
        ]

    def get_enclosed(self, interval: Interval) -> List[Interval]:
        """Returns the intervals in the detector that lie entirely within the given interval."""
        index = self._built_index()
        return [
            self._subject[i]
            for i in index.get_enclosed(interval, ignore_strand=self._ignore_strand)
        ]

    def get_nearest(self, interval: Interval) -> List[Interval]:
        """Returns the intervals in the detector nearest to the given interval.

        Overlapping intervals are nearest; otherwise all intervals at the smallest distance are
        returned.
        """
        index = self._built_index()
        return [
            self._subject[i] for i in index.nearest(interval, ignore_strand=self._ignore_strand)
        ]
