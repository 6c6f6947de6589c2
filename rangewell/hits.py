"""
Finding Overlaps Between Two Collections of Intervals
-----------------------------------------------------

This module matches a collection of query intervals against a collection of subject intervals.
The result of :func:`~rangewell.hits.find_overlaps` is either every overlapping pair, as a
:class:`~rangewell.hits.HitSet`, or at most one subject per query, as a selection vector.

Examples of Finding Overlaps
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

.. code-block:: python

    >>> from rangewell.intervals import Interval, IntervalCollection
    >>> from rangewell.hits import find_overlaps, count_overlaps, subset_by_overlaps
    >>> query = IntervalCollection([Interval("chr1", 10, 20, "+"), Interval("chr2", 1, 5, "+")])
    >>> subject = IntervalCollection([
    ...     Interval("chr1", 15, 25, "+"),
    ...     Interval("chr1", 30, 40, "+"),
    ...     Interval("chr1", 1, 12, "-"),
    ... ])
    >>> hits = find_overlaps(query, subject)
    >>> list(hits)
    [(0, 0)]
    >>> list(find_overlaps(query, subject, ignore_strand=True))
    [(0, 0), (0, 2)]
    >>> find_overlaps(query, subject, ignore_strand=True, select="first")
    [2, None]
    >>> count_overlaps(query, subject)
    [1, 0]
    >>> len(subset_by_overlaps(query, subject))
    1

Selecting a Single Hit
~~~~~~~~~~~~~~~~~~~~~~

When ``select`` is not ``"all"``, each query gets the index of a single subject, or None if no
subject overlaps it:

    - ``"arbitrary"`` -- the subject with the smallest index
    - ``"first"`` -- the subject with the smallest start; ties go to the smallest index
    - ``"last"`` -- the subject with the largest end; ties go to the largest index

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.hits.SelectMode` -- How multiple hits for a query are collapsed
    - :class:`~rangewell.hits.OverlapOptions` -- The options shared by all overlap operations
    - :class:`~rangewell.hits.HitSet` -- The (query, subject) index pairs that overlap

The module contains the following methods:

    - :func:`~rangewell.hits.find_overlaps` -- Finds the overlapping pairs, or a single subject
        per query
    - :func:`~rangewell.hits.count_overlaps` -- Counts the overlapping subjects per query
    - :func:`~rangewell.hits.subset_by_overlaps` -- Keeps the queries with (or without) overlaps
    - :func:`~rangewell.hits.overlaps_any` -- True for each query with at least one overlap
    - :func:`~rangewell.hits.nearest` -- The nearest subject to each query
    - :func:`~rangewell.hits.distance_to_nearest` -- The distance to the nearest subject
"""

import bisect
import enum
import logging
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

import attr

from rangewell.errors import IndexMismatchError
from rangewell.errors import LengthMismatchError
from rangewell.intervals import IntervalCollection
from rangewell.itertools import runs
from rangewell.overlap_index import OverlapIndex

# The value in a selection vector for a query with no hits
NO_MATCH = None


@enum.unique
class SelectMode(enum.Enum):
    """How the hits of a single query are reported."""

    All = "all"
    Arbitrary = "arbitrary"
    First = "first"
    Last = "last"

    @classmethod
    def from_name(cls, value: Union["SelectMode", str]) -> "SelectMode":
        """Returns the select mode with the given name (e.g. ``"first"``)."""
        if isinstance(value, SelectMode):
            return value
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown select mode '{value}', expected one of: {names}") from None


@attr.s(frozen=True, auto_attribs=True)
class OverlapOptions:
    """The options recognized by all overlap operations.

    Attributes:
        ignore_strand: True to let intervals on any strands overlap, False to require the
            strands to be equal or either to be unknown
        select: which hits to report for each query; a name is converted to a
            :class:`~rangewell.hits.SelectMode`
    """

    ignore_strand: bool = False
    select: SelectMode = attr.ib(default=SelectMode.All, converter=SelectMode.from_name)


class HitSet:
    """The pairs of query and subject indices whose intervals overlap.

    Pairs are held in order of query index, then subject index.  A hit set holds only indices:
    the intervals themselves stay in the query and subject collections.

    Args:
        pairs: the (query index, subject index) pairs
        query_length: the number of intervals in the query collection
        subject_length: the number of intervals in the subject collection
    """

    def __init__(self,
                 pairs: Iterable[Tuple[int, int]],
                 query_length: int,
                 subject_length: int) -> None:
        self._pairs: List[Tuple[int, int]] = sorted(set(pairs))
        self.query_length: int = query_length
        self.subject_length: int = subject_length
        for q, s in self._pairs:
            if not (0 <= q < query_length and 0 <= s < subject_length):
                raise LengthMismatchError(
                    f"Pair ({q}, {s}) out of range for {query_length} query and "
                    f"{subject_length} subject intervals"
                )

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(self._pairs)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple):
            return False
        i = bisect.bisect_left(self._pairs, pair)
        return i < len(self._pairs) and self._pairs[i] == pair

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HitSet):
            return NotImplemented
        return (
            self._pairs == other._pairs
            and self.query_length == other.query_length
            and self.subject_length == other.subject_length
        )

    def __repr__(self) -> str:
        return (
            f"HitSet({self._pairs!r}, query_length={self.query_length}, "
            f"subject_length={self.subject_length})"
        )

    @property
    def query_hits(self) -> List[int]:
        """The query index of each pair."""
        return [q for q, _ in self._pairs]

    @property
    def subject_hits(self) -> List[int]:
        """The subject index of each pair."""
        return [s for _, s in self._pairs]

    def for_query(self, query_index: int) -> List[int]:
        """Returns the subject indices, in ascending order, that overlap the given query."""
        lo = bisect.bisect_left(self._pairs, (query_index, -1))
        hi = bisect.bisect_left(self._pairs, (query_index + 1, -1))
        return [s for _, s in self._pairs[lo:hi]]

    def grouped(self) -> List[List[int]]:
        """Returns, for every query index, the subject indices that overlap it.

        Queries with no hits have an empty list.
        """
        groups: List[List[int]] = [[] for _ in range(self.query_length)]
        for q, pairs in runs(self._pairs, keyfunc=lambda pair: pair[0]):
            groups[q] = [s for _, s in pairs]
        return groups

    def counts(self) -> List[int]:
        """Returns the number of subjects that overlap each query."""
        return [len(group) for group in self.grouped()]

    def select(self,
               mode: Union[SelectMode, str],
               subject: IntervalCollection) -> List[Optional[int]]:
        """Collapses the hits of each query to a single subject index.

        Args:
            mode: how to pick a single subject from the hits of a query; one of ``"arbitrary"``,
                ``"first"`` or ``"last"``
            subject: the subject collection the hits refer to, used to break ties by coordinate

        Returns:
            for each query, the index of the selected subject, or None if it has no hits
        """
        mode = SelectMode.from_name(mode)
        if mode is SelectMode.All:
            raise ValueError("Cannot select a single hit per query with select mode 'all'")
        if len(subject) != self.subject_length:
            raise LengthMismatchError(
                f"Hit set refers to {self.subject_length} subject intervals, but the subject "
                f"collection has {len(subject)}"
            )

        selected: List[Optional[int]] = []
        for group in self.grouped():
            if not group:
                selected.append(NO_MATCH)
            elif mode is SelectMode.Arbitrary:
                selected.append(group[0])
            elif mode is SelectMode.First:
                selected.append(min(group, key=lambda s: (subject[s].start, s)))
            else:
                selected.append(max(group, key=lambda s: (subject[s].end, s)))
        return selected


def _index_for(subject: IntervalCollection, index: Optional[OverlapIndex]) -> OverlapIndex:
    """Returns the given index over the subject, or builds one if None."""
    if index is None:
        return OverlapIndex.build(subject)
    if not index.built_from(subject):
        raise IndexMismatchError(
            "Index was built over a different subject collection; build a new index for this one"
        )
    return index


def find_overlaps(query: IntervalCollection,
                  subject: IntervalCollection,
                  ignore_strand: bool = False,
                  select: Union[SelectMode, str] = SelectMode.All,
                  index: Optional[OverlapIndex] = None
                  ) -> Union[HitSet, List[Optional[int]]]:
    """Finds the subject intervals that overlap each query interval.

    The subject is indexed once, then each query interval is looked up in the index.

    Args:
        query: the query intervals
        subject: the subject intervals
        ignore_strand: True to let intervals on any strands overlap
        select: ``"all"`` to return every overlapping pair, or ``"arbitrary"``, ``"first"`` or
            ``"last"`` to return a single subject per query
        index: an index previously built over ``subject``; built here if not given

    Returns:
        a :class:`~rangewell.hits.HitSet` if ``select`` is ``"all"``, otherwise a list with, for
        each query, the index of the selected subject or None

    Raises:
        IndexMismatchError: if ``index`` was built over a collection other than ``subject``
    """
    options = OverlapOptions(ignore_strand=ignore_strand, select=select)
    index = _index_for(subject, index)
    pairs = [
        (q, s)
        for q, interval in enumerate(query)
        for s in index.query(interval, ignore_strand=options.ignore_strand)
    ]
    hits = HitSet(pairs=pairs, query_length=len(query), subject_length=len(subject))

    logger = logging.getLogger(__name__)
    logger.debug("Found %d overlaps between %d query and %d subject intervals",
                 len(hits), len(query), len(subject))

    if options.select is SelectMode.All:
        return hits
    return hits.select(options.select, subject)


def _all_hits(query: IntervalCollection,
              subject: IntervalCollection,
              ignore_strand: bool,
              index: Optional[OverlapIndex]) -> HitSet:
    hits = find_overlaps(query, subject, ignore_strand=ignore_strand, index=index)
    assert isinstance(hits, HitSet)
    return hits


def count_overlaps(query: IntervalCollection,
                   subject: IntervalCollection,
                   ignore_strand: bool = False,
                   index: Optional[OverlapIndex] = None) -> List[int]:
    """Returns the number of subject intervals overlapping each query interval."""
    return _all_hits(query, subject, ignore_strand, index).counts()


def overlaps_any(query: IntervalCollection,
                 subject: IntervalCollection,
                 ignore_strand: bool = False,
                 index: Optional[OverlapIndex] = None) -> List[bool]:
    """Returns, for each query interval, True if any subject interval overlaps it."""
    return [count > 0 for count in count_overlaps(query, subject, ignore_strand, index)]


def subset_by_overlaps(query: IntervalCollection,
                       subject: IntervalCollection,
                       ignore_strand: bool = False,
                       invert: bool = False,
                       index: Optional[OverlapIndex] = None) -> IntervalCollection:
    """Returns a new collection of the query intervals that overlap any subject interval.

    Args:
        query: the query intervals
        subject: the subject intervals
        ignore_strand: True to let intervals on any strands overlap
        invert: True to instead keep the query intervals that overlap no subject interval
        index: an index previously built over ``subject``; built here if not given
    """
    hit = overlaps_any(query, subject, ignore_strand, index)
    return query.subset(i for i in range(len(query)) if hit[i] != invert)


def nearest(query: IntervalCollection,
            subject: IntervalCollection,
            ignore_strand: bool = False,
            index: Optional[OverlapIndex] = None) -> List[Optional[int]]:
    """Returns the index of the subject interval nearest to each query interval.

    An overlapping subject is always nearest.  Among equally near subjects the one with the
    smallest index is returned.  Queries with no subject on the same sequence (and a compatible
    strand) get None.
    """
    index = _index_for(subject, index)
    selected: List[Optional[int]] = []
    for interval in query:
        closest = index.nearest(interval, ignore_strand=ignore_strand)
        selected.append(closest[0] if closest else NO_MATCH)
    return selected


def distance_to_nearest(query: IntervalCollection,
                        subject: IntervalCollection,
                        ignore_strand: bool = False,
                        index: Optional[OverlapIndex] = None) -> List[Optional[int]]:
    """Returns the number of bases between each query interval and its nearest subject interval.

    The distance is zero for overlapping or adjacent intervals, and None for queries with no
    subject on the same sequence (and a compatible strand).
    """
    closest = nearest(query, subject, ignore_strand=ignore_strand, index=index)
    return [
        NO_MATCH if s is None
        else query[q].distance_to(subject[s], ignore_strand=ignore_strand)
        for q, s in enumerate(closest)
    ]
