"""
Summarizing and Joining Overlaps
--------------------------------

This module derives per-query summaries from a :class:`~rangewell.hits.HitSet` and the two
collections it was built from.  None of these functions index or search intervals: they only
walk the pairs already found by :func:`~rangewell.hits.find_overlaps`.

Queries without hits never raise: counts are zero, and joined or reduced values fall back to a
default, which is None unless the caller supplies another.

Examples of Joining Subject Fields onto Queries
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

.. code-block:: python

    >>> from rangewell.intervals import Interval, IntervalCollection
    >>> from rangewell.hits import find_overlaps
    >>> from rangewell import aggregate
    >>> peaks = IntervalCollection([Interval("chr1", 10, 20), Interval("chr1", 500, 510)])
    >>> genes = IntervalCollection.from_columns(
    ...     seq_names=["chr1", "chr1"], starts=[15, 1], ends=[25, 12], gene_id=["g1", "g2"])
    >>> hits = find_overlaps(peaks, genes)
    >>> aggregate.count_per_query(hits, len(peaks))
    [2, 0]
    >>> aggregate.join_field(hits, peaks, genes, "gene_id").column("gene_id")
    ['g2', None]
    >>> aggregate.max_by_group(hits, [3.5, 1.0])
    [3.5, None]
    >>> str(aggregate.intersect_ranges(peaks[0], genes[0]))
    'chr1:15-20:*'

Module Contents
~~~~~~~~~~~~~~~

The module contains the following methods:

    - :func:`~rangewell.aggregate.count_per_query` -- Counts the hits of each query
    - :func:`~rangewell.aggregate.join_field` -- Copies a subject field onto each query
    - :func:`~rangewell.aggregate.expand_field` -- Copies a subject field onto one copy of the
        query per hit
    - :func:`~rangewell.aggregate.intersect_ranges` -- The bases shared by two intervals
    - :func:`~rangewell.aggregate.intersect_hits` -- The bases shared by every hit
    - :func:`~rangewell.aggregate.max_by_group` -- The largest subject value for each query
"""

from typing import Any
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

from rangewell.errors import LengthMismatchError
from rangewell.errors import NoOverlapError
from rangewell.hits import HitSet
from rangewell.hits import SelectMode
from rangewell.intervals import Interval
from rangewell.intervals import IntervalCollection
from rangewell.intervals import Strand


def _check_lengths(hits: HitSet,
                   query: Optional[IntervalCollection] = None,
                   subject: Optional[IntervalCollection] = None) -> None:
    if query is not None and len(query) != hits.query_length:
        raise LengthMismatchError(
            f"Hit set refers to {hits.query_length} query intervals, but the query collection "
            f"has {len(query)}"
        )
    if subject is not None and len(subject) != hits.subject_length:
        raise LengthMismatchError(
            f"Hit set refers to {hits.subject_length} subject intervals, but the subject "
            f"collection has {len(subject)}"
        )


def count_per_query(hits: HitSet, query_length: int) -> List[int]:
    """Returns the number of subjects that overlap each query.

    Args:
        hits: the hits
        query_length: the number of query intervals the hits were found for

    Raises:
        LengthMismatchError: if the hits were found for a different number of queries
    """
    if query_length != hits.query_length:
        raise LengthMismatchError(
            f"Hit set refers to {hits.query_length} query intervals, not {query_length}"
        )
    return hits.counts()


def join_field(hits: HitSet,
               query: IntervalCollection,
               subject: IntervalCollection,
               field_name: str,
               select: Union[SelectMode, str] = SelectMode.First,
               default: Any = None) -> IntervalCollection:
    """Returns a copy of the query collection with a field copied from overlapping subjects.

    Args:
        hits: the hits between the query and subject
        query: the query intervals
        subject: the subject intervals
        field_name: the subject field to copy; the query field of the same name is replaced
        select: which subject to copy the field from when a query has several hits (see
            :func:`~rangewell.hits.HitSet.select`).  With ``"all"`` the field holds a list of
            the values of every hit, in subject order.
        default: the value for queries without hits, and for subjects without the field.  With
            ``"all"``, queries without hits get an empty list.
    """
    _check_lengths(hits, query=query, subject=subject)
    mode = SelectMode.from_name(select)
    values: List[Any]
    if mode is SelectMode.All:
        values = [
            [subject[s].fields.get(field_name, default) for s in group]
            for group in hits.grouped()
        ]
    else:
        values = [
            default if s is None else subject[s].fields.get(field_name, default)
            for s in hits.select(mode, subject)
        ]
    joined = IntervalCollection(query)
    joined.annotate(field_name, values)
    return joined


def expand_field(hits: HitSet,
                 query: IntervalCollection,
                 subject: IntervalCollection,
                 field_name: str,
                 default: Any = None) -> IntervalCollection:
    """Returns one copy of the query interval per hit, with the hit subject's field attached.

    Queries without hits are dropped.  The output is in hit set order.
    """
    _check_lengths(hits, query=query, subject=subject)
    return IntervalCollection(
        query[q].with_fields(**{field_name: subject[s].fields.get(field_name, default)})
        for q, s in hits
    )


def intersect_ranges(query_interval: Interval, subject_interval: Interval) -> Interval:
    """Returns the interval covering the bases shared by two overlapping intervals.

    The result lies on the query's sequence, and on the query's strand unless that is unknown,
    in which case it takes the subject's strand.  Payload fields are not carried over.

    Raises:
        NoOverlapError: if the intervals are on different sequences or share no bases.  Strands
            are not compared.
    """
    if (
        query_interval.seq_name != subject_interval.seq_name
        or query_interval.start > subject_interval.end
        or subject_interval.start > query_interval.end
    ):
        raise NoOverlapError(f"Intervals do not overlap: {query_interval} and {subject_interval}")
    strand = query_interval.strand
    if strand is Strand.Unknown:
        strand = subject_interval.strand
    return Interval(
        seq_name=query_interval.seq_name,
        start=max(query_interval.start, subject_interval.start),
        end=min(query_interval.end, subject_interval.end),
        strand=strand,
    )


def intersect_hits(hits: HitSet,
                   query: IntervalCollection,
                   subject: IntervalCollection) -> IntervalCollection:
    """Returns the intersection of every (query, subject) pair, in hit set order."""
    _check_lengths(hits, query=query, subject=subject)
    return IntervalCollection(intersect_ranges(query[q], subject[s]) for q, s in hits)


def max_by_group(hits: HitSet,
                 subject_values: Sequence[Any],
                 default: Any = None) -> List[Any]:
    """Returns, for each query, the largest value among the subjects that overlap it.

    Args:
        hits: the hits
        subject_values: one value per subject interval
        default: the value for queries without hits

    Raises:
        LengthMismatchError: if there is not exactly one value per subject interval
    """
    if len(subject_values) != hits.subject_length:
        raise LengthMismatchError(
            f"Expected {hits.subject_length} subject values, found {len(subject_values)}"
        )
    return [
        max(subject_values[s] for s in group) if group else default
        for group in hits.grouped()
    ]
