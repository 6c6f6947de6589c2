"""
Genomic Intervals and Collections of Intervals
----------------------------------------------

This module contains the data model shared by the rest of :mod:`rangewell`: a single genomic
interval, the strand it lies on, and an ordered collection of intervals.

All coordinates are 1-based and closed (see :data:`~rangewell.intervals.COORDINATE_SYSTEM`): the
interval ``Interval("chr1", 10, 20)`` covers bases 10 through 20 inclusive, and is 11 bases long.
A zero-width marker between bases 9 and 10 is written ``Interval("chr1", 10, 9)``.

Examples of Building Intervals
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

.. code-block:: python

    >>> from rangewell.intervals import Interval, IntervalCollection
    >>> a = Interval("chr1", 10, 20, "+")
    >>> b = Interval("chr1", 15, 25, "-")
    >>> a.overlaps(b)
    False
    >>> a.overlaps(b, ignore_strand=True)
    True
    >>> str(a)
    'chr1:10-20:+'
    >>> genes = IntervalCollection.from_columns(
    ...     seq_names=["chr1", "chr1", "chrUn_gl000220"],
    ...     starts=[100, 500, 1],
    ...     ends=[200, 900, 50],
    ...     gene_id=["g1", "g2", "g3"])
    >>> len(genes.keep_standard_chromosomes())
    2

Collections own their intervals: building a collection from intervals that already belong to
another collection copies them, so annotating one collection never leaks into the other.

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.intervals.Strand` -- The strand of an interval (``+``, ``-`` or ``*``)
    - :class:`~rangewell.intervals.Interval` -- A 1-based closed genomic interval with an open
        set of named payload fields
    - :class:`~rangewell.intervals.IntervalCollection` -- An ordered collection of intervals
"""

import enum
import numbers
import re
from typing import Any
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Mapping
from typing import Optional
from typing import Pattern
from typing import Sequence
from typing import Union
from typing import overload

import attr
import pybedlite.overlap_detector as pybedlite
import pysam
from pybedlite.bed_record import BedRecord

from rangewell.errors import InvalidRangeError
from rangewell.errors import InvalidStrandError
from rangewell.errors import LengthMismatchError

COORDINATE_SYSTEM: str = "1-based, closed"
"""The coordinate convention of every :class:`~rangewell.intervals.Interval`.

An interval ``[start, end]`` includes both ``start`` and ``end``.  Two intervals overlap when
``a.start <= b.end and b.start <= a.end``."""

_STANDARD_CHROMOSOME: Pattern = re.compile(r"^(chr)?([1-9][0-9]?|X|Y|M|MT)$")

# The keys of a record that hold the required geometry, rather than payload fields
_RECORD_KEYS = ("seq_name", "start", "end", "strand")


@enum.unique
class Strand(enum.Enum):
    """The strand of a genomic interval."""

    Positive = "+"
    Negative = "-"
    Unknown = "*"

    @classmethod
    def from_symbol(cls, value: Union["Strand", str, None]) -> "Strand":
        """Returns the strand for the given symbol.

        Args:
            value: a :class:`~rangewell.intervals.Strand`, one of ``+``, ``-`` or ``*``, or None
                (treated as ``*``).

        Raises:
            InvalidStrandError: if the symbol is not recognized
        """
        if isinstance(value, Strand):
            return value
        if value is None:
            return Strand.Unknown
        try:
            return cls(value)
        except ValueError:
            raise InvalidStrandError(f"Unrecognized strand symbol: {value!r}") from None

    def compatible(self, other: "Strand") -> bool:
        """True if the strands are equal, or if either strand is unknown."""
        return self is other or self is Strand.Unknown or other is Strand.Unknown


@attr.s(frozen=True, auto_attribs=True)
class Interval:
    """A genomic interval, 1-based and closed.

    The coordinates and strand are fixed once built.  Named payload values (e.g. a gene name, or
    a score) live in ``fields``, which is not part of equality or hashing, and may be extended by
    :func:`~rangewell.intervals.IntervalCollection.annotate`.

    Attributes:
        seq_name: the name of the sequence (e.g. chromosome) the interval lies on
        start: the first base of the interval (1-based, inclusive)
        end: the last base of the interval (1-based, inclusive); ``start - 1`` for a zero-width
            interval
        strand: the strand of the interval; a symbol is converted to a
            :class:`~rangewell.intervals.Strand`
        fields: named payload values
    """

    seq_name: str = attr.ib()
    start: int = attr.ib()
    end: int = attr.ib()
    strand: Strand = attr.ib(default=Strand.Unknown, converter=Strand.from_symbol)
    fields: Dict[str, Any] = attr.ib(factory=dict, eq=False, repr=False)

    def __attrs_post_init__(self) -> None:
        if not self.seq_name:
            raise InvalidRangeError(f"Interval has an empty sequence name: {self!r}")
        for coordinate in (self.start, self.end):
            if isinstance(coordinate, bool) or not isinstance(coordinate, numbers.Integral):
                raise InvalidRangeError(f"Interval coordinates must be integers: {self!r}")
        if self.start < 1:
            raise InvalidRangeError(f"Interval start must be at least 1: {self!r}")
        if self.end < self.start - 1:
            raise InvalidRangeError(f"Interval end must be at least start - 1: {self!r}")

    def __str__(self) -> str:
        return f"{self.seq_name}:{self.start}-{self.end}:{self.strand.value}"

    @property
    def length(self) -> int:
        """The number of bases covered by the interval."""
        return self.end - self.start + 1

    def is_empty(self) -> bool:
        """True if this is a zero-width interval."""
        return self.end == self.start - 1

    def overlaps(self, other: "Interval", ignore_strand: bool = False) -> bool:
        """True if the two intervals share at least one base.

        Args:
            other: the other interval
            ignore_strand: if False, the strands must also be compatible (equal, or either one
                unknown)
        """
        return (
            self.seq_name == other.seq_name
            and self.start <= other.end
            and other.start <= self.end
            and (ignore_strand or self.strand.compatible(other.strand))
        )

    def encloses(self, other: "Interval", ignore_strand: bool = False) -> bool:
        """True if the other interval lies entirely within this interval."""
        return (
            self.seq_name == other.seq_name
            and self.start <= other.start
            and other.end <= self.end
            and (ignore_strand or self.strand.compatible(other.strand))
        )

    def distance_to(self, other: "Interval", ignore_strand: bool = False) -> Optional[int]:
        """Returns the number of bases strictly between the two intervals.

        Overlapping and adjacent intervals are zero bases apart.  Intervals on different
        sequences, or on incompatible strands, have no distance and None is returned.
        """
        if self.seq_name != other.seq_name:
            return None
        if not ignore_strand and not self.strand.compatible(other.strand):
            return None
        if self.start <= other.end and other.start <= self.end:
            return 0
        if other.start > self.end:
            return other.start - self.end - 1
        return self.start - other.end - 1

    def with_fields(self, **fields: Any) -> "Interval":
        """Returns a copy of this interval with the given payload fields added or replaced."""
        return attr.evolve(self, fields={**self.fields, **fields})

    def copy(self) -> "Interval":
        """Returns a copy of this interval that does not share its payload fields."""
        return attr.evolve(self, fields=dict(self.fields))

    @classmethod
    def from_pybedlite(cls, interval: pybedlite.Interval) -> "Interval":
        """Builds an interval from a :class:`pybedlite.overlap_detector.Interval`.

        The pybedlite interval is 0-based and open-ended, and is always on either the positive or
        negative strand.  Its name, if any, is kept in the ``name`` field.
        """
        fields = {} if interval.name is None else {"name": interval.name}
        return cls(
            seq_name=interval.refname,
            start=interval.start + 1,
            end=interval.end,
            strand=Strand.Negative if interval.negative else Strand.Positive,
            fields=fields,
        )

    @classmethod
    def from_bed_record(cls, record: BedRecord) -> "Interval":
        """Builds an interval from a :class:`pybedlite.bed_record.BedRecord`.

        The BED record is 0-based and open-ended.  A record without a strand is on the unknown
        strand.  Its name and score, if any, are kept in the ``name`` and ``score`` fields.
        """
        fields: Dict[str, Any] = {}
        if record.name is not None:
            fields["name"] = record.name
        if record.score is not None:
            fields["score"] = record.score
        return cls(
            seq_name=record.chrom,
            start=record.start + 1,
            end=record.end,
            strand=None if record.strand is None else record.strand.value,
            fields=fields,
        )

    @classmethod
    def from_aligned_segment(cls, read: pysam.AlignedSegment) -> "Interval":
        """Builds an interval spanning the reference bases a mapped read is aligned to.

        The read name is kept in the ``name`` field.

        Raises:
            InvalidRangeError: if the read is unmapped
        """
        if read.is_unmapped or read.reference_name is None:
            raise InvalidRangeError(f"Read is not mapped: {read.query_name}")
        return cls(
            seq_name=read.reference_name,
            start=read.reference_start + 1,
            end=read.reference_end,
            strand=Strand.Negative if read.is_reverse else Strand.Positive,
            fields={"name": read.query_name},
        )


class IntervalCollection(Sequence[Interval]):
    """An ordered collection of genomic intervals.

    The order of intervals is kept for output, and is how intervals are indexed by overlap
    queries, but has no bearing on which intervals overlap.

    Operations either return a new collection (:func:`filter`, :func:`subset`,
    :func:`sorted_by`, :func:`keep_seq_names`, :func:`keep_standard_chromosomes`) or change
    this collection in place (:func:`annotate`, which only ever adds payload fields).

    Args:
        intervals: the intervals; each is copied into the collection
    """

    def __init__(self, intervals: Iterable[Interval] = ()) -> None:
        self._intervals: List[Interval] = [interval.copy() for interval in intervals]

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "IntervalCollection":
        """Builds a collection from rows of tabular data.

        Each record must have ``seq_name``, ``start`` and ``end`` keys, and may have a ``strand``
        key.  All other keys become payload fields.

        Raises:
            InvalidRangeError: if a record is missing a required key, or has invalid coordinates.
                No collection is built.
        """
        intervals: List[Interval] = []
        for i, record in enumerate(records):
            missing = [key for key in _RECORD_KEYS[:3] if key not in record]
            if missing:
                raise InvalidRangeError(f"Record #{i} is missing {', '.join(missing)}: {record}")
            intervals.append(Interval(
                seq_name=record["seq_name"],
                start=record["start"],
                end=record["end"],
                strand=record.get("strand"),
                fields={k: v for k, v in record.items() if k not in _RECORD_KEYS},
            ))
        return cls(intervals)

    @classmethod
    def from_columns(cls,
                     seq_names: Sequence[str],
                     starts: Sequence[int],
                     ends: Sequence[int],
                     strands: Optional[Sequence[Union[Strand, str]]] = None,
                     **columns: Sequence[Any]) -> "IntervalCollection":
        """Builds a collection from parallel columns of tabular data.

        Args:
            seq_names: the sequence name of each interval
            starts: the 1-based start of each interval
            ends: the 1-based inclusive end of each interval
            strands: the strand of each interval, or None if all are unknown
            columns: extra columns, stored as payload fields under the column's name

        Raises:
            LengthMismatchError: if the columns are not all the same length
        """
        length = len(seq_names)
        named: Dict[str, Sequence[Any]] = {"starts": starts, "ends": ends, **columns}
        if strands is not None:
            named["strands"] = strands
        for name, values in named.items():
            if len(values) != length:
                raise LengthMismatchError(
                    f"Column '{name}' has {len(values)} values, expected {length}"
                )
        return cls(
            Interval(
                seq_name=seq_names[i],
                start=starts[i],
                end=ends[i],
                strand=None if strands is None else strands[i],
                fields={name: values[i] for name, values in columns.items()},
            )
            for i in range(length)
        )

    @classmethod
    def from_pybedlite(cls, intervals: Iterable[pybedlite.Interval]) -> "IntervalCollection":
        """Builds a collection from 0-based, open-ended pybedlite intervals."""
        return cls(Interval.from_pybedlite(interval) for interval in intervals)

    @classmethod
    def from_bed_records(cls, records: Iterable[BedRecord]) -> "IntervalCollection":
        """Builds a collection from 0-based, open-ended BED records."""
        return cls(Interval.from_bed_record(record) for record in records)

    @classmethod
    def from_aligned_segments(cls,
                              reads: Iterable[pysam.AlignedSegment],
                              skip_unmapped: bool = True) -> "IntervalCollection":
        """Builds a collection from the reference spans of aligned reads.

        Args:
            reads: the reads
            skip_unmapped: skip unmapped reads if True, otherwise raise an
                :class:`~rangewell.errors.InvalidRangeError` on the first unmapped read
        """
        return cls(
            Interval.from_aligned_segment(read) for read in reads
            if not (skip_unmapped and read.is_unmapped)
        )

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._intervals)

    @overload
    def __getitem__(self, index: int) -> Interval:
        ...

    @overload
    def __getitem__(self, index: slice) -> "IntervalCollection":
        ...

    def __getitem__(self, index: Union[int, slice]) -> Union[Interval, "IntervalCollection"]:
        if isinstance(index, slice):
            return IntervalCollection(self._intervals[index])
        return self._intervals[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntervalCollection):
            return NotImplemented
        return self._intervals == other._intervals

    def __repr__(self) -> str:
        return f"IntervalCollection({self._intervals!r})"

    @property
    def seq_names(self) -> List[str]:
        """The distinct sequence names, in the order they are first seen."""
        return list(self.partition())

    def partition(self) -> Dict[str, List[int]]:
        """Returns the indices of the intervals on each sequence name, in collection order."""
        partitions: Dict[str, List[int]] = {}
        for i, interval in enumerate(self._intervals):
            partitions.setdefault(interval.seq_name, []).append(i)
        return partitions

    def filter(self, predicate: Callable[[Interval], bool]) -> "IntervalCollection":
        """Returns a new collection of the intervals for which the predicate is true."""
        return IntervalCollection(interval for interval in self._intervals if predicate(interval))

    def subset(self, indices: Iterable[int]) -> "IntervalCollection":
        """Returns a new collection of the intervals at the given indices, in the given order."""
        return IntervalCollection(self._intervals[i] for i in indices)

    def sorted_by(self,
                  key: Optional[Callable[[Interval], Any]] = None) -> "IntervalCollection":
        """Returns a new collection sorted by the given key.

        The sort is stable: intervals with equal keys keep their relative order.

        Args:
            key: the sort key; by default intervals are sorted by sequence name, start, then end
        """
        if key is None:
            key = _coordinate_key
        return IntervalCollection(sorted(self._intervals, key=key))

    def keep_seq_names(self, seq_names: Iterable[str]) -> "IntervalCollection":
        """Returns a new collection of the intervals on the given sequence names."""
        keep = set(seq_names)
        return self.filter(lambda interval: interval.seq_name in keep)

    def keep_standard_chromosomes(self) -> "IntervalCollection":
        """Returns a new collection without intervals on non-standard contigs.

        Numbered chromosomes, ``X``, ``Y`` and the mitochondrion (``M`` or ``MT``) are kept,
        with or without a ``chr`` prefix.  Unplaced, unlocalized, alternate and patch contigs
        (e.g. ``chrUn_gl000220``, ``chr1_random``, ``chr6_cox_hap2``) are dropped.
        """
        return self.filter(lambda interval: is_standard_chromosome(interval.seq_name))

    def annotate(self, name: str, values: Iterable[Any]) -> None:
        """Attaches a payload field to every interval, in place.

        Args:
            name: the name of the field; an existing field of that name is replaced
            values: one value per interval, in collection order

        Raises:
            LengthMismatchError: if there is not exactly one value per interval.  The collection
                is left unchanged.
        """
        values = list(values)
        if len(values) != len(self._intervals):
            raise LengthMismatchError(
                f"Cannot annotate '{name}' with {len(values)} values on a collection of "
                f"{len(self._intervals)} intervals"
            )
        for interval, value in zip(self._intervals, values):
            interval.fields[name] = value

    def column(self, name: str, default: Any = None) -> List[Any]:
        """Returns the values of a payload field, in collection order.

        Args:
            name: the name of the field
            default: the value for intervals without the field
        """
        return [interval.fields.get(name, default) for interval in self._intervals]


def is_standard_chromosome(seq_name: str) -> bool:
    """True if the sequence name is a numbered chromosome, a sex chromosome, or the mitochondrion.
    """
    return _STANDARD_CHROMOSOME.match(seq_name) is not None


def _coordinate_key(interval: Interval) -> Any:
    return interval.seq_name, interval.start, interval.end
