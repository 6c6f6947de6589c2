"""Tests for :py:mod:`~rangewell.hits`"""

import random

import pytest

from rangewell.errors import IndexMismatchError
from rangewell.errors import LengthMismatchError
from rangewell.hits import HitSet
from rangewell.hits import OverlapOptions
from rangewell.hits import SelectMode
from rangewell.hits import count_overlaps
from rangewell.hits import distance_to_nearest
from rangewell.hits import find_overlaps
from rangewell.hits import nearest
from rangewell.hits import overlaps_any
from rangewell.hits import subset_by_overlaps
from rangewell.intervals import Interval
from rangewell.intervals import IntervalCollection
from rangewell.overlap_index import OverlapIndex
from rangewell.tests.test_overlap_index import random_intervals


@pytest.fixture
def query() -> IntervalCollection:
    return IntervalCollection([
        Interval("chr1", 10, 20, "+"),
        Interval("chr1", 100, 200, "*"),
        Interval("chr2", 1, 50, "-"),
        Interval("chr3", 1, 50, "+"),
    ])


@pytest.fixture
def subject() -> IntervalCollection:
    return IntervalCollection([
        Interval("chr1", 150, 300, "+"),   # 0
        Interval("chr1", 15, 25, "+"),     # 1
        Interval("chr1", 5, 12, "-"),      # 2
        Interval("chr1", 90, 160, "-"),    # 3
        Interval("chr2", 40, 60, "*"),     # 4
        Interval("chr1", 120, 210, "+"),   # 5
        Interval("chr1", 150, 210, "+"),   # 6
    ])


def test_select_mode_from_name() -> None:
    assert SelectMode.from_name("all") is SelectMode.All
    assert SelectMode.from_name("arbitrary") is SelectMode.Arbitrary
    assert SelectMode.from_name(SelectMode.Last) is SelectMode.Last
    with pytest.raises(ValueError):
        SelectMode.from_name("any")


def test_overlap_options() -> None:
    options = OverlapOptions()
    assert not options.ignore_strand
    assert options.select is SelectMode.All
    assert OverlapOptions(select="first").select is SelectMode.First
    with pytest.raises(ValueError):
        OverlapOptions(select="best")


def test_scenario_single_pair() -> None:
    query = IntervalCollection([Interval("chr1", 10, 20, "+")])
    subject = IntervalCollection([Interval("chr1", 15, 25, "+"), Interval("chr1", 30, 40, "+")])
    hits = find_overlaps(query, subject)
    assert isinstance(hits, HitSet)
    assert list(hits) == [(0, 0)]
    assert count_overlaps(query, subject) == [1]


def test_scenario_different_sequences() -> None:
    query = IntervalCollection([Interval("chr2", 10, 20)])
    subject = IntervalCollection([Interval("chr1", 10, 20)])
    hits = find_overlaps(query, subject)
    assert len(hits) == 0
    assert count_overlaps(query, subject) == [0]
    assert find_overlaps(query, subject, select="first") == [None]


def test_scenario_strand() -> None:
    query = IntervalCollection([Interval("chr1", 10, 20, "+")])
    subject = IntervalCollection([Interval("chr1", 10, 20, "-")])
    assert len(find_overlaps(query, subject)) == 0
    assert list(find_overlaps(query, subject, ignore_strand=True)) == [(0, 0)]


def test_find_overlaps_all(query: IntervalCollection, subject: IntervalCollection) -> None:
    hits = find_overlaps(query, subject)
    assert list(hits) == [(0, 1), (1, 0), (1, 3), (1, 5), (1, 6), (2, 4)]
    assert hits.query_length == 4
    assert hits.subject_length == 7
    assert hits.query_hits == [0, 1, 1, 1, 1, 2]
    assert hits.subject_hits == [1, 0, 3, 5, 6, 4]
    assert hits.grouped() == [[1], [0, 3, 5, 6], [4], []]
    assert hits.for_query(1) == [0, 3, 5, 6]
    assert hits.for_query(3) == []
    assert (1, 3) in hits
    assert (0, 2) not in hits
    assert "x" not in hits

    ignored = find_overlaps(query, subject, ignore_strand=True)
    assert ignored.for_query(0) == [1, 2]


def test_select_modes(query: IntervalCollection, subject: IntervalCollection) -> None:
    assert find_overlaps(query, subject, select="arbitrary") == [1, 0, 4, None]
    # smallest start: subject 3 starts at 90
    assert find_overlaps(query, subject, select="first") == [1, 3, 4, None]
    # largest end: subject 0 ends at 300
    assert find_overlaps(query, subject, select=SelectMode.Last) == [1, 0, 4, None]


def test_select_tie_breaks() -> None:
    query = IntervalCollection([Interval("chr1", 1, 100)])
    subject = IntervalCollection([
        Interval("chr1", 20, 50),
        Interval("chr1", 10, 60),
        Interval("chr1", 10, 40),
        Interval("chr1", 30, 60),
    ])
    assert find_overlaps(query, subject, select="first") == [1]
    assert find_overlaps(query, subject, select="last") == [3]
    assert find_overlaps(query, subject, select="arbitrary") == [0]


def test_select_is_deterministic(query: IntervalCollection, subject: IntervalCollection) -> None:
    for mode in ("arbitrary", "first", "last"):
        results = {tuple(find_overlaps(query, subject, select=mode)) for _ in range(5)}
        assert len(results) == 1


def test_selection_is_subset_of_all() -> None:
    rng = random.Random(42)
    subject = random_intervals(rng, 400, seq_names=["chr1", "chr2"])
    query = random_intervals(rng, 200, seq_names=["chr1", "chr2", "chr3"])
    hits = find_overlaps(query, subject)
    groups = hits.grouped()
    for mode in ("arbitrary", "first", "last"):
        selected = find_overlaps(query, subject, select=mode)
        assert len(selected) == len(query)
        for group, s in zip(groups, selected):
            if group:
                assert s in group
            else:
                assert s is None


def test_hit_set_select_all_fails(query: IntervalCollection, subject: IntervalCollection) -> None:
    hits = find_overlaps(query, subject)
    with pytest.raises(ValueError):
        hits.select("all", subject)
    with pytest.raises(LengthMismatchError):
        hits.select("first", subject[1:])


def test_hit_set_construction() -> None:
    hits = HitSet([(1, 0), (0, 2), (1, 0)], query_length=2, subject_length=3)
    assert list(hits) == [(0, 2), (1, 0)]
    assert hits == HitSet([(0, 2), (1, 0)], query_length=2, subject_length=3)
    assert hits != HitSet([(0, 2), (1, 0)], query_length=3, subject_length=3)
    assert hits.counts() == [1, 1]
    with pytest.raises(LengthMismatchError):
        HitSet([(2, 0)], query_length=2, subject_length=3)
    with pytest.raises(ValueError):
        HitSet([(0, 3)], query_length=2, subject_length=3)


def test_count_overlaps_matches_hits() -> None:
    rng = random.Random(3)
    subject = random_intervals(rng, 300, seq_names=["chr1"])
    query = random_intervals(rng, 100, seq_names=["chr1"])
    hits = find_overlaps(query, subject)
    counts = count_overlaps(query, subject)
    assert len(counts) == len(query)
    for q, count in enumerate(counts):
        assert count == sum(1 for pair in hits if pair[0] == q)


def test_find_overlaps_is_idempotent() -> None:
    rng = random.Random(11)
    subject = random_intervals(rng, 300, seq_names=["chr1", "chr2"])
    query = random_intervals(rng, 100, seq_names=["chr1", "chr2"])
    assert find_overlaps(query, subject) == find_overlaps(query, subject)


def test_prebuilt_index(query: IntervalCollection, subject: IntervalCollection) -> None:
    index = OverlapIndex.build(subject)
    assert find_overlaps(query, subject, index=index) == find_overlaps(query, subject)
    assert count_overlaps(query, subject, index=index) == [1, 4, 1, 0]
    assert index.built_from(subject)
    with pytest.raises(IndexMismatchError):
        find_overlaps(query, subject[1:], index=index)


def test_prebuilt_index_from_other_subject() -> None:
    indexed = IntervalCollection([Interval("chr1", 1, 10)])
    other = IntervalCollection([Interval("chr1", 500, 600)])
    query = IntervalCollection([Interval("chr1", 5, 6)])
    index = OverlapIndex.build(indexed)
    assert not index.built_from(other)
    # same size, different coordinates: reusing the index would report a false hit
    with pytest.raises(IndexMismatchError):
        find_overlaps(query, other, index=index)
    with pytest.raises(IndexMismatchError):
        nearest(query, other, index=index)
    assert len(find_overlaps(query, other)) == 0
    assert list(find_overlaps(query, indexed, index=index)) == [(0, 0)]


def test_overlaps_any(query: IntervalCollection, subject: IntervalCollection) -> None:
    assert overlaps_any(query, subject) == [True, True, True, False]


def test_subset_by_overlaps(query: IntervalCollection, subject: IntervalCollection) -> None:
    kept = subset_by_overlaps(query, subject)
    assert list(kept) == list(query)[:3]
    dropped = subset_by_overlaps(query, subject, invert=True)
    assert list(dropped) == [Interval("chr3", 1, 50, "+")]
    # the source collection is untouched
    assert len(query) == 4


def test_subset_by_overlaps_returns_copies(query: IntervalCollection,
                                           subject: IntervalCollection) -> None:
    kept = subset_by_overlaps(query, subject)
    kept.annotate("flag", [True] * len(kept))
    assert query.column("flag") == [None] * len(query)


def test_nearest_and_distance() -> None:
    query = IntervalCollection([
        Interval("chr1", 50, 60, "+"),
        Interval("chr1", 1, 3, "+"),
        Interval("chr1", 23, 24, "+"),
        Interval("chr2", 1, 3, "+"),
        Interval("chr1", 50, 60, "-"),
    ])
    subject = IntervalCollection([
        Interval("chr1", 10, 20, "+"),
        Interval("chr1", 55, 70, "+"),
        Interval("chr1", 26, 30, "+"),
    ])
    assert nearest(query, subject) == [1, 0, 2, None, None]
    assert distance_to_nearest(query, subject) == [0, 6, 1, None, None]
    assert nearest(query, subject, ignore_strand=True) == [1, 0, 2, None, 1]
    assert distance_to_nearest(query, subject, ignore_strand=True) == [0, 6, 1, None, 0]
