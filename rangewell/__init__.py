"""
Genomic Interval Overlaps
-------------------------

:mod:`rangewell` builds collections of 1-based, closed genomic intervals, indexes them by
sequence name, and finds, counts, selects and joins the overlaps between two collections.

    - :mod:`~rangewell.intervals` -- intervals, strands and collections of intervals
    - :mod:`~rangewell.overlap_index` -- the per-sequence interval index
    - :mod:`~rangewell.overlap_detector` -- an incrementally filled set of intervals to query
    - :mod:`~rangewell.hits` -- overlaps between a query and a subject collection
    - :mod:`~rangewell.aggregate` -- counts, joins and reductions over overlaps
    - :mod:`~rangewell.errors` -- exceptions raised on malformed input
"""
