"""
Iterators for Walking Sorted Streams of Hits
--------------------------------------------

This module contains iterators used to walk streams that are already in order, such as the
(query, subject) pairs of a :class:`~rangewell.hits.HitSet`, or candidate subject intervals
ordered by their distance from a query.

Examples of a "Peekable" Iterator
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

A peekable iterator returns the next item without consuming it, which allows consuming the
leading items that match a predicate while leaving the first non-matching item in place:

.. code-block:: python

    >>> from rangewell.itertools import peekable
    >>> pairs = peekable([(0, 1), (0, 4), (2, 3)])
    >>> pairs.peek()
    (0, 1)
    >>> pairs.takewhile(lambda pair: pair[0] == 0)
    [(0, 1), (0, 4)]
    >>> next(pairs)
    (2, 3)
    >>> pairs.can_peek()
    False

Examples of a "Merging" Iterator
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

A merging iterator merges two iterators that are each in order by the given key.  For example,
subject intervals upstream and downstream of a query, each ordered by their distance from the
query, merge into a single stream ordered by distance:

.. code-block:: python

    >>> from rangewell.itertools import MergingIterator
    >>> upstream = iter([(2, "a"), (7, "b")])
    >>> downstream = iter([(1, "c"), (7, "d"), (9, "e")])
    >>> [name for _, name in MergingIterator(upstream, downstream, lambda x: x[0])]
    ['c', 'a', 'b', 'd', 'e']

Examples of Grouping Runs
~~~~~~~~~~~~~~~~~~~~~~~~~

.. code-block:: python

    >>> from rangewell.itertools import runs
    >>> list(runs([(0, 1), (0, 4), (2, 3)], keyfunc=lambda pair: pair[0]))
    [(0, [(0, 1), (0, 4)]), (2, [(2, 3)])]

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.itertools.PeekableIterator` -- Iterator that allows you to peek at the
        next value before calling next

    - :class:`~rangewell.itertools.MergingIterator` -- Iterator that merges two ordered
        iterators using a keyfunc to decide from which iterator to draw the next item

The module contains the following methods:

    - :func:`~rangewell.itertools.peekable` -- Creates an iterator that allows you to peek at
        the next value before calling next
    - :func:`~rangewell.itertools.runs` -- Groups consecutive items that share a key
"""

from typing import Any
from typing import Callable
from typing import Generic
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Tuple
from typing import TypeVar
from typing import Union


IterType = TypeVar('IterType')


class PeekableIterator(Generic[IterType], Iterator[IterType]):
    """A peekable iterator wrapping an iterator.

    This allows returning the next item without consuming it.

    Args:
        source: an iterator over the objects
    """

    def __init__(self, source: Iterator[IterType]) -> None:
        self._iter: Iterator[IterType] = source
        self._sentinel: Any = object()
        self.__update_peek()

    def __iter__(self) -> Iterator[IterType]:
        return self

    def __next__(self) -> IterType:
        to_return = self.peek()
        self.__update_peek()
        return to_return

    def __update_peek(self) -> None:
        self._peek = next(self._iter, self._sentinel)

    def can_peek(self) -> bool:
        """Returns true if there is a value that can be peeked at, false otherwise."""
        return self._peek is not self._sentinel

    def peek(self) -> IterType:
        """Returns the next element without consuming it, or StopIteration otherwise."""
        if self.can_peek():
            return self._peek
        else:
            raise StopIteration

    def takewhile(self, pred: Callable[[IterType], bool]) -> List[IterType]:
        """Consumes from the iterator while pred is true, and returns the result as a List.

        The iterator is left pointing at the first non-matching item, or if all items match
        then the iterator will be exhausted.

        Args:
            pred: a function that takes the next value from the iterator and returns
                  true or false.

        Returns:
            List[V]: A list of the values from the iterator, in order, up until and excluding
            the first value that does not match the predicate.
        """
        xs: List[IterType] = []
        while self.can_peek() and pred(self._peek):
            xs.append(next(self))
        return xs


def peekable(source: Union[Iterator[IterType], Iterable[IterType]]) -> PeekableIterator[IterType]:
    """Creates a peekable iterator that allows you to peek at the next value before calling next

    Args:
        source: either an iterator or an iterable over the objects

    Returns:
        a :class:`~rangewell.itertools.PeekableIterator`
    """
    return PeekableIterator(source=iter(source))


class MergingIterator(Generic[IterType], Iterator[IterType]):
    """An iterator that merges two iterators; if they are sorted by keyfunc, yields results in
    order.  Ties are drawn from the first iterator.

    Args:
        iter1: an iterator
        iter2: an iterator
        keyfunc: a function that extracts a key from an item that is used to order items
    """

    def __init__(self,
                 iter1: Iterator[IterType],
                 iter2: Iterator[IterType],
                 keyfunc: Callable[[IterType], Any]) -> None:
        self._iter1 = peekable(iter1)
        self._iter2 = peekable(iter2)
        self._keyfunc = keyfunc

    def __iter__(self) -> Iterator[IterType]:
        return self

    def __next__(self) -> IterType:
        if self._iter1.can_peek() and self._iter2.can_peek():
            k1 = self._keyfunc(self._iter1.peek())
            k2 = self._keyfunc(self._iter2.peek())
            return next(self._iter1 if k1 <= k2 else self._iter2)
        elif self._iter1.can_peek():
            return next(self._iter1)
        elif self._iter2.can_peek():
            return next(self._iter2)
        else:
            raise StopIteration


def runs(source: Iterable[IterType],
         keyfunc: Callable[[IterType], Any]) -> Iterator[Tuple[Any, List[IterType]]]:
    """Groups consecutive items that share the same key.

    Unlike sorting and grouping, items are never reordered: a key that appears in two separate
    runs is yielded twice.

    Args:
        source: the items
        keyfunc: a function that extracts the grouping key from an item

    Yields:
        the key of each run, and the items in the run
    """
    piter = peekable(source)
    while piter.can_peek():
        key = keyfunc(piter.peek())
        yield key, piter.takewhile(lambda item: keyfunc(item) == key)
