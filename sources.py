"""Adapters turning plain Python iterables into pull sources for context chains."""

import inspect
import operator
from collections.abc import Sequence
from typing import Any, Iterable, Iterator, NamedTuple, Optional


class SizeHint(NamedTuple):
    """Bounds on the number of items left: ``upper`` is None when unknown."""
    lower: int
    upper: Optional[int]

    @property
    def exact(self) -> bool:
        return self.upper is not None and self.lower == self.upper


def _range_length(r: range) -> int:
    # len() on a range is capped at sys.maxsize; the arithmetic is not.
    if r.step > 0:
        n = (r.stop - r.start + r.step - 1) // r.step
    else:
        n = (r.start - r.stop - r.step - 1) // -r.step
    return max(0, n)


class SequenceCursor:
    """
    Double-ended cursor over an indexable sequence. Pulls from the front and
    the back meet in the middle; once they do, both ends stay exhausted.
    """
    def __init__(self, seq: Sequence):
        self._seq = seq
        self._front = 0
        self._back = _range_length(seq) if isinstance(seq, range) else len(seq)

    def __iter__(self):
        return self

    def _item(self, index: int):
        if isinstance(self._seq, range):
            return self._seq.start + index * self._seq.step
        return self._seq[index]

    def __next__(self):
        if self._front >= self._back:
            raise StopIteration
        item = self._item(self._front)
        self._front += 1
        return item

    def next_back(self):
        if self._front >= self._back:
            raise StopIteration
        self._back -= 1
        return self._item(self._back)

    def clone(self) -> "SequenceCursor":
        """Independent cursor over the same sequence, at the same positions."""
        twin = SequenceCursor.__new__(SequenceCursor)
        twin._seq = self._seq
        twin._front = self._front
        twin._back = self._back
        return twin

    def size_hint(self) -> SizeHint:
        remaining = self._back - self._front
        return SizeHint(remaining, remaining)

    def is_double_ended(self) -> bool:
        return True

    def is_fused(self) -> bool:
        return True

    def count(self) -> int:
        remaining = self._back - self._front
        self._front = self._back
        return remaining

    def __repr__(self):
        return f"SequenceCursor({self._seq!r}, front={self._front}, back={self._back})"


class IteratorSource:
    """Forward-only source over an arbitrary iterator."""
    def __init__(self, it: Iterator):
        self._it = it
        query = getattr(it, "is_fused", None)
        # Generators keep raising StopIteration once finished.
        self._fused = bool(query()) if callable(query) else inspect.isgenerator(it)

    def __iter__(self):
        return self

    def __next__(self):
        return next(self._it)

    def size_hint(self) -> SizeHint:
        return SizeHint(operator.length_hint(self._it), None)

    def is_double_ended(self) -> bool:
        return False

    def is_fused(self) -> bool:
        return self._fused

    def count(self) -> int:
        n = 0
        for _ in self._it:
            n += 1
        return n

    def __repr__(self):
        return f"IteratorSource({self._it!r})"


def speaks_pull_protocol(obj: Any) -> bool:
    """True for objects that already expose the structural pull surface."""
    return hasattr(obj, "__next__") and hasattr(obj, "size_hint") and hasattr(obj, "is_fused")


def as_source(iterable: Iterable) -> Any:
    """
    Normalise any iterable into a pull source.

    Context iterators and other objects speaking the pull protocol pass
    through untouched, indexable sequences become a ``SequenceCursor``, and
    everything else is pulled forward through ``iter()``.
    """
    if speaks_pull_protocol(iterable):
        return iterable
    if isinstance(iterable, Sequence):
        return SequenceCursor(iterable)
    return IteratorSource(iter(iterable))
