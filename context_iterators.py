"""
Iterator adaptors with associated read-only context data.

A context is attached once to a lazy iterator and handed, by reference, to
every downstream map/filter step, so the step functions can be plain
module-level functions instead of closures capturing the value:

    def shift(item, offset):
        return item + offset

    chain = with_context(range(10), 42).map_with_context(shift)
    assert chain.context() == 42
    assert len(chain) == 10
    assert chain.eq(range(42, 52))

The generic aliases at the bottom of this module give those chains a concrete,
writable type name, e.g. ``MappedWithCtx[range, int, Callable[[int, int], int]]``.

Every adaptor keeps the structural guarantees of what it wraps: pulling from
the back, exact remaining size, and fused termination are forwarded when the
wrapped iterator offers them. Filtering adaptors never claim an exact size.
"""

import logging
from abc import ABC, abstractmethod
from itertools import zip_longest
from typing import Any, Callable, Generic, Iterable, List, Optional, TypeVar

from models import get_settings
from sources import SizeHint, as_source

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C")
It = TypeVar("It")
F = TypeVar("F")

_MISSING = object()


class CapabilityError(TypeError):
    """Raised when a chain is asked for a capability its source lacks."""


def _tracing() -> bool:
    return get_settings().trace_pulls


def _is_double_ended(it) -> bool:
    query = getattr(it, "is_double_ended", None)
    if callable(query):
        return bool(query())
    return callable(getattr(it, "next_back", None))


def _has_exact_size(it) -> bool:
    query = getattr(it, "has_exact_size", None)
    if callable(query):
        return bool(query())
    return SizeHint(*it.size_hint()).exact


def _drain_back(chain):
    while True:
        try:
            item = chain.next_back()
        except StopIteration:
            return
        yield item


class IntoContextIterator:
    """
    Mixin giving an iterator the ability to carry read-only context.

    Every adaptor in this module inherits it; plain iterables go through the
    module-level ``with_context`` instead.
    """
    def with_context(self, context):
        """Add read-only context to the iterator."""
        return WithCtx(self, context)


class ContextIterator(ABC, Generic[T, C]):
    """
    Iterator carrying a context.

    Subclasses supply ``context()`` and ``__next__``; the structural queries
    default to the most conservative answers (forward only, no exact size,
    not fused) and are forwarded by the concrete adaptors.
    """

    @abstractmethod
    def context(self) -> C:
        """Get the context."""

    @abstractmethod
    def __next__(self) -> T:
        ...

    def __iter__(self):
        return self

    def _pull_back(self) -> T:
        raise CapabilityError(f"{type(self).__name__} is not double-ended")

    # --------- chainable adaptors (lazy) ----------
    def map_with_context(self, fn: Callable[[Any, C], Any]) -> "MapCtx":
        """Apply ``fn(item, context)`` to each element."""
        return MapCtx(self, fn)

    def filter_with_context(self, predicate: Callable[[Any, C], bool]) -> "FilterCtx":
        """Keep the elements for which ``predicate(item, context)`` is true."""
        return FilterCtx(self, predicate)

    def filter_map_with_context(self, fn: Callable[[Any, C], Optional[Any]]) -> "FilterMapCtx":
        """Map with ``fn(item, context)``, dropping elements that map to None."""
        return FilterMapCtx(self, fn)

    def context_map(self, fn: Callable[[C], Any]) -> "ContextMapCtx":
        """Expose ``fn(context)`` as the context of the returned iterator."""
        return ContextMapCtx(self, fn)

    # --------- structure ----------
    def next_back(self, default=_MISSING):
        """
        Pull the next item from the back, mirroring builtin ``next()``:
        raises StopIteration when exhausted unless a default is given.
        """
        try:
            return self._pull_back()
        except StopIteration:
            if default is _MISSING:
                raise
            return default

    def is_double_ended(self) -> bool:
        return False

    def has_exact_size(self) -> bool:
        return False

    def is_fused(self) -> bool:
        return False

    def size_hint(self) -> SizeHint:
        return SizeHint(0, None)

    def __reversed__(self):
        if not self.is_double_ended():
            raise CapabilityError(f"{type(self).__name__} is not double-ended")
        return _drain_back(self)

    def __len__(self):
        if not self.has_exact_size():
            raise CapabilityError(f"{type(self).__name__} has no exact size")
        return self.size_hint().lower

    def __length_hint__(self):
        return self.size_hint().lower

    def __bool__(self):
        return True

    def clone(self):
        """Independent copy of the chain at its current position."""
        raise CapabilityError(f"{type(self).__name__} cannot be cloned")

    def __copy__(self):
        return self.clone()

    # --------- consuming operations ----------
    def count(self) -> int:
        """Consume the iterator, returning the number of items left."""
        n = 0
        for _ in self:
            n += 1
        return n

    def to_list(self) -> List[T]:
        return list(self)

    def last(self, default=None):
        """Consume the iterator, returning its final item or ``default``."""
        last_item = default
        for item in self:
            last_item = item
        return last_item

    def eq(self, other: Iterable) -> bool:
        """Consume both sides, comparing them element by element."""
        for a, b in zip_longest(self, other, fillvalue=_MISSING):
            if a is _MISSING or b is _MISSING or a != b:
                return False
        return True


class _ContextAdaptor(ContextIterator[T, C], IntoContextIterator):
    """Shared forwarding for adaptors owning exactly one wrapped iterator."""
    def __init__(self, inner):
        self._iter = inner
        logger.debug(f"Built {type(self).__name__} over {type(inner).__name__}")

    def context(self):
        return self._iter.context()

    def is_double_ended(self) -> bool:
        return _is_double_ended(self._iter)

    def has_exact_size(self) -> bool:
        return _has_exact_size(self._iter)

    def is_fused(self) -> bool:
        return bool(self._iter.is_fused())

    def size_hint(self) -> SizeHint:
        lower, upper = self._iter.size_hint()
        return SizeHint(lower, upper)

    def count(self) -> int:
        return self._iter.count()

    def clone(self):
        cloner = getattr(self._iter, "clone", None)
        if not callable(cloner):
            raise CapabilityError(f"{type(self._iter).__name__} cannot be cloned")
        # Functions and the context are shared; only positions are copied.
        twin = object.__new__(type(self))
        twin.__dict__.update(self.__dict__)
        twin._iter = cloner()
        return twin


class WithCtx(_ContextAdaptor[Any, Any], Generic[It, C]):
    """Wrapper around an iterator adding context data."""
    def __init__(self, iterable: It, context: C):
        super().__init__(as_source(iterable))
        self._context = context

    def context(self) -> C:
        return self._context

    def __next__(self):
        return next(self._iter)

    def _pull_back(self):
        if not _is_double_ended(self._iter):
            raise CapabilityError(f"{type(self._iter).__name__} is not double-ended")
        return self._iter.next_back()

    def count(self) -> int:
        counter = getattr(self._iter, "count", None)
        if callable(counter):
            return counter()
        return super(_ContextAdaptor, self).count()

    def __repr__(self):
        return f"WithCtx({self._iter!r}, context={self._context!r})"


class MapCtx(_ContextAdaptor[Any, Any], Generic[It, F]):
    """Map a function over each element in the iterator."""
    def __init__(self, inner: It, fn: F):
        super().__init__(inner)
        self._map = fn

    def __next__(self):
        item = next(self._iter)
        return self._map(item, self._iter.context())

    def _pull_back(self):
        item = self._iter.next_back()
        return self._map(item, self._iter.context())

    def __repr__(self):
        return f"MapCtx({self._iter!r}, fn={self._map!r})"


class FilterCtx(_ContextAdaptor[Any, Any], Generic[It, F]):
    """
    Keep the elements accepted by a predicate taking the item and the context.

    Rejected items are dropped while pulling, so the remaining size is only
    bounded from above by the wrapped iterator's upper bound.
    """
    def __init__(self, inner: It, predicate: F):
        super().__init__(inner)
        self._predicate = predicate

    def __next__(self):
        trace = _tracing()
        while True:
            item = next(self._iter)
            if self._predicate(item, self._iter.context()):
                if trace:
                    logger.debug(f"FilterCtx accepted {item!r}")
                return item
            if trace:
                logger.debug(f"FilterCtx rejected {item!r}")

    def _pull_back(self):
        trace = _tracing()
        while True:
            item = self._iter.next_back()
            if self._predicate(item, self._iter.context()):
                if trace:
                    logger.debug(f"FilterCtx accepted {item!r} from the back")
                return item
            if trace:
                logger.debug(f"FilterCtx rejected {item!r} from the back")

    def has_exact_size(self) -> bool:
        return False

    def size_hint(self) -> SizeHint:
        return SizeHint(0, self._iter.size_hint()[1])

    def count(self) -> int:
        """Count the accepted items left without yielding them."""
        total = 0
        for item in self._iter:
            if self._predicate(item, self._iter.context()):
                total += 1
        if _tracing():
            logger.debug(f"FilterCtx counted {total} accepted items")
        return total

    def __repr__(self):
        return f"FilterCtx({self._iter!r}, predicate={self._predicate!r})"


class FilterMapCtx(_ContextAdaptor[Any, Any], Generic[It, F]):
    """
    Map each element with a function taking the item and the context,
    dropping the elements it maps to None.
    """
    def __init__(self, inner: It, fn: F):
        super().__init__(inner)
        self._filter_map = fn

    def __next__(self):
        trace = _tracing()
        while True:
            item = next(self._iter)
            out = self._filter_map(item, self._iter.context())
            if out is not None:
                if trace:
                    logger.debug(f"FilterMapCtx accepted {item!r}")
                return out
            if trace:
                logger.debug(f"FilterMapCtx rejected {item!r}")

    def _pull_back(self):
        trace = _tracing()
        while True:
            item = self._iter.next_back()
            out = self._filter_map(item, self._iter.context())
            if out is not None:
                if trace:
                    logger.debug(f"FilterMapCtx accepted {item!r} from the back")
                return out
            if trace:
                logger.debug(f"FilterMapCtx rejected {item!r} from the back")

    def has_exact_size(self) -> bool:
        return False

    def size_hint(self) -> SizeHint:
        return SizeHint(0, self._iter.size_hint()[1])

    def count(self) -> int:
        """Count the items that map to a value, discarding the values."""
        total = 0
        for item in self._iter:
            if self._filter_map(item, self._iter.context()) is not None:
                total += 1
        if _tracing():
            logger.debug(f"FilterMapCtx counted {total} accepted items")
        return total

    def __repr__(self):
        return f"FilterMapCtx({self._iter!r}, fn={self._filter_map!r})"


class ContextMapCtx(_ContextAdaptor[Any, Any], Generic[It, F]):
    """
    Pass items through unchanged while exposing a view derived from the
    wrapped context. The view is recomputed on every ``context()`` call and
    never stored.
    """
    def __init__(self, inner: It, fn: F):
        super().__init__(inner)
        self._context_map = fn

    def context(self):
        return self._context_map(self._iter.context())

    def __next__(self):
        return next(self._iter)

    def _pull_back(self):
        return self._iter.next_back()

    def __repr__(self):
        return f"ContextMapCtx({self._iter!r}, fn={self._context_map!r})"


def with_context(iterable: Iterable, context: Any) -> WithCtx:
    """Attach read-only context to any iterable."""
    return WithCtx(iterable, context)


# Concrete names for "attach, then adapt once" chains.
MappedWithCtx = MapCtx[WithCtx[It, C], F]
FilteredWithCtx = FilterCtx[WithCtx[It, C], F]
FilterMappedWithCtx = FilterMapCtx[WithCtx[It, C], F]
ContextMappedWithCtx = ContextMapCtx[WithCtx[It, C], F]


__all__ = [
    "CapabilityError",
    "ContextIterator",
    "ContextMapCtx",
    "ContextMappedWithCtx",
    "FilterCtx",
    "FilterMapCtx",
    "FilterMappedWithCtx",
    "FilteredWithCtx",
    "IntoContextIterator",
    "MapCtx",
    "MappedWithCtx",
    "SizeHint",
    "WithCtx",
    "with_context",
]
