import collections

import pytest

from context_iterators import with_context
from sources import IteratorSource, SequenceCursor, SizeHint, as_source


class TestSizeHint:

    def test_exact(self):
        assert SizeHint(3, 3).exact
        assert not SizeHint(0, 3).exact
        assert not SizeHint(3, None).exact


class TestSequenceCursor:
    """Double-ended cursor over indexable sequences"""

    def test_ends_meet(self):
        cursor = SequenceCursor("abcde")

        assert next(cursor) == "a"
        assert cursor.next_back() == "e"
        assert cursor.size_hint() == (3, 3)
        assert list(cursor) == ["b", "c", "d"]
        with pytest.raises(StopIteration):
            cursor.next_back()

    def test_stays_exhausted(self):
        cursor = SequenceCursor([1])
        assert list(cursor) == [1]
        for _ in range(3):
            with pytest.raises(StopIteration):
                next(cursor)

    def test_count(self):
        cursor = SequenceCursor(range(10))
        next(cursor)
        assert cursor.count() == 9
        assert cursor.size_hint() == (0, 0)


class TestAsSource:
    """Normalising iterables into pull sources"""

    @pytest.mark.parametrize("seq", [range(3), [1, 2], (1,), "ab", collections.deque([1, 2])])
    def test_sequences_become_cursors(self, seq):
        assert isinstance(as_source(seq), SequenceCursor)

    @pytest.mark.parametrize("it", [{1: 2}, {1, 2}, iter([1, 2]), (x for x in [1])])
    def test_other_iterables_are_forward_only(self, it):
        source = as_source(it)
        assert isinstance(source, IteratorSource)
        assert not source.is_double_ended()

    def test_chains_pass_through(self):
        chain = with_context(range(3), 0)
        assert as_source(chain) is chain

    def test_length_hint_is_a_lower_bound_only(self):
        source = as_source(iter([1, 2, 3]))
        assert source.size_hint() == (3, None)

    def test_iterator_reporting_fused(self):
        class Reported:
            def __iter__(self):
                return self

            def __next__(self):
                raise StopIteration

            def is_fused(self):
                return True

        assert as_source(Reported()).is_fused()

    def test_user_cursor_passes_through(self):
        """Objects already speaking the pull protocol are used as is"""
        class Cursor:
            def __init__(self):
                self.items = [1, 2, 3]

            def __iter__(self):
                return self

            def __next__(self):
                if not self.items:
                    raise StopIteration
                return self.items.pop(0)

            def next_back(self):
                if not self.items:
                    raise StopIteration
                return self.items.pop()

            def size_hint(self):
                return (len(self.items), len(self.items))

            def is_fused(self):
                return True

        cursor = Cursor()
        assert as_source(cursor) is cursor

        chain = with_context(Cursor(), 10).map_with_context(lambda i, c: i * c)
        assert chain.is_double_ended()
        assert len(chain) == 3
        assert chain.next_back() == 30
        assert chain.to_list() == [10, 20]


class TestRangeCursor:
    """Ranges are indexed arithmetically, whatever their length"""

    @pytest.mark.parametrize("r", [range(0), range(5), range(2, 11, 3), range(10, 0, -3), range(5, 5), range(0, 10, -1)])
    def test_matches_range(self, r):
        cursor = SequenceCursor(r)
        assert cursor.size_hint() == (len(r), len(r))
        assert list(cursor) == list(r)

    def test_negative_step_from_back(self):
        cursor = SequenceCursor(range(10, 0, -3))
        assert cursor.next_back() == 1
        assert next(cursor) == 10
        assert list(cursor) == [7, 4]

    def test_huge_range(self):
        cursor = SequenceCursor(range(-2 ** 70, 2 ** 70, 2))
        assert cursor.size_hint().lower == 2 ** 70
        assert next(cursor) == -2 ** 70
        assert cursor.next_back() == 2 ** 70 - 2

    def test_clone(self):
        cursor = SequenceCursor([1, 2, 3])
        next(cursor)
        twin = cursor.clone()
        assert list(twin) == [2, 3]
        assert list(cursor) == [2, 3]
