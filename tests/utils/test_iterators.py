"""Unit test for iterators."""
import unittest
from itertools import islice

from lanesim.utils.iterators import drop_duplicates, window_iter


class IteratorsTest(unittest.TestCase):
    """Unit test for iterators."""

    def test_drop_duplicates(self):
        """Unit test for drop_duplicates."""
        list_ = [1, 2, 3, 4, 5]
        self.assertEqual(list(drop_duplicates(list_)), list_)

        list_ = [1, 2, 3, 2]
        self.assertEqual(list(drop_duplicates([1, 2, 2, 3, 2])), list_)
        self.assertEqual(list(drop_duplicates([1, 1, 2, 3, 3, 3, 2])), list_)
        self.assertEqual(list(drop_duplicates([])), [])

        def close(a, b):
            return abs(a - b) < 0.01

        self.assertEqual(list(drop_duplicates([1.0, 1.001, 2.0, 2.005, 1.0],
                                              close)), [1.0, 2.0, 1.0])

    def test_window_iter(self):
        """Unit test for window_iter."""
        iterable = [1, 2, 3, 4, 5]
        self.assertEqual(list(window_iter(iterable)),
                         list(zip(iterable, islice(iterable, 1, None))))

        self.assertEqual(list(window_iter([1, 2, 3, 4], size=3)),
                         [(1, 2, 3), (2, 3, 4)])

        self.assertFalse(list(window_iter([1], size=2)))

        self.assertEqual(list(window_iter([1], size=1)), [(1,)])

    def test_window_iter_extend(self):
        """Unit test for window_iter with extend."""
        self.assertEqual(list(window_iter([1, 2, 3], extend=True)),
                         [(1, 2), (2, 3), (3, 1)])
        self.assertEqual(list(window_iter([1, 2, 3, 4], size=3, extend=True)),
                         [(1, 2, 3), (2, 3, 4), (3, 4, 1), (4, 1, 2)])
        self.assertEqual(list(window_iter([1, 2, 3], size=4, extend=True)),
                         [(1, 2, 3, 1), (2, 3, 1, 2), (3, 1, 2, 3)])
