# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from collections.abc import Iterable, Iterator
from numbers import Integral

import numpy as np

from matmorph.utils.common_types import IPoint

__all__ = [
    "Pattern",
    "new_integer_pattern",
    "rectangle_pattern",
    "minkowski_sum",
    "ORIGIN",
    "CROSS",
    "SQUARE_3X3",
]

ORIGIN: IPoint = (0, 0)


def _to_point(point: Iterable[int]) -> IPoint:
    coords = tuple(point)
    if len(coords) != 2:
        raise AssertionError(f"a pattern point should have 2 coordinates, got {coords}")
    if not all(isinstance(c, Integral) for c in coords):
        raise AssertionError(f"pattern points should have integer coordinates, got {coords}")
    return int(coords[0]), int(coords[1])


class Pattern:
    """Structuring element: a finite, non-empty set of integer (x, y) offsets

    >>> from matmorph.patterns import Pattern
    >>> pattern = Pattern([(0, 0), (1, 0)])
    >>> pattern.symmetric()
    Pattern([(-1, 0), (0, 0)])

    Args:
        points: iterable of (x, y) integer points, duplicates are ignored
    """

    __slots__ = ("_points",)

    def __init__(self, points: Iterable[Iterable[int]]) -> None:
        unique = {_to_point(point) for point in points}
        if len(unique) == 0:
            raise AssertionError("a pattern should contain at least one point")
        # Sorted by (y, x) so that equal patterns always enumerate their points in the same order
        self._points: tuple[IPoint, ...] = tuple(sorted(unique, key=lambda p: (p[1], p[0])))

    @property
    def points(self) -> tuple[IPoint, ...]:
        return self._points

    def point_count(self) -> int:
        return len(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[IPoint]:
        return iter(self._points)

    def __contains__(self, point: object) -> bool:
        return point in self._points

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Pattern) and self._points == other._points

    def __hash__(self) -> int:
        return hash(self._points)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({sorted(self._points)})"

    def is_origin_only(self) -> bool:
        return self._points == (ORIGIN,)

    def symmetric(self) -> "Pattern":
        """Point reflection of the pattern relative to the origin"""
        return Pattern((-x, -y) for x, y in self._points)

    def shift(self, vector: IPoint) -> "Pattern":
        dx, dy = _to_point(vector)
        return Pattern((x + dx, y + dy) for x, y in self._points)

    def bounds(self) -> tuple[IPoint, IPoint]:
        """Bounding box of the pattern

        Returns:
            the minimal and maximal corners ((min_x, min_y), (max_x, max_y))
        """
        xs = [x for x, _ in self._points]
        ys = [y for _, y in self._points]
        return (min(xs), min(ys)), (max(xs), max(ys))

    def to_mask(self) -> tuple[np.ndarray, IPoint]:
        """Render the pattern as a boolean mask

        Returns:
            the mask of shape (height, width) and the (x, y) offset of its top-left sample
        """
        (min_x, min_y), (max_x, max_y) = self.bounds()
        mask = np.zeros((max_y - min_y + 1, max_x - min_x + 1), dtype=bool)
        for x, y in self._points:
            mask[y - min_y, x - min_x] = True
        return mask, (min_x, min_y)


def new_integer_pattern(*points: Iterable[int]) -> Pattern:
    """Build a pattern from the given points

    >>> from matmorph.patterns import new_integer_pattern
    >>> new_integer_pattern((0, 0), (1, 0))
    Pattern([(0, 0), (1, 0)])

    Args:
        *points: (x, y) integer points, or a single iterable of such points

    Returns:
        the pattern
    """
    if len(points) == 1 and not isinstance(points[0], tuple):
        return Pattern(points[0])  # type: ignore[arg-type]
    return Pattern(points)


def rectangle_pattern(min_x: int, min_y: int, size_x: int, size_y: int) -> Pattern:
    """Rectangle of size_x x size_y points, with its top-left corner at (min_x, min_y)"""
    if size_x <= 0 or size_y <= 0:
        raise ValueError(f"Rectangle pattern requires positive sizes, got sizeX={size_x}, sizeY={size_y}")
    return Pattern((min_x + x, min_y + y) for y in range(size_y) for x in range(size_x))


def minkowski_sum(first: Pattern, second: Pattern) -> Pattern:
    """Minkowski sum of two patterns: the set of all sums p + q, p in `first`, q in `second`"""
    return Pattern((x1 + x2, y1 + y2) for x1, y1 in first for x2, y2 in second)


CROSS = new_integer_pattern((0, 0), (1, 0), (0, 1), (-1, 0), (0, -1))
SQUARE_3X3 = rectangle_pattern(-1, -1, 3, 3)
