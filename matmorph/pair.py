# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

import logging
from collections.abc import Iterable, Iterator

import numpy as np

from matmorph.continuation import ContinuationMode
from matmorph.file_utils import cpu_count, is_multiprocessing_disabled
from matmorph.filters3x3 import (
    DilationByCross3x3,
    DilationBySquare3x3,
    ErosionByCross3x3,
    ErosionBySquare3x3,
    Filter3x3,
)
from matmorph.morphology import BasicMorphology, ContinuedMorphology, Morphology
from matmorph.patterns import CROSS, ORIGIN, Pattern, new_integer_pattern
from matmorph.utils.common_types import IPoint
from matmorph.utils.repr import NestedObject

__all__ = [
    "BufferPair",
    "MatrixPairMorphology",
    "dilation_by_square",
    "erosion_by_square",
    "dilation_by_octagon",
    "erosion_by_octagon",
]


class BufferPair:
    """Two matrices of identical dimensions and element type, used alternately as source and destination.

    The active matrix (`work`) always holds the latest data, the other one (`result`) is the destination
    of the next elementary operation. Swapping the roles only flips an index: no data is copied.

    Args:
        scratch: matrix owned by the pair, used as temporary storage
    """

    def __init__(self, scratch: np.ndarray) -> None:
        self.scratch = scratch
        self.target: np.ndarray | None = None
        self._buffers: list[np.ndarray] = [scratch, scratch]
        self._active = 0

    @property
    def is_bound(self) -> bool:
        return self.target is not None

    @property
    def work(self) -> np.ndarray:
        return self._buffers[self._active]

    @property
    def result(self) -> np.ndarray:
        return self._buffers[1 - self._active]

    def bind(self, target: np.ndarray) -> None:
        """Make `target` the matrix holding the latest data, the scratch matrix becoming the destination"""
        self.target = target
        self._buffers = [target, self.scratch]
        self._active = 0

    def activate_target(self) -> None:
        self._active = 0

    def swap(self) -> None:
        self._active = 1 - self._active

    def reconcile(self) -> None:
        """Make sure the target holds the latest data

        If the latest data lies in the scratch matrix, it is copied into the target and the roles are swapped,
        so that the target stays the matrix holding the latest data.
        """
        if self.work is not self.target:
            np.copyto(self.target, self.work)
            self.swap()


def _doubling_offsets(size: int) -> Iterator[int]:
    # Offsets i of the 2-point patterns {0, i} whose Minkowski sum is the segment {0, 1, ..., size - 1}:
    # 1, 2, 4, ... while the covered span can be doubled, then the remaining gap
    span = 1
    while 2 * span <= size:
        yield span
        span *= 2
    if span < size:
        yield size - span


def _check_sizes(size_x: int, size_y: int) -> None:
    if size_x < 0 or size_y < 0:
        raise ValueError(f"Negative sizeX={size_x} or sizeY={size_y}")


def _check_radius(radius: int) -> None:
    if radius < 0:
        raise ValueError(f"Negative radius={radius}")


class MatrixPairMorphology(NestedObject):
    """Fast dilation and erosion of a 2D matrix by rectangles and octagons, using a pair of matrices.

    The matrix to process (the target) and a temporary matrix of the same dimensions and element type are
    used alternately as source and destination of elementary operations, so that no memory is allocated
    between the steps. A rectangle of size S is decomposed into O(log S) Minkowski sums of 2-point patterns,
    an octagon approximating a disk of radius R into about R/2 crosses followed by one square.

    The result is copied into the target at the end of every operation, unless the caller explicitly
    defers it (`provide_result=False`) to chain another operation.

    >>> import numpy as np
    >>> from matmorph.pair import MatrixPairMorphology
    >>> image = np.zeros((64, 64), dtype=np.uint8)
    >>> image[32, 32] = 255
    >>> morphology = MatrixPairMorphology(np.empty_like(image)).set_matrix_to_process(image)
    >>> morphology = morphology.dilation_by_octagon(5)

    Args:
        work: temporary matrix, which defines the dimensions and the element type of the processed matrices
    """

    _children_names: list[str] = ["morphology"]

    def __init__(self, work: np.ndarray) -> None:
        if work is None:
            raise AssertionError("Null work matrix")
        if work.ndim != 2:
            raise AssertionError(f"only 2D matrices are supported, got {work.ndim} dimensions")
        self._pair = BufferPair(work)
        self._binary = work.dtype == bool
        self._multithreading = cpu_count() > 1 and not is_multiprocessing_disabled()
        self._continuation_mode: ContinuationMode | None = None
        self._dilation_by_square_3x3: Filter3x3 | None = None
        self._erosion_by_square_3x3: Filter3x3 | None = None
        self._dilation_by_cross_3x3: Filter3x3 | None = None
        self._erosion_by_cross_3x3: Filter3x3 | None = None
        if not self._binary:
            self._dilation_by_square_3x3 = DilationBySquare3x3.new_instance(work.dtype, work.shape)
            self._erosion_by_square_3x3 = ErosionBySquare3x3.new_instance(work.dtype, work.shape)
            self._dilation_by_cross_3x3 = DilationByCross3x3.new_instance(work.dtype, work.shape)
            self._erosion_by_cross_3x3 = ErosionByCross3x3.new_instance(work.dtype, work.shape)
        self._set_filters_multithreading()

    @classmethod
    def new_instance(cls, work: np.ndarray) -> "MatrixPairMorphology":
        return cls(work)

    def extra_repr(self) -> str:
        mode = None if self._continuation_mode is None else self._continuation_mode.name
        return (
            f"dtype={self._pair.scratch.dtype}, shape={self._pair.scratch.shape}, "
            f"multithreading={self._multithreading}, continuation_mode={mode}"
        )

    @property
    def morphology(self) -> Morphology:
        return self.get_morphology()

    @property
    def binary(self) -> bool:
        return self._binary

    @property
    def target(self) -> np.ndarray | None:
        return self._pair.target

    def result(self) -> np.ndarray:
        """The matrix holding the latest data, which is not necessarily the target if the result was deferred"""
        self._check_bound()
        return self._pair.work

    def is_multithreading(self) -> bool:
        return self._multithreading

    def set_multithreading(self, multithreading: bool) -> "MatrixPairMorphology":
        self._multithreading = bool(multithreading)
        self._set_filters_multithreading()
        return self

    def continuation_mode(self) -> ContinuationMode | None:
        return self._continuation_mode

    def set_continuation_mode(self, continuation_mode: ContinuationMode | None) -> "MatrixPairMorphology":
        """Sets the continuation mode

        Note: if the continuation mode is not specified (`None`), this class works with maximal performance,
        but the results near the matrix boundary are not strictly specified. Currently the matrix is continued
        cyclically in this case, but it can change in future versions.

        Args:
            continuation_mode: new continuation mode, `None` lets the implementation choose the fastest one

        Returns:
            a reference to this object
        """
        self._continuation_mode = continuation_mode
        return self

    def set_matrix_to_process(self, matrix: np.ndarray) -> "MatrixPairMorphology":
        """Sets the matrix which will be processed and will receive the results

        Args:
            matrix: matrix with the dimensions and the element type of the work matrix

        Returns:
            a reference to this object
        """
        work = self._pair.scratch
        if matrix is None:
            raise AssertionError("Null matrix to process")
        if matrix.shape != work.shape:
            raise AssertionError(f"dimensions mismatch: matrix to process {matrix.shape}, work matrix {work.shape}")
        if matrix.dtype != work.dtype:
            raise AssertionError(
                f"element type of the matrix to process ({matrix.dtype}) "
                f"does not match the element type of this object: {work.dtype}"
            )
        if np.shares_memory(matrix, work):
            raise AssertionError("the matrix to process should not overlap the work matrix")
        self._pair.bind(matrix)
        return self

    def copy_from(self, source: np.ndarray) -> "MatrixPairMorphology":
        """Copies `source` into the matrix to process, which becomes the latest data"""
        self._check_bound()
        if source.shape != self._pair.target.shape:
            raise AssertionError(
                f"dimensions mismatch: source {source.shape}, matrix to process {self._pair.target.shape}"
            )
        np.copyto(self._pair.target, source)
        self._pair.activate_target()
        return self

    def opening_by_square(self, side: int) -> "MatrixPairMorphology":
        return self.opening_by_rectangle(-(side // 2), -(side // 2), side, side)

    def closing_by_square(self, side: int) -> "MatrixPairMorphology":
        return self.closing_by_rectangle(-(side // 2), -(side // 2), side, side)

    def opening_by_rectangle(self, min_x: int, min_y: int, size_x: int, size_y: int) -> "MatrixPairMorphology":
        """Erosion followed by dilation by the same rectangle, the intermediate result is not copied to the target"""
        _check_sizes(size_x, size_y)
        self.erosion_by_rectangle(min_x, min_y, size_x, size_y, provide_result=False)
        return self.dilation_by_rectangle(min_x, min_y, size_x, size_y, provide_result=True)

    def closing_by_rectangle(self, min_x: int, min_y: int, size_x: int, size_y: int) -> "MatrixPairMorphology":
        """Dilation followed by erosion by the same rectangle, the intermediate result is not copied to the target"""
        _check_sizes(size_x, size_y)
        self.dilation_by_rectangle(min_x, min_y, size_x, size_y, provide_result=False)
        return self.erosion_by_rectangle(min_x, min_y, size_x, size_y, provide_result=True)

    def opening_by_octagon(self, radius: int) -> "MatrixPairMorphology":
        _check_radius(radius)
        self._erosion_by_octagon(radius, False, provide_result=False)
        return self._dilation_by_octagon(radius, False, provide_result=True)

    def closing_by_octagon(self, radius: int) -> "MatrixPairMorphology":
        _check_radius(radius)
        self._dilation_by_octagon(radius, False, provide_result=False)
        return self._erosion_by_octagon(radius, False, provide_result=True)

    def dilation_by_square(self, side: int) -> "MatrixPairMorphology":
        return self.dilation_by_rectangle(-(side // 2), -(side // 2), side, side)

    def erosion_by_square(self, side: int) -> "MatrixPairMorphology":
        return self.erosion_by_rectangle(-(side // 2), -(side // 2), side, side)

    def dilation_by_double_square(self, half_side: int) -> "MatrixPairMorphology":
        """Dilation by the square of side 2 * half_side + 1 centered at the origin"""
        return self.dilation_by_rectangle(-half_side, -half_side, 2 * half_side + 1, 2 * half_side + 1)

    def erosion_by_double_square(self, half_side: int) -> "MatrixPairMorphology":
        """Erosion by the square of side 2 * half_side + 1 centered at the origin"""
        return self.erosion_by_rectangle(-half_side, -half_side, 2 * half_side + 1, 2 * half_side + 1)

    def dilation_by_rectangle(
        self,
        min_x: int,
        min_y: int,
        size_x: int,
        size_y: int,
        provide_result: bool = True,
    ) -> "MatrixPairMorphology":
        """Dilation by the rectangle of size_x x size_y points with its top-left corner at (min_x, min_y)

        The rectangle is the Minkowski sum of the corner point and of 2-point segments {0, i} along each axis,
        with i = 1, 2, 4, ... and a last segment closing the remaining gap, so that only O(log size) elementary
        dilations are performed.

        Args:
            min_x: minimal x of the rectangle
            min_y: minimal y of the rectangle
            size_x: width of the rectangle, 0 means no dilation along x
            size_y: height of the rectangle, 0 means no dilation along y
            provide_result: whether the result should be copied into the matrix to process

        Returns:
            a reference to this object
        """
        _check_sizes(size_x, size_y)
        self._check_bound()
        if (min_x, min_y, size_x, size_y) == (-1, -1, 3, 3) and self._simple_3x3_optimization():
            logging.debug("dilation by 3x3 square: single-pass filter")
            self._filter_and_swap(self._dilation_by_square_3x3)
        else:
            logging.debug(f"dilation by rectangle: min=({min_x}, {min_y}), size=({size_x}, {size_y})")
            self.shift_and_swap((min_x, min_y))
            for offset in _doubling_offsets(size_x):
                self.dilation_and_swap([ORIGIN, (offset, 0)])
            for offset in _doubling_offsets(size_y):
                self.dilation_and_swap([ORIGIN, (0, offset)])
        if provide_result:
            self.provide_result()
        return self

    def erosion_by_rectangle(
        self,
        min_x: int,
        min_y: int,
        size_x: int,
        size_y: int,
        provide_result: bool = True,
    ) -> "MatrixPairMorphology":
        """Erosion by the rectangle of size_x x size_y points with its top-left corner at (min_x, min_y)

        The decomposition is the same as for `dilation_by_rectangle`, with erosions instead of dilations
        and a shift by the symmetric corner point.

        Args:
            min_x: minimal x of the rectangle
            min_y: minimal y of the rectangle
            size_x: width of the rectangle, 0 means no erosion along x
            size_y: height of the rectangle, 0 means no erosion along y
            provide_result: whether the result should be copied into the matrix to process

        Returns:
            a reference to this object
        """
        _check_sizes(size_x, size_y)
        self._check_bound()
        if (min_x, min_y, size_x, size_y) == (-1, -1, 3, 3) and self._simple_3x3_optimization():
            logging.debug("erosion by 3x3 square: single-pass filter")
            self._filter_and_swap(self._erosion_by_square_3x3)
        else:
            logging.debug(f"erosion by rectangle: min=({min_x}, {min_y}), size=({size_x}, {size_y})")
            self.shift_back_and_swap((min_x, min_y))
            for offset in _doubling_offsets(size_x):
                self.erosion_and_swap([ORIGIN, (offset, 0)])
            for offset in _doubling_offsets(size_y):
                self.erosion_and_swap([ORIGIN, (0, offset)])
        if provide_result:
            self.provide_result()
        return self

    def dilation_by_octagon_with_diameter(self, diameter: int) -> "MatrixPairMorphology":
        return self.dilation_by_octagon(diameter // 2, diameter % 2 != 0)

    def erosion_by_octagon_with_diameter(self, diameter: int) -> "MatrixPairMorphology":
        return self.erosion_by_octagon(diameter // 2, diameter % 2 != 0)

    def dilation_by_octagon(self, radius: int, add_half: bool = False) -> "MatrixPairMorphology":
        """Dilation by an octagon approximating the disk of the given radius

        ceil(radius / 2) dilations by the 3x3 cross are followed by one dilation by the square
        of side 2 * (radius // 2) + 1, or one more when `add_half` is set.

        Args:
            radius: radius of the approximated disk
            add_half: whether the square side is increased by 1, approximating a disk of radius `radius + 0.5`

        Returns:
            a reference to this object
        """
        return self._dilation_by_octagon(radius, add_half, provide_result=True)

    def erosion_by_octagon(self, radius: int, add_half: bool = False) -> "MatrixPairMorphology":
        """Erosion by an octagon approximating the disk of the given radius

        ceil(radius / 2) erosions by the 3x3 cross are followed by one erosion by the square
        of side 2 * (radius // 2) + 1, or one more when `add_half` is set.

        Args:
            radius: radius of the approximated disk
            add_half: whether the square side is increased by 1, approximating a disk of radius `radius + 0.5`

        Returns:
            a reference to this object
        """
        return self._erosion_by_octagon(radius, add_half, provide_result=True)

    def _dilation_by_octagon(self, radius: int, add_half: bool, provide_result: bool) -> "MatrixPairMorphology":
        _check_radius(radius)
        self._check_bound()
        logging.debug(f"dilation by octagon: radius={radius}, add_half={add_half}")
        for _ in range((radius + 1) // 2):
            if self._simple_3x3_optimization():
                self._filter_and_swap(self._dilation_by_cross_3x3)
            else:
                self.dilation_and_swap(CROSS)
        square_count = radius // 2
        square_side = 2 * square_count + 1 + (1 if add_half else 0)
        return self.dilation_by_rectangle(-square_count, -square_count, square_side, square_side, provide_result)

    def _erosion_by_octagon(self, radius: int, add_half: bool, provide_result: bool) -> "MatrixPairMorphology":
        _check_radius(radius)
        self._check_bound()
        logging.debug(f"erosion by octagon: radius={radius}, add_half={add_half}")
        for _ in range((radius + 1) // 2):
            if self._simple_3x3_optimization():
                self._filter_and_swap(self._erosion_by_cross_3x3)
            else:
                self.erosion_and_swap(CROSS)
        square_count = radius // 2
        square_side = 2 * square_count + 1 + (1 if add_half else 0)
        return self.erosion_by_rectangle(-square_count, -square_count, square_side, square_side, provide_result)

    def shift_and_swap(self, point: IPoint) -> None:
        """Shifts the latest data by `point` (dilation by the single-point pattern), does nothing for the origin"""
        if tuple(point) != ORIGIN:
            self._check_bound()
            self.get_singlethreading_morphology().dilation(
                self._pair.work, self._pair.result, new_integer_pattern(tuple(point))
            )
            self._pair.swap()

    def shift_back_and_swap(self, point: IPoint) -> None:
        x, y = point
        self.shift_and_swap((-x, -y))

    def dilation_and_swap(self, pattern: Pattern | Iterable[IPoint]) -> None:
        self._check_bound()
        if not isinstance(pattern, Pattern):
            pattern = new_integer_pattern(pattern)
        self.get_morphology().dilation(self._pair.work, self._pair.result, pattern)
        self._pair.swap()

    def erosion_and_swap(self, pattern: Pattern | Iterable[IPoint]) -> None:
        self._check_bound()
        if not isinstance(pattern, Pattern):
            pattern = new_integer_pattern(pattern)
        self.get_morphology().erosion(self._pair.work, self._pair.result, pattern)
        self._pair.swap()

    def provide_result(self) -> "MatrixPairMorphology":
        """Copies the latest data into the matrix to process, if it does not hold it already"""
        self._check_bound()
        self._pair.reconcile()
        return self

    def get_singlethreading_morphology(self) -> Morphology:
        return self._with_continuation(BasicMorphology.get_instance(False))

    def get_morphology(self) -> Morphology:
        return self._with_continuation(BasicMorphology.get_instance(self._multithreading))

    def _with_continuation(self, morphology: Morphology) -> Morphology:
        if self._continuation_mode is not None:
            morphology = ContinuedMorphology.get_instance(morphology, self._continuation_mode)
        return morphology

    def _filter_and_swap(self, filter3x3: Filter3x3 | None) -> None:
        filter3x3.filter(self._pair.work, self._pair.result)  # type: ignore[union-attr]
        self._pair.swap()

    def _set_filters_multithreading(self) -> None:
        if not self._binary:
            for filter3x3 in (
                self._dilation_by_square_3x3,
                self._erosion_by_square_3x3,
                self._dilation_by_cross_3x3,
                self._erosion_by_cross_3x3,
            ):
                filter3x3.set_multithreading(self._multithreading)  # type: ignore[union-attr]

    def _simple_3x3_optimization(self) -> bool:
        return (
            self._continuation_mode is None or self._continuation_mode == ContinuationMode.CYCLIC
        ) and not self._binary

    def _check_bound(self) -> None:
        if not self._pair.is_bound:
            raise RuntimeError("Matrix to process was not specified yet")


def dilation_by_square(matrix: np.ndarray, temporary_matrix: np.ndarray, side: int) -> None:
    """Dilation of `matrix` in place by the square of the given side, centered at the origin

    Args:
        matrix: matrix to process
        temporary_matrix: work matrix, with the dimensions and the element type of `matrix`
        side: side of the square
    """
    MatrixPairMorphology(temporary_matrix).set_matrix_to_process(matrix).dilation_by_square(side)


def erosion_by_square(matrix: np.ndarray, temporary_matrix: np.ndarray, side: int) -> None:
    """Erosion of `matrix` in place by the square of the given side, centered at the origin

    Args:
        matrix: matrix to process
        temporary_matrix: work matrix, with the dimensions and the element type of `matrix`
        side: side of the square
    """
    MatrixPairMorphology(temporary_matrix).set_matrix_to_process(matrix).erosion_by_square(side)


def dilation_by_octagon(matrix: np.ndarray, temporary_matrix: np.ndarray, radius: int, add_half: bool = False) -> None:
    MatrixPairMorphology(temporary_matrix).set_matrix_to_process(matrix).dilation_by_octagon(radius, add_half)


def erosion_by_octagon(matrix: np.ndarray, temporary_matrix: np.ndarray, radius: int, add_half: bool = False) -> None:
    MatrixPairMorphology(temporary_matrix).set_matrix_to_process(matrix).erosion_by_octagon(radius, add_half)
