# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from collections.abc import Callable

import cv2
import numpy as np

from matmorph.file_utils import cpu_count, is_multiprocessing_disabled
from matmorph.patterns import CROSS, SQUARE_3X3, Pattern
from matmorph.utils.common_types import Shape
from matmorph.utils.multithreading import process_rows
from matmorph.utils.repr import NestedObject

from .morphology.base import check_matrices

__all__ = [
    "Filter3x3",
    "DilationBySquare3x3",
    "ErosionBySquare3x3",
    "DilationByCross3x3",
    "ErosionByCross3x3",
]

# Element types handled natively by cv2.dilate / cv2.erode with exact results
CV2_DTYPES = {np.dtype(np.uint8), np.dtype(np.uint16), np.dtype(np.int16)}


class Filter3x3(NestedObject):
    """Single-pass dilation or erosion by a centered 3x3 pattern, with cyclic continuation.

    The source is copied once into a padded buffer continued cyclically by one sample on each side,
    then every destination sample is the extremum of its 3x3 neighbourhood in that buffer.
    The padded buffer is allocated at construction, so an instance only processes matrices
    of the element type and dimensions it was created for. Boolean matrices are not supported.

    Args:
        dtype: element type of the processed matrices
        shape: dimensions (height, width) of the processed matrices
    """

    pattern: Pattern
    _cv2_shape: int
    _cv2_op: Callable[..., np.ndarray]
    _reducer: np.ufunc

    def __init__(self, dtype: np.dtype, shape: Shape) -> None:
        dtype = np.dtype(dtype)
        if dtype == bool:
            raise AssertionError(f"{self.__class__.__name__} does not support boolean matrices")
        if len(shape) != 2:
            raise AssertionError(f"only 2D matrices are supported, got dimensions {shape}")
        self.dtype = dtype
        self.shape: Shape = (int(shape[0]), int(shape[1]))
        self.multithreading = cpu_count() > 1 and not is_multiprocessing_disabled()
        self._padded = np.empty((self.shape[0] + 2, self.shape[1] + 2), dtype=dtype)
        self._kernel = cv2.getStructuringElement(self._cv2_shape, (3, 3))
        self._offsets = [(x, y) for x, y in self.pattern if (x, y) != (0, 0)]

    @classmethod
    def new_instance(cls, dtype: np.dtype, shape: Shape) -> "Filter3x3":
        return cls(dtype, shape)

    def set_multithreading(self, multithreading: bool) -> "Filter3x3":
        self.multithreading = bool(multithreading)
        return self

    def extra_repr(self) -> str:
        return f"dtype={self.dtype}, shape={self.shape}, multithreading={self.multithreading}"

    def filter(self, src: np.ndarray, dst: np.ndarray) -> None:
        """Apply the filter to `src` and store the result into `dst`

        Args:
            src: source matrix, with the element type and dimensions of this filter
            dst: destination matrix, with the element type and dimensions of this filter
        """
        check_matrices(src, dst)
        if src.shape != self.shape or src.dtype != self.dtype:
            raise AssertionError(
                f"{self.__class__.__name__} was created for {self.dtype} matrices of dimensions {self.shape}, "
                f"got {src.dtype} matrix of dimensions {src.shape}"
            )
        padded = self._padded
        padded[1:-1, 1:-1] = src
        padded[0, 1:-1] = src[-1]
        padded[-1, 1:-1] = src[0]
        padded[:, 0] = padded[:, -2]
        padded[:, -1] = padded[:, 1]
        process_rows(lambda start, stop: self._filter_rows(dst, start, stop), self.shape[0], self.multithreading)

    def _filter_rows(self, dst: np.ndarray, start: int, stop: int) -> None:
        window = self._padded[start : stop + 2]
        if self.dtype in CV2_DTYPES:
            dst[start:stop] = self._cv2_op(window, self._kernel)[1:-1, 1:-1]
            return
        width = self.shape[1]
        out = dst[start:stop]
        out[...] = window[1:-1, 1:-1]
        for x, y in self._offsets:
            self._reducer(out, window[1 + y : 1 + y + stop - start, 1 + x : 1 + x + width], out=out)


class DilationBySquare3x3(Filter3x3):
    """Dilation by the centered 3x3 square"""

    pattern = SQUARE_3X3
    _cv2_shape = cv2.MORPH_RECT
    _cv2_op = staticmethod(cv2.dilate)
    _reducer = np.maximum


class ErosionBySquare3x3(Filter3x3):
    """Erosion by the centered 3x3 square"""

    pattern = SQUARE_3X3
    _cv2_shape = cv2.MORPH_RECT
    _cv2_op = staticmethod(cv2.erode)
    _reducer = np.minimum


class DilationByCross3x3(Filter3x3):
    """Dilation by the 3x3 cross (the origin and its 4 direct neighbours)"""

    pattern = CROSS
    _cv2_shape = cv2.MORPH_CROSS
    _cv2_op = staticmethod(cv2.dilate)
    _reducer = np.maximum


class ErosionByCross3x3(Filter3x3):
    """Erosion by the 3x3 cross (the origin and its 4 direct neighbours)"""

    pattern = CROSS
    _cv2_shape = cv2.MORPH_CROSS
    _cv2_op = staticmethod(cv2.erode)
    _reducer = np.minimum
