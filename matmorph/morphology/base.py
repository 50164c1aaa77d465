# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

import numpy as np

from matmorph.continuation import ContinuationMode
from matmorph.patterns import Pattern
from matmorph.utils.repr import NestedObject

__all__ = ["Morphology", "check_matrices"]


def check_matrices(src: np.ndarray, dst: np.ndarray) -> None:
    """Check that a source and a destination matrices can be used together in a morphological operation

    Args:
        src: source matrix
        dst: destination matrix
    """
    if src.ndim != 2:
        raise AssertionError(f"only 2D matrices are supported, got {src.ndim} dimensions")
    if src.shape != dst.shape:
        raise AssertionError(f"dimensions mismatch: source {src.shape}, destination {dst.shape}")
    if src.dtype != dst.dtype:
        raise AssertionError(f"element type mismatch: source {src.dtype}, destination {dst.dtype}")
    if np.shares_memory(src, dst):
        raise AssertionError("source and destination matrices should not overlap")


class Morphology(NestedObject):
    """Abstract morphology service: dilation and erosion of a 2D matrix by a pattern

    With `p` ranging over the pattern and `src_ext` being the source continued outside its bounds:

    - dilation: dst[y, x] = max(src_ext[y - p.y, x - p.x]) (logical OR for boolean matrices)
    - erosion: dst[y, x] = min(src_ext[y + p.y, x + p.x]) (logical AND for boolean matrices)

    Implementations are stateless and immutable, so that one instance can be shared by several threads.
    """

    def dilation(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        pattern: Pattern,
        continuation_mode: ContinuationMode | None = None,
    ) -> None:
        """Dilation of `src` by `pattern`, written into `dst`

        Args:
            src: source matrix
            dst: destination matrix, same shape and element type as `src`, must not overlap it
            pattern: structuring element
            continuation_mode: overrides the continuation mode of this service
        """
        raise NotImplementedError

    def erosion(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        pattern: Pattern,
        continuation_mode: ContinuationMode | None = None,
    ) -> None:
        """Erosion of `src` by `pattern`, written into `dst`

        Args:
            src: source matrix
            dst: destination matrix, same shape and element type as `src`, must not overlap it
            pattern: structuring element
            continuation_mode: overrides the continuation mode of this service
        """
        raise NotImplementedError

    def dilate(self, src: np.ndarray, pattern: Pattern) -> np.ndarray:
        dst = np.empty_like(src)
        self.dilation(src, dst, pattern)
        return dst

    def erode(self, src: np.ndarray, pattern: Pattern) -> np.ndarray:
        dst = np.empty_like(src)
        self.erosion(src, dst, pattern)
        return dst

    def opening(self, src: np.ndarray, pattern: Pattern) -> np.ndarray:
        """Erosion followed by dilation with the same pattern"""
        return self.dilate(self.erode(src, pattern), pattern)

    def closing(self, src: np.ndarray, pattern: Pattern) -> np.ndarray:
        """Dilation followed by erosion with the same pattern"""
        return self.erode(self.dilate(src, pattern), pattern)
