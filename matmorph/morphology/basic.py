# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

import numpy as np

from matmorph.continuation import ContinuationMode, read_shifted
from matmorph.patterns import Pattern
from matmorph.utils.multithreading import process_rows

from .base import Morphology, check_matrices

__all__ = ["BasicMorphology"]


class BasicMorphology(Morphology):
    """Morphology service based on shifted reads of the source matrix.

    Each destination row stripe is the maximum (dilation) or the minimum (erosion) of the source
    stripes shifted by every point of the pattern. Stripes are processed by several threads when
    `multithreading` is set. Out-of-range samples are read cyclically unless another continuation
    mode is passed to the operation.

    >>> import numpy as np
    >>> from matmorph.morphology import BasicMorphology
    >>> from matmorph.patterns import CROSS
    >>> out = BasicMorphology.get_instance(False).dilate(np.eye(5, dtype=np.uint8), CROSS)

    Args:
        multithreading: whether the rows are processed in parallel
    """

    def __init__(self, multithreading: bool = True) -> None:
        self._multithreading = bool(multithreading)

    @property
    def multithreading(self) -> bool:
        return self._multithreading

    @staticmethod
    def get_instance(multithreading: bool) -> "BasicMorphology":
        """Shared instance of the service for the requested threading mode"""
        return _MULTITHREADING_MORPHOLOGY if multithreading else _SINGLETHREADING_MORPHOLOGY

    def extra_repr(self) -> str:
        return f"multithreading={self._multithreading}"

    def dilation(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        pattern: Pattern,
        continuation_mode: ContinuationMode | None = None,
    ) -> None:
        self._process(src, dst, pattern, np.maximum, -1, continuation_mode)

    def erosion(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        pattern: Pattern,
        continuation_mode: ContinuationMode | None = None,
    ) -> None:
        self._process(src, dst, pattern, np.minimum, 1, continuation_mode)

    def _process(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        pattern: Pattern,
        reducer: np.ufunc,
        direction: int,
        continuation_mode: ContinuationMode | None,
    ) -> None:
        check_matrices(src, dst)
        if continuation_mode is not None and continuation_mode.is_constant():
            # Fail early on constants which cannot be represented by the element type
            continuation_mode.constant_for(src.dtype)
        points = pattern.points

        def _rows(start: int, stop: int) -> None:
            out = dst[start:stop]
            for idx, (x, y) in enumerate(points):
                shifted = read_shifted(src, direction * x, direction * y, start, stop, continuation_mode)
                if idx == 0:
                    out[...] = shifted
                else:
                    reducer(out, shifted, out=out)

        process_rows(_rows, src.shape[0], self._multithreading)


_MULTITHREADING_MORPHOLOGY = BasicMorphology(multithreading=True)
_SINGLETHREADING_MORPHOLOGY = BasicMorphology(multithreading=False)
