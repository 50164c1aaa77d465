# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

import math
from dataclasses import dataclass
from typing import ClassVar

import numpy as np

__all__ = ["ContinuationMode", "read_shifted"]


@dataclass(frozen=True)
class ContinuationMode:
    """Policy used to read the elements lying outside a matrix

    The predefined modes are:

    - `CYCLIC`: each axis is continued periodically, (x mod width, y mod height)
    - `PSEUDO_CYCLIC`: the matrix is read as one flat row-major sequence continued periodically
    - `MIRROR_CYCLIC`: each axis is reflected at its bounds, repeating the edge sample (period 2 * size)
    - `ZERO_CONSTANT` and `NAN_CONSTANT`: every outside element is 0 (resp. NaN)

    >>> from matmorph.continuation import ContinuationMode
    >>> ContinuationMode.constant(255)
    ContinuationMode(name='constant', value=255)

    Args:
        name: kind of continuation
        value: the continuation constant, only for constant modes
    """

    name: str
    value: float | None = None

    CYCLIC: ClassVar["ContinuationMode"]
    PSEUDO_CYCLIC: ClassVar["ContinuationMode"]
    MIRROR_CYCLIC: ClassVar["ContinuationMode"]
    ZERO_CONSTANT: ClassVar["ContinuationMode"]
    NAN_CONSTANT: ClassVar["ContinuationMode"]

    @classmethod
    def constant(cls, value: float) -> "ContinuationMode":
        """Continuation mode returning the given constant outside the matrix"""
        if isinstance(value, float) and math.isnan(value):
            return cls.NAN_CONSTANT
        if value == 0:
            return cls.ZERO_CONSTANT
        return cls("constant", value)

    def is_constant(self) -> bool:
        return self.name == "constant"

    def constant_for(self, dtype: np.dtype):
        """The continuation constant, cast to the given element type

        Integer types receive the truncated value wrapped around to their bit width (300 becomes 44 for uint8),
        boolean matrices receive `value != 0`.

        Args:
            dtype: element type of the processed matrix

        Returns:
            the constant as a numpy scalar of type `dtype`
        """
        if not self.is_constant():
            raise AssertionError(f"{self} is not a constant continuation mode")
        dtype = np.dtype(dtype)
        if np.issubdtype(dtype, np.inexact):
            return dtype.type(self.value)
        if not math.isfinite(self.value):
            raise ValueError(f"{self.value} continuation constant cannot be used for element type {dtype}")
        if dtype == bool:
            return np.bool_(self.value != 0)
        mask = (1 << (8 * dtype.itemsize)) - 1
        return np.array(int(self.value) & mask, dtype=np.uint64).astype(dtype)[()]


ContinuationMode.CYCLIC = ContinuationMode("cyclic")
ContinuationMode.PSEUDO_CYCLIC = ContinuationMode("pseudo-cyclic")
ContinuationMode.MIRROR_CYCLIC = ContinuationMode("mirror-cyclic")
ContinuationMode.ZERO_CONSTANT = ContinuationMode("constant", 0)
ContinuationMode.NAN_CONSTANT = ContinuationMode("constant", math.nan)


def _mirror(indices: np.ndarray, size: int) -> np.ndarray:
    folded = indices % (2 * size)
    return np.where(folded < size, folded, 2 * size - 1 - folded)


def read_shifted(
    src: np.ndarray,
    dx: int,
    dy: int,
    start: int,
    stop: int,
    mode: ContinuationMode | None = None,
) -> np.ndarray:
    """Read the rows [start, stop) of the matrix shifted by (dx, dy), i.e. out[y, x] = src[y + dy, x + dx]

    Args:
        src: 2D source matrix
        dx: shift along the columns
        dy: shift along the rows
        start: first row of the output window
        stop: row after the last one of the output window
        mode: continuation mode for the samples lying outside `src`, `None` means `CYCLIC`

    Returns:
        a new array of shape (stop - start, width)
    """
    height, width = src.shape
    mode = ContinuationMode.CYCLIC if mode is None else mode
    rows = np.arange(start + dy, stop + dy)
    cols = np.arange(dx, width + dx)

    if mode == ContinuationMode.CYCLIC:
        return src[np.ix_(rows % height, cols % width)]

    if mode == ContinuationMode.PSEUDO_CYCLIC:
        flat_indices = np.arange(start * width, stop * width) + (dy * width + dx)
        return src.reshape(-1)[flat_indices % src.size].reshape(stop - start, width)

    if mode == ContinuationMode.MIRROR_CYCLIC:
        return src[np.ix_(_mirror(rows, height), _mirror(cols, width))]

    if mode.is_constant():
        out = np.full((stop - start, width), mode.constant_for(src.dtype), dtype=src.dtype)
        valid_rows = (rows >= 0) & (rows < height)
        valid_cols = (cols >= 0) & (cols < width)
        if valid_rows.any() and valid_cols.any():
            out[np.ix_(valid_rows, valid_cols)] = src[np.ix_(rows[valid_rows], cols[valid_cols])]
        return out

    raise ValueError(f"unsupported continuation mode: {mode}")
