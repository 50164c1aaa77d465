# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

import numpy as np

from matmorph.continuation import ContinuationMode
from matmorph.patterns import Pattern

from .base import Morphology

__all__ = ["ContinuedMorphology"]


class ContinuedMorphology(Morphology):
    """Morphology service performing all the operations of a parent service with a fixed continuation mode

    >>> from matmorph.continuation import ContinuationMode
    >>> from matmorph.morphology import BasicMorphology, ContinuedMorphology
    >>> morphology = ContinuedMorphology.get_instance(
    ...     BasicMorphology.get_instance(False), ContinuationMode.ZERO_CONSTANT
    ... )

    Args:
        parent: the service performing the operations
        continuation_mode: the continuation mode passed to every operation of the parent
    """

    _children_names: list[str] = ["parent"]

    def __init__(self, parent: Morphology, continuation_mode: ContinuationMode) -> None:
        if parent is None:
            raise AssertionError("Null parent morphology")
        if continuation_mode is None:
            raise ValueError(f"{self.__class__.__name__} cannot be used without a continuation mode")
        self._parent = parent
        self._continuation_mode = continuation_mode

    @classmethod
    def get_instance(cls, parent: Morphology, continuation_mode: ContinuationMode) -> "ContinuedMorphology":
        return cls(parent, continuation_mode)

    @property
    def parent(self) -> Morphology:
        return self._parent

    @property
    def continuation_mode(self) -> ContinuationMode:
        return self._continuation_mode

    def extra_repr(self) -> str:
        return f"continuation_mode={self._continuation_mode.name}"

    def dilation(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        pattern: Pattern,
        continuation_mode: ContinuationMode | None = None,
    ) -> None:
        self._parent.dilation(src, dst, pattern, continuation_mode or self._continuation_mode)

    def erosion(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        pattern: Pattern,
        continuation_mode: ContinuationMode | None = None,
    ) -> None:
        self._parent.erosion(src, dst, pattern, continuation_mode or self._continuation_mode)
