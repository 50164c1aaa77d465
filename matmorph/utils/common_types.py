# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

__all__ = ["IPoint", "Shape", "RowRange"]


IPoint = tuple[int, int]
Shape = tuple[int, int]
RowRange = tuple[int, int]
