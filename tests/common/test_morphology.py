import os
from unittest.mock import patch

import numpy as np
import pytest

from matmorph.continuation import ContinuationMode
from matmorph.morphology import BasicMorphology, ContinuedMorphology, Morphology
from matmorph.patterns import CROSS, SQUARE_3X3, Pattern, rectangle_pattern


def _reference_dilation(src, pattern):
    # np.roll(src, s)[y] == src[y - s]
    shifted = [np.roll(src, (y, x), axis=(0, 1)) for x, y in pattern]
    return np.logical_or.reduce(shifted) if src.dtype == bool else np.maximum.reduce(shifted)


def _reference_erosion(src, pattern):
    shifted = [np.roll(src, (-y, -x), axis=(0, 1)) for x, y in pattern]
    return np.logical_and.reduce(shifted) if src.dtype == bool else np.minimum.reduce(shifted)


def test_basic_morphology_instances():
    assert BasicMorphology.get_instance(True) is BasicMorphology.get_instance(True)
    assert BasicMorphology.get_instance(False) is BasicMorphology.get_instance(False)
    assert BasicMorphology.get_instance(True).multithreading
    assert not BasicMorphology.get_instance(False).multithreading
    assert repr(BasicMorphology.get_instance(False)) == "BasicMorphology(multithreading=False)"
    assert isinstance(BasicMorphology.get_instance(True), Morphology)


def test_abstract_morphology():
    src = np.zeros((3, 3), dtype=np.uint8)
    with pytest.raises(NotImplementedError):
        Morphology().dilation(src, np.zeros_like(src), CROSS)
    with pytest.raises(NotImplementedError):
        Morphology().erosion(src, np.zeros_like(src), CROSS)


def test_shift_by_single_point():
    morphology = BasicMorphology.get_instance(False)
    src = np.zeros((5, 5), dtype=np.uint8)
    src[1, 1] = 9
    out = morphology.dilate(src, Pattern([(2, 1)]))
    expected = np.zeros_like(src)
    expected[2, 3] = 9
    assert np.array_equal(out, expected)
    # Erosion by a single point shifts in the opposite direction
    assert np.array_equal(morphology.erode(out, Pattern([(2, 1)])), src)


@pytest.mark.parametrize("dtype", [np.uint8, np.int16, np.int32, np.float32, np.float64, bool])
@pytest.mark.parametrize(
    "pattern",
    [
        CROSS,
        SQUARE_3X3,
        Pattern([(0, 0), (4, 0)]),
        Pattern([(3, -2)]),
        Pattern([(-7, 1), (0, 0), (2, 30)]),
        rectangle_pattern(-2, 0, 4, 3),
    ],
)
@pytest.mark.parametrize("multithreading", [False, True])
def test_basic_morphology_cyclic(random_matrix, rng, dtype, pattern, multithreading):
    src = random_matrix(rng, dtype, (17, 11))
    morphology = BasicMorphology.get_instance(multithreading)
    with patch.dict(os.environ, {"MATMORPH_NUM_THREADS": "4"}):
        dilated = morphology.dilate(src, pattern)
        eroded = morphology.erode(src, pattern)
    assert dilated.dtype == src.dtype and eroded.dtype == src.dtype
    assert np.array_equal(dilated, _reference_dilation(src, pattern))
    assert np.array_equal(eroded, _reference_erosion(src, pattern))
    # Unset continuation is the cyclic one
    out = np.empty_like(src)
    morphology.dilation(src, out, pattern, ContinuationMode.CYCLIC)
    assert np.array_equal(out, dilated)


def test_basic_morphology_binary(mock_binary_matrix):
    morphology = BasicMorphology.get_instance(False)
    dilated = morphology.dilate(mock_binary_matrix, CROSS)
    eroded = morphology.erode(mock_binary_matrix, CROSS)
    assert dilated.dtype == bool
    # Duality between erosion and dilation for symmetric patterns
    assert np.array_equal(eroded, ~morphology.dilate(~mock_binary_matrix, CROSS))
    assert np.all(dilated >= mock_binary_matrix) and np.all(eroded <= mock_binary_matrix)


def test_basic_morphology_opening_closing(mock_grayscale_matrix):
    morphology = BasicMorphology.get_instance(False)
    opened = morphology.opening(mock_grayscale_matrix, SQUARE_3X3)
    closed = morphology.closing(mock_grayscale_matrix, SQUARE_3X3)
    assert np.all(opened <= mock_grayscale_matrix)
    assert np.all(closed >= mock_grayscale_matrix)
    # Idempotence
    assert np.array_equal(morphology.opening(opened, SQUARE_3X3), opened)
    assert np.array_equal(morphology.closing(closed, SQUARE_3X3), closed)
    speck = np.zeros((9, 9), dtype=np.uint8)
    speck[4, 4] = 255
    assert not morphology.opening(speck, CROSS).any()


def test_basic_morphology_checks():
    morphology = BasicMorphology.get_instance(False)
    src = np.zeros((4, 5), dtype=np.uint8)
    with pytest.raises(AssertionError):
        morphology.dilation(src, np.zeros((5, 4), dtype=np.uint8), CROSS)
    with pytest.raises(AssertionError):
        morphology.dilation(src, np.zeros((4, 5), dtype=np.uint16), CROSS)
    with pytest.raises(AssertionError):
        morphology.erosion(src, src[:, :], CROSS)
    with pytest.raises(AssertionError):
        morphology.erosion(np.zeros((2, 2, 2)), np.zeros((2, 2, 2)), CROSS)
    with pytest.raises(ValueError):
        morphology.dilation(src, np.zeros_like(src), CROSS, ContinuationMode.NAN_CONSTANT)


@pytest.mark.parametrize(
    "mode, last_column",
    [
        [ContinuationMode.CYCLIC, 1],
        [ContinuationMode.PSEUDO_CYCLIC, 1],
        [ContinuationMode.MIRROR_CYCLIC, 1],
        [ContinuationMode.ZERO_CONSTANT, 0],
        [ContinuationMode.constant(2), 1],
    ],
)
def test_continued_morphology(mode, last_column):
    src = np.ones((4, 4), dtype=np.uint8)
    morphology = ContinuedMorphology.get_instance(BasicMorphology.get_instance(False), mode)
    assert morphology.continuation_mode == mode
    assert morphology.parent is BasicMorphology.get_instance(False)
    eroded = morphology.erode(src, Pattern([(0, 0), (1, 0)]))
    assert np.all(eroded[:, :3] == 1)
    assert np.all(eroded[:, 3] == last_column)
    assert repr(morphology).startswith("ContinuedMorphology(")


def test_continued_morphology_dilation():
    src = np.zeros((3, 3), dtype=np.int16)
    morphology = ContinuedMorphology(BasicMorphology.get_instance(True), ContinuationMode.constant(5))
    out = morphology.dilate(src, Pattern([(1, 0)]))
    assert np.array_equal(out[:, 0], [5, 5, 5])
    assert not out[:, 1:].any()
    # An explicit continuation mode takes precedence over the one of the service
    out = np.empty_like(src)
    morphology.dilation(src, out, Pattern([(1, 0)]), ContinuationMode.CYCLIC)
    assert not out.any()


def test_continued_morphology_invalid():
    with pytest.raises(ValueError):
        ContinuedMorphology(BasicMorphology.get_instance(False), None)
    with pytest.raises(AssertionError):
        ContinuedMorphology(None, ContinuationMode.CYCLIC)
