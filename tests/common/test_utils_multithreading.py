import os
from multiprocessing.pool import ThreadPool
from unittest.mock import patch

import pytest

from matmorph.file_utils import get_num_threads, is_multiprocessing_disabled
from matmorph.utils.multithreading import multithread_exec, process_rows, split_rows


@pytest.mark.parametrize(
    "input_seq, func, output_seq",
    [
        [[1, 2, 3], lambda x: 2 * x, [2, 4, 6]],
        [[1, 2, 3], lambda x: x**2, [1, 4, 9]],
        [
            ["this is", "show me", "I know"],
            lambda x: x + " the way",
            ["this is the way", "show me the way", "I know the way"],
        ],
    ],
)
def test_multithread_exec(input_seq, func, output_seq):
    assert list(multithread_exec(func, input_seq)) == output_seq
    assert list(multithread_exec(func, input_seq, 0)) == output_seq


@patch.dict(os.environ, {"MATMORPH_MULTIPROCESSING_DISABLE": "TRUE"}, clear=True)
def test_multithread_exec_multiprocessing_disable():
    assert is_multiprocessing_disabled()
    with patch.object(ThreadPool, "map") as mock_tp_map:
        multithread_exec(lambda x: x, [1, 2], 4)
    assert not mock_tp_map.called


@pytest.mark.parametrize(
    "height, parts, expected",
    [
        [10, 3, [(0, 4), (4, 7), (7, 10)]],
        [4, 4, [(0, 1), (1, 2), (2, 3), (3, 4)]],
        [3, 8, [(0, 1), (1, 2), (2, 3)]],
        [5, 1, [(0, 5)]],
        [7, 0, [(0, 7)]],
        [0, 4, [(0, 0)]],
    ],
)
def test_split_rows(height, parts, expected):
    assert split_rows(height, parts) == expected


def test_split_rows_negative():
    with pytest.raises(ValueError):
        split_rows(-1, 2)


@pytest.mark.parametrize("multithreading", [False, True])
@patch.dict(os.environ, {"MATMORPH_NUM_THREADS": "3"})
def test_process_rows(multithreading):
    visited = []
    process_rows(lambda start, stop: visited.extend(range(start, stop)), 10, multithreading)
    assert sorted(visited) == list(range(10))


def test_get_num_threads():
    with patch.dict(os.environ, {"MATMORPH_NUM_THREADS": "5"}):
        assert get_num_threads() == 5
    with patch.dict(os.environ, {"MATMORPH_NUM_THREADS": "zero"}):
        with pytest.raises(ValueError):
            get_num_threads()
    with patch.dict(os.environ, {"MATMORPH_NUM_THREADS": ""}):
        assert 1 <= get_num_threads() <= 16
