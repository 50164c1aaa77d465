# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.


from collections.abc import Callable, Iterable, Iterator
from multiprocessing.pool import ThreadPool
from typing import Any

from matmorph.file_utils import get_num_threads, is_multiprocessing_disabled

from .common_types import RowRange

__all__ = ["multithread_exec", "split_rows", "process_rows"]


def multithread_exec(func: Callable[[Any], Any], seq: Iterable[Any], threads: int | None = None) -> Iterator[Any]:
    """Execute a given function in parallel for each element of a given sequence

    >>> from matmorph.utils.multithreading import multithread_exec
    >>> entries = [1, 4, 8]
    >>> results = multithread_exec(lambda x: x ** 2, entries)

    Args:
        func: function to be executed on each element of the iterable
        seq: iterable
        threads: number of workers to be used for multiprocessing

    Returns:
        iterator of the function's results using the iterable as inputs

    Notes:
        This function uses ThreadPool from multiprocessing package, which uses `/dev/shm` directory for shared memory.
        If you do not have write permissions for this directory, you might want to disable multiprocessing.
        To achieve that, set 'MATMORPH_MULTIPROCESSING_DISABLE' to 'TRUE'.
    """

    threads = threads if isinstance(threads, int) else get_num_threads()
    # Single-thread
    if threads < 2 or is_multiprocessing_disabled():
        results = map(func, seq)
    # Multi-threading
    else:
        with ThreadPool(threads) as tp:
            # ThreadPool's map function returns a list, but seq could be of a different type
            # That's why wrapping result in map to return iterator
            results = map(lambda x: x, tp.map(func, seq))
    return results


def split_rows(height: int, parts: int) -> list[RowRange]:
    """Split the rows of a matrix into contiguous stripes of (almost) equal height

    >>> from matmorph.utils.multithreading import split_rows
    >>> split_rows(10, 3)
    [(0, 4), (4, 7), (7, 10)]

    Args:
        height: number of rows
        parts: maximal number of stripes

    Returns:
        list of (start, stop) row ranges, covering [0, height) without overlap
    """
    if height < 0:
        raise ValueError(f"Negative height={height}")
    parts = max(1, min(parts, height))
    step, extra = divmod(height, parts)
    stripes, start = [], 0
    for idx in range(parts):
        stop = start + step + (1 if idx < extra else 0)
        stripes.append((start, stop))
        start = stop
    return stripes


def process_rows(func: Callable[[int, int], None], height: int, multithreading: bool) -> None:
    """Run a row-range processing function over all the rows of a matrix

    Args:
        func: function filling the destination rows [start, stop)
        height: number of rows of the destination
        multithreading: whether the stripes should be processed by several workers
    """
    threads = get_num_threads() if multithreading else 1
    stripes = split_rows(height, threads)
    # Consume the iterator to make sure every stripe is processed
    for _ in multithread_exec(lambda stripe: func(*stripe), stripes, threads):
        pass
