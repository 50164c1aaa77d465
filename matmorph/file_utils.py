# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

import multiprocessing as mp
import os

__all__ = ["cpu_count", "get_num_threads", "is_multiprocessing_disabled"]

ENV_VARS_TRUE_VALUES = {"1", "ON", "YES", "TRUE"}
MAX_THREADS: int = 16


def cpu_count() -> int:
    return mp.cpu_count()


def is_multiprocessing_disabled() -> bool:
    """Whether parallel execution was switched off with the `MATMORPH_MULTIPROCESSING_DISABLE` variable"""
    return os.environ.get("MATMORPH_MULTIPROCESSING_DISABLE", "").upper() in ENV_VARS_TRUE_VALUES


def get_num_threads() -> int:
    """Number of workers used for parallel execution

    The value is read from the `MATMORPH_NUM_THREADS` environment variable when it is set,
    otherwise it defaults to the number of CPUs (capped to 16).

    Returns:
        the number of threads
    """
    env_threads = os.environ.get("MATMORPH_NUM_THREADS", "")
    if env_threads:
        if not env_threads.isdigit() or int(env_threads) < 1:
            raise ValueError(f"MATMORPH_NUM_THREADS should be a positive integer, got '{env_threads}'")
        return int(env_threads)
    return min(MAX_THREADS, cpu_count())
