import numpy as np
import pytest


@pytest.fixture(scope="function")
def rng():
    return np.random.default_rng(42)


@pytest.fixture(scope="function")
def mock_grayscale_matrix(rng):
    return rng.integers(0, 256, size=(32, 24), dtype=np.uint8)


@pytest.fixture(scope="function")
def mock_binary_matrix(rng):
    return rng.random((32, 24)) > 0.8


def make_random_matrix(rng, dtype, shape):
    dtype = np.dtype(dtype)
    if dtype == bool:
        return rng.random(shape) > 0.7
    if np.issubdtype(dtype, np.floating):
        return (rng.random(shape) * 100 - 50).astype(dtype)
    info = np.iinfo(dtype)
    return rng.integers(max(info.min, -1000), min(info.max, 1000), size=shape, endpoint=True).astype(dtype)


@pytest.fixture(scope="session")
def random_matrix():
    return make_random_matrix
