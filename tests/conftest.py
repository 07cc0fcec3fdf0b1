import numpy as np
import pytest
from PIL import Image


def solid(w, h, color):
    grid = np.empty((h, w, 4), dtype=np.uint8)
    grid[...] = color
    return grid


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_grid(rng):
    def make(w, h, opaque=True):
        grid = rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)
        if opaque:
            grid[..., 3] = 255
        return grid
    return make


@pytest.fixture
def png_file(tmp_path):
    """Write an RGBA grid to a PNG under tmp_path and return its path."""
    def write(grid, name="image.png"):
        path = tmp_path / name
        Image.fromarray(grid, "RGBA").save(path)
        return str(path)
    return write
