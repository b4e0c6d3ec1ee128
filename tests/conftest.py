"""Shared test fixtures for the seam-carver test suite."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest
from grid import Grid


def make_rgba(H, W, color=(10, 20, 30, 255)):
    """Solid-colour RGBA uint8 grid."""
    data = np.empty((H, W, 4), dtype=np.uint8)
    data[:] = color
    return Grid(data)


def make_stripe_image(H, W, stripe_cols):
    """Black RGBA image with white vertical stripes at the given columns."""
    data = np.zeros((H, W, 4), dtype=np.uint8)
    data[..., 3] = 255
    for x in stripe_cols:
        data[:, x, :3] = 255
    return Grid(data)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def random_rgba(rng):
    """Random 12x16 RGBA image."""
    return Grid(rng.integers(0, 256, size=(12, 16, 4), dtype=np.uint8))
