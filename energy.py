"""
Energy function for seam carving.

The energy of a pixel is the magnitude of its horizontal colour gradient:
  E(x, y) = || P(x+1, y) - P(x-1, y) ||_2
taken over all four RGBA channels normalized to [0, 1]. There is no vertical
term.

Border policy: columns 0 and W-1 have no symmetric neighbour pair and are
assigned a sentinel (largest finite float32 by default), so a seam only runs
along the border when every alternative is at least as expensive.
"""

from __future__ import annotations
from typing import Optional

import numpy as np
from scipy import ndimage as ndi

from grid import Grid, Pos
from utils import ENERGY_SENTINEL, Timings, timed

_CENTRAL_DIFF = np.array([1.0, 0.0, -1.0])


def _normalized(pixels: np.ndarray) -> np.ndarray:
    """uint8 -> float64 in [0, 1]; float input is assumed normalized already."""
    if np.issubdtype(pixels.dtype, np.integer):
        return pixels.astype(np.float64) / 255.0
    return pixels.astype(np.float64)


def sobel_energy(
    image: Grid,
    sentinel: float = ENERGY_SENTINEL,
    timings: Optional[Timings] = None,
) -> Grid:
    """
    Horizontal-gradient energy map of an RGBA (or any channel count) image.
    Input: image grid (HxWxC or HxW).
    Output: float64 energy grid (HxW), never negative.
    """
    with timed(timings, "sobel"):
        px = _normalized(image.array)
        if px.ndim == 2:
            px = px[:, :, np.newaxis]

        # out[x] = px[x+1] - px[x-1]; the two border columns are overwritten below
        xgrad = ndi.convolve1d(px, _CENTRAL_DIFF, axis=1, mode="nearest")
        energy = np.sqrt(np.sum(xgrad ** 2, axis=2))

        energy[:, 0] = sentinel
        energy[:, -1] = sentinel
        return Grid(energy)


def energy_at(image: Grid, pos: Pos, sentinel: float = ENERGY_SENTINEL) -> float:
    """Energy of a single pixel, computed directly from its two horizontal neighbours."""
    x, y = pos
    left = image.try_get((x - 1, y))
    right = image.try_get((x + 1, y))
    if left is None or right is None:
        return sentinel
    left = _normalized(np.atleast_1d(left))
    right = _normalized(np.atleast_1d(right))
    return float(np.sqrt(np.sum((right - left) ** 2)))
