from __future__ import annotations
from typing import Iterable, Iterator, Optional

import numpy as np
from numba import njit

from grid import Grid
from utils import Timings, timed


# ==========================
# Numba-compiled DP helpers
# ==========================
@njit(cache=True)
def _dp_accumulate(M: np.ndarray) -> int:
    """
    Given an energy matrix M (float64 HxW), do in-place DP accumulation (except for M[0])
    and return the column index in the last row where the min accumulated energy ends.

    For row i > 0: M[i, j] += min(M[i-1, j-1], M[i-1, j], M[i-1, j+1]), where
    columns outside [0, w) are not candidates.
    """
    h, w = M.shape

    for i in range(1, h):
        for j in range(w):
            min_energy = M[i - 1, j]
            if j > 0 and M[i - 1, j - 1] < min_energy:
                min_energy = M[i - 1, j - 1]
            if j + 1 < w and M[i - 1, j + 1] < min_energy:
                min_energy = M[i - 1, j + 1]
            M[i, j] = M[i, j] + min_energy

    # first minimum on the last row
    end_j = 0
    min_val = M[h - 1, 0]
    for j in range(1, w):
        if M[h - 1, j] < min_val:
            min_val = M[h - 1, j]
            end_j = j
    return end_j


# =======================
# CORE DP / SEAM SEARCH
# =======================
class LowestSeam:
    """
    Minimum-cost vertical seam of an energy grid.

    find() cascades cumulative costs from row 0 downwards. The seam is then
    read back from the last row up to row 0, so iterating yields column
    indices for rows H-1, H-2, ..., 0 in that order. carve_vertical consumes
    seams in the same order.
    """

    def __init__(self, weights: Grid, best_x: int):
        self._weights = weights
        self._best_x = best_x

    @classmethod
    def find(cls, energy: Grid, timings: Optional[Timings] = None) -> "LowestSeam":
        with timed(timings, "LowestSeam.find"):
            if energy.channels is not None:
                raise ValueError(f"Energy grid must hold one scalar per cell (got {energy!r})")
            w, h = energy.size()
            if w <= 0 or h <= 0:
                raise ValueError(f"Image dimensions must be non-zero (got {w}x{h})")

            cumulative = np.array(energy.array, dtype=np.float64, order="C", copy=True)
            best_x = _dp_accumulate(cumulative)
            return cls(Grid(cumulative), int(best_x))

    @property
    def best_x(self) -> int:
        """Column of the seam in the last row."""
        return self._best_x

    @property
    def height(self) -> int:
        return self._weights.height

    def weight(self) -> float:
        """Total energy along the seam."""
        return float(self._weights.get((self._best_x, self._weights.height - 1)))

    def weights(self) -> Grid:
        """Cumulative-cost map; cell (x, y) is the cheapest path cost from row 0 to (x, y)."""
        return self._weights

    def iter(self) -> Iterator[int]:
        """
        Seam columns from the last row up to row 0. Each step moves to the
        cheapest of (x-1, x, x+1) in the row above; ties go to the earliest
        candidate in that order.
        """
        weights = self._weights
        x = self._best_x
        y = weights.height - 1
        while True:
            yield x
            if y == 0:
                return
            y -= 1
            best = None
            best_weight = None
            for dx in (-1, 0, 1):
                weight = weights.try_get((x + dx, y))
                if weight is None:
                    continue
                if best_weight is None or weight < best_weight:
                    best, best_weight = x + dx, weight
            x = best

    def __iter__(self) -> Iterator[int]:
        return self.iter()

    def columns(self) -> np.ndarray:
        """Seam columns indexed by row (top to bottom)."""
        return np.fromiter(self.iter(), dtype=np.int64, count=self.height)[::-1]


# ==============
# SEAM REMOVAL
# ==============
def carve_vertical(grid: Grid, seam: Iterable[int], timings: Optional[Timings] = None) -> Grid:
    """
    Remove one cell per row. `seam` gives the column to drop for rows
    H-1 down to 0 (the order LowestSeam.iter() produces).
    Returns a new (W-1)xH grid; the input is left untouched.
    """
    with timed(timings, "carve_vertical"):
        w, h = grid.size()
        if w < 2:
            raise ValueError(f"Cannot carve a grid of width {w}")

        cols = np.asarray(list(seam))
        if cols.size and not np.issubdtype(cols.dtype, np.integer):
            raise ValueError(f"Seam columns must be integers (got dtype {cols.dtype})")
        cols = cols.astype(np.int64).reshape(-1)
        if cols.shape[0] != h:
            raise ValueError(f"Seam has {cols.shape[0]} entries for a grid of height {h}")
        bad = np.nonzero((cols < 0) | (cols >= w))[0]
        if bad.size:
            k = int(bad[0])
            raise ValueError(
                f"Seam column {int(cols[k])} out of range for row {h - 1 - k} (width {w})"
            )

        keep = np.ones((h, w), dtype=np.bool_)
        keep[np.arange(h - 1, -1, -1), cols] = False

        data = grid.array
        return Grid(data[keep].reshape((h, w - 1) + data.shape[2:]))
