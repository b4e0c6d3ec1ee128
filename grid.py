"""
Fixed-size 2-D grid addressed by (x, y).

A Grid wraps a numpy array whose first two axes are (y, x). An optional third
axis stores per-cell channels, which lets the same class back:
  - image buffers (H x W x 4, uint8 RGBA),
  - scalar buffers (H x W, float64 energies / cumulative costs),
  - index buffers (H x W, int64 original column per cell).

Seam search and carving are written once against this class.
"""

from __future__ import annotations
from typing import Any, Callable, Optional, Tuple

import numpy as np

Pos = Tuple[int, int]


class Grid:
    """Dense row-major 2-D buffer. Valid positions satisfy 0 <= x < W, 0 <= y < H."""

    __slots__ = ("_data",)

    def __init__(self, data: np.ndarray):
        data = np.asarray(data)
        if data.ndim not in (2, 3):
            raise ValueError(f"Grid data must be 2-D or 3-D (got ndim={data.ndim})")
        h, w = data.shape[:2]
        if w <= 0 or h <= 0:
            raise ValueError(f"Grid dimensions must be non-zero (got {w}x{h})")
        self._data = data

    @classmethod
    def new(cls, width: int, height: int, dtype=np.float64, channels: Optional[int] = None) -> "Grid":
        """Allocate a zero-filled grid."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be non-zero (got {width}x{height})")
        shape = (height, width) if channels is None else (height, width, channels)
        return cls(np.zeros(shape, dtype=dtype))

    @classmethod
    def from_generator(
        cls,
        width: int,
        height: int,
        fn: Callable[[int, int], Any],
        dtype=np.float64,
        channels: Optional[int] = None,
    ) -> "Grid":
        """Build a grid from fn(x, y), called once per cell in row-major order."""
        grid = cls.new(width, height, dtype=dtype, channels=channels)
        data = grid._data
        for y in range(height):
            for x in range(width):
                data[y, x] = fn(x, y)
        return grid

    @property
    def array(self) -> np.ndarray:
        return self._data

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def channels(self) -> Optional[int]:
        return self._data.shape[2] if self._data.ndim == 3 else None

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return self.width, self.height

    def contains(self, pos: Pos) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, pos: Pos):
        """
        Cell at pos. Out-of-bounds access raises IndexError.
        For channel grids the result is a view: writing to it writes the grid.
        """
        if not self.contains(pos):
            raise IndexError(f"Position {pos} out of bounds for {self.width}x{self.height} grid")
        x, y = pos
        return self._data[y, x]

    def try_get(self, pos: Pos):
        """Like get, but returns None out of bounds."""
        if not self.contains(pos):
            return None
        x, y = pos
        return self._data[y, x]

    def set(self, pos: Pos, value) -> None:
        if not self.contains(pos):
            raise IndexError(f"Position {pos} out of bounds for {self.width}x{self.height} grid")
        x, y = pos
        self._data[y, x] = value

    def map(
        self,
        fn: Callable[[Pos, Any], Any],
        dtype=np.float64,
        channels: Optional[int] = None,
    ) -> "Grid":
        """New grid (possibly of another cell type) from fn((x, y), cell)."""
        data = self._data
        return Grid.from_generator(
            self.width, self.height,
            lambda x, y: fn((x, y), data[y, x]),
            dtype=dtype, channels=channels,
        )

    def copy(self) -> "Grid":
        return Grid(self._data.copy())

    def __repr__(self) -> str:
        ch = "" if self.channels is None else f"x{self.channels}"
        return f"Grid({self.width}x{self.height}{ch}, dtype={self._data.dtype})"
