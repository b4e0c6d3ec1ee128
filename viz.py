from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

import numpy as np

from grid import Grid
from seams import carve_vertical
from utils import save_rgba, stepped_path

Color = Tuple[int, int, int, int]

SEAM_RED: Color = (255, 0, 0, 255)
_GREEN = np.array([0.0, 1.0, 0.0, 1.0])
_RED = np.array([1.0, 0.0, 0.0, 1.0])


def energy_to_rgba(energy: Grid) -> np.ndarray:
    """Grayscale RGBA uint8 view of an energy grid; values are clipped to [0, 1]."""
    gray = np.rint(np.clip(energy.array, 0.0, 1.0) * 255.0).astype(np.uint8)
    alpha = np.full_like(gray, 255)
    return np.stack((gray, gray, gray, alpha), axis=2)


def seam_color(step: int, total: int) -> Color:
    """Green for the first removed seam, red for the last, linear in between."""
    t = step / (total - 1) if total > 1 else 0.0
    rgba = _GREEN + (_RED - _GREEN) * t
    return tuple(int(round(c * 255.0)) for c in rgba)


def paint_seam(canvas: np.ndarray, seam: Iterable[int], color: Color = SEAM_RED) -> None:
    """Paint a seam given bottom-to-top (row H-1 first) onto an HxWx4 canvas, in place."""
    y = canvas.shape[0] - 1
    for x in seam:
        canvas[y, x] = color
        y -= 1


class SeamOverlay:
    """
    Paints every removed seam onto a canvas the size of the original image.

    - index_map: int64 grid, cell = column of the original image it came from.
      It is carved in lockstep with the working image.
    - update(seam, step, total): paints the seam (mapped back to original
      columns) in seam_color(step, total), then carves the index map.
    - save(): writes the canvas.
    """
    def __init__(self, canvas: np.ndarray, path: str):
        self.canvas = canvas.copy()
        self.path = path
        h, w = canvas.shape[:2]
        self.index_map = Grid.from_generator(w, h, lambda x, y: x, dtype=np.int64)

    def update(self, seam, step: int, total: int) -> None:
        color = seam_color(step, total)
        y = self.index_map.height - 1
        for x in seam:
            self.canvas[y, self.index_map.get((x, y))] = color
            y -= 1
        self.index_map = carve_vertical(self.index_map, seam)

    def save(self) -> None:
        save_rgba(self.path, self.canvas)


class EnergyEmitter:
    """
    Writes energy maps at selected carving steps.

    - Step 0 writes the raw energy of the input image to `path` (see emit_initial).
    - Step i > 0 writes the energy of pass i, with the seam chosen on that pass
      painted red, to `stem-i.ext`.
    """
    def __init__(self, path: str, steps: List[int]):
        self.path = path
        self._pending = sorted(s for s in set(steps) if s > 0)

    def emit_initial(self, energy: Grid) -> None:
        save_rgba(self.path, energy_to_rgba(energy))

    @property
    def pending(self) -> List[int]:
        return list(self._pending)

    def on_seam(self, step: int, energy: Grid, seam) -> None:
        if not self._pending or self._pending[0] != step:
            return
        self._pending.pop(0)
        frame = energy_to_rgba(energy)
        paint_seam(frame, seam, SEAM_RED)
        save_rgba(stepped_path(self.path, step), frame)


def chain_hooks(*hooks):
    """Combine on_seam callbacks; None entries are skipped. Returns None if all are None."""
    active = [h for h in hooks if h is not None]
    if not active:
        return None

    def on_seam(step: int, energy: Grid, seam) -> None:
        for hook in active:
            hook(step, energy, seam)
    return on_seam


def overlay_hook(overlay: Optional[SeamOverlay], total: int):
    if overlay is None:
        return None
    return lambda step, energy, seam: overlay.update(seam, step, total)
