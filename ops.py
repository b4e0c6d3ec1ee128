from __future__ import annotations
from typing import Callable, Optional, Tuple

from grid import Grid
from utils import Config, Timings, timed
from energy import sobel_energy
from seams import LowestSeam, carve_vertical

# Type alias: on_seam(step, energy_grid, seam) -> None
OnSeam = Optional[Callable[[int, Grid, LowestSeam], None]]


def check_target_width(size: Tuple[int, int], target_size: Tuple[int, int]) -> int:
    """
    Validate a resize request and return the number of seams to remove.
    Only width reduction is supported: the height must stay the same.
    """
    (w, h), (tw, th) = size, target_size
    if th != h:
        raise ValueError(
            "Conversion heights must match up for the time being. "
            f"(wants resize from {h} to {th})"
        )
    if tw > w:
        raise ValueError(
            "Target width must be less than source width for the time being. "
            f"(wants resize from {w} to {tw})"
        )
    if tw <= 0:
        raise ValueError(
            "Target width must be greater than 0. "
            f"(wants resize from {w} to {tw})"
        )
    return w - tw


def seams_removal(
    im: Grid,
    num_remove: int,
    cfg: Config,
    on_seam: OnSeam = None,
    timings: Optional[Timings] = None,
) -> Grid:
    """Remove `num_remove` vertical seams; optionally call `on_seam` before each removal."""
    for step in range(int(num_remove)):
        with timed(timings, "resize_pass"):
            # Energy must be recomputed every pass: carving changes the neighbours.
            energy = sobel_energy(im, cfg.energy_sentinel, timings=timings)
            seam = LowestSeam.find(energy, timings=timings)
            if on_seam is not None:
                with timed(timings, "on_seam"):
                    on_seam(step, energy, seam)
            im = carve_vertical(im, seam, timings=timings)
    return im


def resize_width(
    im: Grid,
    target_width: int,
    cfg: Config,
    on_seam: OnSeam = None,
    timings: Optional[Timings] = None,
) -> Grid:
    """
    Shrink `im` to `target_width` columns, height unchanged.
    A target equal to the current width returns `im` itself.
    """
    num_remove = check_target_width(im.size(), (target_width, im.height))
    with timed(timings, "main"):
        return seams_removal(im, num_remove, cfg, on_seam=on_seam, timings=timings)
