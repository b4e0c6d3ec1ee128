"""
Utilities and configuration for the seam-carving project.

This module defines:
  - Config: Immutable dataclass storing the energy sentinel and timing switch.
  - Timings: explicitly passed instrumentation handle (no process-wide timer).
  - Image load/save helpers (OpenCV) converting to and from RGBA grids.
  - Parsing helpers for the `WIDTHxHEIGHT` size argument and emit targets.

Design notes:
  - I/O uses uint8 RGBA. Energy computation uses float64.
  - Core functions take an optional Timings; when absent they time nothing.
"""

from __future__ import annotations
import contextlib
import os
import re
import threading
import time
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import cv2
import numpy as np

from grid import Grid

# Largest finite float32. Border columns get this energy so seams avoid them.
ENERGY_SENTINEL = float(np.finfo(np.float32).max)


@dataclass(frozen=True)
class Config:
    """Immutable configuration container for the seam-carving algorithm."""
    energy_sentinel: float = ENERGY_SENTINEL
    show_timings: bool = False


# ==========
# TIMINGS
# ==========
class Timings:
    """
    Wall-clock accumulator keyed by section label.

    - section(label) is a context manager; nested sections are allowed.
    - With verbose=True a tree of `+ label` / `Elapsed:` lines is printed.
    - Accumulation is guarded by a lock so sections may run on worker threads.
    """
    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._lock = threading.Lock()
        self._totals: Dict[str, float] = {}
        self._counts: Dict[str, int] = {}
        self._indent = 0

    @contextlib.contextmanager
    def section(self, label: str) -> Iterator[None]:
        with self._lock:
            if self.verbose:
                print("\t" * self._indent + f"+ {label}")
                self._indent += 1
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                self._totals[label] = self._totals.get(label, 0.0) + elapsed
                self._counts[label] = self._counts.get(label, 0) + 1
                if self.verbose:
                    self._indent -= 1
                    print("\t" * self._indent + f"  Elapsed: {elapsed * 1000.0:.3f}ms")

    @property
    def totals(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._totals)

    @property
    def counts(self) -> Dict[str, int]:
        """Number of completed sections per label."""
        with self._lock:
            return dict(self._counts)

    def summary(self) -> str:
        lines = ["=== Timing Summary ==="]
        for label, total in self.totals.items():
            lines.append(f"{label}: {total * 1000.0:.3f}ms")
        lines.append("======================")
        return "\n".join(lines)

    def print_summary(self) -> None:
        print()
        print(self.summary())


def timed(timings: Optional[Timings], label: str):
    """timings.section(label), or a no-op context when timings is None."""
    if timings is None:
        return contextlib.nullcontext()
    return timings.section(label)


# ==========
# IMAGE I/O
# ==========
def load_rgba(path: str) -> Grid:
    """Read an image file as an RGBA uint8 grid."""
    im = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if im is None:
        raise RuntimeError(f"Could not read image at: {path}")

    if im.dtype == np.uint16:
        im = (im // 257).astype(np.uint8)
    elif im.dtype != np.uint8:
        im = np.clip(im, 0, 255).astype(np.uint8)

    if im.ndim == 2:
        rgba = cv2.cvtColor(im, cv2.COLOR_GRAY2RGBA)
    elif im.shape[2] == 3:
        rgba = cv2.cvtColor(im, cv2.COLOR_BGR2RGBA)
    elif im.shape[2] == 4:
        rgba = cv2.cvtColor(im, cv2.COLOR_BGRA2RGBA)
    else:
        raise RuntimeError(f"Unsupported channel count {im.shape[2]} in: {path}")
    return Grid(rgba)


def save_rgba(path: str, rgba: np.ndarray) -> None:
    """Save an RGBA image to disk as uint8, clipping to [0, 255] if needed."""
    if rgba.dtype != np.uint8:
        rgba = np.clip(rgba, 0, 255).astype(np.uint8)
    out_dir = os.path.dirname(os.path.abspath(path))
    if out_dir and not os.path.exists(out_dir):
        os.makedirs(out_dir, exist_ok=True)
    try:
        ok = cv2.imwrite(path, cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))
    except cv2.error as e:
        raise RuntimeError(f"Failed to write image to: {path}") from e
    if not ok:
        raise RuntimeError(f"Failed to write image to: {path}")


# ==================
# ARGUMENT PARSING
# ==================
DIM_FORM_ERR = "Argument must take the form `WIDTHxHEIGHT`. See help for more details."
EMIT_FORM_ERR = (
    "Argument must take the form `path/to/image.png` or `path/to/image.png:1,2,3`. "
    "See help for more details."
)


_DIM_DIGITS = re.compile(r"[+-]?[0-9]+")
_STEP_DIGITS = re.compile(r"[0-9]+")


class DimComponent(NamedTuple):
    """One side of a `WIDTHxHEIGHT` argument. Relative values offset the source size."""
    relative: bool
    value: int


def _parse_dim_component(comp: str) -> DimComponent:
    if comp in ("p", "P"):
        return DimComponent(relative=True, value=0)
    relative = comp.startswith("?")
    if relative:
        comp = comp[1:]
    if not _DIM_DIGITS.fullmatch(comp):
        raise ValueError(DIM_FORM_ERR)
    value = int(comp, 10)
    return DimComponent(relative=relative, value=value)


def parse_dimensions(arg: str) -> Tuple[DimComponent, DimComponent]:
    """
    Parse `WIDTHxHEIGHT`. Each side is an absolute integer, `?N` (source + N)
    or `P` (preserve the source value).
    """
    parts = arg.split("x")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(DIM_FORM_ERR)
    return _parse_dim_component(parts[0]), _parse_dim_component(parts[1])


def resolve_dimensions(
    source_size: Tuple[int, int],
    dims: Tuple[DimComponent, DimComponent],
) -> Tuple[int, int]:
    """Turn parsed components into an absolute (width, height)."""
    return tuple(
        (src if comp.relative else 0) + comp.value
        for src, comp in zip(source_size, dims)
    )


def parse_emit_targets(arg: str) -> Tuple[str, List[int]]:
    """
    Parse `path.ext` or `path.ext:1,2,3` into (path, sorted unique steps).
    A bare path emits at step 0 only.
    """
    parts = arg.split(":")
    if len(parts) == 1:
        path, steps = parts[0], [0]
    elif len(parts) == 2:
        path = parts[0]
        raw = parts[1].split(",")
        if not all(_STEP_DIGITS.fullmatch(s) for s in raw):
            raise ValueError(EMIT_FORM_ERR)
        steps = [int(s, 10) for s in raw]
    else:
        raise ValueError(EMIT_FORM_ERR)

    stem, ext = os.path.splitext(os.path.basename(path))
    if not stem or not ext:
        raise ValueError(EMIT_FORM_ERR)

    return path, sorted(set(steps))


def stepped_path(path: str, step: int) -> str:
    """`dir/name.png`, 3 -> `dir/name-3.png`"""
    head, tail = os.path.split(path)
    stem, ext = os.path.splitext(tail)
    return os.path.join(head, f"{stem}-{step}{ext}")
