# pixels.py
"""Brightness sampling and brightness-rank pixel correspondence.

A grid of RGB pixels becomes a row-major list of ``PixelSample``s. Two such
lists (source and target, same length) are each sorted by luma and paired
index-for-index: the i-th darkest source pixel flies to the i-th darkest
target position, carrying its own color. Brightness is only a sort key, so
the pairing preserves rank, not value.
"""
from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from operator import attrgetter
from typing import Iterator, List, Sequence, Union, overload

import numpy as np
from PIL import Image

# ITU-R BT.601 luma weights
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114

TWO_PI = 2.0 * math.pi

RngLike = Union[np.random.Generator, int, None]


class CorrespondenceError(ValueError):
    """Source and target sample sets cannot be paired one-to-one."""


# ---------------------------------------------------------------------------
# Brightness sampler
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PixelSample:
    x: int
    y: int
    r: int
    g: int
    b: int
    brightness: float


def luma(r: float, g: float, b: float) -> float:
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


def _as_rgb_array(buffer: Union[Image.Image, np.ndarray]) -> np.ndarray:
    if isinstance(buffer, Image.Image):
        if buffer.mode != "RGB":
            buffer = buffer.convert("RGB")
        return np.asarray(buffer, dtype=np.uint8)
    arr = np.asarray(buffer)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"expected an H x W x 3/4 pixel array; got shape {arr.shape}")
    return arr[..., :3].astype(np.uint8, copy=False)


def sample_pixels(buffer: Union[Image.Image, np.ndarray]) -> List[PixelSample]:
    """One ``PixelSample`` per grid cell, row-major (y outer, x inner)."""
    rgb = _as_rgb_array(buffer)
    h, w = rgb.shape[:2]
    chans = rgb.astype(np.float64)
    bright = LUMA_R * chans[..., 0] + LUMA_G * chans[..., 1] + LUMA_B * chans[..., 2]

    samples: List[PixelSample] = []
    for y in range(h):
        row = rgb[y].tolist()
        brow = bright[y].tolist()
        for x in range(w):
            r, g, b = row[x]
            samples.append(PixelSample(x, y, r, g, b, brow[x]))
    return samples


# ---------------------------------------------------------------------------
# Correspondence
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CorrespondencePoint:
    start_x: int
    start_y: int
    end_x: int
    end_y: int
    r: int
    g: int
    b: int
    phase_x: float
    phase_y: float


class CorrespondenceSet(Sequence[CorrespondencePoint]):
    """Immutable pairing for one animation run, stored column-wise.

    starts/ends: (n, 2) float64 grid coordinates (x, y)
    colors:      (n, 3) uint8 RGB from the source pixel
    phases:      (n, 2) float64 wobble phases (x, y) in [0, 2*pi)
    """

    def __init__(self, starts: np.ndarray, ends: np.ndarray, colors: np.ndarray, phases: np.ndarray) -> None:
        n = len(starts)
        if not (len(ends) == len(colors) == len(phases) == n):
            raise ValueError("correspondence columns must have equal length")
        self.starts = np.array(starts, dtype=np.float64).reshape(n, 2)
        self.ends = np.array(ends, dtype=np.float64).reshape(n, 2)
        self.colors = np.array(colors, dtype=np.uint8).reshape(n, 3)
        self.phases = np.array(phases, dtype=np.float64).reshape(n, 2)
        for arr in (self.starts, self.ends, self.colors, self.phases):
            arr.flags.writeable = False

    def __len__(self) -> int:
        return len(self.starts)

    def _point(self, i: int) -> CorrespondencePoint:
        sx, sy = self.starts[i]
        ex, ey = self.ends[i]
        r, g, b = self.colors[i]
        px, py = self.phases[i]
        return CorrespondencePoint(
            int(sx), int(sy), int(ex), int(ey),
            int(r), int(g), int(b),
            float(px), float(py),
        )

    @overload
    def __getitem__(self, i: int) -> CorrespondencePoint: ...
    @overload
    def __getitem__(self, i: slice) -> List[CorrespondencePoint]: ...

    def __getitem__(self, i):
        if isinstance(i, slice):
            return [self._point(j) for j in range(*i.indices(len(self)))]
        n = len(self)
        if i < 0:
            i += n
        if not 0 <= i < n:
            raise IndexError("correspondence index out of range")
        return self._point(i)

    def __iter__(self) -> Iterator[CorrespondencePoint]:
        for i in range(len(self)):
            yield self._point(i)

    def __repr__(self) -> str:
        return f"CorrespondenceSet(n={len(self)})"


def resolve_rng(rng: RngLike) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def build_correspondence(
    source: Sequence[PixelSample],
    target: Sequence[PixelSample],
    *,
    rng: RngLike = None,
    strict: bool = True,
) -> CorrespondenceSet:
    """Pair source and target samples by brightness rank.

    Both inputs are copied and stably sorted ascending by brightness; entry i
    starts at the i-th source position with that pixel's color and ends at the
    i-th target position. Target colors are never used. Each entry gets two
    independent phases uniform in [0, 2*pi) from ``rng`` (a Generator, a seed,
    or None for fresh entropy).

    Unequal lengths raise ``CorrespondenceError`` when ``strict``; otherwise
    the longer side is truncated after sorting and a warning is printed.
    """
    n_src = len(source)
    n_tgt = len(target)
    if n_src != n_tgt:
        msg = f"source has {n_src} samples but target has {n_tgt}"
        if strict:
            raise CorrespondenceError(msg)
        print(f"[pixels] Warning: {msg}; pairing the first {min(n_src, n_tgt)} by rank.", file=sys.stderr)
    count = min(n_src, n_tgt)

    key = attrgetter("brightness")
    src_sorted = sorted(source, key=key)[:count]
    tgt_sorted = sorted(target, key=key)[:count]

    starts = np.array([(p.x, p.y) for p in src_sorted], dtype=np.float64).reshape(count, 2)
    ends = np.array([(p.x, p.y) for p in tgt_sorted], dtype=np.float64).reshape(count, 2)
    colors = np.array([(p.r, p.g, p.b) for p in src_sorted], dtype=np.uint8).reshape(count, 3)
    phases = resolve_rng(rng).uniform(0.0, TWO_PI, size=(count, 2))

    return CorrespondenceSet(starts, ends, colors, phases)
