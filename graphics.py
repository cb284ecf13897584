from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from PIL import Image

from animations import AnimationState, get_easing
from config import MorphConfig
from pixels import CorrespondenceSet

# =============== Positions ===============

def wobble_time(tick: int, config: MorphConfig) -> float:
    # ticks -> seconds at the assumed refresh rate, times the speed factor
    return (tick / config.assumed_fps) * config.wobble_speed


def cell_positions(
    points: CorrespondenceSet,
    t: float,
    tick: int,
    config: MorphConfig,
) -> Tuple[np.ndarray, np.ndarray]:
    """Top-left corner of every point's cell, in output pixels.

    eased lerp(start, end) plus an elliptical wobble (sin on x, cos on y, each
    with its own stored phase), scaled by the cell size and floored onto the
    pixel grid. Pure: same inputs, same integers.
    """
    eased = get_easing(config.easing)(max(0.0, min(1.0, t)))
    base = points.starts + (points.ends - points.starts) * eased

    w = wobble_time(tick, config)
    amp = config.wobble_amplitude
    wx = np.sin(w + points.phases[:, 0]) * amp
    wy = np.cos(w + points.phases[:, 1]) * amp

    cell = config.cell_size
    xs = np.floor((base[:, 0] + wx) * cell).astype(np.int64)
    ys = np.floor((base[:, 1] + wy) * cell).astype(np.int64)
    return xs, ys


# =============== Painting ===============

def _blank(config: MorphConfig) -> Image.Image:
    return Image.new("RGBA", config.canvas_size, tuple(config.background))


def render_frame(
    points: Optional[CorrespondenceSet],
    state: AnimationState,
    config: MorphConfig,
) -> Image.Image:
    """Full redraw: one opaque cell_size square per point, hard edges.

    Painter's order: where cells overlap, the later point in the set wins.
    Cells hanging off the canvas are clipped.
    """
    if points is None or len(points) == 0:
        return _blank(config)

    width, height = config.canvas_size
    xs, ys = cell_positions(points, state.t, state.tick, config)

    # owner[pixel] = index of the last point covering it, -1 = background
    owner = np.full(width * height, -1, dtype=np.int64)
    idx = np.arange(len(points), dtype=np.int64)
    cell = config.cell_size
    for dy in range(cell):
        py = ys + dy
        for dx in range(cell):
            px = xs + dx
            ok = (px >= 0) & (px < width) & (py >= 0) & (py < height)
            np.maximum.at(owner, py[ok] * width + px[ok], idx[ok])

    data = np.empty((height * width, 4), dtype=np.uint8)
    data[:] = np.asarray(config.background, dtype=np.uint8)
    hit = owner >= 0
    data[hit, :3] = points.colors[owner[hit]]
    data[hit, 3] = 255
    return Image.fromarray(data.reshape(height, width, 4))


def render_preview(image: Optional[Image.Image], config: MorphConfig) -> Image.Image:
    """Normalized source magnified by the cell size, nearest neighbour."""
    if image is None:
        return _blank(config)
    im = image.convert("RGBA")
    if im.size != (config.resolution, config.resolution):
        im = im.resize((config.resolution, config.resolution), Image.Resampling.NEAREST)
    return im.resize(config.canvas_size, Image.Resampling.NEAREST)
