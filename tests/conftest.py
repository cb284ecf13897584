"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from config import MorphConfig


def gray_image(values) -> Image.Image:
    """RGB image whose pixel (x, y) is gray level values[y][x]."""
    arr = np.asarray(values, dtype=np.uint8)
    return Image.fromarray(np.stack([arr, arr, arr], axis=-1))


def solid_image(size, color) -> Image.Image:
    return Image.new("RGB", size, color)


@pytest.fixture
def small_config() -> MorphConfig:
    # 4x4 grid, two frames to finish, no wobble unless a test asks for it
    return MorphConfig(
        resolution=4,
        cell_size=2,
        step_per_frame=0.5,
        wobble_amplitude=0.0,
        seed=7,
    )


@pytest.fixture
def gradient_source() -> Image.Image:
    return gray_image([[100, 0], [150, 50]])


@pytest.fixture
def gradient_target() -> Image.Image:
    return gray_image([[40, 10], [20, 30]])


@pytest.fixture
def target_file(tmp_path) -> str:
    p = tmp_path / "target.png"
    img = np.zeros((4, 4, 3), dtype=np.uint8)
    img[..., 0] = np.arange(16, dtype=np.uint8).reshape(4, 4) * 15
    img[..., 1] = 80
    Image.fromarray(img).save(p)
    return str(p)


@pytest.fixture
def source_file(tmp_path) -> str:
    p = tmp_path / "source.png"
    solid_image((8, 6), (200, 30, 30)).save(p)
    return str(p)
