"""
Pytest configuration and shared fixtures.

Skins are built in memory so no image files are needed on disk.
"""

import numpy as np
import pytest

from ears_skin.io import encode_image

SKIN_COLOR = (120, 90, 60, 255)


def make_skin() -> np.ndarray:
    """
    A 64x64 skin with opaque body parts and a transparent overlay band.

    The band at y 32..48 holds the feature block and palette swatch, so a
    fresh skin has neither.
    """
    pixels = np.zeros((64, 64, 4), dtype=np.uint8)
    pixels[:32] = SKIN_COLOR
    pixels[48:] = SKIN_COLOR
    return pixels


def make_texture(width: int, height: int, color=(10, 200, 30, 255)) -> np.ndarray:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:] = color
    return pixels


@pytest.fixture
def blank_skin() -> np.ndarray:
    """Pixels of a skin with no container, features or palette."""
    return make_skin()


@pytest.fixture
def blank_skin_png(blank_skin) -> bytes:
    """PNG bytes of the blank skin."""
    return encode_image(blank_skin)


@pytest.fixture
def wing_png() -> bytes:
    """A small wing texture."""
    return encode_image(make_texture(12, 12, (200, 10, 10, 255)))


@pytest.fixture
def legacy_cape_png() -> bytes:
    """A 20x16 cape in the compact layout."""
    return encode_image(make_texture(20, 16, (30, 30, 200, 255)))
