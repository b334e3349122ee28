"""Convert the compact Ears cape texture to the standard cape layout."""

from __future__ import annotations

import numpy as np

from ears_skin.errors import DecodeError

LEGACY_CAPE_SIZE = (20, 16)
TARGET_CAPE_SIZE = (64, 32)
_FACE_WIDTH = 10
_FACE_HEIGHT = 16


def convert_cape_layout(pixels: np.ndarray) -> np.ndarray:
    """Return ``pixels`` rearranged into a 64x32 cape texture.

    The 20x16 legacy texture holds the front face in its left half and the
    back face in its right half. Sides, top and bottom of the target cape are
    filled from the front face's edges. Textures already in the target size
    are returned as a copy.
    """

    height, width = pixels.shape[:2]
    if (width, height) == TARGET_CAPE_SIZE:
        return pixels.copy()
    if (width, height) != LEGACY_CAPE_SIZE or pixels.ndim != 3 or pixels.shape[2] != 4:
        raise DecodeError(f"Unexpected cape texture size {width}x{height}.")

    front = pixels[:, :_FACE_WIDTH]
    back = pixels[:, _FACE_WIDTH:]
    cape = np.zeros((TARGET_CAPE_SIZE[1], TARGET_CAPE_SIZE[0], 4), dtype=np.uint8)
    cape[1 : 1 + _FACE_HEIGHT, 1 : 1 + _FACE_WIDTH] = front
    cape[1 : 1 + _FACE_HEIGHT, 12 : 12 + _FACE_WIDTH] = back
    cape[1 : 1 + _FACE_HEIGHT, 0] = front[:, 0]
    cape[1 : 1 + _FACE_HEIGHT, 11] = front[:, -1]
    cape[0, 1 : 1 + _FACE_WIDTH] = front[0]
    cape[0, 11 : 11 + _FACE_WIDTH] = front[-1]
    return cape
