"""Image decoding and encoding for skins and their layers."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Mapping

import numpy as np
from PIL import Image, UnidentifiedImageError

from ears_skin.errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> np.ndarray:
    """Decode image bytes into an ``(height, width, 4)`` uint8 RGBA array."""

    if not data:
        raise DecodeError("Image data is empty.")
    try:
        with Image.open(io.BytesIO(data)) as image:
            rgba = image.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"Could not decode image: {exc}") from exc
    return np.array(rgba, dtype=np.uint8)


def encode_image(pixels: np.ndarray, image_format: str = "PNG") -> bytes:
    """Encode an RGBA array as image bytes."""

    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise EncodeError(f"Expected an RGBA array, got shape {pixels.shape}.")
    buffer = io.BytesIO()
    try:
        Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8), mode="RGBA").save(
            buffer, format=image_format
        )
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Could not encode image as {image_format}: {exc}") from exc
    return buffer.getvalue()


def load_skin_bytes(path: Path) -> bytes:
    """Read a skin file from disk."""

    return Path(path).read_bytes()


def save_image(path: Path, pixels: np.ndarray) -> None:
    """Save an RGBA array as PNG."""

    Path(path).write_bytes(encode_image(pixels))


def save_layers(directory: Path, layers: Mapping[str, np.ndarray]) -> None:
    """Write every layer to ``directory/<name>.png``."""

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    for name, pixels in layers.items():
        save_image(directory / f"{name}.png", pixels)
        logger.debug("Saved layer %s", name)
