"""Emissive palette swatch and glow overlay extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ears_skin.errors import EncodeError, InvalidArgumentError

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

# Unused corner of the right arm overlay on a 64x64 skin.
PALETTE_ORIGIN = (52, 32)
PALETTE_SIZE = (4, 4)
MAX_PALETTE_COLORS = PALETTE_SIZE[0] * PALETTE_SIZE[1]


def _normalize_color(color: Sequence[int]) -> Color:
    if len(color) != 3:
        raise InvalidArgumentError(f"Palette color {color!r} is not an RGB byte triple.")
    for channel in color:
        if isinstance(channel, bool) or not isinstance(channel, (int, np.integer)):
            raise InvalidArgumentError(f"Palette channel {channel!r} must be an integer.")
        if not 0 <= int(channel) <= 255:
            raise InvalidArgumentError(f"Palette color {color!r} is not an RGB byte triple.")
    return (int(color[0]), int(color[1]), int(color[2]))


@dataclass(frozen=True)
class EmissivePalette:
    """Ordered colors whose pixels glow."""

    colors: Tuple[Color, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "colors", tuple(_normalize_color(color) for color in self.colors))

    @classmethod
    def from_colors(cls, colors: Iterable[Color]) -> "EmissivePalette":
        """Build a palette, dropping repeated colors but keeping first-seen order."""

        seen: List[Color] = []
        for color in colors:
            key = _normalize_color(color)
            if key not in seen:
                seen.append(key)
        return cls(tuple(seen))

    def is_empty(self) -> bool:
        return not self.colors

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self) -> Iterator[Color]:
        return iter(self.colors)


def _swatch_bounds() -> Tuple[int, int, int, int]:
    x0, y0 = PALETTE_ORIGIN
    return x0, y0, x0 + PALETTE_SIZE[0], y0 + PALETTE_SIZE[1]


def _has_swatch(pixels: np.ndarray) -> bool:
    _, _, x1, y1 = _swatch_bounds()
    return pixels.ndim == 3 and pixels.shape[2] == 4 and pixels.shape[0] >= y1 and pixels.shape[1] >= x1


def extract_emissive_palette(pixels: np.ndarray) -> Optional[EmissivePalette]:
    """Read the palette swatch; None when the skin has none."""

    if not _has_swatch(pixels):
        return None
    x0, y0, x1, y1 = _swatch_bounds()
    swatch = pixels[y0:y1, x0:x1].reshape(-1, 4)
    colors = [tuple(int(channel) for channel in pixel[:3]) for pixel in swatch if pixel[3] != 0]
    if not colors:
        return None
    return EmissivePalette.from_colors(colors)


def write_emissive_palette(pixels: np.ndarray, palette: EmissivePalette) -> None:
    """Write ``palette`` into the swatch of ``pixels`` in place."""

    if palette.is_empty():
        raise EncodeError("Cannot write an empty emissive palette.")
    if len(palette) > MAX_PALETTE_COLORS:
        raise EncodeError(f"Emissive palette has {len(palette)} colors (max {MAX_PALETTE_COLORS}).")
    if not _has_swatch(pixels):
        raise EncodeError(f"Image shape {pixels.shape} has no room for an emissive palette.")
    x0, y0, x1, y1 = _swatch_bounds()
    swatch = np.zeros((MAX_PALETTE_COLORS, 4), dtype=np.uint8)
    for index, (red, green, blue) in enumerate(palette):
        swatch[index] = (red, green, blue, 0xFF)
    pixels[y0:y1, x0:x1] = swatch.reshape(PALETTE_SIZE[1], PALETTE_SIZE[0], 4)


def apply_emissive_palette(pixels: np.ndarray, palette: EmissivePalette) -> np.ndarray:
    """Return a glow overlay: palette-colored pixels copied, the rest transparent."""

    if palette.is_empty():
        raise EncodeError("Cannot build an emissive overlay from an empty palette.")
    colors = np.array(palette.colors, dtype=np.uint8)
    matches = (pixels[..., None, :3] == colors[None, None, :, :]).all(axis=-1).any(axis=-1)
    overlay = np.zeros_like(pixels)
    overlay[matches] = pixels[matches]
    logger.debug("Emissive overlay covers %d pixels", int(matches.sum()))
    return overlay
