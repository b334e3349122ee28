"""Erase region records and their byte encoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np

from ears_skin.errors import DecodeError, InvalidArgumentError

ERASE_RECORD_WIDTH = 4
_FIELDS = ("x", "y", "width", "height")


@dataclass(frozen=True)
class EraseRegion:
    """Rectangle of the base texture that renders as fully transparent.

    Every field is a single unsigned byte, which bounds both the position and
    the extent to the 0..255 texture space.
    """

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        for name in _FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidArgumentError(f"Erase region {name} must be an integer, got {value!r}.")
            if not 0 <= int(value) <= 255:
                raise InvalidArgumentError(f"Erase region {name}={value} is outside 0..255.")
            object.__setattr__(self, name, int(value))

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EraseRegion":
        missing = [name for name in _FIELDS if name not in payload]
        if missing:
            raise InvalidArgumentError(f"Erase region is missing {', '.join(missing)}.")
        return cls(**{name: payload[name] for name in _FIELDS})


def encode_erase_regions(regions: Sequence[EraseRegion]) -> bytes:
    """Pack regions into consecutive fixed-width records."""

    return bytes(value for region in regions for value in (region.x, region.y, region.width, region.height))


def decode_erase_regions(blob: bytes) -> List[EraseRegion]:
    """Unpack a blob written by :func:`encode_erase_regions`."""

    if len(blob) % ERASE_RECORD_WIDTH != 0:
        raise DecodeError(
            f"Erase blob length {len(blob)} is not a multiple of {ERASE_RECORD_WIDTH}."
        )
    return [
        EraseRegion(*blob[offset : offset + ERASE_RECORD_WIDTH])
        for offset in range(0, len(blob), ERASE_RECORD_WIDTH)
    ]


def erase_pixels(pixels: np.ndarray, regions: Sequence[EraseRegion]) -> np.ndarray:
    """Return a copy of ``pixels`` with every region cleared to transparent black.

    Regions reaching past the image edge are clipped.
    """

    erased = pixels.copy()
    for region in regions:
        erased[region.y : region.y + region.height, region.x : region.x + region.width] = 0
    return erased
