"""Read and write the feature block stored in the skin pixels.

The block is the 4x4 square at x 0..4, y 32..36 (an unused corner of the
right leg overlay). Its first pixel is a magic color selecting the layout:

* v1 (``EA 25 01``): a packed record spread over the RGB bytes of the
  remaining 15 pixels.
* v0 (``3F 23 D8``): one value per pixel in the red channel. Bend angles are
  whole degrees and the chest size is a byte, so v0 is lossy.
"""

from __future__ import annotations

import logging
import struct
from typing import List, Optional

import numpy as np

from ears_skin.errors import DecodeError, EncodeError
from ears_skin.features.raw import (
    PROTRUSION_CLAWS,
    PROTRUSION_HORNS,
    SNOUT_DISABLED,
    SNOUT_ENABLED,
    WING_ANIMATIONS_NONE,
    WING_ANIMATIONS_NORMAL,
    EarSettings,
    EmissiveSettings,
    RawFeatures,
    SnoutSettings,
    TailSettings,
    WingSettings,
)

logger = logging.getLogger(__name__)

BLOCK_ORIGIN = (0, 32)
BLOCK_SIZE = 4
MAGIC_V0 = (0x3F, 0x23, 0xD8)
MAGIC_V1 = (0xEA, 0x25, 0x01)
SUPPORTED_VERSIONS = (0, 1)

_FLAG_CLAWS = 1 << 0
_FLAG_HORN = 1 << 1
_FLAG_SNOUT = 1 << 2
_FLAG_CAPE = 1 << 3
_FLAG_EMISSIVE = 1 << 4
_FLAG_WING_ANIMATED = 1 << 5

# ear mode, ear anchor, flags, tail mode, tail segments, 4 bends,
# snout width/height/length/offset, wing mode, chest size
_V1_RECORD = struct.Struct(">BBBBB4f4BBf")
_V1_CAPACITY = (BLOCK_SIZE * BLOCK_SIZE - 1) * 3
_V0_BEND_OFFSET = 128


def _block(pixels: np.ndarray) -> Optional[np.ndarray]:
    x0, y0 = BLOCK_ORIGIN
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        return None
    if pixels.shape[0] < y0 + BLOCK_SIZE or pixels.shape[1] < x0 + BLOCK_SIZE:
        return None
    return pixels[y0 : y0 + BLOCK_SIZE, x0 : x0 + BLOCK_SIZE]


def _flags(raw: RawFeatures) -> int:
    flags = 0
    if PROTRUSION_CLAWS in raw.protrusions:
        flags |= _FLAG_CLAWS
    if PROTRUSION_HORNS in raw.protrusions:
        flags |= _FLAG_HORN
    if raw.snout.status == SNOUT_ENABLED:
        flags |= _FLAG_SNOUT
    if raw.cape_enabled:
        flags |= _FLAG_CAPE
    if raw.emissives.enabled:
        flags |= _FLAG_EMISSIVE
    if raw.wings.animations == WING_ANIMATIONS_NORMAL:
        flags |= _FLAG_WING_ANIMATED
    return flags


def _raw_from_values(
    data_version: int,
    ear_mode: int,
    ear_anchor: int,
    flags: int,
    tail_mode: int,
    tail_segments: int,
    bends: List[float],
    snout: List[int],
    wing_mode: int,
    chest_size: float,
) -> RawFeatures:
    protrusions = []
    if flags & _FLAG_CLAWS:
        protrusions.append(PROTRUSION_CLAWS)
    if flags & _FLAG_HORN:
        protrusions.append(PROTRUSION_HORNS)
    return RawFeatures(
        ears=EarSettings(mode=ear_mode, anchor=ear_anchor),
        protrusions=protrusions,
        tail=TailSettings(mode=tail_mode, segments=tail_segments, bends=bends),
        snout=SnoutSettings(
            status=SNOUT_ENABLED if flags & _FLAG_SNOUT else SNOUT_DISABLED,
            width=snout[0],
            height=snout[1],
            length=snout[2],
            offset=snout[3],
        ),
        wings=WingSettings(
            mode=wing_mode,
            animations=WING_ANIMATIONS_NORMAL if flags & _FLAG_WING_ANIMATED else WING_ANIMATIONS_NONE,
        ),
        cape_enabled=bool(flags & _FLAG_CAPE),
        chest_size=chest_size,
        emissives=EmissiveSettings(enabled=bool(flags & _FLAG_EMISSIVE)),
        data_version=data_version,
    )


def _parse_v1(block: np.ndarray) -> RawFeatures:
    payload = block.reshape(-1, 4)[1:, :3].tobytes()
    try:
        values = _V1_RECORD.unpack_from(payload)
    except struct.error as exc:
        raise DecodeError(f"Feature block is truncated: {exc}") from exc
    ear_mode, ear_anchor, flags, tail_mode, tail_segments = values[:5]
    return _raw_from_values(
        1,
        ear_mode,
        ear_anchor,
        flags,
        tail_mode,
        tail_segments,
        [float(bend) for bend in values[5:9]],
        list(values[9:13]),
        values[13],
        float(values[14]),
    )


def _parse_v0(block: np.ndarray) -> RawFeatures:
    red = [int(value) for value in block.reshape(-1, 4)[:, 0]]
    return _raw_from_values(
        0,
        red[1],
        red[2],
        red[3],
        red[4],
        red[5],
        [float(value - _V0_BEND_OFFSET) for value in red[6:10]],
        red[10:14],
        red[14],
        red[15] / 255.0,
    )


def parse_raw_features(pixels: np.ndarray) -> Optional[RawFeatures]:
    """Parse the feature block, or return None when the skin has none."""

    block = _block(pixels)
    if block is None:
        return None
    magic = tuple(int(channel) for channel in block[0, 0, :3])
    if magic == MAGIC_V1:
        raw = _parse_v1(block)
    elif magic == MAGIC_V0:
        raw = _parse_v0(block)
    else:
        return None
    logger.debug("Parsed v%d feature block", raw.data_version)
    return raw


def _encode_v1(raw: RawFeatures) -> np.ndarray:
    if len(raw.tail.bends) != 4:
        raise EncodeError(f"Tail needs 4 bend angles, got {len(raw.tail.bends)}.")
    try:
        record = _V1_RECORD.pack(
            raw.ears.mode,
            raw.ears.anchor,
            _flags(raw),
            raw.tail.mode,
            raw.tail.segments,
            *raw.tail.bends,
            raw.snout.width,
            raw.snout.height,
            raw.snout.length,
            raw.snout.offset,
            raw.wings.mode,
            raw.chest_size,
        )
    except (struct.error, OverflowError) as exc:
        raise EncodeError(f"Feature values cannot be packed: {exc}") from exc
    payload = record.ljust(_V1_CAPACITY, b"\x00")
    block = np.full((BLOCK_SIZE * BLOCK_SIZE, 4), 0xFF, dtype=np.uint8)
    block[0, :3] = MAGIC_V1
    block[1:, :3] = np.frombuffer(payload, dtype=np.uint8).reshape(-1, 3)
    return block


def _v0_byte(value: float, field_name: str) -> int:
    rounded = int(round(value))
    if not 0 <= rounded <= 255:
        raise EncodeError(f"{field_name} value {value} does not fit the v0 layout.")
    return rounded


def _encode_v0(raw: RawFeatures) -> np.ndarray:
    if len(raw.tail.bends) != 4:
        raise EncodeError(f"Tail needs 4 bend angles, got {len(raw.tail.bends)}.")
    values = [
        _v0_byte(raw.ears.mode, "ear mode"),
        _v0_byte(raw.ears.anchor, "ear anchor"),
        _flags(raw),
        _v0_byte(raw.tail.mode, "tail mode"),
        _v0_byte(raw.tail.segments, "tail segments"),
        *(_v0_byte(bend + _V0_BEND_OFFSET, "tail bend") for bend in raw.tail.bends),
        _v0_byte(raw.snout.width, "snout width"),
        _v0_byte(raw.snout.height, "snout height"),
        _v0_byte(raw.snout.length, "snout length"),
        _v0_byte(raw.snout.offset, "snout offset"),
        _v0_byte(raw.wings.mode, "wing mode"),
        _v0_byte(raw.chest_size * 255.0, "chest size"),
    ]
    block = np.zeros((BLOCK_SIZE * BLOCK_SIZE, 4), dtype=np.uint8)
    block[:, 3] = 0xFF
    block[0, :3] = MAGIC_V0
    block[1:, 0] = values
    return block


def write_raw_features(pixels: np.ndarray, raw: RawFeatures, data_version: int) -> None:
    """Write ``raw`` into the feature block of ``pixels`` using ``data_version``'s layout."""

    if data_version not in SUPPORTED_VERSIONS:
        raise EncodeError(f"Unsupported feature data version {data_version}.")
    target = _block(pixels)
    if target is None:
        raise EncodeError(f"Image shape {pixels.shape} has no room for the feature block.")
    encoded = _encode_v1(raw) if data_version == 1 else _encode_v0(raw)
    target[...] = encoded.reshape(BLOCK_SIZE, BLOCK_SIZE, 4)
    logger.debug("Wrote v%d feature block", data_version)
