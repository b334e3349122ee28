"""Hide a :class:`Container` in the alpha channel of a 64x64 skin.

The game draws the base layer of every body part fully opaque, so the alpha
values of those pixels are free to carry data. Each host pixel stores seven
payload bits as ``alpha = 0x80 | bits``; the high bit keeps the pixel visible
in ordinary image viewers.

Stream layout, packed most significant bit first:

    magic (4 bytes) | version (u8) | entries... | 0x00

    entry = key_len (u8) | key (utf-8) | value_len (u16 BE) | value
"""

from __future__ import annotations

import logging
import struct
from typing import List, Optional, Tuple

import numpy as np

from ears_skin.container.container import Container
from ears_skin.errors import DecodeError, EncodeError, SkinDataError

logger = logging.getLogger(__name__)

SKIN_SIZE = (64, 64)
MAGIC = b"\xEA\x1F\xA1\xFA"
_BITS_PER_PIXEL = 7
_HIGH_BIT = 0x80
_BIT_WEIGHTS = np.array([1 << shift for shift in range(_BITS_PER_PIXEL - 1, -1, -1)], dtype=np.uint8)

# Base-layer faces (x0, y0, x1, y1) in the order they are filled.
_HOST_REGIONS: Tuple[Tuple[int, int, int, int], ...] = (
    (8, 0, 24, 8),  # head top/bottom
    (0, 8, 32, 16),  # head sides
    (4, 16, 12, 20),  # right leg top/bottom
    (0, 20, 16, 32),  # right leg sides
    (20, 16, 36, 20),  # body top/bottom
    (16, 20, 40, 32),  # body sides
    (44, 16, 52, 20),  # right arm top/bottom
    (40, 20, 56, 32),  # right arm sides
    (20, 48, 28, 52),  # left leg top/bottom
    (16, 52, 32, 64),  # left leg sides
    (36, 48, 44, 52),  # left arm top/bottom
    (32, 52, 48, 64),  # left arm sides
)


def _host_pixel_count() -> int:
    return sum((x1 - x0) * (y1 - y0) for x0, y0, x1, y1 in _HOST_REGIONS)


def container_capacity() -> int:
    """Number of payload bytes a skin can carry."""

    return _host_pixel_count() * _BITS_PER_PIXEL // 8


def can_host_container(pixels: np.ndarray) -> bool:
    """True when ``pixels`` is a 64x64 RGBA skin."""

    return pixels.ndim == 3 and pixels.shape[2] == 4 and pixels.shape[:2] == (SKIN_SIZE[1], SKIN_SIZE[0])


def _read_host_alpha(pixels: np.ndarray) -> np.ndarray:
    return np.concatenate(
        [pixels[y0:y1, x0:x1, 3].reshape(-1) for x0, y0, x1, y1 in _HOST_REGIONS]
    )


def _write_host_alpha(pixels: np.ndarray, alpha: np.ndarray) -> None:
    offset = 0
    for x0, y0, x1, y1 in _HOST_REGIONS:
        count = (x1 - x0) * (y1 - y0)
        pixels[y0:y1, x0:x1, 3] = alpha[offset : offset + count].reshape(y1 - y0, x1 - x0)
        offset += count


def _serialize(container: Container) -> bytes:
    chunks: List[bytes] = [MAGIC, bytes([container.version])]
    for key in container.keys():
        encoded_key = key.encode("utf-8")
        value = container.entries[key]
        chunks.append(bytes([len(encoded_key)]) + encoded_key)
        chunks.append(struct.pack(">H", len(value)) + value)
    chunks.append(b"\x00")
    return b"".join(chunks)


def _deserialize(payload: bytes) -> Container:
    version = payload[len(MAGIC)]
    offset = len(MAGIC) + 1
    container = Container(version=version)
    try:
        while True:
            key_len = payload[offset]
            offset += 1
            if key_len == 0:
                break
            key_end = offset + key_len
            if key_end > len(payload):
                raise DecodeError("Container key runs past the end of the stream.")
            key = payload[offset:key_end].decode("utf-8")
            (value_len,) = struct.unpack_from(">H", payload, key_end)
            value_start = key_end + 2
            value_end = value_start + value_len
            if value_end > len(payload):
                raise DecodeError(f"Container value for {key!r} runs past the end of the stream.")
            container.set(key, payload[value_start:value_end])
            offset = value_end
    except (IndexError, struct.error) as exc:
        raise DecodeError("Container stream is truncated.") from exc
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Container key is not valid UTF-8: {exc}") from exc
    except SkinDataError as exc:
        if isinstance(exc, DecodeError):
            raise
        raise DecodeError(f"Container entry is invalid: {exc}") from exc
    return container


def read_container(pixels: np.ndarray) -> Optional[Container]:
    """Read the container hidden in ``pixels``, or None when there is none."""

    if not can_host_container(pixels):
        logger.debug("Image shape %s cannot host a container", pixels.shape)
        return None
    bits_per_pixel = (_read_host_alpha(pixels) & 0x7F)[:, None] >> np.arange(_BITS_PER_PIXEL - 1, -1, -1)
    bits = (bits_per_pixel & 1).astype(np.uint8).reshape(-1)
    bits = bits[: len(bits) - len(bits) % 8]
    payload = np.packbits(bits).tobytes()
    if not payload.startswith(MAGIC):
        return None
    container = _deserialize(payload)
    logger.debug("Read container v%d with keys %s", container.version, container.keys())
    return container


def write_container(container: Container, pixels: np.ndarray) -> None:
    """Embed ``container`` into ``pixels`` in place."""

    if not can_host_container(pixels):
        raise EncodeError(f"Containers can only be written to 64x64 RGBA skins, got shape {pixels.shape}.")
    payload = _serialize(container)
    capacity = container_capacity()
    if len(payload) > capacity:
        raise EncodeError(
            f"Container needs {len(payload)} bytes but the skin only holds {capacity}.",
            user_message="Skin data is too large to fit in the image",
        )
    bits = np.unpackbits(np.frombuffer(payload, dtype=np.uint8))
    pad = (-len(bits)) % _BITS_PER_PIXEL
    groups = np.concatenate([bits, np.zeros(pad, dtype=np.uint8)]).reshape(-1, _BITS_PER_PIXEL)
    values = (groups * _BIT_WEIGHTS).sum(axis=1).astype(np.uint8)

    alpha = np.full(_host_pixel_count(), 0xFF, dtype=np.uint8)
    alpha[: len(values)] = _HIGH_BIT | values
    _write_host_alpha(pixels, alpha)
    logger.debug("Wrote container v%d (%d/%d bytes)", container.version, len(payload), capacity)


def strip_alpha(pixels: np.ndarray) -> None:
    """Reset the host pixels to fully opaque, discarding any hidden container."""

    if not can_host_container(pixels):
        return
    _write_host_alpha(pixels, np.full(_host_pixel_count(), 0xFF, dtype=np.uint8))
