"""Typed views of container entries and their JSON wire form."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from ears_skin.container.erase import EraseRegion
from ears_skin.errors import DecodeError, SkinDataError


@dataclass(frozen=True)
class BinaryEntry:
    """Opaque blob stored under a custom key."""

    value: bytes


@dataclass(frozen=True)
class ImageEntry:
    """Encoded auxiliary texture (wing or cape)."""

    value: bytes


@dataclass(frozen=True)
class EraseEntry:
    """Decoded erase regions stored under the erase key."""

    regions: Tuple[EraseRegion, ...]


Entry = Union[BinaryEntry, ImageEntry, EraseEntry]


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: Any) -> bytes:
    """Decode a base64 wire string, raising :class:`DecodeError` on bad input."""

    if not isinstance(text, str):
        raise DecodeError(f"Expected a base64 string, got {type(text).__name__}.")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 payload: {exc}") from exc


def entry_to_wire(entry: Entry) -> Dict[str, Any]:
    """Serialize an entry as ``{"type": ..., "value": ...}``."""

    if isinstance(entry, BinaryEntry):
        return {"type": "binary", "value": _b64encode(entry.value)}
    if isinstance(entry, ImageEntry):
        return {"type": "image", "value": _b64encode(entry.value)}
    if isinstance(entry, EraseEntry):
        return {"type": "erase", "value": [region.to_dict() for region in entry.regions]}
    raise TypeError(f"Unsupported entry type: {type(entry).__name__}")


def entry_from_wire(payload: Any) -> Entry:
    """Parse the output of :func:`entry_to_wire`."""

    if not isinstance(payload, dict):
        raise DecodeError("Container entry must be an object with 'type' and 'value'.")
    tag = payload.get("type")
    value = payload.get("value")
    if tag == "binary":
        return BinaryEntry(b64decode(value))
    if tag == "image":
        return ImageEntry(b64decode(value))
    if tag == "erase":
        if not isinstance(value, list):
            raise DecodeError("Erase entry value must be a list of regions.")
        try:
            regions = tuple(EraseRegion.from_dict(item) for item in value)
        except (SkinDataError, TypeError) as exc:
            raise DecodeError(f"Invalid erase region: {exc}") from exc
        return EraseEntry(regions)
    raise DecodeError(f"Unknown container entry type {tag!r}.")
