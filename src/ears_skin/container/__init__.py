"""Skin metadata container and erase regions."""

from ears_skin.container.codec import (
    can_host_container,
    container_capacity,
    read_container,
    strip_alpha,
    write_container,
)
from ears_skin.container.container import RESERVED_KEYS, Container, ContainerKey
from ears_skin.container.entries import (
    BinaryEntry,
    EraseEntry,
    Entry,
    ImageEntry,
    entry_from_wire,
    entry_to_wire,
)
from ears_skin.container.erase import (
    EraseRegion,
    decode_erase_regions,
    encode_erase_regions,
    erase_pixels,
)

__all__ = [
    "BinaryEntry",
    "Container",
    "ContainerKey",
    "EraseEntry",
    "EraseRegion",
    "Entry",
    "ImageEntry",
    "RESERVED_KEYS",
    "can_host_container",
    "container_capacity",
    "decode_erase_regions",
    "encode_erase_regions",
    "entry_from_wire",
    "entry_to_wire",
    "erase_pixels",
    "read_container",
    "strip_alpha",
    "write_container",
]
