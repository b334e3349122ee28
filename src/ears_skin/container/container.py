"""Versioned key/blob container carried inside a skin image."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Union

from ears_skin.container.entries import BinaryEntry, EraseEntry, Entry, ImageEntry
from ears_skin.container.erase import EraseRegion, decode_erase_regions, encode_erase_regions
from ears_skin.errors import DecodeError, InvalidArgumentError

MAX_KEY_BYTES = 255
MAX_VALUE_BYTES = 0xFFFF


class ContainerKey(str, Enum):
    """Keys with a meaning defined by this package."""

    ERASE = "erase"
    WING = "wing"
    CAPE = "cape"


RESERVED_KEYS = frozenset(key.value for key in ContainerKey)
_IMAGE_KEYS = frozenset({ContainerKey.WING.value, ContainerKey.CAPE.value})

KeyLike = Union[str, ContainerKey]


def _normalize_key(key: KeyLike) -> str:
    if isinstance(key, ContainerKey):
        return key.value
    if not isinstance(key, str):
        raise InvalidArgumentError(f"Container keys must be strings, got {type(key).__name__}.")
    return key


def _validate_version(version: int) -> int:
    if isinstance(version, bool) or not isinstance(version, int) or not 0 <= version <= 255:
        raise InvalidArgumentError(f"Container version must be a byte, got {version!r}.")
    return version


@dataclass
class Container:
    """Mapping from string keys to byte blobs, tagged with a version byte.

    Absence of a reserved key means the matching feature is off. An empty blob
    under any key is still a stored value and is kept as such.
    """

    version: int = 0
    entries: Dict[str, bytes] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _validate_version(self.version)
        raw = dict(self.entries)
        self.entries = {}
        for key, value in raw.items():
            self.set(key, value)

    def get(self, key: KeyLike) -> Optional[bytes]:
        return self.entries.get(_normalize_key(key))

    def set(self, key: KeyLike, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous blob."""

        name = _normalize_key(key)
        encoded = name.encode("utf-8")
        if not encoded or len(encoded) > MAX_KEY_BYTES:
            raise InvalidArgumentError(f"Container key {name!r} must be 1..{MAX_KEY_BYTES} UTF-8 bytes.")
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise InvalidArgumentError(f"Container value for {name!r} must be bytes.")
        blob = bytes(value)
        if len(blob) > MAX_VALUE_BYTES:
            raise InvalidArgumentError(
                f"Container value for {name!r} is {len(blob)} bytes (max {MAX_VALUE_BYTES})."
            )
        self.entries[name] = blob

    def remove(self, key: KeyLike) -> Optional[bytes]:
        return self.entries.pop(_normalize_key(key), None)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, ContainerKey)):
            return False
        return _normalize_key(key) in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def keys(self) -> List[str]:
        return sorted(self.entries)

    def is_empty(self) -> bool:
        return not self.entries

    def copy(self) -> "Container":
        return Container(version=self.version, entries=dict(self.entries))

    def custom_entries(self) -> Dict[str, bytes]:
        """Entries whose keys carry no meaning for this package."""

        return {key: value for key, value in self.entries.items() if key not in RESERVED_KEYS}

    def get_erase_regions(self) -> Optional[List[EraseRegion]]:
        """Decode the erase key, or return None when it is absent."""

        blob = self.get(ContainerKey.ERASE)
        if blob is None:
            return None
        return decode_erase_regions(blob)

    def set_erase_regions(self, regions: Sequence[EraseRegion]) -> None:
        """Store erase regions; an empty sequence removes the key entirely."""

        if not regions:
            self.remove(ContainerKey.ERASE)
            return
        self.set(ContainerKey.ERASE, encode_erase_regions(regions))

    def typed_entries(self) -> Dict[str, Entry]:
        """Return every entry as its closed variant."""

        typed: Dict[str, Entry] = {}
        for key, value in self.entries.items():
            if key == ContainerKey.ERASE.value:
                typed[key] = EraseEntry(tuple(decode_erase_regions(value)))
            elif key in _IMAGE_KEYS:
                typed[key] = ImageEntry(value)
            else:
                typed[key] = BinaryEntry(value)
        return typed

    @classmethod
    def from_typed_entries(cls, entries: Mapping[str, Entry], version: int = 0) -> "Container":
        """Build a container from :meth:`typed_entries` output."""

        container = cls(version=version)
        for key, entry in entries.items():
            name = _normalize_key(key)
            if isinstance(entry, EraseEntry):
                if name != ContainerKey.ERASE.value:
                    raise DecodeError(f"Erase entry stored under non-erase key {name!r}.")
                container.set_erase_regions(list(entry.regions))
            elif isinstance(entry, (BinaryEntry, ImageEntry)):
                if name == ContainerKey.ERASE.value:
                    raise DecodeError("The erase key only accepts erase entries.")
                container.set(name, entry.value)
            else:
                raise DecodeError(f"Unsupported entry for key {name!r}: {type(entry).__name__}.")
        return container
