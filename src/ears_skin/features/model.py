"""Strongly typed Ears feature model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Tuple


class EarMode(IntEnum):
    NONE = 0
    ABOVE = 1
    SIDES = 2
    BEHIND = 3
    AROUND = 4
    FLOPPY = 5
    OUT = 6
    CROSS = 7
    TALL = 8
    TALL_CROSS = 9


class EarAnchor(IntEnum):
    CENTER = 0
    FRONT = 1
    BACK = 2


class TailMode(IntEnum):
    NONE = 0
    DOWN = 1
    BACK = 2
    UP = 3
    VERTICAL = 4


class WingMode(IntEnum):
    NONE = 0
    SYMMETRIC_DUAL = 1
    SYMMETRIC_SINGLE = 2
    ASYMMETRIC_LEFT = 3
    ASYMMETRIC_RIGHT = 4


Bends = Tuple[float, float, float, float]


@dataclass(frozen=True)
class EarData:
    mode: EarMode = EarMode.NONE
    anchor: EarAnchor = EarAnchor.CENTER


@dataclass(frozen=True)
class TailData:
    """Enabled tail; a disabled tail is represented by ``None`` on the model."""

    mode: TailMode
    segments: int = 1
    bends: Bends = (0.0, 0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bends", tuple(float(bend) for bend in self.bends))


@dataclass(frozen=True)
class SnoutData:
    width: int
    height: int
    depth: int
    offset: int = 0


@dataclass(frozen=True)
class WingData:
    """Enabled wings; they need a wing texture stored in the container."""

    mode: WingMode
    animated: bool = True


@dataclass(frozen=True)
class FeatureModel:
    """Everything an Ears skin declares about its extra geometry.

    ``tail``, ``snout`` and ``wing`` are None when the feature is off.
    ``wing`` and ``cape_enabled`` are only meaningful together with their
    container textures, and ``emissive`` with a palette in the skin; the
    layer decomposer clears flags whose backing data is missing.
    """

    ear: EarData = field(default_factory=EarData)
    tail: Optional[TailData] = None
    snout: Optional[SnoutData] = None
    wing: Optional[WingData] = None
    claws: bool = False
    horn: bool = False
    chest_size: float = 0.0
    cape_enabled: bool = False
    emissive: bool = False
    data_version: int = 1
