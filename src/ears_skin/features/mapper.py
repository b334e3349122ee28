"""Conversions between the feature model, flat records and the container.

Defaulting rules:

* a missing tail, snout or wing on the model becomes the disabled variant with
  zeroed numbers on the flat side;
* a disabled flat mode drops the sub-structure on the model entirely, so tail
  segments and bends of a disabled tail are not kept.

Unknown enumeration values are reported as :class:`DecodeError` rather than
defaulted, since they mean corrupt data or a newer writer.
"""

from __future__ import annotations

import math
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple, Type, TypeVar

from ears_skin.container.container import Container, ContainerKey
from ears_skin.emissive.palette import EmissivePalette
from ears_skin.errors import DecodeError
from ears_skin.features.model import (
    EarAnchor,
    EarData,
    EarMode,
    FeatureModel,
    SnoutData,
    TailData,
    TailMode,
    WingData,
    WingMode,
)
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

E = TypeVar("E", bound=IntEnum)

_TAIL_SEGMENTS = range(1, 5)
_BEND_COUNT = 4


def _enum(enum_type: Type[E], value: int, field_name: str) -> E:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise DecodeError(f"Unknown {field_name} value {value!r}.") from exc


def _byte(value: int, field_name: str) -> int:
    if not 0 <= value <= 255:
        raise DecodeError(f"{field_name} value {value} is outside 0..255.")
    return value


def _choice(value: int, allowed: Sequence[int], field_name: str) -> int:
    if value not in allowed:
        raise DecodeError(f"Unknown {field_name} value {value!r}.")
    return value


def _tail_from_settings(settings: TailSettings) -> Optional[TailData]:
    mode = _enum(TailMode, settings.mode, "tail mode")
    if mode is TailMode.NONE:
        return None
    if settings.segments not in _TAIL_SEGMENTS:
        raise DecodeError(f"Tail segment count {settings.segments} is outside 1..4.")
    if len(settings.bends) != _BEND_COUNT:
        raise DecodeError(f"Tail needs {_BEND_COUNT} bend angles, got {len(settings.bends)}.")
    if not all(math.isfinite(bend) for bend in settings.bends):
        raise DecodeError("Tail bend angles must be finite.")
    return TailData(mode=mode, segments=settings.segments, bends=tuple(settings.bends))


def _snout_from_settings(settings: SnoutSettings) -> Optional[SnoutData]:
    status = _choice(settings.status, (SNOUT_DISABLED, SNOUT_ENABLED), "snout status")
    if status == SNOUT_DISABLED:
        return None
    return SnoutData(
        width=_byte(settings.width, "snout width"),
        height=_byte(settings.height, "snout height"),
        depth=_byte(settings.length, "snout length"),
        offset=_byte(settings.offset, "snout offset"),
    )


def _wing_from_settings(settings: WingSettings) -> Optional[WingData]:
    mode = _enum(WingMode, settings.mode, "wing mode")
    animations = _choice(
        settings.animations, (WING_ANIMATIONS_NORMAL, WING_ANIMATIONS_NONE), "wing animations"
    )
    if mode is WingMode.NONE:
        return None
    return WingData(mode=mode, animated=animations == WING_ANIMATIONS_NORMAL)


def to_feature_model(raw: RawFeatures) -> FeatureModel:
    """Validate a flat record and convert it to the feature model."""

    for protrusion in raw.protrusions:
        _choice(protrusion, (PROTRUSION_CLAWS, PROTRUSION_HORNS), "protrusion")
    if not math.isfinite(raw.chest_size):
        raise DecodeError(f"Chest size {raw.chest_size!r} is not finite.")
    return FeatureModel(
        ear=EarData(
            mode=_enum(EarMode, raw.ears.mode, "ear mode"),
            anchor=_enum(EarAnchor, raw.ears.anchor, "ear anchor"),
        ),
        tail=_tail_from_settings(raw.tail),
        snout=_snout_from_settings(raw.snout),
        wing=_wing_from_settings(raw.wings),
        claws=PROTRUSION_CLAWS in raw.protrusions,
        horn=PROTRUSION_HORNS in raw.protrusions,
        chest_size=float(raw.chest_size),
        cape_enabled=bool(raw.cape_enabled),
        emissive=bool(raw.emissives.enabled),
        data_version=_byte(raw.data_version, "data version"),
    )


def from_feature_model(model: FeatureModel, palette: Optional[EmissivePalette] = None) -> RawFeatures:
    """Flatten ``model``; ``palette`` fills the emissive colors when given."""

    protrusions: List[int] = []
    if model.claws:
        protrusions.append(PROTRUSION_CLAWS)
    if model.horn:
        protrusions.append(PROTRUSION_HORNS)

    if model.tail is not None:
        tail = TailSettings(
            mode=int(model.tail.mode),
            segments=model.tail.segments,
            bends=list(model.tail.bends),
        )
    else:
        tail = TailSettings()

    if model.snout is not None:
        snout = SnoutSettings(
            status=SNOUT_ENABLED,
            width=model.snout.width,
            height=model.snout.height,
            length=model.snout.depth,
            offset=model.snout.offset,
        )
    else:
        snout = SnoutSettings()

    if model.wing is not None:
        wings = WingSettings(
            mode=int(model.wing.mode),
            animations=WING_ANIMATIONS_NORMAL if model.wing.animated else WING_ANIMATIONS_NONE,
        )
    else:
        wings = WingSettings()

    return RawFeatures(
        ears=EarSettings(mode=int(model.ear.mode), anchor=int(model.ear.anchor)),
        protrusions=protrusions,
        tail=tail,
        snout=snout,
        wings=wings,
        cape_enabled=model.cape_enabled,
        chest_size=model.chest_size,
        emissives=EmissiveSettings(
            enabled=model.emissive,
            palette=palette_to_raw(palette) if palette is not None else [],
        ),
        data_version=model.data_version,
    )


def to_container(
    model: FeatureModel,
    wing_image: Optional[bytes] = None,
    cape_image: Optional[bytes] = None,
    base: Optional[Container] = None,
    version: int = 0,
) -> Container:
    """Build the container for ``model`` on top of ``base``.

    Custom keys and erase regions from ``base`` are carried over verbatim.
    Wing and cape textures are stored only when their feature is on and bytes
    were supplied; empty byte strings count as not supplied.
    """

    container = base.copy() if base is not None else Container(version=version)
    container.remove(ContainerKey.WING)
    container.remove(ContainerKey.CAPE)
    if model.cape_enabled and cape_image:
        container.set(ContainerKey.CAPE, cape_image)
    if model.wing is not None and wing_image:
        container.set(ContainerKey.WING, wing_image)
    return container


def from_container(container: Container) -> Tuple[Optional[bytes], Optional[bytes]]:
    """Return the stored ``(wing, cape)`` textures."""

    return container.get(ContainerKey.WING), container.get(ContainerKey.CAPE)


def palette_to_raw(palette: EmissivePalette) -> List[int]:
    """Pack palette colors as ``0xFFRRGGBB`` integers."""

    return [0xFF000000 | (red << 16) | (green << 8) | blue for red, green, blue in palette]


def palette_from_raw(values: Sequence[int]) -> EmissivePalette:
    """Unpack ``0xFFRRGGBB`` integers; the alpha byte is ignored."""

    for value in values:
        if not 0 <= value <= 0xFFFFFFFF:
            raise DecodeError(f"Palette color {value!r} is not a 32-bit value.")
    return EmissivePalette.from_colors(
        ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF) for value in values
    )
