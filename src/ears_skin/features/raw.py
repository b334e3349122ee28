"""Flat feature records exchanged with editors and stored on the image.

Enumerations are plain integers here; :mod:`ears_skin.features.mapper`
validates them when converting to :class:`~ears_skin.features.model.FeatureModel`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ears_skin.errors import DecodeError

PROTRUSION_CLAWS = 0
PROTRUSION_HORNS = 1

SNOUT_DISABLED = 0
SNOUT_ENABLED = 1

WING_ANIMATIONS_NORMAL = 0
WING_ANIMATIONS_NONE = 1


@dataclass
class EarSettings:
    mode: int = 0
    anchor: int = 0


@dataclass
class TailSettings:
    mode: int = 0
    segments: int = 0
    bends: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])


@dataclass
class SnoutSettings:
    status: int = SNOUT_DISABLED
    width: int = 0
    height: int = 0
    length: int = 0
    offset: int = 0


@dataclass
class WingSettings:
    mode: int = 0
    animations: int = WING_ANIMATIONS_NONE


@dataclass
class EmissiveSettings:
    enabled: bool = False
    palette: List[int] = field(default_factory=list)


@dataclass
class RawFeatures:
    """Flat counterpart of the feature model; every field is always present."""

    ears: EarSettings = field(default_factory=EarSettings)
    protrusions: List[int] = field(default_factory=list)
    tail: TailSettings = field(default_factory=TailSettings)
    snout: SnoutSettings = field(default_factory=SnoutSettings)
    wings: WingSettings = field(default_factory=WingSettings)
    cape_enabled: bool = False
    chest_size: float = 0.0
    emissives: EmissiveSettings = field(default_factory=EmissiveSettings)
    data_version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ears": {"mode": self.ears.mode, "anchor": self.ears.anchor},
            "protrusions": list(self.protrusions),
            "tail": {
                "mode": self.tail.mode,
                "segments": self.tail.segments,
                "bends": list(self.tail.bends),
            },
            "snout": {
                "status": self.snout.status,
                "width": self.snout.width,
                "height": self.snout.height,
                "length": self.snout.length,
                "offset": self.snout.offset,
            },
            "wings": {"mode": self.wings.mode, "animations": self.wings.animations},
            "capeEnabled": self.cape_enabled,
            "chestSize": self.chest_size,
            "emissives": {
                "enabled": self.emissives.enabled,
                "palette": list(self.emissives.palette),
            },
            "dataVersion": self.data_version,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any], default_data_version: int = 1) -> "RawFeatures":
        """Parse :meth:`to_dict` output; missing sections fall back to disabled defaults."""

        if not isinstance(payload, dict):
            raise DecodeError("Feature payload must be an object.")
        try:
            ears = _section(payload, "ears")
            tail = _section(payload, "tail")
            snout = _section(payload, "snout")
            wings = _section(payload, "wings")
            emissives = _section(payload, "emissives")
            return cls(
                ears=EarSettings(mode=int(ears.get("mode", 0)), anchor=int(ears.get("anchor", 0))),
                protrusions=[int(value) for value in payload.get("protrusions", [])],
                tail=TailSettings(
                    mode=int(tail.get("mode", 0)),
                    segments=int(tail.get("segments", 0)),
                    bends=[float(value) for value in tail.get("bends", [0.0, 0.0, 0.0, 0.0])],
                ),
                snout=SnoutSettings(
                    status=int(snout.get("status", SNOUT_DISABLED)),
                    width=int(snout.get("width", 0)),
                    height=int(snout.get("height", 0)),
                    length=int(snout.get("length", 0)),
                    offset=int(snout.get("offset", 0)),
                ),
                wings=WingSettings(
                    mode=int(wings.get("mode", 0)),
                    animations=int(wings.get("animations", WING_ANIMATIONS_NONE)),
                ),
                cape_enabled=bool(payload.get("capeEnabled", False)),
                chest_size=float(payload.get("chestSize", 0.0)),
                emissives=EmissiveSettings(
                    enabled=bool(emissives.get("enabled", False)),
                    palette=[int(value) for value in emissives.get("palette", [])],
                ),
                data_version=int(payload.get("dataVersion", default_data_version)),
            )
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Invalid feature payload: {exc}") from exc


def _section(payload: Dict[str, Any], name: str) -> Dict[str, Any]:
    value: Optional[Any] = payload.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"Feature section {name!r} must be an object.")
    return value
