"""Configuration schema and loading utilities."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Config:
    """Settings shared by the decomposer, the CLI and the web UI."""

    default_container_version: int = 0
    default_data_version: int = 1
    strip_empty_container_alpha: bool = True
    convert_legacy_cape: bool = True
    render_emissive: bool = True
    image_format: str = "PNG"

    def __post_init__(self) -> None:
        if not 0 <= self.default_container_version <= 255:
            raise ValueError(
                f"default_container_version must be 0..255, got {self.default_container_version}."
            )
        if self.default_data_version not in (0, 1):
            raise ValueError(f"default_data_version must be 0 or 1, got {self.default_data_version}.")


def _merge_dict(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overrides into base without mutating either input."""

    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dict(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path]) -> Config:
    """Load configuration from JSON over the defaults."""

    base = {item.name: item.default for item in fields(Config)}

    if path:
        raw = json.loads(Path(path).read_text())
        if not isinstance(raw, dict):
            raise ValueError("Config file must contain a JSON object.")
        unknown = sorted(set(raw) - set(base))
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}. Available: {', '.join(base)}")
        merged = _merge_dict(base, raw)
    else:
        merged = base

    return Config(
        default_container_version=int(merged["default_container_version"]),
        default_data_version=int(merged["default_data_version"]),
        strip_empty_container_alpha=bool(merged["strip_empty_container_alpha"]),
        convert_legacy_cape=bool(merged["convert_legacy_cape"]),
        render_emissive=bool(merged["render_emissive"]),
        image_format=str(merged["image_format"]),
    )
