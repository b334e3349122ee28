"""Emissive palette handling."""

from ears_skin.emissive.palette import (
    MAX_PALETTE_COLORS,
    EmissivePalette,
    apply_emissive_palette,
    extract_emissive_palette,
    write_emissive_palette,
)

__all__ = [
    "EmissivePalette",
    "MAX_PALETTE_COLORS",
    "apply_emissive_palette",
    "extract_emissive_palette",
    "write_emissive_palette",
]
