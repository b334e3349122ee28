"""Render layer decomposition and save-time recomposition."""

from ears_skin.layers.cape import convert_cape_layout
from ears_skin.layers.decomposer import (
    LAYER_BASE,
    LAYER_CAPE,
    LAYER_EMISSIVE_BASE,
    LAYER_EMISSIVE_CAPE,
    LAYER_EMISSIVE_WING,
    LAYER_NAMES,
    LAYER_WING,
    check_consistency,
    decompose_for_render,
    decompose_skin,
    open_session,
    recompose_for_save,
    recompose_skin,
    repair_features,
)
from ears_skin.layers.session import SkinEdit, SkinSession

__all__ = [
    "LAYER_BASE",
    "LAYER_CAPE",
    "LAYER_EMISSIVE_BASE",
    "LAYER_EMISSIVE_CAPE",
    "LAYER_EMISSIVE_WING",
    "LAYER_NAMES",
    "LAYER_WING",
    "SkinEdit",
    "SkinSession",
    "check_consistency",
    "convert_cape_layout",
    "decompose_for_render",
    "decompose_skin",
    "open_session",
    "recompose_for_save",
    "recompose_skin",
    "repair_features",
]
