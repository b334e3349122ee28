"""Split a skin into render layers and reassemble edited layers into a skin.

Both paths start by repairing the feature model against the data actually
present: wings and cape need their container textures, emissive needs a
palette. Flags without backing data are cleared, never filled in.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional

import numpy as np

from ears_skin.config.schema import Config
from ears_skin.container.codec import can_host_container, read_container, strip_alpha, write_container
from ears_skin.container.container import RESERVED_KEYS, Container, ContainerKey
from ears_skin.container.erase import erase_pixels
from ears_skin.emissive.palette import (
    EmissivePalette,
    apply_emissive_palette,
    extract_emissive_palette,
    write_emissive_palette,
)
from ears_skin.errors import DecodeError, EncodeError, InconsistentStateError, InvalidArgumentError
from ears_skin.features.image_codec import parse_raw_features, write_raw_features
from ears_skin.features.mapper import from_container, from_feature_model, to_container, to_feature_model
from ears_skin.features.model import FeatureModel
from ears_skin.io.images import decode_image, encode_image
from ears_skin.layers.cape import convert_cape_layout
from ears_skin.layers.session import SkinEdit, SkinSession

logger = logging.getLogger(__name__)

LAYER_BASE = "base"
LAYER_WING = "wing"
LAYER_CAPE = "cape"
LAYER_EMISSIVE_BASE = "emissive-base"
LAYER_EMISSIVE_WING = "emissive-wing"
LAYER_EMISSIVE_CAPE = "emissive-cape"
LAYER_NAMES = (
    LAYER_BASE,
    LAYER_WING,
    LAYER_CAPE,
    LAYER_EMISSIVE_BASE,
    LAYER_EMISSIVE_WING,
    LAYER_EMISSIVE_CAPE,
)
_EMISSIVE_LAYERS = {
    LAYER_BASE: LAYER_EMISSIVE_BASE,
    LAYER_WING: LAYER_EMISSIVE_WING,
    LAYER_CAPE: LAYER_EMISSIVE_CAPE,
}


def _has_palette(palette: Optional[EmissivePalette]) -> bool:
    return palette is not None and not palette.is_empty()


def repair_features(
    features: Optional[FeatureModel],
    container: Container,
    palette: Optional[EmissivePalette],
) -> Optional[FeatureModel]:
    """Clear feature flags whose backing data is missing.

    Applying this twice gives the same result as applying it once.
    """

    if features is None:
        return None
    changes = {}
    if features.wing is not None and ContainerKey.WING not in container:
        logger.info("Wings are enabled but the skin has no wing texture; disabling wings")
        changes["wing"] = None
    if features.cape_enabled and ContainerKey.CAPE not in container:
        logger.info("Cape is enabled but the skin has no cape texture; disabling cape")
        changes["cape_enabled"] = False
    if features.emissive and not _has_palette(palette):
        logger.info("Emissive is enabled but the skin has no emissive palette; disabling emissive")
        changes["emissive"] = False
    if not changes:
        return features
    return replace(features, **changes)


def check_consistency(
    features: Optional[FeatureModel],
    container: Container,
    palette: Optional[EmissivePalette],
) -> None:
    """Raise :class:`InconsistentStateError` if a flag lacks its backing data."""

    if features is None:
        return
    problems: List[str] = []
    if features.wing is not None and ContainerKey.WING not in container:
        problems.append("wings enabled without a wing texture")
    if features.cape_enabled and ContainerKey.CAPE not in container:
        problems.append("cape enabled without a cape texture")
    if features.emissive and not _has_palette(palette):
        problems.append("emissive enabled without a palette")
    if problems:
        raise InconsistentStateError("; ".join(problems))


def open_session(skin_bytes: bytes, config: Optional[Config] = None) -> SkinSession:
    """Decode a skin and load its container, features and palette."""

    config = config or Config()
    base = decode_image(skin_bytes)
    container = read_container(base)
    if container is None:
        container = Container(version=config.default_container_version)
    raw = parse_raw_features(base)
    features = to_feature_model(raw) if raw is not None else None
    palette = extract_emissive_palette(base)
    features = repair_features(features, container, palette)
    logger.debug(
        "Opened %dx%d skin (features=%s, container keys=%s)",
        base.shape[1],
        base.shape[0],
        features is not None,
        container.keys(),
    )
    return SkinSession(base=base, container=container, features=features, palette=palette)


def _decode_layer(data: Optional[bytes], name: str) -> np.ndarray:
    if data is None:
        raise InconsistentStateError(f"The {name} layer has no stored texture.")
    try:
        return decode_image(data)
    except DecodeError as exc:
        raise DecodeError(f"Stored {name} texture is corrupt: {exc}") from exc


def decompose_for_render(session: SkinSession, config: Optional[Config] = None) -> Dict[str, np.ndarray]:
    """Return the named layers a renderer needs for this skin.

    Wing and cape textures come from the container. The base layer has its
    container alpha removed and its erase regions cleared; erase regions do
    not touch the separately stored wing and cape textures. Emissive overlays
    are built from the skin's palette for each layer that exists.
    """

    config = config or Config()
    features = repair_features(session.features, session.container, session.palette)
    session.features = features
    check_consistency(features, session.container, session.palette)

    layers: Dict[str, np.ndarray] = {}
    wing_bytes, cape_bytes = from_container(session.container)
    if features is not None and features.wing is not None:
        layers[LAYER_WING] = _decode_layer(wing_bytes, LAYER_WING)
    if features is not None and features.cape_enabled:
        cape = _decode_layer(cape_bytes, LAYER_CAPE)
        if config.convert_legacy_cape:
            converted = convert_cape_layout(cape)
            if converted.shape != cape.shape:
                logger.info("Converted %dx%d cape to the standard layout", cape.shape[1], cape.shape[0])
            cape = converted
        layers[LAYER_CAPE] = cape

    base = session.base.copy()
    strip_alpha(base)
    regions = session.container.get_erase_regions()
    if regions:
        base = erase_pixels(base, regions)
        logger.debug("Applied %d erase regions", len(regions))
    layers[LAYER_BASE] = base

    if config.render_emissive and features is not None and features.emissive:
        for name, overlay_name in _EMISSIVE_LAYERS.items():
            if name in layers:
                layers[overlay_name] = apply_emissive_palette(layers[name], session.palette)
    return layers


def _validate_features(features: FeatureModel) -> None:
    try:
        to_feature_model(from_feature_model(features))
    except (DecodeError, TypeError, ValueError) as exc:
        raise EncodeError(
            f"Feature model cannot be saved: {exc}",
            user_message="Skin features contain values that cannot be saved",
        ) from exc


def _apply_custom_entries(container: Container, entries: Dict[str, bytes]) -> None:
    reserved = sorted(set(entries) & RESERVED_KEYS)
    if reserved:
        raise InvalidArgumentError(f"Custom entries cannot use reserved keys: {', '.join(reserved)}.")
    for key in list(container.custom_entries()):
        container.remove(key)
    for key, value in entries.items():
        container.set(key, value)


def recompose_for_save(
    session: SkinSession,
    edit: Optional[SkinEdit] = None,
    config: Optional[Config] = None,
) -> bytes:
    """Apply ``edit`` to the session and encode the resulting skin.

    The session is updated to the saved state.
    """

    config = config or Config()
    edit = edit or SkinEdit()
    base = (edit.base if edit.base is not None else session.base).copy()
    features = edit.features if edit.features is not None else session.features
    stored_wing, stored_cape = from_container(session.container)
    wing_image = edit.wing_image if edit.wing_image is not None else stored_wing
    cape_image = edit.cape_image if edit.cape_image is not None else stored_cape
    palette = edit.palette if edit.palette is not None else session.palette
    if edit.erase_regions is not None:
        regions = list(edit.erase_regions)
    else:
        regions = session.container.get_erase_regions() or []

    source = session.container.copy()
    if edit.custom_entries is not None:
        _apply_custom_entries(source, edit.custom_entries)

    if features is not None:
        available = to_container(features, wing_image, cape_image, base=source)
        features = repair_features(features, available, palette)
        container = to_container(features, wing_image, cape_image, base=source)
    else:
        container = source
    container.set_erase_regions(regions)
    check_consistency(features, container, palette)

    if features is not None:
        _validate_features(features)
        write_raw_features(base, from_feature_model(features), features.data_version)
        if features.emissive:
            write_emissive_palette(base, palette)

    if container.is_empty() and not can_host_container(base):
        logger.debug("Skipping empty container for %dx%d image", base.shape[1], base.shape[0])
    else:
        write_container(container, base)
    if container.is_empty() and config.strip_empty_container_alpha:
        strip_alpha(base)
        logger.info("Container is empty; stripped hosting alpha")

    data = encode_image(base, config.image_format)
    session.base = base
    session.container = container
    session.features = features
    session.palette = palette
    return data


def decompose_skin(skin_bytes: bytes, config: Optional[Config] = None) -> Dict[str, np.ndarray]:
    """Open ``skin_bytes`` and return its render layers."""

    return decompose_for_render(open_session(skin_bytes, config), config)


def recompose_skin(skin_bytes: bytes, edit: SkinEdit, config: Optional[Config] = None) -> bytes:
    """Open ``skin_bytes``, apply ``edit`` and return the new skin bytes."""

    return recompose_for_save(open_session(skin_bytes, config), edit, config)
