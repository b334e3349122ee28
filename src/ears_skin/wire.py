"""JSON wire forms used by the web API and the CLI.

Byte blobs travel as base64 strings. The edit delta looks like::

    {
        "features": {...RawFeatures.to_dict()...},
        "wingImage": "<base64>",
        "capeImage": "<base64>",
        "eraseRegions": [{"x": 0, "y": 0, "width": 8, "height": 8}],
        "palette": [4294901760],
        "customEntries": {"note": "<base64>"}
    }

Every field is optional; missing fields keep the skin's current value.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from ears_skin.container.container import Container
from ears_skin.container.entries import b64decode, entry_from_wire, entry_to_wire
from ears_skin.container.erase import EraseRegion
from ears_skin.emissive.palette import EmissivePalette
from ears_skin.errors import DecodeError
from ears_skin.features.mapper import from_feature_model, palette_from_raw, to_feature_model
from ears_skin.features.model import FeatureModel
from ears_skin.features.raw import RawFeatures
from ears_skin.io.images import encode_image
from ears_skin.layers.session import SkinEdit


def parse_payload(text: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON object; an empty or missing payload is an empty object."""

    if not text:
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DecodeError("Payload must be a JSON object.")
    return payload


def features_to_wire(
    features: Optional[FeatureModel], palette: Optional[EmissivePalette] = None
) -> Optional[Dict[str, Any]]:
    if features is None:
        return None
    return from_feature_model(features, palette).to_dict()


def regions_from_wire(payload: Any) -> List[EraseRegion]:
    if not isinstance(payload, list):
        raise DecodeError("eraseRegions must be a list.")
    regions = []
    for item in payload:
        if not isinstance(item, dict):
            raise DecodeError("Each erase region must be an object.")
        regions.append(EraseRegion.from_dict(item))
    return regions


def edit_from_wire(payload: Mapping[str, Any], default_data_version: int = 1) -> SkinEdit:
    """Build a :class:`SkinEdit` from the JSON edit delta.

    A palette listed inside ``features.emissives.palette`` is used when no
    top-level ``palette`` is given.
    """

    edit = SkinEdit()
    raw_palette = None
    if payload.get("features") is not None:
        raw = RawFeatures.from_dict(payload["features"], default_data_version=default_data_version)
        edit.features = to_feature_model(raw)
        if raw.emissives.palette:
            raw_palette = raw.emissives.palette
    if payload.get("wingImage") is not None:
        edit.wing_image = b64decode(payload["wingImage"])
    if payload.get("capeImage") is not None:
        edit.cape_image = b64decode(payload["capeImage"])
    if payload.get("eraseRegions") is not None:
        edit.erase_regions = regions_from_wire(payload["eraseRegions"])
    if payload.get("palette") is not None:
        raw_palette = payload["palette"]
    if raw_palette is not None:
        if not isinstance(raw_palette, list) or not all(
            isinstance(value, int) and not isinstance(value, bool) for value in raw_palette
        ):
            raise DecodeError("palette must be a list of packed 0xFFRRGGBB integers.")
        edit.palette = palette_from_raw(raw_palette)
    if payload.get("customEntries") is not None:
        entries = payload["customEntries"]
        if not isinstance(entries, dict):
            raise DecodeError("customEntries must be an object of base64 strings.")
        edit.custom_entries = {str(key): b64decode(value) for key, value in entries.items()}
    return edit


def container_to_wire(container: Container) -> Dict[str, Any]:
    """Serialize every entry in its typed form, keyed by name."""

    typed = container.typed_entries()
    return {
        "version": container.version,
        "entries": {key: entry_to_wire(typed[key]) for key in container.keys()},
    }


def container_from_wire(payload: Mapping[str, Any]) -> Container:
    """Parse the output of :func:`container_to_wire`."""

    version = payload.get("version", 0)
    entries = payload.get("entries", {})
    if isinstance(version, bool) or not isinstance(version, int):
        raise DecodeError("Container version must be an integer.")
    if not isinstance(entries, dict):
        raise DecodeError("Container entries must be an object.")
    typed = {str(key): entry_from_wire(value) for key, value in entries.items()}
    return Container.from_typed_entries(typed, version=version)


def layers_to_wire(layers: Mapping[str, np.ndarray], image_format: str = "PNG") -> Dict[str, str]:
    return {
        name: base64.b64encode(encode_image(pixels, image_format)).decode("ascii")
        for name, pixels in layers.items()
    }
