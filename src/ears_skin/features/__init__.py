"""Feature model, flat records and their conversions."""

from ears_skin.features.image_codec import parse_raw_features, write_raw_features
from ears_skin.features.mapper import (
    from_container,
    from_feature_model,
    palette_from_raw,
    palette_to_raw,
    to_container,
    to_feature_model,
)
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
from ears_skin.features.raw import RawFeatures

__all__ = [
    "EarAnchor",
    "EarData",
    "EarMode",
    "FeatureModel",
    "RawFeatures",
    "SnoutData",
    "TailData",
    "TailMode",
    "WingData",
    "WingMode",
    "from_container",
    "from_feature_model",
    "palette_from_raw",
    "palette_to_raw",
    "parse_raw_features",
    "to_container",
    "to_feature_model",
    "write_raw_features",
]
