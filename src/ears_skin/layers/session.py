"""Per-skin editing state threaded through render and save calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from ears_skin.container.container import Container
from ears_skin.container.erase import EraseRegion
from ears_skin.emissive.palette import EmissivePalette
from ears_skin.features.model import FeatureModel


@dataclass
class SkinSession:
    """One skin opened for a decode, edit, encode cycle.

    ``features`` is None for skins without a feature block. Sessions are
    created by :func:`ears_skin.layers.decomposer.open_session`; every render
    and save pass re-runs the consistency repair on them.
    """

    base: np.ndarray
    container: Container
    features: Optional[FeatureModel]
    palette: Optional[EmissivePalette]


@dataclass
class SkinEdit:
    """Changes to apply on save; None fields keep the session's value.

    ``custom_entries`` replaces every non-reserved container entry when given.
    """

    features: Optional[FeatureModel] = None
    base: Optional[np.ndarray] = None
    wing_image: Optional[bytes] = None
    cape_image: Optional[bytes] = None
    erase_regions: Optional[List[EraseRegion]] = None
    palette: Optional[EmissivePalette] = None
    custom_entries: Optional[Dict[str, bytes]] = None
