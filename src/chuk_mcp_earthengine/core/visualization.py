"""
Visualization parameter defaults for map layers.

The dataset family drives the defaults for multi-band layers. It comes
from the caller when given, otherwise from the dataset id recorded with
the composite, and only as a last resort from the key's spelling.
"""

import logging
from enum import Enum

from ..constants import DATASET_FAMILIES, DEFAULT_RGB_BANDS, INDEX_BANDS, INDEX_PALETTE

logger = logging.getLogger(__name__)


class DatasetFamily(str, Enum):
    SENTINEL2 = "sentinel2-sr"
    LANDSAT8 = "landsat8"
    LANDSAT9 = "landsat9"
    MODIS = "modis"
    UNKNOWN = "unknown"


_KEY_HINTS: list[tuple[tuple[str, ...], DatasetFamily]] = [
    (("sentinel2", "s2", "copernicus/s2"), DatasetFamily.SENTINEL2),
    (("landsat8", "l8", "landsat/lc08"), DatasetFamily.LANDSAT8),
    (("landsat9", "l9", "landsat/lc09"), DatasetFamily.LANDSAT9),
    (("modis",), DatasetFamily.MODIS),
]


def family_from_dataset_id(dataset_id: str) -> DatasetFamily:
    """Family for an Earth Engine dataset id, UNKNOWN if unlisted."""
    upper = dataset_id.upper()
    for prefix, family in DATASET_FAMILIES.items():
        if upper.startswith(prefix.upper()):
            return DatasetFamily(family)
    return DatasetFamily.UNKNOWN


def family_from_key(key: str | None) -> DatasetFamily:
    """Guess a family from the spelling of a key. Defaults to Sentinel-2."""
    lower = (key or "").lower()
    for hints, family in _KEY_HINTS:
        if any(hint in lower for hint in hints):
            return family
    return DatasetFamily.SENTINEL2


def resolve_family(
    explicit: str | DatasetFamily | None = None,
    dataset_id: str | None = None,
    key: str | None = None,
) -> DatasetFamily:
    """Pick the dataset family: explicit value, then dataset id, then key."""
    if explicit:
        try:
            return DatasetFamily(explicit)
        except ValueError:
            valid = ", ".join(f.value for f in DatasetFamily)
            raise ValueError(f"Invalid dataset type '{explicit}'. Available: {valid}") from None
    if dataset_id:
        return family_from_dataset_id(dataset_id)
    family = family_from_key(key)
    logger.debug(f"Dataset family for '{key}' guessed from key: {family.value}")
    return family


def is_index(bands: list[str]) -> bool:
    return len(bands) == 1 or any(b.lower() in INDEX_BANDS for b in bands)


def normalize_vis_params(
    vis_params: dict | None,
    bands: list[str],
    family: DatasetFamily,
) -> dict:
    """Fill in or clamp min/max/gamma/palette for a layer.

    A value counts as missing only when it is None, so an explicit 0 is kept.
    """
    vis = {k: v for k, v in (vis_params or {}).items() if v is not None}
    vmin = vis.get("min")
    vmax = vis.get("max")

    if is_index(bands):
        if vmin is None or vmin > 0:
            vis["min"] = -0.2
        if vmax is None or vmax > 1:
            vis["max"] = 0.8
        vis.setdefault("palette", list(INDEX_PALETTE))
    elif family == DatasetFamily.SENTINEL2:
        if vmin is None or vmin < 0:
            vis["min"] = 0
        if vmax is not None and vmax > 100:
            # Raw digital numbers (0-10000), leave as given
            pass
        elif vmax is None or vmax > 0.3:
            vis["max"] = 0.3
        vis.setdefault("gamma", 1.4)
    elif family in (DatasetFamily.LANDSAT8, DatasetFamily.LANDSAT9):
        if vmin is None or vmin < 0:
            vis["min"] = 0
        if vmax is None or vmax > 1:
            vis["max"] = 0.4
        vis.setdefault("gamma", 1.2)
    elif family == DatasetFamily.MODIS:
        vis.setdefault("min", 0)
        vis.setdefault("max", 0.3)
    else:
        vis.setdefault("min", 0)
        vis.setdefault("max", 0.3)
        vis.setdefault("gamma", 1.4)

    return vis


def infer_bands(
    key: str | None,
    layer_name: str | None,
    default_bands: list[str] | None = None,
) -> list[str]:
    """Index band named in the key or layer name, else the default bands."""
    key_lower = (key or "").lower()
    name_lower = (layer_name or "").lower()
    for index in INDEX_BANDS:
        if index in key_lower or index in name_lower:
            return [index.upper()]
    return list(default_bands or DEFAULT_RGB_BANDS)
