"""
Region handling: bounding-box strings, named places, and map viewports.
"""

import logging
from typing import Any

import ee

from ..constants import (
    CITY_COORDS,
    COUNTRIES_DATASET,
    MAX_REGION_ZOOM,
    MODEL_REGIONS,
    REGION_KEYWORDS,
    US_CENTER,
    US_CENTER_ZOOM,
    US_COUNTIES_DATASET,
    US_STATES_DATASET,
    ZOOM_THRESHOLDS,
    ErrorMessages,
)
from .ee_client import EarthEngineClient

logger = logging.getLogger(__name__)


def parse_bbox(region: str) -> list[float] | None:
    """Parse "west,south,east,north". Returns None if not four numbers.

    Raises:
        ValueError: If four numbers are given but do not form a box
    """
    parts = [p.strip() for p in region.split(",")]
    if len(parts) != 4:
        return None
    try:
        west, south, east, north = (float(p) for p in parts)
    except ValueError:
        return None
    if west >= east or south >= north:
        raise ValueError(ErrorMessages.INVALID_BBOX)
    if min(west, east) < -180 or max(west, east) > 180 or south < -90 or north > 90:
        raise ValueError(ErrorMessages.INVALID_BBOX)
    return [west, south, east, north]


def region_from_names(names: list[str]) -> str | None:
    """Title-cased region keyword found in any of the names."""
    for name in names:
        lower = (name or "").lower()
        for keyword in REGION_KEYWORDS:
            if keyword in lower:
                return keyword.title()
    return None


def zoom_for_bounds(bbox: list[float]) -> int:
    west, south, east, north = bbox
    span = max(east - west, north - south)
    for threshold, zoom in ZOOM_THRESHOLDS:
        if span > threshold:
            return zoom
    return MAX_REGION_ZOOM


def view_for_bounds(bbox: list[float]) -> tuple[list[float], int]:
    """Center and zoom that frame a bounding box."""
    west, south, east, north = bbox
    center = [(west + east) / 2.0, (south + north) / 2.0]
    return center, zoom_for_bounds(bbox)


def city_view(region: str) -> tuple[list[float], int]:
    """Center and zoom from the city table, or the continental US view."""
    lower = region.lower()
    for city, (lon, lat, zoom) in CITY_COORDS.items():
        if city in lower:
            return [lon, lat], int(zoom)
    return list(US_CENTER), US_CENTER_ZOOM


def bounds_from_ring(coordinates: list) -> list[float]:
    """[west, south, east, north] from a GeoJSON polygon's coordinates."""
    ring = coordinates[0]
    lons = [c[0] for c in ring]
    lats = [c[1] for c in ring]
    return [min(lons), min(lats), max(lons), max(lats)]


async def resolve_region(client: EarthEngineClient, region: str) -> tuple[Any, str]:
    """Geometry for a bbox string or place name, plus where it came from.

    Lookup order: bbox string, US state, US county, built-in model areas,
    country name.

    Raises:
        ValueError: If the region matches nothing
    """
    await client.ensure()

    bbox = parse_bbox(region)
    if bbox is not None:
        return ee.Geometry.Rectangle(bbox), "bbox"

    name = region.strip()
    for dataset in (US_STATES_DATASET, US_COUNTIES_DATASET):
        features = ee.FeatureCollection(dataset).filter(ee.Filter.eq("NAME", name.title()))
        if await client.get_info(features.size()) > 0:
            return features.geometry(), dataset

    model_bbox = MODEL_REGIONS.get(name.lower())
    if model_bbox is not None:
        return ee.Geometry.Rectangle(model_bbox), "builtin"

    countries = ee.FeatureCollection(COUNTRIES_DATASET).filter(
        ee.Filter.eq("country_na", name.title())
    )
    if await client.get_info(countries.size()) > 0:
        return countries.geometry(), COUNTRIES_DATASET

    raise ValueError(ErrorMessages.REGION_NOT_FOUND.format(region))


async def region_bounds(client: EarthEngineClient, region: str) -> list[float]:
    """Bounding box of a region, without a server round trip for bbox strings."""
    bbox = parse_bbox(region)
    if bbox is not None:
        return bbox
    geometry, _ = await resolve_region(client, region)
    info = await client.get_info(geometry.bounds(1))
    return bounds_from_ring(info["coordinates"])


async def map_view(client: EarthEngineClient, region: str) -> tuple[list[float], int]:
    """Center and zoom for a map of a named region.

    Falls back to the city table when the region cannot be resolved.
    """
    try:
        bbox = await region_bounds(client, region)
    except Exception as e:
        logger.warning(f"Could not get bounds for '{region}', using lookup table: {e}")
        return city_view(region)
    return view_for_bounds(bbox)
