"""
Earth Engine manager: the operations behind the data, process, export and
system tools.

Earth Engine objects are built lazily on the client and evaluated at
Google; only the evaluation calls go through EarthEngineClient.run(), so
they execute in worker threads. Derived images are cached in the
CompositeCache under generated keys that later tool calls refer to.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import ee

from ..constants import (
    BOUNDARY_DATASETS,
    DATASET_CATALOG,
    DEFAULT_CLOUD_COVER,
    DEFAULT_DATASET,
    DEFAULT_END_DATE,
    DEFAULT_EXPORT_SCALE,
    DEFAULT_PROCESS_SCALE,
    DEFAULT_RGB_BANDS,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_START_DATE,
    DEFAULT_THUMB_DIMENSIONS,
    DEFAULT_YEAR_END,
    DEFAULT_YEAR_START,
    EXPORT_DESTINATIONS,
    EXPORT_DRIVE_FOLDER,
    INDEX_TYPES,
    LANDSAT_CLOUD_BIT,
    LANDSAT_CLOUD_PROPERTY,
    LANDSAT_FILL_BIT,
    LANDSAT_QA_BAND,
    LANDSAT_RGB_BANDS,
    LANDSAT_SHADOW_BIT,
    MASK_TYPES,
    MAX_PIXELS,
    RESAMPLE_CRS,
    RESAMPLE_METHOD,
    S2_CIRRUS_BIT,
    S2_CLOUD_BIT,
    S2_CLOUD_PROPERTY,
    S2_OPTICAL_BANDS,
    S2_QA_BAND,
    S2_SCALE_FACTOR,
    S2_SCL_BAND,
    S2_SHADOW_CLASS,
    S2_VALID_CLASSES,
    SPECTRAL_INDICES,
    SRTM_DATASET,
    TERRAIN_PRODUCTS,
    TILE_TTL_SECONDS,
    WATER_OCCURRENCE_DATASET,
    WATER_OCCURRENCE_THRESHOLD,
    EntryKind,
    EnvVar,
    ErrorMessages,
    find_dataset,
)
from .composite_cache import CompositeCache, CompositeNotFoundError
from .ee_client import EarthEngineClient
from .regions import bounds_from_ring, resolve_region
from .visualization import (
    DatasetFamily,
    infer_bands,
    normalize_vis_params,
    resolve_family,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolvedImage:
    """An image looked up by key or loaded from a dataset id."""

    ref: str
    image: Any
    dataset_id: str | None = None
    bands: list[str] = field(default_factory=list)
    vis_params: dict = field(default_factory=dict)
    from_cache: bool = True


def validate_date(value: str) -> str:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValueError(ErrorMessages.INVALID_DATE.format(value)) from None
    return value


def validate_date_range(start: str, end: str) -> tuple[str, str]:
    validate_date(start)
    validate_date(end)
    if start >= end:
        raise ValueError(ErrorMessages.INVALID_DATE_RANGE.format(start, end))
    return start, end


def is_sentinel2(dataset_id: str) -> bool:
    upper = dataset_id.upper()
    return "S2" in upper or "SENTINEL" in upper


def is_landsat(dataset_id: str) -> bool:
    return "LANDSAT" in dataset_id.upper()


def mask_and_scale_s2(image: Any) -> Any:
    """Drop opaque-cloud pixels (QA60 bit 10) and scale to reflectance."""
    qa = image.select(S2_QA_BAND)
    mask = qa.bitwiseAnd(1 << S2_CLOUD_BIT).eq(0)
    return image.updateMask(mask).divide(S2_SCALE_FACTOR)


def default_rgb(bands: list[str], family: DatasetFamily) -> list[str]:
    """True-color bands for a family, limited to the bands present when known."""
    if family in (DatasetFamily.LANDSAT8, DatasetFamily.LANDSAT9):
        rgb = list(LANDSAT_RGB_BANDS)
    else:
        rgb = list(DEFAULT_RGB_BANDS)
    if not bands:
        return rgb
    return [b for b in rgb if b in bands] or bands[:3]


def dataset_summary(entry: dict) -> dict:
    return {
        "id": entry["id"],
        "name": entry["name"],
        "type": entry["type"],
        "resolution_m": entry["resolution_m"],
        "temporal": entry["temporal"],
        "bands": entry["bands"],
        "llm_guidance": entry["llm_guidance"],
    }


class EarthEngineManager:
    """Central manager for Earth Engine operations."""

    def __init__(
        self,
        client: EarthEngineClient,
        cache: CompositeCache,
        export_bucket: str | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.export_bucket = export_bucket or os.environ.get(EnvVar.EXPORT_BUCKET) or None

    @property
    def store(self):
        return self.cache.store

    # ------------------------------------------------------------------
    # Keys and image resolution
    # ------------------------------------------------------------------

    def new_key(self, prefix: str) -> str:
        """Time-based key, bumped until it is unused."""
        stamp = int(time.time() * 1000)
        key = f"{prefix}_{stamp}"
        while self.cache.get_metadata(key) is not None:
            stamp += 1
            key = f"{prefix}_{stamp}"
        return key

    async def load_dataset(self, dataset_id: str, start: str | None = None, end: str | None = None):
        """Median image of a dataset over a date window.

        Sentinel-2 is cloud-masked and scaled to reflectance. Collections
        default to summer 2024 (Sentinel-2 and Landsat) or calendar 2024.

        Raises:
            ValueError: If a supplied date is malformed, or the window is
                empty once defaults are applied
        """
        for value in (start, end):
            if value:
                validate_date(value)
        await self.client.ensure()

        entry = find_dataset(dataset_id)
        if entry is not None:
            asset_type = entry["type"]
        else:
            asset = await self.client.run(ee.data.getAsset, dataset_id)
            asset_type = "Image" if asset.get("type") == "IMAGE" else "ImageCollection"
        if asset_type == "Image":
            return ee.Image(dataset_id)

        if is_sentinel2(dataset_id) or is_landsat(dataset_id):
            start, end = start or DEFAULT_START_DATE, end or DEFAULT_END_DATE
        else:
            start, end = start or DEFAULT_YEAR_START, end or DEFAULT_YEAR_END
        validate_date_range(start, end)
        collection = ee.ImageCollection(dataset_id).filterDate(start, end)
        if is_sentinel2(dataset_id):
            collection = collection.map(mask_and_scale_s2)
        return collection.median()

    async def resolve_image(self, ref: str) -> ResolvedImage:
        """Image for a cached key, or for a dataset id (contains "/").

        Raises:
            CompositeNotFoundError: For any other unknown key
        """
        try:
            handle, entry = self.cache.require(ref)
        except CompositeNotFoundError:
            if "/" not in ref:
                raise
            logger.info(f"'{ref}' is not cached, loading it as a dataset id")
            image = await self.load_dataset(ref)
            return ResolvedImage(ref=ref, image=image, dataset_id=ref, from_cache=False)
        return ResolvedImage(
            ref=ref,
            image=handle,
            dataset_id=entry.dataset_id if entry else None,
            bands=list(entry.bands) if entry else [],
            vis_params=dict(entry.vis_params) if entry else {},
        )

    async def _source(self, operation: str, input: str | None, dataset_id: str | None):
        ref = input or dataset_id
        if not ref:
            raise ValueError(ErrorMessages.MISSING_PARAMETER.format("input", operation))
        return await self.resolve_image(ref)

    async def _geometry(self, region: str | None):
        if not region:
            return None
        geometry, _ = await resolve_region(self.client, region)
        return geometry

    def store_result(
        self,
        prefix: str,
        image: Any,
        *,
        kind: str = EntryKind.COMPOSITE,
        dataset_id: str | None = None,
        region: str | None = None,
        start: str | None = None,
        end: str | None = None,
        bands: list[str] | None = None,
        vis_params: dict | None = None,
    ) -> str:
        key = self.new_key(prefix)
        metadata: dict[str, Any] = {
            "kind": kind,
            "dataset_id": dataset_id,
            "region": region,
            "bands": bands or [],
            "vis_params": vis_params or {},
        }
        if start and end:
            metadata["date_range"] = {"start": start, "end": end}
        self.cache.add(key, image, metadata)
        return key

    # ------------------------------------------------------------------
    # Data discovery
    # ------------------------------------------------------------------

    def search_datasets(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[dict]:
        """Rank catalog datasets by how many query terms they mention."""
        terms = [t for t in (query or "").lower().split() if t]
        scored = []
        for entry in DATASET_CATALOG:
            haystack = " ".join([entry["id"], entry["name"], *entry["keywords"]]).lower()
            score = sum(1 for t in terms if t in haystack) if terms else 1
            if score:
                scored.append((score, entry))
        scored.sort(key=lambda item: -item[0])
        return [dataset_summary(entry) for _, entry in scored[: max(1, int(limit))]]

    async def filter_collection(
        self,
        dataset_id: str,
        start_date: str,
        end_date: str,
        region: str | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
        cloud_cover: float = DEFAULT_CLOUD_COVER,
    ) -> dict:
        """Filter a collection, report matches, and cache its median."""
        validate_date_range(start_date, end_date)
        await self.client.ensure()

        collection = ee.ImageCollection(dataset_id).filterDate(start_date, end_date)
        geometry = await self._geometry(region)
        if geometry is not None:
            collection = collection.filterBounds(geometry)
        if is_sentinel2(dataset_id):
            collection = collection.filter(ee.Filter.lt(S2_CLOUD_PROPERTY, cloud_cover))
        elif is_landsat(dataset_id):
            collection = collection.filter(ee.Filter.lt(LANDSAT_CLOUD_PROPERTY, cloud_cover))

        summary = await self.client.get_info(
            ee.Dictionary(
                {
                    "count": collection.size(),
                    "ids": collection.limit(int(limit)).aggregate_array("system:index"),
                }
            )
        )

        if is_sentinel2(dataset_id):
            collection = collection.map(mask_and_scale_s2)
        median = collection.median()
        if geometry is not None:
            median = median.clip(geometry)
        key = self.store_result(
            "filtered",
            median,
            dataset_id=dataset_id,
            region=region,
            start=start_date,
            end=end_date,
        )
        return {
            "dataset_id": dataset_id,
            "start_date": start_date,
            "end_date": end_date,
            "region": region,
            "image_count": int(summary["count"]),
            "image_ids": list(summary["ids"]),
            "composite_key": key,
        }

    async def get_geometry(self, place_name: str) -> dict:
        geometry, source = await resolve_region(self.client, place_name)
        info = await self.client.get_info(
            ee.Dictionary(
                {
                    "bounds": geometry.bounds(1).coordinates(),
                    "centroid": geometry.centroid(1).coordinates(),
                    "area": geometry.area(1),
                }
            )
        )
        return {
            "place_name": place_name,
            "source": source,
            "bbox": bounds_from_ring(info["bounds"]),
            "centroid": [float(c) for c in info["centroid"]],
            "area_km2": round(float(info["area"]) / 1e6, 2),
        }

    async def get_asset_info(self, dataset_id: str) -> dict:
        await self.client.ensure()
        asset = await self.client.run(ee.data.getAsset, dataset_id)
        asset_type = asset.get("type", "UNKNOWN")

        bands: list[str] = []
        if asset_type == "IMAGE_COLLECTION":
            bands = await self.client.get_info(ee.ImageCollection(dataset_id).first().bandNames())
        elif asset_type == "IMAGE":
            bands = await self.client.get_info(ee.Image(dataset_id).bandNames())

        properties = dict(asset.get("properties") or {})
        for name in ("startTime", "endTime", "updateTime"):
            if asset.get(name):
                properties[name] = asset[name]

        entry = find_dataset(dataset_id)
        return {
            "dataset_id": dataset_id,
            "asset_type": asset_type,
            "bands": list(bands or []),
            "properties": properties,
            "catalog": dataset_summary(entry) if entry else None,
        }

    def list_boundaries(self) -> list[dict]:
        return [dict(d) for d in BOUNDARY_DATASETS]

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def create_composite(
        self,
        dataset_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        region: str | None = None,
        cloud_cover: float = DEFAULT_CLOUD_COVER,
    ) -> dict:
        """Cloud-masked median composite, cached under a composite_ key."""
        dataset_id = dataset_id or DEFAULT_DATASET
        start_date = start_date or DEFAULT_START_DATE
        end_date = end_date or DEFAULT_END_DATE
        validate_date_range(start_date, end_date)
        await self.client.ensure()

        collection = ee.ImageCollection(dataset_id).filterDate(start_date, end_date)
        geometry = await self._geometry(region)
        if geometry is not None:
            collection = collection.filterBounds(geometry)

        family = resolve_family(dataset_id=dataset_id)
        if family == DatasetFamily.SENTINEL2:
            collection = collection.filter(ee.Filter.lt(S2_CLOUD_PROPERTY, cloud_cover)).map(
                lambda img: mask_and_scale_s2(img).select(S2_OPTICAL_BANDS)
            )
        elif family in (DatasetFamily.LANDSAT8, DatasetFamily.LANDSAT9):
            collection = collection.filter(
                ee.Filter.lt(LANDSAT_CLOUD_PROPERTY, cloud_cover)
            ).map(lambda img: img.updateMask(self._qa_mask(img, "clouds", family)))

        image = collection.median()
        if geometry is not None:
            image = image.clip(geometry)

        count, bands = await self.client.get_info(ee.List([collection.size(), image.bandNames()]))
        rgb = default_rgb(bands, family)
        vis = normalize_vis_params({"bands": rgb}, rgb, family)
        key = self.store_result(
            "composite",
            image,
            dataset_id=dataset_id,
            region=region,
            start=start_date,
            end=end_date,
            bands=bands,
            vis_params=vis,
        )
        return {
            "key": key,
            "source": dataset_id,
            "dataset_id": dataset_id,
            "region": region,
            "bands": bands,
            "details": {
                "images": count,
                "start_date": start_date,
                "end_date": end_date,
                "cloud_cover_max": cloud_cover,
            },
        }

    async def compute_index(
        self,
        index_type: str,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
        bands: list[str] | None = None,
    ) -> dict:
        """Spectral index as a single band named after the index."""
        if index_type not in INDEX_TYPES:
            raise ValueError(ErrorMessages.INVALID_INDEX.format(index_type, ", ".join(INDEX_TYPES)))
        if not (input or dataset_id):
            dataset_id = DEFAULT_DATASET
        source = await self._source("index", input, dataset_id)
        image = source.image
        family = resolve_family(dataset_id=source.dataset_id, key=source.ref)
        landsat = family in (DatasetFamily.LANDSAT8, DatasetFamily.LANDSAT9)

        if index_type == "custom":
            if not bands or len(bands) != 2:
                raise ValueError(ErrorMessages.CUSTOM_INDEX_BANDS.format(bands or []))
            band_name = "CUSTOM"
            result = image.normalizedDifference(list(bands)).rename(band_name)
        else:
            spec = SPECTRAL_INDICES[index_type]
            band_name = index_type
            if "expression" in spec:
                mapping = spec["landsat"] if landsat else spec["bands"]
                result = image.expression(
                    spec["expression"],
                    {name: image.select(band) for name, band in mapping.items()},
                ).rename(band_name)
            else:
                pair = spec["landsat"] if landsat else spec["bands"]
                result = image.normalizedDifference(pair).rename(band_name)

        geometry = await self._geometry(region)
        if geometry is not None:
            result = result.clip(geometry)

        vis = normalize_vis_params({}, [band_name], family)
        key = self.store_result(
            band_name.lower(),
            result,
            kind=EntryKind.ANALYSIS,
            dataset_id=source.dataset_id,
            region=region,
            bands=[band_name],
            vis_params=vis,
        )
        return {
            "key": key,
            "source": source.ref,
            "dataset_id": source.dataset_id,
            "region": region,
            "bands": [band_name],
            "details": {"index": index_type, "vis_params": vis},
        }

    async def clip(self, input: str | None, region: str | None, dataset_id: str | None = None):
        if not region:
            raise ValueError(ErrorMessages.MISSING_PARAMETER.format("region", "clip"))
        source = await self._source("clip", input, dataset_id)
        geometry = await self._geometry(region)
        key = self.store_result(
            "clipped",
            source.image.clip(geometry),
            dataset_id=source.dataset_id,
            region=region,
            bands=source.bands,
            vis_params=source.vis_params,
        )
        return {
            "key": key,
            "source": source.ref,
            "dataset_id": source.dataset_id,
            "region": region,
            "bands": source.bands,
        }

    def _qa_mask(self, image: Any, mask_type: str, family: DatasetFamily):
        """Per-scene mask from the QA bands of a raw Sentinel-2 or Landsat image."""
        if family == DatasetFamily.SENTINEL2:
            if mask_type == "clouds":
                qa = image.select(S2_QA_BAND)
                return qa.bitwiseAnd(1 << S2_CLOUD_BIT).eq(0).And(
                    qa.bitwiseAnd(1 << S2_CIRRUS_BIT).eq(0)
                )
            scl = image.select(S2_SCL_BAND)
            if mask_type == "shadow":
                return scl.neq(S2_SHADOW_CLASS)
            return scl.remap(S2_VALID_CLASSES, [1] * len(S2_VALID_CLASSES), 0)
        qa = image.select(LANDSAT_QA_BAND)
        bit = {
            "clouds": LANDSAT_CLOUD_BIT,
            "shadow": LANDSAT_SHADOW_BIT,
            "quality": LANDSAT_FILL_BIT,
        }[mask_type]
        return qa.bitwiseAnd(1 << bit).eq(0)

    async def apply_mask(
        self,
        mask_type: str,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
    ) -> dict:
        """Mask clouds, water, bad-quality pixels or shadows.

        Water uses JRC surface water occurrence and works on any image.
        The other masks read per-scene QA bands, so on a Sentinel-2 or
        Landsat dataset id they rebuild the median scene by scene; on a
        cached image only the quality mask (pixels valid in every band)
        applies.
        """
        if mask_type not in MASK_TYPES:
            raise ValueError(ErrorMessages.INVALID_MASK.format(mask_type, ", ".join(MASK_TYPES)))
        source = await self._source("mask", input, dataset_id)
        family = resolve_family(dataset_id=source.dataset_id, key=source.ref)
        scene_level = not source.from_cache and family in (
            DatasetFamily.SENTINEL2,
            DatasetFamily.LANDSAT8,
            DatasetFamily.LANDSAT9,
        )

        geometry = await self._geometry(region)
        if mask_type == "water":
            water = (
                ee.Image(WATER_OCCURRENCE_DATASET)
                .select("occurrence")
                .unmask(0)
                .gt(WATER_OCCURRENCE_THRESHOLD)
            )
            masked = source.image.updateMask(water.Not())
        elif scene_level:
            collection = ee.ImageCollection(source.dataset_id).filterDate(
                DEFAULT_START_DATE, DEFAULT_END_DATE
            )
            if geometry is not None:
                collection = collection.filterBounds(geometry)
            scale = family == DatasetFamily.SENTINEL2

            def _mask_scene(img):
                out = img.updateMask(self._qa_mask(img, mask_type, family))
                if scale:
                    out = out.select(S2_OPTICAL_BANDS).divide(S2_SCALE_FACTOR)
                return out

            masked = collection.map(_mask_scene).median()
        elif mask_type == "quality":
            masked = source.image.updateMask(source.image.mask().reduce(ee.Reducer.min()))
        else:
            raise ValueError(
                f"The {mask_type} mask needs a Sentinel-2 or Landsat dataset id; "
                f"'{source.ref}' is already composited"
            )

        if geometry is not None:
            masked = masked.clip(geometry)
        key = self.store_result(
            "masked",
            masked,
            dataset_id=source.dataset_id,
            region=region,
            bands=source.bands,
            vis_params=source.vis_params,
        )
        return {
            "key": key,
            "source": source.ref,
            "dataset_id": source.dataset_id,
            "region": region,
            "bands": source.bands,
            "details": {"mask": mask_type},
        }

    async def analyze(
        self,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
        scale: float = DEFAULT_PROCESS_SCALE,
    ) -> dict:
        """Mean, min, max and standard deviation per band over a region."""
        if scale <= 0:
            raise ValueError(ErrorMessages.INVALID_SCALE.format(scale))
        source = await self._source("analyze", input, dataset_id)
        geometry = await self._geometry(region)
        if geometry is None:
            geometry = source.image.geometry()
        reducer = (
            ee.Reducer.mean()
            .combine(reducer2=ee.Reducer.minMax(), sharedInputs=True)
            .combine(reducer2=ee.Reducer.stdDev(), sharedInputs=True)
        )
        stats = await self.client.get_info(
            source.image.reduceRegion(
                reducer=reducer,
                geometry=geometry,
                scale=scale,
                maxPixels=MAX_PIXELS,
                bestEffort=True,
            )
        )
        return {"key": source.ref, "region": region, "scale": scale, "statistics": stats or {}}

    async def terrain(self, region: str | None = None) -> dict:
        """SRTM elevation, slope, aspect and hillshade as one image."""
        await self.client.ensure()
        products = ee.Terrain.products(ee.Image(SRTM_DATASET)).select(TERRAIN_PRODUCTS)
        geometry = await self._geometry(region)
        if geometry is not None:
            products = products.clip(geometry)
        # Grey hillshade; three bands so the single-band index defaults do not apply
        vis = {"bands": ["hillshade"] * 3, "min": 0, "max": 255}
        key = self.store_result(
            "terrain",
            products,
            kind=EntryKind.ANALYSIS,
            dataset_id=SRTM_DATASET,
            region=region,
            bands=list(TERRAIN_PRODUCTS),
            vis_params=vis,
        )
        return {
            "key": key,
            "source": SRTM_DATASET,
            "dataset_id": SRTM_DATASET,
            "region": region,
            "bands": list(TERRAIN_PRODUCTS),
        }

    async def resample(
        self,
        input: str | None = None,
        dataset_id: str | None = None,
        scale: float = DEFAULT_PROCESS_SCALE,
    ) -> dict:
        if scale <= 0:
            raise ValueError(ErrorMessages.INVALID_SCALE.format(scale))
        source = await self._source("resample", input, dataset_id)
        resampled = source.image.resample(RESAMPLE_METHOD).reproject(crs=RESAMPLE_CRS, scale=scale)
        key = self.store_result(
            "resampled",
            resampled,
            dataset_id=source.dataset_id,
            bands=source.bands,
            vis_params=source.vis_params,
        )
        return {
            "key": key,
            "source": source.ref,
            "dataset_id": source.dataset_id,
            "bands": source.bands,
            "details": {"scale": scale, "method": RESAMPLE_METHOD, "crs": RESAMPLE_CRS},
        }

    # ------------------------------------------------------------------
    # Export and visualization
    # ------------------------------------------------------------------

    def visualization_for(self, source: ResolvedImage, bands: list[str] | None = None):
        """Bands and normalized vis params for rendering a resolved image."""
        family = resolve_family(dataset_id=source.dataset_id, key=source.ref)
        if not bands:
            if source.vis_params.get("bands"):
                bands = list(source.vis_params["bands"])
            elif len(source.bands) == 1:
                bands = list(source.bands)
            else:
                bands = infer_bands(source.ref, None, default_rgb(source.bands, family))
        vis = {k: v for k, v in source.vis_params.items() if k != "bands"}
        vis = normalize_vis_params(vis, bands, family)
        return list(bands), vis

    async def start_export(
        self,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
        destination: str = "auto",
        scale: float = DEFAULT_EXPORT_SCALE,
    ) -> dict:
        """Start a GeoTIFF batch export to Cloud Storage or Drive."""
        destination = destination or "auto"
        if destination not in EXPORT_DESTINATIONS:
            raise ValueError(
                ErrorMessages.INVALID_DESTINATION.format(destination, ", ".join(EXPORT_DESTINATIONS))
            )
        if destination == "auto":
            destination = "gcs" if self.export_bucket else "drive"
        if destination == "gcs" and not self.export_bucket:
            raise ValueError(
                f"Export to gcs needs a bucket: set {EnvVar.EXPORT_BUCKET} or use destination=drive"
            )
        if not region:
            raise ValueError(ErrorMessages.MISSING_PARAMETER.format("region", "export"))
        if scale <= 0:
            raise ValueError(ErrorMessages.INVALID_SCALE.format(scale))

        source = await self._source("export", input, dataset_id)
        geometry = await self._geometry(region)
        description = self.new_key("export")

        if destination == "gcs":
            location = self.export_bucket
            task = ee.batch.Export.image.toCloudStorage(
                image=source.image,
                description=description,
                bucket=location,
                fileNamePrefix=description,
                region=geometry,
                scale=scale,
                maxPixels=MAX_PIXELS,
                fileFormat="GeoTIFF",
            )
        else:
            location = EXPORT_DRIVE_FOLDER
            task = ee.batch.Export.image.toDrive(
                image=source.image,
                description=description,
                folder=location,
                fileNamePrefix=description,
                region=geometry,
                scale=scale,
                maxPixels=MAX_PIXELS,
                fileFormat="GeoTIFF",
            )
        await self.client.run(task.start)
        status = await self.client.run(task.status)
        return {
            "task_id": task.id,
            "description": description,
            "destination": destination,
            "location": location,
            "state": status.get("state", "UNKNOWN"),
        }

    async def thumbnail(
        self,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
        dimensions: int = DEFAULT_THUMB_DIMENSIONS,
    ) -> dict:
        source = await self._source("thumbnail", input, dataset_id)
        bands, vis = self.visualization_for(source)
        params: dict[str, Any] = {"dimensions": dimensions, "format": "png"}
        geometry = await self._geometry(region)
        if geometry is not None:
            params["region"] = geometry
        visualized = source.image.select(bands).visualize(**vis)
        url = await self.client.get_thumb_url(visualized, params)
        return {"key": source.ref, "url": url, "dimensions": dimensions}

    async def tiles(self, input: str | None = None, dataset_id: str | None = None) -> dict:
        source = await self._source("tiles", input, dataset_id)
        bands, vis = self.visualization_for(source)
        map_id, tile_url = await self.client.get_map(source.image.select(bands).visualize(**vis))
        return {
            "key": source.ref,
            "map_id": map_id,
            "tile_url": tile_url,
            "ttl_seconds": TILE_TTL_SECONDS,
            "vis_params": {**vis, "bands": bands},
        }

    async def task_status(self, task_id: str | None) -> dict:
        if not task_id:
            raise ValueError(ErrorMessages.NO_TASK_ID)
        statuses = await self.client.run(ee.data.getTaskStatus, task_id)
        status = statuses[0] if statuses else {}
        return {
            "task_id": task_id,
            "state": status.get("state", "UNKNOWN"),
            "description": status.get("description"),
            "error_message": status.get("error_message"),
            "destination_uris": list(status.get("destination_uris") or []),
        }

    async def download_url(
        self,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
        scale: float = DEFAULT_EXPORT_SCALE,
    ) -> dict:
        if not region:
            raise ValueError(ErrorMessages.MISSING_PARAMETER.format("region", "download"))
        if scale <= 0:
            raise ValueError(ErrorMessages.INVALID_SCALE.format(scale))
        source = await self._source("download", input, dataset_id)
        geometry = await self._geometry(region)
        url = await self.client.get_download_url(
            source.image, {"scale": scale, "region": geometry, "format": "GEO_TIFF"}
        )
        return {"key": source.ref, "url": url, "scale": scale}

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------

    async def auth_check(self, check_type: str = "status") -> dict:
        """Report credential state. Failures are reported, not raised."""
        details: dict[str, Any] = {}
        try:
            await self.client.ensure()
        except Exception as e:
            details["error"] = str(e)
            return {"initialized": False, "details": details}

        if check_type == "projects" and self.client.project_id:
            parent = f"projects/{self.client.project_id}/assets"
            try:
                listing = await self.client.run(ee.data.listAssets, {"parent": parent})
                details["assets"] = len(listing.get("assets", []))
                details["asset_root"] = parent
            except Exception as e:
                details["error"] = str(e)
        elif check_type == "permissions":
            try:
                details["compute"] = await self.client.get_info(ee.Number(1).add(1)) == 2
            except Exception as e:
                details["compute"] = False
                details["compute_error"] = str(e)
            try:
                await self.client.run(ee.data.getAsset, SRTM_DATASET)
                details["read_public_data"] = True
            except Exception as e:
                details["read_public_data"] = False
                details["read_error"] = str(e)
            details["export_bucket"] = self.export_bucket
        return {"initialized": True, "details": details}

    async def execute(self, code: str | None) -> Any:
        """Evaluate a serialized Earth Engine expression."""
        if not code:
            raise ValueError(ErrorMessages.NO_EXPRESSION)
        await self.client.ensure()
        return await self.client.get_info(ee.deserializer.fromJSON(code))

    def setup_status(self) -> dict[str, bool]:
        names = [
            EnvVar.GOOGLE_APPLICATION_CREDENTIALS_JSON,
            EnvVar.GOOGLE_APPLICATION_CREDENTIALS,
            EnvVar.GCP_PROJECT_ID,
            EnvVar.REDIS_URL,
            EnvVar.EXPORT_BUCKET,
            EnvVar.BASE_URL,
        ]
        return {name: bool(os.environ.get(name)) for name in names}

    async def load(
        self,
        dataset_id: str | None,
        start_date: str | None = None,
        end_date: str | None = None,
        region: str | None = None,
    ) -> dict:
        """Load an asset into the cache so other tools can refer to it."""
        if not dataset_id:
            raise ValueError(ErrorMessages.MISSING_PARAMETER.format("datasetId", "load"))
        image = await self.load_dataset(dataset_id, start_date, end_date)
        geometry = await self._geometry(region)
        if geometry is not None:
            image = image.clip(geometry)
        bands = await self.client.get_info(image.bandNames())
        family = resolve_family(dataset_id=dataset_id)
        rgb = default_rgb(bands, family)
        key = self.store_result(
            "loaded",
            image,
            dataset_id=dataset_id,
            region=region,
            start=start_date,
            end=end_date,
            bands=bands,
            vis_params=normalize_vis_params({"bands": rgb}, rgb, family),
        )
        return {
            "key": key,
            "source": dataset_id,
            "dataset_id": dataset_id,
            "region": region,
            "bands": bands,
        }

    async def health(self) -> dict:
        try:
            await self.client.ensure()
        except Exception as e:
            logger.warning(f"Health check: Earth Engine unavailable: {e}")
        return {
            "earth_engine": self.client.initialized,
            "store": await self.store.stats(),
        }
