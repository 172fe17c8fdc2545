"""
Interactive map sessions: render layers to tile URLs and keep the result.

A layer names its image with any of input/data/image/dataset/compositeKey,
or brings its own tileUrl. Layers whose key is unknown are skipped and
reported rather than replaced by a stand-in image.
"""

import logging
import os
import time
import uuid
from typing import Any

from ..constants import (
    BASEMAPS,
    DEFAULT_BASE_URL,
    DEFAULT_BASEMAP,
    DEFAULT_MAP_ZOOM,
    DEFAULT_REGION,
    US_CENTER,
    EnvVar,
    ErrorMessages,
    SuccessMessages,
)
from ..models.store import MapLayer, MapMetadata, MapSession
from .composite_cache import CompositeNotFoundError, utc_now_iso
from .ee_manager import EarthEngineManager, ResolvedImage, default_rgb
from .regions import map_view, region_from_names
from .visualization import infer_bands, normalize_vis_params, resolve_family

logger = logging.getLogger(__name__)

LAYER_INPUT_ALIASES = ("input", "data", "image", "dataset", "compositeKey")
VIS_KEYS = ("min", "max", "gamma", "palette", "opacity", "gain", "bias")

MAP_FEATURES = [
    "Zoom in/out with mouse wheel or +/- buttons",
    "Pan by dragging the map",
    "Switch between layers (if multiple)",
    "Toggle basemap styles",
    "Full-screen mode available",
]


def layer_input(layer: dict) -> str | None:
    for alias in LAYER_INPUT_ALIASES:
        if layer.get(alias):
            return layer[alias]
    return None


def base_url() -> str:
    return (
        os.environ.get(EnvVar.NEXT_PUBLIC_BASE_URL)
        or os.environ.get(EnvVar.BASE_URL)
        or DEFAULT_BASE_URL
    ).rstrip("/")


def map_url(map_id: str) -> str:
    return f"{base_url()}/map/{map_id}"


def new_map_id() -> str:
    return f"map_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def _vis_subset(params: dict | None) -> dict:
    return {k: v for k, v in (params or {}).items() if k in VIS_KEYS and v is not None}


class MapService:
    """Creates, lists and deletes map sessions."""

    def __init__(self, manager: EarthEngineManager) -> None:
        self.manager = manager
        self.cache = manager.cache
        self.client = manager.client

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        input: str | None = None,
        region: str | None = None,
        layers: list[dict] | None = None,
        bands: list[str] | None = None,
        vis_params: dict | None = None,
        center: list[float] | None = None,
        zoom: int | None = None,
        basemap: str | None = None,
        dataset_type: str | None = None,
    ) -> dict:
        """Render layers and store a new map session.

        Raises:
            ValueError: On missing inputs or invalid options
            CompositeNotFoundError: If the primary input is unknown, or
                every layer referred to an unknown key
        """
        region = region or DEFAULT_REGION
        basemap = basemap or DEFAULT_BASEMAP
        layers = list(layers or [])

        if basemap not in BASEMAPS:
            raise ValueError(ErrorMessages.INVALID_BASEMAP.format(basemap, ", ".join(BASEMAPS)))
        if not input and not layers:
            raise ValueError(ErrorMessages.MAP_INPUT_REQUIRED)
        if not input and not all(layer_input(la) or la.get("tileUrl") for la in layers):
            raise ValueError(ErrorMessages.MAP_LAYER_INPUTS)

        if region == DEFAULT_REGION and layers:
            found = region_from_names([la.get("name") or "" for la in layers])
            if found:
                logger.info(f"Using region '{found}' from layer names")
                region = found

        primary = await self.manager.resolve_image(input) if input else None

        rendered: list[MapLayer] = []
        skipped: list[str] = []
        missing: CompositeNotFoundError | None = None

        if layers:
            for i, layer in enumerate(layers):
                name = layer.get("name") or f"Layer {i + 1}"
                if layer.get("tileUrl"):
                    rendered.append(
                        MapLayer(
                            name=name,
                            tile_url=layer["tileUrl"],
                            vis_params=layer.get("visParams") or layer.get("visualization") or {},
                        )
                    )
                    continue

                ref = layer_input(layer)
                if ref:
                    try:
                        source = await self.manager.resolve_image(ref)
                    except CompositeNotFoundError as e:
                        logger.warning(f"Skipping layer '{name}': {e}")
                        skipped.append(name)
                        missing = e
                        continue
                elif primary is not None:
                    source = primary
                else:
                    skipped.append(name)
                    continue

                rendered.append(
                    await self._render(source, layer, name, bands, vis_params, dataset_type)
                )
        else:
            rendered.append(
                await self._render(primary, {}, "Default", bands, vis_params, dataset_type)
            )

        if not rendered:
            if missing is not None:
                raise missing
            raise ValueError(ErrorMessages.MAP_NO_LAYERS)

        map_zoom = int(zoom or DEFAULT_MAP_ZOOM)
        if center:
            map_center = [float(c) for c in center]
        elif region != DEFAULT_REGION:
            map_center, view_zoom = await map_view(self.client, region)
            if zoom is None:
                map_zoom = view_zoom
        else:
            map_center = list(US_CENTER)

        map_id = new_map_id()
        session = MapSession(
            id=map_id,
            input=input,
            region=region,
            tile_url=rendered[0].tile_url,
            layers=rendered,
            created=utc_now_iso(),
            metadata=MapMetadata(center=map_center, zoom=map_zoom, basemap=basemap),
        )
        self.cache.add_map_session(session)

        url = map_url(map_id)
        return {
            "map_id": map_id,
            "url": url,
            "tile_url": session.tile_url,
            "layers": [{"name": la.name, "tile_url": la.tile_url} for la in rendered],
            "skipped_layers": skipped,
            "region": region,
            "center": map_center,
            "zoom": map_zoom,
            "basemap": basemap,
            "instructions": f"Open {url} in your browser to view the interactive map",
            "features": list(MAP_FEATURES),
        }

    async def _render(
        self,
        source: ResolvedImage,
        layer: dict,
        name: str,
        default_bands: list[str] | None,
        tool_vis: dict | None,
        dataset_type: str | None,
    ) -> MapLayer:
        family = resolve_family(
            layer.get("datasetType") or dataset_type, source.dataset_id, source.ref
        )
        layer_vis = layer.get("visParams") or layer.get("visualizationParams") or {}
        flattened = _vis_subset({k: layer.get(k) for k in ("min", "max", "palette", "gamma")})
        requested = {**_vis_subset(tool_vis), **_vis_subset(layer_vis), **flattened}

        layer_bands = layer.get("bands") or layer_vis.get("bands")
        if not layer_bands:
            layer_bands = self._infer_bands(source, name, default_bands, family)

        stored = _vis_subset(source.vis_params)
        if not requested and "min" in stored and "max" in stored and (
            list(source.vis_params.get("bands") or []) == list(layer_bands)
        ):
            # Ranges recorded with the image were chosen for it; keep them
            vis = stored
        else:
            vis = normalize_vis_params({**stored, **requested}, layer_bands, family)

        visualized = source.image.select(layer_bands).visualize(**vis)
        _, tile_url = await self.client.get_map(visualized)
        logger.info(f"Rendered layer '{name}' from '{source.ref}' with bands {layer_bands}")
        return MapLayer(name=name, tile_url=tile_url, vis_params={**vis, "bands": layer_bands})

    @staticmethod
    def _infer_bands(
        source: ResolvedImage,
        name: str,
        default_bands: list[str] | None,
        family: Any,
    ) -> list[str]:
        if source.vis_params.get("bands"):
            fallback = list(source.vis_params["bands"])
        elif len(source.bands) == 1:
            fallback = list(source.bands)
        else:
            fallback = list(default_bands or default_rgb(source.bands, family))
        return infer_bands(source.ref, name, fallback)

    # ------------------------------------------------------------------
    # List / get / delete
    # ------------------------------------------------------------------

    async def list(self) -> dict:
        sessions = await self.cache.list_map_sessions()
        maps = [
            {
                "id": s.id,
                "url": map_url(s.id),
                "region": s.region,
                "created": s.created,
                "layers": len(s.layers),
            }
            for s in sessions
        ]
        return {
            "count": len(maps),
            "maps": maps,
            "message": SuccessMessages.MAP_LIST.format(len(maps)),
        }

    async def get(self, map_id: str) -> MapSession | None:
        return await self.cache.fetch_map_session(map_id)

    async def delete(self, map_id: str | None) -> dict:
        """Delete a session. Unknown ids give a failure result, not an exception."""
        if not map_id:
            return {
                "success": False,
                "error": ErrorMessages.MAP_ID_REQUIRED,
                "message": "Please provide a map ID to delete",
            }
        session = await self.cache.fetch_map_session(map_id)
        if session is None:
            return {
                "success": False,
                "map_id": map_id,
                "error": ErrorMessages.MAP_NOT_FOUND,
                "message": SuccessMessages.MAP_NOT_FOUND.format(map_id),
            }
        self.cache.delete_map_session(map_id)
        return {"success": True, "map_id": map_id, "message": SuccessMessages.MAP_DELETED}
