"""
Records kept by the session store.

Only serializable metadata lives here. Earth Engine objects are held
separately by the composite cache and never written to the durable tier.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class DateRange(BaseModel):
    """Inclusive-start, exclusive-end date window (YYYY-MM-DD)."""

    model_config = ConfigDict(extra="forbid")

    start: str = Field(..., description="Start date YYYY-MM-DD")
    end: str = Field(..., description="End date YYYY-MM-DD")


class CompositeEntry(BaseModel):
    """Metadata for a derived image referenced by an opaque key."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., description="Caller-visible identifier")
    kind: Literal["composite", "classification", "model", "analysis"] = Field(
        "composite", description="Entry kind"
    )
    dataset_id: str | None = Field(None, description="Source Earth Engine dataset id")
    region: str | None = Field(None, description="Region descriptor")
    date_range: DateRange | None = Field(None, description="Acquisition window")
    bands: list[str] = Field(default_factory=list, description="Band names of the image")
    vis_params: dict[str, Any] = Field(
        default_factory=dict, description="Suggested visualization parameters"
    )
    tile_url: str | None = Field(None, description="Tile URL template, if one was generated")
    created: str = Field(..., description="Creation time, ISO-8601 UTC")
    ee_type: str | None = Field(None, description="Class name of the Earth Engine object")


class MapLayer(BaseModel):
    """One rendered tile layer of a map session."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Display name")
    tile_url: str = Field(..., description="XYZ tile URL template")
    vis_params: dict[str, Any] = Field(default_factory=dict, description="Applied visualization")


class MapMetadata(BaseModel):
    """Initial viewport of a map session."""

    model_config = ConfigDict(extra="forbid")

    center: list[float] = Field(..., description="[longitude, latitude]")
    zoom: int = Field(..., description="Initial zoom level")
    basemap: str = Field(..., description="Base map style")


class MapSession(BaseModel):
    """A saved set of tile layers plus viewport metadata."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Map id (map_<epoch-ms>_<8 hex>)")
    input: str | None = Field(None, description="Primary composite key, if any")
    region: str = Field(..., description="Human-readable region")
    tile_url: str = Field(..., description="Tile URL of the first layer")
    layers: list[MapLayer] = Field(..., description="Ordered layers")
    created: str = Field(..., description="Creation time, ISO-8601 UTC")
    metadata: MapMetadata = Field(..., description="Viewport metadata")
