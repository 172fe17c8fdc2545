"""
Response models for chuk-mcp-earthengine tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import SuccessMessages


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


class NotFoundResponse(BaseModel):
    """A referenced key is unknown. Not a protocol error."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="What could not be found")
    key: str = Field(..., description="The key that was requested")
    available_keys: list[str] = Field(..., description="Keys known to this process")
    message: str = Field(..., description="Operation result message")

    @classmethod
    def from_error(cls, error) -> "NotFoundResponse":
        """Build from a lookup error carrying key and available_keys."""
        return cls(
            error=str(error),
            key=error.key,
            available_keys=list(error.available_keys),
            message=SuccessMessages.KEY_NOT_FOUND.format(error.key, len(error.available_keys)),
        )

    def to_text(self) -> str:
        lines = [f"Not found: {self.key}", self.error]
        if self.available_keys:
            lines.append(f"Available: {', '.join(self.available_keys)}")
        else:
            lines.append("No keys available")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# earth_engine_data
# ---------------------------------------------------------------------------


class DatasetInfo(BaseModel):
    """Summary of a catalog dataset."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Earth Engine dataset id")
    name: str = Field(..., description="Human-readable name")
    type: str = Field(..., description="Image or ImageCollection")
    resolution_m: int = Field(..., description="Native resolution in metres")
    temporal: str = Field(..., description="Temporal coverage")
    bands: list[str] = Field(..., description="Commonly used bands")
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance")

    def to_text(self) -> str:
        return f"{self.id}: {self.name} ({self.type}, {self.resolution_m}m, {self.temporal})"


class DatasetSearchResponse(BaseModel):
    """Response model for catalog search."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("search", description="Operation performed")
    query: str = Field(..., description="Search query")
    count: int = Field(..., description="Number of matches", ge=0)
    datasets: list[DatasetInfo] = Field(..., description="Matching datasets")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, ""]
        for d in self.datasets:
            lines.append(f"  {d.to_text()}")
        return "\n".join(lines)


class CollectionFilterResponse(BaseModel):
    """Response model for filtering an image collection."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("filter", description="Operation performed")
    dataset_id: str = Field(..., description="Filtered collection")
    start_date: str = Field(..., description="Start date")
    end_date: str = Field(..., description="End date")
    region: str | None = Field(None, description="Region filter, if any")
    image_count: int = Field(..., description="Images matching the filter", ge=0)
    image_ids: list[str] = Field(..., description="First matching image ids")
    composite_key: str = Field(..., description="Key of the stored median of the filtered set")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Stored median as: {self.composite_key}"]
        for image_id in self.image_ids:
            lines.append(f"  {image_id}")
        return "\n".join(lines)


class GeometryResponse(BaseModel):
    """Response model for place-name geometry lookup."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("geometry", description="Operation performed")
    place_name: str = Field(..., description="Resolved place")
    source: str = Field(..., description="Where the geometry came from")
    bbox: list[float] = Field(..., description="[west, south, east, north]")
    centroid: list[float] = Field(..., description="[longitude, latitude]")
    area_km2: float = Field(..., description="Area in square kilometres", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        bbox_str = ", ".join(f"{b:.4f}" for b in self.bbox)
        return "\n".join(
            [
                self.message,
                f"Source: {self.source}",
                f"Bounds: [{bbox_str}]",
                f"Centroid: ({self.centroid[0]:.4f}, {self.centroid[1]:.4f})",
            ]
        )


class AssetInfoResponse(BaseModel):
    """Response model for dataset or asset details."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("info", description="Operation performed")
    dataset_id: str = Field(..., description="Asset id")
    asset_type: str = Field(..., description="IMAGE, IMAGE_COLLECTION, TABLE, ...")
    bands: list[str] = Field(..., description="Band names")
    properties: dict[str, Any] = Field(default_factory=dict, description="Asset properties")
    catalog: DatasetInfo | None = Field(None, description="Catalog entry, if the id is cataloged")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Bands: {', '.join(self.bands) or 'none'}"]
        if self.catalog:
            lines.append(f"Guidance: {self.catalog.llm_guidance}")
        return "\n".join(lines)


class BoundaryDataset(BaseModel):
    """A feature collection usable for region lookup."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Feature collection id")
    name: str = Field(..., description="Human-readable name")
    name_property: str = Field(..., description="Property holding the feature name")


class BoundariesResponse(BaseModel):
    """Response model for boundary dataset listing."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("boundaries", description="Operation performed")
    datasets: list[BoundaryDataset] = Field(..., description="Boundary datasets")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        for d in self.datasets:
            lines.append(f"  {d.id}: {d.name} (name property: {d.name_property})")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# earth_engine_process
# ---------------------------------------------------------------------------


class ImageResultResponse(BaseModel):
    """Response model for operations that store a derived image."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(True, description="Whether the image was created")
    operation: str = Field(..., description="Operation performed")
    key: str = Field(..., description="Key the result is stored under")
    source: str = Field(..., description="Input key or dataset id")
    dataset_id: str | None = Field(None, description="Underlying dataset id")
    region: str | None = Field(None, description="Region, if any")
    bands: list[str] = Field(default_factory=list, description="Result band names")
    details: dict[str, Any] = Field(default_factory=dict, description="Operation specifics")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Key: {self.key}"]
        if self.bands:
            lines.append(f"Bands: {', '.join(self.bands)}")
        for name, value in self.details.items():
            lines.append(f"{name}: {value}")
        return "\n".join(lines)


class StatisticsResponse(BaseModel):
    """Response model for region statistics."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("analyze", description="Operation performed")
    key: str = Field(..., description="Analyzed key or dataset id")
    region: str | None = Field(None, description="Region, if any")
    scale: float = Field(..., description="Reduction scale in metres")
    statistics: dict[str, Any] = Field(..., description="Reducer output per band")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        for name in sorted(self.statistics):
            lines.append(f"  {name}: {self.statistics[name]}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# earth_engine_export
# ---------------------------------------------------------------------------


class ExportTaskResponse(BaseModel):
    """Response model for a started batch export."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("export", description="Operation performed")
    task_id: str = Field(..., description="Earth Engine task id")
    description: str = Field(..., description="Task description")
    destination: str = Field(..., description="gcs or drive")
    location: str = Field(..., description="Bucket or folder receiving the file")
    state: str = Field(..., description="Task state at submission")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return f"{self.message}\nDestination: {self.destination} ({self.location})"


class ThumbnailResponse(BaseModel):
    """Response model for a thumbnail URL."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("thumbnail", description="Operation performed")
    key: str = Field(..., description="Rendered key or dataset id")
    url: str = Field(..., description="PNG thumbnail URL")
    dimensions: int = Field(..., description="Longest side in pixels")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return f"{self.message}\n{self.url}"


class TileServiceResponse(BaseModel):
    """Response model for a tile URL template."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("tiles", description="Operation performed")
    key: str = Field(..., description="Rendered key or dataset id")
    map_id: str = Field(..., description="Earth Engine map id")
    tile_url: str = Field(..., description="XYZ tile URL template")
    ttl_seconds: int = Field(..., description="Approximate lifetime of the tile service")
    vis_params: dict[str, Any] = Field(..., description="Applied visualization")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return f"{self.message}\n{self.tile_url}"


class TaskStatusResponse(BaseModel):
    """Response model for a batch task status."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("status", description="Operation performed")
    task_id: str = Field(..., description="Earth Engine task id")
    state: str = Field(..., description="Task state")
    description: str | None = Field(None, description="Task description")
    error_message: str | None = Field(None, description="Failure reason, if failed")
    destination_uris: list[str] = Field(default_factory=list, description="Output locations")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        if self.error_message:
            lines.append(f"Error: {self.error_message}")
        for uri in self.destination_uris:
            lines.append(f"  {uri}")
        return "\n".join(lines)


class DownloadResponse(BaseModel):
    """Response model for a direct download URL."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("download", description="Operation performed")
    key: str = Field(..., description="Downloaded key or dataset id")
    url: str = Field(..., description="GeoTIFF download URL")
    scale: float = Field(..., description="Pixel size in metres")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return f"{self.message}\n{self.url}"


# ---------------------------------------------------------------------------
# earth_engine_system
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Response model for credential checks."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("auth", description="Operation performed")
    check_type: str = Field(..., description="status, projects or permissions")
    initialized: bool = Field(..., description="Whether Earth Engine is initialized")
    project_id: str | None = Field(None, description="Cloud project id")
    service_account: str | None = Field(None, description="Service account email")
    details: dict[str, Any] = Field(default_factory=dict, description="Check-specific results")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Service account: {self.service_account or 'none'}"]
        for name, value in self.details.items():
            lines.append(f"{name}: {value}")
        return "\n".join(lines)


class ExecuteResponse(BaseModel):
    """Response model for evaluating a serialized expression."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("execute", description="Operation performed")
    result: Any = Field(..., description="Evaluated value")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return f"{self.message}\n{self.result}"


class SetupResponse(BaseModel):
    """Response model for setup guidance."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("setup", description="Operation performed")
    configured: dict[str, bool] = Field(..., description="Environment variable -> set")
    steps: list[str] = Field(..., description="Setup steps")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        for name, is_set in self.configured.items():
            lines.append(f"  {name}: {'set' if is_set else 'missing'}")
        lines.append("")
        lines.extend(f"{i}. {step}" for i, step in enumerate(self.steps, 1))
        return "\n".join(lines)


class SystemInfoResponse(BaseModel):
    """Response model for server information."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("info", description="Operation performed")
    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    protocol_version: str = Field(..., description="MCP protocol version")
    tools: list[str] = Field(..., description="Available tools")
    datasets: int = Field(..., description="Cataloged datasets", ge=0)
    composites: list[str] = Field(..., description="Keys cached in this process")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return "\n".join(
            [
                self.message,
                f"Protocol: {self.protocol_version}",
                f"Tools: {', '.join(self.tools)}",
                f"Cached composites: {len(self.composites)}",
            ]
        )


class HealthResponse(BaseModel):
    """Response model for health checks."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("health", description="Operation performed")
    status: str = Field(..., description="healthy or degraded")
    earth_engine: bool = Field(..., description="Whether Earth Engine is initialized")
    store: dict[str, Any] = Field(..., description="Session store statistics")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        ee_state = "ready" if self.earth_engine else "not initialized"
        return f"{self.message}\nEarth Engine: {ee_state}"


# ---------------------------------------------------------------------------
# earth_engine_map
# ---------------------------------------------------------------------------


class MapLayerInfo(BaseModel):
    """A rendered layer in a map response."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Display name")
    tile_url: str = Field(..., description="XYZ tile URL template")


class MapCreateResponse(BaseModel):
    """Response model for map creation."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(True, description="Whether the map was created")
    operation: str = Field("create", description="Operation performed")
    map_id: str = Field(..., description="Map id")
    url: str = Field(..., description="Viewer URL")
    tile_url: str = Field(..., description="Tile URL of the first layer")
    layers: list[MapLayerInfo] = Field(..., description="Rendered layers")
    skipped_layers: list[str] = Field(
        default_factory=list, description="Layers whose input key was unknown"
    )
    message: str = Field(..., description="Operation result message")
    region: str = Field(..., description="Region name")
    center: list[float] = Field(..., description="[longitude, latitude]")
    zoom: int = Field(..., description="Initial zoom level")
    basemap: str = Field(..., description="Base map style")
    instructions: str = Field(..., description="How to open the map")
    features: list[str] = Field(..., description="Viewer features")

    def to_text(self) -> str:
        lines = [self.message, f"Map: {self.url}", f"Region: {self.region}"]
        for layer in self.layers:
            lines.append(f"  {layer.name}: {layer.tile_url}")
        if self.skipped_layers:
            lines.append(f"Skipped: {', '.join(self.skipped_layers)}")
        return "\n".join(lines)


class MapSummary(BaseModel):
    """One entry in a map listing."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Map id")
    url: str = Field(..., description="Viewer URL")
    region: str = Field(..., description="Region name")
    created: str = Field(..., description="Creation time")
    layers: int = Field(..., description="Number of layers", ge=0)


class MapListResponse(BaseModel):
    """Response model for map listing."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(True, description="Always true")
    operation: str = Field("list", description="Operation performed")
    count: int = Field(..., description="Number of maps", ge=0)
    maps: list[MapSummary] = Field(..., description="Active maps")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        for m in self.maps:
            lines.append(f"  {m.id} ({m.region}, {m.layers} layer(s)): {m.url}")
        return "\n".join(lines)


class MapDeleteResponse(BaseModel):
    """Response model for map deletion."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(..., description="Whether a session was deleted")
    operation: str = Field("delete", description="Operation performed")
    map_id: str | None = Field(None, description="Requested map id")
    error: str | None = Field(None, description="Failure reason")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        if self.error:
            return f"{self.message} ({self.error})"
        return self.message


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class CropClassificationResponse(BaseModel):
    """Response model for crop classification."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field(..., description="classify, train, evaluate or export")
    region: str = Field(..., description="US state")
    classifier: str = Field(..., description="Classifier name")
    start_date: str = Field(..., description="Imagery start date")
    end_date: str = Field(..., description="Imagery end date")
    feature_bands: list[str] = Field(..., description="Bands used as features")
    key: str | None = Field(None, description="Stored classification or model key")
    class_count: int | None = Field(None, description="Distinct training classes")
    accuracy: float | None = Field(None, description="Overall validation accuracy")
    kappa: float | None = Field(None, description="Cohen's kappa")
    confusion_matrix: list[list[int]] | None = Field(None, description="Validation matrix")
    task_id: str | None = Field(None, description="Export task id")
    map_url: str | None = Field(None, description="Viewer URL when a map was created")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Features: {', '.join(self.feature_bands)}"]
        if self.key:
            lines.append(f"Key: {self.key}")
        if self.map_url:
            lines.append(f"Map: {self.map_url}")
        return "\n".join(lines)


class FloodRiskResponse(BaseModel):
    """Response model for flood risk assessment."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("flood_risk_assessment", description="Model run")
    region: str = Field(..., description="Analyzed area")
    flood_type: str = Field(..., description="urban, coastal, riverine or snowmelt")
    start_date: str = Field(..., description="Analysis start date")
    end_date: str = Field(..., description="Analysis end date")
    risk_score: float = Field(..., description="Weighted risk score 0-1", ge=0, le=1)
    risk_level: str = Field(..., description="low, moderate, high or very high")
    factors: dict[str, float] = Field(..., description="Normalized factor scores")
    statistics: dict[str, Any] = Field(..., description="Raw factor statistics")
    water_change: dict[str, Any] | None = Field(None, description="NDWI change summary")
    key: str = Field(..., description="Stored risk image key")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        for name, score in self.factors.items():
            lines.append(f"  {name}: {score:.2f}")
        return "\n".join(lines)


class DeforestationResponse(BaseModel):
    """Response model for deforestation detection."""

    model_config = ConfigDict(extra="forbid")

    operation: str = Field("deforestation_detection", description="Model run")
    region: str = Field(..., description="Analyzed area")
    dataset: str = Field(..., description="Imagery dataset")
    baseline_period: list[str] = Field(..., description="[start, end]")
    current_period: list[str] = Field(..., description="[start, end]")
    baseline_forest_ha: float = Field(..., description="Forest area in baseline", ge=0)
    current_forest_ha: float = Field(..., description="Forest area now", ge=0)
    loss_ha: float = Field(..., description="Forest lost", ge=0)
    loss_percent: float = Field(..., description="Loss as % of baseline", ge=0)
    carbon_loss_tonnes: float = Field(..., description="Estimated carbon lost", ge=0)
    co2_tonnes: float = Field(..., description="CO2 equivalent", ge=0)
    alert_level: str = Field(..., description="low, moderate, high or critical")
    key: str = Field(..., description="Stored loss image key")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return "\n".join(
            [
                self.message,
                f"Baseline forest: {self.baseline_forest_ha:.0f} ha",
                f"Current forest: {self.current_forest_ha:.0f} ha",
                f"Carbon loss: {self.carbon_loss_tonnes:.0f} t ({self.co2_tonnes:.0f} t CO2)",
            ]
        )
