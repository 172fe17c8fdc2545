"""Response and store models for chuk-mcp-earthengine."""

from .responses import (
    AssetInfoResponse,
    AuthResponse,
    BoundariesResponse,
    CollectionFilterResponse,
    CropClassificationResponse,
    DatasetSearchResponse,
    DeforestationResponse,
    DownloadResponse,
    ErrorResponse,
    ExecuteResponse,
    ExportTaskResponse,
    FloodRiskResponse,
    GeometryResponse,
    HealthResponse,
    ImageResultResponse,
    MapCreateResponse,
    MapDeleteResponse,
    MapListResponse,
    NotFoundResponse,
    SetupResponse,
    StatisticsResponse,
    SystemInfoResponse,
    TaskStatusResponse,
    ThumbnailResponse,
    TileServiceResponse,
    format_response,
)
from .store import CompositeEntry, DateRange, MapLayer, MapMetadata, MapSession

__all__ = [
    "ErrorResponse",
    "NotFoundResponse",
    "DatasetSearchResponse",
    "CollectionFilterResponse",
    "GeometryResponse",
    "AssetInfoResponse",
    "BoundariesResponse",
    "ImageResultResponse",
    "StatisticsResponse",
    "ExportTaskResponse",
    "ThumbnailResponse",
    "TileServiceResponse",
    "TaskStatusResponse",
    "DownloadResponse",
    "AuthResponse",
    "ExecuteResponse",
    "SetupResponse",
    "SystemInfoResponse",
    "HealthResponse",
    "MapCreateResponse",
    "MapListResponse",
    "MapDeleteResponse",
    "CropClassificationResponse",
    "FloodRiskResponse",
    "DeforestationResponse",
    "CompositeEntry",
    "DateRange",
    "MapLayer",
    "MapMetadata",
    "MapSession",
    "format_response",
]
