"""
Constants for chuk-mcp-earthengine server.

All magic strings, dataset metadata, tool definitions, and configuration
values live here.
"""


class ServerConfig:
    NAME = "chuk-mcp-earthengine"
    VERSION = "0.1.0"
    DESCRIPTION = "Google Earth Engine Analysis, Visualization & Export MCP Server"
    # Name and version advertised in the MCP initialize handshake
    MCP_SERVER_NAME = "Axion MCP Earth Engine"
    MCP_SERVER_VERSION = "2.0.0"
    PROTOCOL_VERSION = "2024-11-05"


class EnvVar:
    REDIS_URL = "REDIS_URL"
    REDIS_TTL = "REDIS_TTL"
    GOOGLE_APPLICATION_CREDENTIALS = "GOOGLE_APPLICATION_CREDENTIALS"
    GOOGLE_APPLICATION_CREDENTIALS_JSON = "GOOGLE_APPLICATION_CREDENTIALS_JSON"
    GCP_PROJECT_ID = "GCP_PROJECT_ID"
    BASE_URL = "BASE_URL"
    NEXT_PUBLIC_BASE_URL = "NEXT_PUBLIC_BASE_URL"
    EXPORT_BUCKET = "EE_EXPORT_BUCKET"
    BRIDGE_URL = "AXION_MCP_URL"
    BRIDGE_DEBUG = "AXION_DEBUG"
    MCP_STDIO = "MCP_STDIO"


class StoreKind:
    COMPOSITE = "composite"
    MAP = "map"


class EntryKind:
    COMPOSITE = "composite"
    CLASSIFICATION = "classification"
    MODEL = "model"
    ANALYSIS = "analysis"


ENTRY_KINDS = [
    EntryKind.COMPOSITE,
    EntryKind.CLASSIFICATION,
    EntryKind.MODEL,
    EntryKind.ANALYSIS,
]

# Store
DEFAULT_TTL_SECONDS = 86400  # 24 hours
REDIS_CONNECT_TIMEOUT_S = 10.0
REDIS_RETRY_ATTEMPTS = 3
REDIS_BACKOFF_BASE_S = 0.5
REDIS_BACKOFF_CAP_S = 3.0

# Earth Engine
EE_TILE_BASE = "https://earthengine.googleapis.com/v1"
EE_LEGACY_MAPS = "projects/earthengine-legacy/maps"
TILE_TTL_SECONDS = 3600

# Defaults for composites and fallbacks
DEFAULT_DATASET = "COPERNICUS/S2_SR_HARMONIZED"
DEFAULT_START_DATE = "2024-06-01"
DEFAULT_END_DATE = "2024-08-31"
DEFAULT_YEAR_START = "2024-01-01"
DEFAULT_YEAR_END = "2024-12-31"
DEFAULT_RGB_BANDS = ["B4", "B3", "B2"]
LANDSAT_RGB_BANDS = ["SR_B4", "SR_B3", "SR_B2"]
DEFAULT_CLOUD_COVER = 20.0
DEFAULT_PROCESS_SCALE = 30
DEFAULT_EXPORT_SCALE = 10
DEFAULT_SEARCH_LIMIT = 10
DEFAULT_THUMB_DIMENSIONS = 512
S2_QA_BAND = "QA60"
S2_CLOUD_BIT = 10
S2_CIRRUS_BIT = 11
S2_SCALE_FACTOR = 10000
S2_OPTICAL_BANDS = "B.*"
S2_SCL_BAND = "SCL"
S2_SHADOW_CLASS = 3
S2_VALID_CLASSES = [4, 5, 6, 7, 11]
S2_CLOUD_PROPERTY = "CLOUDY_PIXEL_PERCENTAGE"
LANDSAT_QA_BAND = "QA_PIXEL"
LANDSAT_FILL_BIT = 0
LANDSAT_CLOUD_BIT = 3
LANDSAT_SHADOW_BIT = 4
LANDSAT_CLOUD_PROPERTY = "CLOUD_COVER"
WATER_OCCURRENCE_THRESHOLD = 50
MAX_PIXELS = 1e13
EXPORT_DRIVE_FOLDER = "EarthEngine"
RESAMPLE_METHOD = "bilinear"
RESAMPLE_CRS = "EPSG:4326"

# Map defaults
DEFAULT_MAP_ZOOM = 10
DEFAULT_BASEMAP = "satellite"
BASEMAPS = ["satellite", "terrain", "roadmap", "dark"]
DEFAULT_REGION = "Unknown"
DEFAULT_BASE_URL = "http://localhost:3000"
US_CENTER = [-98.5795, 39.8283]
US_CENTER_ZOOM = 5

# Visualization
INDEX_BANDS = ["ndvi", "ndwi", "ndbi", "evi", "savi", "nbr"]
INDEX_PALETTE = ["blue", "white", "green"]

# Spectral indices. Normalized differences list [a, b] for (a - b) / (a + b);
# expressions map variable names to bands.
SPECTRAL_INDICES: dict[str, dict] = {
    "NDVI": {"bands": ["B8", "B4"], "landsat": ["SR_B5", "SR_B4"]},
    "NDWI": {"bands": ["B3", "B8"], "landsat": ["SR_B3", "SR_B5"]},
    "NDBI": {"bands": ["B11", "B8"], "landsat": ["SR_B6", "SR_B5"]},
    "MNDWI": {"bands": ["B3", "B11"], "landsat": ["SR_B3", "SR_B6"]},
    "NBR": {"bands": ["B8", "B12"], "landsat": ["SR_B5", "SR_B7"]},
    "EVI": {
        "expression": "2.5 * ((NIR - RED) / (NIR + 6 * RED - 7.5 * BLUE + 1))",
        "bands": {"NIR": "B8", "RED": "B4", "BLUE": "B2"},
        "landsat": {"NIR": "SR_B5", "RED": "SR_B4", "BLUE": "SR_B2"},
    },
    "SAVI": {
        "expression": "((NIR - RED) / (NIR + RED + 0.5)) * 1.5",
        "bands": {"NIR": "B8", "RED": "B4"},
        "landsat": {"NIR": "SR_B5", "RED": "SR_B4"},
    },
}
INDEX_TYPES = ["NDVI", "NDWI", "NDBI", "EVI", "SAVI", "MNDWI", "NBR", "custom"]
MASK_TYPES = ["clouds", "water", "quality", "shadow"]
EXPORT_DESTINATIONS = ["gcs", "drive", "auto"]
AUTH_CHECK_TYPES = ["status", "projects", "permissions"]

# Terrain
SRTM_DATASET = "USGS/SRTMGL1_003"
TERRAIN_PRODUCTS = ["elevation", "slope", "aspect", "hillshade"]

# Boundaries
US_STATES_DATASET = "TIGER/2016/States"
US_COUNTIES_DATASET = "TIGER/2016/Counties"
COUNTRIES_DATASET = "USDOS/LSIB_SIMPLE/2017"
ADMIN_DATASET = "FAO/GAUL/2015/level1"

BOUNDARY_DATASETS: list[dict] = [
    {"id": US_STATES_DATASET, "name": "US States", "name_property": "NAME"},
    {"id": US_COUNTIES_DATASET, "name": "US Counties", "name_property": "NAME"},
    {"id": COUNTRIES_DATASET, "name": "Countries (LSIB)", "name_property": "country_na"},
    {"id": ADMIN_DATASET, "name": "First-level admin units (GAUL)", "name_property": "ADM1_NAME"},
]

# Region center fallbacks: name -> [lon, lat, zoom]
CITY_COORDS: dict[str, list[float]] = {
    "los angeles": [-118.2437, 34.0522, 10],
    "new york": [-74.0060, 40.7128, 10],
    "chicago": [-87.6298, 41.8781, 10],
    "houston": [-95.3698, 29.7604, 10],
    "phoenix": [-112.0740, 33.4484, 10],
    "san francisco": [-122.4194, 37.7749, 11],
    "seattle": [-122.3321, 47.6062, 11],
    "miami": [-80.1918, 25.7617, 11],
    "denver": [-104.9903, 39.7392, 10],
    "atlanta": [-84.3880, 33.7490, 10],
    "amazon": [-56.7625, -2.6333, 5],
    "california": [-119.4179, 36.7783, 6],
    "texas": [-99.9018, 31.9686, 6],
    "iowa": [-93.0977, 41.8780, 7],
}

REGION_KEYWORDS = [
    "los angeles",
    "new york",
    "san francisco",
    "california",
    "texas",
    "iowa",
    "amazon",
    "seattle",
    "chicago",
    "miami",
    "denver",
    "atlanta",
]

# Zoom by largest bounding-box side in degrees, first match wins
ZOOM_THRESHOLDS: list[tuple[float, int]] = [
    (10.0, 5),
    (5.0, 6),
    (2.0, 7),
    (1.0, 8),
    (0.5, 9),
    (0.2, 10),
]
MAX_REGION_ZOOM = 11

# Model regions (used when a place name is not a US state or county)
MODEL_REGIONS: dict[str, list[float]] = {
    "houston": [-95.8, 29.5, -95.0, 30.1],
    "miami": [-80.5, 25.6, -80.1, 26.0],
    "new orleans": [-90.2, 29.85, -89.9, 30.1],
    "amazon": [-62.0, -4.0, -60.0, -2.0],
    "congo basin": [20.0, -2.0, 22.0, 0.0],
    "borneo": [113.0, 0.0, 115.0, 2.0],
}
DEFAULT_FLOOD_REGION = "Houston"
DEFAULT_FOREST_REGION = "Amazon"

# Crop classification
CROP_STATES = ["Iowa", "California", "Texas", "Kansas", "Nebraska", "Illinois"]
CROP_LABEL_DATASET = "USDA/NASS/CDL"
CROP_LABEL_BAND = "cropland"
CLASSIFIERS = ["randomForest", "svm", "cart", "naiveBayes"]
CROP_OPERATIONS = ["classify", "train", "evaluate", "export"]
DEFAULT_CLASSIFIER = "randomForest"
DEFAULT_NUMBER_OF_TREES = 50
MIN_TREES = 10
MAX_TREES = 500
CROP_SAMPLE_POINTS = 500
CROP_TRAIN_FRACTION = 0.7
CROP_BANDS = ["B2", "B3", "B4", "B5", "B6", "B7", "B8", "B11", "B12"]
CROP_INDEX_BANDS = ["NDVI", "EVI", "SAVI", "NDWI"]

# Flood model
FLOOD_TYPES = ["urban", "coastal", "riverine", "snowmelt"]
DEFAULT_FLOOD_TYPE = "urban"
DEFAULT_FLOOD_SCALE = 100
PRECIPITATION_DATASET = "UCSB-CHG/CHIRPS/DAILY"
WATER_OCCURRENCE_DATASET = "JRC/GSW1_4/GlobalSurfaceWater"
URBAN_DATASET = "ESA/WorldCover/v200"
# Factor weights per flood type: (low elevation, flat slope, precipitation, water, urban)
FLOOD_WEIGHTS: dict[str, dict[str, float]] = {
    "urban": {"elevation": 0.2, "slope": 0.15, "precipitation": 0.25, "water": 0.1, "urban": 0.3},
    "coastal": {"elevation": 0.4, "slope": 0.1, "precipitation": 0.15, "water": 0.25, "urban": 0.1},
    "riverine": {"elevation": 0.2, "slope": 0.2, "precipitation": 0.25, "water": 0.3, "urban": 0.05},
    "snowmelt": {"elevation": 0.1, "slope": 0.3, "precipitation": 0.35, "water": 0.2, "urban": 0.05},
}

# Deforestation model
DEFAULT_FOREST_SCALE = 30
FOREST_NDVI_THRESHOLD = 0.6
LOSS_NDVI_THRESHOLD = 0.4
CARBON_TONNES_PER_HA = 150.0
CO2_PER_CARBON = 3.67
ALERT_LEVELS: list[tuple[float, str]] = [(10.0, "critical"), (5.0, "high"), (1.0, "moderate")]

# Model date windows, in days before today
MODEL_WINDOW_DAYS = 182
BASELINE_WINDOW_DAYS = (182, 91)
CURRENT_WINDOW_DAYS = (30, 0)

# Flood factor normalization: a factor scores 1.0 at or beyond its reference
FLOOD_ELEVATION_REF_M = 200.0
FLOOD_SLOPE_REF_DEG = 10.0
FLOOD_DAILY_PRECIP_REF_MM = 10.0
FLOOD_WATER_REF_PERCENT = 50.0
URBAN_CLASS = 50
RISK_LEVELS: list[tuple[float, str]] = [(0.7, "very high"), (0.5, "high"), (0.3, "moderate")]
FLOOD_PALETTE = ["green", "yellow", "orange", "red"]
LOSS_PALETTE = ["black", "red"]
CROP_PALETTE = ["000000", "ffd300", "267000", "ff2626", "00a8e2", "a5f28c", "7fc47f"]

# Dataset families for visualization defaults (id prefix -> family)
DATASET_FAMILIES: dict[str, str] = {
    "COPERNICUS/S2": "sentinel2-sr",
    "LANDSAT/LC08": "landsat8",
    "LANDSAT/LC09": "landsat9",
    "MODIS/": "modis",
}

# Catalog used by the data search operation
DATASET_CATALOG: list[dict] = [
    {
        "id": "COPERNICUS/S2_SR_HARMONIZED",
        "name": "Sentinel-2 MSI Surface Reflectance (Harmonized)",
        "type": "ImageCollection",
        "resolution_m": 10,
        "temporal": "2017-present",
        "bands": ["B2", "B3", "B4", "B8", "B11", "B12", "QA60"],
        "keywords": ["sentinel", "s2", "optical", "multispectral", "reflectance", "vegetation"],
        "llm_guidance": "Default optical dataset. RGB is B4,B3,B2; NIR is B8. Use for NDVI and composites.",
    },
    {
        "id": "LANDSAT/LC08/C02/T1_L2",
        "name": "Landsat 8 Collection 2 Level-2",
        "type": "ImageCollection",
        "resolution_m": 30,
        "temporal": "2013-present",
        "bands": ["SR_B2", "SR_B3", "SR_B4", "SR_B5", "SR_B6", "SR_B7", "QA_PIXEL"],
        "keywords": ["landsat", "l8", "optical", "surface reflectance", "thermal"],
        "llm_guidance": "Longer record than Sentinel-2 at 30m. RGB is SR_B4,SR_B3,SR_B2.",
    },
    {
        "id": "LANDSAT/LC09/C02/T1_L2",
        "name": "Landsat 9 Collection 2 Level-2",
        "type": "ImageCollection",
        "resolution_m": 30,
        "temporal": "2021-present",
        "bands": ["SR_B2", "SR_B3", "SR_B4", "SR_B5", "SR_B6", "SR_B7", "QA_PIXEL"],
        "keywords": ["landsat", "l9", "optical", "surface reflectance"],
        "llm_guidance": "Same band layout as Landsat 8. Combine both for denser time series.",
    },
    {
        "id": "MODIS/061/MOD13Q1",
        "name": "MODIS Terra Vegetation Indices 16-Day 250m",
        "type": "ImageCollection",
        "resolution_m": 250,
        "temporal": "2000-present",
        "bands": ["NDVI", "EVI"],
        "keywords": ["modis", "vegetation", "ndvi", "evi", "phenology"],
        "llm_guidance": "Coarse but long NDVI/EVI record. Values are scaled by 10000.",
    },
    {
        "id": "USGS/SRTMGL1_003",
        "name": "SRTM Digital Elevation 30m",
        "type": "Image",
        "resolution_m": 30,
        "temporal": "2000",
        "bands": ["elevation"],
        "keywords": ["elevation", "dem", "terrain", "srtm", "slope"],
        "llm_guidance": "Use for terrain, slope, aspect and hillshade.",
    },
    {
        "id": "ESA/WorldCover/v200",
        "name": "ESA WorldCover 10m v200",
        "type": "ImageCollection",
        "resolution_m": 10,
        "temporal": "2021",
        "bands": ["Map"],
        "keywords": ["land cover", "landcover", "worldcover", "urban", "classification"],
        "llm_guidance": "Global land cover map. Class 50 is built-up, 10 is tree cover.",
    },
    {
        "id": "USDA/NASS/CDL",
        "name": "USDA NASS Cropland Data Layers",
        "type": "ImageCollection",
        "resolution_m": 30,
        "temporal": "1997-present",
        "bands": ["cropland"],
        "keywords": ["crop", "agriculture", "cropland", "usda", "cdl"],
        "llm_guidance": "Annual US crop type map. Used as labels for crop classification.",
    },
    {
        "id": "UCSB-CHG/CHIRPS/DAILY",
        "name": "CHIRPS Daily Precipitation",
        "type": "ImageCollection",
        "resolution_m": 5566,
        "temporal": "1981-present",
        "bands": ["precipitation"],
        "keywords": ["precipitation", "rainfall", "chirps", "climate", "flood"],
        "llm_guidance": "Daily rainfall in mm. Sum over a date range for totals.",
    },
    {
        "id": "JRC/GSW1_4/GlobalSurfaceWater",
        "name": "JRC Global Surface Water",
        "type": "Image",
        "resolution_m": 30,
        "temporal": "1984-2021",
        "bands": ["occurrence", "change_abs", "seasonality", "max_extent"],
        "keywords": ["water", "surface water", "flood", "jrc", "occurrence"],
        "llm_guidance": "Water occurrence percentage per pixel. Good flood-prone area proxy.",
    },
]


def find_dataset(dataset_id: str) -> dict | None:
    """Return the catalog entry for a dataset id, or None."""
    for entry in DATASET_CATALOG:
        if entry["id"] == dataset_id:
            return entry
    return None


# Tool names
class ToolName:
    DATA = "earth_engine_data"
    PROCESS = "earth_engine_process"
    EXPORT = "earth_engine_export"
    SYSTEM = "earth_engine_system"
    MAP = "earth_engine_map"
    CROP = "crop_classification"
    FLOOD = "flood_risk_assessment"
    DEFORESTATION = "deforestation_detection"


# Alternate names accepted on the consolidated route
TOOL_ALIASES: dict[str, str] = {
    "flood_risk_analysis": ToolName.FLOOD,
    "deforestation_tracking": ToolName.DEFORESTATION,
}

DATA_OPERATIONS = ["search", "filter", "geometry", "info", "boundaries"]
PROCESS_OPERATIONS = ["clip", "mask", "index", "analyze", "composite", "terrain", "resample"]
EXPORT_OPERATIONS = ["export", "thumbnail", "tiles", "status", "download"]
SYSTEM_OPERATIONS = ["auth", "execute", "setup", "load", "info", "health"]
MAP_OPERATIONS = ["create", "list", "delete"]

# Tool definitions served by tools/list. This is the wire API.
TOOL_DEFINITIONS: list[dict] = [
    {
        "name": "earth_engine_data",
        "description": "Data Discovery & Access - search, filter, geometry, info, boundaries operations",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["search", "filter", "geometry", "info", "boundaries"],
                    "description": "Operation to perform",
                },
                "query": {"type": "string", "description": "Search query (for search operation)"},
                "datasetId": {"type": "string", "description": "Dataset ID"},
                "startDate": {"type": "string", "description": "Start date YYYY-MM-DD"},
                "endDate": {"type": "string", "description": "End date YYYY-MM-DD"},
                "region": {"type": "string", "description": "Region name or geometry"},
                "placeName": {"type": "string", "description": "Place name for geometry lookup"},
                "limit": {"type": "number", "description": "Maximum results", "default": 10},
            },
            "required": ["operation"],
        },
    },
    {
        "name": "earth_engine_process",
        "description": "Processing & Analysis - clip, mask, index, analyze, composite, terrain, resample operations",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["clip", "mask", "index", "analyze", "composite", "terrain", "resample"],
                    "description": "Processing operation",
                },
                "input": {"type": "string", "description": "Input dataset or result"},
                "datasetId": {"type": "string", "description": "Dataset ID"},
                "region": {"type": "string", "description": "Region for processing"},
                "indexType": {
                    "type": "string",
                    "enum": ["NDVI", "NDWI", "NDBI", "EVI", "SAVI", "MNDWI", "NBR", "custom"],
                    "description": "Index type",
                },
                "maskType": {
                    "type": "string",
                    "enum": ["clouds", "water", "quality", "shadow"],
                    "description": "Mask type",
                },
                "scale": {"type": "number", "description": "Processing scale", "default": 30},
            },
            "required": ["operation"],
        },
    },
    {
        "name": "earth_engine_export",
        "description": "Export & Visualization - export, thumbnail, tiles, status, download operations",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["export", "thumbnail", "tiles", "status", "download"],
                    "description": "Export operation",
                },
                "input": {"type": "string", "description": "Input data to export"},
                "datasetId": {"type": "string", "description": "Dataset ID"},
                "region": {"type": "string", "description": "Export region"},
                "destination": {
                    "type": "string",
                    "enum": ["gcs", "drive", "auto"],
                    "description": "Export destination",
                },
                "scale": {"type": "number", "description": "Export scale", "default": 10},
            },
            "required": ["operation"],
        },
    },
    {
        "name": "earth_engine_system",
        "description": "System & Advanced - auth, execute, setup, load, info, health operations",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["auth", "execute", "setup", "load", "info", "health"],
                    "description": "System operation",
                },
                "checkType": {
                    "type": "string",
                    "enum": ["status", "projects", "permissions"],
                    "description": "Auth check type",
                },
            },
            "required": ["operation"],
        },
    },
    {
        "name": "earth_engine_map",
        "description": "Interactive Map Viewer - create, list, delete interactive web maps for large regions",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["create", "list", "delete"],
                    "description": "Map operation",
                },
                "mapId": {"type": "string", "description": "Map ID (for list/delete)"},
                "layers": {"type": "array", "items": {"type": "object"}, "description": "Map layers"},
            },
            "required": ["operation"],
        },
    },
    {
        "name": "crop_classification",
        "description": "Machine learning crop and land cover classification using satellite imagery. Supports Iowa, California, Texas, Kansas, Nebraska, Illinois.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["classify", "train", "evaluate", "export"],
                    "description": "Operation type: classify (full classification), train (model only), evaluate (accuracy metrics), export (save results)",
                },
                "region": {
                    "type": "string",
                    "description": "US state name (e.g., Iowa, California) or geometry. Supported states: Iowa, California, Texas, Kansas, Nebraska, Illinois",
                },
                "startDate": {
                    "type": "string",
                    "description": "Start date for imagery in YYYY-MM-DD format. Default: 6 months ago",
                },
                "endDate": {
                    "type": "string",
                    "description": "End date for imagery in YYYY-MM-DD format. Default: current date",
                },
                "classifier": {
                    "type": "string",
                    "enum": ["randomForest", "svm", "cart", "naiveBayes"],
                    "description": "Machine learning classifier. Default: randomForest (best accuracy)",
                },
                "numberOfTrees": {
                    "type": "number",
                    "description": "Number of trees for Random Forest classifier (10-500). Default: 50",
                },
                "includeIndices": {
                    "type": "boolean",
                    "description": "Include vegetation indices (NDVI, EVI, SAVI, NDWI). Default: true",
                },
                "createMap": {
                    "type": "boolean",
                    "description": "Create interactive web map (slower for large areas). Default: false. Set to false for faster processing",
                },
                "scale": {
                    "type": "number",
                    "description": "Pixel resolution in meters (10-1000). Default: 30 for Landsat/Sentinel",
                },
                "cloudCoverMax": {
                    "type": "number",
                    "description": "Maximum cloud cover percentage (0-100). Default: 20",
                },
            },
            "required": ["operation", "region"],
        },
    },
    {
        "name": "flood_risk_assessment",
        "description": "Analyze flood risk factors including terrain, precipitation, water indices, and urban development. Supports urban, coastal, riverine, and snowmelt flood analysis.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "region": {
                    "type": "string",
                    "description": 'Area to analyze (e.g., "Houston", "Miami", "New Orleans"). Default: Houston',
                },
                "startDate": {
                    "type": "string",
                    "description": "Start date for analysis in YYYY-MM-DD format. Default: 6 months ago",
                },
                "endDate": {
                    "type": "string",
                    "description": "End date for analysis in YYYY-MM-DD format. Default: current date",
                },
                "floodType": {
                    "type": "string",
                    "enum": ["urban", "coastal", "riverine", "snowmelt"],
                    "description": "Type of flooding to analyze. Default: urban",
                },
                "analyzeWaterChange": {
                    "type": "boolean",
                    "description": "Analyze water body extent changes. Default: true",
                },
                "scale": {
                    "type": "number",
                    "description": "Analysis scale in meters. Default: 100",
                },
            },
            "required": [],
        },
    },
    {
        "name": "deforestation_detection",
        "description": "Monitor forest loss and degradation by comparing baseline and current forest cover. Calculates deforestation percentage, estimates carbon loss, and generates alerts.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "region": {
                    "type": "string",
                    "description": 'Forest area to analyze (e.g., "Amazon", "Congo Basin", "Borneo"). Default: Amazon',
                },
                "baselineStart": {
                    "type": "string",
                    "description": "Baseline period start date in YYYY-MM-DD format. Default: 6 months ago",
                },
                "baselineEnd": {
                    "type": "string",
                    "description": "Baseline period end date in YYYY-MM-DD format. Default: 3 months ago",
                },
                "currentStart": {
                    "type": "string",
                    "description": "Current period start date in YYYY-MM-DD format. Default: 1 month ago",
                },
                "currentEnd": {
                    "type": "string",
                    "description": "Current period end date in YYYY-MM-DD format. Default: current date",
                },
                "scale": {
                    "type": "number",
                    "description": "Analysis scale in meters. Default: 30",
                },
                "dataset": {
                    "type": "string",
                    "description": "Satellite dataset to use. Default: COPERNICUS/S2_SR_HARMONIZED",
                },
            },
            "required": [],
        },
    },
]

ALL_TOOL_NAMES = [t["name"] for t in TOOL_DEFINITIONS]

# JSON-RPC error codes
class JsonRpcError:
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


# HTTP transport
SSE_PING_INTERVAL_S = 30.0
HTTP_MAX_DURATION_S = 60
DEFAULT_HTTP_PORT = 3000

# Bridge
DEFAULT_BRIDGE_SERVER = "https://axion-mcp.onrender.com"
LOCAL_BRIDGE_SERVER = "http://localhost:3000"
BRIDGE_RPC_PATH = "/api/mcp/sse-stream"
BRIDGE_HEALTH_PATH = "/api/health"
BRIDGE_SERVER_KEY = "axion-earth-engine"
BRIDGE_COMMAND = "chuk-mcp-earthengine-bridge"
BRIDGE_CLIENTS = ["claude", "cursor", "vscode"]
BRIDGE_TIMEOUT_S = 60.0


SETUP_STEPS = [
    "Create a Google Cloud project and enable the Earth Engine API",
    "Register the project for Earth Engine at https://code.earthengine.google.com/register",
    "Create a service account with the Earth Engine Resource Viewer role and download a JSON key",
    "Set GOOGLE_APPLICATION_CREDENTIALS_JSON to the key contents, "
    "or GOOGLE_APPLICATION_CREDENTIALS to the key file path",
    "Optionally set GCP_PROJECT_ID, REDIS_URL (durable sessions) and EE_EXPORT_BUCKET (GCS exports)",
    "Run earth_engine_system with operation=auth to verify",
]


class ErrorMessages:
    NO_CREDENTIALS = (
        "No service account credentials found. Set GOOGLE_APPLICATION_CREDENTIALS "
        "or GOOGLE_APPLICATION_CREDENTIALS_JSON."
    )
    INVALID_CREDENTIALS_JSON = "Invalid service account JSON in environment variable"
    CREDENTIALS_FILE = "Cannot read service account file: {}"
    CREDENTIALS_MISSING_FIELDS = "Service account JSON is missing fields: {}"
    EE_NOT_INITIALIZED = "Earth Engine not initialized"
    UNKNOWN_OPERATION = "Unknown operation: {}. Available: {}"
    INVALID_DATE = "Invalid date '{}': expected YYYY-MM-DD"
    INVALID_DATE_RANGE = "Start date {} must be before end date {}"
    MISSING_PARAMETER = "Parameter '{}' is required for operation '{}'"
    KEY_NOT_FOUND = "No image found for key: {}"
    HANDLE_LOST = (
        "Composite '{}' is known but its Earth Engine object is gone after a restart. "
        "Re-run the operation that created it."
    )
    INVALID_INDEX = "Invalid index type '{}'. Available: {}"
    CUSTOM_INDEX_BANDS = "Custom index requires exactly two bands, got {}"
    INVALID_MASK = "Invalid mask type '{}'. Available: {}"
    INVALID_DESTINATION = "Invalid export destination '{}'. Available: {}"
    INVALID_CHECK_TYPE = "Invalid auth check type '{}'. Available: {}"
    INVALID_BASEMAP = "Invalid basemap '{}'. Available: {}"
    INVALID_CLASSIFIER = "Invalid classifier '{}'. Available: {}"
    INVALID_FLOOD_TYPE = "Invalid flood type '{}'. Available: {}"
    UNSUPPORTED_CROP_REGION = "Unsupported region '{}'. Supported states: {}"
    INVALID_TREES = "numberOfTrees must be between {} and {}, got {}"
    INVALID_SCALE = "scale must be > 0, got {}"
    INVALID_CLOUD_COVER = "cloudCoverMax must be between 0 and 100, got {}"
    INVALID_BBOX = "Invalid bounding box: must be west,south,east,north"
    REGION_NOT_FOUND = "Region '{}' could not be resolved"
    MAP_INPUT_REQUIRED = "Either input or layers with individual inputs required"
    MAP_LAYER_INPUTS = (
        "When no primary input is provided, all layers must have their own input or tileUrl"
    )
    MAP_NO_LAYERS = "No layers could be rendered"
    MAP_ID_REQUIRED = "Map ID required"
    MAP_NOT_FOUND = "Map not found"
    NO_TASK_ID = "taskId is required for status operation"
    NO_EXPRESSION = "code is required for execute operation: a serialized Earth Engine expression"
    UNKNOWN_TOOL = "Tool not found: {}"
    UNKNOWN_METHOD = "Method not found: {}"
    INVALID_TOOL = "Invalid tool: {}. Valid tools are: Core: {}, Models: {}"
    PARSE_ERROR = "Request parsing failed"
    INVALID_REQUEST = "Invalid request: expected a JSON-RPC object"
    INVALID_ARGUMENTS = "Invalid arguments for {}: {}"
    INVALID_PARAMS = "Invalid params: {} must be an object"


class SuccessMessages:
    SEARCH = "Found {} dataset(s) matching '{}'"
    FILTER = "{} image(s) in {} between {} and {}"
    GEOMETRY = "Geometry for {}: {:.1f} km²"
    INFO = "{} ({}, {} band(s))"
    BOUNDARIES = "{} boundary dataset(s) available"
    COMPOSITE = "Composite {} created from {}"
    INDEX = "{} computed and stored as {}"
    CLIP = "Clipped {} to {} as {}"
    MASK = "Applied {} mask to {} as {}"
    ANALYZE = "Statistics for {} at {}m"
    TERRAIN = "Terrain {} stored as {}"
    RESAMPLE = "Resampled {} to {}m as {}"
    EXPORT = "Export task {} started ({})"
    THUMBNAIL = "Thumbnail ready for {}"
    TILES = "Tile service ready for {}"
    TASK_STATUS = "Task {} is {}"
    DOWNLOAD = "Download URL ready for {}"
    AUTH = "Earth Engine authenticated (project: {})"
    EXECUTE = "Expression evaluated"
    SETUP = "Setup instructions"
    LOAD = "Loaded {} as {}"
    SYSTEM_INFO = "{} v{}"
    HEALTH = "{} (store: {})"
    MAP_CREATED = "Interactive map created successfully"
    MAP_LIST = "{} active map(s)"
    MAP_DELETED = "Map session deleted"
    MAP_NOT_FOUND = "No active map with ID: {}"
    KEY_NOT_FOUND = "Key '{}' not found. {} key(s) available"
    CROP_CLASSIFY = "Classified {} with {} ({} classes)"
    CROP_TRAIN = "Trained {} classifier for {}"
    CROP_EVALUATE = "Accuracy {:.1%} (kappa {:.2f}) for {}"
    CROP_EXPORT = "Export task {} started for {}"
    FLOOD = "Flood risk for {}: {} ({:.2f})"
    DEFORESTATION = "Forest loss in {}: {:.2f}% ({} alert)"
