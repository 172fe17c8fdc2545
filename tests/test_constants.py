"""Tests for chuk_mcp_earthengine.constants."""

import pytest

from chuk_mcp_earthengine.constants import (
    ALERT_LEVELS,
    ALL_TOOL_NAMES,
    BOUNDARY_DATASETS,
    CITY_COORDS,
    CLASSIFIERS,
    DATA_OPERATIONS,
    DATASET_CATALOG,
    DATASET_FAMILIES,
    DEFAULT_CLASSIFIER,
    DEFAULT_DATASET,
    DEFAULT_FLOOD_TYPE,
    DEFAULT_NUMBER_OF_TREES,
    ENTRY_KINDS,
    EXPORT_OPERATIONS,
    FLOOD_TYPES,
    FLOOD_WEIGHTS,
    INDEX_TYPES,
    MAP_OPERATIONS,
    MAX_TREES,
    MIN_TREES,
    MODEL_REGIONS,
    PROCESS_OPERATIONS,
    RISK_LEVELS,
    SPECTRAL_INDICES,
    SYSTEM_OPERATIONS,
    TOOL_ALIASES,
    TOOL_DEFINITIONS,
    ZOOM_THRESHOLDS,
    EnvVar,
    ErrorMessages,
    ServerConfig,
    SuccessMessages,
    ToolName,
)

# ── ServerConfig ────────────────────────────────────────────────────


class TestServerConfig:
    def test_name(self):
        assert ServerConfig.NAME == "chuk-mcp-earthengine"

    def test_version(self):
        assert ServerConfig.VERSION == "0.1.0"

    def test_handshake_identity(self):
        assert ServerConfig.MCP_SERVER_NAME == "Axion MCP Earth Engine"
        assert ServerConfig.PROTOCOL_VERSION == "2024-11-05"

    def test_description_is_nonempty(self):
        assert len(ServerConfig.DESCRIPTION) > 10


class TestEnvVar:
    def test_credential_variables(self):
        assert EnvVar.GOOGLE_APPLICATION_CREDENTIALS_JSON == "GOOGLE_APPLICATION_CREDENTIALS_JSON"
        assert EnvVar.REDIS_URL == "REDIS_URL"
        assert EnvVar.NEXT_PUBLIC_BASE_URL == "NEXT_PUBLIC_BASE_URL"


# ── Tool definitions ────────────────────────────────────────────────


class TestToolDefinitions:
    def test_eight_tools(self):
        assert ALL_TOOL_NAMES == [
            ToolName.DATA,
            ToolName.PROCESS,
            ToolName.EXPORT,
            ToolName.SYSTEM,
            ToolName.MAP,
            ToolName.CROP,
            ToolName.FLOOD,
            ToolName.DEFORESTATION,
        ]

    @pytest.mark.parametrize("definition", TOOL_DEFINITIONS, ids=lambda d: d["name"])
    def test_schema_shape(self, definition):
        schema = definition["inputSchema"]
        assert schema["type"] == "object"
        assert definition["description"]
        for required in schema.get("required", []):
            assert required in schema["properties"]

    @pytest.mark.parametrize(
        "name,operations",
        [
            (ToolName.DATA, DATA_OPERATIONS),
            (ToolName.PROCESS, PROCESS_OPERATIONS),
            (ToolName.EXPORT, EXPORT_OPERATIONS),
            (ToolName.SYSTEM, SYSTEM_OPERATIONS),
            (ToolName.MAP, MAP_OPERATIONS),
        ],
    )
    def test_operation_enums_match(self, name, operations):
        definition = next(d for d in TOOL_DEFINITIONS if d["name"] == name)
        assert definition["inputSchema"]["properties"]["operation"]["enum"] == operations

    def test_aliases_point_at_tools(self):
        for target in TOOL_ALIASES.values():
            assert target in ALL_TOOL_NAMES


# ── Catalogs ────────────────────────────────────────────────────────


class TestCatalogs:
    def test_default_dataset_is_cataloged(self):
        assert DEFAULT_DATASET in {d["id"] for d in DATASET_CATALOG}

    def test_catalog_entries_complete(self):
        for entry in DATASET_CATALOG:
            assert {"id", "name", "type", "resolution_m", "temporal", "bands", "llm_guidance"} <= set(entry)

    def test_dataset_families(self):
        assert set(DATASET_FAMILIES.values()) == {"sentinel2-sr", "landsat8", "landsat9", "modis"}

    def test_boundaries_have_name_property(self):
        assert all(b["name_property"] for b in BOUNDARY_DATASETS)

    def test_city_coords_are_lon_lat_zoom(self):
        for lon, lat, zoom in CITY_COORDS.values():
            assert -180 <= lon <= 180
            assert -90 <= lat <= 90
            assert 1 <= zoom <= 20

    def test_model_regions_are_bboxes(self):
        for west, south, east, north in MODEL_REGIONS.values():
            assert west < east and south < north

    def test_entry_kinds(self):
        assert ENTRY_KINDS == ["composite", "classification", "model", "analysis"]


class TestIndices:
    def test_every_index_type_is_defined(self):
        for index_type in INDEX_TYPES:
            if index_type != "custom":
                assert index_type in SPECTRAL_INDICES

    def test_expression_indices_map_variables(self):
        for spec in SPECTRAL_INDICES.values():
            if "expression" in spec:
                assert set(spec["bands"]) == set(spec["landsat"])
            else:
                assert len(spec["bands"]) == len(spec["landsat"]) == 2


# ── Models ──────────────────────────────────────────────────────────


class TestModelConstants:
    def test_flood_weights_sum_to_one(self):
        for flood_type in FLOOD_TYPES:
            assert sum(FLOOD_WEIGHTS[flood_type].values()) == pytest.approx(1.0)

    def test_defaults_are_valid(self):
        assert DEFAULT_FLOOD_TYPE in FLOOD_TYPES
        assert DEFAULT_CLASSIFIER in CLASSIFIERS
        assert MIN_TREES <= DEFAULT_NUMBER_OF_TREES <= MAX_TREES

    def test_levels_descend(self):
        for levels in (RISK_LEVELS, ALERT_LEVELS, ZOOM_THRESHOLDS):
            thresholds = [t for t, _ in levels]
            assert thresholds == sorted(thresholds, reverse=True)


# ── Messages ────────────────────────────────────────────────────────


class TestMessages:
    def test_unknown_operation_format(self):
        message = ErrorMessages.UNKNOWN_OPERATION.format("melt", "clip, mask")
        assert message == "Unknown operation: melt. Available: clip, mask"

    def test_flood_message_format(self):
        assert SuccessMessages.FLOOD.format("Miami", "high", 0.5374) == "Flood risk for Miami: high (0.54)"
