#!/usr/bin/env python3
"""
Vegetation Map Demo -- chuk-mcp-earthengine

Builds a cloud-masked Sentinel-2 summer composite over Iowa, computes
NDVI, reduces it to regional statistics and opens an interactive map
with true-color and NDVI layers.

Usage:
    python examples/vegetation_map_demo.py

Requirements:
    GOOGLE_APPLICATION_CREDENTIALS_JSON (or GOOGLE_APPLICATION_CREDENTIALS)
    set to an Earth Engine service account key. Start the HTTP server
    (chuk-mcp-earthengine http) to open the map URL.
"""

import asyncio
import sys

from tool_runner import ToolRunner

# -- Configuration -----------------------------------------------------------

REGION = "Iowa"
START_DATE = "2024-06-01"
END_DATE = "2024-08-31"


def check(result: dict, step: str) -> dict:
    if "error" in result:
        print(f"  ERROR ({step}): {result['error']}")
        sys.exit(1)
    return result


# -- Main pipeline -----------------------------------------------------------


async def main() -> None:
    runner = ToolRunner()

    print("=" * 60)
    print(f"{REGION} -- Sentinel-2 Vegetation Map")
    print("=" * 60)

    auth = await runner.run("earth_engine_system", operation="auth")
    print(f"\n{auth['message']}")
    if not auth["initialized"]:
        sys.exit(1)

    # Step 1: Composite
    print("\nStep 1: Building composite...")
    composite = check(
        await runner.run(
            "earth_engine_process",
            operation="composite",
            region=REGION,
            start_date=START_DATE,
            end_date=END_DATE,
        ),
        "composite",
    )
    print(f"  Key: {composite['key']}")

    # Step 2: NDVI
    print("\nStep 2: Computing NDVI...")
    ndvi = check(
        await runner.run(
            "earth_engine_process", operation="index", input=composite["key"], index_type="NDVI"
        ),
        "index",
    )
    print(f"  Key: {ndvi['key']}")

    # Step 3: Statistics
    print("\nStep 3: Regional statistics...")
    print(
        await runner.run_text(
            "earth_engine_process", operation="analyze", input=ndvi["key"], region=REGION, scale=500
        )
    )

    # Step 4: Interactive map
    print("\nStep 4: Creating map...")
    created = check(
        await runner.run(
            "earth_engine_map",
            operation="create",
            region=REGION,
            layers=[
                {"name": "True color", "input": composite["key"]},
                {"name": "NDVI", "input": ndvi["key"]},
            ],
        ),
        "map",
    )
    print(f"  Map: {created['url']}")
    for layer in created["layers"]:
        print(f"  {layer['name']}: {layer['tile_url']}")

    await runner.close()


if __name__ == "__main__":
    asyncio.run(main())
