#!/usr/bin/env python3
"""
Capabilities Demo -- chuk-mcp-earthengine

Quick-start script showing what the server can do without Earth Engine
credentials. Lists tools, searches the dataset catalog, shows boundary
datasets and setup status, and demonstrates the dual output mode
(JSON vs text).

Usage:
    python examples/capabilities_demo.py
"""

import asyncio

from tool_runner import ToolRunner


async def main() -> None:
    runner = ToolRunner()

    print("=" * 60)
    print("chuk-mcp-earthengine -- Server Capabilities")
    print("=" * 60)

    # List all registered tools
    print(f"\nRegistered tools ({len(runner.tool_names)}):")
    for name in sorted(runner.tool_names):
        print(f"  - {name}")

    # Server info
    info = await runner.run("earth_engine_system", operation="info")
    print(f"\n{info['server']} v{info['version']} (MCP {info['protocol_version']})")
    print(f"  Cataloged datasets: {info['datasets']}")

    # Catalog search
    for query in ("sentinel", "elevation", "precipitation"):
        found = await runner.run("earth_engine_data", operation="search", query=query)
        print(f"\nSearch '{query}' ({found['count']} match(es)):")
        for d in found["datasets"]:
            print(f"  {d['id']:32s}  {d['resolution_m']:5d}m  {d['temporal']}")

    # Boundary datasets used for region lookup
    boundaries = await runner.run("earth_engine_data", operation="boundaries")
    print("\nBoundary datasets:")
    for b in boundaries["datasets"]:
        print(f"  {b['id']:28s}  {b['name']} (name property: {b['name_property']})")

    # Setup status
    print("\nearth_engine_system setup (output_mode='text'):")
    print(await runner.run_text("earth_engine_system", operation="setup"))

    # ---------------------------------------------------------------
    # Dual output mode: text vs JSON
    # ---------------------------------------------------------------
    print("\n" + "-" * 60)
    print("Dual Output Mode Demo")
    print("-" * 60)

    print("\nearth_engine_data search (output_mode='text'):")
    print(await runner.run_text("earth_engine_data", operation="search", query="landsat"))

    print("\nUnknown operation (output_mode='text'):")
    print(await runner.run_text("earth_engine_data", operation="teleport"))

    await runner.close()

    print("\n" + "=" * 60)
    print("Everything above runs without Earth Engine credentials.")
    print("Run vegetation_map_demo and flood_forest_demo with a service")
    print("account configured to see the full pipeline.")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
