#!/usr/bin/env python3
"""
Flood and Forest Demo -- chuk-mcp-earthengine

Runs the urban flood risk model for Houston and the deforestation model
for a box in the Amazon, then prints the factor breakdown and the
carbon estimate.

Usage:
    python examples/flood_forest_demo.py

Requirements:
    Earth Engine service account credentials in the environment.
"""

import asyncio

from tool_runner import ToolRunner

# -- Configuration -----------------------------------------------------------

FLOOD_REGION = "Houston"
FOREST_REGION = "-62,-4,-60,-2"


async def main() -> None:
    runner = ToolRunner()

    print("=" * 60)
    print("Flood Risk and Forest Loss")
    print("=" * 60)

    print(f"\nFlood risk ({FLOOD_REGION}, urban):")
    flood = await runner.run(
        "flood_risk_assessment", region=FLOOD_REGION, start_date="2024-01-01", end_date="2024-07-01"
    )
    if "error" in flood:
        print(f"  ERROR: {flood['error']}")
    else:
        print(f"  Score: {flood['risk_score']:.2f} ({flood['risk_level']})")
        for name, score in flood["factors"].items():
            print(f"  {name:14s} {score:.2f}")
        change = flood.get("water_change") or {}
        if change.get("change") is not None:
            print(f"  NDWI change: {change['change']:+.3f}")

    print(f"\nDeforestation ({FOREST_REGION}):")
    print(
        await runner.run_text(
            "deforestation_detection",
            region=FOREST_REGION,
            baseline_start="2023-06-01",
            baseline_end="2023-09-01",
            current_start="2024-06-01",
            current_end="2024-09-01",
        )
    )

    await runner.close()


if __name__ == "__main__":
    asyncio.run(main())
