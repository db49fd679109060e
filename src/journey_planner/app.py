"""MCP application instance.

This module exists to avoid circular import issues when running with `python -m`.
All tool modules should import `mcp` and `index_store` from here, not from server.py.
"""

from mcp.server.fastmcp import FastMCP

from journey_planner.data.index_store import IndexStore

# Initialize the MCP server
mcp = FastMCP(
    "Journey Planner",
    instructions="Transit journey planning over a static GTFS schedule - "
    "direct and one-transfer itineraries, stop search",
)

# Schedule index for the configured feed store, built on first request
index_store = IndexStore()
