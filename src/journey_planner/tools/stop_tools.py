"""MCP tools for finding stops and the routes serving them."""

from journey_planner.app import index_store, mcp
from journey_planner.models.responses import (
    RouteSummary,
    SearchStopsResponse,
    StopRoutesResponse,
)
from journey_planner.services.stop_search import routes_serving_stop
from journey_planner.services.stop_search import search_stops as _search_stops


@mcp.tool()
async def search_stops(
    query: str,
    limit: int = 15,
    exclude_stop_id: str | None = None,
) -> SearchStopsResponse:
    """Search for transit stops by name, stop code or stop ID.

    Matching is case-insensitive and partial; names starting with the query
    are listed first. Queries shorter than 2 characters return nothing.

    Examples:
        search_stops(query="Central")
        search_stops(query="1042", exclude_stop_id="STOP_A")  # pick a destination

    Args:
        query: Text to search for.
        limit: Maximum number of results to return (default 15, max 100).
        exclude_stop_id: Stop to leave out, e.g. the already chosen origin.

    Returns:
        SearchStopsResponse with matching stops and count.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 100:
        limit = 100

    index = await index_store.get()
    return _search_stops(index, query, limit=limit, exclude_stop_id=exclude_stop_id)


@mcp.tool()
async def get_stop_routes(stop_id: str) -> StopRoutesResponse:
    """List the routes that serve a stop.

    Args:
        stop_id: Stop ID.

    Returns:
        StopRoutesResponse; found is False for an unknown stop ID.
    """
    index = await index_store.get()
    if stop_id not in index.stops:
        return StopRoutesResponse(stop_id=stop_id, found=False)

    routes = [
        RouteSummary(
            route_id=route.route_id,
            route_short_name=route.route_short_name,
            route_long_name=route.route_long_name,
            route_type=route.route_type,
            route_color=route.route_color,
        )
        for route in routes_serving_stop(index, stop_id)
    ]
    return StopRoutesResponse(stop_id=stop_id, found=True, routes=routes, count=len(routes))
