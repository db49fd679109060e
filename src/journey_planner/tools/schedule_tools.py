"""MCP tools for stop timetables."""

from journey_planner.app import index_store, mcp
from journey_planner.models.responses import StopDeparturesResponse
from journey_planner.services.stop_departures import get_stop_departures as _get_stop_departures


@mcp.tool()
async def get_stop_departures(
    stop_id: str,
    after_time: str | None = None,
    end_time: str | None = None,
    limit: int = 20,
    route_id: str | None = None,
    direction_id: int | None = None,
) -> StopDeparturesResponse:
    """Get the scheduled departures from a stop.

    Each departure carries its route, direction and final destination (the
    last stop the trip serves), so riders can tell which way a vehicle goes.

    Examples:
        get_stop_departures(stop_id="1042")  # next departures from now
        get_stop_departures(stop_id="1042", after_time="17:00", end_time="19:00")
        get_stop_departures(stop_id="1042", route_id="55", direction_id=1)

    Args:
        stop_id: Stop ID.
        after_time: Earliest departure in HH:MM or HH:MM:SS format (default: now).
            Times past midnight of the service day use hours >= 24, e.g. "25:10".
        end_time: Latest departure in the same format (default: no limit).
        limit: Maximum number of departures to return (default 20, max 100).
        route_id: Only list departures on this route.
        direction_id: Only list departures in this direction (0 or 1).

    Returns:
        StopDeparturesResponse with departures in time order; found is False
        for an unknown stop ID.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 100:
        limit = 100

    index = await index_store.get()
    return _get_stop_departures(
        index,
        stop_id,
        after_time=after_time,
        end_time=end_time,
        limit=limit,
        route_id=route_id,
        direction_id=direction_id,
    )
