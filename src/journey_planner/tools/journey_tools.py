from journey_planner.app import index_store, mcp
from journey_planner.models.responses import PlanJourneyResponse, SearchStatus
from journey_planner.services.journey_planner import search_journeys

STATUS_ERRORS = {
    SearchStatus.NO_ITINERARY: "No itinerary found",
    SearchStatus.SAME_STOP: "Origin and destination are the same stop",
    SearchStatus.UNKNOWN_ORIGIN: "Unknown origin stop",
    SearchStatus.UNKNOWN_DESTINATION: "Unknown destination stop",
    SearchStatus.INVALID_DEPARTURE_TIME: "Departure time must be HH:MM or HH:MM:SS",
}


@mcp.tool()
async def plan_journey(
    origin_stop_id: str,
    destination_stop_id: str,
    departure_time: str | None = None,
    limit: int = 5,
) -> PlanJourneyResponse:
    """Plan a transit journey between two stops.

    Finds direct itineraries and itineraries with one transfer at a hub
    stop. Results put direct trips first, then higher confidence, then
    shorter duration.

    Args:
        origin_stop_id: Origin stop ID (use search_stops to find it)
        destination_stop_id: Destination stop ID
        departure_time: Earliest departure in HH:MM or HH:MM:SS (default: now)
        limit: Maximum itineraries to return (1-12, default: 5)

    Returns:
        PlanJourneyResponse with ranked itineraries.
    """
    # Clamp limit
    if limit < 1:
        limit = 1
    elif limit > 12:
        limit = 12

    index = await index_store.get()
    plan = await search_journeys(
        index,
        origin_stop_id=origin_stop_id,
        destination_stop_id=destination_stop_id,
        min_departure_time=departure_time,
    )
    itineraries = plan.itineraries[:limit]

    return PlanJourneyResponse(
        origin_stop_id=origin_stop_id,
        destination_stop_id=destination_stop_id,
        status=plan.status,
        itineraries=itineraries,
        query_time=plan.departure_time,
        count=len(itineraries),
        success=len(itineraries) > 0,
        timed_out=plan.timed_out,
        error=STATUS_ERRORS.get(plan.status),
    )
