"""Scheduled departures from a single stop."""

import logging

from journey_planner.models.responses import ScheduledDeparture, StopDeparturesResponse, StopInfo
from journey_planner.services.connection_finder import direction_label
from journey_planner.services.schedule_index import ScheduleIndex
from journey_planner.services.time_utils import (
    current_time_of_day,
    format_time,
    is_at_or_after,
    try_parse_time,
)

logger = logging.getLogger(__name__)

UNKNOWN_DESTINATION = "Unknown destination"

# Long terminal names are cut at their first dash: "Airport - Terminal 1 Arrivals Level"
MAX_DESTINATION_LENGTH = 30


def final_destination(index: ScheduleIndex, trip_id: str) -> str:
    """Display name of the last stop a trip calls at."""
    stop_times = index.trip_stops.get(trip_id)
    if not stop_times:
        return UNKNOWN_DESTINATION

    last_stop = index.stops.get(stop_times[-1].stop_id)
    if last_stop is None:
        return UNKNOWN_DESTINATION

    name = last_stop.stop_name.strip()
    if len(name) > MAX_DESTINATION_LENGTH:
        name = name.split("-")[0].strip()
    return name or "Terminal"


def get_stop_departures(
    index: ScheduleIndex,
    stop_id: str,
    after_time: str | None = None,
    end_time: str | None = None,
    limit: int = 20,
    route_id: str | None = None,
    direction_id: int | None = None,
) -> StopDeparturesResponse:
    """Get scheduled departures from a stop.

    A trip's call at its final stop is not a departure and is left out. A
    loop trip that calls at the stop twice contributes both calls.

    Args:
        index: Built schedule index.
        stop_id: The stop ID to list departures for.
        after_time: Earliest departure in HH:MM[:SS] format (default: now).
        end_time: Latest departure in HH:MM[:SS] format (default: end of
            the service day).
        limit: Maximum number of departures to return.
        route_id: Optional route ID to filter by.
        direction_id: Optional direction (0 or 1) to filter by.

    Returns:
        StopDeparturesResponse with departures in time order; found is
        False for an unknown stop ID.

    Raises:
        ValueError: If after_time or end_time cannot be parsed.
    """
    query_time = after_time or current_time_of_day()
    start = try_parse_time(query_time)
    if start is None:
        raise ValueError(f"Invalid time: {query_time!r}")
    end = None
    if end_time is not None:
        end = try_parse_time(end_time)
        if end is None:
            raise ValueError(f"Invalid time: {end_time!r}")

    stop = index.stops.get(stop_id)
    if stop is None:
        return StopDeparturesResponse(stop_id=stop_id, found=False, query_time=query_time)

    found: list[tuple[int, ScheduledDeparture]] = []
    for key in sorted(index.route_directions_at(stop_id)):
        if route_id is not None and key[0] != route_id:
            continue
        if direction_id is not None and key[1] != direction_id:
            continue

        route = index.routes[key[0]]
        for trip_id in index.route_direction_trips.get(key, ()):
            trip = index.trips[trip_id]
            calls = index.trip_stops.get(trip_id, ())
            for stop_time in calls[:-1]:
                if stop_time.stop_id != stop_id:
                    continue
                departure = stop_time.departure_time or stop_time.arrival_time
                parsed = try_parse_time(departure)
                if parsed is None:
                    continue
                if not is_at_or_after(parsed, start):
                    continue
                if end is not None and not is_at_or_after(end, parsed):
                    continue

                found.append(
                    (
                        parsed.total_minutes,
                        ScheduledDeparture(
                            trip_id=trip_id,
                            route_id=route.route_id,
                            route_short_name=route.route_short_name,
                            route_type=route.route_type,
                            direction_id=trip.direction_id,
                            direction_label=direction_label(trip),
                            trip_headsign=trip.trip_headsign,
                            final_destination=final_destination(index, trip_id),
                            departure_time=departure,
                            departure_time_formatted=format_time(departure),
                            minutes_until=parsed.total_minutes - start.total_minutes,
                        ),
                    )
                )

    found.sort(key=lambda item: (item[0], item[1].route_id, item[1].trip_id))
    departures = [departure for _, departure in found[:limit]]

    logger.debug(f"{len(found)} departures from {stop_id} after {query_time}")

    return StopDeparturesResponse(
        stop_id=stop_id,
        found=True,
        stop=StopInfo(stop_id=stop.stop_id, stop_name=stop.stop_name, stop_code=stop.stop_code),
        departures=departures,
        query_time=query_time,
        count=len(departures),
    )
