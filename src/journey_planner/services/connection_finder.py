"""Same-trip connections between two stops."""

import logging
from dataclasses import dataclass

from journey_planner.data.config import PlannerConfig, get_planner_config
from journey_planner.models.gtfs import Stop, StopTime, Trip
from journey_planner.models.responses import Itinerary, Leg
from journey_planner.services.distance import stop_distance_km
from journey_planner.services.schedule_index import ScheduleIndex
from journey_planner.services.time_utils import (
    GTFSTime,
    current_time_of_day,
    duration,
    format_duration,
    format_time,
    is_at_or_after,
    try_parse_time,
)

logger = logging.getLogger(__name__)

DIRECTION_LABELS = {0: "Outbound", 1: "Inbound"}

DIRECT_CONFIDENCE = 100


@dataclass
class _Connection:
    """A validated boarding/alighting pair on one trip."""

    trip: Trip
    board: StopTime
    alight: StopTime
    departure: str
    arrival: str
    duration_minutes: int
    departure_minutes: int


def direction_label(trip: Trip) -> str:
    """Human-readable direction, with the headsign when the feed has one."""
    label = DIRECTION_LABELS.get(trip.direction_id, f"Direction {trip.direction_id}")
    if trip.trip_headsign:
        return f"{label} - {trip.trip_headsign}"
    return label


def _departure_at(stop_time: StopTime) -> str | None:
    return stop_time.departure_time or stop_time.arrival_time or None


def _arrival_at(stop_time: StopTime) -> str | None:
    return stop_time.arrival_time or stop_time.departure_time or None


def _connection_on_trip(
    index: ScheduleIndex,
    trip: Trip,
    origin_id: str,
    destination_id: str,
    min_departure: GTFSTime,
    max_minutes: int,
) -> _Connection | None:
    """Check the four validity rules for one trip.

    On a trip that calls at the origin more than once, the last usable
    visit before the destination is the boarding point, so the ride is
    the shortest one that still departs after min_departure.
    """
    board = None
    departure_time = None
    alight = None
    arrival_time = None
    for stop_time in index.trip_stops.get(trip.trip_id, ()):
        if stop_time.stop_id == origin_id:
            parsed = try_parse_time(_departure_at(stop_time))
            if parsed is not None and is_at_or_after(parsed, min_departure):
                board, departure_time = stop_time, parsed
        elif stop_time.stop_id == destination_id and board is not None:
            parsed = try_parse_time(_arrival_at(stop_time))
            if parsed is not None:
                alight, arrival_time = stop_time, parsed
                break

    # Times that cannot be parsed make the visit unusable for a timed search
    if board is None or alight is None:
        return None

    departure = _departure_at(board)
    arrival = _arrival_at(alight)
    minutes = duration(departure_time, arrival_time)
    if minutes <= 0 or minutes >= max_minutes:
        return None

    return _Connection(
        trip=trip,
        board=board,
        alight=alight,
        departure=departure,
        arrival=arrival,
        duration_minutes=minutes,
        departure_minutes=departure_time.total_minutes,
    )


def _visited_stops(index: ScheduleIndex, connection: _Connection) -> tuple[Stop, ...]:
    """Boarding stop, intermediate stops in order, alighting stop."""
    visited: list[Stop] = []
    for stop_time in index.trip_stops.get(connection.trip.trip_id, ()):
        if stop_time.stop_sequence < connection.board.stop_sequence:
            continue
        if stop_time.stop_sequence > connection.alight.stop_sequence:
            break
        stop = index.stops.get(stop_time.stop_id)
        if stop is not None:
            visited.append(stop)
    return tuple(visited)


def _build_leg(index: ScheduleIndex, connection: _Connection, origin: Stop, destination: Stop) -> Leg:
    trip = connection.trip
    return Leg(
        route=index.routes[trip.route_id],
        trip_id=trip.trip_id,
        trip_headsign=trip.trip_headsign,
        direction_id=trip.direction_id,
        direction_label=direction_label(trip),
        from_stop=origin,
        to_stop=destination,
        departure_time=connection.departure,
        departure_time_formatted=format_time(connection.departure),
        arrival_time=connection.arrival,
        arrival_time_formatted=format_time(connection.arrival),
        duration_minutes=connection.duration_minutes,
        stops=_visited_stops(index, connection),
    )


def find_direct_legs(
    index: ScheduleIndex,
    origin_stop_id: str,
    destination_stop_id: str,
    min_departure: str | None = None,
    config: PlannerConfig | None = None,
) -> list[Leg]:
    """Find every valid single-trip ride from origin to destination.

    Only route-directions serving both stops are scanned. Within each, the
    valid trips are ordered by departure and capped at
    config.max_trips_per_route_direction.

    Args:
        index: Built schedule index.
        origin_stop_id: Boarding stop.
        destination_stop_id: Alighting stop.
        min_departure: Earliest departure, HH:MM[:SS] (default: now).
        config: Search bounds (default: environment configuration).

    Returns:
        Legs grouped by route-direction, each group in departure order.
        Empty when no common route-direction or no valid trip exists.
    """
    config = config or get_planner_config()

    origin = index.stops.get(origin_stop_id)
    destination = index.stops.get(destination_stop_id)
    if origin is None or destination is None or origin_stop_id == destination_stop_id:
        return []

    threshold = try_parse_time(min_departure or current_time_of_day())
    if threshold is None:
        logger.warning(f"Invalid minimum departure time {min_departure!r}")
        return []

    common = index.route_directions_at(origin_stop_id) & index.route_directions_at(
        destination_stop_id
    )
    if not common:
        return []

    legs: list[Leg] = []
    for route_id, direction_id in sorted(common):
        connections: list[_Connection] = []
        for trip_id in index.route_direction_trips.get((route_id, direction_id), ()):
            connection = _connection_on_trip(
                index,
                index.trips[trip_id],
                origin_stop_id,
                destination_stop_id,
                threshold,
                config.max_leg_minutes,
            )
            if connection is not None:
                connections.append(connection)

        connections.sort(key=lambda c: (c.departure_minutes, c.trip.trip_id))
        for connection in connections[: config.max_trips_per_route_direction]:
            legs.append(_build_leg(index, connection, origin, destination))

    logger.debug(
        f"{len(legs)} direct legs {origin_stop_id} -> {destination_stop_id} "
        f"over {len(common)} route directions"
    )
    return legs


def direct_itinerary(leg: Leg) -> Itinerary:
    """Wrap a single leg as a zero-transfer itinerary."""
    return Itinerary(
        itinerary_id=f"direct-{leg.route.route_id}-{leg.direction_id}-{leg.trip_id}",
        origin=leg.from_stop,
        destination=leg.to_stop,
        legs=(leg,),
        departure_time=leg.departure_time,
        arrival_time=leg.arrival_time,
        total_duration_minutes=leg.duration_minutes,
        total_duration_formatted=format_duration(leg.duration_minutes),
        total_distance_km=stop_distance_km(leg.from_stop, leg.to_stop),
        transfers=0,
        walking_time_minutes=0,
        confidence=DIRECT_CONFIDENCE,
    )
