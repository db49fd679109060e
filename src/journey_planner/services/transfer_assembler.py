"""Two-leg itineraries through a single transfer hub."""

import logging

from journey_planner.data.config import PlannerConfig, get_planner_config
from journey_planner.models.gtfs import Stop
from journey_planner.models.responses import Itinerary, Leg
from journey_planner.services.connection_finder import find_direct_legs
from journey_planner.services.distance import stop_distance_km, walking_minutes
from journey_planner.services.schedule_index import ScheduleIndex
from journey_planner.services.time_utils import duration, format_duration, parse_time

logger = logging.getLogger(__name__)

# Confidence for transfer itineraries
BASE_TRANSFER_CONFIDENCE = 85
MIN_TRANSFER_CONFIDENCE = 60
WALKING_PENALTY = 10


def transfer_floor_minutes(
    hub: Stop,
    alight_stop: Stop,
    board_stop: Stop,
    config: PlannerConfig | None = None,
) -> int:
    """Time budgeted for changing vehicles at a hub.

    Same-stop changes get the interchange or standard allowance; changes
    between two distinct stops get a walking estimate instead.
    """
    config = config or get_planner_config()

    if alight_stop.stop_id != board_stop.stop_id:
        return walking_minutes(
            stop_distance_km(alight_stop, board_stop),
            minutes_per_km=config.walk_minutes_per_km,
        )
    if hub.is_interchange:
        return config.interchange_transfer_minutes
    return config.standard_transfer_minutes


def transfer_confidence(wait_minutes: int, walked: bool) -> int:
    """Confidence that the change is made; never increases with wait."""
    confidence = max(MIN_TRANSFER_CONFIDENCE, BASE_TRANSFER_CONFIDENCE - wait_minutes)
    if walked:
        confidence -= WALKING_PENALTY
    return confidence


def assemble_transfer(
    origin: Stop,
    hub: Stop,
    destination: Stop,
    first_leg: Leg,
    second_leg: Leg,
    config: PlannerConfig | None = None,
) -> Itinerary | None:
    """Combine two legs into a one-transfer itinerary if the change works.

    The wait between arrival and the next departure must be at least the
    minimum connection time (or the walking time when the legs use distinct
    stops) and at most config.max_transfer_wait_minutes. The whole journey
    must stay under config.max_itinerary_minutes.

    Returns:
        The itinerary, or None when the pair does not connect.
    """
    config = config or get_planner_config()

    alight_stop = first_leg.to_stop
    board_stop = second_leg.from_stop
    walked = alight_stop.stop_id != board_stop.stop_id

    floor = transfer_floor_minutes(hub, alight_stop, board_stop, config)
    min_wait = floor if walked else config.min_connection_minutes
    wait = duration(first_leg.arrival_time, second_leg.departure_time)

    if not min_wait <= wait <= config.max_transfer_wait_minutes:
        return None

    total = first_leg.duration_minutes + wait + second_leg.duration_minutes
    if total >= config.max_itinerary_minutes:
        return None

    walk_km = stop_distance_km(alight_stop, board_stop) if walked else None
    total_distance = stop_distance_km(origin, alight_stop) + stop_distance_km(
        board_stop, destination
    )
    if walk_km:
        total_distance += walk_km

    transfer_stops = (hub, board_stop) if walked else (hub,)

    return Itinerary(
        itinerary_id=(
            f"transfer-{first_leg.route.route_id}-{second_leg.route.route_id}-"
            f"{hub.stop_id}-{first_leg.trip_id}-{second_leg.trip_id}"
        ),
        origin=origin,
        destination=destination,
        legs=(first_leg, second_leg),
        departure_time=first_leg.departure_time,
        arrival_time=second_leg.arrival_time,
        total_duration_minutes=total,
        total_duration_formatted=format_duration(total),
        total_distance_km=round(total_distance, 2),
        transfers=1,
        walking_time_minutes=floor,
        confidence=transfer_confidence(wait, walked),
        transfer_wait_minutes=wait,
        transfer_walk_km=walk_km,
        transfer_stops=transfer_stops,
    )


def find_transfer_itineraries(
    index: ScheduleIndex,
    origin_stop_id: str,
    hub_stop_id: str,
    destination_stop_id: str,
    min_departure: str | None = None,
    config: PlannerConfig | None = None,
) -> list[Itinerary]:
    """Search one hub for origin -> hub -> destination itineraries.

    First legs end at the hub; second legs start at the hub or at a stop
    within config.max_walk_km of it and must use a different route. For each
    first leg and boarding stop, only the earliest second leg that makes the
    connection is kept.

    Returns:
        Up to config.max_results_per_hub itineraries; empty if none connect.
    """
    config = config or get_planner_config()

    origin = index.stops.get(origin_stop_id)
    hub = index.stops.get(hub_stop_id)
    destination = index.stops.get(destination_stop_id)
    if origin is None or hub is None or destination is None:
        return []

    first_legs = find_direct_legs(index, origin_stop_id, hub_stop_id, min_departure, config)
    if not first_legs:
        return []
    first_legs.sort(key=_arrival_key)
    first_legs = first_legs[: config.max_first_legs_per_hub]

    boarding_stops = [hub] + [
        stop
        for stop in index.nearby_stops(hub_stop_id, config.max_walk_km)
        if stop.stop_id not in (origin_stop_id, destination_stop_id)
    ]

    results: list[Itinerary] = []
    for first_leg in first_legs:
        for board_stop in boarding_stops:
            second_legs = find_direct_legs(
                index, board_stop.stop_id, destination_stop_id, first_leg.arrival_time, config
            )
            second_legs.sort(key=_departure_key)
            for second_leg in second_legs:
                if second_leg.route.route_id == first_leg.route.route_id:
                    continue
                itinerary = assemble_transfer(
                    origin, hub, destination, first_leg, second_leg, config
                )
                if itinerary is not None:
                    results.append(itinerary)
                    break
            if len(results) >= config.max_results_per_hub:
                break
        if len(results) >= config.max_results_per_hub:
            break

    logger.debug(f"Hub {hub_stop_id}: {len(results)} transfer itineraries")
    return results


def _departure_key(leg: Leg) -> tuple[int, str]:
    return parse_time(leg.departure_time).total_minutes, leg.trip_id


def _arrival_key(leg: Leg) -> tuple[int, str]:
    return parse_time(leg.arrival_time).total_minutes, leg.trip_id
