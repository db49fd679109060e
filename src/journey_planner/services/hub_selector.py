"""Candidate transfer stops for one-change journeys.

Three strategies propose hubs and their union is scored:

1. Official interchanges (location_type == 1).
2. High-traffic stops served by several distinct routes.
3. Network overlap: stops reachable downstream of the origin on one of its
   route-directions that also lie upstream of the destination on one of its
   route-directions.

The scored list is truncated, so a valid hub can occasionally be missed.
"""

import logging

from journey_planner.data.config import PlannerConfig, get_planner_config
from journey_planner.models.gtfs import Stop
from journey_planner.models.responses import HubCandidate, HubSource
from journey_planner.services.distance import stop_distance_km
from journey_planner.services.schedule_index import ScheduleIndex

logger = logging.getLogger(__name__)

ROUTE_DIRECTION_WEIGHT = 10
INTERCHANGE_BONUS = 50
DETOUR_BONUS = 30
TIGHT_DETOUR_BONUS = 20
ACCESSIBILITY_BONUS = 10

DETOUR_LIMIT = 1.5
TIGHT_DETOUR_LIMIT = 1.2


def score_hub(index: ScheduleIndex, hub: Stop, origin: Stop, destination: Stop) -> int:
    """Heuristic attractiveness of a hub for this origin/destination pair."""
    score = ROUTE_DIRECTION_WEIGHT * len(index.route_directions_at(hub.stop_id))

    if hub.is_interchange:
        score += INTERCHANGE_BONUS

    direct_km = stop_distance_km(origin, destination)
    if direct_km > 0 and hub.has_location:
        detour = (stop_distance_km(origin, hub) + stop_distance_km(hub, destination)) / direct_km
        if detour < DETOUR_LIMIT:
            score += DETOUR_BONUS
        if detour < TIGHT_DETOUR_LIMIT:
            score += TIGHT_DETOUR_BONUS

    if hub.is_accessible:
        score += ACCESSIBILITY_BONUS

    return score


def _downstream_stops(index: ScheduleIndex, stop_id: str) -> set[str]:
    """Stops after stop_id on any route-direction serving it."""
    reachable: set[str] = set()
    for route_id, direction_id in index.route_directions_at(stop_id):
        seen_stop = False
        for stop_time in index.direction_stops(route_id, direction_id):
            if seen_stop:
                reachable.add(stop_time.stop_id)
            elif stop_time.stop_id == stop_id:
                seen_stop = True
    return reachable


def _upstream_stops(index: ScheduleIndex, stop_id: str) -> set[str]:
    """Stops before stop_id on any route-direction serving it."""
    reaching: set[str] = set()
    for route_id, direction_id in index.route_directions_at(stop_id):
        before: list[str] = []
        for stop_time in index.direction_stops(route_id, direction_id):
            if stop_time.stop_id == stop_id:
                reaching.update(before)
                break
            before.append(stop_time.stop_id)
    return reaching


def propose_hubs(
    index: ScheduleIndex,
    origin_stop_id: str,
    destination_stop_id: str,
    min_routes: int = 2,
) -> dict[str, set[HubSource]]:
    """Union of the three strategies, keyed by stop id."""
    excluded = {origin_stop_id, destination_stop_id}
    proposals: dict[str, set[HubSource]] = {}

    def add(stop_id: str, source: HubSource) -> None:
        if stop_id in excluded or stop_id not in index.stops:
            return
        proposals.setdefault(stop_id, set()).add(source)

    for stop in index.stops.values():
        if stop.is_interchange:
            add(stop.stop_id, HubSource.INTERCHANGE)

    for stop_id in index.stop_routes:
        if len(index.route_ids_at(stop_id)) >= min_routes:
            add(stop_id, HubSource.HIGH_TRAFFIC)

    overlap = _downstream_stops(index, origin_stop_id) & _upstream_stops(
        index, destination_stop_id
    )
    for stop_id in overlap:
        add(stop_id, HubSource.NETWORK_OVERLAP)

    return proposals


def select_hubs(
    index: ScheduleIndex,
    origin_stop_id: str,
    destination_stop_id: str,
    config: PlannerConfig | None = None,
) -> list[HubCandidate]:
    """Propose, score and truncate candidate transfer hubs.

    Args:
        index: Built schedule index.
        origin_stop_id: Journey origin (never a hub).
        destination_stop_id: Journey destination (never a hub).
        config: Search bounds (default: environment configuration).

    Returns:
        At most config.max_hubs candidates, best score first.
    """
    config = config or get_planner_config()

    origin = index.stops.get(origin_stop_id)
    destination = index.stops.get(destination_stop_id)
    if origin is None or destination is None:
        return []

    proposals = propose_hubs(
        index, origin_stop_id, destination_stop_id, config.high_traffic_min_routes
    )

    candidates = [
        HubCandidate(
            stop=index.stops[stop_id],
            score=score_hub(index, index.stops[stop_id], origin, destination),
            route_direction_count=len(index.route_directions_at(stop_id)),
            sources=frozenset(sources),
        )
        for stop_id, sources in proposals.items()
    ]
    candidates.sort(key=lambda c: (-c.score, c.stop.stop_id))

    logger.debug(
        f"{len(candidates)} hub candidates for {origin_stop_id} -> {destination_stop_id}, "
        f"keeping {min(len(candidates), config.max_hubs)}"
    )
    return candidates[: config.max_hubs]
