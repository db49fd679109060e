"""Pre-computed in-memory schedule index for journey search."""

import logging
from collections import defaultdict
from collections.abc import Mapping
from types import MappingProxyType

from journey_planner.models.gtfs import FeedTables, Route, Stop, StopTime, Trip
from journey_planner.services.distance import stop_distance_km

logger = logging.getLogger(__name__)

RouteDirection = tuple[str, int]  # (route_id, direction_id)


class ScheduleIndex:
    """Read-only lookup structures derived from one feed version.

    Build with ScheduleIndex.build(feed); the result is never mutated and
    can be shared between concurrent searches. Rebuild on feed reload.

    Attributes:
        stops, routes, trips: Reference tables keyed by id.
        trip_stops: trip_id -> StopTimes sorted by stop_sequence.
        stop_routes: stop_id -> (route_id, direction_id) pairs serving it.
        route_direction_stops: route_id -> direction_id -> ordered StopTimes.
        route_direction_trips: (route_id, direction_id) -> trip ids.
    """

    def __init__(
        self,
        stops: Mapping[str, Stop],
        routes: Mapping[str, Route],
        trips: Mapping[str, Trip],
        trip_stops: Mapping[str, tuple[StopTime, ...]],
        stop_routes: Mapping[str, frozenset[RouteDirection]],
        route_direction_stops: Mapping[str, Mapping[int, tuple[StopTime, ...]]],
        route_direction_trips: Mapping[RouteDirection, tuple[str, ...]],
    ) -> None:
        """Wrap pre-built maps. Use build() instead."""
        self.stops = MappingProxyType(dict(stops))
        self.routes = MappingProxyType(dict(routes))
        self.trips = MappingProxyType(dict(trips))
        self.trip_stops = MappingProxyType(dict(trip_stops))
        self.stop_routes = MappingProxyType(dict(stop_routes))
        self.route_direction_stops = MappingProxyType(
            {
                route_id: MappingProxyType(dict(directions))
                for route_id, directions in route_direction_stops.items()
            }
        )
        self.route_direction_trips = MappingProxyType(dict(route_direction_trips))

        self._stop_route_ids = MappingProxyType(
            {
                stop_id: frozenset(route_id for route_id, _ in pairs)
                for stop_id, pairs in self.stop_routes.items()
            }
        )

    @classmethod
    def build(cls, feed: FeedTables) -> "ScheduleIndex":
        """Derive every lookup in a single pass over trips and stop times."""
        stops = {stop.stop_id: stop for stop in feed.stops}
        routes = {route.route_id: route for route in feed.routes}

        trips: dict[str, Trip] = {}
        orphan_trips = 0
        for trip in feed.trips:
            if trip.route_id not in routes:
                orphan_trips += 1
                continue
            trips[trip.trip_id] = trip

        grouped: dict[str, list[StopTime]] = defaultdict(list)
        orphan_stop_times = 0
        for stop_time in feed.stop_times:
            if stop_time.trip_id not in trips:
                orphan_stop_times += 1
                continue
            grouped[stop_time.trip_id].append(stop_time)

        trip_stops: dict[str, tuple[StopTime, ...]] = {}
        for trip_id, stop_times in grouped.items():
            trip_stops[trip_id] = _sorted_unique(stop_times)

        stop_routes: dict[str, set[RouteDirection]] = defaultdict(set)
        route_direction_trips: dict[RouteDirection, list[str]] = defaultdict(list)
        for trip in trips.values():
            key = (trip.route_id, trip.direction_id)
            route_direction_trips[key].append(trip.trip_id)
            for stop_time in trip_stops.get(trip.trip_id, ()):
                stop_routes[stop_time.stop_id].add(key)

        route_direction_stops: dict[str, dict[int, tuple[StopTime, ...]]] = defaultdict(dict)
        for (route_id, direction_id), trip_ids in route_direction_trips.items():
            sequences = [trip_stops[t] for t in trip_ids if t in trip_stops]
            route_direction_stops[route_id][direction_id] = _merge_sequences(sequences)

        if orphan_trips or orphan_stop_times:
            logger.debug(
                f"Ignored {orphan_trips} trips with unknown routes and "
                f"{orphan_stop_times} stop times with unknown trips"
            )

        index = cls(
            stops=stops,
            routes=routes,
            trips=trips,
            trip_stops=trip_stops,
            stop_routes={stop_id: frozenset(pairs) for stop_id, pairs in stop_routes.items()},
            route_direction_stops=route_direction_stops,
            route_direction_trips={
                key: tuple(trip_ids) for key, trip_ids in route_direction_trips.items()
            },
        )
        logger.info(
            f"ScheduleIndex built: {len(stops)} stops, {len(routes)} routes, "
            f"{len(trips)} trips, {len(route_direction_trips)} route directions"
        )
        return index

    def route_ids_at(self, stop_id: str) -> frozenset[str]:
        """Distinct route ids serving a stop."""
        return self._stop_route_ids.get(stop_id, frozenset())

    def route_directions_at(self, stop_id: str) -> frozenset[RouteDirection]:
        return self.stop_routes.get(stop_id, frozenset())

    def direction_stops(self, route_id: str, direction_id: int) -> tuple[StopTime, ...]:
        return self.route_direction_stops.get(route_id, {}).get(direction_id, ())

    def nearby_stops(self, stop_id: str, radius_km: float) -> list[Stop]:
        """Other served stops within radius_km of a stop, nearest first."""
        center = self.stops.get(stop_id)
        if center is None or not center.has_location:
            return []

        nearby: list[tuple[float, Stop]] = []
        for other_id in self.stop_routes:
            if other_id == stop_id:
                continue
            other = self.stops.get(other_id)
            if other is None or not other.has_location:
                continue
            distance = stop_distance_km(center, other)
            if distance <= radius_km:
                nearby.append((distance, other))

        nearby.sort(key=lambda item: (item[0], item[1].stop_id))
        return [stop for _, stop in nearby]


def _sorted_unique(stop_times: list[StopTime]) -> tuple[StopTime, ...]:
    """Sort by stop_sequence, keeping the first row for a repeated sequence."""
    result: list[StopTime] = []
    seen: set[int] = set()
    for stop_time in sorted(stop_times, key=lambda st: st.stop_sequence):
        if stop_time.stop_sequence in seen:
            continue
        seen.add(stop_time.stop_sequence)
        result.append(stop_time)
    return tuple(result)


def _merge_sequences(sequences: list[tuple[StopTime, ...]]) -> tuple[StopTime, ...]:
    """Union of several trips' stops in the order of the longest trip.

    Stops missing from the representative are inserted after the nearest
    stop that precedes them on their own trip.
    """
    if not sequences:
        return ()

    ordered = sorted(sequences, key=len, reverse=True)
    merged = list(ordered[0])
    positions = {stop_time.stop_id for stop_time in merged}

    for sequence in ordered[1:]:
        insert_at = 0
        for stop_time in sequence:
            if stop_time.stop_id in positions:
                insert_at = _position_of(merged, stop_time.stop_id) + 1
                continue
            merged.insert(insert_at, stop_time)
            positions.add(stop_time.stop_id)
            insert_at += 1

    return tuple(merged)


def _position_of(stop_times: list[StopTime], stop_id: str) -> int:
    for i, stop_time in enumerate(stop_times):
        if stop_time.stop_id == stop_id:
            return i
    return -1
