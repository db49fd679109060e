"""Read the schedule tables back from SQLite as domain models."""

import logging
from pathlib import Path

import aiosqlite

from journey_planner.data.database import get_db
from journey_planner.models.gtfs import FeedTables, Route, Stop, StopTime, Trip

logger = logging.getLogger(__name__)


def _int_or(value, default: int) -> int:
    """Coerce a stored value to int, falling back on bad data."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float_or_none(value) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


async def _read_routes(db: aiosqlite.Connection) -> list[Route]:
    sql = """
        SELECT route_id, route_short_name, route_long_name, route_type,
               route_color, route_text_color
        FROM routes
    """
    routes = []
    async with db.execute(sql) as cursor:
        async for row in cursor:
            routes.append(
                Route(
                    route_id=row["route_id"],
                    route_short_name=_text(row["route_short_name"]),
                    route_long_name=_text(row["route_long_name"]),
                    route_type=_int_or(row["route_type"], 3),
                    route_color=_text(row["route_color"]),
                    route_text_color=_text(row["route_text_color"]),
                )
            )
    return routes


async def _read_stops(db: aiosqlite.Connection) -> list[Stop]:
    sql = """
        SELECT stop_id, stop_code, stop_name, stop_lat, stop_lon, location_type,
               parent_station, zone_id, wheelchair_boarding
        FROM stops
    """
    stops = []
    async with db.execute(sql) as cursor:
        async for row in cursor:
            stops.append(
                Stop(
                    stop_id=row["stop_id"],
                    stop_code=_text(row["stop_code"]),
                    stop_name=_text(row["stop_name"]) or row["stop_id"],
                    stop_lat=_float_or_none(row["stop_lat"]),
                    stop_lon=_float_or_none(row["stop_lon"]),
                    location_type=_int_or(row["location_type"], 0),
                    parent_station=_text(row["parent_station"]),
                    zone_id=_text(row["zone_id"]),
                    wheelchair_boarding=_int_or(row["wheelchair_boarding"], 0),
                )
            )
    return stops


async def _read_trips(db: aiosqlite.Connection) -> list[Trip]:
    sql = "SELECT trip_id, route_id, service_id, trip_headsign, direction_id FROM trips"
    trips = []
    async with db.execute(sql) as cursor:
        async for row in cursor:
            trips.append(
                Trip(
                    trip_id=row["trip_id"],
                    route_id=row["route_id"],
                    service_id=_text(row["service_id"]),
                    trip_headsign=_text(row["trip_headsign"]),
                    direction_id=_int_or(row["direction_id"], 0),
                )
            )
    return trips


async def _read_stop_times(db: aiosqlite.Connection) -> list[StopTime]:
    sql = """
        SELECT trip_id, stop_id, stop_sequence, arrival_time, departure_time
        FROM stop_times
    """
    stop_times = []
    skipped = 0
    async with db.execute(sql) as cursor:
        async for row in cursor:
            sequence = _int_or(row["stop_sequence"], -1)
            if sequence < 0:
                skipped += 1
                continue
            stop_times.append(
                StopTime(
                    trip_id=row["trip_id"],
                    stop_id=row["stop_id"],
                    stop_sequence=sequence,
                    arrival_time=_text(row["arrival_time"]),
                    departure_time=_text(row["departure_time"]),
                )
            )
    if skipped:
        logger.warning(f"Skipped {skipped:,} stop times with an invalid stop_sequence")
    return stop_times


async def read_feed(db_path: Path | None = None) -> FeedTables:
    """Load stops, routes, trips and stop times from the feed store.

    Args:
        db_path: Optional database path override.

    Returns:
        FeedTables ready for ScheduleIndex.build().

    Raises:
        FileNotFoundError: If the database doesn't exist.
    """
    async with get_db(db_path) as db:
        routes = await _read_routes(db)
        stops = await _read_stops(db)
        trips = await _read_trips(db)
        stop_times = await _read_stop_times(db)

    logger.info(
        f"Read feed: {len(stops):,} stops, {len(routes):,} routes, "
        f"{len(trips):,} trips, {len(stop_times):,} stop times"
    )
    return FeedTables(
        stops=tuple(stops),
        routes=tuple(routes),
        trips=tuple(trips),
        stop_times=tuple(stop_times),
    )
