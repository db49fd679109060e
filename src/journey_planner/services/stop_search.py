"""Stop lookup for choosing journey endpoints."""

import unicodedata
from functools import lru_cache

from rapidfuzz import fuzz

from journey_planner.models.gtfs import Route, Stop
from journey_planner.models.responses import SearchStopsResponse, StopResult
from journey_planner.services.schedule_index import ScheduleIndex

MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 15

# Typo-tolerant matches below this blended score are dropped
FUZZY_MIN_SCORE = 80.0


@lru_cache(maxsize=4096)
def normalize_text(text: str) -> str:
    """Lowercase and strip accents: "Côte-Vertu" -> "cote-vertu"."""
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def fuzzy_score(query: str, target: str) -> float:
    """Blend of token_set_ratio (word order) and partial_ratio (substrings)."""
    token_score = fuzz.token_set_ratio(query, target)
    partial_score = fuzz.partial_ratio(query, target)
    return token_score * 0.7 + partial_score * 0.3


def _to_stop_result(index: ScheduleIndex, stop: Stop) -> StopResult:
    return StopResult(
        stop_id=stop.stop_id,
        stop_code=stop.stop_code,
        stop_name=stop.stop_name,
        stop_lat=stop.stop_lat,
        stop_lon=stop.stop_lon,
        location_type=stop.location_type,
        zone_id=stop.zone_id,
        wheelchair_boarding=stop.wheelchair_boarding,
        route_count=len(index.route_ids_at(stop.stop_id)),
    )


def find_stops(
    index: ScheduleIndex,
    query: str,
    limit: int = DEFAULT_LIMIT,
    exclude_stop_id: str | None = None,
) -> list[Stop]:
    """Match stops by name, code or id.

    Case- and accent-insensitive substring match. Names starting with the
    query come first, then shorter names. When that leaves room under the
    limit, names scoring at least FUZZY_MIN_SCORE against the query follow,
    best score first. Queries under two characters match nothing.
    """
    needle = normalize_text(query)
    if len(needle) < MIN_QUERY_LENGTH:
        return []

    candidates = [stop for stop in index.stops.values() if stop.stop_id != exclude_stop_id]

    matches = [
        stop
        for stop in candidates
        if needle in normalize_text(stop.stop_name)
        or needle in (stop.stop_code or "").lower()
        or needle in stop.stop_id.lower()
    ]
    matches.sort(
        key=lambda stop: (
            0 if normalize_text(stop.stop_name).startswith(needle) else 1,
            len(stop.stop_name),
            stop.stop_name,
        )
    )
    if len(matches) >= limit:
        return matches[:limit]

    matched_ids = {stop.stop_id for stop in matches}
    fuzzy: list[tuple[float, Stop]] = []
    for stop in candidates:
        if stop.stop_id in matched_ids:
            continue
        score = fuzzy_score(needle, normalize_text(stop.stop_name))
        if score >= FUZZY_MIN_SCORE:
            fuzzy.append((score, stop))
    fuzzy.sort(key=lambda item: (-item[0], item[1].stop_name))

    matches.extend(stop for _, stop in fuzzy)
    return matches[:limit]


def search_stops(
    index: ScheduleIndex,
    query: str,
    limit: int = DEFAULT_LIMIT,
    exclude_stop_id: str | None = None,
) -> SearchStopsResponse:
    """Search stops and wrap them for the tool surface."""
    stops = [_to_stop_result(index, stop) for stop in find_stops(index, query, limit, exclude_stop_id)]
    return SearchStopsResponse(stops=stops, count=len(stops))


def routes_serving_stop(index: ScheduleIndex, stop_id: str) -> list[Route]:
    """Routes with at least one trip calling at the stop."""
    routes = [index.routes[route_id] for route_id in index.route_ids_at(stop_id)]
    routes.sort(key=lambda route: (route.display_name, route.route_id))
    return routes
