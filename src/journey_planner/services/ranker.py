"""Deduplication and ordering of candidate itineraries."""

from collections.abc import Iterable

from journey_planner.models.responses import Itinerary

DEFAULT_MAX_RESULTS = 10


def dedup_key(itinerary: Itinerary) -> tuple[str, str, tuple[str, ...]]:
    """Itineraries sharing origin, destination and route sequence are equivalent."""
    return (itinerary.origin.stop_id, itinerary.destination.stop_id, itinerary.route_ids)


def rank_key(itinerary: Itinerary) -> tuple[int, int, int]:
    """Fewer transfers, then higher confidence, then shorter duration."""
    return (itinerary.transfers, -itinerary.confidence, itinerary.total_duration_minutes)


def rank_itineraries(
    itineraries: Iterable[Itinerary],
    limit: int = DEFAULT_MAX_RESULTS,
) -> list[Itinerary]:
    """Deduplicate, filter, sort and truncate candidate itineraries.

    The first itinerary seen for each dedup key is kept. Ranking the output
    again returns it unchanged.

    Args:
        itineraries: Candidates in discovery order.
        limit: Maximum itineraries to return.

    Returns:
        At most limit itineraries, best first.
    """
    seen: set[tuple[str, str, tuple[str, ...]]] = set()
    unique: list[Itinerary] = []
    for itinerary in itineraries:
        if not itinerary.legs:
            continue
        key = dedup_key(itinerary)
        if key in seen:
            continue
        seen.add(key)
        unique.append(itinerary)

    unique.sort(key=rank_key)
    return unique[:limit]
