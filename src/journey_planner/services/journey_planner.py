"""Journey planning: direct search, concurrent hub search, ranking."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from journey_planner.data.config import (
    PlannerConfig,
    TransferSearchMode,
    get_planner_config,
)
from journey_planner.models.responses import (
    HubCandidate,
    Itinerary,
    JourneyPlan,
    SearchStatus,
)
from journey_planner.services.connection_finder import direct_itinerary, find_direct_legs
from journey_planner.services.hub_selector import select_hubs
from journey_planner.services.ranker import rank_itineraries
from journey_planner.services.schedule_index import ScheduleIndex
from journey_planner.services.time_utils import current_time_of_day, try_parse_time
from journey_planner.services.transfer_assembler import find_transfer_itineraries

logger = logging.getLogger(__name__)


async def _evaluate_hubs(
    index: ScheduleIndex,
    origin_stop_id: str,
    destination_stop_id: str,
    hubs: list[HubCandidate],
    min_departure: str,
    config: PlannerConfig,
) -> tuple[list[Itinerary], int, int, bool]:
    """Search every hub concurrently within the request timeout.

    Hubs run on a pool of at most config.max_concurrent_hubs threads owned
    by this search. On timeout or cancellation, queued hubs are dropped
    and only hubs already running finish in the background.

    Returns:
        (itineraries, hubs evaluated, hubs failed, timed out)
    """
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(
        max_workers=max(1, min(len(hubs), config.max_concurrent_hubs)),
        thread_name_prefix="hub-search",
    )
    futures = [
        loop.run_in_executor(
            executor,
            find_transfer_itineraries,
            index,
            origin_stop_id,
            hub.stop.stop_id,
            destination_stop_id,
            min_departure,
            config,
        )
        for hub in hubs
    ]
    try:
        done, pending = await asyncio.wait(futures, timeout=config.search_timeout_seconds)
    finally:
        for future in futures:
            if not future.done():
                future.cancel()
        executor.shutdown(wait=False, cancel_futures=True)

    timed_out = bool(pending)
    if timed_out:
        logger.warning(
            f"Hub search timed out after {config.search_timeout_seconds}s: "
            f"{len(pending)} of {len(hubs)} hubs unfinished"
        )

    itineraries: list[Itinerary] = []
    evaluated = 0
    failed = 0
    # Merge in hub score order so dedup keeps the better-scored hub
    for hub, future in zip(hubs, futures):
        if future not in done:
            continue
        error = future.exception()
        if error is not None:
            failed += 1
            logger.warning(f"Hub {hub.stop.stop_id} evaluation failed: {error!r}")
            continue
        evaluated += 1
        itineraries.extend(future.result())

    return itineraries, evaluated, failed, timed_out


async def search_journeys(
    index: ScheduleIndex,
    origin_stop_id: str,
    destination_stop_id: str,
    min_departure_time: str | None = None,
    config: PlannerConfig | None = None,
) -> JourneyPlan:
    """Plan a journey and report how the result was reached.

    Input problems (same stop, unknown stop, unparseable time) yield an
    empty plan with the matching status instead of raising.

    Args:
        index: Built schedule index (shared, read-only).
        origin_stop_id: Origin stop id.
        destination_stop_id: Destination stop id.
        min_departure_time: Earliest departure, HH:MM[:SS] (default: now).
        config: Search bounds (default: environment configuration).

    Returns:
        JourneyPlan with ranked itineraries and search diagnostics.
    """
    config = config or get_planner_config()

    if origin_stop_id == destination_stop_id:
        return JourneyPlan(status=SearchStatus.SAME_STOP)
    if origin_stop_id not in index.stops:
        return JourneyPlan(status=SearchStatus.UNKNOWN_ORIGIN)
    if destination_stop_id not in index.stops:
        return JourneyPlan(status=SearchStatus.UNKNOWN_DESTINATION)

    departure = min_departure_time or current_time_of_day()
    if try_parse_time(departure) is None:
        logger.warning(f"Ignoring request with invalid departure time {departure!r}")
        return JourneyPlan(status=SearchStatus.INVALID_DEPARTURE_TIME, departure_time=departure)

    direct = [
        direct_itinerary(leg)
        for leg in find_direct_legs(index, origin_stop_id, destination_stop_id, departure, config)
    ]

    transfers: list[Itinerary] = []
    hubs: list[HubCandidate] = []
    evaluated = failed = 0
    timed_out = False

    run_transfer_search = (
        config.transfer_search == TransferSearchMode.ALWAYS
        or len(direct) < config.min_direct_results
    )
    if run_transfer_search:
        hubs = select_hubs(index, origin_stop_id, destination_stop_id, config)
        if hubs:
            transfers, evaluated, failed, timed_out = await _evaluate_hubs(
                index, origin_stop_id, destination_stop_id, hubs, departure, config
            )

    itineraries = rank_itineraries(direct + transfers, limit=config.max_results)

    logger.info(
        f"Planned {origin_stop_id} -> {destination_stop_id} at {departure}: "
        f"{len(direct)} direct, {len(transfers)} transfer candidates, "
        f"{len(itineraries)} returned"
    )

    return JourneyPlan(
        status=SearchStatus.OK if itineraries else SearchStatus.NO_ITINERARY,
        itineraries=itineraries,
        departure_time=departure,
        direct_candidates=len(direct),
        transfer_candidates=len(transfers),
        hubs_considered=len(hubs),
        hubs_evaluated=evaluated,
        hubs_failed=failed,
        timed_out=timed_out,
    )


async def plan_journey(
    index: ScheduleIndex,
    origin_stop_id: str,
    destination_stop_id: str,
    min_departure_time: str | None = None,
    config: PlannerConfig | None = None,
) -> list[Itinerary]:
    """Ranked itineraries from origin to destination.

    Returns [] when origin == destination, when either id is unknown, or
    when nothing is found. Use search_journeys() to tell these apart.
    """
    plan = await search_journeys(
        index, origin_stop_id, destination_stop_id, min_departure_time, config
    )
    return plan.itineraries
