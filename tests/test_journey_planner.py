"""Tests for end-to-end journey planning."""

import asyncio
import threading
import time

import pytest

from journey_planner.data.config import PlannerConfig, TransferSearchMode
from journey_planner.models.gtfs import StopTime
from journey_planner.models.responses import SearchStatus
from journey_planner.services import journey_planner
from journey_planner.services.journey_planner import plan_journey, search_journeys
from factories import (
    build_index,
    make_route,
    make_stop,
    make_stop_times,
    make_trip,
    transfer_network,
)

PATCH_TARGET = "journey_planner.services.journey_planner.find_transfer_itineraries"


@pytest.fixture
def config() -> PlannerConfig:
    return PlannerConfig()


@pytest.fixture
def line_index():
    """Route L calls at S1..S7; S3 departs 08:10 and S7 is reached 08:25."""
    stop_ids = [f"S{i}" for i in range(1, 8)]
    times = ["08:00:00", "08:05:00", "08:10:00", "08:13:00", "08:17:00", "08:21:00", "08:25:00"]
    return build_index(
        [make_stop(stop_id, 45.5 + i * 0.01, -73.6) for i, stop_id in enumerate(stop_ids)],
        [make_route("L")],
        [make_trip("T1", "L")],
        make_stop_times("T1", list(zip(stop_ids, times))),
    )


def stations_index(count: int):
    """Origin and destination plus `count` unserved interchange stations."""
    stops = [make_stop("O", 45.5, -73.6), make_stop("D", 45.5, -73.5)]
    stops += [make_stop(f"HUB{i}", 45.5, -73.55, location_type=1) for i in range(count)]
    return build_index(stops, [], [], [])


class TestReferenceJourneys:
    """Reference journeys."""

    async def test_direct_journey(self, line_index, config):
        itineraries = await plan_journey(line_index, "S3", "S7", "08:00", config)

        assert len(itineraries) == 1
        itinerary = itineraries[0]
        assert itinerary.transfers == 0
        assert itinerary.total_duration_minutes == 15
        assert itinerary.confidence == 100
        assert len(itinerary.legs[0].stops) == 5

    async def test_one_transfer_journey(self, config):
        index = transfer_network("09:07")

        itineraries = await plan_journey(index, "A", "D", "08:00", config)

        assert len(itineraries) == 1
        itinerary = itineraries[0]
        assert itinerary.transfers == 1
        assert itinerary.walking_time_minutes == 8
        assert itinerary.confidence == 78
        assert [stop.stop_id for stop in itinerary.transfer_stops] == ["H"]

    async def test_connection_too_tight(self, config):
        index = transfer_network("09:03")

        plan = await search_journeys(index, "A", "D", "08:00", config)

        assert plan.itineraries == []
        assert plan.status == SearchStatus.NO_ITINERARY

    async def test_same_stop(self, line_index, config):
        assert await plan_journey(line_index, "S3", "S3", "08:00", config) == []
        plan = await search_journeys(line_index, "S3", "S3", "08:00", config)
        assert plan.status == SearchStatus.SAME_STOP

    async def test_missing_departure_time_skips_trip(self, config):
        stops = [make_stop("O"), make_stop("D", 45.6)]
        stop_times = [
            StopTime(trip_id="BROKEN", stop_id="O", stop_sequence=1, departure_time=""),
            StopTime(trip_id="BROKEN", stop_id="D", stop_sequence=2, arrival_time="08:20:00"),
        ]
        stop_times += make_stop_times("OK", [("O", "08:30:00"), ("D", "08:45:00")])
        index = build_index(
            stops,
            [make_route("R")],
            [make_trip("BROKEN", "R"), make_trip("OK", "R")],
            stop_times,
        )

        itineraries = await plan_journey(index, "O", "D", "08:00", config)

        assert [itinerary.legs[0].trip_id for itinerary in itineraries] == ["OK"]
        assert itineraries[0].total_duration_minutes == 15


class TestSearchJourneys:
    """Tests for search_journeys diagnostics and options."""

    @pytest.mark.parametrize(
        "origin,destination,status",
        [
            ("NOPE", "S7", SearchStatus.UNKNOWN_ORIGIN),
            ("S3", "NOPE", SearchStatus.UNKNOWN_DESTINATION),
        ],
    )
    async def test_unknown_stops(self, line_index, config, origin, destination, status):
        plan = await search_journeys(line_index, origin, destination, "08:00", config)
        assert plan.status == status
        assert plan.itineraries == []

    async def test_invalid_departure_time(self, line_index, config):
        plan = await search_journeys(line_index, "S3", "S7", "tomorrow", config)
        assert plan.status == SearchStatus.INVALID_DEPARTURE_TIME

    async def test_diagnostics(self, config):
        plan = await search_journeys(transfer_network("09:07"), "A", "D", "08:00", config)

        assert plan.status == SearchStatus.OK
        assert plan.departure_time == "08:00"
        assert plan.direct_candidates == 0
        assert plan.transfer_candidates == 1
        assert plan.hubs_considered == 2
        assert plan.hubs_evaluated == 2
        assert plan.hubs_failed == 0
        assert plan.timed_out is False

    async def test_direct_ranked_before_transfer(self, config):
        stops = [
            make_stop("A", 45.5, -73.60),
            make_stop("H", 45.5, -73.58),
            make_stop("D", 45.5, -73.56),
        ]
        stop_times = make_stop_times("X1", [("A", "08:30:00"), ("H", "09:00:00")])
        stop_times += make_stop_times("Y1", [("H", "09:07:00"), ("D", "09:20:00")])
        stop_times += make_stop_times("Z1", [("A", "08:30:00"), ("D", "09:45:00")])
        index = build_index(
            stops,
            [make_route("X"), make_route("Y"), make_route("Z")],
            [make_trip("X1", "X"), make_trip("Y1", "Y"), make_trip("Z1", "Z")],
            stop_times,
        )

        itineraries = await plan_journey(index, "A", "D", "08:00", config)

        assert [itinerary.transfers for itinerary in itineraries] == [0, 1]
        assert itineraries[0].total_duration_minutes > itineraries[1].total_duration_minutes

    async def test_fallback_mode_skips_hubs_when_direct_found(self, line_index):
        config = PlannerConfig(transfer_search=TransferSearchMode.FALLBACK)

        plan = await search_journeys(line_index, "S3", "S7", "08:00", config)

        assert len(plan.itineraries) == 1
        assert plan.hubs_considered == 0

    async def test_fallback_mode_searches_hubs_without_direct(self):
        config = PlannerConfig(transfer_search=TransferSearchMode.FALLBACK)

        plan = await search_journeys(transfer_network("09:07"), "A", "D", "08:00", config)

        assert plan.hubs_considered == 2
        assert len(plan.itineraries) == 1

    async def test_results_limited(self):
        stop_ids = ["P", "Q"]
        trips = [make_trip(f"R{i}-T", f"R{i}") for i in range(5)]
        stop_times = []
        for i in range(5):
            stop_times += make_stop_times(f"R{i}-T", [("P", "08:00:00"), ("Q", f"08:{10 + i}:00")])
        index = build_index(
            [make_stop(stop_id) for stop_id in stop_ids],
            [make_route(f"R{i}") for i in range(5)],
            trips,
            stop_times,
        )

        plan = await search_journeys(index, "P", "Q", "07:00", PlannerConfig(max_results=3))

        assert [i.total_duration_minutes for i in plan.itineraries] == [10, 11, 12]


class TestHubEvaluation:
    """Concurrency, failure and timeout handling."""

    async def test_timeout_keeps_direct_results(self, line_index, monkeypatch):
        def slow(*args, **kwargs):
            time.sleep(0.5)
            return []

        monkeypatch.setattr(PATCH_TARGET, slow)
        config = PlannerConfig(search_timeout_seconds=0.05)

        plan = await search_journeys(line_index, "S3", "S7", "08:00", config)

        assert plan.timed_out is True
        assert plan.hubs_evaluated == 0
        assert len(plan.itineraries) == 1
        assert plan.itineraries[0].transfers == 0

    async def test_failing_hub_is_counted(self, config, monkeypatch):
        real_search = journey_planner.find_transfer_itineraries

        def flaky(index, origin, hub, destination, min_departure, cfg):
            if hub == "STATION":
                raise RuntimeError("boom")
            return real_search(index, origin, hub, destination, min_departure, cfg)

        monkeypatch.setattr(PATCH_TARGET, flaky)

        plan = await search_journeys(transfer_network("09:07"), "A", "D", "08:00", config)

        assert plan.hubs_failed == 1
        assert plan.hubs_evaluated == 1
        assert len(plan.itineraries) == 1

    async def test_concurrency_is_bounded(self, monkeypatch):
        lock = threading.Lock()
        active = 0
        peak = 0
        calls = 0

        def tracked(*args, **kwargs):
            nonlocal active, peak, calls
            with lock:
                active += 1
                calls += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return []

        monkeypatch.setattr(PATCH_TARGET, tracked)
        config = PlannerConfig(max_concurrent_hubs=2)

        plan = await search_journeys(stations_index(6), "O", "D", "08:00", config)

        assert calls == 6
        assert peak <= 2
        assert plan.hubs_evaluated == 6
        assert plan.status == SearchStatus.NO_ITINERARY

    async def test_cancelling_search_drops_queued_hubs(self, monkeypatch):
        started = threading.Event()
        release = threading.Event()
        calls = 0

        def blocking(*args, **kwargs):
            nonlocal calls
            calls += 1
            started.set()
            release.wait(2)
            return []

        monkeypatch.setattr(PATCH_TARGET, blocking)
        config = PlannerConfig(max_concurrent_hubs=1)

        task = asyncio.create_task(search_journeys(stations_index(3), "O", "D", "08:00", config))
        assert await asyncio.to_thread(started.wait, 1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        release.set()
        await asyncio.sleep(0.05)
        assert calls == 1

    async def test_timeout_drops_queued_hubs(self, monkeypatch):
        release = threading.Event()
        calls = 0

        def blocking(*args, **kwargs):
            nonlocal calls
            calls += 1
            release.wait(2)
            return []

        monkeypatch.setattr(PATCH_TARGET, blocking)
        config = PlannerConfig(max_concurrent_hubs=1, search_timeout_seconds=0.05)

        plan = await search_journeys(stations_index(3), "O", "D", "08:00", config)
        release.set()
        await asyncio.sleep(0.05)

        assert plan.timed_out is True
        assert plan.hubs_evaluated == 0
        assert calls == 1
