"""Tests for the MCP server, health tool and planner tools."""

from pathlib import Path

import pytest

from journey_planner import __version__
from journey_planner.data.gtfs_loader import GTFSLoader
from journey_planner.data.index_store import IndexStore
from journey_planner.models.responses import SearchStatus
from journey_planner.server import health, reload_schedule
from journey_planner.tools import journey_tools, schedule_tools, stop_tools
from factories import GTFS_FILES, write_gtfs_dir


@pytest.fixture
async def store(tmp_path: Path, monkeypatch) -> IndexStore:
    """Index store over an ingested sample feed, swapped into the tool modules."""
    db_path = tmp_path / "gtfs.db"
    await GTFSLoader(db_path).ingest(write_gtfs_dir(tmp_path / "gtfs"))
    index_store = IndexStore(db_path)
    monkeypatch.setattr(journey_tools, "index_store", index_store)
    monkeypatch.setattr(stop_tools, "index_store", index_store)
    monkeypatch.setattr(schedule_tools, "index_store", index_store)
    return index_store


def test_health_returns_ok_status():
    """Health check should return status ok."""
    response = health()
    assert response.status == "ok"


def test_health_returns_version():
    """Health check should return the current version."""
    response = health()
    assert response.version == __version__


def test_health_returns_timestamp():
    """Health check should return a valid ISO timestamp."""
    response = health()
    assert response.timestamp is not None
    # Should be parseable as ISO format
    assert "T" in response.timestamp


class TestPlanJourneyTool:
    """Tests for the plan_journey tool."""

    async def test_plans_transfer_journey(self, store):
        response = await journey_tools.plan_journey("A", "D", departure_time="08:00")

        assert response.success is True
        assert response.status == SearchStatus.OK
        assert response.count == 1
        assert response.query_time == "08:00"
        assert response.error is None
        assert response.itineraries[0].transfers == 1

    async def test_same_stop(self, store):
        response = await journey_tools.plan_journey("A", "A", departure_time="08:00")

        assert response.success is False
        assert response.status == SearchStatus.SAME_STOP
        assert response.error == "Origin and destination are the same stop"

    async def test_unknown_origin(self, store):
        response = await journey_tools.plan_journey("NOPE", "D", departure_time="08:00")
        assert response.status == SearchStatus.UNKNOWN_ORIGIN
        assert response.count == 0

    async def test_nothing_after_last_departure(self, store):
        response = await journey_tools.plan_journey("A", "D", departure_time="23:00")

        assert response.status == SearchStatus.NO_ITINERARY
        assert response.error == "No itinerary found"

    async def test_limit_clamped(self, store):
        response = await journey_tools.plan_journey("A", "D", departure_time="08:00", limit=0)
        assert response.count == 1


class TestStopTools:
    async def test_search_stops(self, store):
        response = await stop_tools.search_stops("harbour")

        assert [stop.stop_id for stop in response.stops] == ["H"]
        assert response.stops[0].route_count == 2

    async def test_get_stop_routes(self, store):
        response = await stop_tools.get_stop_routes("H")

        assert response.found is True
        assert [route.route_short_name for route in response.routes] == ["10", "20"]
        assert response.count == 2

    async def test_get_stop_routes_unknown(self, store):
        response = await stop_tools.get_stop_routes("NOPE")
        assert response.found is False
        assert response.routes == []

    async def test_get_stop_departures(self, store):
        response = await schedule_tools.get_stop_departures("H", after_time="08:00")

        # X1 ends at H, so only route 20 departs from there
        assert response.found is True
        assert [d.trip_id for d in response.departures] == ["Y1"]
        assert response.departures[0].final_destination == "Dockside"
        assert response.departures[0].route_short_name == "20"
        assert response.departures[0].departure_time_formatted == "9:07 AM"

    async def test_get_stop_departures_limit_clamped(self, store):
        response = await schedule_tools.get_stop_departures("H", after_time="08:00", limit=0)
        assert response.count == 1

    async def test_get_stop_departures_unknown_stop(self, store):
        response = await schedule_tools.get_stop_departures("NOPE", after_time="08:00")
        assert response.found is False

    async def test_health_reports_index_loaded(self, store, monkeypatch):
        from journey_planner import server

        monkeypatch.setattr(server, "index_store", store)
        assert health().index_loaded is False

        await store.get()

        assert health().index_loaded is True


class TestReloadSchedule:
    """Tests for the reload_schedule tool."""

    async def test_reload_picks_up_reingested_feed(self, store, tmp_path, monkeypatch):
        monkeypatch.setattr("journey_planner.server.index_store", store)
        before = await store.get()
        routes = GTFS_FILES["routes.txt"] + "Z,CT,30,Night Shuttle,3,,\n"
        await GTFSLoader(store.db_path).ingest(
            write_gtfs_dir(tmp_path / "gtfs2", {"routes.txt": routes})
        )

        response = await reload_schedule()

        assert response.status == "ok"
        assert response.table_counts == {"routes": 3, "stops": 3, "trips": 2, "stop_times": 4}
        assert response.routes == 3
        assert response.stops == 3
        assert response.trips == 2
        assert len(before.routes) == 2
        assert await store.get() is not before

        found = await stop_tools.search_stops("harbour")
        assert found.stops[0].stop_id == "H"

    async def test_reload_without_database(self, tmp_path, monkeypatch):
        missing = IndexStore(tmp_path / "missing.db")
        monkeypatch.setattr("journey_planner.server.index_store", missing)

        with pytest.raises(FileNotFoundError):
            await reload_schedule()

        assert not missing.is_loaded
