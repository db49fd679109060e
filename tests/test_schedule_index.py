"""Tests for the immutable schedule index."""

import pytest

from journey_planner.models.gtfs import FeedTables, StopTime
from journey_planner.services.schedule_index import ScheduleIndex
from factories import (
    build_index,
    make_route,
    make_stop,
    make_stop_times,
    make_trip,
)


@pytest.fixture
def index() -> ScheduleIndex:
    """Route 10 runs A-B-C-D (trip T1) and A-E-C (trip T2); route 20 runs D-B inbound."""
    stops = [
        make_stop("A", 45.500, -73.600),
        make_stop("B", 45.501, -73.600),
        make_stop("C", 45.502, -73.600),
        make_stop("D", 45.503, -73.600),
        make_stop("E", 45.600, -73.700),
        make_stop("UNSERVED", 45.5005, -73.600),
    ]
    routes = [make_route("10"), make_route("20")]
    trips = [
        make_trip("T1", "10"),
        make_trip("T2", "10"),
        make_trip("T3", "20", direction_id=1),
    ]
    # Out of order on purpose
    stop_times = list(
        reversed(
            make_stop_times(
                "T1",
                [("A", "08:00:00"), ("B", "08:05:00"), ("C", "08:10:00"), ("D", "08:15:00")],
            )
        )
    )
    stop_times += make_stop_times("T2", [("A", "09:00:00"), ("E", "09:05:00"), ("C", "09:10:00")])
    stop_times += make_stop_times("T3", [("D", "10:00:00"), ("B", "10:06:00")])
    return build_index(stops, routes, trips, stop_times)


class TestBuild:
    """Tests for ScheduleIndex.build."""

    def test_trip_stops_sorted_by_sequence(self, index):
        sequences = [st.stop_sequence for st in index.trip_stops["T1"]]
        assert sequences == [1, 2, 3, 4]
        assert [st.stop_id for st in index.trip_stops["T1"]] == ["A", "B", "C", "D"]

    def test_duplicate_sequence_keeps_first_row(self):
        index = build_index(
            [make_stop("A"), make_stop("B")],
            [make_route("R")],
            [make_trip("T", "R")],
            [
                StopTime(trip_id="T", stop_id="A", stop_sequence=1, departure_time="08:00:00"),
                StopTime(trip_id="T", stop_id="B", stop_sequence=1, departure_time="08:01:00"),
                StopTime(trip_id="T", stop_id="B", stop_sequence=2, arrival_time="08:05:00"),
            ],
        )
        assert [st.stop_id for st in index.trip_stops["T"]] == ["A", "B"]

    def test_stop_routes_pairs(self, index):
        assert index.route_directions_at("B") == frozenset({("10", 0), ("20", 1)})
        assert index.route_directions_at("E") == frozenset({("10", 0)})
        assert index.route_ids_at("B") == frozenset({"10", "20"})

    def test_route_direction_trips(self, index):
        assert index.route_direction_trips[("10", 0)] == ("T1", "T2")
        assert index.route_direction_trips[("20", 1)] == ("T3",)

    def test_merged_direction_order(self, index):
        merged = [st.stop_id for st in index.direction_stops("10", 0)]
        assert merged == ["A", "E", "B", "C", "D"]

    def test_unknown_direction_is_empty(self, index):
        assert index.direction_stops("10", 1) == ()
        assert index.direction_stops("99", 0) == ()

    def test_orphan_trip_and_stop_times_ignored(self):
        feed = FeedTables(
            stops=(make_stop("A"), make_stop("B")),
            routes=(make_route("R"),),
            trips=(make_trip("T", "R"), make_trip("ORPHAN", "MISSING")),
            stop_times=tuple(
                make_stop_times("T", [("A", "08:00:00"), ("B", "08:10:00")])
                + make_stop_times("ORPHAN", [("A", "09:00:00"), ("B", "09:10:00")])
                + make_stop_times("GHOST", [("A", "10:00:00")])
            ),
        )
        index = ScheduleIndex.build(feed)

        assert set(index.trips) == {"T"}
        assert set(index.trip_stops) == {"T"}
        assert index.route_ids_at("A") == frozenset({"R"})

    def test_empty_feed(self):
        index = ScheduleIndex.build(FeedTables())
        assert len(index.stops) == 0
        assert index.route_ids_at("A") == frozenset()


class TestLookups:
    def test_nearby_stops_nearest_first(self, index):
        # B is ~111 m from A, C ~222 m; unserved stops never qualify
        nearby = index.nearby_stops("A", 0.25)
        assert [stop.stop_id for stop in nearby] == ["B", "C"]

    def test_nearby_stops_unknown_center(self, index):
        assert index.nearby_stops("NOPE", 1.0) == []


class TestImmutability:
    def test_maps_are_read_only(self, index):
        with pytest.raises(TypeError):
            index.stops["Z"] = make_stop("Z")  # type: ignore[index]
        with pytest.raises(TypeError):
            index.route_direction_stops["10"][5] = ()  # type: ignore[index]

    def test_sequences_are_tuples(self, index):
        assert isinstance(index.trip_stops["T1"], tuple)
        assert isinstance(index.direction_stops("10", 0), tuple)
