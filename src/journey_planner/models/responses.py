from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from journey_planner.models.gtfs import Route, Stop


class SearchStatus(str, Enum):
    """Outcome of a planning request."""

    OK = "ok"
    NO_ITINERARY = "no_itinerary"
    SAME_STOP = "same_stop"
    UNKNOWN_ORIGIN = "unknown_origin"
    UNKNOWN_DESTINATION = "unknown_destination"
    INVALID_DEPARTURE_TIME = "invalid_departure_time"


class HubSource(str, Enum):
    """Strategy that proposed a transfer hub."""

    INTERCHANGE = "interchange"
    HIGH_TRAFFIC = "high_traffic"
    NETWORK_OVERLAP = "network_overlap"


# Journey Models


class Leg(BaseModel):
    """One ride on a single scheduled trip."""

    model_config = ConfigDict(frozen=True)

    route: Route
    trip_id: str
    trip_headsign: str | None = None
    direction_id: int
    direction_label: str = Field(description="e.g. 'Outbound - Downtown'")

    from_stop: Stop
    to_stop: Stop

    # Times (GTFS format - can exceed 24:00:00)
    departure_time: str
    departure_time_formatted: str
    arrival_time: str
    arrival_time_formatted: str

    duration_minutes: int
    stops: tuple[Stop, ...] = Field(
        default=(), description="Boarding stop, intermediate stops, alighting stop"
    )

    @property
    def num_stops(self) -> int:
        return len(self.stops)


class Itinerary(BaseModel):
    """One proposed journey of one or two legs."""

    model_config = ConfigDict(frozen=True)

    itinerary_id: str
    origin: Stop
    destination: Stop
    legs: tuple[Leg, ...]

    departure_time: str = Field(description="First leg departure, HH:MM:SS")
    arrival_time: str = Field(description="Last leg arrival, HH:MM:SS")

    total_duration_minutes: int
    total_duration_formatted: str = Field(description="Human-readable duration, e.g. \"1h 05m\"")
    total_distance_km: float
    transfers: int = Field(description="0 for direct, 1 for one change")
    walking_time_minutes: int = 0
    confidence: int = Field(ge=0, le=100)

    # Transfer details (only present for two-leg itineraries)
    transfer_wait_minutes: int | None = None
    transfer_walk_km: float | None = None
    transfer_stops: tuple[Stop, ...] = ()

    @property
    def route_ids(self) -> tuple[str, ...]:
        return tuple(leg.route.route_id for leg in self.legs)


class HubCandidate(BaseModel):
    """A scored candidate transfer stop."""

    model_config = ConfigDict(frozen=True)

    stop: Stop
    score: int
    route_direction_count: int
    sources: frozenset[HubSource] = frozenset()


class JourneyPlan(BaseModel):
    """Itineraries plus a structured account of how they were found."""

    status: SearchStatus
    itineraries: list[Itinerary] = Field(default_factory=list)
    departure_time: str | None = Field(default=None, description="Minimum departure used")
    direct_candidates: int = 0
    transfer_candidates: int = 0
    hubs_considered: int = 0
    hubs_evaluated: int = 0
    hubs_failed: int = 0
    timed_out: bool = False


# MCP Response Models


class StopResult(BaseModel):
    stop_id: str
    stop_code: str | None = None
    stop_name: str
    stop_lat: float | None = None
    stop_lon: float | None = None
    location_type: int = Field(default=0, description="0=stop/platform, 1=station")
    zone_id: str | None = None
    wheelchair_boarding: int = Field(
        default=0, description="0=no info, 1=accessible, 2=not accessible"
    )
    route_count: int = Field(default=0, description="Number of distinct routes serving the stop")


class SearchStopsResponse(BaseModel):
    stops: list[StopResult]
    count: int = Field(description="Number of stops returned")


class RouteSummary(BaseModel):
    route_id: str
    route_short_name: str | None = None
    route_long_name: str | None = None
    route_type: int
    route_color: str | None = None


class StopRoutesResponse(BaseModel):
    stop_id: str
    found: bool
    routes: list[RouteSummary] = Field(default_factory=list)
    count: int = 0


class StopInfo(BaseModel):
    """Basic stop information."""

    stop_id: str
    stop_name: str
    stop_code: str | None = None


class ScheduledDeparture(BaseModel):
    """A scheduled departure from a stop."""

    trip_id: str
    route_id: str
    route_short_name: str | None = None
    route_type: int
    direction_id: int
    direction_label: str
    trip_headsign: str | None = None
    final_destination: str = Field(description="Name of the trip's last stop")
    departure_time: str = Field(description="GTFS time, can exceed 24:00:00")
    departure_time_formatted: str
    minutes_until: int = Field(description="Minutes after the query time")


class StopDeparturesResponse(BaseModel):
    """Response from get_stop_departures tool."""

    stop_id: str
    found: bool
    stop: StopInfo | None = None
    departures: list[ScheduledDeparture] = Field(default_factory=list)
    query_time: str | None = Field(default=None, description="Earliest departure HH:MM:SS")
    count: int = 0


class PlanJourneyResponse(BaseModel):
    """Response from plan_journey tool."""

    origin_stop_id: str
    destination_stop_id: str
    status: SearchStatus
    itineraries: list[Itinerary] = Field(default_factory=list)
    query_time: str | None = Field(default=None, description="Departure time HH:MM:SS")
    count: int
    success: bool
    timed_out: bool = False
    error: str | None = None
