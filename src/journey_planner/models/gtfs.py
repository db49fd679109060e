"""Pydantic models for GTFS entities."""

from pydantic import BaseModel, ConfigDict


class Route(BaseModel):
    """GTFS route entity."""

    model_config = ConfigDict(frozen=True)

    route_id: str
    route_short_name: str | None = None
    route_long_name: str | None = None
    route_type: int = 3  # 1=metro, 3=bus
    route_color: str | None = None
    route_text_color: str | None = None

    @property
    def display_name(self) -> str:
        return self.route_short_name or self.route_long_name or self.route_id


class Stop(BaseModel):
    """GTFS stop entity."""

    model_config = ConfigDict(frozen=True)

    stop_id: str
    stop_code: str | None = None
    stop_name: str
    stop_lat: float | None = None
    stop_lon: float | None = None
    location_type: int = 0  # 0=stop, 1=station/interchange
    parent_station: str | None = None
    zone_id: str | None = None
    wheelchair_boarding: int = 0  # 0=no info, 1=accessible, 2=not accessible

    @property
    def is_interchange(self) -> bool:
        return self.location_type == 1

    @property
    def is_accessible(self) -> bool:
        return self.wheelchair_boarding == 1

    @property
    def has_location(self) -> bool:
        return self.stop_lat is not None and self.stop_lon is not None


class Trip(BaseModel):
    """GTFS trip entity."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_id: str
    service_id: str | None = None
    trip_headsign: str | None = None
    direction_id: int = 0  # 0=outbound, 1=inbound


class StopTime(BaseModel):
    """GTFS stop_times entity."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_time: str | None = None  # HH:MM:SS (can exceed 24:00:00)
    departure_time: str | None = None


class FeedTables(BaseModel):
    """The four static tables the schedule index is built from."""

    model_config = ConfigDict(frozen=True)

    stops: tuple[Stop, ...] = ()
    routes: tuple[Route, ...] = ()
    trips: tuple[Trip, ...] = ()
    stop_times: tuple[StopTime, ...] = ()
