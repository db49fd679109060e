from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransferSearchMode(str, Enum):
    """When the one-transfer search runs."""

    ALWAYS = "always"
    FALLBACK = "fallback"  # only when direct results are insufficient


class PlannerConfig(BaseSettings):
    """Search bounds and feed location for the journey planner.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    db_path: Path = Field(default=Path("data/gtfs.db"), alias="PLANNER_DB_PATH")

    # Sanity ceilings (minutes)
    max_leg_minutes: int = Field(default=300, alias="PLANNER_MAX_LEG_MINUTES")
    max_itinerary_minutes: int = Field(default=360, alias="PLANNER_MAX_ITINERARY_MINUTES")

    # Search-space caps
    max_trips_per_route_direction: int = Field(default=50, alias="PLANNER_MAX_TRIPS")
    max_first_legs_per_hub: int = Field(default=5, alias="PLANNER_MAX_FIRST_LEGS")
    max_results_per_hub: int = Field(default=3, alias="PLANNER_MAX_RESULTS_PER_HUB")
    max_hubs: int = Field(default=20, alias="PLANNER_MAX_HUBS")
    high_traffic_min_routes: int = Field(default=2, alias="PLANNER_HIGH_TRAFFIC_MIN_ROUTES")

    # Transfer window
    interchange_transfer_minutes: int = Field(default=5, alias="PLANNER_INTERCHANGE_TRANSFER")
    standard_transfer_minutes: int = Field(default=8, alias="PLANNER_STANDARD_TRANSFER")
    min_connection_minutes: int = Field(default=5, alias="PLANNER_MIN_CONNECTION")
    max_transfer_wait_minutes: int = Field(default=60, alias="PLANNER_MAX_TRANSFER_WAIT")
    max_walk_km: float = Field(default=0.4, alias="PLANNER_MAX_WALK_KM")
    walk_minutes_per_km: float = Field(default=12.0, alias="PLANNER_WALK_MINUTES_PER_KM")

    # Concurrency
    max_concurrent_hubs: int = Field(default=10, alias="PLANNER_MAX_CONCURRENT_HUBS")
    search_timeout_seconds: float = Field(default=10.0, alias="PLANNER_SEARCH_TIMEOUT")

    # Results
    max_results: int = Field(default=10, alias="PLANNER_MAX_RESULTS")
    transfer_search: TransferSearchMode = Field(
        default=TransferSearchMode.ALWAYS, alias="PLANNER_TRANSFER_SEARCH"
    )
    min_direct_results: int = Field(default=1, alias="PLANNER_MIN_DIRECT_RESULTS")


@lru_cache
def get_planner_config() -> PlannerConfig:
    """Get planner configuration (cached singleton).

    Returns:
        PlannerConfig with values from .env file or environment variables.
    """
    return PlannerConfig()
