import argparse
import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from journey_planner.app import index_store, mcp
from journey_planner.data.config import get_planner_config
from journey_planner.data.gtfs_loader import get_table_counts

# Register tools
from journey_planner.tools import journey_tools, schedule_tools, stop_tools  # noqa: F401

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    index_loaded: bool


@mcp.tool()
def health() -> HealthResponse:
    """Check if the journey planner server is running and healthy.

    Returns the server status, version, whether the schedule index has been
    built yet, and the current timestamp.
    """
    from journey_planner import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        index_loaded=index_store.is_loaded,
    )


class ReloadScheduleResponse(BaseModel):
    """Result of rebuilding the schedule index."""

    status: str
    timestamp: str
    table_counts: dict[str, int]
    stops: int
    routes: int
    trips: int


@mcp.tool()
async def reload_schedule() -> ReloadScheduleResponse:
    """Rebuild the schedule index from the database.

    Call this after running `journey-planner ingest` against the database
    the server uses, so new searches see the new feed without a restart.
    Searches already in progress finish on the previous schedule.

    Returns:
        ReloadScheduleResponse with database row counts and the size of
        the rebuilt index.
    """
    table_counts = await get_table_counts(index_store.db_path)
    index = await index_store.reload()
    logger.info(f"Schedule reloaded: {table_counts}")

    return ReloadScheduleResponse(
        status="ok",
        timestamp=datetime.now(UTC).isoformat(),
        table_counts=table_counts,
        stops=len(index.stops),
        routes=len(index.routes),
        trips=len(index.trips),
    )


async def run_ingest(gtfs_path: Path, db_path: Path) -> None:
    """Run GTFS ingestion."""
    from journey_planner.data.gtfs_loader import GTFSLoader

    loader = GTFSLoader(db_path)
    row_counts = await loader.ingest(gtfs_path)

    print("\nIngestion complete. Row counts:")
    for table, count in row_counts.items():
        print(f"  {table}: {count:,}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="journey-planner",
        description="Transit journey planner MCP server",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    # ingest command
    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Ingest GTFS data into SQLite database",
    )
    ingest_parser.add_argument(
        "gtfs_path",
        type=Path,
        help="Path to GTFS directory or ZIP file",
    )
    ingest_parser.add_argument(
        "--db",
        type=Path,
        default=get_planner_config().db_path,
        help="SQLite database path (default: data/gtfs.db or PLANNER_DB_PATH env var)",
    )

    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "ingest":
        asyncio.run(run_ingest(args.gtfs_path, args.db))
    else:
        # Default: run MCP server
        mcp.run()


if __name__ == "__main__":
    main()
