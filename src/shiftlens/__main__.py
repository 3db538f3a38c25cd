"""Entry point for SHIFTLENS server."""

import argparse
import logging

from importlib.metadata import PackageNotFoundError, version

from shiftlens.analysis.service import AnalyticsService
from shiftlens.config import load_settings
from shiftlens.database import FrigateEventSource
from shiftlens.logging_config import setup_logging
from shiftlens.server import configure, server

logger = logging.getLogger("shiftlens")


def _version() -> str:
    try:
        return version("shiftlens")
    except PackageNotFoundError:
        return "dev"


def main() -> int:
    """Main entry point for SHIFTLENS server."""
    setup_logging()

    parser = argparse.ArgumentParser(
        description="SHIFTLENS: MCP server for Frigate NVR workplace analytics"
    )
    parser.add_argument(
        "--database",
        default=None,
        help="SQLAlchemy URL of the Frigate database (default: from config)",
    )
    parser.add_argument(
        "--timezone",
        default=None,
        help="Default display timezone (default: from config)",
    )
    args = parser.parse_args()

    logger.info(f"Starting SHIFTLENS v{_version()}...")

    try:
        settings = load_settings()
        if args.database:
            settings.database = settings.database.model_copy(update={"url": args.database})
        if args.timezone:
            settings.timezone = args.timezone

        source = FrigateEventSource.from_settings(settings.database)
        configure(AnalyticsService(source, settings))
        logger.info(f"Using database: {source.engine.url.render_as_string(hide_password=True)}")

        logger.info("Starting MCP server...")
        server.run()
        return 0

    except Exception as e:
        logger.error(f"Server failed to start: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    exit(main())
