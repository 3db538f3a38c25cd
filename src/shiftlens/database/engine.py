"""Async engine construction for the Frigate database."""

import logging

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from shiftlens.config import DatabaseSettings

logger = logging.getLogger(__name__)

APPLICATION_NAME = "shiftlens-readonly"


def create_engine(settings: DatabaseSettings) -> AsyncEngine:
    """
    Create an async engine for the configured database.

    For asyncpg URLs every connection is opened with
    `default_transaction_read_only` so the server rejects writes.

    Args:
        settings: Database settings

    Returns:
        AsyncEngine (connections are opened lazily)

    Raises:
        ValueError: If the URL cannot be parsed
    """
    try:
        url = make_url(settings.url)
    except Exception as e:
        raise ValueError(f"Invalid database URL: {e}") from e

    kwargs: dict[str, Any] = {"echo": False, "pool_pre_ping": True}

    if url.get_driver_name() == "asyncpg":
        kwargs["pool_size"] = settings.pool_size
        kwargs["connect_args"] = {
            "server_settings": {
                "application_name": APPLICATION_NAME,
                "default_transaction_read_only": "on",
            },
            "command_timeout": settings.query_timeout_seconds,
        }

    logger.debug(
        f"Creating engine for {url.render_as_string(hide_password=True)} "
        f"(timeout={settings.query_timeout_seconds}s)"
    )
    return create_async_engine(url, **kwargs)
