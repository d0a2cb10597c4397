"""SurrealDB connection management.

This module provides an async context manager for SurrealDB connections
with proper error handling and configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from surrealdb import AsyncSurreal
from surreal_import.logging_config import get_logger
from surreal_import.config.settings import Settings, get_settings

logger = get_logger(name=__name__)


class SurrealDBConnectionError(Exception):
    """Raised when SurrealDB connection fails."""
    pass


@asynccontextmanager
async def get_surrealdb_connection(
    settings: Optional[Settings] = None,
) -> AsyncGenerator[AsyncSurreal, None]:
    """Async context manager for SurrealDB connections.

    Only session setup (connect, sign in, select namespace/database) is
    wrapped in SurrealDBConnectionError; failures raised by the caller
    while the connection is in use propagate unchanged.

    Yields:
        AsyncSurreal: Connected and authenticated SurrealDB client.

    Raises:
        SurrealDBConnectionError: If connection or authentication fails.

    Example:
        async with get_surrealdb_connection() as db:
            await db.insert("readings", {"value": "1"})
    """
    settings = settings or get_settings()
    db = AsyncSurreal(settings.surrealdb_url)

    try:
        logger.debug(f"Connecting to SurrealDB at {settings.surrealdb_url}")
        await db.connect()

        logger.debug(f"Authenticating with user: {settings.surrealdb_user}")
        await db.signin({
            "username": settings.surrealdb_user,
            "password": settings.surrealdb_pass,
        })

        logger.debug(
            f"Using namespace '{settings.surrealdb_namespace}' "
            f"and database '{settings.surrealdb_database}'"
        )
        await db.use(settings.surrealdb_namespace, settings.surrealdb_database)
    except Exception as e:
        error_msg = f"Failed to connect to SurrealDB: {str(e)}"
        logger.error(error_msg)
        try:
            await db.close()
        except Exception as close_error:
            logger.warning(f"Error closing SurrealDB connection: {str(close_error)}")
        raise SurrealDBConnectionError(error_msg) from e

    logger.info("SurrealDB connection established successfully")
    try:
        yield db
    finally:
        try:
            await db.close()
            logger.debug("SurrealDB connection closed")
        except Exception as e:
            logger.warning(f"Error closing SurrealDB connection: {str(e)}")
