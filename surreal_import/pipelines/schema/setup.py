"""SurrealDB Table Setup Functions.

This module runs the per-file setup before records are inserted:
optionally clearing the table, declaring it, and declaring the
configured indexes ahead of the bulk insert.

Usage:
    from surreal_import.pipelines.schema import prepare_table

    async with get_surrealdb_connection() as db:
        await prepare_table(db, "readings", indexes, clear=True)
"""

from typing import TYPE_CHECKING, Iterable

from surreal_import.logging_config import get_logger
from .definitions import table_setup_statements

if TYPE_CHECKING:
    from surreal_import.pipelines.ingest.models import IndexDefinition

logger = get_logger(name=__name__)


async def prepare_table(
    db,
    table: str,
    indexes: Iterable["IndexDefinition"] = (),
    clear: bool = False,
) -> None:
    """Clear (optionally), define the table and its indexes.

    Args:
        db: Connected SurrealDB client (anything with an async query()).
        table: Target table name.
        indexes: Index declarations applied to the table.
        clear: DELETE existing rows before the import.

    Raises:
        Exception: The first failing statement aborts setup; the file is
            not imported.
    """
    statements = table_setup_statements(table, list(indexes), clear=clear)
    total = len(statements)

    for i, stmt in enumerate(statements, 1):
        try:
            await db.query(stmt)
        except Exception as e:
            logger.error(f"[{i}/{total}] Failed: {stmt} Error: {e}")
            raise
        logger.debug(f"[{i}/{total}] {stmt}")

    if clear:
        logger.info(f"Cleared table {table} before import")
